"""Program image loading for vm8.

Binaries are raw byte streams loaded at address 0. For hand-written
programs a hex listing is also accepted::

    ; add r1, r2 then halt
    10 01 01 02
    ff
    40: 0x2a        ; data byte placed at 0x40

Tokens are hex bytes with an optional ``0x`` prefix. ``;`` and ``#``
start comments. An ``AA:`` prefix moves the write position; skipped
bytes are zero.
"""

import re
from pathlib import Path
from typing import Union

from .errors import ImageFormatError, LoadError, ProgramTooLarge
from .memory import MEMORY_SIZE

_ADDRESS_RE = re.compile(r"^(?:0[xX])?([0-9a-fA-F]{1,2})\s*:\s*(.*)$")
_BYTE_RE = re.compile(r"^(?:0[xX])?([0-9a-fA-F]{1,2})$")


def read_program(path: Union[str, Path]) -> bytes:
    """Read a raw program image from disk."""
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise LoadError(f"Failed to open file: {path}") from e
    if len(data) > MEMORY_SIZE:
        raise ProgramTooLarge(
            f"Program too large for memory: {len(data)} > {MEMORY_SIZE} bytes"
        )
    return data


def _strip_comment(line: str) -> str:
    """Remove ; or # comment from line."""
    for marker in (";", "#"):
        idx = line.find(marker)
        if idx != -1:
            line = line[:idx]
    return line


def parse_hex_image(text: str) -> bytes:
    """Parse a hex listing into a program image.

    Raises:
        ImageFormatError: bad token or an address written twice
        ProgramTooLarge: image runs past the end of memory
    """
    image: dict[int, int] = {}
    addr = 0

    for line_no, line in enumerate(text.split("\n"), 1):
        stripped = _strip_comment(line).strip()
        if not stripped:
            continue

        addr_match = _ADDRESS_RE.match(stripped)
        if addr_match:
            addr = int(addr_match.group(1), 16)
            stripped = addr_match.group(2).strip()

        for token in stripped.split():
            byte_match = _BYTE_RE.match(token)
            if not byte_match:
                raise ImageFormatError(f"Line {line_no}: invalid byte '{token}'")
            if addr >= MEMORY_SIZE:
                raise ProgramTooLarge(
                    f"Line {line_no}: image runs past end of memory ({MEMORY_SIZE} bytes)"
                )
            if addr in image:
                raise ImageFormatError(f"Line {line_no}: address 0x{addr:02x} written twice")
            image[addr] = int(byte_match.group(1), 16)
            addr += 1

    if not image:
        return b""
    data = bytearray(max(image) + 1)
    for offset, value in image.items():
        data[offset] = value
    return bytes(data)
