"""Memory model for the vm8 processor."""

import logging
from typing import Iterable, Optional

from .errors import LoadError, MemoryAccessError, ProgramTooLarge

logger = logging.getLogger(__name__)

MEMORY_SIZE = 256
BYTE_MASK = 0xFF


def hexdump(data: bytes, width: int = 16) -> str:
    """Format bytes as address-prefixed hex rows."""
    rows = []
    for offset in range(0, len(data), width):
        chunk = data[offset:offset + width]
        rows.append(f"{offset:02x}: " + " ".join(f"{b:02x}" for b in chunk))
    return "\n".join(rows)


class Memory:
    """Flat byte-addressed memory shared by code, data and stack."""

    def __init__(self, initial_values: Optional[dict[int, int]] = None):
        self._data = bytearray(MEMORY_SIZE)

        if initial_values:
            for addr, val in initial_values.items():
                self.write(addr, val)

    def __len__(self) -> int:
        return MEMORY_SIZE

    def _check_bounds(self, addr: int) -> None:
        """Check if address is within valid range."""
        if addr < 0 or addr >= MEMORY_SIZE:
            raise MemoryAccessError(f"Memory address out of range: {addr}")

    def read(self, addr: int) -> int:
        """Read byte from memory address."""
        self._check_bounds(addr)
        return self._data[addr]

    def write(self, addr: int, value: int) -> None:
        """Write value truncated to a byte."""
        self._check_bounds(addr)
        self._data[addr] = value & BYTE_MASK

    def load(self, program: Iterable[int]) -> int:
        """Copy a program image into memory starting at address 0.

        The image is validated in full before any byte is written, so a
        rejected image leaves memory untouched.

        Returns:
            Number of bytes loaded
        """
        try:
            image = bytes(program)
        except (TypeError, ValueError) as e:
            raise LoadError(f"Program image is not a byte sequence: {e}") from e
        if len(image) > MEMORY_SIZE:
            raise ProgramTooLarge(
                f"Program too large for memory: {len(image)} > {MEMORY_SIZE} bytes"
            )
        self._data[:len(image)] = image
        logger.debug("Loaded %d bytes:\n%s", len(image), hexdump(image))
        return len(image)

    def get_watched(self, addresses: list[int]) -> dict[str, int]:
        """Get values at watched addresses as string-keyed dict."""
        result = {}
        for addr in addresses:
            if 0 <= addr < MEMORY_SIZE:
                result[str(addr)] = self._data[addr]
        return result

    def snapshot(self) -> bytes:
        """Return a copy of the entire memory."""
        return bytes(self._data)
