"""I/O devices reached through the OUT and IN instructions.

A device is passed to the processor at construction. Every device
supports ``emit_char`` and ``read_byte``; drawing calls are optional and
are ignored by text-only devices.
"""

import io
import logging
import sys
from typing import Optional, TextIO, Union

from PIL import Image, ImageDraw, ImageFont

from .errors import InputExhausted

logger = logging.getLogger(__name__)


class IODevice:
    """Output/input contract shared by all devices."""

    def emit_char(self, code: int) -> None:
        raise NotImplementedError

    def read_byte(self) -> int:
        raise NotImplementedError

    def draw_rect(self, size: int) -> None:
        logger.debug("%s cannot draw rectangles", type(self).__name__)

    def draw_circle(self, size: int) -> None:
        logger.debug("%s cannot draw circles", type(self).__name__)

    def draw_line(self, size: int) -> None:
        logger.debug("%s cannot draw lines", type(self).__name__)


class ConsoleIO(IODevice):
    """Text console: characters to a stream, input from a stream."""

    def __init__(self, stdout: Optional[TextIO] = None, stdin: Optional[TextIO] = None):
        self._stdout = stdout or sys.stdout
        self._stdin = stdin or sys.stdin

    def emit_char(self, code: int) -> None:
        """Write the code as a single raw byte when the stream allows it."""
        buffer = getattr(self._stdout, "buffer", None)
        if buffer is None:
            self._stdout.write(chr(code & 0xFF))
            self._stdout.flush()
            return
        self._stdout.flush()
        buffer.write(bytes([code & 0xFF]))
        buffer.flush()

    def read_byte(self) -> int:
        """Block until a non-whitespace character is available."""
        while True:
            char = self._stdin.read(1)
            if not char:
                raise InputExhausted("End of console input")
            if not char.isspace():
                return ord(char) & 0xFF


class BufferedIO(IODevice):
    """In-memory device: preset input bytes, recorded output."""

    def __init__(self, input_data: Union[bytes, str] = b""):
        if isinstance(input_data, str):
            input_data = input_data.encode("latin-1")
        self._input = bytes(input_data)
        self._input_pos = 0
        self._output: list[str] = []
        self.draw_commands: list[tuple[str, int]] = []
        self.last_in_code: Optional[int] = None
        self.last_out_code: Optional[int] = None

    def read_byte(self) -> int:
        """Read next byte from input buffer."""
        self.last_in_code = None
        if self._input_pos >= len(self._input):
            raise InputExhausted("Input buffer is empty")
        self.last_in_code = self._input[self._input_pos]
        self._input_pos += 1
        return self.last_in_code

    def emit_char(self, code: int) -> None:
        self.last_out_code = code & 0xFF
        self._output.append(chr(self.last_out_code))

    def draw_rect(self, size: int) -> None:
        self.draw_commands.append(("rect", size))

    def draw_circle(self, size: int) -> None:
        self.draw_commands.append(("circle", size))

    def draw_line(self, size: int) -> None:
        self.draw_commands.append(("line", size))

    def get_output(self) -> str:
        """Get accumulated output as string."""
        return "".join(self._output)


class CanvasIO(BufferedIO):
    """Windowed surface rendered onto a Pillow image.

    Text and shapes are placed at a cursor that moves left to right and
    wraps to a new row at the right edge. Input comes from a key queue.
    """

    CHAR_WIDTH = 6
    LINE_HEIGHT = 12
    GAP = 2

    def __init__(
        self,
        width: int = 320,
        height: int = 240,
        input_data: Union[bytes, str] = b"",
        ink: tuple = (230, 230, 230),
        paper: tuple = (16, 16, 16),
    ):
        super().__init__(input_data)
        self.width = width
        self.height = height
        self.ink = ink
        self.image = Image.new("RGB", (width, height), color=paper)
        self._draw = ImageDraw.Draw(self.image)
        self._font = ImageFont.load_default()
        self.cursor_x = 0
        self.cursor_y = 0
        self._row_height = self.LINE_HEIGHT

    def press(self, keys: Union[bytes, str]) -> None:
        """Queue key presses for IN."""
        if isinstance(keys, str):
            keys = keys.encode("latin-1")
        self._input = self._input[self._input_pos:] + bytes(keys)
        self._input_pos = 0

    def _newline(self) -> None:
        self.cursor_x = 0
        self.cursor_y += self._row_height
        self._row_height = self.LINE_HEIGHT
        if self.cursor_y >= self.height:
            self.cursor_y = 0

    def _place(self, width: int, height: int) -> tuple[int, int]:
        """Reserve a width x height box at the cursor and return its origin."""
        if self.cursor_x > 0 and self.cursor_x + width > self.width:
            self._newline()
        origin = (self.cursor_x, self.cursor_y)
        self.cursor_x += width + self.GAP
        self._row_height = max(self._row_height, height)
        return origin

    def emit_char(self, code: int) -> None:
        super().emit_char(code)
        char = chr(code & 0xFF)
        if char == "\n":
            self._newline()
            return
        x, y = self._place(self.CHAR_WIDTH, self.LINE_HEIGHT)
        self._draw.text((x, y), char, fill=self.ink, font=self._font)

    def draw_rect(self, size: int) -> None:
        super().draw_rect(size)
        x, y = self._place(size, size + self.GAP)
        self._draw.rectangle([x, y, x + size, y + size], fill=self.ink)

    def draw_circle(self, size: int) -> None:
        super().draw_circle(size)
        x, y = self._place(size, size + self.GAP)
        self._draw.ellipse([x, y, x + size, y + size], fill=self.ink)

    def draw_line(self, size: int) -> None:
        super().draw_line(size)
        x, y = self._place(size, 1 + self.GAP)
        self._draw.line([x, y, x + size, y], fill=self.ink, width=1)

    def to_png(self) -> bytes:
        """Export the surface as PNG bytes."""
        buffer = io.BytesIO()
        self.image.save(buffer, format="PNG")
        return buffer.getvalue()

    def save(self, path) -> None:
        self.image.save(path, format="PNG")
