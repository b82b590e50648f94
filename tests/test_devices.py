"""Tests for I/O devices."""

import io

import pytest
from PIL import Image

from vm8.devices import BufferedIO, CanvasIO, ConsoleIO, IODevice
from vm8.errors import InputExhausted


class TestConsoleIO:
    """Text console device."""

    def test_emit_char(self):
        out = io.StringIO()
        console = ConsoleIO(stdout=out, stdin=io.StringIO())
        console.emit_char(ord("H"))
        console.emit_char(ord("i"))
        assert out.getvalue() == "Hi"

    def test_emit_char_writes_one_raw_byte(self):
        """Codes above 0x7f reach a binary-backed stream as one byte."""
        raw = io.BytesIO()
        out = io.TextIOWrapper(raw, encoding="utf-8")
        console = ConsoleIO(stdout=out, stdin=io.StringIO())
        console.emit_char(0xE9)
        console.emit_char(ord("A"))
        assert raw.getvalue() == b"\xe9A"

    def test_read_byte_skips_whitespace(self):
        console = ConsoleIO(stdout=io.StringIO(), stdin=io.StringIO("  \nab"))
        assert console.read_byte() == ord("a")
        assert console.read_byte() == ord("b")

    def test_read_byte_at_eof(self):
        console = ConsoleIO(stdout=io.StringIO(), stdin=io.StringIO(""))
        with pytest.raises(InputExhausted):
            console.read_byte()

    def test_drawing_is_ignored(self):
        """Text-only devices accept draw calls without output."""
        out = io.StringIO()
        console = ConsoleIO(stdout=out, stdin=io.StringIO())
        console.draw_rect(10)
        console.draw_circle(10)
        console.draw_line(10)
        assert out.getvalue() == ""


class TestBufferedIO:
    """In-memory device."""

    def test_input_sequence(self):
        buf = BufferedIO("AB")
        assert buf.read_byte() == 65
        assert buf.read_byte() == 66
        assert buf.last_in_code == 66
        with pytest.raises(InputExhausted):
            buf.read_byte()

    def test_bytes_input(self):
        buf = BufferedIO(b"\x00\xff")
        assert buf.read_byte() == 0
        assert buf.read_byte() == 255

    def test_output_and_draw_log(self):
        buf = BufferedIO()
        buf.emit_char(ord("x"))
        buf.draw_rect(4)
        buf.draw_line(9)
        assert buf.get_output() == "x"
        assert buf.last_out_code == ord("x")
        assert buf.draw_commands == [("rect", 4), ("line", 9)]


class TestCanvasIO:
    """Pillow-backed windowed surface."""

    def test_draws_ink_on_paper(self):
        canvas = CanvasIO(width=64, height=64)
        canvas.draw_rect(10)
        assert canvas.image.getpixel((5, 5)) == canvas.ink
        assert canvas.image.getpixel((40, 40)) == (16, 16, 16)

    def test_cursor_advances_and_wraps(self):
        canvas = CanvasIO(width=32, height=64)
        canvas.draw_rect(20)
        assert canvas.cursor_x == 22
        canvas.draw_circle(20)
        assert canvas.cursor_y > 0
        assert canvas.cursor_x == 22

    def test_newline_moves_to_next_row(self):
        canvas = CanvasIO()
        canvas.emit_char(ord("A"))
        canvas.emit_char(ord("\n"))
        assert canvas.cursor_x == 0
        assert canvas.cursor_y == CanvasIO.LINE_HEIGHT
        assert canvas.get_output() == "A\n"

    def test_records_commands(self):
        canvas = CanvasIO()
        canvas.draw_line(30)
        assert canvas.draw_commands == [("line", 30)]

    def test_key_queue(self):
        canvas = CanvasIO(input_data="a")
        canvas.press("b")
        assert canvas.read_byte() == ord("a")
        assert canvas.read_byte() == ord("b")

    def test_png_export(self):
        canvas = CanvasIO(width=40, height=30)
        canvas.draw_circle(8)
        image = Image.open(io.BytesIO(canvas.to_png()))
        assert image.format == "PNG"
        assert image.size == (40, 30)


def test_base_device_requires_char_io():
    device = IODevice()
    with pytest.raises(NotImplementedError):
        device.emit_char(0)
    with pytest.raises(NotImplementedError):
        device.read_byte()
