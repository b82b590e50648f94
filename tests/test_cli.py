"""Tests for the vm8 command-line runner."""

import pytest
from click.testing import CliRunner
from PIL import Image

from vm8.cli import main


@pytest.fixture
def runner():
    return CliRunner()


def write_bin(tmp_path, data, name="prog.bin"):
    path = tmp_path / name
    path.write_bytes(bytes(data))
    return path


class TestCLI:
    """CLI exit codes and output."""

    def test_halt_exits_zero(self, runner, tmp_path):
        path = write_bin(tmp_path, [0x01, 0x00, 0x4F, 0x00, 0x01, 0x00, 0x4B, 0x00, 0xFF])
        result = runner.invoke(main, [str(path), "--no-clock"])
        assert result.exit_code == 0
        assert result.output == "OK"

    def test_fault_exits_one(self, runner, tmp_path):
        path = write_bin(tmp_path, [0x99])
        result = runner.invoke(main, [str(path), "--no-clock"])
        assert result.exit_code == 1
        assert "Error: Unknown opcode: 0x99" in result.output

    def test_too_large_exits_one(self, runner, tmp_path):
        path = write_bin(tmp_path, bytes(257))
        result = runner.invoke(main, [str(path), "--no-clock"])
        assert result.exit_code == 1
        assert "Program too large" in result.output

    def test_missing_file(self, runner, tmp_path):
        """A missing program is a load failure: exit 1 with a message."""
        result = runner.invoke(main, [str(tmp_path / "nope.bin"), "--no-clock"])
        assert result.exit_code == 1
        assert "Error: Failed to open file" in result.output

    def test_missing_hex_listing(self, runner, tmp_path):
        result = runner.invoke(main, [str(tmp_path / "nope.hex"), "--hex", "--no-clock"])
        assert result.exit_code == 1
        assert "Failed to read listing" in result.output

    def test_console_input(self, runner, tmp_path):
        path = write_bin(tmp_path, [0x02, 0x02, 0x06, 0x00, 0x01, 0x00, 0x00, 0x00, 0xFF])
        result = runner.invoke(main, [str(path), "--no-clock"], input=" z\n")
        assert result.exit_code == 0
        assert result.output == "z"

    def test_input_option(self, runner, tmp_path):
        path = write_bin(tmp_path, [0x02, 0x02, 0x06, 0x00, 0x01, 0x00, 0x00, 0x00, 0xFF])
        result = runner.invoke(main, [str(path), "--no-clock", "--input", "q"])
        assert result.exit_code == 0
        assert result.output == "q"

    def test_hex_listing(self, runner, tmp_path):
        path = tmp_path / "prog.hex"
        path.write_text("01 00 58 00 ; out 'X'\nff\n")
        result = runner.invoke(main, [str(path), "--hex", "--no-clock"])
        assert result.exit_code == 0
        assert result.output == "X"

    def test_bad_hex_listing(self, runner, tmp_path):
        path = tmp_path / "prog.hex"
        path.write_text("01 zz\n")
        result = runner.invoke(main, [str(path), "--hex", "--no-clock"])
        assert result.exit_code == 1
        assert "invalid byte" in result.output

    def test_max_cycles(self, runner, tmp_path):
        path = write_bin(tmp_path, [0x07, 0x00])
        result = runner.invoke(main, [str(path), "--no-clock", "--max-cycles", "5"])
        assert result.exit_code == 1
        assert "Cycle limit exceeded" in result.output

    def test_trace(self, runner, tmp_path):
        path = write_bin(tmp_path, [0x00, 0xFF])
        result = runner.invoke(main, [str(path), "--no-clock", "--trace"])
        assert result.exit_code == 0
        assert "pc=00 nop" in result.output
        assert "pc=01 hlt" in result.output

    def test_canvas(self, runner, tmp_path):
        path = write_bin(tmp_path, [0x01, 0x00, 0x10, 0x01, 0xFF])
        png = tmp_path / "out.png"
        result = runner.invoke(main, [str(path), "--no-clock", "--canvas", str(png)])
        assert result.exit_code == 0
        with Image.open(png) as image:
            assert image.format == "PNG"

    def test_invalid_hz(self, runner, tmp_path):
        path = write_bin(tmp_path, [0xFF])
        result = runner.invoke(main, [str(path), "--hz", "0"])
        assert result.exit_code == 1
