"""Tests for program image loading."""

import pytest
from vm8.image import parse_hex_image, read_program
from vm8.errors import ImageFormatError, LoadError, ProgramTooLarge


class TestParseHexImage:
    """Hex listing parser tests."""

    def test_plain_bytes(self):
        assert parse_hex_image("10 01 01 02\nff") == bytes([0x10, 0x01, 0x01, 0x02, 0xFF])

    def test_prefixed_bytes_and_case(self):
        assert parse_hex_image("0x0E 0X1a Ff") == bytes([0x0E, 0x1A, 0xFF])

    def test_comments_ignored(self):
        text = "; header\n07 05 ; jmp 5\n# note\n\nff"
        assert parse_hex_image(text) == bytes([0x07, 0x05, 0xFF])

    def test_address_prefix_zero_fills_gap(self):
        image = parse_hex_image("00\n04: 2a 2b")
        assert image == bytes([0x00, 0x00, 0x00, 0x00, 0x2A, 0x2B])

    def test_address_only_line(self):
        image = parse_hex_image("03:\nff")
        assert image == bytes([0, 0, 0, 0xFF])

    def test_empty_listing(self):
        assert parse_hex_image("; nothing\n") == b""

    def test_invalid_token(self):
        with pytest.raises(ImageFormatError) as exc:
            parse_hex_image("10 zz")
        assert "Line 1" in exc.value.message

    def test_three_digit_token_rejected(self):
        with pytest.raises(ImageFormatError):
            parse_hex_image("100")

    def test_overwrite_rejected(self):
        with pytest.raises(ImageFormatError):
            parse_hex_image("00 01\n01: 05")

    def test_runs_past_memory(self):
        with pytest.raises(ProgramTooLarge):
            parse_hex_image("ff: 00 01")

    def test_last_address(self):
        image = parse_hex_image("ff: 07")
        assert len(image) == 256
        assert image[255] == 0x07


class TestReadProgram:
    """Raw binary loading."""

    def test_reads_bytes(self, tmp_path):
        path = tmp_path / "prog.bin"
        path.write_bytes(bytes([0x00, 0xFF]))
        assert read_program(path) == bytes([0x00, 0xFF])

    def test_missing_file(self, tmp_path):
        with pytest.raises(LoadError):
            read_program(tmp_path / "missing.bin")

    def test_too_large(self, tmp_path):
        path = tmp_path / "big.bin"
        path.write_bytes(bytes(257))
        with pytest.raises(ProgramTooLarge):
            read_program(path)
