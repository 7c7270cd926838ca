"""Tests for the decoder module."""

import pytest
from chip8.decoder import (
    decode,
    disassemble,
    SUPPORTED_TAGS,
    UNSUPPORTED_TAGS,
)


class TestDecoder:
    """Decoder module tests."""

    def test_operand_fields(self):
        """All operand fields are sliced from the word."""
        instr = decode(0xD12F)
        assert instr.tag == "DRW"
        assert instr.x == 0x1
        assert instr.y == 0x2
        assert instr.n == 0xF
        assert instr.nn == 0x2F
        assert instr.nnn == 0x12F

    @pytest.mark.parametrize(
        "word, tag",
        [
            (0x0000, "NOP"),
            (0x00E0, "CLS"),
            (0x00EE, "RET"),
            (0x0123, "SYS"),
            (0x1ABC, "JP"),
            (0x2ABC, "CALL"),
            (0x3A05, "SE_VX_NN"),
            (0x4A05, "SNE_VX_NN"),
            (0x5AB0, "SE_VX_VY"),
            (0x6A05, "LD_VX_NN"),
            (0x7A05, "ADD_VX_NN"),
            (0xA123, "LD_I_NNN"),
            (0xD125, "DRW"),
            (0xF107, "LD_VX_DT"),
            (0xF10A, "LD_VX_K"),
            (0xF115, "LD_DT_VX"),
            (0xF118, "LD_ST_VX"),
            (0xF11E, "ADD_I_VX"),
            (0xF129, "LD_F_VX"),
            (0xF133, "LD_B_VX"),
            (0xF155, "LD_I_VX"),
            (0xF165, "LD_VX_I"),
        ],
    )
    def test_tags(self, word, tag):
        """Each family maps to its tag."""
        assert decode(word).tag == tag

    @pytest.mark.parametrize("word", [0x8120, 0x8124, 0x9120, 0xB123, 0xC1FF, 0xE19E, 0xE1A1, 0xF1FF])
    def test_unimplemented_families_are_unknown(self, word):
        """Unimplemented families never alias another instruction."""
        instr = decode(word)
        assert instr.tag == "UNKNOWN"
        assert instr.supported is False

    def test_supported_flag(self):
        """Timer and key instructions decode but are unsupported."""
        assert decode(0x6105).supported is True
        assert decode(0xF107).supported is False
        assert decode(0x0123).supported is False

    def test_tag_sets_disjoint(self):
        """A tag is either supported or not, never both."""
        assert not SUPPORTED_TAGS & UNSUPPORTED_TAGS

    def test_masks_to_16_bits(self):
        """Only the low 16 bits are decoded."""
        assert decode(0x1_6105).word == 0x6105

    def test_decode_is_pure(self):
        """Decoding the same word twice gives equal values."""
        assert decode(0xA2F0) == decode(0xA2F0)

    @pytest.mark.parametrize(
        "word, text",
        [
            (0x00E0, "CLS"),
            (0x1208, "JP 0x208"),
            (0x6A0F, "LD VA, 0x0f"),
            (0xD125, "DRW V1, V2, 5"),
            (0xF355, "LD [I], V3"),
            (0x8123, "??? 0x8123"),
        ],
    )
    def test_text(self, word, text):
        """Disassembly text is readable."""
        assert decode(word).text == text


class TestDisassemble:
    """ROM disassembly tests."""

    def test_addresses_and_words(self):
        """Words are paired with their load addresses."""
        lines = disassemble(bytes([0x60, 0x05, 0x12, 0x02]))
        assert [(addr, instr.word) for addr, instr in lines] == [(0x200, 0x6005), (0x202, 0x1202)]

    def test_odd_trailing_byte_ignored(self):
        """A dangling byte is not decoded."""
        lines = disassemble(bytes([0x00, 0xE0, 0x12]), origin=0x300)
        assert len(lines) == 1
        assert lines[0][0] == 0x300
