"""Instruction decoder for CHIP-8 opcodes.

A 16-bit word packs the instruction family into its top nibble and the
operands into the rest:

    X   = bits 8-11   register index
    Y   = bits 4-7    register index
    N   = bits 0-3    4-bit immediate
    NN  = bits 0-7    8-bit immediate
    NNN = bits 0-11   12-bit address

decode() turns a word into an Instruction without touching any machine
state; executing it is the job of the instructions module.
"""

from dataclasses import dataclass


# Tags with a handler in the instructions module
SUPPORTED_TAGS = {
    "NOP",
    "CLS",
    "RET",
    "JP",
    "CALL",
    "SE_VX_NN",
    "SNE_VX_NN",
    "SE_VX_VY",
    "LD_VX_NN",
    "ADD_VX_NN",
    "LD_I_NNN",
    "DRW",
    "ADD_I_VX",
    "LD_F_VX",
    "LD_B_VX",
    "LD_I_VX",
    "LD_VX_I",
}

# Recognised, but timers and key input are not emulated
UNSUPPORTED_TAGS = {"SYS", "LD_VX_DT", "LD_VX_K", "LD_DT_VX", "LD_ST_VX", "UNKNOWN"}

# Families keyed by the top nibble alone
_FAMILY_TAGS = {
    0x1: "JP",
    0x2: "CALL",
    0x3: "SE_VX_NN",
    0x4: "SNE_VX_NN",
    0x5: "SE_VX_VY",
    0x6: "LD_VX_NN",
    0x7: "ADD_VX_NN",
    0xA: "LD_I_NNN",
    0xD: "DRW",
}

# Group F, keyed by the low byte
_F_GROUP_TAGS = {
    0x07: "LD_VX_DT",
    0x0A: "LD_VX_K",
    0x15: "LD_DT_VX",
    0x18: "LD_ST_VX",
    0x1E: "ADD_I_VX",
    0x29: "LD_F_VX",
    0x33: "LD_B_VX",
    0x55: "LD_I_VX",
    0x65: "LD_VX_I",
}

# Disassembly templates
_TEXT_FORMATS = {
    "NOP": "NOP",
    "CLS": "CLS",
    "RET": "RET",
    "SYS": "SYS {nnn:#05x}",
    "JP": "JP {nnn:#05x}",
    "CALL": "CALL {nnn:#05x}",
    "SE_VX_NN": "SE V{x:X}, {nn:#04x}",
    "SNE_VX_NN": "SNE V{x:X}, {nn:#04x}",
    "SE_VX_VY": "SE V{x:X}, V{y:X}",
    "LD_VX_NN": "LD V{x:X}, {nn:#04x}",
    "ADD_VX_NN": "ADD V{x:X}, {nn:#04x}",
    "LD_I_NNN": "LD I, {nnn:#05x}",
    "DRW": "DRW V{x:X}, V{y:X}, {n}",
    "LD_VX_DT": "LD V{x:X}, DT",
    "LD_VX_K": "LD V{x:X}, K",
    "LD_DT_VX": "LD DT, V{x:X}",
    "LD_ST_VX": "LD ST, V{x:X}",
    "ADD_I_VX": "ADD I, V{x:X}",
    "LD_F_VX": "LD F, V{x:X}",
    "LD_B_VX": "LD B, V{x:X}",
    "LD_I_VX": "LD [I], V{x:X}",
    "LD_VX_I": "LD V{x:X}, [I]",
    "UNKNOWN": "??? {word:#06x}",
}


@dataclass(frozen=True)
class Instruction:
    """Decoded instruction: family tag plus every operand field of the word."""
    word: int
    tag: str
    x: int
    y: int
    n: int
    nn: int
    nnn: int

    @property
    def supported(self) -> bool:
        return self.tag in SUPPORTED_TAGS

    @property
    def text(self) -> str:
        """Assembly-style rendering, e.g. ``DRW V1, V2, 5``."""
        return _TEXT_FORMATS[self.tag].format(
            word=self.word, x=self.x, y=self.y, n=self.n, nn=self.nn, nnn=self.nnn,
        )


def _select_tag(word: int) -> str:
    family = word >> 12

    if family == 0x0:
        if word == 0x0000:
            return "NOP"
        if word == 0x00E0:
            return "CLS"
        if word == 0x00EE:
            return "RET"
        return "SYS"

    if family == 0xF:
        return _F_GROUP_TAGS.get(word & 0x00FF, "UNKNOWN")

    # 8, 9, B, C and E fall through here
    return _FAMILY_TAGS.get(family, "UNKNOWN")


def decode(word: int) -> Instruction:
    """Decode a 16-bit instruction word.

    Args:
        word: Instruction value; only the low 16 bits are used

    Returns:
        Instruction with its family tag and operand fields
    """
    word &= 0xFFFF
    return Instruction(
        word=word,
        tag=_select_tag(word),
        x=(word & 0x0F00) >> 8,
        y=(word & 0x00F0) >> 4,
        n=word & 0x000F,
        nn=word & 0x00FF,
        nnn=word & 0x0FFF,
    )


def disassemble(data: bytes, origin: int = 0x200) -> list[tuple[int, Instruction]]:
    """Decode consecutive big-endian words, pairing each with its address.

    A trailing odd byte is ignored.
    """
    result = []
    for offset in range(0, len(data) - 1, 2):
        word = (data[offset] << 8) | data[offset + 1]
        result.append((origin + offset, decode(word)))
    return result
