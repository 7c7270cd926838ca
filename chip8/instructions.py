"""Instruction execution for the CHIP-8 virtual machine."""

import logging
from typing import Callable, Optional
from .cpu import CPU, FLAG_REGISTER
from .decoder import Instruction
from .display import Display
from .errors import StackOverflow, StackUnderflow, UnsupportedInstruction
from .font import glyph_address
from .memory import Memory

logger = logging.getLogger(__name__)

SPRITE_WIDTH = 8
INDEX_CEILING = 0xFFF


# Instruction executor type
InstructionExecutor = Callable[[Instruction, CPU, Memory, Display], Optional[int]]


def execute_nop(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """0000: no operation"""
    return None


def execute_cls(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """00E0: clear the display"""
    display.clear()
    return None


def execute_ret(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """00EE: PC := pop() + 2"""
    if not cpu.stack:
        raise StackUnderflow("Return called from root level (stack empty)")
    return cpu.stack.pop() + 2


def execute_jp(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """1NNN: PC := NNN"""
    return instr.nnn


def execute_call(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """2NNN: push(PC), PC := NNN"""
    if cpu.max_stack_depth is not None and len(cpu.stack) >= cpu.max_stack_depth:
        raise StackOverflow(f"Call stack depth limit reached: {cpu.max_stack_depth}")
    # Push the address of the CALL itself; RET adds 2
    cpu.stack.append(cpu.pc)
    return instr.nnn


def execute_se_vx_nn(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """3XNN: skip next if VX == NN"""
    if cpu.v[instr.x] == instr.nn:
        return cpu.pc + 4
    return None


def execute_sne_vx_nn(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """4XNN: skip next if VX != NN"""
    if cpu.v[instr.x] != instr.nn:
        return cpu.pc + 4
    return None


def execute_se_vx_vy(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """5XY0: skip next if VX == VY"""
    if cpu.v[instr.x] == cpu.v[instr.y]:
        return cpu.pc + 4
    return None


def execute_ld_vx_nn(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """6XNN: VX := NN"""
    cpu.set_v(instr.x, instr.nn)
    return None


def execute_add_vx_nn(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """7XNN: VX := VX + NN (mod 256, VF untouched)"""
    cpu.set_v(instr.x, cpu.v[instr.x] + instr.nn)
    return None


def execute_ld_i_nnn(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """ANNN: I := NNN"""
    cpu.set_i(instr.nnn)
    return None


def execute_drw(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """DXYN: XOR an 8xN sprite from MEM[I..I+N-1] at (VX, VY); VF := collision.

    The most significant bit of each sprite byte is the leftmost pixel.
    Coordinates are neither wrapped nor clipped. I is not modified.
    """
    base_x = cpu.v[instr.x]
    base_y = cpu.v[instr.y]
    cpu.set_v(FLAG_REGISTER, 0)

    flipped = 0
    # Readers see the whole sprite or none of it
    with display.batch():
        for row in range(instr.n):
            sprite_byte = mem.read_byte(cpu.i + row)
            for col in range(SPRITE_WIDTH):
                if not sprite_byte & (0x80 >> col):
                    continue
                draw_x = base_x + col
                draw_y = base_y + row
                was_on = display.get_pixel(draw_x, draw_y)
                if was_on:
                    cpu.set_v(FLAG_REGISTER, 1)
                display.set_pixel(draw_x, draw_y, not was_on)
                flipped += 1

    logger.debug("Draw at (%d, %d), %d pixels changed", base_x, base_y, flipped)
    return None


def execute_add_i_vx(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """FX1E: I := I + VX; VF := 1 if the sum reaches 0xFFF, else 0"""
    total = cpu.i + cpu.v[instr.x]
    cpu.set_v(FLAG_REGISTER, 1 if total >= INDEX_CEILING else 0)
    cpu.set_i(total)
    return None


def execute_ld_f_vx(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """FX29: I := address of font glyph for VX"""
    cpu.set_i(glyph_address(cpu.v[instr.x]))
    return None


def execute_ld_b_vx(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """FX33: MEM[I..I+2] := hundreds, tens, ones of VX"""
    value = cpu.v[instr.x]
    mem.write_byte(cpu.i, value // 100)
    mem.write_byte(cpu.i + 1, (value // 10) % 10)
    mem.write_byte(cpu.i + 2, value % 10)
    return None


def execute_ld_i_vx(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """FX55: MEM[I] := V0 .. VX, I advancing once per byte"""
    for index in range(instr.x + 1):
        mem.write_byte(cpu.i, cpu.v[index])
        cpu.set_i(cpu.i + 1)
    return None


def execute_ld_vx_i(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """FX65: V0 .. VX := MEM[I], I advancing once per byte"""
    for index in range(instr.x + 1):
        cpu.set_v(index, mem.read_byte(cpu.i))
        cpu.set_i(cpu.i + 1)
    return None


def execute_unsupported(instr: Instruction, cpu: CPU, mem: Memory, display: Display) -> Optional[int]:
    """Anything without a handler: report and leave state alone."""
    if instr.tag == "SYS":
        message = f"RCA 1802 call is not implemented: {instr.word:#06x}"
    elif instr.tag == "UNKNOWN":
        message = f"Unsupported opcode: {instr.word:#06x}"
    else:
        message = f"Timer/key instruction is not emulated: {instr.text}"
    raise UnsupportedInstruction(message, word=instr.word)


# Instruction dispatch table
INSTRUCTION_EXECUTORS: dict[str, InstructionExecutor] = {
    "NOP": execute_nop,
    "CLS": execute_cls,
    "RET": execute_ret,
    "JP": execute_jp,
    "CALL": execute_call,
    "SE_VX_NN": execute_se_vx_nn,
    "SNE_VX_NN": execute_sne_vx_nn,
    "SE_VX_VY": execute_se_vx_vy,
    "LD_VX_NN": execute_ld_vx_nn,
    "ADD_VX_NN": execute_add_vx_nn,
    "LD_I_NNN": execute_ld_i_nnn,
    "DRW": execute_drw,
    "ADD_I_VX": execute_add_i_vx,
    "LD_F_VX": execute_ld_f_vx,
    "LD_B_VX": execute_ld_b_vx,
    "LD_I_VX": execute_ld_i_vx,
    "LD_VX_I": execute_ld_vx_i,
}


def execute_instruction(
    instr: Instruction,
    cpu: CPU,
    mem: Memory,
    display: Display,
) -> Optional[int]:
    """Execute a single decoded instruction.

    Returns:
        New PC value if the instruction changes control flow, None otherwise
    """
    executor = INSTRUCTION_EXECUTORS.get(instr.tag, execute_unsupported)
    return executor(instr, cpu, mem, display)
