"""CHIP-8 Virtual Machine Core Package."""

from .runner import run_program, RunOptions, RunResult
from .decoder import decode, disassemble, Instruction
from .hub import IoHub
from .machine import VirtualMachine
from .errors import (
    Chip8Error,
    Chip8RuntimeError,
    MemoryAccessError,
    DisplayAccessError,
    UnsupportedInstruction,
    StackUnderflow,
    StackOverflow,
)

__all__ = [
    "run_program",
    "RunOptions",
    "RunResult",
    "decode",
    "disassemble",
    "Instruction",
    "IoHub",
    "VirtualMachine",
    "Chip8Error",
    "Chip8RuntimeError",
    "MemoryAccessError",
    "DisplayAccessError",
    "UnsupportedInstruction",
    "StackUnderflow",
    "StackOverflow",
]
