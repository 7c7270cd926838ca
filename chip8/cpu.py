"""CPU register state for the CHIP-8 virtual machine."""

from typing import Optional

PROGRAM_START = 0x200
REGISTER_COUNT = 16
FLAG_REGISTER = 0xF


class CPU:
    """Register file, index register, program counter and call stack."""

    def __init__(self, max_stack_depth: Optional[int] = None):
        self.max_stack_depth = max_stack_depth

        # Registers
        self.v: list[int] = [0] * REGISTER_COUNT
        self.i: int = 0
        self.pc: int = PROGRAM_START
        self.stack: list[int] = []

    def set_v(self, index: int, value: int) -> None:
        """Set register V[index], wrapping to 8 bits."""
        self.v[index] = value & 0xFF

    def set_i(self, value: int) -> None:
        """Set I, wrapping to 16 bits."""
        self.i = value & 0xFFFF

    @property
    def flag(self) -> int:
        return self.v[FLAG_REGISTER]

    def get_state(self) -> dict:
        """Get current register state as dictionary."""
        return {
            "v": list(self.v),
            "i": self.i,
            "pc": self.pc,
            "stack": list(self.stack),
        }

    def reset(self, start_address: int = PROGRAM_START) -> None:
        """Reset CPU to initial state."""
        self.v = [0] * REGISTER_COUNT
        self.i = 0
        self.pc = start_address
        self.stack = []
