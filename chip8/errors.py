"""Custom exceptions for the CHIP-8 virtual machine."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorInfo:
    """Structured error information for traces and API responses."""
    type: str
    message: str
    step: int
    addr: int
    word: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "message": self.message,
            "step": self.step,
            "addr": self.addr,
            "word": self.word,
        }


class Chip8Error(Exception):
    """Base exception for all CHIP-8 errors."""

    def __init__(
        self,
        message: str,
        step: int = 0,
        addr: int = 0,
        word: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.step = step
        self.addr = addr
        self.word = word

    def to_error_info(self) -> ErrorInfo:
        return ErrorInfo(
            type=self.__class__.__name__,
            message=self.message,
            step=self.step,
            addr=self.addr,
            word=self.word,
        )


class Chip8RuntimeError(Chip8Error):
    """Error during instruction execution."""
    pass


class MemoryAccessError(Chip8RuntimeError):
    """Memory address out of bounds."""
    pass


class DisplayAccessError(Chip8RuntimeError):
    """Pixel coordinate outside the display."""
    pass


class RecoverableError(Chip8RuntimeError):
    """Reported by the engine; the cycle still commits its default next pc."""
    pass


class UnsupportedInstruction(RecoverableError):
    """Instruction family not implemented by this interpreter."""
    pass


class StackUnderflow(RecoverableError):
    """RET executed with an empty call stack."""
    pass


class StackOverflow(RecoverableError):
    """CALL executed with the call stack at its configured depth."""
    pass


class MachineError(Chip8Error):
    """Error raised by the clock driver."""
    pass


class MachineStateError(MachineError):
    """Operation not allowed in the machine's current running state."""
    pass


class RomTooLarge(MachineError):
    """ROM does not fit between the load origin and the end of memory."""
    pass
