"""Fetch/decode/execute cycle for the CHIP-8 virtual machine."""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Optional
from .cpu import CPU, PROGRAM_START
from .decoder import Instruction, decode
from .errors import Chip8RuntimeError, ErrorInfo, RecoverableError
from .instructions import execute_instruction

if TYPE_CHECKING:
    from .hub import IoHub

logger = logging.getLogger(__name__)

MAX_DIAGNOSTICS = 256


class ExecutionEngine:
    """Runs one instruction per cycle against the hub's memory and display.

    Decode problems and stack underflow are reported, recorded in
    ``diagnostics`` and otherwise ignored. Errors raised by memory or
    display propagate to the caller after the cycle has committed its
    default next pc.
    """

    def __init__(
        self,
        hub: IoHub,
        start_address: int = PROGRAM_START,
        max_stack_depth: Optional[int] = None,
    ):
        self.hub = hub
        self.start_address = start_address
        self.cpu = CPU(max_stack_depth=max_stack_depth)
        self.cycles = 0
        self.diagnostics: deque[ErrorInfo] = deque(maxlen=MAX_DIAGNOSTICS)
        self.last_instruction: Optional[Instruction] = None
        self.reset()

    def reset(self) -> None:
        """Reinitialise registers, I, PC and stack. Memory and display are kept."""
        self.cpu.reset(self.start_address)
        self.cycles = 0
        self.diagnostics.clear()
        self.last_instruction = None

    def cycle(self) -> Instruction:
        """Fetch, decode and execute the instruction at PC.

        Returns:
            The executed instruction
        """
        cpu = self.cpu
        addr = cpu.pc
        next_pc = addr + 2
        instr: Optional[Instruction] = None

        try:
            instr = decode(self.hub.memory.read_word(addr))
            self.last_instruction = instr
            logger.debug("Exec %04X @ %03X: %s", instr.word, addr, instr.text)

            try:
                new_pc = execute_instruction(instr, cpu, self.hub.memory, self.hub.display)
            except RecoverableError as e:
                self._report(e, addr, instr)
            else:
                if new_pc is not None:
                    next_pc = new_pc
        except Chip8RuntimeError as e:
            e.step = self.cycles + 1
            e.addr = addr
            if instr is not None:
                e.word = instr.word
            raise
        finally:
            cpu.pc = next_pc & 0xFFFF
            self.cycles += 1

        return instr

    def execute(self, word: int) -> Optional[int]:
        """Execute a single word outside the cycle, without moving PC.

        Errors of every kind propagate; nothing is recorded.

        Returns:
            The next PC the instruction asked for, or None
        """
        return execute_instruction(decode(word), self.cpu, self.hub.memory, self.hub.display)

    def _report(self, error: RecoverableError, addr: int, instr: Instruction) -> None:
        error.step = self.cycles + 1
        error.addr = addr
        error.word = instr.word
        logger.warning("Execution error at %03X: %s", addr, error.message)
        self.diagnostics.append(error.to_error_info())
