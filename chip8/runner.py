"""Bounded program runner with tracing for the CHIP-8 virtual machine."""

from dataclasses import dataclass, field
from typing import Optional
from .cpu import PROGRAM_START
from .decoder import Instruction
from .display import DEFAULT_HEIGHT, DEFAULT_WIDTH
from .errors import Chip8Error, ErrorInfo
from .hub import IoHub
from .memory import DEFAULT_CAPACITY


@dataclass
class RunOptions:
    """Options for program execution."""
    memory_size: int = DEFAULT_CAPACITY
    display_width: int = DEFAULT_WIDTH
    display_height: int = DEFAULT_HEIGHT
    start_address: int = PROGRAM_START
    max_steps: int = 10000
    load_font: bool = True
    max_stack_depth: Optional[int] = None
    stop_on_self_jump: bool = True
    trace: bool = True
    trace_include_registers: bool = False
    trace_include_stack: bool = False
    initial_memory: dict[int, int] = field(default_factory=dict)


@dataclass
class TraceRow:
    """Single row of execution trace."""
    step: int
    addr: int
    word: int
    instr_text: str
    i: int
    v: Optional[list[int]] = None
    stack: Optional[list[int]] = None

    def to_dict(self, include_registers: bool, include_stack: bool) -> dict:
        result = {
            "step": self.step,
            "addr": self.addr,
            "word": self.word,
            "i": self.i,
        }
        if include_registers:
            result["v"] = self.v
        if include_stack:
            result["stack"] = self.stack
        result["instr_text"] = self.instr_text
        return result


@dataclass
class RunResult:
    """Result of program execution."""
    status: str  # "ok" | "error"
    steps_executed: int
    halted: bool
    final_state: dict
    display: list[str]
    trace: list[dict]
    diagnostics: list[ErrorInfo] = field(default_factory=list)
    error: Optional[ErrorInfo] = None

    def to_dict(self) -> dict:
        result = {
            "status": self.status,
            "steps_executed": self.steps_executed,
            "halted": self.halted,
            "final_state": self.final_state,
            "display": self.display,
            "trace": self.trace,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
        if self.error:
            result["error"] = self.error.to_dict()
        return result


def _is_self_jump(instr: Instruction, addr: int) -> bool:
    """JP to its own address: the idiomatic CHIP-8 end-of-program loop."""
    return instr.tag == "JP" and instr.nnn == addr


def run_program(
    rom: bytes,
    options: Optional[RunOptions] = None,
) -> RunResult:
    """Run a CHIP-8 ROM for a bounded number of cycles.

    CHIP-8 has no halt instruction, so the run ends after ``max_steps``
    cycles, on the first jump-to-self (when ``stop_on_self_jump`` is set),
    or on the first memory/display fault.

    Args:
        rom: Raw ROM image, loaded at ``start_address``
        options: Execution options

    Returns:
        RunResult with execution status, display, trace and diagnostics
    """
    if options is None:
        options = RunOptions()

    trace_rows: list[dict] = []
    error_info: Optional[ErrorInfo] = None
    halted = False

    hub = IoHub(
        memory_size=options.memory_size,
        display_width=options.display_width,
        display_height=options.display_height,
        start_address=options.start_address,
        max_stack_depth=options.max_stack_depth,
    )
    engine = hub.engine

    # Load font, ROM, then any explicit overrides
    try:
        if options.load_font:
            hub.load_font()
        hub.load_bytes(rom, options.start_address)
        for addr, val in options.initial_memory.items():
            hub.memory.write_byte(addr, val)
    except Chip8Error as e:
        return RunResult(
            status="error",
            steps_executed=0,
            halted=False,
            final_state=engine.cpu.get_state(),
            display=hub.display.render(),
            trace=[],
            error=e.to_error_info(),
        )

    try:
        while engine.cycles < options.max_steps:
            instr_addr = engine.cpu.pc
            instr = engine.cycle()

            if options.trace:
                row = TraceRow(
                    step=engine.cycles,
                    addr=instr_addr,
                    word=instr.word,
                    instr_text=instr.text,
                    i=engine.cpu.i,
                    v=list(engine.cpu.v) if options.trace_include_registers else None,
                    stack=list(engine.cpu.stack) if options.trace_include_stack else None,
                )
                trace_rows.append(row.to_dict(
                    include_registers=options.trace_include_registers,
                    include_stack=options.trace_include_stack,
                ))

            if options.stop_on_self_jump and _is_self_jump(instr, instr_addr):
                halted = True
                break

    except Chip8Error as e:
        error_info = e.to_error_info()

    return RunResult(
        status="ok" if error_info is None else "error",
        steps_executed=engine.cycles,
        halted=halted,
        final_state=engine.cpu.get_state(),
        display=hub.display.render(),
        trace=trace_rows,
        diagnostics=list(engine.diagnostics),
        error=error_info,
    )
