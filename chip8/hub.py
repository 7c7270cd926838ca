"""Virtual IO board that interconnects the CHIP-8 components."""

import logging
from typing import Optional
from .cpu import PROGRAM_START
from .display import DEFAULT_HEIGHT, DEFAULT_WIDTH, Display
from .engine import ExecutionEngine
from .errors import RomTooLarge
from .font import FONT_SET, FONT_START
from .memory import DEFAULT_CAPACITY, Memory

logger = logging.getLogger(__name__)


class IoHub:
    """Owns memory and display; the engine is created against them.

    Resetting the engine leaves memory and display untouched.
    """

    def __init__(
        self,
        memory_size: int = DEFAULT_CAPACITY,
        display_width: int = DEFAULT_WIDTH,
        display_height: int = DEFAULT_HEIGHT,
        start_address: int = PROGRAM_START,
        max_stack_depth: Optional[int] = None,
    ):
        self.memory = Memory(size=memory_size)
        self.display = Display(width=display_width, height=display_height)
        self.engine = ExecutionEngine(
            self,
            start_address=start_address,
            max_stack_depth=max_stack_depth,
        )

    @property
    def cpu(self):
        return self.engine.cpu

    def load_font(self) -> None:
        """Copy the built-in font into memory at 0x50."""
        self.memory.write_bytes(FONT_START, FONT_SET)

    def load_bytes(self, data: bytes, offset: int = PROGRAM_START) -> None:
        """Copy raw ROM bytes into memory starting at offset."""
        if offset + len(data) > self.memory.size:
            raise RomTooLarge(
                f"ROM of {len(data)} bytes does not fit at {offset:#05x} "
                f"in {self.memory.size} bytes of memory",
                addr=offset,
            )
        self.memory.write_bytes(offset, data)
        logger.info("Loaded %d bytes at %03X", len(data), offset)
