"""Fixed-rate clock driver for the CHIP-8 virtual machine."""

import logging
import threading
import time
from pathlib import Path
from typing import Optional, Union
from .cpu import PROGRAM_START
from .errors import Chip8RuntimeError, MachineStateError
from .hub import IoHub

logger = logging.getLogger(__name__)

THREAD_NAME = "Virtual CHIP-8"


class VirtualMachine:
    """Ticks the engine at ``frequency`` cycles per second until stopped.

    The stop signal is checked between cycles only; a cycle in progress
    always completes.
    """

    def __init__(self, frequency: int = 60, load_font: bool = True):
        self._stop = threading.Event()
        self._running = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._state_lock = threading.Lock()
        self.frequency = frequency
        self.load_font = load_font
        self.hub = IoHub()
        self.rom_path: Optional[Path] = None

    @property
    def running(self) -> bool:
        return self._running.is_set()

    @property
    def frequency(self) -> int:
        return self._frequency

    @frequency.setter
    def frequency(self, value: int) -> None:
        if self.running:
            raise MachineStateError("Cannot modify VM frequency while running")
        if value <= 0:
            raise ValueError(f"Frequency must be positive: {value}")
        self._frequency = value

    def run(self, rom_path: Union[str, Path]) -> None:
        """Load a ROM from disk and run it on the calling thread."""
        self._claim()
        self._run_path(Path(rom_path))

    def run_bytes(self, data: bytes, offset: int = PROGRAM_START) -> None:
        """Load a ROM image and run it on the calling thread until stop()."""
        self._claim()
        self._run_claimed(data, offset)

    def start(self, rom_path: Union[str, Path]) -> threading.Thread:
        """Run a ROM on a background thread and return that thread.

        The machine counts as running as soon as this returns, so a stop()
        issued right away is honoured.
        """
        self._claim()
        self._thread = threading.Thread(
            target=self._run_path,
            args=(Path(rom_path),),
            name=THREAD_NAME,
            daemon=True,
        )
        try:
            self._thread.start()
        except RuntimeError:
            self._running.clear()
            raise
        return self._thread

    def stop(self) -> None:
        """Ask the loop to exit after the current cycle."""
        self._stop.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _claim(self) -> None:
        """Mark the machine running; the stop signal is reset only here."""
        with self._state_lock:
            if self.running:
                raise MachineStateError("VM is already running")
            self._stop.clear()
            self._running.set()

    def _run_path(self, path: Path) -> None:
        try:
            data = path.read_bytes()
        except OSError:
            self._running.clear()
            raise
        self.rom_path = path
        self._run_claimed(data, PROGRAM_START)

    def _run_claimed(self, data: bytes, offset: int) -> None:
        try:
            self._initialize()
            self.hub.load_bytes(data, offset)
            self._loop()
        finally:
            self._running.clear()

    def _initialize(self) -> None:
        self.hub = IoHub()
        if self.load_font:
            self.hub.load_font()

    def _loop(self) -> None:
        period = 1.0 / self._frequency
        engine = self.hub.engine
        logger.info("VM started at %d Hz", self._frequency)

        next_tick = time.monotonic()
        while not self._stop.is_set():
            try:
                engine.cycle()
            except Chip8RuntimeError as e:
                # Keep going: the cycle has already advanced PC
                logger.error("Cycle %d failed at %03X: %s", e.step, e.addr, e.message)

            next_tick += period
            delay = next_tick - time.monotonic()
            if delay > 0:
                self._stop.wait(delay)
            else:
                next_tick = time.monotonic()

        logger.info("VM stopped after %d cycles", engine.cycles)
