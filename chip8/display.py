"""Monochrome display buffer for the CHIP-8 virtual machine."""

import threading
from contextlib import contextmanager
from typing import Iterator
from .errors import DisplayAccessError

DEFAULT_WIDTH = 64
DEFAULT_HEIGHT = 32


class Display:
    """Width x height grid of on/off pixels.

    The engine thread is the only writer. Readers such as a render loop use
    snapshot(), which copies every row under the same lock the writer takes,
    so a frame is never observed half-cleared.
    """

    def __init__(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT):
        self.width = width
        self.height = height
        self._lock = threading.RLock()
        self._rows: list[list[bool]] = []
        self.clear()

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise DisplayAccessError(
                f"Pixel out of range: ({x}, {y}) on {self.width}x{self.height} display"
            )

    def clear(self) -> None:
        with self._lock:
            self._rows = [[False] * self.width for _ in range(self.height)]

    @contextmanager
    def batch(self) -> Iterator["Display"]:
        """Hold the display lock across several calls.

        Readers block until the block exits, so they see all of its
        changes or none of them.
        """
        with self._lock:
            yield self

    def get_pixel(self, x: int, y: int) -> bool:
        with self._lock:
            self._check_bounds(x, y)
            return self._rows[y][x]

    def set_pixel(self, x: int, y: int, on: bool) -> None:
        with self._lock:
            self._check_bounds(x, y)
            self._rows[y][x] = bool(on)

    def snapshot(self) -> list[list[bool]]:
        """Return a copy of all rows, top to bottom."""
        with self._lock:
            return [row.copy() for row in self._rows]

    def lit_count(self) -> int:
        with self._lock:
            return sum(sum(row) for row in self._rows)

    def render(self, on: str = "#", off: str = ".") -> list[str]:
        """Render the frame as one string per row."""
        return ["".join(on if px else off for px in row) for row in self.snapshot()]
