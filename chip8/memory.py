"""Memory model for the CHIP-8 virtual machine."""

import threading
from typing import Iterable, Optional
from .errors import MemoryAccessError

DEFAULT_CAPACITY = 4096


class Memory:
    """Flat byte-addressable RAM shared by the engine and loaders.

    Every access holds a single lock, so a multi-byte read or write is
    never interleaved with another thread's access.
    """

    def __init__(
        self,
        size: int = DEFAULT_CAPACITY,
        initial_values: Optional[dict[int, int]] = None,
    ):
        self._size = size
        self._data = bytearray(size)
        self._lock = threading.Lock()

        if initial_values:
            for addr, val in initial_values.items():
                if 0 <= addr < size:
                    self._data[addr] = val & 0xFF

    @property
    def size(self) -> int:
        return self._size

    def _check_bounds(self, addr: int, length: int = 1) -> None:
        """Check that [addr, addr + length) lies within memory."""
        if addr < 0 or addr + length > self._size:
            if length == 1:
                raise MemoryAccessError(f"Memory address out of range: {addr:#05x}", addr=addr)
            raise MemoryAccessError(
                f"Memory range out of bounds: {addr:#05x}+{length}",
                addr=addr,
            )

    def reset(self) -> None:
        """Zero all of memory in place."""
        with self._lock:
            self._data[:] = bytes(self._size)

    def read_byte(self, addr: int) -> int:
        with self._lock:
            self._check_bounds(addr)
            return self._data[addr]

    def read_word(self, addr: int) -> int:
        """Read a big-endian 16-bit word: high byte at addr, low byte at addr + 1."""
        with self._lock:
            self._check_bounds(addr, 2)
            return (self._data[addr] << 8) | self._data[addr + 1]

    def read_bytes(self, addr: int, length: int) -> bytes:
        with self._lock:
            self._check_bounds(addr, length)
            return bytes(self._data[addr:addr + length])

    def write_byte(self, addr: int, value: int) -> None:
        """Write a byte, keeping only its low 8 bits."""
        with self._lock:
            self._check_bounds(addr)
            self._data[addr] = value & 0xFF

    def write_bytes(self, addr: int, data: Iterable[int]) -> None:
        payload = bytes(b & 0xFF for b in data)
        with self._lock:
            self._check_bounds(addr, len(payload))
            self._data[addr:addr + len(payload)] = payload

    def snapshot(self) -> bytes:
        """Return a copy of the entire memory."""
        with self._lock:
            return bytes(self._data)
