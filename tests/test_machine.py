"""Tests for the clock driver."""

import threading
import time

import pytest
from chip8.errors import MachineStateError
from chip8.machine import VirtualMachine, THREAD_NAME


def rom(*words: int) -> bytes:
    return b"".join(word.to_bytes(2, "big") for word in words)


def wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return False


class TestVirtualMachine:
    """VirtualMachine tests."""

    def test_frequency_default(self):
        """Default rate is 60 Hz."""
        assert VirtualMachine().frequency == 60

    def test_frequency_must_be_positive(self):
        """Zero or negative rates are rejected."""
        vm = VirtualMachine()
        with pytest.raises(ValueError):
            vm.frequency = 0

    def test_run_and_stop(self, tmp_path):
        """The loop runs on a named thread until stopped."""
        path = tmp_path / "count.ch8"
        path.write_bytes(rom(0x7001, 0x1200))
        vm = VirtualMachine(frequency=1000)
        thread = vm.start(path)
        assert thread.name == THREAD_NAME
        assert wait_for(lambda: vm.running and vm.hub.engine.cycles >= 10)
        vm.stop()
        vm.join(timeout=5)
        assert not thread.is_alive()
        assert vm.running is False
        assert vm.rom_path == path
        assert vm.hub.engine.cycles >= 10

    def test_frequency_locked_while_running(self):
        """Changing the rate of a running VM is refused."""
        vm = VirtualMachine(frequency=500)
        thread = threading.Thread(target=vm.run_bytes, args=(rom(0x1200),))
        thread.start()
        try:
            assert wait_for(lambda: vm.running)
            with pytest.raises(MachineStateError):
                vm.frequency = 10
            with pytest.raises(MachineStateError):
                vm.run_bytes(rom(0x1200))
        finally:
            vm.stop()
            thread.join(timeout=5)
        vm.frequency = 10
        assert vm.frequency == 10

    def test_font_loaded_on_start(self):
        """Each run starts with the font at 0x50."""
        vm = VirtualMachine(frequency=1000)
        thread = threading.Thread(target=vm.run_bytes, args=(rom(0x1200),))
        thread.start()
        assert wait_for(lambda: vm.hub.engine.cycles >= 1)
        vm.stop()
        thread.join(timeout=5)
        assert vm.hub.memory.read_byte(0x50) == 0xF0
        assert vm.hub.memory.read_word(0x200) == 0x1200

    def test_errors_do_not_stop_loop(self):
        """Faulting cycles are logged and the loop keeps ticking."""
        vm = VirtualMachine(frequency=1000)
        # Draw off screen, forever
        thread = threading.Thread(target=vm.run_bytes, args=(rom(0x6040, 0xA050, 0xD015, 0x1204),))
        thread.start()
        try:
            assert wait_for(lambda: vm.hub.engine.cycles >= 20)
        finally:
            vm.stop()
            thread.join(timeout=5)
        assert not thread.is_alive()

    def test_constructor_rejects_bad_frequency(self):
        """The constructor validates the rate like the setter."""
        with pytest.raises(ValueError):
            VirtualMachine(frequency=0)
        with pytest.raises(ValueError):
            VirtualMachine(frequency=-5)

    def test_stop_right_after_start(self, tmp_path):
        """A stop issued before the worker gets going is not lost."""
        path = tmp_path / "loop.ch8"
        path.write_bytes(rom(0x1200))
        vm = VirtualMachine(frequency=1000)
        thread = vm.start(path)
        vm.stop()
        thread.join(timeout=5)
        assert not thread.is_alive()
        assert vm.running is False

    def test_second_start_rejected_immediately(self, tmp_path):
        """start() marks the VM running before returning."""
        path = tmp_path / "loop.ch8"
        path.write_bytes(rom(0x1200))
        vm = VirtualMachine(frequency=1000)
        thread = vm.start(path)
        try:
            assert vm.running is True
            with pytest.raises(MachineStateError):
                vm.start(path)
        finally:
            vm.stop()
            thread.join(timeout=5)
        assert not thread.is_alive()

    def test_rejected_run_keeps_rom_path(self, tmp_path):
        """A refused run() leaves the running VM's ROM path alone."""
        first = tmp_path / "first.ch8"
        second = tmp_path / "second.ch8"
        first.write_bytes(rom(0x1200))
        second.write_bytes(rom(0x1200))
        vm = VirtualMachine(frequency=1000)
        thread = vm.start(first)
        try:
            assert wait_for(lambda: vm.rom_path == first)
            with pytest.raises(MachineStateError):
                vm.run(second)
            assert vm.rom_path == first
        finally:
            vm.stop()
            thread.join(timeout=5)

    def test_missing_rom_clears_running(self, tmp_path):
        """A ROM that cannot be read does not leave the VM marked running."""
        vm = VirtualMachine()
        with pytest.raises(OSError):
            vm.run(tmp_path / "absent.ch8")
        assert vm.running is False
