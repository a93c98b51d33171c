import subprocess
import sys
from pathlib import Path

import pytest

from rom_builder.framework.errors import ToolNotFoundError
from rom_builder.framework.processes import ProcessSlot


class FakeProc:
    _next_pid = 100

    def __init__(self, argv, **kwargs):
        FakeProc._next_pid += 1
        self.pid = FakeProc._next_pid
        self.argv = argv
        self.kwargs = kwargs
        self.returncode = None
        self.terminated = False
        self.killed = False
        self.ignore_terminate = False

    def poll(self):
        return self.returncode

    def terminate(self):
        self.terminated = True
        if not self.ignore_terminate:
            self.returncode = -15

    def kill(self):
        self.killed = True
        self.returncode = -9

    def wait(self, timeout=None):
        if self.returncode is None:
            raise subprocess.TimeoutExpired(self.argv, timeout)
        return self.returncode


def _launcher(launched):
    def _launch(argv, **kwargs):
        proc = FakeProc(argv, **kwargs)
        launched.append(proc)
        return proc

    return _launch


def test_replace_terminates_previous_instance():
    launched: list[FakeProc] = []
    slot = ProcessSlot("emulator", launcher=_launcher(launched))

    first = slot.replace([sys.executable, "rom.smc"])
    second = slot.replace([sys.executable, "rom.smc"])

    assert first.terminated is True
    assert second.terminated is False
    assert slot.process is second
    assert slot.is_alive()
    assert second.kwargs["stdin"] is subprocess.DEVNULL


def test_replace_does_not_touch_exited_instance():
    launched: list[FakeProc] = []
    slot = ProcessSlot("editor", launcher=_launcher(launched))

    first = slot.replace([sys.executable, "rom.smc"])
    first.returncode = 0
    slot.replace([sys.executable, "rom.smc"])

    assert first.terminated is False


def test_terminate_kills_when_process_ignores_terminate():
    launched: list[FakeProc] = []
    slot = ProcessSlot("emulator", terminate_timeout_s=0.01, launcher=_launcher(launched))

    proc = slot.replace([sys.executable, "rom.smc"])
    proc.ignore_terminate = True

    assert slot.terminate() is True
    assert proc.killed is True
    assert slot.process is None
    assert slot.terminate() is False


def test_replace_missing_executable_keeps_current_instance(tmp_path: Path):
    launched: list[FakeProc] = []
    slot = ProcessSlot("emulator", launcher=_launcher(launched))
    current = slot.replace([sys.executable, "rom.smc"])

    with pytest.raises(ToolNotFoundError):
        slot.replace([str(tmp_path / "snes9x.exe"), "rom.smc"])

    assert slot.process is current
    assert current.terminated is False


def test_replace_rejects_empty_argv():
    with pytest.raises(ValueError, match="argv cannot be empty"):
        ProcessSlot("emulator").replace([])
