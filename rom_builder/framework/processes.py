"""Long-lived helper processes (emulator, editor) that outlive an operation."""

from __future__ import annotations

import logging
import subprocess
from typing import Callable, Sequence

from rom_builder.framework.tools import ensure_tool

Launcher = Callable[..., subprocess.Popen]


class ProcessSlot:
    """
    Holds at most one live instance of a named helper process.

    `replace` terminates the previous instance (if it is still running) before
    starting the new one, so a stale emulator or editor never keeps a lock on
    the output ROM across builds.
    """

    def __init__(
        self,
        name: str,
        *,
        terminate_timeout_s: float = 5.0,
        launcher: Launcher = subprocess.Popen,
        logger: logging.Logger | None = None,
    ) -> None:
        self.name = name
        self.terminate_timeout_s = terminate_timeout_s
        self._launcher = launcher
        self._logger = logger or logging.getLogger("rom_builder.processes")
        self._proc: subprocess.Popen | None = None

    @property
    def process(self) -> subprocess.Popen | None:
        return self._proc

    def is_alive(self) -> bool:
        return self._proc is not None and self._proc.poll() is None

    def terminate(self) -> bool:
        """Stop the current instance; returns True if one was running."""

        proc = self._proc
        self._proc = None
        if proc is None or proc.poll() is not None:
            return False

        self._logger.info("Closing previous %s instance (pid=%s)", self.name, proc.pid)
        proc.terminate()
        try:
            proc.wait(timeout=self.terminate_timeout_s)
        except subprocess.TimeoutExpired:
            self._logger.warning("%s did not exit after terminate; killing it", self.name)
            proc.kill()
            proc.wait()
        return True

    def replace(self, argv: Sequence[str], *, cwd: str | None = None) -> subprocess.Popen:
        if not argv:
            raise ValueError("argv cannot be empty")
        ensure_tool(argv[0])
        self.terminate()
        self._logger.debug("Launching %s: %s (cwd=%s)", self.name, list(argv), cwd)
        self._proc = self._launcher(
            list(argv),
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        self._logger.info("Started %s (pid=%s)", self.name, self._proc.pid)
        return self._proc
