"""Synchronous invocation of external tools."""

from __future__ import annotations

import logging
import os
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import IO, Any, Literal, Sequence

from rom_builder.framework.errors import ToolExecutionError, ToolNotFoundError, ToolTimeoutError

ErrorStream = Literal["stderr", "stdout"]

DRIP_FEED_BYTE = b"a"

_logger = logging.getLogger("rom_builder.tools")


@dataclass(frozen=True)
class ToolResult:
    argv: tuple[str, ...]
    exit_code: int
    stdout: str
    stderr: str
    error_stream: ErrorStream = "stderr"

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def diagnostic(self) -> str:
        """Output most likely to explain a failure, falling back to the other stream."""
        primary, fallback = (
            (self.stderr, self.stdout) if self.error_stream == "stderr" else (self.stdout, self.stderr)
        )
        return primary if primary.strip() else fallback


def ensure_tool(tool_path: str) -> None:
    if not tool_path or not os.path.isfile(tool_path):
        raise ToolNotFoundError(tool_path)


def _drain(stream: IO[bytes], sink: list[bytes]) -> None:
    for chunk in iter(lambda: stream.read(4096), b""):
        sink.append(chunk)
    stream.close()


def _drip(proc: subprocess.Popen, interval_s: float) -> None:
    stdin = proc.stdin
    assert stdin is not None
    try:
        while proc.poll() is None:
            stdin.write(DRIP_FEED_BYTE)
            stdin.flush()
            if interval_s:
                time.sleep(interval_s)
    except (BrokenPipeError, OSError, ValueError):
        # The process exited (or closed stdin) between poll() and write().
        pass
    finally:
        try:
            stdin.close()
        except (BrokenPipeError, OSError):
            pass


def _decode(chunks: list[bytes]) -> str:
    return b"".join(chunks).decode("utf-8", errors="replace")


def _run_drip_fed(
    argv: list[str], *, cwd: str | None, interval_s: float, timeout_s: float | None
) -> tuple[int, str, str]:
    proc = subprocess.Popen(
        argv,
        cwd=cwd,
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
    )
    out_chunks: list[bytes] = []
    err_chunks: list[bytes] = []
    threads = [
        threading.Thread(target=_drain, args=(proc.stdout, out_chunks), daemon=True),
        threading.Thread(target=_drain, args=(proc.stderr, err_chunks), daemon=True),
        threading.Thread(target=_drip, args=(proc, interval_s), daemon=True),
    ]
    for thread in threads:
        thread.start()
    try:
        exit_code = proc.wait(timeout=timeout_s)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()
        raise
    finally:
        for thread in threads:
            thread.join(timeout=5)
    return exit_code, _decode(out_chunks), _decode(err_chunks)


def invoke(
    tool_path: str,
    args: Sequence[str] = (),
    *,
    cwd: str | None = None,
    stdin_text: str | None = None,
    drip_feed: bool = False,
    drip_interval_s: float = 0.01,
    error_stream: ErrorStream = "stderr",
    timeout_s: float | None = None,
) -> ToolResult:
    """
    Run `tool_path args...` and block until it exits.

    `drip_feed` keeps writing a filler byte to the tool's stdin while it runs,
    for tools that busy-poll stdin for a key press before exiting. It cannot be
    combined with `stdin_text`.
    """

    ensure_tool(tool_path)
    if drip_feed and stdin_text is not None:
        raise ValueError("drip_feed and stdin_text are mutually exclusive")

    argv = [tool_path, *[str(arg) for arg in args]]
    _logger.debug("Invoking %s (cwd=%s, drip_feed=%s)", argv, cwd, drip_feed)

    try:
        if drip_feed:
            exit_code, stdout, stderr = _run_drip_fed(
                argv, cwd=cwd, interval_s=drip_interval_s, timeout_s=timeout_s
            )
        else:
            proc = subprocess.run(
                argv,
                cwd=cwd,
                input=stdin_text,
                stdin=None if stdin_text is not None else subprocess.DEVNULL,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
                timeout=timeout_s,
            )
            exit_code, stdout, stderr = proc.returncode, proc.stdout or "", proc.stderr or ""
    except FileNotFoundError as exc:
        raise ToolNotFoundError(tool_path) from exc
    except subprocess.TimeoutExpired as exc:
        raise ToolTimeoutError(tool_path, timeout_s or 0.0) from exc

    _logger.debug("%s exited with code %s", tool_path, exit_code)
    return ToolResult(
        argv=tuple(argv),
        exit_code=exit_code,
        stdout=stdout,
        stderr=stderr,
        error_stream=error_stream,
    )


def run_tool(
    tool_path: str,
    args: Sequence[str] = (),
    *,
    logger: logging.Logger | None = None,
    **kwargs: Any,
) -> ToolResult:
    """`invoke` that raises `ToolExecutionError` on a nonzero exit code."""

    result = invoke(tool_path, args, **kwargs)
    log = logger or _logger
    if result.stdout.strip():
        log.debug("%s stdout:\n%s", os.path.basename(tool_path), result.stdout.rstrip())
    if not result.ok:
        raise ToolExecutionError(tool_path, result.exit_code, result.diagnostic)
    return result


class ToolRunner:
    """Invokes tools with session-wide options and raises on failure."""

    def __init__(
        self,
        *,
        drip_interval_s: float = 0.01,
        timeout_s: float | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.drip_interval_s = drip_interval_s
        self.timeout_s = timeout_s
        self.logger = logger or _logger

    def __call__(
        self,
        tool_path: str,
        args: Sequence[str] = (),
        *,
        cwd: str | None = None,
        stdin_text: str | None = None,
        drip_feed: bool = False,
        error_stream: ErrorStream = "stderr",
    ) -> ToolResult:
        return run_tool(
            tool_path,
            args,
            logger=self.logger,
            cwd=cwd,
            stdin_text=stdin_text,
            drip_feed=drip_feed,
            drip_interval_s=self.drip_interval_s,
            error_stream=error_stream,
            timeout_s=self.timeout_s,
        )
