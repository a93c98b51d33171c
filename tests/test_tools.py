import sys
from pathlib import Path

import pytest

from rom_builder.framework.errors import ToolExecutionError, ToolNotFoundError, ToolTimeoutError
from rom_builder.framework.tools import ToolResult, ToolRunner, invoke, run_tool


def test_invoke_captures_exit_code_and_output():
    result = invoke(
        sys.executable,
        ["-c", "import sys; print('hello'); sys.stderr.write('warn'); sys.exit(3)"],
    )
    assert result.exit_code == 3
    assert result.ok is False
    assert result.stdout.strip() == "hello"
    assert result.stderr == "warn"
    assert result.argv[0] == sys.executable


def test_invoke_runs_in_cwd(tmp_path: Path):
    result = invoke(sys.executable, ["-c", "import os; print(os.getcwd())"], cwd=str(tmp_path))
    assert Path(result.stdout.strip()).resolve() == tmp_path.resolve()


def test_invoke_missing_tool_raises(tmp_path: Path):
    with pytest.raises(ToolNotFoundError, match="Tool not found"):
        invoke(str(tmp_path / "asar.exe"))


def test_invoke_passes_stdin_text():
    result = invoke(sys.executable, ["-c", "import sys; print(sys.stdin.read().upper())"], stdin_text="abc")
    assert result.stdout.strip() == "ABC"


def test_drip_feed_unblocks_tool_waiting_for_key():
    result = invoke(
        sys.executable,
        ["-c", "import sys; key = sys.stdin.read(1); print('key=' + key)"],
        drip_feed=True,
        drip_interval_s=0.01,
        timeout_s=30,
    )
    assert result.ok
    assert result.stdout.strip() == "key=a"


def test_drip_feed_survives_tool_that_ignores_stdin():
    result = invoke(
        sys.executable,
        ["-c", "import sys; sys.stdin.close(); print('done')"],
        drip_feed=True,
        drip_interval_s=0.0,
        timeout_s=30,
    )
    assert result.ok
    assert result.stdout.strip() == "done"


def test_drip_feed_and_stdin_text_are_exclusive():
    with pytest.raises(ValueError, match="mutually exclusive"):
        invoke(sys.executable, ["-c", "pass"], drip_feed=True, stdin_text="x")


def test_timeout_raises_tool_timeout_error():
    with pytest.raises(ToolTimeoutError, match="did not exit within"):
        invoke(sys.executable, ["-c", "import time; time.sleep(30)"], timeout_s=0.5)


def test_diagnostic_falls_back_to_other_stream():
    result = ToolResult(argv=("gps",), exit_code=1, stdout="bad block", stderr="", error_stream="stderr")
    assert result.diagnostic == "bad block"
    result = ToolResult(argv=("gps",), exit_code=1, stdout="bad block", stderr="noise", error_stream="stdout")
    assert result.diagnostic == "bad block"


def test_runner_raises_on_nonzero_exit_with_diagnostic():
    runner = ToolRunner()
    with pytest.raises(ToolExecutionError) as excinfo:
        runner(
            sys.executable,
            ["-c", "import sys; print('Error: label not found'); sys.exit(1)"],
            error_stream="stdout",
        )
    assert excinfo.value.exit_code == 1
    assert "label not found" in str(excinfo.value)


def test_runner_returns_result_on_success():
    result = ToolRunner()(sys.executable, ["-c", "print('ok')"])
    assert result.ok
    assert result.stdout.strip() == "ok"


def test_run_tool_uses_stderr_diagnostic_by_default():
    with pytest.raises(ToolExecutionError, match="pointer out of range") as excinfo:
        run_tool(sys.executable, ["-c", "import sys; sys.stderr.write('pointer out of range'); sys.exit(2)"])
    assert excinfo.value.exit_code == 2
