import json
from pathlib import Path

import pytest

from rom_builder.app.session import COMMANDS, Session
from rom_builder.framework.processes import ProcessSlot
from rom_builder.framework.settings import Settings


@pytest.fixture
def session_factory(project, logger, fake_tools, tmp_path: Path):
    def _make(session_kwargs=None, **overrides) -> Session:
        values = {
            "config_paths": (str(tmp_path / "config.txt"),),
            "log_dir": str(tmp_path / "logs"),
            "run_records": True,
        }
        values.update(overrides)
        return Session(
            Settings(**values), logger, session_id="sess", tools=fake_tools, **(session_kwargs or {})
        )

    return _make


def test_commands_cover_operations_and_run():
    assert set(COMMANDS) == {"build", "save", "test", "package", "edit", "run"}


def test_unknown_command_raises(session_factory):
    with pytest.raises(ValueError, match="Unknown command"):
        session_factory().run("deploy")


def test_missing_config_reports_config_failure(session_factory, project, fake_tools):
    results = session_factory().run("build")

    assert len(results) == 1
    assert results[0].success is False
    assert results[0].error_kind == "config"
    assert fake_tools.calls == []


def test_malformed_config_does_not_run(session_factory, project, fake_tools):
    project.path("config.txt").write_text("input = a = b\n", encoding="utf-8")

    results = session_factory().run("build")

    assert results[0].success is False
    assert not project.path("out").exists()


def test_config_is_reread_for_every_command(session_factory, project):
    project.write_config()
    session = session_factory()

    assert session.run("build")[0].success is True

    project.set(output="out/renamed.smc")
    project.write_config()
    assert session.run("build")[0].success is True
    assert project.path("out/renamed.smc").exists()


def test_run_stops_at_first_failed_operation(session_factory, project, fake_tools):
    project.with_tools("lm_path")
    project.set(levels="levels")
    project.write_config()

    results = session_factory().run("run")

    assert [r.operation for r in results] == ["save"]
    assert results[0].success is False
    assert not project.path("out/hack.smc").exists()


def test_run_saves_builds_then_tests(session_factory, project, fake_tools):
    project.touch("out/hack.smc", b"OLD")
    project.with_tools("emulator_path")
    project.write_config()
    launched = []

    class _Proc:
        pid = 1

        def poll(self):
            return None

    def _launch(argv, **kwargs):
        launched.append(argv)
        return _Proc()

    session = session_factory(session_kwargs={"emulator": ProcessSlot("emulator", launcher=_launch)})

    results = session.run("run")

    assert [r.operation for r in results] == ["save", "build", "test"]
    assert all(r.success for r in results)
    assert project.path("out/hack.smc").read_bytes() == b"CLEAN"
    assert len(launched) == 1


def test_run_records_are_written(session_factory, project, tmp_path: Path):
    project.write_config()

    (result,) = session_factory().run("build")

    record_path = tmp_path / "logs" / f"{result.run_id}_run.json"
    record = json.loads(record_path.read_text(encoding="utf-8"))
    assert record["operation"] == "build"
    assert record["success"] is True
    assert record["run_id"] == "sess_001_build"
    assert len(record["skipped"]) == 11

    index_lines = (tmp_path / "logs" / "runs_index.jsonl").read_text(encoding="utf-8").splitlines()
    entry = json.loads(index_lines[-1])
    assert entry["session_id"] == "sess"
    assert entry["success"] is True


def test_failed_run_record_carries_error(session_factory, project, tmp_path: Path):
    project.path("clean.smc").unlink()
    project.write_config()

    (result,) = session_factory().run("build")

    record = json.loads((tmp_path / "logs" / f"{result.run_id}_run.json").read_text(encoding="utf-8"))
    assert record["success"] is False
    assert record["error"]["kind"] == "precondition.missing_path"
    assert record["error"]["stage"] == "build.reset_temp"


def test_run_records_can_be_disabled(session_factory, project, tmp_path: Path):
    project.write_config()

    session_factory(run_records=False).run("build")

    assert not (tmp_path / "logs").exists()
