from pathlib import Path

from rom_builder import cli


def test_cli_list_stages_smoke(capsys):
    rc = cli.main(["list-stages"])
    assert rc == 0

    out = capsys.readouterr().out
    assert "build.reset_temp" in out
    assert "test.launch_emulator" in out


def _write_project(tmp_path: Path, config_text: str) -> Path:
    (tmp_path / "clean.smc").write_bytes(b"CLEAN")
    (tmp_path / "config.txt").write_text(config_text, encoding="utf-8")
    settings_path = tmp_path / "rom_builder.yaml"
    settings_path.write_text(
        "config:\n  paths: [config.txt]\nlogging:\n  log_dir: logs\n  level: DEBUG\n",
        encoding="utf-8",
    )
    return settings_path


def test_cli_build_smoke(tmp_path: Path, capsys):
    settings_path = _write_project(
        tmp_path, "input = clean.smc\noutput = out/hack.smc\ntemp = out/temp.smc\n"
    )

    rc = cli.main(["--settings", str(settings_path), "build"])

    assert rc == 0
    assert (tmp_path / "out" / "hack.smc").read_bytes() == b"CLEAN"
    assert "build: success (11 skipped)" in capsys.readouterr().out
    logs = list((tmp_path / "logs").glob("*_oplog.log"))
    assert len(logs) == 1
    assert "Skipped build/build.blocks" in logs[0].read_text(encoding="utf-8")


def test_cli_failed_operation_returns_nonzero(tmp_path: Path):
    settings_path = _write_project(tmp_path, "input = missing.smc\noutput = out/hack.smc\ntemp = t.smc\n")

    assert cli.main(["--settings", str(settings_path), "build"]) == 1
    assert not (tmp_path / "out").exists()


def test_cli_package_without_output_returns_nonzero(tmp_path: Path):
    settings_path = _write_project(tmp_path, "input = clean.smc\noutput = out/hack.smc\n")

    assert cli.main(["--settings", str(settings_path), "package"]) == 1
