from pathlib import Path

import pytest

from rom_builder.framework.artifacts import (
    commit_artifact,
    copy_artifact,
    ensure_parent_dir,
    relocate_side_files,
    remove_if_exists,
    scratch_artifact,
    scratch_path_for,
    side_files,
)
from rom_builder.framework.errors import ArtifactError


def test_remove_if_exists(tmp_path: Path):
    path = tmp_path / "temp.smc"
    assert remove_if_exists(str(path)) is False
    path.write_bytes(b"rom")
    assert remove_if_exists(str(path)) is True
    assert not path.exists()


def test_copy_artifact_creates_parent_dirs(tmp_path: Path):
    src = tmp_path / "clean.smc"
    src.write_bytes(b"clean")
    dest = tmp_path / "build" / "temp.smc"

    copy_artifact(str(src), str(dest))

    assert dest.read_bytes() == b"clean"
    assert src.exists()


def test_commit_replaces_output_and_consumes_temp(tmp_path: Path):
    temp = tmp_path / "temp.smc"
    output = tmp_path / "hack.smc"
    temp.write_bytes(b"new")
    output.write_bytes(b"old")

    commit_artifact(str(temp), str(output))

    assert output.read_bytes() == b"new"
    assert not temp.exists()


def test_commit_without_temp_keeps_output(tmp_path: Path):
    output = tmp_path / "hack.smc"
    output.write_bytes(b"old")

    with pytest.raises(ArtifactError, match="nothing to commit"):
        commit_artifact(str(tmp_path / "temp.smc"), str(output))

    assert output.read_bytes() == b"old"


def test_side_files_match_stem_only(tmp_path: Path):
    (tmp_path / "temp.smc").write_bytes(b"rom")
    (tmp_path / "temp.msc").write_text("labels", encoding="utf-8")
    (tmp_path / "temp.dsc").write_text("dsc", encoding="utf-8")
    (tmp_path / "temp_global_data.smc").write_bytes(b"x")
    (tmp_path / "other.msc").write_text("x", encoding="utf-8")

    found = side_files(str(tmp_path / "temp.smc"))

    assert [Path(p).name for p in found] == ["temp.dsc", "temp.msc"]


def test_relocate_side_files_follows_output_stem(tmp_path: Path):
    (tmp_path / "temp.msc").write_text("labels", encoding="utf-8")
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    (out_dir / "hack.msc").write_text("stale", encoding="utf-8")

    moves = relocate_side_files(str(tmp_path / "temp.smc"), str(out_dir / "hack.smc"))

    assert [Path(dest).name for _src, dest in moves] == ["hack.msc"]
    assert (out_dir / "hack.msc").read_text(encoding="utf-8") == "labels"
    assert not (tmp_path / "temp.msc").exists()


def test_relocate_never_overwrites_the_output_rom(tmp_path: Path):
    (tmp_path / "temp.smc").write_bytes(b"left behind")
    (tmp_path / "hack.smc").write_bytes(b"output")

    moves = relocate_side_files(str(tmp_path / "temp.sfc"), str(tmp_path / "hack.smc"))

    assert moves == []
    assert (tmp_path / "hack.smc").read_bytes() == b"output"


def test_scratch_path_keeps_extension():
    assert scratch_path_for("build/temp.smc", "global_data") == "build/temp_global_data.smc"


def test_scratch_artifact_is_removed_on_error(tmp_path: Path):
    path = tmp_path / "scratch.smc"
    with pytest.raises(RuntimeError):
        with scratch_artifact(str(path)) as scratch:
            Path(scratch).write_bytes(b"x")
            raise RuntimeError("tool failed")
    assert not path.exists()


def test_relocate_keeps_every_extension_after_the_stem(tmp_path: Path):
    (tmp_path / "temp.a.txt").write_text("a", encoding="utf-8")
    (tmp_path / "temp.b.txt").write_text("b", encoding="utf-8")

    moves = relocate_side_files(str(tmp_path / "temp.smc"), str(tmp_path / "hack.smc"))

    assert sorted(Path(dest).name for _src, dest in moves) == ["hack.a.txt", "hack.b.txt"]
    assert (tmp_path / "hack.a.txt").read_text(encoding="utf-8") == "a"
    assert (tmp_path / "hack.b.txt").read_text(encoding="utf-8") == "b"
    assert not (tmp_path / "hack.txt").exists()


def test_ensure_parent_dir_creates_nested_folders(tmp_path: Path):
    target = tmp_path / "dist" / "nested" / "hack.bps"
    ensure_parent_dir(str(target))
    assert target.parent.is_dir()
    ensure_parent_dir(str(target))
