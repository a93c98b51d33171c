"""Filesystem staging of ROM artifacts (clean -> temp -> output)."""

from __future__ import annotations

import glob
import os
import shutil
from contextlib import contextmanager
from typing import Iterator

from rom_builder.framework.errors import ArtifactError


def remove_if_exists(path: str) -> bool:
    if not os.path.exists(path):
        return False
    try:
        os.remove(path)
    except OSError as exc:
        raise ArtifactError(f"Could not delete '{path}': {exc.strerror or exc}") from exc
    return True


def ensure_parent_dir(path: str) -> None:
    """Create the directory that will hold `path`."""

    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)


def copy_artifact(src: str, dest: str) -> None:
    ensure_parent_dir(dest)
    try:
        shutil.copyfile(src, dest)
    except OSError as exc:
        raise ArtifactError(f"Could not copy '{src}' to '{dest}': {exc.strerror or exc}") from exc


def commit_artifact(temp_path: str, output_path: str) -> None:
    """Move the finished temp ROM over the output ROM."""

    if not os.path.isfile(temp_path):
        raise ArtifactError(f"Temp ROM '{temp_path}' does not exist; nothing to commit")
    ensure_parent_dir(output_path)
    try:
        os.replace(temp_path, output_path)
    except OSError as exc:
        # A running emulator or editor can hold a lock on the output on Windows.
        raise ArtifactError(
            f"Could not move '{temp_path}' to '{output_path}': {exc.strerror or exc}"
        ) from exc


def side_files(artifact_path: str) -> list[str]:
    """Files next to `artifact_path` sharing its stem, excluding the artifact itself."""

    directory = os.path.dirname(os.path.abspath(artifact_path))
    stem, _ext = os.path.splitext(os.path.basename(artifact_path))
    pattern = os.path.join(glob.escape(directory), glob.escape(stem) + ".*")
    target = os.path.normcase(os.path.abspath(artifact_path))
    return sorted(
        path
        for path in glob.glob(pattern)
        if os.path.isfile(path) and os.path.normcase(os.path.abspath(path)) != target
    )


def relocate_side_files(temp_path: str, output_path: str) -> list[tuple[str, str]]:
    """
    Rename `<temp stem><suffix>` files to `<output stem><suffix>` next to the output.

    The suffix is everything after the stem, so `temp.a.txt` becomes `hack.a.txt`.

    Existing files at the destination are replaced. Returns the (src, dest) moves.
    """

    out_dir = os.path.dirname(os.path.abspath(output_path))
    out_stem, _out_ext = os.path.splitext(os.path.basename(output_path))
    temp_stem, _temp_ext = os.path.splitext(os.path.basename(temp_path))
    moves: list[tuple[str, str]] = []
    for src in side_files(temp_path):
        suffix = os.path.basename(src)[len(temp_stem):]
        dest = os.path.join(out_dir, out_stem + suffix)
        if os.path.normcase(dest) in (
            os.path.normcase(os.path.abspath(src)),
            os.path.normcase(os.path.abspath(output_path)),
        ):
            continue
        try:
            os.replace(src, dest)
        except OSError as exc:
            raise ArtifactError(f"Could not move '{src}' to '{dest}': {exc.strerror or exc}") from exc
        moves.append((src, dest))
    return moves


def scratch_path_for(temp_path: str, suffix: str) -> str:
    stem, ext = os.path.splitext(temp_path)
    return f"{stem}_{suffix}{ext}"


@contextmanager
def scratch_artifact(path: str) -> Iterator[str]:
    """Yield `path` for a throwaway ROM and delete it afterwards, even on failure."""

    remove_if_exists(path)
    try:
        yield path
    finally:
        if os.path.exists(path):
            os.remove(path)
