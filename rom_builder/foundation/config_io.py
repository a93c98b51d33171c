from __future__ import annotations

import os
from pathlib import Path
from collections.abc import Mapping
from typing import Any

import yaml


def find_repo_root(start: str | os.PathLike[str] | None = None) -> str:
    start_path = Path(start or os.getcwd()).resolve()
    if start_path.is_file():
        start_path = start_path.parent

    markers = ("rom_builder.yaml", "config.txt", "pyproject.toml", ".git")
    for candidate in (start_path, *start_path.parents):
        for marker in markers:
            if (candidate / marker).exists():
                return str(candidate)

    raise FileNotFoundError(
        "Cannot locate project root: searched from "
        f"{start_path} for {', '.join(markers)}"
    )


def _load_yaml_mapping(path: str) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle)
    except FileNotFoundError:
        raise
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ValueError(f"Settings file must contain a YAML mapping: {path}")
    return dict(payload)


def _deep_merge(base: Any, overlay: Any, *, path: str) -> Any:
    if overlay is None:
        return None

    if base is None:
        return overlay

    if isinstance(base, Mapping):
        if not isinstance(overlay, Mapping):
            raise ValueError(
                f"Invalid settings overlay merge at {path}: base is mapping but overlay is {type(overlay).__name__}"
            )
        merged: dict[str, Any] = dict(base)
        for key, overlay_value in overlay.items():
            next_path = f"{path}.{key}" if path else str(key)
            if key in base:
                merged[key] = _deep_merge(base[key], overlay_value, path=next_path)
            else:
                merged[key] = overlay_value
        return merged

    if isinstance(base, (list, tuple)):
        if not isinstance(overlay, (list, tuple)):
            raise ValueError(
                f"Invalid settings overlay merge at {path}: base is list but overlay is {type(overlay).__name__}"
            )
        return list(overlay)

    if isinstance(overlay, (Mapping, list, tuple)):
        raise ValueError(
            f"Invalid settings overlay merge at {path}: base is {type(base).__name__} but overlay is {type(overlay).__name__}"
        )

    return overlay


def load_settings(
    *,
    settings_path: str | None = None,
    env_var: str = "ROM_BUILDER_SETTINGS",
    settings_name: str = "rom_builder",
    start_dir: str | None = None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Load runtime settings from YAML.

    An explicit path (argument or env var) loads a single file. Otherwise the
    project root is searched for `<settings_name>.yaml` plus an optional
    `<settings_name>.local.yaml` overlay; neither file is required.
    """

    explicit_path = None
    if settings_path is not None:
        explicit_path = str(settings_path).strip() or None
    elif env_var:
        raw_env = os.environ.get(str(env_var), "")
        explicit_path = raw_env.strip() or None

    if explicit_path:
        expanded = os.path.abspath(os.path.expandvars(os.path.expanduser(explicit_path)))
        settings = _load_yaml_mapping(expanded)
        meta = {
            "mode": "env" if settings_path is None else "explicit",
            "paths": [expanded],
            "env_var": env_var,
            "root": os.path.dirname(expanded),
        }
        return settings, meta

    try:
        root = find_repo_root(start_dir)
    except FileNotFoundError:
        root = os.path.abspath(start_dir or os.getcwd())

    base_path = os.path.join(root, settings_name + ".yaml")
    local_overlay_path = os.path.join(root, settings_name + ".local.yaml")

    settings: dict[str, Any] = {}
    loaded_paths: list[str] = []
    mode = "defaults"

    if os.path.exists(base_path):
        settings = _load_yaml_mapping(base_path)
        loaded_paths.append(os.path.abspath(base_path))
        mode = "base"

    if os.path.exists(local_overlay_path):
        overlay = _load_yaml_mapping(local_overlay_path)
        settings = _deep_merge(settings, overlay, path="")
        loaded_paths.append(os.path.abspath(local_overlay_path))
        mode = "base+local" if mode == "base" else "local"

    meta = {"mode": mode, "paths": loaded_paths, "env_var": env_var, "root": root}
    return settings, meta
