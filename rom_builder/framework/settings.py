from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_KNOWN_KEYS: dict[str, tuple[str, ...]] = {
    "strict": (),
    "config": ("paths",),
    "logging": ("log_dir", "level", "run_records"),
    "tools": ("drip_feed_interval_s", "timeout_s"),
    "processes": ("terminate_timeout_s",),
}


def parse_bool(value: Any, path: str) -> bool:
    """
    Strict boolean parsing to avoid bool('false') footguns.

    Accepts True/False, 0/1 and the strings true/false/1/0/yes/no
    (case-insensitive, surrounding whitespace ignored).
    """

    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        raise ValueError(f"Invalid boolean for {path}: {value!r}")
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"true", "1", "yes"}:
            return True
        if normalized in {"false", "0", "no"}:
            return False
    raise ValueError(f"Invalid boolean for {path}: {value!r}")


def parse_float(value: Any, path: str, *, minimum: float | None = None) -> float:
    if value is None:
        raise ValueError(f"Invalid settings value for {path}: None")
    if isinstance(value, bool):
        raise ValueError(f"Invalid settings type for {path}: expected float, got bool")
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            result = float(value.strip())
        except ValueError as exc:
            raise ValueError(f"Invalid settings value for {path}: must be a float") from exc
    else:
        raise ValueError(f"Invalid settings value for {path}: must be a float")
    if minimum is not None and result < minimum:
        raise ValueError(f"Invalid settings value for {path}: must be >= {minimum}")
    return result


def _optional_str(value: Any, path: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Invalid settings type for {path}: expected string")
    return value.strip() or None


def _section(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    raw = data.get(key)
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"Invalid settings type for {key}: expected mapping")
    return raw


@dataclass(frozen=True)
class Settings:
    """Runtime options for the session, separate from the build's `config.txt`."""

    config_paths: tuple[str, ...] = ("config.txt",)
    log_dir: str | None = "logs"
    log_level: str = "INFO"
    run_records: bool = True
    drip_feed_interval_s: float = 0.01
    tool_timeout_s: float | None = None
    terminate_timeout_s: float = 5.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, root: str | None = None) -> tuple["Settings", list[str]]:
        """Parse settings; returns (settings, warnings). Relative paths resolve against `root`."""

        warnings: list[str] = []
        strict = parse_bool(data.get("strict", False), "strict")

        unknown: list[str] = []
        for key, value in data.items():
            if key not in _KNOWN_KEYS:
                unknown.append(str(key))
                continue
            allowed = _KNOWN_KEYS[key]
            if allowed and isinstance(value, Mapping):
                unknown.extend(f"{key}.{sub}" for sub in value if sub not in allowed)
        if unknown:
            if strict:
                raise ValueError(f"Unknown settings keys: {', '.join(sorted(unknown))}")
            warnings.extend(f"Unknown settings key: {name}" for name in sorted(unknown))

        base = os.path.abspath(root or os.getcwd())

        config_section = _section(data, "config")
        raw_paths = config_section.get("paths", ["config.txt"])
        if isinstance(raw_paths, str):
            raw_paths = [raw_paths]
        if not isinstance(raw_paths, (list, tuple)) or not raw_paths:
            raise ValueError("Invalid settings value for config.paths: expected a non-empty list")
        config_paths: list[str] = []
        for index, item in enumerate(raw_paths):
            path = _optional_str(item, f"config.paths[{index}]")
            if path is None:
                raise ValueError(f"Invalid settings value for config.paths[{index}]: empty path")
            config_paths.append(os.path.join(base, os.path.expanduser(path)))

        logging_section = _section(data, "logging")
        log_dir = _optional_str(logging_section.get("log_dir", "logs"), "logging.log_dir")
        if log_dir is not None:
            log_dir = os.path.join(base, os.path.expanduser(log_dir))
        level = str(logging_section.get("level", "INFO")).strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(
                f"Invalid settings value for logging.level: {level!r} (expected one of {', '.join(_LOG_LEVELS)})"
            )
        run_records = parse_bool(logging_section.get("run_records", True), "logging.run_records")

        tools_section = _section(data, "tools")
        drip_interval = parse_float(
            tools_section.get("drip_feed_interval_s", 0.01),
            "tools.drip_feed_interval_s",
            minimum=0.0,
        )
        raw_timeout = tools_section.get("timeout_s")
        tool_timeout = (
            None if raw_timeout is None else parse_float(raw_timeout, "tools.timeout_s", minimum=0.0)
        )

        processes_section = _section(data, "processes")
        terminate_timeout = parse_float(
            processes_section.get("terminate_timeout_s", 5.0),
            "processes.terminate_timeout_s",
            minimum=0.0,
        )

        settings = cls(
            config_paths=tuple(config_paths),
            log_dir=log_dir,
            log_level=level,
            run_records=run_records,
            drip_feed_interval_s=drip_interval,
            tool_timeout_s=tool_timeout,
            terminate_timeout_s=terminate_timeout,
        )
        return settings, warnings

    def log_warnings(self, logger: logging.Logger, warnings: list[str]) -> None:
        for warning in warnings:
            logger.warning(warning)
