from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterable, Mapping

from rom_builder.framework.config_parser import ParsedConfig, parse_config
from rom_builder.framework.errors import ConfigLoadError

# Config text key -> Configuration field.
KNOWN_KEYS: dict[str, str] = {
    "dir": "working_dir",
    "input": "clean_rom",
    "output": "output_rom",
    "temp": "temp_rom",
    "package": "package_path",
    "initial_patch": "initial_patch",
    "asar_path": "asar_path",
    "gps_path": "gps_path",
    "gps_list": "gps_list",
    "pixi_path": "pixi_path",
    "pixi_list": "pixi_list",
    "uberasm_path": "uberasm_path",
    "uberasm_list": "uberasm_list",
    "addmusick_path": "addmusick_path",
    "lm_path": "lunar_magic_path",
    "flips_path": "flips_path",
    "levels": "levels_dir",
    "map16": "map16_path",
    "shared_palette": "shared_palette_path",
    "title_moves": "title_moves_path",
    "global_data": "global_data_path",
    "test_level": "test_level",
    "test_level_dest": "test_level_dest",
    "emulator_path": "emulator_path",
    "emulator_core": "emulator_core",
}
KNOWN_LISTS: dict[str, str] = {"patches": "patches"}

# Keys holding identifiers rather than filesystem paths.
NON_PATH_KEYS = frozenset({"dir", "test_level", "test_level_dest", "emulator_core"})


def blank_to_none(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value


@dataclass(frozen=True)
class Configuration:
    """Immutable snapshot of `config.txt` for one Init."""

    working_dir: str | None = None
    clean_rom: str | None = None
    output_rom: str | None = None
    temp_rom: str | None = None
    package_path: str | None = None
    initial_patch: str | None = None

    asar_path: str | None = None
    gps_path: str | None = None
    gps_list: str | None = None
    pixi_path: str | None = None
    pixi_list: str | None = None
    uberasm_path: str | None = None
    uberasm_list: str | None = None
    addmusick_path: str | None = None
    lunar_magic_path: str | None = None
    flips_path: str | None = None

    levels_dir: str | None = None
    map16_path: str | None = None
    shared_palette_path: str | None = None
    title_moves_path: str | None = None
    global_data_path: str | None = None

    test_level: str | None = None
    test_level_dest: str | None = None
    emulator_path: str | None = None
    emulator_core: str | None = None

    patches: tuple[str, ...] = ()
    flags: frozenset[str] = frozenset()

    raw_values: Mapping[str, str] = field(default_factory=dict, compare=False, repr=False)
    raw_lists: Mapping[str, tuple[str, ...]] = field(default_factory=dict, compare=False, repr=False)
    sources: tuple[str, ...] = field(default=(), compare=False)
    base_dir: str | None = field(default=None, compare=False)

    @classmethod
    def from_parsed(cls, parsed: ParsedConfig, *, base_dir: str | None = None) -> "Configuration":
        """
        Project the recognized keys onto fields.

        Blank values become None. Relative paths resolve against `dir` when it
        is set (itself relative to `base_dir`), otherwise against `base_dir`.
        """

        root = os.path.abspath(base_dir or os.getcwd())
        working_dir = blank_to_none(parsed.values.get("dir"))
        if working_dir is not None:
            working_dir = os.path.normpath(os.path.join(root, working_dir))
            root = working_dir

        kwargs: dict[str, object] = {"working_dir": working_dir}
        for key, field_name in KNOWN_KEYS.items():
            if key == "dir":
                continue
            value = blank_to_none(parsed.values.get(key))
            if value is not None and key not in NON_PATH_KEYS:
                value = os.path.normpath(os.path.join(root, value))
            kwargs[field_name] = value

        for key, field_name in KNOWN_LISTS.items():
            items = parsed.lists.get(key) or []
            kwargs[field_name] = tuple(
                os.path.normpath(os.path.join(root, item)) for item in items if item.strip()
            )

        return cls(
            flags=frozenset(parsed.flags),
            raw_values=dict(parsed.values),
            raw_lists={name: tuple(items) for name, items in parsed.lists.items()},
            sources=tuple(parsed.sources),
            base_dir=root,
            **kwargs,  # type: ignore[arg-type]
        )

    def unknown_keys(self) -> tuple[str, ...]:
        names = set(self.raw_values) - set(KNOWN_KEYS)
        names |= set(self.raw_lists) - set(KNOWN_LISTS)
        return tuple(sorted(names))

    @property
    def cwd(self) -> str:
        return self.working_dir or self.base_dir or os.getcwd()


def read_config_texts(paths: Iterable[str]) -> list[tuple[str, str]]:
    blobs: list[tuple[str, str]] = []
    for path in paths:
        try:
            # utf-8-sig strips a leading BOM.
            with open(path, "r", encoding="utf-8-sig") as handle:
                blobs.append((path, handle.read()))
        except OSError as exc:
            raise ConfigLoadError(path, exc.strerror or str(exc)) from exc
        except UnicodeDecodeError as exc:
            raise ConfigLoadError(path, f"not valid UTF-8 ({exc.reason})") from exc
    return blobs


def load_configuration(paths: Iterable[str], *, base_dir: str | None = None) -> Configuration:
    """Read, parse and project every config file; any error means no configuration."""

    path_list = list(paths)
    if not path_list:
        raise ConfigLoadError("<none>", "no config files configured")
    blobs = read_config_texts(path_list)
    parsed = parse_config(*blobs)
    if base_dir is None:
        base_dir = os.path.dirname(os.path.abspath(path_list[0]))
    return Configuration.from_parsed(parsed, base_dir=base_dir)
