import logging
import os
from pathlib import Path
from typing import Callable

import pytest

from rom_builder.framework.config import Configuration
from rom_builder.framework.config_parser import parse_config
from rom_builder.framework.errors import ToolExecutionError
from rom_builder.framework.settings import Settings
from rom_builder.framework.tools import ToolResult

TOOL_FILES = {
    "asar_path": "tools/asar/asar.exe",
    "gps_path": "tools/gps/gps.exe",
    "pixi_path": "tools/pixi/pixi.exe",
    "uberasm_path": "tools/uberasm/UberASMTool.exe",
    "addmusick_path": "tools/amk/AddmusicK.exe",
    "lm_path": "tools/lm/Lunar Magic.exe",
    "flips_path": "tools/flips/flips.exe",
    "emulator_path": "tools/emu/snes9x.exe",
}


class FakeTools:
    """Records tool invocations instead of running them."""

    def __init__(self) -> None:
        self.calls: list[dict] = []
        self.fail_when: Callable[[str, list[str]], bool] = lambda tool, args: False
        self.side_effects: dict[str, Callable[[list[str], str | None], None]] = {}

    def names(self) -> list[str]:
        return [call["name"] for call in self.calls]

    def __call__(
        self,
        tool_path,
        args=(),
        *,
        cwd=None,
        stdin_text=None,
        drip_feed=False,
        error_stream="stderr",
    ) -> ToolResult:
        name = os.path.basename(tool_path)
        args = [str(arg) for arg in args]
        self.calls.append(
            {"name": name, "tool": tool_path, "args": args, "cwd": cwd, "drip_feed": drip_feed}
        )
        if self.fail_when(name, args):
            raise ToolExecutionError(tool_path, 1, f"{name} failed")
        effect = self.side_effects.get(name)
        if effect is not None:
            effect(args, cwd)
        return ToolResult(argv=(tool_path, *args), exit_code=0, stdout="", stderr="", error_stream=error_stream)


class Project:
    def __init__(self, root: Path) -> None:
        self.root = root
        self.values: dict[str, str] = {}
        self.patches: list[str] = []

    def path(self, rel: str) -> Path:
        return self.root / rel

    def touch(self, rel: str, data: bytes = b"") -> Path:
        target = self.path(rel)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return target

    def with_tools(self, *keys: str) -> "Project":
        for key in keys:
            self.touch(TOOL_FILES[key])
            self.values[key] = TOOL_FILES[key]
        return self

    def set(self, **values: str) -> "Project":
        self.values.update(values)
        return self

    def text(self) -> str:
        lines = [f"{key} = {value}" for key, value in self.values.items()]
        if self.patches:
            lines.extend(["patches", "[", *self.patches, "]"])
        return "\n".join(lines) + "\n"

    def config(self) -> Configuration:
        return Configuration.from_parsed(parse_config(self.text()), base_dir=str(self.root))

    def write_config(self, name: str = "config.txt") -> Path:
        target = self.path(name)
        target.write_text(self.text(), encoding="utf-8")
        return target


@pytest.fixture
def project(tmp_path: Path) -> Project:
    proj = Project(tmp_path)
    proj.touch("clean.smc", b"CLEAN")
    proj.set(input="clean.smc", output="out/hack.smc", temp="out/temp.smc")
    return proj


@pytest.fixture
def fake_tools() -> FakeTools:
    return FakeTools()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(config_paths=(str(tmp_path / "config.txt"),), log_dir=None, run_records=False)


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("test.rom_builder")
