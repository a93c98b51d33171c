from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from rom_builder.framework.config import Configuration
from rom_builder.framework.processes import ProcessSlot
from rom_builder.framework.settings import Settings
from rom_builder.framework.tools import ToolRunner


@dataclass
class RunContext:
    """Everything one operation run needs; stages read `cfg` and never mutate it."""

    run_id: str
    operation: str
    cfg: Configuration
    settings: Settings
    logger: logging.Logger
    tools: ToolRunner
    created_at: str

    emulator: ProcessSlot | None = None
    editor: ProcessSlot | None = None

    outputs: dict[str, Any] = field(default_factory=dict)
    steps: list[dict[str, Any]] = field(default_factory=list)
    error: dict[str, Any] | None = None

    @property
    def skipped(self) -> list[dict[str, Any]]:
        return [step for step in self.steps if step.get("type") == "skip"]
