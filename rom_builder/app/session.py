"""Session controller: maps commands onto operations and owns long-lived state."""

from __future__ import annotations

import logging
import os
from typing import Any

from rom_builder.app.operations import (
    COMPOSITE_OPERATIONS,
    OPERATION_PLANS,
    OperationResult,
    run_operation,
)
from rom_builder.framework.config import Configuration, load_configuration
from rom_builder.framework.errors import ConfigError
from rom_builder.framework.processes import ProcessSlot
from rom_builder.framework.records import (
    append_run_index_entry,
    generate_unique_id,
    write_run_record,
)
from rom_builder.framework.runtime import RunContext
from rom_builder.framework.settings import Settings
from rom_builder.framework.tools import ToolRunner

COMMANDS: tuple[str, ...] = (*OPERATION_PLANS, *COMPOSITE_OPERATIONS)


class Session:
    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        *,
        session_id: str | None = None,
        tools: ToolRunner | None = None,
        emulator: ProcessSlot | None = None,
        editor: ProcessSlot | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self.session_id = session_id or generate_unique_id()
        self.tools = tools or ToolRunner(
            drip_interval_s=settings.drip_feed_interval_s,
            timeout_s=settings.tool_timeout_s,
            logger=logger,
        )
        self.emulator = emulator or ProcessSlot(
            "emulator", terminate_timeout_s=settings.terminate_timeout_s, logger=logger
        )
        self.editor = editor or ProcessSlot(
            "editor", terminate_timeout_s=settings.terminate_timeout_s, logger=logger
        )
        self._run_seq = 0

    def init(self) -> Configuration | None:
        """Parse the config files afresh; None means there is no usable configuration."""

        try:
            cfg = load_configuration(self.settings.config_paths)
        except ConfigError as exc:
            self.logger.error("ERROR: %s", exc)
            return None

        unknown = cfg.unknown_keys()
        if unknown:
            self.logger.debug("Ignoring unrecognized config keys: %s", ", ".join(unknown))
        return cfg

    def run(self, command: str) -> list[OperationResult]:
        """Run a command (operation or composite); stops at the first failed operation."""

        if command not in COMMANDS:
            raise ValueError(f"Unknown command: {command} (available: {', '.join(COMMANDS)})")

        cfg = self.init()
        if cfg is None:
            return [
                OperationResult(
                    operation=command,
                    success=False,
                    run_id=self._next_run_id(command),
                    error="No usable configuration",
                    error_kind="config",
                )
            ]

        operations = COMPOSITE_OPERATIONS.get(command, (command,))
        results: list[OperationResult] = []
        for operation in operations:
            result, ctx = run_operation(
                operation,
                cfg=cfg,
                settings=self.settings,
                logger=self.logger,
                tools=self.tools,
                emulator=self.emulator,
                editor=self.editor,
                run_id=self._next_run_id(operation),
            )
            self._record(ctx, result)
            results.append(result)
            if not result.success:
                break
        return results

    def _next_run_id(self, operation: str) -> str:
        self._run_seq += 1
        return f"{self.session_id}_{self._run_seq:03d}_{operation}"

    def _record(self, ctx: RunContext, result: OperationResult) -> None:
        if not self.settings.run_records or not self.settings.log_dir:
            return
        record_path = os.path.join(self.settings.log_dir, f"{ctx.run_id}_run.json")
        try:
            write_run_record(record_path, ctx, success=result.success)
            entry: dict[str, Any] = {
                "run_id": ctx.run_id,
                "session_id": self.session_id,
                "operation": ctx.operation,
                "success": result.success,
                "created_at": ctx.created_at,
                "record_path": record_path,
            }
            if result.error:
                entry["error_kind"] = result.error_kind
            append_run_index_entry(os.path.join(self.settings.log_dir, "runs_index.jsonl"), entry)
        except OSError:
            self.logger.exception("Failed to write run record for %s", ctx.run_id)
