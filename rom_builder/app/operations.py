"""Pipeline orchestrator: fixed stage plans per operation, run fail-fast."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pipelinekit import Block, PreconditionError, StageRegistry, StageRunner, StepRecorder
from pipelinekit import utc_now_iso8601
from rom_builder.framework.config import Configuration
from rom_builder.framework.errors import RomBuilderError
from rom_builder.framework.processes import ProcessSlot
from rom_builder.framework.records import generate_unique_id
from rom_builder.framework.runtime import RunContext
from rom_builder.framework.settings import Settings
from rom_builder.framework.tools import ToolRunner
from rom_builder.stages.registry import get_stage_registry

OPERATION_PLANS: dict[str, tuple[str, ...]] = {
    "build": (
        "build.reset_temp",
        "build.create_temp",
        "build.blocks",
        "build.sprites",
        "build.patches",
        "build.uberasm",
        "build.music",
        "build.graphics",
        "build.map16",
        "build.title_moves",
        "build.shared_palette",
        "build.global_data",
        "build.levels",
        "build.commit",
        "build.side_files",
    ),
    "save": (
        "common.require_output",
        "save.global_data",
        "save.map16",
        "save.shared_palette",
        "save.title_moves",
        "save.levels",
    ),
    "test": (
        "common.require_output",
        "test.stage_level",
        "test.launch_emulator",
    ),
    "package": (
        "common.require_output",
        "package.create",
    ),
    "edit": (
        "common.require_output",
        "edit.launch_editor",
    ),
}

# Composite commands: each member runs in order and the first failure stops the rest.
COMPOSITE_OPERATIONS: dict[str, tuple[str, ...]] = {
    "run": ("save", "build", "test"),
}


@dataclass
class OperationResult:
    operation: str
    success: bool
    run_id: str
    error: str | None = None
    error_kind: str | None = None
    failed_stage: str | None = None
    skipped: list[str] = field(default_factory=list)
    steps: list[dict[str, Any]] = field(default_factory=list)

    def summary(self) -> str:
        if self.success:
            suffix = f" ({len(self.skipped)} skipped)" if self.skipped else ""
            return f"{self.operation}: success{suffix}"
        where = f" at {self.failed_stage}" if self.failed_stage else ""
        return f"{self.operation}: failed{where}: {self.error}"


def build_operation_block(
    operation: str, cfg: Configuration, *, registry: StageRegistry | None = None
) -> Block:
    plan = OPERATION_PLANS.get(operation)
    if plan is None:
        available = ", ".join(sorted(OPERATION_PLANS)) or "<none>"
        raise ValueError(f"Unknown operation: {operation} (available: {available})")

    registry = registry or get_stage_registry()
    blocks = [registry.resolve(stage_id).build(cfg) for stage_id in plan]
    return Block(name=operation, nodes=blocks, meta={"operation": operation})


def _error_kind(exc: BaseException) -> str:
    if isinstance(exc, PreconditionError):
        return f"precondition.{exc.code}"
    if isinstance(exc, RomBuilderError):
        return f"{exc.kind}.{type(exc).__name__}"
    return type(exc).__name__


def _failed_stage(exc: BaseException) -> str | None:
    path = getattr(exc, "pipeline_path", None)
    if not isinstance(path, str) or not path:
        return None
    segments = path.split("/")
    return segments[1] if len(segments) > 1 else segments[0]


def run_operation(
    operation: str,
    *,
    cfg: Configuration,
    settings: Settings,
    logger: logging.Logger,
    tools: ToolRunner | None = None,
    emulator: ProcessSlot | None = None,
    editor: ProcessSlot | None = None,
    recorder: StepRecorder | None = None,
    registry: StageRegistry | None = None,
    run_id: str | None = None,
) -> tuple[OperationResult, RunContext]:
    """
    Run one operation's stage plan against `cfg`.

    Errors raised by stages (precondition, tool, artifact, identifier) end the
    operation and are reported in the result; anything else propagates.
    """

    ctx = RunContext(
        run_id=run_id or generate_unique_id(),
        operation=operation,
        cfg=cfg,
        settings=settings,
        logger=logger,
        tools=tools
        or ToolRunner(
            drip_interval_s=settings.drip_feed_interval_s,
            timeout_s=settings.tool_timeout_s,
            logger=logger,
        ),
        created_at=utc_now_iso8601(),
        emulator=emulator,
        editor=editor,
    )

    root = build_operation_block(operation, cfg, registry=registry)
    runner = StageRunner(recorder=recorder)

    logger.info("== %s ==", operation.capitalize())
    try:
        runner.run(ctx, root)
    except (PreconditionError, RomBuilderError, OSError) as exc:
        failed_stage = _failed_stage(exc)
        ctx.error = {
            "type": type(exc).__name__,
            "kind": _error_kind(exc),
            "message": str(exc),
            "stage": failed_stage,
            "path": getattr(exc, "pipeline_path", None),
        }
        logger.error("ERROR: %s", exc)
        result = OperationResult(
            operation=operation,
            success=False,
            run_id=ctx.run_id,
            error=str(exc),
            error_kind=ctx.error["kind"],
            failed_stage=failed_stage,
            skipped=[str(step.get("path")) for step in ctx.skipped],
            steps=list(ctx.steps),
        )
        return result, ctx

    result = OperationResult(
        operation=operation,
        success=True,
        run_id=ctx.run_id,
        skipped=[str(step.get("path")) for step in ctx.skipped],
        steps=list(ctx.steps),
    )
    logger.info("%s finished successfully", operation.capitalize())
    return result, ctx
