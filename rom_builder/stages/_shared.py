from __future__ import annotations

import os
from typing import Any, Callable

from pipelinekit import ActionStep, Block
from rom_builder.framework.runtime import RunContext
from rom_builder.framework.tools import ErrorStream, ToolResult


def make_action_stage_block(
    instance_id: str,
    fn: Callable[[RunContext], Any],
    *,
    action_name: str = "run",
    doc: str | None = None,
) -> Block:
    meta: dict[str, Any] = {}
    if doc:
        meta["doc"] = doc
    return Block(name=instance_id, nodes=[ActionStep(name=action_name, fn=fn, meta=meta)])


def path_from(base_dir: str, path: str) -> str:
    """`path` relative to `base_dir` when possible (tools that resolve args against their own dir)."""
    try:
        return os.path.relpath(os.path.abspath(path), os.path.abspath(base_dir))
    except ValueError:
        # Different drives on Windows.
        return os.path.abspath(path)


def run_in_tool_dir(
    ctx: RunContext,
    tool_path: str,
    args: list[str],
    *,
    rom_path: str,
    drip_feed: bool = False,
    error_stream: ErrorStream = "stderr",
) -> ToolResult:
    """Run a tool from its own directory, passing the ROM path relative to it."""

    tool_dir = os.path.dirname(os.path.abspath(tool_path))
    return ctx.tools(
        tool_path,
        [*args, path_from(tool_dir, rom_path)],
        cwd=tool_dir,
        drip_feed=drip_feed,
        error_stream=error_stream,
    )


def lunar_magic(ctx: RunContext, flag: str, *args: str) -> ToolResult:
    assert ctx.cfg.lunar_magic_path is not None
    return ctx.tools(ctx.cfg.lunar_magic_path, [flag, *args], cwd=ctx.cfg.cwd)


def flips(ctx: RunContext, *args: str) -> ToolResult:
    assert ctx.cfg.flips_path is not None
    return ctx.tools(ctx.cfg.flips_path, list(args), cwd=ctx.cfg.cwd)
