"""Code/asset insertion tools that patch the temp ROM in place."""

from __future__ import annotations

import os

from pipelinekit import ActionStep, Block, StageRef, Unmet
from rom_builder.framework import preconditions
from rom_builder.framework.config import Configuration
from rom_builder.framework.runtime import RunContext
from rom_builder.stages._shared import make_action_stage_block, run_in_tool_dir


def _list_args(list_path: str | None, *, flag: str | None = "-l") -> list[str]:
    if list_path is None:
        return []
    return [flag, list_path] if flag else [list_path]


# GPS


def _build_blocks(inputs, *, instance_id: str):
    def _action(ctx: RunContext) -> None:
        cfg = ctx.cfg
        assert cfg.gps_path is not None and cfg.temp_rom is not None
        run_in_tool_dir(
            ctx,
            cfg.gps_path,
            _list_args(cfg.gps_list),
            rom_path=cfg.temp_rom,
            error_stream="stdout",
        )
        ctx.logger.info("GPS success")

    return make_action_stage_block(instance_id, _action)


BLOCKS = StageRef(
    id="build.blocks",
    builder=_build_blocks,
    doc="Insert custom blocks with GPS.",
    tags=("build", "gps"),
    precondition=lambda ctx: preconditions.tool("GPS", ctx.cfg.gps_path, "no blocks will be inserted"),
)


# PIXI


def _build_sprites(inputs, *, instance_id: str):
    def _action(ctx: RunContext) -> None:
        cfg = ctx.cfg
        assert cfg.pixi_path is not None and cfg.temp_rom is not None
        run_in_tool_dir(
            ctx,
            cfg.pixi_path,
            _list_args(cfg.pixi_list),
            rom_path=cfg.temp_rom,
            error_stream="stdout",
        )
        ctx.logger.info("PIXI success")

    return make_action_stage_block(instance_id, _action)


SPRITES = StageRef(
    id="build.sprites",
    builder=_build_sprites,
    doc="Insert custom sprites with PIXI.",
    tags=("build", "pixi"),
    precondition=lambda ctx: preconditions.tool("PIXI", ctx.cfg.pixi_path, "no sprites will be inserted"),
)


# Asar


def _patches_ready(ctx: RunContext) -> Unmet | None:
    feature = "not applying any patches"
    unmet = preconditions.tool("Asar", ctx.cfg.asar_path, feature)
    if unmet is not None:
        return unmet
    if not ctx.cfg.patches:
        return Unmet(
            "not_configured",
            "Path to Asar provided, but no patches were registered to be applied.",
        )
    return None


def _build_patches(inputs: Configuration, *, instance_id: str):
    def _apply(patch: str):
        def _action(ctx: RunContext) -> dict[str, str]:
            assert ctx.cfg.asar_path is not None and ctx.cfg.temp_rom is not None
            ctx.logger.info("Applying patch '%s'", patch)
            ctx.tools(ctx.cfg.asar_path, [patch, ctx.cfg.temp_rom], cwd=ctx.cfg.cwd)
            return {"patch": patch}

        return _action

    nodes = [
        ActionStep(
            name=f"patch_{index + 1:02d}",
            fn=_apply(patch),
            meta={"doc": os.path.basename(patch)},
        )
        for index, patch in enumerate(inputs.patches)
    ]
    return Block(name=instance_id, nodes=nodes)


PATCHES = StageRef(
    id="build.patches",
    builder=_build_patches,
    doc="Apply the `patches` list with Asar, in order.",
    tags=("build", "asar"),
    precondition=_patches_ready,
)


# UberASMTool


def _build_uberasm(inputs, *, instance_id: str):
    def _action(ctx: RunContext) -> None:
        cfg = ctx.cfg
        assert cfg.uberasm_path is not None and cfg.temp_rom is not None
        run_in_tool_dir(
            ctx,
            cfg.uberasm_path,
            _list_args(cfg.uberasm_list or "list.txt", flag=None),
            rom_path=cfg.temp_rom,
            error_stream="stdout",
        )
        ctx.logger.info("UberASMTool success")

    return make_action_stage_block(instance_id, _action)


UBERASM = StageRef(
    id="build.uberasm",
    builder=_build_uberasm,
    doc="Insert level/overworld/game-mode code with UberASMTool.",
    tags=("build", "uberasm"),
    precondition=lambda ctx: preconditions.tool(
        "UberASMTool", ctx.cfg.uberasm_path, "no UberASM code will be inserted"
    ),
)


# AddMusicK


def _build_music(inputs, *, instance_id: str):
    def _action(ctx: RunContext) -> None:
        cfg = ctx.cfg
        assert cfg.addmusick_path is not None and cfg.temp_rom is not None
        # AddMusicK polls stdin for a key press before it exits.
        run_in_tool_dir(ctx, cfg.addmusick_path, [], rom_path=cfg.temp_rom, drip_feed=True)
        ctx.logger.info("AddMusicK success")

    return make_action_stage_block(instance_id, _action)


MUSIC = StageRef(
    id="build.music",
    builder=_build_music,
    doc="Insert custom music with AddMusicK.",
    tags=("build", "addmusick"),
    precondition=lambda ctx: preconditions.tool(
        "AddMusicK", ctx.cfg.addmusick_path, "no music will be inserted"
    ),
)
