"""Export edited resources from the output ROM back into the project files."""

from __future__ import annotations

import os

from pipelinekit import StageRef, Unmet
from rom_builder.framework import artifacts, preconditions
from rom_builder.framework.runtime import RunContext
from rom_builder.stages._shared import flips, lunar_magic, make_action_stage_block

# `-ExportMultLevels` names files "<prefix> <level>.mwl".
LEVEL_FILE_PREFIX = "level"


def _global_data_ready(ctx: RunContext) -> Unmet | None:
    feature = "global data will not be saved"
    return preconditions.first_unmet(
        preconditions.setting("global data patch path", ctx.cfg.global_data_path, feature),
        preconditions.existing_file("input ROM path", ctx.cfg.clean_rom, feature),
        preconditions.tool("Flips", ctx.cfg.flips_path, feature),
    )


def _build_global_data(inputs, *, instance_id: str):
    def _action(ctx: RunContext) -> dict[str, str]:
        cfg = ctx.cfg
        assert cfg.global_data_path and cfg.clean_rom and cfg.output_rom
        artifacts.ensure_parent_dir(cfg.global_data_path)
        artifacts.remove_if_exists(cfg.global_data_path)
        flips(ctx, "--create", "--bps", cfg.clean_rom, cfg.output_rom, cfg.global_data_path)
        ctx.logger.info("Saved global data patch '%s'", cfg.global_data_path)
        return {"patch": cfg.global_data_path}

    return make_action_stage_block(instance_id, _action)


GLOBAL_DATA = StageRef(
    id="save.global_data",
    builder=_build_global_data,
    doc="Create the global data BPS patch from the clean ROM to the output ROM.",
    tags=("save", "flips", "global_data"),
    precondition=_global_data_ready,
)


def _asset_export(*, stage_id: str, doc: str, flag: str, label: str, what: str, attr: str) -> StageRef:
    feature = f"{what} will not be exported"

    def _ready(ctx: RunContext) -> Unmet | None:
        return preconditions.first_unmet(
            preconditions.setting(label, getattr(ctx.cfg, attr), feature),
            preconditions.tool("Lunar Magic", ctx.cfg.lunar_magic_path, feature),
        )

    def _build(inputs, *, instance_id: str):
        def _action(ctx: RunContext) -> dict[str, str]:
            assert ctx.cfg.output_rom is not None
            target = getattr(ctx.cfg, attr)
            artifacts.ensure_parent_dir(target)
            lunar_magic(ctx, flag, ctx.cfg.output_rom, target)
            ctx.logger.info("Exported %s to '%s'", what, target)
            return {"path": target}

        return make_action_stage_block(instance_id, _action)

    return StageRef(
        id=stage_id,
        builder=_build,
        doc=doc,
        tags=("save", "lunar_magic"),
        precondition=_ready,
    )


MAP16 = _asset_export(
    stage_id="save.map16",
    doc="Export the full map16 table.",
    flag="-ExportAllMap16",
    label="map16 path",
    what="map16",
    attr="map16_path",
)

SHARED_PALETTE = _asset_export(
    stage_id="save.shared_palette",
    doc="Export the shared palette.",
    flag="-ExportSharedPalette",
    label="shared palette path",
    what="shared palette",
    attr="shared_palette_path",
)

TITLE_MOVES = _asset_export(
    stage_id="save.title_moves",
    doc="Export the title screen demo movement.",
    flag="-ExportTitleMoves",
    label="title moves path",
    what="title moves",
    attr="title_moves_path",
)


def _levels_ready(ctx: RunContext) -> Unmet | None:
    feature = "levels will not be exported"
    return preconditions.first_unmet(
        preconditions.setting("levels path", ctx.cfg.levels_dir, feature),
        preconditions.tool("Lunar Magic", ctx.cfg.lunar_magic_path, feature),
    )


def _build_levels(inputs, *, instance_id: str):
    def _action(ctx: RunContext) -> dict[str, str]:
        assert ctx.cfg.output_rom is not None and ctx.cfg.levels_dir is not None
        os.makedirs(ctx.cfg.levels_dir, exist_ok=True)
        prefix = os.path.join(ctx.cfg.levels_dir, LEVEL_FILE_PREFIX)
        lunar_magic(ctx, "-ExportMultLevels", ctx.cfg.output_rom, prefix)
        ctx.logger.info("Exported levels to '%s'", ctx.cfg.levels_dir)
        return {"path": ctx.cfg.levels_dir}

    return make_action_stage_block(instance_id, _action)


LEVELS = StageRef(
    id="save.levels",
    builder=_build_levels,
    doc="Export every modified level as .mwl into the levels directory.",
    tags=("save", "lunar_magic", "levels"),
    precondition=_levels_ready,
)
