"""Lunar Magic imports into the temp ROM."""

from __future__ import annotations

from pipelinekit import ActionStep, Block, StageRef, Unmet
from rom_builder.framework import artifacts, preconditions
from rom_builder.framework.runtime import RunContext
from rom_builder.stages._shared import flips, lunar_magic, make_action_stage_block

# Transfers pulled from the global data ROM, in order.
GLOBAL_DATA_TRANSFERS: tuple[tuple[str, str], ...] = (
    ("overworld", "-TransferOverworld"),
    ("global_exanimation", "-TransferLevelGlobalExAnim"),
    ("title_screen", "-TransferTitleScreen"),
    ("credits", "-TransferCredits"),
)


def _asset_import(
    *,
    stage_id: str,
    doc: str,
    flag: str,
    label: str,
    what: str,
    attr: str,
    tag: str,
) -> StageRef:
    """A stage running `lm <flag> <temp> <asset>` when `<attr>` is configured and present."""

    feature = f"no {what} will be imported"

    def _ready(ctx: RunContext) -> Unmet | None:
        return preconditions.first_unmet(
            preconditions.existing_file(label, getattr(ctx.cfg, attr), feature),
            preconditions.tool("Lunar Magic", ctx.cfg.lunar_magic_path, feature),
        )

    def _build(inputs, *, instance_id: str):
        def _action(ctx: RunContext) -> None:
            assert ctx.cfg.temp_rom is not None
            lunar_magic(ctx, flag, ctx.cfg.temp_rom, getattr(ctx.cfg, attr))
            ctx.logger.info("%s import success", what.capitalize())

        return make_action_stage_block(instance_id, _action)

    return StageRef(
        id=stage_id,
        builder=_build,
        doc=doc,
        tags=("build", "lunar_magic", tag),
        precondition=_ready,
    )


def _build_graphics(inputs, *, instance_id: str):
    def _action(ctx: RunContext) -> None:
        assert ctx.cfg.temp_rom is not None
        lunar_magic(ctx, "-ImportAllGraphics", ctx.cfg.temp_rom)
        ctx.logger.info("Graphics import success")

    return make_action_stage_block(instance_id, _action)


GRAPHICS = StageRef(
    id="build.graphics",
    builder=_build_graphics,
    doc="Import all graphics and ExGraphics next to the ROM.",
    tags=("build", "lunar_magic", "graphics"),
    precondition=preconditions.lunar_magic("no graphics will be imported"),
)

MAP16 = _asset_import(
    stage_id="build.map16",
    doc="Import the full map16 table.",
    flag="-ImportAllMap16",
    label="map16 path",
    what="map16",
    attr="map16_path",
    tag="map16",
)

TITLE_MOVES = _asset_import(
    stage_id="build.title_moves",
    doc="Import the title screen demo movement.",
    flag="-ImportTitleMoves",
    label="title moves path",
    what="title moves",
    attr="title_moves_path",
    tag="title_moves",
)

SHARED_PALETTE = _asset_import(
    stage_id="build.shared_palette",
    doc="Import the shared palette.",
    flag="-ImportSharedPalette",
    label="shared palette path",
    what="shared palette",
    attr="shared_palette_path",
    tag="palette",
)


def _global_data_ready(ctx: RunContext) -> Unmet | None:
    feature = "no global data will be imported"
    return preconditions.first_unmet(
        preconditions.existing_file("global data patch", ctx.cfg.global_data_path, feature),
        preconditions.tool("Flips", ctx.cfg.flips_path, feature),
        preconditions.tool("Lunar Magic", ctx.cfg.lunar_magic_path, feature),
    )


def _build_global_data(inputs, *, instance_id: str):
    def _run(ctx: RunContext) -> dict[str, object]:
        cfg = ctx.cfg
        assert cfg.temp_rom is not None and cfg.clean_rom is not None
        assert cfg.global_data_path is not None
        scratch = artifacts.scratch_path_for(cfg.temp_rom, "global_data")
        with artifacts.scratch_artifact(scratch):
            flips(ctx, "--apply", cfg.global_data_path, cfg.clean_rom, scratch)
            for name, flag in GLOBAL_DATA_TRANSFERS:
                lunar_magic(ctx, flag, cfg.temp_rom, scratch)
                ctx.logger.info("Transferred %s", name.replace("_", " "))
        return {"transfers": [name for name, _flag in GLOBAL_DATA_TRANSFERS]}

    return Block(
        name=instance_id,
        nodes=[ActionStep(name="apply_and_transfer", fn=_run)],
    )


GLOBAL_DATA = StageRef(
    id="build.global_data",
    builder=_build_global_data,
    doc="Apply the global data patch to a scratch copy of the clean ROM and transfer overworld, ExAnimation, title screen and credits from it.",
    tags=("build", "lunar_magic", "flips", "global_data"),
    precondition=_global_data_ready,
)


def _levels_ready(ctx: RunContext) -> Unmet | None:
    feature = "no levels will be imported"
    return preconditions.first_unmet(
        preconditions.existing_dir("levels path", ctx.cfg.levels_dir, feature),
        preconditions.tool("Lunar Magic", ctx.cfg.lunar_magic_path, feature),
    )


def _build_levels(inputs, *, instance_id: str):
    def _action(ctx: RunContext) -> None:
        assert ctx.cfg.temp_rom is not None and ctx.cfg.levels_dir is not None
        lunar_magic(ctx, "-ImportMultLevels", ctx.cfg.temp_rom, ctx.cfg.levels_dir)
        ctx.logger.info("Levels import success")

    return make_action_stage_block(instance_id, _action)


LEVELS = StageRef(
    id="build.levels",
    builder=_build_levels,
    doc="Import every .mwl file in the levels directory.",
    tags=("build", "lunar_magic", "levels"),
    precondition=_levels_ready,
)
