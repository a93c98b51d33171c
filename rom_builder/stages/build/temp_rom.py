"""Stages that stage the working ROM: reset, create, commit, side files."""

from __future__ import annotations

from pipelinekit import StageRef, Unmet
from rom_builder.framework import artifacts, preconditions
from rom_builder.framework.runtime import RunContext
from rom_builder.stages._shared import flips, make_action_stage_block

RESET_ID = "build.reset_temp"
CREATE_ID = "build.create_temp"
COMMIT_ID = "build.commit"
SIDE_FILES_ID = "build.side_files"


def _initial_patch_ready(ctx: RunContext) -> Unmet | None:
    if ctx.cfg.initial_patch is None:
        return None
    feature = "cannot apply the initial patch"
    return preconditions.first_unmet(
        preconditions.existing_file("initial patch", ctx.cfg.initial_patch, feature),
        preconditions.tool("Flips", ctx.cfg.flips_path, feature),
    )


def _build_reset(inputs, *, instance_id: str):
    def _action(ctx: RunContext) -> dict[str, object]:
        assert ctx.cfg.temp_rom is not None
        removed = artifacts.remove_if_exists(ctx.cfg.temp_rom)
        if removed:
            ctx.logger.info("Deleted stale temp ROM '%s'", ctx.cfg.temp_rom)
        return {"removed": removed}

    return make_action_stage_block(instance_id, _action)


def _build_create(inputs, *, instance_id: str):
    def _action(ctx: RunContext) -> dict[str, object]:
        cfg = ctx.cfg
        assert cfg.clean_rom is not None and cfg.temp_rom is not None
        if cfg.initial_patch is not None:
            ctx.logger.info("Applying initial patch '%s'", cfg.initial_patch)
            artifacts.ensure_parent_dir(cfg.temp_rom)
            flips(ctx, "--apply", cfg.initial_patch, cfg.clean_rom, cfg.temp_rom)
            return {"mode": "patch", "patch": cfg.initial_patch}
        artifacts.copy_artifact(cfg.clean_rom, cfg.temp_rom)
        ctx.logger.info("Copied clean ROM to temp ROM '%s'", cfg.temp_rom)
        return {"mode": "copy"}

    return make_action_stage_block(instance_id, _action)


def _build_commit(inputs, *, instance_id: str):
    def _action(ctx: RunContext) -> dict[str, object]:
        assert ctx.cfg.temp_rom is not None and ctx.cfg.output_rom is not None
        artifacts.commit_artifact(ctx.cfg.temp_rom, ctx.cfg.output_rom)
        ctx.logger.info("ROM patched successfully to '%s'", ctx.cfg.output_rom)
        return {"output": ctx.cfg.output_rom}

    return make_action_stage_block(instance_id, _action)


def _build_side_files(inputs, *, instance_id: str):
    def _action(ctx: RunContext) -> dict[str, object]:
        assert ctx.cfg.temp_rom is not None and ctx.cfg.output_rom is not None
        moves = artifacts.relocate_side_files(ctx.cfg.temp_rom, ctx.cfg.output_rom)
        for src, dest in moves:
            ctx.logger.info("Moved '%s' to '%s'", src, dest)
        return {"moved": [dest for _src, dest in moves]}

    return make_action_stage_block(instance_id, _action)


def _temp_and_output(ctx: RunContext) -> Unmet | None:
    feature = "cannot commit the build"
    return preconditions.first_unmet(
        preconditions.setting("temp ROM path", ctx.cfg.temp_rom, feature),
        preconditions.setting("output ROM path", ctx.cfg.output_rom, feature),
    )


RESET_TEMP = StageRef(
    id=RESET_ID,
    builder=_build_reset,
    doc="Delete the temp ROM left over from a previous build.",
    tags=("build", "artifacts"),
    precondition=preconditions.clean_rom_ready,
    required=True,
)

CREATE_TEMP = StageRef(
    id=CREATE_ID,
    builder=_build_create,
    doc="Create the temp ROM from the clean ROM (initial patch or plain copy).",
    tags=("build", "artifacts", "flips"),
    precondition=preconditions.all_of(preconditions.clean_rom_ready, _initial_patch_ready),
    required=True,
)

COMMIT = StageRef(
    id=COMMIT_ID,
    builder=_build_commit,
    doc="Move the finished temp ROM over the output ROM.",
    tags=("build", "artifacts"),
    precondition=_temp_and_output,
    required=True,
)

SIDE_FILES = StageRef(
    id=SIDE_FILES_ID,
    builder=_build_side_files,
    doc="Rename files generated next to the temp ROM so they follow the output ROM.",
    tags=("build", "artifacts"),
    precondition=_temp_and_output,
    required=True,
)
