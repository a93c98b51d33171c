from __future__ import annotations

from pipelinekit import StageRef, Unmet
from rom_builder.framework import artifacts, preconditions
from rom_builder.framework.runtime import RunContext
from rom_builder.stages._shared import flips, make_action_stage_block

KIND_ID = "package.create"


def _ready(ctx: RunContext) -> Unmet | None:
    feature = "cannot create a package"
    return preconditions.first_unmet(
        preconditions.setting("package path", ctx.cfg.package_path, feature),
        preconditions.existing_file("input ROM path", ctx.cfg.clean_rom, feature),
        preconditions.tool("Flips", ctx.cfg.flips_path, feature),
    )


def _build(inputs, *, instance_id: str):
    def _action(ctx: RunContext) -> dict[str, str]:
        cfg = ctx.cfg
        assert cfg.package_path and cfg.clean_rom and cfg.output_rom
        if artifacts.remove_if_exists(cfg.package_path):
            ctx.logger.info("Deleted previous package '%s'", cfg.package_path)
        artifacts.ensure_parent_dir(cfg.package_path)
        flips(ctx, "--create", "--bps", cfg.clean_rom, cfg.output_rom, cfg.package_path)
        ctx.logger.info("Package created at '%s'", cfg.package_path)
        return {"package": cfg.package_path}

    return make_action_stage_block(instance_id, _action)


STAGE = StageRef(
    id=KIND_ID,
    builder=_build,
    doc="Create a distributable BPS patch from the clean ROM to the output ROM.",
    tags=("package", "flips"),
    precondition=_ready,
    required=True,
)
