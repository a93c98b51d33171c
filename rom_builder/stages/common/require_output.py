from __future__ import annotations

import os

from pipelinekit import StageRef
from rom_builder.framework import preconditions
from rom_builder.framework.runtime import RunContext
from rom_builder.stages._shared import make_action_stage_block

KIND_ID = "common.require_output"


def _build(inputs, *, instance_id: str):
    def _action(ctx: RunContext) -> dict[str, object]:
        path = ctx.cfg.output_rom or ""
        ctx.logger.info("Using output ROM '%s'", path)
        return {"output": path, "size": os.path.getsize(path)}

    return make_action_stage_block(instance_id, _action)


STAGE = StageRef(
    id=KIND_ID,
    builder=_build,
    doc="Require a previously built output ROM.",
    tags=("common",),
    precondition=preconditions.output_rom_ready,
    required=True,
)
