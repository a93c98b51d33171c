from __future__ import annotations

import os

from pipelinekit import StageRef
from rom_builder.framework import preconditions
from rom_builder.framework.runtime import RunContext
from rom_builder.stages._shared import make_action_stage_block

KIND_ID = "edit.launch_editor"


def _build(inputs, *, instance_id: str):
    def _action(ctx: RunContext) -> dict[str, object]:
        cfg = ctx.cfg
        assert cfg.lunar_magic_path is not None and cfg.output_rom is not None
        if ctx.editor is None:
            raise RuntimeError(f"{KIND_ID} requires an editor process slot")
        proc = ctx.editor.replace(
            [cfg.lunar_magic_path, cfg.output_rom],
            cwd=os.path.dirname(cfg.lunar_magic_path),
        )
        return {"pid": proc.pid}

    return make_action_stage_block(instance_id, _action)


STAGE = StageRef(
    id=KIND_ID,
    builder=_build,
    doc="Open the output ROM in Lunar Magic, closing a previous instance first.",
    tags=("edit", "lunar_magic"),
    precondition=preconditions.lunar_magic("cannot open the editor"),
    required=True,
)
