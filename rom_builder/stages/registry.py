from __future__ import annotations

from functools import lru_cache

from pipelinekit.stage_registry import StageRegistry
from pipelinekit.stage_types import StageRef


@lru_cache(maxsize=1)
def get_stage_registry() -> StageRegistry:
    # Import side-effect: stage packages expose their `StageRef`s via `__all_stages__`.
    from rom_builder.stages import (  # noqa: PLC0415
        build,
        common,
        edit,
        package,
        save,
        test,
    )

    refs: list[StageRef] = []
    for pkg in (common, build, save, test, package, edit):
        exported = getattr(pkg, "__all_stages__", None)
        if isinstance(exported, (list, tuple)):
            refs.extend(exported)

    return StageRegistry.from_refs(refs)
