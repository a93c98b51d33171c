"""Reusable pipeline kernel (engine primitives + stage authoring kit).

This package is intentionally independent of `rom_builder.*`. Anything tied to
ROM images, external tools or the configuration text format must live in the
consuming application.
"""

from pipelinekit.engine.pipeline import (
    ALLOWED_UNMET_CODES,
    ActionStep,
    Block,
    DefaultStepRecorder,
    FlowContext,
    Node,
    NullStepRecorder,
    Precondition,
    PreconditionError,
    StageRunner,
    StepRecorder,
    Unmet,
    UnmetCode,
    utc_now_iso8601,
)
from pipelinekit.stage_registry import StageRegistry
from pipelinekit.stage_types import StageBuilder, StageRef

__all__ = [
    "ALLOWED_UNMET_CODES",
    "ActionStep",
    "Block",
    "DefaultStepRecorder",
    "FlowContext",
    "Node",
    "NullStepRecorder",
    "Precondition",
    "PreconditionError",
    "StageBuilder",
    "StageRef",
    "StageRegistry",
    "StageRunner",
    "StepRecorder",
    "Unmet",
    "UnmetCode",
    "utc_now_iso8601",
]
