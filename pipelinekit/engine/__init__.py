"""Engine primitives for building and running gated Block/ActionStep trees."""

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
    "StageRunner",
    "StepRecorder",
    "Unmet",
    "UnmetCode",
    "utc_now_iso8601",
]
