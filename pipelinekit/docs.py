"""`pipelinekit` invariants and boundaries.

Generic invariants:

1) `pipelinekit` must not import `rom_builder.*`.
2) `pipelinekit` provides the engine primitives (gated block/action execution +
   recording) and a stage authoring kit (StageRef/StageRegistry).
3) Blocks run strictly in declaration order. A required block whose precondition
   is unmet aborts the run with `PreconditionError`; an optional one is recorded
   as a skip and the run continues. Any exception raised by an action aborts the
   run and no later block executes.
4) `pipelinekit` does not know what a precondition checks or what an action does;
   those conventions live in the consuming application.
"""
