"""Execution engine for Block/ActionStep trees.

This module is intentionally app-agnostic and must not import `rom_builder.*`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Literal, Protocol, TypeAlias

UnmetCode: TypeAlias = Literal["not_configured", "missing_path", "tool_not_found"]
ALLOWED_UNMET_CODES: tuple[str, ...] = ("not_configured", "missing_path", "tool_not_found")


def utc_now_iso8601() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class FlowContext(Protocol):
    logger: logging.Logger
    outputs: dict[str, Any]
    steps: list[dict[str, Any]]


@dataclass(frozen=True)
class Unmet:
    """Why a block's precondition did not hold."""

    code: UnmetCode
    message: str

    def __post_init__(self) -> None:
        if self.code not in ALLOWED_UNMET_CODES:
            raise ValueError(f"Invalid unmet code: {self.code}")
        if not isinstance(self.message, str) or not self.message.strip():
            raise ValueError("Unmet message cannot be empty")


Precondition: TypeAlias = Callable[[FlowContext], "Unmet | None"]


class PreconditionError(Exception):
    """A required block's precondition was not satisfied."""

    def __init__(self, unmet: Unmet, *, path: str) -> None:
        super().__init__(unmet.message)
        self.unmet = unmet
        self.path = path

    @property
    def code(self) -> str:
        return self.unmet.code


@dataclass(frozen=True)
class ActionStep:
    """Pure-Python glue execution node."""

    name: str | None
    fn: Callable[[FlowContext], Any]
    capture_key: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.name is not None:
            if not isinstance(self.name, str):
                raise TypeError(
                    f"Action name must be a string or None (type={type(self.name).__name__})"
                )
            name = self.name.strip()
            if not name:
                raise ValueError("Action name cannot be empty")
            object.__setattr__(self, "name", name)

        if not callable(self.fn):
            raise TypeError(f"Action fn must be callable (type={type(self.fn).__name__})")

        if self.capture_key is not None:
            if not isinstance(self.capture_key, str):
                raise TypeError(
                    f"Action capture_key must be a string or None (type={type(self.capture_key).__name__})"
                )
            capture_key = self.capture_key.strip()
            if not capture_key:
                raise ValueError("Action capture_key cannot be empty")
            object.__setattr__(self, "capture_key", capture_key)

        if not isinstance(self.meta, dict):
            raise TypeError(f"Action meta must be a dict (type={type(self.meta).__name__})")


@dataclass(frozen=True)
class Block:
    name: str | None = None
    nodes: list["Node"] = field(default_factory=list)
    precondition: Precondition | None = None
    required: bool = True
    meta: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.name is not None:
            if not isinstance(self.name, str):
                raise TypeError(
                    f"Block name must be a string or None (type={type(self.name).__name__})"
                )
            name = self.name.strip()
            if not name:
                raise ValueError("Block name cannot be empty")
            object.__setattr__(self, "name", name)
        if self.precondition is not None and not callable(self.precondition):
            raise TypeError(
                f"Block precondition must be callable or None (type={type(self.precondition).__name__})"
            )
        if not isinstance(self.required, bool):
            raise TypeError(f"Block required must be a bool (type={type(self.required).__name__})")
        if not isinstance(self.meta, dict):
            raise TypeError(f"Block meta must be a dict (type={type(self.meta).__name__})")


Node: TypeAlias = Block | ActionStep


class StepRecorder(Protocol):
    def on_step_start(
        self,
        ctx: FlowContext,
        path: str,
        **metrics: Any,
    ) -> None:
        ...

    def on_step_end(self, ctx: FlowContext, record: dict[str, Any]) -> None:
        ...

    def on_step_skip(self, ctx: FlowContext, record: dict[str, Any]) -> None:
        ...

    def on_step_error(
        self, ctx: FlowContext, path: str, step_name: str, exc: Exception
    ) -> None:
        ...


class DefaultStepRecorder:
    def on_step_start(
        self,
        ctx: FlowContext,
        path: str,
        **metrics: Any,
    ) -> None:
        tokens: list[str] = []
        node_type = metrics.get("node_type")
        if isinstance(node_type, str) and node_type.strip():
            tokens.append(f"type={node_type.strip()}")

        stage_id = metrics.get("stage_id")
        if isinstance(stage_id, str) and stage_id.strip():
            tokens.append(f"stage_id={stage_id.strip()}")

        doc = metrics.get("doc")
        if isinstance(doc, str) and doc.strip():
            tokens.append(f"doc={json.dumps(doc.strip(), ensure_ascii=False)}")

        if tokens:
            ctx.logger.info("Step: %s (%s)", path, ", ".join(tokens))
        else:
            ctx.logger.info("Step: %s", path)

    def on_step_end(self, ctx: FlowContext, record: dict[str, Any]) -> None:
        ctx.steps.append(record)
        path = record.get("path", "<unknown>")
        meta = record.get("meta") if isinstance(record.get("meta"), dict) else {}
        stage_id = meta.get("stage_id")
        if isinstance(stage_id, str) and stage_id.strip():
            ctx.logger.info("Completed %s (stage_id=%s)", path, stage_id.strip())
        else:
            ctx.logger.info("Completed %s", path)

    def on_step_skip(self, ctx: FlowContext, record: dict[str, Any]) -> None:
        ctx.steps.append(record)
        ctx.logger.info("Skipped %s: %s", record.get("path", "<unknown>"), record.get("reason"))

    def on_step_error(self, ctx: FlowContext, path: str, step_name: str, exc: Exception) -> None:
        ctx.logger.error("Step failed: %s (%s)", path, exc)


class NullStepRecorder:
    def on_step_start(
        self,
        ctx: FlowContext,
        path: str,
        **metrics: Any,
    ) -> None:
        return

    def on_step_end(self, ctx: FlowContext, record: dict[str, Any]) -> None:
        ctx.steps.append(record)

    def on_step_skip(self, ctx: FlowContext, record: dict[str, Any]) -> None:
        ctx.steps.append(record)

    def on_step_error(self, ctx: FlowContext, path: str, step_name: str, exc: Exception) -> None:
        return


class StageRunner:
    """Runs a node tree strictly in order, stopping at the first failure."""

    def __init__(self, *, recorder: StepRecorder | None = None):
        self._recorder = recorder or DefaultStepRecorder()
        self._validate_recorder(self._recorder)

    def run(self, ctx: FlowContext, node: Node) -> None:
        root_name = self._effective_root_name(node)
        self._execute_node(ctx, node, path_segments=[root_name], inherited_meta=None)

    def run_stages(self, ctx: FlowContext, blocks: list[Block], *, name: str = "pipeline") -> None:
        self.run(ctx, Block(name=name, nodes=list(blocks)))

    def _effective_root_name(self, node: Node) -> str:
        if isinstance(node, Block):
            return node.name or "pipeline"
        return node.name or "action_01"

    def _effective_child_name(self, node: Node, *, index: int) -> str:
        if isinstance(node, ActionStep):
            return node.name or f"action_{index + 1:02d}"
        return node.name or f"block_{index + 1:02d}"

    def _node_type(self, node: Node) -> str:
        if isinstance(node, Block):
            return "block"
        return "action"

    def _merge_meta(
        self, inherited_meta: dict[str, Any] | None, node_meta: dict[str, Any] | None
    ) -> dict[str, Any]:
        if not inherited_meta and not node_meta:
            return {}
        merged: dict[str, Any] = {}
        if inherited_meta:
            merged.update(inherited_meta)
        if node_meta:
            merged.update(node_meta)
        return merged

    def _infer_stage_id(self, path_segments: list[str]) -> str | None:
        if len(path_segments) >= 2:
            candidate = str(path_segments[1] or "").strip()
            return candidate or None
        return None

    def _callable_source(self, fn: Any) -> str | None:
        if not callable(fn):
            return None
        module = getattr(fn, "__module__", None) or "<unknown_module>"
        qualname = (
            getattr(fn, "__qualname__", None)
            or getattr(fn, "__name__", None)
            or "<callable>"
        )
        return f"{module}.{qualname}"

    def _json_safe(self, value: Any, *, max_depth: int = 4, max_items: int = 25) -> Any:
        if max_depth <= 0:
            return "<max_depth>"
        if value is None or isinstance(value, (bool, int, float, str)):
            return value
        if isinstance(value, (list, tuple)):
            items = list(value)
            trimmed = items[:max_items]
            out = [
                self._json_safe(item, max_depth=max_depth - 1, max_items=max_items)
                for item in trimmed
            ]
            if len(items) > max_items:
                out.append(f"<{len(items) - max_items} more>")
            return out
        if isinstance(value, dict):
            out: dict[str, Any] = {}
            for idx, (k, v) in enumerate(value.items()):
                if idx >= max_items:
                    out["<more>"] = f"<{len(value) - max_items} more>"
                    break
                out[str(k)] = self._json_safe(v, max_depth=max_depth - 1, max_items=max_items)
            return out
        return repr(value)

    def _validate_recorder(self, recorder: StepRecorder) -> None:
        required = ("on_step_start", "on_step_end", "on_step_skip", "on_step_error")
        for name in required:
            method = getattr(recorder, name, None)
            if method is None or not callable(method):
                raise TypeError(f"Step recorder missing required method: {name}")

    def _attach_pipeline_error(
        self,
        exc: Exception,
        *,
        pipeline_path: str,
        pipeline_node_type: str,
        pipeline_node_name: str,
    ) -> None:
        for attr, value in (
            ("pipeline_path", pipeline_path),
            ("pipeline_node_type", pipeline_node_type),
            ("pipeline_node_name", pipeline_node_name),
        ):
            if hasattr(exc, attr):
                continue
            try:
                setattr(exc, attr, value)
            except Exception:
                pass

    def _validate_sibling_names(
        self, *, block_path: list[str], effective_children: list[str]
    ) -> None:
        seen: set[str] = set()
        duplicates: set[str] = set()
        for name in effective_children:
            if name in seen:
                duplicates.add(name)
            seen.add(name)
        if duplicates:
            raise ValueError(
                f"Duplicate node name(s) in block {'/'.join(block_path)}: {', '.join(sorted(duplicates))}"
            )

    def _execute_node(
        self,
        ctx: FlowContext,
        node: Node,
        *,
        path_segments: list[str],
        inherited_meta: dict[str, Any] | None,
    ) -> None:
        if isinstance(node, ActionStep):
            self._execute_action(
                ctx, node, path_segments=path_segments, inherited_meta=inherited_meta
            )
            return
        self._execute_block(ctx, node, path_segments=path_segments, inherited_meta=inherited_meta)

    def _execute_action(
        self,
        ctx: FlowContext,
        action: ActionStep,
        *,
        path_segments: list[str],
        inherited_meta: dict[str, Any] | None,
    ) -> None:
        pipeline_path = "/".join(path_segments)
        action_name = path_segments[-1] if path_segments else (action.name or "<unnamed>")
        try:
            record_meta = self._merge_meta(inherited_meta, action.meta)
            if "stage_id" not in record_meta:
                stage_id = self._infer_stage_id(path_segments)
                if stage_id:
                    record_meta["stage_id"] = stage_id
            if "source" not in record_meta:
                source = self._callable_source(action.fn)
                if source:
                    record_meta["source"] = source

            self._recorder.on_step_start(
                ctx,
                pipeline_path,
                node_type="action",
                stage_id=record_meta.get("stage_id"),
                doc=record_meta.get("doc"),
            )

            result = action.fn(ctx)
            if action.capture_key is not None:
                ctx.outputs[action.capture_key] = result

            record: dict[str, Any] = {
                "type": "action",
                "name": action_name,
                "path": pipeline_path,
                "created_at": utc_now_iso8601(),
            }
            if record_meta:
                record["meta"] = self._json_safe(record_meta)
            if result is not None:
                record["result"] = self._json_safe(result)

            self._recorder.on_step_end(ctx, record)
        except Exception as exc:
            try:
                self._recorder.on_step_error(ctx, pipeline_path, action_name, exc)
            except Exception:
                ctx.logger.exception(
                    "Step recorder failed during error handling for %s", pipeline_path
                )
            self._attach_pipeline_error(
                exc,
                pipeline_path=pipeline_path,
                pipeline_node_type="action",
                pipeline_node_name=action_name,
            )
            raise

    def _check_precondition(
        self,
        ctx: FlowContext,
        block: Block,
        *,
        pipeline_path: str,
        block_meta: dict[str, Any],
    ) -> bool:
        """Return True when the block should run."""

        if block.precondition is None:
            return True
        unmet = block.precondition(ctx)
        if unmet is None:
            return True
        if not isinstance(unmet, Unmet):
            raise TypeError(
                f"Precondition for {pipeline_path} returned {type(unmet).__name__}; expected Unmet or None"
            )
        if block.required:
            raise PreconditionError(unmet, path=pipeline_path)

        record: dict[str, Any] = {
            "type": "skip",
            "name": pipeline_path.rsplit("/", 1)[-1],
            "path": pipeline_path,
            "code": unmet.code,
            "reason": unmet.message,
            "created_at": utc_now_iso8601(),
        }
        if block_meta:
            record["meta"] = self._json_safe(block_meta)
        self._recorder.on_step_skip(ctx, record)
        return False

    def _execute_block(
        self,
        ctx: FlowContext,
        block: Block,
        *,
        path_segments: list[str],
        inherited_meta: dict[str, Any] | None,
    ) -> None:
        block_name = path_segments[-1] if path_segments else (block.name or "<unnamed>")
        pipeline_path = "/".join(path_segments)
        try:
            block_meta = self._merge_meta(inherited_meta, block.meta)
            if not self._check_precondition(
                ctx, block, pipeline_path=pipeline_path, block_meta=block_meta
            ):
                return

            effective_children: list[str] = [
                self._effective_child_name(child, index=i) for i, child in enumerate(block.nodes)
            ]
            self._validate_sibling_names(
                block_path=path_segments, effective_children=effective_children
            )

            for child, child_name in zip(block.nodes, effective_children, strict=False):
                self._execute_node(
                    ctx,
                    child,
                    path_segments=[*path_segments, child_name],
                    inherited_meta=block_meta,
                )
        except PreconditionError as exc:
            if exc.path == pipeline_path:
                try:
                    self._recorder.on_step_error(ctx, pipeline_path, block_name, exc)
                except Exception:
                    ctx.logger.exception(
                        "Step recorder failed during error handling for %s", pipeline_path
                    )
            self._attach_pipeline_error(
                exc,
                pipeline_path=pipeline_path,
                pipeline_node_type="block",
                pipeline_node_name=block_name,
            )
            raise
        except Exception as exc:
            self._attach_pipeline_error(
                exc,
                pipeline_path=pipeline_path,
                pipeline_node_type="block",
                pipeline_node_name=block_name,
            )
            raise
