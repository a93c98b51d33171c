from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from pipelinekit.engine.pipeline import Block, Precondition


class StageBuilder(Protocol):
    def __call__(self, inputs: Any, *, instance_id: str) -> Block:
        ...


@dataclass(frozen=True)
class StageRef:
    id: str
    builder: StageBuilder
    doc: str | None = None
    tags: tuple[str, ...] = ()
    precondition: Precondition | None = None
    required: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id.strip():
            raise TypeError("StageRef.id must be a non-empty string")
        object.__setattr__(self, "id", self.id.strip())

        if self.doc is not None and (not isinstance(self.doc, str) or not self.doc.strip()):
            raise TypeError("StageRef.doc must be a non-empty string or None")

        if self.tags:
            object.__setattr__(
                self, "tags", tuple(str(tag).strip() for tag in self.tags if str(tag).strip())
            )

        if self.precondition is not None and not callable(self.precondition):
            raise TypeError("StageRef.precondition must be callable or None")
        if not isinstance(self.required, bool):
            raise TypeError("StageRef.required must be a bool")

    def build(self, inputs: Any, *, instance_id: str | None = None) -> Block:
        raw_id = self.id if instance_id is None else instance_id
        if not isinstance(raw_id, str) or not raw_id.strip():
            raise ValueError("instance_id must be a non-empty string")
        normalized_instance_id = raw_id.strip()

        block = self.builder(inputs, instance_id=normalized_instance_id)
        if not isinstance(block, Block):
            raise TypeError(
                f"Stage builder returned non-Block (stage={self.id}, type={type(block).__name__})"
            )
        if block.name != normalized_instance_id:
            raise ValueError(
                "Stage builder returned mismatched Block.name: "
                f"expected={normalized_instance_id} got={block.name}"
            )
        if block.precondition is not None and self.precondition is not None:
            raise ValueError(
                f"Stage builder returned a Block with its own precondition (stage={self.id})"
            )

        next_meta = dict(block.meta)

        existing_kind = next_meta.get("stage_kind")
        if existing_kind is None:
            next_meta["stage_kind"] = self.id
        elif not isinstance(existing_kind, str) or existing_kind.strip() != self.id:
            raise ValueError(
                "Stage builder returned conflicting meta.stage_kind: "
                f"expected={self.id} got={existing_kind!r}"
            )

        next_meta.setdefault("stage_id", normalized_instance_id)
        next_meta["required"] = self.required
        if "doc" not in next_meta and self.doc:
            next_meta["doc"] = self.doc
        if "tags" not in next_meta and self.tags:
            next_meta["tags"] = list(self.tags)

        return Block(
            name=block.name,
            nodes=list(block.nodes),
            precondition=self.precondition or block.precondition,
            required=self.required,
            meta=next_meta,
        )

