"""Per-operation run records written next to the operational log."""

from __future__ import annotations

import json
import os
import uuid
from datetime import datetime
from typing import Any, Mapping

from pipelinekit import utc_now_iso8601
from rom_builder.framework.runtime import RunContext

RUN_RECORD_SCHEMA_VERSION = 1


def generate_unique_id() -> str:
    unique_id = uuid.uuid4().hex[:8]
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"{timestamp}_{unique_id}"


def build_run_record(ctx: RunContext, *, success: bool) -> dict[str, Any]:
    cfg = ctx.cfg
    payload: dict[str, Any] = {
        "schema_version": RUN_RECORD_SCHEMA_VERSION,
        "run_id": ctx.run_id,
        "operation": ctx.operation,
        "success": success,
        "created_at": ctx.created_at,
        "finished_at": utc_now_iso8601(),
        "config_sources": list(cfg.sources),
        "artifacts": {
            "clean": cfg.clean_rom,
            "temp": cfg.temp_rom,
            "output": cfg.output_rom,
            "package": cfg.package_path,
        },
        "steps": list(ctx.steps),
        "skipped": [step.get("path") for step in ctx.skipped],
    }
    unknown = cfg.unknown_keys()
    if unknown:
        payload["unknown_config_keys"] = list(unknown)
    if ctx.error is not None:
        payload["error"] = ctx.error
    return payload


def write_run_record(path: str, ctx: RunContext, *, success: bool) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8") as file:
        json.dump(build_run_record(ctx, success=success), file, ensure_ascii=False, indent=2)
        file.write("\n")


def append_run_index_entry(path: str, entry: Mapping[str, Any]) -> None:
    """Append a single JSON object to a JSONL run index file."""

    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "a", encoding="utf-8") as handle:
        handle.write(json.dumps(dict(entry), ensure_ascii=False))
        handle.write("\n")
