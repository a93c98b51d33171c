"""Precondition helpers shared by stages.

Each helper returns an `Unmet` describing the first missing requirement, or
None when the requirement holds. `feature` completes sentences like
"No path to Asar provided, <feature>.".
"""

from __future__ import annotations

import os
from typing import Callable

from pipelinekit import Unmet
from rom_builder.framework.runtime import RunContext

Check = Callable[[RunContext], "Unmet | None"]


def setting(label: str, value: str | None, feature: str) -> Unmet | None:
    if value is None or not value.strip():
        return Unmet("not_configured", f"No {label} provided, {feature}.")
    return None


def existing_file(label: str, value: str | None, feature: str) -> Unmet | None:
    unmet = setting(label, value, feature)
    if unmet is not None:
        return unmet
    assert value is not None
    if not os.path.isfile(value):
        return Unmet("missing_path", f"{label[0].upper()}{label[1:]} '{value}' does not exist, {feature}.")
    return None


def existing_dir(label: str, value: str | None, feature: str) -> Unmet | None:
    unmet = setting(label, value, feature)
    if unmet is not None:
        return unmet
    assert value is not None
    if not os.path.isdir(value):
        return Unmet("missing_path", f"{label[0].upper()}{label[1:]} '{value}' does not exist, {feature}.")
    return None


def tool(name: str, value: str | None, feature: str) -> Unmet | None:
    if value is None or not value.strip():
        return Unmet("not_configured", f"No path to {name} provided, {feature}.")
    if not os.path.isfile(value):
        return Unmet("tool_not_found", f"{name} not found at '{value}', {feature}.")
    return None


def first_unmet(*results: Unmet | None) -> Unmet | None:
    for result in results:
        if result is not None:
            return result
    return None


def all_of(*checks: Check) -> Check:
    def _check(ctx: RunContext) -> Unmet | None:
        for check in checks:
            unmet = check(ctx)
            if unmet is not None:
                return unmet
        return None

    return _check


def clean_rom_ready(ctx: RunContext) -> Unmet | None:
    feature = "cannot build"
    return first_unmet(
        existing_file("input ROM path", ctx.cfg.clean_rom, feature),
        setting("output ROM path", ctx.cfg.output_rom, feature),
        setting("temp ROM path", ctx.cfg.temp_rom, feature),
    )


def output_rom_ready(ctx: RunContext) -> Unmet | None:
    unmet = setting("output ROM path", ctx.cfg.output_rom, f"cannot {ctx.operation}")
    if unmet is not None:
        return unmet
    if not os.path.isfile(ctx.cfg.output_rom or ""):
        return Unmet(
            "missing_path",
            f"Output ROM '{ctx.cfg.output_rom}' does not exist, build it before running {ctx.operation}.",
        )
    return None


def lunar_magic(feature: str) -> Check:
    def _check(ctx: RunContext) -> Unmet | None:
        return tool("Lunar Magic", ctx.cfg.lunar_magic_path, feature)

    return _check


def flips(feature: str) -> Check:
    def _check(ctx: RunContext) -> Unmet | None:
        return tool("Flips", ctx.cfg.flips_path, feature)

    return _check
