from __future__ import annotations

from rom_builder.stages.common.require_output import STAGE as REQUIRE_OUTPUT

__all_stages__ = [
    REQUIRE_OUTPUT,
]
