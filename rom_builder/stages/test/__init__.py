from __future__ import annotations

from rom_builder.stages.test.emulator import STAGE as LAUNCH_EMULATOR
from rom_builder.stages.test.level import STAGE as STAGE_LEVEL

__all_stages__ = [
    STAGE_LEVEL,
    LAUNCH_EMULATOR,
]
