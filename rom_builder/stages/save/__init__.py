from __future__ import annotations

from rom_builder.stages.save.exports import GLOBAL_DATA, LEVELS, MAP16, SHARED_PALETTE, TITLE_MOVES

__all_stages__ = [
    GLOBAL_DATA,
    MAP16,
    SHARED_PALETTE,
    TITLE_MOVES,
    LEVELS,
]
