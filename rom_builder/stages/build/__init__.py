from __future__ import annotations

from rom_builder.stages.build.insertion import BLOCKS, MUSIC, PATCHES, SPRITES, UBERASM
from rom_builder.stages.build.lunar_magic import (
    GLOBAL_DATA,
    GRAPHICS,
    LEVELS,
    MAP16,
    SHARED_PALETTE,
    TITLE_MOVES,
)
from rom_builder.stages.build.temp_rom import COMMIT, CREATE_TEMP, RESET_TEMP, SIDE_FILES

__all_stages__ = [
    RESET_TEMP,
    CREATE_TEMP,
    BLOCKS,
    SPRITES,
    PATCHES,
    UBERASM,
    MUSIC,
    GRAPHICS,
    MAP16,
    TITLE_MOVES,
    SHARED_PALETTE,
    GLOBAL_DATA,
    LEVELS,
    COMMIT,
    SIDE_FILES,
]
