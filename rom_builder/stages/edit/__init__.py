from __future__ import annotations

from rom_builder.stages.edit.editor import STAGE as LAUNCH_EDITOR

__all_stages__ = [
    LAUNCH_EDITOR,
]
