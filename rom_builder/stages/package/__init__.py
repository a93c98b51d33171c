from __future__ import annotations

from rom_builder.stages.package.create import STAGE as CREATE

__all_stages__ = [
    CREATE,
]
