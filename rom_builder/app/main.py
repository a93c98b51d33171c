from __future__ import annotations

import os

from rom_builder.app.session import Session
from rom_builder.foundation.config_io import load_settings
from rom_builder.foundation.logging_utils import configure_stdio_utf8, setup_operational_logger
from rom_builder.framework.records import generate_unique_id
from rom_builder.framework.settings import Settings


def open_session(*, settings_path: str | None = None, start_dir: str | None = None) -> Session:
    """Load settings, start the operational log and return a ready session."""

    configure_stdio_utf8()
    session_id = generate_unique_id()

    try:
        raw, meta = load_settings(settings_path=settings_path, start_dir=start_dir)
        settings, warnings = Settings.from_dict(raw, root=meta.get("root"))
    except Exception:
        # Only fallback: keep a log of why the session never started.
        fallback_logger, fallback_log_path = setup_operational_logger(os.getcwd(), session_id)
        fallback_logger.exception(
            "Failed to load settings. Logging to fallback file at %s", fallback_log_path
        )
        raise

    logger, log_file = setup_operational_logger(
        settings.log_dir, session_id, level=settings.log_level
    )
    settings.log_warnings(logger, warnings)
    logger.info(
        "Settings loaded (mode=%s, paths=%s); config files: %s",
        meta.get("mode"),
        meta.get("paths"),
        ", ".join(settings.config_paths),
    )
    if log_file:
        logger.info("Operational log: %s", log_file)

    return Session(settings, logger, session_id=session_id)
