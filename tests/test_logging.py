from pathlib import Path

from rom_builder.foundation.logging_utils import close_logger, setup_operational_logger


def test_operational_log_is_utf8_file(tmp_path: Path):
    logger, log_file = setup_operational_logger(str(tmp_path), "unit", level="WARNING")
    try:
        logger.debug("Patch → applied")
        logger.info("Level café imported")
    finally:
        close_logger(logger)

    assert log_file == str(tmp_path / "unit_oplog.log")
    content = Path(log_file).read_text(encoding="utf-8")
    assert "| DEBUG | Patch → applied" in content
    assert "| INFO | Level café imported" in content


def test_logger_without_log_dir_has_only_console_handler():
    logger, log_file = setup_operational_logger(None, "console_only")
    try:
        assert log_file is None
        assert len(logger.handlers) == 1
        assert logger.propagate is False
    finally:
        close_logger(logger)
    assert logger.handlers == []


def test_setup_twice_does_not_duplicate_handlers(tmp_path: Path):
    setup_operational_logger(str(tmp_path), "again")
    logger, _log_file = setup_operational_logger(str(tmp_path), "again")
    try:
        assert len(logger.handlers) == 2
    finally:
        close_logger(logger)
