import logging

from logging_config import setup_logging, LOGGER_NAME


def test_setup_logging_does_not_duplicate_handlers(tmp_path):
    log_file = tmp_path / "panel.log"
    setup_logging(logging.DEBUG, str(log_file))
    logger = setup_logging(logging.DEBUG, str(log_file))
    assert logger.name == LOGGER_NAME
    assert len(logger.handlers) == 2

    logging.getLogger("asset_panel.database").info("hello from database")
    for handler in logger.handlers:
        handler.flush()
    assert "asset_panel.database - INFO - hello from database" in log_file.read_text()
    setup_logging(logging.WARNING)
