from __future__ import annotations

import logging

import pytest

from skyflip import logging_config


@pytest.fixture
def clean_root_logger():
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    for handler in saved_handlers:
        root.removeHandler(handler)

    yield root

    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)


def test_console_only_without_service_name(clean_root_logger, monkeypatch):
    monkeypatch.setenv("SKYFLIP_LOG_LEVEL", "warning")

    logging_config.setup_logging()

    assert len(clean_root_logger.handlers) == 1
    assert clean_root_logger.handlers[0].level == logging.WARNING


def test_file_handler_written_under_logs_dir(clean_root_logger, tmp_path, monkeypatch):
    monkeypatch.delenv("LOG_APPEND", raising=False)

    logging_config.setup_logging("skyflip", level="INFO", logs_dir=tmp_path)

    log_file = tmp_path / "skyflip.log"
    assert log_file.exists()
    assert len(clean_root_logger.handlers) == 2
    logging.getLogger("skyflip.test").info("hello from test")
    for handler in clean_root_logger.handlers:
        handler.flush()
    assert "hello from test" in log_file.read_text()


def test_log_append_keeps_previous_content(clean_root_logger, tmp_path, monkeypatch):
    log_file = tmp_path / "skyflip.log"
    log_file.write_text("previous run\n")
    monkeypatch.setenv("LOG_APPEND", "1")

    logging_config.setup_logging("skyflip", level="INFO", logs_dir=tmp_path)

    assert log_file.read_text().startswith("previous run")


def test_reconfiguring_replaces_handlers(clean_root_logger, tmp_path):
    logging_config.setup_logging(level="INFO")
    logging_config.setup_logging(level="INFO")

    assert len(clean_root_logger.handlers) == 1


def test_noisy_libraries_raised_to_warning(clean_root_logger):
    logging_config.setup_logging(level="DEBUG")

    assert logging.getLogger("aiohttp").level == logging.WARNING
    assert logging.getLogger("websockets").level == logging.WARNING


def test_unknown_level_rejected(clean_root_logger):
    with pytest.raises(ValueError):
        logging_config.setup_logging(level="chatty")
