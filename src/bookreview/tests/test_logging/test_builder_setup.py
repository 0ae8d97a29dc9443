# src/bookreview/tests/test_logging/test_builder_setup.py
import logging
from types import SimpleNamespace

from bookreview.core.logging.builder import make_dict_config, setup_logging
from bookreview.exceptions.classifier import DIAGNOSTICS_LOGGER


def make_settings(**overrides):
    # Duck-typed settings: the builder only reads attributes.
    values = dict(
        ENV="development",
        LOG_FORMAT="json",
        LOG_LEVEL="INFO",
        LOG_TO_STDOUT=False,
        LOG_DIR=None,
        LOG_MAX_BYTES=1000,
        LOG_BACKUP_COUNT=1,
        ENABLE_SQL_LOGGING=False,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_file_handlers_when_not_logging_to_stdout(tmp_path):
    cfg = make_dict_config(make_settings(LOG_DIR=tmp_path))
    assert set(cfg["handlers"]) == {"console", "file", "error_file"}
    assert cfg["handlers"]["file"]["filename"] == str(tmp_path / "app.log")
    assert "json" in cfg["formatters"]


def test_stdout_mode_uses_error_console():
    cfg = make_dict_config(make_settings(LOG_TO_STDOUT=True))
    assert set(cfg["handlers"]) == {"console", "error_console"}
    assert cfg["loggers"][""]["handlers"] == ["console", "error_console"]


def test_diagnostics_logger_and_raw_error_redaction_follow_env():
    dev = make_dict_config(make_settings(LOG_TO_STDOUT=True))
    prod = make_dict_config(make_settings(LOG_TO_STDOUT=True, ENV="production"))

    assert DIAGNOSTICS_LOGGER in dev["loggers"]
    assert dev["filters"]["redact"]["keep_raw_errors"] is True
    assert prod["filters"]["redact"]["keep_raw_errors"] is False


def test_sql_logging_toggle():
    quiet = make_dict_config(make_settings(LOG_TO_STDOUT=True))
    loud = make_dict_config(make_settings(LOG_TO_STDOUT=True, ENABLE_SQL_LOGGING=True))
    assert quiet["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"
    assert loud["loggers"]["sqlalchemy.engine"]["level"] == "DEBUG"


def test_setup_logging_creates_log_dir(tmp_path, test_settings):
    settings = make_settings(LOG_DIR=tmp_path / "logs")
    assert not settings.LOG_DIR.exists()
    try:
        setup_logging(settings)
        assert settings.LOG_DIR.exists()
        logging.getLogger("bookreview.test").error("written to file")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "written to file" in (settings.LOG_DIR / "errors.log").read_text()
    finally:
        # restore the session-wide configuration
        setup_logging(test_settings)
