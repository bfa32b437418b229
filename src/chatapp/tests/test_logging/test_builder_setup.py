# src/chatapp/tests/test_logging/test_builder_setup.py
import logging

from chatapp.config.settings import Settings
from chatapp.core.logging.builder import make_dict_config, setup_logging


def make_settings(**overrides) -> Settings:
    values = {
        "LOG_FORMAT": "json",
        "LOG_LEVEL": "INFO",
        "LOG_MAX_BYTES": 1000,
        "LOG_BACKUP_COUNT": 1,
        "ENV": "development",
    }
    values.update(overrides)
    return Settings(**values)


def test_file_handlers_when_not_stdout(tmp_path):
    settings = make_settings(LOG_TO_STDOUT=False, LOG_DIR=tmp_path)

    cfg = make_dict_config(settings)

    assert set(cfg["handlers"]) == {"console", "file", "error_file"}
    assert cfg["handlers"]["file"]["filename"] == str(tmp_path / "app.log")
    assert cfg["handlers"]["error_file"]["formatter"] == "json"
    assert cfg["loggers"][""]["handlers"] == ["console", "file", "error_file"]


def test_stdout_only_mirrors_errors_to_console(tmp_path):
    settings = make_settings(LOG_TO_STDOUT=True, LOG_DIR=tmp_path)

    cfg = make_dict_config(settings)

    assert set(cfg["handlers"]) == {"console", "error_console"}
    assert cfg["handlers"]["error_console"]["level"] == "ERROR"


def test_every_handler_carries_context_filters(tmp_path):
    cfg = make_dict_config(make_settings(LOG_TO_STDOUT=False, LOG_DIR=tmp_path))

    for handler in cfg["handlers"].values():
        assert handler["filters"] == ["log_context", "redact"]


def test_text_format_uses_standard_formatter():
    cfg = make_dict_config(make_settings(LOG_FORMAT="text"))

    assert cfg["handlers"]["console"]["formatter"] == "standard"


def test_sql_logging_switch():
    quiet = make_dict_config(make_settings(ENABLE_SQL_LOGGING=False))
    loud = make_dict_config(make_settings(ENABLE_SQL_LOGGING=True))

    assert quiet["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"
    assert loud["loggers"]["sqlalchemy.engine"]["level"] == "DEBUG"


def test_setup_logging_creates_log_dir(tmp_path, restore_logging):
    settings = make_settings(LOG_TO_STDOUT=False, LOG_DIR=tmp_path / "logs")
    assert not settings.LOG_DIR.exists()

    setup_logging(settings)
    logging.getLogger("chatapp.test").error("written to disk")

    assert settings.LOG_DIR.exists()
    assert (settings.LOG_DIR / "errors.log").exists()
    assert any(isinstance(f, logging.Filter) for f in logging.getLogger().filters)
