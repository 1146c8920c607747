import logging
from pathlib import Path

from src.sem_copilot.log_config import configure_logging
from src.sem_copilot.settings import AppSettings


def test_defaults_when_environment_is_empty():
    settings = AppSettings.from_env({})
    assert settings.api_key == ""
    assert settings.model == "gpt-4o-mini"
    assert settings.base_url == "https://api.openai.com/v1"
    assert settings.timeout_seconds == 60
    assert settings.data_dir == Path(".sem_copilot_data")
    assert settings.log_level == "INFO"


def test_environment_overrides_and_invalid_timeout():
    settings = AppSettings.from_env(
        {
            "OPENAI_API_KEY": " sk-test ",
            "OPENAI_MODEL": "gpt-4o",
            "SEM_COPILOT_TIMEOUT": "abc",
            "SEM_COPILOT_DATA_DIR": "/tmp/drsem",
            "SEM_COPILOT_LOG_LEVEL": "debug",
        }
    )
    assert settings.api_key == "sk-test"
    assert settings.model == "gpt-4o"
    assert settings.timeout_seconds == 60
    assert settings.data_dir == Path("/tmp/drsem")
    assert settings.log_level == "DEBUG"


def test_configure_logging_installs_single_handler():
    root_logger = logging.getLogger()
    saved_handlers, saved_level = root_logger.handlers[:], root_logger.level
    try:
        configure_logging("DEBUG")
        configure_logging("WARNING")
        assert len(root_logger.handlers) == 1
        assert root_logger.level == logging.WARNING
        assert logging.getLogger("urllib3").level == logging.WARNING
    finally:
        root_logger.handlers[:] = saved_handlers
        root_logger.setLevel(saved_level)
