import importlib
import logging
import pytest

import cookgraph.config as config
from cookgraph.config import Settings, configure_logging, LOG_FORMAT


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ("COOKGRAPH_HISTORY_LIMIT", "COOKGRAPH_LOG_LEVEL", "COOKGRAPH_HOST", "COOKGRAPH_PORT"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()
        assert settings == Settings()
        assert settings.history_limit == 256

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("COOKGRAPH_HISTORY_LIMIT", "0")
        monkeypatch.setenv("COOKGRAPH_LOG_LEVEL", "debug")
        monkeypatch.setenv("COOKGRAPH_PORT", "8080")

        settings = Settings.from_env()
        assert settings.history_limit == 0
        assert settings.log_level == "DEBUG"
        assert settings.port == 8080

    def test_bad_integer(self, monkeypatch):
        monkeypatch.setenv("COOKGRAPH_PORT", "eighty")
        with pytest.raises(ValueError):
            Settings.from_env()

    def test_import_leaves_dotenv_alone(self, monkeypatch):
        import dotenv
        calls = []
        monkeypatch.setattr(dotenv, "load_dotenv", lambda *args, **kwargs: calls.append(args))

        importlib.reload(config)
        assert calls == [], "only the server entry point loads .env"

    def test_configure_logging_level(self, monkeypatch):
        calls = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

        configure_logging()
        configure_logging("DEBUG")

        assert calls[0]["level"] == config.settings.log_level
        assert calls[0]["format"] == LOG_FORMAT
        assert calls[1]["level"] == "DEBUG"
