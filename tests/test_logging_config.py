"""Tests for logging setup."""

import logging

import pytest

from fst_fantasy.logging_config import get_logger, log_level_from_env, quiet_http_loggers


class TestLogLevelFromEnv:
    def test_default_when_unset(self, monkeypatch):
        monkeypatch.delenv("FST_LOG_LEVEL", raising=False)
        assert log_level_from_env() == logging.INFO

    def test_named_level(self, monkeypatch):
        monkeypatch.setenv("FST_LOG_LEVEL", " debug ")
        assert log_level_from_env() == logging.DEBUG

    def test_unknown_name_falls_back(self, monkeypatch):
        monkeypatch.setenv("FST_LOG_LEVEL", "chatty")
        assert log_level_from_env(default=logging.WARNING) == logging.WARNING


class TestQuietHttpLoggers:
    @pytest.fixture(autouse=True)
    def restore_levels(self):
        names = ("urllib3", "requests", "werkzeug")
        saved = {name: logging.getLogger(name).level for name in names}
        yield
        for name, level in saved.items():
            logging.getLogger(name).setLevel(level)

    def test_debug_root_keeps_clients_at_warning(self):
        quiet_http_loggers(logging.DEBUG)
        assert logging.getLogger("urllib3").level == logging.WARNING
        assert logging.getLogger("requests").level == logging.WARNING
        assert logging.getLogger("werkzeug").level == logging.WARNING

    def test_stricter_root_level_wins(self):
        quiet_http_loggers(logging.ERROR)
        assert logging.getLogger("requests").level == logging.ERROR


def test_get_logger_named():
    assert get_logger("fst_fantasy.test").name == "fst_fantasy.test"
