"""Tests for EngineConfig and logging setup."""

import logging

import pytest

from locengine.config import EngineConfig
from locengine.logger import configure_logging, get_logger
from locengine.models import TimeoutPolicy


class TestEngineConfig:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "LOCENGINE_TIMEOUT",
            "LOCENGINE_POLL_INTERVAL",
            "LOCENGINE_REPOSITORY",
            "LOCENGINE_HEADLESS",
            "LOCENGINE_LOG_LEVEL",
            "LOCENGINE_LOG_JSON",
        ):
            monkeypatch.delenv(name, raising=False)
        config = EngineConfig.from_env()
        assert config == EngineConfig()
        assert config.repository_dir == "Object Repository"
        assert config.headless is True

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOCENGINE_TIMEOUT", "3.5")
        monkeypatch.setenv("LOCENGINE_POLL_INTERVAL", "0.1")
        monkeypatch.setenv("LOCENGINE_REPOSITORY", "/srv/repo")
        monkeypatch.setenv("LOCENGINE_HEADLESS", "False")
        monkeypatch.setenv("LOCENGINE_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("LOCENGINE_LOG_JSON", "true")
        config = EngineConfig.from_env()
        assert config.timeout == 3.5
        assert config.poll_interval == 0.1
        assert config.repository_dir == "/srv/repo"
        assert config.headless is False
        assert config.log_level == "DEBUG"
        assert config.log_json is True

    def test_default_policy(self) -> None:
        policy = EngineConfig(timeout=2, poll_interval=0.5).default_policy()
        assert policy == TimeoutPolicy(max_duration=2, poll_interval=0.5)


class TestLogging:
    def test_configure_sets_root_level(self) -> None:
        configure_logging("DEBUG")
        assert logging.getLogger().level == logging.DEBUG
        configure_logging("INFO", json_output=True)
        assert logging.getLogger().level == logging.INFO

    def test_get_logger(self) -> None:
        log = get_logger("locengine.test")
        log.info("logger_ready", check=True)
