"""Engine configuration via environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass

from locengine.models import TimeoutPolicy


@dataclass
class EngineConfig:
    """Engine configuration loaded from environment variables.

    Timing lives here rather than on descriptors: the object repository
    carries no per-element wait values.
    """

    timeout: float = 10.0
    poll_interval: float = 0.25
    repository_dir: str = "Object Repository"
    headless: bool = True
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Load config from environment variables."""
        return cls(
            timeout=float(os.environ.get("LOCENGINE_TIMEOUT", "10")),
            poll_interval=float(os.environ.get("LOCENGINE_POLL_INTERVAL", "0.25")),
            repository_dir=os.environ.get("LOCENGINE_REPOSITORY", "Object Repository"),
            headless=os.environ.get("LOCENGINE_HEADLESS", "true").lower() == "true",
            log_level=os.environ.get("LOCENGINE_LOG_LEVEL", "INFO"),
            log_json=os.environ.get("LOCENGINE_LOG_JSON", "false").lower() == "true",
        )

    def default_policy(self) -> TimeoutPolicy:
        """Timeout policy used when a caller does not pass one."""
        return TimeoutPolicy(max_duration=self.timeout, poll_interval=self.poll_interval)
