"""Shared test fixtures for locengine."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

from locengine.browser import BrowserSession
from locengine.engine import ResolutionEngine
from locengine.models import TimeoutPolicy
from locengine.repository import DescriptorRepository

# Path to test fixtures
FIXTURES_DIR = Path(__file__).parent / "fixtures"
REPOSITORY_DIR = FIXTURES_DIR / "object_repository"

EMAIL_XPATH = "//input[@type='email' and @placeholder='Email']"
EMAIL_CSS = "input[type='email'][placeholder='Email']"
EMAIL_BASIC = "//input[@type='email']"


def make_node(connected: bool = True) -> AsyncMock:
    """Create a mock element handle that reports its attachment state."""
    node = AsyncMock()
    node.evaluate = AsyncMock(return_value=connected)
    node.dispose = AsyncMock()
    return node


class FakePage:
    """Stands in for a Playwright page.

    ``matches`` maps a full Playwright selector (``"xpath=..."``,
    ``"css=..."``) to a list of nodes, an exception to raise, or a callable
    returning either.
    """

    def __init__(self, matches: dict[str, Any] | None = None) -> None:
        self.matches: dict[str, Any] = dict(matches or {})
        self.queries: list[str] = []
        self.listeners: dict[str, list[Callable[[Any], None]]] = {}
        self.query_selector_all = AsyncMock(side_effect=self._query)
        self.goto = AsyncMock()
        self.closed = False

    def on(self, event: str, callback: Callable[[Any], None]) -> None:
        self.listeners.setdefault(event, []).append(callback)

    def emit(self, event: str) -> None:
        for callback in self.listeners.get(event, []):
            callback(self)

    def is_closed(self) -> bool:
        return self.closed

    async def _query(self, selector: str) -> list[Any]:
        self.queries.append(selector)
        result = self.matches.get(selector, [])
        if callable(result):
            result = result()
        if isinstance(result, Exception):
            raise result
        return list(result)


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to test fixtures directory."""
    return FIXTURES_DIR


@pytest.fixture
def repository_dir() -> Path:
    """Path to the sample object repository."""
    return REPOSITORY_DIR


@pytest.fixture
def repository() -> DescriptorRepository:
    return DescriptorRepository(REPOSITORY_DIR)


@pytest.fixture
def page() -> FakePage:
    return FakePage()


@pytest.fixture
def session(page: FakePage) -> BrowserSession:
    return BrowserSession(page=page)


@pytest.fixture
def engine(session: BrowserSession, repository: DescriptorRepository) -> ResolutionEngine:
    return ResolutionEngine(session, repository=repository)


@pytest.fixture
def fast_policy() -> TimeoutPolicy:
    """Short policy so negative cases finish quickly."""
    return TimeoutPolicy(max_duration=0.2, poll_interval=0.05)


@pytest.fixture
def write_record(tmp_path: Path) -> Callable[..., Path]:
    """Write a ``.rs`` record into a temp repository and return its path."""

    def _write(
        name: str,
        guid: str | None,
        entries: list[tuple[str, str]],
        method: str = "XPATH",
        folder: str = "Pages",
    ) -> Path:
        entry_xml = "".join(
            f"<entry><key>{key}</key><value>{value}</value></entry>"
            for key, value in entries
        )
        guid_xml = f"<elementGuidId>{guid}</elementGuidId>" if guid is not None else ""
        record = (
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            "<WebElementEntity>"
            f"<description>{name} element</description>"
            f"<name>{name}</name>"
            f"{guid_xml}"
            f"<selectorCollection>{entry_xml}</selectorCollection>"
            f"<selectorMethod>{method}</selectorMethod>"
            "<useRalativeImagePath>true</useRalativeImagePath>"
            "</WebElementEntity>"
        )
        path = tmp_path / folder / f"{name}.rs"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(record, encoding="utf-8")
        return path

    return _write
