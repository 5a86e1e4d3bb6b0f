"""Selector strategy evaluator interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError

from locengine.browser import error_summary, is_context_lost
from locengine.exceptions import StrategyError

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle

    from locengine.models import StrategyKind


class BaseEvaluator(ABC):
    """Runs one selector expression against a search root.

    ``root`` is a Playwright ``Page``, ``Frame`` or ``ElementHandle``. Every
    call re-queries the live document.
    """

    @abstractmethod
    async def evaluate(self, root: Any, expression: str) -> list[ElementHandle]:
        """Return every node matching ``expression`` under ``root``."""

    @property
    @abstractmethod
    def kind(self) -> StrategyKind:
        """Strategy kind handled by this evaluator."""


async def query_all(
    root: Any, selector: str, kind: StrategyKind, expression: str
) -> list[ElementHandle]:
    """Run ``root.query_selector_all`` and translate Playwright failures."""
    try:
        return list(await root.query_selector_all(selector))
    except PlaywrightError as exc:
        if is_context_lost(exc):
            # Document is being replaced; nothing is attached right now.
            return []
        raise StrategyError(kind, expression, error_summary(exc)) from exc
