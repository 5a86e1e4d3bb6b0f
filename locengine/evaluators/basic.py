"""Composite evaluator for the BASIC strategy."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from locengine.evaluators import BaseEvaluator
from locengine.evaluators.css import CSSEvaluator
from locengine.evaluators.xpath import XPathEvaluator
from locengine.exceptions import StrategyError
from locengine.logger import get_logger
from locengine.models import StrategyKind

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle

log = get_logger(__name__)

SEPARATOR = " || "
_PATH_PREFIXES = ("/", "(", "./", "..")


def split_expression(expression: str) -> list[str]:
    """Split a BASIC expression into at most two sub-expressions."""
    parts = [part.strip() for part in expression.split(SEPARATOR, 1)]
    return [part for part in parts if part]


def dialect_of(sub_expression: str) -> StrategyKind:
    """Guess the query dialect of a sub-expression from its first characters."""
    if sub_expression.lstrip().startswith(_PATH_PREFIXES):
        return StrategyKind.XPATH
    return StrategyKind.CSS


class BasicEvaluator(BaseEvaluator):
    """Try a primary and an optional alternate sub-expression.

    ``"//input[@type='email'] || input[type=email]"`` runs the XPath first
    and falls back to the CSS selector when the XPath matches nothing or is
    rejected. A single sub-expression is run in its own dialect. If nothing
    matched and any sub-expression was rejected, the rejection is raised as a
    :class:`StrategyError`; a rejection followed by a match is only logged.
    """

    def __init__(self) -> None:
        self._evaluators: dict[StrategyKind, BaseEvaluator] = {
            StrategyKind.XPATH: XPathEvaluator(),
            StrategyKind.CSS: CSSEvaluator(),
        }

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.BASIC

    async def evaluate(self, root: Any, expression: str) -> list[ElementHandle]:
        parts = split_expression(expression)
        failures: list[str] = []
        for part in parts:
            evaluator = self._evaluators[dialect_of(part)]
            try:
                nodes = await evaluator.evaluate(root, part)
            except StrategyError as exc:
                failures.append(exc.detail)
                continue
            if nodes:
                if failures:
                    log.warning(
                        "basic_subexpression_failed",
                        expression=expression,
                        error="; ".join(failures),
                    )
                return nodes
        if failures:
            raise StrategyError(self.kind, expression, "; ".join(failures))
        return []
