"""Style-query evaluator."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from locengine.evaluators import BaseEvaluator, query_all
from locengine.models import StrategyKind

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle


class CSSEvaluator(BaseEvaluator):
    """Evaluate CSS selectors, including comma-separated selector lists."""

    @property
    def kind(self) -> StrategyKind:
        return StrategyKind.CSS

    async def evaluate(self, root: Any, expression: str) -> list[ElementHandle]:
        return await query_all(root, f"css={expression}", self.kind, expression)
