"""Evaluator registry mapping strategy kinds to implementations."""

from locengine.evaluators import BaseEvaluator
from locengine.evaluators.basic import BasicEvaluator
from locengine.evaluators.css import CSSEvaluator
from locengine.evaluators.xpath import XPathEvaluator
from locengine.models import StrategyKind

EVALUATOR_REGISTRY: dict[StrategyKind, type[BaseEvaluator]] = {
    StrategyKind.XPATH: XPathEvaluator,
    StrategyKind.CSS: CSSEvaluator,
    StrategyKind.BASIC: BasicEvaluator,
}


def get_evaluator(kind: StrategyKind) -> BaseEvaluator:
    """Get an evaluator instance for the given strategy kind."""
    evaluator_cls = EVALUATOR_REGISTRY.get(kind)
    if evaluator_cls is None:
        raise ValueError(f"No evaluator registered for: {kind}")
    return evaluator_cls()
