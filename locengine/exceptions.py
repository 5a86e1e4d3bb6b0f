"""locengine exception hierarchy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from locengine.models import ResolutionOutcome, StrategyKind


class LocatorEngineError(Exception):
    """Base exception for all locengine errors."""


class StrategyError(LocatorEngineError):
    """Raised when a selector expression is malformed or unsupported.

    Scoped to a single candidate: the engine records it and moves on to the
    next strategy.
    """

    def __init__(self, kind: StrategyKind, expression: str, detail: str) -> None:
        self.kind = kind
        self.expression = expression
        self.detail = detail
        super().__init__(f"{kind.value} selector {expression!r} failed: {detail}")


class DescriptorValidationError(LocatorEngineError):
    """Raised when a descriptor record breaks the object repository rules."""

    def __init__(self, descriptor_id: str, detail: str) -> None:
        self.descriptor_id = descriptor_id
        self.detail = detail
        super().__init__(f"Invalid descriptor '{descriptor_id}': {detail}")


class DescriptorNotFoundError(LocatorEngineError):
    """Raised when a descriptor id is not present in the repository."""

    def __init__(self, descriptor_id: str) -> None:
        self.descriptor_id = descriptor_id
        super().__init__(f"Descriptor not found: {descriptor_id}")


class StaleReferenceError(LocatorEngineError):
    """Raised when an element stays stale after the automatic re-resolution."""

    def __init__(self, descriptor_id: str, detail: str) -> None:
        self.descriptor_id = descriptor_id
        self.detail = detail
        super().__init__(f"Stale element for '{descriptor_id}': {detail}")


class ElementNotResolvedError(LocatorEngineError):
    """Raised when an element is required but resolution ended without one."""

    def __init__(self, outcome: ResolutionOutcome) -> None:
        self.outcome = outcome
        self.descriptor_id = outcome.descriptor_id
        super().__init__(outcome.describe())


class BrowserError(LocatorEngineError):
    """Raised on browser session lifecycle errors."""
