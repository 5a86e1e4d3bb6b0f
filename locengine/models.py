"""All Pydantic models for locengine."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# --- Descriptor models ---


class StrategyKind(str, Enum):
    """Query dialect of a selector candidate."""

    XPATH = "XPATH"
    CSS = "CSS"
    BASIC = "BASIC"


class SelectorCandidate(BaseModel):
    """One ``(strategy kind, selector expression)`` pair."""

    model_config = ConfigDict(frozen=True)

    kind: StrategyKind
    expression: str

    @field_validator("expression")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("selector expression is blank")
        return value


class ResolutionOptions(BaseModel):
    """Options carried through from the descriptor source unchanged."""

    model_config = ConfigDict(frozen=True)

    use_relative_image_path: bool = False


class ElementDescriptor(BaseModel):
    """Declarative description of one UI element."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    description: str = ""
    selector_candidates: tuple[SelectorCandidate, ...] = Field(min_length=1)
    preferred_strategy: StrategyKind | None = None
    options: ResolutionOptions = Field(default_factory=ResolutionOptions)
    source_path: str | None = None

    @model_validator(mode="after")
    def _check_candidates(self) -> ElementDescriptor:
        seen: set[StrategyKind] = set()
        for candidate in self.selector_candidates:
            if candidate.kind in seen:
                raise ValueError(
                    f"duplicate selector strategy: {candidate.kind.value}"
                )
            seen.add(candidate.kind)
        if self.preferred_strategy is not None and self.preferred_strategy not in seen:
            raise ValueError(
                f"preferred strategy {self.preferred_strategy.value} "
                "has no selector in the collection"
            )
        return self

    def candidate_order(self) -> list[SelectorCandidate]:
        """Preferred candidate first, then the rest in declared order."""
        if self.preferred_strategy is None:
            return list(self.selector_candidates)
        preferred = [
            c for c in self.selector_candidates if c.kind == self.preferred_strategy
        ]
        rest = [
            c for c in self.selector_candidates if c.kind != self.preferred_strategy
        ]
        return preferred + rest

    def selector_for(self, kind: StrategyKind) -> str | None:
        """Expression registered for ``kind``, if any."""
        for candidate in self.selector_candidates:
            if candidate.kind == kind:
                return candidate.expression
        return None


# --- Resolution models ---


class TimeoutPolicy(BaseModel):
    """How long to keep polling and how often."""

    model_config = ConfigDict(frozen=True)

    max_duration: float = Field(default=10.0, ge=0)
    poll_interval: float = Field(default=0.25, gt=0)


class ResolverState(str, Enum):
    """States of a single resolution attempt."""

    TICKING = "ticking"
    RESOLVED = "resolved"
    FAILED = "failed"


class ResolvedHandle(BaseModel):
    """A descriptor bound to a live node of the current document."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    descriptor_id: str
    node: Any = Field(repr=False)
    resolved_via: StrategyKind
    resolved_at: int
    navigation: int = 0
    stale: bool = False


class _Outcome(BaseModel, ABC):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    descriptor_id: str
    elapsed: float = 0.0
    errors: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return False

    @abstractmethod
    def describe(self) -> str:
        """One-line, human-readable summary of the outcome."""

    def _error_suffix(self) -> str:
        if not self.errors:
            return ""
        return f" ({len(self.errors)} selector error(s): {'; '.join(self.errors)})"


class Resolved(_Outcome):
    """Exactly one element matched."""

    status: Literal["resolved"] = "resolved"
    handle: ResolvedHandle

    @property
    def ok(self) -> bool:
        return True

    def describe(self) -> str:
        return (
            f"Element '{self.descriptor_id}' resolved via "
            f"{self.handle.resolved_via.value}"
        )


class NotFound(_Outcome):
    """No candidate matched any element before the policy ran out."""

    status: Literal["not_found"] = "not_found"

    def describe(self) -> str:
        return (
            f"Element '{self.descriptor_id}' not found after "
            f"{self.elapsed:.2f}s{self._error_suffix()}"
        )


class Ambiguous(_Outcome):
    """Candidates matched several elements and none matched exactly one."""

    status: Literal["ambiguous"] = "ambiguous"
    candidate_count: int = Field(ge=2)

    def describe(self) -> str:
        return (
            f"Element '{self.descriptor_id}' is ambiguous: "
            f"{self.candidate_count} elements matched{self._error_suffix()}"
        )


class Timeout(_Outcome):
    """The policy expired before any query was attempted."""

    status: Literal["timeout"] = "timeout"

    def describe(self) -> str:
        return (
            f"Element '{self.descriptor_id}' timed out after "
            f"{self.elapsed:.2f}s{self._error_suffix()}"
        )


ResolutionOutcome = Annotated[
    Union[Resolved, NotFound, Ambiguous, Timeout],
    Field(discriminator="status"),
]
