"""ResolutionEngine: maps element descriptors to live page elements."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError

from locengine.browser import error_summary
from locengine.cache import HandleCache
from locengine.config import EngineConfig
from locengine.element import ElementProxy
from locengine.evaluators.registry import get_evaluator
from locengine.exceptions import (
    DescriptorNotFoundError,
    ElementNotResolvedError,
    StrategyError,
)
from locengine.logger import get_logger
from locengine.models import (
    Ambiguous,
    ElementDescriptor,
    NotFound,
    Resolved,
    ResolvedHandle,
    ResolverState,
    SelectorCandidate,
    StrategyKind,
    Timeout,
    TimeoutPolicy,
)
from locengine.staleness import StalenessController

if TYPE_CHECKING:
    from locengine.browser import BrowserSession
    from locengine.evaluators import BaseEvaluator
    from locengine.models import ResolutionOutcome
    from locengine.repository import DescriptorRepository

log = get_logger(__name__)


@dataclass
class _Attempt:
    """Mutable state of one resolution attempt."""

    descriptor_id: str
    state: ResolverState = ResolverState.TICKING
    ticks: int = 0
    max_ambiguous: int = 0
    errors: list[str] = field(default_factory=list)
    handle: ResolvedHandle | None = None

    def record_error(self, exc: StrategyError) -> None:
        message = str(exc)
        if message not in self.errors:
            self.errors.append(message)


class ResolutionEngine:
    """Resolves descriptors against one browser session.

    Each engine owns the handle cache for its session; create one engine per
    session and close it when the session ends.
    """

    def __init__(
        self,
        session: BrowserSession,
        repository: DescriptorRepository | None = None,
        config: EngineConfig | None = None,
        evaluators: dict[StrategyKind, BaseEvaluator] | None = None,
    ) -> None:
        self._session = session
        self._repository = repository
        self._config = config or EngineConfig()
        self._evaluators = evaluators or {
            kind: get_evaluator(kind) for kind in StrategyKind
        }
        self._cache = HandleCache()
        self._staleness = StalenessController(session, self._cache)

    # --- Lifecycle ---

    async def __aenter__(self) -> ResolutionEngine:
        return self

    async def __aexit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Forget every cached handle."""
        self._cache.clear()
        log.debug("engine_closed")

    @property
    def session(self) -> BrowserSession:
        return self._session

    @property
    def cache(self) -> HandleCache:
        return self._cache

    @property
    def staleness(self) -> StalenessController:
        return self._staleness

    # --- Resolution ---

    def descriptor(self, ref: str | ElementDescriptor) -> ElementDescriptor:
        """Look up ``ref`` in the repository unless it already is a descriptor."""
        if isinstance(ref, ElementDescriptor):
            return ref
        if self._repository is None:
            raise DescriptorNotFoundError(ref)
        return self._repository.load(ref)

    async def resolve(
        self,
        ref: str | ElementDescriptor,
        policy: TimeoutPolicy | None = None,
        root: Any = None,
    ) -> ResolutionOutcome:
        """Resolve a descriptor to exactly one live element.

        A valid cached handle is returned without querying the page.
        Passing ``root`` scopes the search to that element; scoped results
        are not cached.
        """
        descriptor = self.descriptor(ref)
        policy = policy or self._config.default_policy()

        if root is not None:
            return await self._poll(descriptor, policy, root)

        async with self._cache.lock_for(descriptor.id):
            handle = await self._staleness.check(descriptor.id)
            if handle is not None:
                log.debug(
                    "cache_hit",
                    descriptor_id=descriptor.id,
                    resolved_at=handle.resolved_at,
                )
                return Resolved(descriptor_id=descriptor.id, handle=handle)

            outcome = await self._poll(descriptor, policy, self._session.page)
            if isinstance(outcome, Resolved):
                self._cache.put(outcome.handle)
            return outcome

    async def resolve_many(
        self,
        refs: list[str | ElementDescriptor],
        policy: TimeoutPolicy | None = None,
    ) -> dict[str, ResolutionOutcome]:
        """Resolve several descriptors concurrently in this session."""
        descriptors = [self.descriptor(ref) for ref in refs]
        outcomes = await asyncio.gather(
            *(self.resolve(descriptor, policy) for descriptor in descriptors)
        )
        return {d.id: outcome for d, outcome in zip(descriptors, outcomes)}

    async def find(
        self,
        ref: str | ElementDescriptor,
        policy: TimeoutPolicy | None = None,
    ) -> ElementProxy:
        """Resolve and wrap the element for interaction.

        Raises:
            ElementNotResolvedError: If the outcome is not ``Resolved``.
        """
        descriptor = self.descriptor(ref)
        policy = policy or self._config.default_policy()
        outcome = await self.resolve(descriptor, policy)
        if not isinstance(outcome, Resolved):
            raise ElementNotResolvedError(outcome)
        return ElementProxy(self, descriptor, outcome.handle, policy)

    async def invalidate(
        self, descriptor_id: str, expected: ResolvedHandle | None = None
    ) -> None:
        """Drop the cached handle so the next resolve queries the page."""
        await self._staleness.invalidate(descriptor_id, expected)

    async def wait_until_absent(
        self,
        ref: str | ElementDescriptor,
        policy: TimeoutPolicy | None = None,
    ) -> bool:
        """Poll until no candidate matches anything; False if time runs out."""
        descriptor = self.descriptor(ref)
        policy = policy or self._config.default_policy()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + policy.max_duration
        await self.invalidate(descriptor.id)

        while True:
            if not await self._any_match(descriptor, self._session.page):
                log.debug("element_absent", descriptor_id=descriptor.id)
                return True
            remaining = deadline - loop.time()
            if remaining <= 0:
                log.warning(
                    "element_still_present",
                    descriptor_id=descriptor.id,
                    timeout=policy.max_duration,
                )
                return False
            await asyncio.sleep(min(policy.poll_interval, remaining))

    # --- Poll loop ---

    async def _poll(
        self, descriptor: ElementDescriptor, policy: TimeoutPolicy, root: Any
    ) -> ResolutionOutcome:
        """Run ticks until one resolves or the policy is exhausted.

        States: TICKING -> RESOLVED | FAILED.
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        deadline = started + policy.max_duration
        candidates = descriptor.candidate_order()
        attempt = _Attempt(descriptor.id)

        if policy.max_duration <= 0:
            log.warning("element_timeout", descriptor_id=descriptor.id, elapsed=0.0)
            return Timeout(descriptor_id=descriptor.id, elapsed=0.0)

        while attempt.state is ResolverState.TICKING:
            await self._tick(attempt, candidates, root, deadline)
            if attempt.state is ResolverState.RESOLVED:
                break
            remaining = deadline - loop.time()
            if remaining <= 0:
                attempt.state = ResolverState.FAILED
                break
            await asyncio.sleep(min(policy.poll_interval, remaining))
            if loop.time() >= deadline:
                attempt.state = ResolverState.FAILED

        return self._finish(attempt, loop.time() - started)

    async def _tick(
        self,
        attempt: _Attempt,
        candidates: list[SelectorCandidate],
        root: Any,
        deadline: float,
    ) -> None:
        """Try every candidate once against the current document."""
        loop = asyncio.get_running_loop()
        attempt.ticks += 1
        generation = self._session.advance_generation()
        navigation = self._session.navigations

        for candidate in candidates:
            nodes = await self._evaluate(attempt, candidate, root)

            if len(nodes) == 1:
                attempt.handle = ResolvedHandle(
                    descriptor_id=attempt.descriptor_id,
                    node=nodes[0],
                    resolved_via=candidate.kind,
                    resolved_at=generation,
                    navigation=navigation,
                )
                attempt.state = ResolverState.RESOLVED
                return

            if len(nodes) > 1:
                # Stricter candidates come first; never pick among several.
                attempt.max_ambiguous = max(attempt.max_ambiguous, len(nodes))
                log.debug(
                    "candidate_ambiguous",
                    descriptor_id=attempt.descriptor_id,
                    strategy=candidate.kind.value,
                    count=len(nodes),
                )
                await self._release(nodes)

            if loop.time() >= deadline:
                log.debug(
                    "tick_abandoned",
                    descriptor_id=attempt.descriptor_id,
                    tick=attempt.ticks,
                )
                return

    async def _evaluate(
        self, attempt: _Attempt, candidate: SelectorCandidate, root: Any
    ) -> list[Any]:
        evaluator = self._evaluators[candidate.kind]
        try:
            async with self._session.query_lock:
                return await evaluator.evaluate(root, candidate.expression)
        except StrategyError as exc:
            attempt.record_error(exc)
            log.warning(
                "strategy_error",
                descriptor_id=attempt.descriptor_id,
                strategy=candidate.kind.value,
                error=exc.detail,
            )
            return []

    async def _any_match(self, descriptor: ElementDescriptor, root: Any) -> bool:
        attempt = _Attempt(descriptor.id)
        for candidate in descriptor.candidate_order():
            nodes = await self._evaluate(attempt, candidate, root)
            if nodes:
                await self._release(nodes)
                return True
        return False

    @staticmethod
    async def _release(nodes: list[Any]) -> None:
        """Dispose handles the engine will not hand out."""
        for node in nodes:
            try:
                await node.dispose()
            except PlaywrightError as exc:
                log.debug("handle_dispose_failed", error=error_summary(exc))

    @staticmethod
    def _finish(attempt: _Attempt, elapsed: float) -> ResolutionOutcome:
        errors = tuple(attempt.errors)
        if attempt.state is ResolverState.RESOLVED and attempt.handle is not None:
            log.info(
                "element_resolved",
                descriptor_id=attempt.descriptor_id,
                strategy=attempt.handle.resolved_via.value,
                generation=attempt.handle.resolved_at,
                ticks=attempt.ticks,
            )
            return Resolved(
                descriptor_id=attempt.descriptor_id,
                handle=attempt.handle,
                elapsed=elapsed,
                errors=errors,
            )

        if attempt.max_ambiguous:
            log.warning(
                "element_ambiguous",
                descriptor_id=attempt.descriptor_id,
                count=attempt.max_ambiguous,
                ticks=attempt.ticks,
            )
            return Ambiguous(
                descriptor_id=attempt.descriptor_id,
                candidate_count=attempt.max_ambiguous,
                elapsed=elapsed,
                errors=errors,
            )

        log.warning(
            "element_not_found",
            descriptor_id=attempt.descriptor_id,
            elapsed=round(elapsed, 3),
            ticks=attempt.ticks,
            errors=len(errors),
        )
        return NotFound(descriptor_id=attempt.descriptor_id, elapsed=elapsed, errors=errors)
