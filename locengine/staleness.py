"""Lazy staleness detection for cached handles."""

from __future__ import annotations

from typing import TYPE_CHECKING

from locengine.logger import get_logger

if TYPE_CHECKING:
    from locengine.browser import BrowserSession
    from locengine.cache import HandleCache
    from locengine.models import ResolvedHandle

log = get_logger(__name__)


class StalenessController:
    """Decides whether a cached handle may be reused.

    Checks run only when a handle is about to be reused; nothing sweeps the
    cache in the background.
    """

    def __init__(self, session: BrowserSession, cache: HandleCache) -> None:
        self._session = session
        self._cache = cache

    async def is_stale(self, handle: ResolvedHandle) -> bool:
        """True if the handle was invalidated, navigated away from, or detached."""
        return await self._stale_reason(handle) is not None

    async def check(self, descriptor_id: str) -> ResolvedHandle | None:
        """Return the cached handle if still valid, evicting it otherwise.

        Callers must hold the descriptor's cache lock.
        """
        handle = self._cache.get(descriptor_id)
        if handle is None:
            return None
        reason = await self._stale_reason(handle)
        if reason is None:
            return handle
        self._cache.evict(descriptor_id)
        log.info(
            "handle_stale",
            descriptor_id=descriptor_id,
            reason=reason,
            resolved_at=handle.resolved_at,
        )
        return None

    async def invalidate(
        self, descriptor_id: str, expected: ResolvedHandle | None = None
    ) -> None:
        """Drop the cached handle for ``descriptor_id``, if any.

        With ``expected``, only evict if the cache still holds that handle;
        a newer handle cached by another caller is left in place.
        """
        async with self._cache.lock_for(descriptor_id):
            if expected is not None:
                expected.stale = True
                if self._cache.get(descriptor_id) is not expected:
                    return
            handle = self._cache.evict(descriptor_id)
        if handle is not None:
            log.info("handle_invalidated", descriptor_id=descriptor_id)

    async def _stale_reason(self, handle: ResolvedHandle) -> str | None:
        if handle.stale:
            return "invalidated"
        if self._session.navigations != handle.navigation:
            return "navigated"
        if not await self._session.is_attached(handle.node):
            return "detached"
        return None
