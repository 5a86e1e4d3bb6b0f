"""Per-session cache of resolved handles."""

from __future__ import annotations

import asyncio

from locengine.models import ResolvedHandle


class HandleCache:
    """Current handle per descriptor id, plus one lock per descriptor id.

    The lock guards the check-then-resolve sequence so that only one cold
    resolution per descriptor is in flight at a time.
    """

    def __init__(self) -> None:
        self._handles: dict[str, ResolvedHandle] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, descriptor_id: str) -> ResolvedHandle | None:
        return self._handles.get(descriptor_id)

    def put(self, handle: ResolvedHandle) -> None:
        previous = self._handles.get(handle.descriptor_id)
        if previous is not None and previous is not handle:
            previous.stale = True
        self._handles[handle.descriptor_id] = handle

    def evict(self, descriptor_id: str) -> ResolvedHandle | None:
        """Remove and mark stale the handle cached for ``descriptor_id``."""
        handle = self._handles.pop(descriptor_id, None)
        if handle is not None:
            handle.stale = True
        return handle

    def lock_for(self, descriptor_id: str) -> asyncio.Lock:
        lock = self._locks.get(descriptor_id)
        if lock is None:
            lock = self._locks[descriptor_id] = asyncio.Lock()
        return lock

    def clear(self) -> None:
        """Evict every handle. Locks are kept; a resolve may still hold one."""
        for descriptor_id in list(self._handles):
            self.evict(descriptor_id)

    def __contains__(self, descriptor_id: object) -> bool:
        return descriptor_id in self._handles

    def __len__(self) -> int:
        return len(self._handles)
