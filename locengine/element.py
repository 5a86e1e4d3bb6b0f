"""Interaction wrapper with one automatic re-resolution on staleness."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, TypeVar

from playwright.async_api import Error as PlaywrightError

from locengine.browser import error_summary, is_stale_error
from locengine.exceptions import StaleReferenceError
from locengine.logger import get_logger
from locengine.models import Resolved

if TYPE_CHECKING:
    from playwright.async_api import ElementHandle

    from locengine.engine import ResolutionEngine
    from locengine.models import ElementDescriptor, ResolvedHandle, TimeoutPolicy

log = get_logger(__name__)

T = TypeVar("T")


class ElementProxy:
    """A resolved element that survives one round of DOM replacement.

    If the underlying node turns out to be detached when an action runs, the
    proxy invalidates the cached handle, resolves the descriptor again and
    retries the action once. A second stale failure raises
    :class:`StaleReferenceError`.
    """

    def __init__(
        self,
        engine: ResolutionEngine,
        descriptor: ElementDescriptor,
        handle: ResolvedHandle,
        policy: TimeoutPolicy,
    ) -> None:
        self._engine = engine
        self._descriptor = descriptor
        self._handle = handle
        self._policy = policy

    @property
    def descriptor_id(self) -> str:
        return self._descriptor.id

    @property
    def handle(self) -> ResolvedHandle:
        return self._handle

    @property
    def node(self) -> ElementHandle:
        return self._handle.node

    def __repr__(self) -> str:
        return (
            f"ElementProxy({self._descriptor.id!r}, "
            f"via={self._handle.resolved_via.value}, "
            f"generation={self._handle.resolved_at})"
        )

    # --- Actions ---

    async def click(self, **kwargs: Any) -> None:
        await self._perform("click", lambda node: node.click(**kwargs))

    async def fill(self, value: str, **kwargs: Any) -> None:
        await self._perform("fill", lambda node: node.fill(value, **kwargs))

    async def type_text(self, text: str, delay: float = 0) -> None:
        await self._perform("type", lambda node: node.type(text, delay=delay))

    async def press(self, key: str) -> None:
        await self._perform("press", lambda node: node.press(key))

    async def hover(self) -> None:
        await self._perform("hover", lambda node: node.hover())

    async def check(self) -> None:
        await self._perform("check", lambda node: node.check())

    async def uncheck(self) -> None:
        await self._perform("uncheck", lambda node: node.uncheck())

    async def set_input_files(self, files: Any) -> None:
        await self._perform(
            "set_input_files", lambda node: node.set_input_files(files)
        )

    async def scroll_into_view(self) -> None:
        await self._perform(
            "scroll_into_view", lambda node: node.scroll_into_view_if_needed()
        )

    # --- Reads ---

    async def text_content(self) -> str | None:
        return await self._perform("text_content", lambda node: node.text_content())

    async def inner_text(self) -> str:
        return await self._perform("inner_text", lambda node: node.inner_text())

    async def input_value(self) -> str:
        return await self._perform("input_value", lambda node: node.input_value())

    async def get_attribute(self, name: str) -> str | None:
        return await self._perform(
            "get_attribute", lambda node: node.get_attribute(name)
        )

    async def is_visible(self) -> bool:
        return await self._perform("is_visible", lambda node: node.is_visible())

    async def is_checked(self) -> bool:
        return await self._perform("is_checked", lambda node: node.is_checked())

    # --- Private helpers ---

    async def _perform(
        self, action: str, operation: Callable[[Any], Awaitable[T]]
    ) -> T:
        """Run ``operation`` on the node, re-resolving once if it went stale."""
        try:
            return await operation(self._handle.node)
        except PlaywrightError as exc:
            if not is_stale_error(exc):
                raise
            log.warning(
                "stale_element_retry",
                descriptor_id=self.descriptor_id,
                action=action,
                error=error_summary(exc),
            )

        await self._engine.invalidate(self.descriptor_id, expected=self._handle)
        outcome = await self._engine.resolve(self._descriptor, self._policy)
        if not isinstance(outcome, Resolved):
            raise StaleReferenceError(
                self.descriptor_id,
                f"re-resolution after stale {action} failed: {outcome.describe()}",
            )
        self._handle = outcome.handle

        try:
            return await operation(self._handle.node)
        except PlaywrightError as exc:
            if is_stale_error(exc):
                raise StaleReferenceError(
                    self.descriptor_id,
                    f"{action} failed again after re-resolution: "
                    f"{error_summary(exc)}",
                ) from exc
            raise
