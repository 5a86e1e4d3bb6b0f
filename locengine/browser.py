"""Playwright browser session for locengine."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from locengine.exceptions import BrowserError
from locengine.logger import get_logger

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, ElementHandle, Page

log = get_logger(__name__)

# Playwright messages meaning a handle no longer points into the live document
_STALE_MARKERS = (
    "not attached to the dom",
    "element is not attached",
    "element is detached",
    "execution context was destroyed",
    "cannot find context with specified id",
    "target closed",
    "has been closed",
    "object has been collected",
)

_CONTEXT_LOST_MARKERS = (
    "execution context was destroyed",
    "cannot find context with specified id",
)


def is_stale_error(exc: BaseException) -> bool:
    """True if ``exc`` is Playwright reporting a detached or dead handle."""
    if not isinstance(exc, PlaywrightError):
        return False
    message = str(exc).lower()
    return any(marker in message for marker in _STALE_MARKERS)


def error_summary(exc: BaseException) -> str:
    """First line of an exception message, for log fields."""
    text = str(exc).strip()
    return text.split("\n", 1)[0] if text else type(exc).__name__


def is_context_lost(exc: BaseException) -> bool:
    """True if the document went away while a query was running."""
    if not isinstance(exc, PlaywrightError):
        return False
    message = str(exc).lower()
    return any(marker in message for marker in _CONTEXT_LOST_MARKERS)


class BrowserSession:
    """One page of one browser, plus the state resolution needs about it.

    The session owns:

    * ``query_lock``: serializes queries against the document. It is held for
      one evaluator call at a time, never for a whole poll loop.
    * ``generation``: a logical clock advanced once per poll tick.
    * ``navigations``: number of full document loads seen on the page.

    Pass an existing ``page`` to wrap a page managed elsewhere, or call
    :meth:`start` to launch Chromium.
    """

    def __init__(self, page: Page | None = None) -> None:
        self._playwright: Any = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._owns_browser = False
        self.query_lock = asyncio.Lock()
        self._generation = 0
        self._navigations = 0
        if page is not None:
            self._attach(page)

    # --- Lifecycle ---

    async def start(self, headless: bool = True) -> None:
        """Launch Chromium and open a page."""
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=headless)
            self._context = await self._browser.new_context()
            page = await self._context.new_page()
        except Exception as exc:
            raise BrowserError(f"Failed to start browser: {exc}") from exc
        self._owns_browser = True
        self._attach(page)
        log.info("browser_started", headless=headless)

    async def stop(self) -> None:
        """Close the browser if this session launched it."""
        if not self._owns_browser:
            self._page = None
            return
        try:
            if self._page and not self._page.is_closed():
                await self._page.close()
            if self._context:
                await self._context.close()
            if self._browser:
                await self._browser.close()
            if self._playwright:
                await self._playwright.stop()
        except Exception as exc:
            log.warning("browser_stop_error", error=str(exc))
        finally:
            self._page = None
            self._context = None
            self._browser = None
            self._playwright = None
            self._owns_browser = False
            log.info("browser_stopped")

    async def __aenter__(self) -> BrowserSession:
        if self._page is None:
            await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.stop()

    # --- Document state ---

    @property
    def page(self) -> Page:
        """The current page."""
        if self._page is None or self._page.is_closed():
            raise BrowserError("Browser session not started")
        return self._page

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def navigations(self) -> int:
        return self._navigations

    def advance_generation(self) -> int:
        """Move the logical clock forward and return the new value."""
        self._generation += 1
        return self._generation

    async def goto(self, url: str, timeout_ms: float = 30000) -> None:
        """Navigate the page; the load is counted as a navigation."""
        await self.page.goto(url, timeout=timeout_ms, wait_until="domcontentloaded")

    async def is_attached(self, node: ElementHandle) -> bool:
        """Check whether ``node`` is still connected to the live document."""
        async with self.query_lock:
            try:
                return bool(await node.evaluate("node => node.isConnected"))
            except PlaywrightError as exc:
                log.debug("attachment_probe_failed", error=error_summary(exc))
                return False

    # --- Private helpers ---

    def _attach(self, page: Page) -> None:
        self._page = page
        page.on("domcontentloaded", self._on_document_loaded)

    def _on_document_loaded(self, _page: Any) -> None:
        self._navigations += 1
        log.debug("document_loaded", navigations=self._navigations)
