"""Synchronous wrapper around the resolution engine for scripts."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from locengine.browser import BrowserSession
from locengine.config import EngineConfig
from locengine.element import ElementProxy
from locengine.engine import ResolutionEngine
from locengine.models import ElementDescriptor, ResolutionOutcome, TimeoutPolicy
from locengine.repository import DescriptorRepository


class SyncElement:
    """Blocking view of an :class:`ElementProxy`."""

    def __init__(self, proxy: ElementProxy, runner: LocatorEngineSync) -> None:
        self._proxy = proxy
        self._runner = runner

    @property
    def descriptor_id(self) -> str:
        return self._proxy.descriptor_id

    def click(self, **kwargs: Any) -> None:
        self._runner._run(self._proxy.click(**kwargs))

    def fill(self, value: str, **kwargs: Any) -> None:
        self._runner._run(self._proxy.fill(value, **kwargs))

    def type_text(self, text: str, delay: float = 0) -> None:
        self._runner._run(self._proxy.type_text(text, delay=delay))

    def check(self) -> None:
        self._runner._run(self._proxy.check())

    def text_content(self) -> str | None:
        return self._runner._run(self._proxy.text_content())

    def get_attribute(self, name: str) -> str | None:
        return self._runner._run(self._proxy.get_attribute(name))

    def is_visible(self) -> bool:
        return self._runner._run(self._proxy.is_visible())


class LocatorEngineSync:
    """Synchronous engine for use in plain test scripts.

    Launches its own browser on a private event loop. Every call blocks until
    the underlying coroutine finishes.
    """

    def __init__(
        self,
        repository: str | Path | DescriptorRepository | None = None,
        config: EngineConfig | None = None,
        session: BrowserSession | None = None,
    ) -> None:
        self._config = config or EngineConfig.from_env()
        if repository is None:
            repository = self._config.repository_dir
        if not isinstance(repository, DescriptorRepository):
            repository = DescriptorRepository(repository)
        self._repository = repository
        self._loop: asyncio.AbstractEventLoop | None = asyncio.new_event_loop()
        self._session = session or BrowserSession()
        self._owns_session = session is None
        if self._owns_session:
            self._run(self._session.start(headless=self._config.headless))
        self._engine = ResolutionEngine(
            self._session, repository=self._repository, config=self._config
        )

    def _run(self, coro: Any) -> Any:
        """Run a coroutine on the internal event loop."""
        assert self._loop is not None
        return self._loop.run_until_complete(coro)

    @property
    def engine(self) -> ResolutionEngine:
        return self._engine

    def load_all(self) -> dict[str, ElementDescriptor]:
        """All descriptors of the repository keyed by id."""
        return self._repository.load_all()

    def goto(self, url: str) -> None:
        self._run(self._session.goto(url))

    def resolve(
        self,
        ref: str | ElementDescriptor,
        policy: TimeoutPolicy | None = None,
    ) -> ResolutionOutcome:
        return self._run(self._engine.resolve(ref, policy))

    def find(
        self,
        ref: str | ElementDescriptor,
        policy: TimeoutPolicy | None = None,
    ) -> SyncElement:
        return SyncElement(self._run(self._engine.find(ref, policy)), self)

    def invalidate(self, descriptor_id: str) -> None:
        self._run(self._engine.invalidate(descriptor_id))

    def wait_until_absent(
        self,
        ref: str | ElementDescriptor,
        policy: TimeoutPolicy | None = None,
    ) -> bool:
        return self._run(self._engine.wait_until_absent(ref, policy))

    def close(self) -> None:
        """Drop cached handles, stop the browser and close the event loop."""
        if self._loop is None:
            return
        self._engine.close()
        if self._owns_session:
            self._loop.run_until_complete(self._session.stop())
        self._loop.close()
        self._loop = None

    def __enter__(self) -> LocatorEngineSync:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
