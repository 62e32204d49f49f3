"""Request-state holders for callers that render API data.

`ApiQuery` wraps a zero-argument coroutine function and tracks
`data`/`loading`/`error` across runs; `ApiMutation` does the same for a
one-argument function that only runs on demand. Neither cancels an
in-flight call: overlapping runs each write their outcome when they
settle, so the last one to finish decides the final state.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
V = TypeVar("V")

MISSING_PARAMETER = "Missing required parameter"


class _RequestState(Generic[T]):
    def __init__(self, *, loading: bool = False):
        self.data: T | None = None
        self.loading = loading
        self.error: Exception | None = None

    def snapshot(self) -> dict[str, Any]:
        return {"data": self.data, "loading": self.loading, "error": self.error}

    async def _run(self, call: Callable[[], Awaitable[T]]) -> T:
        self.loading = True
        self.error = None
        try:
            data = await call()
        except Exception as exc:
            # `data` keeps the last successful result.
            self.loading = False
            self.error = exc
            raise
        self.data = data
        self.loading = False
        self.error = None
        return data


class ApiQuery(_RequestState[T]):
    """Run `producer` and keep its result.

    With `immediate=True` (the default) the query starts in the loading
    state, `start()` runs it in the background, and `set_producer()` runs
    it again whenever a different producer is supplied. Background runs
    keep their failure in `error` rather than raising it.
    """

    def __init__(self, producer: Callable[[], Awaitable[T]], *, immediate: bool = True):
        super().__init__(loading=immediate)
        self._producer = producer
        self.immediate = immediate

    @property
    def producer(self) -> Callable[[], Awaitable[T]]:
        return self._producer

    async def execute(self) -> T:
        return await self._run(self._producer)

    refetch = execute

    def start(self) -> asyncio.Task | None:
        if not self.immediate:
            return None
        return asyncio.ensure_future(self._auto_run())

    def set_producer(self, producer: Callable[[], Awaitable[T]]) -> asyncio.Task | None:
        if producer is self._producer:
            return None
        self._producer = producer
        return self.start()

    async def _auto_run(self) -> None:
        try:
            await self.execute()
        except Exception as exc:
            if MISSING_PARAMETER in str(exc):
                logger.error("API parameter error: %s", exc, exc_info=exc)


class ApiMutation(_RequestState[T], Generic[V, T]):
    def __init__(self, producer: Callable[[V], Awaitable[T]]):
        super().__init__()
        self._producer = producer

    async def mutate(self, variables: V = None) -> T:
        return await self._run(lambda: self._producer(variables))

    def reset(self) -> None:
        self.data = None
        self.loading = False
        self.error = None
