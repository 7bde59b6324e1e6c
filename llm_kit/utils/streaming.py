"""
Streaming utilities for LLM Kit
"""

import asyncio
import inspect
from typing import Any, AsyncIterable, AsyncIterator, Generic, Iterable, List, Optional, Tuple, TypeVar

T = TypeVar("T")


async def async_iterable_from(items: Iterable[T]) -> AsyncIterator[T]:
    """
    Convert a synchronous iterable to an async generator

    Args:
        items: Items to yield in order

    Returns:
        Async generator over the same items
    """
    for item in items:
        yield item


async def collect(stream: AsyncIterable[T]) -> List[T]:
    """Consume an async iterable into a list."""
    return [item async for item in stream]


async def astream_to_string(stream: AsyncIterable[str]) -> str:
    """Concatenate an async stream of text fragments."""
    return "".join([chunk async for chunk in stream])


async def aclose_stream(stream: Any) -> None:
    """
    Release an async stream before it is exhausted

    Async generators are closed with ``aclose``; SDK response streams expose
    ``close`` instead. Streams with neither are left alone.
    """
    close = getattr(stream, "aclose", None) or getattr(stream, "close", None)
    if close is None:
        return
    result = close()
    if inspect.isawaitable(result):
        await result


class ReplayableStream(Generic[T]):
    """
    Single-use source shared by any number of subscriptions

    Items read from the source are kept so that every subscription observes
    the full sequence from the start, whenever it begins iterating. The source
    itself is only ever read once, one item at a time.

    A subscription cancelled while waiting for the next item does not cancel
    the read: the next subscription to pull picks up the same pending item.
    """

    def __init__(self, source: AsyncIterable[T]):
        self._source = source.__aiter__()
        self._items: List[T] = []
        self._done = False
        self._error: Optional[BaseException] = None
        self._pending: Optional["asyncio.Future[Tuple[bool, Optional[T]]]"] = None
        self._lock = asyncio.Lock()

    @property
    def done(self) -> bool:
        return self._done

    async def _next(self) -> Tuple[bool, Optional[T]]:
        try:
            return True, await self._source.__anext__()
        except StopAsyncIteration:
            return False, None

    def _fail(self, error: BaseException) -> None:
        # later subscribers see the same failure
        self._error = error
        self._done = True

    async def _pull(self, position: int) -> bool:
        async with self._lock:
            if position < len(self._items):
                return True
            if self._error is not None:
                raise self._error
            if self._done:
                return False
            if self._pending is None:
                self._pending = asyncio.ensure_future(self._next())
            pending = self._pending
            try:
                more, item = await asyncio.shield(pending)
            except asyncio.CancelledError:
                if not pending.cancelled():
                    raise
                self._pending = None
                if self._done:
                    # closed by aclose()
                    return False
                error = RuntimeError("Stream read was cancelled before the source ended")
                self._fail(error)
                raise error from None
            except Exception as e:
                self._pending = None
                self._fail(e)
                raise
            self._pending = None
            if not more:
                self._done = True
                return False
            self._items.append(item)
            return True

    async def aclose(self) -> None:
        """
        Stop reading and release the source

        Items already read stay available to subscriptions; no further items
        are read. Safe to call more than once.
        """
        self._done = True
        pending, self._pending = self._pending, None
        if pending is not None and not pending.done():
            pending.cancel()
            await asyncio.wait([pending])
        await aclose_stream(self._source)

    async def __aiter__(self) -> AsyncIterator[T]:
        position = 0
        while True:
            if position >= len(self._items) and not await self._pull(position):
                return
            yield self._items[position]
            position += 1
