import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from pymongo.errors import PyMongoError

from campusmart.core.errors import translate_store_error

logger = logging.getLogger(__name__)

_UNSET = object()


class Subscription:
    """Live view of one owner-scoped, ordered query.

    Iterating yields the current result first, then a fresh result every time
    the underlying collection changes in a way that alters it. Ordering is only
    guaranteed within this collection's stream; two subscriptions on different
    collections are not ordered relative to each other.

    After cancel() returns, no further snapshot is yielded and no callback
    registered through start() is invoked again.
    """

    def __init__(self, collection, owner_filter: Dict[str, Any], load: Callable[[], Awaitable[Any]]):
        self._collection = collection
        self._owner_filter = owner_filter
        self._load = load
        self._stream = None
        self._started = False
        self._cancelled = False
        self._last = _UNSET
        self._task: Optional[asyncio.Task] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _pipeline(self):
        # Deletes carry only the document key, so they always trigger a reload
        owned = {f"fullDocument.{key}": value for key, value in self._owner_filter.items()}
        return [{"$match": {"$or": [owned, {"operationType": "delete"}]}}]

    def __aiter__(self):
        return self

    async def _fetch(self, first: bool):
        try:
            if first:
                # watch() is lazy; the server-side cursor exists only after the first fetch.
                # It must exist before the first read, or a change in between is never seen.
                await self._stream.try_next()
            else:
                await self._stream.next()
        except (StopAsyncIteration, PyMongoError) as e:
            if self._cancelled or isinstance(e, StopAsyncIteration):
                raise StopAsyncIteration
            logger.error(f"Change stream on {self._collection.name} failed: {str(e)}")
            raise translate_store_error(e) from e

    async def __anext__(self):
        while True:
            if self._cancelled:
                raise StopAsyncIteration

            first = not self._started
            if first:
                self._started = True
                self._stream = self._collection.watch(self._pipeline(), full_document="updateLookup")
            await self._fetch(first)

            snapshot = await self._load()
            if self._cancelled:
                raise StopAsyncIteration
            if snapshot == self._last:
                continue
            self._last = snapshot
            return snapshot

    def start(self, callback: Callable[[Any], Awaitable[None]]) -> asyncio.Task:
        """Deliver every snapshot to callback from a background task"""
        async def run():
            async for snapshot in self:
                await callback(snapshot)

        self._task = asyncio.create_task(run())
        return self._task

    async def cancel(self):
        if self._cancelled:
            return
        self._cancelled = True
        if self._stream is not None:
            await self._stream.close()
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Subscription on {self._collection.name} ended with error: {str(e)}")
