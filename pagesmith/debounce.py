"""Coalesce bursts of calls into one delayed invocation.

File watchers report many events for one save. :class:`Debouncer` restarts a
timer on every call and, once the timer expires, invokes the wrapped coroutine
function once with the de-duplicated union of every call's arguments. All
callers of the burst share the same future and see the same result.

Example
-------
>>> async def rebuild(paths):
...     return paths
>>> debounced = Debouncer(rebuild, delay=0.1)  # doctest: +SKIP
>>> first = debounced(["a.md"])  # doctest: +SKIP
>>> second = debounced(["b.md", "a.md"])  # doctest: +SKIP
>>> await second  # doctest: +SKIP
['a.md', 'b.md']
"""

from __future__ import annotations

import asyncio
import typing as typ

from pagesmith._constants import DEBOUNCE_DELAY

if typ.TYPE_CHECKING:
    import collections.abc as cabc

T = typ.TypeVar("T")
K = typ.TypeVar("K", bound=typ.Hashable)


class Debouncer(typ.Generic[K, T]):
    """Cancel-and-reschedule wrapper around a coroutine function.

    Parameters
    ----------
    func : Callable[[list[K]], Awaitable[T]]
        Called with the merged arguments of a burst, in first-seen order.
    delay : float, optional
        Seconds of quiet required before ``func`` runs.
    """

    def __init__(
        self,
        func: cabc.Callable[[list[K]], cabc.Awaitable[T]],
        *,
        delay: float = DEBOUNCE_DELAY,
    ) -> None:
        self.func = func
        self.delay = delay
        self._pending: dict[K, None] = {}
        self._future: asyncio.Future[T] | None = None
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> list[K]:
        """Return the arguments waiting for the timer to expire."""
        return list(self._pending)

    def __call__(self, items: cabc.Iterable[K]) -> asyncio.Future[T]:
        """Queue ``items`` and (re)start the timer.

        Must be called from the event loop thread.
        """
        loop = asyncio.get_running_loop()
        self._pending.update(dict.fromkeys(items))
        if self._handle is not None:
            self._handle.cancel()
        if self._future is None:
            self._future = loop.create_future()
        self._handle = loop.call_later(self.delay, self._fire)
        return self._future

    def cancel(self) -> None:
        """Drop the queued arguments and cancel the shared future."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._future is not None:
            self._future.cancel()
            self._future = None
        self._pending.clear()

    def _fire(self) -> None:
        items = list(self._pending)
        future = self._future
        self._pending.clear()
        self._future = None
        self._handle = None
        if future is None:
            return
        task = asyncio.ensure_future(self._run(items, future))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(self, items: list[K], future: asyncio.Future[T]) -> None:
        try:
            result = await self.func(items)
        except Exception as exc:  # noqa: BLE001 - delivered to every caller
            if not future.done():
                future.set_exception(exc)
            return
        if not future.done():
            future.set_result(result)


__all__ = ["Debouncer"]
