"""Drive page generation with a bounded number of concurrent pages.

A batch runs ``min(K, len(pages))`` worker tasks that take pages from a shared
queue, so at most ``K`` pages are in flight at any time. The first failure
resolves the batch with a :class:`~pagesmith.errors.GenerationError` naming
the failing source. Pages already in flight are not cancelled: they run to
completion in the background, and no worker takes a new page afterwards. Their
later failures are logged.
"""

from __future__ import annotations

import asyncio
import collections
import typing as typ

from pagesmith._constants import MAX_CONCURRENT_PAGE_GENERATION
from pagesmith.errors import GenerationError
from pagesmith.generator.models import FragmentRegistry
from pagesmith.logging import get_logger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from pagesmith.generator.models import Page

    GenerateFn = cabc.Callable[[Page, FragmentRegistry], cabc.Awaitable[None]]

logger = get_logger("scheduler")


class PageScheduler:
    """Run page generation batches with at most ``concurrency`` pages in flight.

    Parameters
    ----------
    concurrency : int, optional
        Maximum number of pages generated at once. Must be positive.

    Raises
    ------
    ValueError
        If ``concurrency`` is smaller than one.
    """

    def __init__(self, concurrency: int = MAX_CONCURRENT_PAGE_GENERATION) -> None:
        if concurrency < 1:
            msg = f"Concurrency must be at least 1, got {concurrency}."
            raise ValueError(msg)
        self.concurrency = concurrency
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def running(self) -> int:
        """Return the number of worker tasks that have not finished yet."""
        return len(self._tasks)

    async def run_all(
        self, pages: cabc.Iterable[Page], generate: GenerateFn
    ) -> None:
        """Generate every page in ``pages`` with a fresh fragment registry.

        Parameters
        ----------
        pages : Iterable[Page]
            Pages of the batch, started in iteration order.
        generate : Callable[[Page, FragmentRegistry], Awaitable[None]]
            Coroutine function rendering one page.

        Raises
        ------
        GenerationError
            On the first page that fails, chained from the original error.
        """
        queue = collections.deque(pages)
        total = len(queue)
        if not total:
            return
        registry = FragmentRegistry()
        outcome: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        completed = 0

        async def _worker() -> None:
            nonlocal completed
            while queue and not outcome.done():
                page = queue.popleft()
                try:
                    await generate(page, registry)
                except Exception as exc:
                    if outcome.done():
                        logger.error(
                            "Error while generating %s after the batch failed: %s",
                            page.source_path,
                            exc,
                        )
                        return
                    msg = f"Error while generating {page.source_path}"
                    error = GenerationError(msg, path=page.source_path)
                    error.__cause__ = exc
                    outcome.set_exception(error)
                    return
                completed += 1
                logger.debug("Generated %s (%d/%d)", page.src, completed, total)
                if completed == total and not outcome.done():
                    outcome.set_result(None)

        for _ in range(min(self.concurrency, total)):
            task = asyncio.create_task(_worker())
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        await outcome


__all__ = ["PageScheduler"]
