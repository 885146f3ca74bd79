"""Forward file-system events to a site's debounced rebuild entry points.

watchdog delivers events on its observer thread. :class:`SiteEventHandler`
hands each event to the event loop with ``call_soon_threadsafe``; from there
the site's debounced rebuilds coalesce bursts of events into single batches.
A failed rebuild is logged and watching continues.
"""

from __future__ import annotations

import asyncio
import os
import typing as typ

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from pagesmith.fsutil import is_inside, normalize_path
from pagesmith.logging import get_logger

if typ.TYPE_CHECKING:
    from pathlib import Path

    from pagesmith.site import Site

logger = get_logger("watch")


def _log_failure(future: asyncio.Future[typ.Any]) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("Rebuild failed: %s", exc, exc_info=exc)


class SiteEventHandler(FileSystemEventHandler):
    """Translate watchdog events into site rebuild requests.

    Parameters
    ----------
    site : Site
        Site whose pages are rebuilt.
    loop : asyncio.AbstractEventLoop
        Loop the site's rebuilds run on.
    """

    def __init__(self, site: Site, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__()
        self.site = site
        self.loop = loop
        self._ignored = (site.output_path, site.temp_path)

    def _is_ignored(self, path: Path) -> bool:
        return any(is_inside(path, folder) for folder in self._ignored)

    def _submit(self, kind: str, raw_path: str | bytes) -> None:
        path = normalize_path(os.fsdecode(raw_path))
        if self._is_ignored(path):
            return
        self.loop.call_soon_threadsafe(self.dispatch_change, kind, path)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._submit("created", event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._submit("modified", event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._submit("deleted", event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._submit("deleted", event.src_path)
        self._submit("created", event.dest_path)

    def dispatch_change(self, kind: str, path: Path) -> None:
        """Route one change to the right debounced rebuild. Runs on the loop."""
        logger.debug("%s: %s", kind.capitalize(), path)
        site = self.site
        match kind:
            case "created" if site.is_filepath_a_page(path):
                future = site.rebuild_source_files([path])
            case "deleted" if any(page.source_path == path for page in site.pages):
                future = site.rebuild_source_files([path])
            case _:
                future = site.rebuild_affected_source_files([path])
        future.add_done_callback(_log_failure)


class SiteWatcher:
    """Own the watchdog observer watching a site's root folder."""

    def __init__(self, site: Site, loop: asyncio.AbstractEventLoop) -> None:
        self.site = site
        self.handler = SiteEventHandler(site, loop)
        self.observer = Observer()

    def start(self) -> None:
        """Start watching the site root recursively."""
        self.observer.schedule(self.handler, str(self.site.root_path), recursive=True)
        self.observer.start()
        logger.info("Watching %s for changes", self.site.root_path)

    def stop(self) -> None:
        """Stop the observer thread and wait for it to exit."""
        self.observer.stop()
        self.observer.join()


async def serve(site: Site) -> None:
    """Generate ``site`` and keep rebuilding it until cancelled."""
    await site.generate()
    watcher = SiteWatcher(site, asyncio.get_running_loop())
    watcher.start()
    try:
        await asyncio.Event().wait()
    finally:
        watcher.stop()
        site.rebuild_affected_source_files.cancel()
        site.rebuild_page_being_viewed.cancel()
        site.rebuild_source_files.cancel()


__all__ = ["SiteEventHandler", "SiteWatcher", "serve"]
