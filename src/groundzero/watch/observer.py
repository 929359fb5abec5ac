"""
Watchdog-backed watcher that drives the change scheduler and the icon sprite.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Optional, Set

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..assets import generate_svg_sprite
from ..config import SiteConfig
from ..graph import build_site_graph
from .scheduler import ChangeScheduler, DebounceTimer, FileEventType, FlushCallback

logger = logging.getLogger(__name__)


class TemplateEventHandler(FileSystemEventHandler):
    """
    Forward template file events to a callback on the event loop.

    Watchdog calls handlers from its own thread, so every event is handed to the
    loop with ``call_soon_threadsafe``. Directory events and files without the
    template extension are dropped here.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        callback: Callable[[FileEventType, str], object],
        extension: str,
    ) -> None:
        super().__init__()
        self._loop = loop
        self._callback = callback
        self._extension = extension

    def _dispatch(self, event_type: FileEventType, path: str) -> None:
        if not path.endswith(self._extension):
            return
        self._loop.call_soon_threadsafe(self._callback, event_type, path)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._dispatch(FileEventType.CREATED, os.fsdecode(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._dispatch(FileEventType.MODIFIED, os.fsdecode(event.src_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._dispatch(FileEventType.DELETED, os.fsdecode(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._dispatch(FileEventType.DELETED, os.fsdecode(event.src_path))
        self._dispatch(FileEventType.CREATED, os.fsdecode(event.dest_path))


class IconEventHandler(FileSystemEventHandler):
    """Poke a callback on the event loop whenever an ``.svg`` file changes."""

    def __init__(self, loop: asyncio.AbstractEventLoop, callback: Callable[[], object]) -> None:
        super().__init__()
        self._loop = loop
        self._callback = callback

    def _touches_svg(self, event: FileSystemEvent) -> bool:
        paths = [os.fsdecode(event.src_path)]
        if getattr(event, "dest_path", None):
            paths.append(os.fsdecode(event.dest_path))
        return any(path.lower().endswith(".svg") for path in paths)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type in ("opened", "closed", "closed_no_write"):
            return
        if self._touches_svg(event):
            self._loop.call_soon_threadsafe(self._callback)


class SiteWatcher:
    """
    Watch the pages, partials and icons directories of a site.

    Template events feed a ChangeScheduler. Icon events are debounced separately
    and regenerate the sprite fragment, whose own write then reaches the
    scheduler like any other fragment edit.
    """

    def __init__(self, config: SiteConfig, *, on_flushed: Optional[FlushCallback] = None) -> None:
        self.config = config
        self.scheduler: Optional[ChangeScheduler] = None
        self._on_flushed = on_flushed
        self._observer: Optional[Observer] = None
        self._icons_timer = DebounceTimer(config.icons_debounce_seconds, self._schedule_sprite, restart_on_arm=True)
        self._sprite_tasks: Set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    async def start(self) -> None:
        if self._observer is not None:
            logger.warning("Watcher already running")
            return
        loop = asyncio.get_running_loop()
        graph = await build_site_graph(self.config)
        self.scheduler = ChangeScheduler(self.config, graph=graph, on_flushed=self._on_flushed)

        observer = Observer()
        template_handler = TemplateEventHandler(loop, self.scheduler.notify, self.config.template_extension)
        for root in (self.config.pages_root, self.config.partials_root):
            self._schedule(observer, template_handler, root)
        self._schedule(observer, IconEventHandler(loop, self._icons_timer.arm), self.config.icons_root)
        observer.start()
        self._observer = observer

    async def stop(self) -> None:
        if self._observer is None:
            return
        observer, self._observer = self._observer, None
        observer.stop()
        await asyncio.to_thread(observer.join, 5.0)
        self._icons_timer.cancel()
        if self._sprite_tasks:
            await asyncio.gather(*list(self._sprite_tasks), return_exceptions=True)
        if self.scheduler is not None:
            await self.scheduler.stop()
        logger.info("Watcher stopped")

    @staticmethod
    def _schedule(observer: Observer, handler: FileSystemEventHandler, root: Path) -> None:
        if not root.is_dir():
            logger.warning(
                "Not watching %s: directory does not exist; restart the watcher once it has been created",
                root,
            )
            return
        observer.schedule(handler, str(root), recursive=True)
        logger.info("Watching %s", root)

    def _schedule_sprite(self) -> None:
        task = asyncio.get_running_loop().create_task(self._regenerate_sprite())
        self._sprite_tasks.add(task)
        task.add_done_callback(self._sprite_tasks.discard)

    async def _regenerate_sprite(self) -> None:
        try:
            await asyncio.to_thread(generate_svg_sprite, self.config.icons_root, self.config.sprite_path)
        except OSError as exc:
            logger.error("Sprite regeneration failed: %s", exc)


async def watch_site(
    config: SiteConfig,
    *,
    stop_event: Optional[asyncio.Event] = None,
    on_flushed: Optional[FlushCallback] = None,
) -> None:
    """
    Watch a site until stop_event is set (or the task is cancelled).
    """
    watcher = SiteWatcher(config, on_flushed=on_flushed)
    await watcher.start()
    try:
        await (stop_event or asyncio.Event()).wait()
    finally:
        await watcher.stop()
