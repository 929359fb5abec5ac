"""
Debounced rebuild scheduling for template changes.

A burst of file notifications is collected into one pending set. The first
notification arms a short timer; later ones only add paths. When the timer
fires, one flush rebuilds the dependency graph, works out which pages are
affected and recompiles them (or every page when the change maps to none).
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, FrozenSet, Iterable, Optional, Set

from ..config import SiteConfig
from ..graph import DependencyGraph, build_site_graph, impacted_documents
from ..render import BuildReport, compile_pages

logger = logging.getLogger(__name__)


class FileEventType(Enum):
    """Kinds of file notification accepted by the scheduler."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


class SchedulerState(Enum):
    IDLE = "idle"
    PENDING = "pending"
    FLUSHING = "flushing"


class DebounceTimer:
    """
    Cancel-and-rearm wrapper around ``loop.call_later``.

    With ``restart_on_arm`` False, arming an already armed timer is a no-op, so
    the callback fires a fixed delay after the first arm. With it True, every arm
    pushes the deadline back (trailing debounce).
    """

    def __init__(self, delay: float, callback: Callable[[], Any], *, restart_on_arm: bool = False) -> None:
        self.delay = delay
        self.callback = callback
        self.restart_on_arm = restart_on_arm
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self) -> bool:
        """Arm the timer; returns True when a new deadline was scheduled."""
        if self._handle is not None:
            if not self.restart_on_arm:
                return False
            self._handle.cancel()
        self._handle = asyncio.get_running_loop().call_later(self.delay, self._fire)
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self.callback()


@dataclass(frozen=True)
class FlushReport:
    """
    What one flush did.

    Attributes:
        changed: Paths taken from the pending set.
        impacted: Pages the impact analysis mapped the changes to.
        full_rebuild: True when nothing was mapped and every page was rebuilt.
        build: Renderer report for the pages compiled in this flush.
    """
    changed: FrozenSet[Path] = frozenset()
    impacted: FrozenSet[Path] = frozenset()
    full_rebuild: bool = False
    build: BuildReport = field(default_factory=BuildReport)


GraphBuilder = Callable[[], Awaitable[DependencyGraph]]
PageRenderer = Callable[[Iterable[Path], DependencyGraph], BuildReport]
FlushCallback = Callable[[FlushReport], Any]


class ChangeScheduler:
    """
    Coalesces template change notifications into debounced rebuild flushes.

    The scheduler owns the current DependencyGraph and replaces it at the start
    of every flush. Flushes run one at a time; notifications arriving while a
    flush is rendering collect into the next pending set. ``notify`` must be
    called from the event loop thread.

    Args:
        config: Site configuration (roots, extensions, debounce window).
        graph: Initial graph snapshot, usually built at watcher startup.
        delay: Debounce window in seconds; defaults to ``config.debounce_seconds``.
        build_graph: Coroutine factory producing a fresh graph.
        render_pages: Compiles the given pages using the fresh graph; runs in a
            worker thread.
        on_flushed: Called (and awaited, if it returns an awaitable) after every
            flush that had changes, e.g. to trigger a browser reload.
    """

    def __init__(
        self,
        config: SiteConfig,
        *,
        graph: Optional[DependencyGraph] = None,
        delay: Optional[float] = None,
        build_graph: Optional[GraphBuilder] = None,
        render_pages: Optional[PageRenderer] = None,
        on_flushed: Optional[FlushCallback] = None,
    ) -> None:
        self.config = config
        self.graph = graph if graph is not None else DependencyGraph()
        self.delay = config.debounce_seconds if delay is None else delay
        self.flush_count = 0
        self._build_graph = build_graph or (lambda: build_site_graph(config))
        self._render_pages = render_pages or self._compile
        self._on_flushed = on_flushed
        self._pending: Set[Path] = set()
        self._timer = DebounceTimer(self.delay, self._on_timer)
        self._lock = asyncio.Lock()
        self._tasks: Set[asyncio.Task] = set()
        self._flushing = False

    @property
    def state(self) -> SchedulerState:
        if self._flushing:
            return SchedulerState.FLUSHING
        if self._pending or self._timer.armed:
            return SchedulerState.PENDING
        return SchedulerState.IDLE

    @property
    def pending(self) -> FrozenSet[Path]:
        return frozenset(self._pending)

    def notify(self, event_type: FileEventType, path: Path | str) -> bool:
        """
        Record a changed path and arm the flush timer if it is not already armed.

        Returns False (and does nothing) for paths without the template extension.
        """
        if not self.config.is_template(path):
            return False
        absolute = Path(os.path.abspath(os.path.join(self.config.project_root, path)))
        logger.info("%s: %s", event_type.value, absolute)
        self._pending.add(absolute)
        self._timer.arm()
        return True

    def cancel(self) -> None:
        """Disarm the timer and drop pending changes."""
        self._timer.cancel()
        self._pending.clear()

    async def flush(self) -> FlushReport:
        """
        Run one rebuild cycle for everything pending.

        Waits for any flush already in progress. An empty pending set returns an
        empty report without touching the graph or the output.
        """
        async with self._lock:
            self._timer.cancel()
            changed = frozenset(self._pending)
            self._pending = set()
            if not changed:
                return FlushReport()

            self._flushing = True
            try:
                self.graph = await self._build_graph()
                impacted = frozenset(impacted_documents(changed, self.graph, base_dir=self.config.project_root))
                full_rebuild = not impacted
                if full_rebuild:
                    logger.info(
                        "No page depends on %d changed file(s); rebuilding all %d page(s)",
                        len(changed),
                        len(self.graph.documents),
                    )
                    targets: FrozenSet[Path] = self.graph.documents
                else:
                    logger.info("Rebuilding %d impacted page(s)", len(impacted))
                    targets = impacted
                build = await asyncio.to_thread(self._render_pages, targets, self.graph)
            finally:
                self._flushing = False
            self.flush_count += 1
            logger.info(
                "Flush %d finished: %d written, %d failed",
                self.flush_count,
                len(build.written),
                len(build.failures),
            )

        report = FlushReport(changed=changed, impacted=impacted, full_rebuild=full_rebuild, build=build)
        if self._on_flushed is not None:
            result = self._on_flushed(report)
            if inspect.isawaitable(result):
                await result
        return report

    async def stop(self) -> None:
        """Disarm the timer, wait for in-flight flushes and flush what is still pending."""
        self._timer.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        if self._pending:
            await self.flush()

    def _on_timer(self) -> None:
        task = asyncio.get_running_loop().create_task(self.flush())
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Rebuild flush failed: %s", exc, exc_info=exc)

    def _compile(self, documents: Iterable[Path], graph: DependencyGraph) -> BuildReport:
        return compile_pages(documents, self.config, fragments=graph.fragments, strict=False)
