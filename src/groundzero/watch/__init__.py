"""
File watching and debounced incremental rebuilds.
"""

from .observer import IconEventHandler, SiteWatcher, TemplateEventHandler, watch_site
from .scheduler import ChangeScheduler, DebounceTimer, FileEventType, FlushReport, SchedulerState

__all__ = [
    "ChangeScheduler",
    "DebounceTimer",
    "FileEventType",
    "FlushReport",
    "SchedulerState",
    "IconEventHandler",
    "SiteWatcher",
    "TemplateEventHandler",
    "watch_site",
]
