"""
Filesystem watching for sitebridge.

Translates watchdog events into WatchEvent values and hands them to the
lifecycle controller, one at a time, on the observer thread.
"""

from __future__ import annotations

import fnmatch
from pathlib import Path, PurePath
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from sitebridge.build.config import SiteConfig
from sitebridge.build.dispatcher import WatchEvent, WatchEventKind
from sitebridge.core.utils import log


# =============================================================================
# Ignore Rules
# =============================================================================


def is_ignored(path: Path, config: SiteConfig) -> bool:
    """Check whether a changed path should never reach the dispatcher."""
    pure = PurePath(path)
    try:
        rel = pure.relative_to(config.site_root)
    except ValueError:
        return False

    if any(part.startswith(".") for part in rel.parts):
        return True
    if "__pycache__" in rel.parts:
        return True

    rel_str = rel.as_posix()
    for pattern in config.watch_ignored:
        if fnmatch.fnmatch(rel_str, pattern):
            return True
        # "dir/**" also covers the directory entry itself
        if pattern.endswith("/**") and rel_str == pattern[:-3]:
            return True
    return False


# =============================================================================
# File System Event Handler
# =============================================================================


class SiteEventHandler(FileSystemEventHandler):
    """Forwards file events to a callback as add/change/unlink WatchEvents."""

    def __init__(self, config: SiteConfig, callback: Callable[[WatchEvent], None]):
        super().__init__()
        self.config = config
        self.callback = callback

    def on_created(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._emit(WatchEventKind.ADD, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._emit(WatchEventKind.CHANGE, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._emit(WatchEventKind.UNLINK, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        self._emit(WatchEventKind.UNLINK, event.src_path)
        self._emit(WatchEventKind.ADD, event.dest_path)

    def _emit(self, kind: WatchEventKind, raw_path) -> None:
        if isinstance(raw_path, bytes):
            raw_path = raw_path.decode()
        path = Path(raw_path)
        if is_ignored(path, self.config):
            return
        self.callback(WatchEvent(kind, str(path)))


def create_observer(config: SiteConfig, handler: SiteEventHandler) -> Optional[Observer]:
    """Schedule a recursive watch on the site root."""
    observer = Observer()
    try:
        observer.schedule(handler, str(config.site_root), recursive=True)
    except OSError as e:
        log.warning(f"Could not watch {config.site_root}: {e}")
        return None
    log.info(f"  Watching: {config.site_root}")
    return observer
