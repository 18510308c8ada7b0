"""
Rebuild dispatch for watch events.

Translates filesystem change events into renderer invocations and
notifies connected browsers after each successful build.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path, PurePath
from typing import Any, Callable, Optional, Union

from sitebridge.build.config import OrchestratorSession, SiteConfig
from sitebridge.build.renderer import Renderer
from sitebridge.build.runtime import EnvironmentBootstrapper
from sitebridge.core.utils import log


# Message sent to browsers after every successful build
FULL_RELOAD_MESSAGE: dict[str, str] = {"type": "full-reload", "path": "*"}

Notifier = Callable[[dict[str, Any]], None]


# =============================================================================
# Events and Actions
# =============================================================================


class WatchEventKind(str, Enum):
    """Kind of filesystem change reported by the watcher."""
    ADD = "add"
    CHANGE = "change"
    UNLINK = "unlink"


@dataclass(frozen=True)
class WatchEvent:
    """A single filesystem change, consumed immediately."""

    kind: WatchEventKind
    path: str


class RebuildAction(Enum):
    """What the renderer has to do for an event."""
    SETTINGS_RELOAD = auto()   # Settings changed -> re-resolve runtime, styles, full build
    TARGETED_REBUILD = auto()  # Content changed -> rebuild that one page
    FULL_REBUILD = auto()      # Everything else that qualifies


@dataclass(frozen=True)
class RebuildRequest:
    action: RebuildAction
    target: Optional[str] = None


# =============================================================================
# Classification
# =============================================================================


def match_path(path: Union[str, PurePath], site_root: Path) -> str:
    """Forward-slash form of ``path`` used for substring matching.

    Paths inside the site root are made root-relative with a leading slash
    so that directories above the site never match a rule.
    """
    pure = PurePath(path)
    try:
        return "/" + pure.relative_to(site_root).as_posix()
    except ValueError:
        return pure.as_posix()


def classify(event: WatchEvent, config: SiteConfig) -> list[RebuildRequest]:
    """Map a watch event to the rebuilds it triggers.

    Rules after the settings-file rule are independent and additive: a
    content or template deletion matches two rules and yields two full
    rebuilds. An empty list means the event is a no-op.
    """
    path = match_path(event.path, config.site_root)
    kind = event.kind

    if path.endswith(config.settings_file):
        return [RebuildRequest(RebuildAction.SETTINGS_RELOAD)]

    requests: list[RebuildRequest] = []

    in_content = f"/{config.content_dir}/" in path
    in_templates = f"/{config.templates_dir}/" in path

    if in_content or in_templates:
        if kind == WatchEventKind.CHANGE:
            if in_templates:
                requests.append(RebuildRequest(RebuildAction.FULL_REBUILD))
            else:
                requests.append(RebuildRequest(RebuildAction.TARGETED_REBUILD, event.path))
        elif kind in (WatchEventKind.ADD, WatchEventKind.UNLINK):
            requests.append(RebuildRequest(RebuildAction.FULL_REBUILD))

    if kind == WatchEventKind.CHANGE and f"/{config.styles_dir}/" in path:
        requests.append(RebuildRequest(RebuildAction.FULL_REBUILD))

    if kind == WatchEventKind.UNLINK:
        requests.append(RebuildRequest(RebuildAction.FULL_REBUILD))

    return requests


# =============================================================================
# Dispatcher
# =============================================================================


class RebuildDispatcher:
    """Runs the rebuilds for watch events, gated on the readiness flag."""

    def __init__(
        self,
        config: SiteConfig,
        session: OrchestratorSession,
        renderer: Renderer,
        bootstrapper: EnvironmentBootstrapper,
        notifier: Optional[Notifier] = None,
    ):
        self.config = config
        self.session = session
        self.renderer = renderer
        self.bootstrapper = bootstrapper
        self.notifier = notifier

    def build(self, target: Optional[str] = None) -> bool:
        """Run a full or targeted build.

        Failures are logged and never raised. On success the session becomes
        ready and browsers are told to reload.
        """
        if not self.renderer.build(target):
            return False

        if self.notifier is not None:
            self.notifier(dict(FULL_RELOAD_MESSAGE))
        self.session.ready = True
        self.session.builds_succeeded += 1
        return True

    def handle_watch_event(self, event: WatchEvent) -> list[RebuildRequest]:
        """Classify one event and run its rebuilds in order.

        Ignored entirely until the first successful build. Returns the
        requests that were executed.
        """
        if not self.session.ready:
            return []

        requests = classify(event, self.config)
        for request in requests:
            self._execute(request)
        return requests

    def _execute(self, request: RebuildRequest) -> None:
        if request.action == RebuildAction.SETTINGS_RELOAD:
            log.info(f"[config] {self.config.settings_file} changed")
            self.bootstrapper.refresh_runtime_path()
            self.renderer.regenerate_styles()
            self.build()
        elif request.action == RebuildAction.TARGETED_REBUILD:
            self.build(request.target)
        elif request.action == RebuildAction.FULL_REBUILD:
            self.build()
