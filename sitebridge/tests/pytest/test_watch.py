"""
Tests for the watchdog adapter: event mapping and ignore rules.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest
from watchdog.events import (
    DirCreatedEvent,
    DirDeletedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)
from watchdog.observers import Observer

from sitebridge.build.config import SiteConfig
from sitebridge.build.dispatcher import WatchEvent, WatchEventKind
from sitebridge.commands.watch import SiteEventHandler, create_observer, is_ignored


@pytest.fixture
def received() -> list[WatchEvent]:
    return []


@pytest.fixture
def handler(site_config: SiteConfig, received: list[WatchEvent]) -> SiteEventHandler:
    return SiteEventHandler(site_config, received.append)


def site_path(config: SiteConfig, rel: str) -> str:
    return str(config.site_root / rel)


@pytest.mark.evergreen
class TestEventMapping:
    """watchdog events become add/change/unlink WatchEvents."""

    def test_created_is_add(self, handler, site_config, received) -> None:
        path = site_path(site_config, "content/new.md")
        handler.dispatch(FileCreatedEvent(path))
        assert received == [WatchEvent(WatchEventKind.ADD, path)]

    def test_modified_is_change(self, handler, site_config, received) -> None:
        path = site_path(site_config, "templates/base.html")
        handler.dispatch(FileModifiedEvent(path))
        assert received == [WatchEvent(WatchEventKind.CHANGE, path)]

    def test_deleted_is_unlink(self, handler, site_config, received) -> None:
        path = site_path(site_config, "content/old.md")
        handler.dispatch(FileDeletedEvent(path))
        assert received == [WatchEvent(WatchEventKind.UNLINK, path)]

    def test_moved_is_unlink_then_add(self, handler, site_config, received) -> None:
        src = site_path(site_config, "content/draft.md")
        dest = site_path(site_config, "content/published.md")
        handler.dispatch(FileMovedEvent(src, dest))
        assert received == [
            WatchEvent(WatchEventKind.UNLINK, src),
            WatchEvent(WatchEventKind.ADD, dest),
        ]

    def test_directory_events_are_skipped(self, handler, site_config, received) -> None:
        handler.dispatch(DirCreatedEvent(site_path(site_config, "content/2024")))
        handler.dispatch(DirDeletedEvent(site_path(site_config, "content/2023")))
        assert received == []

    def test_ignored_paths_are_dropped(self, handler, site_config, received) -> None:
        handler.dispatch(FileModifiedEvent(site_path(site_config, "posts/hello/index.html")))
        handler.dispatch(FileModifiedEvent(site_path(site_config, "assets/css/generated.fonts.css")))
        assert received == []


@pytest.mark.evergreen
class TestIsIgnored:

    @pytest.mark.parametrize(
        "rel",
        [
            "index.html",
            "sitemap.xml",
            "blog/index.html",
            "posts/hello/index.html",
            "tags/python/index.html",
            "dist/assets/app.js",
            "dist",
            ".venv/lib/python3.12/site.py",
            ".git/index",
            ".env",
            "src/__pycache__/main.cpython-312.pyc",
            "assets/css/generated.daisyui.css",
            "assets/css/generated.fonts.css",
            "assets/css/syntax.css",
        ],
    )
    def test_generated_and_hidden_paths(self, site_config: SiteConfig, rel: str) -> None:
        assert is_ignored(site_config.site_root / rel, site_config) is True

    @pytest.mark.parametrize(
        "rel",
        [
            "config.yaml",
            "content/posts/hello.md",
            "templates/post.html",
            "assets/css/site.css",
            "src/main.py",
            "content/blog/notes.md",
        ],
    )
    def test_source_paths(self, site_config: SiteConfig, rel: str) -> None:
        assert is_ignored(site_config.site_root / rel, site_config) is False

    def test_paths_outside_site_root(self, site_config: SiteConfig, tmp_path: Path) -> None:
        assert is_ignored(tmp_path / "elsewhere" / "index.html", site_config) is False

    def test_custom_patterns(self, site_root: Path) -> None:
        config = SiteConfig(site_root=site_root, watch_ignored=["drafts/**"])

        assert is_ignored(site_root / "drafts" / "wip.md", config) is True
        assert is_ignored(site_root / "index.html", config) is False


@pytest.mark.evergreen
class TestCreateObserver:

    def test_schedules_site_root(self, site_config: SiteConfig, handler: SiteEventHandler) -> None:
        observer = create_observer(site_config, handler)

        assert observer is not None
        watched = {emitter.watch.path for emitter in observer.emitters}
        assert str(site_config.site_root) in watched

    def test_schedule_failure_returns_none(
        self, site_config: SiteConfig, handler: SiteEventHandler, capsys
    ) -> None:
        with patch.object(Observer, "schedule", side_effect=OSError("inotify watch limit reached")):
            observer = create_observer(site_config, handler)

        assert observer is None
        assert "inotify watch limit reached" in capsys.readouterr().err
