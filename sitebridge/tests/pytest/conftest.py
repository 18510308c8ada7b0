"""
Shared pytest fixtures for sitebridge tests.

Provides an isolated site root and a recording stand-in for the renderer
queue, so no test ever launches the real renderer.

Test Tier Markers:
  @pytest.mark.evergreen - Tests that always run, never skip
"""

from __future__ import annotations

import signal
import subprocess
from concurrent.futures import Future
from pathlib import Path
from typing import Callable, Generator, Optional

import pytest

from sitebridge.build.config import OrchestratorSession, SiteConfig
from sitebridge.core.utils import log


# =============================================================================
# Recording Queue
# =============================================================================


class RecordingQueue:
    """Drop-in for RenderQueue that records commands instead of running them.

    ``fail_when`` registers a predicate over the command line; matching
    commands raise CalledProcessError. ``on_run`` hooks can simulate side
    effects such as venv creation.
    """

    def __init__(self, stdout: str = "") -> None:
        self.commands: list[list[str]] = []
        self.stdout = stdout
        self._failures: list[tuple[Callable[[list[str]], bool], int, str]] = []
        self._hooks: list[Callable[[list[str]], None]] = []
        self.shut_down = False

    def fail_when(
        self,
        predicate: Callable[[list[str]], bool],
        returncode: int = 1,
        stderr: str = "boom",
    ) -> None:
        self._failures.append((predicate, returncode, stderr))

    def on_run(self, hook: Callable[[list[str]], None]) -> None:
        self._hooks.append(hook)

    def run(
        self,
        cmd: list[str],
        cwd: Optional[Path] = None,
        capture: bool = True,
    ) -> subprocess.CompletedProcess:
        cmd = list(cmd)
        self.commands.append(cmd)
        for predicate, returncode, stderr in self._failures:
            if predicate(cmd):
                raise subprocess.CalledProcessError(returncode, cmd, "", stderr)
        for hook in self._hooks:
            hook(cmd)
        return subprocess.CompletedProcess(cmd, 0, self.stdout, "")

    def submit(
        self,
        cmd: list[str],
        cwd: Optional[Path] = None,
        capture: bool = True,
    ) -> Future:
        future: Future = Future()
        try:
            future.set_result(self.run(cmd, cwd=cwd, capture=capture))
        except subprocess.CalledProcessError as e:
            future.set_exception(e)
        return future

    def shutdown(self) -> None:
        self.shut_down = True

    # --- Query helpers ---

    def renderer_calls(self, entry_point: str = "src/main.py") -> list[list[str]]:
        """Renderer invocations only, as their mode arguments."""
        return [cmd[2:] for cmd in self.commands if len(cmd) >= 2 and cmd[1] == entry_point]

    def venv_calls(self) -> list[list[str]]:
        return [cmd for cmd in self.commands if cmd[1:3] == ["-m", "venv"]]

    def pip_calls(self) -> list[list[str]]:
        return [cmd for cmd in self.commands if cmd[0].endswith("pip") and "install" in cmd]


def is_renderer_mode(flag: Optional[str]) -> Callable[[list[str]], bool]:
    """Predicate matching renderer calls in one mode (None = full build)."""
    def predicate(cmd: list[str]) -> bool:
        if len(cmd) < 2 or cmd[1] != "src/main.py":
            return False
        if flag is None:
            return len(cmd) == 2
        return len(cmd) > 2 and cmd[2] == flag
    return predicate


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test tiers."""
    config.addinivalue_line(
        "markers",
        "evergreen: tests that always run, never skip (production tests)"
    )


@pytest.fixture(autouse=True)
def no_color() -> Generator[None, None, None]:
    """Plain log output so assertions can match text."""
    log.set_color(False)
    yield


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """A site root with the directories the dispatcher knows about."""
    root = tmp_path / "site"
    for sub in ("content", "templates", "assets/css", "src"):
        (root / sub).mkdir(parents=True)
    (root / "requirements.txt").write_text("jinja2\n")
    return root


@pytest.fixture
def site_config(site_root: Path) -> SiteConfig:
    return SiteConfig(site_root=site_root)


@pytest.fixture
def session() -> OrchestratorSession:
    return OrchestratorSession(runtime_path="python3")


@pytest.fixture
def queue() -> RecordingQueue:
    return RecordingQueue()


@pytest.fixture
def existing_venv(site_config: SiteConfig) -> Path:
    """Pretend the site's venv was already created."""
    (site_config.venv_path / "bin").mkdir(parents=True)
    site_config.venv_python.write_text("")
    return site_config.venv_path


@pytest.fixture
def restore_sigint() -> Generator[None, None, None]:
    """Put the original SIGINT handler back after the test."""
    original = signal.getsignal(signal.SIGINT)
    yield
    signal.signal(signal.SIGINT, original)
