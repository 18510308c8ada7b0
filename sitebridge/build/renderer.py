"""
Renderer invocation for sitebridge.

Every external process (renderer runs, venv creation, pip installs) goes
through a single-worker RenderQueue, so at most one is in flight at a time
and no two rebuilds ever race on the output directory.
"""

from __future__ import annotations

import subprocess
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from sitebridge.build.config import OrchestratorSession, SiteConfig
from sitebridge.core.exceptions import RendererError
from sitebridge.core.utils import log, run_cmd


# Renderer mode flags
STYLES_FLAG = "--generate-styles"
CLEAN_FLAG = "--clean"
FILE_FLAG = "--file"


# =============================================================================
# Task Queue
# =============================================================================


class RenderQueue:
    """Serialized task queue with one in-flight command at a time.

    ``submit`` returns a Future per invocation; ``run`` blocks on it. There is
    no timeout and no cancellation: a started command always completes.
    """

    def __init__(self) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="sitebridge-render"
        )

    def submit(
        self,
        cmd: list[str],
        cwd: Optional[Path] = None,
        capture: bool = True,
    ) -> "Future[subprocess.CompletedProcess]":
        return self._executor.submit(run_cmd, cmd, cwd=cwd, capture=capture, check=True)

    def run(
        self,
        cmd: list[str],
        cwd: Optional[Path] = None,
        capture: bool = True,
    ) -> subprocess.CompletedProcess:
        """Run a command on the queue and wait for it to finish."""
        return self.submit(cmd, cwd=cwd, capture=capture).result()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)


# =============================================================================
# Renderer
# =============================================================================


class Renderer:
    """Invokes ``<runtime> src/main.py [mode]`` in the site root.

    The runtime path is read from the shared session on every call, so a
    runtime switch made by the bootstrapper applies to the next invocation.
    """

    def __init__(
        self,
        config: SiteConfig,
        session: OrchestratorSession,
        queue: Optional[RenderQueue] = None,
    ):
        self.config = config
        self.session = session
        self.queue = queue or RenderQueue()

    def command(self, *args: str) -> list[str]:
        """Build the renderer command line for the given mode arguments."""
        return [self.session.runtime_path, self.config.entry_point, *args]

    def invoke(self, *args: str) -> subprocess.CompletedProcess:
        """Run the renderer strictly.

        Raises:
            RendererError: If the process exits non-zero or cannot be started.
        """
        cmd = self.command(*args)
        try:
            return self.queue.run(cmd, cwd=self.config.site_root)
        except subprocess.CalledProcessError as e:
            raise RendererError(
                cmd, e.returncode, e.stdout or "", e.stderr or ""
            ) from e
        except OSError as e:
            raise RendererError(cmd, reason=str(e)) from e

    def _invoke_logged(self, failure_message: str, *args: str) -> bool:
        """Run the renderer, echoing output on success and logging on failure."""
        try:
            result = self.invoke(*args)
        except RendererError as e:
            log.error(f"{failure_message} {e}")
            if e.stdout.strip():
                log.error(e.stdout.strip())
            if e.stderr.strip():
                log.error(e.stderr.strip())
            return False
        log.output(result.stdout or "")
        return True

    def build(self, target: Optional[str] = None, strict: bool = False) -> bool:
        """Full rebuild, or a targeted rebuild of one content file.

        With ``strict=True`` a failure raises RendererError instead of
        being logged.
        """
        args = (FILE_FLAG, str(target)) if target else ()
        if strict:
            result = self.invoke(*args)
            log.output(result.stdout or "")
            return True
        return self._invoke_logged("[build] Script failed to update:", *args)

    def regenerate_styles(self) -> bool:
        """Regenerate derived theme/font CSS. Never raises."""
        return self._invoke_logged(
            "[styles] failed to generate theme/font CSS.", STYLES_FLAG
        )

    def clean(self) -> bool:
        """Remove generated files from the site root. Never raises."""
        return self._invoke_logged("[clean] Cleanup script failed:", CLEAN_FLAG)
