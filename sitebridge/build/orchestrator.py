"""
Lifecycle controller for sitebridge.

Wires runtime resolution, environment bootstrap, style regeneration and
rebuild dispatch into the dev-server and production-build lifecycle,
including cleanup on close and on SIGINT.
"""

from __future__ import annotations

import signal
from typing import Mapping, Optional

from sitebridge.build.config import OrchestratorSession, SiteConfig
from sitebridge.build.dispatcher import Notifier, RebuildDispatcher, WatchEvent
from sitebridge.build.renderer import Renderer, RenderQueue
from sitebridge.build.runtime import EnvironmentBootstrapper, resolve_runtime_path
from sitebridge.core.utils import log


# Full builds run by the start hook
WARMUP_BUILDS = 2


class LifecycleController:
    """Owns the orchestrator session and drives every lifecycle hook."""

    def __init__(
        self,
        config: SiteConfig,
        notifier: Optional[Notifier] = None,
        environ: Optional[Mapping[str, str]] = None,
        queue: Optional[RenderQueue] = None,
    ):
        self.config = config
        self.queue = queue or RenderQueue()
        self.session = OrchestratorSession(
            runtime_path=resolve_runtime_path(config, environ)
        )
        log.info(f"[config] Using Python executable: {self.session.runtime_path}")

        self.renderer = Renderer(config, self.session, self.queue)
        self.bootstrapper = EnvironmentBootstrapper(
            config, self.session, self.queue, environ
        )
        self.dispatcher = RebuildDispatcher(
            config, self.session, self.renderer, self.bootstrapper, notifier
        )

    # -------------------------------------------------------------------------
    # Hooks
    # -------------------------------------------------------------------------

    def start(self, production: bool = False) -> None:
        """Build-start hook for both the dev server and production builds.

        Bootstraps the environment, regenerates styles, then runs the full
        build twice. In production the builds are strict.

        Raises:
            RendererError: In production mode, if a build fails.
        """
        self.bootstrapper.ensure_environment()
        self.renderer.regenerate_styles()

        log.info("[build] Generating static files...")
        for _ in range(WARMUP_BUILDS):
            if production:
                self.renderer.build(strict=True)
            else:
                self.dispatcher.build()

    def handle_watch_event(self, event: WatchEvent) -> None:
        self.dispatcher.handle_watch_event(event)

    def close(self) -> bool:
        """Bundle-close hook: remove generated files. Never raises."""
        log.info("[clean] Cleaning up root directory...")
        return self.renderer.clean()

    def shutdown(self) -> None:
        """Wait for the in-flight command, then stop the queue."""
        self.queue.shutdown()

    # -------------------------------------------------------------------------
    # Signals
    # -------------------------------------------------------------------------

    def install_interrupt_handler(self) -> bool:
        """Attach the SIGINT cleanup handler once.

        Returns False if it was already attached by this controller.
        """
        if self.session.interrupt_handler_installed:
            return False
        signal.signal(signal.SIGINT, self._handle_interrupt)
        self.session.interrupt_handler_installed = True
        return True

    def _handle_interrupt(self, signum, frame) -> None:
        log.info("")
        log.info("[clean] Cleaning up build files...")
        self.renderer.clean()
        raise SystemExit(0)
