"""
Renderer runtime resolution and environment bootstrap.

Resolution precedence, first match wins:

1. ``PY_EXECUTABLE`` environment variable
2. the site's ``.venv/bin/python``, if it exists
3. settings: ``runtime.python_executable``, ``runtime.python``,
   ``runtime.interpreter``, ``python_executable``, ``python``
4. ``python3``
"""

from __future__ import annotations

import os
import subprocess
from typing import Any, Mapping, Optional

from sitebridge.build.config import OrchestratorSession, SiteConfig, load_settings
from sitebridge.build.renderer import RenderQueue
from sitebridge.core.utils import describe_failure, log


# =============================================================================
# Runtime Locator
# =============================================================================


def sanitize_executable(value: Any) -> str:
    """Trim a candidate executable; anything but a string counts as empty."""
    if not isinstance(value, str):
        return ""
    return value.strip()


def settings_candidates(settings: Mapping[str, Any]) -> list[tuple[str, Any]]:
    """Runtime candidates from settings, in precedence order."""
    runtime = settings.get("runtime")
    if not isinstance(runtime, Mapping):
        runtime = {}
    return [
        ("runtime.python_executable", runtime.get("python_executable")),
        ("runtime.python", runtime.get("python")),
        ("runtime.interpreter", runtime.get("interpreter")),
        ("python_executable", settings.get("python_executable")),
        ("python", settings.get("python")),
    ]


def resolve_runtime(
    config: SiteConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> tuple[str, str]:
    """Resolve the renderer runtime and report where it came from.

    Returns (runtime_path, source). Never raises and never returns an
    empty path.
    """
    if environ is None:
        environ = os.environ

    override = sanitize_executable(environ.get(config.runtime_env_var))
    if override:
        return override, f"${config.runtime_env_var}"

    if config.venv_python.exists():
        return str(config.venv_python), config.venv_dir

    # Settings are only read when the earlier sources are empty
    settings = load_settings(config)
    for key, candidate in settings_candidates(settings):
        value = sanitize_executable(candidate)
        if value:
            return value, f"{config.settings_file}:{key}"

    return config.default_runtime, "default"


def resolve_runtime_path(
    config: SiteConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Resolve the renderer runtime path."""
    return resolve_runtime(config, environ)[0]


# =============================================================================
# Environment Bootstrapper
# =============================================================================


class EnvironmentBootstrapper:
    """Creates the site's virtual environment and installs requirements.

    Best effort: every step logs its failure and carries on, nothing is
    raised to the caller.
    """

    def __init__(
        self,
        config: SiteConfig,
        session: OrchestratorSession,
        queue: RenderQueue,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.config = config
        self.session = session
        self.queue = queue
        self.environ = environ

    def is_bootstrapped(self) -> bool:
        return self.config.venv_path.exists()

    def ensure_environment(self) -> None:
        """Create the venv if missing, then (re)install requirements.

        An existing venv is never re-created; repeated calls only re-run
        the install step.
        """
        venv_path = self.config.venv_path

        if not self.is_bootstrapped():
            log.info("[env] Creating python virtual environment...")
            try:
                self.queue.run(
                    [self.config.default_runtime, "-m", "venv", str(venv_path)],
                    cwd=self.config.site_root,
                    capture=False,
                )
            except (subprocess.CalledProcessError, OSError) as e:
                log.error(f"[env] Failed to create virtual environment. {describe_failure(e)}")
                return
            self.session.runtime_path = str(self.config.venv_python)

        try:
            log.info("[env] Installing python dependencies...")
            self.queue.run(
                [
                    str(self.config.venv_pip),
                    "install",
                    "-r",
                    str(self.config.requirements_path),
                ],
                cwd=self.config.site_root,
                capture=False,
            )
        except (subprocess.CalledProcessError, OSError) as e:
            log.error(f"[env] Failed to install Python dependencies. {describe_failure(e)}")

    def refresh_runtime_path(self) -> str:
        """Re-resolve the runtime; re-bootstrap only if it changed."""
        resolved = resolve_runtime_path(self.config, self.environ)
        if resolved != self.session.runtime_path:
            log.info(f"[config] Python executable updated to: {resolved}")
            self.session.runtime_path = resolved
            self.ensure_environment()
        return self.session.runtime_path
