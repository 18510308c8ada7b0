"""
Build configuration for sitebridge.

Constants, dataclasses, and settings loading.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

import yaml
from dotenv import load_dotenv

from sitebridge.core.utils import log

__all__ = [
    "DEFAULT_RUNTIME",
    "RUNTIME_ENV_VAR",
    "WATCH_IGNORED",
    "PUBLISH_ITEMS",
    "SiteConfig",
    "OrchestratorSession",
    "load_settings",
    "load_environment",
]


# =============================================================================
# Constants
# =============================================================================

# Renderer runtime used when nothing else is configured
DEFAULT_RUNTIME = "python3"

# Environment variable overriding the renderer runtime
RUNTIME_ENV_VAR = "PY_EXECUTABLE"

# Paths the watcher never reports, relative to the site root. Most of these
# are written by the renderer itself and would otherwise trigger rebuild loops.
WATCH_IGNORED = [
    "assets/css/generated.daisyui.css",
    "assets/css/generated.fonts.css",
    "assets/css/syntax.css",
    ".venv/**",
    "dist/**",
    "index.html",
    "sitemap.xml",
    "blog/**",
    "posts/**",
    "tags/**",
]

# Rendered output copied into the output directory by a production build
PUBLISH_ITEMS = [
    "index.html",
    "sitemap.xml",
    "blog",
    "posts",
    "tags",
    "assets",
]


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class SiteConfig:
    """Fixed paths and names for one site."""

    site_root: Path
    settings_file: str = "config.yaml"
    requirements_file: str = "requirements.txt"
    venv_dir: str = ".venv"
    entry_point: str = "src/main.py"
    content_dir: str = "content"
    templates_dir: str = "templates"
    styles_dir: str = "assets/css"
    output_dir: str = "dist"
    images_input_dir: str = "assets/images"
    images_output_dir: str = "assets/images-processed"
    runtime_env_var: str = RUNTIME_ENV_VAR
    default_runtime: str = DEFAULT_RUNTIME
    port: int = 8000
    watch_ignored: list[str] = field(default_factory=lambda: list(WATCH_IGNORED))
    publish_items: list[str] = field(default_factory=lambda: list(PUBLISH_ITEMS))

    @property
    def settings_path(self) -> Path:
        return self.site_root / self.settings_file

    @property
    def requirements_path(self) -> Path:
        return self.site_root / self.requirements_file

    @property
    def venv_path(self) -> Path:
        return self.site_root / self.venv_dir

    @property
    def venv_python(self) -> Path:
        return self.venv_path / "bin" / "python"

    @property
    def venv_pip(self) -> Path:
        return self.venv_path / "bin" / "pip"

    @property
    def output_path(self) -> Path:
        return self.site_root / self.output_dir


@dataclass
class OrchestratorSession:
    """Mutable orchestrator state for the lifetime of the process.

    Owned by the LifecycleController and shared by reference with the
    dispatcher and the environment bootstrapper. Only mutated from the
    event-handling thread.
    """

    runtime_path: str
    ready: bool = False
    interrupt_handler_installed: bool = False
    builds_succeeded: int = 0


# =============================================================================
# Settings Loading
# =============================================================================


def load_settings(config: SiteConfig) -> Mapping[str, Any]:
    """Read the site settings file.

    Re-reads on every call so edits take effect immediately. Never raises:
    a missing, undecodable or malformed file yields an empty mapping.
    """
    try:
        with open(config.settings_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        log.error(f"[config] Unable to read {config.settings_file}: {e}")
        return MappingProxyType({})

    if not isinstance(data, dict):
        return MappingProxyType({})
    return MappingProxyType(data)


def load_environment(config: SiteConfig, env_file: Optional[Path] = None) -> bool:
    """Load ``.env`` from the site root into the process environment.

    Variables already present in the environment win. Returns True if a
    file was found and loaded.
    """
    path = env_file or (config.site_root / ".env")
    if not path.exists():
        return False
    return load_dotenv(path, override=False)
