"""
sitebridge.build - Build orchestration for sitebridge.

Runtime resolution, environment bootstrap, renderer invocation, rebuild
dispatch and lifecycle control.
"""

from sitebridge.build.config import (
    DEFAULT_RUNTIME,
    RUNTIME_ENV_VAR,
    WATCH_IGNORED,
    PUBLISH_ITEMS,
    SiteConfig,
    OrchestratorSession,
    load_settings,
    load_environment,
)
from sitebridge.build.renderer import (
    RenderQueue,
    Renderer,
)
from sitebridge.build.runtime import (
    EnvironmentBootstrapper,
    resolve_runtime,
    resolve_runtime_path,
)
from sitebridge.build.dispatcher import (
    FULL_RELOAD_MESSAGE,
    WatchEventKind,
    WatchEvent,
    RebuildAction,
    RebuildRequest,
    RebuildDispatcher,
    classify,
)
from sitebridge.build.orchestrator import LifecycleController

__all__ = [
    # Constants
    "DEFAULT_RUNTIME",
    "RUNTIME_ENV_VAR",
    "WATCH_IGNORED",
    "PUBLISH_ITEMS",
    "FULL_RELOAD_MESSAGE",
    # Data classes
    "SiteConfig",
    "OrchestratorSession",
    "WatchEventKind",
    "WatchEvent",
    "RebuildAction",
    "RebuildRequest",
    # Functions
    "load_settings",
    "load_environment",
    "resolve_runtime",
    "resolve_runtime_path",
    "classify",
    # Components
    "RenderQueue",
    "Renderer",
    "EnvironmentBootstrapper",
    "RebuildDispatcher",
    "LifecycleController",
]
