"""
sitebridge.core - Foundation layer for sitebridge.

Exports logging, subprocess helpers and exceptions.
"""

from sitebridge.core.utils import (
    # Logging
    log,
    Logger,
    # Runtime utilities
    run_cmd,
    describe_failure,
)
from sitebridge.core.exceptions import (
    SitebridgeError,
    RendererError,
)

__all__ = [
    # Logging
    "log",
    "Logger",
    # Runtime utilities
    "run_cmd",
    "describe_failure",
    # Exceptions
    "SitebridgeError",
    "RendererError",
]
