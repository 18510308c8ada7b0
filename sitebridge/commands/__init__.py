"""
sitebridge.commands - CLI command implementations.
"""

from __future__ import annotations

import argparse
from pathlib import Path

from sitebridge.build.config import SiteConfig


def site_config_from_args(args: argparse.Namespace) -> SiteConfig:
    """Build a SiteConfig from the common --root/--port options."""
    root = Path(getattr(args, "root", None) or Path.cwd()).resolve()
    config = SiteConfig(site_root=root)
    port = getattr(args, "port", None)
    if port:
        config.port = port
    return config
