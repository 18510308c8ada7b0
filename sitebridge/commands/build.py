"""
One-shot commands: production build, cleanup, styles, runtime report.
"""

from __future__ import annotations

import argparse
import shutil
from pathlib import Path

from sitebridge.build.config import SiteConfig, load_environment
from sitebridge.build.images import start_image_preprocessing
from sitebridge.build.orchestrator import LifecycleController
from sitebridge.build.runtime import resolve_runtime
from sitebridge.commands import site_config_from_args
from sitebridge.core.exceptions import RendererError
from sitebridge.core.utils import log


# =============================================================================
# Publishing
# =============================================================================


def publish_output(config: SiteConfig) -> list[Path]:
    """Copy rendered output from the site root into the output directory.

    The output directory is recreated from scratch. Missing items are
    skipped. Returns the published paths.
    """
    out_dir = config.output_path
    if out_dir.exists():
        shutil.rmtree(out_dir)
    out_dir.mkdir(parents=True)

    published: list[Path] = []
    for item in config.publish_items:
        src = config.site_root / item
        dest = out_dir / item
        if src.is_dir():
            shutil.copytree(src, dest)
        elif src.is_file():
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dest)
        else:
            continue
        published.append(dest)
    return published


# =============================================================================
# Commands
# =============================================================================


def cmd_build(args: argparse.Namespace) -> int:
    """Execute the production build command."""
    config = site_config_from_args(args)
    log.header(f"sitebridge build: {config.site_root.name}")

    load_environment(config)
    images = start_image_preprocessing(config)

    controller = LifecycleController(config)
    try:
        try:
            controller.start(production=True)
        except RendererError as e:
            log.error(f"[build] Failed to generate static files: {e}")
            if e.stderr.strip():
                log.error(e.stderr.strip())
            return 1

        # Processed images are part of the published assets
        images.join()

        published = publish_output(config)
        log.success(f"Published {len(published)} item(s) to {config.output_path}")
    finally:
        controller.close()
        controller.shutdown()

    return 0


def cmd_clean(args: argparse.Namespace) -> int:
    """Execute the clean command."""
    config = site_config_from_args(args)
    load_environment(config)

    controller = LifecycleController(config)
    try:
        ok = controller.close()
    finally:
        controller.shutdown()
    return 0 if ok else 1


def cmd_styles(args: argparse.Namespace) -> int:
    """Execute the styles command."""
    config = site_config_from_args(args)
    load_environment(config)

    controller = LifecycleController(config)
    try:
        ok = controller.renderer.regenerate_styles()
    finally:
        controller.shutdown()
    return 0 if ok else 1


def cmd_runtime(args: argparse.Namespace) -> int:
    """Show which renderer runtime would be used, and why."""
    config = site_config_from_args(args)
    load_environment(config)

    path, source = resolve_runtime(config)
    log.info(f"Runtime: {path}")
    log.dim(f"Source:  {source}")
    venv_state = "present" if config.venv_path.exists() else "missing"
    log.dim(f"Venv:    {config.venv_path} ({venv_state})")
    return 0
