"""
Background image preprocessing.

Writes resized WebP variants of the site's source images. Runs on its own
daemon thread with its own failure domain: errors are logged and never
affect the build.
"""

from __future__ import annotations

import threading
from pathlib import Path

from PIL import Image

from sitebridge.build.config import SiteConfig
from sitebridge.core.utils import log


IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
IMAGE_WIDTHS = [600, 1200]  # 1x and 2x for the content column
WEBP_QUALITY = 80


def variant_path(output_dir: Path, source: Path, width: int) -> Path:
    return output_dir / f"{source.stem}-{width}.webp"


def needs_regen(source: Path, cached: Path) -> bool:
    return not cached.exists() or cached.stat().st_mtime < source.stat().st_mtime


def process_image(source: Path, output_dir: Path) -> list[Path]:
    """Write WebP variants of one image, skipping up-to-date ones.

    Images narrower than a target width are not upscaled.
    """
    written: list[Path] = []
    pending = [
        width for width in IMAGE_WIDTHS
        if needs_regen(source, variant_path(output_dir, source, width))
    ]
    if not pending:
        return written

    with Image.open(source) as img:
        for width in pending:
            dest = variant_path(output_dir, source, width)
            if img.width > width:
                height = max(1, round(img.height * width / img.width))
                variant = img.resize((width, height), Image.Resampling.LANCZOS)
            else:
                variant = img.copy()
            variant.save(dest, "WEBP", quality=WEBP_QUALITY)
            written.append(dest)
    return written


def preprocess_images(input_dir: Path, output_dir: Path) -> list[Path]:
    """Process every image in ``input_dir`` into ``output_dir``."""
    if not input_dir.exists():
        return []
    output_dir.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for source in sorted(input_dir.iterdir()):
        if source.is_file() and source.suffix.lower() in IMAGE_EXTENSIONS:
            written.extend(process_image(source, output_dir))

    if written:
        log.info(f"[images] Wrote {len(written)} image variant(s)")
    return written


def _run_safely(input_dir: Path, output_dir: Path) -> None:
    try:
        preprocess_images(input_dir, output_dir)
    except Exception as e:
        log.error(f"[images] initial processing failed: {e}")


def start_image_preprocessing(config: SiteConfig) -> threading.Thread:
    """Kick off preprocessing in the background and return the thread."""
    input_dir = config.site_root / config.images_input_dir
    output_dir = config.site_root / config.images_output_dir
    input_dir.mkdir(parents=True, exist_ok=True)

    thread = threading.Thread(
        target=_run_safely,
        args=(input_dir, output_dir),
        name="sitebridge-images",
        daemon=True,
    )
    thread.start()
    return thread
