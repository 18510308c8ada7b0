"""
sitebridge - build orchestration for a static-site generator.

Bridges a live-reload dev server and one-shot production builds with an
external Python renderer (``src/main.py``), keeping generated output in
sync with source changes.
"""

__version__ = "0.1.0"
