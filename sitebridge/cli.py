"""
Main CLI for sitebridge.

Provides dev server, production build and maintenance commands for a site
rendered by ``src/main.py``.
"""

from __future__ import annotations

import argparse
import sys

from sitebridge import __version__
from sitebridge.core.exceptions import SitebridgeError
from sitebridge.core.utils import log


# =============================================================================
# Argument Parsing
# =============================================================================


def _add_site_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--root",
        help="Site root directory (default: current directory)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with all subcommands."""

    parser = argparse.ArgumentParser(
        prog="sitebridge",
        description="Build orchestration for a Python-rendered static site",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  dev         Serve the site with live reload, rebuilding on change
  build       Production build into dist/
  clean       Remove generated files from the site root
  styles      Regenerate theme/font CSS
  runtime     Show which Python runtime renders the site

Examples:
  sitebridge dev                 # Serve on http://localhost:8000
  sitebridge dev --port 3000     # Custom port (WebSocket on port + 1)
  sitebridge build --root site/  # Build another directory
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        metavar="<command>",
    )

    # --- dev ---
    dev_parser = subparsers.add_parser(
        "dev",
        help="Serve the site with live reload, rebuilding on change",
        description="Bootstrap the renderer, build the site, then serve it "
                    "and rebuild whenever sources change.",
    )
    _add_site_options(dev_parser)
    dev_parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="HTTP port; the live reload WebSocket uses port + 1 (default: 8000)",
    )

    # --- build ---
    build_parser = subparsers.add_parser(
        "build",
        help="Production build into dist/",
        description="Render the site strictly, publish it to dist/, then clean up.",
    )
    _add_site_options(build_parser)

    # --- clean ---
    clean_parser = subparsers.add_parser(
        "clean",
        help="Remove generated files from the site root",
    )
    _add_site_options(clean_parser)

    # --- styles ---
    styles_parser = subparsers.add_parser(
        "styles",
        help="Regenerate theme/font CSS",
    )
    _add_site_options(styles_parser)

    # --- runtime ---
    runtime_parser = subparsers.add_parser(
        "runtime",
        help="Show which Python runtime renders the site",
    )
    _add_site_options(runtime_parser)

    return parser


# =============================================================================
# Main
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.no_color:
        log.set_color(False)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "dev":
            from .commands.dev import cmd_dev
            return cmd_dev(args)

        elif args.command == "build":
            from .commands.build import cmd_build
            return cmd_build(args)

        elif args.command == "clean":
            from .commands.build import cmd_clean
            return cmd_clean(args)

        elif args.command == "styles":
            from .commands.build import cmd_styles
            return cmd_styles(args)

        elif args.command == "runtime":
            from .commands.build import cmd_runtime
            return cmd_runtime(args)

        else:
            log.error(f"Unknown command: {args.command}")
            return 1

    except KeyboardInterrupt:
        log.warning("Interrupted")
        return 130
    except SitebridgeError as e:
        log.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
