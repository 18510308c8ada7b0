"""
Shared utilities for sitebridge.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import Optional


# =============================================================================
# Logging
# =============================================================================


class Logger:
    """Simple colored logger with --no-color support.

    Informational output goes to stdout; warnings and errors go to stderr
    so they can be separated from echoed renderer output.
    """

    COLORS = {
        "reset": "\033[0m",
        "red": "\033[91m",
        "green": "\033[92m",
        "yellow": "\033[93m",
        "blue": "\033[94m",
        "cyan": "\033[96m",
        "bold": "\033[1m",
        "dim": "\033[2m",
    }

    def __init__(self, use_color: Optional[bool] = None):
        if use_color is None:
            self._use_color = sys.stdout.isatty()
        else:
            self._use_color = use_color

    def set_color(self, use_color: bool) -> None:
        """Set whether to use color output."""
        self._use_color = use_color

    def _color(self, text: str, color: str) -> str:
        if not self._use_color:
            return text
        return f"{self.COLORS.get(color, '')}{text}{self.COLORS['reset']}"

    def header(self, message: str) -> None:
        """Print a section header."""
        print(f"\n{self._color('===', 'cyan')} {self._color(message, 'bold')} {self._color('===', 'cyan')}")

    def info(self, message: str) -> None:
        """Print an info message."""
        print(f"  {message}")

    def output(self, text: str) -> None:
        """Echo captured subprocess output, skipping blank output."""
        text = text.strip()
        if text:
            print(text)

    def success(self, message: str) -> None:
        """Print a success message."""
        print(f"  {self._color('[OK]', 'green')} {message}")

    def warning(self, message: str) -> None:
        """Print a warning message."""
        print(f"  {self._color('[WARN]', 'yellow')} {message}", file=sys.stderr)

    def error(self, message: str) -> None:
        """Print an error message."""
        print(f"  {self._color('[ERROR]', 'red')} {message}", file=sys.stderr)

    def dim(self, message: str) -> None:
        """Print a dim/secondary message."""
        print(f"  {self._color(message, 'dim')}")


# Global logger instance
log = Logger()


# =============================================================================
# Subprocess Utilities
# =============================================================================


def run_cmd(
    cmd: list[str],
    cwd: Optional[Path] = None,
    capture: bool = False,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """Run a command, returning the completed process.

    With ``check=True`` a non-zero exit raises CalledProcessError; a missing
    executable always raises OSError.
    """
    return subprocess.run(
        cmd,
        cwd=cwd,
        capture_output=capture,
        text=True,
        check=check,
    )


def describe_failure(exc: BaseException) -> str:
    """One-line description of a failed command, including stderr if captured."""
    if isinstance(exc, subprocess.CalledProcessError):
        detail = f"exit code {exc.returncode}"
        stderr = (exc.stderr or "").strip()
        if stderr:
            detail += f": {stderr[:300]}"
        return detail
    return str(exc)
