"""Custom exceptions for sitebridge."""

from __future__ import annotations

from typing import Optional


class SitebridgeError(Exception):
    """Base exception for all sitebridge errors."""


class RendererError(SitebridgeError):
    """Raised when a strict renderer invocation fails.

    Only the production build start hook runs the renderer strictly;
    everywhere else failures are logged and swallowed.
    """

    def __init__(
        self,
        command: list[str],
        returncode: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
        reason: str = "",
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        if returncode is not None:
            message = f"Renderer failed with exit code {returncode}: {' '.join(command)}"
        else:
            message = f"Renderer could not be started ({reason}): {' '.join(command)}"
        super().__init__(message)
