"""Errors raised by installer building blocks."""

from typing import Any, Dict, Optional


class InstallerStepError(Exception):
    """Base error for a single installer step, with context information."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ShellDetectionError(InstallerStepError):
    """The login shell could not be mapped to a profile file."""


class ProfileEditError(InstallerStepError):
    """A shell profile file could not be rewritten."""


class DownloadError(InstallerStepError):
    """A remote resource could not be fetched."""


class CommandError(InstallerStepError):
    """An external command could not be run or exited non-zero."""
