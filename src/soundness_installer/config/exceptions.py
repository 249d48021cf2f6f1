"""Configuration-related exceptions."""

from typing import Any, Dict, Optional


class ConfigurationError(Exception):
    """Installer settings could not be loaded or validated."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = "Check the YAML file passed with --config",
    ):
        self.message = message
        self.details = details or {}
        self.suggestion = suggestion
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message
