"""Custom exceptions for configuration management."""

from pathlib import Path
from typing import List, Optional


class ConfigurationError(Exception):
    """
    Raised when the configuration file or environment is invalid.

    Carries the individual validation errors and suggestions so the CLI can
    print them as a numbered list, plus the file they came from when known.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[List[str]] = None,
        suggestions: Optional[List[str]] = None,
        path: Optional[Path] = None,
    ):
        """
        Initialize ConfigurationError.

        Args:
            message: Primary error message
            errors: Specific validation errors
            suggestions: Hints for fixing the errors
            path: Configuration file the errors refer to
        """
        self.message = message
        self.errors = errors or []
        self.suggestions = suggestions or []
        self.path = path
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message if self.path is None else f"{self.message} ({self.path})"]

        if self.errors:
            parts.append("\nValidation Errors:")
            for i, error in enumerate(self.errors, 1):
                parts.append(f"  {i}. {error}")

        if self.suggestions:
            parts.append("\nSuggestions:")
            for suggestion in self.suggestions:
                parts.append(f"  - {suggestion}")

        return "\n".join(parts)
