"""Pipeline-wide lookup errors.

These are the only errors that reach callers of the lookup service. Per
source and per candidate failures are absorbed inside the pipeline.
"""

from typing import Dict, Optional

from repo_icons.domain.models import RepositoryKey


class IconLookupError(Exception):
    """Base exception for all failed lookups."""

    pass


class NoIconsFoundError(IconLookupError):
    """No source yielded a usable candidate for the repository.

    Attributes:
        key: Repository that was looked up
        source_errors: Error message per failed source
        all_sources_failed: True when every source raised, False when some
            sources answered but had nothing usable
    """

    def __init__(
        self,
        key: RepositoryKey,
        source_errors: Optional[Dict[str, str]] = None,
        all_sources_failed: bool = False,
        message: Optional[str] = None,
    ) -> None:
        self.key = key
        self.source_errors = dict(source_errors or {})
        self.all_sources_failed = all_sources_failed
        super().__init__(message or self._default_message())

    def _default_message(self) -> str:
        if self.all_sources_failed:
            return f"No icons found for {self.key}: all {len(self.source_errors)} sources failed"
        if self.source_errors:
            failed = ", ".join(sorted(self.source_errors))
            return f"No icons found for {self.key} (failed sources: {failed})"
        return f"No icons found for {self.key}"


class LookupTimeoutError(IconLookupError, TimeoutError):
    """The overall lookup budget was exceeded."""

    def __init__(self, reference: str, timeout: float) -> None:
        super().__init__(f"Lookup of {reference!r} timed out after {timeout} seconds")
        self.reference = reference
        self.timeout = timeout


class InvalidRepositoryReferenceError(IconLookupError, ValueError):
    """The input could not be parsed into a repository key."""

    def __init__(self, reference: str, reason: str) -> None:
        super().__init__(f"Invalid repository reference {reference!r}: {reason}")
        self.reference = reference
        self.reason = reason
