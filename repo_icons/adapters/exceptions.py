"""Custom exceptions for icon source adapters."""

from typing import Optional


class SourceError(Exception):
    """Base exception for all source adapter errors.

    Catching this exception catches any failure of a single source. The
    pipeline records it and carries on with the remaining sources.
    """

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source


class SourceHTTPError(SourceError):
    """An upstream request of the source failed with an HTTP error.

    ``status_code`` is 0 when no response was received.
    """

    def __init__(
        self, message: str, status_code: int, url: str, source: Optional[str] = None
    ) -> None:
        super().__init__(message, source=source)
        self.status_code = status_code
        self.url = url


class SourceTimeoutError(SourceError):
    """The source did not answer in time.

    Raised for upstream request timeouts; the pipeline also records its own
    per-adapter budget expiring as this error.
    """

    def __init__(self, message: str, url: str = "", source: Optional[str] = None) -> None:
        super().__init__(message, source=source)
        self.url = url


class SourceResponseError(SourceError):
    """The source answered but the payload could not be used."""

    pass


class SourceConfigurationError(SourceError):
    """Invalid adapter configuration (unknown source, bad limits)."""

    pass
