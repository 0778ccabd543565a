"""Custom exceptions for the HTTP collaborators."""


class FetchError(Exception):
    """Base exception for all fetch errors.

    Raised by the HTTP, HTML, GitHub and site clients. Adapters translate it
    into a SourceError, the prober into a ProbeError.
    """

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url


class FetchHTTPError(FetchError):
    """HTTP request failed with a 4xx/5xx status or at the transport level.

    ``status_code`` is 0 when no response was received (connection refused,
    DNS failure, TLS error...).
    """

    def __init__(self, message: str, status_code: int, url: str) -> None:
        super().__init__(message, url=url)
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        return self.status_code in (404, 410)


class FetchTimeoutError(FetchError):
    """HTTP request did not complete within the configured timeout."""


class FetchResponseError(FetchError):
    """Response was received but could not be parsed (bad JSON, bad HTML...)."""
