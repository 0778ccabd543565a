"""Custom exceptions for candidate probing."""


class ProbeError(Exception):
    """Metadata of a candidate could not be recovered.

    Never leaves the prober: the candidate is kept with its unknown fields.
    """

    def __init__(self, message: str, url: str = "") -> None:
        super().__init__(message)
        self.url = url
