"""Utility functions for URL canonicalization, time handling and call coalescing."""

from .singleflight import SingleFlight
from .timestamps import format_timestamp, utc_now
from .urls import InvalidUrlError, canonicalize, format_from_reference, parse_data_url

__all__ = [
    # URLs
    "canonicalize",
    "format_from_reference",
    "parse_data_url",
    "InvalidUrlError",
    # Timestamps
    "utc_now",
    "format_timestamp",
    # Concurrency
    "SingleFlight",
]
