"""Domain models for repository icon discovery."""

from .models import (
    IconCandidate,
    IconFormat,
    IconSource,
    LookupOptions,
    RawCandidate,
    RepositoryKey,
    ResultSet,
)

__all__ = [
    "IconCandidate",
    "IconFormat",
    "IconSource",
    "LookupOptions",
    "RawCandidate",
    "RepositoryKey",
    "ResultSet",
]
