"""Pipeline orchestration: fan-out to sources, merge, probing and ranking."""

from .exceptions import (
    IconLookupError,
    InvalidRepositoryReferenceError,
    LookupTimeoutError,
    NoIconsFoundError,
)
from .models import PipelineRunResult, SourceRunStats
from .runner import IconPipeline
from .scoring import IconScore, rank, score, sort_key

__all__ = [
    "IconPipeline",
    "PipelineRunResult",
    "SourceRunStats",
    # Scoring
    "IconScore",
    "rank",
    "score",
    "sort_key",
    # Exceptions
    "IconLookupError",
    "NoIconsFoundError",
    "LookupTimeoutError",
    "InvalidRepositoryReferenceError",
]
