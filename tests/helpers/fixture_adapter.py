"""Fixture-based adapter for testing.

This module provides an adapter that serves canned raw candidates instead
of querying real sources. Latency and failures are configurable, and every
call is counted, which makes fan-out, single-flight and caching behaviour
observable in tests.
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from repo_icons.adapters.base import BaseAdapter
from repo_icons.domain.models import IconFormat, IconSource, RawCandidate, RepositoryKey


def load_fixture_candidates(fixture_path: Path) -> Dict[IconSource, List[RawCandidate]]:
    """Load raw candidates per source from a YAML fixture.

    The file maps source names to lists of candidate dicts with
    ``reference`` and optional ``base_url``, ``format``, ``width`` and
    ``height``.

    Raises:
        FileNotFoundError: If fixture file doesn't exist
    """
    if not fixture_path.exists():
        raise FileNotFoundError(f"Fixture file not found: {fixture_path}")

    with open(fixture_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    fixtures = {}
    for source_name, entries in data.get("sources", {}).items():
        source = IconSource(source_name)
        fixtures[source] = [raw(source=source, **entry) for entry in entries or []]
    return fixtures


def raw(
    reference: str,
    source: IconSource = IconSource.OTHER,
    base_url: Optional[str] = "https://example.org/",
    format: Optional[Any] = None,
    width: Optional[int] = None,
    height: Optional[int] = None,
) -> RawCandidate:
    """Shorthand RawCandidate constructor."""
    return RawCandidate(
        reference=reference,
        source=source,
        base_url=base_url,
        format=IconFormat(format) if isinstance(format, str) else format,
        width=width,
        height=height,
    )


class FixtureAdapter(BaseAdapter):
    """Adapter returning canned candidates.

    Attributes:
        candidates: Raw candidates returned by every call
        delay: Seconds to sleep before answering
        error: Exception raised instead of answering
        calls: Number of discover() calls so far (including cancelled ones)
        cancelled: Number of calls cancelled while sleeping
    """

    def __init__(
        self,
        source: IconSource,
        candidates: Sequence[RawCandidate] = (),
        delay: float = 0.0,
        error: Optional[BaseException] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.SOURCE = source
        self.candidates = list(candidates)
        self.delay = delay
        self.error = error
        self.calls = 0
        self.cancelled = 0
        self.keys: List[RepositoryKey] = []

    async def discover(self, key: RepositoryKey) -> List[RawCandidate]:
        self.calls += 1
        self.keys.append(key)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        if self.error is not None:
            raise self.error
        return self._truncate_candidates(list(self.candidates), key)
