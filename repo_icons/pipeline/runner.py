"""Pipeline orchestration for icon discovery and ranking."""

import asyncio
import time
from typing import Dict, List, Optional, Sequence, Tuple

from repo_icons.adapters.base import BaseAdapter
from repo_icons.adapters.exceptions import SourceError
from repo_icons.domain.models import IconCandidate, RawCandidate, RepositoryKey, ResultSet
from repo_icons.logging import get_logger
from repo_icons.logging.context import log_context, new_lookup_id
from repo_icons.probing.prober import Prober
from repo_icons.utils.timestamps import utc_now
from repo_icons.utils.urls import InvalidUrlError, canonicalize, format_from_reference

from .exceptions import NoIconsFoundError
from .models import PipelineRunResult, SourceRunStats
from .scoring import rank

logger = get_logger(__name__, component="pipeline")

DEFAULT_ADAPTER_TIMEOUT = 10.0
DEFAULT_MAX_PROBES = 16


class IconPipeline:
    """
    Resolves a repository key into a ranked list of icon candidates.

    One resolution:
    1. Runs every adapter concurrently, each under its own timeout, and
       waits until all of them have settled
    2. Canonicalizes each raw reference against its base URL, dropping
       invalid ones
    3. Merges candidates by canonical URL, keeping the metadata of the
       highest-priority source
    4. Probes candidates whose dimensions are unknown
    5. Ranks the merged set by score

    Output order depends only on what the adapters returned, never on
    the order in which they finished.
    """

    def __init__(
        self,
        adapters: Sequence[BaseAdapter],
        prober: Optional[Prober] = None,
        adapter_timeout: float = DEFAULT_ADAPTER_TIMEOUT,
        max_probes: int = DEFAULT_MAX_PROBES,
        probing_enabled: bool = True,
    ):
        """
        Initialize the pipeline.

        Args:
            adapters: Source adapters, queried on every resolution
            prober: Prober for unknown metadata (None disables probing)
            adapter_timeout: Budget of one adapter call in seconds
            max_probes: Maximum candidates probed per resolution
            probing_enabled: Whether to probe at all
        """
        if not adapters:
            raise ValueError("IconPipeline needs at least one adapter")
        if adapter_timeout <= 0:
            raise ValueError(f"adapter_timeout must be positive, got: {adapter_timeout}")
        if max_probes < 0:
            raise ValueError(f"max_probes must be >= 0, got: {max_probes}")

        self.adapters = list(adapters)
        self.prober = prober
        self.adapter_timeout = adapter_timeout
        self.max_probes = max_probes
        self.probing_enabled = probing_enabled and prober is not None

    async def resolve(self, key: RepositoryKey) -> ResultSet:
        """
        Resolve ``key`` into a non-empty ResultSet.

        Raises:
            NoIconsFoundError: If no source yielded a usable candidate
        """
        result = await self.run(key)
        if not result.candidates:
            raise NoIconsFoundError(
                key,
                source_errors=result.source_errors,
                all_sources_failed=result.all_sources_failed,
            )
        return ResultSet(key, result.candidates)

    async def run(self, key: RepositoryKey) -> PipelineRunResult:
        """
        Execute one resolution and report its statistics.

        Source failures are recorded in the result, never raised. An empty
        ``candidates`` list means nothing was found.
        """
        lookup_id = new_lookup_id()
        run_started_at = utc_now()

        with log_context(lookup_id=lookup_id, repository=key.cache_key):
            logger.info(
                f"Resolving icons for {key}",
                extra={
                    "event": "pipeline.resolve.started",
                    "adapter_count": len(self.adapters),
                },
            )

            # Join point: every branch settles before any merge decision
            branches = await asyncio.gather(
                *(self._run_adapter(adapter, key) for adapter in self.adapters)
            )
            source_stats = [stats for stats, _ in branches]

            canonical = self._canonicalize(branches)
            merged, duplicate_count = self._merge(canonical)

            probed_count = 0
            resolved_by_probe = 0
            if self.probing_enabled and merged:
                merged, probed_count, resolved_by_probe = await self._probe(merged)

            candidates = rank(self._infer_formats(merged))

            result = PipelineRunResult(
                key=key,
                lookup_id=lookup_id,
                run_started_at=run_started_at,
                run_finished_at=utc_now(),
                candidates=candidates,
                source_stats=source_stats,
                merged_count=len(merged),
                duplicate_count=duplicate_count,
                probed_count=probed_count,
                resolved_by_probe_count=resolved_by_probe,
            )

            logger.info(
                f"Resolved {len(candidates)} icon candidates for {key}",
                extra={"event": "pipeline.resolve.completed", **result.summary()},
            )
            return result

    async def _run_adapter(
        self, adapter: BaseAdapter, key: RepositoryKey
    ) -> Tuple[SourceRunStats, List[RawCandidate]]:
        """
        Run one adapter in isolation.

        Returns the adapter's candidates, or an empty list with the failure
        recorded in the stats. Cancellation is never swallowed.
        """
        stats = SourceRunStats(source=adapter.SOURCE)
        start = time.monotonic()
        raw: List[RawCandidate] = []

        with log_context(source=adapter.name):
            try:
                raw = list(await asyncio.wait_for(adapter.discover(key), self.adapter_timeout))
                stats.candidate_count = len(raw)

            except asyncio.TimeoutError:
                stats.had_errors = True
                stats.error_type = "SourceTimeoutError"
                stats.error_message = f"Source timed out after {self.adapter_timeout} seconds"
                logger.warning(
                    f"Source {adapter.name} timed out",
                    extra={
                        "event": "adapter.discover.timeout",
                        "timeout": self.adapter_timeout,
                    },
                )

            except SourceError as e:
                stats.had_errors = True
                stats.error_type = type(e).__name__
                stats.error_message = str(e)
                logger.warning(
                    f"Source {adapter.name} failed: {e}",
                    extra={
                        "event": "adapter.discover.failed",
                        "error_type": type(e).__name__,
                        "error": str(e),
                    },
                )

            except Exception as e:
                # Bugs in one adapter must not take down the others
                stats.had_errors = True
                stats.error_type = type(e).__name__
                stats.error_message = str(e)
                logger.error(
                    f"Unexpected error in source {adapter.name}: {e}",
                    extra={
                        "event": "adapter.discover.error",
                        "error_type": type(e).__name__,
                        "error": str(e),
                    },
                    exc_info=True,
                )

            finally:
                stats.duration_seconds = time.monotonic() - start

        return stats, raw

    def _canonicalize(
        self, branches: Sequence[Tuple[SourceRunStats, List[RawCandidate]]]
    ) -> List[Tuple[str, RawCandidate]]:
        """Canonical URL for every valid raw candidate, in adapter order."""
        canonical: List[Tuple[str, RawCandidate]] = []
        for stats, raw_candidates in branches:
            for raw in raw_candidates:
                try:
                    url = canonicalize(raw.base_url, raw.reference)
                except InvalidUrlError as e:
                    stats.invalid_count += 1
                    logger.debug(
                        f"Dropping invalid reference {raw.reference!r}: {e}",
                        extra={
                            "event": "candidate.invalid_url",
                            "source": raw.source.value,
                            "reference": raw.reference[:200],
                        },
                    )
                    continue
                canonical.append((url, raw))
        return canonical

    def _merge(
        self, canonical: List[Tuple[str, RawCandidate]]
    ) -> Tuple[List[IconCandidate], int]:
        """
        Fold candidates sharing a canonical URL into one.

        Entries are visited by source priority (stable, so adapter and
        document order break ties); the first entry for a URL supplies
        source, format and dimensions, later ones are dropped.

        Returns:
            Tuple of (merged candidates, number of dropped duplicates)
        """
        merged: Dict[str, IconCandidate] = {}
        duplicates = 0
        for url, raw in sorted(canonical, key=lambda entry: entry[1].source.priority):
            if url in merged:
                duplicates += 1
                continue
            merged[url] = IconCandidate(
                url=url,
                source=raw.source,
                format=raw.format,
                width=raw.width,
                height=raw.height,
            )
        return list(merged.values()), duplicates

    async def _probe(
        self, candidates: List[IconCandidate]
    ) -> Tuple[List[IconCandidate], int, int]:
        """
        Probe candidates with unknown dimensions, up to ``max_probes``.

        Declared dimensions are trusted; sized candidates are never probed.

        Returns:
            Tuple of (candidates in the same order, probed count, newly sized count)
        """
        indexes = [i for i, c in enumerate(candidates) if not c.has_dimensions]
        skipped = len(indexes) - self.max_probes
        if skipped > 0:
            logger.info(
                f"Probe cap reached, leaving {skipped} candidates unprobed",
                extra={
                    "event": "probe.cap_reached",
                    "max_probes": self.max_probes,
                    "skipped": skipped,
                },
            )
        indexes = indexes[: self.max_probes]
        if not indexes:
            return candidates, 0, 0

        probed = await self.prober.probe_all([candidates[i] for i in indexes])

        result = list(candidates)
        resolved = 0
        for i, candidate in zip(indexes, probed):
            if candidate.has_dimensions:
                resolved += 1
            result[i] = candidate
        return result, len(indexes), resolved

    def _infer_formats(self, candidates: List[IconCandidate]) -> List[IconCandidate]:
        """Fill still-unknown formats from the URL's extension or media type."""
        return [
            c if c.format is not None else c.with_probe_result(format=format_from_reference(c.url))
            for c in candidates
        ]
