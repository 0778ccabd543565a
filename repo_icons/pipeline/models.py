"""Data models for pipeline execution tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from repo_icons.domain.models import IconCandidate, IconSource, RepositoryKey
from repo_icons.utils.timestamps import format_timestamp


@dataclass
class SourceRunStats:
    """
    Statistics for one source adapter within a resolution.

    Attributes:
        source: Source the adapter serves
        candidate_count: Raw candidates returned by the adapter
        invalid_count: Candidates dropped because their reference was invalid
        duration_seconds: Time until the adapter settled
        had_errors: Whether the adapter failed or timed out
        error_type: Exception class name of the failure
        error_message: Failure message, if any
    """

    source: IconSource
    candidate_count: int = 0
    invalid_count: int = 0
    duration_seconds: float = 0.0
    had_errors: bool = False
    error_type: Optional[str] = None
    error_message: Optional[str] = None


@dataclass
class PipelineRunResult:
    """
    Outcome of one pipeline resolution.

    Attributes:
        key: Repository that was resolved
        lookup_id: Id correlating the run's log records
        run_started_at: UTC timestamp when the run began
        run_finished_at: UTC timestamp when the run completed
        candidates: Ranked candidates (empty when nothing was found)
        source_stats: Per-source statistics, in adapter order
        merged_count: Distinct canonical URLs after merging
        duplicate_count: Raw candidates folded into an existing URL
        probed_count: Candidates submitted to the prober
        resolved_by_probe_count: Probed candidates that gained dimensions
        total_duration_seconds: Wall-clock time of the run
        had_errors: Whether any source failed
    """

    key: RepositoryKey
    lookup_id: str
    run_started_at: datetime
    run_finished_at: datetime
    candidates: List[IconCandidate] = field(default_factory=list)
    source_stats: List[SourceRunStats] = field(default_factory=list)
    merged_count: int = 0
    duplicate_count: int = 0
    probed_count: int = 0
    resolved_by_probe_count: int = 0
    total_duration_seconds: float = 0.0
    had_errors: bool = False

    def __post_init__(self):
        if self.source_stats:
            self.had_errors = any(s.had_errors for s in self.source_stats)

        if self.total_duration_seconds == 0.0:
            delta = self.run_finished_at - self.run_started_at
            self.total_duration_seconds = delta.total_seconds()

    @property
    def source_errors(self) -> Dict[str, str]:
        """Error message per failed source."""
        return {
            s.source.value: s.error_message or s.error_type or "error"
            for s in self.source_stats
            if s.had_errors
        }

    @property
    def all_sources_failed(self) -> bool:
        return bool(self.source_stats) and all(s.had_errors for s in self.source_stats)

    @property
    def raw_candidate_count(self) -> int:
        return sum(s.candidate_count for s in self.source_stats)

    def summary(self) -> Dict[str, Any]:
        """Flat counters for the completion log record."""
        return {
            "started_at": format_timestamp(self.run_started_at),
            "sources": len(self.source_stats),
            "failed_sources": len(self.source_errors),
            "raw_candidates": self.raw_candidate_count,
            "merged": self.merged_count,
            "duplicates": self.duplicate_count,
            "probed": self.probed_count,
            "resolved_by_probe": self.resolved_by_probe_count,
            "result_count": len(self.candidates),
            "duration_ms": int(self.total_duration_seconds * 1000),
        }
