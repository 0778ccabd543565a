"""Base adapter classes shared by all icon sources.

This module provides the abstract base class every source adapter
implements, plus helpers for parsing declared icon metadata (``sizes``
attributes, MIME types) and for translating collaborator failures into
the SourceError hierarchy.
"""

import re
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from repo_icons.clients.exceptions import (
    FetchError,
    FetchHTTPError,
    FetchResponseError,
    FetchTimeoutError,
)
from repo_icons.clients.github import GithubClient
from repo_icons.clients.site import SiteIconScraper
from repo_icons.domain.models import IconFormat, IconSource, RawCandidate, RepositoryKey
from repo_icons.logging import get_logger
from repo_icons.utils.urls import format_from_reference

from .exceptions import (
    SourceConfigurationError,
    SourceError,
    SourceHTTPError,
    SourceResponseError,
    SourceTimeoutError,
)

logger = get_logger(__name__, component="adapter")

DEFAULT_MAX_CANDIDATES = 50

_SIZE_ENTRY = re.compile(r"^(\d+)[xX](\d+)$")


class BaseAdapter(ABC):
    """Base class for all icon source adapters.

    Subclasses set ``SOURCE`` and implement ``discover``. Adapters only
    report what a source says; they never canonicalize or deduplicate.

    Attributes:
        max_candidates: Maximum raw candidates returned per call (0 = unlimited)
    """

    SOURCE: IconSource = IconSource.OTHER

    def __init__(self, max_candidates: int = DEFAULT_MAX_CANDIDATES) -> None:
        """Initialize adapter.

        Args:
            max_candidates: Per-call candidate cap (default 50, 0 = unlimited)

        Raises:
            SourceConfigurationError: If max_candidates is negative
        """
        if max_candidates < 0:
            raise SourceConfigurationError(
                f"max_candidates must be >= 0, got: {max_candidates}",
                source=self.SOURCE.value,
            )
        self.max_candidates = max_candidates

    @property
    def name(self) -> str:
        return self.SOURCE.value

    @abstractmethod
    async def discover(self, key: RepositoryKey) -> List[RawCandidate]:
        """Return the raw icon candidates this source knows for ``key``.

        Implementations should:
        1. Ask their collaborator for icon references
        2. Attach the base URL each reference is relative to
        3. Attach any size/format metadata the source declared

        Args:
            key: Repository or website being looked up

        Returns:
            Raw candidates in source order. Empty when the source has
            nothing for this key.

        Raises:
            SourceError: When the source could not be queried. Its subclasses
            indicate the failure kind:
            - SourceHTTPError: upstream HTTP failure
            - SourceTimeoutError: upstream timeout
            - SourceResponseError: unusable upstream payload
        """

    def _candidate(
        self,
        reference: str,
        base_url: Optional[str],
        sizes: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> RawCandidate:
        dimensions = self._parse_sizes(sizes)
        width, height = dimensions if dimensions else (None, None)
        return RawCandidate(
            reference=reference,
            source=self.SOURCE,
            base_url=base_url,
            format=self._format_hint(mime_type, reference),
            width=width,
            height=height,
        )

    def _parse_sizes(self, sizes: Optional[str]) -> Optional[Tuple[int, int]]:
        """Parse a ``sizes`` attribute into the largest declared dimensions.

        Handles:
        - single entries (``"32x32"``, ``"32X32"``)
        - several space-separated entries (``"16x16 32x32 48x48"``)
        - ``"any"`` (scalable icons, no fixed size)

        Malformed and zero-sized entries are ignored.

        Returns:
            ``(width, height)`` of the entry with the largest area, or None
        """
        if not sizes:
            return None

        best: Optional[Tuple[int, int]] = None
        for entry in sizes.split():
            match = _SIZE_ENTRY.match(entry.strip())
            if not match:
                continue
            width, height = int(match.group(1)), int(match.group(2))
            if width <= 0 or height <= 0:
                continue
            if best is None or width * height > best[0] * best[1]:
                best = (width, height)
        return best

    def _format_hint(self, mime_type: Optional[str], reference: str) -> Optional[IconFormat]:
        """Declared format: the MIME type when known, else the file extension."""
        return IconFormat.from_mime(mime_type) or format_from_reference(reference)

    def _truncate_candidates(
        self, candidates: List[RawCandidate], key: RepositoryKey
    ) -> List[RawCandidate]:
        """Truncate candidate list to max_candidates if configured."""
        if self.max_candidates > 0 and len(candidates) > self.max_candidates:
            logger.warning(
                "Truncating candidates to max_candidates limit",
                extra={
                    "event": "adapter.discover.truncated",
                    "source": self.name,
                    "repository": key.cache_key,
                    "total": len(candidates),
                    "max": self.max_candidates,
                },
            )
            return candidates[: self.max_candidates]
        return candidates

    def _source_error(self, error: FetchError) -> SourceError:
        """Translate a collaborator failure into the matching SourceError."""
        if isinstance(error, FetchTimeoutError):
            return SourceTimeoutError(str(error), url=error.url, source=self.name)
        if isinstance(error, FetchHTTPError):
            return SourceHTTPError(
                str(error), status_code=error.status_code, url=error.url, source=self.name
            )
        if isinstance(error, FetchResponseError):
            return SourceResponseError(str(error), source=self.name)
        return SourceError(str(error), source=self.name)

    def _handle_fetch_error(self, error: FetchError, key: RepositoryKey) -> List[RawCandidate]:
        """Return [] for missing upstream resources, raise SourceError otherwise."""
        if isinstance(error, FetchHTTPError) and error.is_not_found:
            logger.info(
                "Upstream resource not found, source has no candidates",
                extra={
                    "event": "adapter.discover.not_found",
                    "source": self.name,
                    "repository": key.cache_key,
                    "url": error.url,
                },
            )
            return []
        raise self._source_error(error) from error

    def _log_discovered(self, key: RepositoryKey, candidates: List[RawCandidate]) -> None:
        logger.info(
            "Source discovered candidates",
            extra={
                "event": "adapter.discover.completed",
                "source": self.name,
                "repository": key.cache_key,
                "count": len(candidates),
            },
        )


class GithubAdapter(BaseAdapter):
    """Base for sources backed by GitHub repository metadata.

    Website-only keys have no GitHub repository and yield no candidates.
    """

    def __init__(self, github: GithubClient, max_candidates: int = DEFAULT_MAX_CANDIDATES) -> None:
        super().__init__(max_candidates=max_candidates)
        self.github = github


class SiteAdapter(BaseAdapter):
    """Base for sources that scrape the project's website.

    The website is the key's own URL for website keys, and the repository's
    homepage for GitHub keys.
    """

    def __init__(
        self,
        scraper: SiteIconScraper,
        github: GithubClient,
        max_candidates: int = DEFAULT_MAX_CANDIDATES,
    ) -> None:
        super().__init__(max_candidates=max_candidates)
        self.scraper = scraper
        self.github = github

    async def _resolve_site_url(self, key: RepositoryKey) -> Optional[str]:
        """Website to scrape for ``key``, or None when there is none.

        Raises:
            FetchError: If the repository metadata could not be fetched
        """
        if not key.is_github:
            return key.site_url

        metadata = await self.github.get_repository(key.owner, key.name)
        if not metadata.homepage:
            logger.debug(
                "Repository has no homepage, skipping website source",
                extra={
                    "event": "adapter.discover.no_homepage",
                    "source": self.name,
                    "repository": key.cache_key,
                },
            )
        return metadata.homepage
