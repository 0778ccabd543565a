"""Core domain models for icon discovery.

This module defines the data structures used throughout the application:
- IconSource / IconFormat: closed vocabularies with their ranking weights
- RepositoryKey: canonical identifier of the queried repository or website
- RawCandidate: unresolved reference returned by a source adapter
- IconCandidate: canonical, deduplicated icon with optional metadata
- ResultSet: non-empty, score-ordered, immutable sequence of candidates
- LookupOptions: caller options accepted by the lookup service
"""

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class IconSource(str, Enum):
    """Origin of an icon candidate."""

    SITE_MANIFEST = "site_manifest"
    SITE_LINK_TAG = "site_link_tag"
    GITHUB_SOCIAL_PREVIEW = "github_social_preview"
    GITHUB_AVATAR = "github_avatar"
    SITE_DEFAULT_FAVICON = "site_default_favicon"
    OTHER = "other"

    @property
    def priority(self) -> int:
        """Trust rank of the source, lower number wins ties."""
        return _SOURCE_PRIORITY[self]


_SOURCE_PRIORITY = {
    IconSource.SITE_MANIFEST: 1,
    IconSource.SITE_LINK_TAG: 2,
    IconSource.GITHUB_SOCIAL_PREVIEW: 3,
    IconSource.GITHUB_AVATAR: 4,
    IconSource.SITE_DEFAULT_FAVICON: 5,
    IconSource.OTHER: 6,
}


class IconFormat(str, Enum):
    """Image format of an icon candidate."""

    SVG = "svg"
    PNG = "png"
    WEBP = "webp"
    ICO = "ico"
    JPEG = "jpeg"
    UNKNOWN = "unknown"

    @property
    def tier(self) -> int:
        """Preference tier, higher is better (vector and lossless first)."""
        return _FORMAT_TIER[self]

    @classmethod
    def from_mime(cls, mime_type: Optional[str]) -> Optional["IconFormat"]:
        """Map a MIME type (``image/png``, ``image/svg+xml``...) to a format.

        Returns None when the MIME type is missing or not an image type we know.
        """
        if not mime_type:
            return None
        return _MIME_FORMATS.get(mime_type.split(";", 1)[0].strip().lower())


_FORMAT_TIER = {
    IconFormat.SVG: 5,
    IconFormat.PNG: 4,
    IconFormat.WEBP: 3,
    IconFormat.ICO: 2,
    IconFormat.JPEG: 1,
    IconFormat.UNKNOWN: 0,
}

_MIME_FORMATS = {
    "image/svg+xml": IconFormat.SVG,
    "image/svg": IconFormat.SVG,
    "image/png": IconFormat.PNG,
    "image/x-png": IconFormat.PNG,
    "image/webp": IconFormat.WEBP,
    "image/x-icon": IconFormat.ICO,
    "image/vnd.microsoft.icon": IconFormat.ICO,
    "image/ico": IconFormat.ICO,
    "image/icon": IconFormat.ICO,
    "image/jpeg": IconFormat.JPEG,
    "image/jpg": IconFormat.JPEG,
    "image/pjpeg": IconFormat.JPEG,
}


def _check_dimensions(width: Optional[int], height: Optional[int]) -> None:
    if (width is None) != (height is None):
        raise ValueError("width and height must both be present or both be absent")


class RepositoryKey(BaseModel):
    """Canonical identifier of a queried repository.

    A key names either a GitHub repository (``owner`` + ``name``) or a plain
    website (``site_url``). Owner and name are stored lower-cased because
    GitHub treats them case-insensitively.
    """

    model_config = ConfigDict(frozen=True)

    owner: Optional[str] = Field(None, description="GitHub owner login (lower-cased)")
    name: Optional[str] = Field(None, description="GitHub repository name (lower-cased)")
    site_url: Optional[str] = Field(None, description="Canonical website URL for non-GitHub keys")

    @field_validator("owner", "name")
    @classmethod
    def lower_case(cls, v: Optional[str]) -> Optional[str]:
        """Normalize owner/name to stripped lower case."""
        if v is None:
            return None
        stripped = v.strip().lower()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @model_validator(mode="after")
    def validate_shape(self):
        """Exactly one of (owner + name) or site_url must be set."""
        has_repo = self.owner is not None and self.name is not None
        if (self.owner is None) != (self.name is None):
            raise ValueError("owner and name must be given together")
        if has_repo == (self.site_url is not None):
            raise ValueError("RepositoryKey needs either owner/name or site_url, not both")
        return self

    @classmethod
    def github(cls, owner: str, name: str) -> "RepositoryKey":
        return cls(owner=owner, name=name)

    @classmethod
    def website(cls, site_url: str) -> "RepositoryKey":
        return cls(site_url=site_url)

    @property
    def is_github(self) -> bool:
        return self.owner is not None

    @property
    def full_name(self) -> Optional[str]:
        if not self.is_github:
            return None
        return f"{self.owner}/{self.name}"

    @property
    def cache_key(self) -> str:
        """Stable string used for caching and logging."""
        if self.is_github:
            return f"github:{self.owner}/{self.name}"
        return f"site:{self.site_url}"

    def __str__(self) -> str:
        return self.full_name or self.site_url or ""


class RawCandidate(BaseModel):
    """Unresolved icon reference as returned by a source adapter.

    Adapters never canonicalize or deduplicate; they only report the
    reference, the base URL it is relative to, and any metadata the source
    declared directly.
    """

    model_config = ConfigDict(frozen=True)

    reference: str = Field(..., min_length=1, description="href/src/URL exactly as found")
    source: IconSource = Field(..., description="Source that produced this candidate")
    base_url: Optional[str] = Field(None, description="Natural base URL for resolving the reference")
    format: Optional[IconFormat] = Field(None, description="Declared format, if any")
    width: Optional[int] = Field(None, gt=0, description="Declared width in pixels")
    height: Optional[int] = Field(None, gt=0, description="Declared height in pixels")

    @model_validator(mode="after")
    def validate_dimensions(self):
        _check_dimensions(self.width, self.height)
        return self


class IconCandidate(BaseModel):
    """A discovered icon with a canonical URL.

    Candidates are immutable. The only permitted evolution is filling in
    unknown format/size metadata after probing, which produces a new
    instance via ``with_probe_result`` and never overwrites known values.
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., min_length=1, description="Canonical absolute URL")
    source: IconSource = Field(..., description="Highest-priority source that yielded this URL")
    format: Optional[IconFormat] = Field(None, description="Image format, None until known")
    width: Optional[int] = Field(None, gt=0, description="Width in pixels")
    height: Optional[int] = Field(None, gt=0, description="Height in pixels")

    @model_validator(mode="after")
    def validate_dimensions(self):
        _check_dimensions(self.width, self.height)
        return self

    @property
    def has_dimensions(self) -> bool:
        return self.width is not None

    @property
    def is_resolved(self) -> bool:
        """True when both format and dimensions are known."""
        return self.format is not None and self.has_dimensions

    @property
    def area(self) -> Optional[int]:
        if not self.has_dimensions:
            return None
        return self.width * self.height

    @property
    def is_data_url(self) -> bool:
        return self.url.startswith("data:")

    def with_probe_result(
        self,
        format: Optional[IconFormat] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> "IconCandidate":
        """Return a copy with unknown fields filled from probing.

        Known fields are kept as they are; dimensions are only taken as a pair.
        """
        updates: Dict[str, Any] = {}
        if self.format is None and format is not None:
            updates["format"] = format
        if not self.has_dimensions and width is not None and height is not None:
            updates["width"] = width
            updates["height"] = height
        if not updates:
            return self
        return self.model_copy(update=updates)

    def to_record(self) -> Dict[str, Any]:
        """Plain output record ``{url, source, format, width, height}``."""
        return {
            "url": self.url,
            "source": self.source.value,
            "format": self.format.value if self.format is not None else None,
            "width": self.width,
            "height": self.height,
        }


class ResultSet:
    """Non-empty, score-ordered, read-only sequence of icon candidates.

    The candidates themselves are frozen and are held in a tuple, so a
    ResultSet can be shared between the cache and any number of callers
    without copying.
    """

    __slots__ = ("_key", "_candidates")

    def __init__(self, key: RepositoryKey, candidates: Sequence[IconCandidate]) -> None:
        candidates = tuple(candidates)
        if not candidates:
            raise ValueError("ResultSet cannot be empty")
        urls = [c.url for c in candidates]
        if len(set(urls)) != len(urls):
            raise ValueError("ResultSet candidates must have unique URLs")
        self._key = key
        self._candidates: Tuple[IconCandidate, ...] = candidates

    @property
    def key(self) -> RepositoryKey:
        return self._key

    @property
    def candidates(self) -> Tuple[IconCandidate, ...]:
        return self._candidates

    def best(self) -> IconCandidate:
        """Highest-ranked candidate."""
        return self._candidates[0]

    def limit(self, max_results: Optional[int]) -> "ResultSet":
        """Return the first ``max_results`` candidates (all when None)."""
        if max_results is None or max_results >= len(self._candidates):
            return self
        if max_results < 1:
            raise ValueError("max_results must be at least 1")
        return ResultSet(self._key, self._candidates[:max_results])

    def to_records(self) -> List[Dict[str, Any]]:
        return [c.to_record() for c in self._candidates]

    def __iter__(self) -> Iterator[IconCandidate]:
        return iter(self._candidates)

    def __len__(self) -> int:
        return len(self._candidates)

    def __getitem__(self, index):
        return self._candidates[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResultSet):
            return NotImplemented
        return self._key == other._key and self._candidates == other._candidates

    def __hash__(self) -> int:
        return hash((self._key, self._candidates))

    def __repr__(self) -> str:
        return f"ResultSet(key={str(self._key)!r}, candidates={len(self._candidates)})"


class LookupOptions(BaseModel):
    """Options accepted by ``IconLookupService.lookup``."""

    force_refresh: bool = Field(False, description="Bypass the cache and recompute")
    include_unprobed: bool = Field(
        True, description="Return candidates whose size could not be resolved"
    )
    max_results: Optional[int] = Field(None, ge=1, description="Cap on the ordered list length")
