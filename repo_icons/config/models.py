"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import List, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from repo_icons.domain.models import IconSource

from .duration import DurationParseError, parse_duration, validate_duration_range

DurationValue = Union[str, int]


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _check_duration(value: DurationValue, min_seconds: int, max_seconds: int, label: str) -> DurationValue:
    try:
        seconds = parse_duration(value)
        validate_duration_range(seconds, min_seconds=min_seconds, max_seconds=max_seconds, label=label)
    except DurationParseError as e:
        raise ValueError(str(e)) from e
    return value


class HttpConfig(BaseModel):
    """Settings shared by every outgoing HTTP request."""

    request_timeout: DurationValue = Field(
        "10s", description="Timeout of a single HTTP request"
    )
    user_agent: str = Field(
        "RepoIcons/0.3 (+https://github.com/repo-icons/repo-icons)",
        min_length=1,
        description="User-Agent string for HTTP requests",
    )

    @field_validator("request_timeout")
    @classmethod
    def validate_request_timeout(cls, v: DurationValue) -> DurationValue:
        return _check_duration(v, 1, 300, "HTTP request timeout")

    @field_validator("user_agent")
    @classmethod
    def strip_user_agent(cls, v: str) -> str:
        """Strip whitespace from user agent."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("user_agent cannot be empty")
        return stripped

    @property
    def request_timeout_seconds(self) -> int:
        return parse_duration(self.request_timeout)


class TimeoutsConfig(BaseModel):
    """Wall-clock budgets of the lookup pipeline."""

    adapter: DurationValue = Field("10s", description="Budget of one source adapter call")
    probe: DurationValue = Field("5s", description="Budget of one candidate probe")
    lookup: DurationValue = Field("30s", description="Budget of a whole lookup")

    @field_validator("adapter")
    @classmethod
    def validate_adapter(cls, v: DurationValue) -> DurationValue:
        return _check_duration(v, 1, 300, "Adapter timeout")

    @field_validator("probe")
    @classmethod
    def validate_probe(cls, v: DurationValue) -> DurationValue:
        return _check_duration(v, 1, 60, "Probe timeout")

    @field_validator("lookup")
    @classmethod
    def validate_lookup(cls, v: DurationValue) -> DurationValue:
        return _check_duration(v, 1, 600, "Lookup timeout")

    @property
    def adapter_seconds(self) -> int:
        return parse_duration(self.adapter)

    @property
    def probe_seconds(self) -> int:
        return parse_duration(self.probe)

    @property
    def lookup_seconds(self) -> int:
        return parse_duration(self.lookup)


class CacheConfig(BaseModel):
    """Result cache expiry settings."""

    ttl: DurationValue = Field("6h", description="Lifetime of a successful result")
    negative_ttl: DurationValue = Field(
        "5m", description="Lifetime of a cached 'no icons found' failure"
    )

    @field_validator("ttl")
    @classmethod
    def validate_ttl(cls, v: DurationValue) -> DurationValue:
        return _check_duration(v, 1, 7 * 86400, "Cache TTL")

    @field_validator("negative_ttl")
    @classmethod
    def validate_negative_ttl(cls, v: DurationValue) -> DurationValue:
        return _check_duration(v, 1, 86400, "Negative cache TTL")

    @property
    def ttl_seconds(self) -> int:
        return parse_duration(self.ttl)

    @property
    def negative_ttl_seconds(self) -> int:
        return parse_duration(self.negative_ttl)


class ProbingConfig(BaseModel):
    """Settings of the metadata prober."""

    enabled: bool = Field(True, description="Probe candidates with unknown dimensions")
    concurrency: int = Field(4, ge=1, le=64, description="Probes running at the same time")
    max_bytes: int = Field(
        65536, ge=1024, le=4 * 1024 * 1024, description="Bytes fetched per probe"
    )
    max_probes: int = Field(
        16, ge=0, le=500, description="Candidates probed per lookup (0 = none)"
    )
    decode_workers: int = Field(2, ge=1, le=16, description="Threads decoding image headers")


class SourcesConfig(BaseModel):
    """Per-source switches and limits."""

    site_manifest: bool = Field(True, description="Icons from web app manifests")
    site_link_tag: bool = Field(True, description="Icons from <link rel=icon> elements")
    github_social_preview: bool = Field(True, description="Custom social preview image")
    github_avatar: bool = Field(True, description="Repository owner avatar")
    site_default_favicon: bool = Field(True, description="/favicon.ico at the site origin")
    github_readme: bool = Field(True, description="Logo-like images in the repository README")
    max_candidates_per_source: int = Field(
        50, ge=0, description="Maximum candidates taken from one source (0 = unlimited)"
    )

    @model_validator(mode="after")
    def validate_any_enabled(self):
        """At least one source must stay enabled."""
        if not self.enabled_sources() and not self.github_readme:
            raise ValueError("At least one icon source must be enabled. All sources are disabled.")
        return self

    def enabled_sources(self) -> List[IconSource]:
        """Enabled sources in priority order."""
        enabled = [
            source
            for source in IconSource
            if source is not IconSource.OTHER and getattr(self, source.value)
        ]
        return sorted(enabled, key=lambda s: s.priority)


class GithubConfig(BaseModel):
    """GitHub endpoints (overridable for GitHub Enterprise)."""

    api_base_url: str = Field("https://api.github.com", description="REST API base URL")
    web_base_url: str = Field("https://github.com", description="Web UI base URL")

    @field_validator("api_base_url", "web_base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Require an absolute http(s) URL without trailing slash."""
        stripped = v.strip().rstrip("/")
        if not stripped.lower().startswith(("http://", "https://")):
            raise ValueError(f"Base URL must start with http:// or https://, got: {v!r}")
        return stripped


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for repo-icons.

    Every section has defaults, so an empty file (or no file) is a valid
    configuration.
    """

    http: HttpConfig = Field(default_factory=HttpConfig, description="HTTP client settings")
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig, description="Pipeline budgets")
    cache: CacheConfig = Field(default_factory=CacheConfig, description="Result cache settings")
    probing: ProbingConfig = Field(default_factory=ProbingConfig, description="Prober settings")
    sources: SourcesConfig = Field(default_factory=SourcesConfig, description="Icon sources")
    github: GithubConfig = Field(default_factory=GithubConfig, description="GitHub endpoints")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
