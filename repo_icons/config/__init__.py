"""Configuration management module for repo-icons."""

from .duration import DurationParseError, parse_duration
from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_config
from .models import (
    AppConfig,
    CacheConfig,
    GithubConfig,
    HttpConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    ProbingConfig,
    SourcesConfig,
    TimeoutsConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "parse_config",
    "load_environment_config",
    "parse_duration",
    # Configuration models
    "AppConfig",
    "HttpConfig",
    "TimeoutsConfig",
    "CacheConfig",
    "ProbingConfig",
    "SourcesConfig",
    "GithubConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
    "DurationParseError",
]
