"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        github_token: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        """Initialize environment configuration."""
        self.github_token = github_token
        self.log_level = log_level.upper() if log_level else None
        self.environment = environment or "production"

    def __repr__(self) -> str:
        # Never print the token itself
        token = "set" if self.github_token else "unset"
        return (
            f"EnvironmentConfig(github_token={token}, log_level={self.log_level!r}, "
            f"environment={self.environment!r})"
        )


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional:
    - GITHUB_TOKEN: Token sent as bearer auth to the GitHub API (raises the
      rate limit and gives access to private repositories)
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - REPO_ICONS_ENVIRONMENT: Deployment label attached to log records

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If a variable has an invalid value
    """
    errors = []

    github_token = os.getenv("GITHUB_TOKEN")
    log_level = os.getenv("LOG_LEVEL")
    environment = os.getenv("REPO_ICONS_ENVIRONMENT")

    if github_token is not None:
        github_token = github_token.strip() or None
        if github_token and any(c.isspace() for c in github_token):
            errors.append("Invalid GITHUB_TOKEN: must not contain whitespace")

    if log_level:
        if log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(
                f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
            )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and adjust the values",
                "Unset variables you do not need; all of them are optional",
            ],
        )

    return EnvironmentConfig(
        github_token=github_token,
        log_level=log_level,
        environment=environment,
    )
