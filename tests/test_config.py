"""Integration tests for configuration module."""

from pathlib import Path

import pytest

from repo_icons.config import ConfigurationError, load_config
from repo_icons.config.duration import (
    DurationParseError,
    parse_duration,
    seconds_to_human_readable,
    validate_duration_range,
)
from repo_icons.config.environment import EnvironmentConfig, load_environment_config
from repo_icons.config.loader import parse_config
from repo_icons.config.models import AppConfig, SourcesConfig
from repo_icons.config.validators import check_for_warnings
from repo_icons.domain.models import IconSource

# Test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


class TestConfigurationLoading:
    """Test configuration loading from YAML files."""

    def test_load_valid_config(self, mock_env_vars):
        """Test loading a valid configuration file."""
        config_path = FIXTURES_DIR / "valid_config.yaml"

        with pytest.warns(UserWarning, match="github_social_preview"):
            app_config, env_config = load_config(config_path)

        # HTTP
        assert app_config.http.request_timeout_seconds == 15
        assert app_config.http.user_agent == "RepoIconsTest/1.0"

        # Budgets
        assert app_config.timeouts.adapter_seconds == 5
        assert app_config.timeouts.probe_seconds == 3
        assert app_config.timeouts.lookup_seconds == 60
        assert app_config.cache.ttl_seconds == 7200
        assert app_config.cache.negative_ttl_seconds == 600

        # Probing and sources
        assert app_config.probing.concurrency == 8
        assert app_config.probing.max_probes == 10
        assert app_config.probing.decode_workers == 2
        assert IconSource.GITHUB_SOCIAL_PREVIEW not in app_config.sources.enabled_sources()
        assert app_config.sources.max_candidates_per_source == 20

        # GitHub endpoints lose their trailing slash
        assert app_config.github.api_base_url == "https://ghe.example.com/api/v3"

        # Logging
        assert app_config.logging.level == "DEBUG"
        assert app_config.logging.format == "json"

        # Environment
        assert env_config.github_token == "ghp_test_token"
        assert env_config.environment == "test"

    def test_load_minimal_config(self, mock_env_vars):
        """Test an empty file means all defaults."""
        app_config, _ = load_config(FIXTURES_DIR / "minimal_config.yaml")

        assert app_config == AppConfig()
        assert app_config.timeouts.lookup_seconds == 30
        assert app_config.cache.ttl_seconds == 6 * 3600
        assert app_config.logging.format == "key-value"

    def test_load_iso8601_duration_config(self, mock_env_vars):
        """Test loading configuration with ISO-8601 and integer durations."""
        app_config, _ = load_config(FIXTURES_DIR / "iso8601_config.yaml")

        assert app_config.timeouts.adapter_seconds == 10
        assert app_config.timeouts.lookup_seconds == 45
        assert app_config.cache.ttl_seconds == 21600
        assert app_config.cache.negative_ttl_seconds == 300

    def test_no_config_file_uses_defaults(self, tmp_path, monkeypatch, mock_env_vars):
        """Test running without any config file."""
        monkeypatch.chdir(tmp_path)

        app_config, _ = load_config()

        assert app_config == AppConfig()

    def test_default_location_is_discovered(self, tmp_path, monkeypatch, mock_env_vars):
        """Test repo-icons.yaml in the working directory is picked up."""
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "repo-icons.yaml").write_text("probing:\n  concurrency: 2\n")
        monkeypatch.chdir(tmp_path)

        app_config, _ = load_config()

        assert app_config.probing.concurrency == 2

    def test_config_file_not_found(self, mock_env_vars):
        """Test error when an explicit config file doesn't exist."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(Path("nonexistent.yaml"))

        assert "not found" in str(exc_info.value)

    def test_invalid_yaml_syntax(self, tmp_path, mock_env_vars):
        """Test error on invalid YAML syntax."""
        config_file = tmp_path / "invalid.yaml"
        config_file.write_text("cache:\n  ttl: [6h\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(config_file)

        assert "Failed to parse YAML" in str(exc_info.value)
        assert exc_info.value.path == config_file

    def test_root_must_be_mapping(self, tmp_path, mock_env_vars):
        """Test a YAML list at the root is rejected."""
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- one\n- two\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(config_file)


class TestConfigurationValidation:
    """Test configuration validation rules."""

    @pytest.mark.parametrize(
        "config,fragment",
        [
            ({"timeouts": {"probe": "2m"}}, "Probe timeout too long"),
            ({"timeouts": {"lookup": "forever"}}, "Invalid duration format"),
            ({"cache": {"ttl": 0}}, "positive"),
            ({"probing": {"concurrency": 0}}, "probing -> concurrency"),
            ({"probing": {"max_bytes": 10}}, "probing -> max_bytes"),
            ({"github": {"api_base_url": "api.github.com"}}, "http:// or https://"),
            ({"logging": {"level": "LOUD"}}, "logging -> level"),
            ({"http": {"user_agent": "   "}}, "user_agent"),
        ],
    )
    def test_invalid_values(self, config, fragment):
        """Test each invalid value produces a readable error."""
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config(config)

        assert any(fragment in error for error in exc_info.value.errors), exc_info.value.errors

    def test_all_sources_disabled(self):
        """Test at least one source must remain enabled."""
        sources = {name.value: False for name in IconSource if name is not IconSource.OTHER}
        sources["github_readme"] = False

        with pytest.raises(ConfigurationError) as exc_info:
            parse_config({"sources": sources})

        assert "At least one icon source must be enabled" in str(exc_info.value)

    def test_readme_images_alone_are_enough(self):
        """Test the README source counts as an enabled source."""
        sources = {name.value: False for name in IconSource if name is not IconSource.OTHER}

        app_config = parse_config({"sources": sources})

        assert app_config.sources.enabled_sources() == []
        assert app_config.sources.github_readme is True

    def test_enabled_sources_in_priority_order(self):
        """Test enabled sources are listed most trusted first."""
        sources = SourcesConfig(site_manifest=False, site_default_favicon=False)

        assert sources.enabled_sources() == [
            IconSource.SITE_LINK_TAG,
            IconSource.GITHUB_SOCIAL_PREVIEW,
            IconSource.GITHUB_AVATAR,
        ]

    def test_warnings(self):
        """Test suspicious but valid settings produce warnings."""
        warnings = check_for_warnings(
            {
                "cache": {"ttl": "5m", "negative_ttl": "10m"},
                "timeouts": {"adapter": "60s", "lookup": "30s"},
                "probing": {"concurrency": 32},
                "sources": {"site_manifest": False},
            }
        )

        assert len(warnings) == 4
        assert "negative_ttl" in warnings[0]
        assert "timeouts.adapter" in warnings[1]
        assert "concurrency" in warnings[2]
        assert "site_manifest" in warnings[3]

    def test_no_warnings_for_defaults(self):
        """Test the default configuration is warning-free."""
        assert check_for_warnings({}) == []


class TestDurationParsing:
    """Test duration parsing utilities."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("30s", 30),
            ("5m", 300),
            ("6h", 21600),
            ("2d", 172800),
            ("1h30m", 5400),
            ("PT5M", 300),
            ("PT1H30M", 5400),
            ("P1D", 86400),
            (45, 45),
            ("45", 45),
        ],
    )
    def test_parse_duration(self, value, expected):
        """Test human-readable, ISO-8601 and integer durations."""
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["", "abc", "5x", "5m 3q", "PT", 0, -5, True])
    def test_parse_invalid(self, value):
        """Test invalid durations raise."""
        with pytest.raises(DurationParseError):
            parse_duration(value)

    def test_validate_duration_range(self):
        """Test range validation with a labelled message."""
        validate_duration_range(30, min_seconds=1, max_seconds=60)

        with pytest.raises(DurationParseError, match="Lookup timeout too short"):
            validate_duration_range(0, min_seconds=1, max_seconds=60, label="Lookup timeout")
        with pytest.raises(DurationParseError, match="Maximum is 1 minute"):
            validate_duration_range(120, min_seconds=1, max_seconds=60)

    def test_seconds_to_human_readable(self):
        """Test human-readable rendering of durations."""
        assert seconds_to_human_readable(1) == "1 second"
        assert seconds_to_human_readable(300) == "5 minutes"
        assert seconds_to_human_readable(7200) == "2 hours"
        assert seconds_to_human_readable(86400) == "1 day"


class TestEnvironmentVariables:
    """Test environment variable loading."""

    def test_load_valid_environment_config(self, mock_env_vars):
        """Test loading valid environment variables."""
        env_config = load_environment_config()

        assert env_config.github_token == "ghp_test_token"
        assert env_config.log_level == "INFO"
        assert env_config.environment == "test"

    def test_all_variables_are_optional(self, clean_env):
        """Test an empty environment is valid."""
        env_config = load_environment_config()

        assert env_config.github_token is None
        assert env_config.log_level is None
        assert env_config.environment == "production"

    def test_blank_token_is_unset(self, clean_env, monkeypatch):
        """Test an empty GITHUB_TOKEN counts as no token."""
        monkeypatch.setenv("GITHUB_TOKEN", "   ")

        assert load_environment_config().github_token is None

    def test_invalid_values(self, clean_env, monkeypatch):
        """Test invalid variables are reported together."""
        monkeypatch.setenv("GITHUB_TOKEN", "ghp bad")
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert len(exc_info.value.errors) == 2

    def test_repr_hides_token(self):
        """Test the token never appears in representations."""
        env_config = EnvironmentConfig(github_token="ghp_secret", log_level="debug")

        assert "ghp_secret" not in repr(env_config)
        assert env_config.log_level == "DEBUG"


@pytest.fixture
def clean_env(monkeypatch):
    """Remove repo-icons environment variables."""
    for name in ("GITHUB_TOKEN", "LOG_LEVEL", "REPO_ICONS_ENVIRONMENT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_env_vars(clean_env, monkeypatch):
    """Set up mock environment variables for testing."""
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_test_token")
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.setenv("REPO_ICONS_ENVIRONMENT", "test")
