"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List, Optional

from .duration import DurationParseError, parse_duration

HIGH_PROBE_CONCURRENCY = 16


def _seconds(section: Any, key: str, default: str) -> Optional[int]:
    if not isinstance(section, dict):
        section = {}
    try:
        return parse_duration(section.get(key, default))
    except (DurationParseError, TypeError):
        # Invalid values are reported by schema validation.
        return None


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for potential issues and return warnings.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    # Failures should expire before successes
    cache = config_dict.get("cache", {})
    ttl = _seconds(cache, "ttl", "6h")
    negative_ttl = _seconds(cache, "negative_ttl", "5m")
    if ttl is not None and negative_ttl is not None and negative_ttl >= ttl:
        warning_messages.append(
            f"cache.negative_ttl ({negative_ttl}s) is not shorter than cache.ttl ({ttl}s); "
            "failed lookups will be cached as long as successful ones"
        )

    # An adapter budget longer than the lookup budget can never be used up
    timeouts = config_dict.get("timeouts", {})
    adapter = _seconds(timeouts, "adapter", "10s")
    lookup = _seconds(timeouts, "lookup", "30s")
    if adapter is not None and lookup is not None and adapter > lookup:
        warning_messages.append(
            f"timeouts.adapter ({adapter}s) is longer than timeouts.lookup ({lookup}s); "
            "slow sources will fail the whole lookup instead of being skipped"
        )

    probing = config_dict.get("probing", {})
    if isinstance(probing, dict):
        concurrency = probing.get("concurrency", 4)
        if isinstance(concurrency, int) and concurrency > HIGH_PROBE_CONCURRENCY:
            warning_messages.append(
                f"High probing.concurrency ({concurrency}) may overwhelm target hosts"
            )

    # Disabled sources
    sources = config_dict.get("sources", {})
    if isinstance(sources, dict):
        for name, enabled in sources.items():
            if name != "max_candidates_per_source" and enabled is False:
                warning_messages.append(f"Source '{name}' is disabled and will be skipped")

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """
    Emit warning messages using Python's warnings module.

    Args:
        warning_messages: List of warning messages to emit
    """
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
