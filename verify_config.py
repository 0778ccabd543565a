#!/usr/bin/env python3
"""Simple script to verify config.example.yaml structure without installing the package."""

import yaml
from pathlib import Path


def verify_config_structure():
    """Verify config.example.yaml has the expected structure."""
    config_file = Path("config.example.yaml")

    if not config_file.exists():
        print("✗ config.example.yaml not found")
        return False

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except Exception as e:
        print(f"✗ Failed to parse config.example.yaml: {e}")
        return False

    if not isinstance(config, dict):
        print("✗ config.example.yaml root must be a mapping")
        return False

    errors = []

    # Every section is optional, but must be a mapping when present
    known_sections = ['http', 'timeouts', 'cache', 'probing', 'sources', 'github', 'logging']
    for key, value in config.items():
        if key not in known_sections:
            errors.append(f"Unknown section: {key}")
        elif not isinstance(value, dict):
            errors.append(f"'{key}' must be a dictionary")

    # Check sources structure
    sources = config.get('sources', {})
    if isinstance(sources, dict):
        valid_sources = [
            'site_manifest',
            'site_link_tag',
            'github_social_preview',
            'github_avatar',
            'site_default_favicon',
            'github_readme',
        ]
        for name, enabled in sources.items():
            if name == 'max_candidates_per_source':
                if not isinstance(enabled, int) or enabled < 0:
                    errors.append("'sources.max_candidates_per_source' must be a non-negative integer")
            elif name not in valid_sources:
                errors.append(f"Unknown source: {name}")
            elif not isinstance(enabled, bool):
                errors.append(f"Source '{name}' must be true or false")

        if not any(sources.get(name, True) for name in valid_sources):
            errors.append("At least one source must be enabled")

    # Durations are strings or plain seconds
    duration_keys = {
        'http': ['request_timeout'],
        'timeouts': ['adapter', 'probe', 'lookup'],
        'cache': ['ttl', 'negative_ttl'],
    }
    for section, keys in duration_keys.items():
        values = config.get(section, {})
        if not isinstance(values, dict):
            continue
        for key in keys:
            if key in values and not isinstance(values[key], (str, int)):
                errors.append(f"'{section}.{key}' must be a duration string or seconds")

    logging_config = config.get('logging', {})
    if isinstance(logging_config, dict) and logging_config.get('format', 'key-value') not in ['json', 'key-value']:
        errors.append(f"'logging.format' must be json or key-value")

    if errors:
        print("✗ config.example.yaml validation failed:")
        for error in errors:
            print(f"  - {error}")
        return False
    else:
        print("✓ config.example.yaml structure is valid")
        enabled = [name for name, value in sources.items() if value is True]
        print(f"  - {len(enabled)} sources enabled")
        print(f"  - Lookup timeout: {config.get('timeouts', {}).get('lookup', 'not set')}")
        print(f"  - Cache TTL: {config.get('cache', {}).get('ttl', 'not set')}")
        return True


if __name__ == "__main__":
    import sys
    success = verify_config_structure()
    sys.exit(0 if success else 1)
