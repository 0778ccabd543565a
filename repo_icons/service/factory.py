"""Wiring of the lookup service from configuration."""

from typing import Optional

import httpx

from repo_icons.adapters.factory import build_adapters
from repo_icons.cache.store import IconCache
from repo_icons.clients.github import GithubClient
from repo_icons.clients.html import HtmlFetcher
from repo_icons.clients.http import HttpClient
from repo_icons.clients.site import SiteIconScraper
from repo_icons.config.environment import EnvironmentConfig
from repo_icons.config.models import AppConfig
from repo_icons.logging import get_logger
from repo_icons.pipeline.runner import IconPipeline
from repo_icons.probing.prober import Prober

from .lookup import IconLookupService

logger = get_logger(__name__, component="lookup")


def build_lookup_service(
    app_config: AppConfig,
    env_config: Optional[EnvironmentConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> IconLookupService:
    """
    Build a ready-to-use IconLookupService.

    All collaborators share one HTTP client; the service closes it (and
    the prober's decode threads) in ``aclose()``.

    Args:
        app_config: Validated application configuration
        env_config: Environment configuration (GitHub token)
        transport: Optional httpx transport, used by tests

    Returns:
        IconLookupService with a fresh, empty cache
    """
    env_config = env_config or EnvironmentConfig()

    http = HttpClient(
        timeout=app_config.http.request_timeout_seconds,
        user_agent=app_config.http.user_agent,
        transport=transport,
    )
    html = HtmlFetcher(http)
    github = GithubClient(
        http,
        html=html,
        api_base_url=app_config.github.api_base_url,
        web_base_url=app_config.github.web_base_url,
        token=env_config.github_token,
    )
    scraper = SiteIconScraper(http, html=html)

    probing = app_config.probing
    prober = Prober(
        http,
        concurrency=probing.concurrency,
        timeout=app_config.timeouts.probe_seconds,
        max_bytes=probing.max_bytes,
        decode_workers=probing.decode_workers,
    )

    adapters = build_adapters(app_config.sources, github, scraper)
    pipeline = IconPipeline(
        adapters,
        prober=prober,
        adapter_timeout=app_config.timeouts.adapter_seconds,
        max_probes=probing.max_probes,
        probing_enabled=probing.enabled,
    )
    cache = IconCache(
        ttl_seconds=app_config.cache.ttl_seconds,
        negative_ttl_seconds=app_config.cache.negative_ttl_seconds,
    )

    logger.debug(
        "Lookup service built",
        extra={
            "event": "lookup.service.built",
            "sources": [a.name for a in adapters],
            "probing_enabled": probing.enabled,
            "authenticated": env_config.github_token is not None,
        },
    )

    return IconLookupService(
        pipeline,
        cache,
        lookup_timeout=app_config.timeouts.lookup_seconds,
        github_web_base_url=app_config.github.web_base_url,
        closeables=[http, prober],
    )
