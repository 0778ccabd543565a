"""Factory function for instantiating the enabled icon source adapters."""

import logging
from typing import Dict, List, Type

from repo_icons.clients.github import GithubClient
from repo_icons.clients.site import SiteIconScraper
from repo_icons.config.models import SourcesConfig
from repo_icons.domain.models import IconSource

from .base import BaseAdapter, GithubAdapter, SiteAdapter
from .default_favicon import SiteDefaultFaviconAdapter
from .exceptions import SourceConfigurationError
from .github_avatar import GithubAvatarAdapter
from .link_tag import SiteLinkTagAdapter
from .manifest import SiteManifestAdapter
from .readme import GithubReadmeAdapter
from .social_preview import GithubSocialPreviewAdapter

logger = logging.getLogger(__name__)

ADAPTER_CLASSES: Dict[IconSource, Type[BaseAdapter]] = {
    IconSource.SITE_MANIFEST: SiteManifestAdapter,
    IconSource.SITE_LINK_TAG: SiteLinkTagAdapter,
    IconSource.GITHUB_SOCIAL_PREVIEW: GithubSocialPreviewAdapter,
    IconSource.GITHUB_AVATAR: GithubAvatarAdapter,
    IconSource.SITE_DEFAULT_FAVICON: SiteDefaultFaviconAdapter,
}


def build_adapters(
    sources: SourcesConfig, github: GithubClient, scraper: SiteIconScraper
) -> List[BaseAdapter]:
    """Instantiate one adapter per enabled source, in source priority order.

    The README source reports under the ``other`` tag and comes last.

    Args:
        sources: Source switches and per-source candidate cap
        github: Shared GitHub metadata client
        scraper: Shared website scraper

    Returns:
        Adapters for every enabled source

    Raises:
        SourceConfigurationError: If an adapter cannot be created

    Example:
        >>> adapters = build_adapters(SourcesConfig(), github, scraper)
        >>> [a.name for a in adapters][:2]
        ['site_manifest', 'site_link_tag']
    """
    adapters: List[BaseAdapter] = []
    for source in sources.enabled_sources():
        adapter_class = ADAPTER_CLASSES.get(source)
        if adapter_class is None:
            supported = ", ".join(sorted(s.value for s in ADAPTER_CLASSES))
            raise SourceConfigurationError(
                f"Unknown icon source: {source.value}. Supported sources: {supported}",
                source=source.value,
            )

        logger.debug(
            "Creating adapter instance",
            extra={"source": source.value, "adapter_class": adapter_class.__name__},
        )

        try:
            if issubclass(adapter_class, SiteAdapter):
                adapter = adapter_class(
                    scraper, github, max_candidates=sources.max_candidates_per_source
                )
            elif issubclass(adapter_class, GithubAdapter):
                adapter = adapter_class(github, max_candidates=sources.max_candidates_per_source)
            else:
                adapter = adapter_class(max_candidates=sources.max_candidates_per_source)
        except SourceConfigurationError:
            raise
        except Exception as e:
            raise SourceConfigurationError(
                f"Failed to create {source.value} adapter: {e}", source=source.value
            ) from e
        adapters.append(adapter)

    if sources.github_readme:
        adapters.append(
            GithubReadmeAdapter(github, max_candidates=sources.max_candidates_per_source)
        )

    return adapters
