"""Icon source adapters.

One adapter per source, in priority order:
- Web app manifest icons: manifest.SiteManifestAdapter
- ``<link rel="icon">`` elements: link_tag.SiteLinkTagAdapter
- GitHub social preview: social_preview.GithubSocialPreviewAdapter
- GitHub owner avatar: github_avatar.GithubAvatarAdapter
- ``/favicon.ico``: default_favicon.SiteDefaultFaviconAdapter
- Logo-like README images: readme.GithubReadmeAdapter

Use the factory function to instantiate the enabled adapters:
    from repo_icons.adapters.factory import build_adapters
    adapters = build_adapters(config.sources, github, scraper)
    candidates = await adapters[0].discover(key)

New sources subclass BaseAdapter and implement ``discover``.
"""

from .base import BaseAdapter, GithubAdapter, SiteAdapter
from .default_favicon import SiteDefaultFaviconAdapter
from .exceptions import (
    SourceConfigurationError,
    SourceError,
    SourceHTTPError,
    SourceResponseError,
    SourceTimeoutError,
)
from .factory import build_adapters
from .github_avatar import GithubAvatarAdapter
from .link_tag import SiteLinkTagAdapter
from .manifest import SiteManifestAdapter
from .readme import GithubReadmeAdapter
from .social_preview import GithubSocialPreviewAdapter

__all__ = [
    # Base and factory
    "BaseAdapter",
    "GithubAdapter",
    "SiteAdapter",
    "build_adapters",
    # Adapters
    "SiteManifestAdapter",
    "SiteLinkTagAdapter",
    "GithubSocialPreviewAdapter",
    "GithubAvatarAdapter",
    "SiteDefaultFaviconAdapter",
    "GithubReadmeAdapter",
    # Exceptions
    "SourceError",
    "SourceHTTPError",
    "SourceTimeoutError",
    "SourceResponseError",
    "SourceConfigurationError",
]
