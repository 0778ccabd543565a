"""Clients for the external collaborators of the icon pipeline.

- http.HttpClient: async HTTP with error translation
- html.HtmlFetcher / html.HtmlDocument: HTML fetch and link/meta extraction
- github.GithubClient: GitHub repository metadata, social preview and README
- readme.ReadmeDocument: logo-like images of a rendered README
- site.SiteIconScraper: website link tags, manifests and /favicon.ico

Exception handling:
    from repo_icons.clients.exceptions import FetchError, FetchHTTPError, FetchTimeoutError
"""

from .exceptions import FetchError, FetchHTTPError, FetchResponseError, FetchTimeoutError
from .github import GithubClient, RepositoryMetadata, normalize_homepage
from .html import HtmlDocument, HtmlFetcher, LinkTag
from .http import DEFAULT_USER_AGENT, HttpClient
from .readme import ReadmeDocument, ReadmeImage, is_badge
from .site import ManifestIcon, SiteIconScraper, site_origin

__all__ = [
    "HttpClient",
    "DEFAULT_USER_AGENT",
    "HtmlDocument",
    "HtmlFetcher",
    "LinkTag",
    "GithubClient",
    "RepositoryMetadata",
    "normalize_homepage",
    "ReadmeDocument",
    "ReadmeImage",
    "is_badge",
    "ManifestIcon",
    "SiteIconScraper",
    "site_origin",
    "FetchError",
    "FetchHTTPError",
    "FetchResponseError",
    "FetchTimeoutError",
]
