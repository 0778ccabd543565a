"""Generic website favicon/icon scraper.

Finds icon references on a website using the standard conventions:
- ``<link rel="icon">`` and friends in the page head
- the ``icons`` array of every linked web app manifest
- the ``/favicon.ico`` default location
"""

import asyncio
from dataclasses import dataclass
from typing import Any, List, Optional
from urllib.parse import urljoin, urlsplit, urlunsplit

from repo_icons.utils.singleflight import SingleFlight
from repo_icons.logging import get_logger

from .exceptions import FetchError
from .html import HtmlDocument, HtmlFetcher, LinkTag
from .http import HttpClient

logger = get_logger(__name__, component="site")

ICON_RELS = (
    "icon",
    "shortcut icon",
    "apple-touch-icon",
    "apple-touch-icon-precomposed",
    "mask-icon",
    "fluid-icon",
)


@dataclass(frozen=True)
class ManifestIcon:
    """One entry of a web app manifest ``icons`` array."""

    src: str
    manifest_url: str
    sizes: Optional[str] = None
    type: Optional[str] = None
    purpose: Optional[str] = None


def site_origin(url: str) -> str:
    """``scheme://host[:port]/`` of ``url``."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, "/", "", ""))


class SiteIconScraper:
    """Scrapes icon references from a website.

    Page loads are coalesced per URL so the link-tag and manifest sources
    share one HTML download during a fan-out.
    """

    def __init__(self, http: HttpClient, html: Optional[HtmlFetcher] = None) -> None:
        self.http = http
        self.html = html or HtmlFetcher(http)
        self._pages = SingleFlight(name="site.page")

    async def load_page(self, base_url: str) -> HtmlDocument:
        return await self._pages.do(base_url, lambda: self.html.fetch(base_url))

    def link_icons(self, page: HtmlDocument) -> List[LinkTag]:
        """Icon ``<link>`` elements of ``page`` in document order."""
        return page.link_tags(ICON_RELS)

    async def manifest_icons(self, page: HtmlDocument) -> List[ManifestIcon]:
        """Icons declared in the manifests linked from ``page``.

        Manifests are fetched concurrently. A single broken manifest is
        logged and skipped; if every linked manifest fails, the first error
        is raised.
        """
        manifest_urls = []
        for link in page.link_tags(["manifest"]):
            url = urljoin(page.base_url, link.href)
            if url not in manifest_urls:
                manifest_urls.append(url)

        if not manifest_urls:
            return []

        results = await asyncio.gather(
            *(self._load_manifest(url) for url in manifest_urls), return_exceptions=True
        )

        icons: List[ManifestIcon] = []
        errors: List[FetchError] = []
        for url, result in zip(manifest_urls, results):
            if isinstance(result, FetchError):
                logger.warning(
                    f"Failed to load manifest {url}: {result}",
                    extra={"event": "site.manifest.failed", "url": url, "error": str(result)},
                )
                errors.append(result)
                continue
            if isinstance(result, BaseException):
                raise result
            icons.extend(result)

        if errors and len(errors) == len(manifest_urls):
            raise errors[0]
        return icons

    async def _load_manifest(self, manifest_url: str) -> List[ManifestIcon]:
        data = await self.http.get_json(
            manifest_url, headers={"Accept": "application/manifest+json, application/json"}
        )
        return self._parse_manifest(data, manifest_url)

    def _parse_manifest(self, data: Any, manifest_url: str) -> List[ManifestIcon]:
        if not isinstance(data, dict):
            return []
        entries = data.get("icons")
        if not isinstance(entries, list):
            return []

        icons = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            src = entry.get("src")
            if not isinstance(src, str) or not src.strip():
                continue
            icons.append(
                ManifestIcon(
                    src=src.strip(),
                    manifest_url=manifest_url,
                    sizes=entry.get("sizes") if isinstance(entry.get("sizes"), str) else None,
                    type=entry.get("type") if isinstance(entry.get("type"), str) else None,
                    purpose=entry.get("purpose") if isinstance(entry.get("purpose"), str) else None,
                )
            )
        return icons

    async def default_favicon(self, base_url: str) -> Optional[str]:
        """URL of ``/favicon.ico`` at the site origin if it exists."""
        url = urljoin(site_origin(base_url), "/favicon.ico")
        if await self.http.exists(url):
            return url
        return None
