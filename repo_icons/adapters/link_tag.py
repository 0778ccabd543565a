"""``<link rel="icon">`` source."""

from typing import List

from repo_icons.clients.exceptions import FetchError
from repo_icons.domain.models import IconSource, RawCandidate, RepositoryKey

from .base import SiteAdapter


class SiteLinkTagAdapter(SiteAdapter):
    """Adapter for icon ``<link>`` elements in the website's HTML head.

    Covers ``icon``, ``shortcut icon``, the ``apple-touch-icon`` variants,
    ``mask-icon`` and ``fluid-icon``. The optional ``sizes`` and ``type``
    attributes become declared metadata.
    """

    SOURCE = IconSource.SITE_LINK_TAG

    async def discover(self, key: RepositoryKey) -> List[RawCandidate]:
        try:
            site_url = await self._resolve_site_url(key)
            if not site_url:
                return []
            page = await self.scraper.load_page(site_url)
        except FetchError as e:
            return self._handle_fetch_error(e, key)

        candidates = [
            self._candidate(link.href, page.base_url, sizes=link.sizes, mime_type=link.type)
            for link in self.scraper.link_icons(page)
        ]
        candidates = self._truncate_candidates(candidates, key)
        self._log_discovered(key, candidates)
        return candidates
