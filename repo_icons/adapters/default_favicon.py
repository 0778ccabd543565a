"""``/favicon.ico`` source."""

from typing import List

from repo_icons.clients.exceptions import FetchError
from repo_icons.domain.models import IconSource, RawCandidate, RepositoryKey

from .base import SiteAdapter


class SiteDefaultFaviconAdapter(SiteAdapter):
    """Adapter for the conventional ``/favicon.ico`` at the site origin.

    Only checks that the file exists. It carries no size or format
    metadata; the ``.ico`` name is not trusted since many sites serve PNG
    data there.
    """

    SOURCE = IconSource.SITE_DEFAULT_FAVICON

    async def discover(self, key: RepositoryKey) -> List[RawCandidate]:
        try:
            site_url = await self._resolve_site_url(key)
            if not site_url:
                return []
            favicon_url = await self.scraper.default_favicon(site_url)
        except FetchError as e:
            return self._handle_fetch_error(e, key)

        if not favicon_url:
            return []

        candidates = [RawCandidate(reference=favicon_url, source=self.SOURCE, base_url=site_url)]
        self._log_discovered(key, candidates)
        return candidates
