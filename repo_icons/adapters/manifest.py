"""Web app manifest icon source."""

from typing import List

from repo_icons.clients.exceptions import FetchError
from repo_icons.domain.models import IconSource, RawCandidate, RepositoryKey

from .base import SiteAdapter


class SiteManifestAdapter(SiteAdapter):
    """Adapter for icons declared in web app manifests.

    Follows every ``<link rel="manifest">`` of the project's website and
    reports the entries of each manifest's ``icons`` array. Manifests
    usually declare explicit ``sizes`` and ``type``, which makes this the
    most trusted source.

    Manifest ``src`` values are relative to the manifest URL, not the page.
    """

    SOURCE = IconSource.SITE_MANIFEST

    async def discover(self, key: RepositoryKey) -> List[RawCandidate]:
        try:
            site_url = await self._resolve_site_url(key)
            if not site_url:
                return []
            page = await self.scraper.load_page(site_url)
            icons = await self.scraper.manifest_icons(page)
        except FetchError as e:
            return self._handle_fetch_error(e, key)

        candidates = [
            self._candidate(icon.src, icon.manifest_url, sizes=icon.sizes, mime_type=icon.type)
            for icon in icons
        ]
        candidates = self._truncate_candidates(candidates, key)
        self._log_discovered(key, candidates)
        return candidates
