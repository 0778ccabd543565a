"""GitHub README image source."""

import asyncio
from typing import List

from repo_icons.clients.exceptions import FetchError
from repo_icons.clients.readme import ReadmeDocument
from repo_icons.domain.models import IconSource, RawCandidate, RepositoryKey
from repo_icons.logging import get_logger

from .base import GithubAdapter

logger = get_logger(__name__, component="adapter")

# Images below this weight are screenshots and diagrams, not logos
MIN_README_WEIGHT = 8


class GithubReadmeAdapter(GithubAdapter):
    """Adapter for logo-like images in the rendered README.

    Candidates are reported heaviest first and carry the ``other`` source
    tag, so they rank below every dedicated icon source on ties.
    """

    SOURCE = IconSource.OTHER

    @property
    def name(self) -> str:
        return "github_readme"

    async def discover(self, key: RepositoryKey) -> List[RawCandidate]:
        if not key.is_github:
            return []

        try:
            metadata, body = await asyncio.gather(
                self.github.get_repository(key.owner, key.name),
                self.github.get_readme_html(key.owner, key.name),
            )
        except FetchError as e:
            return self._handle_fetch_error(e, key)

        readme = ReadmeDocument(metadata, body, web_base_url=self.github.web_base_url)
        images = readme.images()
        logo_like = [image for image in images if image.weight >= MIN_README_WEIGHT]
        logger.debug(
            "Weighed README images",
            extra={
                "event": "adapter.readme.weighed",
                "repository": key.cache_key,
                "images": len(images),
                "kept": len(logo_like),
            },
        )

        candidates = [self._candidate(image.src, readme.link_base) for image in logo_like]
        candidates = self._truncate_candidates(candidates, key)
        self._log_discovered(key, candidates)
        return candidates
