"""GitHub social preview source."""

from typing import List

from repo_icons.clients.exceptions import FetchError
from repo_icons.domain.models import IconSource, RawCandidate, RepositoryKey

from .base import GithubAdapter


class GithubSocialPreviewAdapter(GithubAdapter):
    """Adapter for the custom social preview image of a repository.

    Repositories without an uploaded preview yield nothing; GitHub's
    generated cards are filtered out by the client.
    """

    SOURCE = IconSource.GITHUB_SOCIAL_PREVIEW

    async def discover(self, key: RepositoryKey) -> List[RawCandidate]:
        if not key.is_github:
            return []

        page_url = self.github.repository_web_url(key.owner, key.name)
        try:
            image_url = await self.github.get_social_preview_url(key.owner, key.name)
        except FetchError as e:
            return self._handle_fetch_error(e, key)

        if not image_url:
            return []

        candidates = [self._candidate(image_url, page_url)]
        self._log_discovered(key, candidates)
        return candidates
