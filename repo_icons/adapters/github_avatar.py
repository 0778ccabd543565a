"""GitHub owner avatar source."""

from typing import List

from repo_icons.clients.exceptions import FetchError
from repo_icons.domain.models import IconSource, RawCandidate, RepositoryKey

from .base import GithubAdapter


class GithubAvatarAdapter(GithubAdapter):
    """Adapter for the avatar of the repository owner.

    Avatar URLs carry neither extension nor declared size; both are left
    to probing.
    """

    SOURCE = IconSource.GITHUB_AVATAR

    async def discover(self, key: RepositoryKey) -> List[RawCandidate]:
        if not key.is_github:
            return []

        try:
            metadata = await self.github.get_repository(key.owner, key.name)
        except FetchError as e:
            return self._handle_fetch_error(e, key)

        if not metadata.avatar_url:
            return []

        candidates = [self._candidate(metadata.avatar_url, metadata.api_url)]
        self._log_discovered(key, candidates)
        return candidates
