"""GitHub metadata provider.

Provides the repository metadata the icon sources need:
- repository/owner metadata from the REST API (owner avatar, homepage)
- the custom social preview image, read from the repository page's
  ``og:image`` meta tag
- the README rendered to HTML, for images the project shows off there
"""

from typing import Any, Dict, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from repo_icons.utils.singleflight import SingleFlight
from repo_icons.logging import get_logger

from .exceptions import FetchResponseError
from .html import HtmlFetcher
from .http import HttpClient

logger = get_logger(__name__, component="github")

DEFAULT_API_BASE_URL = "https://api.github.com"
DEFAULT_WEB_BASE_URL = "https://github.com"

# Auto-generated repository cards are rendered by this host; they are not icons.
GENERATED_CARD_HOSTS = {"opengraph.githubassets.com"}


class RepositoryMetadata(BaseModel):
    """Subset of the GitHub repository payload used for icon discovery."""

    owner: str = Field(..., description="Owner login")
    name: str = Field(..., description="Repository name")
    html_url: str = Field(..., description="Repository web URL")
    api_url: str = Field(..., description="Repository API URL")
    avatar_url: Optional[str] = Field(None, description="Owner avatar URL")
    homepage: Optional[str] = Field(None, description="Repository website, if set")
    default_branch: Optional[str] = Field(None, description="Default branch name")
    private: bool = Field(False, description="Whether the repository is private")

    @property
    def branch(self) -> str:
        """Branch README links resolve against; ``HEAD`` when unknown."""
        return self.default_branch or "HEAD"


def normalize_homepage(value: Optional[str]) -> Optional[str]:
    """Turn the free-form homepage field into an absolute URL, or None.

    Empty strings mean "no homepage"; values without a scheme
    (``example.org``) are treated as ``http://`` URLs.
    """
    if not value or not value.strip():
        return None
    homepage = value.strip()
    if "://" not in homepage:
        homepage = f"http://{homepage}"
    parts = urlsplit(homepage)
    if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
        return None
    return homepage


class GithubClient:
    """Client for the GitHub REST API and repository pages.

    Concurrent requests for the same repository are coalesced, so several
    icon sources asking for metadata during one fan-out cost one API call.
    """

    def __init__(
        self,
        http: HttpClient,
        html: Optional[HtmlFetcher] = None,
        api_base_url: str = DEFAULT_API_BASE_URL,
        web_base_url: str = DEFAULT_WEB_BASE_URL,
        token: Optional[str] = None,
    ) -> None:
        self.http = http
        self.html = html or HtmlFetcher(http)
        self.api_base_url = api_base_url.rstrip("/")
        self.web_base_url = web_base_url.rstrip("/")
        self._token = token
        self._repositories = SingleFlight(name="github.repository")
        self._previews = SingleFlight(name="github.social_preview")

    def _api_headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def repository_web_url(self, owner: str, name: str) -> str:
        return f"{self.web_base_url}/{owner}/{name}"

    async def get_repository(self, owner: str, name: str) -> RepositoryMetadata:
        """Fetch repository metadata.

        Raises:
            FetchHTTPError: On HTTP failures (404 for unknown repositories)
            FetchResponseError: If the payload is not a repository object
        """
        key = f"{owner}/{name}".lower()
        return await self._repositories.do(key, lambda: self._fetch_repository(owner, name))

    async def _fetch_repository(self, owner: str, name: str) -> RepositoryMetadata:
        url = f"{self.api_base_url}/repos/{owner}/{name}"
        logger.info(
            "Fetching repository metadata from GitHub",
            extra={"event": "github.repository.fetch", "url": url},
        )
        data = await self.http.get_json(url, headers=self._api_headers())
        return self._parse_repository(data, url)

    def _parse_repository(self, data: Any, url: str) -> RepositoryMetadata:
        if not isinstance(data, dict):
            raise FetchResponseError(
                f"Expected JSON object from {url}, got {type(data).__name__}", url=url
            )
        if "message" in data and "owner" not in data:
            raise FetchResponseError(f"GitHub API error: {data['message']}", url=url)

        owner_data = data.get("owner")
        if not isinstance(owner_data, dict) or not owner_data.get("login"):
            raise FetchResponseError(f"Repository payload from {url} has no owner", url=url)

        try:
            return RepositoryMetadata(
                owner=owner_data["login"],
                name=data["name"],
                html_url=data.get("html_url")
                or self.repository_web_url(owner_data["login"], data["name"]),
                api_url=data.get("url") or url,
                avatar_url=owner_data.get("avatar_url") or None,
                homepage=normalize_homepage(data.get("homepage")),
                default_branch=data.get("default_branch"),
                private=bool(data.get("private", False)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise FetchResponseError(f"Malformed repository payload from {url}: {e}", url=url) from e

    async def get_social_preview_url(self, owner: str, name: str) -> Optional[str]:
        """Return the custom social preview image URL, or None.

        GitHub's auto-generated cards are ignored.
        """
        key = f"{owner}/{name}".lower()
        return await self._previews.do(key, lambda: self._fetch_social_preview(owner, name))

    async def _fetch_social_preview(self, owner: str, name: str) -> Optional[str]:
        page = await self.html.fetch(self.repository_web_url(owner, name))
        image = page.meta_content("og:image") or page.meta_content("twitter:image")
        if not image:
            return None

        host = (urlsplit(image).hostname or "").lower()
        if host in GENERATED_CARD_HOSTS:
            logger.debug(
                "Ignoring auto-generated social card",
                extra={"event": "github.social_preview.generated", "url": image},
            )
            return None
        return image

    async def get_readme_html(self, owner: str, name: str) -> str:
        """Return the repository README rendered to HTML by GitHub.

        Raises:
            FetchHTTPError: On HTTP failures (404 when there is no README)
        """
        url = f"{self.api_base_url}/repos/{owner}/{name}/readme"
        logger.info(
            "Fetching rendered README from GitHub",
            extra={"event": "github.readme.fetch", "url": url},
        )
        headers = self._api_headers()
        headers["Accept"] = "application/vnd.github.html"
        _, body = await self.http.get_text(url, headers=headers)
        return body
