"""HTML fetch/parse utility for link and meta tag extraction."""

from dataclasses import dataclass
from typing import Iterable, List, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

from repo_icons.logging import get_logger

from .exceptions import FetchResponseError
from .http import HttpClient

logger = get_logger(__name__, component="http")


@dataclass(frozen=True)
class LinkTag:
    """Attributes of one ``<link>`` element."""

    href: str
    rels: tuple
    sizes: Optional[str] = None
    type: Optional[str] = None


class HtmlDocument:
    """Parsed HTML page with the URL relative references resolve against.

    The base URL is the final URL after redirects, overridden by a
    ``<base href>`` element when the page declares one.
    """

    def __init__(self, url: str, html_text: str) -> None:
        self.url = url
        self.soup = BeautifulSoup(html_text or "", "html.parser")
        self.base_url = self._find_base_url()

    def _find_base_url(self) -> str:
        base = self.soup.find("base", href=True)
        if isinstance(base, Tag):
            href = str(base.get("href", "")).strip()
            if href:
                try:
                    resolved = urljoin(self.url, href)
                    scheme = urlsplit(resolved).scheme.lower()
                except ValueError:
                    scheme = ""
                if scheme in ("http", "https"):
                    return resolved
                logger.debug(
                    f"Ignoring non-http <base href> on {self.url}",
                    extra={"event": "html.base_href.ignored", "url": self.url, "href": href},
                )
        return self.url

    def link_tags(self, rels: Iterable[str]) -> List[LinkTag]:
        """Return ``<link>`` elements whose rel matches one of ``rels``.

        ``rel`` is matched case-insensitively both as a whole
        (``"shortcut icon"``) and token by token (``"icon"``).
        Elements without an href are skipped. Document order is preserved.
        """
        wanted = {r.lower() for r in rels}
        found: List[LinkTag] = []

        for element in self.soup.find_all("link"):
            href = element.get("href")
            rel = element.get("rel")
            if not href or not rel:
                continue

            tokens = rel.split() if isinstance(rel, str) else list(rel)
            tokens = tuple(t.lower() for t in tokens)
            if " ".join(tokens) not in wanted and not wanted.intersection(tokens):
                continue

            sizes = element.get("sizes")
            mime = element.get("type")
            found.append(
                LinkTag(
                    href=str(href).strip(),
                    rels=tokens,
                    sizes=str(sizes).strip() if sizes else None,
                    type=str(mime).strip() if mime else None,
                )
            )

        return found

    def meta_content(self, key: str) -> Optional[str]:
        """Content of the first ``<meta property=key>`` or ``<meta name=key>``."""
        for attr in ("property", "name"):
            element = self.soup.find("meta", attrs={attr: key})
            if isinstance(element, Tag):
                content = element.get("content")
                if content and str(content).strip():
                    return str(content).strip()
        return None


class HtmlFetcher:
    """Fetches a URL and parses it into an HtmlDocument."""

    def __init__(self, http: HttpClient) -> None:
        self.http = http

    async def fetch(self, url: str) -> HtmlDocument:
        """Fetch and parse ``url``.

        Raises:
            FetchError: On network or status failures
            FetchResponseError: If the body cannot be parsed
        """
        final_url, text = await self.http.get_text(url, headers={"Accept": "text/html,*/*;q=0.8"})
        try:
            document = HtmlDocument(final_url, text)
        except Exception as e:
            raise FetchResponseError(f"Failed to parse HTML from {url}: {e}", url=url) from e

        logger.debug(
            "Parsed HTML page",
            extra={"event": "html.page.parsed", "url": final_url, "base_url": document.base_url},
        )
        return document
