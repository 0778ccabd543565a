"""README image extraction.

Projects often show their logo at the top of the README rather than in a
favicon. This module scans the GitHub-rendered README HTML for images and
weighs how likely each one is to be the project's logo, from signals such
as its position in the primary heading, its file name and alt text, and
where it links to. Badges are skipped.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Set, Tuple
from urllib.parse import urljoin, urlsplit

from bs4 import Tag

from repo_icons.logging import get_logger

from .github import DEFAULT_WEB_BASE_URL, RepositoryMetadata
from .html import HtmlDocument

logger = get_logger(__name__, component="github")

RAW_CONTENT_BASE_URL = "https://raw.githubusercontent.com"

RAW_CONTENT_HOSTS = {"raw.githubusercontent.com", "raw.github.com"}

BADGE_HOSTS = {
    "img.shields.io",
    "shields.io",
    "badgen.net",
    "badge.fury.io",
    "travis-ci.org",
    "travis-ci.com",
    "circleci.com",
    "codecov.io",
    "coveralls.io",
    "ci.appveyor.com",
    "app.codacy.com",
    "api.codacy.com",
    "david-dm.org",
    "snyk.io",
    "bestpractices.coreinfrastructure.org",
    "api.netlify.com",
    "img.badgesize.io",
    "api.codeclimate.com",
    "codeclimate.com",
}

_HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
_PAGES_HOST = re.compile(r"^([^.]+)\.github\.(?:io|com)$")


class ProjectLink(str, Enum):
    """Where an image's enclosing link points."""

    WEBSITE = "website"
    REPO = "repo"


class KeywordMention(str, Enum):
    """Words in an image's path or alt text hinting at a logo."""

    LOGO = "logo"
    BANNER = "banner"
    REPO_NAME = "repo_name"


_KEYWORD_WEIGHTS = {
    KeywordMention.LOGO: 16,
    KeywordMention.BANNER: 8,
    KeywordMention.REPO_NAME: 4,
}

_LINK_WEIGHTS = {
    ProjectLink.WEBSITE: 8,
    ProjectLink.REPO: 4,
}


def is_badge(url: str) -> bool:
    """Whether ``url`` is a CI/status/version badge rather than artwork."""
    parts = urlsplit(url)
    host = (parts.hostname or "").lower()
    if host in BADGE_HOSTS:
        return True
    return "badge" in parts.path.lower()


@dataclass
class ReadmeImage:
    """One ``<img>`` of a README with the signals used to weigh it.

    Attributes:
        src: Absolute URL the image can be downloaded from
        in_primary_heading: Image sits in the README's title block
        edge_of_primary_heading: First or last image of the title block
        keyword_mentions: Logo keywords found in the path or alt text
        sourced_from_repo: Image file lives inside the repository
        links_to: Project page the image links to, if any
        is_align_center: Image or an ancestor is ``align="center"``
        has_size_attrs: Image carries ``width`` or ``height`` attributes
    """

    src: str
    in_primary_heading: bool = False
    edge_of_primary_heading: bool = False
    keyword_mentions: FrozenSet[KeywordMention] = field(default_factory=frozenset)
    sourced_from_repo: bool = False
    links_to: Optional[ProjectLink] = None
    is_align_center: bool = False
    has_size_attrs: bool = False

    @property
    def weight(self) -> int:
        """Likelihood of being the project logo; higher is better."""
        weight = 0

        if self.in_primary_heading:
            weight += 2
            if self.is_align_center:
                weight += 2
            if self.has_size_attrs:
                weight += 2
            if self.sourced_from_repo:
                weight += 4

        if self.edge_of_primary_heading:
            weight += 4

        if self.links_to is not None:
            weight += _LINK_WEIGHTS[self.links_to]

        for mention in self.keyword_mentions:
            weight += _KEYWORD_WEIGHTS[mention]

        return weight


class ReadmeDocument:
    """A rendered README bound to the repository it belongs to.

    Relative image and link references resolve against the raw file view
    of the default branch, the way GitHub itself serves README assets.
    """

    def __init__(
        self,
        repository: RepositoryMetadata,
        html_text: str,
        web_base_url: str = DEFAULT_WEB_BASE_URL,
    ) -> None:
        self.repository = repository
        self.owner = repository.owner.lower()
        self.name = repository.name.lower()
        self.branch = repository.branch
        self.web_base_url = web_base_url.rstrip("/")
        self.web_host = (urlsplit(self.web_base_url).hostname or "").lower()
        self.link_base = (
            f"{self.web_base_url}/{repository.owner}/{repository.name}/raw/{self.branch}/"
        )
        self.document = HtmlDocument(self.link_base, html_text)

        homepage_host = urlsplit(repository.homepage).hostname if repository.homepage else None
        self.homepage_host = homepage_host.lower() if homepage_host else None

    def images(self) -> List[ReadmeImage]:
        """README images, heaviest first; document order breaks ties.

        Badges, images without a usable ``src`` and, for private
        repositories, files that can only be downloaded with credentials
        are left out.
        """
        heading_images = {id(image) for image in self._primary_heading_images()}

        images: List[ReadmeImage] = []
        for element in self.document.soup.find_all("img", src=True):
            image = self._read_image(element, id(element) in heading_images)
            if image is not None:
                images.append(image)

        for index, image in enumerate(images):
            if not image.in_primary_heading:
                continue
            is_last = index + 1 == len(images) or not images[index + 1].in_primary_heading
            if index == 0 or is_last:
                image.edge_of_primary_heading = True

        images.sort(key=lambda image: -image.weight)
        return images

    def qualify_url(self, reference: str) -> Optional[str]:
        """Absolute http(s) URL of a README reference, or None."""
        reference = reference.strip()
        if not reference:
            return None
        # Root-relative paths point into the repository, not the host root
        if reference.startswith("/") and not reference.startswith("//"):
            reference = f".{reference}"
        try:
            url = urljoin(self.link_base, reference)
            scheme = urlsplit(url).scheme.lower()
        except ValueError:
            return None
        return url if scheme in ("http", "https") else None

    def repository_path(self, url: str) -> Optional[Tuple[str, str]]:
        """``(branch, path)`` when ``url`` points at a file of this repository."""
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
        segments = parts.path.lstrip("/").split("/")

        if host in RAW_CONTENT_HOSTS:
            # /owner/repo/branch/path...
            if len(segments) < 4:
                return None
            owner, name, branch, path = segments[0], segments[1], segments[2], segments[3:]
        elif host == self.web_host:
            # /owner/repo/{blob|raw}/branch/path...
            if len(segments) < 5:
                return None
            owner, name, branch, path = segments[0], segments[1], segments[3], segments[4:]
        else:
            return None

        if not self._is_same_repository(owner, name) or not any(path):
            return None
        return branch, "/".join(path)

    def link_to_project(self, url: str) -> Optional[ProjectLink]:
        """Whether ``url`` leads to the project's website or repository."""
        parts = urlsplit(url)
        host = (parts.hostname or "").lower()
        if not host:
            return None

        pages = _PAGES_HOST.match(host)
        if pages:
            user = pages.group(1)
            first_segment = parts.path.lstrip("/").split("/", 1)[0]
            if user == self.owner and (not first_segment or first_segment.lower() == self.name):
                return ProjectLink.WEBSITE

        if self.homepage_host and host == self.homepage_host:
            return ProjectLink.WEBSITE

        if self.repository_path(url) is not None:
            return ProjectLink.REPO
        return None

    def _is_same_repository(self, owner: str, name: str) -> bool:
        return owner.lower() == self.owner and name.lower() == self.name

    def _read_image(self, element: Tag, in_heading: bool) -> Optional[ReadmeImage]:
        canonical = element.get("data-canonical-src")
        src = self.qualify_url(str(canonical or element.get("src") or ""))
        if src is None or is_badge(src):
            return None

        # GitHub proxies external images through its CDN and keeps the
        # original in data-canonical-src
        cdn_src = self.qualify_url(str(element.get("src") or "")) if canonical else None

        is_align_center = False
        links_to: Optional[ProjectLink] = None
        seen_link = False
        current: Optional[Tag] = element
        while isinstance(current, Tag):
            if str(current.get("align", "")).lower() == "center":
                is_align_center = True
            if current.name == "a" and not seen_link:
                seen_link = True
                links_to = self._link_target(current, src)
            current = current.parent

        branch_and_path = self.repository_path(src)
        if branch_and_path is not None and self.repository.private:
            logger.debug(
                "Skipping README image that needs credentials",
                extra={"event": "github.readme.private_image", "url": src},
            )
            return None

        path = branch_and_path[1] if branch_and_path else urlsplit(src).path
        alt = str(element.get("alt") or "")

        if cdn_src is not None:
            download_url = cdn_src
        elif branch_and_path is not None:
            download_url = self._raw_url(*branch_and_path)
        else:
            download_url = src

        return ReadmeImage(
            src=download_url,
            in_primary_heading=in_heading,
            keyword_mentions=self._keyword_mentions(path, alt),
            sourced_from_repo=branch_and_path is not None,
            links_to=links_to,
            is_align_center=is_align_center,
            has_size_attrs=element.get("width") is not None or element.get("height") is not None,
        )

    def _link_target(self, anchor: Tag, src: str) -> Optional[ProjectLink]:
        href = anchor.get("href")
        if not href:
            return None
        target = self.qualify_url(str(href))
        if target is None:
            return None
        # GitHub wraps in-repo images in a link to their own blob page
        if target == src.replace("/raw/", "/blob/", 1):
            return None
        return self.link_to_project(target)

    def _keyword_mentions(self, path: str, alt: str) -> FrozenSet[KeywordMention]:
        haystacks = (path.lower(), alt.lower())
        mentions: Set[KeywordMention] = set()
        if any("logo" in text for text in haystacks):
            mentions.add(KeywordMention.LOGO)
        if any("banner" in text for text in haystacks):
            mentions.add(KeywordMention.BANNER)
        if any(self.name in text for text in haystacks):
            mentions.add(KeywordMention.REPO_NAME)
        return frozenset(mentions)

    def _raw_url(self, branch: str, path: str) -> str:
        if self.web_base_url == DEFAULT_WEB_BASE_URL:
            return f"{RAW_CONTENT_BASE_URL}/{self.repository.owner}/{self.repository.name}/{branch}/{path}"
        return f"{self.web_base_url}/{self.repository.owner}/{self.repository.name}/raw/{branch}/{path}"

    def _primary_heading_images(self) -> List[Tag]:
        """Images of the README title block.

        The title block is the first ``<h1>`` (else the first ``<h2>``),
        everything before it, and the image-only blocks right after it
        (a centered logo or a row of badges under the title).
        """
        soup = self.document.soup
        heading = soup.find("h1") or soup.find("h2")
        if not isinstance(heading, Tag):
            return []

        images = list(heading.find_all_previous("img"))
        images.extend(heading.find_all("img"))

        block = heading
        parent = heading.parent
        if isinstance(parent, Tag) and "markdown-heading" in (parent.get("class") or []):
            block = parent

        for sibling in block.next_siblings:
            if not isinstance(sibling, Tag):
                if str(sibling).strip():
                    break
                continue
            if sibling.name in _HEADING_TAGS or sibling.get_text(strip=True):
                break
            images.extend(sibling.find_all("img"))

        return images
