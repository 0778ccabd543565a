"""Public query façade.

``IconLookupService.lookup`` is the single entry point for library and
CLI callers: it parses the repository reference, goes through the cache
to the pipeline under the overall lookup budget, and applies the caller's
options to the ranked result.
"""

import asyncio
import inspect
import re
from typing import Any, Iterable, Optional
from urllib.parse import urlsplit

from repo_icons.cache.store import IconCache
from repo_icons.clients.github import DEFAULT_WEB_BASE_URL
from repo_icons.domain.models import LookupOptions, RepositoryKey, ResultSet
from repo_icons.logging import get_logger
from repo_icons.logging.context import log_context
from repo_icons.pipeline.exceptions import (
    InvalidRepositoryReferenceError,
    LookupTimeoutError,
    NoIconsFoundError,
)
from repo_icons.pipeline.runner import IconPipeline
from repo_icons.utils.urls import InvalidUrlError, canonicalize

logger = get_logger(__name__, component="lookup")

DEFAULT_LOOKUP_TIMEOUT = 30.0

_OWNER = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,38})$")
_NAME = re.compile(r"^[A-Za-z0-9._-]{1,100}$")
_GITHUB_HOSTS = {"github.com", "www.github.com"}


def _github_key(owner: str, name: str, reference: str) -> RepositoryKey:
    if name.lower().endswith(".git"):
        name = name[:-4]
    if not _OWNER.match(owner):
        raise InvalidRepositoryReferenceError(reference, f"invalid owner name {owner!r}")
    if not _NAME.match(name) or name in (".", ".."):
        raise InvalidRepositoryReferenceError(reference, f"invalid repository name {name!r}")
    return RepositoryKey.github(owner, name)


def parse_repository_reference(
    reference: str, github_web_base_url: str = DEFAULT_WEB_BASE_URL
) -> RepositoryKey:
    """Parse a repository reference into a RepositoryKey.

    Accepted forms:
    - ``owner/name`` (optionally ending in ``.git``)
    - ``https://github.com/owner/name[.git][/...]`` and the same without scheme
    - any other ``http(s)://`` URL, taken as a plain website

    Raises:
        InvalidRepositoryReferenceError: For anything else
    """
    if reference is None or not str(reference).strip():
        raise InvalidRepositoryReferenceError(str(reference), "reference is empty")

    text = str(reference).strip()
    github_hosts = set(_GITHUB_HOSTS)
    configured = urlsplit(github_web_base_url).hostname
    if configured:
        github_hosts.add(configured.lower())

    if "://" not in text:
        head = text.split("/", 1)[0].lower()
        if head in github_hosts:
            text = f"https://{text}"
        else:
            parts = text.split("/")
            if len(parts) != 2 or not all(parts):
                raise InvalidRepositoryReferenceError(
                    reference, "expected 'owner/name' or an http(s) URL"
                )
            return _github_key(parts[0], parts[1], reference)

    try:
        parts = urlsplit(text)
        host = (parts.hostname or "").lower()
    except ValueError as e:
        raise InvalidRepositoryReferenceError(reference, f"unparsable URL: {e}") from e

    if parts.scheme.lower() not in ("http", "https"):
        raise InvalidRepositoryReferenceError(reference, f"unsupported scheme {parts.scheme!r}")
    if not host:
        raise InvalidRepositoryReferenceError(reference, "URL has no host")

    if host in github_hosts:
        segments = [s for s in parts.path.split("/") if s]
        if len(segments) < 2:
            raise InvalidRepositoryReferenceError(
                reference, "GitHub URL does not name a repository"
            )
        return _github_key(segments[0], segments[1], reference)

    try:
        return RepositoryKey.website(canonicalize(None, text))
    except InvalidUrlError as e:
        raise InvalidRepositoryReferenceError(reference, str(e)) from e


class IconLookupService:
    """
    Looks up ranked icons for repositories.

    The service owns nothing global: the pipeline and cache are passed in,
    so tests and embedding applications control their lifetime.
    """

    def __init__(
        self,
        pipeline: IconPipeline,
        cache: IconCache,
        lookup_timeout: float = DEFAULT_LOOKUP_TIMEOUT,
        github_web_base_url: str = DEFAULT_WEB_BASE_URL,
        closeables: Iterable[Any] = (),
    ) -> None:
        """
        Initialize the service.

        Args:
            pipeline: Pipeline resolving cache misses
            cache: Result cache shared by all lookups of this service
            lookup_timeout: Overall budget of one lookup in seconds
            github_web_base_url: Web base URL whose links count as GitHub references
            closeables: Resources released by aclose() (``aclose()`` or ``close()``)
        """
        if lookup_timeout <= 0:
            raise ValueError(f"lookup_timeout must be positive, got: {lookup_timeout}")

        self.pipeline = pipeline
        self.cache = cache
        self.lookup_timeout = lookup_timeout
        self.github_web_base_url = github_web_base_url
        self._closeables = list(closeables)

    async def aclose(self) -> None:
        """Release HTTP connections and worker threads."""
        for resource in self._closeables:
            if hasattr(resource, "aclose"):
                await resource.aclose()
            elif hasattr(resource, "close"):
                closed = resource.close()
                if inspect.isawaitable(closed):
                    await closed
        self._closeables.clear()

    async def __aenter__(self) -> "IconLookupService":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def lookup(
        self, reference: str, options: Optional[LookupOptions] = None
    ) -> ResultSet:
        """
        Return the ranked, non-empty icon list for ``reference``.

        Cancelling the call detaches it from the shared resolution; the
        resolution itself only stops when no other caller waits for it.

        Args:
            reference: ``owner/name``, a GitHub URL or a website URL
            options: force_refresh / include_unprobed / max_results

        Raises:
            InvalidRepositoryReferenceError: Before any network access
            NoIconsFoundError: If nothing usable was found
            LookupTimeoutError: If the overall budget was exceeded
        """
        options = options or LookupOptions()
        key = parse_repository_reference(reference, self.github_web_base_url)

        with log_context(repository=key.cache_key):
            logger.info(
                f"Looking up icons for {key}",
                extra={
                    "event": "lookup.started",
                    "force_refresh": options.force_refresh,
                    "include_unprobed": options.include_unprobed,
                    "max_results": options.max_results,
                },
            )

            try:
                result = await asyncio.wait_for(
                    self.cache.get_or_resolve(
                        key, self.pipeline.resolve, force_refresh=options.force_refresh
                    ),
                    self.lookup_timeout,
                )
            except asyncio.TimeoutError as e:
                logger.warning(
                    f"Lookup for {key} timed out",
                    extra={"event": "lookup.timeout", "timeout": self.lookup_timeout},
                )
                raise LookupTimeoutError(reference, self.lookup_timeout) from e
            except NoIconsFoundError as e:
                logger.info(
                    f"No icons found for {key}",
                    extra={
                        "event": "lookup.not_found",
                        "all_sources_failed": e.all_sources_failed,
                    },
                )
                raise

            result = self._apply_options(key, result, options)

            logger.info(
                f"Found {len(result)} icons for {key}",
                extra={"event": "lookup.completed", "result_count": len(result), "best": result.best().url},
            )
            return result

    def _apply_options(
        self, key: RepositoryKey, result: ResultSet, options: LookupOptions
    ) -> ResultSet:
        if not options.include_unprobed:
            sized = [c for c in result if c.has_dimensions]
            if not sized:
                raise NoIconsFoundError(
                    key, message=f"No icons with known dimensions found for {key}"
                )
            if len(sized) != len(result):
                result = ResultSet(key, sized)
        return result.limit(options.max_results)
