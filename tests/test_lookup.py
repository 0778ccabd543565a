"""Tests for the lookup service façade."""

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from repo_icons.cache import IconCache
from repo_icons.config.environment import EnvironmentConfig
from repo_icons.config.models import AppConfig
from repo_icons.domain.models import IconFormat, IconSource, LookupOptions, RepositoryKey
from repo_icons.pipeline import (
    IconPipeline,
    InvalidRepositoryReferenceError,
    LookupTimeoutError,
    NoIconsFoundError,
)
from repo_icons.service import IconLookupService, build_lookup_service, parse_repository_reference
from tests.helpers import FixtureAdapter, RouteTransport, ico_bytes, png_bytes, raw, svg_bytes

FIXTURES = Path(__file__).parent / "fixtures" / "responses"


# ============================================================================
# Reference parsing
# ============================================================================


class TestParseRepositoryReference:
    """Tests for parse_repository_reference()."""

    @pytest.mark.parametrize(
        "reference",
        [
            "octo/cat",
            "Octo/Cat.git",
            "  octo/cat  ",
            "https://github.com/octo/cat",
            "https://github.com/octo/cat.git",
            "https://github.com/Octo/cat/tree/main/docs",
            "http://www.github.com/octo/cat/",
            "github.com/octo/cat",
        ],
    )
    def test_github_references(self, reference):
        """Test every GitHub spelling maps to the same key."""
        assert parse_repository_reference(reference) == RepositoryKey.github("octo", "cat")

    def test_website_references(self):
        """Test other http(s) URLs become canonical website keys."""
        assert parse_repository_reference("https://Example.org") == RepositoryKey.website(
            "https://example.org/"
        )
        assert parse_repository_reference("http://example.org:80/docs/#top") == RepositoryKey.website(
            "http://example.org/docs"
        )

    def test_enterprise_host(self):
        """Test the configured web base URL counts as GitHub."""
        key = parse_repository_reference("https://ghe.test/octo/cat", "https://ghe.test")
        assert key == RepositoryKey.github("octo", "cat")

    @pytest.mark.parametrize(
        "reference",
        [
            "",
            "   ",
            "octo",
            "octo/cat/extra",
            "/cat",
            "-octo/cat",
            "octo/..",
            "octo/c@t",
            "not a reference",
            "https://github.com/octo",
            "https://github.com/",
            "ftp://example.org/",
            "https://",
        ],
    )
    def test_invalid_references(self, reference):
        """Test unusable input raises InvalidRepositoryReferenceError."""
        with pytest.raises(InvalidRepositoryReferenceError) as exc_info:
            parse_repository_reference(reference)
        assert isinstance(exc_info.value, ValueError)


# ============================================================================
# Lookup service
# ============================================================================


def make_service(adapters, lookup_timeout=5.0, closeables=()):
    return IconLookupService(
        IconPipeline(adapters, adapter_timeout=10.0, probing_enabled=False),
        IconCache(),
        lookup_timeout=lookup_timeout,
        closeables=closeables,
    )


def link_adapter(delay=0.0):
    return FixtureAdapter(
        IconSource.SITE_LINK_TAG,
        [
            raw("/logo.svg", source=IconSource.SITE_LINK_TAG, format="svg"),
            raw("/icon-64.png", source=IconSource.SITE_LINK_TAG, format="png", width=64, height=64),
            raw("/icon-32.png", source=IconSource.SITE_LINK_TAG, format="png", width=32, height=32),
        ],
        delay=delay,
    )


class TestIconLookupService:
    """Tests for IconLookupService.lookup()."""

    @pytest.mark.asyncio
    async def test_lookup_returns_ranked_icons(self):
        """Test a lookup returns the full ranked list by default."""
        service = make_service([link_adapter()])

        result = await service.lookup("octo/cat")

        assert [c.url for c in result] == [
            "https://example.org/logo.svg",
            "https://example.org/icon-64.png",
            "https://example.org/icon-32.png",
        ]
        assert result.key == RepositoryKey.github("octo", "cat")

    @pytest.mark.asyncio
    async def test_max_results(self):
        """Test max_results keeps the best entries."""
        service = make_service([link_adapter()])

        result = await service.lookup("octo/cat", LookupOptions(max_results=1))

        assert [c.url for c in result] == ["https://example.org/logo.svg"]

    @pytest.mark.asyncio
    async def test_exclude_unprobed(self):
        """Test include_unprobed=False keeps only sized icons."""
        service = make_service([link_adapter()])

        result = await service.lookup(
            "octo/cat", LookupOptions(include_unprobed=False, max_results=1)
        )

        assert [c.url for c in result] == ["https://example.org/icon-64.png"]

    @pytest.mark.asyncio
    async def test_exclude_unprobed_without_sized_icons(self):
        """Test filtering everything away is reported as no icons."""
        adapter = FixtureAdapter(IconSource.GITHUB_AVATAR, [raw("https://a.test/u/1")])
        service = make_service([adapter])

        with pytest.raises(NoIconsFoundError):
            await service.lookup("octo/cat", LookupOptions(include_unprobed=False))

    @pytest.mark.asyncio
    async def test_repeated_lookups_hit_the_cache(self):
        """Test equivalent references share one cached resolution."""
        adapter = link_adapter()
        service = make_service([adapter])

        first = await service.lookup("octo/cat")
        second = await service.lookup("https://github.com/Octo/Cat")

        assert first is second
        assert adapter.calls == 1

    @pytest.mark.asyncio
    async def test_force_refresh(self):
        """Test force_refresh recomputes the result."""
        adapter = link_adapter()
        service = make_service([adapter])

        await service.lookup("octo/cat")
        await service.lookup("octo/cat", LookupOptions(force_refresh=True))

        assert adapter.calls == 2

    @pytest.mark.asyncio
    async def test_concurrent_lookups_share_resolution(self):
        """Test concurrent lookups of one repository run the pipeline once."""
        adapter = link_adapter(delay=0.02)
        service = make_service([adapter])

        results = await asyncio.gather(
            *(service.lookup(ref) for ref in ["octo/cat", "github.com/octo/cat", "Octo/Cat"])
        )

        assert adapter.calls == 1
        assert results[0] is results[1] is results[2]

    @pytest.mark.asyncio
    async def test_invalid_reference_never_reaches_pipeline(self):
        """Test parsing failures happen before any source is queried."""
        adapter = link_adapter()
        service = make_service([adapter])

        with pytest.raises(InvalidRepositoryReferenceError):
            await service.lookup("not a reference")
        assert adapter.calls == 0

    @pytest.mark.asyncio
    async def test_no_icons_found(self):
        """Test empty sources surface NoIconsFoundError."""
        service = make_service([FixtureAdapter(IconSource.SITE_LINK_TAG)])

        with pytest.raises(NoIconsFoundError):
            await service.lookup("https://example.org/")

    @pytest.mark.asyncio
    async def test_lookup_timeout(self):
        """Test the overall budget cancels the abandoned resolution."""
        adapter = link_adapter(delay=5.0)
        service = make_service([adapter], lookup_timeout=0.05)

        with pytest.raises(LookupTimeoutError) as exc_info:
            await service.lookup("octo/cat")
        await asyncio.sleep(0.01)

        assert isinstance(exc_info.value, TimeoutError)
        assert exc_info.value.timeout == 0.05
        assert adapter.cancelled == 1
        assert len(service.cache) == 0

    @pytest.mark.asyncio
    async def test_aclose_releases_resources(self):
        """Test async and sync closeables are released once."""
        client = AsyncMock()
        pool = Mock(spec=["close"])
        service = make_service([link_adapter()], closeables=[client, pool])

        async with service:
            pass
        await service.aclose()

        client.aclose.assert_awaited_once()
        pool.close.assert_called_once()

    def test_invalid_timeout(self):
        """Test the lookup budget must be positive."""
        with pytest.raises(ValueError):
            make_service([link_adapter()], lookup_timeout=0)


# ============================================================================
# Service wiring
# ============================================================================


class TestBuildLookupService:
    """End-to-end lookups through real clients over canned HTTP."""

    @pytest.fixture
    def transport(self):
        def fixture(name, content_type):
            return httpx.Response(
                200,
                headers={"Content-Type": content_type},
                content=(FIXTURES / name).read_bytes(),
            )

        return RouteTransport(
            {
                "https://api.github.com/repos/octo/cat": fixture(
                    "github_repository.json", "application/json"
                ),
                "https://github.com/octo/cat": fixture("repository_page.html", "text/html"),
                "https://octo.dev/": fixture("homepage.html", "text/html"),
                "https://octo.dev/site.webmanifest": fixture(
                    "site.webmanifest", "application/manifest+json"
                ),
                "https://octo.dev/favicon.ico": httpx.Response(
                    200, headers={"Content-Type": "image/x-icon"}, content=ico_bytes(48)
                ),
                "https://octo.dev/assets/logo.svg": httpx.Response(
                    200,
                    headers={"Content-Type": "image/svg+xml"},
                    content=svg_bytes('viewBox="0 0 24 24"'),
                ),
                "https://avatars.githubusercontent.com/u/583231?v=4": httpx.Response(
                    200, headers={"Content-Type": "image/png"}, content=png_bytes(460, 460)
                ),
            }
        )

    @pytest.mark.asyncio
    async def test_end_to_end_lookup(self, transport):
        """Test a GitHub repository resolves through every source."""
        async with build_lookup_service(AppConfig(), EnvironmentConfig(), transport=transport) as service:
            result = await service.lookup("octo/cat")

        best = result.best()
        assert best.url == "https://octo.dev/assets/logo.svg"
        assert best.source is IconSource.SITE_MANIFEST
        assert (best.format, best.width, best.height) == (IconFormat.SVG, 24, 24)

        records = {c.url: c for c in result}
        assert len(records) == len(result)
        assert records["https://octo.dev/favicon.ico"].source is IconSource.SITE_LINK_TAG
        assert records["https://octo.dev/favicon.ico"].width == 48
        assert records["https://avatars.githubusercontent.com/u/583231?v=4"].format is IconFormat.PNG
        assert (
            records["https://repository-images.githubusercontent.com/1296269/preview-card"].source
            is IconSource.GITHUB_SOCIAL_PREVIEW
        )

        # One metadata call and one homepage download shared by all sources
        assert transport.urls().count("https://api.github.com/repos/octo/cat") == 1
        assert transport.urls().count("https://octo.dev/") == 1

    @pytest.mark.asyncio
    async def test_disabled_sources_are_not_queried(self, transport):
        """Test only enabled sources run."""
        config = AppConfig.model_validate(
            {
                "sources": {
                    "site_manifest": False,
                    "site_link_tag": False,
                    "site_default_favicon": False,
                    "github_social_preview": False,
                    "github_readme": False,
                },
                "probing": {"enabled": False},
            }
        )

        async with build_lookup_service(config, transport=transport) as service:
            result = await service.lookup("octo/cat")

        assert [c.source for c in result] == [IconSource.GITHUB_AVATAR]
        assert transport.urls() == ["https://api.github.com/repos/octo/cat"]
