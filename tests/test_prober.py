"""Tests for the candidate prober."""

import asyncio
import base64

import httpx
import pytest
import pytest_asyncio

from repo_icons.clients.http import HttpClient
from repo_icons.domain.models import IconCandidate, IconFormat, IconSource
from repo_icons.probing.prober import Prober
from tests.helpers import RouteTransport, image, oversized_png_bytes, png_bytes, svg_bytes


def candidate(url, format=None, width=None, height=None):
    return IconCandidate(
        url=url, source=IconSource.SITE_LINK_TAG, format=format, width=width, height=height
    )


@pytest_asyncio.fixture
async def make_prober():
    """Build probers over canned routes and release them afterwards."""
    created = []

    def factory(routes, **kwargs):
        transport = RouteTransport(routes)
        http = HttpClient(timeout=5.0, transport=transport)
        prober = Prober(http, **kwargs)
        created.append((http, prober))
        return prober, transport

    yield factory

    for http, prober in created:
        prober.close()
        await http.aclose()


# ============================================================================
# Single probes
# ============================================================================


@pytest.mark.asyncio
async def test_probe_fills_format_and_dimensions(make_prober):
    """Test a PNG without declared metadata gets format and size."""
    prober, _ = make_prober({"https://example.org/icon": image(png_bytes(64, 64))})

    probed = await prober.probe(candidate("https://example.org/icon"))

    assert probed.format is IconFormat.PNG
    assert (probed.width, probed.height) == (64, 64)


@pytest.mark.asyncio
async def test_probe_requests_only_a_prefix(make_prober):
    """Test probes send a Range header bounded by max_bytes."""
    prober, transport = make_prober(
        {"https://example.org/icon.png": image(png_bytes())}, max_bytes=1024
    )

    await prober.probe(candidate("https://example.org/icon.png"))

    assert transport.requests[0].headers["Range"] == "bytes=0-1023"


@pytest.mark.asyncio
async def test_resolved_candidate_is_not_fetched(make_prober):
    """Test fully known candidates skip the network."""
    prober, transport = make_prober({})
    known = candidate("https://example.org/icon.png", IconFormat.PNG, 32, 32)

    assert await prober.probe(known) is known
    assert transport.requests == []


@pytest.mark.asyncio
async def test_probe_never_overwrites_declared_format(make_prober):
    """Test declared metadata wins over what the bytes say."""
    prober, _ = make_prober({"https://example.org/favicon.ico": image(png_bytes(16, 16))})

    probed = await prober.probe(candidate("https://example.org/favicon.ico", IconFormat.ICO))

    assert probed.format is IconFormat.ICO
    assert (probed.width, probed.height) == (16, 16)


@pytest.mark.asyncio
async def test_svg_probe(make_prober):
    """Test SVG dimensions come from the root element."""
    prober, _ = make_prober(
        {"https://example.org/logo": image(svg_bytes('viewBox="0 0 24 24"'), "image/svg+xml")}
    )

    probed = await prober.probe(candidate("https://example.org/logo"))

    assert (probed.format, probed.width, probed.height) == (IconFormat.SVG, 24, 24)


@pytest.mark.asyncio
async def test_data_url_is_decoded_locally(make_prober):
    """Test inline icons are probed without any request."""
    prober, transport = make_prober({})
    url = "data:image/png;base64," + base64.b64encode(png_bytes(20, 10)).decode()

    probed = await prober.probe(candidate(url))

    assert (probed.format, probed.width, probed.height) == (IconFormat.PNG, 20, 10)
    assert transport.requests == []


# ============================================================================
# Failures leave candidates unchanged
# ============================================================================


@pytest.mark.asyncio
async def test_http_error_leaves_candidate_unchanged(make_prober):
    """Test a 404 is absorbed."""
    prober, _ = make_prober({})
    original = candidate("https://example.org/missing.png")

    assert await prober.probe(original) is original


@pytest.mark.asyncio
async def test_undecodable_bytes_use_content_type(make_prober):
    """Test the Content-Type still yields a format when decoding fails."""
    prober, _ = make_prober({"https://example.org/i": image(b"garbage", "image/png")})

    probed = await prober.probe(candidate("https://example.org/i"))

    assert probed.format is IconFormat.PNG
    assert not probed.has_dimensions


@pytest.mark.asyncio
async def test_undecodable_non_image_is_unchanged(make_prober):
    """Test an HTML answer without image data changes nothing."""
    prober, _ = make_prober(
        {"https://example.org/i": image(b"<html>nope</html>", "text/html")}
    )
    original = candidate("https://example.org/i")

    assert await prober.probe(original) is original


@pytest.mark.asyncio
async def test_oversized_image_leaves_candidate_unchanged(make_prober):
    """Test a header claiming a huge canvas is skipped while siblings resolve."""
    prober, _ = make_prober(
        {
            "https://example.org/huge": image(oversized_png_bytes(), "application/octet-stream"),
            "https://example.org/small": image(png_bytes(16, 16)),
        }
    )
    huge = candidate("https://example.org/huge")

    probed = await prober.probe_all([huge, candidate("https://example.org/small")])

    assert probed[0] is huge
    assert (probed[1].format, probed[1].width, probed[1].height) == (IconFormat.PNG, 16, 16)


@pytest.mark.asyncio
async def test_oversized_data_url_keeps_declared_format(make_prober):
    """Test an inline image past the pixel limit falls back to its MIME type."""
    prober, transport = make_prober({})
    payload = base64.b64encode(oversized_png_bytes()).decode()

    probed = await prober.probe(candidate(f"data:image/png;base64,{payload}"))

    assert probed.format is IconFormat.PNG
    assert probed.width is None
    assert transport.requests == []


@pytest.mark.asyncio
async def test_unexpected_error_leaves_candidate_unchanged(make_prober):
    """Test an error outside the fetch hierarchy does not abort sibling probes."""

    def broken(request):
        raise RuntimeError("transport bug")

    prober, _ = make_prober(
        {
            "https://example.org/broken.png": broken,
            "https://example.org/fine.svg": image(svg_bytes(), "image/svg+xml"),
        }
    )
    original = candidate("https://example.org/broken.png")

    probed = await prober.probe_all([original, candidate("https://example.org/fine.svg")])

    assert probed[0] is original
    assert (probed[1].format, probed[1].width, probed[1].height) == (IconFormat.SVG, 32, 32)


@pytest.mark.asyncio
async def test_probe_timeout_leaves_candidate_unchanged(make_prober):
    """Test a slow server is abandoned after the probe budget."""

    async def slow(request):
        await asyncio.sleep(2)
        return image(png_bytes())

    prober, _ = make_prober({"https://example.org/slow.png": slow}, timeout=0.05)
    original = candidate("https://example.org/slow.png")

    assert await prober.probe(original) is original


# ============================================================================
# Batches
# ============================================================================


@pytest.mark.asyncio
async def test_probe_all_bounds_concurrency(make_prober):
    """Test no more than `concurrency` probes run at once."""
    active = 0
    peak = 0

    async def handler(request):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.02)
        active -= 1
        return image(png_bytes())

    urls = [f"https://example.org/{i}.png" for i in range(6)]
    prober, _ = make_prober({url: handler for url in urls}, concurrency=2)

    probed = await prober.probe_all([candidate(url) for url in urls])

    assert 1 <= peak <= 2
    assert all(c.has_dimensions for c in probed)


@pytest.mark.asyncio
async def test_probe_all_preserves_order(make_prober):
    """Test results line up with the input even when finishing out of order."""

    def delayed(size, delay):
        async def handler(request):
            await asyncio.sleep(delay)
            return image(png_bytes(size, size))

        return handler

    prober, _ = make_prober(
        {
            "https://example.org/a.png": delayed(16, 0.05),
            "https://example.org/b.png": delayed(32, 0.0),
            "https://example.org/c.png": delayed(48, 0.02),
        }
    )

    probed = await prober.probe_all(
        [candidate(f"https://example.org/{n}.png") for n in "abc"]
    )

    assert [c.width for c in probed] == [16, 32, 48]
    assert await prober.probe_all([]) == []


@pytest.mark.parametrize(
    "kwargs",
    [{"concurrency": 0}, {"timeout": 0}, {"max_bytes": 0}],
)
def test_invalid_settings(kwargs):
    """Test constructor validation."""
    http = HttpClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
    with pytest.raises(ValueError):
        Prober(http, **kwargs)
