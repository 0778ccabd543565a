"""Tests for candidate scoring and ranking."""

import random

from repo_icons.domain.models import IconCandidate, IconFormat, IconSource
from repo_icons.pipeline.scoring import UNKNOWN_AREA, rank, score, sort_key


def candidate(url, format=None, size=None, source=IconSource.SITE_LINK_TAG):
    width, height = size if size else (None, None)
    return IconCandidate(url=url, source=source, format=format, width=width, height=height)


def test_format_outranks_area():
    """Test an SVG 32x32 beats a PNG 256x256, which beats a PNG 16x16."""
    png_small = candidate("https://example.org/16.png", IconFormat.PNG, (16, 16))
    png_large = candidate("https://example.org/256.png", IconFormat.PNG, (256, 256))
    svg = candidate("https://example.org/logo.svg", IconFormat.SVG, (32, 32))

    ranked = rank([png_small, png_large, svg])

    assert [c.url for c in ranked] == [
        "https://example.org/logo.svg",
        "https://example.org/256.png",
        "https://example.org/16.png",
    ]


def test_unknown_area_ranks_below_any_known_area():
    """Test unsized candidates lose against sized ones of the same format."""
    unsized = candidate("https://example.org/a.png", IconFormat.PNG)
    tiny = candidate("https://example.org/b.png", IconFormat.PNG, (1, 1))

    assert score(unsized).area == UNKNOWN_AREA
    assert rank([unsized, tiny])[0] is tiny


def test_unknown_format_ranks_last():
    """Test a candidate without format scores as unknown, below JPEG."""
    unknown = candidate("https://example.org/a", size=(512, 512))
    jpeg = candidate("https://example.org/b.jpg", IconFormat.JPEG, (16, 16))

    assert score(unknown).format_tier == IconFormat.UNKNOWN.tier
    assert rank([unknown, jpeg]) == [jpeg, unknown]


def test_source_priority_breaks_ties():
    """Test equal format and area fall back to source priority."""
    avatar = candidate(
        "https://a.example.org/x.png", IconFormat.PNG, (64, 64), IconSource.GITHUB_AVATAR
    )
    manifest = candidate(
        "https://z.example.org/x.png", IconFormat.PNG, (64, 64), IconSource.SITE_MANIFEST
    )

    assert rank([avatar, manifest]) == [manifest, avatar]


def test_url_is_final_tie_break():
    """Test identical scores are ordered by URL."""
    first = candidate("https://example.org/a.png", IconFormat.PNG, (32, 32))
    second = candidate("https://example.org/b.png", IconFormat.PNG, (32, 32))

    assert rank([second, first]) == [first, second]
    assert sort_key(first) < sort_key(second)


def test_ranking_is_independent_of_input_order():
    """Test rank() is a total order over distinct URLs."""
    candidates = [
        candidate("https://example.org/a.svg", IconFormat.SVG),
        candidate("https://example.org/b.png", IconFormat.PNG, (180, 180)),
        candidate("https://example.org/c.png", IconFormat.PNG, (180, 180), IconSource.SITE_MANIFEST),
        candidate("https://example.org/favicon.ico", IconFormat.ICO, (32, 32)),
        candidate("https://example.org/d"),
        candidate("https://example.org/e.webp", IconFormat.WEBP, (96, 96)),
    ]
    expected = rank(candidates)

    rng = random.Random(7)
    for _ in range(20):
        shuffled = list(candidates)
        rng.shuffle(shuffled)
        assert rank(shuffled) == expected
