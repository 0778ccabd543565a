"""Test helpers."""

from .fixture_adapter import FixtureAdapter, load_fixture_candidates, raw
from .http import RouteTransport, html_page, image
from .images import ico_bytes, image_bytes, oversized_png_bytes, png_bytes, svg_bytes

__all__ = [
    "FixtureAdapter",
    "RouteTransport",
    "html_page",
    "ico_bytes",
    "image",
    "image_bytes",
    "load_fixture_candidates",
    "oversized_png_bytes",
    "png_bytes",
    "raw",
    "svg_bytes",
]
