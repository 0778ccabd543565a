"""Tests for image header decoding."""

import pytest

from repo_icons.domain.models import IconFormat
from repo_icons.probing.decoder import ImageInfo, decode_image_header
from tests.helpers import ico_bytes, image_bytes, oversized_png_bytes, png_bytes, svg_bytes


# ============================================================================
# Raster formats
# ============================================================================


@pytest.mark.parametrize(
    "pil_format,expected",
    [
        ("PNG", IconFormat.PNG),
        ("JPEG", IconFormat.JPEG),
        ("WEBP", IconFormat.WEBP),
    ],
)
def test_decodes_raster_formats(pil_format, expected):
    """Test format and size come from the image header."""
    info = decode_image_header(image_bytes(pil_format, (64, 40)))
    assert info == ImageInfo(format=expected, width=64, height=40)


def test_decodes_ico():
    """Test ICO files report their largest entry."""
    assert decode_image_header(ico_bytes(48)) == ImageInfo(IconFormat.ICO, 48, 48)


def test_decodes_truncated_png_header():
    """Test a ranged prefix is enough to read PNG dimensions."""
    data = png_bytes(180, 180)
    assert decode_image_header(data[:64]) == ImageInfo(IconFormat.PNG, 180, 180)


@pytest.mark.parametrize("data", [b"", b"not an image at all"])
def test_unrecognized_bytes(data):
    """Test non-image payloads decode to None."""
    assert decode_image_header(data) is None


def test_oversized_canvas_is_undecodable():
    """Test a header past Pillow's pixel limit decodes to None instead of raising."""
    assert decode_image_header(oversized_png_bytes()) is None


# ============================================================================
# SVG
# ============================================================================


def test_svg_with_width_and_height():
    """Test absolute width/height attributes are used."""
    assert decode_image_header(svg_bytes('width="32" height="32"')) == ImageInfo(
        IconFormat.SVG, 32, 32
    )


def test_svg_with_px_units():
    """Test px lengths are accepted and rounded."""
    assert decode_image_header(svg_bytes('width="31.6px" height="64px"')) == ImageInfo(
        IconFormat.SVG, 32, 64
    )


def test_svg_falls_back_to_view_box():
    """Test viewBox gives dimensions when width/height are relative."""
    info = decode_image_header(svg_bytes('width="100%" height="100%" viewBox="0 0 24 24"'))
    assert info == ImageInfo(IconFormat.SVG, 24, 24)


def test_svg_without_size():
    """Test an SVG with no usable size is still recognized as SVG."""
    assert decode_image_header(svg_bytes('width="1em" height="1em"')) == ImageInfo(IconFormat.SVG)


def test_svg_without_prolog():
    """Test a bare <svg> root with leading whitespace."""
    data = b'\n  <svg viewBox="0,0,16,16" xmlns="http://www.w3.org/2000/svg"></svg>'
    assert decode_image_header(data) == ImageInfo(IconFormat.SVG, 16, 16)


def test_gzipped_svg():
    """Test svgz payloads are decompressed before sniffing."""
    info = decode_image_header(svg_bytes('viewBox="0 0 48 48"', compressed=True))
    assert info == ImageInfo(IconFormat.SVG, 48, 48)


def test_html_is_not_svg():
    """Test an HTML error page is not mistaken for an image."""
    assert decode_image_header(b"<!doctype html><html><body>404</body></html>") is None
