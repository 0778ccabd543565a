"""Image header decoding.

Reads format and pixel dimensions from the first bytes of an image:
SVG (plain or gzip-compressed) is sniffed and its root element parsed;
raster formats are identified by Pillow, which only needs the header to
report the size.
"""

import io
import re
import zlib
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from repo_icons.domain.models import IconFormat

PIL_FORMATS = {
    "PNG": IconFormat.PNG,
    "JPEG": IconFormat.JPEG,
    "MPO": IconFormat.JPEG,
    "ICO": IconFormat.ICO,
    "WEBP": IconFormat.WEBP,
}

_SVG_ROOT = re.compile(rb"<svg\b[^>]*>", re.IGNORECASE | re.DOTALL)
_SVG_LENGTH = re.compile(r"^\s*([0-9]*\.?[0-9]+)\s*(px)?\s*$", re.IGNORECASE)
_GZIP_MAGIC = b"\x1f\x8b"


@dataclass(frozen=True)
class ImageInfo:
    """Decoded header facts; dimensions may be missing for scalable images."""

    format: IconFormat
    width: Optional[int] = None
    height: Optional[int] = None


def decode_image_header(data: bytes) -> Optional[ImageInfo]:
    """Identify an image from its leading bytes.

    Returns:
        ImageInfo, or None when the bytes are not a recognizable image
    """
    if not data:
        return None

    if data[:2] == _GZIP_MAGIC:
        text = _gunzip_prefix(data)
        if text is not None and _looks_like_svg(text):
            return _decode_svg(text)
        return None

    if _looks_like_svg(data):
        return _decode_svg(data)

    return _decode_raster(data)


def _gunzip_prefix(data: bytes) -> Optional[bytes]:
    # decompressobj tolerates truncated streams, which ranged fetches produce
    try:
        return zlib.decompressobj(16 + zlib.MAX_WBITS).decompress(data, 65536)
    except zlib.error:
        return None


def _looks_like_svg(data: bytes) -> bool:
    head = data[:4096].lstrip(b"\xef\xbb\xbf \t\r\n").lower()
    if head.startswith(b"<svg"):
        return True
    return head.startswith((b"<?xml", b"<!--", b"<!doctype svg")) and b"<svg" in head


def _decode_svg(data: bytes) -> ImageInfo:
    root = _SVG_ROOT.search(data)
    if root is None:
        return ImageInfo(format=IconFormat.SVG)

    tag = root.group(0).decode("utf-8", errors="replace")
    width = _svg_length(_svg_attribute(tag, "width"))
    height = _svg_length(_svg_attribute(tag, "height"))
    if width and height:
        return ImageInfo(format=IconFormat.SVG, width=width, height=height)

    view_box = _svg_view_box(_svg_attribute(tag, "viewBox"))
    if view_box:
        return ImageInfo(format=IconFormat.SVG, width=view_box[0], height=view_box[1])

    return ImageInfo(format=IconFormat.SVG)


def _svg_attribute(tag: str, name: str) -> Optional[str]:
    match = re.search(r"\s" + name + r"\s*=\s*([\"'])(.*?)\1", tag, re.IGNORECASE | re.DOTALL)
    return match.group(2) if match else None


def _svg_length(value: Optional[str]) -> Optional[int]:
    """Absolute pixel length; percentages and other units count as unknown."""
    if not value:
        return None
    match = _SVG_LENGTH.match(value)
    if not match:
        return None
    length = round(float(match.group(1)))
    return length if length > 0 else None


def _svg_view_box(value: Optional[str]) -> Optional[Tuple[int, int]]:
    if not value:
        return None
    parts = value.replace(",", " ").split()
    if len(parts) != 4:
        return None
    try:
        width, height = round(float(parts[2])), round(float(parts[3]))
    except ValueError:
        return None
    if width <= 0 or height <= 0:
        return None
    return width, height


def _decode_raster(data: bytes) -> Optional[ImageInfo]:
    try:
        with Image.open(io.BytesIO(data)) as image:
            width, height = image.size
            image_format = PIL_FORMATS.get(image.format or "", IconFormat.UNKNOWN)
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
        EOFError,
    ):
        return None

    if width <= 0 or height <= 0:
        return ImageInfo(format=image_format)
    return ImageInfo(format=image_format, width=width, height=height)
