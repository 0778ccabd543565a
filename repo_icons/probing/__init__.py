"""Probing of icon candidates for missing format and size metadata."""

from .decoder import ImageInfo, decode_image_header
from .exceptions import ProbeError
from .prober import Prober

__all__ = ["ImageInfo", "Prober", "ProbeError", "decode_image_header"]
