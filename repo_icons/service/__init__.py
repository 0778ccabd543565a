"""Public query façade: repository reference in, ranked icons out."""

from .factory import build_lookup_service
from .lookup import IconLookupService, parse_repository_reference

__all__ = ["IconLookupService", "build_lookup_service", "parse_repository_reference"]
