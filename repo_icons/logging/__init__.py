"""Structured logging for repo-icons.

Every module logs through ``get_logger(__name__, component=...)`` and
passes an ``event`` name in ``extra``::

    logger = get_logger(__name__, component="pipeline")
    logger.info("Resolution finished", extra={"event": "pipeline.resolve.completed"})

Components: ``adapter``, ``prober``, ``pipeline``, ``cache``, ``lookup``,
``cli``, ``http``, ``github``, ``site``, ``singleflight``.
"""

import logging
from typing import Optional, Union

from .config import configure_logging
from .context import log_context, new_lookup_id


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter adding a ``component`` field to every record.

    The adapter's fields are merged with the call's ``extra``; the call's
    values win.
    """

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Get a logger, optionally tagging all its records with ``component``.

    Args:
        name: Logger name (typically __name__)
        component: Component identifier injected into every record

    Returns:
        Logger or ComponentLoggerAdapter instance
    """
    logger = logging.getLogger(name)

    if component:
        return ComponentLoggerAdapter(logger, {"component": component})

    return logger


__all__ = [
    "ComponentLoggerAdapter",
    "configure_logging",
    "get_logger",
    "log_context",
    "new_lookup_id",
]
