"""Context propagation for structured logging.

Fields pushed here are injected into every log record emitted inside the
scope. The context lives in a ``ContextVar``, so it follows a lookup
through every asyncio task spawned for it (tasks copy the context at
creation time) without leaking into concurrent lookups.

Fields used across the project:
- ``lookup_id``: short id of one pipeline run
- ``repository``: cache key of the repository being looked up
- ``source``: icon source an adapter branch is working for
"""

import uuid
from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("repo_icons_log_context", default={})


def new_lookup_id() -> str:
    """Short random id correlating all records of one lookup."""
    return uuid.uuid4().hex[:12]


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the fields active in the current context."""
    return LogContextVar.get().copy()


def push_log_context(**kwargs) -> Token:
    """Merge fields into the current context.

    Returns:
        Token for pop_log_context()

    Example:
        >>> token = push_log_context(lookup_id="3f2a9c", repository="github:octo/cat")
        >>> pop_log_context(token)
    """
    current = LogContextVar.get()
    return LogContextVar.set({**current, **kwargs})


def pop_log_context(token: Token) -> None:
    """Restore the context saved by push_log_context()."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop every context field (tests use this between cases)."""
    LogContextVar.set({})


class log_context:
    """Context manager scoping fields onto log records.

    Example:
        >>> with log_context(lookup_id=new_lookup_id(), repository="github:octo/cat"):
        ...     logger.info("Resolving", extra={"event": "pipeline.resolve.started"})
    """

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.kwargs)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
            self.token = None
        return False
