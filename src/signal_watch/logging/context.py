"""Per-router log context."""

from __future__ import annotations

import contextlib
from collections.abc import Iterator

import structlog


@contextlib.contextmanager
def router_context(address: str, **extra: object) -> Iterator[None]:
    """Tag log records emitted inside the block with the router address.

    Tasks created inside the block keep the tag for their whole lifetime,
    since asyncio copies the context at task creation.
    """
    tokens = structlog.contextvars.bind_contextvars(router=address, **extra)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
