"""
Correlation tags for the pairing, outbound and inbound frame paths.

The protocol carries no request/response id, so a query and the report it
provokes are unrelated call chains. Each chain gets its own short id and a
direction tag through contextvars, which follow asyncio tasks and radio
callbacks alike. Log formatters read both.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from enum import StrEnum

__all__ = [
    "FrameDirection",
    "correlation_context",
    "get_correlation_id",
    "get_frame_direction",
    "new_correlation_id",
]


class FrameDirection(StrEnum):
    """Which frame path a log line belongs to."""

    PAIRING = "pair"
    OUTBOUND = "out"
    INBOUND = "in"


_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("correlation_id", default=None)
_frame_direction: contextvars.ContextVar[FrameDirection | None] = contextvars.ContextVar(
    "frame_direction",
    default=None,
)


def new_correlation_id() -> str:
    """Return a fresh id (UUID4 hex without dashes)."""
    return uuid.uuid4().hex


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def get_frame_direction() -> FrameDirection | None:
    return _frame_direction.get()


@contextmanager
def correlation_context(
    direction: FrameDirection,
    correlation_id: str | None = None,
) -> Generator[str]:
    """
    Tag everything logged inside the block with one id and a direction.

    Both values are restored on exit, including when the block raises.

    Example:
        with correlation_context(FrameDirection.INBOUND) as corr_id:
            dispatcher.on_inbound(data)
    """
    correlation_id = correlation_id or new_correlation_id()
    id_token = _correlation_id.set(correlation_id)
    direction_token = _frame_direction.set(direction)
    try:
        yield correlation_id
    finally:
        _frame_direction.reset(direction_token)
        _correlation_id.reset(id_token)
