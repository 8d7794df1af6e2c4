"""Metrics module."""

from . import registry
from .registry import (
    record_frame_built,
    record_frame_received,
    record_report,
    record_session_establish,
    record_state_lock_hold,
    start_metrics_server,
)

__all__ = [
    "record_frame_built",
    "record_frame_received",
    "record_report",
    "record_session_establish",
    "record_state_lock_hold",
    "registry",
    "start_metrics_server",
]
