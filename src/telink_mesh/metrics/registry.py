"""Prometheus metrics registry for the Telink mesh protocol engine."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Histogram,
    start_http_server,
)

# Metric definitions
telink_frames_built_total: Final = Counter(  # type: ignore[assignment]
    "telink_frames_built_total",
    "Total command frames built and encrypted",
    ["command"],
)

telink_frames_received_total: Final = Counter(  # type: ignore[assignment]
    "telink_frames_received_total",
    "Total inbound notification frames processed",
    ["outcome"],
)

telink_reports_total: Final = Counter(  # type: ignore[assignment]
    "telink_reports_total",
    "Total decoded reports by kind",
    ["kind"],
)

telink_session_establish_total: Final = Counter(  # type: ignore[assignment]
    "telink_session_establish_total",
    "Total session key derivations",
    ["outcome"],
)

telink_state_lock_hold_seconds: Final = Histogram(  # type: ignore[assignment]
    "telink_state_lock_hold_seconds",
    "Session state lock hold duration in seconds",
    buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1),
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int | None = None) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    from telink_mesh.const import TELINK_METRICS_PORT

    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port or TELINK_METRICS_PORT)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_frame_built(command: int) -> None:
    """Record an outbound frame."""
    telink_frames_built_total.labels(command=f"0x{command:02x}").inc()  # type: ignore[no-untyped-call]


def record_frame_received(outcome: str) -> None:
    """Record an inbound frame ("report", "unrecognized" or "error")."""
    telink_frames_received_total.labels(outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_report(kind: str) -> None:
    """Record a decoded report."""
    telink_reports_total.labels(kind=kind).inc()  # type: ignore[no-untyped-call]


def record_session_establish(outcome: str) -> None:
    """Record a session key derivation attempt."""
    telink_session_establish_total.labels(outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_state_lock_hold(hold_seconds: float) -> None:
    """Record session state lock hold duration."""
    telink_state_lock_hold_seconds.observe(hold_seconds)  # type: ignore[no-untyped-call]
