"""Logging layer for telink_mesh.

Every module logs through a MeshLogger: human-readable lines, JSON lines, or
both, each tagged with the current correlation id and frame direction
(pairing, outbound, inbound).

Session keys are 16-byte buffers. KeyMaterialFilter sits on every MeshLogger
and replaces any 16-byte bytes-like value passed as a log argument or in
``extra`` before a handler sees it; other bytes-like values are logged as hex.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import cast, override

from telink_mesh.const import KEY_LENGTH
from telink_mesh.correlation import get_correlation_id, get_frame_direction

__all__ = [
    "REDACTED",
    "HumanReadableFormatter",
    "JSONFormatter",
    "KeyMaterialFilter",
    "MeshLogger",
    "get_logger",
]

REDACTED = "<redacted>"

_BytesLike = bytes | bytearray | memoryview


def _is_key_sized(value: object) -> bool:
    return isinstance(value, _BytesLike) and len(value) == KEY_LENGTH


def _scrub(value: object) -> object:
    if _is_key_sized(value):
        return REDACTED
    if isinstance(value, _BytesLike):
        return bytes(value).hex()
    return value


class KeyMaterialFilter(logging.Filter):
    """Redacts key-sized byte buffers from log arguments and structured context.

    Records are always passed on; only their values are rewritten.
    """

    @override
    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, tuple):
            record.args = tuple(REDACTED if _is_key_sized(arg) else arg for arg in record.args)

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, Mapping):
            context_map = cast("Mapping[str, object]", extra_data)
            record.extra_data = {k: _scrub(v) for k, v in context_map.items()}
        return True


def _tag() -> tuple[str | None, str | None]:
    direction = get_frame_direction()
    return get_correlation_id(), direction.value if direction else None


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        correlation_id, direction = _tag()
        log_data: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "correlation_id": correlation_id,
            "direction": direction,
        }

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, Mapping) and extra_data:
            log_data["context"] = dict(cast("Mapping[str, object]", extra_data))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """``time LEVEL [module:line] [corr8 dir] > message | k=v``"""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] %(frame_tag)s > %(message)s",
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        correlation_id, direction = _tag()
        record.frame_tag = f"[{(correlation_id or '-' * 8)[:8]} {direction or '--'}]"

        formatted = super().format(record)

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, Mapping) and extra_data:
            context_map = cast("Mapping[str, object]", extra_data)
            formatted += " | " + " | ".join(f"{k}={v}" for k, v in context_map.items())
        return formatted


def _human_handler(output: str) -> logging.Handler:
    if output == "stdout":
        return logging.StreamHandler(sys.stdout)
    if output == "stderr":
        return logging.StreamHandler(sys.stderr)
    try:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path, mode="a")
    except OSError as e:
        print(f"Warning: Failed to create human log file {output}: {e}", file=sys.stderr)
        return logging.StreamHandler(sys.stderr)


def _json_handler(json_file: str | Path) -> logging.Handler | None:
    try:
        path = Path(json_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(path, mode="a")
    except OSError as e:
        print(f"Warning: Failed to create JSON log file {json_file}: {e}", file=sys.stderr)
        return None


class MeshLogger:
    """Wraps a stdlib logger with dual-format output and key redaction.

    Structured context passed through ``extra`` ends up in the JSON
    ``context`` object or appended to the human-readable line.
    """

    def __init__(
        self,
        name: str,
        log_format: str = "human",
        json_file: str | Path | None = None,
        human_output: str | None = "stderr",
    ) -> None:
        """Initialize MeshLogger.

        Args:
            name: Logger name (typically module name)
            log_format: Output format - "json", "human", or "both"
            json_file: Path for JSON output file (None to disable file output)
            human_output: "stdout", "stderr", or file path for human-readable output

        """
        from telink_mesh.const import TELINK_DEBUG

        self.logger: logging.Logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if TELINK_DEBUG else logging.INFO)

        # Logger-level, so records propagated to foreign handlers are scrubbed too
        if not any(isinstance(f, KeyMaterialFilter) for f in self.logger.filters):
            self.logger.addFilter(KeyMaterialFilter())

        # Don't add handlers if already configured (avoid duplicates)
        if self.logger.handlers:
            return

        if log_format in ("json", "both") and json_file:
            handler = _json_handler(json_file)
            if handler is not None:
                handler.setFormatter(JSONFormatter())
                self.logger.addHandler(handler)

        if log_format in ("human", "both"):
            handler = _human_handler(human_output or "stderr")
            handler.setFormatter(HumanReadableFormatter())
            self.logger.addHandler(handler)

    def _log(
        self,
        level: int,
        msg: str,
        *args: object,
        extra: Mapping[str, object] | None = None,
        exc_info: bool = False,
    ) -> None:
        extra_payload = {"extra_data": dict(extra)} if extra else None
        self.logger.log(level, msg, *args, extra=extra_payload, exc_info=exc_info, stacklevel=3)

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.INFO, msg, *args, extra=extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        self._log(logging.WARNING, msg, *args, extra=extra)

    def exception(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log at ERROR with the active exception's traceback."""
        self._log(logging.ERROR, msg, *args, extra=extra, exc_info=True)


def get_logger(
    name: str,
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
) -> MeshLogger:
    """Get or create a MeshLogger instance.

    Unset arguments fall back to the TELINK_LOG_* environment settings.
    """
    from telink_mesh.const import (
        TELINK_LOG_FORMAT,
        TELINK_LOG_HUMAN_OUTPUT,
        TELINK_LOG_JSON_FILE,
    )

    return MeshLogger(
        name=name,
        log_format=log_format or TELINK_LOG_FORMAT,
        json_file=json_file or TELINK_LOG_JSON_FILE,
        human_output=human_output or TELINK_LOG_HUMAN_OUTPUT,
    )
