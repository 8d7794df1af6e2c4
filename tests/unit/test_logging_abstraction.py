"""Unit tests for the dual-format logging layer and key redaction."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest

from telink_mesh.correlation import FrameDirection, correlation_context
from telink_mesh.logging_abstraction import (
    REDACTED,
    HumanReadableFormatter,
    JSONFormatter,
    KeyMaterialFilter,
    MeshLogger,
    get_logger,
)

SESSION_KEY = bytes(range(16))
FRAME = bytes(20)


def _record(
    message: str = "frame built",
    args: tuple[object, ...] = (),
    extra_data: dict[str, object] | None = None,
) -> logging.LogRecord:
    record = logging.LogRecord(
        name="telink_mesh.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=args,
        exc_info=None,
    )
    if extra_data is not None:
        record.extra_data = extra_data
    return record


class TestJSONFormatter:
    def test_structured_output(self):
        """Context, correlation ID and direction end up as JSON fields."""
        with correlation_context(FrameDirection.OUTBOUND, "corr-1234"):
            output = json.loads(JSONFormatter().format(_record(extra_data={"sequence": 5})))

        assert output["message"] == "frame built"
        assert output["level"] == "INFO"
        assert output["logger"] == "telink_mesh.test"
        assert output["correlation_id"] == "corr-1234"
        assert output["direction"] == "out"
        assert output["context"] == {"sequence": 5}

    def test_no_context(self):
        output = json.loads(JSONFormatter().format(_record()))
        assert "context" not in output
        assert output["correlation_id"] is None
        assert output["direction"] is None


class TestHumanReadableFormatter:
    def test_tag_and_context(self):
        with correlation_context(FrameDirection.INBOUND, "0123456789abcdef"):
            line = HumanReadableFormatter().format(_record(extra_data={"bytes": 20}))

        assert "[01234567 in]" in line
        assert line.endswith("frame built | bytes=20")

    def test_placeholder_outside_frame_paths(self):
        assert "[-------- --]" in HumanReadableFormatter().format(_record())


class TestKeyMaterialFilter:
    """A 16-byte buffer never reaches a handler."""

    @pytest.mark.parametrize("key", [SESSION_KEY, bytearray(SESSION_KEY), memoryview(SESSION_KEY)])
    def test_key_in_extra_is_redacted(self, key):
        record = _record(extra_data={"key": key, "sequence": 3})

        assert KeyMaterialFilter().filter(record) is True
        assert record.extra_data == {"key": REDACTED, "sequence": 3}

    def test_key_in_args_is_redacted(self):
        record = _record("derived %s for %s", args=(SESSION_KEY, "AA:BB"))

        KeyMaterialFilter().filter(record)

        assert record.getMessage() == f"derived {REDACTED} for AA:BB"

    def test_other_buffers_are_hex_in_extra(self):
        record = _record(extra_data={"frame": FRAME})

        KeyMaterialFilter().filter(record)

        assert record.extra_data == {"frame": FRAME.hex()}

    def test_other_buffers_untouched_in_args(self):
        record = _record("frame %r", args=(FRAME,))

        KeyMaterialFilter().filter(record)

        assert record.args == (FRAME,)

    def test_logger_output_never_contains_key(self, tmp_path: Path):
        json_file = tmp_path / "telink.json"
        logger = MeshLogger("telink_mesh.test.redact", log_format="json", json_file=json_file, human_output=None)

        logger.warning("key %s", SESSION_KEY, extra={"session_key": bytearray(SESSION_KEY)})
        for handler in logger.logger.handlers:
            handler.flush()

        text = json_file.read_text()
        assert SESSION_KEY.hex() not in text
        assert repr(SESSION_KEY) not in text
        entry = json.loads(text.splitlines()[-1])
        assert entry["message"] == f"key {REDACTED}"
        assert entry["context"] == {"session_key": REDACTED}

    def test_propagated_records_are_scrubbed(self, caplog: pytest.LogCaptureFixture):
        """Foreign handlers up the hierarchy see redacted values too."""
        logger = MeshLogger("telink_mesh.test.propagate", human_output="stderr")

        with caplog.at_level(logging.INFO, logger="telink_mesh.test.propagate"):
            logger.info("key %s", SESSION_KEY)

        assert caplog.records[-1].getMessage() == f"key {REDACTED}"


class TestMeshLogger:
    def test_human_handler_on_stdout(self):
        logger = MeshLogger("telink_mesh.test.stdout", log_format="human", human_output="stdout")

        assert len(logger.logger.handlers) == 1
        handler = logger.logger.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream is sys.stdout
        assert isinstance(handler.formatter, HumanReadableFormatter)

    def test_json_file_output(self, tmp_path: Path):
        json_file = tmp_path / "logs" / "telink.json"
        logger = MeshLogger("telink_mesh.test.json", log_format="json", json_file=json_file, human_output=None)

        logger.info("session %s", "established", extra={"sequence": 1})
        for handler in logger.logger.handlers:
            handler.flush()

        entry = json.loads(json_file.read_text().splitlines()[-1])
        assert entry["message"] == "session established"
        assert entry["context"] == {"sequence": 1}
        assert entry["function"] == "test_json_file_output"

    def test_handlers_and_filter_not_duplicated(self):
        first = get_logger("telink_mesh.test.dedup", human_output="stderr")
        second = get_logger("telink_mesh.test.dedup", human_output="stderr")

        assert first.logger is second.logger
        assert len(second.logger.handlers) == 1
        assert sum(isinstance(f, KeyMaterialFilter) for f in second.logger.filters) == 1
