"""
Tests for structured logging.
"""

import json
import logging

from shared.config.logging import StructuredFormatter, audit_ws_connection, get_logger


def test_keyword_arguments_become_extra_data(caplog):
    logger = get_logger("ws_registry.tests.structured")

    with caplog.at_level(logging.INFO, logger="ws_registry.tests.structured"):
        logger.info("Connection registered", connection_id=3, category="control-channel")

    record = caplog.records[-1]
    assert record.getMessage() == "Connection registered"
    assert record.extra_data == {"connection_id": 3, "category": "control-channel"}


def test_structured_formatter_outputs_json():
    record = logging.LogRecord(
        name="ws_registry",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Send failed",
        args=(),
        exc_info=None,
    )
    record.extra_data = {"connection_id": 9}

    payload = json.loads(StructuredFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["logger"] == "ws_registry"
    assert payload["message"] == "Send failed"
    assert payload["data"] == {"connection_id": 9}


def test_audit_event_carries_close_code(caplog):
    with caplog.at_level(logging.INFO, logger="ws_registry.audit"):
        audit_ws_connection(
            "CLOSE",
            connection_id=4,
            category="telemetry-channel",
            close_code=1001,
            reason="registry",
        )

    record = caplog.records[-1]
    assert record.getMessage() == "WS_AUDIT: CLOSE"
    assert record.extra_data["close_code"] == 1001
    assert record.extra_data["reason"] == "registry"
