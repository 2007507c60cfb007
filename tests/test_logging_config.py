import json
import logging
import sys

from core.logging_config import JsonFormatter, configure_logging


def test_json_formatter_includes_extras_and_exception():
    formatter = JsonFormatter()
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord("kvcache", logging.ERROR, __file__, 1, "sweep_cycle_error", None, sys.exc_info())
    record.removed = 3
    record.key = ("tuple", 1)

    payload = json.loads(formatter.format(record))

    assert payload["level"] == "ERROR"
    assert payload["msg"] == "sweep_cycle_error"
    assert payload["removed"] == 3
    assert payload["key"] == ["tuple", 1]
    assert "RuntimeError: boom" in payload["exc"]
    assert payload["ts"].endswith("Z")


def test_configure_logging_is_idempotent():
    logger = configure_logging("debug")
    configure_logging("DEBUG")

    assert logger is logging.getLogger("kvcache")
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, JsonFormatter)
    assert logger.level == logging.DEBUG
