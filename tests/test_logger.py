import json
import logging

from resume_builder.utils.logger import StructuredFormatter, correlation_id_var


def _record(**extra):
    record = logging.LogRecord("resume_builder.test", logging.INFO, __file__, 1, "hello", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_structured_formatter_emits_known_extras() -> None:
    entry = json.loads(StructuredFormatter().format(_record(resume_id="r1", status=200, ignored="x")))
    assert entry["message"] == "hello"
    assert entry["resume_id"] == "r1"
    assert entry["status"] == 200
    assert "ignored" not in entry


def test_structured_formatter_picks_up_request_correlation_id() -> None:
    token = correlation_id_var.set("cid-123")
    try:
        entry = json.loads(StructuredFormatter().format(_record()))
    finally:
        correlation_id_var.reset(token)
    assert entry["correlation_id"] == "cid-123"
