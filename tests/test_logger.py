"""Structured log formatting tests"""
import json
import logging

from qap_workflow.utils.logger import JsonFormatter, set_correlation_id


def _record(**extra):
    record = logging.LogRecord("qap_workflow.engine", logging.INFO, __file__, 1, "QAP moved", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_line_carries_qap_fields():
    line = json.loads(JsonFormatter().format(_record(qap_id="QAP-1", review_level=3, status="level-3")))

    assert line["level"] == "INFO"
    assert line["message"] == "QAP moved"
    assert line["qap_id"] == "QAP-1"
    assert line["review_level"] == 3
    assert line["status"] == "level-3"
    assert "actor" not in line


def test_correlation_id_from_context():
    set_correlation_id("COR-test")
    try:
        line = json.loads(JsonFormatter().format(_record()))
    finally:
        set_correlation_id(None)

    assert line["correlation_id"] == "COR-test"
