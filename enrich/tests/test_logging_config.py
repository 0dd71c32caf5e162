"""Tests for JSONL logging and run-id tagging."""

import json
import logging

import pytest

from enrich.logging_config import (
    current_run_id,
    get_logger,
    log_pipeline_event,
    run_context,
    setup_logging,
)


@pytest.fixture
def jsonl_logs(tmp_path):
    """Route the enrich logger tree to a temporary JSONL directory."""
    logger = setup_logging(log_to_console=False, log_dir=tmp_path)
    yield tmp_path
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


def _entries(log_dir):
    lines = []
    for path in sorted(log_dir.glob("enrich_*.jsonl")):
        lines.extend(json.loads(line) for line in path.read_text(encoding="utf-8").splitlines())
    return lines


class TestRunContext:
    def test_run_id_set_and_reset(self):
        assert current_run_id() is None
        with run_context("abc123") as run_id:
            assert run_id == "abc123"
            assert current_run_id() == "abc123"
        assert current_run_id() is None

    def test_generated_run_id(self):
        with run_context() as run_id:
            assert run_id
            assert current_run_id() == run_id


class TestJsonlLogging:
    """Tests for the daily JSONL file."""

    def test_child_logger_records_carry_run_id(self, jsonl_logs):
        with run_context("run-1"):
            get_logger("pool").info("inside")
        get_logger("pool").info("outside")

        entries = _entries(jsonl_logs)
        assert entries[0]["message"] == "inside"
        assert entries[0]["logger"] == "enrich.pool"
        assert entries[0]["run_id"] == "run-1"
        assert "run_id" not in entries[1]

    def test_pipeline_event_fields(self, jsonl_logs):
        with run_context("run-2"):
            log_pipeline_event("fetch_failed", {"key": "ABC", "error": "HTTP 500"}, level=logging.ERROR)

        entry = _entries(jsonl_logs)[0]
        assert entry["event_type"] == "fetch_failed"
        assert entry["level"] == "ERROR"
        assert entry["key"] == "ABC"
        assert entry["run_id"] == "run-2"

    def test_message_key_becomes_message(self, jsonl_logs):
        log_pipeline_event("run_complete", {"message": "all done", "products_written": 3})
        entry = _entries(jsonl_logs)[0]
        assert entry["message"] == "all done"
        assert entry["products_written"] == 3

    def test_get_logger_prefix(self):
        assert get_logger("writer").name == "enrich.writer"
        assert get_logger().name == "enrich"
        assert get_logger("enrich.pool").name == "enrich.pool"
