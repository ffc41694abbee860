"""
Tests for structured operation logging.
"""

import logging

from vectorspace.util.logging import StructuredLogger


def test_debug_flag_sets_logger_level():
    assert StructuredLogger("vectorspace.test.debug", debug=True).logger.level == logging.DEBUG
    assert StructuredLogger("vectorspace.test.quiet", debug=False).logger.level == logging.INFO


def test_rebuilds_only_visible_in_debug(caplog):
    quiet = StructuredLogger("vectorspace.test.rebuild_quiet", debug=False)
    verbose = StructuredLogger("vectorspace.test.rebuild_verbose", debug=True)

    quiet.log_rebuild("docs", 3, 0.0, 0.5)
    verbose.log_rebuild("docs", 3, 0.0, 0.5)

    records = [record for record in caplog.records if "index.rebuild" in record.getMessage()]
    assert [record.name for record in records] == ["vectorspace.test.rebuild_verbose"]
    assert records[0].levelno == logging.DEBUG
    assert "duration_ms': 500.0" in records[0].getMessage()


def test_failures_are_logged_as_warnings(caplog):
    test_logger = StructuredLogger("vectorspace.test.failures", debug=False)

    test_logger.log_rebuild("docs", 3, 0.0, 0.1, status="failed", details={"error": "boom"})
    test_logger.log_vector_operation("delete", "docs", [1, 2, 3, 4, 5, 6], status="failed")

    assert [record.levelno for record in caplog.records] == [logging.WARNING, logging.WARNING]
    assert "Status: failed" in caplog.records[0].getMessage()
    assert "'...'" in caplog.records[1].getMessage()
