"""Tests for the shared error hierarchy, diagnostics and logging helpers."""

import logging

import pytest

from hrml_parser.shared import (
    BatchInputError,
    CorrelationLogger,
    DiagnosticEntry,
    DiagnosticSeverity,
    HRMLError,
    PerformanceMetrics,
    QuerySyntaxError,
    StructuralError,
    configure_logging,
    get_logger,
    new_correlation_id,
)
from hrml_parser.tokenization import TokenPosition


class TestErrors:
    """Test the HRMLError hierarchy."""

    def test_hierarchy(self):
        """Test that every parser error derives from HRMLError."""
        assert issubclass(StructuralError, HRMLError)
        assert issubclass(QuerySyntaxError, HRMLError)
        assert issubclass(BatchInputError, HRMLError)

    def test_structural_error_with_position(self):
        """Test that positions are appended to the message."""
        error = StructuralError("Bad closer", tag="a", position=TokenPosition(3, 7, 20))
        assert str(error) == "Bad closer (line 3, column 7)"
        assert error.tag == "a"
        assert error.position.offset == 20

    def test_structural_error_without_position(self):
        """Test the plain message form."""
        assert str(StructuralError("Bad closer")) == "Bad closer"

    def test_query_syntax_error_keeps_query(self):
        """Test that the offending query is kept."""
        error = QuerySyntaxError("missing separator", query="a.b")
        assert error.query == "a.b"

    def test_batch_input_error_line_prefix(self):
        """Test that the line number prefixes the message."""
        error = BatchInputError("bad header", line_number=1)
        assert str(error) == "line 1: bad header"
        assert error.line_number == 1


class TestDiagnostics:
    """Test diagnostic and performance types."""

    def test_diagnostic_validation(self):
        """Test that message and component are required."""
        with pytest.raises(ValueError, match="message cannot be empty"):
            DiagnosticEntry(DiagnosticSeverity.INFO, "", "tokenizer")
        with pytest.raises(ValueError, match="component cannot be empty"):
            DiagnosticEntry(DiagnosticSeverity.INFO, "message", "")

    def test_diagnostic_to_dict(self):
        """Test dictionary conversion omits empty optional fields."""
        entry = DiagnosticEntry(
            DiagnosticSeverity.WARNING, "unclosed", "tree", details={"tags": ["a"]}
        )
        assert entry.to_dict() == {
            "severity": "WARNING",
            "message": "unclosed",
            "component": "tree",
            "details": {"tags": ["a"]},
        }

    def test_performance_rates(self):
        """Test derived throughput values."""
        metrics = PerformanceMetrics(
            processing_time_ms=500.0, characters_processed=100, tokens_generated=50
        )
        assert metrics.characters_per_second == 200.0
        assert metrics.tokens_per_second == 100.0
        assert PerformanceMetrics().characters_per_second == 0.0


class TestLogging:
    """Test correlation-aware logging."""

    def test_get_logger(self):
        """Test logger construction and default component name."""
        logger = get_logger("hrml_parser.query.resolver", "abc")
        assert isinstance(logger, CorrelationLogger)
        assert logger.component == "resolver"
        assert logger.correlation_id == "abc"

    def test_extra_contains_correlation(self, caplog):
        """Test that records carry component and correlation id."""
        logger = get_logger("hrml_parser.test", "cid-1", "tester")
        with caplog.at_level(logging.DEBUG, logger="hrml_parser.test"):
            logger.info("hello", extra={"count": 2})

        record = caplog.records[-1]
        assert record.getMessage() == "hello"
        assert record.component == "tester"
        assert record.correlation_id == "cid-1"
        assert record.count == 2

    def test_new_correlation_id_unique(self):
        """Test that generated ids are distinct hex strings."""
        first, second = new_correlation_id(), new_correlation_id()
        assert first != second
        assert len(first) == 32
        int(first, 16)

    def test_configure_logging_idempotent(self):
        """Test that repeated configuration adds a single handler."""
        package_logger = logging.getLogger("hrml_parser")
        configure_logging("DEBUG")
        configure_logging(logging.ERROR)

        handlers = [h for h in package_logger.handlers if getattr(h, "_hrml_handler", False)]
        assert len(handlers) == 1
        assert package_logger.level == logging.ERROR

        for handler in handlers:
            package_logger.removeHandler(handler)
        package_logger.setLevel(logging.NOTSET)
