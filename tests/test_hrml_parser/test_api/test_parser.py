"""Tests for the HRML parser API."""

import io
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from hrml_parser.api import HRMLParser, ParseResult, parse, parse_file, parse_string, query
from hrml_parser.query import NOT_FOUND
from hrml_parser.shared import (
    DiagnosticSeverity,
    ParserConfig,
    QuerySyntaxError,
    StructuralError,
)

SAMPLE = '<tag1 value="HelloWorld">\n<tag2 name="Name1">\n</tag2>\n</tag1>\n'


class TestSimpleFunctions:
    """Test level 1 module functions."""

    def test_parse_string(self):
        """Test parsing markup held in a string."""
        result = parse_string(SAMPLE)
        assert isinstance(result, ParseResult)
        assert result.tree.roots[0].tag == "tag1"
        assert result.element_count == 2
        assert result.diagnostics == []

    def test_parse_string_rejects_bytes(self):
        """Test that parse_string is strict about its input type."""
        with pytest.raises(TypeError, match="expects a str"):
            parse_string(b"<a></a>")  # type: ignore[arg-type]

    def test_parse_bytes_and_streams(self):
        """Test bytes, text streams and binary streams."""
        assert parse(b'<a x="1"></a>').query("a~x") == "1"
        assert parse(io.StringIO('<a x="2"></a>')).query("a~x") == "2"
        assert parse(io.BytesIO('<a x="é"></a>'.encode("utf-8"))).query("a~x") == "é"

    def test_parse_unsupported_type(self):
        """Test that unsupported inputs raise TypeError."""
        with pytest.raises(TypeError, match="Unsupported input type: int"):
            parse(42)  # type: ignore[arg-type]

    def test_parse_file(self):
        """Test parsing from a file path."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".hrml", delete=False,
                                         encoding="utf-8") as f:
            f.write(SAMPLE)
            file_path = Path(f.name)

        try:
            assert parse_file(file_path).query("tag1.tag2~name") == "Name1"
            assert parse_file(str(file_path)).query("tag1~value") == "HelloWorld"
        finally:
            file_path.unlink()

    def test_parse_missing_file(self):
        """Test that unreadable paths raise OSError."""
        with pytest.raises(OSError):
            parse_file("no_such_document.hrml")

    def test_query_from_text_and_result(self):
        """Test the one-call query helper."""
        assert query('<a x="1"><b y="2"></b></a>', "a.b~y") == "2"
        result = parse_string('<a x="1"></a>')
        assert query(result, "a~x") == "1"
        assert query(result, "a~q") == NOT_FOUND


class TestParseResult:
    """Test parse result behavior."""

    def test_queries_counted(self):
        """Test that resolved queries are tracked in performance metrics."""
        result = parse_string(SAMPLE)
        result.query("tag1~value")
        assert result.query_many(["tag1~value", "tag1.tag2~name"]) == ["HelloWorld", "Name1"]
        assert result.performance.queries_resolved == 3

    def test_concurrent_queries_counted(self):
        """Test that queries from several threads are all counted."""
        result = parse_string(SAMPLE)
        with ThreadPoolExecutor(max_workers=8) as executor:
            values = list(executor.map(lambda _: result.query("tag1~value"), range(400)))
        assert values == ["HelloWorld"] * 400
        assert result.performance.queries_resolved == 400

    def test_performance_metrics(self):
        """Test metrics collected during parsing."""
        result = parse_string(SAMPLE)
        assert result.performance.characters_processed == len(SAMPLE)
        assert result.performance.tokens_generated == result.tokenization_result.token_count
        assert result.performance.elements_built == 2
        assert result.processing_time_ms >= 0

    def test_summary(self):
        """Test summary statistics."""
        summary = parse_string('<a x="1"><b></b></a>').summary()
        assert summary["element_count"] == 2
        assert summary["root_count"] == 1
        assert summary["attribute_count"] == 1
        assert summary["max_depth"] == 2
        assert summary["unclosed_tags"] == []
        assert summary["token_type_distribution"]["TAG_NAME"] == 2

    def test_unclosed_tag_diagnostic(self):
        """Test the warning diagnostic for unclosed tags."""
        result = parse_string("<a><b></b>")
        warnings = result.get_diagnostics_by_severity(DiagnosticSeverity.WARNING)
        assert len(warnings) == 1
        assert warnings[0].details == {"unclosed_tags": ["a"]}
        assert result.query("a.b~x") == NOT_FOUND

    def test_truncated_input_diagnostic(self):
        """Test the warning diagnostic for input ending inside a tag."""
        result = parse_string('<a x="1"></a><b y="')
        messages = [d.message for d in result.diagnostics]
        assert "Input ended inside a tag" in messages
        assert result.query("a~x") == "1"

    def test_add_diagnostic_carries_correlation_id(self):
        """Test that diagnostics inherit the result correlation id."""
        result = parse_string("<a></a>", correlation_id="cid-7")
        result.add_diagnostic(DiagnosticSeverity.INFO, "note", "test")
        assert result.diagnostics[-1].correlation_id == "cid-7"


class TestHRMLParser:
    """Test the configurable parser class."""

    def test_default_config_is_lenient(self):
        """Test the default preset."""
        assert HRMLParser().config.name == "lenient"

    def test_correlation_id(self):
        """Test generated and explicit correlation ids."""
        assert HRMLParser().correlation_id
        assert HRMLParser(correlation_id="given").correlation_id == "given"
        config = ParserConfig().override(global___enable_correlation_tracking=False)
        assert HRMLParser(config).correlation_id is None

    def test_strict_rejects_mismatched_closer(self):
        """Test strict closing-name validation."""
        parser = HRMLParser(ParserConfig.strict())
        with pytest.raises(StructuralError, match=r"\(line 1, column 5\)"):
            parser.parse("<a></b>")

    def test_strict_rejects_unclosed(self):
        """Test strict handling of unclosed tags."""
        with pytest.raises(StructuralError, match="never closed"):
            HRMLParser(ParserConfig.strict()).parse("<a>")

    def test_unmatched_closer_always_rejected(self):
        """Test that a stray closer fails even in lenient mode."""
        with pytest.raises(StructuralError, match="no matching opening tag"):
            HRMLParser().parse("<a></a></a>")

    def test_query_with_parser_settings(self):
        """Test that parser-level queries use the parser's query config."""
        parser = HRMLParser(ParserConfig().override(query__not_found="-"))
        result = parser.parse('<a v="1"></a><a v="2"></a>')
        assert parser.query(result, "a~v") == "1"
        assert parser.query(result, "a~w") == "-"
        assert result.query("a~w") == "-"
        assert parser.query_many(result, ["a~v", "b~v"]) == ["1", "-"]

    def test_query_syntax_error(self):
        """Test that malformed queries raise."""
        parser = HRMLParser()
        result = parser.parse("<a></a>")
        with pytest.raises(QuerySyntaxError):
            parser.query(result, "a")

    def test_reconfigure(self):
        """Test swapping configuration on an existing parser."""
        parser = HRMLParser()
        parser.parse("<a></b>")
        parser.reconfigure(ParserConfig.strict())
        with pytest.raises(StructuralError):
            parser.parse("<a></b>")

    def test_statistics(self):
        """Test usage statistics and reset."""
        parser = HRMLParser()
        parser.parse("<a></a>")
        parser.parse("<b></b>")
        stats = parser.statistics
        assert stats["total_parses"] == 2
        assert stats["average_processing_time_ms"] >= 0
        parser.reset_statistics()
        assert parser.statistics["total_parses"] == 0
        assert parser.statistics["average_processing_time_ms"] == 0.0


class TestDeepDocuments:
    """Test parsing and querying deeply nested documents."""

    def test_parse_and_query_depth_2000(self):
        """Test queries at both ends of a 2000-level document."""
        depth = 2000
        text = "".join(f'<t{i} v="{i}">' for i in range(depth))
        text += "".join(f"</t{i}>" for i in reversed(range(depth)))

        result = parse_string(text)
        deepest = ".".join(f"t{i}" for i in range(depth)) + "~v"

        assert result.element_count == depth
        assert result.query("t0.t1~v") == "1"
        assert result.query(deepest) == str(depth - 1)
        assert result.summary()["max_depth"] == depth
