"""Core parser API with progressive disclosure for HRML parsing.

This module provides the main parsing API, from simple module-level functions
to a reusable, configurable parser class. Each parse runs the full pipeline:
tokenizer, tree builder, and a query resolver bound to the result.
"""

import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Optional, Sequence, TextIO, Union

from hrml_parser.query import QueryResolver
from hrml_parser.query.resolver import QueryInput
from hrml_parser.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    ParserConfig,
    PerformanceMetrics,
    get_logger,
    new_correlation_id,
)
from hrml_parser.tokenization import HRMLTokenizer, TokenizationResult
from hrml_parser.tree import HRMLForest, HRMLTreeBuilder

# Type definitions for input data
InputType = Union[str, bytes, BinaryIO, TextIO, Path]

MS_PER_SECOND = 1000
PREVIEW_LENGTH = 100  # Max length for content preview in logs


@dataclass
class ParseResult:
    """Forest of one parsed document together with its metadata.

    The result carries a resolver configured like the parser that produced it,
    so queries can be answered straight from the result. Queries may run from
    several threads; only the resolved-query counter is shared, and it is
    updated under a lock.
    """

    forest: HRMLForest = field(default_factory=HRMLForest)
    tokenization_result: Optional[TokenizationResult] = None
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    correlation_id: Optional[str] = None
    resolver: QueryResolver = field(default_factory=QueryResolver, repr=False)
    _metrics_lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    @property
    def tree(self) -> HRMLForest:
        """Direct access to the parsed forest.

        Examples:
            >>> result = parse_string('<a x="1"><b y="2"></b></a>')
            >>> result.tree.roots[0].tag
            'a'
        """
        return self.forest

    @property
    def element_count(self) -> int:
        """Get total number of elements in the forest."""
        return self.forest.total_elements

    @property
    def processing_time_ms(self) -> float:
        """Get processing time in milliseconds."""
        return self.performance.processing_time_ms

    def query(self, query: QueryInput) -> str:
        """Resolve one query against this result.

        Examples:
            >>> result = parse_string('<a x="1"><b y="2"></b></a>')
            >>> result.query('a.b~y')
            '2'
            >>> result.query('a.c~y')
            'Not Found!'
        """
        value = self.resolver.resolve(query, self.forest)
        with self._metrics_lock:
            self.performance.queries_resolved += 1
        return value

    def query_many(self, queries: Sequence[QueryInput]) -> List[str]:
        """Resolve queries in request order."""
        values = self.resolver.resolve_many(queries, self.forest)
        with self._metrics_lock:
            self.performance.queries_resolved += len(values)
        return values

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            position=position,
            details=details,
            correlation_id=self.correlation_id
        ))

    def get_diagnostics_by_severity(
        self, severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the parse result."""
        token_distribution = (
            self.tokenization_result.token_type_distribution
            if self.tokenization_result else {}
        )
        return {
            "element_count": self.element_count,
            "root_count": len(self.forest),
            "attribute_count": self.forest.total_attributes,
            "max_depth": self.forest.max_depth,
            "unclosed_tags": list(self.forest.unclosed_tags),
            "token_count": self.performance.tokens_generated,
            "token_type_distribution": token_distribution,
            "characters_processed": self.performance.characters_processed,
            "queries_resolved": self.performance.queries_resolved,
            "processing_time_ms": self.performance.processing_time_ms,
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
            "correlation_id": self.correlation_id,
        }


class HRMLParser:
    """Reusable HRML parser with configurable components.

    Examples:
        >>> parser = HRMLParser()
        >>> result = parser.parse('<a v="1"></a><a v="2"></a>')
        >>> parser.query(result, 'a~v')
        '1'

        Strict configuration:
        >>> parser = HRMLParser(ParserConfig.strict())
        >>> parser.parse('<a></b>')
        Traceback (most recent call last):
        ...
        hrml_parser.shared.errors.StructuralError: Closing tag </b> does not match open tag <a> (line 1, column 5)
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the parser.

        Args:
            config: Parser configuration (defaults to ParserConfig.lenient())
            correlation_id: Optional correlation ID; generated when tracking
                is enabled and none is given
        """
        self.config = config or ParserConfig.lenient()
        if correlation_id is None and self.config.global_.enable_correlation_tracking:
            correlation_id = new_correlation_id()
        self.correlation_id = correlation_id

        self.logger = get_logger(__name__, self.correlation_id, "hrml_parser")
        self._build_components()

        self._parse_count = 0
        self._total_processing_time = 0.0

    def _build_components(self) -> None:
        self._tokenizer = HRMLTokenizer(self.config.tokenizer, self.correlation_id)
        self._tree_builder = HRMLTreeBuilder(self.config.tree, self.correlation_id)
        self._resolver = QueryResolver(self.config.query, self.correlation_id)

    def parse(self, input_data: InputType) -> ParseResult:
        """Parse HRML from a string, bytes, Path or file-like object.

        Raises:
            StructuralError: If tag nesting cannot be reconstructed
            OSError: If a Path cannot be read
        """
        start_time = time.time()
        text = self._read_input(input_data)

        self.logger.info(
            "Starting parse operation",
            extra={
                "input_type": type(input_data).__name__,
                "content_length": len(text),
                "preview": (
                    text[:PREVIEW_LENGTH] + "..." if len(text) > PREVIEW_LENGTH else text
                ),
            }
        )

        tokenization_result = self._tokenizer.tokenize(text)
        forest = self._tree_builder.build(tokenization_result)

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        result = ParseResult(
            forest=forest,
            tokenization_result=tokenization_result,
            performance=PerformanceMetrics(
                processing_time_ms=processing_time,
                characters_processed=tokenization_result.character_count,
                tokens_generated=tokenization_result.token_count,
                elements_built=forest.total_elements,
            ),
            correlation_id=self.correlation_id,
            resolver=self._resolver,
        )

        if tokenization_result.ended_inside_tag:
            result.add_diagnostic(
                DiagnosticSeverity.WARNING,
                "Input ended inside a tag",
                "hrml_tokenizer",
                details={"state": tokenization_result.final_state.name},
            )
        if forest.unclosed_tags:
            result.add_diagnostic(
                DiagnosticSeverity.WARNING,
                f"{len(forest.unclosed_tags)} tag(s) never closed",
                "hrml_tree_builder",
                details={"unclosed_tags": list(forest.unclosed_tags)},
            )

        self._parse_count += 1
        self._total_processing_time += processing_time

        self.logger.info(
            "Parse completed",
            extra={
                "element_count": result.element_count,
                "processing_time_ms": processing_time,
                "total_parses": self._parse_count,
            }
        )
        return result

    def _read_input(self, input_data: InputType) -> str:
        encoding = self.config.global_.encoding
        if isinstance(input_data, str):
            return input_data
        if isinstance(input_data, bytes):
            return input_data.decode(encoding)
        if isinstance(input_data, Path):
            return input_data.read_text(encoding=encoding)
        if hasattr(input_data, "read"):
            content = input_data.read()
            if isinstance(content, bytes):
                return content.decode(encoding)
            return content
        raise TypeError(f"Unsupported input type: {type(input_data).__name__}")

    def query(self, result: ParseResult, query: QueryInput) -> str:
        """Resolve one query against a parse result with this parser's settings."""
        return self._resolver.resolve(query, result.forest)

    def query_many(self, result: ParseResult, queries: Sequence[QueryInput]) -> List[str]:
        """Resolve queries in request order with this parser's settings."""
        return self._resolver.resolve_many(queries, result.forest)

    def reconfigure(self, config: ParserConfig) -> None:
        """Replace the configuration and rebuild the pipeline components."""
        self.config = config
        self._build_components()
        self.logger.info("Parser reconfigured", extra={"config_name": config.name})

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics."""
        return {
            "total_parses": self._parse_count,
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset parser usage statistics."""
        self._parse_count = 0
        self._total_processing_time = 0.0


def parse(
    input_data: InputType,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse HRML from any supported input type.

    Examples:
        >>> parse('<a t="x>y"></a>').query('a~t')
        'x>y'
    """
    return HRMLParser(config, correlation_id).parse(input_data)


def parse_string(
    text: str,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse HRML markup held in a string.

    Examples:
        >>> parse_string('<a t=""></a>').query('a~t')
        ''
    """
    if not isinstance(text, str):
        raise TypeError("parse_string expects a str")
    return HRMLParser(config, correlation_id).parse(text)


def parse_file(
    file_path: Union[str, Path],
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse an HRML file, decoded with ``config.global_.encoding``.

    Raises:
        OSError: If the file cannot be read
    """
    return HRMLParser(config, correlation_id).parse(Path(file_path))


def query(source: Union[str, ParseResult], query_string: QueryInput) -> str:
    """Answer one query against markup text or an existing parse result.

    Examples:
        >>> query('<a x="1"><b y="2"></b></a>', 'a~z')
        'Not Found!'
    """
    result = source if isinstance(source, ParseResult) else parse_string(source)
    return result.query(query_string)
