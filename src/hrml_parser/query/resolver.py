"""Attribute query resolution against an HRML forest.

A query names a path of tag names and an attribute, e.g. ``tag1.tag2~name``.
Resolution walks the forest one path segment at a time, taking the first
element in document order whose tag matches, and returns the attribute value
or the not-found sentinel.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

from hrml_parser.shared.config import QueryConfig
from hrml_parser.shared.errors import QuerySyntaxError
from hrml_parser.shared.logging import get_logger
from hrml_parser.tree import HRMLElement, HRMLForest

NOT_FOUND = "Not Found!"

QueryInput = Union[str, "AttributeQuery"]


@dataclass(frozen=True)
class AttributeQuery:
    """A parsed ``path~attribute`` query."""

    path: Tuple[str, ...]
    attribute: str
    path_separator: str = field(default=".", compare=False)
    attribute_separator: str = field(default="~", compare=False)

    @classmethod
    def parse(
        cls,
        text: str,
        path_separator: str = ".",
        attribute_separator: str = "~"
    ) -> "AttributeQuery":
        """Parse a query string.

        The text is split at the first attribute separator; everything after
        it is the attribute name.

        Raises:
            QuerySyntaxError: If the separator is missing or the path is empty
        """
        path_text, separator, attribute = text.partition(attribute_separator)
        if not separator:
            raise QuerySyntaxError(
                f"Query is missing the '{attribute_separator}' attribute separator: {text!r}",
                query=text,
            )
        if not path_text:
            raise QuerySyntaxError(f"Query has an empty tag path: {text!r}", query=text)
        return cls(
            tuple(path_text.split(path_separator)),
            attribute,
            path_separator,
            attribute_separator,
        )

    def __str__(self) -> str:
        return self.path_separator.join(self.path) + self.attribute_separator + self.attribute


class QueryResolver:
    """Resolves attribute queries against a read-only HRMLForest."""

    def __init__(
        self,
        config: Optional[QueryConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or QueryConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "hrml_query_resolver")

    def parse_query(self, query: QueryInput) -> AttributeQuery:
        """Parse ``query`` with the configured separators."""
        if isinstance(query, AttributeQuery):
            return query
        return AttributeQuery.parse(
            query,
            path_separator=self.config.path_separator,
            attribute_separator=self.config.attribute_separator,
        )

    def find_element(
        self, path: Sequence[str], forest: HRMLForest
    ) -> Optional[HRMLElement]:
        """Walk ``path`` from the roots, first match per segment."""
        if not path:
            return None
        element = forest.find_root(path[0])
        for segment in path[1:]:
            if element is None:
                break
            element = element.find_child(segment)
        return element

    def resolve(self, query: QueryInput, forest: HRMLForest) -> str:
        """Resolve one query to an attribute value or the not-found sentinel.

        Raises:
            QuerySyntaxError: If ``query`` is a malformed query string
        """
        parsed = self.parse_query(query)
        element = self.find_element(parsed.path, forest)
        if element is None or parsed.attribute not in element.attributes:
            self.logger.debug("Query not found", extra={"query": str(parsed)})
            return self.config.not_found
        return element.attributes[parsed.attribute]

    def resolve_many(
        self, queries: Sequence[QueryInput], forest: HRMLForest
    ) -> List[str]:
        """Resolve queries and return results in request order.

        Every query is parsed up front, so a syntax error is raised before
        any resolution work starts. With ``max_workers > 1`` resolution runs
        on a thread pool.
        """
        start_time = time.time()
        parsed = [self.parse_query(query) for query in queries]

        if self.config.max_workers > 1 and len(parsed) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                results = list(executor.map(lambda q: self.resolve(q, forest), parsed))
        else:
            results = [self.resolve(query, forest) for query in parsed]

        self.logger.debug(
            "Resolved query batch",
            extra={
                "query_count": len(parsed),
                "not_found_count": results.count(self.config.not_found),
                "max_workers": self.config.max_workers,
                "processing_time_ms": (time.time() - start_time) * 1000,
            }
        )
        return results


def resolve(query: QueryInput, forest: HRMLForest) -> str:
    """Resolve one query with the default configuration."""
    return QueryResolver().resolve(query, forest)
