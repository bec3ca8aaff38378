"""Exception hierarchy for HRML parsing and querying.

Query misses are not errors: they resolve to the not-found sentinel. The
exceptions here cover input that cannot be turned into a forest or a query.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from hrml_parser.tokenization.tokenizer import TokenPosition


class HRMLError(Exception):
    """Base exception for all HRML parser errors."""


class StructuralError(HRMLError):
    """Raised when tag nesting cannot be reconstructed from the token stream."""

    def __init__(
        self,
        message: str,
        tag: Optional[str] = None,
        position: Optional["TokenPosition"] = None
    ) -> None:
        if position is not None:
            message = f"{message} (line {position.line}, column {position.column})"
        super().__init__(message)
        self.tag = tag
        self.position = position


class QuerySyntaxError(HRMLError):
    """Raised when a query string is not of the form ``tag.tag~attr``."""

    def __init__(self, message: str, query: Optional[str] = None) -> None:
        super().__init__(message)
        self.query = query


class BatchInputError(HRMLError):
    """Raised when batch driver input does not follow the ``N Q`` layout."""

    def __init__(self, message: str, line_number: Optional[int] = None) -> None:
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number
