"""Character-level HRML tokenization with an explicit state machine.

This module converts HRML markup into a flat, ordered list of typed tokens in a
single forward pass. The tokenizer is lenient: characters that do not match a
transition of the current state are dropped instead of raising.
"""

import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, Iterable, List, Optional

from hrml_parser.shared.config import TokenizerConfig
from hrml_parser.shared.logging import get_logger

WHITESPACE = frozenset(" \t\r\n")
NAME_PUNCTUATION = frozenset("-_")


class TokenType(Enum):
    """HRML token types produced by the tokenizer."""

    OPEN_TAG = auto()       # Opening marker: <
    CLOSE_TAG = auto()      # Closing marker: >
    END_TAG = auto()        # Tag name of a closing tag: </name>
    TAG_NAME = auto()       # Tag name of an opening tag
    ATTR_NAME = auto()      # Attribute name
    ATTR_VALUE = auto()     # Attribute value between quotes
    LEFT_QUOTE = auto()     # Quote opening an attribute value
    RIGHT_QUOTE = auto()    # Quote closing an attribute value
    NONE = auto()           # No token


class TokenizerState(Enum):
    """State machine states for HRML tokenization."""

    NONE = auto()                 # Outside of any tag
    OPEN_TAG = auto()             # Just read <
    END_TAG = auto()              # Reading the name after </
    TAG_NAME = auto()             # Reading an opening tag name
    ATTR_NAME = auto()            # Reading an attribute name
    AWAITING_OPEN_QUOTE = auto()  # Read =, waiting for the opening quote
    IN_VALUE = auto()             # Inside a quoted attribute value
    AFTER_VALUE = auto()          # Read the closing quote


@dataclass(frozen=True)
class TokenPosition:
    """Position of the first character of a token."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")

    def to_dict(self) -> Dict[str, int]:
        """Convert position to a plain dictionary."""
        return {"line": self.line, "column": self.column, "offset": self.offset}


@dataclass(frozen=True)
class Token:
    """A single HRML token. Punctuation tokens carry an empty value."""

    type: TokenType
    value: str = ""
    position: Optional[TokenPosition] = None

    def __str__(self) -> str:
        return f"(Token: {self.type.name}, Value: {self.value})"


@dataclass
class TokenizationResult:
    """Result of a tokenization pass."""

    tokens: List[Token]
    character_count: int = 0
    processing_time_ms: float = 0.0
    final_state: TokenizerState = TokenizerState.NONE

    @property
    def token_count(self) -> int:
        """Get the total number of tokens."""
        return len(self.tokens)

    @property
    def ended_inside_tag(self) -> bool:
        """Check whether the input stopped before a tag was closed."""
        return self.final_state is not TokenizerState.NONE

    @property
    def token_type_distribution(self) -> Dict[str, int]:
        """Count tokens per type name."""
        distribution: Dict[str, int] = {}
        for token in self.tokens:
            distribution[token.type.name] = distribution.get(token.type.name, 0) + 1
        return distribution


def is_name_char(char: str) -> bool:
    """Check if a character may appear in a tag or attribute name."""
    return (char.isascii() and char.isalnum()) or char in NAME_PUNCTUATION


def is_name_start(char: str) -> bool:
    """Check if a character may start a tag or attribute name."""
    return char.isascii() and char.isalpha()


class HRMLTokenizer:
    """HRML tokenizer driven by an explicit state machine.

    Each state has one handler method. Handlers either accumulate the current
    character into the token under construction, emit finished tokens, or
    ignore the character. The instance is reusable but not thread-safe.
    """

    def __init__(
        self,
        config: Optional[TokenizerConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the tokenizer.

        Args:
            config: Tokenizer configuration (defaults to TokenizerConfig())
            correlation_id: Optional correlation ID for tracking requests
        """
        self.config = config or TokenizerConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "hrml_tokenizer")

        self._handlers: Dict[TokenizerState, Callable[[str], None]] = {
            TokenizerState.NONE: self._process_none,
            TokenizerState.OPEN_TAG: self._process_open_tag,
            TokenizerState.END_TAG: self._process_end_tag,
            TokenizerState.TAG_NAME: self._process_tag_name,
            TokenizerState.ATTR_NAME: self._process_attr_name,
            TokenizerState.AWAITING_OPEN_QUOTE: self._process_awaiting_open_quote,
            TokenizerState.IN_VALUE: self._process_in_value,
            TokenizerState.AFTER_VALUE: self._process_after_value,
        }
        self._reset_state()

    def _reset_state(self) -> None:
        """Reset tokenizer state for new processing."""
        self.state = TokenizerState.NONE
        self.tokens: List[Token] = []
        self._buffer: List[str] = []
        self._buffer_start: Optional[TokenPosition] = None
        self._line = 1
        self._column = 1
        self._offset = 0

    def tokenize(self, text: str) -> TokenizationResult:
        """Tokenize HRML markup.

        Args:
            text: Markup text, possibly spanning several lines

        Returns:
            TokenizationResult with tokens in document order
        """
        start_time = time.time()
        self.logger.debug(
            "Starting tokenization", extra={"char_count": len(text)}
        )

        self._reset_state()
        for char in text:
            self._handlers[self.state](char)
            self._advance(char)

        if self.state is not TokenizerState.NONE:
            self.logger.debug(
                "Input ended inside a tag, partial token dropped",
                extra={"state": self.state.name, "pending": "".join(self._buffer)}
            )

        result = TokenizationResult(
            tokens=self.tokens,
            character_count=len(text),
            processing_time_ms=(time.time() - start_time) * 1000,
            final_state=self.state,
        )

        self.logger.debug(
            "Tokenization completed",
            extra={
                "token_count": result.token_count,
                "processing_time_ms": result.processing_time_ms,
            }
        )
        return result

    # Position and buffer helpers

    def _advance(self, char: str) -> None:
        self._offset += 1
        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1

    def _current_position(self) -> Optional[TokenPosition]:
        if not self.config.track_positions:
            return None
        return TokenPosition(self._line, self._column, self._offset)

    def _start_buffer(self, char: Optional[str] = None) -> None:
        self._buffer = [char] if char is not None else []
        self._buffer_start = self._current_position()

    def _append(self, char: str) -> None:
        if self._buffer_start is None:
            self._buffer_start = self._current_position()
        self._buffer.append(char)

    def _emit(self, token_type: TokenType) -> None:
        self.tokens.append(Token(token_type, "", self._current_position()))

    def _emit_buffer(self, token_type: TokenType) -> None:
        position = self._buffer_start or self._current_position()
        self.tokens.append(Token(token_type, "".join(self._buffer), position))
        self._buffer = []
        self._buffer_start = None

    def _close_tag(self) -> None:
        self._emit(TokenType.CLOSE_TAG)
        self._buffer = []
        self._buffer_start = None
        self.state = TokenizerState.NONE

    # State handlers

    def _process_none(self, char: str) -> None:
        if char == "<":
            self._emit(TokenType.OPEN_TAG)
            self.state = TokenizerState.OPEN_TAG

    def _process_open_tag(self, char: str) -> None:
        if is_name_start(char):
            self._start_buffer(char)
            self.state = TokenizerState.TAG_NAME
        elif char == "/":
            self._start_buffer()
            self.state = TokenizerState.END_TAG

    def _process_end_tag(self, char: str) -> None:
        if is_name_char(char):
            self._append(char)
        elif char == ">":
            self._emit_buffer(TokenType.END_TAG)
            self._close_tag()

    def _process_tag_name(self, char: str) -> None:
        if is_name_char(char):
            self._append(char)
        elif char in WHITESPACE:
            self._emit_buffer(TokenType.TAG_NAME)
            self.state = TokenizerState.ATTR_NAME
        elif char == ">":
            self._emit_buffer(TokenType.TAG_NAME)
            self._close_tag()

    def _process_attr_name(self, char: str) -> None:
        if is_name_char(char):
            self._append(char)
        elif char == "=":
            self._emit_buffer(TokenType.ATTR_NAME)
            self.state = TokenizerState.AWAITING_OPEN_QUOTE
        elif char == ">":
            # A name without "=value" is not an attribute
            self._close_tag()

    def _process_awaiting_open_quote(self, char: str) -> None:
        if char == '"':
            self._emit(TokenType.LEFT_QUOTE)
            self.state = TokenizerState.IN_VALUE
        elif char not in WHITESPACE:
            # Stray characters before the quote become part of the value
            self._append(char)

    def _process_in_value(self, char: str) -> None:
        if char == '"':
            self._emit_buffer(TokenType.ATTR_VALUE)
            self._emit(TokenType.RIGHT_QUOTE)
            self.state = TokenizerState.AFTER_VALUE
        else:
            self._append(char)

    def _process_after_value(self, char: str) -> None:
        if char == ">":
            self._close_tag()
        elif is_name_start(char):
            self._start_buffer(char)
            self.state = TokenizerState.ATTR_NAME


def tokenize(text: str) -> List[Token]:
    """Tokenize HRML markup with the default configuration."""
    return HRMLTokenizer().tokenize(text).tokens


def render_tokens(tokens: Iterable[Token]) -> str:
    """Serialize a token stream back into canonical HRML markup.

    Whitespace is normalized to a single space before each attribute; tag
    names and attribute values are reproduced exactly.
    """
    parts: List[str] = []
    for token in tokens:
        if token.type is TokenType.OPEN_TAG:
            parts.append("<")
        elif token.type is TokenType.CLOSE_TAG:
            parts.append(">")
        elif token.type is TokenType.TAG_NAME:
            parts.append(token.value)
        elif token.type is TokenType.END_TAG:
            parts.append("/" + token.value)
        elif token.type is TokenType.ATTR_NAME:
            parts.append(f" {token.value}=")
        elif token.type in (TokenType.LEFT_QUOTE, TokenType.RIGHT_QUOTE):
            parts.append('"')
        elif token.type is TokenType.ATTR_VALUE:
            parts.append(token.value)
    return "".join(parts)
