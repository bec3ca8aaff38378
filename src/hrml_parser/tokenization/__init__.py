"""Tokenization engine for HRML parsing.

Key Components:
    HRMLTokenizer: State machine converting markup text into tokens
    Token: A typed token with its string payload and optional position
    TokenType: Enumeration of all HRML token kinds
    TokenizerState: States of the tokenizer state machine
    render_tokens: Serializes tokens back into canonical markup
"""

from .tokenizer import (
    HRMLTokenizer,
    Token,
    TokenizationResult,
    TokenizerState,
    TokenPosition,
    TokenType,
    is_name_char,
    is_name_start,
    render_tokens,
    tokenize,
)

__all__ = [
    "HRMLTokenizer",
    "Token",
    "TokenPosition",
    "TokenType",
    "TokenizationResult",
    "TokenizerState",
    "is_name_char",
    "is_name_start",
    "render_tokens",
    "tokenize",
]
