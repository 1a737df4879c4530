"""Lexical tokens and filters used to match them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class TokenType(Enum):
    """Kinds of tokens produced by the tokenizer."""

    SEMICOLON = auto()
    LEFT_BRACE = auto()
    RIGHT_BRACE = auto()
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    EQUALS = auto()
    LESS_THAN = auto()
    GREATER_THAN = auto()
    COMMA = auto()
    LITERAL = auto()
    IDENTIFIER = auto()
    IF = auto()
    WHILE = auto()
    PRINT = auto()


class TokenSubtype(Enum):
    """Refinement of a literal token's kind."""

    INTEGER = auto()
    STRING = auto()
    BOOL = auto()


@dataclass(frozen=True)
class Token:
    """A single token with its raw text and source line."""

    type: TokenType
    subtype: Optional[TokenSubtype] = None
    raw: str = ""
    line: int = 0


@dataclass(frozen=True)
class TokenFilter:
    """Matches tokens by type and, optionally, by subtype."""

    type: TokenType
    subtype: Optional[TokenSubtype] = None

    def match(self, token: Token) -> bool:
        """Return True if the token has this filter's type (and subtype, if set)."""
        if token.type != self.type:
            return False
        if self.subtype is not None and token.subtype != self.subtype:
            return False
        return True