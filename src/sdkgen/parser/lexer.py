# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexical scanner for .sdkgen files.

Converts raw source text into a stream of tokens for subsequent parsing.

End of input inside a block comment simply ends the comment. End of input
inside a string literal is a :class:`LexerError`: the string is rejected
rather than closed implicitly, so a missing quote never changes the
meaning of the rest of the file.
"""

import enum
from dataclasses import dataclass

from sdkgen.model.types import PRIMITIVE_NAMES, TokenLocation

# ###############
# Public Interface
# ###############


class TokenType(enum.Enum):
    """All token types produced by the sdkgen lexer."""

    # Keywords
    ERROR = "error"
    ENUM = "enum"
    TYPE = "type"
    IMPORT = "import"
    FN = "fn"
    GET = "get"
    FUNCTION = "function"
    TRUE = "true"
    FALSE = "false"

    # Symbols
    LBRACE = "{"
    RBRACE = "}"
    LPAREN = "("
    RPAREN = ")"
    OPTIONAL = "?"
    COLON = ":"
    EQUALS = "="
    EXCLAMATION = "!"
    COMMA = ","
    ARRAY = "[]"
    SPREAD = "..."

    # Literals
    STRING = "STRING"
    ANNOTATION = "ANNOTATION"

    # Names
    PRIMITIVE = "PRIMITIVE"
    IDENTIFIER = "IDENTIFIER"


@dataclass(frozen=True)
class Token:
    """A lexical token with its source location.

    Attributes:
        type: The kind of token.
        value: The raw text of the token. For STRING tokens the decoded
            content, for ANNOTATION tokens the trimmed text after ``@``.
        location: Where the token starts.
    """

    type: TokenType
    value: str
    location: TokenLocation

    def as_identifier(self) -> "Token | None":
        """Reinterpret a keyword or primitive name as an identifier.

        Returns None for tokens that can never be used as a name.
        """
        if self.type == TokenType.IDENTIFIER:
            return self
        if self.type in _NAME_LIKE_TYPES:
            return Token(TokenType.IDENTIFIER, self.value, self.location)
        return None

    def __str__(self) -> str:
        if self.type in _SYMBOL_TYPES or self.type in _KEYWORD_TYPES:
            return repr(self.value)
        return f"{self.type.name.lower()} {self.value!r}"


class LexerError(Exception):
    """Raised when the scanner encounters an invalid character or an unterminated literal.

    Attributes:
        location: Where the offending input starts.
    """

    def __init__(self, message: str, location: TokenLocation) -> None:
        super().__init__(f"{location}: {message}")
        self.location = location


class Lexer:
    """Single-pass scanner producing one token at a time.

    Args:
        source: The full text of an .sdkgen file.
        filename: Name used in token locations and diagnostics.
    """

    def __init__(self, source: str, filename: str = "-") -> None:
        self._source = source
        self._filename = filename
        self._pos = 0
        self._line = 1
        self._column = 1

    @property
    def filename(self) -> str:
        return self._filename

    def next_token(self) -> Token | None:
        """Scan and return the next token, or None at the end of input.

        Raises:
            LexerError: On unexpected characters, an unterminated string,
                a lone ``[`` or an incomplete ``...``.
        """
        self._skip_whitespace_and_comments()
        if self._pos >= len(self._source):
            return None
        return self._scan_token()

    def tokenize(self) -> list[Token]:
        """Run the scanner to completion and return all tokens."""
        tokens: list[Token] = []
        while (token := self.next_token()) is not None:
            tokens.append(token)
        return tokens

    # ------------------------------------------------------------------
    # Low-level character access helpers
    # ------------------------------------------------------------------

    def _location(self) -> TokenLocation:
        return TokenLocation(self._filename, self._line, self._column)

    def _current(self) -> str:
        """Return the character at the current position, or '' at end of input."""
        if self._pos < len(self._source):
            return self._source[self._pos]
        return ""

    def _peek(self) -> str:
        """Return the character one position ahead, or '' at end of input."""
        if self._pos + 1 < len(self._source):
            return self._source[self._pos + 1]
        return ""

    def _advance(self) -> str:
        """Consume the current character, update position tracking, and return it."""
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1
        return ch

    # ------------------------------------------------------------------
    # Whitespace and comment skipping
    # ------------------------------------------------------------------

    def _skip_whitespace_and_comments(self) -> None:
        """Skip all whitespace and comment runs at the current position."""
        while self._pos < len(self._source):
            ch = self._current()
            if ch in " \t\r\n":
                self._advance()
            elif ch == "/" and self._peek() == "/":
                self._skip_line_comment()
            elif ch == "/" and self._peek() == "*":
                self._skip_block_comment()
            else:
                break

    def _skip_line_comment(self) -> None:
        """Consume from '//' through end-of-line (exclusive of the newline itself)."""
        while self._pos < len(self._source) and self._current() != "\n":
            self._advance()

    def _skip_block_comment(self) -> None:
        """Consume from '/*' through the matching '*/'.

        Reaching the end of input closes the comment.
        """
        self._advance()  # /
        self._advance()  # *
        while self._pos < len(self._source):
            if self._current() == "*" and self._peek() == "/":
                self._advance()  # *
                self._advance()  # /
                return
            self._advance()

    # ------------------------------------------------------------------
    # Token scanning dispatcher
    # ------------------------------------------------------------------

    def _scan_token(self) -> Token:
        """Dispatch to the appropriate handler based on the current character."""
        ch = self._current()
        location = self._location()

        if ch in _SINGLE_CHAR_TOKENS:
            self._advance()
            return Token(_SINGLE_CHAR_TOKENS[ch], ch, location)
        if ch == "[":
            self._advance()
            if self._current() != "]":
                raise LexerError("Expected ']' after '['", location)
            self._advance()
            return Token(TokenType.ARRAY, "[]", location)
        if ch == ".":
            for _ in range(3):
                if self._current() != ".":
                    raise LexerError("Expected '...'", location)
                self._advance()
            return Token(TokenType.SPREAD, "...", location)
        if ch == "@":
            return self._scan_annotation(location)
        if ch == '"':
            return self._scan_string(location)
        if _is_identifier_start(ch):
            return self._scan_identifier_or_keyword(location)
        raise LexerError(f"Unexpected character {ch!r}", location)

    # ------------------------------------------------------------------
    # Literal scanners
    # ------------------------------------------------------------------

    def _read_line(self) -> str:
        """Consume up to, but not including, the next newline."""
        start = self._pos
        while self._pos < len(self._source) and self._current() != "\n":
            self._advance()
        return self._source[start : self._pos]

    def _scan_annotation(self, location: TokenLocation) -> Token:
        """Scan an '@' annotation; a trailing backslash continues it on the next line."""
        self._advance()  # @
        body = self._read_line().strip()
        while body.endswith("\\"):
            body = body[:-1].strip()
            if self._pos >= len(self._source):
                break
            self._advance()  # newline
            body = f"{body} {self._read_line().strip()}".strip()
        return Token(TokenType.ANNOTATION, body, location)

    def _scan_string(self, location: TokenLocation) -> Token:
        """Scan a double-quoted string literal with escape sequences.

        ``\\n`` and ``\\t`` are translated; any other escaped character is
        kept literally.
        """
        self._advance()  # opening "
        chars: list[str] = []
        while self._pos < len(self._source):
            ch = self._advance()
            if ch == '"':
                return Token(TokenType.STRING, "".join(chars), location)
            if ch == "\\":
                if self._pos >= len(self._source):
                    break
                esc = self._advance()
                chars.append(_ESCAPES.get(esc, esc))
            else:
                chars.append(ch)
        raise LexerError("Unterminated string literal", location)

    def _scan_identifier_or_keyword(self, location: TokenLocation) -> Token:
        """Scan an identifier and classify it as keyword, primitive or plain name."""
        start = self._pos
        while self._pos < len(self._source) and _is_identifier_part(self._current()):
            self._advance()
        value = self._source[start : self._pos]
        if value in _KEYWORDS:
            return Token(_KEYWORDS[value], value, location)
        if value in PRIMITIVE_NAMES:
            return Token(TokenType.PRIMITIVE, value, location)
        return Token(TokenType.IDENTIFIER, value, location)


def tokenize(source: str, filename: str = "-") -> list[Token]:
    """Tokenize sdkgen source text into a list of tokens.

    Comments and whitespace are consumed and not included in the output.

    Args:
        source: The full text of an .sdkgen file.
        filename: Name used in token locations.

    Returns:
        All tokens in source order.

    Raises:
        LexerError: On invalid input.
    """
    return Lexer(source, filename).tokenize()


# ################
# Implementation
# ################

_KEYWORDS: dict[str, TokenType] = {
    "error": TokenType.ERROR,
    "enum": TokenType.ENUM,
    "type": TokenType.TYPE,
    "import": TokenType.IMPORT,
    "fn": TokenType.FN,
    "get": TokenType.GET,
    "function": TokenType.FUNCTION,
    "true": TokenType.TRUE,
    "false": TokenType.FALSE,
}

_KEYWORD_TYPES: frozenset[TokenType] = frozenset(_KEYWORDS.values())

_NAME_LIKE_TYPES: frozenset[TokenType] = _KEYWORD_TYPES | {TokenType.PRIMITIVE}

_SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "?": TokenType.OPTIONAL,
    ":": TokenType.COLON,
    "=": TokenType.EQUALS,
    "!": TokenType.EXCLAMATION,
    ",": TokenType.COMMA,
}

_SYMBOL_TYPES: frozenset[TokenType] = frozenset(_SINGLE_CHAR_TOKENS.values()) | {
    TokenType.ARRAY,
    TokenType.SPREAD,
}

_ESCAPES: dict[str, str] = {"n": "\n", "t": "\t"}


def _is_identifier_start(ch: str) -> bool:
    return ch.isascii() and (ch.isalpha() or ch == "_")


def _is_identifier_part(ch: str) -> bool:
    return ch.isascii() and (ch.isalnum() or ch == "_")
