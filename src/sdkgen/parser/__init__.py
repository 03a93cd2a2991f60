# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Lexer and parser for .sdkgen files."""

from sdkgen.parser.lexer import Lexer, LexerError, Token, TokenType, tokenize
from sdkgen.parser.parser import SOURCE_SUFFIX, ParseError, Parser, parse, parse_file
from sdkgen.parser.rest import parse_rest_annotation

__all__ = [
    "Lexer",
    "LexerError",
    "Token",
    "TokenType",
    "tokenize",
    "Parser",
    "ParseError",
    "parse",
    "parse_file",
    "parse_rest_annotation",
    "SOURCE_SUFFIX",
]
