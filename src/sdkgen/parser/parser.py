# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Recursive-descent parser for .sdkgen files.

Converts the token stream produced by the lexer into a raw :class:`AstRoot`.
The result still contains unresolved references and spreads; run
:func:`sdkgen.compiler.semantic_analysis.analyse` on it before use.
"""

import re
from pathlib import Path

from sdkgen.model.annotations import (
    Annotation,
    ArgDescriptionAnnotation,
    DescriptionAnnotation,
    HiddenAnnotation,
    StatusCodeAnnotation,
    ThrowsAnnotation,
)
from sdkgen.model.entities import AstRoot, ErrorNode, FunctionOperation, TypeDefinition
from sdkgen.model.types import (
    ArrayType,
    EnumType,
    EnumValue,
    Field,
    OptionalType,
    PrimitiveKind,
    PrimitiveType,
    Spread,
    StructType,
    TokenLocation,
    Type,
    TypeReference,
)
from sdkgen.parser.lexer import Lexer, Token, TokenType
from sdkgen.parser.rest import parse_rest_annotation

# ###############
# Public Interface
# ###############

SOURCE_SUFFIX = ".sdkgen"


class ParseError(Exception):
    """Raised when the parser encounters a syntactically invalid construct.

    Attributes:
        location: Where the offending construct starts.
    """

    def __init__(self, message: str, location: TokenLocation) -> None:
        super().__init__(f"{location}: {message}")
        self.location = location


class Parser:
    """Recursive-descent parser over a stack of lexers.

    ``import`` directives push a lexer for the imported file; tokens are
    drawn from the innermost lexer until it is exhausted.

    Args:
        source: The full text of the entry file.
        filename: Path of the entry file, used for diagnostics and to
            resolve relative imports.
    """

    def __init__(self, source: str, filename: str = "-") -> None:
        self._lexers: list[Lexer] = [Lexer(source, filename)]
        self._imported: set[Path] = set()
        if filename != "-":
            self._imported.add(Path(filename).resolve())
        self._token: Token | None = None
        self._last_location = TokenLocation(filename, 1, 1)
        self._annotations: list[Annotation] = []
        self._warnings: list[str] = []
        self._next_token()

    def parse(self) -> AstRoot:
        """Parse the whole input, including imported files.

        Returns:
            The raw, unanalysed syntax tree.

        Raises:
            LexerError: If any source contains invalid characters.
            ParseError: If any source is syntactically invalid.
        """
        root = AstRoot()
        while self._token is not None:
            self._accept_annotations()
            self._parse_top_level(root)
        root.warnings = list(self._warnings)
        return root

    # ------------------------------------------------------------------
    # Token access helpers
    # ------------------------------------------------------------------

    def _next_token(self) -> None:
        """Load the next token, popping exhausted lexers."""
        while self._lexers:
            self._token = self._lexers[-1].next_token()
            if self._token is not None:
                return
            self._lexers.pop()
        self._token = None

    def _current(self) -> Token:
        """Return the current (un-consumed) token; end of input is an error."""
        if self._token is None:
            raise ParseError("Unexpected end of file", self._last_location)
        return self._token

    def _advance(self) -> Token:
        """Consume and return the current token."""
        tok = self._current()
        self._last_location = tok.location
        self._next_token()
        return tok

    def _check(self, *types: TokenType) -> bool:
        """Return True if the current token matches any of the given types (without consuming)."""
        return self._token is not None and self._token.type in types

    def _expect(self, *types: TokenType) -> Token:
        """Consume the current token if it matches any of the given types.

        Raises ParseError if the current token does not match.
        """
        tok = self._current()
        if tok.type not in types:
            expected = " or ".join(repr(t.value) for t in types)
            raise ParseError(f"Expected {expected}, got {tok}", tok.location)
        return self._advance()

    def _expect_name_token(self) -> Token:
        """Consume the current token as a name.

        Accepts identifiers as well as keywords and primitive names used in
        name positions (e.g. a field named 'type').
        """
        tok = self._current()
        name = tok.as_identifier()
        if name is None:
            raise ParseError(f"Expected identifier, got {tok}", tok.location)
        self._advance()
        return name

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------

    def _accept_annotations(self) -> None:
        """Collect consecutive annotation tokens for the next declaration."""
        while self._check(TokenType.ANNOTATION):
            tok = self._advance()
            self._annotations.append(_parse_annotation(tok))

    def _take_annotations(self) -> list[Annotation]:
        """Return and clear the pending annotations."""
        annotations = self._annotations
        self._annotations = []
        return annotations

    def _check_no_annotations(self) -> None:
        if self._annotations:
            raise ParseError("Cannot have annotations here", self._annotations[0].location)

    # ------------------------------------------------------------------
    # Top-level declarations
    # ------------------------------------------------------------------

    def _parse_top_level(self, root: AstRoot) -> None:
        """Parse one top-level declaration and append it to *root*."""
        if self._token is None:
            self._check_no_annotations()
            return
        tok = self._token
        if tok.type == TokenType.TYPE:
            root.type_definitions.append(self._parse_type_definition())
        elif tok.type == TokenType.ERROR:
            root.errors.append(self._parse_error())
        elif tok.type in (TokenType.FN, TokenType.GET, TokenType.FUNCTION):
            root.operations.append(self._parse_operation())
        elif tok.type == TokenType.IMPORT:
            self._parse_import()
        else:
            raise ParseError(f"Unexpected {tok} at top level", tok.location)

    def _parse_import(self) -> None:
        """Parse: import "relative/path" and start reading the imported file."""
        self._check_no_annotations()
        self._expect(TokenType.IMPORT)
        path_tok = self._current()
        if path_tok.type != TokenType.STRING:
            raise ParseError(f"Expected a string, got {path_tok}", path_tok.location)
        resolved = (Path(path_tok.location.filename).parent / f"{path_tok.value}{SOURCE_SUFFIX}").resolve()
        self._last_location = path_tok.location
        if resolved in self._imported:
            self._next_token()
            return
        try:
            text = resolved.read_text(encoding="utf-8")
        except OSError as exc:
            raise ParseError(f"Cannot import '{path_tok.value}': {exc}", path_tok.location) from exc
        self._imported.add(resolved)
        self._lexers.append(Lexer(text, str(resolved)))
        self._next_token()

    def _parse_type_definition(self) -> TypeDefinition:
        """Parse: type <Name> [=] <type>"""
        type_tok = self._expect(TokenType.TYPE)
        name_tok = self._expect_name_token()
        _require_uppercase(name_tok, "The custom type name")
        if self._check(TokenType.EQUALS):
            self._advance()
        annotations = self._take_annotations()
        type_ = self._parse_type()
        return TypeDefinition(name_tok.value, type_, annotations, location=type_tok.location)

    def _parse_error(self) -> ErrorNode:
        """Parse: error <Name> [[:] <type>]"""
        error_tok = self._expect(TokenType.ERROR)
        name_tok = self._expect_name_token()
        _require_uppercase(name_tok, "Error name")
        annotations = self._take_annotations()
        data_type: Type = PrimitiveType(PrimitiveKind.VOID, location=name_tok.location)
        if self._check(TokenType.COLON):
            self._advance()
            data_type = self._parse_type()
        elif self._check(*_TYPE_START_TOKENS):
            data_type = self._parse_type()
        return ErrorNode(name_tok.value, data_type, annotations, location=error_tok.location)

    def _parse_operation(self) -> FunctionOperation:
        """Parse: fn <name>(<args>) [: <type>]"""
        annotations = self._take_annotations()
        opening = self._expect(TokenType.FN, TokenType.GET, TokenType.FUNCTION)
        if opening.type != TokenType.FN:
            self._warnings.append(f"Keyword '{opening.value}' is deprecated at {opening.location}. Use 'fn' instead.")
        name_tok = self._expect_name_token()

        self._expect(TokenType.LPAREN)
        members: list[Field | Spread] = []
        arg_names: set[str] = set()
        while not self._check(TokenType.RPAREN):
            if self._check(TokenType.SPREAD):
                members.append(self._parse_spread())
            else:
                arg = self._parse_field()
                if arg.name in arg_names:
                    raise ParseError(f"Cannot redeclare argument '{arg.name}'", arg.location)
                arg_names.add(arg.name)
                members.append(arg)
            if not self._check(TokenType.COMMA):
                break
            self._advance()
        close_tok = self._expect(TokenType.RPAREN)

        args_by_name = {m.name: m for m in members if isinstance(m, Field)}
        op_annotations: list[Annotation] = []
        for annotation in annotations:
            if not isinstance(annotation, ArgDescriptionAnnotation):
                op_annotations.append(annotation)
                continue
            target = args_by_name.get(annotation.arg_name)
            if target is None:
                raise ParseError(f"Argument '{annotation.arg_name}' not found", annotation.location)
            target.annotations.append(DescriptionAnnotation(annotation.text, location=annotation.location))

        return_type: Type = PrimitiveType(PrimitiveKind.VOID, location=close_tok.location)
        if self._check(TokenType.COLON):
            self._advance()
            return_type = self._parse_type()

        return FunctionOperation(
            name_tok.value,
            members,
            return_type,
            annotations=op_annotations,
            is_getter=opening.type == TokenType.GET,
            location=opening.location,
        )

    # ------------------------------------------------------------------
    # Fields and spreads
    # ------------------------------------------------------------------

    def _parse_field(self) -> Field:
        """Parse: <name>: <type> [!secret]"""
        name_tok = self._expect_name_token()
        self._expect(TokenType.COLON)
        annotations = self._take_annotations()
        type_ = self._parse_type()
        field = Field(name_tok.value, type_, annotations=annotations, location=name_tok.location)
        while self._check(TokenType.EXCLAMATION):
            self._advance()
            mark = self._expect_name_token()
            if mark.value != "secret":
                raise ParseError(f"Unknown field mark !{mark.value}", mark.location)
            field.secret = True
        return field

    def _parse_spread(self) -> Spread:
        """Parse: ...<TypeName>"""
        self._check_no_annotations()
        spread_tok = self._expect(TokenType.SPREAD)
        name_tok = self._expect_name_token()
        _require_type_name(name_tok)
        return Spread(TypeReference(name_tok.value, location=name_tok.location), location=spread_tok.location)

    # ------------------------------------------------------------------
    # Type expressions
    # ------------------------------------------------------------------

    def _parse_type(self) -> Type:
        """Parse a type expression followed by any number of '?' and '[]' suffixes."""
        self._check_no_annotations()
        tok = self._current()
        result: Type
        if tok.type == TokenType.LBRACE:
            result = self._parse_struct()
        elif tok.type == TokenType.ENUM:
            result = self._parse_enum()
        elif tok.type == TokenType.PRIMITIVE:
            self._advance()
            result = PrimitiveType(PrimitiveKind(tok.value), location=tok.location)
        elif tok.type == TokenType.LPAREN:
            self._advance()
            result = self._parse_type()
            self._expect(TokenType.RPAREN)
        else:
            name_tok = tok.as_identifier()
            if name_tok is None:
                raise ParseError(f"Expected a type, got {tok}", tok.location)
            self._advance()
            _require_type_name(name_tok)
            result = TypeReference(name_tok.value, location=name_tok.location)

        while self._check(TokenType.ARRAY, TokenType.OPTIONAL):
            suffix = self._advance()
            if suffix.type == TokenType.ARRAY:
                result = ArrayType(result, location=suffix.location)
            else:
                result = OptionalType(result, location=suffix.location)
        return result

    def _parse_struct(self) -> StructType:
        """Parse: { <field> | ...<Spread> [,] ... }"""
        open_tok = self._expect(TokenType.LBRACE)
        members: list[Field | Spread] = []
        field_names: set[str] = set()
        while True:
            self._accept_annotations()
            if self._check(TokenType.RBRACE):
                self._check_no_annotations()
                self._advance()
                break
            if self._check(TokenType.SPREAD):
                members.append(self._parse_spread())
            else:
                field = self._parse_field()
                if field.name in field_names:
                    raise ParseError(f"Cannot redeclare field '{field.name}'", field.location)
                field_names.add(field.name)
                members.append(field)
            if self._check(TokenType.COMMA):
                self._advance()
        return StructType(members, location=open_tok.location)

    def _parse_enum(self) -> EnumType:
        """Parse: enum { <value> [<struct>] ... }"""
        enum_tok = self._expect(TokenType.ENUM)
        self._expect(TokenType.LBRACE)
        enum_type = EnumType(location=enum_tok.location)
        while True:
            self._accept_annotations()
            if self._check(TokenType.RBRACE):
                self._check_no_annotations()
                self._advance()
                break
            value_tok = self._advance() if self._check(TokenType.STRING) else self._expect_name_token()
            annotations = self._take_annotations()
            struct = self._parse_struct() if self._check(TokenType.LBRACE) else None
            enum_type.values.append(EnumValue(value_tok.value, struct, annotations, location=value_tok.location))
            if self._check(TokenType.COMMA):
                self._advance()
        return enum_type


def parse(source: str, filename: str = "-") -> AstRoot:
    """Parse sdkgen source text into a raw syntax tree.

    Args:
        source: The full text of an .sdkgen file.
        filename: Path used in diagnostics and to resolve relative imports.

    Returns:
        The raw :class:`AstRoot`; references and spreads are not yet resolved.

    Raises:
        LexerError: If the source contains invalid characters or unterminated literals.
        ParseError: If the source is syntactically invalid.
    """
    return Parser(source, filename).parse()


def parse_file(path: Path) -> AstRoot:
    """Read and parse an .sdkgen file, following its imports.

    Raises:
        OSError: If *path* cannot be read.
        LexerError: If a source contains invalid characters.
        ParseError: If a source is syntactically invalid.
    """
    return parse(path.read_text(encoding="utf-8"), str(path))


# ################
# Implementation
# ################

_TYPE_START_TOKENS: tuple[TokenType, ...] = (
    TokenType.LBRACE,
    TokenType.ENUM,
    TokenType.PRIMITIVE,
    TokenType.IDENTIFIER,
    TokenType.LPAREN,
)

_STATUS_CODE_RE = re.compile(r"[0-9]+")


def _require_uppercase(tok: Token, what: str) -> None:
    if not tok.value[0].isupper():
        raise ParseError(f"{what} must start with an uppercase letter, but found '{tok.value}'", tok.location)


def _require_type_name(tok: Token) -> None:
    if not tok.value[0].isupper():
        raise ParseError(f"Expected a type but found '{tok.value}'", tok.location)


def _parse_annotation(tok: Token) -> Annotation:
    """Turn the text of an annotation token into an annotation object."""
    head, _, body = tok.value.partition(" ")
    body = body.strip()
    location = tok.location
    if head == "description":
        return DescriptionAnnotation(body, location=location)
    if head == "arg":
        arg_name, _, text = body.partition(" ")
        if not arg_name:
            raise ParseError("@arg requires an argument name", location)
        return ArgDescriptionAnnotation(arg_name, text.strip(), location=location)
    if head == "throws":
        return ThrowsAnnotation(body, location=location)
    if head == "rest":
        try:
            return parse_rest_annotation(body, location)
        except ValueError as exc:
            raise ParseError(str(exc), location) from exc
    if head == "hidden":
        if body:
            raise ParseError("@hidden annotation doesn't take any argument", location)
        return HiddenAnnotation(location=location)
    if head == "statusCode":
        if not _STATUS_CODE_RE.fullmatch(body):
            raise ParseError(f"@statusCode expects an integer, got '{body}'", location)
        return StatusCodeAnnotation(int(body), location=location)
    raise ParseError(f"Unknown annotation '{head}'", location)
