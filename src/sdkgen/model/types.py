# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Type system representations for the sdkgen abstract syntax tree.

Type nodes are mutable while the semantic passes run: references get bound
to their definitions, anonymous structs and enums receive names and spreads
are expanded into concrete fields. Nodes therefore compare by identity; use
:meth:`Type.is_equal` for structural comparison.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sdkgen.model.annotations import Annotation

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class TokenLocation:
    """A position inside an IDL source file.

    Attributes:
        filename: Path of the source file, or ``"-"`` for in-memory sources.
        line: 1-based line number.
        column: 1-based column number.
    """

    filename: str = "-"
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


class PrimitiveKind(Enum):
    """Built-in scalar types of the IDL."""

    STRING = "string"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    BIGINT = "bigint"
    BOOL = "bool"
    BYTES = "bytes"
    MONEY = "money"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
    CPF = "cpf"
    CNPJ = "cnpj"
    EMAIL = "email"
    HTML = "html"
    URL = "url"
    UUID = "uuid"
    HEX = "hex"
    BASE64 = "base64"
    XML = "xml"
    JSON = "json"
    VOID = "void"


PRIMITIVE_NAMES: frozenset[str] = frozenset(kind.value for kind in PrimitiveKind)


@dataclass(eq=False)
class AstNode:
    """Base class of every node in the syntax tree."""

    location: TokenLocation = field(default_factory=TokenLocation, kw_only=True, repr=False)


@dataclass(eq=False)
class Type(AstNode):
    """Base class of all type expressions."""

    def is_equal(self, other: Type) -> bool:
        """Return True if *other* describes the same type, ignoring locations."""
        raise NotImplementedError


@dataclass(eq=False)
class PrimitiveType(Type):
    """One of the built-in scalar types."""

    kind: PrimitiveKind

    @property
    def name(self) -> str:
        return self.kind.value

    def is_equal(self, other: Type) -> bool:
        return isinstance(other, PrimitiveType) and other.kind == self.kind


@dataclass(eq=False)
class OptionalType(Type):
    """A type whose values may also be null (``base?``)."""

    base: Type

    @property
    def name(self) -> str:
        return f"{self.base.name}?"

    def is_equal(self, other: Type) -> bool:
        return isinstance(other, OptionalType) and self.base.is_equal(other.base)


@dataclass(eq=False)
class ArrayType(Type):
    """An ordered list of values of the base type (``base[]``)."""

    base: Type

    @property
    def name(self) -> str:
        return f"{self.base.name}[]"

    def is_equal(self, other: Type) -> bool:
        return isinstance(other, ArrayType) and self.base.is_equal(other.base)


@dataclass(eq=False)
class Field(AstNode):
    """A named member of a struct or an argument of an operation."""

    name: str
    type: Type
    secret: bool = False
    annotations: list[Annotation] = field(default_factory=list)

    def is_equal(self, other: Field) -> bool:
        return (
            self.name == other.name
            and self.secret == other.secret
            and self.annotations == other.annotations
            and self.type.is_equal(other.type)
        )


@dataclass(eq=False)
class Spread(AstNode):
    """A ``...Name`` placeholder that inlines all fields of another struct."""

    type_reference: TypeReference

    def is_equal(self, other: Spread) -> bool:
        return self.type_reference.is_equal(other.type_reference)


@dataclass(eq=False)
class StructType(Type):
    """A record of named fields.

    The parser fills *fields_and_spreads*; spread expansion moves the
    resulting concrete fields into *fields* and empties the former.
    """

    fields_and_spreads: list[Field | Spread] = field(default_factory=list)
    fields: list[Field] = field(default_factory=list)
    name: str = ""

    def is_equal(self, other: Type) -> bool:
        return (
            isinstance(other, StructType)
            and _members_equal(self.fields, other.fields)
            and _members_equal(self.fields_and_spreads, other.fields_and_spreads)
        )


@dataclass(eq=False)
class EnumValue(AstNode):
    """A member of an enum, optionally carrying associated struct data."""

    value: str
    struct: StructType | None = None
    annotations: list[Annotation] = field(default_factory=list)

    def is_equal(self, other: EnumValue) -> bool:
        if self.value != other.value or self.annotations != other.annotations:
            return False
        if self.struct is None or other.struct is None:
            return self.struct is other.struct
        return self.struct.is_equal(other.struct)


@dataclass(eq=False)
class EnumType(Type):
    """A closed set of string members."""

    values: list[EnumValue] = field(default_factory=list)
    name: str = ""

    def is_equal(self, other: Type) -> bool:
        return isinstance(other, EnumType) and _members_equal(self.values, other.values)


@dataclass(eq=False)
class TypeReference(Type):
    """A use of a named type; *type* is bound during semantic analysis."""

    name: str
    type: Type | None = field(default=None, repr=False)

    @property
    def resolved(self) -> Type:
        """Follow the chain of references to the first non-reference type.

        Raises:
            ValueError: If the reference is still unbound or the chain loops.
        """
        seen: set[int] = set()
        current: Type = self
        while isinstance(current, TypeReference):
            if id(current) in seen:
                raise ValueError(f"Type '{self.name}' is an alias cycle")
            seen.add(id(current))
            if current.type is None:
                raise ValueError(f"Type reference '{current.name}' is not resolved")
            current = current.type
        return current

    def is_equal(self, other: Type) -> bool:
        return isinstance(other, TypeReference) and other.name == self.name


# ################
# Implementation
# ################


def _members_equal(left: list, right: list) -> bool:
    """Compare two member lists element-wise with ``is_equal``."""
    if len(left) != len(right):
        return False
    for a, b in zip(left, right):
        if type(a) is not type(b) or not a.is_equal(b):
            return False
    return True
