# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Top-level declarations of an sdkgen schema."""

from __future__ import annotations

from dataclasses import dataclass, field

from sdkgen.model.annotations import Annotation
from sdkgen.model.types import (
    AstNode,
    EnumType,
    Field,
    PrimitiveKind,
    PrimitiveType,
    Spread,
    StructType,
    Type,
)

# ###############
# Public Interface
# ###############


@dataclass(eq=False)
class TypeDefinition(AstNode):
    """A named type: ``type Name <type>``."""

    name: str
    type: Type
    annotations: list[Annotation] = field(default_factory=list)


@dataclass(eq=False)
class ErrorNode(AstNode):
    """A named error kind with an optional structured payload."""

    name: str
    data_type: Type = field(default_factory=lambda: PrimitiveType(PrimitiveKind.VOID))
    annotations: list[Annotation] = field(default_factory=list)


@dataclass(eq=False)
class FunctionOperation(AstNode):
    """An RPC operation: ``fn name(args): ReturnType``.

    Attributes:
        fields_and_spreads: Arguments as written, including spreads. Emptied
            by spread expansion, which fills *args*.
        args: The concrete argument list after analysis.
        is_getter: True when declared with the legacy ``get`` keyword.
    """

    name: str
    fields_and_spreads: list[Field | Spread] = field(default_factory=list)
    return_type: Type = field(default_factory=lambda: PrimitiveType(PrimitiveKind.VOID))
    args: list[Field] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)
    is_getter: bool = False

    @property
    def pretty_name(self) -> str:
        """Name used by client generators; legacy getters gain a ``get`` prefix."""
        if not self.is_getter:
            return self.name
        if isinstance(self.return_type, PrimitiveType) and self.return_type.kind == PrimitiveKind.BOOL:
            return self.name
        return f"get{self.name[0].upper()}{self.name[1:]}"


@dataclass(eq=False)
class AstRoot:
    """Container for everything declared by a schema and its imports.

    *struct_types* and *enum_types* are filled by semantic analysis.
    """

    type_definitions: list[TypeDefinition] = field(default_factory=list)
    operations: list[FunctionOperation] = field(default_factory=list)
    errors: list[ErrorNode] = field(default_factory=list)
    struct_types: list[StructType] = field(default_factory=list)
    enum_types: list[EnumType] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def find_type_definition(self, name: str) -> TypeDefinition | None:
        """Return the first type definition called *name*, if any."""
        for definition in self.type_definitions:
            if definition.name == name:
                return definition
        return None
