# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Abstract syntax tree for sdkgen schemas (types, operations, errors)."""

from sdkgen.model.annotations import (
    Annotation,
    ArgDescriptionAnnotation,
    DescriptionAnnotation,
    HiddenAnnotation,
    RestAnnotation,
    StatusCodeAnnotation,
    ThrowsAnnotation,
)
from sdkgen.model.entities import AstRoot, ErrorNode, FunctionOperation, TypeDefinition
from sdkgen.model.types import (
    PRIMITIVE_NAMES,
    ArrayType,
    AstNode,
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

__all__ = [
    # Type system
    "TokenLocation",
    "AstNode",
    "PrimitiveKind",
    "PRIMITIVE_NAMES",
    "Type",
    "PrimitiveType",
    "OptionalType",
    "ArrayType",
    "StructType",
    "EnumType",
    "EnumValue",
    "TypeReference",
    "Field",
    "Spread",
    # Annotations
    "Annotation",
    "DescriptionAnnotation",
    "ArgDescriptionAnnotation",
    "ThrowsAnnotation",
    "HiddenAnnotation",
    "StatusCodeAnnotation",
    "RestAnnotation",
    # Declarations
    "TypeDefinition",
    "ErrorNode",
    "FunctionOperation",
    "AstRoot",
]
