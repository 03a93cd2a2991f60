# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Flat JSON projection of an analysed schema.

The projection is the contract shared with code generators and runtimes::

    {
      "annotations": {"fn.getUser": [{"type": "description", "value": "..."}]},
      "errors": ["Fatal", ["NotFound", "NotFoundData"]],
      "functionTable": {"getUser": {"args": {"id": "uuid"}, "ret": "User"}},
      "typeTable": {"User": {"id": "uuid", "name": "string"}}
    }

Named types are referenced by name; the reverse transformation rebuilds a
tree and analyses it again. Artifacts are stored as compact JSON files.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict
from pydantic import Field as _Field

from sdkgen.compiler.semantic_analysis import analyse
from sdkgen.model.annotations import (
    Annotation,
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
    EnumType,
    EnumValue,
    Field,
    OptionalType,
    PrimitiveKind,
    PrimitiveType,
    StructType,
    Type,
    TypeReference,
)

# ###############
# Public Interface
# ###############

ARTIFACT_SUFFIX = ".sdkgen.json"

# A type string ("int[]?", "User"), the members of an enum, or the fields of a struct.
TypeDescription = str | list[str | tuple[str, str]] | dict[str, str]


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class DescriptionJson(_WireModel):
    type: Literal["description"] = "description"
    value: str


class ThrowsJson(_WireModel):
    type: Literal["throws"] = "throws"
    value: str


class HiddenJson(_WireModel):
    type: Literal["hidden"] = "hidden"
    value: None = None


class StatusCodeJson(_WireModel):
    type: Literal["statusCode"] = "statusCode"
    value: int


class RestValueJson(_WireModel):
    body_variable: str | None = _Field(alias="bodyVariable")
    headers: list[tuple[str, str]]
    method: str
    path: str
    path_variables: list[str] = _Field(alias="pathVariables")
    query_variables: list[str] = _Field(alias="queryVariables")


class RestJson(_WireModel):
    type: Literal["rest"] = "rest"
    value: RestValueJson


AnnotationJson = Annotated[
    DescriptionJson | ThrowsJson | HiddenJson | StatusCodeJson | RestJson,
    _Field(discriminator="type"),
]


class FunctionDescription(_WireModel):
    args: dict[str, str]
    ret: str


class AstJson(_WireModel):
    """The whole flat projection, validated on the way in and out."""

    annotations: dict[str, list[AnnotationJson]] = _Field(default_factory=dict)
    errors: list[str | tuple[str, str]] = _Field(default_factory=list)
    function_table: dict[str, FunctionDescription] = _Field(default_factory=dict, alias="functionTable")
    type_table: dict[str, TypeDescription] = _Field(default_factory=dict, alias="typeTable")


def ast_to_json(root: AstRoot) -> dict[str, Any]:
    """Project an analysed tree onto its flat JSON form.

    Args:
        root: A tree that went through :func:`analyse`.

    Returns:
        A JSON-compatible dict with the keys ``annotations``, ``errors``,
        ``functionTable`` and ``typeTable``.

    Raises:
        ValueError: If two structs or enums share a name.
    """
    return _build_ast_json(root).model_dump(mode="json", by_alias=True)


def json_to_ast(data: dict[str, Any]) -> AstRoot:
    """Rebuild and analyse a tree from its flat JSON form.

    Args:
        data: A dict as produced by :func:`ast_to_json`.

    Returns:
        The analysed :class:`AstRoot`.

    Raises:
        ValueError: If *data* does not have the expected shape.
        SemanticError: If the described schema is not valid.
    """
    document = AstJson.model_validate(data)
    return _AstBuilder(document).build()


def serialize(root: AstRoot) -> str:
    """Serialize an analysed tree to a compact JSON string."""
    return json.dumps(ast_to_json(root), separators=(",", ":"))


def deserialize(data: str) -> AstRoot:
    """Deserialize a tree from a JSON string produced by :func:`serialize`.

    Raises:
        ValueError: If *data* is not valid JSON or has the wrong shape.
    """
    return json_to_ast(json.loads(data))


def write_artifact(root: AstRoot, path: Path) -> None:
    """Write a compiled artifact to *path*, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(serialize(root), encoding="utf-8")


def read_artifact(path: Path) -> AstRoot:
    """Read and deserialize a compiled artifact from *path*."""
    return deserialize(path.read_text(encoding="utf-8"))


# ################
# Implementation
# ################


def _type_string(type_: Type) -> str:
    if isinstance(type_, ArrayType):
        return f"{_type_string(type_.base)}[]"
    if isinstance(type_, OptionalType):
        return f"{_type_string(type_.base)}?"
    return type_.name  # type: ignore[attr-defined]


def _annotation_to_json(annotation: Annotation) -> AnnotationJson:
    if isinstance(annotation, DescriptionAnnotation):
        return DescriptionJson(value=annotation.text)
    if isinstance(annotation, ThrowsAnnotation):
        return ThrowsJson(value=annotation.error)
    if isinstance(annotation, HiddenAnnotation):
        return HiddenJson()
    if isinstance(annotation, StatusCodeAnnotation):
        return StatusCodeJson(value=annotation.status_code)
    if isinstance(annotation, RestAnnotation):
        return RestJson(
            value=RestValueJson(
                body_variable=annotation.body_variable,
                headers=sorted(annotation.headers),
                method=annotation.method,
                path=annotation.path,
                path_variables=list(annotation.path_variables),
                query_variables=sorted(annotation.query_variables),
            )
        )
    raise ValueError(f"Annotation {type(annotation).__name__} has no JSON form")


def _annotation_from_json(annotation: AnnotationJson) -> Annotation:
    if isinstance(annotation, DescriptionJson):
        return DescriptionAnnotation(annotation.value)
    if isinstance(annotation, ThrowsJson):
        return ThrowsAnnotation(annotation.value)
    if isinstance(annotation, HiddenJson):
        return HiddenAnnotation()
    if isinstance(annotation, StatusCodeJson):
        return StatusCodeAnnotation(annotation.value)
    rest = annotation.value
    return RestAnnotation(
        method=rest.method,
        path=rest.path,
        path_variables=tuple(rest.path_variables),
        query_variables=tuple(rest.query_variables),
        headers=tuple(rest.headers),
        body_variable=rest.body_variable,
    )


def _build_ast_json(root: AstRoot) -> AstJson:
    annotations: dict[str, list[AnnotationJson]] = {}
    type_table: dict[str, TypeDescription] = {}

    def add(target: str, annotation: Annotation) -> None:
        annotations.setdefault(target, []).append(_annotation_to_json(annotation))

    for struct in root.struct_types:
        if struct.name in type_table:
            raise ValueError(f"Duplicate struct type {struct.name}")
        fields: dict[str, str] = {}
        for field in struct.fields:
            fields[field.name] = _type_string(field.type)
            for annotation in field.annotations:
                if isinstance(annotation, DescriptionAnnotation):
                    add(f"type.{struct.name}.{field.name}", annotation)
        type_table[struct.name] = fields

    for enum in root.enum_types:
        if enum.name in type_table:
            raise ValueError(f"Duplicate enum type {enum.name}")
        type_table[enum.name] = [v.value if v.struct is None else (v.value, v.struct.name) for v in enum.values]

    for definition in root.type_definitions:
        if not isinstance(definition.type, (StructType, EnumType)):
            type_table[definition.name] = _type_string(definition.type)

    function_table: dict[str, FunctionDescription] = {}
    for operation in root.operations:
        args: dict[str, str] = {}
        for arg in operation.args:
            args[arg.name] = _type_string(arg.type)
            for annotation in arg.annotations:
                if isinstance(annotation, DescriptionAnnotation):
                    add(f"fn.{operation.name}.{arg.name}", annotation)
        function_table[operation.name] = FunctionDescription(args=args, ret=_type_string(operation.return_type))
        for annotation in operation.annotations:
            add(f"fn.{operation.name}", annotation)

    errors: list[str | tuple[str, str]] = []
    for error in root.errors:
        is_void = isinstance(error.data_type, PrimitiveType) and error.data_type.kind == PrimitiveKind.VOID
        errors.append(error.name if is_void else (error.name, _type_string(error.data_type)))
        for annotation in error.annotations:
            add(f"error.{error.name}", annotation)

    return AstJson(annotations=annotations, errors=errors, function_table=function_table, type_table=type_table)


class _AstBuilder:
    """Rebuilds a tree from an :class:`AstJson` document."""

    def __init__(self, document: AstJson) -> None:
        self._document = document
        self._pending_enum_structs: list[tuple[EnumValue, str]] = []

    def build(self) -> AstRoot:
        document = self._document
        type_definitions = [
            TypeDefinition(name, self._process_type(description, name))
            for name, description in document.type_table.items()
        ]

        operations: list[FunctionOperation] = []
        for name, function in document.function_table.items():
            args = [
                Field(arg_name, self._process_type(description), annotations=self._annotations(f"fn.{name}.{arg_name}"))
                for arg_name, description in function.args.items()
            ]
            operations.append(
                FunctionOperation(
                    name,
                    return_type=self._process_type(function.ret),
                    args=args,
                    annotations=self._annotations(f"fn.{name}"),
                )
            )

        structs_by_name = {d.name: d.type for d in type_definitions if isinstance(d.type, StructType)}
        for value, struct_name in self._pending_enum_structs:
            value.struct = structs_by_name.get(struct_name)

        errors: list[ErrorNode] = []
        for error in document.errors:
            if isinstance(error, str):
                node = ErrorNode(error)
            else:
                node = ErrorNode(error[0], self._process_type(error[1]))
            node.annotations = self._annotations(f"error.{node.name}")
            errors.append(node)

        root = AstRoot(type_definitions=type_definitions, operations=operations, errors=errors)
        analyse(root)
        return root

    def _annotations(self, target: str) -> list[Annotation]:
        return [_annotation_from_json(a) for a in self._document.annotations.get(target, [])]

    def _process_type(self, description: TypeDescription, type_name: str | None = None) -> Type:
        if isinstance(description, str):
            if description in PRIMITIVE_NAMES:
                return PrimitiveType(PrimitiveKind(description))
            if description.endswith("?"):
                return OptionalType(self._process_type(description[:-1]))
            if description.endswith("[]"):
                return ArrayType(self._process_type(description[:-2]))
            return TypeReference(description)

        if isinstance(description, list):
            enum = EnumType()
            for member in description:
                if isinstance(member, str):
                    enum.values.append(EnumValue(member))
                else:
                    value = EnumValue(member[0])
                    self._pending_enum_structs.append((value, member[1]))
                    enum.values.append(value)
            return enum

        fields = [
            Field(
                field_name,
                self._process_type(field_description),
                annotations=self._annotations(f"type.{type_name}.{field_name}") if type_name else [],
            )
            for field_name, field_description in description.items()
        ]
        return StructType(fields=fields)
