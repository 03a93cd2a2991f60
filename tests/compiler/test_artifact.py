# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the flat JSON projection and artifact files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from sdkgen.codec.encode_decode import CodecError, decode, encode
from sdkgen.compiler.artifact import (
    ARTIFACT_SUFFIX,
    ast_to_json,
    deserialize,
    json_to_ast,
    read_artifact,
    serialize,
    write_artifact,
)
from sdkgen.compiler.semantic_analysis import SemanticError, analyse
from sdkgen.model.entities import AstRoot
from sdkgen.model.types import EnumType, PrimitiveKind, StructType, TypeReference
from sdkgen.parser.parser import parse

# ###############
# Test Helpers
# ###############

_API = """
type User {
  id: uuid
  @description The display name
  name: string
  address: { street: string }?
}
type Shape enum { circle { radius: float } square }
type Id uuid
type Ids Id[]

error NotFound
error Invalid { field: string }

@description Gets a user
@arg id The user id
@throws NotFound
@rest GET /users/{id}
fn getUser(id: uuid): User
"""


def _analyse(source: str) -> AstRoot:
    root = parse(source)
    analyse(root)
    return root


def _project(source: str) -> dict[str, Any]:
    return ast_to_json(_analyse(source))


# ###############
# Projection
# ###############


class TestAstToJson:
    def test_simple_struct(self) -> None:
        data = _project("type User { id: uuid name: string }")
        assert data == {
            "annotations": {},
            "errors": ["Fatal"],
            "functionTable": {},
            "typeTable": {"User": {"id": "uuid", "name": "string"}},
        }

    def test_full_projection(self) -> None:
        data = _project(_API)
        assert data["typeTable"] == {
            "InvalidData": {"field": "string"},
            "UserAddress": {"street": "string"},
            "User": {"id": "uuid", "name": "string", "address": "UserAddress?"},
            "ShapeCircle": {"radius": "float"},
            "Shape": [["circle", "ShapeCircle"], "square"],
            "Id": "uuid",
            "Ids": "Id[]",
        }
        assert data["functionTable"] == {"getUser": {"args": {"id": "uuid"}, "ret": "User"}}
        assert data["errors"] == ["NotFound", ["Invalid", "InvalidData"], "Fatal"]

    def test_annotations(self) -> None:
        annotations = _project(_API)["annotations"]
        assert annotations["type.User.name"] == [{"type": "description", "value": "The display name"}]
        assert annotations["fn.getUser.id"] == [{"type": "description", "value": "The user id"}]
        assert annotations["fn.getUser"] == [
            {"type": "description", "value": "Gets a user"},
            {"type": "throws", "value": "NotFound"},
            {
                "type": "rest",
                "value": {
                    "bodyVariable": None,
                    "headers": [],
                    "method": "GET",
                    "path": "/users/{id}",
                    "pathVariables": ["id"],
                    "queryVariables": [],
                },
            },
        ]

    def test_rest_headers_and_query_are_sorted(self) -> None:
        data = _project(
            "@rest POST /users/{id}?{b}&{a} [header X-Z: {z}] [header X-A: {xa}] [body {user}]\n"
            "fn update(id: uuid, a: int, b: int, z: string, xa: string, user: { name: string })"
        )
        rest = data["annotations"]["fn.update"][0]["value"]
        assert rest == {
            "bodyVariable": "user",
            "headers": [["x-a", "xa"], ["x-z", "z"]],
            "method": "POST",
            "path": "/users/{id}",
            "pathVariables": ["id"],
            "queryVariables": ["a", "b"],
        }
        assert data["functionTable"]["update"]["args"]["user"] == "UpdateUser"
        assert data["functionTable"]["update"]["ret"] == "void"

    def test_hidden_and_status_code(self) -> None:
        annotations = _project("@statusCode 404\nerror NotFound\n@hidden\nfn internal()")["annotations"]
        assert annotations["error.NotFound"] == [{"type": "statusCode", "value": 404}]
        assert annotations["fn.internal"] == [{"type": "hidden", "value": None}]

    def test_nested_type_strings(self) -> None:
        data = _project("type A { values: int[]?[] }")
        assert data["typeTable"]["A"] == {"values": "int[]?[]"}

    def test_plain_enum(self) -> None:
        assert _project("type Color enum { red green }")["typeTable"]["Color"] == ["red", "green"]

    def test_duplicate_struct_names(self) -> None:
        root = AstRoot(struct_types=[StructType(name="A"), StructType(name="A")])
        with pytest.raises(ValueError, match="Duplicate struct type A"):
            ast_to_json(root)

    def test_enum_clashing_with_struct(self) -> None:
        root = AstRoot(struct_types=[StructType(name="A")], enum_types=[EnumType(name="A")])
        with pytest.raises(ValueError, match="Duplicate enum type A"):
            ast_to_json(root)


# ###############
# Reverse Transformation
# ###############


class TestJsonToAst:
    def test_round_trip_is_stable(self) -> None:
        data = _project(_API)
        assert ast_to_json(json_to_ast(data)) == data

    def test_rebuilt_tree_is_analysed(self) -> None:
        root = json_to_ast(_project(_API))
        user = root.find_type_definition("User")
        assert user is not None
        assert isinstance(user.type, StructType)
        assert [f.name for f in user.type.fields] == ["id", "name", "address"]
        address = user.type.fields[2].type.base
        assert isinstance(address, TypeReference)
        assert address.resolved is root.find_type_definition("UserAddress").type

    def test_enum_struct_is_linked(self) -> None:
        root = json_to_ast(_project(_API))
        shape = root.find_type_definition("Shape").type
        assert isinstance(shape, EnumType)
        assert shape.values[0].struct is root.find_type_definition("ShapeCircle").type
        assert shape.values[1].struct is None

    def test_error_payload(self) -> None:
        root = json_to_ast(_project(_API))
        invalid = root.errors[1]
        assert invalid.name == "Invalid"
        assert isinstance(invalid.data_type.resolved, StructType)

    def test_argument_descriptions_are_restored(self) -> None:
        root = json_to_ast(_project(_API))
        arg = root.operations[0].args[0]
        assert arg.annotations[0].text == "The user id"

    def test_empty_document(self) -> None:
        root = json_to_ast({})
        assert [e.name for e in root.errors] == ["Fatal"]
        assert root.type_definitions == []

    def test_primitive_alias(self) -> None:
        root = json_to_ast({"typeTable": {"Id": "uuid"}})
        assert root.find_type_definition("Id").type.kind == PrimitiveKind.UUID

    @pytest.mark.parametrize(
        "data",
        [
            {"typeTable": []},
            {"functionTable": {"f": {"args": {}}}},
            {"errors": [["A"]]},
            {"annotations": {"fn.f": [{"type": "unknown", "value": 1}]}},
            {"version": 1},
        ],
    )
    def test_malformed_document(self, data: dict[str, Any]) -> None:
        with pytest.raises(ValueError):
            json_to_ast(data)

    def test_unknown_type_reference(self) -> None:
        with pytest.raises(SemanticError, match="Could not find type 'Missing'"):
            json_to_ast({"typeTable": {"A": {"x": "Missing"}}})


# ###############
# Serialization and Files
# ###############


class TestSerialization:
    def test_compact_json(self) -> None:
        text = serialize(_analyse("type A { x: int }"))
        assert text.startswith('{"annotations":')
        assert " " not in text
        assert json.loads(text)["typeTable"] == {"A": {"x": "int"}}

    def test_deserialize(self) -> None:
        text = serialize(_analyse(_API))
        assert ast_to_json(deserialize(text)) == json.loads(text)

    def test_deserialize_invalid_json(self) -> None:
        with pytest.raises(ValueError):
            deserialize("{not json")

    def test_write_and_read_artifact(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / f"api{ARTIFACT_SUFFIX}"
        root = _analyse(_API)
        write_artifact(root, path)
        assert path.exists()
        assert ast_to_json(read_artifact(path)) == ast_to_json(root)

    def test_read_missing_artifact(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            read_artifact(tmp_path / f"missing{ARTIFACT_SUFFIX}")


# ###############
# Runtime Tables
# ###############


class TestTablesDriveCodec:
    def test_optional_alias_argument_accepts_null(self) -> None:
        """An argument typed with an alias of an optional may be null at runtime."""
        tables = _project("type MaybeInt int?\nfn f(x: MaybeInt)")
        assert tables["typeTable"]["MaybeInt"] == "int?"
        arg_type = tables["functionTable"]["f"]["args"]["x"]
        assert decode(tables["typeTable"], "f.args.x", arg_type, None) is None
        assert encode(tables["typeTable"], "f.args.x", arg_type, None) is None
        assert decode(tables["typeTable"], "f.args.x", arg_type, 7) == 7

    def test_required_alias_argument_rejects_null(self) -> None:
        tables = _project("type Id uuid\nfn f(id: Id)")
        arg_type = tables["functionTable"]["f"]["args"]["id"]
        with pytest.raises(CodecError, match="Invalid type at 'f.args.id', cannot be null"):
            decode(tables["typeTable"], "f.args.id", arg_type, None)
