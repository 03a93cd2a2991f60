# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for breaking-change detection between schema versions."""

from __future__ import annotations

import pytest

from sdkgen.compiler.compatibility import CompatibilityIssue, check_compatibility
from sdkgen.compiler.semantic_analysis import analyse
from sdkgen.model.entities import AstRoot
from sdkgen.parser.parser import parse

# ###############
# Test Helpers
# ###############


def _analyse(source: str) -> AstRoot:
    root = parse(source)
    analyse(root)
    return root


def _issues(old: str, new: str) -> list[str]:
    """Return the issue messages found when replacing *old* with *new*."""
    return [str(issue) for issue in check_compatibility(_analyse(old), _analyse(new))]


def _paths(old: str, new: str) -> list[str]:
    return [issue.path for issue in check_compatibility(_analyse(old), _analyse(new))]


# ###############
# Functions
# ###############


class TestFunctions:
    def test_identical_schemas(self) -> None:
        source = "type User { id: uuid\n name: string? }\nfn getUser(id: uuid): User\nerror NotFound"
        assert _issues(source, source) == []

    def test_removed_function(self) -> None:
        assert _issues("fn a()\nfn b()", "fn a()") == [
            "Function 'b' used to exist, but it is now missing. Add it back."
        ]

    def test_added_function_is_compatible(self) -> None:
        assert _issues("fn a()", "fn a()\nfn b(x: int): string") == []

    def test_new_required_argument(self) -> None:
        assert _issues("fn f()", "fn f(x: int)") == [
            "f.args.x didn't exist before and isn't optional. Make it optional."
        ]

    def test_new_optional_argument(self) -> None:
        assert _issues("fn f()", "fn f(x: int?)") == []

    def test_new_argument_with_optional_alias(self) -> None:
        assert _issues("fn f()", "type MaybeInt int?\nfn f(x: MaybeInt)") == []

    def test_removed_argument_is_compatible(self) -> None:
        """Old clients keep sending it; the server ignores unknown arguments."""
        assert _issues("fn f(x: int)", "fn f()") == []

    def test_returns_issue_objects(self) -> None:
        issues = check_compatibility(_analyse("fn f(): int"), _analyse("fn f(): string"))
        assert issues == [CompatibilityIssue("f.ret", "f.ret was int and now it is string. They are not compatible.")]


# ###############
# Client to Server
# ###############


class TestArguments:
    @pytest.mark.parametrize(
        "old,new",
        [
            ("uint", "int"),
            ("int", "float"),
            ("int", "bigint"),
            ("money", "uint"),
            ("uuid", "string"),
            ("datetime", "string"),
            ("bytes", "base64"),
            ("decimal", "string"),
            ("int[]", "float[]"),
        ],
    )
    def test_widening_is_compatible(self, old: str, new: str) -> None:
        assert _issues(f"fn f(x: {old})", f"fn f(x: {new})") == []

    @pytest.mark.parametrize("old,new", [("float", "int"), ("string", "uuid"), ("int", "uint"), ("bool", "int")])
    def test_narrowing_is_breaking(self, old: str, new: str) -> None:
        assert _issues(f"fn f(x: {old})", f"fn f(x: {new})") == [
            f"f.args.x was {old} and now it is {new}. They are not compatible."
        ]

    def test_array_element_path(self) -> None:
        assert _paths("fn f(x: float[])", "fn f(x: int[])") == ["f.args.x[]"]

    def test_becoming_optional_is_compatible(self) -> None:
        assert _issues("fn f(x: int)", "fn f(x: int?)") == []

    def test_becoming_required_is_breaking(self) -> None:
        issues = _issues("fn f(x: int?)", "fn f(x: int)")
        assert len(issues) == 1
        assert issues[0].startswith("f.args.x was optional, but now it isn't.")

    def test_new_required_struct_field(self) -> None:
        old = "type In { a: int }\nfn f(x: In)"
        new = "type In { a: int\n b: string }\nfn f(x: In)"
        assert _issues(old, new) == ["f.args.x.b didn't exist before and isn't optional. Make it optional."]

    def test_new_optional_struct_field(self) -> None:
        assert _issues("type In { a: int }\nfn f(x: In)", "type In { a: int\n b: string? }\nfn f(x: In)") == []

    def test_removed_enum_value(self) -> None:
        old = "type Color enum { red green }\nfn f(c: Color)"
        new = "type Color enum { red }\nfn f(c: Color)"
        assert _issues(old, new) == [
            'The enum at f.args.c used to accept the value "green" that doesn\'t exist now. '
            "Clients that send it will fail."
        ]

    def test_added_enum_value(self) -> None:
        assert _issues("type Color enum { red }\nfn f(c: Color)", "type Color enum { red green }\nfn f(c: Color)") == []

    def test_enum_to_string(self) -> None:
        assert _issues("type Color enum { red green }\nfn f(c: Color)", "fn f(c: string)") == []

    def test_string_to_enum_is_breaking(self) -> None:
        assert _paths("fn f(c: string)", "type Color enum { red }\nfn f(c: Color)") == ["f.args.c"]


# ###############
# Server to Client
# ###############


class TestReturnValues:
    @pytest.mark.parametrize("old,new", [("int", "uint"), ("float", "int"), ("string", "uuid"), ("base64", "bytes")])
    def test_narrowing_is_compatible(self, old: str, new: str) -> None:
        assert _issues(f"fn f(): {old}", f"fn f(): {new}") == []

    def test_widening_is_breaking(self) -> None:
        assert _issues("fn f(): int", "fn f(): float") == [
            "f.ret was int and now it is float. They are not compatible."
        ]

    def test_becoming_optional_is_breaking(self) -> None:
        issues = _issues("fn f(): int", "fn f(): int?")
        assert len(issues) == 1
        assert issues[0].startswith("f.ret wasn't optional, but now it is.")

    def test_becoming_required_is_compatible(self) -> None:
        assert _issues("fn f(): int?", "fn f(): int") == []

    def test_removed_struct_field(self) -> None:
        old = "type Out { a: int\n b: string }\nfn f(): Out"
        new = "type Out { a: int }\nfn f(): Out"
        assert _issues(old, new) == ["f.ret.b used to exist with type string, but it's now missing. Add it back."]

    def test_removed_optional_struct_field(self) -> None:
        assert _issues("type Out { a: int\n b: string? }\nfn f(): Out", "type Out { a: int }\nfn f(): Out") == []

    def test_added_struct_field(self) -> None:
        assert _issues("type Out { a: int }\nfn f(): Out", "type Out { a: int\n b: string }\nfn f(): Out") == []

    def test_added_enum_value(self) -> None:
        old = "type Color enum { red }\nfn f(): Color"
        new = "type Color enum { red green }\nfn f(): Color"
        assert _issues(old, new) == [
            'The enum at f.ret now has the value "green" that didn\'t exist before. '
            "Clients will crash if they receive it."
        ]

    def test_removed_enum_value(self) -> None:
        assert _issues("type Color enum { red green }\nfn f(): Color", "type Color enum { red }\nfn f(): Color") == []

    def test_enum_member_data_is_compared(self) -> None:
        old = "type Shape enum { circle { radius: float\n label: string } square }\nfn f(): Shape"
        new = "type Shape enum { circle { radius: float } square }\nfn f(): Shape"
        assert _paths(old, new) == ["f.ret.circle.label"]

    def test_error_data(self) -> None:
        assert _paths("error Invalid string\nfn f()", "error Invalid int\nfn f()") == ["Invalid.data"]

    def test_removed_error_is_compatible(self) -> None:
        assert _issues("error Invalid\nfn f()", "fn f()") == []


# ###############
# Named and Recursive Types
# ###############


class TestTypeGraph:
    def test_aliases_are_followed(self) -> None:
        assert _issues("fn f(): int", "type Count int\nfn f(): Count") == []
        assert _issues("type Count int\nfn f(x: Count)", "fn f(x: float)") == []

    def test_recursive_types_terminate(self) -> None:
        old = "type Node { value: int\n next: Node? }\nfn f(n: Node): Node"
        new = "type Node { value: int\n next: Node? }\nfn f(n: Node): Node"
        assert _issues(old, new) == []

    def test_change_inside_recursive_type(self) -> None:
        old = "type Node { value: int\n next: Node? }\nfn f(): Node"
        new = "type Node { value: float\n next: Node? }\nfn f(): Node"
        assert _paths(old, new) == ["f.ret.value"]

    def test_renamed_struct_with_same_shape(self) -> None:
        assert _issues("type A { x: int }\nfn f(): A", "type B { x: int }\nfn f(): B") == []
