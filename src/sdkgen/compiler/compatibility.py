# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Breaking-change detection between two versions of a schema.

Both schemas must be analysed. Values flow in two directions and each has
its own rules:

* **client to server** (function arguments): the new server must accept
  everything an old client sends, so types may only widen, fields may only
  be added when optional and enum members may only be added.
* **server to client** (return values and error data): an old client must
  understand everything the new server sends, so types may only narrow,
  fields may only be removed when they were optional and enum members may
  only be removed.
"""

from __future__ import annotations

from dataclasses import dataclass

from sdkgen.model.entities import AstRoot
from sdkgen.model.types import (
    ArrayType,
    EnumType,
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


@dataclass(frozen=True)
class CompatibilityIssue:
    """A change that breaks clients built against the old schema.

    Attributes:
        path: Accessor of the affected value, e.g. ``getUser.ret.name`` or
            ``getUser.args.id``.
        message: Human-readable description of the problem and its fix.
    """

    path: str
    message: str

    def __str__(self) -> str:
        return self.message


def check_compatibility(old: AstRoot, new: AstRoot) -> list[CompatibilityIssue]:
    """List the breaking changes between two analysed schemas.

    Checks performed:

    1. Every function of *old* still exists in *new*.
    2. Return types are compatible from server to client.
    3. Arguments present in both are compatible from client to server;
       arguments added in *new* must be optional.
    4. Data types of errors present in both are compatible from server to
       client.

    Args:
        old: The schema clients were built against.
        new: The schema about to be deployed.

    Returns:
        The issues found, in the order they were detected. An empty list
        means *new* can replace *old* without breaking existing clients.
    """
    checker = _CompatibilityChecker()
    checker.check(old, new)
    return checker.issues


# ################
# Implementation
# ################

_STRING_LIKE = frozenset(
    {
        PrimitiveKind.BIGINT,
        PrimitiveKind.UUID,
        PrimitiveKind.XML,
        PrimitiveKind.DATE,
        PrimitiveKind.DATETIME,
        PrimitiveKind.CPF,
        PrimitiveKind.CNPJ,
        PrimitiveKind.HEX,
        PrimitiveKind.HTML,
        PrimitiveKind.BASE64,
        PrimitiveKind.BYTES,
        PrimitiveKind.URL,
        PrimitiveKind.EMAIL,
        PrimitiveKind.DECIMAL,
    }
)

# Kind -> kinds whose wire values are a superset of it.
_WIDER_KINDS: dict[PrimitiveKind, frozenset[PrimitiveKind]] = {
    PrimitiveKind.UINT: frozenset({PrimitiveKind.INT, PrimitiveKind.BIGINT}),
    PrimitiveKind.INT: frozenset({PrimitiveKind.FLOAT, PrimitiveKind.BIGINT}),
    PrimitiveKind.MONEY: frozenset({PrimitiveKind.INT, PrimitiveKind.UINT, PrimitiveKind.BIGINT}),
    PrimitiveKind.BYTES: frozenset({PrimitiveKind.BASE64}),
}

# Members without data are compared against this struct.
_EMPTY_STRUCT = StructType()


def _unwrap(type_: Type) -> Type:
    return type_.resolved if isinstance(type_, TypeReference) else type_


def _type_name(type_: Type) -> str:
    return _unwrap(type_).name  # type: ignore[attr-defined]


def _is_optional(type_: Type) -> bool:
    return isinstance(_unwrap(type_), OptionalType)


def _widens(narrow: Type, wide: Type) -> bool:
    """True if every wire value of *narrow* is also a valid value of *wide*."""
    if not isinstance(wide, PrimitiveType):
        return False
    if isinstance(narrow, EnumType):
        return wide.kind == PrimitiveKind.STRING and all(value.struct is None for value in narrow.values)
    if not isinstance(narrow, PrimitiveType):
        return False
    if wide.kind == PrimitiveKind.STRING and narrow.kind in _STRING_LIKE:
        return True
    return wide.kind in _WIDER_KINDS.get(narrow.kind, frozenset())


class _CompatibilityChecker:
    def __init__(self) -> None:
        self.issues: list[CompatibilityIssue] = []
        # Struct pairs already compared, per direction; stops recursive types.
        self._visited: set[tuple[str, int, int]] = set()

    def check(self, old: AstRoot, new: AstRoot) -> None:
        new_operations = {operation.name: operation for operation in new.operations}
        for old_operation in old.operations:
            name = old_operation.name
            new_operation = new_operations.get(name)
            if new_operation is None:
                self._report(name, f"Function '{name}' used to exist, but it is now missing. Add it back.")
                continue

            self._server_to_client(f"{name}.ret", old_operation.return_type, new_operation.return_type)

            old_args = {arg.name: arg for arg in old_operation.args}
            for new_arg in new_operation.args:
                path = f"{name}.args.{new_arg.name}"
                old_arg = old_args.get(new_arg.name)
                if old_arg is not None:
                    self._client_to_server(path, old_arg.type, new_arg.type)
                elif not _is_optional(new_arg.type):
                    self._report(path, f"{path} didn't exist before and isn't optional. Make it optional.")

        new_errors = {error.name: error for error in new.errors}
        for old_error in old.errors:
            new_error = new_errors.get(old_error.name)
            if new_error is not None:
                self._server_to_client(f"{old_error.name}.data", old_error.data_type, new_error.data_type)

    def _report(self, path: str, message: str) -> None:
        self.issues.append(CompatibilityIssue(path, message))

    def _first_visit(self, direction: str, old: StructType, new: StructType) -> bool:
        key = (direction, id(old), id(new))
        if key in self._visited:
            return False
        self._visited.add(key)
        return True

    def _incompatible(self, path: str, old: Type, new: Type) -> None:
        message = f"{path} was {_type_name(old)} and now it is {_type_name(new)}. They are not compatible."
        self._report(path, message)

    # -------- client to server --------

    def _client_to_server(self, path: str, old: Type, new: Type) -> None:
        old, new = _unwrap(old), _unwrap(new)

        if isinstance(new, OptionalType):
            self._client_to_server(path, old.base if isinstance(old, OptionalType) else old, new.base)
            return
        if isinstance(old, OptionalType):
            self._report(
                path,
                f"{path} was optional, but now it isn't. If the client sends a null, it will be invalid. "
                "Add the optional annotation back.",
            )
            self._client_to_server(path, old.base, new)
            return

        if isinstance(old, ArrayType) and isinstance(new, ArrayType):
            self._client_to_server(f"{path}[]", old.base, new.base)
            return

        if isinstance(old, StructType) and isinstance(new, StructType):
            if not self._first_visit("client", old, new):
                return
            old_fields = {field.name: field for field in old.fields}
            for new_field in new.fields:
                field_path = f"{path}.{new_field.name}"
                old_field = old_fields.get(new_field.name)
                if old_field is not None:
                    self._client_to_server(field_path, old_field.type, new_field.type)
                elif not _is_optional(new_field.type):
                    self._report(
                        field_path, f"{field_path} didn't exist before and isn't optional. Make it optional."
                    )
            return

        if _widens(old, new):
            return

        if isinstance(old, EnumType) and isinstance(new, EnumType):
            new_values = {value.value: value for value in new.values}
            for old_value in old.values:
                new_value = new_values.get(old_value.value)
                if new_value is None:
                    self._report(
                        path,
                        f'The enum at {path} used to accept the value "{old_value.value}" that doesn\'t exist now. '
                        "Clients that send it will fail.",
                    )
                    continue
                self._client_to_server(
                    f"{path}.{old_value.value}",
                    old_value.struct or _EMPTY_STRUCT,
                    new_value.struct or _EMPTY_STRUCT,
                )
            return

        if isinstance(old, PrimitiveType) and isinstance(new, PrimitiveType) and old.kind == new.kind:
            return
        self._incompatible(path, old, new)

    # -------- server to client --------

    def _server_to_client(self, path: str, old: Type, new: Type) -> None:
        old, new = _unwrap(old), _unwrap(new)

        if isinstance(old, OptionalType):
            self._server_to_client(path, old.base, new.base if isinstance(new, OptionalType) else new)
            return
        if isinstance(new, OptionalType):
            self._report(
                path,
                f"{path} wasn't optional, but now it is. If the client receives a null, it will crash. "
                "Remove the optional annotation.",
            )
            self._server_to_client(path, old, new.base)
            return

        if isinstance(old, ArrayType) and isinstance(new, ArrayType):
            self._server_to_client(f"{path}[]", old.base, new.base)
            return

        if isinstance(old, StructType) and isinstance(new, StructType):
            if not self._first_visit("server", old, new):
                return
            new_fields = {field.name: field for field in new.fields}
            for old_field in old.fields:
                field_path = f"{path}.{old_field.name}"
                new_field = new_fields.get(old_field.name)
                if new_field is not None:
                    self._server_to_client(field_path, old_field.type, new_field.type)
                elif not _is_optional(old_field.type):
                    self._report(
                        field_path,
                        f"{field_path} used to exist with type {_type_name(old_field.type)}, "
                        "but it's now missing. Add it back.",
                    )
            return

        if _widens(new, old):
            return

        if isinstance(old, EnumType) and isinstance(new, EnumType):
            old_values = {value.value: value for value in old.values}
            for new_value in new.values:
                old_value = old_values.get(new_value.value)
                if old_value is None:
                    self._report(
                        path,
                        f'The enum at {path} now has the value "{new_value.value}" that didn\'t exist before. '
                        "Clients will crash if they receive it.",
                    )
                    continue
                self._server_to_client(
                    f"{path}.{new_value.value}",
                    old_value.struct or _EMPTY_STRUCT,
                    new_value.struct or _EMPTY_STRUCT,
                )
            return

        if isinstance(old, PrimitiveType) and isinstance(new, PrimitiveType) and old.kind == new.kind:
            return
        self._incompatible(path, old, new)
