# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Semantic analysis for parsed sdkgen schemas.

Turns the raw tree produced by the parser into a resolved, validated tree.
The work is split into passes that run strictly in order, each either a
read-only visitor or a transformer that rewrites nodes in place:

1. duplicate type declarations
2. names for anonymous structs and enums
3. binding of type references to their definitions
4. secret fields reachable from return types
5. spread expansion
6. empty structs and enums
7. recursive types without struct indirection
8. collection of every struct and enum
9. annotation targets and payloads
10. duplicated enum members

The first violation aborts the analysis.
"""

from __future__ import annotations

from typing import TypeVar

from sdkgen.model.annotations import (
    Annotation,
    DescriptionAnnotation,
    HiddenAnnotation,
    RestAnnotation,
    StatusCodeAnnotation,
    ThrowsAnnotation,
    annotation_keyword,
)
from sdkgen.model.entities import AstRoot, ErrorNode, FunctionOperation, TypeDefinition
from sdkgen.model.types import (
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
    Type,
    TypeReference,
)

# ###############
# Public Interface
# ###############

FATAL_ERROR_NAME = "Fatal"


class SemanticError(Exception):
    """Raised when a syntactically valid schema violates a semantic rule.

    The message names the offending declaration and its source location.
    """


def analyse(root: AstRoot) -> None:
    """Resolve and validate a parsed schema in place.

    Injects the ``Fatal`` error when it is not declared, then runs every
    pass in order. On success all type references are bound, spreads are
    expanded into concrete fields and ``root.struct_types`` /
    ``root.enum_types`` list every struct and enum.

    Args:
        root: The raw tree returned by the parser. It is mutated.

    Raises:
        SemanticError: On the first violation found. The tree must then be
            treated as invalid.
    """
    if not any(error.name == FATAL_ERROR_NAME for error in root.errors):
        root.errors.append(ErrorNode(FATAL_ERROR_NAME, PrimitiveType(PrimitiveKind.VOID)))

    for pass_class in _PASSES:
        pass_class(root).process()


# ################
# Implementation
# ################

_NodeT = TypeVar("_NodeT", bound=AstNode)


class _Visitor:
    """Read-only walk over errors, type definitions and operations.

    Subclasses override :meth:`visit` and call ``super().visit(node)`` to
    descend. Type references are not followed.
    """

    def __init__(self, root: AstRoot) -> None:
        self.root = root

    def process(self) -> None:
        for error in self.root.errors:
            self.visit(error)
        for definition in self.root.type_definitions:
            self.visit(definition)
        for operation in self.root.operations:
            self.visit(operation)

    def visit(self, node: AstNode) -> None:
        if isinstance(node, FunctionOperation):
            for member in node.fields_and_spreads:
                self.visit(member)
            for arg in node.args:
                self.visit(arg)
            self.visit(node.return_type)
        elif isinstance(node, (Field, TypeDefinition)):
            self.visit(node.type)
        elif isinstance(node, StructType):
            for member in node.fields_and_spreads:
                self.visit(member)
            for field in node.fields:
                self.visit(field)
        elif isinstance(node, EnumType):
            for value in node.values:
                self.visit(value)
        elif isinstance(node, EnumValue):
            if node.struct is not None:
                self.visit(node.struct)
        elif isinstance(node, (ArrayType, OptionalType)):
            self.visit(node.base)
        elif isinstance(node, ErrorNode):
            self.visit(node.data_type)
        elif isinstance(node, Spread):
            self.visit(node.type_reference)


class _Transformer:
    """Walk that may replace any node with the value returned by :meth:`transform`."""

    def __init__(self, root: AstRoot) -> None:
        self.root = root

    def process(self) -> None:
        self.root.errors = [self.transform(error) for error in self.root.errors]
        self.root.type_definitions = [self.transform(d) for d in self.root.type_definitions]
        self.root.operations = [self.transform(op) for op in self.root.operations]

    def transform(self, node: _NodeT) -> _NodeT:
        if isinstance(node, FunctionOperation):
            node.fields_and_spreads = [self.transform(m) for m in node.fields_and_spreads]
            node.args = [self.transform(arg) for arg in node.args]
            node.return_type = self.transform(node.return_type)
        elif isinstance(node, (Field, TypeDefinition)):
            node.type = self.transform(node.type)
        elif isinstance(node, StructType):
            node.fields_and_spreads = [self.transform(m) for m in node.fields_and_spreads]
            node.fields = [self.transform(field) for field in node.fields]
        elif isinstance(node, EnumType):
            node.values = [self.transform(value) for value in node.values]
        elif isinstance(node, EnumValue):
            if node.struct is not None:
                node.struct = self.transform(node.struct)
        elif isinstance(node, (ArrayType, OptionalType)):
            node.base = self.transform(node.base)
        elif isinstance(node, ErrorNode):
            node.data_type = self.transform(node.data_type)
        elif isinstance(node, Spread):
            node.type_reference = self.transform(node.type_reference)
        return node


# ------------------------------------------------------------------
# 1. Duplicate declarations
# ------------------------------------------------------------------


class _CheckMultipleDeclaration(_Visitor):
    def __init__(self, root: AstRoot) -> None:
        super().__init__(root)
        self._definitions: dict[str, TypeDefinition] = {}

    def visit(self, node: AstNode) -> None:
        if isinstance(node, TypeDefinition):
            previous = self._definitions.get(node.name)
            if previous is not None and not previous.type.is_equal(node.type):
                raise SemanticError(
                    f"Type '{node.name}' at {node.location} is defined multiple times (also at {previous.location})"
                )
            self._definitions.setdefault(node.name, node)
            return
        super().visit(node)


# ------------------------------------------------------------------
# 2. Names for anonymous structs and enums
# ------------------------------------------------------------------


class _GiveStructAndEnumNames(_Transformer):
    """Name each struct and enum after the path of declarations leading to it.

    ``type User { address: { ... } }`` names the inner struct
    ``UserAddress``; error payloads use ``<Error>Data``. A name already
    given to an identical type reuses that node.
    """

    def __init__(self, root: AstRoot) -> None:
        super().__init__(root)
        self._path: list[str] = []
        self._names: dict[str, tuple[StructType | EnumType, list[str]]] = {}

    def transform(self, node: _NodeT) -> _NodeT:
        if isinstance(node, (TypeDefinition, FunctionOperation)):
            self._path = [node.name]
            return super().transform(node)
        if isinstance(node, ErrorNode):
            self._path = [f"{node.name}Data"]
            return super().transform(node)
        if isinstance(node, (Field, EnumValue)):
            self._path.append(node.name if isinstance(node, Field) else node.value)
            try:
                return super().transform(node)
            finally:
                self._path.pop()
        if isinstance(node, (StructType, EnumType)):
            node.name = "".join(segment[:1].upper() + segment[1:] for segment in self._path)
            previous = self._names.get(node.name)
            if previous is not None:
                previous_type, previous_path = previous
                if type(previous_type) is not type(node) or not previous_type.is_equal(node):
                    raise SemanticError(
                        f"The name of the type '{'.'.join(self._path)}' at {node.location} will conflict with "
                        f"'{'.'.join(previous_path)}' at {previous_type.location}"
                    )
                return previous_type
            self._names[node.name] = (node, list(self._path))
            return super().transform(node)
        return super().transform(node)


# ------------------------------------------------------------------
# 3. Type reference binding
# ------------------------------------------------------------------


class _MatchTypeDefinitions(_Visitor):
    def visit(self, node: AstNode) -> None:
        if isinstance(node, TypeReference):
            definition = self.root.find_type_definition(node.name)
            if definition is None:
                raise SemanticError(f"Could not find type '{node.name}' at {node.location}")
            node.type = definition.type
        super().visit(node)


# ------------------------------------------------------------------
# 4. Secret fields in return types
# ------------------------------------------------------------------


class _CheckDontReturnSecret(_Visitor):
    """Reject secret fields reachable from any operation's return type.

    References are followed; each struct and reference is entered once
    per path so recursive types and alias cycles terminate.
    """

    def __init__(self, root: AstRoot) -> None:
        super().__init__(root)
        self._path: list[str] = []
        self._active: set[int] = set()

    def process(self) -> None:
        for operation in self.root.operations:
            self.visit(operation)

    def visit(self, node: AstNode) -> None:
        if isinstance(node, FunctionOperation):
            self._path = [f"{node.name}(...)"]
            self.visit(node.return_type)
        elif isinstance(node, (TypeReference, StructType)):
            if id(node) in self._active:
                return
            self._active.add(id(node))
            try:
                if isinstance(node, TypeReference):
                    if node.type is not None:
                        self.visit(node.type)
                else:
                    super().visit(node)
            finally:
                self._active.discard(id(node))
        elif isinstance(node, Field):
            self._path.append(node.name)
            if node.secret:
                raise SemanticError(f"Can't return a secret value at {'.'.join(self._path)} at {node.location}")
            super().visit(node)
            self._path.pop()
        else:
            super().visit(node)


# ------------------------------------------------------------------
# 5. Spread expansion
# ------------------------------------------------------------------


class _ExpandSpreads(_Visitor):
    """Replace spreads by the fields of the referenced struct.

    A later field with an already-seen name keeps the first position and
    takes the later value. Each struct is expanded once, before any
    struct that spreads it.
    """

    def __init__(self, root: AstRoot) -> None:
        super().__init__(root)
        self._processed: set[int] = set()
        self._in_progress: set[int] = set()

    def visit(self, node: AstNode) -> None:
        if isinstance(node, StructType):
            if id(node) in self._processed:
                return
            self._processed.add(id(node))
            self._in_progress.add(id(node))

        super().visit(node)

        if isinstance(node, StructType):
            self._expand(node.fields, node.fields_and_spreads)
            node.fields_and_spreads = []
            self._in_progress.discard(id(node))
        elif isinstance(node, FunctionOperation):
            self._expand(node.args, node.fields_and_spreads)
            node.fields_and_spreads = []

    def _expand(self, fields: list[Field], members: list[Field | Spread]) -> None:
        index_by_name: dict[str, int] = {}
        for member in members:
            if isinstance(member, Field):
                to_add = [member]
            else:
                struct = self._spread_target(member)
                self.visit(struct)
                to_add = struct.fields

            for field in to_add:
                index = index_by_name.get(field.name)
                if index is not None:
                    fields[index] = field
                else:
                    index_by_name[field.name] = len(fields)
                    fields.append(field)

    def _spread_target(self, spread: Spread) -> StructType:
        reference = spread.type_reference
        try:
            target = reference.resolved
        except ValueError as exc:
            raise SemanticError(f"{exc} at {spread.location}") from exc
        if not isinstance(target, StructType):
            raise SemanticError(
                f"A spread operator can't refer to something that is not a struct, "
                f"in '{reference.name}' at {spread.location}."
            )
        if id(target) in self._in_progress:
            raise SemanticError(f"The spread of '{reference.name}' at {spread.location} is cyclic")
        return target


# ------------------------------------------------------------------
# 6. Empty structs and enums
# ------------------------------------------------------------------


class _CheckEmptyStructOrEnum(_Visitor):
    def visit(self, node: AstNode) -> None:
        super().visit(node)
        if isinstance(node, EnumType) and not node.values:
            raise SemanticError(f"Enum '{node.name}' at {node.location} is empty")
        if isinstance(node, StructType) and not node.fields:
            raise SemanticError(f"Struct '{node.name}' at {node.location} is empty")


# ------------------------------------------------------------------
# 7. Recursive types
# ------------------------------------------------------------------


class _ValidateRecursiveTypes(_Visitor):
    """Only structs and enums may refer to themselves.

    A definition that reaches its own name through arrays, optionals or
    alias chains alone has no finite representation. A struct whose
    required fields lead straight back to itself is rejected as well.
    """

    def visit(self, node: AstNode) -> None:
        super().visit(node)
        if not isinstance(node, TypeDefinition) or not self._is_recursive(node.name, node.type, set()):
            return
        if not isinstance(node.type, (StructType, EnumType)):
            raise SemanticError(f"Type '{node.name}' at {node.location} is recursive but is not an struct")
        if self._is_infinitely_recursive(node.name, node.type, set()):
            raise SemanticError(f"Type '{node.name}' at {node.location} is infinitely recursive")

    def _is_recursive(self, name: str, type_: Type, aliases: set[str]) -> bool:
        if isinstance(type_, TypeReference):
            if type_.name == name:
                return True
            target = type_.type
            if target is None or isinstance(target, (StructType, EnumType)) or type_.name in aliases:
                return False
            aliases.add(type_.name)
            return self._is_recursive(name, target, aliases)
        if isinstance(type_, (ArrayType, OptionalType)):
            return self._is_recursive(name, type_.base, aliases)
        if isinstance(type_, StructType):
            return any(self._is_recursive(name, field.type, aliases) for field in type_.fields)
        if isinstance(type_, EnumType):
            return any(v.struct is not None and self._is_recursive(name, v.struct, aliases) for v in type_.values)
        return False

    def _is_infinitely_recursive(self, name: str, type_: Type, aliases: set[str]) -> bool:
        if isinstance(type_, TypeReference):
            if type_.name == name:
                return True
            if isinstance(type_.type, TypeReference) and type_.name not in aliases:
                aliases.add(type_.name)
                return self._is_infinitely_recursive(name, type_.type, aliases)
            return False
        if isinstance(type_, StructType):
            return any(self._is_infinitely_recursive(name, field.type, aliases) for field in type_.fields)
        if isinstance(type_, EnumType):
            return all(
                v.struct is not None and self._is_infinitely_recursive(name, v.struct, aliases) for v in type_.values
            )
        return False


# ------------------------------------------------------------------
# 8. Struct and enum collection
# ------------------------------------------------------------------


class _CollectStructAndEnumTypes(_Visitor):
    def __init__(self, root: AstRoot) -> None:
        super().__init__(root)
        self._seen: set[int] = set()
        root.struct_types = []
        root.enum_types = []

    def visit(self, node: AstNode) -> None:
        if isinstance(node, (StructType, EnumType)) and id(node) in self._seen:
            return
        super().visit(node)
        if isinstance(node, StructType):
            self._seen.add(id(node))
            self.root.struct_types.append(node)
        elif isinstance(node, EnumType):
            self._seen.add(id(node))
            self.root.enum_types.append(node)


# ------------------------------------------------------------------
# 9. Annotations
# ------------------------------------------------------------------

_REST_ENCODABLE_KINDS: frozenset[PrimitiveKind] = frozenset(
    {
        PrimitiveKind.BOOL,
        PrimitiveKind.INT,
        PrimitiveKind.UINT,
        PrimitiveKind.BIGINT,
        PrimitiveKind.FLOAT,
        PrimitiveKind.STRING,
        PrimitiveKind.DATE,
        PrimitiveKind.DATETIME,
        PrimitiveKind.MONEY,
        PrimitiveKind.CPF,
        PrimitiveKind.CNPJ,
        PrimitiveKind.UUID,
        PrimitiveKind.HEX,
        PrimitiveKind.BASE64,
    }
)


def _is_rest_encodable(type_: Type) -> bool:
    if isinstance(type_, TypeReference):
        type_ = type_.resolved
    if isinstance(type_, PrimitiveType):
        return type_.kind in _REST_ENCODABLE_KINDS
    return isinstance(type_, EnumType)


class _ValidateAnnotations(_Visitor):
    def visit(self, node: AstNode) -> None:
        if isinstance(node, (EnumValue, TypeDefinition, Field)):
            for annotation in node.annotations:
                if not isinstance(annotation, DescriptionAnnotation):
                    _reject(annotation)
        elif isinstance(node, ErrorNode):
            for annotation in node.annotations:
                if isinstance(annotation, StatusCodeAnnotation):
                    if not 100 <= annotation.status_code <= 599:
                        raise SemanticError(
                            f"Invalid status code {annotation.status_code} at {annotation.location}"
                        )
                elif not isinstance(annotation, DescriptionAnnotation):
                    _reject(annotation)
        elif isinstance(node, FunctionOperation):
            for annotation in node.annotations:
                if isinstance(annotation, ThrowsAnnotation):
                    if not any(error.name == annotation.error for error in self.root.errors):
                        raise SemanticError(f"Unknown error type '{annotation.error}' at {annotation.location}")
                elif isinstance(annotation, RestAnnotation):
                    self._check_rest(node, annotation)
                elif not isinstance(annotation, (DescriptionAnnotation, HiddenAnnotation)):
                    _reject(annotation)
        super().visit(node)

    def _check_rest(self, operation: FunctionOperation, rest: RestAnnotation) -> None:
        variables = [*rest.path_variables, *rest.query_variables, *rest.header_variables]
        if len(variables) != len(set(variables)):
            raise SemanticError(f"Arguments must appear only once for rest annotation at {rest.location}")

        args = {arg.name: arg for arg in operation.args}
        for name in variables:
            arg = args.get(name)
            if arg is None:
                raise SemanticError(f"Argument '{name}' not found at {rest.location}")
            if name in rest.path_variables and isinstance(arg.type, OptionalType):
                raise SemanticError(f"The path argument '{name}' can't be nullable at {rest.location}")
            base = arg.type.base if isinstance(arg.type, OptionalType) else arg.type
            if not _is_rest_encodable(base):
                raise SemanticError(
                    f"Argument '{name}' can't have type '{arg.type.name}' for rest annotation at {rest.location}"
                )

        if rest.body_variable is not None and rest.body_variable not in args:
            raise SemanticError(f"Argument '{rest.body_variable}' not found at {rest.location}")

        url_variables = {*rest.path_variables, *rest.query_variables}
        for arg in operation.args:
            if arg.name not in variables and arg.name != rest.body_variable:
                raise SemanticError(f"Argument '{arg.name}' is missing from the rest annotation at {rest.location}")
            if rest.method == "GET" and arg.secret and arg.name in url_variables:
                raise SemanticError(
                    "Argument marked as secret cannot be used in the path or query parts "
                    f"of a GET endpoint at {rest.location}"
                )

        returns_void = isinstance(operation.return_type, PrimitiveType) and (
            operation.return_type.kind == PrimitiveKind.VOID
        )
        if rest.method == "GET" and returns_void:
            raise SemanticError(f"A GET rest endpoint must return something at {rest.location}")


def _reject(annotation: Annotation) -> None:
    raise SemanticError(f"Cannot have @{annotation_keyword(annotation)} at {annotation.location}")


# ------------------------------------------------------------------
# 10. Duplicated enum members
# ------------------------------------------------------------------


class _CheckDuplicatedMembersOnEnum(_Visitor):
    def visit(self, node: AstNode) -> None:
        super().visit(node)
        if isinstance(node, EnumType) and len(node.values) != len({v.value for v in node.values}):
            raise SemanticError(f"Enum '{node.name}' at {node.location} has duplicated members")


_PASSES: tuple[type[_Visitor] | type[_Transformer], ...] = (
    _CheckMultipleDeclaration,
    _GiveStructAndEnumNames,
    _MatchTypeDefinitions,
    _CheckDontReturnSecret,
    _ExpandSpreads,
    _CheckEmptyStructOrEnum,
    _ValidateRecursiveTypes,
    _CollectStructAndEnumTypes,
    _ValidateAnnotations,
    _CheckDuplicatedMembersOnEnum,
)
