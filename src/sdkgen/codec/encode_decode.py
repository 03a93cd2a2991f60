# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Schema-driven encoding and decoding of runtime values.

Both directions walk a type description from the flat type table produced
by :func:`sdkgen.compiler.artifact.ast_to_json`:

* a string names a primitive, a table entry, or a composite written with
  the ``?`` and ``[]`` suffixes (``"int[]?"``);
* a list describes an enum; ``[tag, StructName]`` members carry data;
* a mapping describes a struct, one entry per field.

:func:`decode` turns wire JSON into Python values (``bytes``, ``int`` for
bigint, ``Decimal``, ``date`` and aware UTC ``datetime``); :func:`encode` is
its inverse. Both validate on the way and raise :class:`CodecError` with the
dotted path of the offending value.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from collections.abc import Mapping
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

from pydantic import AnyUrl, TypeAdapter, ValidationError

# ###############
# Public Interface
# ###############

# Type descriptions are plain JSON values; see the module docstring.
TypeTable = Mapping[str, Any]


class CodecError(TypeError):
    """Raised when a value does not match its type description.

    Attributes:
        path: Accessor of the offending value, e.g. ``getUser.args.id`` or
            ``items[3].name``.
    """

    def __init__(self, message: str, path: str) -> None:
        super().__init__(message)
        self.path = path


def encode(type_table: TypeTable, path: str, type_: Any, value: Any) -> Any:
    """Validate *value* against *type_* and convert it to its wire form.

    Args:
        type_table: Named type descriptions, the ``typeTable`` of a schema.
        path: Accessor used in error messages; grows with ``.field`` and
            ``[index]`` while descending.
        type_: The type description of *value*.
        value: The Python value to encode.

    Returns:
        A JSON-compatible value.

    Raises:
        CodecError: If *value* does not conform to *type_*, or *type_*
            names a type that is neither primitive nor in *type_table*.
    """
    _check_not_null(type_table, path, type_, value)

    if isinstance(type_, list):
        if all(isinstance(member, str) for member in type_):
            if isinstance(value, str) and value in type_:
                return value
        elif isinstance(value, Mapping) and "tag" in value:
            rest = {key: item for key, item in value.items() if key != "tag"}
            for member in type_:
                if isinstance(member, str):
                    if member == value["tag"]:
                        return member
                    continue
                tag, data_type = member
                if tag == value["tag"]:
                    encoded = encode(type_table, f"{path}.{tag}", data_type, rest)
                    if all(item is None for item in encoded.values()):
                        return tag
                    return [tag, encoded]
        raise _invalid(path, type_, value)

    if isinstance(type_, Mapping):
        if not isinstance(value, Mapping):
            raise _invalid(path, type_, value)
        return {key: encode(type_table, f"{path}.{key}", field, value.get(key)) for key, field in type_.items()}

    if not isinstance(type_, str):
        raise CodecError(f"Unknown type '{type_}' at '{path}'", path)

    if type_.endswith("?"):
        return None if value is None else encode(type_table, path, type_[:-1], value)

    if type_.endswith("[]"):
        if not isinstance(value, (list, tuple)):
            raise _invalid(path, type_, value)
        return [encode(type_table, f"{path}[{index}]", type_[:-2], item) for index, item in enumerate(value)]

    if type_ in _SIMPLE_TYPES:
        return _simple_encode_decode(path, type_, value)

    if type_ == "bytes":
        if not isinstance(value, (bytes, bytearray)):
            raise _invalid(path, type_, value)
        return base64.b64encode(value).decode("ascii")

    if type_ == "bigint":
        if not _is_integer(value):
            raise _invalid(path, type_, value)
        return str(value)

    if type_ == "decimal":
        if not (_is_number(value) or isinstance(value, Decimal) or _matches(_DECIMAL_RE, value)):
            raise _invalid(path, type_, value)
        number = value if isinstance(value, Decimal) else Decimal(str(value))
        if not number.is_finite():
            raise _invalid(path, type_, value)
        return format(number, "f")

    if type_ == "date":
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        return _parse_date(path, value).isoformat()

    if type_ == "datetime":
        moment = value if isinstance(value, datetime) else _parse_datetime(path, value)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return moment.astimezone(timezone.utc).replace(tzinfo=None).isoformat(timespec="milliseconds")

    return encode(type_table, path, _lookup(type_table, path, type_), value)


def decode(type_table: TypeTable, path: str, type_: Any, value: Any) -> Any:
    """Validate wire *value* against *type_* and convert it to a Python value.

    Tagged enums decode to a dict with a ``tag`` key plus the fields of the
    associated struct.

    Args:
        type_table: Named type descriptions, the ``typeTable`` of a schema.
        path: Accessor used in error messages.
        type_: The type description of *value*.
        value: The JSON value to decode.

    Returns:
        The decoded Python value.

    Raises:
        CodecError: If *value* does not conform to *type_*, or *type_*
            names a type that is neither primitive nor in *type_table*.
    """
    _check_not_null(type_table, path, type_, value)

    if isinstance(type_, list):
        if all(isinstance(member, str) for member in type_):
            if isinstance(value, str) and value in type_:
                return value
        else:
            for member in type_:
                if isinstance(member, str):
                    if member == value:
                        return {"tag": member}
                    continue
                tag, data_type = member
                if tag == value:
                    return {**decode(type_table, f"{path}.{tag}", data_type, {}), "tag": tag}
                if isinstance(value, list) and len(value) == 2 and value[0] == tag:
                    return {**decode(type_table, f"{path}.{tag}", data_type, value[1]), "tag": tag}
        raise _invalid(path, type_, value)

    if isinstance(type_, Mapping):
        if not isinstance(value, Mapping):
            raise _invalid(path, type_, value)
        return {key: decode(type_table, f"{path}.{key}", field, value.get(key)) for key, field in type_.items()}

    if not isinstance(type_, str):
        raise CodecError(f"Unknown type '{type_}' at '{path}'", path)

    if type_.endswith("?"):
        return None if value is None else decode(type_table, path, type_[:-1], value)

    if type_.endswith("[]"):
        if not isinstance(value, (list, tuple)):
            raise _invalid(path, type_, value)
        return [decode(type_table, f"{path}[{index}]", type_[:-2], item) for index, item in enumerate(value)]

    if type_ in _SIMPLE_TYPES:
        return _simple_encode_decode(path, type_, value)

    if type_ == "bytes":
        if not _is_base64(value):
            raise _invalid(path, "bytes (base 64)", value)
        return base64.b64decode(value)

    if type_ == "bigint":
        if _is_integral_number(value) or _matches(_BIGINT_RE, value):
            return int(value)
        raise _invalid(path, type_, value)

    if type_ == "decimal":
        if not (_is_number(value) or _matches(_DECIMAL_RE, value)):
            raise _invalid(path, type_, value)
        number = Decimal(str(value))
        if not number.is_finite():
            raise _invalid(path, type_, value)
        return number

    if type_ == "date":
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        return _parse_date(path, value)

    if type_ == "datetime":
        return _parse_datetime(path, value).astimezone(timezone.utc)

    return decode(type_table, path, _lookup(type_table, path, type_), value)


# ################
# Implementation
# ################

_STRING_TYPES = frozenset({"string", "email", "phone", "html", "xml", "cpf", "cnpj"})
_SIMPLE_TYPES = _STRING_TYPES | {
    "json",
    "bool",
    "url",
    "int",
    "uint",
    "float",
    "money",
    "hex",
    "uuid",
    "base64",
    "void",
}

_HEX_RE = re.compile(r"^(?:[A-Fa-f0-9]{2})*$")
_UUID_RE = re.compile(r"^[A-Fa-f0-9]{8}-[A-Fa-f0-9]{4}-[A-Fa-f0-9]{4}-[A-Fa-f0-9]{4}-[A-Fa-f0-9]{12}$")
_BIGINT_RE = re.compile(r"^-?[0-9]+$")
_DECIMAL_RE = re.compile(r"^-?[0-9]+(?:\.[0-9]+)?$")
_DATE_RE = re.compile(r"^[0-9]{4}-[01][0-9]-[0123][0-9]$")
_DATETIME_RE = re.compile(
    r"^([0-9]{4})-([01][0-9])-([0123][0-9])T([012][0-9]):([0-6][0-9]):([0-6][0-9])"
    r"(?:\.([0-9]{1,6}))?(Z|[+-][012][0-9]:[0-6][0-9])?$"
)

_URL_ADAPTER: TypeAdapter[AnyUrl] = TypeAdapter(AnyUrl)

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


def _describe(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return str(value)


def _invalid(path: str, type_: Any, value: Any) -> CodecError:
    expected = type_ if isinstance(type_, str) else _describe(type_)
    return CodecError(f"Invalid type at '{path}', expected {expected}, got {_describe(value)}", path)


def _check_not_null(type_table: TypeTable, path: str, type_: Any, value: Any) -> None:
    """Reject ``None`` for a named type unless the name resolves to an optional or void."""
    if value is not None or not isinstance(type_, str):
        return
    resolved: Any = type_
    seen: set[str] = set()
    while isinstance(resolved, str) and resolved in type_table and resolved not in seen:
        seen.add(resolved)
        resolved = type_table[resolved]
    if isinstance(resolved, str) and (resolved.endswith("?") or resolved == "void"):
        return
    raise CodecError(f"Invalid type at '{path}', cannot be null", path)


def _lookup(type_table: TypeTable, path: str, name: str) -> Any:
    resolved = type_table.get(name)
    if resolved is None:
        raise CodecError(f"Unknown type '{name}' at '{path}'", path)
    return resolved


def _matches(pattern: re.Pattern[str], value: Any) -> bool:
    return isinstance(value, str) and pattern.fullmatch(value) is not None


def _is_number(value: Any) -> bool:
    """True for int and float; bool is not a number on the wire."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_integral_number(value: Any) -> bool:
    return _is_integer(value) or (isinstance(value, float) and value.is_integer())


def _is_base64(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        raw = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return False
    return base64.b64encode(raw).decode("ascii") == value


def _canonical_url(value: Any) -> str | None:
    """Absolute URL in its normalized form, or ``None`` when *value* is not one."""
    if not isinstance(value, str):
        return None
    try:
        return str(_URL_ADAPTER.validate_python(value))
    except ValidationError:
        return None


def _simple_encode_decode(path: str, type_: str, value: Any) -> Any:
    """Primitives whose wire and Python forms coincide."""
    if type_ == "void":
        return None

    if type_ == "json":
        try:
            return json.loads(json.dumps(value))
        except (TypeError, ValueError) as exc:
            raise _invalid(path, type_, value) from exc

    if type_ == "bool":
        valid = isinstance(value, bool)
    elif type_ in _STRING_TYPES:
        valid = isinstance(value, str)
    elif type_ == "hex":
        if _matches(_HEX_RE, value):
            return value.lower()
        valid = False
    elif type_ == "uuid":
        if _matches(_UUID_RE, value):
            return value.lower()
        valid = False
    elif type_ == "base64":
        valid = _is_base64(value)
    elif type_ == "int":
        valid = _is_integral_number(value) and _INT_MIN <= value <= _INT_MAX
    elif type_ == "uint":
        valid = _is_integral_number(value) and 0 <= value <= _INT_MAX
    elif type_ == "float":
        valid = _is_number(value)
    elif type_ == "money":
        valid = _is_integral_number(value)
    else:
        url = _canonical_url(value)
        if url is None:
            raise _invalid(path, type_, value)
        return url

    if not valid:
        raise _invalid(path, type_, value)
    return value


def _parse_date(path: str, value: Any) -> date:
    if not _matches(_DATE_RE, value):
        raise _invalid(path, "date", value)
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise _invalid(path, "date", value) from exc


def _parse_datetime(path: str, value: Any) -> datetime:
    """Parse an ISO-8601 timestamp; a missing zone means UTC."""
    match = _DATETIME_RE.fullmatch(value) if isinstance(value, str) else None
    if match is None:
        raise _invalid(path, "datetime", value)
    year, month, day, hour, minute, second, fraction, zone = match.groups()
    try:
        if zone is None or zone == "Z":
            tz = timezone.utc
        else:
            sign = -1 if zone[0] == "-" else 1
            tz = timezone(sign * timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6])))
        return datetime(
            int(year),
            int(month),
            int(day),
            int(hour),
            int(minute),
            int(second),
            int((fraction or "").ljust(6, "0")),
            tzinfo=tz,
        )
    except ValueError as exc:
        raise _invalid(path, "datetime", value) from exc
