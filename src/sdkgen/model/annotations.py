# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Annotations attached to declarations through ``@...`` lines."""

from __future__ import annotations

from dataclasses import dataclass, field

from sdkgen.model.types import TokenLocation

# ###############
# Public Interface
# ###############

REST_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "PATCH")


@dataclass(frozen=True)
class DescriptionAnnotation:
    """Free-form documentation text (``@description``)."""

    text: str
    location: TokenLocation = field(default_factory=TokenLocation, kw_only=True, compare=False, repr=False)


@dataclass(frozen=True)
class ArgDescriptionAnnotation:
    """Documentation for one operation argument (``@arg name text``).

    Only exists while parsing: the parser moves it onto the named argument
    as a :class:`DescriptionAnnotation`.
    """

    arg_name: str
    text: str
    location: TokenLocation = field(default_factory=TokenLocation, kw_only=True, compare=False, repr=False)


@dataclass(frozen=True)
class ThrowsAnnotation:
    """Declares that an operation may fail with the named error (``@throws``)."""

    error: str
    location: TokenLocation = field(default_factory=TokenLocation, kw_only=True, compare=False, repr=False)


@dataclass(frozen=True)
class HiddenAnnotation:
    """Hides an operation from generated clients (``@hidden``)."""

    location: TokenLocation = field(default_factory=TokenLocation, kw_only=True, compare=False, repr=False)


@dataclass(frozen=True)
class StatusCodeAnnotation:
    """HTTP status code reported for an error (``@statusCode``)."""

    status_code: int
    location: TokenLocation = field(default_factory=TokenLocation, kw_only=True, compare=False, repr=False)


@dataclass(frozen=True)
class RestAnnotation:
    """Maps an operation onto a REST endpoint (``@rest``).

    Attributes:
        method: Upper-case HTTP method.
        path: URL path without the query string, e.g. ``/users/{id}``.
        path_variables: Argument names bound from path segments, in order.
        query_variables: Argument names bound from the query string.
        headers: Lower-cased header name to argument name.
        body_variable: Argument bound from the request body, if any.
    """

    method: str
    path: str
    path_variables: tuple[str, ...] = ()
    query_variables: tuple[str, ...] = ()
    headers: tuple[tuple[str, str], ...] = ()
    body_variable: str | None = None
    location: TokenLocation = field(default_factory=TokenLocation, kw_only=True, compare=False, repr=False)

    @property
    def header_variables(self) -> tuple[str, ...]:
        return tuple(variable for _, variable in self.headers)


Annotation = (
    DescriptionAnnotation
    | ArgDescriptionAnnotation
    | ThrowsAnnotation
    | HiddenAnnotation
    | StatusCodeAnnotation
    | RestAnnotation
)


def annotation_keyword(annotation: Annotation) -> str:
    """Return the ``@`` keyword that produces *annotation*, for diagnostics."""
    return _KEYWORDS[type(annotation)]


# ################
# Implementation
# ################

_KEYWORDS: dict[type, str] = {
    DescriptionAnnotation: "description",
    ArgDescriptionAnnotation: "arg",
    ThrowsAnnotation: "throws",
    HiddenAnnotation: "hidden",
    StatusCodeAnnotation: "statusCode",
    RestAnnotation: "rest",
}
