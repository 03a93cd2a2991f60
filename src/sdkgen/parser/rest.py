# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Parser for the payload of ``@rest`` annotations.

Grammar::

    METHOD /path/{var}[?{q1}&{q2}] [header Name: {var}]... [body {var}]
"""

import re

from sdkgen.model.annotations import REST_METHODS, RestAnnotation
from sdkgen.model.types import TokenLocation

# ###############
# Public Interface
# ###############


def parse_rest_annotation(text: str, location: TokenLocation = TokenLocation()) -> RestAnnotation:
    """Parse the text following ``@rest``.

    Args:
        text: The annotation body, e.g. ``GET /users/{id}?{fields}``.
        location: Location attached to the resulting annotation.

    Returns:
        The parsed :class:`RestAnnotation`.

    Raises:
        ValueError: If the method is unsupported, the path is missing or
            does not start with ``/``, or the query string is malformed.
    """
    fragments = text.split(" ")
    method = fragments[0].upper()
    if method not in REST_METHODS:
        raise ValueError(f"Unsupported method '{method}'")

    if len(fragments) < 2 or not fragments[1].startswith("/"):
        raise ValueError("Invalid path")
    path = fragments[1]

    query_variables: list[str] = []
    if "?" in path:
        path, query = path.split("?", 1)
        if not _QUERY_RE.fullmatch(query):
            raise ValueError("Invalid querystring on path")
        query_variables = _VARIABLE_RE.findall(query)

    remaining = " ".join(fragments[2:])
    return RestAnnotation(
        method=method,
        path=path,
        path_variables=tuple(_VARIABLE_RE.findall(path)),
        query_variables=tuple(query_variables),
        headers=_scan_headers(remaining),
        body_variable=_scan_body(remaining),
        location=location,
    )


# ################
# Implementation
# ################

_VARIABLE_RE = re.compile(r"\{(\w+)\}")
_QUERY_RE = re.compile(r"\{\w+\}(?:&\{\w+\})*")
# Header names follow the RFC 2616 token rule.
_HEADER_RE = re.compile(r"\[header ([^()<>@,;:\\\"/\[\]?={}\s]+): \{(\w+)\}\]")
_BODY_RE = re.compile(r"\[body \{(\w+)\}\]")


def _scan_headers(text: str) -> tuple[tuple[str, str], ...]:
    """Collect ``[header Name: {var}]`` groups; later duplicates win."""
    headers: dict[str, str] = {}
    for header, variable in _HEADER_RE.findall(text):
        headers[header.lower()] = variable
    return tuple(headers.items())


def _scan_body(text: str) -> str | None:
    match = _BODY_RE.search(text)
    return match.group(1) if match else None
