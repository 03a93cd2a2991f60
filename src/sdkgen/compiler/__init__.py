# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compiler pipeline for .sdkgen files: semantic analysis, JSON projection and builds."""

from sdkgen.compiler.artifact import (
    ARTIFACT_SUFFIX,
    ast_to_json,
    deserialize,
    json_to_ast,
    read_artifact,
    serialize,
    write_artifact,
)
from sdkgen.compiler.build import CompilerError, compile_file, compile_files, load_schema
from sdkgen.compiler.compatibility import CompatibilityIssue, check_compatibility
from sdkgen.compiler.semantic_analysis import SemanticError, analyse

__all__ = [
    "analyse",
    "SemanticError",
    "ast_to_json",
    "json_to_ast",
    "serialize",
    "deserialize",
    "write_artifact",
    "read_artifact",
    "ARTIFACT_SUFFIX",
    "compile_file",
    "compile_files",
    "CompilerError",
    "load_schema",
    "check_compatibility",
    "CompatibilityIssue",
]
