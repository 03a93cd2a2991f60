# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Compiler workflow for .sdkgen files.

Each entry file is parsed together with everything it imports, analysed,
and written to ``<build_dir>/<stem>.sdkgen.json``. Imported files are
inlined into the importing schema, so only entry files produce artifacts.
"""

from __future__ import annotations

from pathlib import Path

from sdkgen.compiler.artifact import ARTIFACT_SUFFIX, read_artifact, write_artifact
from sdkgen.compiler.semantic_analysis import SemanticError, analyse
from sdkgen.model.entities import AstRoot
from sdkgen.parser.lexer import LexerError
from sdkgen.parser.parser import ParseError, parse_file

# ###############
# Public Interface
# ###############


class CompilerError(Exception):
    """Raised when the compiler encounters any unrecoverable error.

    Covers unreadable files, lexer and parse errors, semantic errors and
    clashing artifact names.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)


def compile_file(source_file: Path) -> AstRoot:
    """Parse and analyse one .sdkgen file.

    Args:
        source_file: Path to the entry file. Imports are resolved relative
            to the importing file.

    Returns:
        The analysed :class:`~sdkgen.model.entities.AstRoot`. Deprecation
        notes are available in its ``warnings``.

    Raises:
        CompilerError: On read, lexer, parse or semantic errors.
    """
    try:
        root = parse_file(source_file)
    except OSError as exc:
        raise CompilerError(f"Cannot read source file '{source_file}': {exc}") from exc
    except (LexerError, ParseError) as exc:
        raise CompilerError(f"Parse error in '{source_file}': {exc}") from exc

    try:
        analyse(root)
    except SemanticError as exc:
        raise CompilerError(f"Semantic error in '{source_file}': {exc}") from exc
    return root


def compile_files(files: list[Path], build_dir: Path) -> dict[str, AstRoot]:
    """Compile .sdkgen entry files and write one artifact per file.

    Args:
        files: Paths to the entry files.
        build_dir: Directory receiving the ``<stem>.sdkgen.json`` artifacts.

    Returns:
        A mapping from file stem to the compiled schema.

    Raises:
        CompilerError: On any compilation failure, or when two entry files
            share a stem. Artifacts of files compiled before the failure are
            left in place.
    """
    sources: dict[str, Path] = {}
    for source_file in files:
        previous = sources.setdefault(source_file.stem, source_file)
        if previous != source_file:
            raise CompilerError(
                f"Source files '{previous}' and '{source_file}' would both produce '{_artifact_name(source_file)}'"
            )

    compiled: dict[str, AstRoot] = {}
    for stem, source_file in sources.items():
        root = compile_file(source_file)
        write_artifact(root, build_dir / _artifact_name(source_file))
        compiled[stem] = root
    return compiled


def load_schema(path: Path) -> AstRoot:
    """Load an analysed schema from a .sdkgen source file or a compiled artifact.

    Files ending in ``.sdkgen.json`` are read as artifacts; anything else is
    compiled with :func:`compile_file`.

    Raises:
        CompilerError: If the file cannot be read, compiled or deserialized.
    """
    if not path.name.endswith(ARTIFACT_SUFFIX):
        return compile_file(path)
    try:
        return read_artifact(path)
    except OSError as exc:
        raise CompilerError(f"Cannot read artifact '{path}': {exc}") from exc
    except (ValueError, SemanticError) as exc:
        raise CompilerError(f"Invalid artifact '{path}': {exc}") from exc


# ################
# Implementation
# ################


def _artifact_name(source_file: Path) -> str:
    return source_file.stem + ARTIFACT_SUFFIX
