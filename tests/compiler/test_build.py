# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the sdkgen compiler workflow."""

from __future__ import annotations

from pathlib import Path

import pytest

from sdkgen.compiler.artifact import ARTIFACT_SUFFIX, read_artifact
from sdkgen.compiler.build import CompilerError, compile_file, compile_files, load_schema

# ###############
# Helpers
# ###############


def _write(path: Path, content: str) -> Path:
    """Write *content* to *path*, creating parent directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


# ###############
# Single-file compilation
# ###############


class TestCompileFile:
    def test_compiles_simple_file(self, tmp_path: Path) -> None:
        source = _write(tmp_path / "api.sdkgen", "type User { id: uuid }\nfn getUser(id: uuid): User")
        root = compile_file(source)
        assert [s.name for s in root.struct_types] == ["User"]
        assert root.operations[0].name == "getUser"

    def test_follows_imports(self, tmp_path: Path) -> None:
        _write(tmp_path / "common" / "types.sdkgen", "type Id uuid")
        source = _write(tmp_path / "api.sdkgen", 'import "common/types"\nfn get(id: Id): string')
        root = compile_file(source)
        assert root.find_type_definition("Id") is not None

    def test_warnings_are_kept(self, tmp_path: Path) -> None:
        source = _write(tmp_path / "api.sdkgen", "get user(): string")
        root = compile_file(source)
        assert len(root.warnings) == 1
        assert "Keyword 'get' is deprecated" in root.warnings[0]

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(CompilerError, match="Cannot read source file"):
            compile_file(tmp_path / "missing.sdkgen")

    def test_lexer_error(self, tmp_path: Path) -> None:
        source = _write(tmp_path / "bad.sdkgen", "type A #")
        with pytest.raises(CompilerError, match="Parse error in .*bad.sdkgen.*Unexpected character"):
            compile_file(source)

    def test_parse_error(self, tmp_path: Path) -> None:
        source = _write(tmp_path / "bad.sdkgen", "type A {")
        with pytest.raises(CompilerError, match="Parse error in .*Unexpected end of file"):
            compile_file(source)

    def test_missing_import_is_a_parse_error(self, tmp_path: Path) -> None:
        source = _write(tmp_path / "api.sdkgen", 'import "nowhere"')
        with pytest.raises(CompilerError, match="Cannot import 'nowhere'"):
            compile_file(source)

    def test_semantic_error(self, tmp_path: Path) -> None:
        source = _write(tmp_path / "bad.sdkgen", "type A { x: Missing }")
        with pytest.raises(CompilerError, match="Semantic error in .*Could not find type 'Missing'"):
            compile_file(source)

    def test_error_chains_cause(self, tmp_path: Path) -> None:
        source = _write(tmp_path / "bad.sdkgen", "type A {}")
        with pytest.raises(CompilerError) as exc_info:
            compile_file(source)
        assert exc_info.value.__cause__ is not None


# ###############
# Builds
# ###############


class TestCompileFiles:
    def test_artifact_written_to_build_dir(self, tmp_path: Path) -> None:
        source = _write(tmp_path / "src" / "api.sdkgen", "type A { x: int }")
        build = tmp_path / "build"
        result = compile_files([source], build)
        assert list(result) == ["api"]
        assert (build / f"api{ARTIFACT_SUFFIX}").exists()

    def test_artifact_can_be_read_back(self, tmp_path: Path) -> None:
        source = _write(tmp_path / "api.sdkgen", "type A { x: int }\nfn f(a: A): A[]")
        build = tmp_path / "build"
        compile_files([source], build)
        root = read_artifact(build / f"api{ARTIFACT_SUFFIX}")
        assert root.operations[0].name == "f"
        assert root.find_type_definition("A") is not None

    def test_multiple_files(self, tmp_path: Path) -> None:
        first = _write(tmp_path / "a.sdkgen", "type A { x: int }")
        second = _write(tmp_path / "b.sdkgen", "type B { y: int }")
        result = compile_files([first, second], tmp_path / "build")
        assert sorted(result) == ["a", "b"]

    def test_same_file_twice_is_compiled_once(self, tmp_path: Path) -> None:
        source = _write(tmp_path / "a.sdkgen", "type A { x: int }")
        assert list(compile_files([source, source], tmp_path / "build")) == ["a"]

    def test_clashing_stems(self, tmp_path: Path) -> None:
        first = _write(tmp_path / "one" / "api.sdkgen", "type A { x: int }")
        second = _write(tmp_path / "two" / "api.sdkgen", "type B { y: int }")
        with pytest.raises(CompilerError, match="would both produce 'api.sdkgen.json'"):
            compile_files([first, second], tmp_path / "build")
        assert not (tmp_path / "build").exists()

    def test_failure_stops_the_build(self, tmp_path: Path) -> None:
        good = _write(tmp_path / "a.sdkgen", "type A { x: int }")
        bad = _write(tmp_path / "b.sdkgen", "type B {}")
        build = tmp_path / "build"
        with pytest.raises(CompilerError, match="Struct 'B'"):
            compile_files([good, bad], build)
        assert (build / f"a{ARTIFACT_SUFFIX}").exists()
        assert not (build / f"b{ARTIFACT_SUFFIX}").exists()

    def test_empty_file_list(self, tmp_path: Path) -> None:
        assert compile_files([], tmp_path / "build") == {}


# ###############
# Schema loading
# ###############


class TestLoadSchema:
    def test_source_file_is_compiled(self, tmp_path: Path) -> None:
        root = load_schema(_write(tmp_path / "api.sdkgen", "type Id uuid\nfn f(id: Id)"))
        assert [operation.name for operation in root.operations] == ["f"]

    def test_artifact_is_read(self, tmp_path: Path) -> None:
        source = _write(tmp_path / "api.sdkgen", "type Id uuid\nfn f(id: Id)")
        compile_files([source], tmp_path / "build")
        root = load_schema(tmp_path / "build" / f"api{ARTIFACT_SUFFIX}")
        assert root.find_type_definition("Id") is not None
        assert [operation.name for operation in root.operations] == ["f"]

    def test_missing_artifact(self, tmp_path: Path) -> None:
        with pytest.raises(CompilerError, match="Cannot read artifact"):
            load_schema(tmp_path / f"missing{ARTIFACT_SUFFIX}")

    def test_malformed_artifact(self, tmp_path: Path) -> None:
        path = _write(tmp_path / f"api{ARTIFACT_SUFFIX}", "{not json")
        with pytest.raises(CompilerError, match="Invalid artifact") as exc_info:
            load_schema(path)
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_source_errors_are_compiler_errors(self, tmp_path: Path) -> None:
        with pytest.raises(CompilerError, match="Semantic error"):
            load_schema(_write(tmp_path / "api.sdkgen", "type A {}"))
