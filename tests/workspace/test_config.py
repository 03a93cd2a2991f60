# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for the project configuration module."""

from pathlib import Path

import pytest

from sdkgen.workspace import (
    CONFIG_FILE_NAME,
    ProjectConfig,
    WorkspaceConfigError,
    load_project_config,
)

# ###############
# Helpers
# ###############


def _write_config(tmp_path: Path, content: str) -> Path:
    """Write a project config file and return its path."""
    config_file = tmp_path / CONFIG_FILE_NAME
    config_file.write_text(content, encoding="utf-8")
    return config_file


# ###############
# Normal Cases
# ###############


def test_minimal_config(tmp_path: Path) -> None:
    """A config with only build-directory parses to a ProjectConfig without sources."""
    config = load_project_config(_write_config(tmp_path, "build-directory: .sdkgen-build\n"))

    assert isinstance(config, ProjectConfig)
    assert config.build_directory == ".sdkgen-build"
    assert config.sources == []


def test_config_with_sources(tmp_path: Path) -> None:
    """Listed sources are kept in order."""
    content = """\
build-directory: out
sources:
  - api/users.sdkgen
  - api/orders.sdkgen
"""
    config = load_project_config(_write_config(tmp_path, content))

    assert config.sources == ["api/users.sdkgen", "api/orders.sdkgen"]


def test_empty_sources_list(tmp_path: Path) -> None:
    config = load_project_config(_write_config(tmp_path, "build-directory: out\nsources: []\n"))
    assert config.sources == []


def test_comments_are_ignored(tmp_path: Path) -> None:
    content = "# sdkgen project\nbuild-directory: out # relative to the project root\n"
    assert load_project_config(_write_config(tmp_path, content)).build_directory == "out"


def test_unknown_keys_are_ignored(tmp_path: Path) -> None:
    config = load_project_config(_write_config(tmp_path, "build-directory: out\nfuture-option: 1\n"))
    assert config.build_directory == "out"


# ###############
# Error Cases
# ###############


def test_missing_file(tmp_path: Path) -> None:
    """A missing config file raises WorkspaceConfigError."""
    with pytest.raises(WorkspaceConfigError, match="Project config file not found"):
        load_project_config(tmp_path / CONFIG_FILE_NAME)


def test_directory_instead_of_file(tmp_path: Path) -> None:
    (tmp_path / CONFIG_FILE_NAME).mkdir()
    with pytest.raises(WorkspaceConfigError, match="Cannot read project config file"):
        load_project_config(tmp_path / CONFIG_FILE_NAME)


def test_invalid_yaml(tmp_path: Path) -> None:
    with pytest.raises(WorkspaceConfigError, match="Invalid YAML"):
        load_project_config(_write_config(tmp_path, "build-directory: [unclosed\n"))


@pytest.mark.parametrize("content", ["", "- a\n- b\n", "just a string\n"])
def test_not_a_mapping(tmp_path: Path, content: str) -> None:
    """Empty files, lists and scalars are not valid configurations."""
    with pytest.raises(WorkspaceConfigError, match="must be a YAML mapping"):
        load_project_config(_write_config(tmp_path, content))


def test_missing_build_directory(tmp_path: Path) -> None:
    with pytest.raises(WorkspaceConfigError, match="missing required field 'build-directory'"):
        load_project_config(_write_config(tmp_path, "sources: []\n"))


def test_build_directory_must_be_string(tmp_path: Path) -> None:
    with pytest.raises(WorkspaceConfigError, match="'build-directory' must be a string"):
        load_project_config(_write_config(tmp_path, "build-directory: 42\n"))


def test_sources_must_be_a_list(tmp_path: Path) -> None:
    with pytest.raises(WorkspaceConfigError, match="'sources' must be a list"):
        load_project_config(_write_config(tmp_path, "build-directory: out\nsources: api.sdkgen\n"))


def test_source_entries_must_be_strings(tmp_path: Path) -> None:
    content = "build-directory: out\nsources:\n  - api.sdkgen\n  - 3\n"
    with pytest.raises(WorkspaceConfigError, match=r"sources\[1\] must be a string"):
        load_project_config(_write_config(tmp_path, content))


def test_error_names_the_file(tmp_path: Path) -> None:
    config_file = _write_config(tmp_path, "sources: []\n")
    with pytest.raises(WorkspaceConfigError) as exc_info:
        load_project_config(config_file)
    assert str(config_file) in str(exc_info.value)
