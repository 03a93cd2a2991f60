# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Data model and YAML parser for the sdkgen project configuration file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

# ###############
# Public Interface
# ###############

CONFIG_FILE_NAME = ".sdkgen.yaml"


class WorkspaceConfigError(Exception):
    """Raised when a project configuration file is invalid or cannot be loaded."""


@dataclass
class ProjectConfig:
    """The parsed configuration for an sdkgen project.

    Attributes:
        build_directory: Relative path (from the project root) for compiler output.
        sources: Entry files relative to the project root. When empty, every
            .sdkgen file below the project root is an entry file.
    """

    build_directory: str
    sources: list[str] = field(default_factory=list)


def load_project_config(path: Path) -> ProjectConfig:
    """Load and parse an sdkgen project configuration file.

    Args:
        path: Path to the `.sdkgen.yaml` file.

    Returns:
        A ProjectConfig instance populated from the file.

    Raises:
        WorkspaceConfigError: If the file cannot be read or the configuration is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise WorkspaceConfigError(f"Project config file not found: {path}") from None
    except OSError as exc:
        raise WorkspaceConfigError(f"Cannot read project config file: {exc}") from exc

    return _parse_project_config(text, source_label=str(path))


# ################
# Implementation
# ################


def _parse_project_config(text: str, source_label: str = "<string>") -> ProjectConfig:
    """Parse project config YAML text into a ProjectConfig.

    Raises:
        WorkspaceConfigError: If the YAML is invalid or required fields are missing.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise WorkspaceConfigError(f"Invalid YAML in {source_label}: {exc}") from exc

    if not isinstance(data, dict):
        raise WorkspaceConfigError(f"{source_label}: project config must be a YAML mapping")

    build_directory = _require_string(data, "build-directory", source_label)

    sources: list[str] = []
    if "sources" in data:
        raw_sources = data["sources"]
        if not isinstance(raw_sources, list):
            raise WorkspaceConfigError(f"{source_label}: 'sources' must be a list")
        for index, entry in enumerate(raw_sources):
            if not isinstance(entry, str):
                raise WorkspaceConfigError(f"{source_label}: sources[{index}] must be a string")
            sources.append(entry)

    return ProjectConfig(build_directory=build_directory, sources=sources)


def _require_string(mapping: dict[str, object], key: str, source_label: str) -> str:
    """Extract a required string field from a mapping, raising WorkspaceConfigError if missing."""
    if key not in mapping:
        raise WorkspaceConfigError(f"{source_label}: missing required field '{key}'")
    value = mapping[key]
    if not isinstance(value, str):
        raise WorkspaceConfigError(f"{source_label}: '{key}' must be a string")
    return value
