# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Project configuration for sdkgen."""

from sdkgen.workspace.config import (
    CONFIG_FILE_NAME,
    ProjectConfig,
    WorkspaceConfigError,
    load_project_config,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "ProjectConfig",
    "WorkspaceConfigError",
    "load_project_config",
]
