# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the sdkgen command-line interface."""

import argparse
import sys
from pathlib import Path

from sdkgen.compiler.build import CompilerError, compile_file, compile_files, load_schema
from sdkgen.compiler.compatibility import check_compatibility
from sdkgen.parser.parser import SOURCE_SUFFIX
from sdkgen.workspace.config import (
    CONFIG_FILE_NAME,
    ProjectConfig,
    WorkspaceConfigError,
    load_project_config,
)

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the sdkgen CLI."""
    parser = argparse.ArgumentParser(
        prog="sdkgen",
        description="sdkgen - API schema compiler",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # init subcommand
    init_parser = subparsers.add_parser(
        "init",
        help="Initialize a new sdkgen project",
        description=f"Create a {CONFIG_FILE_NAME} project configuration in a directory.",
    )
    init_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory to initialize the project in (default: current directory)",
    )

    # check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Check the schema files of a project",
        description="Parse and analyse schema files without writing artifacts.",
    )
    check_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory containing the sdkgen project (default: current directory)",
    )

    # build subcommand
    build_parser = subparsers.add_parser(
        "build",
        help="Compile the schema files of a project",
        description="Compile schema files into JSON artifacts in the build directory.",
    )
    build_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory containing the sdkgen project (default: current directory)",
    )

    # compat subcommand
    compat_parser = subparsers.add_parser(
        "compat",
        help="Report breaking changes between two schema versions",
        description=(
            "Compare a new schema against the one existing clients were built with. "
            "Each schema is a .sdkgen source file or a compiled .sdkgen.json artifact."
        ),
    )
    compat_parser.add_argument("old", help="Schema that existing clients were built against")
    compat_parser.add_argument("new", help="Schema about to replace it")

    args = parser.parse_args()
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    sys.exit(_dispatch(args))


# ################
# Implementation
# ################

_DEFAULT_BUILD_DIR = ".sdkgen-build"


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "init":
        return _cmd_init(args)
    if args.command == "check":
        return _cmd_check(args)
    if args.command == "build":
        return _cmd_build(args)
    if args.command == "compat":
        return _cmd_compat(args)
    return 0


def _cmd_init(args: argparse.Namespace) -> int:
    """Handle the init subcommand."""
    directory = Path(args.directory).resolve()

    if not directory.exists():
        print(f"Error: directory '{directory}' does not exist.", file=sys.stderr)
        return 1

    config_file = directory / CONFIG_FILE_NAME

    if config_file.exists():
        print(
            f"Error: project already exists at '{config_file}'.",
            file=sys.stderr,
        )
        return 1

    config_content = (
        "# sdkgen Project Configuration\n"
        "# Entry files are compiled to <build-directory>/<name>.sdkgen.json.\n"
        "# Without 'sources', every .sdkgen file in the project is an entry file.\n"
        "\n"
        f"build-directory: {_DEFAULT_BUILD_DIR}\n"
    )
    config_file.write_text(config_content, encoding="utf-8")
    print(f"Initialized sdkgen project at '{config_file}'.")
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    """Handle the check subcommand."""
    loaded = _load_project(args.directory)
    if loaded is None:
        return 1
    directory, config = loaded

    source_files = _collect_sources(directory, config)
    if not source_files:
        print(f"No {SOURCE_SUFFIX} files found in the project.")
        return 0

    print(f"Checking {len(source_files)} schema file(s)...")
    for source_file in source_files:
        try:
            root = compile_file(source_file)
        except CompilerError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return 1
        for warning in root.warnings:
            print(f"Warning: {warning}")

    print("No issues found.")
    return 0


def _cmd_build(args: argparse.Namespace) -> int:
    """Handle the build subcommand."""
    loaded = _load_project(args.directory)
    if loaded is None:
        return 1
    directory, config = loaded

    source_files = _collect_sources(directory, config)
    if not source_files:
        print(f"No {SOURCE_SUFFIX} files found in the project.")
        return 0

    build_dir = directory / config.build_directory
    print(f"Building {len(source_files)} schema file(s)...")
    try:
        compiled = compile_files(source_files, build_dir)
    except CompilerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    for root in compiled.values():
        for warning in root.warnings:
            print(f"Warning: {warning}")

    print(f"Wrote {len(compiled)} artifact(s) to '{build_dir}'.")
    return 0


def _cmd_compat(args: argparse.Namespace) -> int:
    """Handle the compat subcommand."""
    try:
        old = load_schema(Path(args.old))
        new = load_schema(Path(args.new))
    except CompilerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    issues = check_compatibility(old, new)
    for issue in issues:
        print(issue)
    if issues:
        print(f"Found {len(issues)} breaking change(s).", file=sys.stderr)
        return 1

    print("No breaking changes.")
    return 0


def _load_project(directory_arg: str) -> tuple[Path, ProjectConfig] | None:
    """Resolve the project directory and load its configuration, reporting failures."""
    directory = Path(directory_arg).resolve()

    if not directory.exists():
        print(f"Error: directory '{directory}' does not exist.", file=sys.stderr)
        return None

    config_file = directory / CONFIG_FILE_NAME
    if not config_file.exists():
        print(
            f"Error: no sdkgen project found at '{directory}'. Run 'sdkgen init' to initialize a project.",
            file=sys.stderr,
        )
        return None

    try:
        config = load_project_config(config_file)
    except WorkspaceConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None

    return directory, config


def _collect_sources(directory: Path, config: ProjectConfig) -> list[Path]:
    """Return the entry files of a project, sorted when discovered by search."""
    if config.sources:
        return [directory / source for source in config.sources]

    build_dir = directory / config.build_directory
    return sorted(f for f in directory.rglob(f"*{SOURCE_SUFFIX}") if build_dir not in f.parents)
