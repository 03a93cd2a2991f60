#!/usr/bin/env python3
# Copyright 2026 Sdkgen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Run the sdkgen CI checks locally.

Usage::

    python tools/ci.py              # every step
    python tools/ci.py lint tests   # only the named steps

Tools come from the ``test`` and ``dev`` extras declared in pyproject.toml,
so each step runs through ``uv run --extra ...``.
"""

import argparse
import subprocess
import sys
import time
from pathlib import Path

from yachalk import chalk

# ###############
# Public Interface
# ###############

_DEV = ["uv", "run", "--extra", "dev"]
_TEST = ["uv", "run", "--extra", "test"]

# Step key -> (title, command).
STEPS: dict[str, tuple[str, list[str]]] = {
    "format": ("Format check", [*_DEV, "ruff", "format", "--check", "src/", "tests/", "tools/"]),
    "lint": ("Lint", [*_DEV, "ruff", "check", "src/", "tests/", "tools/"]),
    "types": ("Type check", [*_DEV, "ty", "check", "src/"]),
    "tests": ("Tests", [*_TEST, "pytest", "--cov=sdkgen", "--cov-report=term-missing"]),
    "cli": ("CLI entry point", [*_TEST, "sdkgen", "--help"]),
    "build": ("Build", ["uv", "build"]),
}


def main() -> int:
    """Run the selected CI steps and report results."""
    parser = argparse.ArgumentParser(prog="ci", description="Run sdkgen CI checks.")
    parser.add_argument("steps", nargs="*", metavar="STEP", help=f"Steps to run: {', '.join(STEPS)} (default: all)")
    selected = parser.parse_args().steps or list(STEPS)
    unknown = [key for key in selected if key not in STEPS]
    if unknown:
        parser.error(f"unknown step(s): {', '.join(unknown)}")

    results: list[tuple[str, bool, float]] = []
    for key in selected:
        title, cmd = STEPS[key]
        _banner(title)
        start = time.monotonic()
        proc = subprocess.run(cmd, cwd=_REPO_ROOT)
        results.append((title, proc.returncode == 0, time.monotonic() - start))

    _banner("  Summary")
    for title, passed, elapsed in results:
        colour = chalk.green if passed else chalk.red
        print(colour(f"  {'PASS' if passed else 'FAIL'}  {title} ({elapsed:.1f}s)"))

    print()
    return 0 if all(passed for _, passed, _ in results) else 1


# ################
# Implementation
# ################

_REPO_ROOT = Path(__file__).resolve().parent.parent


def _banner(title: str) -> None:
    sep = chalk.blue("=" * 60)
    print(f"\n{sep}")
    print(chalk.blue(title))
    print(sep)


if __name__ == "__main__":
    sys.exit(main())
