"""Shared CLI argument handling: platform argument, --project-root, --home, -v."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from crossbuild_tooling.platforms import supported_platforms


def path_resolver(s: str) -> Path:
    """Resolve a path argument to absolute Path (e.g. --project-root, --home)."""
    return Path(s).resolve()


def add_common_args(
    ap: argparse.ArgumentParser, platform_required: bool = True, with_home: bool = True
) -> None:
    """Add platform positional, --project-root, --home (unless with_home is False) and --verbose to ap."""
    ap.add_argument(
        "platform",
        nargs=None if platform_required else "?",
        default=None,
        help=f"Target platform: {', '.join(supported_platforms())}",
    )
    ap.add_argument(
        "--project-root",
        type=path_resolver,
        default=Path.cwd(),
        help="Project root holding Cargo.toml and rust-toolchain.toml (default: cwd)",
    )
    if with_home:
        ap.add_argument(
            "--home",
            type=path_resolver,
            default=None,
            help="Tool install root (default: $CROSSBUILD_HOME or <project-root>/.crossbuild-home)",
        )
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
