"""Cross build of the named binaries (cargo zigbuild, musl targets) with per-platform env tuning."""

from .config import DEFAULT_BUILD_ENV, BuildConfig
from .driver import (
    Artifact,
    artifact_path,
    build,
    build_command,
    build_env,
    expected_artifacts,
)

__all__ = [
    "DEFAULT_BUILD_ENV",
    "Artifact",
    "BuildConfig",
    "artifact_path",
    "build",
    "build_command",
    "build_env",
    "expected_artifacts",
]
