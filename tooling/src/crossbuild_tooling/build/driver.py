"""Build driver: cargo zigbuild of the named binaries for the resolved musl triple.

Per-platform env overrides come from BuildConfig and are merged into the invocation
environment only; os.environ is never touched.
"""

from __future__ import annotations

import logging
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from crossbuild_tooling.build.config import BuildConfig
from crossbuild_tooling.errors import CompileFailure
from crossbuild_tooling.platforms import ToolchainSpec
from crossbuild_tooling.toolchain.context import ExecutionContext

log = logging.getLogger(__name__)

# cargo's --release writes to target/<triple>/release; dev to target/<triple>/debug.
_PROFILE_DIRS = {"release": "release", "dev": "debug"}


@dataclass(frozen=True)
class Artifact:
    name: str
    role: str
    path: Path


def profile_dir(profile: str) -> str:
    return _PROFILE_DIRS.get(profile, profile)


def artifact_path(project_root: Path, triple: str, profile: str, name: str) -> Path:
    """Deterministic cargo output path: target/{triple}/{profile dir}/{name}."""
    return project_root / "target" / triple / profile_dir(profile) / name


def expected_artifacts(
    project_root: Path, triple: str, profile: str, binary_names: Sequence[str]
) -> list[Artifact]:
    """Artifacts a successful build leaves behind. The first name is the primary binary."""
    return [
        Artifact(
            name=name,
            role="primary" if i == 0 else "launcher",
            path=artifact_path(project_root, triple, profile, name),
        )
        for i, name in enumerate(binary_names)
    ]


def build_command(
    spec: ToolchainSpec, binary_names: Sequence[str], profile: str = "release"
) -> list[str]:
    cmd = ["cargo", "zigbuild"]
    for name in binary_names:
        cmd += ["--bin", name]
    cmd += ["--target", spec.triple]
    cmd += ["--release"] if profile == "release" else ["--profile", profile]
    return cmd


def build_env(
    ctx: ExecutionContext, spec: ToolchainSpec, build_config: BuildConfig
) -> dict[str, str]:
    """Invocation environment: context environ with this platform's overrides on top.

    Keys managed by build_config are dropped first, so a host value never reaches a
    platform without an entry for it.
    """
    env = ctx.environ()
    for key in build_config.managed_keys():
        env.pop(key, None)
    overrides = build_config.overrides_for(spec.platform_id)
    if overrides:
        log.debug("build env overrides for %s: %s", spec.platform_id, overrides)
    env.update(overrides)
    return env


def build(
    ctx: ExecutionContext,
    spec: ToolchainSpec,
    build_config: BuildConfig,
    binary_names: Sequence[str],
    project_root: Path,
    profile: str = "release",
) -> list[Artifact]:
    """Compile binary_names for spec.triple. Returns one Artifact per name, the first being primary.

    Raises CompileFailure when there is nothing to build or cargo exits non-zero.
    """
    if not binary_names:
        msg = "no binaries requested"
        raise CompileFailure(msg)
    manifest = project_root / "Cargo.toml"
    if not manifest.exists():
        msg = f"{manifest} not found"
        raise CompileFailure(msg)

    cmd = build_command(spec, binary_names, profile)
    env = build_env(ctx, spec, build_config)
    print(f"🔨 Building {', '.join(binary_names)} for {spec.triple} ({profile})...")
    try:
        r = subprocess.run(cmd, cwd=str(project_root), env=env)
    except FileNotFoundError as e:
        msg = "cargo not found on PATH (bootstrap did not run?)"
        raise CompileFailure(msg, exit_code=127) from e
    if r.returncode != 0:
        msg = f"`{' '.join(cmd)}` exited with status {r.returncode}"
        raise CompileFailure(msg, exit_code=r.returncode)

    artifacts = expected_artifacts(project_root, spec.triple, profile, binary_names)
    print(f"✅ Built {len(artifacts)} binaries for {spec.triple}")
    return artifacts
