"""Resolve -> bootstrap -> build -> package, strictly in that order, for one platform per run.

Library entry points raise PipelineError subclasses; `run` maps them to exit codes.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from crossbuild_tooling.build.config import BuildConfig
from crossbuild_tooling.build.driver import Artifact, build
from crossbuild_tooling.build.driver import expected_artifacts as artifacts_for
from crossbuild_tooling.config import load_config
from crossbuild_tooling.docker.package import ImageSpec, PackagedImage, package
from crossbuild_tooling.docker.verify_image import run as verify_image
from crossbuild_tooling.errors import PipelineError
from crossbuild_tooling.platforms import ToolchainSpec, resolve
from crossbuild_tooling.toolchain.bootstrap import bootstrap
from crossbuild_tooling.toolchain.context import ExecutionContext
from crossbuild_tooling.toolchain.manifest import load_manifest

log = logging.getLogger(__name__)

HOME_ENV = "CROSSBUILD_HOME"
DEFAULT_HOME_DIR = ".crossbuild-home"
STAGES = ("resolve", "bootstrap", "build", "package")


@dataclass(frozen=True)
class PipelineResult:
    spec: ToolchainSpec
    context: ExecutionContext | None = None
    artifacts: tuple[Artifact, ...] = ()
    image: PackagedImage | None = None


def default_home(project_root: Path) -> Path:
    """Tool install root: $CROSSBUILD_HOME, else {project_root}/.crossbuild-home."""
    env = os.environ.get(HOME_ENV)
    return Path(env) if env else project_root / DEFAULT_HOME_DIR


def ordered_binaries(config: dict[str, Any]) -> list[str]:
    """Configured binaries with the primary (entrypoint) binary first."""
    primary = config["primary_binary"]
    return [primary, *(b for b in config["binaries"] if b != primary)]


def build_config_for(config: dict[str, Any]) -> BuildConfig:
    return BuildConfig().with_overrides(config["build_env"])


def image_spec_for(
    config: dict[str, Any],
    spec: ToolchainSpec,
    project_root: Path,
    tag: str | None = None,
) -> ImageSpec:
    """Image for spec: dist dir {dist_dir}/{arch}, tag {image_name}:{image_tag} unless tag is given."""
    return ImageSpec(
        tag=tag or f"{config['image_name']}:{config['image_tag']}",
        platform=spec.docker_platform,
        dist_dir=project_root / config["dist_dir"] / spec.arch,
        workdir=config["workdir"],
    )


def expected_artifacts(
    config: dict[str, Any], spec: ToolchainSpec, project_root: Path
) -> list[Artifact]:
    """Artifacts a successful build for spec leaves behind, without building."""
    return artifacts_for(project_root, spec.triple, config["profile"], ordered_binaries(config))


def run_pipeline(
    platform_id: str,
    project_root: Path,
    home: Path | None = None,
    config: dict[str, Any] | None = None,
    tag: str | None = None,
    build_image: bool = True,
    until: str = "package",
) -> PipelineResult:
    """Run every stage up to and including `until`. The first failing stage raises and stops the run."""
    if until not in STAGES:
        msg = f"unknown stage {until!r}; expected one of {', '.join(STAGES)}"
        raise ValueError(msg)
    cfg = config if config is not None else load_config(project_root)
    log.debug("config: %s", cfg)

    spec = resolve(platform_id)
    print(f"🎯 {spec.platform_id} -> {spec.triple}")
    if until == "resolve":
        return PipelineResult(spec=spec)

    # Only the manifest is read before bootstrap; source edits never change its cache keys.
    manifest = load_manifest(project_root / cfg["manifest"])
    ctx = bootstrap(
        spec,
        manifest,
        ExecutionContext(home=home or default_home(project_root)),
        helper_package=cfg["helper_package"],
        download_retries=cfg["download_retries"],
    )
    if until == "bootstrap":
        return PipelineResult(spec=spec, context=ctx)

    artifacts = build(
        ctx,
        spec,
        build_config_for(cfg),
        ordered_binaries(cfg),
        project_root,
        profile=cfg["profile"],
    )
    if until == "build":
        return PipelineResult(spec=spec, context=ctx, artifacts=tuple(artifacts))

    image = package(artifacts, image_spec_for(cfg, spec, project_root, tag), build_image)
    return PipelineResult(spec=spec, context=ctx, artifacts=tuple(artifacts), image=image)


def run(
    platform_id: str,
    project_root: Path,
    home: Path | None = None,
    tag: str | None = None,
    build_image: bool = True,
    until: str = "package",
    verify: bool = False,
) -> int:
    """CLI entry: run the pipeline. Returns 0 on success, else the failing stage's exit code.

    With verify, a freshly built image is then checked (entrypoint, workdir, version query)
    and a failed check returns 1.
    """
    try:
        result = run_pipeline(
            platform_id,
            project_root,
            home=home,
            tag=tag,
            build_image=build_image,
            until=until,
        )
    except PipelineError as e:
        print(f"❌ {e}", file=sys.stderr)
        return e.exit_code
    if result.image is not None:
        files = ", ".join(result.image.files)
        print(f"🎉 {result.image.tag} ({result.spec.platform_id}): {files}")
        if verify:
            if not result.image.built:
                print(f"⚠️  {result.image.tag}: image not built, skipping verification")
                return 0
            return verify_image(
                result.image.tag,
                platform=result.image.platform,
                primary=result.image.entrypoint[0].lstrip("/"),
                workdir=result.image.workdir,
            )
    return 0


def run_package_only(
    platform_id: str,
    project_root: Path,
    tag: str | None = None,
    build_image: bool = True,
) -> int:
    """Package existing build outputs without bootstrapping or building. Returns 0 or the error's exit code."""
    try:
        cfg = load_config(project_root)
        spec = resolve(platform_id)
        artifacts = expected_artifacts(cfg, spec, project_root)
        image = package(artifacts, image_spec_for(cfg, spec, project_root, tag), build_image)
    except PipelineError as e:
        print(f"❌ {e}", file=sys.stderr)
        return e.exit_code
    print(f"🎉 {image.tag} ({spec.platform_id}): {', '.join(image.files)}")
    return 0
