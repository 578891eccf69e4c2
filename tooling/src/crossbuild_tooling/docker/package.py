"""Artifact packager: verify build outputs, copy them to a flat dist dir, build the scratch image."""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass, replace
from pathlib import Path

from crossbuild_tooling.build.driver import Artifact
from crossbuild_tooling.docker.generate_dockerfile import generate_dockerfile
from crossbuild_tooling.errors import ArtifactMissing, ImageBuildFailure
from crossbuild_tooling.helpers import sha256_file

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageSpec:
    tag: str
    platform: str
    dist_dir: Path
    workdir: str = "/io"


@dataclass(frozen=True)
class PackagedImage:
    tag: str
    platform: str
    dockerfile: Path
    files: tuple[str, ...]
    entrypoint: tuple[str, ...]
    workdir: str
    built: bool


def verify_artifacts(artifacts: Sequence[Artifact]) -> None:
    """Raise ArtifactMissing listing every artifact whose path is not a file."""
    missing = [a.path for a in artifacts if not a.path.is_file()]
    if missing:
        raise ArtifactMissing(missing)


def copy_artifacts(artifacts: Sequence[Artifact], dist_dir: Path) -> list[Path]:
    """Copy (never move) each artifact to dist_dir/{name}, chmod 755, and write {name}.sha256."""
    dist_dir.mkdir(parents=True, exist_ok=True)
    out: list[Path] = []
    for a in artifacts:
        dest = dist_dir / a.name
        shutil.copy2(a.path, dest)
        dest.chmod(0o755)
        (dist_dir / f"{a.name}.sha256").write_text(sha256_file(dest) + "\n")
        print(f"📦 Copying {a.role}: {a.path} -> {dest}")
        out.append(dest)
    return out


def buildx_command(image: ImageSpec, dockerfile: Path) -> list[str]:
    return [
        "docker",
        "buildx",
        "build",
        "--platform",
        image.platform,
        "--tag",
        image.tag,
        "--load",
        "-f",
        str(dockerfile),
        str(image.dist_dir),
    ]


def package(
    artifacts: Sequence[Artifact],
    image: ImageSpec,
    build_image: bool = True,
) -> PackagedImage:
    """Package artifacts into a scratch image whose filesystem holds only those binaries.

    The primary artifact is the one with role "primary" (else the first). Raises
    ArtifactMissing before copying anything when any output is absent, and
    ImageBuildFailure when docker buildx fails.
    """
    if not artifacts:
        raise ArtifactMissing([])
    verify_artifacts(artifacts)
    primary = next((a for a in artifacts if a.role == "primary"), artifacts[0])
    names = [a.name for a in artifacts]

    copy_artifacts(artifacts, image.dist_dir)
    dockerfile = generate_dockerfile(image.dist_dir, names, primary.name, image.workdir)
    result = PackagedImage(
        tag=image.tag,
        platform=image.platform,
        dockerfile=dockerfile,
        files=tuple(f"/{n}" for n in names),
        entrypoint=(f"/{primary.name}",),
        workdir=image.workdir,
        built=False,
    )
    if not build_image:
        print("Info:  Image not built (--no-image). Build context ready in", image.dist_dir)
        return result

    cmd = buildx_command(image, dockerfile)
    log.debug("docker: %s", " ".join(cmd))
    print(f"🔨 Building image {image.tag} for {image.platform}...")
    try:
        r = subprocess.run(cmd, cwd=str(image.dist_dir))
    except FileNotFoundError as e:
        msg = "docker not found on PATH"
        raise ImageBuildFailure(msg, exit_code=127) from e
    if r.returncode != 0:
        msg = f"docker buildx build exited with status {r.returncode} for {image.tag}"
        raise ImageBuildFailure(msg, exit_code=r.returncode)
    print(f"✅ Built: {image.tag}")
    return replace(result, built=True)
