"""Render the scratch runtime Dockerfile and .dockerignore for the dist directory."""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path

DOCKERFILE_NAME = "Dockerfile"


def render_dockerfile(binaries: Sequence[str], primary: str, workdir: str = "/io") -> str:
    """FROM scratch with only binaries copied to /. ENTRYPOINT is exec form so arguments never pass through a shell."""
    if primary not in binaries:
        msg = f"primary binary {primary!r} not in {list(binaries)}"
        raise ValueError(msg)
    entrypoint = json.dumps([f"/{primary}"])
    lines = [
        "FROM scratch",
        f"COPY {' '.join(binaries)} /",
        f"WORKDIR {workdir}",
        f"ENTRYPOINT {entrypoint}",
    ]
    return "\n".join(lines) + "\n"


def render_dockerignore(binaries: Sequence[str]) -> str:
    """Exclude everything from the build context except binaries."""
    return "\n".join(["*", *(f"!{b}" for b in binaries)]) + "\n"


def generate_dockerfile(
    dist_dir: Path,
    binaries: Sequence[str],
    primary: str,
    workdir: str = "/io",
) -> Path:
    """Write Dockerfile and .dockerignore into dist_dir. Returns the Dockerfile path."""
    dist_dir.mkdir(parents=True, exist_ok=True)
    out = dist_dir / DOCKERFILE_NAME
    out.write_text(render_dockerfile(binaries, primary, workdir))
    (dist_dir / ".dockerignore").write_text(render_dockerignore(binaries))
    print(f"✅ Generated: {out}")
    return out
