"""Check a built runtime image: entrypoint, working directory, and that `<entrypoint> --version` exits 0."""

from __future__ import annotations

import json
import subprocess
import sys


def inspect_config(tag: str) -> dict:
    """Return the image Config section from `docker image inspect`. Raises RuntimeError on failure."""
    r = subprocess.run(
        ["docker", "image", "inspect", tag],
        capture_output=True,
        text=True,
    )
    if r.returncode != 0:
        msg = f"docker image inspect {tag} failed: {r.stderr.strip()}"
        raise RuntimeError(msg)
    try:
        data = json.loads(r.stdout)
    except json.JSONDecodeError as e:
        msg = f"unexpected docker image inspect output for {tag}"
        raise RuntimeError(msg) from e
    if not data:
        msg = f"image not found: {tag}"
        raise RuntimeError(msg)
    return data[0].get("Config") or {}


def run(
    tag: str,
    platform: str | None = None,
    primary: str = "uv",
    workdir: str = "/io",
    version_flag: str = "--version",
) -> int:
    """Verify image tag. Returns 0 when entrypoint, workdir and the version query all check out, else 1."""
    try:
        config = inspect_config(tag)
    except RuntimeError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    entrypoint = config.get("Entrypoint") or []
    if entrypoint != [f"/{primary}"]:
        print(f"❌ {tag}: entrypoint {entrypoint} != ['/{primary}']", file=sys.stderr)
        return 1
    if config.get("WorkingDir") != workdir:
        print(f"❌ {tag}: working dir {config.get('WorkingDir')!r} != {workdir!r}", file=sys.stderr)
        return 1

    cmd = ["docker", "run", "--rm"]
    if platform:
        cmd += ["--platform", platform]
    cmd += [tag, version_flag]
    r = subprocess.run(cmd, capture_output=True, text=True)
    if r.returncode != 0:
        print(f"❌ {tag} {version_flag} exited {r.returncode}: {r.stderr.strip()}", file=sys.stderr)
        return 1
    print(f"✅ {tag}: {r.stdout.strip()}")
    return 0
