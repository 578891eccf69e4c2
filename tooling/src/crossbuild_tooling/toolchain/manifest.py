"""Pinned toolchain manifest (rust-toolchain.toml). Its content hash keys the toolchain install steps."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from crossbuild_tooling.errors import ToolchainInstallFailure
from crossbuild_tooling.helpers import sha256_bytes


@dataclass(frozen=True)
class ToolchainManifest:
    path: Path
    channel: str
    profile: str | None
    components: tuple[str, ...]
    targets: tuple[str, ...]
    content_hash: str


def load_manifest(path: Path) -> ToolchainManifest:
    """Parse rust-toolchain.toml at path.

    Raises ToolchainInstallFailure (step "manifest") when the file is missing, is not
    valid TOML, or has no [toolchain].channel.
    """
    if not path.is_file():
        raise ToolchainInstallFailure("manifest", f"toolchain manifest not found: {path}")
    raw = path.read_bytes()
    try:
        data = tomllib.loads(raw.decode())
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        raise ToolchainInstallFailure("manifest", f"invalid toolchain manifest {path}: {e}") from e

    section = data.get("toolchain")
    if not isinstance(section, dict) or not isinstance(section.get("channel"), str):
        raise ToolchainInstallFailure("manifest", f"{path} has no [toolchain].channel")

    profile = section.get("profile")
    return ToolchainManifest(
        path=path,
        channel=section["channel"],
        profile=profile if isinstance(profile, str) else None,
        components=tuple(section.get("components") or ()),
        targets=tuple(section.get("targets") or ()),
        content_hash=sha256_bytes(raw),
    )
