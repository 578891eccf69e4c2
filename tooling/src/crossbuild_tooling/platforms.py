"""Platform resolver: docker platform id -> rust target triple, musl libc.

The table is the whole allow-list. Anything outside it raises UnsupportedPlatform;
there is no fallback triple.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from crossbuild_tooling.errors import UnsupportedPlatform

TARGET_PLATFORM_ENV = "TARGETPLATFORM"


@dataclass(frozen=True)
class ToolchainSpec:
    platform_id: str
    arch: str
    triple: str
    libc: str

    @property
    def std_component(self) -> str:
        """rustup target component providing the standard library for triple."""
        return self.triple

    @property
    def docker_platform(self) -> str:
        return self.platform_id


def _spec(platform_id: str, cpu: str) -> ToolchainSpec:
    arch = platform_id.split("/", 1)[1]
    return ToolchainSpec(
        platform_id=platform_id,
        arch=arch,
        triple=f"{cpu}-unknown-linux-musl",
        libc="musl",
    )


PLATFORMS: dict[str, ToolchainSpec] = {
    "linux/amd64": _spec("linux/amd64", "x86_64"),
    "linux/arm64": _spec("linux/arm64", "aarch64"),
}


def supported_platforms() -> list[str]:
    return sorted(PLATFORMS)


def resolve(platform_id: str) -> ToolchainSpec:
    """Return the ToolchainSpec for platform_id. Raises UnsupportedPlatform for ids outside PLATFORMS."""
    spec = PLATFORMS.get(platform_id)
    if spec is None:
        raise UnsupportedPlatform(platform_id, supported_platforms())
    return spec


def platform_from_env(environ: Mapping[str, str] | None = None) -> str:
    """PlatformID from TARGETPLATFORM (set by docker buildx). Raises UnsupportedPlatform when unset."""
    env = os.environ if environ is None else environ
    value = env.get(TARGET_PLATFORM_ENV, "")
    if not value:
        raise UnsupportedPlatform(f"<{TARGET_PLATFORM_ENV} unset>", supported_platforms())
    return value
