"""Per-platform build environment overrides.

Architecture tuning lives here as data keyed by platform id. Adding a tuned platform
is a new entry, not a new branch in the driver.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

# arm64 kernels may run with 64K pages; jemalloc must be built for the largest page size.
DEFAULT_BUILD_ENV: dict[str, dict[str, str]] = {
    "linux/arm64": {"JEMALLOC_SYS_WITH_LG_PAGE": "16"},
}


@dataclass(frozen=True)
class BuildConfig:
    overrides: Mapping[str, Mapping[str, str]] = field(
        default_factory=lambda: {k: dict(v) for k, v in DEFAULT_BUILD_ENV.items()}
    )

    def overrides_for(self, platform_id: str) -> dict[str, str]:
        """Env overrides for platform_id; {} when the platform has no entry."""
        return dict(self.overrides.get(platform_id, {}))

    def managed_keys(self) -> set[str]:
        """Every env key some platform overrides; none may leak from the host into another platform."""
        return {key for env in self.overrides.values() for key in env}

    def with_overrides(self, extra: Mapping[str, Mapping[str, str]]) -> BuildConfig:
        """New config with extra merged per platform (extra wins on key clashes)."""
        merged = {k: dict(v) for k, v in self.overrides.items()}
        for platform_id, env in extra.items():
            merged.setdefault(platform_id, {}).update(env)
        return BuildConfig(overrides=merged)
