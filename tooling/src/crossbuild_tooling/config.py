"""Pipeline configuration: defaults merged with an optional crossbuild.yaml at the project root.

crossbuild.yaml format (every key optional):
- binaries: binary names to build, primary first (default: [uv, uvx])
- primary_binary: entrypoint binary of the image (default: first of binaries)
- image_name / image_tag: image reference is {image_name}:{image_tag}
- workdir: working directory declared by the image (default: /io)
- profile: cargo build profile (default: release)
- manifest: pinned toolchain manifest, relative to project root (default: rust-toolchain.toml)
- dist_dir: flat distribution directory, relative to project root (default: dist)
- helper_package: pip requirement for the cross-linking helper (default: cargo-zigbuild)
- build_env: platform id -> {ENV: value} overrides, merged over the built-in tuning table
- bootstrap.download_retries: bounded retries for the toolchain installer download (default: 0)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from crossbuild_tooling.errors import ConfigError
from crossbuild_tooling.helpers import load_yaml_mapping

CONFIG_FILE = "crossbuild.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "binaries": ["uv", "uvx"],
    "primary_binary": None,
    "image_name": "uv",
    "image_tag": "latest",
    "workdir": "/io",
    "profile": "release",
    "manifest": "rust-toolchain.toml",
    "dist_dir": "dist",
    "helper_package": "cargo-zigbuild",
    "build_env": {},
    "download_retries": 0,
}

_STR_KEYS = (
    "image_name",
    "image_tag",
    "workdir",
    "profile",
    "manifest",
    "dist_dir",
    "helper_package",
)


def resolve_config(raw: dict[str, Any] | None) -> dict[str, Any]:
    """Return config dict with defaults filled and values validated. Unknown keys are ignored."""
    out = dict(DEFAULT_CONFIG)
    out["binaries"] = list(DEFAULT_CONFIG["binaries"])
    out["build_env"] = {}
    if not raw:
        out["primary_binary"] = out["binaries"][0]
        return out

    for key in _STR_KEYS:
        if key in raw:
            value = raw[key]
            if not isinstance(value, str) or not value:
                msg = f"{key} must be a non-empty string"
                raise ConfigError(msg)
            out[key] = value

    if "binaries" in raw:
        binaries = raw["binaries"]
        if (
            not isinstance(binaries, list)
            or not binaries
            or not all(isinstance(b, str) and b for b in binaries)
        ):
            msg = "binaries must be a non-empty list of names"
            raise ConfigError(msg)
        if len(set(binaries)) != len(binaries):
            msg = f"binaries contains duplicates: {binaries}"
            raise ConfigError(msg)
        out["binaries"] = list(binaries)

    primary = raw.get("primary_binary") or out["binaries"][0]
    if primary not in out["binaries"]:
        msg = f"primary_binary {primary!r} is not one of binaries {out['binaries']}"
        raise ConfigError(msg)
    out["primary_binary"] = primary

    if not out["workdir"].startswith("/"):
        msg = f"workdir must be absolute, got {out['workdir']!r}"
        raise ConfigError(msg)

    build_env = raw.get("build_env") or {}
    if not isinstance(build_env, dict):
        msg = "build_env must map platform ids to environment overrides"
        raise ConfigError(msg)
    for platform_id, env in build_env.items():
        if not isinstance(env, dict):
            msg = f"build_env[{platform_id!r}] must be a mapping"
            raise ConfigError(msg)
        out["build_env"][str(platform_id)] = {str(k): str(v) for k, v in env.items()}

    bootstrap = raw.get("bootstrap") or {}
    if not isinstance(bootstrap, dict):
        msg = "bootstrap must be a mapping"
        raise ConfigError(msg)
    retries = bootstrap.get("download_retries", 0)
    if not isinstance(retries, int) or isinstance(retries, bool) or retries < 0:
        msg = f"bootstrap.download_retries must be a non-negative integer, got {retries!r}"
        raise ConfigError(msg)
    out["download_retries"] = retries
    return out


def load_config(project_root: Path, config_path: Path | None = None) -> dict[str, Any]:
    """Load crossbuild.yaml (or config_path) from project_root. A missing default file yields the defaults."""
    path = config_path or (project_root / CONFIG_FILE)
    if not path.is_absolute():
        path = project_root / path
    if not path.exists():
        if config_path is not None:
            msg = f"config file not found: {path}"
            raise ConfigError(msg)
        return resolve_config(None)
    try:
        raw = load_yaml_mapping(path)
    except (yaml.YAMLError, ValueError, OSError) as e:
        msg = f"cannot read {path}: {e}"
        raise ConfigError(msg) from e
    return resolve_config(raw)
