"""Pytest fixtures for crossbuild tooling tests."""

from pathlib import Path

import pytest

RUST_TOOLCHAIN = '[toolchain]\nchannel = "1.81"\n'


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """Minimal cargo project tree: Cargo.toml, Cargo.lock, rust-toolchain.toml, crates/."""
    root = tmp_path / "project"
    (root / "crates" / "uv" / "src").mkdir(parents=True)
    (root / "crates" / "uv" / "src" / "main.rs").write_text("fn main() {}\n")
    (root / "Cargo.toml").write_text('[workspace]\nmembers = ["crates/*"]\n')
    (root / "Cargo.lock").write_text("version = 3\n")
    (root / "rust-toolchain.toml").write_text(RUST_TOOLCHAIN)
    return root


@pytest.fixture
def home(tmp_path: Path) -> Path:
    return tmp_path / "home"
