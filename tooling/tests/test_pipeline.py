"""End-to-end tests for crossbuild_tooling.pipeline with subprocess mocked."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from crossbuild_tooling.config import resolve_config
from crossbuild_tooling.errors import UnsupportedPlatform
from crossbuild_tooling.pipeline import (
    default_home,
    ordered_binaries,
    run,
    run_package_only,
    run_pipeline,
)


class FakeHost:
    """Stands in for python3/pip/curl/sh/rustup/cargo/docker. Records argv and env per call."""

    def __init__(self, home: Path, project: Path, produce: tuple[str, ...] = ("uv", "uvx")) -> None:
        self.home = home
        self.project = project
        self.produce = produce
        self.calls: list[list[str]] = []
        self.envs: list[dict] = []
        self.codes: dict[str, int] = {}

    def __call__(self, cmd, cwd=None, env=None, **kwargs):
        cmd = list(cmd)
        self.calls.append(cmd)
        self.envs.append(dict(env or {}))
        tool = Path(cmd[0]).name
        if tool in self.codes:
            return MagicMock(returncode=self.codes[tool])
        if cmd[1:3] == ["-m", "venv"]:
            (Path(cmd[3]) / "bin").mkdir(parents=True, exist_ok=True)
            (Path(cmd[3]) / "bin" / "pip").write_text("")
        elif tool == "sh":
            (self.home / ".cargo" / "bin").mkdir(parents=True, exist_ok=True)
            (self.home / ".cargo" / "bin" / "rustup").write_text("")
        elif cmd[:2] == ["cargo", "zigbuild"]:
            triple = cmd[cmd.index("--target") + 1]
            out = self.project / "target" / triple / "release"
            out.mkdir(parents=True, exist_ok=True)
            for name in self.produce:
                (out / name).write_bytes(b"\x7fELF")
        return MagicMock(returncode=0)

    def tools(self) -> list[str]:
        return [Path(c[0]).name for c in self.calls]


@pytest.fixture
def host(project: Path, home: Path) -> FakeHost:
    return FakeHost(home, project)


class TestRunPipeline:
    def test_amd64_end_to_end(self, project: Path, home: Path, host: FakeHost) -> None:
        with patch("subprocess.run", side_effect=host):
            rc = run("linux/amd64", project, home=home)
        assert rc == 0
        assert host.tools() == ["python3", "pip", "curl", "sh", "rustup", "rustup", "cargo", "docker"]

        dist = project / "dist" / "amd64"
        dockerfile = (dist / "Dockerfile").read_text().splitlines()
        assert dockerfile[0] == "FROM scratch"
        copies = [line for line in dockerfile if line.startswith("COPY")]
        assert copies == ["COPY uv uvx /"]
        assert 'ENTRYPOINT ["/uv"]' in dockerfile
        assert "WORKDIR /io" in dockerfile
        assert (dist / ".dockerignore").read_text() == "*\n!uv\n!uvx\n"

    def test_result_describes_two_file_image(self, project: Path, home: Path, host: FakeHost) -> None:
        with patch("subprocess.run", side_effect=host):
            result = run_pipeline("linux/amd64", project, home=home)
        assert result.image is not None
        assert result.image.files == ("/uv", "/uvx")
        assert result.image.entrypoint == ("/uv",)
        assert result.image.tag == "uv:latest"
        assert [a.name for a in result.artifacts] == ["uv", "uvx"]

    def test_arm64_build_gets_allocator_override(
        self, project: Path, home: Path, host: FakeHost
    ) -> None:
        with patch("subprocess.run", side_effect=host):
            assert run("linux/arm64", project, home=home) == 0
        cargo_env = host.envs[host.tools().index("cargo")]
        assert cargo_env["JEMALLOC_SYS_WITH_LG_PAGE"] == "16"
        assert (project / "dist" / "arm64" / "uv").exists()

    def test_unsupported_platform_runs_nothing(self, project: Path, home: Path, host: FakeHost) -> None:
        with patch("subprocess.run", side_effect=host):
            rc = run("linux/s390x", project, home=home)
        assert rc == 2
        assert host.calls == []
        assert not home.exists()

    def test_unsupported_platform_raises_from_library(self, project: Path, home: Path) -> None:
        with pytest.raises(UnsupportedPlatform):
            run_pipeline("windows/amd64", project, home=home)

    def test_missing_manifest_fails_bootstrap(self, project: Path, home: Path, host: FakeHost) -> None:
        (project / "rust-toolchain.toml").unlink()
        with patch("subprocess.run", side_effect=host):
            rc = run("linux/amd64", project, home=home)
        assert rc == 1
        assert host.calls == []

    def test_toolchain_failure_propagates_status(
        self, project: Path, home: Path, host: FakeHost
    ) -> None:
        host.codes["rustup"] = 4
        with patch("subprocess.run", side_effect=host):
            rc = run("linux/amd64", project, home=home)
        assert rc == 4
        assert "cargo" not in host.tools()
        assert not (project / "dist").exists()

    def test_compile_failure_publishes_nothing(self, project: Path, home: Path, host: FakeHost) -> None:
        host.codes["cargo"] = 101
        with patch("subprocess.run", side_effect=host):
            rc = run("linux/amd64", project, home=home)
        assert rc == 101
        assert "docker" not in host.tools()
        assert not (project / "dist").exists()

    def test_missing_artifact_publishes_nothing(self, project: Path, home: Path) -> None:
        host = FakeHost(home, project, produce=("uv",))
        with patch("subprocess.run", side_effect=host):
            rc = run("linux/amd64", project, home=home)
        assert rc == 3
        assert "docker" not in host.tools()
        assert not (project / "dist").exists()

    def test_source_edit_does_not_rerun_bootstrap(
        self, project: Path, home: Path, host: FakeHost
    ) -> None:
        with patch("subprocess.run", side_effect=host):
            assert run("linux/amd64", project, home=home) == 0
            n = len(host.calls)
            (project / "crates" / "uv" / "src" / "main.rs").write_text('fn main() { println!("x"); }\n')
            (project / "Cargo.lock").write_text("version = 4\n")
            assert run("linux/amd64", project, home=home) == 0
        assert host.tools()[n:] == ["cargo", "docker"]

    def test_until_bootstrap_stops_before_build(self, project: Path, home: Path, host: FakeHost) -> None:
        with patch("subprocess.run", side_effect=host):
            result = run_pipeline("linux/amd64", project, home=home, until="bootstrap")
        assert "cargo" not in host.tools()
        assert result.context is not None
        assert result.context.path_entries[0] == home / ".cargo" / "bin"

    def test_unknown_stage_rejected(self, project: Path) -> None:
        with pytest.raises(ValueError):
            run_pipeline("linux/amd64", project, until="publish")

    def test_config_file_shapes_run(self, project: Path, home: Path, host: FakeHost) -> None:
        (project / "crossbuild.yaml").write_text(
            "image_name: ghcr.io/acme/uv\nimage_tag: '0.4.0'\n"
            "build_env:\n  linux/amd64:\n    CARGO_PROFILE_RELEASE_LTO: fat\n"
        )
        with patch("subprocess.run", side_effect=host):
            result = run_pipeline("linux/amd64", project, home=home, build_image=False)
        assert result.image is not None
        assert result.image.tag == "ghcr.io/acme/uv:0.4.0"
        assert result.image.built is False
        assert "docker" not in host.tools()
        cargo_env = host.envs[host.tools().index("cargo")]
        assert cargo_env["CARGO_PROFILE_RELEASE_LTO"] == "fat"
        assert "JEMALLOC_SYS_WITH_LG_PAGE" not in cargo_env

    def test_verify_checks_built_image(self, project: Path, home: Path, host: FakeHost) -> None:
        with (
            patch("subprocess.run", side_effect=host),
            patch("crossbuild_tooling.pipeline.verify_image", return_value=0) as m_verify,
        ):
            assert run("linux/amd64", project, home=home, verify=True) == 0
        m_verify.assert_called_once_with(
            "uv:latest", platform="linux/amd64", primary="uv", workdir="/io"
        )

    def test_failed_verification_fails_run(self, project: Path, home: Path, host: FakeHost) -> None:
        with (
            patch("subprocess.run", side_effect=host),
            patch("crossbuild_tooling.pipeline.verify_image", return_value=1),
        ):
            assert run("linux/amd64", project, home=home, verify=True) == 1

    def test_verify_skipped_without_image(self, project: Path, home: Path, host: FakeHost) -> None:
        with (
            patch("subprocess.run", side_effect=host),
            patch("crossbuild_tooling.pipeline.verify_image") as m_verify,
        ):
            assert run("linux/amd64", project, home=home, build_image=False, verify=True) == 0
        m_verify.assert_not_called()
        assert "docker" not in host.tools()


class TestPackageOnly:
    def test_missing_build_output_returns_3(self, project: Path) -> None:
        with patch("subprocess.run") as m:
            assert run_package_only("linux/amd64", project) == 3
        m.assert_not_called()

    def test_packages_existing_outputs(self, project: Path) -> None:
        out = project / "target" / "aarch64-unknown-linux-musl" / "release"
        out.mkdir(parents=True)
        (out / "uv").write_bytes(b"uv")
        (out / "uvx").write_bytes(b"uvx")
        with patch("subprocess.run", return_value=MagicMock(returncode=0)) as m:
            assert run_package_only("linux/arm64", project, tag="uv:arm64") == 0
        (cmd,) = m.call_args[0]
        assert "uv:arm64" in cmd
        assert "linux/arm64" in cmd


class TestHelpers:
    def test_ordered_binaries_puts_primary_first(self) -> None:
        cfg = resolve_config({"binaries": ["uvx", "uv"], "primary_binary": "uv"})
        assert ordered_binaries(cfg) == ["uv", "uvx"]

    def test_default_home(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CROSSBUILD_HOME", raising=False)
        assert default_home(tmp_path) == tmp_path / ".crossbuild-home"
        monkeypatch.setenv("CROSSBUILD_HOME", str(tmp_path / "h"))
        assert default_home(tmp_path) == tmp_path / "h"
