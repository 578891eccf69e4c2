"""Toolchain bootstrap: helper venv with cargo-zigbuild, rustup, pinned toolchain, musl std target.

Steps run in a fixed order and each one extends the ExecutionContext the next one runs in.
A step whose cache key matches the recorded state (and whose install marker still exists)
is skipped unless the step it is installed into was reinstalled in this run; its path
entry is still threaded into the context. State is written only after a step succeeds,
so a failed or interrupted install is never recorded as valid.
"""

from __future__ import annotations

import json
import logging
import subprocess
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from crossbuild_tooling.errors import ToolchainInstallFailure
from crossbuild_tooling.helpers import backoff_wait, fibonacci_backoff_sequence
from crossbuild_tooling.platforms import ToolchainSpec
from crossbuild_tooling.toolchain.context import ExecutionContext
from crossbuild_tooling.toolchain.manifest import ToolchainManifest

log = logging.getLogger(__name__)

STATE_DIR = ".crossbuild"
STATE_FILE = "bootstrap-state.json"
RUSTUP_INIT_URL = "https://sh.rustup.rs"
STEP_ORDER = ("helper", "rustup", "toolchain", "target")


@dataclass(frozen=True)
class StepCommand:
    argv: tuple[str, ...]
    retries: int = 0


@dataclass(frozen=True)
class BootstrapStep:
    name: str
    key: str
    commands: tuple[StepCommand, ...]
    cwd: Path
    path_entry: Path | None = None
    marker: Path | None = None
    # Step whose reinstall invalidates this one (its install lives inside that step's).
    requires: str | None = None


def state_path(home: Path) -> Path:
    return home / STATE_DIR / STATE_FILE


def load_state(path: Path) -> dict[str, str]:
    """Recorded step -> cache key. Missing or unreadable state means nothing is cached."""
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        log.warning("ignoring unreadable bootstrap state %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        return {}
    return {str(k): str(v) for k, v in data.items()}


def save_state(path: Path, state: dict[str, str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(state, indent=2, sort_keys=True) + "\n")
    tmp.replace(path)


def plan_steps(
    spec: ToolchainSpec,
    manifest: ToolchainManifest,
    home: Path,
    helper_package: str = "cargo-zigbuild",
    python: str = "python3",
    download_retries: int = 0,
) -> list[BootstrapStep]:
    """Ordered bootstrap steps for spec. Order is STEP_ORDER and never depends on cache state."""
    venv = home / ".venv"
    cargo_bin = home / ".cargo" / "bin"
    installer = home / STATE_DIR / "rustup-init.sh"
    toolchain_cmd = ["rustup", "toolchain", "install"]
    if manifest.profile:
        toolchain_cmd += ["--profile", manifest.profile]

    return [
        BootstrapStep(
            name="helper",
            key=helper_package,
            commands=(
                StepCommand((python, "-m", "venv", str(venv))),
                StepCommand((str(venv / "bin" / "pip"), "install", helper_package)),
            ),
            cwd=home,
            path_entry=venv / "bin",
            marker=venv / "bin" / "pip",
        ),
        BootstrapStep(
            name="rustup",
            key=f"{RUSTUP_INIT_URL}#minimal#{spec.triple}",
            commands=(
                StepCommand(
                    (
                        "curl",
                        "--proto",
                        "=https",
                        "--tlsv1.2",
                        "-sSf",
                        "-o",
                        str(installer),
                        RUSTUP_INIT_URL,
                    ),
                    retries=download_retries,
                ),
                StepCommand(
                    (
                        "sh",
                        str(installer),
                        "-y",
                        "--target",
                        spec.triple,
                        "--profile",
                        "minimal",
                        "--default-toolchain",
                        "none",
                    )
                ),
            ),
            cwd=home,
            path_entry=cargo_bin,
            marker=cargo_bin / "rustup",
        ),
        BootstrapStep(
            name="toolchain",
            key=manifest.content_hash,
            commands=(StepCommand(tuple(toolchain_cmd)),),
            cwd=manifest.path.parent,
            requires="rustup",
        ),
        BootstrapStep(
            name="target",
            key=f"{manifest.content_hash}:{spec.std_component}",
            commands=(StepCommand(("rustup", "target", "add", spec.std_component)),),
            cwd=manifest.path.parent,
            requires="toolchain",
        ),
    ]


def _run_command(
    step: BootstrapStep,
    command: StepCommand,
    ctx: ExecutionContext,
    sleep: Callable[[float], None],
) -> None:
    backoff = fibonacci_backoff_sequence(max_total_seconds=120)
    attempts = command.retries + 1
    for attempt in range(attempts):
        log.debug("bootstrap %s: %s (cwd=%s)", step.name, " ".join(command.argv), step.cwd)
        try:
            r = subprocess.run(list(command.argv), cwd=str(step.cwd), env=ctx.environ())
        except FileNotFoundError as e:
            raise ToolchainInstallFailure(
                step.name, f"{command.argv[0]} not found on PATH", exit_code=127
            ) from e
        if r.returncode == 0:
            return
        if attempt + 1 < attempts:
            wait = backoff_wait(attempt, backoff)
            print(
                f"Retry {attempt + 1}/{command.retries}: {step.name} exited {r.returncode}, waiting {wait}s...",
                file=sys.stderr,
            )
            sleep(wait)
            continue
        raise ToolchainInstallFailure(
            step.name,
            f"`{' '.join(command.argv)}` exited with status {r.returncode}",
            exit_code=r.returncode,
        )


def _is_cached(step: BootstrapStep, state: dict[str, str], installed: set[str]) -> bool:
    if step.requires in installed:
        return False
    if state.get(step.name) != step.key:
        return False
    return step.marker is None or step.marker.exists()


def bootstrap(
    spec: ToolchainSpec,
    manifest: ToolchainManifest,
    ctx: ExecutionContext,
    helper_package: str = "cargo-zigbuild",
    python: str = "python3",
    download_retries: int = 0,
    sleep: Callable[[float], None] = time.sleep,
) -> ExecutionContext:
    """Install (or reuse) every step in order and return the context the build runs in.

    Raises ToolchainInstallFailure on the first failing step; later steps do not run.
    """
    steps = plan_steps(
        spec,
        manifest,
        ctx.home,
        helper_package=helper_package,
        python=python,
        download_retries=download_retries,
    )
    path = state_path(ctx.home)
    state = load_state(path)
    ctx.home.mkdir(parents=True, exist_ok=True)
    (ctx.home / STATE_DIR).mkdir(parents=True, exist_ok=True)
    installed: set[str] = set()

    for step in steps:
        if _is_cached(step, state, installed):
            print(f"♻️  {step.name}: cached")
        else:
            print(f"🔨 {step.name}: installing")
            for command in step.commands:
                _run_command(step, command, ctx, sleep)
            state[step.name] = step.key
            save_state(path, state)
            installed.add(step.name)
            print(f"✅ {step.name}: installed")
        if step.path_entry is not None:
            ctx = ctx.with_path(step.path_entry)
    return ctx
