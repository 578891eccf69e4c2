"""Pipeline error taxonomy. Each error names the stage that failed and the exit code to report."""

from __future__ import annotations

from pathlib import Path


class PipelineError(Exception):
    """Base for every failure that aborts the pipeline."""

    stage = "pipeline"
    default_exit_code = 1

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = _positive(exit_code, self.default_exit_code)

    def __str__(self) -> str:
        return f"[{self.stage}] {self.message}"


def _positive(code: int | None, fallback: int) -> int:
    """Subprocess status to propagate; anything that is not a positive int becomes fallback."""
    if isinstance(code, int) and code > 0:
        return code
    return fallback


class ConfigError(PipelineError):
    stage = "config"


class UnsupportedPlatform(PipelineError):
    stage = "resolve"
    default_exit_code = 2

    def __init__(self, platform_id: str, supported: list[str]) -> None:
        self.platform_id = platform_id
        self.supported = supported
        super().__init__(
            f"unsupported platform {platform_id!r}; expected one of: {', '.join(supported)}"
        )


class ToolchainInstallFailure(PipelineError):
    stage = "bootstrap"

    def __init__(self, step: str, message: str, exit_code: int | None = None) -> None:
        self.step = step
        super().__init__(f"{step}: {message}", exit_code)


class CompileFailure(PipelineError):
    stage = "build"


class ArtifactMissing(PipelineError):
    stage = "package"
    default_exit_code = 3

    def __init__(self, missing: list[Path]) -> None:
        self.missing = missing
        listed = ", ".join(str(p) for p in missing)
        super().__init__(f"expected build output not found: {listed}")


class ImageBuildFailure(PipelineError):
    stage = "package"
