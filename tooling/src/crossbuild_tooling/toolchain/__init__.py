"""Toolchain bootstrap: pinned manifest, execution context, ordered cached install steps."""

from .bootstrap import STEP_ORDER, bootstrap, plan_steps
from .context import ExecutionContext
from .manifest import ToolchainManifest, load_manifest

__all__ = [
    "STEP_ORDER",
    "ExecutionContext",
    "ToolchainManifest",
    "bootstrap",
    "load_manifest",
    "plan_steps",
]
