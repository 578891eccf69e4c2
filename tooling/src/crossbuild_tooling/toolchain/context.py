"""Execution context threaded through bootstrap and build instead of mutating os.environ."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path


@dataclass(frozen=True)
class ExecutionContext:
    """Tool locations and env additions discovered so far.

    path_entries are ordered highest priority first: the most recently added
    directory shadows earlier ones, as `ENV PATH="new:$PATH"` would.
    """

    home: Path
    path_entries: tuple[Path, ...] = ()
    env: Mapping[str, str] = field(default_factory=dict)

    def with_path(self, entry: Path) -> ExecutionContext:
        if entry in self.path_entries:
            return self
        return replace(self, path_entries=(entry, *self.path_entries))

    def with_env(self, key: str, value: str) -> ExecutionContext:
        return replace(self, env={**self.env, key: value})

    def environ(self, base: Mapping[str, str] | None = None) -> dict[str, str]:
        """Full process environment: base (default os.environ) + HOME + env additions + PATH prefix."""
        out = dict(os.environ if base is None else base)
        out["HOME"] = str(self.home)
        out.update(self.env)
        prefix = [str(p) for p in self.path_entries]
        existing = out.get("PATH", "")
        out["PATH"] = os.pathsep.join([*prefix, existing] if existing else prefix)
        return out
