"""Shared helpers for crossbuild_tooling (yaml load, hashing, retry backoff).

Used by config, toolchain, and docker modules.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Any

import yaml

# --- File ---


def load_yaml_mapping(p: Path) -> dict[str, Any]:
    """Load a YAML mapping from path. Empty files load as {}. Raises ValueError when the top level is not a mapping."""
    with p.open() as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Expected a mapping at top level of {p}, got {type(data).__name__}"
        raise ValueError(msg)
    return data


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def sha256_file(p: Path) -> str:
    """Hex sha256 of the file at p, read in chunks."""
    h = hashlib.sha256()
    with p.open("rb") as f:
        for chunk in iter(lambda: f.read(1 << 16), b""):
            h.update(chunk)
    return h.hexdigest()


# --- Retry ---


def fibonacci_backoff_sequence(max_total_seconds: int = 300) -> list[int]:
    """Generate Fibonacci backoff sequence (seconds) up to max_total_seconds."""
    sequence: list[int] = []
    total = 0
    a, b = 1, 1
    while total + a <= max_total_seconds:
        sequence.append(a)
        total += a
        a, b = b, a + b
    return sequence


def backoff_wait(attempt: int, sequence: list[int]) -> int:
    """Seconds to wait before retry number attempt (0-based); repeats the last step once the sequence runs out."""
    if attempt < len(sequence):
        return sequence[attempt]
    return sequence[-1] if sequence else 1
