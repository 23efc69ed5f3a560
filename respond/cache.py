"""Filesystem-backed artifact cache.

The output directory is the only record of what has been generated: an
artifact exists when its file exists. Nothing is remembered between calls,
and neither content nor modification times are compared, so a changed source
keeps its old derivatives until they are deleted.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Tuple

from .planner import DerivativeSpec


def artifact_path(output_dir: Path, spec: DerivativeSpec) -> Path:
    return Path(output_dir) / spec.filename


def missing(output_dir: Path, specs: Iterable[DerivativeSpec]) -> Tuple[DerivativeSpec, ...]:
    """Specs whose artifact file is absent, in planned order."""
    return tuple(s for s in specs if not artifact_path(output_dir, s).is_file())


def existing(output_dir: Path, specs: Iterable[DerivativeSpec]) -> Tuple[DerivativeSpec, ...]:
    return tuple(s for s in specs if artifact_path(output_dir, s).is_file())

