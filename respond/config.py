"""Pipeline configuration and defaults."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

from .naming import FORMATS, RASTER_FORMAT

BREAKPOINTS = (1400, 1200, 992, 768, 576)  # Bootstrap 5 container widths
STANDARD_WIDTH = 1024
QUALITY: Dict[str, int] = {"jpg": 85, "webp": 80, "avif": 80}
OUTPUT_SUBDIR = "img/responsive"

# Hosting environments that mount the site below a sub-path set this
PATH_PREFIX_ENV = "RESPOND_PATH_PREFIX"


def default_path_prefix() -> str:
    return os.environ.get(PATH_PREFIX_ENV, "")


def _order_formats(formats: Iterable[str]) -> Tuple[str, ...]:
    wanted = {f.strip().lower() for f in formats if f.strip()}
    if "jpeg" in wanted:
        wanted.discard("jpeg")
        wanted.add("jpg")
    unknown = wanted.difference(FORMATS)
    if unknown:
        raise ValueError(f"Unknown format(s): {', '.join(sorted(unknown))}")
    return tuple(f for f in FORMATS if f in wanted)


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable settings shared by planner, cache, transform and markup."""

    breakpoints: Tuple[int, ...] = BREAKPOINTS
    formats: Tuple[str, ...] = FORMATS
    standard_width: int = STANDARD_WIDTH
    quality: Tuple[Tuple[str, int], ...] = tuple(QUALITY.items())
    output_subdir: str = OUTPUT_SUBDIR

    def __post_init__(self) -> None:
        widths = sorted({int(w) for w in self.breakpoints}, reverse=True)
        if not widths or widths[-1] <= 0:
            raise ValueError("Breakpoints must be a non-empty set of positive widths")
        if self.standard_width <= 0:
            raise ValueError("Standard width must be positive")
        object.__setattr__(self, "breakpoints", tuple(widths))
        formats = _order_formats(self.formats)
        object.__setattr__(self, "formats", formats)
        # Accepts a mapping or pairs; stored as sorted pairs so the config hashes
        quality = tuple(sorted(dict(self.quality).items()))
        object.__setattr__(self, "quality", quality)
        # The standard fallback is raster even when raster breakpoints are off
        missing = [f for f in formats + (RASTER_FORMAT,) if f not in dict(quality)]
        if missing:
            raise ValueError(f"No quality configured for: {', '.join(missing)}")

    @property
    def modern_formats(self) -> Tuple[str, ...]:
        return tuple(f for f in self.formats if f != RASTER_FORMAT)

    def quality_for(self, fmt: str) -> int:
        return dict(self.quality)[fmt]


def parse_breakpoints(s: str) -> Tuple[int, ...]:
    try:
        widths = sorted({int(x.strip()) for x in s.split(",") if x.strip()}, reverse=True)
    except ValueError:
        raise argparse.ArgumentTypeError("Invalid --breakpoints. Example: 1400,1200,992,768,576")
    widths = [w for w in widths if w > 0]
    if not widths:
        raise argparse.ArgumentTypeError("--breakpoints needs at least one positive width")
    return tuple(widths)


def parse_formats(s: str) -> Tuple[str, ...]:
    try:
        return _order_formats(s.split(","))
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))
