"""Work out which derivatives must exist for a source image."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from .config import PipelineConfig
from .errors import SourceImageError
from .naming import RASTER_FORMAT, derivative_name, safe_base_name, standard_name

logger = logging.getLogger("respond.planner")

EXIF_ORIENTATION = 0x0112
ROTATED_ORIENTATIONS = {5, 6, 7, 8}


@dataclass(frozen=True)
class SourceImage:
    path: Path
    base_name: str
    width: int
    height: int


@dataclass(frozen=True)
class DerivativeSpec:
    base_name: str
    target_width: int
    format: str
    quality: int
    standard: bool = False

    @property
    def filename(self) -> str:
        if self.standard:
            return standard_name(self.base_name)
        return derivative_name(self.base_name, self.target_width, self.format)


def read_source(path: Path) -> SourceImage:
    """
    Read dimensions from the image header without decoding pixel data.
    Sizes are reported as displayed, i.e. after EXIF rotation.
    """
    path = Path(path)
    try:
        with Image.open(path) as im:
            w, h = im.size
            orientation = im.getexif().get(EXIF_ORIENTATION)
    except FileNotFoundError:
        raise SourceImageError(path, "file not found")
    except (UnidentifiedImageError, OSError) as e:
        raise SourceImageError(path, f"cannot identify image ({e})")
    except (Image.DecompressionBombError, ValueError) as e:
        raise SourceImageError(path, str(e))
    if orientation in ROTATED_ORIENTATIONS:
        w, h = h, w
    if w <= 0 or h <= 0:
        raise SourceImageError(path, f"invalid dimensions {w}x{h}")
    return SourceImage(path=path, base_name=safe_base_name(path.stem), width=w, height=h)


def plan(source: SourceImage, config: PipelineConfig) -> Tuple[DerivativeSpec, ...]:
    """
    Standard fallback first, then every breakpoint descending, formats by
    preference. Widths are nominal: the transform never enlarges, so a
    breakpoint wider than the source is written at the source width under
    its breakpoint name. The set depends only on the base name and the config.
    """
    specs = [DerivativeSpec(
        base_name=source.base_name,
        target_width=config.standard_width,
        format=RASTER_FORMAT,
        quality=config.quality_for(RASTER_FORMAT),
        standard=True,
    )]
    for width in config.breakpoints:
        for fmt in config.formats:
            specs.append(DerivativeSpec(source.base_name, width, fmt, config.quality_for(fmt)))
    logger.debug("Planned %d derivative(s) for %s (%dx%d)",
                 len(specs), source.base_name, source.width, source.height)
    return tuple(specs)


def plan_nominal(base_name: str, config: PipelineConfig) -> Tuple[DerivativeSpec, ...]:
    """Derivative set for `base_name` without opening the source."""
    widest = max(config.breakpoints[0], config.standard_width)
    return plan(SourceImage(Path(base_name), base_name, widest, widest), config)
