"""Decode a source once and encode its missing derivatives."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence, Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from .cache import artifact_path
from .errors import SourceImageError
from .planner import DerivativeSpec, SourceImage

logger = logging.getLogger("respond.transform")

PIL_FORMATS = {"jpg": "JPEG", "webp": "WEBP", "avif": "AVIF"}
FLATTEN_BACKGROUND = (255, 255, 255)


@dataclass
class MaterializeResult:
    written: List[DerivativeSpec] = field(default_factory=list)
    failed: List[Tuple[DerivativeSpec, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def fit_size(src_w: int, src_h: int, target_width: int) -> Tuple[int, int]:
    """Fit inside target_width keeping aspect ratio; never enlarges."""
    w = min(target_width, src_w)
    h = max(1, round(w * src_h / src_w))
    return w, h


def has_alpha(im: Image.Image) -> bool:
    return ("A" in im.mode) or (im.info.get("transparency") is not None)


def _for_format(im: Image.Image, fmt: str) -> Image.Image:
    if fmt == "jpg":
        if has_alpha(im):
            rgba = im.convert("RGBA")
            flat = Image.new("RGB", rgba.size, FLATTEN_BACKGROUND)
            flat.paste(rgba, mask=rgba.getchannel("A"))
            return flat
        return im if im.mode == "RGB" else im.convert("RGB")
    if has_alpha(im):
        return im if im.mode == "RGBA" else im.convert("RGBA")
    return im if im.mode == "RGB" else im.convert("RGB")


class TransformEngine:
    """
    Writes derivatives for one source at a time. Each artifact is encoded to
    a temporary file next to its target and renamed into place, so readers
    never observe a partially written image.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)

    def decode(self, source: SourceImage) -> Image.Image:
        try:
            with Image.open(source.path) as im:
                im.load()
                return ImageOps.exif_transpose(im)
        except (UnidentifiedImageError, OSError) as e:
            raise SourceImageError(source.path, f"cannot decode image ({e})")
        except (Image.DecompressionBombError, ValueError) as e:
            raise SourceImageError(source.path, str(e))

    def encode(self, im: Image.Image, spec: DerivativeSpec, fp) -> None:
        fmt = spec.format
        params = {"quality": spec.quality}
        if fmt == "jpg":
            params["optimize"] = True
        elif fmt == "webp":
            params["method"] = 6
        _for_format(im, fmt).save(fp, format=PIL_FORMATS[fmt], **params)

    def write(self, im: Image.Image, spec: DerivativeSpec) -> Path:
        dst = artifact_path(self.output_dir, spec)
        dst.parent.mkdir(parents=True, exist_ok=True)
        size = fit_size(im.width, im.height, spec.target_width)
        # Palette and bilevel images only resample with NEAREST
        prepared = _for_format(im, spec.format)
        resized = prepared if size == prepared.size else prepared.resize(size, Image.Resampling.LANCZOS)
        fd, tmp = tempfile.mkstemp(prefix=f".{dst.name}.", suffix=".tmp", dir=dst.parent)
        try:
            with os.fdopen(fd, "wb") as f:
                self.encode(resized, spec, f)
            os.replace(tmp, dst)
        except BaseException:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
            raise
        logger.debug("Wrote %s (%dx%d)", dst.name, size[0], size[1])
        return dst

    def materialize(self, source: SourceImage, specs: Sequence[DerivativeSpec]) -> MaterializeResult:
        """
        Produce every spec in `specs`. The source is decoded only if there is
        something to write. One failing spec is logged and skipped; the rest
        are still attempted.
        """
        result = MaterializeResult()
        if not specs:
            return result
        im = self.decode(source)
        try:
            for spec in specs:
                try:
                    self.write(im, spec)
                except Exception as e:
                    logger.warning("Failed to create %s: %s", spec.filename, e)
                    result.failed.append((spec, str(e)))
                else:
                    result.written.append(spec)
        finally:
            im.close()
        return result
