"""Render <picture> markup for a set of derivatives."""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .config import OUTPUT_SUBDIR
from .naming import FORMATS, RASTER_FORMAT
from .planner import DerivativeSpec

MIME_TYPES = {"avif": "image/avif", "webp": "image/webp", "jpg": "image/jpeg"}
INDENT = "    "
MODERN_FORMATS = tuple(f for f in FORMATS if f != RASTER_FORMAT)


@dataclass
class MarkupRequest:
    base_name: str
    path_prefix: str = ""
    alt: str = ""
    id: Optional[str] = None
    css_class: Optional[str] = None
    loading: Optional[str] = None
    base_path: str = OUTPUT_SUBDIR
    include_avif: bool = True
    include_webp: bool = True

    def includes(self, fmt: str) -> bool:
        if fmt == "avif":
            return self.include_avif
        if fmt == "webp":
            return self.include_webp
        return True


def esc(s: str) -> str:
    return html.escape(s or "", quote=True)


def join_url(prefix: str, base_path: str) -> str:
    """'/app/' + '/img/responsive/' -> '/app/img/responsive'; empty prefix -> '/img/responsive'."""
    parts = [p.strip("/") for p in (prefix or "", base_path or "")]
    joined = "/".join(p for p in parts if p)
    return "/" + joined if joined else ""


def build_srcset(url_base: str, specs: Sequence[DerivativeSpec]) -> str:
    ordered = sorted(specs, key=lambda s: s.target_width, reverse=True)
    return ", ".join(f"{url_base}/{s.filename} {s.target_width}w" for s in ordered)


def render(request: MarkupRequest, specs: Sequence[DerivativeSpec]) -> str:
    """
    <source> per modern format (most preferred first), then the fallback
    <img>. Only specs passed in are referenced, so artifacts that failed to
    generate simply drop out of their srcset. Returns "" when there is
    nothing sensible to render.
    """
    if not request.base_name or not request.base_name.strip():
        return ""
    mine = [s for s in specs if s.base_name == request.base_name]
    standard = next((s for s in mine if s.standard), None)
    raster = [s for s in mine if not s.standard and s.format == RASTER_FORMAT]
    fallback = standard or max(raster, key=lambda s: s.target_width, default=None)
    if fallback is None:
        return ""

    url_base = join_url(request.path_prefix, request.base_path)
    lines: List[str] = ["<picture>"]

    for fmt in MODERN_FORMATS:
        variants = [s for s in mine if not s.standard and s.format == fmt]
        if not variants or not request.includes(fmt):
            continue
        srcset = build_srcset(url_base, variants)
        lines.append(f'{INDENT}<source srcset="{srcset}" type="{MIME_TYPES[fmt]}">')

    img = f'{INDENT}<img src="{url_base}/{fallback.filename}"'
    img += f' srcset="{build_srcset(url_base, raster or [fallback])}"'
    img += f' alt="{esc(request.alt)}"'
    for attr, value in (("id", request.id), ("class", request.css_class), ("loading", request.loading)):
        if value and value.strip():
            img += f' {attr}="{esc(value)}"'
    lines.append(img + ">")
    lines.append("</picture>")
    return "\n".join(lines)
