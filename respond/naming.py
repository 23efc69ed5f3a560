"""Canonical derivative filenames.

Both producers (request-time and batch) resolve artifacts through these
functions only, so the names they write and the names the markup refers to
stay identical.
"""

import re

RASTER_FORMAT = "jpg"
FORMATS = ("avif", "webp", RASTER_FORMAT)  # most preferred first

FNAME_CHARS = r"A-Za-z0-9._\-"
UNSAFE_RE = re.compile(rf"[^{FNAME_CHARS}]")


def safe_base_name(name: str) -> str:
    """Map a source stem onto the characters allowed in artifact names."""
    cleaned = UNSAFE_RE.sub("_", name.strip())
    return cleaned.strip(".") or "image"


def _check_base(base_name: str) -> None:
    if not base_name or UNSAFE_RE.search(base_name):
        raise ValueError(f"Invalid base name: {base_name!r}")


def derivative_name(base_name: str, width: int, fmt: str) -> str:
    _check_base(base_name)
    if fmt not in FORMATS:
        raise ValueError(f"Unknown format: {fmt!r}")
    if width <= 0:
        raise ValueError(f"Width must be positive, got {width}")
    return f"{base_name}-{width}.{fmt}"


def standard_name(base_name: str) -> str:
    """Name of the fixed-width raster fallback; it doubles as "the" image."""
    _check_base(base_name)
    return f"{base_name}.{RASTER_FORMAT}"
