#!/usr/bin/env python3
"""
Responsive Image Generator (batch mode)

Walks a source folder of JPG/PNG images and, for each one, makes sure the
full derivative matrix exists in the output folder:

- {stem}.jpg            standard fallback, 1024px wide (never upscaled)
- {stem}-{w}.{fmt}      one file per breakpoint width and enabled format
                        (at most the source width, named by breakpoint)

Existing files are left alone, so re-running only fills gaps. Pass
--overwrite after replacing a source image with new content under the same
name; nothing else invalidates old derivatives.

The filenames are the ones the request-time renderer expects, so pages can
reference images before or after this script has run.

Requires: Python 3.9+, Pillow 11.3+ (AVIF support)
"""

import argparse
import concurrent.futures as cf
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from . import cache
from .config import (
    BREAKPOINTS,
    OUTPUT_SUBDIR,
    STANDARD_WIDTH,
    PipelineConfig,
    parse_breakpoints,
    parse_formats,
)
from .errors import SourceImageError
from .naming import FORMATS
from .pipeline import ensure_derivatives
from .planner import plan, read_source

SOURCE_EXTS = {".jpg", ".jpeg", ".png"}
DEFAULT_INPUT = "wwwroot/img"
DEFAULT_OUTPUT = f"wwwroot/{OUTPUT_SUBDIR}"

# Transient and editor artefacts to ignore
TRANSIENT_SUFFIXES = {".swp", ".tmp", ".bak"}


def is_transient(p: Path) -> bool:
    n = p.name
    return (
        n.startswith(".")          # dotfiles, Emacs lockfiles, our own temp files
        or n.endswith("~")         # backup files
        or p.suffix.lower() in TRANSIENT_SUFFIXES
    )


def collect_images(img_dir: Path) -> List[Path]:
    """Source images directly inside img_dir, sorted by name. Subfolders (including the output) are not scanned."""
    return sorted(
        (p for p in img_dir.iterdir()
         if p.is_file() and p.suffix.lower() in SOURCE_EXTS and not is_transient(p)),
        key=lambda p: p.name.lower(),
    )


def process_one(
    src: Path,
    out_dir: Path,
    config: PipelineConfig,
    overwrite: bool,
    dry_run: bool,
) -> Tuple[bool, str]:
    """
    Returns (ok, status line). ok is False only when the source itself could
    not be handled; individual derivative failures are reported as PART.
    """
    try:
        if dry_run:
            source = read_source(src)
            planned = plan(source, config)
            todo = planned if overwrite else cache.missing(out_dir, planned)
            if not todo:
                return True, f"SKIP  {src.name}  all {len(planned)} derivatives present"
            return True, f"DRY   {src.name} [{source.width}x{source.height}] would create {[s.filename for s in todo]}"

        result = ensure_derivatives(src, out_dir, config, overwrite=overwrite)
        source = result.source
        if result.cached:
            return True, f"SKIP  {src.name}  all {len(result.planned)} derivatives present"
        if result.failed:
            names = ", ".join(f"{spec.filename} ({err})" for spec, err in result.failed)
            return True, (f"PART  {src.name} [{source.width}x{source.height}] "
                          f"{len(result.written)} created, {len(result.failed)} failed: {names}")
        widths = sorted({s.target_width for s in result.written if not s.standard}, reverse=True)
        return True, (f"DONE  {src.name} [{source.width}x{source.height}] -> "
                      f"{len(result.written)} file(s) {[f'{w}w' for w in widths]}")
    except SourceImageError as e:
        return False, f"ERR   {src.name}: {e.reason}"
    except Exception as e:
        return False, f"ERR   {src.name}: {e}"


def run_batch(
    img_dir: Path,
    out_dir: Path,
    config: PipelineConfig,
    threads: int = 1,
    overwrite: bool = False,
    dry_run: bool = False,
) -> Tuple[int, int]:
    """Process every source image; returns (succeeded, failed)."""
    images = collect_images(img_dir)
    if not images:
        print(f"No JPG or PNG images found in {img_dir}")
        return 0, 0

    print(f"Found {len(images)} image(s) in {img_dir}")
    print(f"Output: {out_dir}")
    print(f"Breakpoints: {list(config.breakpoints)} px, formats={list(config.formats)}, standard={config.standard_width}px")
    print(f"Threads={threads}, overwrite={'on' if overwrite else 'off'}, dry-run={'on' if dry_run else 'off'}")

    ok_count = 0
    err_count = 0
    # Different sources never share an output filename, so they can run in parallel
    with cf.ThreadPoolExecutor(max_workers=max(1, threads)) as ex:
        futures = [ex.submit(process_one, p, out_dir, config, overwrite, dry_run) for p in images]
        for fut in cf.as_completed(futures):
            ok, status = fut.result()
            print(status)
            if ok:
                ok_count += 1
            else:
                err_count += 1
    return ok_count, err_count


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate responsive image derivatives (JPG/WebP/AVIF) for every source image.")
    parser.add_argument("--input", default=DEFAULT_INPUT, type=Path, help="Folder containing source JPG/PNG images")
    parser.add_argument("--output", default=DEFAULT_OUTPUT, type=Path, help="Folder receiving the derivatives")
    parser.add_argument("--breakpoints", type=parse_breakpoints, default=BREAKPOINTS,
                        help="Comma-separated widths (e.g. 1400,1200,992,768,576)")
    parser.add_argument("--formats", type=parse_formats, default=FORMATS,
                        help="Comma-separated formats to generate per breakpoint (jpg,webp,avif)")
    parser.add_argument("--standard-width", type=int, default=STANDARD_WIDTH,
                        help="Width of the {stem}.jpg fallback image")
    parser.add_argument("--threads", type=int, default=1, help="Worker threads (one image per worker)")
    parser.add_argument("--overwrite", action="store_true", help="Regenerate derivatives even if they already exist")
    parser.add_argument("--dry-run", action="store_true", help="Report what would be generated without writing")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )

    img_dir = args.input.resolve()
    out_dir = args.output.resolve()
    if not img_dir.is_dir():
        print(f"Input directory not found: {img_dir}", file=sys.stderr)
        return 1
    if out_dir == img_dir:
        # Derivatives would be picked up as sources on the next run
        print("Output directory must differ from the input directory", file=sys.stderr)
        return 2

    try:
        config = PipelineConfig(
            breakpoints=args.breakpoints,
            formats=args.formats,
            standard_width=args.standard_width,
        )
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    if not args.dry_run and not out_dir.exists():
        print(f"Creating output directory: {out_dir}")
        out_dir.mkdir(parents=True, exist_ok=True)

    start = time.perf_counter()
    ok_count, err_count = run_batch(img_dir, out_dir, config, args.threads, args.overwrite, args.dry_run)
    print(f"Finished in {time.perf_counter() - start:.2f}s ({ok_count} ok, {err_count} failed)")
    # Per-image failures are reported above but do not fail the run
    return 0


if __name__ == "__main__":
    sys.exit(main())
