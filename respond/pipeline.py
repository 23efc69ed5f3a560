"""Plan, cache-check, generate and render: the two producers share this path.

Request-time use (`ResponsiveImages.picture`) runs the whole pipeline on the
calling thread. The first render of an image with missing derivatives pays
for decoding and encoding all of them; later renders only stat files.
"""

from __future__ import annotations

import logging
import threading
import weakref
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

from . import cache
from .config import PipelineConfig, default_path_prefix
from .errors import SourceImageError
from .markup import MarkupRequest, render
from .naming import safe_base_name
from .planner import DerivativeSpec, SourceImage, plan, plan_nominal, read_source
from .transform import TransformEngine

logger = logging.getLogger("respond.pipeline")


@dataclass
class PipelineResult:
    source: SourceImage
    planned: Tuple[DerivativeSpec, ...]
    written: List[DerivativeSpec] = field(default_factory=list)
    failed: List[Tuple[DerivativeSpec, str]] = field(default_factory=list)
    available: Tuple[DerivativeSpec, ...] = ()

    @property
    def cached(self) -> bool:
        return not self.written and not self.failed


def ensure_derivatives(
    source_path: Path,
    output_dir: Path,
    config: PipelineConfig,
    engine: Optional[TransformEngine] = None,
    overwrite: bool = False,
) -> PipelineResult:
    """
    Make sure every planned derivative of `source_path` exists in
    `output_dir`. Only missing artifacts are produced; when none are missing
    the source is never decoded. Raises SourceImageError if the source
    cannot be read. With `overwrite`, every planned artifact is regenerated
    regardless of what is on disk.
    """
    source = read_source(source_path)
    planned = plan(source, config)
    todo = planned if overwrite else cache.missing(output_dir, planned)
    result = PipelineResult(source=source, planned=planned)
    if todo:
        engine = engine or TransformEngine(output_dir)
        logger.info("Generating %d of %d derivative(s) for %s",
                    len(todo), len(planned), source.path.name)
        done = engine.materialize(source, todo)
        result.written = done.written
        result.failed = done.failed
    result.available = cache.existing(output_dir, planned)
    return result


class ResponsiveImages:
    """
    Request-time producer. Sources are resolved against `web_root` and
    derivatives land in `web_root / config.output_subdir`.

    Rendering blocks until derivatives exist. Threads rendering the same base
    name wait on a shared lock, so each artifact is generated once per
    process; separate processes may still race, in which case the last
    atomic rename wins.
    """

    def __init__(self, web_root: Path, config: Optional[PipelineConfig] = None) -> None:
        self.web_root = Path(web_root).resolve()
        self.config = config or PipelineConfig()
        self.output_dir = self.web_root / self.config.output_subdir
        # Entries vanish once no thread holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _lock_for(self, base_name: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(base_name, threading.Lock())

    def resolve(self, src: str) -> Optional[Path]:
        path = (self.web_root / src.strip().lstrip("/")).resolve()
        if not path.is_relative_to(self.web_root):
            logger.warning("Refusing source outside web root: %s", src)
            return None
        return path

    def ensure(self, src: str) -> Optional[PipelineResult]:
        if not src or not src.strip():
            return None
        path = self.resolve(src)
        if path is None:
            return None
        self.output_dir.mkdir(parents=True, exist_ok=True)
        with self._lock_for(safe_base_name(path.stem)):
            try:
                return ensure_derivatives(path, self.output_dir, self.config)
            except SourceImageError as e:
                logger.warning("Unreadable source image %s", e)
                return None

    def picture(
        self,
        src: str,
        alt: str = "",
        id: Optional[str] = None,
        css_class: Optional[str] = None,
        loading: Optional[str] = None,
        path_prefix: Optional[str] = None,
        include_avif: bool = True,
        include_webp: bool = True,
    ) -> str:
        result = self.ensure(src)
        if result is None:
            return ""
        request = MarkupRequest(
            base_name=result.source.base_name,
            path_prefix=default_path_prefix() if path_prefix is None else path_prefix,
            alt=alt,
            id=id,
            css_class=css_class,
            loading=loading,
            base_path=self.config.output_subdir,
            include_avif=include_avif,
            include_webp=include_webp,
        )
        return render(request, result.available)


def picture_tag(
    src: str,
    alt: str = "",
    id: Optional[str] = None,
    css_class: Optional[str] = None,
    loading: Optional[str] = None,
    path_prefix: Optional[str] = None,
    base_path: Optional[str] = None,
    include_avif: bool = True,
    include_webp: bool = True,
    config: Optional[PipelineConfig] = None,
) -> str:
    """
    Render-only markup for derivatives produced ahead of time by the batch
    driver. No file is opened or checked; every breakpoint is referenced.
    """
    if not src or not src.strip():
        return ""
    config = config or PipelineConfig()
    base_name = safe_base_name(Path(src.strip()).stem)
    request = MarkupRequest(
        base_name=base_name,
        path_prefix=default_path_prefix() if path_prefix is None else path_prefix,
        alt=alt,
        id=id,
        css_class=css_class,
        loading=loading,
        base_path=config.output_subdir if base_path is None else base_path,
        include_avif=include_avif,
        include_webp=include_webp,
    )
    return render(request, plan_nominal(base_name, config))
