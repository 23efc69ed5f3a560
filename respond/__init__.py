"""Responsive picture derivatives: plan, cache, transform and render."""

from .config import PipelineConfig
from .errors import RespondError, SourceImageError
from .markup import MarkupRequest, render
from .pipeline import ResponsiveImages, ensure_derivatives, picture_tag

__all__ = [
    "MarkupRequest",
    "PipelineConfig",
    "RespondError",
    "ResponsiveImages",
    "SourceImageError",
    "ensure_derivatives",
    "picture_tag",
    "render",
]
