"""Exceptions raised by the derivative pipeline."""


class RespondError(Exception):
    """Base class for pipeline errors."""


class SourceImageError(RespondError):
    """The source image could not be opened or has no usable dimensions."""

    def __init__(self, path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason
