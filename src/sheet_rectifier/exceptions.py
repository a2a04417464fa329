"""
Exceptions raised while rectifying sheet photographs.

Everything derives from ``SheetRectifierError``. Per-file failures
(unreadable photographs, sheets that cannot be located, outputs that cannot
be written) are ``ProcessingError`` subclasses, which the pipeline reports
and skips; configuration and directory errors abort the run.
"""

from pathlib import Path
from typing import Any, Optional, Tuple


class SheetRectifierError(Exception):
    """Base exception for all sheet rectifier errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} (Details: {details_str})"
        return self.message


class ConfigurationError(SheetRectifierError):
    """Raised when a configuration file or override is invalid."""


class ProcessingError(SheetRectifierError):
    """Raised when one photograph cannot be rectified."""

    def __init__(self, message: str, processor: Optional[str] = None,
                 image_path: Optional[str] = None, **kwargs: Any) -> None:
        details = {key: value for key, value in kwargs.items() if value is not None}
        if processor:
            details["processor"] = processor
        if image_path:
            details["image_path"] = image_path
        super().__init__(message, details)
        self.processor = processor


class ImageIOError(ProcessingError):
    """Raised when a photograph or output image cannot be read or written."""

    def __init__(self, message: str, image_path: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(message, image_path=image_path, **kwargs)
        self.path = Path(image_path) if image_path else None


class ImageLoadError(ImageIOError):
    """Raised when a photograph is missing or cannot be decoded."""


class ImageSaveError(ImageIOError):
    """Raised when an output or debug image cannot be encoded or written."""


class BoundaryNotFoundError(ProcessingError):
    """Raised when no sheet outline survives the contour filters.

    Attributes:
        strategy: Boundary strategy that gave up
        min_contour_area: Area a contour needed to count as the sheet
        image_shape: (height, width) of the searched photograph
    """

    def __init__(self, message: str = "No sheet outline found",
                 strategy: str = "quadrilateral",
                 min_contour_area: Optional[float] = None,
                 image_shape: Optional[Tuple[int, int]] = None,
                 **kwargs: Any) -> None:
        super().__init__(
            message,
            strategy=strategy,
            min_contour_area=min_contour_area,
            image_shape=tuple(image_shape) if image_shape is not None else None,
            **kwargs,
        )
        self.strategy = strategy
        self.min_contour_area = min_contour_area
        self.image_shape = tuple(image_shape) if image_shape is not None else None


class ValidationError(SheetRectifierError):
    """Raised when a stage receives an unusable image."""


class DirectoryError(SheetRectifierError):
    """Raised when an input or output directory is unusable."""
