"""Final crop: drop the margin above the content and a strip on the right."""

from typing import Optional

import numpy as np

from .base import BaseProcessor
from ..config.models import FinalCropConfig


class FinalCropProcessor(BaseProcessor):
    """Processor producing the output image."""

    def __init__(self, config: Optional[FinalCropConfig] = None, save_debug_images: bool = False):
        super().__init__(config or FinalCropConfig(), save_debug_images)

    def process(self, image: np.ndarray, top: int = 0, **kwargs) -> np.ndarray:
        """Crop an upright sheet below its content top.

        Args:
            image: Upright sheet image
            top: First content row

        Returns:
            Cropped image
        """
        self.validate_image(image)
        return crop_content(image, top=top, right_margin=self.config.right_margin)


def crop_content(image: np.ndarray, top: int = 0, right_margin: int = 30) -> np.ndarray:
    """Keep rows from ``top`` down and all but the last ``right_margin`` columns.

    ``top`` is clamped into the image; at least one column is always kept.

    Returns:
        A new array owning its pixels
    """
    h, w = image.shape[:2]
    top = min(max(int(top), 0), h - 1)
    right = max(1, w - right_margin)
    return image[top:, :right].copy()
