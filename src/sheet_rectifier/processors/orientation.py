"""Orientation correction: force portrait, then put the printed top up."""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from .base import BaseProcessor
from .binarize import ink_mask
from .geometry import rotate_image
from ..config.models import OrientationConfig, PortraitRotation

logger = logging.getLogger(__name__)


@dataclass
class OrientationDecision:
    """Rotations applied to one sheet."""

    portrait_rotation: int = 0  # degrees clockwise applied to reach portrait
    flipped: bool = False
    top_ink: int = 0
    bottom_ink: int = 0

    @property
    def total_rotation(self) -> int:
        """Overall clockwise rotation applied to the sheet."""
        return (self.portrait_rotation + (180 if self.flipped else 0)) % 360


class OrientationProcessor(BaseProcessor):
    """Processor turning a sheet portrait and upright."""

    def __init__(self, config: Optional[OrientationConfig] = None, save_debug_images: bool = False):
        super().__init__(config or OrientationConfig(), save_debug_images)

    def process(self, image: np.ndarray, **kwargs) -> Tuple[np.ndarray, OrientationDecision]:
        """Correct the orientation of a sheet image.

        Args:
            image: Sheet image as produced by the boundary locator

        Returns:
            tuple: (oriented_image, decision)
        """
        self.validate_image(image)
        self.clear_debug_images()

        band_fraction = self.config.band_fraction
        portrait, degrees = force_portrait(
            image, rotation=self.config.portrait_rotation, band_fraction=band_fraction
        )
        decision = OrientationDecision(portrait_rotation=degrees)

        if not self.config.enable_upright_check:
            return portrait, decision

        upright, flipped, top_ink, bottom_ink = ensure_upright(
            portrait, band_fraction=band_fraction, processor=self
        )
        decision.flipped = flipped
        decision.top_ink = top_ink
        decision.bottom_ink = bottom_ink

        logger.debug(
            f"Orientation: portrait_rotation={degrees}, flipped={flipped}, "
            f"top_ink={top_ink}, bottom_ink={bottom_ink}"
        )
        return upright, decision


def band_ink_counts(
    image: np.ndarray, band_fraction: float = 0.2, mask: Optional[np.ndarray] = None
) -> Tuple[int, int]:
    """Count ink pixels in the top and bottom bands of an image.

    Args:
        image: Sheet image
        band_fraction: Band height as fraction of the image height
        mask: Precomputed ink mask of ``image``

    Returns:
        tuple: (top_band_ink, bottom_band_ink)
    """
    if mask is None:
        mask = ink_mask(image)
    h = mask.shape[0]
    band = max(1, int(h * band_fraction))
    top = cv2.countNonZero(mask[:band])
    bottom = cv2.countNonZero(mask[h - band:])
    return int(top), int(bottom)


def force_portrait(
    image: np.ndarray,
    rotation: str = PortraitRotation.AUTO,
    band_fraction: float = 0.2,
) -> Tuple[np.ndarray, int]:
    """Rotate a landscape image a quarter turn so it becomes portrait.

    With ``rotation="auto"`` both quarter turns are tried and the one
    putting more ink in its top band wins; ties go counter-clockwise.

    Returns:
        tuple: (portrait_image, degrees_clockwise_applied)
    """
    h, w = image.shape[:2]
    if w <= h:
        return image.copy(), 0

    if rotation == PortraitRotation.CLOCKWISE:
        return rotate_image(image, 90), 90
    if rotation == PortraitRotation.COUNTERCLOCKWISE:
        return rotate_image(image, 270), 270

    ccw = rotate_image(image, 270)
    cw = rotate_image(image, 90)
    ccw_top, _ = band_ink_counts(ccw, band_fraction)
    cw_top, _ = band_ink_counts(cw, band_fraction)

    if cw_top > ccw_top:
        return cw, 90
    return ccw, 270


def ensure_upright(
    image: np.ndarray,
    band_fraction: float = 0.2,
    processor: Optional[BaseProcessor] = None,
) -> Tuple[np.ndarray, bool, int, int]:
    """Rotate 180 degrees when the bottom band holds more ink than the top.

    Printed content is denser near the top of a correctly oriented sheet.
    Ties keep the current orientation.

    Returns:
        tuple: (image, flipped, top_ink, bottom_ink)
    """
    mask = ink_mask(image)
    if processor:
        processor.save_debug_image('01_ink_mask', mask)

    top_ink, bottom_ink = band_ink_counts(image, band_fraction, mask=mask)
    if bottom_ink > top_ink:
        return rotate_image(image, 180), True, top_ink, bottom_ink
    return image, False, top_ink, bottom_ink
