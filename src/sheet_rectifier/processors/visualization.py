"""Visualization utilities for debugging the rectification pipeline."""

from typing import Tuple

import cv2
import numpy as np

from .boundary import BoundaryResult


def _as_bgr(image: np.ndarray) -> np.ndarray:
    if len(image.shape) == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return image.copy()


def visualize_boundary(
    image: np.ndarray,
    boundary: BoundaryResult,
    color: Tuple[int, int, int] = (0, 255, 0),
    thickness: int = 3,
) -> np.ndarray:
    """Draw the located sheet boundary on a copy of the photograph.

    Args:
        image: Source photograph
        boundary: Boundary result for that photograph
        color: Outline color (B, G, R)
        thickness: Outline thickness

    Returns:
        Image with the region or quadrilateral outlined
    """
    vis_image = _as_bgr(image)

    if boundary.quadrilateral is not None:
        pts = boundary.quadrilateral.points.round().astype(np.int32).reshape(-1, 1, 2)
        cv2.polylines(vis_image, [pts], True, color, thickness)
    elif boundary.region is not None:
        r = boundary.region
        cv2.rectangle(vis_image, (r.x, r.y), (r.right, r.bottom), color, thickness)

    return vis_image


def visualize_content_top(
    image: np.ndarray,
    row: int,
    color: Tuple[int, int, int] = (0, 0, 255),
    thickness: int = 2,
) -> np.ndarray:
    """Draw the detected content-top row across a copy of the sheet."""
    vis_image = _as_bgr(image)
    y = min(max(int(row), 0), vis_image.shape[0] - 1)
    cv2.line(vis_image, (0, y), (vis_image.shape[1] - 1, y), color, thickness)
    return vis_image
