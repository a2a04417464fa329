"""Geometric normalization: regions, quadrilaterals, cropping and warping."""

from dataclasses import dataclass
from typing import Tuple

import cv2
import numpy as np


@dataclass(frozen=True)
class Region:
    """Axis-aligned rectangle (x, y, width, height) in image coordinates."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        """Last column inside the region."""
        return self.x + self.width - 1

    @property
    def bottom(self) -> int:
        """Last row inside the region."""
        return self.y + self.height - 1

    @classmethod
    def full_frame(cls, image: np.ndarray) -> "Region":
        """Region covering the whole image."""
        return cls(0, 0, image.shape[1], image.shape[0])

    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def clamp(self, image_width: int, image_height: int) -> "Region":
        """Return the part of this region that lies inside the image, at least 1x1."""
        x = min(max(self.x, 0), image_width - 1)
        y = min(max(self.y, 0), image_height - 1)
        right = min(max(self.right, x), image_width - 1)
        bottom = min(max(self.bottom, y), image_height - 1)
        return Region(x, y, right - x + 1, bottom - y + 1)

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True, eq=False)
class Quadrilateral:
    """Four vertices ordered top-left, top-right, bottom-right, bottom-left."""

    points: np.ndarray  # (4, 2) float32

    @classmethod
    def from_points(cls, points: np.ndarray) -> "Quadrilateral":
        """Build a quadrilateral from four vertices given in any order."""
        return cls(order_quadrilateral_points(points))

    @property
    def top_left(self) -> np.ndarray:
        return self.points[0]

    @property
    def top_right(self) -> np.ndarray:
        return self.points[1]

    @property
    def bottom_right(self) -> np.ndarray:
        return self.points[2]

    @property
    def bottom_left(self) -> np.ndarray:
        return self.points[3]

    def target_size(self) -> Tuple[int, int]:
        """Destination (width, height) tolerating perspective foreshortening.

        Width is the longer of the top and bottom edges, height the longer of
        the left and right edges.
        """
        tl, tr, br, bl = self.points
        width = max(np.linalg.norm(tr - tl), np.linalg.norm(br - bl))
        height = max(np.linalg.norm(bl - tl), np.linalg.norm(br - tr))
        return max(1, int(round(width))), max(1, int(round(height)))


def order_quadrilateral_points(points: np.ndarray) -> np.ndarray:
    """Order 4 points: top-left, top-right, bottom-right, bottom-left.

    Top-left has the smallest x+y, bottom-right the largest; top-right has
    the largest x-y and bottom-left the smallest.

    Args:
        points: Array-like of four (x, y) vertices in any order

    Returns:
        (4, 2) float32 array in canonical order
    """
    pts = np.asarray(points, dtype=np.float32).reshape(4, 2)

    rect = np.zeros((4, 2), dtype=np.float32)
    s = pts.sum(axis=1)
    rect[0] = pts[np.argmin(s)]
    rect[2] = pts[np.argmax(s)]

    diff = pts[:, 0] - pts[:, 1]
    rect[1] = pts[np.argmax(diff)]
    rect[3] = pts[np.argmin(diff)]

    return rect


def crop_to_region(image: np.ndarray, region: Region) -> np.ndarray:
    """Crop image to region, clamped to the image bounds.

    Returns:
        A new array owning its pixels
    """
    h, w = image.shape[:2]
    region = region.clamp(w, h)
    return image[region.y:region.bottom + 1, region.x:region.right + 1].copy()


def warp_quadrilateral(image: np.ndarray, quad: Quadrilateral) -> np.ndarray:
    """Warp the quadrilateral area of image onto an upright rectangle.

    Args:
        image: Source image
        quad: Canonically ordered source vertices

    Returns:
        Rectified image of size ``quad.target_size()``
    """
    width, height = quad.target_size()
    dst = np.array(
        [[0, 0], [width - 1, 0], [width - 1, height - 1], [0, height - 1]],
        dtype=np.float32,
    )
    matrix = cv2.getPerspectiveTransform(quad.points.astype(np.float32), dst)
    return cv2.warpPerspective(image, matrix, (width, height), flags=cv2.INTER_LINEAR)


_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


def rotate_image(image: np.ndarray, degrees_clockwise: int) -> np.ndarray:
    """Rotate by a multiple of 90 degrees clockwise, returning a new array."""
    degrees_clockwise %= 360
    if degrees_clockwise == 0:
        return image.copy()
    if degrees_clockwise not in _ROTATIONS:
        raise ValueError(f"Only quarter turns are supported, got {degrees_clockwise}")
    return cv2.rotate(image, _ROTATIONS[degrees_clockwise])
