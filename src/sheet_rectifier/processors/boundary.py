"""Sheet boundary location inside a photograph.

Two interchangeable strategies share the :class:`BoundaryLocator` interface:

* brightness projection - Otsu paper mask, column/row paper counts, then a
  crop to the axis-aligned region they outline;
* quadrilateral contour - edge outline of the sheet, its minimal rotated
  rectangle, then a perspective warp onto an upright rectangle.

Both return the normalized sheet image together with a
:class:`BoundaryResult` describing what was found.
"""

import logging
from abc import abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from .base import BaseProcessor
from .binarize import paper_mask, to_grayscale
from .geometry import Quadrilateral, Region, crop_to_region, warp_quadrilateral
from ..config.models import BoundaryConfig, BoundaryStrategy
from ..exceptions import BoundaryNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class BoundaryResult:
    """Outcome of boundary location for one photograph."""

    strategy: str
    region: Optional[Region] = None
    quadrilateral: Optional[Quadrilateral] = None
    fallback_top_reserve: int = 0
    used_full_frame: bool = False


class BoundaryLocator(BaseProcessor):
    """Locate the sheet and return it as a new, normalized image."""

    strategy: str = ""

    def __init__(self, config: Optional[BoundaryConfig] = None, save_debug_images: bool = False):
        super().__init__(config or BoundaryConfig(), save_debug_images)

    @abstractmethod
    def locate(self, image: np.ndarray) -> BoundaryResult:
        """Find the sheet boundary without modifying the image."""

    @abstractmethod
    def normalize(self, image: np.ndarray, result: BoundaryResult) -> np.ndarray:
        """Produce the sheet image described by ``result``."""

    def process(self, image: np.ndarray, **kwargs) -> Tuple[np.ndarray, BoundaryResult]:
        """Locate the sheet and normalize it.

        Returns:
            tuple: (sheet_image, boundary_result)
        """
        self.validate_image(image)
        self.clear_debug_images()

        result = self.locate(image)
        sheet = self.normalize(image, result)
        result.fallback_top_reserve = min(result.fallback_top_reserve, sheet.shape[0] - 1)
        return sheet, result

    def full_frame_result(self, image: np.ndarray) -> BoundaryResult:
        """Result that keeps the whole photograph."""
        return BoundaryResult(
            strategy=self.strategy,
            region=Region.full_frame(image),
            fallback_top_reserve=self.config.fallback_top_reserve,
            used_full_frame=True,
        )


class BrightnessBoundaryLocator(BoundaryLocator):
    """Boundary from projections of the bright paper mask."""

    strategy = BoundaryStrategy.BRIGHTNESS.value

    def locate(self, image: np.ndarray) -> BoundaryResult:
        region, skipped_top = find_page_by_brightness(
            image,
            column_fraction=self.config.column_fraction,
            row_fraction=self.config.row_fraction,
            top_margin=self.config.top_margin,
            bottom_margin=self.config.bottom_margin,
            right_margin=self.config.right_margin,
            processor=self,
        )
        if region is None:
            logger.debug("Brightness boundary degenerate, using full frame")
            return self.full_frame_result(image)

        logger.debug(f"Brightness boundary: {region.as_tuple()}")
        return BoundaryResult(
            strategy=self.strategy,
            region=region,
            fallback_top_reserve=self.config.fallback_top_reserve + skipped_top,
        )

    def normalize(self, image: np.ndarray, result: BoundaryResult) -> np.ndarray:
        return crop_to_region(image, result.region)


class QuadrilateralBoundaryLocator(BoundaryLocator):
    """Boundary from the largest closed edge contour, removed of perspective."""

    strategy = BoundaryStrategy.QUADRILATERAL.value

    def locate(self, image: np.ndarray) -> BoundaryResult:
        quad = find_sheet_quadrilateral(
            image,
            blur_ksize=self.config.blur_ksize,
            canny_low=self.config.canny_low,
            canny_high=self.config.canny_high,
            dilate_ksize=self.config.dilate_ksize,
            dilate_iterations=self.config.dilate_iterations,
            min_contour_area=self.config.min_contour_area,
            processor=self,
        )
        if quad is None:
            raise BoundaryNotFoundError(
                "No sheet outline found",
                strategy=self.strategy,
                min_contour_area=self.config.min_contour_area,
                image_shape=image.shape[:2],
                processor=type(self).__name__,
            )

        logger.debug(f"Sheet quadrilateral: {quad.points.round(1).tolist()}")
        return BoundaryResult(
            strategy=self.strategy,
            quadrilateral=quad,
            fallback_top_reserve=self.config.fallback_top_reserve,
        )

    def normalize(self, image: np.ndarray, result: BoundaryResult) -> np.ndarray:
        if result.quadrilateral is None:
            return crop_to_region(image, result.region)
        return warp_quadrilateral(image, result.quadrilateral)


def create_boundary_locator(
    config: Optional[BoundaryConfig] = None, save_debug_images: bool = False
) -> BoundaryLocator:
    """Instantiate the locator selected by ``config.strategy``."""
    config = config or BoundaryConfig()
    if config.strategy == BoundaryStrategy.QUADRILATERAL:
        return QuadrilateralBoundaryLocator(config, save_debug_images)
    return BrightnessBoundaryLocator(config, save_debug_images)


def find_page_by_brightness(
    image: np.ndarray,
    column_fraction: float = 0.80,
    row_fraction: float = 0.90,
    top_margin: int = 40,
    bottom_margin: int = 40,
    right_margin: int = 20,
    processor: Optional[BaseProcessor] = None,
) -> Tuple[Optional[Region], int]:
    """Find the sheet as the band of columns and rows dominated by paper.

    Left/right edges are the first/last columns whose paper count reaches
    ``column_fraction`` of the best column. Rows are then counted only
    between those columns, so a second object beside the sheet does not
    leak in, and top/bottom are the first/last rows reaching
    ``row_fraction`` of the best row. Fixed margins are finally trimmed
    inward from the top, bottom and right, each only while the region
    stays non-empty.

    Args:
        image: Input photograph (BGR or grayscale)
        column_fraction: Column threshold as fraction of the max column count
        row_fraction: Row threshold as fraction of the max row count
        top_margin: Pixels trimmed from the top
        bottom_margin: Pixels trimmed from the bottom
        right_margin: Pixels trimmed from the right
        processor: Optional processor instance for debug saving

    Returns:
        tuple: (region, skipped_top_margin). Region is None when the frame
        has no usable paper/background contrast.
    """
    gray = to_grayscale(image)
    if gray.min() == gray.max():
        return None, 0

    binary = paper_mask(gray)
    if processor:
        processor.save_debug_image('01_paper_mask', binary)

    paper = binary == 255
    col_sums = paper.sum(axis=0)
    max_col = col_sums.max()
    if max_col == 0:
        return None, 0

    columns = np.flatnonzero(col_sums >= column_fraction * max_col)
    left, right = int(columns[0]), int(columns[-1])

    row_sums = paper[:, left:right + 1].sum(axis=1)
    max_row = row_sums.max()
    rows = np.flatnonzero(row_sums >= row_fraction * max_row)
    top, bottom = int(rows[0]), int(rows[-1])

    skipped_top = 0
    if top + top_margin < bottom:
        top += top_margin
    else:
        skipped_top = top_margin

    if bottom - bottom_margin > top:
        bottom -= bottom_margin

    if right - right_margin > left:
        right -= right_margin

    region = Region(left, top, right - left + 1, bottom - top + 1)
    if region.is_degenerate():
        return None, 0
    return region, skipped_top


def find_sheet_quadrilateral(
    image: np.ndarray,
    blur_ksize: int = 5,
    canny_low: int = 75,
    canny_high: int = 200,
    dilate_ksize: int = 3,
    dilate_iterations: int = 2,
    min_contour_area: float = 10000.0,
    processor: Optional[BaseProcessor] = None,
) -> Optional[Quadrilateral]:
    """Find the sheet outline as the largest rotated rectangle among edge contours.

    Edges are dilated to bridge gaps in the outline and then eroded by the
    same amount so the outline keeps its true extent.

    Args:
        image: Input photograph (BGR or grayscale)
        blur_ksize: Gaussian blur kernel size
        canny_low: Lower Canny threshold
        canny_high: Upper Canny threshold
        dilate_ksize: Dilation kernel size
        dilate_iterations: Dilation (and erosion) iterations
        min_contour_area: Contours below this area are ignored
        processor: Optional processor instance for debug saving

    Returns:
        Ordered quadrilateral, or None when no contour survives the area filter
    """
    gray = to_grayscale(image)
    blurred = cv2.GaussianBlur(gray, (blur_ksize, blur_ksize), 0)
    edges = cv2.Canny(blurred, canny_low, canny_high)

    kernel = np.ones((dilate_ksize, dilate_ksize), np.uint8)
    outline = cv2.dilate(edges, kernel, iterations=dilate_iterations)
    outline = cv2.erode(outline, kernel, iterations=dilate_iterations)

    if processor:
        processor.save_debug_image('01_edges', edges)
        processor.save_debug_image('02_closed_outline', outline)

    contours, _ = cv2.findContours(outline, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    candidates = [c for c in contours if cv2.contourArea(c) >= min_contour_area]
    if not candidates:
        return None

    def rect_area(contour):
        (_, _), (w, h), _ = cv2.minAreaRect(contour)
        return w * h

    best = max(candidates, key=rect_area)
    box = cv2.boxPoints(cv2.minAreaRect(best))
    return Quadrilateral.from_points(box)
