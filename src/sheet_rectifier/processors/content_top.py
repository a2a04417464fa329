"""Content-top detection: where printed content begins on an upright sheet.

The detector runs an ordered cascade of independent strategies. Each
strategy returns a row or ``None``; the first row returned wins. Only the
rule-line strategy can be inconclusive, the density strategies always end
the cascade (with row 0 when they find nothing). When every configured
strategy is inconclusive the caller's fallback row is used.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import cv2
import numpy as np

from .base import BaseProcessor
from .binarize import ink_mask, to_grayscale
from ..config.models import ContentTopConfig

logger = logging.getLogger(__name__)

FALLBACK = "fallback"


@dataclass(frozen=True)
class LineSegment:
    """Straight segment between two endpoints."""

    x1: int
    y1: int
    x2: int
    y2: int

    @property
    def length(self) -> float:
        return math.hypot(self.x2 - self.x1, self.y2 - self.y1)

    @property
    def angle(self) -> float:
        """Angle from horizontal in degrees, in [0, 90]."""
        return math.degrees(math.atan2(abs(self.y2 - self.y1), abs(self.x2 - self.x1)))

    @property
    def top(self) -> int:
        return min(self.y1, self.y2)


@dataclass
class ContentTopResult:
    """Row where content begins and the strategy that found it."""

    row: int
    strategy: str


class ContentTopDetector(BaseProcessor):
    """Processor running the content-top cascade."""

    def __init__(self, config: Optional[ContentTopConfig] = None, save_debug_images: bool = False):
        super().__init__(config or ContentTopConfig(), save_debug_images)

    def strategies(self) -> List[Tuple[str, Callable[[np.ndarray], Optional[int]]]]:
        """Configured strategies in cascade order."""
        available = {
            "rule_line": self.detect_rule_line,
            "ink_density": self.detect_ink_density,
            "edge_density": self.detect_edge_density,
        }
        return [(name, available[name]) for name in self.config.strategies]

    def process(self, image: np.ndarray, fallback_row: int = 0, **kwargs) -> ContentTopResult:
        """Find the first row of content.

        Args:
            image: Upright sheet image
            fallback_row: Row used when every strategy is inconclusive

        Returns:
            ContentTopResult with the row and the winning strategy name
        """
        self.validate_image(image)
        self.clear_debug_images()

        for name, detect in self.strategies():
            row = detect(image)
            if row is not None:
                logger.debug(f"Content top at row {row} ({name})")
                return ContentTopResult(row=row, strategy=name)
            logger.debug(f"Content-top strategy '{name}' inconclusive")

        logger.debug(f"Content-top cascade exhausted, using fallback row {fallback_row}")
        return ContentTopResult(row=fallback_row, strategy=FALLBACK)

    def detect_rule_line(self, image: np.ndarray) -> Optional[int]:
        c = self.config
        return detect_rule_line_top(
            image,
            search_fraction=c.rule_search_fraction,
            kernel_width_fraction=c.rule_kernel_width_fraction,
            kernel_height=c.rule_kernel_height,
            min_length_fraction=c.rule_min_length_fraction,
            max_angle=c.rule_max_angle,
            hough_threshold=c.rule_hough_threshold,
            max_line_gap=c.rule_max_line_gap,
            min_raw_fraction=c.rule_min_raw_fraction,
            side_margin_fraction=c.rule_side_margin_fraction,
            density_divisor=c.rule_density_divisor,
            safety_margin=c.rule_safety_margin,
            processor=self,
        )

    def detect_ink_density(self, image: np.ndarray) -> int:
        c = self.config
        return detect_ink_density_top(
            image,
            side_margin_fraction=c.ink_side_margin_fraction,
            dilate_ksize=c.ink_dilate_ksize,
            min_fraction=c.ink_min_fraction,
            lookahead=c.ink_lookahead,
            safety_margin=c.ink_safety_margin,
            processor=self,
        )

    def detect_edge_density(self, image: np.ndarray) -> int:
        c = self.config
        return detect_edge_density_top(
            image,
            side_margin_fraction=c.edge_side_margin_fraction,
            canny_low=c.edge_canny_low,
            canny_high=c.edge_canny_high,
            min_fraction=c.edge_min_fraction,
            run_length=c.edge_run_length,
            offset=c.edge_offset,
            processor=self,
        )


def _band_columns(width: int, side_margin_fraction: float) -> Tuple[int, int]:
    """Column range [x0, x1) left after trimming a margin on each side."""
    x0 = int(width * side_margin_fraction)
    x1 = width - x0
    if x1 <= x0:
        return 0, width
    return x0, x1


def find_horizontal_rules(
    ink: np.ndarray,
    search_fraction: float = 1 / 3,
    kernel_width_fraction: float = 0.25,
    kernel_height: int = 3,
    min_length_fraction: float = 0.70,
    max_angle: float = 5.0,
    hough_threshold: int = 100,
    max_line_gap: int = 10,
    min_raw_fraction: float = 0.5,
    processor: Optional[BaseProcessor] = None,
) -> List[LineSegment]:
    """Find long, near-horizontal rule lines in the top part of an ink mask.

    A wide, short closing first fuses dashed or broken rules into solid
    runs; probabilistic Hough then proposes segments, of which only those
    within ``max_angle`` of horizontal and at least ``min_length_fraction``
    of the search width are kept. A segment is also dropped when no row of
    the unclosed mask around it holds ``min_raw_fraction`` of the width in
    ink, which separates real rules from lines of text the closing merged.

    Returns:
        Qualifying segments sorted top to bottom
    """
    h, w = ink.shape[:2]
    search_h = max(1, int(h * search_fraction))
    region = ink[:search_h]

    kernel_w = max(1, int(w * kernel_width_fraction))
    kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (kernel_w, kernel_height))
    closed = cv2.morphologyEx(region, cv2.MORPH_CLOSE, kernel)
    if processor:
        processor.save_debug_image('01_rule_closed', closed)

    min_length = min_length_fraction * w
    lines = cv2.HoughLinesP(
        closed, 1, np.pi / 180, hough_threshold,
        minLineLength=int(min_length), maxLineGap=max_line_gap,
    )
    raw_counts = np.count_nonzero(region, axis=1)
    min_raw = min_raw_fraction * w

    qualifying = []
    for seg in segments_from_hough(lines):
        if seg.angle > max_angle or seg.length < min_length:
            continue
        # closing fuses words into bars; a rule is already solid ink
        y0 = max(0, seg.top - kernel_height)
        y1 = min(search_h, max(seg.y1, seg.y2) + kernel_height + 1)
        if raw_counts[y0:y1].max() < min_raw:
            logger.debug(f"Rejected fused text at row {seg.top} as a rule")
            continue
        qualifying.append(seg)
    return sorted(qualifying, key=lambda seg: seg.top)


def segments_from_hough(lines: Optional[np.ndarray]) -> List[LineSegment]:
    """Convert ``HoughLinesP`` output, shaped (N, 1, 4) or (N, 4), to segments."""
    if lines is None:
        return []
    return [LineSegment(*map(int, row)) for row in np.asarray(lines).reshape(-1, 4)]


def detect_rule_line_top(
    image: np.ndarray,
    search_fraction: float = 1 / 3,
    kernel_width_fraction: float = 0.25,
    kernel_height: int = 3,
    min_length_fraction: float = 0.70,
    max_angle: float = 5.0,
    hough_threshold: int = 100,
    max_line_gap: int = 10,
    min_raw_fraction: float = 0.5,
    side_margin_fraction: float = 0.10,
    density_divisor: int = 60,
    safety_margin: int = 3,
    processor: Optional[BaseProcessor] = None,
) -> Optional[int]:
    """Content top as the first text row beneath the topmost horizontal rule.

    Below the rule, rows are scanned inside a band that excludes
    ``side_margin_fraction`` of the width on each side. The rule's own
    dense rows are skipped; the first following row with more than
    ``width / density_divisor`` ink pixels is the text.

    Returns:
        Text row minus ``safety_margin`` (never above the rule's last row),
        the row right after the rule when nothing follows it, or None when
        no rule exists.
    """
    ink = ink_mask(image)
    rules = find_horizontal_rules(
        ink,
        search_fraction=search_fraction,
        kernel_width_fraction=kernel_width_fraction,
        kernel_height=kernel_height,
        min_length_fraction=min_length_fraction,
        max_angle=max_angle,
        hough_threshold=hough_threshold,
        max_line_gap=max_line_gap,
        min_raw_fraction=min_raw_fraction,
        processor=processor,
    )
    if not rules:
        return None

    h, w = ink.shape[:2]
    rule_y = rules[0].top
    x0, x1 = _band_columns(w, side_margin_fraction)
    counts = np.count_nonzero(ink[:, x0:x1], axis=1)
    floor = max(1, w // density_divisor)

    y = rule_y
    # the Hough row may sit just above the rule body
    limit = min(h, rule_y + kernel_height + 1)
    while y < limit and counts[y] <= floor:
        y += 1
    while y < h and counts[y] > floor:
        y += 1
    rule_end = min(y, h - 1)

    while y < h and counts[y] <= floor:
        y += 1
    if y >= h:
        logger.debug(f"Rule line at row {rule_y} with no text beneath")
        return rule_end

    return max(rule_end, y - safety_margin)


def detect_ink_density_top(
    image: np.ndarray,
    side_margin_fraction: float = 1 / 8,
    dilate_ksize: int = 3,
    min_fraction: float = 1 / 60,
    lookahead: int = 4,
    safety_margin: int = 6,
    processor: Optional[BaseProcessor] = None,
) -> int:
    """Content top as the first row where ink density is sustained.

    Ink is dilated along rows only. A row qualifies when its ink count
    reaches the floor (``min_fraction`` of the band width) and none of the
    next ``lookahead`` rows falls below half the floor, which rejects
    isolated specks.

    Returns:
        First qualifying row minus ``safety_margin``, or 0
    """
    ink = ink_mask(image)
    kernel = np.ones((1, dilate_ksize), np.uint8)
    ink = cv2.dilate(ink, kernel, iterations=1)
    if processor:
        processor.save_debug_image('02_ink_dilated', ink)

    h, w = ink.shape[:2]
    x0, x1 = _band_columns(w, side_margin_fraction)
    counts = np.count_nonzero(ink[:, x0:x1], axis=1)
    floor = max(1, int(round((x1 - x0) * min_fraction)))

    for y in np.flatnonzero(counts >= floor):
        window = counts[y + 1:y + 1 + lookahead]
        if np.all(window >= floor / 2):
            return max(0, int(y) - safety_margin)
    return 0


def detect_edge_density_top(
    image: np.ndarray,
    side_margin_fraction: float = 1 / 6,
    canny_low: int = 50,
    canny_high: int = 150,
    min_fraction: float = 0.01,
    run_length: int = 3,
    offset: int = 18,
    processor: Optional[BaseProcessor] = None,
) -> int:
    """Content top from the first sustained run of edge-dense rows.

    Returns:
        First row of the run plus ``offset`` (clamped to the image), or 0
    """
    gray = to_grayscale(image)
    edges = cv2.Canny(gray, canny_low, canny_high)
    if processor:
        processor.save_debug_image('03_edges', edges)

    h, w = edges.shape[:2]
    x0, x1 = _band_columns(w, side_margin_fraction)
    counts = np.count_nonzero(edges[:, x0:x1], axis=1)
    floor = max(1, int(round((x1 - x0) * min_fraction)))

    run = 0
    for y, dense in enumerate(counts > floor):
        run = run + 1 if dense else 0
        if run >= run_length:
            start = y - run_length + 1
            return min(h - 1, start + offset)
    return 0
