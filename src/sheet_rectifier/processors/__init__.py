"""Sheet Rectifier Processors Module.

This module provides the image processing stages of the rectification
pipeline. Each processor handles one stage of the workflow.
"""

# Base processor
from .base import BaseProcessor

# Image I/O
from .image_io import (
    load_image,
    save_image,
    get_image_files,
)

# Binarization
from .binarize import (
    to_grayscale,
    binarize_image,
    paper_mask,
    ink_mask,
)

# Geometry
from .geometry import (
    Region,
    Quadrilateral,
    order_quadrilateral_points,
    crop_to_region,
    warp_quadrilateral,
    rotate_image,
)

# Boundary location
from .boundary import (
    BoundaryResult,
    BoundaryLocator,
    BrightnessBoundaryLocator,
    QuadrilateralBoundaryLocator,
    create_boundary_locator,
    find_page_by_brightness,
    find_sheet_quadrilateral,
)

# Orientation
from .orientation import (
    OrientationDecision,
    OrientationProcessor,
    band_ink_counts,
    force_portrait,
    ensure_upright,
)

# Content top
from .content_top import (
    LineSegment,
    ContentTopResult,
    ContentTopDetector,
    find_horizontal_rules,
    segments_from_hough,
    detect_rule_line_top,
    detect_ink_density_top,
    detect_edge_density_top,
)

# Final crop
from .final_crop import (
    FinalCropProcessor,
    crop_content,
)

# Visualization
from .visualization import (
    visualize_boundary,
    visualize_content_top,
)

__all__ = [
    # Base
    "BaseProcessor",

    # Image I/O
    "load_image",
    "save_image",
    "get_image_files",

    # Binarization
    "to_grayscale",
    "binarize_image",
    "paper_mask",
    "ink_mask",

    # Geometry
    "Region",
    "Quadrilateral",
    "order_quadrilateral_points",
    "crop_to_region",
    "warp_quadrilateral",
    "rotate_image",

    # Boundary location
    "BoundaryResult",
    "BoundaryLocator",
    "BrightnessBoundaryLocator",
    "QuadrilateralBoundaryLocator",
    "create_boundary_locator",
    "find_page_by_brightness",
    "find_sheet_quadrilateral",

    # Orientation
    "OrientationDecision",
    "OrientationProcessor",
    "band_ink_counts",
    "force_portrait",
    "ensure_upright",

    # Content top
    "LineSegment",
    "ContentTopResult",
    "ContentTopDetector",
    "find_horizontal_rules",
    "segments_from_hough",
    "detect_rule_line_top",
    "detect_ink_density_top",
    "detect_edge_density_top",

    # Final crop
    "FinalCropProcessor",
    "crop_content",

    # Visualization
    "visualize_boundary",
    "visualize_content_top",
]
