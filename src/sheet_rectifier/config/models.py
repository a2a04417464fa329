"""
Pydantic models for sheet rectifier configuration.

Every tunable constant of the rectification stages lives here, grouped by
the stage that reads it. Defaults reproduce the values the pipeline was
tuned with on photographed forms.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class LogLevel(str, Enum):
    """Supported logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class BoundaryStrategy(str, Enum):
    """Sheet boundary detection strategies."""
    BRIGHTNESS = "brightness"
    QUADRILATERAL = "quadrilateral"


class PortraitRotation(str, Enum):
    """How a landscape sheet is turned into portrait."""
    AUTO = "auto"
    CLOCKWISE = "clockwise"
    COUNTERCLOCKWISE = "counterclockwise"


CONTENT_TOP_STRATEGIES = ("rule_line", "ink_density", "edge_density")


class StageConfig(BaseModel):
    """Common settings for configuration sections."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True, use_enum_values=True)


class IOConfig(StageConfig):
    """Input/output locations and encoding."""

    input_path: str = Field(
        default="input.jpg",
        description="Photograph to process, or a directory of photographs"
    )
    output_path: str = Field(
        default="output_sheet.jpg",
        description="Output file for single-file mode"
    )
    output_suffix: str = Field(
        default="_new",
        description="Suffix appended to the input stem in batch mode"
    )
    output_extension: str = Field(
        default=".jpg",
        description="Extension of batch-mode output files"
    )
    image_extensions: List[str] = Field(
        default=[".jpg", ".jpeg"],
        description="Extensions picked up when scanning a directory"
    )
    jpeg_quality: int = Field(
        default=95,
        ge=1,
        le=100,
        description="JPEG quality of written images"
    )

    @field_validator('input_path', 'output_path')
    @classmethod
    def validate_path(cls, v):
        """Validate path format."""
        if not v or not isinstance(v, str):
            raise ValueError("Path must be a non-empty string")
        return v.replace('\\', '/')

    @field_validator('output_extension')
    @classmethod
    def validate_extension(cls, v):
        """Ensure the extension carries its leading dot."""
        return v if v.startswith('.') else f".{v}"


class BoundaryConfig(StageConfig):
    """Configuration for locating the sheet inside the photograph."""

    strategy: BoundaryStrategy = Field(
        default=BoundaryStrategy.BRIGHTNESS,
        description="Boundary detection strategy"
    )
    column_fraction: float = Field(
        default=0.80,
        gt=0.0,
        le=1.0,
        description="Column paper count, as fraction of the maximum, marking left/right edges"
    )
    row_fraction: float = Field(
        default=0.90,
        gt=0.0,
        le=1.0,
        description="Row paper count, as fraction of the maximum, marking top/bottom edges"
    )
    top_margin: int = Field(default=40, ge=0, description="Pixels trimmed inward from the top")
    bottom_margin: int = Field(default=40, ge=0, description="Pixels trimmed inward from the bottom")
    right_margin: int = Field(default=20, ge=0, description="Pixels trimmed inward from the right")

    # Quadrilateral strategy
    blur_ksize: int = Field(default=5, ge=1, description="Gaussian blur kernel size (odd)")
    canny_low: int = Field(default=75, ge=0, le=255, description="Lower Canny threshold")
    canny_high: int = Field(default=200, ge=0, le=255, description="Upper Canny threshold")
    dilate_ksize: int = Field(default=3, ge=1, description="Edge dilation kernel size")
    dilate_iterations: int = Field(default=2, ge=1, description="Edge dilation iterations")
    min_contour_area: float = Field(
        default=10000.0,
        ge=0.0,
        description="Contours below this area (px^2) are discarded as noise"
    )

    fallback_top_reserve: int = Field(
        default=6,
        ge=0,
        description="Top rows trimmed when no content-top strategy is conclusive"
    )
    use_full_frame_on_failure: bool = Field(
        default=True,
        description="Use the whole photograph when no quadrilateral is found"
    )

    @field_validator('blur_ksize')
    @classmethod
    def validate_odd_kernel_size(cls, v):
        """Ensure kernel size is odd."""
        if v % 2 == 0:
            raise ValueError("Kernel size must be odd")
        return v

    @model_validator(mode='after')
    def validate_canny_thresholds(self):
        """Validate that the Canny hysteresis range is ordered."""
        if self.canny_low >= self.canny_high:
            raise ValueError("canny_low must be less than canny_high")
        return self


class OrientationConfig(StageConfig):
    """Configuration for portrait and upright correction."""

    portrait_rotation: PortraitRotation = Field(
        default=PortraitRotation.AUTO,
        description="Rotation used to turn landscape sheets into portrait"
    )
    band_fraction: float = Field(
        default=0.20,
        gt=0.0,
        le=0.5,
        description="Height of the top/bottom ink comparison bands as fraction of height"
    )
    enable_upright_check: bool = Field(
        default=True,
        description="Rotate 180 degrees when the bottom band holds more ink"
    )


class ContentTopConfig(StageConfig):
    """Configuration for the content-top detection cascade."""

    strategies: List[str] = Field(
        default=list(CONTENT_TOP_STRATEGIES),
        description="Detection strategies in the order they are tried"
    )

    # Horizontal rule line
    rule_search_fraction: float = Field(default=1 / 3, gt=0.0, le=1.0)
    rule_kernel_width_fraction: float = Field(default=0.25, gt=0.0, le=1.0)
    rule_kernel_height: int = Field(default=3, ge=1, le=15)
    rule_min_length_fraction: float = Field(default=0.70, gt=0.0, le=1.0)
    rule_max_angle: float = Field(default=5.0, ge=0.0, le=45.0)
    rule_hough_threshold: int = Field(default=100, gt=0)
    rule_max_line_gap: int = Field(default=10, ge=0)
    rule_min_raw_fraction: float = Field(default=0.5, ge=0.0, le=1.0)
    rule_side_margin_fraction: float = Field(default=0.10, ge=0.0, lt=0.5)
    rule_density_divisor: int = Field(default=60, gt=0)
    rule_safety_margin: int = Field(default=3, ge=0)

    # Ink density stability
    ink_side_margin_fraction: float = Field(default=1 / 8, ge=0.0, lt=0.5)
    ink_dilate_ksize: int = Field(default=3, ge=1)
    ink_min_fraction: float = Field(default=1 / 60, gt=0.0, le=1.0)
    ink_lookahead: int = Field(default=4, ge=0)
    ink_safety_margin: int = Field(default=6, ge=0)

    # Edge density
    edge_side_margin_fraction: float = Field(default=1 / 6, ge=0.0, lt=0.5)
    edge_canny_low: int = Field(default=50, ge=0, le=255)
    edge_canny_high: int = Field(default=150, ge=0, le=255)
    edge_min_fraction: float = Field(default=0.01, gt=0.0, le=1.0)
    edge_run_length: int = Field(default=3, ge=1)
    edge_offset: int = Field(default=18, ge=0)

    @field_validator('strategies')
    @classmethod
    def validate_strategies(cls, v):
        """Strategies must be known, unique and non-empty."""
        if not v:
            raise ValueError("At least one content-top strategy is required")
        unknown = [name for name in v if name not in CONTENT_TOP_STRATEGIES]
        if unknown:
            raise ValueError(
                f"Unknown content-top strategies {unknown}; "
                f"choose from {list(CONTENT_TOP_STRATEGIES)}"
            )
        if len(set(v)) != len(v):
            raise ValueError("Content-top strategies must not repeat")
        return v

    @model_validator(mode='after')
    def validate_edge_thresholds(self):
        """Validate that the Canny hysteresis range is ordered."""
        if self.edge_canny_low >= self.edge_canny_high:
            raise ValueError("edge_canny_low must be less than edge_canny_high")
        return self


class FinalCropConfig(StageConfig):
    """Configuration for the final crop."""

    right_margin: int = Field(default=30, ge=0, description="Pixels trimmed from the right edge")


class LoggingConfig(StageConfig):
    """Logging configuration."""

    level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Base logging level"
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional log file path"
    )
    use_rich: bool = Field(
        default=True,
        description="Whether to use rich console output"
    )
    format_style: str = Field(
        default="detailed",
        pattern="^(simple|detailed|minimal)$",
        description="Logging format style"
    )


class Config(BaseModel):
    """Main configuration model for the sheet rectifier."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        use_enum_values=True,
    )

    io: IOConfig = Field(default_factory=IOConfig)
    boundary: BoundaryConfig = Field(default_factory=BoundaryConfig)
    orientation: OrientationConfig = Field(default_factory=OrientationConfig)
    content_top: ContentTopConfig = Field(default_factory=ContentTopConfig)
    final_crop: FinalCropConfig = Field(default_factory=FinalCropConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    save_debug_images: bool = Field(
        default=False,
        description="Capture intermediate images and write them to debug_dir"
    )
    debug_dir: Optional[str] = Field(
        default=None,
        description="Directory for debug images"
    )
    verbose: bool = Field(default=False, description="Print per-stage details")

    # Meta configuration
    version: str = Field(
        default="1.0.0",
        description="Configuration version"
    )
    description: Optional[str] = Field(
        default=None,
        description="Configuration description"
    )
