"""Sheet rectification pipeline: single photographs, directories and the CLI."""

import argparse
import gc
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import cv2
import numpy as np

from .config import Config, get_default_config, load_config
from .exceptions import (
    BoundaryNotFoundError,
    ConfigurationError,
    DirectoryError,
    ImageLoadError,
    SheetRectifierError,
)
from .processors import (
    BaseProcessor,
    BoundaryResult,
    ContentTopDetector,
    ContentTopResult,
    FinalCropProcessor,
    OrientationDecision,
    OrientationProcessor,
    create_boundary_locator,
    crop_to_region,
    get_image_files,
    load_image,
    save_image,
    visualize_boundary,
    visualize_content_top,
)
from .utils import (
    create_output_path,
    ensure_directory_exists,
    is_derived_output,
    log_processing_stats,
    print_error,
    print_header,
    print_info,
    print_success,
    print_warning,
    setup_logging,
)

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """Per-photograph state threaded from the boundary locator to the final crop."""

    source_path: Optional[Path] = None
    source_shape: Tuple[int, ...] = ()
    boundary: Optional[BoundaryResult] = None
    orientation: Optional[OrientationDecision] = None
    content_top: Optional[ContentTopResult] = None
    output_shape: Tuple[int, ...] = ()
    debug_images: Dict[str, np.ndarray] = field(default_factory=dict)

    @property
    def fallback_top_reserve(self) -> int:
        """Top rows to trim when no content-top strategy is conclusive."""
        return self.boundary.fallback_top_reserve if self.boundary else 0


class SheetPipeline:
    """Rectify photographs of paper sheets into upright, cropped images."""

    def __init__(self, config: Optional[Config] = None):
        """Initialize pipeline with configuration."""
        self.config = config or get_default_config()
        debug = self.config.save_debug_images

        self.boundary_locator = create_boundary_locator(self.config.boundary, debug)
        self.orientation_processor = OrientationProcessor(self.config.orientation, debug)
        self.content_top_detector = ContentTopDetector(self.config.content_top, debug)
        self.final_cropper = FinalCropProcessor(self.config.final_crop, debug)

    def process_image(
        self, image: np.ndarray, source_path: Optional[Path] = None
    ) -> Tuple[np.ndarray, PipelineContext]:
        """Run every stage on an in-memory photograph.

        Args:
            image: Photograph (BGR or grayscale)
            source_path: Where the photograph came from, for reporting

        Returns:
            tuple: (rectified_image, context)

        Raises:
            BoundaryNotFoundError: If the quadrilateral locator finds no sheet
                and full-frame fallback is disabled
        """
        context = PipelineContext(source_path=source_path, source_shape=image.shape)

        # Step 1-2: locate and normalize the sheet
        try:
            sheet, boundary = self.boundary_locator.process(image)
        except BoundaryNotFoundError:
            if not self.config.boundary.use_full_frame_on_failure:
                raise
            logger.warning(f"No sheet boundary found in {source_path or 'image'}, using full frame")
            boundary = self.boundary_locator.full_frame_result(image)
            sheet = crop_to_region(image, boundary.region)
            boundary.fallback_top_reserve = min(boundary.fallback_top_reserve, sheet.shape[0] - 1)
        context.boundary = boundary
        self._collect_debug_images(context, "boundary", self.boundary_locator)
        if self.config.save_debug_images:
            context.debug_images["boundary_overlay"] = visualize_boundary(image, boundary)

        if self.config.verbose:
            print_info(f"  Sheet located ({boundary.strategy}): {sheet.shape[1]}x{sheet.shape[0]}")

        # Step 3: portrait and upright
        oriented, decision = self.orientation_processor.process(sheet)
        del sheet
        context.orientation = decision
        self._collect_debug_images(context, "orientation", self.orientation_processor)

        if self.config.verbose:
            print_info(f"  Rotated {decision.total_rotation} degrees clockwise")

        # Step 4: where the content begins
        content_top = self.content_top_detector.process(
            oriented, fallback_row=context.fallback_top_reserve
        )
        context.content_top = content_top
        self._collect_debug_images(context, "content_top", self.content_top_detector)
        if self.config.save_debug_images:
            context.debug_images["content_top_overlay"] = visualize_content_top(
                oriented, content_top.row
            )

        if self.config.verbose:
            print_info(f"  Content starts at row {content_top.row} ({content_top.strategy})")

        # Step 5: final crop
        output = self.final_cropper.process(oriented, top=content_top.row)
        del oriented
        context.output_shape = output.shape

        return output, context

    def process_file(self, input_path: Path, output_path: Path) -> Optional[Path]:
        """Rectify one file and write the result.

        Every failure is logged and reported; nothing is written unless the
        whole pipeline succeeded.

        Returns:
            The output path, or None when the file failed
        """
        input_path = Path(input_path)
        output_path = Path(output_path)

        if self.config.verbose:
            print_info(f"Processing: {input_path}")

        try:
            image = load_image(input_path)
            output, context = self.process_image(image, source_path=input_path)
            del image
            # the output is written last so a failed file leaves no output
            if self.config.save_debug_images:
                self._save_debug_images(context)
            save_image(output, output_path, jpeg_quality=self.config.io.jpeg_quality)
        except ImageLoadError as e:
            logger.error(str(e))
            print_error(f"Could not read {input_path}: {e.message}")
            return None
        except (SheetRectifierError, cv2.error) as e:
            logger.error(f"Error processing {input_path}: {e}")
            print_error(f"Error processing {input_path}: {e}")
            return None
        except Exception as e:
            logger.exception(f"Unexpected error processing {input_path}: {e}")
            print_error(f"Error processing {input_path}: {e}")
            return None

        logger.debug(
            f"{input_path.name}: boundary={context.boundary.strategy}, "
            f"rotation={context.orientation.total_rotation}, "
            f"top={context.content_top.row} ({context.content_top.strategy}), "
            f"output={context.output_shape[1]}x{context.output_shape[0]}"
        )
        print_success(f"Saved {output_path}")
        return output_path

    def process_directory(
        self, input_dir: Path, output_dir: Optional[Path] = None
    ) -> List[Path]:
        """Process every photograph directly inside ``input_dir``.

        Outputs are written as ``<stem><suffix><extension>`` beside their
        inputs (or into ``output_dir``). Files that already carry the output
        suffix are skipped.

        Returns:
            Paths of the written outputs
        """
        input_dir = Path(input_dir)
        if not input_dir.is_dir():
            raise DirectoryError("Input directory does not exist", {"path": str(input_dir)})

        io_config = self.config.io
        image_files = [
            path for path in get_image_files(input_dir, io_config.image_extensions)
            if not is_derived_output(path, io_config.output_suffix)
        ]

        if not image_files:
            print_warning(f"No image files found in: {input_dir}")
            return []

        print_header(f"Rectifying {input_dir}")
        print_info(f"Found {len(image_files)} images to process")

        outputs = []
        with log_processing_stats(f"rectifying {input_dir}", logger) as stats:
            for image_path in image_files:
                output_path = create_output_path(
                    image_path,
                    output_dir,
                    suffix=io_config.output_suffix,
                    extension=io_config.output_extension,
                )
                result = self.process_file(image_path, output_path)
                if result is None:
                    stats["files_failed"] += 1
                else:
                    stats["files_processed"] += 1
                    outputs.append(result)
                gc.collect()

        print_info(f"Processed {len(outputs)} of {len(image_files)} files")
        return outputs

    def run(self, input_path: Optional[Path] = None, output_path: Optional[Path] = None) -> List[Path]:
        """Process a file or a directory.

        Args:
            input_path: File or directory (default: ``config.io.input_path``)
            output_path: Output file for a single input, output directory for
                a directory input (default: ``config.io.output_path`` / beside inputs)

        Returns:
            Paths of the written outputs
        """
        input_path = Path(input_path or self.config.io.input_path)

        if input_path.is_dir():
            return self.process_directory(input_path, output_path)

        if not input_path.exists():
            logger.error(f"Input not found: {input_path}")
            print_error(f"File not found: {input_path}")
            return []

        output_path = Path(output_path or self.config.io.output_path)
        result = self.process_file(input_path, output_path)
        return [result] if result is not None else []

    def _collect_debug_images(
        self, context: PipelineContext, stage: str, processor: BaseProcessor
    ) -> None:
        for name, image in processor.get_debug_images().items():
            context.debug_images[f"{stage}_{name}"] = image
        processor.clear_debug_images()

    def _save_debug_images(self, context: PipelineContext) -> None:
        stem = context.source_path.stem if context.source_path else "image"
        debug_dir = ensure_directory_exists(Path(self.config.debug_dir or "debug") / stem)
        for name, image in context.debug_images.items():
            save_image(image, debug_dir / f"{name}.png")


def rectify_image(
    image: np.ndarray, config: Optional[Config] = None
) -> Tuple[np.ndarray, PipelineContext]:
    """Rectify an in-memory photograph with a fresh pipeline."""
    return SheetPipeline(config).process_image(image)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Rectify photographs of paper sheets into upright, cropped images"
    )
    parser.add_argument(
        "input", nargs="?", help="Input photograph or directory (default: use config)"
    )
    parser.add_argument(
        "-o", "--output",
        help="Output file (single input) or directory (directory input)"
    )
    parser.add_argument("-c", "--config", help="Configuration file (JSON, YAML or TOML)")
    parser.add_argument(
        "--strategy", choices=["brightness", "quadrilateral"],
        help="Sheet boundary detection strategy"
    )
    parser.add_argument(
        "--rotation", choices=["auto", "clockwise", "counterclockwise"],
        help="How landscape sheets are turned portrait"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--debug", action="store_true", help="Save intermediate debug images")
    parser.add_argument("--debug-dir", help="Directory for debug images")
    parser.add_argument("--log-file", help="Also write the log to this file")
    parser.add_argument("--no-rich", action="store_true", help="Plain console logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Command line interface."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config) if args.config else get_default_config()

        if args.strategy:
            config.boundary.strategy = args.strategy
        if args.rotation:
            config.orientation.portrait_rotation = args.rotation
        if args.verbose:
            config.verbose = True
            config.logging.level = "DEBUG"
        if args.debug:
            config.save_debug_images = True
        if args.debug_dir:
            config.debug_dir = args.debug_dir
        if args.log_file:
            config.logging.log_file = args.log_file
        if args.no_rich:
            config.logging.use_rich = False
    except (ConfigurationError, ValueError) as e:
        print_error(f"Invalid configuration: {e}")
        return 2

    setup_logging(
        level=config.logging.level,
        log_file=config.logging.log_file,
        use_rich=config.logging.use_rich,
        format_style=config.logging.format_style,
    )

    input_path = Path(args.input or config.io.input_path)
    output_path = Path(args.output) if args.output else None

    pipeline = SheetPipeline(config)
    try:
        outputs = pipeline.run(input_path, output_path)
    except DirectoryError as e:
        print_error(str(e))
        return 1

    if input_path.is_dir():
        return 0
    return 0 if outputs else 1


if __name__ == "__main__":
    sys.exit(main())
