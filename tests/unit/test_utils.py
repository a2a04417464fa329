"""Tests for file, logging and exception helpers."""

import logging
from pathlib import Path

import cv2
import pytest

from sheet_rectifier.exceptions import (
    BoundaryNotFoundError,
    DirectoryError,
    ImageLoadError,
    ProcessingError,
    SheetRectifierError,
)
from sheet_rectifier.utils import (
    create_output_path,
    ensure_directory_exists,
    is_derived_output,
    log_processing_stats,
    print_success,
    setup_logging,
)


def test_create_output_path_beside_input():
    path = create_output_path(Path("photos/page.JPG"), suffix="_new", extension="jpg")
    assert path == Path("photos/page_new.jpg")


def test_create_output_path_into_directory():
    path = create_output_path("photos/page.png", "out", suffix="_new")
    assert path == Path("out/page_new.png")


def test_is_derived_output():
    assert is_derived_output("page_new.jpg", "_new")
    assert not is_derived_output("page.jpg", "_new")
    assert not is_derived_output("page.jpg", "")


def test_ensure_directory_exists(temp_dir):
    target = ensure_directory_exists(temp_dir / "a" / "b")
    assert target.is_dir()


def test_ensure_directory_exists_on_file(temp_dir):
    blocker = temp_dir / "file"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(DirectoryError):
        ensure_directory_exists(blocker / "child")


def test_log_processing_stats(caplog):
    logger = logging.getLogger("sheet_rectifier.test")

    with caplog.at_level(logging.INFO, logger="sheet_rectifier.test"):
        with log_processing_stats("batch", logger) as stats:
            stats["files_processed"] += 3
            stats["files_failed"] += 1

    assert stats["success_rate"] == 0.75
    assert "processed=3" in caplog.text
    assert "failed=1" in caplog.text


def test_log_processing_stats_reraises():
    with pytest.raises(RuntimeError):
        with log_processing_stats("batch"):
            raise RuntimeError("boom")


def test_error_details_in_message():
    error = BoundaryNotFoundError("No sheet outline found", processor="Quad", image_path="a.jpg")

    assert isinstance(error, SheetRectifierError)
    assert error.details["image_path"] == "a.jpg"
    assert "image_path=a.jpg" in str(error)
    assert str(SheetRectifierError("plain")) == "plain"


def test_print_success(capsys):
    print_success("done")
    assert "done" in capsys.readouterr().out


@pytest.mark.parametrize("level, cv_level", [
    ("DEBUG", cv2.utils.logging.LOG_LEVEL_DEBUG),
    ("INFO", cv2.utils.logging.LOG_LEVEL_INFO),
    ("WARNING", cv2.utils.logging.LOG_LEVEL_WARNING),
    ("ERROR", cv2.utils.logging.LOG_LEVEL_ERROR),
])
def test_setup_logging_levels(level, cv_level):
    root = setup_logging(level=level, use_rich=False, format_style="minimal")

    assert root.level == getattr(logging, level)
    assert cv2.utils.logging.getLogLevel() == cv_level


def test_boundary_error_attributes():
    error = BoundaryNotFoundError(min_contour_area=5000.0, image_shape=(600, 400))

    assert isinstance(error, ProcessingError)
    assert error.strategy == "quadrilateral"
    assert error.min_contour_area == 5000.0
    assert error.image_shape == (600, 400)
    assert "min_contour_area=5000.0" in str(error)


def test_image_load_error_keeps_path():
    error = ImageLoadError("Could not decode image", image_path="scans/a.jpg")

    assert error.path == Path("scans/a.jpg")
    assert error.details == {"image_path": "scans/a.jpg"}
