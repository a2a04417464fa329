"""
Pytest configuration and shared fixtures for sheet rectifier tests.

Provides synthetic photographs of sheets and configuration fixtures for all
test modules.
"""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import Generator

import cv2
import numpy as np
import pytest

# Make the src/ layout importable when the package is not installed
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from sheet_rectifier.config import Config, get_default_config  # noqa: E402
from sheet_rectifier.utils.logging_utils import setup_logging  # noqa: E402

BACKGROUND = 55
PAPER = 255
INK = 0

# Layout of the synthetic photograph (x: columns, y: rows)
PHOTO_WIDTH, PHOTO_HEIGHT = 2000, 3000
SHEET_LEFT, SHEET_RIGHT = 200, 1799
SHEET_TOP, SHEET_BOTTOM = 300, 2699
RULE_TOP, RULE_THICKNESS = 450, 4
RULE_LEFT, RULE_RIGHT = 260, 1740
TEXT_TOP, TEXT_BOTTOM = 480, 2100
TEXT_LEFT, TEXT_RIGHT = 300, 1700


def make_sheet_photo() -> np.ndarray:
    """White sheet on a dark table: a heading rule, then lines of words."""
    image = np.full((PHOTO_HEIGHT, PHOTO_WIDTH, 3), BACKGROUND, dtype=np.uint8)
    image[SHEET_TOP:SHEET_BOTTOM + 1, SHEET_LEFT:SHEET_RIGHT + 1] = PAPER
    image[RULE_TOP:RULE_TOP + RULE_THICKNESS, RULE_LEFT:RULE_RIGHT + 1] = INK

    # 10 px tall lines of 80 px words every 40 rows
    for y in range(TEXT_TOP, TEXT_BOTTOM, 40):
        for x in range(TEXT_LEFT, TEXT_RIGHT - 80, 110):
            image[y:y + 10, x:x + 80] = INK
    return image


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sheet_photo() -> np.ndarray:
    """Upright portrait sheet photographed on a dark background."""
    return make_sheet_photo()


@pytest.fixture
def landscape_photo(sheet_photo: np.ndarray) -> np.ndarray:
    """The sheet photograph turned a quarter turn clockwise."""
    return cv2.rotate(sheet_photo, cv2.ROTATE_90_CLOCKWISE)


@pytest.fixture
def upside_down_photo(sheet_photo: np.ndarray) -> np.ndarray:
    """The sheet photograph turned half a turn."""
    return cv2.rotate(sheet_photo, cv2.ROTATE_180)


@pytest.fixture
def ruled_page() -> np.ndarray:
    """Plain 600x900 page with a rule at rows 100-103 and text from row 130."""
    image = np.full((900, 600), PAPER, dtype=np.uint8)
    image[100:104, 50:551] = INK
    for y in range(130, 400, 30):
        image[y:y + 10, 100:501] = INK
    return image


@pytest.fixture
def unruled_page() -> np.ndarray:
    """Plain 400x600 page with a block of text starting at row 200."""
    image = np.full((600, 400), PAPER, dtype=np.uint8)
    image[200:261, 60:301] = INK
    return image


@pytest.fixture
def test_config() -> Config:
    """Default configuration with console decoration disabled."""
    config = get_default_config()
    config.logging.level = "DEBUG"
    config.logging.use_rich = False
    return config


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Setup logging for tests."""
    setup_logging(level="WARNING", use_rich=False, format_style="minimal")


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (deselect with '-m \"not unit\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers based on test location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)

        if "slow" in item.name.lower():
            item.add_marker(pytest.mark.slow)
