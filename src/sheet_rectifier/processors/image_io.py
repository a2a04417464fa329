"""Image I/O utilities for loading and saving images."""

from pathlib import Path
from typing import List, Optional, Sequence

import cv2
import numpy as np

from ..exceptions import ImageLoadError, ImageSaveError


def load_image(image_path: Path) -> np.ndarray:
    """Load image from file.

    Args:
        image_path: Path to the image file

    Returns:
        numpy array containing the image (BGR)

    Raises:
        ImageLoadError: If the file is missing or cannot be decoded
    """
    image_path = Path(image_path)
    if not image_path.is_file():
        raise ImageLoadError("Image file not found", image_path=str(image_path))

    image = cv2.imread(str(image_path), cv2.IMREAD_COLOR)
    if image is None or image.size == 0:
        raise ImageLoadError("Could not decode image", image_path=str(image_path))
    return image


def save_image(image: np.ndarray, output_path: Path, jpeg_quality: int = 95) -> None:
    """Save image to file.

    Args:
        image: Image array to save
        output_path: Path where to save the image
        jpeg_quality: Quality used when the extension is .jpg/.jpeg

    Raises:
        ImageSaveError: If image is None, empty or cannot be encoded
    """
    output_path = Path(output_path)
    if image is None:
        raise ImageSaveError("Cannot save None as image", image_path=str(output_path))

    if image.size == 0:
        raise ImageSaveError("Cannot save empty image", image_path=str(output_path))

    output_path.parent.mkdir(parents=True, exist_ok=True)

    params = []
    if output_path.suffix.lower() in (".jpg", ".jpeg"):
        params = [cv2.IMWRITE_JPEG_QUALITY, jpeg_quality]

    if not cv2.imwrite(str(output_path), image, params):
        raise ImageSaveError("Could not encode image", image_path=str(output_path))


def get_image_files(directory: Path, extensions: Optional[Sequence[str]] = None) -> List[Path]:
    """Get all image files from directory (non-recursive).

    Args:
        directory: Directory to search for images
        extensions: Extensions to match, with leading dot (default: JPEG)

    Returns:
        List of paths to image files, sorted
    """
    extensions = extensions or [".jpg", ".jpeg"]
    image_files = set()  # Use set to avoid duplicates on case-insensitive filesystems

    for ext in extensions:
        image_files.update(directory.glob(f"*{ext.lower()}"))
        image_files.update(directory.glob(f"*{ext.upper()}"))

    return sorted(path for path in image_files if path.is_file())
