"""Grayscale conversion and binarization helpers shared by all stages."""

import cv2
import numpy as np


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Return a single-channel copy of a BGR, BGRA or grayscale image."""
    if len(image.shape) == 2:
        return image.copy()
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def binarize_image(
    image: np.ndarray,
    method: str = "otsu",
    threshold: int = 127,
    invert: bool = False,
) -> np.ndarray:
    """Binarize image with a global threshold.

    Args:
        image: Input image (color or grayscale)
        method: "otsu" picks the threshold maximizing inter-class variance,
            "fixed" uses ``threshold`` as is
        threshold: Threshold value for the fixed method (0-255)
        invert: If True, dark pixels become foreground (255)

    Returns:
        np.ndarray: Binary image (0 or 255 values only)
    """
    gray = to_grayscale(image)
    thresh_type = cv2.THRESH_BINARY_INV if invert else cv2.THRESH_BINARY

    if method.lower() == "otsu":
        _, binary = cv2.threshold(gray, 0, 255, thresh_type + cv2.THRESH_OTSU)
    elif method.lower() == "fixed":
        _, binary = cv2.threshold(gray, threshold, 255, thresh_type)
    else:
        raise ValueError(f"Unknown binarization method: {method}. Use 'otsu' or 'fixed'")

    return binary


def paper_mask(image: np.ndarray) -> np.ndarray:
    """Return binary mask where bright paper is 255 and background is 0."""
    return binarize_image(image, method="otsu", invert=False)


def ink_mask(image: np.ndarray) -> np.ndarray:
    """Return binary mask where dark marks (text, rules) are 255."""
    return binarize_image(image, method="otsu", invert=True)
