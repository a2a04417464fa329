"""Base processor class and common utilities for rectification processors."""

from typing import Any, Dict, Optional
import numpy as np
from abc import ABC, abstractmethod

from ..exceptions import ValidationError


class BaseProcessor(ABC):
    """Base class for all image processors."""

    def __init__(self, config: Optional[Any] = None, save_debug_images: bool = False):
        """Initialize processor with an optional configuration section.

        Args:
            config: Pydantic section model holding this stage's parameters
            save_debug_images: Capture intermediate images for later saving
        """
        self.config = config
        self.save_debug_images = save_debug_images
        self.debug_images = {}  # Store debug images during processing

    @abstractmethod
    def process(self, image: np.ndarray, **kwargs) -> Any:
        """Process an image. Must be implemented by subclasses."""
        pass

    def validate_image(self, image: np.ndarray) -> None:
        """Validate that the input is a valid image."""
        if image is None:
            raise ValidationError("Image cannot be None")
        if not isinstance(image, np.ndarray):
            raise ValidationError("Image must be a numpy array")
        if image.size == 0:
            raise ValidationError("Image cannot be empty")

    def save_debug_image(self, name: str, image: np.ndarray) -> None:
        """Store a debug image for later saving."""
        if self.save_debug_images:
            self.debug_images[name] = image

    def get_debug_images(self) -> Dict[str, np.ndarray]:
        """Get all stored debug images."""
        return self.debug_images

    def clear_debug_images(self) -> None:
        """Clear stored debug images."""
        self.debug_images = {}

