"""
Sheet Rectifier

Turns photographs of paper sheets into upright, cropped, perspective-corrected
images whose top edge sits just above the first line of content.
"""

__version__ = "1.0.0"

from .config import Config, get_default_config, load_config
from .pipeline import PipelineContext, SheetPipeline, rectify_image

__all__ = [
    "Config",
    "get_default_config",
    "load_config",
    "PipelineContext",
    "SheetPipeline",
    "rectify_image",
]
