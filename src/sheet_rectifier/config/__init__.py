"""
Configuration system with Pydantic models and validation.

Provides typed, validated configuration for every rectification stage and
loading from JSON, YAML or TOML files.
"""

from .models import (
    Config,
    IOConfig,
    BoundaryConfig,
    BoundaryStrategy,
    OrientationConfig,
    PortraitRotation,
    ContentTopConfig,
    FinalCropConfig,
    LoggingConfig,
    LogLevel,
    CONTENT_TOP_STRATEGIES,
)
from .loader import (
    load_config,
    load_config_from_dict,
    save_config,
    get_default_config,
    validate_config_file,
)

__all__ = [
    # Configuration models
    "Config",
    "IOConfig",
    "BoundaryConfig",
    "BoundaryStrategy",
    "OrientationConfig",
    "PortraitRotation",
    "ContentTopConfig",
    "FinalCropConfig",
    "LoggingConfig",
    "LogLevel",
    "CONTENT_TOP_STRATEGIES",
    # Configuration loading
    "load_config",
    "load_config_from_dict",
    "save_config",
    "get_default_config",
    "validate_config_file",
]
