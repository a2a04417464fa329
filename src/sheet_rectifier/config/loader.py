"""
Configuration loader with support for multiple formats and validation.

Provides configuration loading from JSON, YAML and TOML files, plus
environment variable substitution and validation.
"""

import json
import os
import re
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from .models import Config
from ..exceptions import ConfigurationError

PathLike = Union[str, Path]


def load_config(config_path: PathLike) -> Config:
    """
    Load configuration from file with automatic format detection.

    Args:
        config_path: Path to configuration file

    Returns:
        Validated configuration object

    Raises:
        ConfigurationError: If configuration cannot be loaded or is invalid
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        suffix = path.suffix.lower()

        if suffix == '.json':
            config_data = _load_json(path)
        elif suffix in ['.yaml', '.yml']:
            config_data = _load_yaml(path)
        elif suffix == '.toml':
            config_data = _load_toml(path)
        else:
            config_data = _load_auto_detect(path)

        config_data = _substitute_env_vars(config_data)

        return load_config_from_dict(config_data)

    except Exception as e:
        if isinstance(e, ConfigurationError):
            raise
        raise ConfigurationError(f"Error loading configuration from {path}: {e}")


def load_config_from_dict(config_data: Dict[str, Any]) -> Config:
    """
    Load configuration from dictionary.

    Args:
        config_data: Configuration dictionary

    Returns:
        Validated configuration object

    Raises:
        ConfigurationError: If configuration is invalid
    """
    try:
        return Config(**config_data)
    except ValidationError as e:
        error_details = []
        for error in e.errors():
            location = " -> ".join(str(x) for x in error['loc'])
            error_details.append(f"{location}: {error['msg']}")

        raise ConfigurationError(
            "Configuration validation failed:\n" + "\n".join(error_details)
        )


def save_config(config: Config, output_path: PathLike, format_type: Optional[str] = None) -> None:
    """
    Save configuration to file.

    Args:
        config: Configuration object to save
        output_path: Output file path
        format_type: Format to save in ('json' or 'yaml'). Auto-detected if None.

    Raises:
        ConfigurationError: If configuration cannot be saved
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if format_type is None:
        format_type = path.suffix.lower().lstrip('.')

    if format_type not in ('json', 'yaml', 'yml'):
        raise ConfigurationError(f"Unsupported format: {format_type}")

    try:
        config_dict = config.model_dump(mode="json")

        if format_type == 'json':
            _save_json(config_dict, path)
        else:
            _save_yaml(config_dict, path)

    except OSError as e:
        raise ConfigurationError(f"Error saving configuration to {path}: {e}")


def get_default_config() -> Config:
    """
    Get default configuration object.

    Returns:
        Default configuration with all default values
    """
    return Config()


def validate_config_file(config_path: PathLike) -> bool:
    """
    Validate configuration file.

    Args:
        config_path: Path to configuration file

    Returns:
        True if configuration is valid

    Raises:
        ConfigurationError: If configuration is invalid
    """
    load_config(config_path)
    return True


def _load_json(path: Path) -> Dict[str, Any]:
    """Load JSON configuration file."""
    try:
        with path.open('r', encoding='utf-8') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {path}: {e}")


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML configuration file."""
    try:
        with path.open('r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}")


def _load_toml(path: Path) -> Dict[str, Any]:
    """Load TOML configuration file."""
    try:
        with path.open('rb') as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}")


def _load_auto_detect(path: Path) -> Dict[str, Any]:
    """Auto-detect configuration file format."""
    content = path.read_text(encoding='utf-8').strip()

    if content.startswith('{'):
        try:
            return json.loads(content)
        except json.JSONDecodeError:
            pass

    try:
        data = yaml.safe_load(content)
        if isinstance(data, dict):
            return data
    except yaml.YAMLError:
        pass

    try:
        return tomllib.loads(content)
    except tomllib.TOMLDecodeError:
        pass

    raise ConfigurationError(f"Unable to detect format for {path}")


def _save_json(config_dict: Dict[str, Any], path: Path) -> None:
    """Save configuration as JSON."""
    with path.open('w', encoding='utf-8') as f:
        json.dump(config_dict, f, indent=2, ensure_ascii=False)


def _save_yaml(config_dict: Dict[str, Any], path: Path) -> None:
    """Save configuration as YAML."""
    with path.open('w', encoding='utf-8') as f:
        yaml.dump(config_dict, f, default_flow_style=False, allow_unicode=True, indent=2,
                  sort_keys=False)


def _substitute_env_vars(data: Any, prefix: str = "SHEET_") -> Any:
    """
    Recursively substitute environment variables in configuration data.

    Looks for strings in format ${ENV_VAR} or ${ENV_VAR:default_value}
    and replaces them with environment variable values.

    Args:
        data: Configuration data (dict, list, or primitive)
        prefix: Prefix tried first when looking up a variable

    Returns:
        Data with environment variables substituted
    """
    if isinstance(data, dict):
        return {key: _substitute_env_vars(value, prefix) for key, value in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars(item, prefix) for item in data]
    elif isinstance(data, str):
        return _substitute_env_var_string(data, prefix)
    else:
        return data


def _substitute_env_var_string(text: str, prefix: str) -> str:
    """
    Substitute environment variables in a string.

    Supports formats:
    - ${VAR} - substitute with environment variable VAR
    - ${VAR:default} - substitute with VAR or use default if not set
    - ${SHEET_VAR} - with prefix
    """
    def replace_env_var(match):
        var_expr = match.group(1)

        if ':' in var_expr:
            var_name, default_value = var_expr.split(':', 1)
        else:
            var_name, default_value = var_expr, None

        for name in [f"{prefix}{var_name}", var_name]:
            if name in os.environ:
                return os.environ[name]

        if default_value is not None:
            return default_value
        return match.group(0)

    return re.sub(r'\$\{([^}]+)\}', replace_env_var, text)
