"""
File handling utilities with pathlib and error handling.

Provides the path handling used by the batch runner.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..exceptions import DirectoryError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def ensure_directory_exists(directory_path: PathLike) -> Path:
    """
    Ensure directory exists, create if necessary.

    Args:
        directory_path: Path to directory

    Returns:
        Path object for the directory

    Raises:
        DirectoryError: If directory cannot be created
    """
    path = Path(directory_path)
    try:
        path.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Directory ensured: {path}")
        return path
    except OSError as e:
        raise DirectoryError(f"Failed to create directory {path}: {e}")


def create_output_path(
    input_path: PathLike,
    output_dir: Optional[PathLike] = None,
    suffix: str = "",
    extension: Optional[str] = None
) -> Path:
    """
    Create output path based on input path.

    Args:
        input_path: Input file path
        output_dir: Output directory (the input's directory if None)
        suffix: Suffix to add to filename
        extension: New extension (keeps original if None)

    Returns:
        Complete output path
    """
    input_path = Path(input_path)
    output_dir = Path(output_dir) if output_dir is not None else input_path.parent

    base_name = input_path.stem + suffix
    if extension is None:
        extension = input_path.suffix
    elif not extension.startswith('.'):
        extension = '.' + extension

    return output_dir / (base_name + extension)


def is_derived_output(path: PathLike, suffix: str) -> bool:
    """Whether ``path`` looks like an output this tool already wrote."""
    return bool(suffix) and Path(path).stem.endswith(suffix)
