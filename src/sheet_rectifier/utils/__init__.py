"""Sheet rectifier utility modules."""

from .console import (
    print_success, print_error, print_warning, print_info,
    print_header, safe_print,
    get_symbol, ConsoleSymbols, can_display_unicode,
)
from .file_utils import ensure_directory_exists, create_output_path, is_derived_output
from .logging_utils import setup_logging, log_processing_stats

__all__ = [
    'print_success', 'print_error', 'print_warning', 'print_info',
    'print_header', 'safe_print',
    'get_symbol', 'ConsoleSymbols', 'can_display_unicode',
    'ensure_directory_exists', 'create_output_path', 'is_derived_output',
    'setup_logging', 'log_processing_stats',
]
