"""
Utilities Module for the Composition Coach

Provides input validation helpers shared by the API and the command-line
demo.
"""

from .validation_api import (
    validate_image_format,
    validate_file_size,
    validate_analysis_config,
    validate_image_dimensions,
    build_analyzer_config,
    sanitize_filename,
    ValidationError,
    SUPPORTED_IMAGE_FORMATS,
    MAX_FILE_SIZE
)

__all__ = [
    'validate_image_format',
    'validate_file_size',
    'validate_analysis_config',
    'validate_image_dimensions',
    'build_analyzer_config',
    'sanitize_filename',
    'ValidationError',
    'SUPPORTED_IMAGE_FORMATS',
    'MAX_FILE_SIZE'
]
