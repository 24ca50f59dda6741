"""
Validation utilities for the Composition Coach

This module provides validation functions for uploaded images, their
decoded dimensions and user-supplied analysis options.
"""

import os
import re
from typing import Dict, Any, List, Optional, Tuple
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

# Supported image formats
SUPPORTED_IMAGE_FORMATS = {
    '.jpg', '.jpeg', '.png', '.tiff', '.tif', '.bmp', '.webp'
}

# Maximum file size (in bytes) - 50MB
MAX_FILE_SIZE = 50 * 1024 * 1024

# Options accepted from API/CLI callers
ANALYSIS_OPTION_KEYS = {
    'working_width', 'max_suggestions', 'min_score', 'top_n', 'seed'
}


def validate_image_format(filename: Optional[str]) -> bool:
    """
    Validate if the image format is supported.

    Args:
        filename: Name of the image file

    Returns:
        bool: True if format is supported, False otherwise
    """
    if not filename:
        return False

    file_extension = Path(filename).suffix.lower()
    return file_extension in SUPPORTED_IMAGE_FORMATS


def validate_file_size(file_size: int) -> bool:
    """
    Validate if the file size is within acceptable limits.

    Args:
        file_size: Size of the file in bytes

    Returns:
        bool: True if size is acceptable, False otherwise
    """
    return 0 < file_size <= MAX_FILE_SIZE


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_analysis_config(config: Dict[str, Any]) -> Tuple[bool, List[str]]:
    """
    Validate analysis options.

    Args:
        config: Options dictionary

    Returns:
        tuple: (is_valid, list_of_errors)
    """
    if not isinstance(config, dict):
        return False, ["Configuration must be a dictionary"]

    errors = []

    unknown = set(config) - ANALYSIS_OPTION_KEYS
    for key in sorted(unknown):
        errors.append(f"Unknown option '{key}'. Valid options: {sorted(ANALYSIS_OPTION_KEYS)}")

    if 'working_width' in config:
        width = config['working_width']
        if not _is_int(width) or not (64 <= width <= 4096):
            errors.append("working_width must be an integer between 64 and 4096")

    if 'max_suggestions' in config:
        max_suggestions = config['max_suggestions']
        if not _is_int(max_suggestions) or not (1 <= max_suggestions <= 7):
            errors.append("max_suggestions must be an integer between 1 and 7")

    if 'min_score' in config:
        min_score = config['min_score']
        if not _is_number(min_score) or not (0 <= min_score <= 100):
            errors.append("min_score must be a number between 0 and 100")

    if 'top_n' in config:
        top_n = config['top_n']
        if not _is_int(top_n) or not (1 <= top_n <= 7):
            errors.append("top_n must be an integer between 1 and 7")

    if 'seed' in config:
        seed = config['seed']
        if seed is not None and (not _is_int(seed) or seed < 0):
            errors.append("seed must be a non-negative integer or null")

    return len(errors) == 0, errors


def build_analyzer_config(options: Dict[str, Any]) -> Dict[str, Any]:
    """
    Translate validated flat options into a ``CompositionAnalyzer`` config.

    Raises:
        ValidationError: If the options are invalid
    """
    is_valid, errors = validate_analysis_config(options)
    if not is_valid:
        raise ValidationError("Invalid analysis configuration", errors)

    config: Dict[str, Any] = {}

    if 'working_width' in options:
        config['preprocessing'] = {'working_width': options['working_width']}

    if 'max_suggestions' in options:
        config['suggestions'] = {'max_suggestions': options['max_suggestions']}

    scoring = {}
    if 'min_score' in options:
        scoring['min_score'] = options['min_score']
    if 'top_n' in options:
        scoring['max_items'] = options['top_n']
    if scoring:
        config['scoring'] = scoring

    if 'seed' in options:
        config['seed'] = options['seed']

    return config


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename to prevent security issues.

    Args:
        filename: Original filename

    Returns:
        str: Sanitized filename
    """
    # Remove any path components
    filename = os.path.basename(filename)

    filename = re.sub(r'[^\w\s.-]', '', filename)

    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[:250] + ext

    return filename


def validate_image_dimensions(width: int, height: int) -> Tuple[bool, List[str]]:
    """
    Validate decoded image dimensions.

    Args:
        width: Image width in pixels
        height: Image height in pixels

    Returns:
        tuple: (is_valid, list_of_errors)
    """
    errors = []

    # Smaller frames leave the Hough and spiral windows nothing to work with
    if width < 32 or height < 32:
        errors.append("Image dimensions too small (minimum 32x32 pixels)")

    if width > 20000 or height > 20000:
        errors.append("Image dimensions too large (maximum 20000x20000 pixels)")

    return len(errors) == 0, errors


class ValidationError(Exception):
    """Raised when user input fails validation; carries the list of problems."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []
