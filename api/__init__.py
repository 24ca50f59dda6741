"""
API Module for the Composition Coach

This module exposes the FastAPI application serving composition analysis
and coaching endpoints.
"""

from .main import app

__version__ = "1.0.0"
__all__ = ["app"]
