"""
Preprocessing Module

Image decoding, working-frame downscaling, edge extraction and the
OpenCV-backed vision primitives used by the analysis package.
"""

from .vision_primitives import VisionPrimitives, default_primitives
from .image_preprocessor import FrameFeatures, ImagePreprocessor, create_preprocessing_pipeline

__all__ = [
    'VisionPrimitives',
    'default_primitives',
    'FrameFeatures',
    'ImagePreprocessor',
    'create_preprocessing_pipeline'
]
