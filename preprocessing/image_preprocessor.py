"""
Image Preprocessing Module for Composition Analysis

Handles image acquisition, downscaling to the working resolution, edge
extraction and line segment detection. Everything produced here lives in
"small-pixel" space: ``small = original * scale``.
"""

import io
import cv2
import numpy as np
from PIL import Image
from dataclasses import dataclass
from typing import Tuple, Dict, Optional, Any
import logging

from .vision_primitives import VisionPrimitives, default_primitives

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameFeatures:
    """
    Low-level features of one working frame (small-pixel space).

    Callers that already hold a grayscale frame and its edge map can build
    this directly and skip extraction. ``segments`` may be left as None to
    have the line detectors run their own Hough pass.
    """
    gray: np.ndarray
    edges: np.ndarray
    segments: Optional[Tuple[Tuple[int, int, int, int], ...]] = None
    scale: float = 1.0

    @property
    def frame_size(self) -> Tuple[int, int]:
        """(width, height) of the working frame."""
        rows, cols = self.edges.shape[:2]
        return (int(cols), int(rows))


class ImagePreprocessor:
    """
    Feature extraction front end for composition analysis.

    Features:
    - File and in-memory image decoding
    - Downscaling with a capped working width (never upscales)
    - Blur + Canny edge extraction
    - Probabilistic Hough line segments shared by the line-based detectors
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 primitives: Optional[VisionPrimitives] = None):
        """
        Initialize the ImagePreprocessor.

        Args:
            config: Preprocessing parameters merged over the defaults
            primitives: Vision primitives provider
        """

        self.config = {**self._get_default_config(), **(config or {})}
        self.primitives = primitives or default_primitives

        logger.info(f"ImagePreprocessor initialized with working_width = {self.config['working_width']}")

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default preprocessing configuration."""

        return {
            'working_width': 640,
            'blur_kernel': 3,
            'canny_low': 80,
            'canny_high': 160,
            'canny_aperture': 3,
            'hough_rho': 1.0,
            'hough_theta': np.pi / 180,
            'hough_threshold': 60,
            'min_line_length': 40,
            'max_line_gap': 10
        }

    def load_image(self, image_path: str) -> np.ndarray:
        """
        Load image from file path.

        Args:
            image_path: Path to the image file

        Returns:
            Loaded image as numpy array in BGR format

        Raises:
            ValueError: If image cannot be loaded or is invalid
        """

        try:
            # Try OpenCV first for better performance

            image = cv2.imread(image_path)
            if image is None:
                # Fallback to PIL for additional format support

                pil_image = Image.open(image_path).convert('RGB')
                image = cv2.cvtColor(np.array(pil_image), cv2.COLOR_RGB2BGR)

            if image is None or image.size == 0:
                raise ValueError(f"Could not load image from {image_path}")

            logger.debug(f"Loaded image: {image_path}, shape: {image.shape}")

            return image

        except Exception as e:
            logger.error(f"Error loading image {image_path}: {str(e)}")
            raise ValueError(f"Failed to load image: {str(e)}")

    def decode_image(self, data: bytes) -> np.ndarray:
        """
        Decode an in-memory image (e.g. an upload) to BGR.

        Raises:
            ValueError: If the bytes are not a decodable image
        """

        try:
            pil_image = Image.open(io.BytesIO(data))

            if pil_image.mode not in ('RGB', 'L'):
                pil_image = pil_image.convert('RGB')

            image_array = np.array(pil_image)

            # Convert RGB to BGR for OpenCV
            if image_array.ndim == 3:
                image_array = cv2.cvtColor(image_array, cv2.COLOR_RGB2BGR)

            return image_array

        except Exception as e:
            logger.error(f"Image decoding failed: {str(e)}")
            raise ValueError(f"Failed to decode image: {str(e)}")

    def to_working_frame(self, image: np.ndarray) -> Tuple[np.ndarray, float]:
        """
        Convert to grayscale and downscale to the working width.

        Args:
            image: Decoded image (BGR, BGRA or grayscale)

        Returns:
            Tuple of (small grayscale frame, scale) where small = original * scale
        """

        if image is None or image.size == 0:
            raise ValueError("Empty image")

        gray = self.primitives.to_grayscale(image)
        h, w = gray.shape[:2]

        scale = min(1.0, self.config['working_width'] / w)
        size = (max(1, int(round(w * scale))), max(1, int(round(h * scale))))

        if size == (w, h):
            return gray, scale

        return self.primitives.resize_area(gray, size), scale

    def extract_edges(self, gray: np.ndarray) -> np.ndarray:
        """Blur then Canny. Returns a binary 0/255 edge map."""

        blurred = self.primitives.gaussian_blur(gray, self.config['blur_kernel'])

        return self.primitives.canny(blurred,
                                     self.config['canny_low'],
                                     self.config['canny_high'],
                                     self.config['canny_aperture'])

    def detect_segments(self, edges: np.ndarray) -> Tuple[Tuple[int, int, int, int], ...]:
        """Line segments over the edge map using the configured Hough parameters."""

        segments = self.primitives.detect_segments(
            edges,
            rho = self.config['hough_rho'],
            theta = self.config['hough_theta'],
            threshold = self.config['hough_threshold'],
            min_line_length = self.config['min_line_length'],
            max_line_gap = self.config['max_line_gap']
        )
        return tuple(segments)

    def extract_composition_features(self, image: np.ndarray) -> FrameFeatures:
        """
        Extract the low-level features of one frame.

        Args:
            image: Decoded input image

        Returns:
            FrameFeatures with grayscale frame, edges, segments and scale
        """

        gray, scale = self.to_working_frame(image)
        edges = self.extract_edges(gray)
        segments = self.detect_segments(edges)

        logger.debug(f"Extracted features: frame {gray.shape[1]}x{gray.shape[0]}, "
                     f"{len(segments)} segments, scale {scale:.3f}")

        return FrameFeatures(gray = gray, edges = edges, segments = segments, scale = scale)


def create_preprocessing_pipeline(config: Optional[Dict[str, Any]] = None,
                                  primitives: Optional[VisionPrimitives] = None) -> ImagePreprocessor:
    """
    Factory function to create a configured preprocessing pipeline.

    Args:
        config: Configuration dictionary with preprocessing parameters
        primitives: Optional vision primitives provider

    Returns:
        Configured ImagePreprocessor instance
    """

    return ImagePreprocessor(config = config, primitives = primitives)
