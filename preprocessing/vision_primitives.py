"""
Vision Primitives for Composition Analysis

Thin OpenCV-backed provider of the low-level image operations the feature
detectors and rule evaluators rely on. Detectors receive an instance of
this class instead of calling cv2 directly, so tests can substitute
synthetic line sets or failing primitives.
"""

import cv2
import numpy as np
from typing import List, Tuple
import logging

logger = logging.getLogger(__name__)


class VisionPrimitives:
    """
    OpenCV implementation of the primitive operations.

    Coordinates are in the pixel space of whatever array is passed in.
    """

    def to_grayscale(self, image: np.ndarray) -> np.ndarray:
        """
        Convert a decoded image to single-channel grayscale.

        Args:
            image: Image in BGR, BGRA or grayscale layout

        Returns:
            uint8 grayscale image
        """

        if image.ndim == 2:
            return image

        channels = image.shape[2]
        if channels == 4:
            return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)

        elif channels == 3:
            return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)

        elif channels == 1:
            return image[:, :, 0]

        raise ValueError(f"Unsupported channel count: {channels}")

    def gaussian_blur(self, gray: np.ndarray, kernel_size: int = 3) -> np.ndarray:
        return cv2.GaussianBlur(gray, (kernel_size, kernel_size), 0)

    def canny(self, gray: np.ndarray, low: float, high: float,
              aperture_size: int = 3) -> np.ndarray:
        """Binary edge mask (0/255) from a blurred grayscale frame."""

        return cv2.Canny(gray, low, high, apertureSize = aperture_size, L2gradient = True)

    def detect_segments(self, edges: np.ndarray,
                        rho: float = 1.0,
                        theta: float = np.pi / 180,
                        threshold: int = 60,
                        min_line_length: float = 40,
                        max_line_gap: float = 10) -> List[Tuple[int, int, int, int]]:
        """
        Probabilistic Hough line segments over a binary edge mask.

        Returns:
            List of (x1, y1, x2, y2) segments, empty when nothing is found
        """

        lines = cv2.HoughLinesP(edges, rho, theta, threshold,
                                minLineLength = min_line_length,
                                maxLineGap = max_line_gap)

        if lines is None:
            return []

        # (N, 1, 4) in OpenCV 4, (N, 4) in OpenCV 5
        return [tuple(int(v) for v in segment[:4]) for segment in lines.reshape(-1, 4)]

    def resize_area(self, image: np.ndarray, size: Tuple[int, int]) -> np.ndarray:
        """Area-averaging resize. ``size`` is (width, height)."""

        return cv2.resize(image, size, interpolation = cv2.INTER_AREA)

    def flip_horizontal(self, image: np.ndarray) -> np.ndarray:
        return cv2.flip(image, 1)

    def gradient_magnitude(self, gray: np.ndarray) -> np.ndarray:
        """Sobel (3x3) gradient magnitude as float32."""

        grad_x = cv2.Sobel(gray, cv2.CV_32F, 1, 0, ksize = 3)
        grad_y = cv2.Sobel(gray, cv2.CV_32F, 0, 1, ksize = 3)

        return cv2.magnitude(grad_x, grad_y)

    def max_location(self, scalar_map: np.ndarray) -> Tuple[float, Tuple[int, int]]:
        """
        Global maximum of a scalar map.

        Returns:
            Tuple of (max_value, (x, y))
        """

        _, max_val, _, max_loc = cv2.minMaxLoc(scalar_map)
        return float(max_val), (int(max_loc[0]), int(max_loc[1]))

    def mean(self, scalar_map: np.ndarray) -> float:
        return float(cv2.mean(scalar_map)[0])

    def bitwise_and(self, mask_a: np.ndarray, mask_b: np.ndarray) -> np.ndarray:
        return cv2.bitwise_and(mask_a, mask_b)

    def bitwise_or(self, mask_a: np.ndarray, mask_b: np.ndarray) -> np.ndarray:
        return cv2.bitwise_or(mask_a, mask_b)

    def count_nonzero(self, mask: np.ndarray) -> int:
        return int(cv2.countNonZero(mask))


default_primitives = VisionPrimitives()
