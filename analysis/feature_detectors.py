"""
Feature Detectors for Composition Analysis

This module implements the detectors that reduce low-level image features
to compositional evidence: a gradient-saliency subject point, a horizon
estimate from near-horizontal segments, and a vanishing point from the
remaining segments.
"""

import math
import numpy as np
from typing import List, Optional, Sequence, Tuple
import logging

from preprocessing.vision_primitives import VisionPrimitives, default_primitives
from .types import (
    HorizonEstimate,
    LeadingResult,
    LineSegment,
    SubjectEstimate,
    clamp01,
    round_half_up
)

logger = logging.getLogger(__name__)


def _segment_geometry(segment: Sequence[float]) -> Tuple[float, float]:
    """Length and |sin(angle)| of a segment."""

    x1, y1, x2, y2 = segment
    dx, dy = x2 - x1, y2 - y1
    length = math.hypot(dx, dy)
    return length, abs(math.sin(math.atan2(dy, dx)))


class SubjectDetector:
    """
    Subject estimation from gradient-magnitude saliency. No learned model.
    """

    def __init__(self, downsample: int = 8, primitives: Optional[VisionPrimitives] = None):
        """
        Initialize the subject detector.

        Args:
            downsample: Factor the magnitude map is area-reduced by before peak picking
            primitives: Vision primitives provider
        """
        self.downsample = downsample
        self.primitives = primitives or default_primitives

    def detect(self, gray: np.ndarray) -> SubjectEstimate:
        """
        Estimate the subject center of a small-space grayscale frame.

        Args:
            gray: Grayscale working frame

        Returns:
            SubjectEstimate in normalized space. Falls back to the frame
            center with zero confidence if anything goes wrong.
        """
        try:
            magnitude = self.primitives.gradient_magnitude(gray)

            rows, cols = gray.shape[:2]
            size = (max(1, round_half_up(cols / self.downsample)),
                    max(1, round_half_up(rows / self.downsample)))
            reduced = self.primitives.resize_area(magnitude, size)

            peak, (x, y) = self.primitives.max_location(reduced)
            grid_h, grid_w = reduced.shape[:2]

            # Center of the winning cell, not its corner
            cx = (x + 0.5) / grid_w
            cy = (y + 0.5) / grid_h

            # Peak-to-mean contrast squashed to 0..1
            mean = self.primitives.mean(reduced) or 1e-3
            ratio = max(0.0, peak / mean - 1.0)
            confidence = math.tanh(ratio / 4.0)

            return SubjectEstimate(center=(cx, cy), confidence=clamp01(confidence))

        except Exception as e:
            logger.warning(f"Subject estimation failed, using frame center: {str(e)}")
            return SubjectEstimate(center=(0.5, 0.5), confidence=0.0)


class HorizonDetector:
    """
    Horizon estimation from long near-horizontal line segments.
    """

    def __init__(self, max_abs_sine: float = 0.2, min_length: float = 40,
                 primitives: Optional[VisionPrimitives] = None):
        """
        Initialize the horizon detector.

        Args:
            max_abs_sine: Segments with |sin(angle)| below this count as horizontal
            min_length: Minimum segment length in pixels
            primitives: Vision primitives provider
        """
        self.max_abs_sine = max_abs_sine
        self.min_length = min_length
        self.primitives = primitives or default_primitives

    def detect(self, edges: np.ndarray,
               segments: Optional[Sequence[LineSegment]] = None) -> HorizonEstimate:
        """
        Estimate the horizon height.

        Args:
            edges: Binary edge map
            segments: Pre-detected segments; detected from ``edges`` when None

        Returns:
            HorizonEstimate, ``(0.5, 0)`` when no horizontal structure exists
        """
        rows, cols = edges.shape[:2]
        if segments is None:
            segments = self.primitives.detect_segments(edges)

        weighted_y = 0.0
        total_length = 0.0

        for segment in segments:
            length, abs_sine = _segment_geometry(segment)
            if length < self.min_length or abs_sine >= self.max_abs_sine:
                continue

            # Longer lines dominate the estimate
            weighted_y += (segment[1] + segment[3]) / 2.0 * length
            total_length += length

        if total_length <= 0:
            return HorizonEstimate(y=0.5, confidence=0.0)

        y = weighted_y / total_length
        confidence = clamp01(total_length / (cols * 2.0))

        return HorizonEstimate(y=y / rows, confidence=confidence)


class LeadingLinesDetector:
    """
    Vanishing point detector using a two-point RANSAC over line segments.
    """

    def __init__(self, iterations: int = 200, inlier_tolerance: float = 6.0,
                 min_length: float = 30, min_abs_sine: float = 0.2,
                 max_kept: int = 100, rng: Optional[np.random.Generator] = None,
                 primitives: Optional[VisionPrimitives] = None):
        """
        Initialize the leading lines detector.

        Args:
            iterations: Number of random line pairs tried
            inlier_tolerance: Max point-to-line distance (pixels) for an inlier
            min_length: Minimum segment length in pixels
            min_abs_sine: Segments flatter than this are left to the horizon detector
            max_kept: Number of longest segments retained for display
            rng: Random generator; pass a seeded one for reproducible results
            primitives: Vision primitives provider
        """
        self.iterations = iterations
        self.inlier_tolerance = inlier_tolerance
        self.min_length = min_length
        self.min_abs_sine = min_abs_sine
        self.max_kept = max_kept
        self.rng = rng if rng is not None else np.random.default_rng()
        self.primitives = primitives or default_primitives

    def detect(self, edges: np.ndarray,
               segments: Optional[Sequence[LineSegment]] = None,
               rng: Optional[np.random.Generator] = None) -> LeadingResult:
        """
        Detect leading lines and their vanishing point.

        Args:
            edges: Binary edge map
            segments: Pre-detected segments; detected from ``edges`` when None
            rng: Overrides the detector's generator for this call

        Returns:
            LeadingResult in small-pixel space
        """
        if segments is None:
            segments = self.primitives.detect_segments(edges)

        return self.analyze_segments(segments, rng=rng)

    def analyze_segments(self, segments: Sequence[LineSegment],
                         rng: Optional[np.random.Generator] = None) -> LeadingResult:
        """Run the vanishing point search over already-detected segments."""

        candidates, lines = self._candidate_lines(segments)

        if len(lines) < 2:
            return LeadingResult(convergence=0.0, vanishing_point=None, kept_segments=())

        best_inliers, best_vp = self._find_vanishing_point(np.array(lines), rng or self.rng)

        # Keep longest segments for display
        kept = sorted(candidates, key=lambda seg: _segment_geometry(seg)[0], reverse=True)
        kept = tuple(kept[:self.max_kept])

        if best_vp is None:
            logger.debug("All sampled line pairs were near-parallel")
            return LeadingResult(convergence=0.0, vanishing_point=None, kept_segments=kept)

        convergence = clamp01(best_inliers / len(lines))
        logger.debug(f"Vanishing point {best_vp} with {best_inliers}/{len(lines)} inliers")

        return LeadingResult(convergence=convergence, vanishing_point=best_vp, kept_segments=kept)

    def _candidate_lines(self, segments: Sequence[LineSegment]) -> Tuple[List[LineSegment], List[Tuple[float, float, float]]]:
        """
        Filter segments and convert them to unit-normal implicit lines.

        ``a*x + b*y + c`` is then the signed pixel distance to the line.
        """
        candidates = []
        lines = []

        for segment in segments:
            x1, y1, x2, y2 = (int(v) for v in segment)
            length, abs_sine = _segment_geometry((x1, y1, x2, y2))

            if length < self.min_length or abs_sine < self.min_abs_sine:
                continue

            a = float(y1 - y2)
            b = float(x2 - x1)
            c = float(x1 * y2 - x2 * y1)
            norm = math.hypot(a, b)
            if norm < 1e-6:
                continue

            candidates.append((x1, y1, x2, y2))
            lines.append((a / norm, b / norm, c / norm))

        return candidates, lines

    def _find_vanishing_point(self, lines: np.ndarray,
                              rng: np.random.Generator) -> Tuple[int, Optional[Tuple[float, float]]]:
        """Two-point RANSAC: intersect random pairs, keep the most supported point."""

        n = len(lines)
        best_inliers = -1
        best_vp = None

        for _ in range(self.iterations):
            i = int(rng.integers(n))
            j = int(rng.integers(n))
            if i == j:
                continue

            a1, b1, c1 = lines[i]
            a2, b2, c2 = lines[j]
            det = a1 * b2 - a2 * b1
            if abs(det) < 1e-6:
                continue

            vx = (b2 * -c1 - b1 * -c2) / det
            vy = (a1 * -c2 - a2 * -c1) / det

            distances = np.abs(lines[:, 0] * vx + lines[:, 1] * vy + lines[:, 2])
            inliers = int(np.count_nonzero(distances <= self.inlier_tolerance))

            if inliers > best_inliers:
                best_inliers = inliers
                best_vp = (float(vx), float(vy))

        return best_inliers, best_vp
