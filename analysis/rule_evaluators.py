#!/usr/bin/env python3
"""
Rule Evaluators for Compositional Analysis

This module contains specialized evaluators for each geometric rule:
rule of thirds, golden ratio (phi) grid, golden spiral, vertical symmetry
and the diagonal method.

"""

import math
import numpy as np
from typing import Dict, List, Tuple, Optional, Any
import logging
from abc import ABC, abstractmethod

from preprocessing.vision_primitives import VisionPrimitives, default_primitives
from .types import (
    DiagonalDirection,
    DiagonalResult,
    GridScoreResult,
    NormalizedPoint,
    SpiralOrientation,
    SpiralResult,
    SymmetryResult,
    clamp01,
    round_half_up
)

logger = logging.getLogger(__name__)

GOLDEN_RATIO = (1 + math.sqrt(5)) / 2


class BaseRuleEvaluator(ABC):
    """
    Abstract base class for all rule evaluators.

    Evaluators only hold configuration; every call to ``evaluate`` is
    independent of previous calls.

    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize the rule evaluator with configuration"""

        self.config = {**self._get_default_config(), **(config or {})}

    def _get_default_config(self) -> Dict[str, Any]:
        return {}

    @abstractmethod

    def evaluate(self, *args, **kwargs):
        """
        Evaluate the compositional rule.

        Returns:
            Result dataclass with scores clamped to [0, 1]

        """

        pass

    @staticmethod
    def _gaussian_score(distance: float, softness: float) -> float:
        """Gaussian falloff: 1 at distance 0, collapsing quickly beyond ``softness``."""

        return math.exp(-(distance * distance) / (softness * softness))


class GridEvaluator(BaseRuleEvaluator):
    """
    Scores subject placement on grid intersections and horizon placement
    on the grid's horizontal lines.

    Subclasses only provide the division positions.

    """

    divisions: Tuple[float, float] = (1 / 3, 2 / 3)

    def _get_default_config(self) -> Dict[str, Any]:
        return {
            'subject_softness': 0.12,
            'horizon_softness': 0.07,
            'subject_weight': 0.6
        }

    @property
    def target_points(self) -> List[NormalizedPoint]:
        low, high = self.divisions
        return [(low, low), (high, low), (low, high), (high, high)]

    @property
    def horizon_lines(self) -> List[float]:
        return list(self.divisions)

    def nearest_target(self, point: NormalizedPoint) -> Tuple[NormalizedPoint, float]:
        """Nearest target point and its Euclidean distance (normalized space)."""

        best = self.target_points[0]
        best_distance = float('inf')

        for target in self.target_points:
            distance = math.hypot(point[0] - target[0], point[1] - target[1])
            if distance < best_distance:
                best_distance = distance
                best = target

        return best, best_distance

    def evaluate(self, subject: Optional[NormalizedPoint],
                 horizon_y: Optional[float]) -> GridScoreResult:
        """
        Evaluate grid alignment.

        Args:
            subject: Subject center, or None when no reliable subject exists
            horizon_y: Horizon height, or None when no horizon was found

        Returns:
            GridScoreResult
        """

        subject_score = 0.0
        best_target = None

        if subject is not None:
            best_target, distance = self.nearest_target(subject)
            subject_score = self._gaussian_score(distance, self.config['subject_softness'])

        horizon_score = 0.0

        if horizon_y is not None:
            distance = min(abs(horizon_y - line) for line in self.horizon_lines)
            horizon_score = self._gaussian_score(distance, self.config['horizon_softness'])

        weight = self.config['subject_weight']

        if subject is not None and horizon_y is not None:
            overall = weight * subject_score + (1 - weight) * horizon_score

        elif subject is not None:
            overall = subject_score

        else:
            overall = horizon_score

        return GridScoreResult(
            subject_score=clamp01(subject_score),
            horizon_score=clamp01(horizon_score),
            overall=clamp01(overall),
            best_target=best_target
        )


class RuleOfThirdsEvaluator(GridEvaluator):
    """Rule of thirds: intersections at 1/3 and 2/3 of each axis."""

    divisions = (1 / 3, 2 / 3)


class PhiGridEvaluator(GridEvaluator):
    """Golden ratio grid: divisions at 1 - 1/phi (~0.382) and 1/phi (~0.618)."""

    divisions = (1 - 1 / GOLDEN_RATIO, 1 / GOLDEN_RATIO)


class SpiralEvaluator(BaseRuleEvaluator):
    """
    Evaluates edge support along a logarithmic (golden) spiral.

    The spiral is tried in four mirror orientations; the best one wins.
    When a subject is known, the fit is weighted by how close the subject
    sits to the spiral's eye.

    """

    def _get_default_config(self) -> Dict[str, Any]:
        return {
            'start_radius': 0.12,
            'growth_rate': 2.0,
            'turns': 1.1,
            'samples': 160,
            'window_fraction': 0.01,
            'eye_softness': 0.18
        }

    def build_spiral(self, orientation: SpiralOrientation) -> Tuple[np.ndarray, NormalizedPoint]:
        """
        Sample the spiral curve in normalized space.

        Returns:
            Tuple of (points array (K, 2), eye point)
        """

        t = np.linspace(0.0, 1.0, self.config['samples'])
        turns = self.config['turns']

        radius = self.config['start_radius'] * np.exp(self.config['growth_rate'] * t * turns)
        angle = 2 * np.pi * t * turns

        x = 0.5 + radius * np.cos(angle)
        y = 0.5 + radius * np.sin(angle)

        if orientation in (SpiralOrientation.MIRROR_X, SpiralOrientation.MIRROR_XY):
            x = 1 - x

        if orientation in (SpiralOrientation.MIRROR_Y, SpiralOrientation.MIRROR_XY):
            y = 1 - y

        points = np.clip(np.stack([x, y], axis=1), 0.0, 1.0)

        # The tightest point of the curve
        eye = (float(points[0, 0]), float(points[0, 1]))

        return points, eye

    def evaluate(self, edges: np.ndarray,
                 subject: Optional[NormalizedPoint] = None) -> SpiralResult:
        """
        Evaluate golden spiral fit.

        Args:
            edges: Binary edge map
            subject: Subject center, or None when no reliable subject exists

        Returns:
            SpiralResult for the best orientation
        """

        h, w = edges.shape[:2]
        radius = max(1, round_half_up(min(w, h) * self.config['window_fraction']))
        integral = self._integral_image(edges)

        best = SpiralResult(score=0.0, orientation=SpiralOrientation.IDENTITY, eye=None)

        for orientation in SpiralOrientation:
            points, eye = self.build_spiral(orientation)
            score = self._curve_density(integral, points, radius, w, h)

            if subject is not None:
                distance = math.hypot(subject[0] - eye[0], subject[1] - eye[1])
                score *= self._gaussian_score(distance, self.config['eye_softness'])

            if score > best.score:
                best = SpiralResult(score=clamp01(score), orientation=orientation, eye=eye)

        return best

    @staticmethod
    def _integral_image(edges: np.ndarray) -> np.ndarray:
        """Summed-area table of the binary edge mask, padded with a zero row/column."""

        binary = (edges > 0).astype(np.int64)
        integral = np.zeros((binary.shape[0] + 1, binary.shape[1] + 1), dtype=np.int64)
        integral[1:, 1:] = binary.cumsum(axis=0).cumsum(axis=1)
        return integral

    @staticmethod
    def _curve_density(integral: np.ndarray, points: np.ndarray,
                       radius: int, w: int, h: int) -> float:
        """Mean edge density of square windows centred on the curve samples."""

        xs = np.floor(points[:, 0] * (w - 1) + 0.5).astype(int)
        ys = np.floor(points[:, 1] * (h - 1) + 0.5).astype(int)

        x0 = np.clip(xs - radius, 0, w - 1)
        x1 = np.clip(xs + radius, 0, w - 1) + 1
        y0 = np.clip(ys - radius, 0, h - 1)
        y1 = np.clip(ys + radius, 0, h - 1) + 1

        sums = integral[y1, x1] - integral[y0, x1] - integral[y1, x0] + integral[y0, x0]
        areas = (x1 - x0) * (y1 - y0)

        return float(np.mean(sums / areas))


class SymmetryEvaluator(BaseRuleEvaluator):
    """
    Evaluates left-right mirror symmetry of the edge map.

    Compares the edge map with its horizontal flip, re-centred on a few
    candidate axes near the frame center, using Intersection-over-Union.

    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 primitives: Optional[VisionPrimitives] = None):
        super().__init__(config)
        self.primitives = primitives or default_primitives

    def _get_default_config(self) -> Dict[str, Any]:
        return {
            'target_size': 320,
            'axis_offsets': (-0.05, -0.025, 0.0, 0.025, 0.05)
        }

    def evaluate(self, edges: np.ndarray) -> SymmetryResult:
        """
        Evaluate vertical symmetry.

        Args:
            edges: Binary edge map

        Returns:
            SymmetryResult with the best IoU and its axis
        """

        h, w = edges.shape[:2]

        # Downscale a bit for speed
        down = max(1, round_half_up(min(w, h) / self.config['target_size']))
        small = edges
        if down > 1:
            small = self.primitives.resize_area(edges, (max(1, w // down), max(1, h // down)))

        flipped = self.primitives.flip_horizontal(small)
        cols = small.shape[1]
        center_axis = cols // 2

        best = SymmetryResult(score=0.0, axis_x=0.5)

        for offset in self.config['axis_offsets']:
            axis_norm = 0.5 + offset
            shift = round_half_up(axis_norm * cols) - center_axis

            # Wrap columns so content near the border is still compared
            rolled = np.roll(flipped, shift, axis=1)

            score = self._iou(small, rolled)

            if score > best.score:
                best = SymmetryResult(score=score, axis_x=axis_norm)

        return best

    def _iou(self, mask_a: np.ndarray, mask_b: np.ndarray) -> float:
        """Intersection-over-Union of two binary masks, 0 for an empty union."""

        union = self.primitives.count_nonzero(self.primitives.bitwise_or(mask_a, mask_b))
        if union == 0:
            return 0.0

        intersection = self.primitives.count_nonzero(self.primitives.bitwise_and(mask_a, mask_b))
        return clamp01(intersection / union)


class DiagonalEvaluator(BaseRuleEvaluator):
    """
    Evaluates the diagonal method: edge density in a thin band around each
    frame diagonal.

    """

    def _get_default_config(self) -> Dict[str, Any]:
        return {
            'band_fraction': 0.01,
            'stride_divisor': 512
        }

    def evaluate(self, edges: np.ndarray) -> DiagonalResult:
        """
        Evaluate diagonal alignment.

        Args:
            edges: Binary edge map

        Returns:
            DiagonalResult for the denser diagonal (ties go to TLBR)
        """

        tlbr = self._band_density(edges, DiagonalDirection.TLBR)
        trbl = self._band_density(edges, DiagonalDirection.TRBL)

        best = DiagonalDirection.TLBR if tlbr >= trbl else DiagonalDirection.TRBL

        return DiagonalResult(score=clamp01(max(tlbr, trbl)), best=best)

    def _band_density(self, edges: np.ndarray, direction: DiagonalDirection) -> float:
        """Fraction of sampled in-band pixels that are edges."""

        h, w = edges.shape[:2]
        band = max(1, round_half_up(min(w, h) * self.config['band_fraction']))
        step = max(1, min(w, h) // self.config['stride_divisor'])

        ys, xs = np.mgrid[0:h:step, 0:w:step]
        slope = h / w

        if direction == DiagonalDirection.TLBR:
            y_diag = slope * xs
        else:
            y_diag = h - slope * xs

        in_band = np.abs(ys - y_diag) <= band
        count = int(np.count_nonzero(in_band))
        if count == 0:
            return 0.0

        hits = np.count_nonzero(edges[ys[in_band], xs[in_band]] > 0)
        return hits / count
