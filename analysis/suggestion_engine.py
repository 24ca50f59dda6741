#!/usr/bin/env python3
"""
Suggestion Engine for Composition Improvement

This module converts raw analyzer outputs into a short, prioritized list of
camera adjustments (pan, rotate) with human-readable messages.

"""

import math
from typing import Dict, List, Optional, Any
import logging

from .types import (
    AnalysisBundle,
    CoachRule,
    DiagonalDirection,
    PanNudge,
    RotateNudge,
    SpiralOrientation,
    Suggestion,
    clamp01
)

logger = logging.getLogger(__name__)

THIRDS_POINTS = [(1 / 3, 1 / 3), (2 / 3, 1 / 3), (1 / 3, 2 / 3), (2 / 3, 2 / 3)]


def phrase_pan(dx: float, dy: float, base: str, threshold: float = 0.02) -> str:
    """
    Prefix ``base`` with the camera moves for a desired subject shift.

    A subject that should move right (dx > 0) means panning the camera left.
    """

    parts = []
    if abs(dx) > threshold:
        parts.append("pan left" if dx > 0 else "pan right")
    if abs(dy) > threshold:
        parts.append("tilt up" if dy > 0 else "tilt down")

    if not parts:
        return base

    moves = " and ".join(parts)
    return f"{moves[0].upper()}{moves[1:]} – {base}"


class SuggestionEngine:
    """
    Main suggestion generation engine.

    Analyzes composition evaluation results and generates actionable
    reframing suggestions, at most one per rule, ranked by priority
    (estimated gain per unit of effort).
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize suggestion engine.

        Args:
            config: Configuration dictionary for suggestion parameters
        """
        self.config = {**self._get_default_config(), **(config or {})}

        logger.info("SuggestionEngine initialized")

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration for suggestion engine."""
        return {
            'max_suggestions': 3,
            'max_pan': 0.25,
            'confidence_threshold': 0.3,
            'thirds_tolerance': 0.01,
            'horizon_tolerance': 0.015,
            'symmetry_tolerance': 0.015,
            'symmetry_min_score': 0.4,
            'diagonal_max_score': 0.85,
            'diagonal_rotation': 3.0,
            'spiral_eye_distance': 0.03,
            'spiral_min_score': 0.75,
            'spiral_rotation': 2.0,
            'leading_tilt': 0.04
        }

    def suggest(self, bundle: Optional[AnalysisBundle]) -> List[Suggestion]:
        """
        Generate reframing suggestions for one analysis pass.

        Args:
            bundle: Analysis result, or None when nothing has been analyzed yet

        Returns:
            Up to ``max_suggestions`` suggestions, highest priority first
        """
        if bundle is None:
            return []

        generators = [
            self._thirds_suggestion,
            self._horizon_suggestion,
            self._diagonal_suggestion,
            self._symmetry_suggestion,
            self._spiral_suggestion,
            self._leading_suggestion
        ]

        suggestions = []
        for generator in generators:
            suggestion = generator(bundle)
            if suggestion is not None:
                suggestions.append(suggestion)

        # Stable sort keeps generation order among equal priorities
        suggestions.sort(key=lambda s: s.priority, reverse=True)

        logger.debug(f"Generated {len(suggestions)} candidate suggestions")

        return suggestions[:self.config['max_suggestions']]

    def _cap(self, value: float) -> float:
        """Clamp a pan component to the configured maximum."""
        limit = self.config['max_pan']
        return max(-limit, min(limit, value))

    def _thirds_suggestion(self, bundle: AnalysisBundle) -> Optional[Suggestion]:
        """Move the subject toward the nearest thirds intersection."""

        if bundle.subject.confidence <= self.config['confidence_threshold']:
            return None

        sx, sy = bundle.subject.center
        target = min(THIRDS_POINTS, key=lambda p: math.hypot(sx - p[0], sy - p[1]))
        distance = math.hypot(sx - target[0], sy - target[1])

        dx = target[0] - sx
        dy = target[1] - sy
        tolerance = self.config['thirds_tolerance']
        if abs(dx) <= tolerance and abs(dy) <= tolerance:
            return None

        # Camera pan is opposite to the subject move; go halfway
        pan = PanNudge(dx=self._cap(-0.5 * dx), dy=self._cap(-0.5 * dy))

        return Suggestion(
            rule=CoachRule.THIRDS,
            message=phrase_pan(dx, dy, "Place the subject on the nearest third"),
            nudges=(pan,),
            estimated_gain=(1 - math.exp(-(distance * distance) / 0.04)) * 100,
            effort=math.hypot(dx, dy) * 100
        )

    def _horizon_suggestion(self, bundle: AnalysisBundle) -> Optional[Suggestion]:
        """Bring a detected horizon to the nearer third line."""

        if bundle.horizon.confidence <= self.config['confidence_threshold']:
            return None

        y = bundle.horizon.y
        upper = abs(y - 1 / 3) < abs(y - 2 / 3)
        dy = (1 / 3 if upper else 2 / 3) - y

        if abs(dy) <= self.config['horizon_tolerance']:
            return None

        direction = "Tilt up" if dy < 0 else "Tilt down"
        third = "upper" if upper else "lower"

        return Suggestion(
            rule=CoachRule.HORIZON,
            message=f"{direction} to bring the horizon to the {third} third",
            nudges=(PanNudge(dx=0.0, dy=self._cap(-0.6 * dy)),),
            estimated_gain=min(100.0, abs(dy) * 220),
            effort=abs(dy) * 100
        )

    def _diagonal_suggestion(self, bundle: AnalysisBundle) -> Optional[Suggestion]:
        """Small rotation toward the stronger diagonal."""

        score = bundle.diagonal.score

        # No edges on either diagonal means nothing to align
        if score <= 0 or score >= self.config['diagonal_max_score']:
            return None

        magnitude = self.config['diagonal_rotation']
        degrees = -magnitude if bundle.diagonal.best == DiagonalDirection.TLBR else magnitude
        direction = "clockwise" if degrees > 0 else "counter-clockwise"

        return Suggestion(
            rule=CoachRule.DIAGONAL,
            message=f"Rotate {direction} ~{magnitude:g}° to align edges with the diagonals",
            nudges=(RotateNudge(degrees=degrees),),
            estimated_gain=20 + 50 * (1 - score),
            effort=abs(degrees)
        )

    def _symmetry_suggestion(self, bundle: AnalysisBundle) -> Optional[Suggestion]:
        """Center an off-axis symmetric scene."""

        if bundle.symmetry.score <= self.config['symmetry_min_score']:
            return None

        dx = 0.5 - bundle.symmetry.axis_x
        if abs(dx) <= self.config['symmetry_tolerance']:
            return None

        return Suggestion(
            rule=CoachRule.SYMMETRY,
            message=f"Slide {'right' if dx > 0 else 'left'} to center the symmetry",
            nudges=(PanNudge(dx=self._cap(0.6 * dx), dy=0.0),),
            estimated_gain=min(100.0, abs(dx) * 200),
            effort=abs(dx) * 100
        )

    def _spiral_suggestion(self, bundle: AnalysisBundle) -> Optional[Suggestion]:
        """Move the subject toward the spiral eye and rotate slightly."""

        spiral = bundle.spiral
        if spiral.eye is None:
            return None

        sx, sy = bundle.subject.center
        ex, ey = spiral.eye
        dx = ex - sx
        dy = ey - sy

        if math.hypot(dx, dy) <= self.config['spiral_eye_distance'] and \
                spiral.score >= self.config['spiral_min_score']:
            return None

        pan = PanNudge(dx=self._cap(-0.5 * dx), dy=self._cap(-0.5 * dy))

        magnitude = self.config['spiral_rotation']
        if spiral.orientation in (SpiralOrientation.IDENTITY, SpiralOrientation.MIRROR_Y):
            degrees = -magnitude
        else:
            degrees = magnitude

        return Suggestion(
            rule=CoachRule.SPIRAL,
            message=f"Nudge framing toward the spiral eye and rotate ~{magnitude:g}°",
            nudges=(pan, RotateNudge(degrees=degrees)),
            estimated_gain=30 + 50 * clamp01(1 - spiral.score),
            effort=math.hypot(pan.dx, pan.dy) * 100 + abs(degrees)
        )

    def _leading_suggestion(self, bundle: AnalysisBundle) -> Optional[Suggestion]:
        """
        Fixed small tilt bringing the vanishing point up.

        The tilt does not depend on where the vanishing point actually is.
        """

        if bundle.leading.vanishing_point is None:
            return None

        tilt = self.config['leading_tilt']

        return Suggestion(
            rule=CoachRule.LEADING,
            message="Tilt down a little to bring the vanishing point toward the upper third",
            nudges=(PanNudge(dx=0.0, dy=-tilt),),
            estimated_gain=25.0 if bundle.leading.convergence < 0.8 else 12.0,
            effort=tilt * 100
        )
