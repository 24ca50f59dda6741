#!/usr/bin/env python3
"""
Composition Scoring Algorithms

This module turns raw analyzer outputs into comparable 0-100 display scores,
each with a short deterministic explanation.

"""

from typing import Dict, List, Optional, Any
import logging

from .types import AnalysisBundle, RuleKey, RuleScore, clamp01, round_half_up

logger = logging.getLogger(__name__)

RULE_LABELS = {
    RuleKey.RULE_OF_THIRDS: "Rule of Thirds",
    RuleKey.PHI_GRID: "Golden Ratio (Φ grid)",
    RuleKey.GOLDEN_SPIRAL: "Golden Spiral",
    RuleKey.LEADING_LINES: "Leading Lines",
    RuleKey.DIAGONALS: "Diagonal Method",
    RuleKey.SYMMETRY: "Vertical Symmetry",
    RuleKey.HORIZON_ON_THIRDS: "Horizon on Thirds"
}


class CompositionScorer:
    """
    Main composition scoring engine.

    Provides a unified interface for converting analyzer results into
    display scores and picking the best matching rules.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize composition scorer.

        Args:
            config: Configuration dictionary for scoring parameters

        """

        self.config = {**self._get_default_config(), **(config or {})}

        logger.info("CompositionScorer initialized")

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default scoring configuration."""

        return {
            'subject_confidence_threshold': 0.3,
            'leading_convergence_weight': 0.9,
            'leading_symmetry_weight': 0.15,
            'min_score': 55,
            'max_items': 3
        }

    def compute_rule_scores(self, bundle: AnalysisBundle) -> List[RuleScore]:
        """
        Compute display scores for all seven rules.

        Args:
            bundle: Result of one analysis pass

        Returns:
            RuleScore list sorted by descending score, ties broken by key
        """

        subject_reliable = bundle.subject.confidence > self.config['subject_confidence_threshold']
        horizon_present = bundle.horizon.detected

        thirds_reason = self._grid_reason(bundle.thirds.subject_score, bundle.thirds.horizon_score,
                                          subject_reliable, horizon_present)
        phi_reason = self._grid_reason(bundle.phi.subject_score, bundle.phi.horizon_score,
                                       subject_reliable, horizon_present)

        spiral = bundle.spiral.score

        # Convergence plus a mild bonus for balanced (symmetric) lines
        convergence = bundle.leading.convergence
        symmetry_bonus = clamp01(bundle.symmetry.score) * self.config['leading_symmetry_weight']
        leading = clamp01(convergence * self.config['leading_convergence_weight'] + symmetry_bonus)

        leading_reason = f"convergence≈{convergence:.2f}"
        if symmetry_bonus > 0:
            leading_reason += f" (+sym≈{symmetry_bonus:.2f})"

        diagonal = bundle.diagonal.score
        symmetry = bundle.symmetry.score

        if horizon_present:
            horizon_thirds = clamp01(bundle.horizon.confidence) * clamp01(bundle.thirds.horizon_score)
            horizon_reason = (f"conf≈{bundle.horizon.confidence:.2f}, "
                              f"align≈{bundle.thirds.horizon_score:.2f}")
        else:
            horizon_thirds = 0.0
            horizon_reason = "no horizon"

        items = [
            self._make_score(RuleKey.RULE_OF_THIRDS, bundle.thirds.overall, thirds_reason),
            self._make_score(RuleKey.PHI_GRID, bundle.phi.overall, phi_reason),
            self._make_score(RuleKey.GOLDEN_SPIRAL, spiral, f"edge-fit≈{spiral:.2f}"),
            self._make_score(RuleKey.LEADING_LINES, leading, leading_reason),
            self._make_score(RuleKey.DIAGONALS, diagonal,
                             f"best={bundle.diagonal.best.value}, density≈{diagonal:.2f}"),
            self._make_score(RuleKey.SYMMETRY, symmetry, f"IoU≈{symmetry:.2f}"),
            self._make_score(RuleKey.HORIZON_ON_THIRDS, horizon_thirds, horizon_reason)
        ]

        # Tie-break by key so equal scores never reorder between passes
        items.sort(key=lambda item: (-item.score, item.key.value))

        logger.debug(f"Rule scores: {[(item.key.value, item.score) for item in items]}")

        return items

    def top_matches(self, items: List[RuleScore],
                    min_score: Optional[int] = None,
                    max_items: Optional[int] = None) -> List[RuleScore]:
        """
        Leading rules at or above a threshold.

        Args:
            items: Sorted output of ``compute_rule_scores``
            min_score: Inclusive threshold (default 55)
            max_items: Maximum number of results (default 3)

        Returns:
            Prefix of the filtered list
        """

        if min_score is None:
            min_score = self.config['min_score']
        if max_items is None:
            max_items = self.config['max_items']

        return [item for item in items if item.score >= min_score][:max_items]

    def _make_score(self, key: RuleKey, value: float, reason: str) -> RuleScore:
        return RuleScore(key=key,
                         score=round_half_up(clamp01(value) * 100),
                         label=RULE_LABELS[key],
                         reason=reason)

    @staticmethod
    def _grid_reason(subject_score: float, horizon_score: float,
                     subject_reliable: bool, horizon_present: bool) -> str:
        parts = []
        if subject_reliable:
            parts.append(f"subject≈{subject_score:.2f}")
        if horizon_present:
            parts.append(f"horizon≈{horizon_score:.2f}")

        return ", ".join(parts) if parts else "low subject/horizon confidence"
