"""
Unit tests for the reframing suggestion engine.
"""

import os
import sys
import math
import pytest

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analysis.suggestion_engine import SuggestionEngine, phrase_pan
from analysis.types import (
    AnalysisBundle,
    CoachRule,
    DiagonalDirection,
    DiagonalResult,
    GridScoreResult,
    HorizonEstimate,
    LeadingResult,
    PanNudge,
    RotateNudge,
    SpiralOrientation,
    SpiralResult,
    SubjectEstimate,
    SymmetryResult
)


def create_bundle(**overrides):
    """Create an analysis bundle with sentinel values, overriding some fields."""
    fields = dict(
        scale=1.0,
        frame_size=(640, 480),
        subject=SubjectEstimate(),
        horizon=HorizonEstimate(),
        thirds=GridScoreResult(),
        phi=GridScoreResult(),
        spiral=SpiralResult(),
        symmetry=SymmetryResult(),
        diagonal=DiagonalResult(),
        leading=LeadingResult()
    )
    fields.update(overrides)
    return AnalysisBundle(**fields)


def only(suggestions, rule):
    matching = [s for s in suggestions if s.rule == rule]
    assert len(matching) == 1
    return matching[0]


class TestPhrasePan:
    """Tests for pan phrasing."""

    def test_small_moves_keep_base(self):
        assert phrase_pan(0.01, -0.02, "Do it") == "Do it"

    def test_both_axes(self):
        assert phrase_pan(0.1, -0.1, "Do it") == "Pan left and tilt down – Do it"

    def test_single_axis(self):
        assert phrase_pan(-0.1, 0.0, "Do it") == "Pan right – Do it"
        assert phrase_pan(0.0, 0.05, "Do it") == "Tilt up – Do it"


class TestSuggestionEngine:
    """Tests for SuggestionEngine."""

    @pytest.fixture
    def engine(self):
        return SuggestionEngine()

    def test_no_analysis(self, engine):
        assert engine.suggest(None) == []

    def test_sentinel_bundle_has_no_suggestions(self, engine):
        assert engine.suggest(create_bundle()) == []

    def test_thirds_suggestion(self, engine):
        bundle = create_bundle(subject=SubjectEstimate(center=(0.45, 0.45), confidence=0.9))
        suggestion = only(engine.suggest(bundle), CoachRule.THIRDS)

        # Nearest point is (1/3, 1/3), so the subject moves left and up
        offset = 0.45 - 1 / 3
        assert suggestion.message == "Pan right and tilt down – Place the subject on the nearest third"
        pan, = suggestion.nudges
        assert isinstance(pan, PanNudge)
        assert pan.dx == pytest.approx(offset / 2)
        assert pan.dy == pytest.approx(offset / 2)

        distance = math.hypot(offset, offset)
        assert suggestion.estimated_gain == pytest.approx((1 - math.exp(-distance ** 2 / 0.04)) * 100)
        assert suggestion.effort == pytest.approx(distance * 100)
        assert suggestion.priority == pytest.approx(suggestion.estimated_gain / suggestion.effort)

    def test_subject_on_third_is_left_alone(self, engine):
        bundle = create_bundle(subject=SubjectEstimate(center=(2 / 3, 1 / 3), confidence=0.9))

        assert engine.suggest(bundle) == []

    def test_low_confidence_subject_is_ignored(self, engine):
        bundle = create_bundle(subject=SubjectEstimate(center=(0.5, 0.5), confidence=0.3))

        assert engine.suggest(bundle) == []

    def test_horizon_suggestion(self, engine):
        bundle = create_bundle(horizon=HorizonEstimate(y=0.45, confidence=0.9))
        suggestion = only(engine.suggest(bundle), CoachRule.HORIZON)

        dy = 1 / 3 - 0.45
        assert suggestion.message == "Tilt up to bring the horizon to the upper third"
        assert suggestion.nudges[0].dx == 0.0
        assert suggestion.nudges[0].dy == pytest.approx(-0.6 * dy)
        assert suggestion.estimated_gain == pytest.approx(abs(dy) * 220)
        assert suggestion.effort == pytest.approx(abs(dy) * 100)

    def test_horizon_near_third_is_left_alone(self, engine):
        bundle = create_bundle(horizon=HorizonEstimate(y=0.34, confidence=0.9))

        assert engine.suggest(bundle) == []

    def test_diagonal_suggestion(self, engine):
        bundle = create_bundle(diagonal=DiagonalResult(score=0.5, best=DiagonalDirection.TRBL))
        suggestion = only(engine.suggest(bundle), CoachRule.DIAGONAL)

        assert suggestion.message == "Rotate clockwise ~3° to align edges with the diagonals"
        assert suggestion.nudges == (RotateNudge(degrees=3.0),)
        assert suggestion.estimated_gain == pytest.approx(45.0)
        assert suggestion.effort == pytest.approx(3.0)
        assert suggestion.priority == pytest.approx(15.0)

    def test_diagonal_tlbr_rotates_counter_clockwise(self, engine):
        bundle = create_bundle(diagonal=DiagonalResult(score=0.2, best=DiagonalDirection.TLBR))
        suggestion = only(engine.suggest(bundle), CoachRule.DIAGONAL)

        assert suggestion.nudges == (RotateNudge(degrees=-3.0),)
        assert "counter-clockwise" in suggestion.message

    def test_strong_diagonal_is_left_alone(self, engine):
        bundle = create_bundle(diagonal=DiagonalResult(score=0.9))

        assert engine.suggest(bundle) == []

    def test_symmetry_suggestion(self, engine):
        bundle = create_bundle(symmetry=SymmetryResult(score=0.8, axis_x=0.45))
        suggestion = only(engine.suggest(bundle), CoachRule.SYMMETRY)

        assert suggestion.message == "Slide right to center the symmetry"
        assert suggestion.nudges[0].dx == pytest.approx(0.03)
        assert suggestion.estimated_gain == pytest.approx(10.0)
        assert suggestion.effort == pytest.approx(5.0)

    def test_weak_symmetry_is_left_alone(self, engine):
        bundle = create_bundle(symmetry=SymmetryResult(score=0.3, axis_x=0.45))

        assert engine.suggest(bundle) == []

    def test_spiral_suggestion(self, engine):
        bundle = create_bundle(spiral=SpiralResult(score=0.5, orientation=SpiralOrientation.IDENTITY,
                                                   eye=(0.62, 0.5)))
        suggestion = only(engine.suggest(bundle), CoachRule.SPIRAL)

        pan, rotate = suggestion.nudges
        assert pan.dx == pytest.approx(-0.06)
        assert pan.dy == pytest.approx(0.0)
        assert rotate.degrees == -2.0
        assert suggestion.message == "Nudge framing toward the spiral eye and rotate ~2°"
        assert suggestion.estimated_gain == pytest.approx(55.0)
        assert suggestion.effort == pytest.approx(8.0)

    def test_spiral_mirror_x_rotates_clockwise(self, engine):
        bundle = create_bundle(spiral=SpiralResult(score=0.5, orientation=SpiralOrientation.MIRROR_X,
                                                   eye=(0.38, 0.5)))
        suggestion = only(engine.suggest(bundle), CoachRule.SPIRAL)

        assert suggestion.nudges[1].degrees == 2.0

    def test_spiral_fit_is_left_alone(self, engine):
        bundle = create_bundle(
            subject=SubjectEstimate(center=(0.62, 0.5), confidence=0.2),
            spiral=SpiralResult(score=0.8, eye=(0.62, 0.5))
        )

        assert engine.suggest(bundle) == []

    def test_pans_are_capped(self, engine):
        bundle = create_bundle(
            subject=SubjectEstimate(center=(0.0, 0.0), confidence=0.2),
            spiral=SpiralResult(score=0.1, eye=(0.62, 0.6))
        )
        pan = only(engine.suggest(bundle), CoachRule.SPIRAL).nudges[0]

        assert pan.dx == -0.25
        assert pan.dy == -0.25

    def test_leading_suggestion(self, engine):
        bundle = create_bundle(leading=LeadingResult(convergence=0.5, vanishing_point=(100.0, 50.0)))
        suggestion = only(engine.suggest(bundle), CoachRule.LEADING)

        assert suggestion.nudges == (PanNudge(dx=0.0, dy=-0.04),)
        assert suggestion.estimated_gain == 25.0
        assert suggestion.effort == pytest.approx(4.0)

        strong = create_bundle(leading=LeadingResult(convergence=0.9, vanishing_point=(100.0, 50.0)))
        assert only(engine.suggest(strong), CoachRule.LEADING).estimated_gain == 12.0

    def test_ranking_keeps_top_three(self, engine):
        bundle = create_bundle(
            subject=SubjectEstimate(center=(0.5, 0.5), confidence=0.9),
            horizon=HorizonEstimate(y=0.45, confidence=0.9),
            diagonal=DiagonalResult(score=0.5, best=DiagonalDirection.TRBL),
            symmetry=SymmetryResult(score=0.8, axis_x=0.45),
            spiral=SpiralResult(score=0.5, eye=(0.62, 0.5)),
            leading=LeadingResult(convergence=0.5, vanishing_point=(100.0, 50.0))
        )
        suggestions = engine.suggest(bundle)

        assert [s.rule for s in suggestions] == [CoachRule.DIAGONAL, CoachRule.SPIRAL, CoachRule.LEADING]
        assert all(a.priority >= b.priority for a, b in zip(suggestions, suggestions[1:]))

    def test_max_suggestions_config(self):
        engine = SuggestionEngine({'max_suggestions': 1})
        bundle = create_bundle(
            diagonal=DiagonalResult(score=0.5),
            leading=LeadingResult(convergence=0.5, vanishing_point=(100.0, 50.0))
        )

        assert len(engine.suggest(bundle)) == 1

    def test_suggestion_to_dict(self, engine):
        bundle = create_bundle(diagonal=DiagonalResult(score=0.5, best=DiagonalDirection.TRBL))
        data = engine.suggest(bundle)[0].to_dict()

        assert data['rule'] == 'diagonal'
        assert data['nudges'] == [{'kind': 'rotate', 'degrees': 3.0}]
        assert data['priority'] == pytest.approx(15.0)


if __name__ == '__main__':
    pytest.main([__file__])
