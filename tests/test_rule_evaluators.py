"""
Unit tests for the grid, spiral, symmetry and diagonal evaluators.
"""

import os
import sys
import math
import pytest
import numpy as np
import cv2

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analysis.rule_evaluators import (
    RuleOfThirdsEvaluator,
    PhiGridEvaluator,
    SpiralEvaluator,
    SymmetryEvaluator,
    DiagonalEvaluator
)
from analysis.types import DiagonalDirection, SpiralOrientation


def create_edge_map(size=(480, 640)):
    """Create an empty binary edge map."""
    return np.zeros(size, dtype=np.uint8)


class TestGridEvaluators:
    """Tests for rule of thirds and phi grid scoring."""

    @pytest.fixture
    def thirds(self):
        return RuleOfThirdsEvaluator()

    def test_subject_on_intersection(self, thirds):
        result = thirds.evaluate((1 / 3, 1 / 3), None)

        assert result.subject_score == pytest.approx(1.0)
        assert result.overall == pytest.approx(1.0)
        assert result.best_target == (1 / 3, 1 / 3)

    def test_subject_in_corner_scores_near_zero(self, thirds):
        result = thirds.evaluate((0.0, 0.0), None)

        assert result.subject_score < 0.01
        assert result.best_target == (1 / 3, 1 / 3)

    def test_subject_and_horizon_are_blended(self, thirds):
        result = thirds.evaluate((1 / 3, 1 / 3), 0.5)

        horizon_score = math.exp(-(1 / 6) ** 2 / 0.07 ** 2)
        assert result.horizon_score == pytest.approx(horizon_score)
        assert result.overall == pytest.approx(0.6 + 0.4 * horizon_score)

    def test_horizon_only(self, thirds):
        result = thirds.evaluate(None, 2 / 3)

        assert result.subject_score == 0.0
        assert result.best_target is None
        assert result.overall == pytest.approx(1.0)

    def test_no_inputs(self, thirds):
        result = thirds.evaluate(None, None)

        assert result.overall == 0.0
        assert result.subject_score == 0.0
        assert result.horizon_score == 0.0

    def test_phi_grid_targets(self):
        phi = PhiGridEvaluator()
        low, high = phi.divisions

        assert low == pytest.approx(0.381966, abs=1e-6)
        assert high == pytest.approx(0.618034, abs=1e-6)

        result = phi.evaluate((low, high), high)
        assert result.overall == pytest.approx(1.0)
        assert result.best_target == (low, high)


class TestSpiralEvaluator:
    """Tests for golden spiral edge fit."""

    @pytest.fixture
    def evaluator(self):
        return SpiralEvaluator()

    def test_spiral_points_stay_in_frame(self, evaluator):
        for orientation in SpiralOrientation:
            points, eye = evaluator.build_spiral(orientation)

            assert points.shape == (160, 2)
            assert np.all(points >= 0.0) and np.all(points <= 1.0)
            assert tuple(points[0]) == pytest.approx(eye)

    def test_mirroring_moves_the_eye(self, evaluator):
        _, eye = evaluator.build_spiral(SpiralOrientation.IDENTITY)
        _, mirrored = evaluator.build_spiral(SpiralOrientation.MIRROR_X)

        assert eye == pytest.approx((0.62, 0.5))
        assert mirrored == pytest.approx((0.38, 0.5))

    def test_no_edges(self, evaluator):
        result = evaluator.evaluate(create_edge_map())

        assert result.score == 0.0
        assert result.orientation == SpiralOrientation.IDENTITY
        assert result.eye is None

    def test_full_edges_first_orientation_wins(self, evaluator):
        edges = np.full((480, 640), 255, dtype=np.uint8)
        result = evaluator.evaluate(edges)

        assert result.score == pytest.approx(1.0)
        assert result.orientation == SpiralOrientation.IDENTITY

    def test_subject_weighting_prefers_nearest_eye(self, evaluator):
        edges = np.full((480, 640), 255, dtype=np.uint8)
        result = evaluator.evaluate(edges, subject=(0.0, 0.0))

        assert result.orientation == SpiralOrientation.MIRROR_X
        assert 0.0 < result.score < 0.01


class TestSymmetryEvaluator:
    """Tests for mirror IoU symmetry."""

    @pytest.fixture
    def evaluator(self):
        return SymmetryEvaluator()

    def test_perfect_symmetry(self, evaluator):
        edges = create_edge_map()
        edges[:, 100:110] = 255
        edges[:, 530:540] = 255

        result = evaluator.evaluate(edges)

        assert result.score == pytest.approx(1.0)
        assert result.axis_x == pytest.approx(0.5)

    def test_off_center_axis(self, evaluator):
        edges = create_edge_map((200, 200))
        edges[:, 40:50] = 255
        edges[:, 160:170] = 255

        result = evaluator.evaluate(edges)

        assert result.score == pytest.approx(1.0)
        assert result.axis_x == pytest.approx(0.55)

    def test_empty_edges(self, evaluator):
        result = evaluator.evaluate(create_edge_map())

        assert result.score == 0.0
        assert result.axis_x == 0.5

    def test_asymmetric_edges_score_low(self, evaluator):
        edges = create_edge_map()
        edges[:, 20:40] = 255

        result = evaluator.evaluate(edges)

        assert result.score == 0.0


class TestDiagonalEvaluator:
    """Tests for the diagonal method."""

    @pytest.fixture
    def evaluator(self):
        return DiagonalEvaluator()

    def test_empty_edges(self, evaluator):
        result = evaluator.evaluate(create_edge_map((200, 200)))

        assert result.score == 0.0
        assert result.best == DiagonalDirection.TLBR

    def test_tlbr_line(self, evaluator):
        edges = create_edge_map((200, 200))
        cv2.line(edges, (0, 0), (199, 199), 255, 1)

        result = evaluator.evaluate(edges)

        assert result.best == DiagonalDirection.TLBR
        assert result.score > 0.1

    def test_trbl_line(self, evaluator):
        edges = create_edge_map((200, 200))
        cv2.line(edges, (199, 0), (0, 199), 255, 1)

        result = evaluator.evaluate(edges)

        assert result.best == DiagonalDirection.TRBL
        assert result.score > 0.1

    def test_tie_goes_to_tlbr(self, evaluator):
        edges = np.full((200, 200), 255, dtype=np.uint8)
        result = evaluator.evaluate(edges)

        assert result.score == pytest.approx(1.0)
        assert result.best == DiagonalDirection.TLBR


if __name__ == '__main__':
    pytest.main([__file__])
