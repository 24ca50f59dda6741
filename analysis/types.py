#!/usr/bin/env python3
"""
Shared Data Model for Compositional Analysis

Result types exchanged between the feature detectors, rule evaluators,
the scorer and the suggestion engine.

Every geometric field lives in one of two coordinate spaces:

- normalized space: both axes in [0, 1], origin top-left
- small-pixel space: pixel coordinates of the downscaled working frame,
  where ``small = original * scale``

All results are frozen dataclasses. A pass that finds no usable signal still
produces a well-formed result carrying a zero score or confidence.
"""

import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, Tuple, Optional, Any, Union

# (x, y) in normalized space
NormalizedPoint = Tuple[float, float]

# (x, y) in small-pixel space
PixelPoint = Tuple[float, float]

# (x1, y1, x2, y2) in small-pixel space
LineSegment = Tuple[int, int, int, int]


def clamp01(value: float) -> float:
    """Clamp a score to the [0, 1] range."""

    return max(0.0, min(1.0, float(value)))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounded up."""

    return int(math.floor(value + 0.5))


def _point(value: Optional[Any]) -> Optional[Tuple[float, float]]:
    if value is None:
        return None
    return (float(value[0]), float(value[1]))


class SpiralOrientation(IntEnum):
    """The four ways a golden spiral can be anchored in the frame."""
    IDENTITY = 0
    MIRROR_X = 1
    MIRROR_Y = 2
    MIRROR_XY = 3


class DiagonalDirection(Enum):
    """Frame diagonals checked by the diagonal method."""
    TLBR = "TLBR"  # top-left to bottom-right
    TRBL = "TRBL"  # top-right to bottom-left


@dataclass(frozen=True)
class SubjectEstimate:
    """Saliency-based subject center (normalized) and its confidence."""
    center: NormalizedPoint = (0.5, 0.5)
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {'center': list(self.center), 'confidence': self.confidence}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SubjectEstimate':
        return cls(center=_point(data.get('center', (0.5, 0.5))),
                   confidence=clamp01(data.get('confidence', 0.0)))


@dataclass(frozen=True)
class HorizonEstimate:
    """
    Horizon height (normalized) and confidence.

    ``y=0.5, confidence=0`` is the "no horizon" sentinel.
    """
    y: float = 0.5
    confidence: float = 0.0

    @property
    def detected(self) -> bool:
        return self.confidence > 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {'y': self.y, 'confidence': self.confidence}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HorizonEstimate':
        return cls(y=float(data.get('y', 0.5)),
                   confidence=clamp01(data.get('confidence', 0.0)))


@dataclass(frozen=True)
class GridScoreResult:
    """Result shared by the rule of thirds and phi grid evaluators."""
    subject_score: float = 0.0
    horizon_score: float = 0.0
    overall: float = 0.0
    best_target: Optional[NormalizedPoint] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subject_score': self.subject_score,
            'horizon_score': self.horizon_score,
            'overall': self.overall,
            'best_target': list(self.best_target) if self.best_target else None
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GridScoreResult':
        return cls(subject_score=clamp01(data.get('subject_score', 0.0)),
                   horizon_score=clamp01(data.get('horizon_score', 0.0)),
                   overall=clamp01(data.get('overall', 0.0)),
                   best_target=_point(data.get('best_target')))


@dataclass(frozen=True)
class SpiralResult:
    """Best golden spiral fit: edge-density score, orientation and eye point."""
    score: float = 0.0
    orientation: SpiralOrientation = SpiralOrientation.IDENTITY
    eye: Optional[NormalizedPoint] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'orientation': int(self.orientation),
            'eye': list(self.eye) if self.eye else None
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SpiralResult':
        return cls(score=clamp01(data.get('score', 0.0)),
                   orientation=SpiralOrientation(int(data.get('orientation', 0))),
                   eye=_point(data.get('eye')))


@dataclass(frozen=True)
class SymmetryResult:
    """Edge IoU against the mirrored frame and the winning vertical axis."""
    score: float = 0.0
    axis_x: float = 0.5

    def to_dict(self) -> Dict[str, Any]:
        return {'score': self.score, 'axis_x': self.axis_x}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SymmetryResult':
        return cls(score=clamp01(data.get('score', 0.0)),
                   axis_x=float(data.get('axis_x', 0.5)))


@dataclass(frozen=True)
class DiagonalResult:
    """Edge density along the better of the two frame diagonals."""
    score: float = 0.0
    best: DiagonalDirection = DiagonalDirection.TLBR

    def to_dict(self) -> Dict[str, Any]:
        return {'score': self.score, 'best': self.best.value}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DiagonalResult':
        return cls(score=clamp01(data.get('score', 0.0)),
                   best=DiagonalDirection(data.get('best', 'TLBR')))


@dataclass(frozen=True)
class LeadingResult:
    """
    Vanishing point estimate.

    ``vanishing_point`` and ``kept_segments`` are in small-pixel space.
    """
    convergence: float = 0.0
    vanishing_point: Optional[PixelPoint] = None
    kept_segments: Tuple[LineSegment, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'convergence': self.convergence,
            'vanishing_point': list(self.vanishing_point) if self.vanishing_point else None,
            'kept_segments': [list(seg) for seg in self.kept_segments]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LeadingResult':
        segments = tuple(tuple(int(v) for v in seg) for seg in data.get('kept_segments', []))
        return cls(convergence=clamp01(data.get('convergence', 0.0)),
                   vanishing_point=_point(data.get('vanishing_point')),
                   kept_segments=segments)


@dataclass(frozen=True)
class AnalysisBundle:
    """Aggregate of one analysis pass. Immutable once built."""
    scale: float
    frame_size: Tuple[int, int]
    subject: SubjectEstimate
    horizon: HorizonEstimate
    thirds: GridScoreResult
    phi: GridScoreResult
    spiral: SpiralResult
    symmetry: SymmetryResult
    diagonal: DiagonalResult
    leading: LeadingResult

    def to_dict(self) -> Dict[str, Any]:
        """Convert bundle to dictionary format."""
        return {
            'scale': self.scale,
            'frame_size': list(self.frame_size),
            'subject': self.subject.to_dict(),
            'horizon': self.horizon.to_dict(),
            'thirds': self.thirds.to_dict(),
            'phi': self.phi.to_dict(),
            'spiral': self.spiral.to_dict(),
            'symmetry': self.symmetry.to_dict(),
            'diagonal': self.diagonal.to_dict(),
            'leading': self.leading.to_dict()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AnalysisBundle':
        """
        Rebuild a bundle from its dictionary form.

        Missing sections fall back to their sentinel values.

        Raises:
            ValueError: If a field cannot be converted
        """
        try:
            frame_size = data.get('frame_size', (0, 0))
            return cls(
                scale=float(data.get('scale', 1.0)),
                frame_size=(int(frame_size[0]), int(frame_size[1])),
                subject=SubjectEstimate.from_dict(data.get('subject') or {}),
                horizon=HorizonEstimate.from_dict(data.get('horizon') or {}),
                thirds=GridScoreResult.from_dict(data.get('thirds') or {}),
                phi=GridScoreResult.from_dict(data.get('phi') or {}),
                spiral=SpiralResult.from_dict(data.get('spiral') or {}),
                symmetry=SymmetryResult.from_dict(data.get('symmetry') or {}),
                diagonal=DiagonalResult.from_dict(data.get('diagonal') or {}),
                leading=LeadingResult.from_dict(data.get('leading') or {})
            )
        except (TypeError, KeyError, IndexError, AttributeError) as e:
            raise ValueError(f"Malformed analysis bundle: {str(e)}") from e


class RuleKey(Enum):
    """Display rule identifiers."""
    RULE_OF_THIRDS = "rule_of_thirds"
    PHI_GRID = "phi_grid"
    GOLDEN_SPIRAL = "golden_spiral"
    LEADING_LINES = "leading_lines"
    DIAGONALS = "diagonals"
    SYMMETRY = "symmetry"
    HORIZON_ON_THIRDS = "horizon_on_thirds"


@dataclass(frozen=True)
class RuleScore:
    """Display-oriented 0-100 score for one rule."""
    key: RuleKey
    score: int
    label: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'key': self.key.value,
            'score': self.score,
            'label': self.label,
            'reason': self.reason
        }


@dataclass(frozen=True)
class PanNudge:
    """Camera pan as a fraction of the frame: +dx right, +dy down."""
    dx: float
    dy: float

    kind = 'pan'

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'dx': self.dx, 'dy': self.dy}


@dataclass(frozen=True)
class RotateNudge:
    """Camera rotation in degrees, positive is clockwise."""
    degrees: float

    kind = 'rotate'

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'degrees': self.degrees}


@dataclass(frozen=True)
class ZoomNudge:
    """Relative zoom change, positive zooms in."""
    delta_fraction: float

    kind = 'zoom'

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'delta_fraction': self.delta_fraction}


Nudge = Union[PanNudge, RotateNudge, ZoomNudge]


class CoachRule(Enum):
    """Rules the suggestion engine can produce nudges for."""
    THIRDS = "thirds"
    HORIZON = "horizon"
    DIAGONAL = "diagonal"
    SYMMETRY = "symmetry"
    SPIRAL = "spiral"
    LEADING = "leading"


@dataclass(frozen=True)
class Suggestion:
    """
    Actionable reframing suggestion.

    Contains the nudges to apply, the estimated score gain (0-100), the
    effort needed to apply them and the derived priority.
    """
    rule: CoachRule
    message: str
    nudges: Tuple[Nudge, ...]
    estimated_gain: float
    effort: float
    priority: float = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, 'priority', self.estimated_gain / max(1.0, self.effort))

    def to_dict(self) -> Dict[str, Any]:
        """Convert suggestion to dictionary format."""
        return {
            'rule': self.rule.value,
            'message': self.message,
            'nudges': [nudge.to_dict() for nudge in self.nudges],
            'estimated_gain': self.estimated_gain,
            'effort': self.effort,
            'priority': self.priority
        }
