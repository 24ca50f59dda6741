"""
Compositional Analysis Module

Feature detectors, rule analyzers, display scoring and the reframing coach
of the Composition Coach.
"""

from .composition_analyzer import CompositionAnalyzer, CompositionResults
from .feature_detectors import SubjectDetector, HorizonDetector, LeadingLinesDetector
from .rule_evaluators import (
    RuleOfThirdsEvaluator,
    PhiGridEvaluator,
    SpiralEvaluator,
    SymmetryEvaluator,
    DiagonalEvaluator
)
from .scoring_algorithms import CompositionScorer, RULE_LABELS
from .suggestion_engine import SuggestionEngine
from .reframing import ViewTransform, apply_nudges, render_view
from .scheduler import AnalysisScheduler
from .types import AnalysisBundle, RuleScore, Suggestion

__all__ = [
    'CompositionAnalyzer',
    'CompositionResults',
    'SubjectDetector',
    'HorizonDetector',
    'LeadingLinesDetector',
    'RuleOfThirdsEvaluator',
    'PhiGridEvaluator',
    'SpiralEvaluator',
    'SymmetryEvaluator',
    'DiagonalEvaluator',
    'CompositionScorer',
    'RULE_LABELS',
    'SuggestionEngine',
    'ViewTransform',
    'apply_nudges',
    'render_view',
    'AnalysisScheduler',
    'AnalysisBundle',
    'RuleScore',
    'Suggestion'
]

__version__ = "1.0.0"
