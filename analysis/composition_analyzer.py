#!/usr/bin/env python3
"""
Main Composition Analyzer

This module provides the core CompositionAnalyzer class that orchestrates
feature extraction, the rule analyzers, display scoring and the coach.

"""

import numpy as np
from typing import Dict, List, Optional, Any
import logging
from dataclasses import dataclass
from datetime import datetime

from preprocessing.image_preprocessor import FrameFeatures, ImagePreprocessor
from preprocessing.vision_primitives import VisionPrimitives, default_primitives

from .feature_detectors import HorizonDetector, LeadingLinesDetector, SubjectDetector
from .rule_evaluators import (
    DiagonalEvaluator,
    PhiGridEvaluator,
    RuleOfThirdsEvaluator,
    SpiralEvaluator,
    SymmetryEvaluator
)
from .scoring_algorithms import CompositionScorer
from .suggestion_engine import SuggestionEngine
from .types import AnalysisBundle, RuleScore, Suggestion

logger = logging.getLogger(__name__)


@dataclass
class CompositionResults:
    """

    Display-ready composition results.

    Contains the analysis bundle, rule scores, best matches and coach
    suggestions.

    """

    bundle: AnalysisBundle
    rule_scores: List[RuleScore]
    top_matches: List[RuleScore]
    suggestions: List[Suggestion]
    processing_time: float
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        """ Convert results to dictionary format. """

        return {
            'analysis': self.bundle.to_dict(),
            'rule_scores': [score.to_dict() for score in self.rule_scores],
            'top_matches': [score.to_dict() for score in self.top_matches],
            'suggestions': [suggestion.to_dict() for suggestion in self.suggestions],
            'processing_time': self.processing_time,
            'timestamp': self.timestamp.isoformat()
        }


class CompositionAnalyzer:
    """

    Main compositional analysis orchestrator.

    Runs the extractors and the seven rule analyzers over one frame
    (``analyze``), then scores and coaches the result (``evaluate``).
    The analyzer holds no per-frame state, so one instance can serve
    many frames.

    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 primitives: Optional[VisionPrimitives] = None):
        """
        Initialize the composition analyzer.

        Args:
            config: Configuration dictionary; each section is merged over the defaults
            primitives: Vision primitives provider
        """

        self.config = self._merge_config(config or {})
        self.primitives = primitives or default_primitives

        # Seeded generator makes the vanishing point search reproducible
        self.rng = np.random.default_rng(self.config.get('seed'))

        self.preprocessor = ImagePreprocessor(self.config['preprocessing'], self.primitives)

        # Initialize feature detectors
        self.subject_detector = SubjectDetector(primitives = self.primitives, **self.config['subject'])
        self.horizon_detector = HorizonDetector(primitives = self.primitives, **self.config['lines'])
        self.leading_detector = LeadingLinesDetector(rng = self.rng, primitives = self.primitives,
                                                     **self.config['leading'])

        # Initialize rule evaluators
        self.rule_evaluators = {
            'thirds': RuleOfThirdsEvaluator(self.config['grid']),
            'phi': PhiGridEvaluator(self.config['grid']),
            'spiral': SpiralEvaluator(self.config['spiral']),
            'symmetry': SymmetryEvaluator(self.config['symmetry'], self.primitives),
            'diagonal': DiagonalEvaluator(self.config['diagonal'])
        }

        # Initialize scoring system and coach
        self.scorer = CompositionScorer(self.config['scoring'])
        self.suggestion_engine = SuggestionEngine(self.config['suggestions'])

        logger.info("CompositionAnalyzer initialized")

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration for the analyzer"""

        return {
            'preprocessing': {},
            'subject': {'downsample': 8},
            'lines': {'max_abs_sine': 0.2, 'min_length': 40},
            'leading': {
                'iterations': 200,
                'inlier_tolerance': 6.0,
                'min_length': 30,
                'min_abs_sine': 0.2,
                'max_kept': 100
            },
            'grid': {},
            'spiral': {},
            'symmetry': {},
            'diagonal': {},
            'scoring': {'min_score': 55, 'max_items': 3},
            'suggestions': {'max_suggestions': 3},
            'seed': None
        }

    def _merge_config(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Merge a user configuration over the defaults, one section at a time."""

        merged = self._get_default_config()

        for section, value in config.items():
            if isinstance(merged.get(section), dict) and isinstance(value, dict):
                merged[section] = {**merged[section], **value}
            else:
                merged[section] = value

        return merged

    def analyze(self, image: np.ndarray,
                rng: Optional[np.random.Generator] = None) -> AnalysisBundle:
        """
        Perform compositional analysis on an image.

        Args:
            image: Input image (H, W, C) in BGR format, or grayscale
            rng: Overrides the analyzer's generator for this pass

        Returns:
            AnalysisBundle for the frame
        """

        start_time = datetime.now()

        try:
            logger.debug("Extracting features...")
            features = self.preprocessor.extract_composition_features(image)

            bundle = self.analyze_features(features, rng = rng)

            processing_time = (datetime.now() - start_time).total_seconds()
            logger.info(f"Analysis completed in {processing_time:.3f}s - "
                        f"frame {bundle.frame_size[0]}x{bundle.frame_size[1]}")

            return bundle

        except Exception as e:
            logger.error(f"Analysis failed: {str(e)}")
            raise

    def analyze_features(self, features: FrameFeatures,
                         rng: Optional[np.random.Generator] = None) -> AnalysisBundle:
        """
        Run the analyzers over already-extracted features.

        Args:
            features: Grayscale frame, edge map and optional segments
            rng: Overrides the analyzer's generator for this pass

        Returns:
            AnalysisBundle for the frame
        """

        edges = features.edges
        segments = features.segments

        # One Hough pass shared by the line-based detectors
        if segments is None:
            segments = self.preprocessor.detect_segments(edges)

        logger.debug("Running feature detectors...")
        subject = self.subject_detector.detect(features.gray)
        horizon = self.horizon_detector.detect(edges, segments)
        leading = self.leading_detector.detect(edges, segments, rng = rng)

        subject_point = subject.center if subject.confidence > 0 else None
        horizon_y = horizon.y if horizon.detected else None

        logger.debug("Running rule evaluations...")
        thirds = self.rule_evaluators['thirds'].evaluate(subject_point, horizon_y)
        phi = self.rule_evaluators['phi'].evaluate(subject_point, horizon_y)
        spiral = self.rule_evaluators['spiral'].evaluate(edges, subject_point)
        symmetry = self.rule_evaluators['symmetry'].evaluate(edges)
        diagonal = self.rule_evaluators['diagonal'].evaluate(edges)

        return AnalysisBundle(
            scale = features.scale,
            frame_size = features.frame_size,
            subject = subject,
            horizon = horizon,
            thirds = thirds,
            phi = phi,
            spiral = spiral,
            symmetry = symmetry,
            diagonal = diagonal,
            leading = leading
        )

    def evaluate(self, bundle: AnalysisBundle,
                 min_score: Optional[int] = None,
                 top_n: Optional[int] = None) -> CompositionResults:
        """
        Score and coach an analysis bundle.

        Args:
            bundle: Result of ``analyze``
            min_score: Threshold for top matches
            top_n: Maximum number of top matches

        Returns:
            CompositionResults
        """

        start_time = datetime.now()

        logger.debug("Calculating rule scores...")
        rule_scores = self.scorer.compute_rule_scores(bundle)
        top_matches = self.scorer.top_matches(rule_scores, min_score, top_n)

        logger.debug("Generating suggestions...")
        suggestions = self.suggestion_engine.suggest(bundle)

        processing_time = (datetime.now() - start_time).total_seconds()

        return CompositionResults(
            bundle = bundle,
            rule_scores = rule_scores,
            top_matches = top_matches,
            suggestions = suggestions,
            processing_time = processing_time,
            timestamp = start_time
        )

    def analyze_and_evaluate(self, image: np.ndarray,
                             min_score: Optional[int] = None,
                             top_n: Optional[int] = None) -> CompositionResults:
        """
        Full pass: ``analyze`` followed by ``evaluate``.

        ``processing_time`` of the result covers both steps.
        """

        start_time = datetime.now()

        bundle = self.analyze(image)
        results = self.evaluate(bundle, min_score, top_n)

        results.processing_time = (datetime.now() - start_time).total_seconds()
        results.timestamp = start_time

        logger.info(f"Evaluation completed in {results.processing_time:.3f}s - "
                    f"{len(results.top_matches)} matches, {len(results.suggestions)} suggestions")

        return results
