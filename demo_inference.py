#!/usr/bin/env python3
"""
Composition Coach Demo Script

This script demonstrates the composition analysis engine by:
1. Loading an image and running one analysis pass
2. Printing the rule scores, best matches and reframing suggestions
3. Optionally applying the top suggestion and re-analyzing the reframed view

Usage:
    python demo_inference.py --image path/to/image.jpg
    python demo_inference.py --image path/to/image.jpg --output results.json
    python demo_inference.py --image path/to/image.jpg --apply-coach reframed.jpg
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import cv2

# Add project root to path
sys.path.append(str(Path(__file__).parent))

from analysis import CompositionAnalyzer, CompositionResults, ViewTransform, apply_nudges, render_view
from utils.validation_api import ValidationError, build_analyzer_config

logger = logging.getLogger(__name__)


def print_report(title: str, results: CompositionResults):
    """Print a readable summary of one evaluation."""

    print(f"\n{'='*50}")
    print(f"Analysis Results for: {title}")
    print(f"{'='*50}")

    bundle = results.bundle
    print(f"Working frame: {bundle.frame_size[0]}x{bundle.frame_size[1]} (scale {bundle.scale:.3f})")

    print("\nRule scores:")
    for item in results.rule_scores:
        print(f"  {item.label:<24} {item.score:>3}  ({item.reason})")

    if results.top_matches:
        print("\nBest matches: " + ", ".join(item.label for item in results.top_matches))
    else:
        print("\nBest matches: none above threshold")

    print("\nSuggestions:")
    if not results.suggestions:
        print("  Composition looks balanced, no changes suggested")

    for i, suggestion in enumerate(results.suggestions, 1):
        print(f"  {i}. {suggestion.message} "
              f"(gain ≈{suggestion.estimated_gain:.0f}, priority {suggestion.priority:.2f})")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the demo script."""
    parser = argparse.ArgumentParser(description='Composition Coach Demo')
    parser.add_argument('--image', type=str, required=True,
                       help='Path to input image')
    parser.add_argument('--output', type=str, default=None,
                       help='Path to save the full results as JSON')
    parser.add_argument('--min-score', type=int, default=55,
                       help='Minimum score (0-100) for a rule to count as a match')
    parser.add_argument('--top', type=int, default=3,
                       help='Maximum number of best matches to report')
    parser.add_argument('--seed', type=int, default=None,
                       help='Seed for the vanishing point search (reproducible results)')
    parser.add_argument('--apply-coach', type=str, default=None, metavar='OUT_IMAGE',
                       help='Apply the top suggestion, save the reframed image and re-analyze it')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    options = {'min_score': args.min_score, 'top_n': args.top}
    if args.seed is not None:
        options['seed'] = args.seed

    try:
        analyzer = CompositionAnalyzer(build_analyzer_config(options))
    except ValidationError as e:
        logger.error(f"{e}: {'; '.join(e.errors)}")
        return 2

    image_path = Path(args.image)
    if not image_path.is_file():
        logger.error(f"Invalid input path: {image_path}")
        return 1

    logger.info(f"Processing: {image_path}")

    try:
        image = analyzer.preprocessor.load_image(str(image_path))
        results = analyzer.analyze_and_evaluate(image)
    except Exception as e:
        logger.error(f"Error processing {image_path}: {e}")
        return 1

    print_report(image_path.name, results)

    payload = results.to_dict()

    if args.apply_coach:
        if not results.suggestions:
            logger.info("No suggestion to apply")
        else:
            top = results.suggestions[0]
            height, width = image.shape[:2]

            transform = apply_nudges(ViewTransform(), top.nudges, (width, height))
            reframed = render_view(image, transform)

            if not cv2.imwrite(args.apply_coach, reframed):
                logger.error(f"Could not write {args.apply_coach}")
                return 1

            logger.info(f"Applied '{top.message}' -> {args.apply_coach}")

            reframed_results = analyzer.analyze_and_evaluate(reframed)
            print_report(f"{image_path.name} (reframed)", reframed_results)

            payload['reframed'] = {
                'transform': transform.to_dict(),
                'results': reframed_results.to_dict()
            }

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False))
        logger.info(f"Results saved to {output_path}")

    logger.info("Demo completed!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
