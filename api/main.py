#!/usr/bin/env python3
"""
FastAPI Web Service for the Composition Coach

This module provides REST API endpoints for composition analysis of uploaded
images and for coaching previously computed analysis bundles.
"""

import sys
import json
import time
import uuid
import asyncio
import logging
from datetime import datetime
from typing import List, Dict, Optional, Any
from pathlib import Path

import uvicorn
import numpy as np
from fastapi import FastAPI, File, Form, UploadFile, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

# Add project root to path
sys.path.append(str(Path(__file__).parent.parent))

from analysis import CompositionAnalyzer, RULE_LABELS
from analysis.types import AnalysisBundle
from preprocessing import create_preprocessing_pipeline
from utils.validation_api import (
    ValidationError,
    build_analyzer_config,
    sanitize_filename,
    validate_file_size,
    validate_image_dimensions,
    validate_image_format
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# API Configuration
API_VERSION = "1.0.0"
API_TITLE = "Composition Coach API"
API_DESCRIPTION = """
Photography composition analysis API: scores an image against classical
composition guidelines and suggests small camera adjustments.

## Composition Rules Analyzed

1. **Rule of Thirds**: Subject and horizon on the thirds grid
2. **Golden Ratio (Φ grid)**: Subject and horizon on the phi grid
3. **Golden Spiral**: Edge support along a logarithmic spiral
4. **Leading Lines**: Line convergence toward a vanishing point
5. **Diagonal Method**: Edge density along the frame diagonals
6. **Vertical Symmetry**: Mirror similarity of the edge map
7. **Horizon on Thirds**: Horizon placement on a third line
"""


# Pydantic Models
class RuleScoreModel(BaseModel):
    """Display score for one composition rule"""
    key: str = Field(..., description="Rule identifier")
    score: int = Field(..., ge=0, le=100, description="Score (0-100)")
    label: str = Field(..., description="Display label")
    reason: str = Field(..., description="Short explanation built from sub-scores")


class SuggestionModel(BaseModel):
    """Reframing suggestion"""
    rule: str = Field(..., description="Rule the suggestion improves")
    message: str = Field(..., description="Human-readable instruction")
    nudges: List[Dict[str, Any]] = Field(..., description="Camera nudges (pan, rotate, zoom)")
    estimated_gain: float = Field(..., description="Estimated score improvement (0-100)")
    effort: float = Field(..., description="Rough cost of applying the nudges")
    priority: float = Field(..., description="Gain per unit of effort")


class AnalysisResponse(BaseModel):
    """Response model for composition analysis"""
    request_id: str = Field(..., description="Unique request identifier")
    analysis: Dict[str, Any] = Field(..., description="Raw analysis bundle")
    rule_scores: List[RuleScoreModel] = Field(..., description="All rule scores, best first")
    top_matches: List[RuleScoreModel] = Field(..., description="Best matching rules")
    suggestions: List[SuggestionModel] = Field(..., description="Prioritized reframing suggestions")
    processing_time: float = Field(..., description="Processing time in seconds")
    timestamp: str = Field(..., description="Analysis timestamp")
    metadata: Optional[Dict[str, Any]] = Field(default=None, description="Response metadata")


class CoachRequest(BaseModel):
    """Request model for coaching a serialized analysis bundle"""
    analysis: Dict[str, Any] = Field(..., description="Analysis bundle as returned by /analyze")
    min_score: Optional[int] = Field(default=None, ge=0, le=100, description="Top match threshold")
    top_n: Optional[int] = Field(default=None, ge=1, le=7, description="Maximum number of top matches")


class CoachResponse(BaseModel):
    """Response model for coaching"""
    rule_scores: List[RuleScoreModel] = Field(..., description="All rule scores, best first")
    top_matches: List[RuleScoreModel] = Field(..., description="Best matching rules")
    suggestions: List[SuggestionModel] = Field(..., description="Prioritized reframing suggestions")


class HealthResponse(BaseModel):
    """Health check response"""
    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")
    uptime: float = Field(..., description="Service uptime in seconds")
    analyzer_ready: bool = Field(..., description="Analyzer initialization status")


# Initialize FastAPI app
app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global variables
composition_analyzer = None
preprocessor = create_preprocessing_pipeline()
service_start_time = time.time()


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    get_analyzer()
    logger.info("Composition Coach API startup completed")


def get_analyzer() -> CompositionAnalyzer:
    """Shared default analyzer, created on first use"""
    global composition_analyzer

    if composition_analyzer is None:
        logger.info("Initializing composition analyzer...")
        composition_analyzer = CompositionAnalyzer()
        logger.info("✓ Composition analyzer initialized")

    return composition_analyzer


def parse_options(config: Optional[str]) -> Dict[str, Any]:
    """Parse the optional JSON ``config`` form field"""
    if not config:
        return {}

    try:
        options = json.loads(config)
    except json.JSONDecodeError as e:
        raise ValidationError("Invalid analysis configuration", [f"config is not valid JSON: {str(e)}"])

    if not isinstance(options, dict):
        raise ValidationError("Invalid analysis configuration", ["config must be a JSON object"])

    return options


async def load_image_from_upload(file: UploadFile) -> np.ndarray:
    """Read, validate and decode an uploaded image"""
    if not validate_image_format(file.filename):
        raise ValidationError("Unsupported image format", [f"Unsupported file: {file.filename}"])

    data = await file.read()

    if not validate_file_size(len(data)):
        raise ValidationError("Invalid file size", ["File is empty or larger than 50MB"])

    try:
        image = preprocessor.decode_image(data)
    except ValueError as e:
        raise ValidationError("Failed to load image", [str(e)])

    height, width = image.shape[:2]
    is_valid, errors = validate_image_dimensions(width, height)
    if not is_valid:
        raise ValidationError("Invalid image dimensions", errors)

    return image


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Service health check endpoint"""
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        uptime=time.time() - service_start_time,
        analyzer_ready=composition_analyzer is not None
    )


@app.get("/rules")
async def list_rules():
    """Rule keys and display labels"""
    return {
        "rules": [{"key": key.value, "label": label} for key, label in RULE_LABELS.items()]
    }


@app.post("/analyze", response_model=AnalysisResponse)
async def analyze_composition(
    file: UploadFile = File(..., description="Image file to analyze"),
    config: Optional[str] = Form(default=None, description="JSON analysis options")
):
    """
    Analyze composition of a single image

    Upload an image and receive:
    - The raw analysis bundle
    - Display scores for all seven rules and the best matches
    - Prioritized reframing suggestions
    """
    request_id = str(uuid.uuid4())
    start_time = time.time()

    try:
        logger.info(f"Starting analysis for request {request_id}")

        options = parse_options(config)
        analyzer = CompositionAnalyzer(build_analyzer_config(options)) if options else get_analyzer()

        image = await load_image_from_upload(file)
        logger.debug(f"Image loaded: {image.shape}")

        # Analysis is CPU bound; keep the event loop free
        loop = asyncio.get_running_loop()
        results = await loop.run_in_executor(None, analyzer.analyze_and_evaluate, image)

        processing_time = time.time() - start_time
        payload = results.to_dict()

        response = AnalysisResponse(
            request_id=request_id,
            analysis=payload['analysis'],
            rule_scores=payload['rule_scores'],
            top_matches=payload['top_matches'],
            suggestions=payload['suggestions'],
            processing_time=processing_time,
            timestamp=datetime.now().isoformat(),
            metadata={
                "image_shape": list(image.shape),
                "original_filename": sanitize_filename(file.filename or "")
            }
        )

        logger.info(f"Analysis completed for {request_id} in {processing_time:.3f}s")
        return response

    except ValidationError as e:
        logger.warning(f"Rejected request {request_id}: {e} {e.errors}")
        raise HTTPException(status_code=400, detail={"message": str(e), "errors": e.errors})
    except Exception as e:
        logger.error(f"Analysis failed for {request_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Analysis failed: {str(e)}")


@app.post("/coach", response_model=CoachResponse)
async def coach_analysis(request: CoachRequest):
    """
    Score and coach a previously computed analysis bundle

    Lets a client re-rank suggestions without re-uploading the image.
    """
    try:
        bundle = AnalysisBundle.from_dict(request.analysis)
    except ValueError as e:
        logger.warning(f"Rejected coach request: {str(e)}")
        raise HTTPException(status_code=400, detail={"message": "Invalid analysis bundle", "errors": [str(e)]})

    try:
        results = get_analyzer().evaluate(bundle, request.min_score, request.top_n)
        payload = results.to_dict()

        return CoachResponse(
            rule_scores=payload['rule_scores'],
            top_matches=payload['top_matches'],
            suggestions=payload['suggestions']
        )

    except Exception as e:
        logger.error(f"Coaching failed: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Coaching failed: {str(e)}")


if __name__ == "__main__":
    # Run with uvicorn for development
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
