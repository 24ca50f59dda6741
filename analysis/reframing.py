#!/usr/bin/env python3
"""
Reframing Helpers

Applies coach nudges to a virtual camera view and renders the reframed
frame so it can be analyzed again.

"""

import cv2
import numpy as np
from dataclasses import dataclass
from typing import Iterable, Tuple
import logging

from .types import Nudge, PanNudge, RotateNudge, ZoomNudge

logger = logging.getLogger(__name__)

MIN_ZOOM = 0.1
MAX_ZOOM = 8.0

# Pan fractions are relative to this share of the shorter frame side
PAN_SCALE = 0.8


@dataclass(frozen=True)
class ViewTransform:
    """
    Virtual camera view over a frame.

    Pan is in frame pixels, rotation in degrees (positive is clockwise)
    and zoom is a magnification factor about the frame center.
    """
    pan_x: float = 0.0
    pan_y: float = 0.0
    rotation_deg: float = 0.0
    zoom: float = 1.0

    def to_dict(self):
        return {
            'pan_x': self.pan_x,
            'pan_y': self.pan_y,
            'rotation_deg': self.rotation_deg,
            'zoom': self.zoom
        }


def apply_nudges(transform: ViewTransform, nudges: Iterable[Nudge],
                 frame_size: Tuple[int, int]) -> ViewTransform:
    """
    Accumulate nudges onto a view transform.

    Args:
        transform: Current view
        nudges: Nudges of one suggestion
        frame_size: (width, height) of the displayed frame in pixels

    Returns:
        New ViewTransform
    """

    width, height = frame_size
    pan_scale = min(width, height) * PAN_SCALE

    d_pan_x = 0.0
    d_pan_y = 0.0
    d_rotation = 0.0
    d_zoom = 0.0

    for nudge in nudges:
        if isinstance(nudge, PanNudge):
            d_pan_x += nudge.dx * pan_scale
            d_pan_y += nudge.dy * pan_scale

        elif isinstance(nudge, RotateNudge):
            d_rotation += nudge.degrees

        elif isinstance(nudge, ZoomNudge):
            d_zoom += nudge.delta_fraction

        else:
            raise TypeError(f"Unsupported nudge: {nudge!r}")

    zoom = max(MIN_ZOOM, min(MAX_ZOOM, transform.zoom * (1 + d_zoom)))

    return ViewTransform(
        pan_x=transform.pan_x + d_pan_x,
        pan_y=transform.pan_y + d_pan_y,
        rotation_deg=transform.rotation_deg + d_rotation,
        zoom=zoom
    )


def render_view(image: np.ndarray, transform: ViewTransform) -> np.ndarray:
    """
    Render the frame as seen through a view transform.

    Rotation and zoom are applied about the frame center, then the pan.
    Uncovered areas are filled with black.

    Args:
        image: Source frame
        transform: View to render

    Returns:
        Rendered frame with the same size as ``image``
    """

    rows, cols = image.shape[:2]

    # OpenCV angles are counter-clockwise on screen
    matrix = cv2.getRotationMatrix2D((cols / 2.0, rows / 2.0), -transform.rotation_deg, transform.zoom)
    matrix[0, 2] += transform.pan_x
    matrix[1, 2] += transform.pan_y

    logger.debug(f"Rendering view {transform.to_dict()} over {cols}x{rows} frame")

    return cv2.warpAffine(image, matrix, (cols, rows),
                          flags=cv2.INTER_LINEAR,
                          borderMode=cv2.BORDER_CONSTANT,
                          borderValue=0)
