"""
Face signal extraction from a 468(+10 iris)-point face mesh.

Produces per frame:
- Eye contact (gaze direction from iris position, gated by eye openness / EAR)
- Facial movement (frame-to-frame displacement of jaw, brows and lips)
- Rule-based emotion label from FACS-style geometric action-unit proxies
"""
from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

import numpy as np

from commscore.config import Settings
from commscore.geometry import clamp, distance_2d, distance_3d, midpoint
from commscore.landmarks import FaceIndex, LEFT_EYE_EAR, RIGHT_EYE_EAR, MOVEMENT_POINTS
from commscore.models import ActionUnits, FaceMesh, FaceSignals, GazeVector

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Neutral-face baselines (ratios of face height / width)
# -----------------------------------------------------------------------------
BROW_RAISED = 0.10          # brow-to-lid / face height
BROW_LOWERED = 0.06
BROW_GAP_SQUEEZED = 0.17    # inner-brow gap / face width
EYE_WIDE = 0.055            # lid gap / face height
EYE_SQUINT = 0.03
MOUTH_OPEN_MIN = 0.02       # inner-lip gap / face height
MOUTH_WIDE = 0.42           # corner-to-corner / face width
CORNER_SPAN = 0.025         # corner lift range / face height
CHEEK_RAISED = 0.17         # cheek-to-lower-lid / face height
NOSE_SHORTENED = 0.22       # bridge-to-tip / face height
LIP_RAISED = 0.12           # tip-to-upper-lip / face height

EMOTION_ORDER = ("neutral", "happy", "sad", "surprised", "angry", "fear", "disgust")

EMOTION_WEIGHTS: Dict[str, Dict[str, float]] = {
    "happy": {"corner_pull": 0.5, "cheek_raise": 0.3, "lip_stretch": 0.2},
    "sad": {"corner_depress": 0.6, "brow_lower": 0.25, "eye_squint": 0.15},
    "surprised": {"brow_raise": 0.4, "eye_wide": 0.3, "mouth_open": 0.3},
    "angry": {"brow_lower": 0.6, "eye_squint": 0.4},
    "fear": {"brow_raise": 0.35, "eye_wide": 0.35, "lip_stretch": 0.3},
    "disgust": {"nose_wrinkle": 0.5, "lip_raise": 0.5},
}
NEUTRAL_BASE = 0.3


def _ratio(value: float, lo: float, hi: float) -> float:
    """Linear map of value from [lo, hi] onto [0, 1], clamped."""
    if hi == lo:
        return 0.0
    return clamp((value - lo) / (hi - lo), 0.0, 1.0)


def eye_aspect_ratio(mesh: FaceMesh, indices: Tuple[int, ...]) -> float:
    """
    EAR = (|p2-p6| + |p3-p5|) / (2 * |p1-p4|) on the 2-D image plane.
    """
    p1, p2, p3, p4, p5, p6 = (mesh.xy(i) for i in indices)
    horizontal = distance_2d(p1, p4)
    if horizontal == 0:
        return 0.0
    return (distance_2d(p2, p6) + distance_2d(p3, p5)) / (2.0 * horizontal)


def _iris_offset(mesh: FaceMesh, iris: int, left: int, right: int) -> Tuple[float, float]:
    """
    Iris position within one eye as (horizontal fraction, vertical offset),
    both relative to the eye's horizontal corner span. 0.5 / 0.0 is centred.
    """
    a, b = mesh.xy(left), mesh.xy(right)
    span = float(b[0] - a[0])
    if span == 0:
        return 0.5, 0.0
    centre = midpoint(a, b)
    pos = mesh.xy(iris) if mesh.visibility(iris) > 0 else centre
    return float((pos[0] - a[0]) / span), float((pos[1] - centre[1]) / abs(span))


def gaze_vector(mesh: FaceMesh, gain: float = 2.2) -> GazeVector:
    lx, ly = _iris_offset(mesh, FaceIndex.LEFT_IRIS, FaceIndex.LEFT_EYE_OUTER, FaceIndex.LEFT_EYE_INNER)
    rx, ry = _iris_offset(mesh, FaceIndex.RIGHT_IRIS, FaceIndex.RIGHT_EYE_INNER, FaceIndex.RIGHT_EYE_OUTER)
    gx = ((lx + rx) / 2.0 - 0.5) * 2.0
    gy = ((ly + ry) / 2.0) * 2.0
    return GazeVector(x=clamp(gx * gain, -1.0, 1.0), y=clamp(gy * gain, -1.0, 1.0))


def action_units(mesh: FaceMesh) -> Optional[ActionUnits]:
    """
    Geometric FACS proxies. Returns None when the face scale is degenerate.
    """
    height = distance_2d(mesh.xy(FaceIndex.FOREHEAD), mesh.xy(FaceIndex.CHIN))
    width = distance_2d(mesh.xy(FaceIndex.FACE_LEFT), mesh.xy(FaceIndex.FACE_RIGHT))
    if height == 0 or width == 0:
        return None

    def h(i: int, j: int) -> float:
        return distance_2d(mesh.xy(i), mesh.xy(j)) / height

    brow = (h(FaceIndex.LEFT_BROW_MID, FaceIndex.LEFT_EYE_TOP)
            + h(FaceIndex.RIGHT_BROW_MID, FaceIndex.RIGHT_EYE_TOP)) / 2.0
    brow_gap = distance_2d(mesh.xy(FaceIndex.LEFT_BROW_INNER), mesh.xy(FaceIndex.RIGHT_BROW_INNER)) / width
    lids = (h(FaceIndex.LEFT_EYE_TOP, FaceIndex.LEFT_EYE_BOTTOM)
            + h(FaceIndex.RIGHT_EYE_TOP, FaceIndex.RIGHT_EYE_BOTTOM)) / 2.0
    cheek = (h(FaceIndex.LEFT_CHEEK, FaceIndex.LEFT_EYE_BOTTOM)
             + h(FaceIndex.RIGHT_CHEEK, FaceIndex.RIGHT_EYE_BOTTOM)) / 2.0
    mouth_w = distance_2d(mesh.xy(FaceIndex.MOUTH_LEFT), mesh.xy(FaceIndex.MOUTH_RIGHT)) / width
    mouth_gap = h(FaceIndex.UPPER_LIP_INNER, FaceIndex.LOWER_LIP_INNER)

    # image y grows downwards: corners above the lip centre give a positive lift
    lip_centre_y = (mesh.xy(FaceIndex.UPPER_LIP_INNER)[1] + mesh.xy(FaceIndex.LOWER_LIP_INNER)[1]) / 2.0
    corner_y = (mesh.xy(FaceIndex.MOUTH_LEFT)[1] + mesh.xy(FaceIndex.MOUTH_RIGHT)[1]) / 2.0
    lift = float(lip_centre_y - corner_y) / height

    return ActionUnits(
        brow_raise=_ratio(brow, BROW_RAISED, BROW_RAISED + 0.05),
        brow_lower=max(_ratio(-brow, -BROW_LOWERED, -BROW_LOWERED + 0.03),
                       _ratio(-brow_gap, -BROW_GAP_SQUEEZED, -BROW_GAP_SQUEEZED + 0.06)),
        cheek_raise=_ratio(-cheek, -CHEEK_RAISED, -CHEEK_RAISED + 0.06),
        nose_wrinkle=_ratio(-h(FaceIndex.NOSE_BRIDGE, FaceIndex.NOSE_TIP), -NOSE_SHORTENED, -NOSE_SHORTENED + 0.05),
        lip_raise=_ratio(-h(FaceIndex.NOSE_TIP, FaceIndex.UPPER_LIP_TOP), -LIP_RAISED, -LIP_RAISED + 0.05),
        corner_pull=_ratio(lift, 0.0, CORNER_SPAN),
        corner_depress=_ratio(-lift, 0.0, CORNER_SPAN),
        lip_stretch=_ratio(mouth_w, MOUTH_WIDE, MOUTH_WIDE + 0.10),
        mouth_open=_ratio(mouth_gap, MOUTH_OPEN_MIN, MOUTH_OPEN_MIN + 0.12),
        eye_wide=_ratio(lids, EYE_WIDE, EYE_WIDE + 0.03),
        eye_squint=_ratio(-lids, -EYE_SQUINT, -EYE_SQUINT + 0.02),
    )


def score_emotions(aus: ActionUnits) -> Dict[str, float]:
    values = aus.model_dump()
    scores = {
        label: sum(w * values[au] for au, w in weights.items())
        for label, weights in EMOTION_WEIGHTS.items()
    }
    scores["neutral"] = NEUTRAL_BASE * (1.0 - sum(values.values()) / len(values))
    return scores


def classify_emotion(aus: ActionUnits) -> Tuple[str, float]:
    """Pick the strongest emotion; confidence is its share of all non-negative scores."""
    scores = score_emotions(aus)
    label = max(EMOTION_ORDER, key=lambda k: scores[k])
    total = sum(s for s in scores.values() if s > 0)
    if total <= 0:
        return "neutral", 0.0
    return label, clamp(scores[label] / total, 0.0, 1.0)


class FaceSignalExtractor:
    """Per-session face analyzer; keeps only the previous mesh for motion."""
    def __init__(self, settings: Settings):
        self.s = settings
        self._previous: Optional[np.ndarray] = None

    def reset(self):
        self._previous = None

    def analyze(self, mesh: Optional[FaceMesh]) -> FaceSignals:
        if mesh is None:
            self._previous = None
            return FaceSignals()

        ear = (eye_aspect_ratio(mesh, LEFT_EYE_EAR) + eye_aspect_ratio(mesh, RIGHT_EYE_EAR)) / 2.0
        gaze = gaze_vector(mesh, self.s.GAZE_GAIN)
        eye_open = _ratio(ear, self.s.EAR_CLOSED, self.s.EAR_OPEN) * 100.0
        gaze_dist = float(np.hypot(gaze.x, gaze.y))
        gaze_score = max(0.0, (1.0 - min(gaze_dist, 1.0)) ** 1.5 * 100.0)
        eye_contact = clamp(0.75 * gaze_score + 0.25 * eye_open)

        movement = self._movement(mesh)
        self._previous = mesh.points

        aus = action_units(mesh)
        if aus is None:
            logger.debug("[face] degenerate face scale; emotion defaults to neutral")
            emotion, confidence = "neutral", 0.0
        else:
            emotion, confidence = classify_emotion(aus)

        return FaceSignals(
            eye_contact=round(eye_contact, 2),
            emotion=emotion,
            emotion_confidence=round(confidence, 3),
            facial_movement=round(movement, 2),
            gaze_direction=gaze,
            eye_aspect_ratio=round(ear, 4),
        )

    def _movement(self, mesh: FaceMesh) -> float:
        if self._previous is None:
            return 0.0
        total = 0.0
        for idx in MOVEMENT_POINTS:
            d = distance_3d(mesh.points[idx], self._previous[idx])
            if d > self.s.MOVEMENT_NOISE_FLOOR:
                total += d
        return min(100.0, total / len(MOVEMENT_POINTS) * self.s.MOVEMENT_GAIN)
