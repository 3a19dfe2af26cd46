"""
Posture signals from the 33-point pose skeleton.
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from commscore.config import Settings
from commscore.geometry import angle_between, clamp, distance_3d, midpoint
from commscore.landmarks import PoseIndex, STABILITY_POINTS
from commscore.models import PoseSkeleton, PoseSignals

logger = logging.getLogger(__name__)

SHOULDER_GAIN = 500.0     # per unit of y difference
HEAD_GAIN = 300.0         # per unit of nose/shoulder-midpoint x offset
TORSO_GAIN = 2.5          # per degree off vertical
NECK_GAIN = 2.0           # per degree of left/right ear angle difference
STABILITY_GAIN = 20.0
NEUTRAL_SCORE = 50.0

POSTURE_WEIGHTS = {
    "shoulder_alignment": 0.25,
    "head_position": 0.20,
    "torso_straightness": 0.30,
    "neck_upright": 0.25,
}


def shoulder_alignment(sk: PoseSkeleton) -> float:
    ly = sk.point(PoseIndex.LEFT_SHOULDER)[1]
    ry = sk.point(PoseIndex.RIGHT_SHOULDER)[1]
    return clamp(100.0 - abs(ly - ry) * SHOULDER_GAIN)


def head_position(sk: PoseSkeleton) -> float:
    mid = midpoint(sk.point(PoseIndex.LEFT_SHOULDER), sk.point(PoseIndex.RIGHT_SHOULDER))
    return clamp(100.0 - abs(sk.point(PoseIndex.NOSE)[0] - mid[0]) * HEAD_GAIN)


def torso_straightness(sk: PoseSkeleton, min_visibility: float = 0.5) -> float:
    """
    Angle at the shoulder midpoint between the hip midpoint and a horizontal
    reference; an upright torso sits at 90 degrees.
    """
    if not (sk.visible(PoseIndex.LEFT_HIP, min_visibility) and sk.visible(PoseIndex.RIGHT_HIP, min_visibility)):
        return NEUTRAL_SCORE
    shoulders = midpoint(sk.xy(PoseIndex.LEFT_SHOULDER), sk.xy(PoseIndex.RIGHT_SHOULDER))
    hips = midpoint(sk.xy(PoseIndex.LEFT_HIP), sk.xy(PoseIndex.RIGHT_HIP))
    if np.allclose(shoulders, hips):
        return NEUTRAL_SCORE
    angle = angle_between(hips, shoulders, shoulders + np.array([1.0, 0.0]))
    return clamp(100.0 - abs(angle - 90.0) * TORSO_GAIN)


def neck_upright(sk: PoseSkeleton, min_visibility: float = 0.5) -> float:
    """Compare each side's shoulder-to-ear angle from vertical (head tilt)."""
    if not (sk.visible(PoseIndex.LEFT_EAR, min_visibility) and sk.visible(PoseIndex.RIGHT_EAR, min_visibility)):
        return NEUTRAL_SCORE
    up = np.array([0.0, -1.0])
    sides = []
    for ear, shoulder in ((PoseIndex.LEFT_EAR, PoseIndex.LEFT_SHOULDER),
                          (PoseIndex.RIGHT_EAR, PoseIndex.RIGHT_SHOULDER)):
        s = sk.xy(shoulder)
        sides.append(angle_between(sk.xy(ear), s, s + up))
    return clamp(100.0 - abs(sides[0] - sides[1]) * NECK_GAIN)


class PoseSignalExtractor:
    """Per-session posture analyzer; keeps only the previous skeleton."""
    def __init__(self, settings: Settings):
        self.s = settings
        self._previous: Optional[np.ndarray] = None

    def reset(self):
        self._previous = None

    def analyze(self, skeleton: Optional[PoseSkeleton]) -> PoseSignals:
        if skeleton is None:
            self._previous = None
            return PoseSignals()

        parts = {
            "shoulder_alignment": shoulder_alignment(skeleton),
            "head_position": head_position(skeleton),
            "torso_straightness": torso_straightness(skeleton, self.s.MIN_VISIBILITY),
            "neck_upright": neck_upright(skeleton, self.s.MIN_VISIBILITY),
        }
        posture = sum(parts[k] * w for k, w in POSTURE_WEIGHTS.items())

        stability = self._stability(skeleton)
        self._previous = skeleton.points

        return PoseSignals(
            posture_score=round(clamp(posture), 2),
            stability=stability,
            **{k: round(v, 2) for k, v in parts.items()},
        )

    def _stability(self, skeleton: PoseSkeleton) -> float:
        if self._previous is None:
            return 100.0
        total = sum(distance_3d(skeleton.points[i], self._previous[i]) for i in STABILITY_POINTS)
        return float(round((1.0 - min(total * STABILITY_GAIN, 1.0)) * 100.0))
