"""
Pydantic data models for extractor outputs and fusion IO.
"""
from __future__ import annotations
from typing import ClassVar, List, Optional, Literal

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator

from commscore.landmarks import FACE_MESH_WITH_IRIS, POSE_POINTS

EmotionLabel = Literal["happy", "sad", "surprised", "angry", "fear", "disgust", "neutral"]


class Landmark(BaseModel):
    x: float
    y: float
    z: float = 0.0
    visibility: float = 1.0


def _landmark_row(item) -> list[float]:
    if isinstance(item, dict):
        vis = item.get("visibility")
        return [item.get("x", 0.0), item.get("y", 0.0), item.get("z", 0.0) or 0.0,
                1.0 if vis is None else vis]
    if isinstance(item, (list, tuple, np.ndarray)):
        row = [float(v) for v in item]
        if len(row) == 2:
            return row + [0.0, 1.0]
        if len(row) == 3:
            return row + [1.0]
        if len(row) == 4:
            return row
        raise ValueError(f"landmark must have 2-4 components, got {len(row)}")
    # Landmark models and MediaPipe NormalizedLandmark-like objects
    vis = getattr(item, "visibility", None)
    return [getattr(item, "x"), getattr(item, "y"), getattr(item, "z", 0.0) or 0.0,
            1.0 if vis is None else vis]


class PointSet(BaseModel):
    """
    Fixed-size labeled point set stored as an (N, 4) array of
    [x, y, z, visibility]. Missing trailing points are zero with visibility 0.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    SIZE: ClassVar[int] = 0

    points: np.ndarray

    @field_validator("points", mode="before")
    @classmethod
    def _coerce_points(cls, v):
        if isinstance(v, np.ndarray):
            arr = np.asarray(v, dtype=float)
            if arr.ndim != 2 or arr.shape[1] not in (3, 4):
                raise ValueError(f"expected an (N, 3) or (N, 4) array, got shape {arr.shape}")
            if arr.shape[1] == 3:
                arr = np.hstack([arr, np.ones((arr.shape[0], 1))])
        else:
            rows = [_landmark_row(item) for item in (v or [])]
            arr = np.asarray(rows, dtype=float).reshape(-1, 4)

        if arr.shape[0] > cls.SIZE:
            raise ValueError(f"{cls.__name__} holds at most {cls.SIZE} points, got {arr.shape[0]}")

        out = np.zeros((cls.SIZE, 4), dtype=float)
        out[: arr.shape[0]] = np.nan_to_num(arr, nan=0.0, posinf=0.0, neginf=0.0)
        out.setflags(write=False)
        return out

    @classmethod
    def from_landmarks(cls, landmarks) -> "PointSet":
        return cls(points=landmarks)

    def point(self, idx: int) -> np.ndarray:
        """x, y, z of one landmark."""
        return self.points[int(idx), :3]

    def xy(self, idx: int) -> np.ndarray:
        return self.points[int(idx), :2]

    def visibility(self, idx: int) -> float:
        return float(self.points[int(idx), 3])

    def visible(self, idx: int, threshold: float = 0.5) -> bool:
        return self.visibility(idx) >= threshold


class FaceMesh(PointSet):
    """468 face-mesh points plus the 10 optional iris refinement points."""
    SIZE: ClassVar[int] = FACE_MESH_WITH_IRIS


class PoseSkeleton(PointSet):
    """33-point body pose."""
    SIZE: ClassVar[int] = POSE_POINTS


# -----------------------------------------------------------------------------
# Extractor outputs
# -----------------------------------------------------------------------------

class GazeVector(BaseModel):
    x: float = 0.0
    y: float = 0.0


class ActionUnits(BaseModel):
    """FACS-inspired geometric proxies, each in [0, 1]."""
    brow_raise: float = 0.0
    brow_lower: float = 0.0
    cheek_raise: float = 0.0
    nose_wrinkle: float = 0.0
    lip_raise: float = 0.0
    corner_pull: float = 0.0
    corner_depress: float = 0.0
    lip_stretch: float = 0.0
    mouth_open: float = 0.0
    eye_wide: float = 0.0
    eye_squint: float = 0.0


class FaceSignals(BaseModel):
    eye_contact: float = 0.0
    emotion: EmotionLabel = "neutral"
    emotion_confidence: float = 0.0
    facial_movement: float = 0.0
    gaze_direction: GazeVector = Field(default_factory=GazeVector)
    eye_aspect_ratio: float = 0.0


class PoseSignals(BaseModel):
    posture_score: float = 0.0
    shoulder_alignment: float = 0.0
    head_position: float = 0.0
    stability: float = 0.0
    torso_straightness: float = 0.0
    neck_upright: float = 0.0


class GestureSignals(BaseModel):
    gesture_count: int = 0
    gesture_variety: float = 0.0
    hand_visibility: float = 0.0
    movement_patterns: List[str] = Field(default_factory=list)


class AudioSignals(BaseModel):
    voiced: bool = False
    pitch: float = 0.0
    pitch_confidence: float = 0.0
    pitch_variation: float = 0.0
    volume: float = 0.0
    volume_variation: float = 0.0
    clarity: float = 0.0
    energy: float = 0.0
    spectral_centroid: float = 0.0
    zero_crossing_rate: float = 0.0
    snr: float = 0.0
    voice_quality: float = 0.0


class SpeechMetrics(BaseModel):
    """Pace and filler metrics supplied by the external speech pipeline."""
    words_per_minute: float = 0.0
    filler_count: int = 0
    filler_percentage: float = 0.0
    clarity_score: float = 0.0
    fluency_score: float = 0.0
    articulation_score: float = 0.0


# -----------------------------------------------------------------------------
# Fusion IO
# -----------------------------------------------------------------------------

class RawMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    # vision
    eye_contact: float = 0.0
    emotion: str = "neutral"
    emotion_confidence: float = 0.0   # 0-1
    posture_score: float = 0.0
    shoulder_alignment: float = 0.0
    head_position: float = 0.0
    gesture_variety: float = 0.0
    hand_visibility: float = 0.0

    # audio
    pitch: float = 0.0
    pitch_variation: float = 0.0
    volume: float = -100.0            # dB, silence sentinel by default
    volume_variation: float = 0.0
    clarity: float = 0.0
    energy: float = 0.0

    # speech
    words_per_minute: float = 0.0
    filler_count: int = 0
    filler_percentage: float = 0.0
    clarity_score: float = 0.0
    fluency_score: float = 0.0
    articulation_score: float = 0.0


class FusedMetrics(BaseModel):
    eye_contact: float = 0.0
    posture: float = 0.0
    body_language: float = 0.0
    facial_expression: float = 0.0
    voice_quality: float = 0.0
    speech_clarity: float = 0.0
    content_engagement: float = 0.0
    overall_score: float = 0.0
    confidence: float = 0.0


# -----------------------------------------------------------------------------
# Session IO
# -----------------------------------------------------------------------------

class FrameInput(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    face: Optional[FaceMesh] = None
    pose: Optional[PoseSkeleton] = None
    gestures: List[str] = Field(default_factory=list)
    hand_count: int = 0
    audio: Optional[np.ndarray] = None
    speech: SpeechMetrics = Field(default_factory=SpeechMetrics)

    @field_validator("audio", mode="before")
    @classmethod
    def _coerce_audio(cls, v):
        if v is None:
            return None
        return np.asarray(v, dtype=float).reshape(-1)


class FrameResult(BaseModel):
    face: FaceSignals
    pose: PoseSignals
    gestures: GestureSignals
    audio: AudioSignals
    raw: RawMetrics
    fused: FusedMetrics
    detection_quality: float = 0.0
    presence_score: float = 0.0
