"""
One recording session: owns every extractor plus the fusion engine and runs
them per frame.
"""
from __future__ import annotations

import logging
from typing import Optional

from commscore.audio import AudioSignalExtractor
from commscore.config import Settings
from commscore.face import FaceSignalExtractor
from commscore.fusion import FusionEngine
from commscore.gesture import GestureSignalExtractor
from commscore.models import (
    AudioSignals, FaceSignals, FrameInput, FrameResult, GestureSignals,
    PoseSignals, RawMetrics, SpeechMetrics,
)
from commscore.pose import PoseSignalExtractor

logger = logging.getLogger(__name__)


def build_raw_metrics(
    face: FaceSignals,
    pose: PoseSignals,
    gestures: GestureSignals,
    audio: AudioSignals,
    speech: SpeechMetrics,
    silence_db: float = -100.0,
) -> RawMetrics:
    """
    Flatten one frame's extractor outputs. A gated (non-voiced) audio record
    reports the silence sentinel volume so fusion sees the frame as silent.
    """
    return RawMetrics(
        eye_contact=face.eye_contact,
        emotion=face.emotion,
        emotion_confidence=face.emotion_confidence,
        posture_score=pose.posture_score,
        shoulder_alignment=pose.shoulder_alignment,
        head_position=pose.head_position,
        gesture_variety=gestures.gesture_variety,
        hand_visibility=gestures.hand_visibility,
        pitch=audio.pitch,
        pitch_variation=audio.pitch_variation,
        volume=audio.volume if audio.voiced else silence_db,
        volume_variation=audio.volume_variation,
        clarity=audio.clarity,
        energy=audio.energy,
        words_per_minute=speech.words_per_minute,
        filler_count=speech.filler_count,
        filler_percentage=speech.filler_percentage,
        clarity_score=speech.clarity_score,
        fluency_score=speech.fluency_score,
        articulation_score=speech.articulation_score,
    )


def detection_quality(frame: FrameInput) -> float:
    """Share of detectors that saw something this frame, weighted 0.4/0.4/0.2."""
    quality = (
        (0.4 if frame.face is not None else 0.0)
        + (0.4 if frame.pose is not None else 0.0)
        + (0.2 if frame.gestures else 0.0)
    )
    return round(quality * 100.0, 2)


class AnalysisSession:
    """Per-session analyzer bundle. Create one per recording; call process_frame per frame."""
    def __init__(self, settings: Optional[Settings] = None):
        self.s = settings or Settings()
        self.face = FaceSignalExtractor(self.s)
        self.pose = PoseSignalExtractor(self.s)
        self.gestures = GestureSignalExtractor(self.s)
        self.audio = AudioSignalExtractor(self.s)
        self.fusion = FusionEngine(self.s)
        self._last_audio = AudioSignals()
        self._closed = False
        logger.debug(
            f"[session] started context={self.fusion.context} "
            f"sr={self.audio.sample_rate} window={self.audio.window_size}"
        )

    # ---- lifecycle ----
    @property
    def context(self) -> str:
        return self.fusion.context

    def set_context(self, name: str) -> bool:
        return self.fusion.set_context(name)

    def reset(self):
        """Clear every component's state. Safe to call repeatedly."""
        self.face.reset()
        self.pose.reset()
        self.gestures.reset()
        self.audio.reset()
        self.fusion.reset()
        self._last_audio = AudioSignals()

    def cleanup(self):
        if self._closed:
            return
        self.reset()
        self._closed = True
        logger.debug("[session] closed")

    # ---- per frame ----
    def process_frame(self, frame: FrameInput) -> FrameResult:
        if self._closed:
            raise RuntimeError("session is closed; create a new AnalysisSession")

        face = self.face.analyze(frame.face)
        pose = self.pose.analyze(frame.pose)
        gestures = self.gestures.analyze(frame.gestures, frame.hand_count)
        if frame.audio is not None:
            self._last_audio = self.audio.analyze(frame.audio)
        audio = self._last_audio

        raw = build_raw_metrics(face, pose, gestures, audio, frame.speech, self.s.SILENCE_DB)
        fused = self.fusion.fuse(raw)

        quality = detection_quality(frame)
        presence = round(
            (face.eye_contact * 0.3 + pose.posture_score * 0.4 + gestures.gesture_variety * 0.3) * quality / 100.0
        )
        return FrameResult(
            face=face,
            pose=pose,
            gestures=gestures,
            audio=audio,
            raw=raw,
            fused=fused,
            detection_quality=quality,
            presence_score=float(max(0, presence)),
        )
