"""
Configuration for the signal extraction and fusion pipeline.
"""
from pydantic import BaseModel

CONTEXTS = ("professional", "presentation", "casual")


class Settings(BaseModel):
    """
    Session settings. Every tunable threshold of the pipeline lives here so a
    host can change sensitivity without touching code.
    """
    # Fusion
    FUSION_CONTEXT: str = "presentation"
    HISTORY_SIZE: int = 10
    SMOOTHING_ALPHA: float = 0.3

    # Zero-state predicate (empirically tuned)
    ZERO_EYE_CONTACT: float = 5.0
    ZERO_POSTURE: float = 5.0
    ZERO_SILENCE_DB: float = -55.0
    ZERO_SPEECH_CLARITY: float = 5.0

    # Confidence penalties
    LOW_EYE_CONTACT: float = 10.0
    LOW_VOLUME_DB: float = -50.0
    LOW_EMOTION_CONFIDENCE: float = 0.3
    LOW_AUDIO_CLARITY: float = 20.0

    # Audio
    AUDIO_SAMPLE_RATE: int = 16000
    AUDIO_WINDOW_SIZE: int = 2048
    SILENCE_DB: float = -100.0
    NOISE_CALIBRATION_FRAMES: int = 20
    DEFAULT_NOISE_FLOOR_DB: float = -55.0
    VOICE_THRESHOLD_DB: float = -45.0
    MIN_SNR_DB: float = 3.0
    PITCH_MIN_HZ: float = 75.0
    PITCH_MAX_HZ: float = 600.0
    PITCH_CORRELATION_THRESHOLD: float = 0.5
    AUDIO_HISTORY_SIZE: int = 30
    SPEECH_CENTROID_HZ: float = 1500.0

    # Vision
    GESTURE_HISTORY_SIZE: int = 30
    MIN_VISIBILITY: float = 0.5
    GAZE_GAIN: float = 2.2
    EAR_CLOSED: float = 0.15
    EAR_OPEN: float = 0.30
    MOVEMENT_NOISE_FLOOR: float = 0.001
    MOVEMENT_GAIN: float = 20000.0

    def __init__(self, **data):
        super().__init__(**data)
        # Normalize FUSION_CONTEXT: strip, lower-case, validate
        ctx = (self.FUSION_CONTEXT or "presentation").strip().lower()
        if ctx not in CONTEXTS:
            ctx = "presentation"
        object.__setattr__(self, "FUSION_CONTEXT", ctx)
