"""
Multi-modal fusion: normalize, aggregate, context-weight, confidence-score
and temporally smooth one frame of raw metrics.
"""
from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Deque, Dict, List, Optional

from commscore.config import CONTEXTS, Settings
from commscore.geometry import clamp
from commscore.models import FusedMetrics, RawMetrics

logger = logging.getLogger(__name__)

DIMENSIONS = (
    "eye_contact",
    "posture",
    "body_language",
    "facial_expression",
    "voice_quality",
    "speech_clarity",
    "content_engagement",
)

# Each row sums to 1.0
CONTEXT_WEIGHTS: Dict[str, Dict[str, float]] = {
    "professional": {
        "eye_contact": 0.20, "posture": 0.15, "body_language": 0.10, "facial_expression": 0.15,
        "voice_quality": 0.15, "speech_clarity": 0.15, "content_engagement": 0.10,
    },
    "presentation": {
        "eye_contact": 0.25, "posture": 0.15, "body_language": 0.15, "facial_expression": 0.10,
        "voice_quality": 0.10, "speech_clarity": 0.15, "content_engagement": 0.10,
    },
    "casual": {
        "eye_contact": 0.15, "posture": 0.10, "body_language": 0.10, "facial_expression": 0.20,
        "voice_quality": 0.15, "speech_clarity": 0.15, "content_engagement": 0.15,
    },
}

OPTIMAL_WPM = (120.0, 150.0)
FAST_WPM_PENALTY = 0.5      # points lost per WPM above the optimal band
FAST_WPM_FLOOR = 50.0


def normalize_volume(volume_db: float) -> float:
    """dB in [-60, 0] -> [0, 100]."""
    return clamp((volume_db + 60.0) / 60.0 * 100.0)


def normalize_wpm(wpm: float) -> float:
    """Optimal band scores 100; slower scales linearly, faster is penalized down to a floor."""
    wpm = clamp(wpm, 0.0, float("inf"))
    lo, hi = OPTIMAL_WPM
    if wpm == 0:
        return 0.0
    if lo <= wpm <= hi:
        return 100.0
    if wpm < lo:
        return wpm / lo * 100.0
    return max(FAST_WPM_FLOOR, 100.0 - (wpm - hi) * FAST_WPM_PENALTY)


def weighted_average(items: List[tuple]) -> float:
    total = sum(w for _, w in items)
    if total == 0:
        return 0.0
    return sum(v * w for v, w in items) / total


class FusionEngine:
    """
    Stateful aggregator across frames. Owns the smoothing history and the
    active context; every public method holds the engine lock so at most one
    call mutates state at a time.
    """
    def __init__(self, settings: Settings):
        self.s = settings
        self.alpha = float(settings.SMOOTHING_ALPHA)
        self._context = settings.FUSION_CONTEXT
        self._history: Deque[FusedMetrics] = deque(maxlen=settings.HISTORY_SIZE)
        self._state = "active"
        self._last_features: Optional[Dict[str, float]] = None
        self._lock = threading.Lock()

    # ---- context ----
    @property
    def context(self) -> str:
        return self._context

    def set_context(self, name: str) -> bool:
        """Switch the weighting context. Unknown names are ignored (returns False)."""
        key = (name or "").strip().lower()
        with self._lock:
            if key not in CONTEXTS:
                logger.warning(f"[fusion] unknown context {name!r}; keeping {self._context!r}")
                return False
            if key != self._context:
                logger.debug(f"[fusion] context {self._context} -> {key}")
            self._context = key
            return True

    # ---- state ----
    @property
    def state(self) -> str:
        """'zero' when the last frame hit the zero-state predicate, else 'active'."""
        return self._state

    @property
    def last_features(self) -> Optional[Dict[str, float]]:
        """Unsmoothed dimension scores (and overall) of the last active frame."""
        return dict(self._last_features) if self._last_features is not None else None

    def get_history(self) -> List[FusedMetrics]:
        with self._lock:
            return list(self._history)

    def reset(self):
        with self._lock:
            self._history.clear()
            self._state = "active"
            self._last_features = None

    # ---- pipeline steps ----
    def is_zero_state(self, raw: RawMetrics) -> bool:
        s = self.s
        no_vision = clamp(raw.eye_contact) < s.ZERO_EYE_CONTACT and clamp(raw.posture_score) < s.ZERO_POSTURE
        no_speech = raw.words_per_minute == 0
        silent = clamp(raw.volume, s.SILENCE_DB, 0.0) < s.ZERO_SILENCE_DB
        unclear = clamp(raw.clarity_score) < s.ZERO_SPEECH_CLARITY
        return no_vision and ((silent and no_speech) or (no_speech and unclear))

    def normalize(self, raw: RawMetrics) -> Dict[str, float]:
        return {
            "eye_contact": clamp(raw.eye_contact),
            "posture_score": clamp(raw.posture_score),
            "shoulder_alignment": clamp(raw.shoulder_alignment),
            "head_position": clamp(raw.head_position),
            "gesture_variety": clamp(raw.gesture_variety),
            "hand_visibility": clamp(raw.hand_visibility),
            "emotion_confidence": clamp(raw.emotion_confidence * 100.0),
            "pitch_variation": clamp(raw.pitch_variation),
            "volume": normalize_volume(raw.volume),
            "volume_variation": clamp(raw.volume_variation),
            "audio_clarity": clamp(raw.clarity),
            "energy": clamp(raw.energy),
            "pace": normalize_wpm(raw.words_per_minute),
            "filler": 100.0 - min(100.0, clamp(raw.filler_percentage, 0.0, float("inf")) * 2.0),
            "speech_clarity": clamp(raw.clarity_score),
            "fluency": clamp(raw.fluency_score),
            "articulation": clamp(raw.articulation_score),
        }

    @staticmethod
    def aggregate(n: Dict[str, float]) -> Dict[str, float]:
        return {
            "eye_contact": n["eye_contact"],
            "posture": weighted_average([
                (n["posture_score"], 0.5), (n["shoulder_alignment"], 0.3), (n["head_position"], 0.2),
            ]),
            "body_language": weighted_average([(n["gesture_variety"], 0.6), (n["hand_visibility"], 0.4)]),
            "facial_expression": n["emotion_confidence"],
            "voice_quality": weighted_average([
                (n["volume"], 0.3), (n["audio_clarity"], 0.4), (n["energy"], 0.3),
            ]),
            "speech_clarity": weighted_average([
                (n["speech_clarity"], 0.4), (n["articulation"], 0.3), (n["fluency"], 0.3),
            ]),
            "content_engagement": weighted_average([(n["pace"], 0.5), (n["filler"], 0.5)]),
        }

    def overall(self, features: Dict[str, float]) -> float:
        weights = CONTEXT_WEIGHTS[self._context]
        return clamp(sum(features[d] * weights[d] for d in DIMENSIONS))

    def confidence(self, raw: RawMetrics) -> float:
        s = self.s
        score = 100.0
        if clamp(raw.eye_contact) < s.LOW_EYE_CONTACT:
            score -= 20
        if clamp(raw.volume, s.SILENCE_DB, 0.0) < s.LOW_VOLUME_DB:
            score -= 15
        if raw.words_per_minute == 0:
            score -= 10
        if clamp(raw.emotion_confidence, 0.0, 1.0) < s.LOW_EMOTION_CONFIDENCE:
            score -= 10
        if clamp(raw.clarity) < s.LOW_AUDIO_CLARITY:
            score -= 10
        return clamp(score)

    def smooth(self, current: FusedMetrics) -> FusedMetrics:
        """EMA against the newest history entry; the first frame passes through."""
        if not self._history:
            return current
        prev = self._history[-1].model_dump()
        cur = current.model_dump()
        a = self.alpha
        return FusedMetrics(**{k: a * cur[k] + (1.0 - a) * prev[k] for k in cur})

    # ---- main entry ----
    def fuse(self, raw: RawMetrics) -> FusedMetrics:
        with self._lock:
            if self.is_zero_state(raw):
                if self._state != "zero":
                    logger.debug("[fusion] entering zero-state (no face, posture or speech)")
                self._state = "zero"
                return FusedMetrics()
            if self._state == "zero":
                logger.debug("[fusion] leaving zero-state")
            self._state = "active"

            features = self.aggregate(self.normalize(raw))
            overall = self.overall(features)
            self._last_features = {**features, "overall_score": overall}

            current = FusedMetrics(**features, overall_score=overall, confidence=self.confidence(raw))
            smoothed = self.smooth(current)
            self._history.append(smoothed)
            return smoothed
