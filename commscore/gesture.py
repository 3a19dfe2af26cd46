"""
Gesture variety and hand visibility from recognized gesture labels.
"""
from __future__ import annotations
from collections import deque
from typing import Deque, Iterable

from commscore.config import Settings
from commscore.models import GestureSignals

# Recognizer placeholder for "hand seen, no known gesture"
NO_GESTURE = "None"


class GestureSignalExtractor:
    """Rolling history of gesture labels (oldest evicted on overflow)."""
    def __init__(self, settings: Settings):
        self.s = settings
        self._history: Deque[str] = deque(maxlen=settings.GESTURE_HISTORY_SIZE)

    def reset(self):
        self._history.clear()

    def analyze(self, labels: Iterable[str], hand_count: int = 0) -> GestureSignals:
        labels = list(labels or [])
        for label in labels:
            label = (label or "").strip()
            if label and label != NO_GESTURE:
                self._history.append(label)

        patterns = list(dict.fromkeys(self._history))
        return GestureSignals(
            gesture_count=len(labels),
            gesture_variety=min(100.0, len(patterns) * 20.0),
            hand_visibility=min(100.0, max(int(hand_count), 0) * 50.0),
            movement_patterns=patterns,
        )
