"""
Offline replay of a recorded audio file through the audio extractor.
"""
from __future__ import annotations

import logging
import os
from typing import Iterator, List, Optional

import librosa
import numpy as np

from commscore.audio import AudioSignalExtractor
from commscore.config import Settings
from commscore.models import AudioSignals

logger = logging.getLogger(__name__)


def load_audio_windows(audio_path: str, settings: Settings, hop: Optional[int] = None) -> Iterator[np.ndarray]:
    """
    Load mono audio at the session sample rate and yield consecutive windows
    of AUDIO_WINDOW_SIZE samples. A trailing partial window is dropped.

    Args:
        audio_path: Path to an audio file readable by librosa.
        settings: Session settings (sample rate and window size).
        hop: Samples between window starts; defaults to the window size.
    """
    if not os.path.exists(audio_path):
        raise FileNotFoundError(f"Audio not found: {audio_path}")

    size = int(settings.AUDIO_WINDOW_SIZE)
    step = size if hop is None else int(hop)
    if step <= 0:
        raise ValueError(f"hop must be positive, got {step}")

    y, sr = librosa.load(audio_path, sr=settings.AUDIO_SAMPLE_RATE, mono=True)
    logger.debug(f"[replay] loaded {audio_path} samples={len(y)} sr={sr}")
    for start in range(0, len(y) - size + 1, step):
        yield y[start:start + size]


def replay_audio(audio_path: str, settings: Settings, hop: Optional[int] = None) -> List[AudioSignals]:
    """Run a fresh AudioSignalExtractor over every window of a file."""
    extractor = AudioSignalExtractor(settings)
    out = [extractor.analyze(w) for w in load_audio_windows(audio_path, settings, hop)]
    logger.debug(f"[replay] analyzed {len(out)} windows voiced={sum(1 for a in out if a.voiced)}")
    return out
