"""
Voice signal extraction from fixed-size audio windows.

Per window:
- RMS volume (dB) and SNR against a median-calibrated noise floor
- Voice gate: quiet / noise-level windows return the all-zero record and
  clear the rolling histories
- Autocorrelation pitch with parabolic refinement and a harmonic check
- Spectral centroid, zero-crossing rate, spectral energy
- Composite clarity and voice-quality scores, pitch / volume variation
"""
from __future__ import annotations

import logging
import math
from collections import deque
from typing import Deque, List, Optional, Tuple

import librosa
import numpy as np

from commscore.config import Settings
from commscore.geometry import clamp
from commscore.models import AudioSignals

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Tuning knobs
# -----------------------------------------------------------------------------
PEAK_TOLERANCE = 0.95        # earliest peak within this share of the best wins (octave guard)
HARMONICS = (2, 3, 4, 5)
HARMONIC_MIN_RATIO = 0.1     # harmonic magnitude / fundamental magnitude to count as present
SPECTRUM_MIN_DB = -100.0     # spectrum level floor -> 0
SPECTRUM_MAX_DB = -30.0      # spectrum level ceiling -> 1
CLARITY_BLEND_AFTER = 5      # clarity history length before blending kicks in
CLARITY_WEIGHTS = {"snr": 0.5, "zcr": 0.15, "centroid": 0.15, "energy": 0.2}
# -----------------------------------------------------------------------------


class NoiseFloorCalibration:
    """
    Collects the first N window volumes and fixes the noise floor at their
    median. Immutable once calibrated until reset.
    """
    def __init__(self, frames: int = 20, default_db: float = -55.0):
        self.frames = int(frames)
        self.default_db = float(default_db)
        self._samples: List[float] = []
        self._floor: Optional[float] = None

    @property
    def calibrated(self) -> bool:
        return self._floor is not None

    @property
    def noise_floor(self) -> Optional[float]:
        return self._floor

    @property
    def floor(self) -> float:
        """Calibrated floor, or the provisional default before calibration."""
        return self._floor if self._floor is not None else self.default_db

    def observe(self, volume_db: float) -> bool:
        """Feed one window volume. Returns True on the frame calibration completes."""
        if self._floor is not None:
            return False
        self._samples.append(float(volume_db))
        if len(self._samples) >= self.frames:
            self._floor = float(np.median(self._samples))
            logger.info(f"[audio] noise floor calibrated at {self._floor:.1f} dB from {len(self._samples)} frames")
            return True
        return False

    def reset(self):
        self._samples = []
        self._floor = None


def magnitude_spectrum(samples: np.ndarray) -> np.ndarray:
    """Hann-windowed magnitude spectrum of exactly one frame (n_fft = len(samples))."""
    n = len(samples)
    stft = librosa.stft(samples, n_fft=n, hop_length=n, center=False, window="hann")
    return np.abs(stft[:, 0])


def normalized_autocorrelation(x: np.ndarray) -> np.ndarray:
    """
    r[k] = sum(x[i] x[i+k]) / sqrt(sum(x[:n-k]^2) * sum(x[k:]^2)), via FFT.
    """
    n = len(x)
    nfft = 1 << (2 * n - 1).bit_length()
    spec = np.fft.rfft(x, nfft)
    acf = np.fft.irfft(spec * np.conj(spec), nfft)[:n]
    sq = np.concatenate(([0.0], np.cumsum(x * x)))
    lags = np.arange(n)
    denom = np.sqrt(sq[n - lags] * (sq[n] - sq[lags]))
    r = np.zeros(n)
    ok = denom > 1e-12
    r[ok] = acf[ok] / denom[ok]
    return r


def harmonic_share(spectrum: np.ndarray, f0: float, sample_rate: int) -> float:
    """Share of harmonics 2x-5x that rise above a fraction of the fundamental."""
    n_fft = (len(spectrum) - 1) * 2
    if n_fft <= 0 or f0 <= 0:
        return 0.0
    b0 = int(round(f0 * n_fft / sample_rate))
    if b0 <= 0 or b0 >= len(spectrum):
        return 0.0
    fund = float(spectrum[max(0, b0 - 1): b0 + 2].max())
    if fund <= 0:
        return 0.0
    checked = present = 0
    for k in HARMONICS:
        b = int(round(k * f0 * n_fft / sample_rate))
        if b >= len(spectrum):
            break
        checked += 1
        if float(spectrum[max(0, b - 1): b + 2].max()) >= HARMONIC_MIN_RATIO * fund:
            present += 1
    return present / checked if checked else 0.0


def detect_pitch(
    samples: np.ndarray,
    sample_rate: int,
    min_hz: float = 75.0,
    max_hz: float = 600.0,
    threshold: float = 0.5,
    spectrum: Optional[np.ndarray] = None,
) -> Tuple[float, float]:
    """
    Normalized-autocorrelation pitch detector.

    Returns (pitch_hz, confidence). (0.0, 0.0) when no lag in the voice band
    clears `threshold` or the window carries no energy.
    """
    x = np.asarray(samples, dtype=float)
    x = x - x.mean()
    n = len(x)
    if n < 4 or float(np.dot(x, x)) <= 1e-12:
        return 0.0, 0.0

    min_lag = max(2, int(math.floor(sample_rate / max_hz)))
    max_lag = min(n - 2, int(math.ceil(sample_rate / min_hz)))
    if min_lag >= max_lag:
        return 0.0, 0.0

    r = normalized_autocorrelation(x)
    band = r[min_lag: max_lag + 1]
    best = float(band.max())
    if best < threshold:
        return 0.0, 0.0

    lag = min_lag + int(np.argmax(band))
    for k in range(min_lag, max_lag + 1):
        if r[k] >= PEAK_TOLERANCE * best and r[k] >= r[k - 1] and r[k] >= r[k + 1]:
            lag = k
            break

    # Parabolic interpolation for sub-sample accuracy
    y0, y1, y2 = r[lag - 1], r[lag], r[lag + 1]
    denom = y0 - 2.0 * y1 + y2
    shift = 0.5 * (y0 - y2) / denom if denom != 0 else 0.0
    shift = max(-0.5, min(0.5, float(shift)))
    pitch = sample_rate / (lag + shift)

    share = harmonic_share(spectrum, pitch, sample_rate) if spectrum is not None else 0.0
    confidence = clamp(0.8 * float(r[lag]) + 0.2 * share, 0.0, 1.0)
    return float(pitch), confidence


def coefficient_of_variation(values) -> float:
    if len(values) < 2:
        return 0.0
    arr = np.asarray(values, dtype=float)
    mean = float(arr.mean())
    if mean == 0:
        return 0.0
    return float(arr.std()) / abs(mean)


class AudioSignalExtractor:
    """
    Per-session audio analyzer. Window length and sample rate are fixed at
    construction and must stay constant for the session.
    """
    def __init__(self, settings: Settings):
        self.s = settings
        self.window_size = int(settings.AUDIO_WINDOW_SIZE)
        self.sample_rate = int(settings.AUDIO_SAMPLE_RATE)
        self._validate()

        self.calibration = NoiseFloorCalibration(settings.NOISE_CALIBRATION_FRAMES, settings.DEFAULT_NOISE_FLOOR_DB)
        self._pitch_history: Deque[float] = deque(maxlen=settings.AUDIO_HISTORY_SIZE)
        self._volume_history: Deque[float] = deque(maxlen=settings.AUDIO_HISTORY_SIZE)
        self._clarity_history: Deque[float] = deque(maxlen=settings.AUDIO_HISTORY_SIZE)

    def _validate(self):
        n = self.window_size
        if n < 256 or n & (n - 1):
            raise ValueError(f"AUDIO_WINDOW_SIZE must be a power of two >= 256, got {n}")
        if self.sample_rate <= 0:
            raise ValueError(f"AUDIO_SAMPLE_RATE must be positive, got {self.sample_rate}")
        if not (0 < self.s.PITCH_MIN_HZ < self.s.PITCH_MAX_HZ):
            raise ValueError(f"invalid pitch band {self.s.PITCH_MIN_HZ}-{self.s.PITCH_MAX_HZ} Hz")
        if math.ceil(self.sample_rate / self.s.PITCH_MIN_HZ) > n - 2:
            raise ValueError(
                f"window of {n} samples is too short for {self.s.PITCH_MIN_HZ} Hz at {self.sample_rate} Hz"
            )

    @property
    def calibrated(self) -> bool:
        return self.calibration.calibrated

    @property
    def noise_floor(self) -> Optional[float]:
        return self.calibration.noise_floor

    def reset(self):
        self.calibration.reset()
        self._clear_histories()

    def _clear_histories(self):
        self._pitch_history.clear()
        self._volume_history.clear()
        self._clarity_history.clear()

    # ---- features ----
    def volume_db(self, x: np.ndarray) -> float:
        n = len(x)
        rms = float(librosa.feature.rms(y=x, frame_length=n, hop_length=n, center=False)[0, 0])
        if rms <= 0 or not math.isfinite(rms):
            return self.s.SILENCE_DB
        return max(self.s.SILENCE_DB, 20.0 * math.log10(rms))

    @staticmethod
    def zero_crossing_rate(x: np.ndarray) -> float:
        n = len(x)
        return float(librosa.feature.zero_crossing_rate(y=x, frame_length=n, hop_length=n, center=False)[0, 0])

    @staticmethod
    def spectral_centroid(spectrum: np.ndarray) -> float:
        total = float(spectrum.sum())
        if total <= 0:
            return 0.0
        return float(np.dot(np.arange(len(spectrum)), spectrum)) / total

    def spectral_energy(self, spectrum: np.ndarray) -> float:
        """RMS of dB levels mapped from [SPECTRUM_MIN_DB, SPECTRUM_MAX_DB] to [0, 1], x100."""
        if spectrum.size == 0:
            return 0.0
        amplitude = spectrum * 2.0 / (self.window_size / 2.0)  # Hann coherent gain ~ 0.5
        db = librosa.amplitude_to_db(amplitude, ref=1.0, top_db=None)
        levels = np.clip((db - SPECTRUM_MIN_DB) / (SPECTRUM_MAX_DB - SPECTRUM_MIN_DB), 0.0, 1.0)
        return float(np.sqrt(np.mean(levels ** 2)) * 100.0)

    def clarity(self, snr: float, zcr: float, centroid_bin: float, energy: float) -> float:
        centroid_hz = centroid_bin * self.sample_rate / self.window_size
        target = self.s.SPEECH_CENTROID_HZ
        parts = {
            "snr": clamp((snr + 5.0) / 35.0 * 100.0),
            "zcr": clamp((1.0 - min(zcr / 0.25, 1.0)) * 100.0),
            "centroid": clamp(100.0 - abs(centroid_hz - target) / target * 100.0),
            "energy": clamp(energy),
        }
        value = sum(parts[k] * w for k, w in CLARITY_WEIGHTS.items())
        if len(self._clarity_history) >= CLARITY_BLEND_AFTER:
            value = 0.8 * value + 0.2 * float(np.mean(self._clarity_history))
        return clamp(value)

    @staticmethod
    def voice_quality(clarity: float, snr: float, energy: float) -> float:
        if clarity < 10 or snr < 5 or energy < 15:
            return 0.0
        return clamp(0.5 * clarity + 0.3 * clamp(snr / 30.0 * 100.0) + 0.2 * clamp(energy))

    # ---- main entry ----
    def analyze(self, samples, spectrum: Optional[np.ndarray] = None) -> AudioSignals:
        """
        Analyze one window. Silence, noise-level input and malformed windows
        return the all-zero record; nothing raises.
        """
        x = np.asarray(samples, dtype=float).reshape(-1)
        if x.shape[0] != self.window_size:
            logger.warning(f"[audio] expected {self.window_size} samples, got {x.shape[0]}; treating as silence")
            self._clear_histories()
            return AudioSignals()
        x = np.clip(np.nan_to_num(x, nan=0.0, posinf=1.0, neginf=-1.0), -1.0, 1.0)

        volume = self.volume_db(x)
        # only quiet windows feed the floor
        if volume <= self.s.VOICE_THRESHOLD_DB:
            self.calibration.observe(volume)
        snr = volume - self.calibration.floor

        if volume <= self.s.VOICE_THRESHOLD_DB or snr <= self.s.MIN_SNR_DB:
            self._clear_histories()
            return AudioSignals()

        if spectrum is not None:
            spectrum = np.nan_to_num(np.abs(np.asarray(spectrum, dtype=float).reshape(-1)))
            if spectrum.shape[0] != self.window_size // 2 + 1:
                logger.warning(
                    f"[audio] expected {self.window_size // 2 + 1} spectrum bins, got {spectrum.shape[0]}; recomputing"
                )
                spectrum = None
        if spectrum is None:
            spectrum = magnitude_spectrum(x)

        pitch, pitch_conf = detect_pitch(
            x, self.sample_rate,
            min_hz=self.s.PITCH_MIN_HZ,
            max_hz=self.s.PITCH_MAX_HZ,
            threshold=self.s.PITCH_CORRELATION_THRESHOLD,
            spectrum=spectrum,
        )
        if pitch > 0:
            self._pitch_history.append(pitch)
        self._volume_history.append(volume)

        zcr = self.zero_crossing_rate(x)
        centroid = self.spectral_centroid(spectrum)
        energy = self.spectral_energy(spectrum)
        clarity = self.clarity(snr, zcr, centroid, energy)
        self._clarity_history.append(clarity)

        return AudioSignals(
            voiced=True,
            pitch=round(pitch, 2),
            pitch_confidence=round(pitch_conf, 3),
            pitch_variation=round(min(100.0, coefficient_of_variation(self._pitch_history) * 100.0), 2),
            volume=round(volume, 2),
            volume_variation=round(min(100.0, coefficient_of_variation(self._volume_history) * 100.0), 2),
            clarity=round(clarity, 2),
            energy=round(energy, 2),
            spectral_centroid=round(centroid, 2),
            zero_crossing_rate=round(zcr, 4),
            snr=round(snr, 2),
            voice_quality=round(self.voice_quality(clarity, snr, energy), 2),
        )
