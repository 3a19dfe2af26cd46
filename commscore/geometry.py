"""
Vector, distance and angle helpers shared by the face and pose extractors.
"""
from __future__ import annotations
import math
import numpy as np


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    """Clamp into [lo, hi]; NaN and infinities collapse to `lo`."""
    v = float(value)
    if not math.isfinite(v):
        return float(lo)
    return max(lo, min(hi, v))


def distance_2d(a, b) -> float:
    return math.hypot(float(a[0]) - float(b[0]), float(a[1]) - float(b[1]))


def distance_3d(a, b) -> float:
    d = np.asarray(a, dtype=float)[:3] - np.asarray(b, dtype=float)[:3]
    return float(np.sqrt(np.dot(d, d)))


def midpoint(a, b) -> np.ndarray:
    return (np.asarray(a, dtype=float) + np.asarray(b, dtype=float)) / 2.0


def normalize(v) -> np.ndarray:
    """Unit vector of `v`, or the zero vector when `v` has no length."""
    arr = np.asarray(v, dtype=float)
    n = float(np.linalg.norm(arr))
    if n == 0.0 or not math.isfinite(n):
        return np.zeros_like(arr)
    return arr / n


def angle_between(a, b, c) -> float:
    """
    Angle at vertex `b` formed by `a-b-c`, in degrees.

    The cosine is clamped to [-1, 1] before `acos` so floating-point drift
    never produces a domain error. A zero-length arm yields 0.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    c = np.asarray(c, dtype=float)
    n = min(len(a), len(b), len(c))
    v1 = normalize(a[:n] - b[:n])
    v2 = normalize(c[:n] - b[:n])
    if not v1.any() or not v2.any():
        return 0.0
    cos = max(-1.0, min(1.0, float(np.dot(v1, v2))))
    return math.degrees(math.acos(cos))
