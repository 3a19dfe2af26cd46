import math
import numpy as np
from commscore.geometry import angle_between, clamp, distance_2d, distance_3d, midpoint, normalize


def test_distances():
    assert distance_2d((0, 0), (3, 4)) == 5.0
    assert distance_3d((0, 0, 0), (1, 2, 2)) == 3.0
    # 2-D distance ignores z
    assert distance_2d((0, 0, 5), (3, 4, 0)) == 5.0
    assert np.allclose(midpoint((0, 0), (2, 4)), (1, 2))


def test_angle_between():
    assert math.isclose(angle_between((1, 0), (0, 0), (0, 1)), 90.0)
    assert math.isclose(angle_between((-1, 0, 0), (0, 0, 0), (1, 0, 0)), 180.0)
    assert math.isclose(angle_between((1, 1), (0, 0), (2, 2)), 0.0, abs_tol=1e-5)
    # zero-length arm
    assert angle_between((0, 0), (0, 0), (1, 0)) == 0.0


def test_normalize_and_clamp():
    assert np.allclose(normalize((3, 4)), (0.6, 0.8))
    assert not normalize((0, 0, 0)).any()
    assert clamp(150) == 100
    assert clamp(-3) == 0
    assert clamp(float("nan")) == 0
    assert clamp(float("inf"), -1, 1) == -1
    assert clamp(0.5, -1, 1) == 0.5
