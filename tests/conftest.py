import numpy as np
import pytest

from commscore.config import Settings
from commscore.models import FaceMesh, PoseSkeleton


def _face_points(iris_dx: float = 0.0, smile: bool = False, closed: bool = False,
                 surprised: bool = False) -> np.ndarray:
    """Neutral frontal face in normalized image space: height 0.6, width 0.4."""
    pts = np.zeros((478, 4))
    pts[:, :2] = 0.5
    pts[:, 3] = 1.0

    def put(i, x, y):
        pts[i, 0], pts[i, 1] = x, y

    put(10, .5, .2); put(152, .5, .8); put(234, .3, .5); put(454, .7, .5)

    top, bottom = (.40, .40) if closed else (.3875, .4125)
    # left eye: corners, EAR lids, mid lids
    put(33, .36, .40); put(133, .44, .40)
    put(160, .38, top); put(158, .42, top); put(153, .42, bottom); put(144, .38, bottom)
    put(159, .40, top); put(145, .40, bottom)
    # right eye
    put(362, .56, .40); put(263, .64, .40)
    put(385, .58, top); put(387, .62, top); put(373, .62, bottom); put(380, .58, bottom)
    put(386, .60, top); put(374, .60, bottom)
    # iris centres
    put(468, .40 + iris_dx, .40); put(473, .60 + iris_dx, .40)
    # brows
    put(105, .40, .34); put(334, .60, .34); put(107, .46, .345); put(336, .54, .345)
    # nose and cheeks
    put(168, .5, .40); put(1, .5, .55); put(205, .40, .55); put(425, .60, .55)
    # mouth
    put(0, .5, .66); put(13, .5, .675); put(14, .5, .685)
    if surprised:
        # brows lifted, jaw dropped around the same lip centre
        put(105, .40, .29); put(334, .60, .29); put(107, .46, .295); put(336, .54, .295)
        put(0, .5, .63); put(13, .5, .635); put(14, .5, .725)
    if smile:
        put(61, .40, .655); put(291, .60, .655)
    else:
        put(61, .44, .68); put(291, .56, .68)
    return pts


def _pose_points(right_shoulder_dy: float = 0.0, head_dx: float = 0.0) -> np.ndarray:
    """Upright seated skeleton facing the camera."""
    pts = np.zeros((33, 4))
    pts[:, 3] = 1.0

    def put(i, x, y):
        pts[i, 0], pts[i, 1] = x, y

    put(0, .5 + head_dx, .2)
    put(2, .47 + head_dx, .18); put(5, .53 + head_dx, .18)
    put(7, .45 + head_dx, .2); put(8, .55 + head_dx, .2)
    put(11, .4, .3); put(12, .6, .3 + right_shoulder_dy)
    put(13, .35, .45); put(14, .65, .45)
    put(15, .35, .6); put(16, .65, .6)
    put(23, .42, .6); put(24, .58, .6)
    return pts


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def make_face():
    def _make(**kw):
        return FaceMesh(points=_face_points(**kw))
    return _make


@pytest.fixture
def make_pose():
    def _make(**kw):
        return PoseSkeleton(points=_pose_points(**kw))
    return _make


@pytest.fixture
def sine():
    def _sine(freq=200.0, sr=16000, n=2048, amp=0.5):
        t = np.arange(n) / float(sr)
        return amp * np.sin(2 * np.pi * freq * t)
    return _sine
