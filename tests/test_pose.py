import numpy as np
import pytest

from commscore.models import PoseSkeleton
from commscore.pose import PoseSignalExtractor, neck_upright, shoulder_alignment, torso_straightness


def test_upright_posture(settings, make_pose):
    sig = PoseSignalExtractor(settings).analyze(make_pose())
    assert sig.posture_score == pytest.approx(100.0)
    assert sig.stability == 100.0
    assert sig.torso_straightness == pytest.approx(100.0)


def test_tilted_shoulders(settings, make_pose):
    sk = make_pose(right_shoulder_dy=0.06)
    assert shoulder_alignment(sk) == pytest.approx(70.0)
    sig = PoseSignalExtractor(settings).analyze(sk)
    assert sig.posture_score < 100.0
    assert sig.head_position == pytest.approx(100.0)


def test_head_offset(settings, make_pose):
    sig = PoseSignalExtractor(settings).analyze(make_pose(head_dx=0.1))
    assert sig.head_position == pytest.approx(70.0)


def test_hidden_hips_and_ears_score_neutral(make_pose):
    pts = np.array(make_pose().points)
    pts[[7, 8, 23, 24], 3] = 0.0
    sk = PoseSkeleton(points=pts)
    assert torso_straightness(sk) == 50.0
    assert neck_upright(sk) == 50.0


def test_stability(settings, make_pose):
    px = PoseSignalExtractor(settings)
    base = make_pose()
    px.analyze(base)
    assert px.analyze(base).stability == 100.0
    # five tracked points moving 0.005 each -> half the range
    half = PoseSkeleton(points=base.points + np.array([0.005, 0, 0, 0]))
    assert px.analyze(half).stability == 50.0
    far = PoseSkeleton(points=half.points + np.array([0.05, 0, 0, 0]))
    assert px.analyze(far).stability == 0.0


def test_missing_pose(settings, make_pose):
    px = PoseSignalExtractor(settings)
    px.analyze(make_pose())
    assert px.analyze(None).posture_score == 0.0
    # previous frame dropped, so stability starts over
    shifted = PoseSkeleton(points=make_pose().points + np.array([0.05, 0, 0, 0]))
    assert px.analyze(shifted).stability == 100.0
