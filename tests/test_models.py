import numpy as np
import pytest
from pydantic import ValidationError

from commscore.models import (
    FaceMesh, FusedMetrics, Landmark, PoseSkeleton, RawMetrics, FrameInput,
)


def test_pose_skeleton_pads_missing_points():
    sk = PoseSkeleton(points=[Landmark(x=0.5, y=0.2), {"x": 0.4, "y": 0.3, "visibility": 0.9}])
    assert sk.points.shape == (33, 4)
    assert sk.visibility(0) == 1.0
    assert sk.visibility(1) == pytest.approx(0.9)
    # padded points are the zero point with visibility 0
    assert not sk.points[32].any()
    assert not sk.visible(11)


def test_face_mesh_accepts_arrays():
    mesh = FaceMesh(points=np.full((468, 3), 0.5))
    assert mesh.points.shape == (478, 4)
    assert mesh.visibility(0) == 1.0
    assert mesh.visibility(468) == 0.0  # no iris refinement supplied


def test_point_set_rejects_bad_shapes():
    with pytest.raises(ValidationError):
        PoseSkeleton(points=np.zeros((34, 4)))
    with pytest.raises(ValidationError):
        FaceMesh(points=np.zeros((10,)))


def test_point_set_is_immutable_and_finite():
    sk = PoseSkeleton(points=[(np.nan, 0.5, np.inf)])
    assert np.isfinite(sk.points).all()
    with pytest.raises(ValueError):
        sk.points[0, 0] = 1.0


def test_records():
    raw = RawMetrics(eye_contact=80)
    assert raw.volume == -100.0
    with pytest.raises(ValidationError):
        raw.eye_contact = 10
    assert FusedMetrics().overall_score == 0.0
    frame = FrameInput(audio=[0.0, 0.1])
    assert isinstance(frame.audio, np.ndarray)
