import numpy as np
import pytest

from commscore.face import FaceSignalExtractor, action_units, classify_emotion, eye_aspect_ratio, gaze_vector
from commscore.landmarks import LEFT_EYE_EAR
from commscore.models import ActionUnits, FaceMesh


def test_neutral_face_looking_at_camera(settings, make_face):
    fx = FaceSignalExtractor(settings)
    sig = fx.analyze(make_face())
    assert sig.eye_contact == pytest.approx(100.0)
    assert sig.emotion == "neutral"
    assert sig.emotion_confidence == pytest.approx(1.0)
    assert sig.facial_movement == 0.0  # no previous frame
    assert sig.eye_aspect_ratio == pytest.approx(0.3125)


def test_averted_gaze_lowers_eye_contact(settings, make_face):
    fx = FaceSignalExtractor(settings)
    centred = fx.analyze(make_face()).eye_contact
    averted = fx.analyze(make_face(iris_dx=0.03))
    assert averted.eye_contact < centred
    assert averted.eye_contact == pytest.approx(25.0)
    assert averted.gaze_direction.x == 1.0


def test_gaze_is_bounded(make_face):
    g = gaze_vector(make_face(iris_dx=0.5))
    assert -1.0 <= g.x <= 1.0 and -1.0 <= g.y <= 1.0


def test_closed_eyes(settings, make_face):
    mesh = make_face(closed=True)
    assert eye_aspect_ratio(mesh, LEFT_EYE_EAR) == 0.0
    sig = FaceSignalExtractor(settings).analyze(mesh)
    assert sig.eye_contact == pytest.approx(75.0)


def test_smile_reads_happy(settings, make_face):
    sig = FaceSignalExtractor(settings).analyze(make_face(smile=True))
    assert sig.emotion == "happy"
    assert 0.0 < sig.emotion_confidence < 1.0


def test_raised_brows_and_open_mouth_read_surprised(settings, make_face):
    mesh = make_face(surprised=True)
    aus = action_units(mesh)
    assert aus.brow_raise == pytest.approx(1.0)
    assert aus.mouth_open == pytest.approx(1.0)
    assert aus.corner_pull == pytest.approx(0.0, abs=1e-9)
    sig = FaceSignalExtractor(settings).analyze(mesh)
    assert sig.emotion == "surprised"
    assert sig.emotion_confidence > 0.5


def test_facial_movement(settings, make_face):
    fx = FaceSignalExtractor(settings)
    base = make_face()
    fx.analyze(base)
    assert fx.analyze(base).facial_movement == 0.0

    jitter = FaceMesh(points=base.points + np.array([0.0005, 0, 0, 0]))
    assert fx.analyze(jitter).facial_movement == 0.0  # below noise floor

    moved = FaceMesh(points=base.points + np.array([0.01, 0, 0, 0]))
    assert fx.analyze(moved).facial_movement == 100.0


def test_missing_face_resets_motion(settings, make_face):
    fx = FaceSignalExtractor(settings)
    fx.analyze(make_face())
    empty = fx.analyze(None)
    assert empty.eye_contact == 0.0 and empty.emotion == "neutral"
    moved = FaceMesh(points=make_face().points + np.array([0.01, 0, 0, 0]))
    assert fx.analyze(moved).facial_movement == 0.0


def test_degenerate_mesh_does_not_raise(settings):
    mesh = FaceMesh(points=np.zeros((478, 3)))
    assert action_units(mesh) is None
    sig = FaceSignalExtractor(settings).analyze(mesh)
    assert sig.emotion == "neutral"
    assert sig.emotion_confidence == 0.0


def test_classify_emotion_from_action_units():
    label, conf = classify_emotion(ActionUnits(brow_lower=1.0, eye_squint=1.0))
    assert label == "angry"
    assert 0.0 < conf <= 1.0
    assert classify_emotion(ActionUnits())[0] == "neutral"
