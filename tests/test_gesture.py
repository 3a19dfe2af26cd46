from commscore.config import Settings
from commscore.gesture import GestureSignalExtractor


def test_variety_and_visibility(settings):
    gx = GestureSignalExtractor(settings)
    sig = gx.analyze(["Open_Palm", "Pointing_Up"], hand_count=2)
    assert sig.gesture_count == 2
    assert sig.gesture_variety == 40.0
    assert sig.hand_visibility == 100.0
    assert sig.movement_patterns == ["Open_Palm", "Pointing_Up"]

    sig = gx.analyze(["Open_Palm"], hand_count=1)
    assert sig.gesture_variety == 40.0
    assert sig.hand_visibility == 50.0


def test_placeholder_labels_are_skipped(settings):
    sig = GestureSignalExtractor(settings).analyze(["None", "", "  "], hand_count=0)
    assert sig.gesture_count == 3
    assert sig.gesture_variety == 0.0
    assert sig.movement_patterns == []
    assert sig.hand_visibility == 0.0


def test_history_evicts_oldest():
    gx = GestureSignalExtractor(Settings(GESTURE_HISTORY_SIZE=3))
    for label in ("a", "b", "c", "d"):
        sig = gx.analyze([label])
    assert sig.movement_patterns == ["b", "c", "d"]
    assert sig.gesture_variety == 60.0

    gx.reset()
    assert gx.analyze([]).movement_patterns == []


def test_variety_caps_at_100(settings):
    sig = GestureSignalExtractor(settings).analyze([f"g{i}" for i in range(8)], hand_count=5)
    assert sig.gesture_variety == 100.0
    assert sig.hand_visibility == 100.0
