"""
Named landmark indices for the MediaPipe face mesh and pose skeleton.
"""
from enum import IntEnum

FACE_MESH_POINTS = 468
FACE_MESH_WITH_IRIS = 478
POSE_POINTS = 33


class FaceIndex(IntEnum):
    NOSE_TIP = 1
    UPPER_LIP_TOP = 0
    UPPER_LIP_INNER = 13
    LOWER_LIP_INNER = 14
    FOREHEAD = 10
    CHIN = 152
    FACE_LEFT = 234
    FACE_RIGHT = 454
    NOSE_BRIDGE = 168

    LEFT_EYE_OUTER = 33
    LEFT_EYE_INNER = 133
    LEFT_EYE_TOP = 159
    LEFT_EYE_BOTTOM = 145
    RIGHT_EYE_INNER = 362
    RIGHT_EYE_OUTER = 263
    RIGHT_EYE_TOP = 386
    RIGHT_EYE_BOTTOM = 374

    LEFT_BROW_INNER = 107
    LEFT_BROW_MID = 105
    RIGHT_BROW_INNER = 336
    RIGHT_BROW_MID = 334

    LEFT_CHEEK = 205
    RIGHT_CHEEK = 425

    MOUTH_LEFT = 61
    MOUTH_RIGHT = 291

    LEFT_IRIS = 468
    RIGHT_IRIS = 473


# EAR order: outer corner, upper-1, upper-2, inner corner, lower-2, lower-1
LEFT_EYE_EAR = (33, 160, 158, 133, 153, 144)
RIGHT_EYE_EAR = (362, 385, 387, 263, 373, 380)

JAWLINE = (234, 93, 132, 58, 172, 136, 150, 176, 152, 400, 379, 365, 397, 288, 361, 323, 454)
EYEBROWS = (70, 63, 105, 66, 107, 336, 296, 334, 293, 300)
LIPS = (61, 40, 37, 0, 267, 270, 291, 321, 314, 17, 84, 91, 78, 13, 308, 14)
MOVEMENT_POINTS = JAWLINE + EYEBROWS + LIPS


class PoseIndex(IntEnum):
    NOSE = 0
    LEFT_EYE = 2
    RIGHT_EYE = 5
    LEFT_EAR = 7
    RIGHT_EAR = 8
    LEFT_SHOULDER = 11
    RIGHT_SHOULDER = 12
    LEFT_ELBOW = 13
    RIGHT_ELBOW = 14
    LEFT_WRIST = 15
    RIGHT_WRIST = 16
    LEFT_HIP = 23
    RIGHT_HIP = 24
    LEFT_KNEE = 25
    RIGHT_KNEE = 26


STABILITY_POINTS = (
    PoseIndex.NOSE,
    PoseIndex.LEFT_SHOULDER,
    PoseIndex.RIGHT_SHOULDER,
    PoseIndex.LEFT_HIP,
    PoseIndex.RIGHT_HIP,
)
