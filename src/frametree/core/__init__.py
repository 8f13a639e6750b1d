from __future__ import annotations

from .accumulator import TRANSFORMS, AccumulatorState, TransformAccumulator
from .errors import LookupErrorCode, LookupResult, TransformLookupError
from .frames import Frame, TransformSample
from .interpolation import sample_frame
from .messages import (
    TF_DATATYPES,
    TRANSFORM_STAMPED_DATATYPES,
    Header,
    MarkerArray,
    MessageEvent,
    StampedMessage,
    TFMessage,
    Topic,
    TransformLink,
    TransformStamped,
)
from .pose import IDENTITY, Pose, pose_matrix, slerp_xyzw
from .settings import SettingsStore, TransformSettings
from .stamp import ZERO, Time, to_time
from .tree import TransformSnapshot, TransformTree

__all__ = [
    "Time",
    "ZERO",
    "to_time",
    "Pose",
    "IDENTITY",
    "pose_matrix",
    "slerp_xyzw",
    "Frame",
    "TransformSample",
    "sample_frame",
    "LookupErrorCode",
    "LookupResult",
    "TransformLookupError",
    "TransformTree",
    "TransformSnapshot",
    "Header",
    "TransformStamped",
    "TFMessage",
    "StampedMessage",
    "MarkerArray",
    "Topic",
    "MessageEvent",
    "TransformLink",
    "TF_DATATYPES",
    "TRANSFORM_STAMPED_DATATYPES",
    "TransformSettings",
    "SettingsStore",
    "TransformAccumulator",
    "AccumulatorState",
    "TRANSFORMS",
]
