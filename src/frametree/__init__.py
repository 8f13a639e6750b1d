from __future__ import annotations

from .core import (
    TRANSFORMS,
    AccumulatorState,
    Header,
    LookupErrorCode,
    LookupResult,
    MarkerArray,
    MessageEvent,
    Pose,
    StampedMessage,
    TFMessage,
    Time,
    Topic,
    TransformAccumulator,
    TransformLink,
    TransformLookupError,
    TransformSnapshot,
    TransformStamped,
    TransformTree,
)
from .runtime.server import FrameTreeServer, run
from .sdk.client import FrameTreeClient

__all__ = [
    "run",
    "FrameTreeServer",
    "FrameTreeClient",
    "Time",
    "Pose",
    "TransformTree",
    "TransformSnapshot",
    "TransformAccumulator",
    "AccumulatorState",
    "TRANSFORMS",
    "LookupResult",
    "LookupErrorCode",
    "TransformLookupError",
    "Header",
    "TransformStamped",
    "TFMessage",
    "StampedMessage",
    "MarkerArray",
    "MessageEvent",
    "Topic",
    "TransformLink",
]
