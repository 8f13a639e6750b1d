from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .pose import Pose
from .stamp import ZERO, Time


TF_DATATYPES = (
    "tf/tfMessage",
    "tf2_msgs/TFMessage",
    "tf2_msgs/msg/TFMessage",
)
TRANSFORM_STAMPED_DATATYPES = (
    "geometry_msgs/TransformStamped",
    "geometry_msgs/msg/TransformStamped",
)


@dataclass(frozen=True)
class Header:
    stamp: Time = ZERO
    frame_id: str = ""
    seq: int = 0


@dataclass(frozen=True)
class TransformStamped:
    """Pose of `child_frame_id` in `header.frame_id` at `header.stamp`."""

    header: Header
    child_frame_id: str
    transform: Pose = field(default_factory=Pose)


@dataclass(frozen=True)
class TFMessage:
    transforms: tuple[TransformStamped, ...] = ()


@dataclass(frozen=True)
class StampedMessage:
    """Any decoded message that only matters here for its `header.frame_id`."""

    header: Header
    payload: Any = None


@dataclass(frozen=True)
class MarkerArray:
    """Marker arrays carry no header of their own; each marker does."""

    markers: tuple[StampedMessage, ...] = ()


@dataclass(frozen=True)
class Topic:
    name: str
    datatype: str


@dataclass(frozen=True)
class MessageEvent:
    topic: str
    receive_time: Time
    message: Any


@dataclass(frozen=True)
class TransformLink:
    """Fixed structural link (e.g. a mount transform from a robot description)."""

    parent: str
    child: str
    transform: Pose = field(default_factory=Pose)


def header_frame_id(message: Any) -> str | None:
    header = getattr(message, "header", None)
    if header is None:
        return None
    frame_id = getattr(header, "frame_id", None)
    if frame_id is None:
        return None
    return str(frame_id)
