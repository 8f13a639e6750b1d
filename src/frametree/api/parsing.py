from __future__ import annotations

from typing import Any

import numpy as np

from ..core.messages import (
    Header,
    MarkerArray,
    MessageEvent,
    StampedMessage,
    TFMessage,
    Topic,
    TransformLink,
    TransformStamped,
)
from ..core.pose import Pose
from ..core.stamp import ZERO, Time


def parse_bool(value: Any, *, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        raise ValueError(f"Missing {field}")
    s = str(value).strip().lower()
    if s in {"1", "true", "yes", "on"}:
        return True
    if s in {"0", "false", "no", "off"}:
        return False
    raise ValueError(f"Invalid {field}")


def parse_name(value: Any, *, field: str) -> str:
    if value is None:
        raise ValueError(f"Missing {field}")
    name = str(value).strip()
    if not name:
        raise ValueError(f"Invalid {field}")
    return name


def parse_time(value: Any, *, field: str = "stamp") -> Time:
    """Accept `{"sec", "nsec"}` (or ROS 2 `nanosec`) mappings or float seconds."""
    if value is None:
        return ZERO
    if isinstance(value, dict):
        try:
            return Time(value.get("sec", 0), value.get("nsec", value.get("nanosec", 0)))
        except ValueError as ex:
            raise ValueError(f"Invalid {field}: {ex}") from ex
    if isinstance(value, bool):
        raise ValueError(f"Invalid {field}")
    try:
        seconds = float(value)
    except (TypeError, ValueError) as ex:
        raise ValueError(f"Invalid {field}") from ex
    if not np.isfinite(seconds):
        raise ValueError(f"Invalid {field}")
    return Time.from_seconds(seconds)


def _parse_components(value: Any, keys: str, defaults: tuple[float, ...], *, field: str) -> tuple[float, ...]:
    if value is None:
        return defaults
    try:
        if isinstance(value, dict):
            return tuple(float(value.get(k, d)) for k, d in zip(keys, defaults))
        arr = np.asarray(value, dtype=np.float64).reshape(len(keys))
    except (TypeError, ValueError) as ex:
        raise ValueError(f"Invalid {field}") from ex
    return tuple(float(v) for v in arr)


def parse_pose(value: Any, *, field: str = "transform") -> Pose:
    # Non-finite components pass through; they only make lookups degenerate.
    if value is None:
        return Pose()
    if not isinstance(value, dict):
        raise ValueError(f"Invalid {field}")
    translation = _parse_components(value.get("translation"), "xyz", (0.0, 0.0, 0.0), field=f"{field}.translation")
    rotation = _parse_components(value.get("rotation"), "xyzw", (0.0, 0.0, 0.0, 1.0), field=f"{field}.rotation")
    return Pose(translation=translation, rotation=rotation)  # type: ignore[arg-type]


def parse_header(value: Any) -> Header:
    if not isinstance(value, dict):
        raise ValueError("Invalid header")
    frame_id = value.get("frame_id", value.get("frameId", ""))
    return Header(
        stamp=parse_time(value.get("stamp"), field="header.stamp"),
        frame_id=str(frame_id) if frame_id is not None else "",
        seq=int(value.get("seq", 0) or 0),
    )


def parse_transform_stamped(value: Any) -> TransformStamped:
    if not isinstance(value, dict):
        raise ValueError("Invalid transform message")
    child = value.get("child_frame_id", value.get("childFrameId"))
    return TransformStamped(
        header=parse_header(value.get("header", {})),
        child_frame_id=parse_name(child, field="child_frame_id"),
        transform=parse_pose(value.get("transform")),
    )


def parse_message(value: Any) -> Any:
    """Turn a decoded JSON message into the matching domain value.

    Messages without transforms, markers or a header are returned as None:
    they carry nothing the transform tree uses.
    """
    if not isinstance(value, dict):
        raise ValueError("Messages must be JSON objects")
    if "transforms" in value:
        raw = value.get("transforms") or []
        if not isinstance(raw, list):
            raise ValueError("transforms must be a list")
        return TFMessage(transforms=tuple(parse_transform_stamped(t) for t in raw))
    if "child_frame_id" in value or "childFrameId" in value:
        return parse_transform_stamped(value)
    if "markers" in value:
        raw = value.get("markers") or []
        if not isinstance(raw, list):
            raise ValueError("markers must be a list")
        return MarkerArray(
            markers=tuple(StampedMessage(header=parse_header(m.get("header", {})), payload=m) for m in raw if isinstance(m, dict))
        )
    if "header" in value:
        return StampedMessage(header=parse_header(value.get("header")), payload=value)
    return None


def parse_topics(value: Any) -> list[Topic]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("topics must be a list")
    out: list[Topic] = []
    for t in value:
        if not isinstance(t, dict):
            raise ValueError("Invalid topic")
        out.append(Topic(name=parse_name(t.get("name"), field="topic name"), datatype=str(t.get("datatype", ""))))
    return out


def parse_batch_body(body: dict[str, Any]) -> tuple[bool, list[Topic], dict[str, list[MessageEvent]]]:
    raw_reset = body.get("reset", False)
    reset = parse_bool(raw_reset, field="reset") if isinstance(raw_reset, str) else bool(raw_reset)
    topics = parse_topics(body.get("topics"))

    raw_messages = body.get("messages") or {}
    if not isinstance(raw_messages, dict):
        raise ValueError("messages must map topic names to message lists")

    frame: dict[str, list[MessageEvent]] = {}
    for topic, msgs in raw_messages.items():
        if not isinstance(msgs, list):
            raise ValueError(f"messages for topic {topic!r} must be a list")
        events: list[MessageEvent] = []
        for raw in msgs:
            message = parse_message(raw)
            if message is None:
                continue
            header = getattr(message, "header", None)
            receive_time = header.stamp if header is not None else ZERO
            events.append(MessageEvent(topic=str(topic), receive_time=receive_time, message=message))
        frame[str(topic)] = events
    return reset, topics, frame


def parse_static_links(body: dict[str, Any]) -> list[TransformLink]:
    raw = body.get("links")
    if not isinstance(raw, list):
        raise ValueError("links must be a list")
    out: list[TransformLink] = []
    for link in raw:
        if not isinstance(link, dict):
            raise ValueError("Invalid link")
        out.append(
            TransformLink(
                parent=parse_name(link.get("parent"), field="parent"),
                child=parse_name(link.get("child"), field="child"),
                transform=parse_pose(link.get("transform")),
            )
        )
    return out


def parse_lookup_time(time_value: Any, sec: Any, nsec: Any) -> Time:
    if time_value is not None:
        if sec is not None or nsec is not None:
            raise ValueError("Provide either time or sec/nsec, not both")
        return parse_time(time_value, field="time")
    if sec is None and nsec is None:
        raise ValueError("Missing time")
    return parse_time({"sec": sec or 0, "nsec": nsec or 0}, field="time")
