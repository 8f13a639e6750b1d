from __future__ import annotations

from typing import Any

from ..core.errors import LookupResult
from ..core.frames import Frame
from ..core.messages import TransformLink
from ..core.pose import Pose
from ..core.settings import TransformSettings
from ..core.stamp import Time


def time_to_dict(t: Time | None) -> dict[str, int] | None:
    if t is None:
        return None
    return t.to_dict()


def pose_to_dict(pose: Pose) -> dict[str, Any]:
    return {
        "translation": [float(v) for v in pose.translation],
        "rotation": [float(v) for v in pose.rotation],
    }


def frame_to_list_item(frame: Frame) -> dict[str, Any]:
    bounds = frame.stamp_bounds()
    latest = frame.latest()
    return {
        "name": frame.name,
        "sampleCount": len(frame),
        "parent": latest.parent if latest is not None else None,
        "firstStamp": time_to_dict(bounds[0]) if bounds is not None else None,
        "lastStamp": time_to_dict(bounds[1]) if bounds is not None else None,
    }


def lookup_result_to_dict(result: LookupResult) -> dict[str, Any]:
    if result.ok and result.pose is not None:
        return {"ok": True, "pose": pose_to_dict(result.pose)}
    return {
        "ok": False,
        "error": result.error.value if result.error is not None else None,
        "frame": result.frame,
        "message": result.message,
    }


def link_to_dict(link: TransformLink) -> dict[str, Any]:
    return {
        "parent": link.parent,
        "child": link.child,
        "transform": pose_to_dict(link.transform),
    }


def settings_to_dict(settings: TransformSettings) -> dict[str, Any]:
    return {"retentionSeconds": settings.retention_s}
