from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

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
from ..core.stamp import TimeLike, to_time


def _pose_body(pose: Pose) -> dict[str, Any]:
    return {
        "translation": [float(v) for v in pose.translation],
        "rotation": [float(v) for v in pose.rotation],
    }


def _header_body(header: Header) -> dict[str, Any]:
    return {"stamp": header.stamp.to_dict(), "frame_id": header.frame_id, "seq": int(header.seq)}


def message_body(message: Any) -> dict[str, Any]:
    """JSON body for a domain message; plain dicts pass through unchanged."""
    if isinstance(message, MessageEvent):
        return message_body(message.message)
    if isinstance(message, dict):
        return message
    if isinstance(message, TransformStamped):
        return {
            "header": _header_body(message.header),
            "child_frame_id": message.child_frame_id,
            "transform": _pose_body(message.transform),
        }
    if isinstance(message, TFMessage):
        return {"transforms": [message_body(t) for t in message.transforms]}
    if isinstance(message, MarkerArray):
        return {"markers": [message_body(m) for m in message.markers]}
    if isinstance(message, StampedMessage):
        return {"header": _header_body(message.header)}
    raise TypeError(f"Unsupported message type: {type(message).__name__}")


class FrameTreeClient:
    """HTTP client for a running frametree service."""

    def __init__(self, base_url: str = "http://127.0.0.1:8000") -> None:
        self.base_url = base_url.rstrip("/")

    def _request(self, method: str, path: str, *, action: str, timeout_s: float, **kwargs: Any) -> Any:
        import httpx

        with httpx.Client(base_url=self.base_url, timeout=timeout_s) as client:
            res = client.request(method, path, **kwargs)
            if res.status_code >= 400:
                raise RuntimeError(f"Failed to {action}: {res.status_code} {res.text}")
            return res.json()

    def get_events(self, *, timeout_s: float = 10.0) -> dict[str, Any]:
        return dict(self._request("GET", "/api/events", action="get events", timeout_s=timeout_s))

    def send_batch(
        self,
        messages: Mapping[str, Sequence[Any]],
        *,
        topics: Iterable[Topic] = (),
        reset: bool = False,
        timeout_s: float = 10.0,
    ) -> dict[str, Any]:
        body = {
            "reset": bool(reset),
            "topics": [{"name": t.name, "datatype": t.datatype} for t in topics],
            "messages": {str(topic): [message_body(m) for m in msgs] for topic, msgs in messages.items()},
        }
        return dict(self._request("POST", "/api/batches", action="send batch", timeout_s=timeout_s, json=body))

    def send_transforms(self, transforms: Iterable[TransformStamped], *, topic: str = "/tf", timeout_s: float = 10.0) -> dict[str, Any]:
        tf = TFMessage(transforms=tuple(transforms))
        return self.send_batch(
            {topic: [tf]},
            topics=[Topic(name=topic, datatype="tf2_msgs/TFMessage")],
            timeout_s=timeout_s,
        )

    def reset(self, *, timeout_s: float = 10.0) -> None:
        self._request("POST", "/api/reset", action="reset transforms", timeout_s=timeout_s)

    def set_static_links(self, links: Iterable[TransformLink], *, timeout_s: float = 10.0) -> None:
        body = {
            "links": [
                {"parent": link.parent, "child": link.child, "transform": _pose_body(link.transform)}
                for link in links
            ]
        }
        self._request("PUT", "/api/static-links", action="set static links", timeout_s=timeout_s, json=body)

    def get_static_links(self, *, timeout_s: float = 10.0) -> list[TransformLink]:
        data = self._request("GET", "/api/static-links", action="get static links", timeout_s=timeout_s)
        return [
            TransformLink(
                parent=str(link["parent"]),
                child=str(link["child"]),
                transform=Pose.from_arrays(link["transform"]["translation"], link["transform"]["rotation"]),
            )
            for link in data.get("links", [])
        ]

    def list_frames(self, *, timeout_s: float = 10.0) -> list[dict[str, Any]]:
        return list(self._request("GET", "/api/frames", action="list frames", timeout_s=timeout_s))

    def lookup_transform(
        self,
        time_value: TimeLike,
        target_frame: str,
        source_frame: str,
        *,
        timeout_s: float = 10.0,
    ) -> Pose | None:
        """Pose of `source_frame` in `target_frame`, or None when unavailable."""
        stamp = to_time(time_value)
        params = {"target": target_frame, "source": source_frame, "sec": stamp.sec, "nsec": stamp.nsec}
        data = self._request("GET", "/api/transforms/lookup", action="lookup transform", timeout_s=timeout_s, params=params)
        if not data.get("ok"):
            return None
        pose = data["pose"]
        return Pose.from_arrays(pose["translation"], pose["rotation"])

    def trim(self, before: TimeLike, *, frame: str | None = None, timeout_s: float = 10.0) -> int:
        body: dict[str, Any] = {"before": to_time(before).to_dict()}
        if frame is not None:
            body["frame"] = frame
        data = self._request("POST", "/api/frames/trim", action="trim frames", timeout_s=timeout_s, json=body)
        return int(data.get("removed", 0))

    def get_settings(self, *, timeout_s: float = 10.0) -> dict[str, Any]:
        return dict(self._request("GET", "/api/settings", action="get settings", timeout_s=timeout_s))

    def set_retention(self, retention_s: float | None, *, timeout_s: float = 10.0) -> None:
        self._request(
            "PATCH",
            "/api/settings",
            action="update settings",
            timeout_s=timeout_s,
            json={"retentionSeconds": retention_s},
        )
