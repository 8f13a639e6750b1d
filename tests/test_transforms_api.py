from __future__ import annotations

from typing import Any

from frametree.core.accumulator import TransformAccumulator
from frametree.core.settings import SettingsStore, TransformSettings


def _skip(msg: str) -> None:  # pragma: no cover
    try:
        import pytest  # type: ignore

        pytest.skip(msg)
    except Exception:
        raise RuntimeError(msg)


def _client(cors_origins: list[str] | None = None) -> Any:
    from frametree.runtime.app import create_app

    try:
        from fastapi.testclient import TestClient
    except Exception as e:  # pragma: no cover
        _skip(f"TestClient not available ({e!r}); install test extras to run this test")
        return None

    acc = TransformAccumulator(settings=SettingsStore(TransformSettings()))
    return TestClient(create_app(acc, cors_origins=cors_origins or []))


def _tf(parent: str, child: str, sec: int, x: float) -> dict[str, Any]:
    return {
        "header": {"stamp": {"sec": sec, "nsec": 0}, "frame_id": parent},
        "child_frame_id": child,
        "transform": {"translation": {"x": x, "y": 0.0, "z": 0.0}, "rotation": [0.0, 0.0, 0.0, 1.0]},
    }


TOPICS = [
    {"name": "/tf", "datatype": "tf2_msgs/TFMessage"},
    {"name": "/points", "datatype": "sensor_msgs/PointCloud2"},
]


def test_batch_then_lookup() -> None:
    client = _client()
    if client is None:
        return

    assert client.get("/healthz").json() == {"ok": True}
    assert client.get("/api/events").json()["state"] == "empty"

    body = {
        "topics": TOPICS,
        "messages": {
            "/tf": [{"transforms": [_tf("world", "robot", 0, 0.0), _tf("world", "robot", 10, 10.0)]}],
            "/points": [{"header": {"stamp": {"sec": 1, "nsec": 0}, "frame_id": "velodyne"}}],
        },
    }
    res = client.post("/api/batches", json=body)
    assert res.status_code == 200
    first = res.json()
    assert first["ok"] is True
    assert first["changed"] is True
    assert first["frameCount"] == 3

    again = client.post("/api/batches", json=body).json()
    assert again["changed"] is False
    assert again["generation"] == first["generation"]

    events = client.get("/api/events").json()
    assert events == {"generation": first["generation"], "state": "accumulating"}

    hit = client.get("/api/transforms/lookup", params={"target": "world", "source": "robot", "sec": 5, "nsec": 0})
    assert hit.status_code == 200
    data = hit.json()
    assert data["ok"] is True
    assert abs(data["pose"]["translation"][0] - 5.0) < 1e-9

    by_seconds = client.get("/api/transforms/lookup", params={"target": "world", "source": "robot", "time": "2.5"})
    assert abs(by_seconds.json()["pose"]["translation"][0] - 2.5) < 1e-9

    miss = client.get("/api/transforms/lookup", params={"target": "world", "source": "velodyne", "sec": 5})
    assert miss.status_code == 200
    assert miss.json()["ok"] is False
    assert miss.json()["error"] == "no_data_for_frame"
    assert miss.json()["frame"] == "velodyne"

    unknown = client.get("/api/transforms/lookup", params={"target": "world", "source": "nope", "sec": 5})
    assert unknown.json()["error"] == "frame_not_found"

    frames = client.get("/api/frames").json()
    assert [f["name"] for f in frames] == ["robot", "velodyne", "world"]
    robot = frames[0]
    assert robot["sampleCount"] == 2
    assert robot["parent"] == "world"
    assert robot["firstStamp"] == {"sec": 0, "nsec": 0}
    assert robot["lastStamp"] == {"sec": 10, "nsec": 0}


def test_lookup_rejects_bad_parameters() -> None:
    client = _client()
    if client is None:
        return

    assert client.get("/api/transforms/lookup", params={"target": "world", "sec": 1}).status_code == 400
    assert client.get("/api/transforms/lookup", params={"target": "a", "source": "b"}).status_code == 400
    both = client.get("/api/transforms/lookup", params={"target": "a", "source": "b", "time": "1.0", "sec": 1})
    assert both.status_code == 400
    assert client.get("/api/transforms/lookup", params={"target": "a", "source": "b", "time": "soon"}).status_code == 400


def test_bad_batch_bodies_are_rejected() -> None:
    client = _client()
    if client is None:
        return

    assert client.post("/api/batches", json={"messages": "nope"}).status_code == 400
    assert client.post("/api/batches", json={"messages": {"/tf": {"transforms": []}}}).status_code == 400
    missing_child = {"messages": {"/tf": [{"transforms": [{"header": {"frame_id": "world"}}]}]}}
    assert client.post("/api/batches", json=missing_child).status_code == 400
    assert client.post("/api/batches", json={"reset": "maybe"}).status_code == 400


def test_reset_and_static_links() -> None:
    client = _client()
    if client is None:
        return

    links = {
        "links": [
            {"parent": "base_link", "child": "camera", "transform": {"translation": [0.0, 0.0, 1.0]}},
        ]
    }
    put = client.put("/api/static-links", json=links)
    assert put.status_code == 200
    assert put.json()["count"] == 1

    stored = client.get("/api/static-links").json()["links"]
    assert stored == [
        {
            "parent": "base_link",
            "child": "camera",
            "transform": {"translation": [0.0, 0.0, 1.0], "rotation": [0.0, 0.0, 0.0, 1.0]},
        }
    ]

    client.post("/api/batches", json={"topics": TOPICS, "messages": {"/tf": [{"transforms": [_tf("odom", "base_link", 3, 1.0)]}]}})
    before = client.get("/api/events").json()["generation"]

    reset = client.post("/api/reset")
    assert reset.status_code == 200
    assert reset.json()["generation"] > before

    names = [f["name"] for f in client.get("/api/frames").json()]
    assert names == ["base_link", "camera"]
    mount = client.get("/api/transforms/lookup", params={"target": "base_link", "source": "camera", "time": "100"}).json()
    assert mount["ok"] is True
    assert mount["pose"]["translation"] == [0.0, 0.0, 1.0]

    assert client.put("/api/static-links", json={"links": [{"parent": "a"}]}).status_code == 400


def test_settings_and_trim() -> None:
    client = _client()
    if client is None:
        return

    assert client.get("/api/settings").json() == {"retentionSeconds": None}
    assert client.patch("/api/settings", json={}).status_code == 400
    assert client.patch("/api/settings", json={"retentionSeconds": -1}).status_code == 400

    updated = client.patch("/api/settings", json={"retentionSeconds": 3})
    assert updated.status_code == 200
    assert updated.json() == {"ok": True, "retentionSeconds": 3.0}

    body = {"topics": TOPICS, "messages": {"/tf": [{"transforms": [_tf("odom", "base", sec, float(sec)) for sec in range(6)]}]}}
    client.post("/api/batches", json=body)
    base = next(f for f in client.get("/api/frames").json() if f["name"] == "base")
    assert base["sampleCount"] == 4
    assert base["firstStamp"] == {"sec": 2, "nsec": 0}

    client.patch("/api/settings", json={"retentionSeconds": None})
    trimmed = client.post("/api/frames/trim", json={"before": {"sec": 4, "nsec": 0}, "frame": "base"})
    assert trimmed.status_code == 200
    assert trimmed.json()["removed"] == 2
    assert client.post("/api/frames/trim", json={"beforeTime": 4.0}).json()["removed"] == 0
    assert client.post("/api/frames/trim", json={}).status_code == 400


def test_fractional_stamps_and_huge_retention() -> None:
    client = _client()
    if client is None:
        return

    half_sec = {"messages": {"/tf": [{"transforms": [_tf("odom", "base", 0, 0.0)]}]}}
    half_sec["messages"]["/tf"][0]["transforms"][0]["header"]["stamp"] = {"sec": 1.5, "nsec": 0}
    assert client.post("/api/batches", json=half_sec).status_code == 400
    assert client.post("/api/frames/trim", json={"before": {"sec": 0, "nsec": 0.5}}).status_code == 400

    assert client.patch("/api/settings", json={"retentionSeconds": 1e300}).status_code == 200
    body = {"topics": TOPICS, "messages": {"/tf": [{"transforms": [_tf("odom", "base", sec, float(sec)) for sec in range(3)]}]}}
    res = client.post("/api/batches", json=body)
    assert res.status_code == 200
    base = next(f for f in client.get("/api/frames").json() if f["name"] == "base")
    assert base["sampleCount"] == 3


def test_cors_origins_are_configurable() -> None:
    origin = "http://viewer.local:3000"

    closed = _client()
    if closed is None:
        return
    assert "access-control-allow-origin" not in closed.get("/healthz", headers={"Origin": origin}).headers

    opened = _client(cors_origins=[origin])
    res = opened.get("/healthz", headers={"Origin": origin})
    assert res.status_code == 200
    assert res.headers["access-control-allow-origin"] == origin
    other = opened.get("/healthz", headers={"Origin": "http://elsewhere.local"})
    assert "access-control-allow-origin" not in other.headers
