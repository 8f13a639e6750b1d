from __future__ import annotations

from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from ..core.accumulator import TRANSFORMS, TransformAccumulator
from ..core.settings import cors_origins_from_env
from .parsing import (
    parse_batch_body,
    parse_lookup_time,
    parse_name,
    parse_static_links,
    parse_time,
)
from .serializers import (
    frame_to_list_item,
    link_to_dict,
    lookup_result_to_dict,
    settings_to_dict,
)


def create_api_app(
    accumulator: TransformAccumulator | None = None,
    cors_origins: list[str] | None = None,
) -> FastAPI:
    transforms = accumulator if accumulator is not None else TRANSFORMS
    origins = cors_origins if cors_origins is not None else cors_origins_from_env()
    app = FastAPI(title="frametree", version="0.1.0")

    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/api/events")
    def events() -> dict[str, Any]:
        # Minimal polling endpoint: readers refetch when the generation moves.
        return {
            "generation": transforms.snapshot().generation,
            "state": transforms.state.value,
        }

    @app.post("/api/batches")
    def ingest_batch(body: dict) -> dict[str, Any]:
        try:
            reset, topics, frame = parse_batch_body(body)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        previous = transforms.snapshot()
        snap = transforms.ingest(frame, topics=topics, reset=reset)
        return {
            "ok": True,
            "generation": snap.generation,
            "changed": snap is not previous,
            "frameCount": len(snap),
        }

    @app.post("/api/reset")
    def reset_tree() -> dict[str, Any]:
        snap = transforms.reset()
        return {"ok": True, "generation": snap.generation}

    @app.get("/api/static-links")
    def get_static_links() -> dict[str, Any]:
        return {"links": [link_to_dict(link) for link in transforms.static_links()]}

    @app.put("/api/static-links")
    def put_static_links(body: dict) -> dict[str, Any]:
        try:
            links = parse_static_links(body)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        snap = transforms.set_static_links(links)
        return {"ok": True, "generation": snap.generation, "count": len(links)}

    @app.get("/api/frames")
    def list_frames() -> list[dict[str, Any]]:
        snap = transforms.snapshot()
        return [frame_to_list_item(f) for f in sorted(snap.frames(), key=lambda f: f.name)]

    @app.get("/api/transforms/lookup")
    def lookup_transform(
        target: str | None = None,
        source: str | None = None,
        time: str | None = None,
        sec: int | None = None,
        nsec: int | None = None,
    ) -> dict[str, Any]:
        try:
            target_v = parse_name(target, field="target")
            source_v = parse_name(source, field="source")
            stamp = parse_lookup_time(time, sec, nsec)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        # Failures are query results, not HTTP errors.
        result = transforms.snapshot().lookup_transform(stamp, target_v, source_v)
        return lookup_result_to_dict(result)

    @app.post("/api/frames/trim")
    def trim_frames(body: dict) -> dict[str, Any]:
        try:
            if "before" in body:
                cutoff = parse_time(body.get("before"), field="before")
            elif "beforeTime" in body:
                cutoff = parse_time(body.get("beforeTime"), field="beforeTime")
            else:
                raise ValueError("Missing field: before")
            frame = parse_name(body.get("frame"), field="frame") if body.get("frame") is not None else None
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        removed = transforms.trim(cutoff, frame=frame)
        return {"ok": True, "removed": removed, "generation": transforms.snapshot().generation}

    @app.get("/api/settings")
    def get_settings() -> dict[str, Any]:
        return settings_to_dict(transforms.settings.get())

    @app.patch("/api/settings")
    def update_settings(body: dict) -> dict[str, Any]:
        if "retentionSeconds" not in body:
            raise HTTPException(status_code=400, detail="Missing field: retentionSeconds")
        try:
            updated = transforms.settings.set_retention(body.get("retentionSeconds"))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"ok": True, **settings_to_dict(updated)}

    return app
