from __future__ import annotations

import contextlib
import logging
import os
import socket
import threading
import time
from dataclasses import dataclass

import uvicorn

from ..core.accumulator import TRANSFORMS
from ..core.errors import LookupResult
from ..core.stamp import TimeLike
from ..core.tree import TransformSnapshot
from ..sdk.client import FrameTreeClient
from .app import create_app

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrameTreeServer:
    host: str
    port: int
    url: str

    def as_client(self) -> FrameTreeClient:
        return FrameTreeClient(self.url.rstrip("/"))

    def snapshot(self) -> TransformSnapshot:
        """Latest snapshot of the in-process tree, without an HTTP round trip."""
        return TRANSFORMS.snapshot()

    def lookup_transform(self, time_value: TimeLike, target_frame: str, source_frame: str) -> LookupResult:
        return TRANSFORMS.snapshot().lookup_transform(time_value, target_frame, source_frame)


def _find_free_port(host: str) -> int:
    with contextlib.closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind((host, 0))
        return int(s.getsockname()[1])


def _normalize_base_url(url: str) -> str:
    url = url.strip()
    if not url:
        return ""
    # Allow passing just host:port.
    if "://" not in url:
        url = "http://" + url
    return url.rstrip("/")


def _is_server_alive(base_url: str, *, timeout_s: float = 0.2) -> bool:
    """Best-effort probe to determine if a frametree service is reachable."""

    import httpx

    try:
        with httpx.Client(base_url=base_url, timeout=timeout_s) as client:
            r = client.get("/healthz")
            if r.status_code != 200:
                return False
            data = r.json()
            return bool(data.get("ok"))
    except (httpx.HTTPError, ValueError):
        return False


def run(
    *,
    host: str = "127.0.0.1",
    port: int = 0,
    log_level: str = "info",
    access_log: bool = False,
    new_server: bool = False,
    connect_timeout_s: float = 0.2,
) -> FrameTreeServer | FrameTreeClient:
    """Start the transform service with a single Python call.

    Behavior:
    - If FRAMETREE_URL is set, we *attach* to that existing service (client mode)
      unless `new_server=True`.
    - Otherwise, if `port != 0` and a service is already reachable at
      http://{host}:{port}, we attach to it unless `new_server=True`.
    - Otherwise we start a new local service and return a `FrameTreeServer`.

    Notes:
    - `port=0` means "pick a free port", so there's nothing to attach to.
    - Uvicorn's per-request access log is off by default because renderers poll
      `/api/events` frequently.
    """

    env_url = _normalize_base_url(os.getenv("FRAMETREE_URL", ""))

    if env_url and not new_server:
        if _is_server_alive(env_url, timeout_s=connect_timeout_s):
            logger.info("Attaching to frametree service at %s", env_url)
            return FrameTreeClient(env_url)

    if port != 0 and not new_server:
        default_url = _normalize_base_url(f"http://{host}:{port}")
        if _is_server_alive(default_url, timeout_s=connect_timeout_s):
            logger.info("Attaching to frametree service at %s", default_url)
            return FrameTreeClient(default_url)

    if port == 0:
        port = _find_free_port(host)

    app = create_app()

    config = uvicorn.Config(app, host=host, port=port, log_level=log_level, access_log=access_log)
    server = uvicorn.Server(config)

    thread = threading.Thread(target=server.run, daemon=True)
    thread.start()

    # Give it a moment so a subsequent client probe doesn't race with startup.
    time.sleep(0.05)

    url = f"http://{host}:{port}/"
    logger.info("frametree service listening on %s", url)
    return FrameTreeServer(host=host, port=port, url=url)
