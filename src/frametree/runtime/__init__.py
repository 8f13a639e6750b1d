from __future__ import annotations

from .app import create_app
from .server import FrameTreeServer, run

__all__ = ["create_app", "run", "FrameTreeServer"]
