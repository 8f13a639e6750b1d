from __future__ import annotations

from .client import FrameTreeClient, message_body

__all__ = ["FrameTreeClient", "message_body"]
