from __future__ import annotations

from fastapi import FastAPI

from ..api import create_api_app
from ..core.accumulator import TransformAccumulator


def create_app(
    accumulator: TransformAccumulator | None = None,
    cors_origins: list[str] | None = None,
) -> FastAPI:
    """Create the service app around `accumulator` (the process-wide one by default).

    CORS origins default to `FRAMETREE_CORS_ORIGINS`.
    """
    return create_api_app(accumulator, cors_origins)
