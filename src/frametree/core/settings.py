from __future__ import annotations

import math
import os
import threading
from dataclasses import dataclass, replace


RETENTION_ENV = "FRAMETREE_RETENTION_S"


def parse_retention(value: object) -> float | None:
    """Parse a retention window in seconds; None or empty means unbounded."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value or value.lower() in {"none", "null", "off"}:
            return None
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as ex:
        raise ValueError("retention must be a number of seconds") from ex
    if not math.isfinite(out) or out < 0.0:
        raise ValueError("retention must be a finite, non-negative number of seconds")
    return out


@dataclass(frozen=True)
class TransformSettings:
    """Ingestion-side preferences.

    Notes:
    - `retention_s` bounds per-frame history: after each batch, samples older
      than the newest stamp seen minus this window are trimmed.
    - None keeps every sample until the next reset.
    """

    retention_s: float | None = None

    @classmethod
    def from_env(cls) -> "TransformSettings":
        return cls(retention_s=parse_retention(os.getenv(RETENTION_ENV)))


class SettingsStore:
    def __init__(self, settings: TransformSettings | None = None) -> None:
        self._lock = threading.RLock()
        self._settings = settings if settings is not None else TransformSettings.from_env()

    def get(self) -> TransformSettings:
        with self._lock:
            return self._settings

    def set_retention(self, retention_s: object) -> TransformSettings:
        parsed = parse_retention(retention_s)
        with self._lock:
            self._settings = replace(self._settings, retention_s=parsed)
            return self._settings


CORS_ORIGINS_ENV = "FRAMETREE_CORS_ORIGINS"


def cors_origins_from_env() -> list[str]:
    """Comma-separated browser origins allowed to call the service; empty disables CORS."""
    raw = os.getenv(CORS_ORIGINS_ENV, "")
    return [o.strip() for o in raw.split(",") if o.strip()]
