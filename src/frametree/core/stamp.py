from __future__ import annotations

import math
import operator
from dataclasses import dataclass
from typing import Any, Union

NSEC_PER_SEC = 1_000_000_000


def _integral(value: Any, field: str) -> int:
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"{field} must be an integer, got {value!r}")
        return int(value)
    try:
        return operator.index(value)
    except TypeError as ex:
        raise ValueError(f"{field} must be an integer, got {value!r}") from ex


@dataclass(frozen=True, order=True)
class Time:
    """Integer `(sec, nsec)` timestamp.

    Ordering and equality compare the integer fields only, so two stamps never
    drift apart the way float seconds do. `nsec` is always normalized to
    `[0, 1e9)`; negative times carry the sign in `sec`.
    """

    sec: int = 0
    nsec: int = 0

    def __post_init__(self) -> None:
        total = _integral(self.sec, "sec") * NSEC_PER_SEC + _integral(self.nsec, "nsec")
        sec, nsec = divmod(total, NSEC_PER_SEC)
        object.__setattr__(self, "sec", sec)
        object.__setattr__(self, "nsec", nsec)

    @classmethod
    def from_nanoseconds(cls, ns: int) -> "Time":
        return cls(0, _integral(ns, "ns"))

    @classmethod
    def from_seconds(cls, seconds: float) -> "Time":
        s = float(seconds)
        if not math.isfinite(s):
            raise ValueError("seconds must be finite")
        whole = math.floor(s)
        return cls(int(whole), int(round((s - whole) * NSEC_PER_SEC)))

    def to_nanoseconds(self) -> int:
        return self.sec * NSEC_PER_SEC + self.nsec

    def to_seconds(self) -> float:
        return float(self.sec) + float(self.nsec) / NSEC_PER_SEC

    def __sub__(self, other: "Time") -> int:
        """Difference in integer nanoseconds."""
        return self.to_nanoseconds() - other.to_nanoseconds()

    def to_dict(self) -> dict[str, int]:
        return {"sec": self.sec, "nsec": self.nsec}


ZERO = Time(0, 0)

TimeLike = Union[Time, tuple, float, int]


def to_time(value: Any) -> Time:
    """Coerce a `Time`, `(sec, nsec)` pair, `{"sec", "nsec"}` mapping or float seconds."""
    if isinstance(value, Time):
        return value
    if isinstance(value, (tuple, list)):
        if len(value) != 2:
            raise ValueError("time tuples must be (sec, nsec)")
        return Time(value[0], value[1])
    if isinstance(value, dict):
        nsec = value.get("nsec", value.get("nanosec", 0))
        return Time(value.get("sec", 0), nsec)
    if isinstance(value, bool):
        raise ValueError("Invalid time")
    if isinstance(value, int):
        return Time(value, 0)
    return Time.from_seconds(float(value))
