from __future__ import annotations

from bisect import bisect_left, bisect_right
from dataclasses import dataclass

from .pose import Pose
from .stamp import Time


@dataclass(frozen=True)
class TransformSample:
    """Pose of a frame relative to `parent` at `stamp`.

    The parent is kept by name and resolved at lookup time, so a sample may
    reference a frame that has not received any data yet.
    """

    stamp: Time
    parent: str
    pose: Pose


class Frame:
    """A named coordinate frame and its time-sorted transform samples.

    Only the owning `TransformTree` writes to a frame, and it copies the frame
    first once a published snapshot shares it. Readers get the public read
    methods.
    """

    __slots__ = ("name", "_stamps", "_samples")

    def __init__(self, name: str) -> None:
        self.name = name
        self._stamps: list[Time] = []
        self._samples: list[TransformSample] = []

    def __repr__(self) -> str:
        return f"Frame(name={self.name!r}, samples={len(self._samples)})"

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def samples(self) -> tuple[TransformSample, ...]:
        return tuple(self._samples)

    @property
    def has_data(self) -> bool:
        return bool(self._samples)

    def copy(self) -> "Frame":
        out = Frame(self.name)
        out._stamps = list(self._stamps)
        out._samples = list(self._samples)
        return out

    def _set_sample(self, sample: TransformSample) -> bool:
        """Insert `sample`, replacing any sample at the same stamp.

        Returns False when an identical sample was already stored.
        """
        idx = bisect_left(self._stamps, sample.stamp)
        if idx < len(self._stamps) and self._stamps[idx] == sample.stamp:
            if self._samples[idx] == sample:
                return False
            self._samples[idx] = sample
            return True
        self._stamps.insert(idx, sample.stamp)
        self._samples.insert(idx, sample)
        return True

    def sample_at(self, stamp: Time) -> TransformSample | None:
        idx = bisect_left(self._stamps, stamp)
        if idx < len(self._stamps) and self._stamps[idx] == stamp:
            return self._samples[idx]
        return None

    def bracket(self, stamp: Time) -> tuple[TransformSample | None, TransformSample | None]:
        """Latest sample at or before `stamp` and earliest sample at or after it."""
        before_idx = bisect_right(self._stamps, stamp) - 1
        after_idx = bisect_left(self._stamps, stamp)
        before = self._samples[before_idx] if before_idx >= 0 else None
        after = self._samples[after_idx] if after_idx < len(self._samples) else None
        return before, after

    def stamp_bounds(self) -> tuple[Time, Time] | None:
        if not self._stamps:
            return None
        return self._stamps[0], self._stamps[-1]

    def latest(self) -> TransformSample | None:
        return self._samples[-1] if self._samples else None

    def count_older_than(self, stamp: Time) -> int:
        """Number of samples `_trim_older_than(stamp)` would drop."""
        return max(0, bisect_right(self._stamps, stamp) - 1)

    def _trim_older_than(self, stamp: Time) -> int:
        """Drop samples older than `stamp`, keeping the newest one at or before it.

        Lookups at or after `stamp` resolve exactly as before the trim.
        """
        keep_from = self.count_older_than(stamp)
        if keep_from == 0:
            return 0
        del self._stamps[:keep_from]
        del self._samples[:keep_from]
        return keep_from
