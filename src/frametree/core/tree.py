from __future__ import annotations

import logging
from collections.abc import Container, Iterator, Mapping

from .errors import LookupResult
from .frames import Frame, TransformSample
from .interpolation import sample_frame
from .messages import TransformStamped
from .pose import Pose
from .stamp import Time, TimeLike, to_time

logger = logging.getLogger(__name__)


class _FrameGraph:
    """Read side shared by the live tree and its snapshots."""

    _frames: Mapping[str, Frame]

    def __len__(self) -> int:
        return len(self._frames)

    def __contains__(self, name: object) -> bool:
        return name in self._frames

    def __iter__(self) -> Iterator[str]:
        return iter(self._frames)

    def has_frame(self, name: str) -> bool:
        return name in self._frames

    def frame(self, name: str) -> Frame | None:
        return self._frames.get(name)

    def frames(self) -> list[Frame]:
        return list(self._frames.values())

    def frame_names(self) -> list[str]:
        return sorted(self._frames)

    def parent_of(self, name: str, time: TimeLike) -> str | None:
        frame = self._frames.get(name)
        if frame is None:
            return None
        sample = sample_frame(frame, to_time(time))
        return sample.parent if sample is not None else None

    def _is_referenced_as_parent(self, name: str) -> bool:
        return any(s.parent == name for f in self._frames.values() for s in f.samples)

    def _walk(
        self,
        name: str,
        stamp: Time,
        stop_at: Container[str],
    ) -> tuple[dict[str, Pose | None], str | None, bool]:
        """Walk up the parent chain of `name` at `stamp`.

        Returns `(chain, hit, cycle)` where `chain` maps each visited frame to
        `T_frame_name` (None meaning identity), `hit` is the first visited frame
        contained in `stop_at` and `cycle` tells whether the hop bound was hit.
        """
        bound = len(self._frames)
        chain: dict[str, Pose | None] = {name: None}
        current = name
        acc: Pose | None = None
        hops = 0
        while True:
            if current in stop_at:
                return chain, current, False
            frame = self._frames.get(current)
            if frame is None:
                return chain, None, False
            sample = sample_frame(frame, stamp)
            if sample is None:
                return chain, None, False
            hops += 1
            if hops > bound:
                return chain, None, True
            acc = sample.pose if acc is None else sample.pose @ acc
            current = sample.parent
            chain[current] = acc

    def lookup_transform(self, time: TimeLike, target_frame: str, source_frame: str) -> LookupResult:
        """Pose of `source_frame` expressed in `target_frame` at `time`.

        Failures come back as a `LookupResult` with an error code, never as an
        exception.
        """
        if target_frame not in self._frames:
            return LookupResult.frame_not_found(target_frame)
        if source_frame not in self._frames:
            return LookupResult.frame_not_found(source_frame)

        stamp = to_time(time)
        source_chain, hit, cycle = self._walk(source_frame, stamp, {target_frame})
        if cycle:
            logger.warning("Cycle detected walking parents of %r", source_frame)
            return LookupResult.cycle_detected(source_frame)
        if hit is not None:
            pose = source_chain[hit]
            return LookupResult.success(pose if pose is not None else Pose.identity())

        target_chain, ancestor, cycle = self._walk(target_frame, stamp, source_chain)
        if cycle:
            logger.warning("Cycle detected walking parents of %r", target_frame)
            return LookupResult.cycle_detected(target_frame)
        if ancestor is None:
            for name in (source_frame, target_frame):
                frame = self._frames[name]
                if not frame.has_data and not self._is_referenced_as_parent(name):
                    return LookupResult.no_data_for_frame(name)
            return LookupResult.frames_not_connected(target_frame, source_frame)

        t_anc_source = source_chain[ancestor]
        t_anc_target = target_chain[ancestor]
        if t_anc_target is None:
            return LookupResult.success(t_anc_source if t_anc_source is not None else Pose.identity())
        if t_anc_source is None:
            return LookupResult.success(t_anc_target.inverse())
        return LookupResult.success(t_anc_target.inverse() @ t_anc_source)


class TransformSnapshot(_FrameGraph):
    """Immutable view of a transform tree as of one publish.

    Frames are shared by reference with the live tree and earlier snapshots
    until the live tree writes to them, at which point it copies them first.
    """

    def __init__(self, frames: Mapping[str, Frame] | None = None, generation: int = 0) -> None:
        self._frames = dict(frames or {})
        self.generation = int(generation)

    def __repr__(self) -> str:
        return f"TransformSnapshot(generation={self.generation}, frames={len(self._frames)})"


class TransformTree(_FrameGraph):
    """Live, mutable transform graph owned by a single ingestion caller.

    Call `publish()` after a batch of writes to obtain a `TransformSnapshot`
    for readers. Writes never reach a snapshot that has been handed out.
    """

    def __init__(self, generation: int = 0) -> None:
        self._frames: dict[str, Frame] = {}
        self._shared: set[str] = set()
        self._changed = False
        self._snapshot: TransformSnapshot | None = None
        self._generation = int(generation)

    @property
    def changed(self) -> bool:
        return self._changed

    @property
    def generation(self) -> int:
        return self._generation

    def get_or_create_frame(self, name: str) -> Frame:
        frame = self._frames.get(name)
        if frame is None:
            frame = Frame(name)
            self._frames[name] = frame
            self._changed = True
            logger.debug("Created frame %r", name)
        return frame

    def _writable_frame(self, name: str) -> Frame:
        frame = self.get_or_create_frame(name)
        if name in self._shared:
            frame = frame.copy()
            self._frames[name] = frame
            self._shared.discard(name)
        return frame

    def add_transform(self, child: str, parent: str, stamp: TimeLike, pose: Pose) -> bool:
        """Record `child`'s pose in `parent` at `stamp`; the last write at a stamp wins.

        Returns whether the stored data changed.
        """
        self.get_or_create_frame(parent)
        frame = self._writable_frame(child)
        sample = TransformSample(stamp=to_time(stamp), parent=parent, pose=pose)
        if frame._set_sample(sample):
            self._changed = True
            return True
        return False

    def add_transform_message(self, message: TransformStamped) -> bool:
        return self.add_transform(
            message.child_frame_id,
            message.header.frame_id,
            message.header.stamp,
            message.transform,
        )

    def trim_frame_older_than(self, name: str, stamp: TimeLike) -> int:
        frame = self._frames.get(name)
        if frame is None:
            return 0
        cutoff = to_time(stamp)
        if frame.count_older_than(cutoff) == 0:
            return 0
        removed = self._writable_frame(name)._trim_older_than(cutoff)
        self._changed = True
        return removed

    def trim_older_than(self, stamp: TimeLike) -> int:
        cutoff = to_time(stamp)
        removed = 0
        for name in list(self._frames):
            removed += self.trim_frame_older_than(name, cutoff)
        if removed:
            logger.debug("Trimmed %d samples older than %s", removed, cutoff)
        return removed

    def latest_stamp(self) -> Time | None:
        out: Time | None = None
        for frame in self._frames.values():
            bounds = frame.stamp_bounds()
            if bounds is not None and (out is None or bounds[1] > out):
                out = bounds[1]
        return out

    def publish(self) -> TransformSnapshot:
        """Return a snapshot of the current state.

        The previous snapshot object is returned again when nothing changed
        since it was published, so consumers memoizing on identity skip work.
        """
        if self._snapshot is not None and not self._changed:
            return self._snapshot
        if self._snapshot is not None:
            self._generation += 1
        self._snapshot = TransformSnapshot(self._frames, self._generation)
        self._shared = set(self._frames)
        self._changed = False
        logger.debug("Published snapshot generation %d (%d frames)", self._generation, len(self._frames))
        return self._snapshot
