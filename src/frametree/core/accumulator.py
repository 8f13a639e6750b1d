from __future__ import annotations

import logging
import math
import threading
from collections.abc import Iterable, Mapping, Sequence
from enum import Enum
from typing import Any

from .messages import (
    TF_DATATYPES,
    TRANSFORM_STAMPED_DATATYPES,
    MessageEvent,
    TFMessage,
    Topic,
    TransformLink,
    TransformStamped,
    header_frame_id,
)
from .settings import SettingsStore
from .stamp import NSEC_PER_SEC, ZERO, Time, TimeLike, to_time
from .tree import TransformSnapshot, TransformTree

logger = logging.getLogger(__name__)

Batch = Mapping[str, Sequence[Any]]


class AccumulatorState(str, Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"


class TransformAccumulator:
    """Feeds playback batches into a transform tree and publishes snapshots.

    One batch in, one snapshot out. The snapshot object only changes when the
    batch changed the tree. `reset()` (or `ingest(..., reset=True)`) discards
    every accumulated transform; snapshots already handed out stay valid.
    """

    def __init__(
        self,
        settings: SettingsStore | None = None,
        static_links: Iterable[TransformLink] = (),
    ) -> None:
        self._lock = threading.RLock()
        self.settings = settings if settings is not None else SettingsStore()
        self._static_links: tuple[TransformLink, ...] = tuple(static_links)
        self._tree = TransformTree()
        self._state = AccumulatorState.EMPTY
        self._latest_stamp: Time | None = None
        self._apply_static_links_locked()
        self._snapshot = self._tree.publish()

    @property
    def state(self) -> AccumulatorState:
        with self._lock:
            return self._state

    def snapshot(self) -> TransformSnapshot:
        with self._lock:
            return self._snapshot

    def static_links(self) -> tuple[TransformLink, ...]:
        with self._lock:
            return self._static_links

    def _apply_static_links_locked(self) -> bool:
        changed = False
        for link in self._static_links:
            changed = self._tree.add_transform(link.child, link.parent, ZERO, link.transform) or changed
        return changed

    def _reset_locked(self) -> None:
        # Generations keep counting across resets so pollers notice the swap.
        self._tree = TransformTree(generation=self._snapshot.generation + 1)
        self._state = AccumulatorState.EMPTY
        self._latest_stamp = None
        self._apply_static_links_locked()
        logger.info("Transform tree reset (%d static links)", len(self._static_links))

    def reset(self) -> TransformSnapshot:
        with self._lock:
            self._reset_locked()
            self._snapshot = self._tree.publish()
            return self._snapshot

    def set_static_links(self, links: Iterable[TransformLink]) -> TransformSnapshot:
        """Replace the static links; they are applied now and after every reset."""
        with self._lock:
            self._static_links = tuple(links)
            self._apply_static_links_locked()
            self._snapshot = self._tree.publish()
            return self._snapshot

    def _add_transform_locked(self, message: TransformStamped) -> None:
        self._tree.add_transform_message(message)
        stamp = message.header.stamp
        if self._latest_stamp is None or stamp > self._latest_stamp:
            self._latest_stamp = stamp

    def _consume_message_locked(self, message: Any, datatype: str) -> None:
        frame_id = header_frame_id(message)
        if frame_id:
            self._tree.get_or_create_frame(frame_id)
        else:
            for marker in getattr(message, "markers", None) or ():
                marker_frame = header_frame_id(marker)
                if marker_frame:
                    self._tree.get_or_create_frame(marker_frame)

        # A declared datatype must also match the decoded value; mismatches only register frames.
        if isinstance(message, TFMessage) and (not datatype or datatype in TF_DATATYPES):
            for tf in message.transforms:
                self._add_transform_locked(tf)
        elif isinstance(message, TransformStamped) and (not datatype or datatype in TRANSFORM_STAMPED_DATATYPES):
            self._add_transform_locked(message)

    def _apply_retention_locked(self) -> None:
        retention_s = self.settings.get().retention_s
        if retention_s is None or self._latest_stamp is None:
            return
        window_ns = float(retention_s) * NSEC_PER_SEC
        if not math.isfinite(window_ns):
            # A window beyond float range covers every stamp.
            return
        cutoff = Time.from_nanoseconds(self._latest_stamp.to_nanoseconds() - int(round(window_ns)))
        self._tree.trim_older_than(cutoff)

    def _finish_batch_locked(self) -> TransformSnapshot:
        self._apply_retention_locked()
        if self._tree.changed:
            self._state = AccumulatorState.ACCUMULATING
        self._snapshot = self._tree.publish()
        return self._snapshot

    def ingest(
        self,
        frame: Batch,
        *,
        topics: Iterable[Topic] = (),
        reset: bool = False,
    ) -> TransformSnapshot:
        """Process one batch of message events keyed by topic name.

        Topics whose datatype is a TF type are consumed as transforms; every
        stamped message registers its `header.frame_id`. Without a known
        datatype, `TFMessage` and `TransformStamped` values are recognized by
        type.
        """
        datatypes = {t.name: t.datatype for t in topics}
        with self._lock:
            if reset:
                self._reset_locked()

            for topic, events in frame.items():
                datatype = datatypes.get(topic, "")
                for event in events or ():
                    message = event.message if isinstance(event, MessageEvent) else event
                    self._consume_message_locked(message, datatype)

            return self._finish_batch_locked()

    def add_transforms(self, messages: Iterable[TransformStamped]) -> TransformSnapshot:
        """Ingest bare transform messages as one batch."""
        with self._lock:
            for message in messages:
                self._add_transform_locked(message)
            return self._finish_batch_locked()

    def trim(self, before: TimeLike, *, frame: str | None = None) -> int:
        """Explicit retention hook; returns the number of samples dropped."""
        cutoff = to_time(before)
        with self._lock:
            if frame is None:
                removed = self._tree.trim_older_than(cutoff)
            else:
                removed = self._tree.trim_frame_older_than(frame, cutoff)
            self._snapshot = self._tree.publish()
            return removed


TRANSFORMS = TransformAccumulator()
