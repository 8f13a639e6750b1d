from __future__ import annotations

from .frames import Frame, TransformSample
from .stamp import Time


def sample_frame(frame: Frame, stamp: Time) -> TransformSample | None:
    """Resolve the frame's transform to its parent at `stamp`.

    Between two samples the translation is interpolated linearly and the
    rotation spherically. Outside the recorded range the nearest sample is
    returned unchanged. When the bracketing samples name different parents the
    earlier one wins, since a pose cannot be blended across a reparenting.
    Returns None only for a frame with no samples.
    """
    before, after = frame.bracket(stamp)
    if before is None and after is None:
        return None
    if before is None:
        return after
    if after is None or after is before:
        return before
    if before.parent != after.parent:
        return before

    span_ns = after.stamp - before.stamp
    if span_ns <= 0:
        return before
    fraction = float(stamp - before.stamp) / float(span_ns)
    return TransformSample(
        stamp=stamp,
        parent=before.parent,
        pose=before.pose.interpolate(after.pose, fraction),
    )
