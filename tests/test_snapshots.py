from __future__ import annotations

import numpy as np

from frametree.core.accumulator import AccumulatorState, TransformAccumulator
from frametree.core.errors import LookupErrorCode
from frametree.core.messages import Header, TransformStamped
from frametree.core.pose import Pose
from frametree.core.settings import SettingsStore, TransformSettings
from frametree.core.stamp import Time
from frametree.core.tree import TransformTree


def _tf(parent: str, child: str, sec: int, x: float) -> TransformStamped:
    return TransformStamped(
        header=Header(stamp=Time(sec, 0), frame_id=parent),
        child_frame_id=child,
        transform=Pose(translation=(x, 0.0, 0.0)),
    )


def _accumulator() -> TransformAccumulator:
    return TransformAccumulator(settings=SettingsStore(TransformSettings()))


def test_snapshot_is_isolated_from_later_writes() -> None:
    acc = _accumulator()
    s1 = acc.add_transforms([_tf("world", "robot", 0, 1.0), _tf("world", "dock", 0, 7.0)])
    before = s1.lookup_transform(10, "world", "robot").unwrap()

    s2 = acc.add_transforms([_tf("world", "robot", 10, 3.0)])
    assert s2 is not s1
    assert s2.generation == s1.generation + 1

    after = s1.lookup_transform(10, "world", "robot").unwrap()
    assert after == before
    assert np.allclose(after.translation, (1.0, 0.0, 0.0))
    assert np.allclose(s2.lookup_transform(10, "world", "robot").unwrap().translation, (3.0, 0.0, 0.0))

    robot_1 = s1.frame("robot")
    robot_2 = s2.frame("robot")
    assert robot_1 is not None and robot_2 is not None
    assert len(robot_1) == 1
    assert len(robot_2) == 2


def test_untouched_frames_are_shared_between_snapshots() -> None:
    acc = _accumulator()
    s1 = acc.add_transforms([_tf("world", "robot", 0, 1.0), _tf("world", "dock", 0, 7.0)])
    s2 = acc.add_transforms([_tf("world", "robot", 1, 2.0)])
    assert s2.frame("dock") is s1.frame("dock")
    assert s2.frame("world") is s1.frame("world")
    assert s2.frame("robot") is not s1.frame("robot")


def test_unchanged_batch_reuses_snapshot_identity() -> None:
    acc = _accumulator()
    s1 = acc.add_transforms([_tf("world", "robot", 0, 1.0)])
    assert acc.ingest({}) is s1
    assert acc.add_transforms([_tf("world", "robot", 0, 1.0)]) is s1
    assert acc.snapshot() is s1


def test_tree_publish_is_copy_on_write() -> None:
    tree = TransformTree()
    tree.add_transform("robot", "world", Time(0, 0), Pose(translation=(1.0, 0.0, 0.0)))
    snap = tree.publish()
    assert tree.publish() is snap

    tree.add_transform("robot", "world", Time(1, 0), Pose(translation=(2.0, 0.0, 0.0)))
    tree.get_or_create_frame("camera")
    assert tree.changed
    assert "camera" not in snap
    robot = snap.frame("robot")
    assert robot is not None and len(robot) == 1

    tree.trim_older_than(Time(1, 0))
    robot = snap.frame("robot")
    assert robot is not None and len(robot) == 1

    newer = tree.publish()
    assert newer is not snap
    assert "camera" in newer


def test_reset_discards_frames_but_keeps_old_snapshots_valid() -> None:
    acc = _accumulator()
    s1 = acc.add_transforms([_tf("world", "robot", 0, 1.0)])
    assert acc.state == AccumulatorState.ACCUMULATING

    fresh = acc.reset()
    assert acc.state == AccumulatorState.EMPTY
    assert len(fresh) == 0
    res = fresh.lookup_transform(0, "world", "robot")
    assert res.error in (LookupErrorCode.FRAME_NOT_FOUND, LookupErrorCode.NO_DATA_FOR_FRAME)

    # A reader still holding s1 keeps its view.
    assert s1.lookup_transform(0, "world", "robot").ok

    again = acc.add_transforms([_tf("world", "robot", 5, 4.0)])
    assert np.allclose(again.lookup_transform(0, "world", "robot").unwrap().translation, (4.0, 0.0, 0.0))
