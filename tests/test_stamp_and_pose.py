from __future__ import annotations

import math

import numpy as np
import pytest

from frametree.core.pose import Pose, slerp_xyzw
from frametree.core.stamp import Time, to_time


def _yaw(deg: float) -> tuple[float, float, float, float]:
    half = math.radians(deg) / 2.0
    return (0.0, 0.0, math.sin(half), math.cos(half))


def test_time_normalizes_and_orders_on_integers() -> None:
    assert Time(1, 1_500_000_000) == Time(2, 500_000_000)
    assert Time(0, -1) == Time(-1, 999_999_999)
    assert Time(1, 0) < Time(1, 1) < Time(2, 0)
    assert Time(3, 250) - Time(1, 0) == 2_000_000_250

    # Stamps one nanosecond apart stay distinct at large epochs.
    a = Time(1_700_000_000, 1)
    b = Time(1_700_000_000, 2)
    assert a != b
    assert b - a == 1


def test_to_time_accepts_common_forms() -> None:
    assert to_time(Time(4, 5)) == Time(4, 5)
    assert to_time((4, 5)) == Time(4, 5)
    assert to_time({"sec": 4, "nanosec": 5}) == Time(4, 5)
    assert to_time(7) == Time(7, 0)
    assert to_time(1.25) == Time(1, 250_000_000)
    assert to_time(-0.5) == Time(-1, 500_000_000)

    with pytest.raises(ValueError):
        to_time(float("nan"))
    with pytest.raises(ValueError):
        to_time((1, 2, 3))


def test_time_rejects_fractional_fields() -> None:
    assert Time(2.0, 0) == Time(2, 0)
    assert Time(np.int64(3), np.int64(7)) == Time(3, 7)

    with pytest.raises(ValueError):
        Time(1.5, 0)
    with pytest.raises(ValueError):
        Time(0, 0.25)
    with pytest.raises(ValueError):
        to_time((1.5, 0))
    with pytest.raises(ValueError):
        to_time({"sec": 1, "nsec": 2.5})
    with pytest.raises(ValueError):
        Time("1", 0)  # type: ignore[arg-type]


def test_pose_compose_and_inverse() -> None:
    t_world_robot = Pose(translation=(1.0, 0.0, 0.0), rotation=_yaw(90.0))
    t_robot_sensor = Pose(translation=(1.0, 0.0, 0.0))

    t_world_sensor = t_world_robot @ t_robot_sensor
    assert np.allclose(t_world_sensor.translation, (1.0, 1.0, 0.0), atol=1e-9)
    assert t_world_sensor.is_close(Pose(translation=(1.0, 1.0, 0.0), rotation=_yaw(90.0)))

    roundtrip = t_world_sensor @ t_world_sensor.inverse()
    assert roundtrip.is_close(Pose.identity())

    assert Pose.from_matrix(t_world_sensor.to_matrix()).is_close(t_world_sensor)


def test_transform_points_matches_matrix() -> None:
    pose = Pose(translation=(0.0, 0.0, 2.0), rotation=_yaw(90.0))
    pts = np.asarray([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]], dtype=np.float64)
    out = pose.transform_points(pts)
    assert np.allclose(out, [[0.0, 1.0, 2.0], [-1.0, 0.0, 2.0]], atol=1e-9)


def test_slerp_halfway_and_shortest_arc() -> None:
    mid = slerp_xyzw(_yaw(0.0), _yaw(90.0), 0.5)
    assert np.allclose(mid, _yaw(45.0), atol=1e-9)

    # -q is the same rotation; interpolation must not take the long way round.
    neg = tuple(-v for v in _yaw(90.0))
    mid_neg = slerp_xyzw(_yaw(0.0), neg, 0.5)
    assert np.allclose(mid_neg, _yaw(45.0), atol=1e-9)


def test_pose_interpolate_translation_and_rotation() -> None:
    a = Pose(translation=(0.0, 0.0, 0.0), rotation=_yaw(0.0))
    b = Pose(translation=(10.0, -4.0, 2.0), rotation=_yaw(90.0))
    mid = a.interpolate(b, 0.25)
    assert np.allclose(mid.translation, (2.5, -1.0, 0.5))
    assert np.allclose(mid.rotation, _yaw(22.5), atol=1e-9)


def test_non_finite_pose_propagates_instead_of_raising() -> None:
    bad = Pose(translation=(float("nan"), 0.0, 0.0))
    out = bad @ Pose(translation=(1.0, 0.0, 0.0))
    assert math.isnan(out.translation[0])

    zero_quat = Pose(rotation=(0.0, 0.0, 0.0, 0.0))
    assert np.isnan(zero_quat.to_matrix()[:3, :3]).all()
