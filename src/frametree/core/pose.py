from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
from scipy.spatial.transform import Rotation, Slerp


Vec3 = tuple[float, float, float]
QuatXYZW = tuple[float, float, float, float]


def _is_degenerate(q: np.ndarray) -> bool:
    return not np.isfinite(q).all() or not np.any(q)


def quat_xyzw_to_matrix(q_xyzw: QuatXYZW | list[float] | np.ndarray) -> np.ndarray:
    q = np.asarray(q_xyzw, dtype=np.float64).reshape(4)
    # Degenerate input propagates as NaN instead of raising; upstream decoding owns validation.
    if _is_degenerate(q):
        return np.full((3, 3), np.nan, dtype=np.float64)
    return Rotation.from_quat(q).as_matrix()


def quat_xyzw_from_matrix(m: np.ndarray) -> QuatXYZW:
    r = np.asarray(m, dtype=np.float64).reshape(3, 3)
    if not np.isfinite(r).all():
        return np.nan, np.nan, np.nan, np.nan
    x, y, z, w = Rotation.from_matrix(r).as_quat().tolist()
    return x, y, z, w


def pose_matrix(
    position: Vec3 | list[float] | np.ndarray,
    rotation_xyzw: QuatXYZW | list[float] | np.ndarray,
) -> np.ndarray:
    t = np.eye(4, dtype=np.float64)
    t[:3, :3] = quat_xyzw_to_matrix(rotation_xyzw)
    t[:3, 3] = np.asarray(position, dtype=np.float64).reshape(3)
    return t


def slerp_xyzw(q0: QuatXYZW | np.ndarray, q1: QuatXYZW | np.ndarray, fraction: float) -> np.ndarray:
    """Spherical interpolation along the shortest arc between two quaternions.

    `fraction` is clamped to [0, 1]. A non-finite or zero-norm endpoint yields
    a NaN quaternion, matching `quat_xyzw_to_matrix`.
    """
    a = np.asarray(q0, dtype=np.float64).reshape(4)
    b = np.asarray(q1, dtype=np.float64).reshape(4)
    if _is_degenerate(a) or _is_degenerate(b):
        return np.full(4, np.nan, dtype=np.float64)
    t = min(max(float(fraction), 0.0), 1.0)
    slerp = Slerp([0.0, 1.0], Rotation.from_quat(np.stack([a, b])))
    return slerp([t]).as_quat(canonical=True)[0]


@dataclass(frozen=True)
class Pose:
    """Rigid-body transform: translation plus unit quaternion (x, y, z, w).

    A pose `T_parent_child` maps points expressed in the child frame into the
    parent frame.
    """

    translation: Vec3 = (0.0, 0.0, 0.0)
    rotation: QuatXYZW = (0.0, 0.0, 0.0, 1.0)

    @classmethod
    def identity(cls) -> "Pose":
        return cls()

    @classmethod
    def from_matrix(cls, t: np.ndarray) -> "Pose":
        m = np.asarray(t, dtype=np.float64)
        if m.shape != (4, 4):
            raise ValueError(f"Expected a 4x4 matrix, got {m.shape}")
        pos = (float(m[0, 3]), float(m[1, 3]), float(m[2, 3]))
        return cls(translation=pos, rotation=quat_xyzw_from_matrix(m[:3, :3]))

    @classmethod
    def from_arrays(cls, translation: Any, rotation: Any) -> "Pose":
        p = np.asarray(translation, dtype=np.float64).reshape(3)
        q = np.asarray(rotation, dtype=np.float64).reshape(4)
        return cls(
            translation=(float(p[0]), float(p[1]), float(p[2])),
            rotation=(float(q[0]), float(q[1]), float(q[2]), float(q[3])),
        )

    def to_matrix(self) -> np.ndarray:
        return pose_matrix(self.translation, self.rotation)

    def compose(self, other: "Pose") -> "Pose":
        """Return `self @ other`, i.e. `T_a_c` from `T_a_b` (self) and `T_b_c` (other)."""
        return Pose.from_matrix(self.to_matrix() @ other.to_matrix())

    def __matmul__(self, other: "Pose") -> "Pose":
        return self.compose(other)

    def inverse(self) -> "Pose":
        m = self.to_matrix()
        r_t = m[:3, :3].T
        inv = np.eye(4, dtype=np.float64)
        inv[:3, :3] = r_t
        inv[:3, 3] = -r_t @ m[:3, 3]
        return Pose.from_matrix(inv)

    def transform_points(self, points: np.ndarray) -> np.ndarray:
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        m = self.to_matrix()
        return pts @ m[:3, :3].T + m[:3, 3]

    def interpolate(self, other: "Pose", fraction: float) -> "Pose":
        t = float(fraction)
        p0 = np.asarray(self.translation, dtype=np.float64)
        p1 = np.asarray(other.translation, dtype=np.float64)
        return Pose.from_arrays(p0 + (p1 - p0) * t, slerp_xyzw(self.rotation, other.rotation, t))

    def is_close(self, other: "Pose", *, atol: float = 1e-6) -> bool:
        if not np.allclose(self.translation, other.translation, atol=atol):
            return False
        a = np.asarray(self.rotation, dtype=np.float64)
        b = np.asarray(other.rotation, dtype=np.float64)
        # q and -q represent the same orientation.
        return bool(np.allclose(a, b, atol=atol) or np.allclose(a, -b, atol=atol))


IDENTITY = Pose()
