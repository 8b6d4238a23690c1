"""
Transform math - Vectors, quaternions and rigid transforms.

Provides:
- Quaternion helpers in [w, x, y, z] (scalar-first) order
- Transform: translation + rotation with axis accessors
- Composition of parent/child transforms (vehicle -> tire)

Frame convention: Y is up, a vehicle's nose points along local +X.
"""

from dataclasses import dataclass, field
import numpy as np


X_AXIS = np.array([1.0, 0.0, 0.0])
Y_AXIS = np.array([0.0, 1.0, 0.0])
Z_AXIS = np.array([0.0, 0.0, 1.0])


def vec3(x: float = 0.0, y: float = 0.0, z: float = 0.0) -> np.ndarray:
    """Build a float 3-vector."""
    return np.array([x, y, z], dtype=float)


def quat_identity() -> np.ndarray:
    """Identity rotation."""
    return np.array([1.0, 0.0, 0.0, 0.0])


def quat_from_axis_angle(axis: np.ndarray, angle: float) -> np.ndarray:
    """Create a quaternion rotating by ``angle`` radians about ``axis``.

    Args:
        axis: Rotation axis (normalized internally)
        angle: Rotation angle in radians (right-handed)

    Returns:
        Unit quaternion [w, x, y, z]
    """
    axis = np.asarray(axis, dtype=float)
    norm = np.linalg.norm(axis)
    if norm < 1e-12:
        return quat_identity()
    half = 0.5 * angle
    xyz = axis / norm * np.sin(half)
    return np.array([np.cos(half), xyz[0], xyz[1], xyz[2]])


def quat_multiply(q1: np.ndarray, q2: np.ndarray) -> np.ndarray:
    """Hamilton product ``q1 * q2`` (apply q2 first, then q1)."""
    w1, x1, y1, z1 = q1
    w2, x2, y2, z2 = q2
    return np.array([
        w1*w2 - x1*x2 - y1*y2 - z1*z2,
        w1*x2 + x1*w2 + y1*z2 - z1*y2,
        w1*y2 - x1*z2 + y1*w2 + z1*x2,
        w1*z2 + x1*y2 - y1*x2 + z1*w2,
    ])


def quat_normalize(q: np.ndarray) -> np.ndarray:
    """Normalize quaternion to unit length (degenerate input -> identity)."""
    norm = np.linalg.norm(q)
    if norm < 1e-12:
        return quat_identity()
    return np.asarray(q, dtype=float) / norm


def quat_rotate_vector(q: np.ndarray, v: np.ndarray) -> np.ndarray:
    """Rotate a vector by a unit quaternion.

    Uses v' = v + 2 * (qw * (qv x v) + qv x (qv x v)).
    """
    qw = q[0]
    qv = np.asarray(q[1:4], dtype=float)
    uv = np.cross(qv, v)
    uuv = np.cross(qv, uv)
    return np.asarray(v, dtype=float) + 2.0 * (qw * uv + uuv)


def quat_inverse(q: np.ndarray) -> np.ndarray:
    """Inverse of a unit quaternion (its conjugate)."""
    return np.array([q[0], -q[1], -q[2], -q[3]])


@dataclass
class Transform:
    """Rigid transform: rotation followed by translation."""
    translation: np.ndarray = field(default_factory=vec3)
    rotation: np.ndarray = field(default_factory=quat_identity)

    def __post_init__(self):
        self.translation = np.asarray(self.translation, dtype=float).copy()
        self.rotation = quat_normalize(np.asarray(self.rotation, dtype=float))

    @classmethod
    def from_xyz(cls, x: float, y: float, z: float) -> "Transform":
        """Pure translation."""
        return cls(translation=vec3(x, y, z))

    def copy(self) -> "Transform":
        """Return an independent copy."""
        return Transform(self.translation.copy(), self.rotation.copy())

    def rotate(self, local_vec: np.ndarray) -> np.ndarray:
        """Rotate a local direction into the parent frame."""
        return quat_rotate_vector(self.rotation, local_vec)

    def transform_point(self, local_point: np.ndarray) -> np.ndarray:
        """Map a local point into the parent frame."""
        return self.translation + self.rotate(local_point)

    def inverse_transform_point(self, point: np.ndarray) -> np.ndarray:
        """Map a parent-frame point into this local frame."""
        return quat_rotate_vector(quat_inverse(self.rotation), point - self.translation)

    def mul_transform(self, child: "Transform") -> "Transform":
        """Compose ``self * child``: the child's pose expressed in our parent frame.

        Args:
            child: Transform relative to this one

        Returns:
            Child transform in the parent (world) frame
        """
        return Transform(
            translation=self.transform_point(child.translation),
            rotation=quat_multiply(self.rotation, child.rotation),
        )

    def up(self) -> np.ndarray:
        """Local +Y in the parent frame."""
        return self.rotate(Y_AXIS)

    def down(self) -> np.ndarray:
        """Local -Y in the parent frame."""
        return -self.up()

    def drive_axis(self) -> np.ndarray:
        """Local +X in the parent frame (rolling / nose direction)."""
        return self.rotate(X_AXIS)

    def lateral_axis(self) -> np.ndarray:
        """Local -Z in the parent frame (steering direction, points left)."""
        return self.rotate(-Z_AXIS)
