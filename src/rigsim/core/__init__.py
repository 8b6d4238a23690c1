"""
Core module - Shared math for the force pipeline.
"""

from rigsim.core.transform import (
    Transform,
    vec3,
    quat_identity,
    quat_from_axis_angle,
    quat_multiply,
    quat_rotate_vector,
)

__all__ = [
    "Transform",
    "vec3",
    "quat_identity",
    "quat_from_axis_angle",
    "quat_multiply",
    "quat_rotate_vector",
]
