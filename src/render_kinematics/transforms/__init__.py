"""
Rigid-body transform utilities for robot kinematics.

- SO(3) rotations (so3 module)
- SE(3) homogeneous transforms (se3 module)
- FrameTransform, the immutable pose type handed to consumers

All functions are pure, stateless and JIT-compilable.
"""

from . import so3
from . import se3
from .frame import FrameTransform

__all__ = [
    "so3",
    "se3",
    "FrameTransform",
]
