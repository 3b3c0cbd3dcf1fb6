"""
render_kinematics: camera-relative link poses of an articulated robot.

Builds a kinematic tree from a robot description, solves forward kinematics
for a set of joint values and expresses every mesh-bearing link in the frame
of an observing camera, ready for rendering.
"""

import jax
jax.config.update("jax_enable_x64", True)

from . import transforms
from . import core
from . import io
from .chain import ChainTransform, forward_kinematics, forward_kinematics_world
from .config import RobotStateConfig
from .engine import ForwardKinematicsEngine, LinkPoseMap

__version__ = "0.1.0"
__all__ = [
    "transforms",
    "core",
    "io",
    "ChainTransform",
    "ForwardKinematicsEngine",
    "LinkPoseMap",
    "RobotStateConfig",
    "forward_kinematics",
    "forward_kinematics_world",
]
