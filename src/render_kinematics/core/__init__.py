"""Kinematic model data structures.

The tree, joint index and mesh binding are built once from a robot description
and are immutable afterwards; the RobotModel is their array form for JAX.
"""

from .description import JointDescription, LinkDescription, RobotDescription
from .errors import (
    ChainJointMissingError,
    DescriptionParseError,
    KinematicSolveError,
    KinematicsError,
    MalformedTreeError,
    NoChainError,
    NotFoundError,
    UnknownJointWarning,
)
from .joint_index import JointIndex
from .mesh_binding import LinkMeshBinding
from .robot_model import RobotModel, build_robot_model
from .tree import Joint, JointType, KinematicTree, Segment

__all__ = [
    "ChainJointMissingError",
    "DescriptionParseError",
    "Joint",
    "JointDescription",
    "JointIndex",
    "JointType",
    "KinematicSolveError",
    "KinematicTree",
    "KinematicsError",
    "LinkDescription",
    "LinkMeshBinding",
    "MalformedTreeError",
    "NoChainError",
    "NotFoundError",
    "RobotDescription",
    "RobotModel",
    "Segment",
    "UnknownJointWarning",
    "build_robot_model",
]
