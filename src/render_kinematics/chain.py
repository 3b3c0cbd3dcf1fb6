"""Forward kinematics over the whole tree and along the camera chain.

``forward_kinematics_world`` solves every segment's root-relative pose in one
top-down pass. ``ChainTransform`` evaluates the fixed path between a base
frame and a camera frame, which is what makes link poses camera-relative.
"""

import logging
from typing import Dict, Tuple

import jax
import jax.numpy as jnp
from jax import Array

from .core import (
    ChainJointMissingError,
    JointIndex,
    KinematicTree,
    NoChainError,
    RobotModel,
    Segment,
)
from .transforms import FrameTransform, se3

logger = logging.getLogger(__name__)


def forward_kinematics(robot: RobotModel, q: Array) -> Dict[str, Array]:
    """Compute forward kinematics for all segments of the robot.

    Args:
        robot: RobotModel containing the robot's kinematic structure
        q: Joint values of shape (num_dof,) in DOF order

    Returns:
        Dictionary mapping segment names to their 4x4 root-relative poses
    """
    world_transforms = forward_kinematics_world(robot, q)
    return {name: world_transforms[i] for i, name in enumerate(robot.link_names)}


def forward_kinematics_world(robot: RobotModel, q: Array) -> Array:
    """Root-relative poses of all segments as one array.

    JIT-compatible; the engine compiles it once per model.

    Args:
        robot: RobotModel containing the robot's kinematic structure
        q: Joint values of shape (num_dof,) in DOF order

    Returns:
        Array of shape (num_links, 4, 4)
    """
    num_links = len(robot.link_names)

    # Per-segment joint values; fixed joints and the root keep zero
    q_full = jnp.zeros(num_links, dtype=robot.joint_transforms.dtype)
    q_full = q_full.at[robot.actuated_link_indices].set(q)

    world_transforms = jnp.broadcast_to(
        jnp.eye(4, dtype=robot.joint_transforms.dtype), (num_links, 4, 4))

    def scan_body(carry, i):
        """Pose of segment ``i`` from its parent's pose, already in ``carry``."""
        T_root_to_parent = carry[robot.parent_indices[i]]
        T_parent_to_child = robot.joint_transforms[i] @ se3.exp(robot.joint_axes[i] * q_full[i])
        carry = carry.at[i].set(T_root_to_parent @ T_parent_to_child)
        return carry, None

    # Index 0 is the root and stays identity; parents precede children.
    final_transforms, _ = jax.lax.scan(scan_body, world_transforms, jnp.arange(1, num_links))

    return final_transforms


class ChainTransform:
    """The unbranching path between a base frame and a camera frame.

    One frame must be an ancestor of the other (or both must be the same
    frame). ``evaluate`` returns the pose of the base frame expressed in the
    camera frame.

    Args:
        tree: Kinematic tree containing both frames.
        joint_index: DOF index used to read joint values along the path.
        base_frame: Name of the base segment.
        camera_frame: Name of the camera segment.

    Raises:
        NoChainError: if either frame is unknown or they lie on different branches.
    """

    def __init__(self, tree: KinematicTree, joint_index: JointIndex, base_frame: str, camera_frame: str):
        for frame in (base_frame, camera_frame):
            if frame not in tree:
                raise NoChainError(f"Frame '{frame}' is not part of tree '{tree.name}'")

        if base_frame == camera_frame:
            path, self._camera_below_base = [base_frame], False
        elif base_frame in tree.ancestors(camera_frame):
            path, self._camera_below_base = tree.path_between(base_frame, camera_frame), True
        elif camera_frame in tree.ancestors(base_frame):
            path, self._camera_below_base = tree.path_between(camera_frame, base_frame), False
        else:
            raise NoChainError(
                f"Could not create chain from {camera_frame} to {base_frame}: frames are on different branches")

        self.base_frame = base_frame
        self.camera_frame = camera_frame
        self.joint_index = joint_index
        self.segments: Tuple[str, ...] = tuple(path)
        # The first segment of the path is the top frame itself and adds no motion
        self._moving: Tuple[Segment, ...] = tuple(tree.segment_by_name(name) for name in path[1:])
        logger.info("Created chain from %s to %s (%d segments)", camera_frame, base_frame, len(self._moving))

    def num_joints(self) -> int:
        return sum(1 for segment in self._moving if segment.is_actuated)

    def evaluate(self, angle_vector: Array) -> FrameTransform:
        """Pose of the base frame in the camera frame for ``angle_vector``.

        Raises:
            ChainJointMissingError: if an actuated joint on the path is not in
                the joint index.
        """
        T = FrameTransform.identity()
        for segment in self._moving:
            value = 0.0
            if segment.is_actuated:
                i = self.joint_index.index_of(segment.joint.name)
                if i is None:
                    logger.error("Joint %s in chain not in joint index", segment.joint.name)
                    raise ChainJointMissingError(segment.joint.name)
                value = angle_vector[i]
            T = T.compose(segment.local_transform(value))

        # T runs top to bottom along the path; the camera must end up on the left
        return T.inverse() if self._camera_below_base else T

    def __repr__(self) -> str:
        return f"ChainTransform({' -> '.join(self.segments)})"
