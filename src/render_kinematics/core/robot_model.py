"""RobotModel PyTree: the kinematic tree flattened into arrays for JIT solving.

The tree is laid out in its canonical breadth-first order, so every parent
index is smaller than the index of its children and a single forward scan
visits parents before children.
"""

import jax.numpy as jnp
from jax import Array
from flax import struct
from typing import Tuple

from .joint_index import JointIndex
from .tree import KinematicTree


@struct.dataclass
class RobotModel:
    """Immutable PyTree representation of a kinematic tree.

    Attributes:
        link_names: Segment names; index i is segment i. Static for JIT.
        joint_names: Actuated joint names in DOF order. Static for JIT.
        parent_indices: Array of shape (num_links,); parent_indices[i] is the
                       parent of segment i. The root parents itself.
        joint_transforms: Array of shape (num_links, 4, 4) with each segment's
                         fixed offset from its parent frame.
        joint_axes: Array of shape (num_links, 6) with the unit twist
                   [vx,vy,vz,wx,wy,wz] of each segment's joint (zero if fixed).
        actuated_link_indices: Array of shape (num_dof,); entry k is the
                              segment moved by DOF k.
    """
    link_names: Tuple[str, ...] = struct.field(pytree_node=False)
    joint_names: Tuple[str, ...] = struct.field(pytree_node=False)
    parent_indices: Array
    joint_transforms: Array
    joint_axes: Array
    actuated_link_indices: Array


def build_robot_model(tree: KinematicTree, joint_index: JointIndex) -> RobotModel:
    """Flatten ``tree`` into a RobotModel whose DOF order is ``joint_index``'s."""
    link_names = tree.segment_names()
    position = {name: i for i, name in enumerate(link_names)}

    parent_indices = []
    transforms = []
    axes = []
    actuated = [0] * joint_index.size()
    for i, segment in enumerate(tree):
        parent_indices.append(i if segment.parent is None else position[segment.parent])
        transforms.append(segment.origin.matrix)
        if segment.is_actuated:
            axes.append(segment.joint.twist)
            actuated[joint_index.index_of(segment.joint.name)] = i
        else:
            axes.append(jnp.zeros(6, dtype=jnp.float64))

    return RobotModel(
        link_names=link_names,
        joint_names=joint_index.joint_names(),
        parent_indices=jnp.array(parent_indices, dtype=jnp.int32),
        joint_transforms=jnp.stack(transforms),
        joint_axes=jnp.stack(axes),
        actuated_link_indices=jnp.array(actuated, dtype=jnp.int32),
    )
