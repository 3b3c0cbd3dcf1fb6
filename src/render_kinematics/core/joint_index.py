"""Bidirectional mapping between actuated joint names and DOF indices."""

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

import jax
import jax.numpy as jnp
import numpy as np

from .errors import MalformedTreeError, UnknownJointWarning
from .tree import Joint, KinematicTree

logger = logging.getLogger(__name__)

Array = jax.Array
NamedAngles = Union[Mapping[str, float], Iterable[Tuple[str, float]]]


class JointIndex:
    """Dense DOF index over the actuated joints of a tree.

    Position ``i`` of any joint angle vector holds the value of
    ``joint_names()[i]``.
    """

    def __init__(self, tree: KinematicTree):
        joints: List[Optional[Joint]] = [None] * tree.dof_count()
        for joint in tree.joints():
            i = joint.dof_index
            if i is None or not 0 <= i < len(joints) or joints[i] is not None:
                raise MalformedTreeError(f"Joint '{joint.name}' has invalid or repeated DOF index {i}")
            joints[i] = joint
        if any(joint is None for joint in joints):
            raise MalformedTreeError("DOF indices do not cover [0, dof_count)")

        self._joints: Tuple[Joint, ...] = tuple(joints)
        self._index: Dict[str, int] = {joint.name: i for i, joint in enumerate(joints)}

    def index_of(self, joint_name: str) -> Optional[int]:
        return self._index.get(joint_name)

    def limits_of(self, joint_name: str) -> Optional[Tuple[float, float]]:
        i = self._index.get(joint_name)
        return None if i is None else self._joints[i].limits

    def size(self) -> int:
        return len(self._joints)

    def joint_names(self) -> Tuple[str, ...]:
        return tuple(joint.name for joint in self._joints)

    def build_angle_vector(self, named_angles: NamedAngles) -> Tuple[Array, List[UnknownJointWarning]]:
        """Scatter named joint values into a dense angle vector.

        Joints not mentioned stay at 0. Names the index does not know are
        dropped, one ``UnknownJointWarning`` per distinct name.

        Args:
            named_angles: mapping or iterable of (joint name, value) pairs

        Returns:
            (angle vector of shape (size(),), list of warnings)
        """
        if isinstance(named_angles, Mapping):
            pairs = named_angles.items()
        else:
            pairs = named_angles

        q = np.zeros(self.size(), dtype=np.float64)
        warnings: List[UnknownJointWarning] = []
        unknown = set()
        for name, angle in pairs:
            i = self._index.get(name)
            if i is not None:
                q[i] = angle
            elif name not in unknown:
                unknown.add(name)
                warnings.append(UnknownJointWarning(name))
                logger.warning("No joint index for %s", name)
        return jnp.asarray(q), warnings

    def limit_violations(self, angle_vector) -> List[str]:
        """Names of joints whose value lies outside their limits."""
        q = np.asarray(angle_vector)
        return [
            joint.name for i, joint in enumerate(self._joints)
            if not joint.limits[0] <= q[i] <= joint.limits[1]
        ]

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, joint_name) -> bool:
        return joint_name in self._index

    def __repr__(self) -> str:
        return f"JointIndex({list(self.joint_names())})"
