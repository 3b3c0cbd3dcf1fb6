"""Kinematic tree: segments connected by joints, built once and never mutated.

Segments are kept in breadth-first order from the root, with children in the
order their joints were declared. That order is the canonical traversal of the
whole package: DOF indices, the flattened ``RobotModel`` and every iteration
over the tree follow it.
"""

import logging
import math
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

import jax
import jax.numpy as jnp

from ..transforms import FrameTransform, se3
from .description import JointDescription, RobotDescription
from .errors import MalformedTreeError, NoChainError, NotFoundError

logger = logging.getLogger(__name__)

Array = jax.Array


class JointType(str, Enum):
    REVOLUTE = "revolute"
    CONTINUOUS = "continuous"
    PRISMATIC = "prismatic"
    FIXED = "fixed"

    @property
    def is_actuated(self) -> bool:
        return self is not JointType.FIXED


@dataclass(frozen=True)
class Joint:
    """Parameterised motion between a segment and its parent.

    Attributes:
        name: Unique joint name.
        type: Kind of motion.
        axis: Unit motion axis in the joint frame.
        limits: (lower, upper), None for fixed joints.
        dof_index: Position of this joint's value in an angle vector, None for
                   fixed joints.
    """
    name: str
    type: JointType
    axis: Tuple[float, float, float] = (0.0, 0.0, 1.0)
    limits: Optional[Tuple[float, float]] = None
    dof_index: Optional[int] = None

    @property
    def twist(self) -> Array:
        """Unit twist [v, w] of this joint; zero for fixed joints."""
        axis = jnp.asarray(self.axis, dtype=jnp.float64)
        zeros = jnp.zeros(3, dtype=jnp.float64)
        if self.type is JointType.PRISMATIC:
            return jnp.concatenate([axis, zeros])
        if self.type is JointType.FIXED:
            return jnp.zeros(6, dtype=jnp.float64)
        return jnp.concatenate([zeros, axis])

    def motion(self, value) -> Array:
        """(4, 4) transform produced by moving the joint to ``value``."""
        return se3.exp(self.twist * value)


@dataclass(frozen=True, eq=False)
class Segment:
    """A rigid body frame reached from its parent through ``origin`` and ``joint``.

    ``parent`` and ``children`` are names; the tree owns the segments.
    """
    name: str
    origin: FrameTransform
    joint: Optional[Joint] = None
    parent: Optional[str] = None
    children: Tuple[str, ...] = ()

    @property
    def is_actuated(self) -> bool:
        return self.joint is not None and self.joint.type.is_actuated

    def local_transform(self, value=0.0) -> FrameTransform:
        """Pose of this segment in its parent's frame for joint value ``value``."""
        if not self.is_actuated:
            return self.origin
        return FrameTransform(se3.multiply(self.origin.matrix, self.joint.motion(value)))


class KinematicTree:
    """Immutable single-rooted tree of segments.

    Args:
        description: Link/joint hierarchy to validate and build from.

    Raises:
        MalformedTreeError: if the hierarchy is not a valid single-rooted tree.
    """

    def __init__(self, description: RobotDescription):
        self.name = description.name

        link_names = [link.name for link in description.links]
        _reject_duplicates(link_names, "link")
        _reject_duplicates([joint.name for joint in description.joints], "joint")
        known_links = set(link_names)

        joint_by_child: Dict[str, JointDescription] = {}
        children: Dict[str, List[str]] = {name: [] for name in link_names}
        for joint in description.joints:
            for role, link in (("parent", joint.parent), ("child", joint.child)):
                if link not in known_links:
                    raise MalformedTreeError(
                        f"Joint '{joint.name}' references unknown {role} link '{link}'")
            if joint.child in joint_by_child:
                raise MalformedTreeError(
                    f"Link '{joint.child}' is the child of both '{joint_by_child[joint.child].name}' "
                    f"and '{joint.name}'")
            joint_by_child[joint.child] = joint
            children[joint.parent].append(joint.child)

        roots = [name for name in link_names if name not in joint_by_child]
        if len(roots) != 1:
            raise MalformedTreeError(f"Expected exactly one root link, found: {roots}")
        root_name = roots[0]

        # Breadth-first from the root, children in joint declaration order
        order: List[str] = []
        queue = deque([root_name])
        while queue:
            current = queue.popleft()
            order.append(current)
            queue.extend(children[current])

        unreachable = known_links.difference(order)
        if unreachable:
            raise MalformedTreeError(f"Links not reachable from root '{root_name}': {sorted(unreachable)}")

        segments: Dict[str, Segment] = {}
        dof = 0
        for name in order:
            joint_desc = joint_by_child.get(name)
            joint = None
            origin = FrameTransform.identity()
            if joint_desc is not None:
                joint = _build_joint(joint_desc, dof)
                if joint.dof_index is not None:
                    dof += 1
                origin = FrameTransform.from_xyz_rpy(joint_desc.origin_xyz, joint_desc.origin_rpy)
            segments[name] = Segment(
                name=name,
                origin=origin,
                joint=joint,
                parent=joint_desc.parent if joint_desc is not None else None,
                children=tuple(children[name]),
            )

        self._segments = segments
        self._root = root_name
        self._dof = dof
        logger.info("Built kinematic tree '%s': %d segments, %d DOF, root '%s'",
                    self.name, len(segments), dof, root_name)

    def segment_by_name(self, name: str) -> Segment:
        try:
            return self._segments[name]
        except KeyError:
            raise NotFoundError(name) from None

    def root(self) -> Segment:
        return self._segments[self._root]

    def dof_count(self) -> int:
        return self._dof

    def segment_names(self) -> Tuple[str, ...]:
        return tuple(self._segments)

    def joints(self) -> Tuple[Joint, ...]:
        """Actuated joints in canonical order."""
        return tuple(s.joint for s in self._segments.values() if s.is_actuated)

    def ancestors(self, name: str) -> List[str]:
        """Names from ``name`` (inclusive) up to the root, innermost first."""
        chain = [self.segment_by_name(name).name]
        while self._segments[chain[-1]].parent is not None:
            chain.append(self._segments[chain[-1]].parent)
        return chain

    def path_between(self, ancestor: str, descendant: str) -> List[str]:
        """Names from ``ancestor`` down to ``descendant``, both inclusive.

        Raises:
            NoChainError: if ``ancestor`` is not an ancestor of ``descendant``.
        """
        upward = self.ancestors(descendant)
        if ancestor not in upward:
            raise NoChainError(f"'{ancestor}' is not an ancestor of '{descendant}'")
        return list(reversed(upward[:upward.index(ancestor) + 1]))

    def __iter__(self) -> Iterator[Segment]:
        return iter(self._segments.values())

    def __len__(self) -> int:
        return len(self._segments)

    def __contains__(self, name) -> bool:
        return name in self._segments

    def __repr__(self) -> str:
        return f"KinematicTree(name={self.name!r}, segments={len(self)}, dof={self._dof})"


def _reject_duplicates(names: List[str], kind: str) -> None:
    seen = set()
    for name in names:
        if name in seen:
            raise MalformedTreeError(f"Duplicate {kind} name '{name}'")
        seen.add(name)


def _build_joint(desc: JointDescription, next_dof: int) -> Joint:
    try:
        joint_type = JointType(desc.type)
    except ValueError:
        raise MalformedTreeError(f"Joint '{desc.name}' has unsupported type '{desc.type}'") from None

    if not joint_type.is_actuated:
        return Joint(name=desc.name, type=joint_type)

    norm = math.sqrt(sum(c * c for c in desc.axis))
    if norm < 1e-12:
        raise MalformedTreeError(f"Joint '{desc.name}' has a zero motion axis")
    axis = tuple(float(c) / norm for c in desc.axis)

    lower, upper = desc.lower, desc.upper
    if joint_type is JointType.CONTINUOUS:
        lower = -math.inf if lower is None else lower
        upper = math.inf if upper is None else upper
    elif lower is None or upper is None:
        raise MalformedTreeError(f"Joint '{desc.name}' of type '{desc.type}' has no limits")
    if lower > upper:
        raise MalformedTreeError(f"Joint '{desc.name}' has lower limit {lower} above upper limit {upper}")

    return Joint(name=desc.name, type=joint_type, axis=axis,
                 limits=(float(lower), float(upper)), dof_index=next_dof)
