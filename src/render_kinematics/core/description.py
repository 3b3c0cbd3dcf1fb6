"""Plain link/joint hierarchy handed over by a description supplier.

These records carry what a parsed robot description contains and nothing more.
They are not validated here; ``KinematicTree`` does that when it is built.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class LinkDescription:
    """A rigid body. ``visual_mesh`` is the mesh filename of its visual, if any."""
    name: str
    visual_mesh: Optional[str] = None


@dataclass(frozen=True)
class JointDescription:
    """A joint connecting ``parent`` to ``child``.

    Attributes:
        name: Unique joint name.
        type: One of "revolute", "continuous", "prismatic", "fixed".
        parent: Name of the parent link.
        child: Name of the child link.
        origin_xyz: Translation from the parent frame to the joint frame.
        origin_rpy: Fixed-axis roll/pitch/yaw of the joint frame.
        axis: Motion axis in the joint frame.
        lower: Lower limit (radians or metres), None if not given.
        upper: Upper limit, None if not given.
    """
    name: str
    type: str
    parent: str
    child: str
    origin_xyz: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    origin_rpy: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    axis: Tuple[float, float, float] = (0.0, 0.0, 1.0)
    lower: Optional[float] = None
    upper: Optional[float] = None


@dataclass(frozen=True)
class RobotDescription:
    """An unvalidated robot hierarchy in declaration order."""
    name: str = "robot"
    links: Tuple[LinkDescription, ...] = field(default_factory=tuple)
    joints: Tuple[JointDescription, ...] = field(default_factory=tuple)

    def link(self, name: str) -> Optional[LinkDescription]:
        for link in self.links:
            if link.name == name:
                return link
        return None

    def parent_map(self):
        """Child link name -> parent link name for every joint."""
        return {joint.child: joint.parent for joint in self.joints}
