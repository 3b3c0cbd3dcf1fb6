"""Errors and warnings raised by the kinematic model and engine."""


class KinematicsError(Exception):
    """Base class for all render_kinematics errors."""
    pass


class DescriptionParseError(KinematicsError):
    """A robot description document could not be read."""
    pass


class MalformedTreeError(KinematicsError):
    """The link/joint hierarchy cannot form a single-rooted kinematic tree."""
    pass


class NotFoundError(KinematicsError, KeyError):
    """A segment or joint name is not part of the tree."""

    def __init__(self, name: str, kind: str = "Segment"):
        self.name = name
        self.kind = kind
        super().__init__(f"{kind} '{name}' not found in kinematic tree")

    def __str__(self) -> str:
        return self.args[0]


class NoChainError(KinematicsError):
    """Two frames are not connected by a single unbranching path."""
    pass


class ChainJointMissingError(KinematicsError):
    """A joint on the camera chain has no DOF slot in the joint index.

    Only possible when the tree and the index were built inconsistently.
    """

    def __init__(self, joint_name: str):
        self.joint_name = joint_name
        super().__init__(f"Joint '{joint_name}' in chain has no entry in the joint index")


class KinematicSolveError(KinematicsError):
    """The pose of a single segment could not be computed."""

    def __init__(self, segment_name: str, reason: str):
        self.segment_name = segment_name
        self.reason = reason
        super().__init__(f"Could not solve pose of segment '{segment_name}': {reason}")


class UnknownJointWarning(UserWarning):
    """A joint-state entry named a joint that the tree does not model."""

    def __init__(self, joint_name: str):
        self.joint_name = joint_name
        super().__init__(f"No joint index for '{joint_name}', value dropped")

    def __eq__(self, other):
        return isinstance(other, UnknownJointWarning) and other.joint_name == self.joint_name

    def __hash__(self):
        return hash(self.joint_name)
