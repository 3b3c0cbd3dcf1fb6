"""ForwardKinematicsEngine: joint values in, camera-relative link poses out.

Every call starts from scratch:

1. scatter the named joint values into a dense angle vector,
2. evaluate the base -> camera chain,
3. solve all segment poses relative to the tree root in one JIT-compiled pass,
4. re-express the mesh-bearing segments in the camera frame and hand them out
   keyed by link name.

A segment whose pose cannot be solved is left out of the result and reported;
the other segments are unaffected.
"""

import logging
from collections.abc import Mapping
from typing import Dict, Iterable, Iterator, Optional

import jax

from .chain import ChainTransform, forward_kinematics_world
from .config import RobotStateConfig
from .core import (
    JointIndex,
    KinematicSolveError,
    KinematicTree,
    LinkMeshBinding,
    RobotDescription,
    UnknownJointWarning,
    build_robot_model,
)
from .core.joint_index import NamedAngles
from .transforms import FrameTransform

logger = logging.getLogger(__name__)


class LinkPoseMap(Mapping):
    """Read-only mapping from link name to its pose in the camera frame.

    Attributes:
        warnings: Joint names that were supplied but are not in the tree.
        omissions: Segments whose pose could not be solved; their links are
                   absent from the mapping.
    """

    def __init__(self, poses: Dict[str, FrameTransform],
                 warnings: Iterable[UnknownJointWarning] = (),
                 omissions: Iterable[KinematicSolveError] = ()):
        self._poses = dict(poses)
        self.warnings = list(warnings)
        self.omissions = list(omissions)

    def __getitem__(self, link_name: str) -> FrameTransform:
        return self._poses[link_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._poses)

    def __len__(self) -> int:
        return len(self._poses)

    @property
    def complete(self) -> bool:
        """True if no segment was omitted."""
        return not self.omissions

    def __repr__(self) -> str:
        return (f"LinkPoseMap(links={sorted(self._poses)}, warnings={len(self.warnings)}, "
                f"omissions={len(self.omissions)})")


class ForwardKinematicsEngine:
    """Computes camera-relative poses for every mesh-bearing link.

    The tree, index, binding and chain are shared read-only; ``compute`` keeps
    all intermediate values local, so concurrent calls do not interfere.

    Args:
        tree: Kinematic tree of the robot.
        joint_index: DOF index built from ``tree``.
        binding: Link -> mesh segment binding.
        chain: Base -> camera chain built from ``tree`` and ``joint_index``.
        config: Configuration the engine was built from, if any.
    """

    def __init__(self, tree: KinematicTree, joint_index: JointIndex, binding: LinkMeshBinding,
                 chain: ChainTransform, config: Optional[RobotStateConfig] = None):
        self.tree = tree
        self.joint_index = joint_index
        self.binding = binding
        self.chain = chain
        self.config = config or RobotStateConfig(base_frame=chain.base_frame, camera_frame=chain.camera_frame)

        self.model = build_robot_model(tree, joint_index)
        self._positions = {name: i for i, name in enumerate(self.model.link_names)}
        self._solve = jax.jit(forward_kinematics_world)
        self.last_result: Optional[LinkPoseMap] = None

    @classmethod
    def from_description(cls, description: RobotDescription,
                         config: Optional[RobotStateConfig] = None) -> "ForwardKinematicsEngine":
        """Build tree, index, binding and chain from one hierarchy."""
        config = config or RobotStateConfig()
        tree = KinematicTree(description)
        joint_index = JointIndex(tree)
        binding = LinkMeshBinding.from_description(description)
        chain = ChainTransform(tree, joint_index, config.base_frame, config.camera_frame)
        return cls(tree, joint_index, binding, chain, config)

    @classmethod
    def from_urdf(cls, urdf_path: str, config: Optional[RobotStateConfig] = None) -> "ForwardKinematicsEngine":
        from .io import load_urdf

        return cls.from_description(load_urdf(urdf_path), config)

    def num_joints(self) -> int:
        return self.joint_index.size()

    def mesh_paths(self) -> Dict[str, str]:
        """Link name -> mesh file path for every link that can receive a pose."""
        return self.binding.mesh_paths(self.config.description_package_path)

    def compute(self, named_angles: Optional[NamedAngles] = None) -> LinkPoseMap:
        """Poses of all mesh-bearing links in the camera frame.

        Args:
            named_angles: (joint name, value) pairs; missing joints are 0.

        Returns:
            LinkPoseMap, possibly partial; see its ``warnings`` and ``omissions``.

        Raises:
            ChainJointMissingError: if the chain and index are inconsistent.
        """
        q, warnings = self.joint_index.build_angle_vector(named_angles or {})

        violations = self.joint_index.limit_violations(q)
        if violations:
            logger.debug("Joint values outside limits: %s", ", ".join(violations))

        T_camera_base = self.chain.evaluate(q)
        world = self._solve(self.model, q)

        # The base need not be the root; bring root-relative poses into the base first
        T_root_base = FrameTransform(world[self._positions[self.chain.base_frame]])
        T_camera_root = T_camera_base.compose(T_root_base.inverse())

        segment_poses: Dict[str, FrameTransform] = {}
        omissions = []
        if not T_camera_root.is_finite():
            reason = (f"transform from {self.chain.base_frame} to camera frame "
                      f"{self.chain.camera_frame} is not finite")
            logger.error("Could not get transform from base to camera: %s", reason)
            omissions = [KinematicSolveError(name, reason) for name in self.binding.segments()]
            result = LinkPoseMap({}, warnings, omissions)
            self.last_result = result
            return result

        for segment_name in self.binding.segments():
            try:
                segment_poses[segment_name] = self._segment_pose(world, T_camera_root, segment_name)
            except KinematicSolveError as exc:
                logger.error("TreeSolver returned an error for link %s: %s", segment_name, exc.reason)
                omissions.append(exc)

        poses = {
            link_name: segment_poses[segment_name]
            for link_name, segment_name in self.binding.items()
            if segment_name in segment_poses
        }

        result = LinkPoseMap(poses, warnings, omissions)
        self.last_result = result
        return result

    def _segment_pose(self, world, T_camera_root: FrameTransform, segment_name: str) -> FrameTransform:
        i = self._positions.get(segment_name)
        if i is None:
            raise KinematicSolveError(segment_name, "segment is not part of the kinematic tree")
        pose = T_camera_root.compose(FrameTransform(world[i]))
        if not pose.is_finite():
            raise KinematicSolveError(segment_name, "pose is not finite")
        return pose
