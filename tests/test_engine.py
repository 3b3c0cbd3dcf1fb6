"""Tests for ForwardKinematicsEngine."""

import dataclasses
import math
from pathlib import Path

import jax.numpy as jnp
import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from render_kinematics import ForwardKinematicsEngine, LinkPoseMap, RobotStateConfig
from render_kinematics.chain import ChainTransform
from render_kinematics.core import (
    JointIndex,
    KinematicSolveError,
    KinematicTree,
    LinkMeshBinding,
    NoChainError,
    UnknownJointWarning,
)
from render_kinematics.transforms import so3

FIXTURE = str(Path(__file__).parent / "fixtures" / "camera_rig.urdf")
ALL_LINKS = {"BASE", "torso", "head", "XTION", "upper_arm", "forearm", "gripper"}


@pytest.fixture
def engine(camera_rig_path):
    return ForwardKinematicsEngine.from_urdf(camera_rig_path, RobotStateConfig())


def _assert_same_poses(a, b, atol=1e-12):
    assert set(a) == set(b)
    for name in a:
        np.testing.assert_allclose(a[name].matrix, b[name].matrix, atol=atol)


def test_zero_configuration_in_camera_frame(engine):
    poses = engine.compute({})

    assert isinstance(poses, LinkPoseMap)
    assert set(poses) == ALL_LINKS
    assert poses.complete and poses.warnings == []
    expected = {
        "BASE": [-0.1, 0.0, -0.95],
        "torso": [-0.1, 0.0, -0.45],
        "head": [-0.1, 0.0, -0.05],
        "XTION": [-0.1, 0.0, -0.05],
        "upper_arm": [-0.1, 0.2, -0.15],
        "forearm": [-0.1, 0.2, -0.15],
        "gripper": [-0.1, 0.2, -0.15],
    }
    for link, position in expected.items():
        np.testing.assert_allclose(poses[link].position, jnp.array(position), atol=1e-12)
        np.testing.assert_allclose(poses[link].rotation, jnp.eye(3), atol=1e-12)


def test_empty_input_is_zero_configuration(engine):
    zero = {name: 0.0 for name in engine.joint_index.joint_names()}
    _assert_same_poses(engine.compute(), engine.compute(zero), atol=0.0)


def test_links_share_segment_pose(engine):
    poses = engine.compute({"shoulder": 0.7, "elbow": 1.2})

    np.testing.assert_array_equal(poses["gripper"].matrix, poses["upper_arm"].matrix)
    np.testing.assert_array_equal(poses["XTION"].matrix, poses["head"].matrix)


def test_torso_lift_moves_base_not_arm(engine):
    """Camera and arm ride on the torso; only the base moves relative to the camera."""
    zero = engine.compute()
    lifted = engine.compute({"torso_lift": 0.1})

    np.testing.assert_allclose(lifted["BASE"].position, jnp.array([-0.1, 0.0, -1.05]), atol=1e-12)
    np.testing.assert_allclose(lifted["upper_arm"].matrix, zero["upper_arm"].matrix, atol=1e-12)


def test_head_pan_rotates_world_in_camera(engine):
    poses = engine.compute({"head_pan": math.pi / 2})

    R_expected = so3.exp(jnp.array([0.0, 0.0, -math.pi / 2]))
    np.testing.assert_allclose(poses["upper_arm"].position, jnp.array([0.1, 0.0, -0.15]), atol=1e-12)
    np.testing.assert_allclose(poses["upper_arm"].rotation, R_expected, atol=1e-12)
    np.testing.assert_allclose(poses["BASE"].position, jnp.array([-0.1, 0.0, -0.95]), atol=1e-12)
    # the head carries the camera, so its pose is unchanged
    np.testing.assert_allclose(poses["head"].matrix, engine.compute()["head"].matrix, atol=1e-12)


def test_idempotent(engine):
    angles = {"torso_lift": 0.05, "head_pan": -0.3, "shoulder": 1.1, "elbow": -2.0}

    first = engine.compute(angles)
    second = engine.compute(angles)

    assert set(first) == set(second)
    for link in first:
        np.testing.assert_array_equal(first[link].matrix, second[link].matrix)


def test_unknown_joints_warn_without_changing_poses(engine):
    angles = {"head_pan": 0.2, "shoulder": -0.4}
    reference = engine.compute(angles)

    poses = engine.compute({**angles, "left_wheel": 5.0, "right_wheel": -5.0})

    assert sorted(w.joint_name for w in poses.warnings) == ["left_wheel", "right_wheel"]
    assert all(isinstance(w, UnknownJointWarning) for w in poses.warnings)
    assert poses.complete
    for link in reference:
        np.testing.assert_array_equal(poses[link].matrix, reference[link].matrix)


def test_last_result_is_cached(engine):
    assert engine.last_result is None
    poses = engine.compute({"elbow": 0.3})
    assert engine.last_result is poses


def test_non_finite_segment_is_omitted(engine, caplog):
    """A segment that cannot be solved drops out with its links; the rest survive."""
    with caplog.at_level("ERROR"):
        poses = engine.compute({"shoulder": float("nan")})

    assert set(poses) == {"BASE", "torso", "head", "XTION"}
    assert not poses.complete
    assert [e.segment_name for e in poses.omissions] == ["upper_arm"]
    assert isinstance(poses.omissions[0], KinematicSolveError)
    assert "upper_arm" in caplog.text


def test_non_finite_camera_chain_is_reported_once(engine, caplog):
    """A bad value on the camera chain blames the chain, not every segment."""
    with caplog.at_level("ERROR"):
        poses = engine.compute({"head_pan": float("nan")})

    assert len(poses) == 0
    assert [e.segment_name for e in poses.omissions] == ["BASE", "head", "torso", "upper_arm"]
    assert all("BASE to camera frame XTION" in e.reason for e in poses.omissions)
    assert len([r for r in caplog.records if r.levelname == "ERROR"]) == 1
    assert "Could not get transform from base to camera" in caplog.text


def test_binding_to_unknown_segment_is_omitted(camera_rig):
    tree = KinematicTree(camera_rig)
    index = JointIndex(tree)
    binding = LinkMeshBinding({"BASE": "BASE", "phantom_link": "phantom_segment"})
    engine = ForwardKinematicsEngine(tree, index, binding, ChainTransform(tree, index, "BASE", "XTION"))

    poses = engine.compute({"head_pan": 0.5})

    assert "phantom_link" not in poses
    assert set(poses) == {"BASE"}
    assert [e.segment_name for e in poses.omissions] == ["phantom_segment"]


def test_base_below_root_matches_root_base(camera_rig, camera_rig_path):
    """Poses are camera-relative no matter which ancestor of the camera is the base."""
    from_root = ForwardKinematicsEngine.from_description(camera_rig, RobotStateConfig("BASE", "XTION"))
    from_torso = ForwardKinematicsEngine.from_urdf(camera_rig_path, RobotStateConfig("torso", "XTION"))
    angles = {"torso_lift": 0.2, "head_pan": 0.6, "shoulder": -0.5}

    _assert_same_poses(from_root.compute(angles), from_torso.compute(angles))


def test_camera_at_root_gives_root_relative_poses(camera_rig):
    engine = ForwardKinematicsEngine.from_description(camera_rig, RobotStateConfig("head", "BASE"))

    poses = engine.compute({"torso_lift": 0.1})

    np.testing.assert_allclose(poses["BASE"].matrix, jnp.eye(4), atol=1e-12)
    np.testing.assert_allclose(poses["upper_arm"].position, jnp.array([0.0, 0.2, 0.9]), atol=1e-12)


def test_invalid_camera_frame(camera_rig):
    with pytest.raises(NoChainError):
        ForwardKinematicsEngine.from_description(camera_rig, RobotStateConfig("BASE", "kinect"))


def test_single_revolute_joint_quarter_turn(single_joint_robot):
    engine = ForwardKinematicsEngine.from_description(single_joint_robot, RobotStateConfig("root", "root"))

    rest = engine.compute({"joint_a": 0.0})["arm"]
    turned = engine.compute({"joint_a": math.pi / 2})["arm"]

    delta = turned.rotation @ rest.rotation.T
    np.testing.assert_allclose(delta, so3.exp(jnp.array([0.0, 0.0, math.pi / 2])), atol=1e-12)
    np.testing.assert_allclose(jnp.linalg.norm(turned.position), jnp.linalg.norm(rest.position), atol=1e-12)
    np.testing.assert_allclose(turned.position, jnp.array([1.0, 0.0, 0.0]), atol=1e-12)


def test_declaration_order_does_not_change_result(camera_rig):
    reordered = dataclasses.replace(
        camera_rig, links=tuple(reversed(camera_rig.links)), joints=tuple(reversed(camera_rig.joints)))
    a = ForwardKinematicsEngine.from_description(camera_rig)
    b = ForwardKinematicsEngine.from_description(reordered)
    assert a.joint_index.joint_names() != b.joint_index.joint_names()

    angles = {"torso_lift": 0.15, "head_pan": 0.3, "shoulder": -1.0, "elbow": 0.8}

    _assert_same_poses(a.compute(angles), b.compute(angles))


def test_mesh_paths_use_configured_package(camera_rig):
    config = RobotStateConfig(description_package_path="/opt/camera_rig")
    engine = ForwardKinematicsEngine.from_description(camera_rig, config)

    paths = engine.mesh_paths()

    assert paths["head"] == "/opt/camera_rig/meshes/head.dae"
    assert set(paths) == set(engine.compute())
    assert engine.num_joints() == 4


def test_config_from_mapping():
    assert RobotStateConfig.from_mapping({}) == RobotStateConfig("BASE", "XTION", "..")

    config = RobotStateConfig.from_mapping({
        "kinematic_frame": "torso",
        "camera_frame": "head",
        "robot_description_package_path": "/opt/rig",
    })
    assert config == RobotStateConfig("torso", "head", "/opt/rig")


@given(st.lists(st.floats(min_value=-1.5, max_value=1.5), min_size=4, max_size=4))
@settings(deadline=None, max_examples=15)
def test_all_poses_are_rigid(values):
    engine = ForwardKinematicsEngine.from_urdf(FIXTURE)
    angles = dict(zip(("torso_lift", "head_pan", "shoulder", "elbow"), values))

    poses = engine.compute(angles)

    assert set(poses) == ALL_LINKS
    for pose in poses.values():
        np.testing.assert_allclose(pose.rotation @ pose.rotation.T, jnp.eye(3), atol=1e-9)
        np.testing.assert_array_equal(pose.matrix[3], jnp.array([0.0, 0.0, 0.0, 1.0]))
