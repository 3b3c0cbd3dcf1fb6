"""Tests for LinkMeshBinding."""

import os

import pytest

from render_kinematics.core import JointDescription, LinkDescription, LinkMeshBinding, RobotDescription
from render_kinematics.core.mesh_binding import is_renderable_mesh, resolve_mesh_path


def test_binding_from_camera_rig(camera_rig):
    binding = LinkMeshBinding.from_description(camera_rig)

    assert dict(binding.items()) == {
        "BASE": "BASE",
        "torso": "torso",  # .STL matches case-insensitively
        "head": "head",
        "XTION": "head",
        "upper_arm": "upper_arm",
        "forearm": "upper_arm",
        "gripper": "upper_arm",  # .obj is not a renderable mesh
    }
    assert binding.segments() == ["BASE", "head", "torso", "upper_arm"]
    assert len(binding) == 7


def test_links_without_mesh_ancestor_are_excluded():
    description = RobotDescription(
        links=(
            LinkDescription("world"),
            LinkDescription("frame"),
            LinkDescription("body", "body.dae"),
            LinkDescription("sensor"),
        ),
        joints=(
            JointDescription("world_frame", "fixed", "world", "frame"),
            JointDescription("frame_body", "fixed", "frame", "body"),
            JointDescription("body_sensor", "fixed", "body", "sensor"),
        ),
    )

    binding = LinkMeshBinding.from_description(description)

    assert dict(binding.items()) == {"body": "body", "sensor": "body"}
    assert "world" not in binding and "frame" not in binding
    assert binding.segment_of("world") is None


def test_mesh_filename(camera_rig):
    binding = LinkMeshBinding.from_description(camera_rig)

    assert binding.mesh_filename("XTION") == "package://camera_rig_description/meshes/head.dae"
    assert binding.mesh_filename("gripper") == "package://camera_rig_description/meshes/upper_arm.stl"
    assert binding.mesh_filename("unknown") is None


def test_mesh_paths(camera_rig):
    binding = LinkMeshBinding.from_description(camera_rig)

    paths = binding.mesh_paths("/opt/camera_rig")

    assert paths["BASE"] == os.path.join("/opt/camera_rig", "meshes/base.stl")
    assert paths["forearm"] == os.path.join("/opt/camera_rig", "meshes/upper_arm.stl")
    assert set(paths) == {"BASE", "torso", "head", "XTION", "upper_arm", "forearm", "gripper"}


def test_binding_from_mapping():
    binding = LinkMeshBinding({"camera_link": "head", "arm": "arm"})

    assert binding.segments() == ["arm", "head"]
    assert binding.mesh_filename("arm") is None
    assert binding.mesh_paths() == {}


@pytest.mark.parametrize("filename, expected", [
    ("meshes/link.stl", True),
    ("meshes/link.STL", True),
    ("package://robot/meshes/link.dae", True),
    ("meshes/link.obj", False),
    ("meshes/stl", False),
    ("", False),
    (None, False),
])
def test_is_renderable_mesh(filename, expected):
    assert is_renderable_mesh(filename) is expected


def test_resolve_mesh_path():
    assert resolve_mesh_path("package://pkg/meshes/a.stl", "..") == os.path.join("..", "meshes/a.stl")
    assert resolve_mesh_path("file:///data/a.dae", "..") == "/data/a.dae"
    assert resolve_mesh_path("/abs/a.stl", "..") == "/abs/a.stl"
    assert resolve_mesh_path("meshes/a.stl", "desc") == os.path.join("desc", "meshes/a.stl")
