from pathlib import Path

import pytest

from render_kinematics.core import JointDescription, LinkDescription, RobotDescription
from render_kinematics.io import load_urdf

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def camera_rig_path():
    return str(FIXTURES / "camera_rig.urdf")


@pytest.fixture
def camera_rig(camera_rig_path):
    return load_urdf(camera_rig_path)


@pytest.fixture
def single_joint_robot():
    """root --(revolute about z, offset 1 m along x)--> arm, both with meshes."""
    return RobotDescription(
        name="single_joint",
        links=(
            LinkDescription("root", "meshes/root.stl"),
            LinkDescription("arm", "meshes/arm.dae"),
        ),
        joints=(
            JointDescription("joint_a", "revolute", "root", "arm",
                             origin_xyz=(1.0, 0.0, 0.0), axis=(0.0, 0.0, 1.0),
                             lower=-3.14, upper=3.14),
        ),
    )
