"""Explicit configuration for building a ForwardKinematicsEngine."""

from dataclasses import dataclass
from typing import Any, Mapping

DEFAULT_BASE_FRAME = "BASE"
DEFAULT_CAMERA_FRAME = "XTION"
DEFAULT_DESCRIPTION_PACKAGE_PATH = ".."


@dataclass(frozen=True)
class RobotStateConfig:
    """Frame names and asset location for one robot.

    Attributes:
        base_frame: Frame the camera chain starts from.
        camera_frame: Frame all link poses are expressed in.
        description_package_path: Directory ``package://`` mesh URIs resolve against.
    """
    base_frame: str = DEFAULT_BASE_FRAME
    camera_frame: str = DEFAULT_CAMERA_FRAME
    description_package_path: str = DEFAULT_DESCRIPTION_PACKAGE_PATH

    @classmethod
    def from_mapping(cls, params: Mapping[str, Any]) -> "RobotStateConfig":
        """Read parameters by their node names, falling back to defaults.

        Recognised keys: ``kinematic_frame``, ``camera_frame`` and
        ``robot_description_package_path``.
        """
        return cls(
            base_frame=str(params.get("kinematic_frame", DEFAULT_BASE_FRAME)),
            camera_frame=str(params.get("camera_frame", DEFAULT_CAMERA_FRAME)),
            description_package_path=str(
                params.get("robot_description_package_path", DEFAULT_DESCRIPTION_PACKAGE_PATH)),
        )
