"""URDF parser producing a RobotDescription.

Only the parts needed for kinematics and rendering are read: link visuals,
joint topology, origins, axes and limits. Validation of the resulting
hierarchy is left to ``KinematicTree``.
"""

import logging
from typing import Optional, Tuple, Union

from lxml import etree

from render_kinematics.core.description import JointDescription, LinkDescription, RobotDescription
from render_kinematics.core.errors import DescriptionParseError

logger = logging.getLogger(__name__)


def load_urdf(urdf_path: str) -> RobotDescription:
    """Load a URDF file.

    Args:
        urdf_path: Path to the URDF file to load.

    Returns:
        RobotDescription with links and joints in document order.

    Raises:
        DescriptionParseError: if the file is not well-formed URDF.
    """
    try:
        tree = etree.parse(urdf_path)
    except (OSError, etree.XMLSyntaxError) as exc:
        raise DescriptionParseError(f"Failed to parse urdf {urdf_path}: {exc}") from exc
    return _parse_robot(tree.getroot())


def parse_urdf_string(description: Union[str, bytes]) -> RobotDescription:
    """Parse a URDF document held in memory (e.g. a ``robot_description`` parameter)."""
    if isinstance(description, str):
        description = description.encode("utf-8")
    try:
        root = etree.fromstring(description)
    except etree.XMLSyntaxError as exc:
        raise DescriptionParseError(f"Failed to parse urdf: {exc}") from exc
    return _parse_robot(root)


def _parse_robot(root) -> RobotDescription:
    if root.tag != "robot":
        raise DescriptionParseError(f"Expected <robot> root element, found <{root.tag}>")

    links = []
    for link in root.findall("link"):
        name = link.get("name")
        if not name:
            raise DescriptionParseError("Found <link> without a name")
        links.append(LinkDescription(name=name, visual_mesh=_visual_mesh(link)))

    joints = []
    for joint in root.findall("joint"):
        joints.append(_parse_joint(joint))

    robot = RobotDescription(name=root.get("name", "robot"), links=tuple(links), joints=tuple(joints))
    logger.info("Parsed urdf '%s': %d links, %d joints", robot.name, len(links), len(joints))
    return robot


def _visual_mesh(link) -> Optional[str]:
    """Filename of the mesh of the link's first visual, if it has one."""
    visual = link.find("visual")
    if visual is None:
        return None
    mesh = visual.find("geometry/mesh")
    if mesh is None:
        return None
    return mesh.get("filename")


def _parse_joint(joint) -> JointDescription:
    name = joint.get("name")
    joint_type = joint.get("type")
    parent_elem = joint.find("parent")
    child_elem = joint.find("child")
    if not name or not joint_type:
        raise DescriptionParseError("Found <joint> without a name or type")
    if parent_elem is None or child_elem is None:
        raise DescriptionParseError(f"Joint '{name}' is missing its parent or child element")

    xyz, rpy = (0.0, 0.0, 0.0), (0.0, 0.0, 0.0)
    origin_elem = joint.find("origin")
    if origin_elem is not None:
        xyz = _vector(origin_elem.get("xyz", "0 0 0"), name)
        rpy = _vector(origin_elem.get("rpy", "0 0 0"), name)

    axis = (1.0, 0.0, 0.0)  # URDF default axis
    axis_elem = joint.find("axis")
    if axis_elem is not None:
        axis = _vector(axis_elem.get("xyz", "1 0 0"), name)

    lower = upper = None
    limit_elem = joint.find("limit")
    # Continuous joints ignore position limits
    if limit_elem is not None and joint_type != "continuous":
        try:
            lower = float(limit_elem.get("lower", "0"))
            upper = float(limit_elem.get("upper", "0"))
        except ValueError:
            raise DescriptionParseError(
                f"Joint '{name}' has a malformed limit "
                f"(lower='{limit_elem.get('lower')}', upper='{limit_elem.get('upper')}')") from None

    return JointDescription(
        name=name,
        type=joint_type,
        parent=parent_elem.get("link"),
        child=child_elem.get("link"),
        origin_xyz=xyz,
        origin_rpy=rpy,
        axis=axis,
        lower=lower,
        upper=upper,
    )


def _vector(text: str, joint_name: str) -> Tuple[float, float, float]:
    try:
        values = tuple(float(x) for x in text.split())
    except ValueError:
        raise DescriptionParseError(f"Joint '{joint_name}' has a malformed vector '{text}'") from None
    if len(values) != 3:
        raise DescriptionParseError(f"Joint '{joint_name}' has a malformed vector '{text}'")
    return values
