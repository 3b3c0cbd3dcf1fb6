"""Binding from links to the nearest segment that carries a renderable mesh.

Forward kinematics produces poses per segment, while a renderer wants them per
link. For each link the binding records the closest ancestor (the link itself
included) whose visual is a mesh file we know how to load. Links with no such
ancestor are not bound and never receive a pose.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from .description import RobotDescription

logger = logging.getLogger(__name__)

MESH_EXTENSIONS = (".stl", ".dae")


def is_renderable_mesh(filename: Optional[str]) -> bool:
    """True if ``filename`` names a mesh with a recognised extension."""
    if not filename:
        return False
    return Path(filename).suffix.lower() in MESH_EXTENSIONS


def resolve_mesh_path(filename: str, package_path: str) -> str:
    """Turn a mesh reference from a description into a filesystem path.

    ``package://<pkg>/rel/path`` resolves to ``<package_path>/rel/path``,
    ``file://`` URIs to their path, and relative paths are joined onto
    ``package_path``.
    """
    if filename.startswith("package://"):
        _, _, relative = filename[len("package://"):].partition("/")
        return os.path.join(package_path, relative)
    if filename.startswith("file://"):
        return filename[len("file://"):]
    if os.path.isabs(filename):
        return filename
    return os.path.join(package_path, filename)


class LinkMeshBinding:
    """Link name -> (mesh-bearing ancestor segment, its mesh filename).

    Args:
        bindings: mapping from link name to segment name
        meshes: optional mapping from segment name to mesh filename
    """

    def __init__(self, bindings: Mapping[str, str], meshes: Optional[Mapping[str, str]] = None):
        self._bindings: Dict[str, str] = dict(bindings)
        self._meshes: Dict[str, str] = dict(meshes or {})

    @classmethod
    def from_description(cls, description: RobotDescription) -> "LinkMeshBinding":
        parent_of = description.parent_map()
        mesh_of = {link.name: link.visual_mesh for link in description.links
                   if is_renderable_mesh(link.visual_mesh)}

        bindings = {}
        for link in description.links:
            current = link.name
            visited = set()
            while current is not None and current not in mesh_of and current not in visited:
                visited.add(current)
                current = parent_of.get(current)
            if current is None or current not in mesh_of:
                logger.debug("link %s has no mesh-bearing ancestor", link.name)
                continue
            logger.debug("link %s is descendant of %s", link.name, current)
            bindings[link.name] = current

        logger.info("Bound %d of %d links to %d mesh segments",
                    len(bindings), len(description.links), len(set(bindings.values())))
        return cls(bindings, {seg: mesh_of[seg] for seg in set(bindings.values())})

    def segment_of(self, link_name: str) -> Optional[str]:
        return self._bindings.get(link_name)

    def segments(self) -> List[str]:
        """Distinct bound segment names, sorted."""
        return sorted(set(self._bindings.values()))

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self._bindings.items())

    def mesh_filename(self, link_name: str) -> Optional[str]:
        segment = self._bindings.get(link_name)
        return None if segment is None else self._meshes.get(segment)

    def mesh_paths(self, package_path: str = "..") -> Dict[str, str]:
        """Link name -> resolved mesh path for every bound link with a known mesh."""
        paths = {}
        for link_name in self._bindings:
            filename = self.mesh_filename(link_name)
            if filename is not None:
                paths[link_name] = resolve_mesh_path(filename, package_path)
        return paths

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, link_name) -> bool:
        return link_name in self._bindings

    def __repr__(self) -> str:
        return f"LinkMeshBinding({self._bindings!r})"
