"""Loaders turning robot description documents into RobotDescription records."""

from .urdf_parser import load_urdf, parse_urdf_string

__all__ = ["load_urdf", "parse_urdf_string"]
