"""FrameTransform: an immutable rigid transform between two frames."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import jax
import jax.numpy as jnp
import numpy as np
from jax.tree_util import register_pytree_node_class

from . import se3, so3

Array = jax.Array


@register_pytree_node_class
@dataclass(frozen=True, eq=False)
class FrameTransform:
    """Pose of a child frame expressed in a parent frame (double precision).

    ``parent_T_child.compose(child_T_grandchild)`` yields
    ``parent_T_grandchild``; ``a @ b`` is the same operation.
    """
    matrix: Array  # shape (4, 4)

    # Constructors
    @classmethod
    def from_matrix(cls, matrix) -> "FrameTransform":
        matrix = jnp.asarray(matrix, dtype=jnp.float64)
        if matrix.shape != (4, 4):
            raise ValueError(f"matrix must have shape (4, 4), got {matrix.shape}")
        return cls(matrix)

    @classmethod
    def from_position_quaternion(cls, position: Sequence[float],
                                 quaternion: Optional[Sequence[float]] = None) -> "FrameTransform":
        """Build from a translation and an optional (w, x, y, z) quaternion."""
        p = jnp.asarray(position, dtype=jnp.float64)
        if quaternion is None:
            R = jnp.eye(3, dtype=jnp.float64)
        else:
            R = so3.from_quaternion(jnp.asarray(quaternion, dtype=jnp.float64))
        return cls(se3.from_position_and_rotation(p, R))

    @classmethod
    def from_xyz_rpy(cls, xyz: Sequence[float], rpy: Sequence[float] = (0.0, 0.0, 0.0)) -> "FrameTransform":
        """Build from a URDF-style origin (translation + fixed-axis roll/pitch/yaw)."""
        p = jnp.asarray(xyz, dtype=jnp.float64)
        return cls(se3.from_position_and_rotation(p, so3.from_rpy(jnp.asarray(rpy, dtype=jnp.float64))))

    @classmethod
    def identity(cls) -> "FrameTransform":
        return cls(se3.identity())

    # PyTree boiler-plate
    def tree_flatten(self):
        return (self.matrix,), None

    @classmethod
    def tree_unflatten(cls, aux, children):
        (matrix,) = children
        return cls(matrix)

    # Basic operations
    def compose(self, other: "FrameTransform") -> "FrameTransform":
        """self ∘ other (apply *other* first, then self)."""
        return FrameTransform(se3.multiply(self.matrix, other.matrix))

    def __matmul__(self, other: "FrameTransform") -> "FrameTransform":
        return self.compose(other)

    def inverse(self) -> "FrameTransform":
        return FrameTransform(se3.inverse(self.matrix))

    def transform_points(self, points) -> Array:
        """Map (3,) or (N, 3) points from the child frame into the parent frame."""
        return se3.apply(self.matrix, jnp.asarray(points, dtype=self.matrix.dtype))

    def is_finite(self) -> bool:
        return bool(jnp.all(jnp.isfinite(self.matrix)))

    # Accessors
    @property
    def position(self) -> Array:
        return se3.get_position(self.matrix)

    @property
    def rotation(self) -> Array:
        return se3.get_rotation(self.matrix)

    @property
    def quaternion(self) -> Array:
        """Orientation as a (w, x, y, z) quaternion."""
        return so3.to_quaternion(self.rotation)

    def to_numpy(self) -> np.ndarray:
        return np.asarray(self.matrix)

    def __repr__(self) -> str:
        p = np.asarray(self.position)
        q = np.asarray(self.quaternion)
        return f"FrameTransform(position={p.tolist()}, quaternion={q.tolist()})"
