"""SE(3) rigid transforms as (..., 4, 4) homogeneous matrices.

Joint motion is expressed as a 6D twist ``[vx, vy, vz, wx, wy, wz]`` scaled by
the joint value; ``exp`` turns it into a transform. Revolute joints have a pure
angular twist, prismatic joints a pure linear one, fixed joints a zero twist.
"""

import jax
import jax.numpy as jnp

from . import so3

Array = jax.Array


def identity(dtype=jnp.float64) -> Array:
    """(4, 4) identity transform."""
    return jnp.eye(4, dtype=dtype)


def from_position_and_rotation(p: Array, R: Array) -> Array:
    """
    Assemble a homogeneous transform.

    Args:
        p: (..., 3) translation
        R: (..., 3, 3) rotation

    Returns:
        (..., 4, 4) transform
    """
    batch_shape = jnp.broadcast_shapes(p.shape[:-1], R.shape[:-2])
    p = jnp.broadcast_to(p, batch_shape + (3,))
    R = jnp.broadcast_to(R, batch_shape + (3, 3))

    top = jnp.concatenate([R, p[..., None]], axis=-1)
    bottom = jnp.broadcast_to(jnp.array([0.0, 0.0, 0.0, 1.0], dtype=top.dtype), batch_shape + (1, 4))
    return jnp.concatenate([top, bottom], axis=-2)


def exp(twist: Array) -> Array:
    """
    Exponential map from a twist to a transform.

    Args:
        twist: (..., 6) twist ``[v, w]``

    Returns:
        (..., 4, 4) transform
    """
    v, w = twist[..., :3], twist[..., 3:]
    angle = jnp.linalg.norm(w, axis=-1, keepdims=True)[..., None]
    small = angle < 1e-6
    safe = jnp.where(small, 1.0, angle)
    angle_sq = angle * angle

    # V = I + A K + B K^2 with Taylor fallbacks for small rotations
    A = jnp.where(small, 0.5 - angle_sq / 24.0, (1.0 - jnp.cos(safe)) / (safe * safe))
    B = jnp.where(small, 1.0 / 6.0 - angle_sq / 120.0, (safe - jnp.sin(safe)) / (safe * safe * safe))

    K = so3.skew_symmetric(w)
    I = jnp.broadcast_to(jnp.eye(3, dtype=twist.dtype), K.shape)
    V = I + A * K + B * jnp.matmul(K, K)

    t = jnp.einsum("...ij,...j->...i", V, v)
    return from_position_and_rotation(t, so3.exp(w))


def multiply(T1: Array, T2: Array) -> Array:
    """Composition ``T1 ∘ T2`` (apply ``T2`` first)."""
    return jnp.matmul(T1, T2)


def inverse(T: Array) -> Array:
    """
    Inverse of a rigid transform, ``[[R^T, -R^T t], [0, 1]]``.

    Args:
        T: (..., 4, 4) transform

    Returns:
        (..., 4, 4) inverse transform
    """
    R_inv = so3.inverse(T[..., :3, :3])
    t_inv = -jnp.einsum("...ij,...j->...i", R_inv, T[..., :3, 3])
    return from_position_and_rotation(t_inv, R_inv)


def apply(T: Array, points: Array) -> Array:
    """
    Transform points.

    Args:
        T: (4, 4) transform
        points: (3,) or (N, 3) points

    Returns:
        transformed points with the shape of ``points``
    """
    return jnp.einsum("ij,...j->...i", T[:3, :3], points) + T[:3, 3]


def get_position(T: Array) -> Array:
    """(..., 3) translation part."""
    return T[..., :3, 3]


def get_rotation(T: Array) -> Array:
    """(..., 3, 3) rotation part."""
    return T[..., :3, :3]
