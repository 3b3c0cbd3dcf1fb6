"""SO(3) rotation helpers in JAX.

Rotations are plain (..., 3, 3) matrices. Everything here is pure and works on
batched inputs, which lets the forward kinematics pass run under ``jax.jit``.
"""

import jax
import jax.numpy as jnp

Array = jax.Array


def skew_symmetric(v: Array) -> Array:
    """
    Cross-product matrix of a 3-vector.

    Args:
        v: (..., 3) vector

    Returns:
        (..., 3, 3) matrix K such that K @ u == cross(v, u)
    """
    zeros = jnp.zeros(v.shape[:-1], dtype=v.dtype)
    x, y, z = v[..., 0], v[..., 1], v[..., 2]

    return jnp.stack([
        jnp.stack([zeros, -z, y], axis=-1),
        jnp.stack([z, zeros, -x], axis=-1),
        jnp.stack([-y, x, zeros], axis=-1),
    ], axis=-2)


def exp(axis_angle: Array) -> Array:
    """
    Rotation matrix of an axis-angle vector (Rodrigues' formula).

    A revolute joint rotating by ``q`` about unit ``axis`` is ``exp(axis * q)``.

    Args:
        axis_angle: (..., 3) rotation vector, norm is the angle in radians

    Returns:
        (..., 3, 3) rotation matrices
    """
    angle = jnp.linalg.norm(axis_angle, axis=-1, keepdims=True)
    small = angle < 1e-8

    # Taylor terms near zero keep the zero-angle case exact
    cos_a = jnp.where(small, 1.0 - 0.5 * angle**2, jnp.cos(angle))
    sin_a = jnp.where(small, angle - angle**3 / 6.0, jnp.sin(angle))
    safe_angle = jnp.where(small, 1.0, angle)
    axis = jnp.where(small, axis_angle, axis_angle / safe_angle)

    K = skew_symmetric(axis)
    I = jnp.broadcast_to(jnp.eye(3, dtype=axis_angle.dtype), K.shape)

    return I + sin_a[..., None] * K + (1.0 - cos_a)[..., None] * jnp.matmul(K, K)


def from_rpy(rpy: Array) -> Array:
    """
    Rotation matrix from fixed-axis roll, pitch, yaw (URDF convention).

    Args:
        rpy: (..., 3) array of [roll, pitch, yaw] in radians

    Returns:
        (..., 3, 3) rotation matrix R = Rz(yaw) @ Ry(pitch) @ Rx(roll)
    """
    rpy = jnp.asarray(rpy, dtype=jnp.float64)
    unit = jnp.eye(3, dtype=rpy.dtype)
    R_x = exp(unit[0] * rpy[..., 0:1])
    R_y = exp(unit[1] * rpy[..., 1:2])
    R_z = exp(unit[2] * rpy[..., 2:3])
    return R_z @ R_y @ R_x


def inverse(R: Array) -> Array:
    """Inverse of a rotation matrix (its transpose)."""
    return jnp.swapaxes(R, -1, -2)


def apply(R: Array, v: Array) -> Array:
    """
    Rotate vector(s).

    Args:
        R: (3, 3) rotation matrix
        v: (3,) or (N, 3) vectors

    Returns:
        rotated vectors with the shape of ``v``
    """
    return jnp.einsum('ij,...j->...i', R, v)


def from_quaternion(quaternions: Array) -> Array:
    """
    Rotation matrices from (w, x, y, z) quaternions.

    Args:
        quaternions: (..., 4) quaternions, normalised internally

    Returns:
        (..., 3, 3) rotation matrices
    """
    q = quaternions / jnp.linalg.norm(quaternions, axis=-1, keepdims=True)
    w, x, y, z = jnp.moveaxis(q, -1, 0)

    return jnp.stack([
        jnp.stack([1 - 2 * (y * y + z * z), 2 * (x * y - w * z), 2 * (x * z + w * y)], axis=-1),
        jnp.stack([2 * (x * y + w * z), 1 - 2 * (x * x + z * z), 2 * (y * z - w * x)], axis=-1),
        jnp.stack([2 * (x * z - w * y), 2 * (y * z + w * x), 1 - 2 * (x * x + y * y)], axis=-1),
    ], axis=-2)


def to_quaternion(matrix: Array) -> Array:
    """
    (w, x, y, z) quaternions of rotation matrices, with w >= 0.

    Branch-free: all four candidate extractions are computed and the one with
    the largest pivot is selected per element.

    Args:
        matrix: (..., 3, 3) rotation matrices

    Returns:
        (..., 4) unit quaternions
    """
    m = matrix
    m00, m01, m02 = m[..., 0, 0], m[..., 0, 1], m[..., 0, 2]
    m10, m11, m12 = m[..., 1, 0], m[..., 1, 1], m[..., 1, 2]
    m20, m21, m22 = m[..., 2, 0], m[..., 2, 1], m[..., 2, 2]
    trace = m00 + m11 + m22

    candidates = jnp.stack([
        jnp.stack([1.0 + trace, m21 - m12, m02 - m20, m10 - m01], axis=-1),
        jnp.stack([m21 - m12, 1.0 + m00 - m11 - m22, m01 + m10, m02 + m20], axis=-1),
        jnp.stack([m02 - m20, m01 + m10, 1.0 + m11 - m00 - m22, m12 + m21], axis=-1),
        jnp.stack([m10 - m01, m02 + m20, m12 + m21, 1.0 + m22 - m00 - m11], axis=-1),
    ], axis=-2)
    pivots = jnp.stack([
        1.0 + trace,
        1.0 + m00 - m11 - m22,
        1.0 + m11 - m00 - m22,
        1.0 + m22 - m00 - m11,
    ], axis=-1)

    best = jnp.argmax(pivots, axis=-1)
    selector = (jnp.arange(4) == best[..., None]).astype(m.dtype)
    quat = jnp.sum(candidates * selector[..., None], axis=-2)
    quat = quat / jnp.linalg.norm(quat, axis=-1, keepdims=True)

    return jnp.where(quat[..., 0:1] < 0, -quat, quat)
