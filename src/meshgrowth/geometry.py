"""
Geometry kernel for growth placement.

Triangles are ``(3, 3)`` arrays (rows ``v0, v1, v2``) and meshes are stacked
``(n, 3, 3)`` arrays. Transforms are ``(4, 4)`` homogeneous matrices built
with ``trimesh.transformations``; all math runs in float64 and callers decide
the storage dtype.
"""

from __future__ import annotations

import numpy as np
from trimesh import transformations as tf

from meshgrowth.contracts import DegenerateGeometryError

# Cross products at or below this magnitude, or non-finite, are treated as
# undefined.
DEGENERATE_EPS = 1e-12


def _edge_cross(triangles: np.ndarray) -> np.ndarray:
    tris = np.asarray(triangles, dtype=np.float64)
    return np.cross(tris[..., 1, :] - tris[..., 0, :], tris[..., 2, :] - tris[..., 0, :])


def triangle_normal(triangle: np.ndarray) -> np.ndarray:
    """Unit normal of a single triangle, following its winding."""
    cross = _edge_cross(triangle)
    norm = float(np.linalg.norm(cross))
    if not (np.isfinite(norm) and norm > DEGENERATE_EPS):
        raise DegenerateGeometryError(
            f"Degenerate triangle has no normal: {np.asarray(triangle).tolist()}"
        )
    return cross / norm


def face_normals(triangles: np.ndarray) -> np.ndarray:
    """Unit normals for an ``(n, 3, 3)`` stack of triangles."""
    cross = _edge_cross(triangles).reshape(-1, 3)
    norms = np.linalg.norm(cross, axis=1)
    bad = np.flatnonzero(~(np.isfinite(norms) & (norms > DEGENERATE_EPS)))
    if len(bad):
        raise DegenerateGeometryError(
            f"{len(bad)} degenerate or non-finite triangle(s), "
            f"first at index {int(bad[0])}"
        )
    return cross / norms[:, None]


def area_weight(triangle: np.ndarray) -> float:
    """Twice the triangle area. Only ever used as a relative weight."""
    return float(np.linalg.norm(_edge_cross(triangle)))


def area_weights(triangles: np.ndarray) -> np.ndarray:
    return np.linalg.norm(_edge_cross(triangles).reshape(-1, 3), axis=1)


def compose(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Matrix product: the result applies ``b`` first, then ``a``."""
    return tf.concatenate_matrices(a, b)


def translation(offset) -> np.ndarray:
    return tf.translation_matrix(np.asarray(offset, dtype=np.float64))


def uniform_scale(factor: float) -> np.ndarray:
    return tf.scale_matrix(float(factor))


def apply_transform(transform: np.ndarray, triangles: np.ndarray) -> np.ndarray:
    """Transform every vertex as a point (w=1), keeping vertex order."""
    tris = np.asarray(triangles, dtype=np.float64)
    points = tf.transform_points(tris.reshape(-1, 3), transform)
    return points.reshape(tris.shape)


def transform_vectors(transform: np.ndarray, vectors: np.ndarray) -> np.ndarray:
    """Transform free vectors by the linear part only (w=0)."""
    vecs = np.asarray(vectors, dtype=np.float64)
    out = tf.transform_points(vecs.reshape(-1, 3), transform, translate=False)
    return out.reshape(vecs.shape)


def place_on_triangle(triangle: np.ndarray) -> np.ndarray:
    """Frame mapping a unit object at the origin onto the triangle's surface.

    x follows the ``v0 -> v1`` edge, z is the face normal and y = z x x, so
    the basis is right-handed. The origin lands on the centroid.
    """
    tri = np.asarray(triangle, dtype=np.float64)
    z_axis = triangle_normal(tri)
    edge = tri[1] - tri[0]
    x_axis = edge / np.linalg.norm(edge)
    y_axis = np.cross(z_axis, x_axis)

    rotation = np.identity(4)
    rotation[:3, 0] = x_axis
    rotation[:3, 1] = y_axis
    rotation[:3, 2] = z_axis
    return compose(translation(tri.mean(axis=0)), rotation)


def twist_mesh(triangles: np.ndarray, angle: float) -> np.ndarray:
    """Rotate ``v1`` and ``v2`` of every triangle about the z axis.

    ``v0`` stays put, so each face is sheared slightly out of shape. Returns a
    new array in the input dtype.
    """
    tris = np.asarray(triangles)
    out = tris.astype(np.float64, copy=True)
    rotation = tf.rotation_matrix(float(angle), [0.0, 0.0, 1.0])
    tail = out[:, 1:, :]
    out[:, 1:, :] = tf.transform_points(tail.reshape(-1, 3), rotation).reshape(tail.shape)
    return out.astype(tris.dtype, copy=False)
