"""
STL reading and writing on top of trimesh.

Meshes are kept as flat ``(n, 3, 3)`` float32 triangle arrays: vertices are
never merged, so face order and per-face vertex order survive a round trip.
Written normals are always recomputed from the vertices.
"""

from __future__ import annotations

import io
import logging
import struct
from typing import BinaryIO

import numpy as np
import trimesh
from trimesh.exchange import stl as trimesh_stl

from meshgrowth.contracts import MeshFormatError
from meshgrowth.geometry import face_normals

logger = logging.getLogger(__name__)

_BINARY_HEADER_BYTES = 80
_BINARY_FACE_BYTES = 50


def _detect_stl_kind(data: bytes) -> str:
    if len(data) >= _BINARY_HEADER_BYTES + 4:
        (count,) = struct.unpack_from("<I", data, _BINARY_HEADER_BYTES)
        if len(data) == _BINARY_HEADER_BYTES + 4 + count * _BINARY_FACE_BYTES:
            return "binary"
    if data.lstrip()[:5].lower() == b"solid":
        return "ascii"
    raise MeshFormatError(
        f"Input is neither a binary nor an ASCII STL ({len(data)} bytes)"
    )


def parse_stl(data: bytes) -> np.ndarray:
    """Parse an STL buffer into an ``(n, 3, 3)`` float32 triangle array."""
    kind = _detect_stl_kind(data)
    try:
        loaded = trimesh.load_mesh(io.BytesIO(data), file_type="stl", process=False)
    except Exception as exc:
        raise MeshFormatError(f"Failed to parse {kind} STL: {exc}") from exc

    if isinstance(loaded, trimesh.Scene):
        meshes = [g for g in loaded.geometry.values() if isinstance(g, trimesh.Trimesh)]
        if not meshes:
            raise MeshFormatError("STL scene has no mesh geometry")
        loaded = trimesh.util.concatenate(meshes)
    if not isinstance(loaded, trimesh.Trimesh):
        raise MeshFormatError(f"Unsupported mesh object: {type(loaded)}")
    if len(loaded.faces) == 0:
        raise MeshFormatError("STL contains no triangles")

    triangles = np.asarray(loaded.triangles, dtype=np.float32)
    bad = np.flatnonzero(~np.isfinite(triangles).all(axis=(1, 2)))
    if len(bad):
        raise MeshFormatError(
            f"STL has {len(bad)} triangle(s) with non-finite vertices, "
            f"first at index {int(bad[0])}"
        )
    logger.debug("Parsed %s STL with %d triangles", kind, len(triangles))
    return triangles


def read_stl(stream: BinaryIO) -> np.ndarray:
    """Read the whole stream, then parse it."""
    return parse_stl(stream.read())


def to_trimesh(triangles: np.ndarray) -> trimesh.Trimesh:
    """Unmerged Trimesh whose face normals come from ``face_normals``."""
    tris = np.asarray(triangles, dtype=np.float32).reshape(-1, 3, 3)
    return trimesh.Trimesh(
        vertices=tris.reshape(-1, 3).astype(np.float64),
        faces=np.arange(len(tris) * 3, dtype=np.int64).reshape(-1, 3),
        face_normals=face_normals(tris) if len(tris) else None,
        process=False,
    )


def encode_stl(triangles: np.ndarray, ascii: bool = False) -> bytes:
    mesh = to_trimesh(triangles)
    if ascii:
        return trimesh_stl.export_stl_ascii(mesh).encode("ascii")
    return trimesh_stl.export_stl(mesh)


def write_stl(stream: BinaryIO, triangles: np.ndarray, ascii: bool = False) -> None:
    stream.write(encode_stl(triangles, ascii=ascii))
    stream.flush()
