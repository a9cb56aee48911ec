"""Tests for STL parsing and writing."""
import io
import struct

import numpy as np
import pytest

from meshgrowth.contracts import DegenerateGeometryError, MeshFormatError
from meshgrowth.stl_io import encode_stl, parse_stl, read_stl, to_trimesh, write_stl

_PACKED = np.dtype(
    [("normals", "<f4", (3,)), ("vertices", "<f4", (3, 3)), ("attributes", "<u2")]
)


def _binary_stl(triangles, normals):
    """Hand-packed binary STL with arbitrary stored normals."""
    blob = bytearray(b"\0" * 80)
    blob += struct.pack("<I", len(triangles))
    for tri, normal in zip(triangles, normals):
        blob += struct.pack("<3f", *normal)
        for vertex in tri:
            blob += struct.pack("<3f", *vertex)
        blob += b"\0\0"
    return bytes(blob)


class TestParse:

    def test_binary_keeps_order(self, tetrahedron):
        parsed = parse_stl(encode_stl(tetrahedron))
        assert parsed.dtype == np.float32
        np.testing.assert_array_equal(parsed, tetrahedron)

    def test_stored_normals_ignored(self, unit_square):
        data = _binary_stl(unit_square, [(9.0, 9.0, 9.0)] * 2)
        np.testing.assert_array_equal(parse_stl(data), unit_square)

    def test_ascii(self, unit_square):
        data = encode_stl(unit_square, ascii=True)
        np.testing.assert_allclose(parse_stl(data), unit_square, atol=1e-6)

    def test_read_stream(self, tetrahedron):
        stream = io.BytesIO(encode_stl(tetrahedron))
        np.testing.assert_array_equal(read_stl(stream), tetrahedron)

    def test_garbage_rejected(self):
        with pytest.raises(MeshFormatError):
            parse_stl(b"definitely not a mesh")

    def test_truncated_rejected(self, tetrahedron):
        data = encode_stl(tetrahedron)
        with pytest.raises(MeshFormatError):
            parse_stl(data[:-20])

    def test_empty_rejected(self):
        data = b"\0" * 80 + struct.pack("<I", 0)
        with pytest.raises(MeshFormatError):
            parse_stl(data)

    def test_nan_vertex_rejected(self, unit_square):
        tris = unit_square.copy()
        tris[1, 2, 0] = np.nan
        data = _binary_stl(tris, [(0.0, 0.0, 1.0)] * 2)
        with pytest.raises(MeshFormatError, match="non-finite"):
            parse_stl(data)

    def test_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_stl(b"")


class TestWrite:

    def test_normals_recomputed(self, unit_square):
        flipped = unit_square[:, [0, 2, 1]]
        data = encode_stl(flipped)
        packed = np.frombuffer(data[84:], dtype=_PACKED)
        np.testing.assert_allclose(packed["normals"], [[0, 0, -1]] * 2, atol=1e-7)
        np.testing.assert_array_equal(packed["vertices"], flipped)

    def test_face_count_header(self, tetrahedron):
        data = encode_stl(tetrahedron)
        assert struct.unpack_from("<I", data, 80)[0] == 4
        assert len(data) == 84 + 50 * 4

    def test_write_stream(self, tetrahedron):
        sink = io.BytesIO()
        write_stl(sink, tetrahedron)
        assert sink.getvalue() == encode_stl(tetrahedron)

    def test_degenerate_cannot_be_written(self, unit_square):
        bad = np.concatenate([unit_square, np.zeros((1, 3, 3), dtype=np.float32)])
        with pytest.raises(DegenerateGeometryError):
            encode_stl(bad)

    def test_nan_vertex_cannot_be_written(self, unit_square):
        tris = unit_square.copy()
        tris[0, 1, 2] = np.nan
        with pytest.raises(DegenerateGeometryError):
            encode_stl(tris)

    def test_trimesh_view_unmerged(self, unit_square):
        mesh = to_trimesh(unit_square)
        assert len(mesh.vertices) == 6
        np.testing.assert_array_equal(mesh.triangles, unit_square)
