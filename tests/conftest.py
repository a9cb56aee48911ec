"""
Shared test fixtures for mesh growth tests.
"""
import sys
from pathlib import Path

import numpy as np
import pytest
import trimesh

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from meshgrowth.stl_io import encode_stl


@pytest.fixture
def unit_square():
    """Two triangles covering the unit square in the z=0 plane."""
    return np.array(
        [
            [[0, 0, 0], [1, 0, 0], [1, 1, 0]],
            [[0, 0, 0], [1, 1, 0], [0, 1, 0]],
        ],
        dtype=np.float32,
    )


@pytest.fixture
def tetrahedron():
    """Closed, outward-wound tetrahedron."""
    a, b, c, d = (
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0],
        [0.0, 0.0, 1.0],
    )
    return np.array(
        [[a, c, b], [a, b, d], [a, d, c], [b, c, d]],
        dtype=np.float32,
    )


@pytest.fixture
def box_triangles():
    """A 10x10x10 box as a flat triangle array."""
    mesh = trimesh.creation.box(extents=[10, 10, 10])
    return np.asarray(mesh.triangles, dtype=np.float32)


@pytest.fixture
def box_stl_file(tmp_path, box_triangles):
    """The box mesh written as a binary STL."""
    path = tmp_path / "box.stl"
    path.write_bytes(encode_stl(box_triangles))
    return str(path)
