"""Public API for recursive mesh growth generation."""

from meshgrowth.contracts import (
    PRESETS,
    DegenerateGeometryError,
    EmptySelectionError,
    GenerationBudgetExceededError,
    GrowthConfig,
    GrowthResult,
    MeshFormatError,
    MeshGrowthError,
    Placement,
)
from meshgrowth.growth import flat_growths, growths
from meshgrowth.pipeline import grow_mesh, run_growth
from meshgrowth.stl_io import encode_stl, parse_stl, read_stl, write_stl

__all__ = [
    "PRESETS",
    "DegenerateGeometryError",
    "EmptySelectionError",
    "GenerationBudgetExceededError",
    "GrowthConfig",
    "GrowthResult",
    "MeshFormatError",
    "MeshGrowthError",
    "Placement",
    "encode_stl",
    "flat_growths",
    "grow_mesh",
    "growths",
    "parse_stl",
    "read_stl",
    "run_growth",
    "write_stl",
]
