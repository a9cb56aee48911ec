"""Contracts for mesh growth generation: config, results, errors, presets."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, List

import numpy as np

SAMPLING_STRATEGIES = ("uniform", "area_weighted")
GROWTH_MODES = ("recursive", "flat")


class MeshGrowthError(Exception):
    """Base exception for growth generation errors."""
    pass


class DegenerateGeometryError(MeshGrowthError, ValueError):
    """Triangle has zero area or non-finite vertices, so its normal is undefined."""
    pass


class EmptySelectionError(MeshGrowthError, ValueError):
    """Sampling was requested from a mesh with no triangles."""
    pass


class GenerationBudgetExceededError(MeshGrowthError):
    """Requested growth would exceed the configured depth or triangle ceiling."""
    pass


class MeshFormatError(MeshGrowthError, ValueError):
    """Input bytes are not a readable STL mesh."""
    pass


@dataclass(frozen=True)
class GrowthConfig:
    """Configuration for a growth run."""

    seed: int = 0
    depth: int = 1
    num_children: int = 1
    child_scale: float = 0.5
    sampling: str = "uniform"  # "uniform" | "area_weighted"
    mode: str = "recursive"  # "recursive" | "flat"
    iterations: int = 30  # flat mode only

    # Resource ceilings
    max_depth: int = 12
    max_triangles: int = 5_000_000

    def validate(self) -> None:
        if self.sampling not in SAMPLING_STRATEGIES:
            raise ValueError(
                f"Unknown sampling '{self.sampling}'. "
                "Expected 'uniform' or 'area_weighted'.",
            )
        if self.mode not in GROWTH_MODES:
            raise ValueError(
                f"Unknown mode '{self.mode}'. Expected 'recursive' or 'flat'.",
            )
        if self.depth < 0:
            raise ValueError(f"depth must be >= 0, got {self.depth}")
        if self.num_children < 0:
            raise ValueError(f"num_children must be >= 0, got {self.num_children}")
        if self.iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {self.iterations}")
        if not (math.isfinite(self.child_scale) and self.child_scale > 0.0):
            raise ValueError(
                f"child_scale must be positive and finite, got {self.child_scale}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.max_triangles < 0:
            raise ValueError(f"max_triangles must be >= 0, got {self.max_triangles}")


@dataclass
class Placement:
    """One generated copy of the base mesh."""

    level: int  # recursion level (1 = child of the base) or flat iteration
    triangle_index: int  # index into the mesh the triangle was sampled from
    transform: np.ndarray  # (4, 4) world transform applied to the base copy

    def to_dict(self) -> Dict[str, object]:
        return {
            "level": int(self.level),
            "triangle_index": int(self.triangle_index),
            "transform": [[float(v) for v in row] for row in self.transform],
        }


@dataclass
class GrowthResult:
    """In-memory result of a growth run."""

    triangles: np.ndarray  # (n, 3, 3) float32, base first
    base_count: int
    generated_count: int
    config: GrowthConfig
    placements: List[Placement] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return int(len(self.triangles))


PRESETS: Dict[str, GrowthConfig] = {
    "area-tree": GrowthConfig(
        depth=3, num_children=3, child_scale=0.4, sampling="area_weighted"
    ),
    "area-bush": GrowthConfig(
        depth=2, num_children=5, child_scale=0.3, sampling="area_weighted"
    ),
    "uniform-flat": GrowthConfig(
        mode="flat", iterations=30, child_scale=0.5, sampling="uniform"
    ),
}
