"""Triangle selection strategies over a mesh."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from meshgrowth.contracts import EmptySelectionError
from meshgrowth.geometry import area_weights

logger = logging.getLogger(__name__)


def _require_candidates(triangles: np.ndarray) -> int:
    count = int(len(triangles))
    if count == 0:
        raise EmptySelectionError("Cannot sample a triangle from an empty mesh")
    return count


def sample_uniform(triangles: np.ndarray, rng: np.random.Generator) -> int:
    """Index of a triangle drawn with equal probability."""
    count = _require_candidates(triangles)
    return int(rng.integers(count))


def sample_area_weighted(
    triangles: np.ndarray,
    rng: np.random.Generator,
    weights: Optional[np.ndarray] = None,
) -> int:
    """Index of a triangle drawn with probability proportional to its area.

    Walks the running weight sum and returns the first triangle whose sum
    exceeds the draw. If rounding leaves the draw unresolved the last
    triangle is returned.
    """
    count = _require_candidates(triangles)
    if weights is None:
        weights = area_weights(triangles)

    running = np.cumsum(weights)
    draw = rng.random() * float(running[-1])
    index = int(np.searchsorted(running, draw, side="right"))
    if index >= count:
        logger.debug(
            "Area draw %.9g unresolved after %d triangles; using last", draw, count
        )
        index = count - 1
    return index


def sample_triangle(
    triangles: np.ndarray,
    rng: np.random.Generator,
    strategy: str,
    weights: Optional[np.ndarray] = None,
) -> int:
    if strategy == "uniform":
        return sample_uniform(triangles, rng)
    if strategy == "area_weighted":
        return sample_area_weighted(triangles, rng, weights)
    raise ValueError(
        f"Unknown sampling '{strategy}'. Expected 'uniform' or 'area_weighted'."
    )
