"""
Growth engine: attach scaled copies of a base mesh onto its own triangles.

Two modes are provided:
1. Recursive tree (``growths``): every copy carries ``num_children`` further
   copies down to the requested depth, all sampled from the base mesh.
2. Flat iteration (``flat_growths``): a fixed number of single copies, each
   placed on a triangle sampled from everything generated so far.

The recursive tree is walked with an explicit stack in pre-order, so RNG
draws and emitted triangles come out in the same order a recursive
definition would produce: child 0 is sampled, its whole subtree is expanded,
then child 1 is sampled, and so on.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

import numpy as np

from meshgrowth.contracts import GenerationBudgetExceededError, GrowthConfig, Placement
from meshgrowth.geometry import (
    apply_transform,
    area_weights,
    compose,
    place_on_triangle,
    uniform_scale,
)
from meshgrowth.sampler import sample_triangle

logger = logging.getLogger(__name__)


def expected_growth_count(base_count: int, depth: int, num_children: int) -> int:
    """Triangles generated by a full recursive expansion."""
    copies = sum(num_children**level for level in range(1, depth + 1))
    return int(base_count) * copies


def check_budget(base_count: int, params: GrowthConfig) -> int:
    """Raise if the configured growth is too large. Returns the expected count."""
    if params.mode == "flat":
        expected = int(base_count) * params.iterations
    else:
        if params.depth > params.max_depth:
            raise GenerationBudgetExceededError(
                f"depth {params.depth} exceeds max_depth {params.max_depth}"
            )
        expected = expected_growth_count(base_count, params.depth, params.num_children)
    if expected > params.max_triangles:
        raise GenerationBudgetExceededError(
            f"growth would generate {expected} triangles, "
            f"ceiling is {params.max_triangles}"
        )
    return expected


def _empty() -> np.ndarray:
    return np.empty((0, 3, 3), dtype=np.float32)


def growths(
    base: np.ndarray,
    remaining_depth: int,
    rng: np.random.Generator,
    params: GrowthConfig,
    placements: Optional[List[Placement]] = None,
) -> np.ndarray:
    """Generated triangles for ``remaining_depth`` levels of growth.

    The untransformed base is never part of the result. Each generated copy
    is appended to ``placements`` when a list is given.
    """
    if remaining_depth <= 0 or params.num_children <= 0:
        return _empty()

    base = np.asarray(base, dtype=np.float32)
    check_budget(len(base), _with_depth(params, remaining_depth))

    weights = area_weights(base) if params.sampling == "area_weighted" else None
    scale = uniform_scale(params.child_scale)
    frames: Dict[int, np.ndarray] = {}

    out: List[np.ndarray] = []
    # Each entry is one pending child: (parent world transform, its level).
    stack: List[Tuple[np.ndarray, int]] = [
        (np.identity(4), 1) for _ in range(params.num_children)
    ]
    while stack:
        parent, level = stack.pop()
        index = sample_triangle(base, rng, params.sampling, weights)
        if index not in frames:
            frames[index] = compose(place_on_triangle(base[index]), scale)
        world = compose(parent, frames[index])

        out.append(apply_transform(world, base).astype(np.float32))
        if placements is not None:
            placements.append(Placement(level=level, triangle_index=index, transform=world))
        if level < remaining_depth:
            stack.extend((world, level + 1) for _ in range(params.num_children))

    logger.debug(
        "Recursive growth: %d copies over %d level(s)", len(out), remaining_depth
    )
    return np.concatenate(out, axis=0)


def flat_growths(
    base: np.ndarray,
    iterations: int,
    rng: np.random.Generator,
    params: GrowthConfig,
    placements: Optional[List[Placement]] = None,
) -> np.ndarray:
    """Generated triangles for ``iterations`` single-copy placements.

    Each iteration samples from the base plus every copy generated so far.
    """
    if iterations <= 0:
        return _empty()

    base = np.asarray(base, dtype=np.float32)
    base_count = len(base)
    check_budget(base_count, _with_iterations(params, iterations))

    # Combined mesh grows in place; sampling only ever sees the filled prefix.
    combined = np.empty((base_count * (iterations + 1), 3, 3), dtype=np.float32)
    combined[:base_count] = base
    weights = None
    if params.sampling == "area_weighted":
        weights = np.empty(len(combined), dtype=np.float64)
        weights[:base_count] = area_weights(base)
    scale = uniform_scale(params.child_scale)

    filled = base_count
    for iteration in range(1, iterations + 1):
        current = combined[:filled]
        index = sample_triangle(
            current,
            rng,
            params.sampling,
            None if weights is None else weights[:filled],
        )
        placement = compose(place_on_triangle(current[index]), scale)
        copy = apply_transform(placement, base).astype(np.float32)

        combined[filled:filled + base_count] = copy
        if weights is not None:
            weights[filled:filled + base_count] = area_weights(copy)
        filled += base_count
        if placements is not None:
            placements.append(
                Placement(level=iteration, triangle_index=index, transform=placement)
            )

    logger.debug("Flat growth: %d copies", iterations)
    return combined[base_count:filled].copy()


def _with_depth(params: GrowthConfig, depth: int) -> GrowthConfig:
    if params.depth == depth and params.mode == "recursive":
        return params
    return replace(params, depth=depth, mode="recursive")


def _with_iterations(params: GrowthConfig, iterations: int) -> GrowthConfig:
    if params.iterations == iterations and params.mode == "flat":
        return params
    return replace(params, iterations=iterations, mode="flat")
