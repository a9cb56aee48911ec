"""Growth run orchestration: seed, grow, concatenate, stream I/O."""

from __future__ import annotations

import logging
from typing import BinaryIO, List, Optional

import numpy as np

from meshgrowth.contracts import GrowthConfig, GrowthResult, Placement
from meshgrowth.growth import flat_growths, growths
from meshgrowth.stl_io import read_stl, write_stl

logger = logging.getLogger(__name__)


def grow_mesh(base: np.ndarray, config: Optional[GrowthConfig] = None) -> GrowthResult:
    """Return the base mesh followed by every generated growth triangle.

    The RNG is seeded exactly once from ``config.seed``, so equal configs on
    equal meshes give bit-identical output.
    """
    if config is None:
        config = GrowthConfig()
    config.validate()

    base = np.asarray(base, dtype=np.float32).reshape(-1, 3, 3)
    rng = np.random.default_rng(config.seed)
    placements: List[Placement] = []

    if config.mode == "flat":
        generated = flat_growths(base, config.iterations, rng, config, placements)
    else:
        generated = growths(base, config.depth, rng, config, placements)

    triangles = np.concatenate([base, generated], axis=0)
    logger.info(
        "Grew %d base triangles into %d (%d copies, mode=%s, sampling=%s, seed=%d)",
        len(base),
        len(triangles),
        len(placements),
        config.mode,
        config.sampling,
        config.seed,
    )
    return GrowthResult(
        triangles=triangles,
        base_count=int(len(base)),
        generated_count=int(len(generated)),
        config=config,
        placements=placements,
    )


def run_growth(
    input_stream: BinaryIO,
    output_stream: BinaryIO,
    config: Optional[GrowthConfig] = None,
    ascii: bool = False,
) -> GrowthResult:
    """Read an STL from ``input_stream``, grow it, write it to ``output_stream``."""
    base = read_stl(input_stream)
    result = grow_mesh(base, config)
    write_stl(output_stream, result.triangles, ascii=ascii)
    return result
