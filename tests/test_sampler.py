"""Tests for uniform and area-weighted triangle sampling."""
import numpy as np
import pytest

from meshgrowth.contracts import EmptySelectionError
from meshgrowth.sampler import sample_area_weighted, sample_triangle, sample_uniform


def _weighted_mesh():
    """Three triangles with relative areas 1, 1, 2."""
    small = [[0, 0, 0], [1, 0, 0], [0, 1, 0]]
    large = [[0, 0, 0], [2, 0, 0], [0, 1, 0]]
    return np.array([small, small, large], dtype=np.float32)


class _FixedDraw:
    """Stand-in generator whose uniform draw is always ``value``."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


class TestEmptyMesh:

    @pytest.mark.parametrize("strategy", ["uniform", "area_weighted"])
    def test_empty_raises(self, strategy):
        empty = np.empty((0, 3, 3), dtype=np.float32)
        with pytest.raises(EmptySelectionError):
            sample_triangle(empty, np.random.default_rng(0), strategy)


class TestFrequencies:

    TRIALS = 100_000

    def test_area_weighted_prefers_large(self):
        tris = _weighted_mesh()
        rng = np.random.default_rng(7)
        counts = np.bincount(
            [sample_area_weighted(tris, rng) for _ in range(self.TRIALS)], minlength=3
        )
        freq = counts / self.TRIALS
        assert freq[2] == pytest.approx(0.5, abs=0.01)
        assert freq[0] == pytest.approx(0.25, abs=0.01)
        assert freq[1] == pytest.approx(0.25, abs=0.01)

    def test_uniform_ignores_area(self):
        tris = _weighted_mesh()
        rng = np.random.default_rng(7)
        counts = np.bincount(
            [sample_uniform(tris, rng) for _ in range(self.TRIALS)], minlength=3
        )
        freq = counts / self.TRIALS
        np.testing.assert_allclose(freq, [1 / 3] * 3, atol=0.01)


class TestAreaWalk:

    def test_zero_draw_picks_first(self):
        assert sample_area_weighted(_weighted_mesh(), _FixedDraw(0.0)) == 0

    def test_boundary_goes_to_next(self):
        # Running sums are 1, 2, 4 (of 4): a draw of exactly 1 is past triangle 0.
        assert sample_area_weighted(_weighted_mesh(), _FixedDraw(0.25)) == 1

    def test_unresolved_draw_falls_back_to_last(self):
        assert sample_area_weighted(_weighted_mesh(), _FixedDraw(1.0)) == 2

    def test_precomputed_weights_are_used(self):
        tris = _weighted_mesh()
        weights = np.array([0.0, 0.0, 1.0])
        assert sample_area_weighted(tris, _FixedDraw(0.1), weights) == 2


class TestDispatch:

    def test_unknown_strategy(self, unit_square):
        with pytest.raises(ValueError, match="Unknown sampling"):
            sample_triangle(unit_square, np.random.default_rng(0), "stratified")

    def test_same_seed_same_choices(self, tetrahedron):
        a = np.random.default_rng(3)
        b = np.random.default_rng(3)
        picks_a = [sample_triangle(tetrahedron, a, "area_weighted") for _ in range(50)]
        picks_b = [sample_triangle(tetrahedron, b, "area_weighted") for _ in range(50)]
        assert picks_a == picks_b
