"""
Tests for range search.

Coverage:
- Known neighbors and distances on a small synthetic reference set
- Search with a separate query set
- Inclusive range bounds and the lower bound filter
- Identical results across index algorithms
- Reusing a fitted model for several searches
- Input validation and the unfitted-model guard
"""

import sys
from pathlib import Path

import numpy as np
import pytest
from scipy.spatial.distance import cdist

# ---------- path setup ----------
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from mlprim.errors import DimensionMismatchError, InvalidArgumentError
from mlprim.range_search import RangeSearch

# One point per column.
REFERENCE = np.array([
    [0, 3, 3, 4, 3, 1],
    [4, 4, 4, 5, 5, 2],
    [0, 1, 2, 2, 3, 3],
], dtype=float)


def assert_nested_close(actual, expected, atol=1e-5):
    assert len(actual) == len(expected)
    for a, e in zip(actual, expected):
        np.testing.assert_allclose(a, e, atol=atol)


class TestRangeSearch:

    def test_monochromatic_search(self):
        result = RangeSearch().fit(REFERENCE).search(min_distance=0.0, max_distance=3.0)

        assert result.neighbors == [[], [2, 3, 4], [1, 3, 4, 5], [1, 2, 4], [1, 2, 3], [2]]
        assert_nested_close(result.distances, [
            [],
            [1, 1.73205, 2.23607],
            [1, 1.41421, 1.41421, 3],
            [1.73205, 1.41421, 1.41421],
            [2.23607, 1.41421, 1.41421],
            [3],
        ])

    def test_search_with_query(self):
        query = np.array([[5, 3, 1], [4, 2, 4], [3, 1, 7]], dtype=float)

        result = RangeSearch().fit(REFERENCE).search(query, 0.0, 5.0)

        assert result.neighbors == [[1, 2, 3, 4, 5], [0, 1, 2, 3, 4, 5], [4, 5]]
        assert_nested_close(result.distances, [
            [2.82843, 2.23607, 1.73205, 2.23607, 4.47214],
            [3.74166, 2, 2.23607, 3.31662, 3.60555, 2.82843],
            [4.58258, 4.47214],
        ])

    def test_lower_bound_filters(self):
        result = RangeSearch().fit(REFERENCE).search(min_distance=1.5, max_distance=3.0)

        assert result.neighbors[1] == [3, 4]
        assert result.neighbors[2] == [5]
        for dists in result.distances:
            assert all(1.5 <= d <= 3.0 for d in dists)

    def test_unbounded_range_returns_everything(self):
        query = np.array([[100.0], [-50.0], [7.0]])
        result = RangeSearch().fit(REFERENCE).search(query)

        assert result.neighbors == [[0, 1, 2, 3, 4, 5]]
        expected = cdist(query.T, REFERENCE.T)[0]
        np.testing.assert_allclose(result.distances[0], expected, rtol=1e-10)

    @pytest.mark.parametrize("algorithm", ["kd_tree", "ball_tree", "brute"])
    def test_algorithms_agree(self, algorithm):
        rng = np.random.default_rng(0)
        reference = rng.uniform(0, 10, size=(3, 80))
        query = rng.uniform(0, 10, size=(3, 15))

        baseline = RangeSearch(algorithm="brute").fit(reference).search(query, 1.0, 4.0)
        result = RangeSearch(algorithm=algorithm, leaf_size=5).fit(reference).search(query, 1.0, 4.0)

        assert result.neighbors == baseline.neighbors
        assert_nested_close(result.distances, baseline.distances, atol=1e-10)

    def test_matches_pairwise_distances(self):
        rng = np.random.default_rng(1)
        reference = rng.standard_normal((4, 40))
        query = rng.standard_normal((4, 10))

        result = RangeSearch().fit(reference).search(query, 0.5, 2.0)

        pairwise = cdist(query.T, reference.T)
        for i, neighbors in enumerate(result.neighbors):
            expected = np.flatnonzero((pairwise[i] >= 0.5) & (pairwise[i] <= 2.0))
            assert neighbors == expected.tolist()

    def test_model_reuse(self):
        model = RangeSearch().fit(REFERENCE)
        query = np.array([[5, 3, 1], [4, 2, 4], [3, 1, 7]], dtype=float)

        first = model.search(query, 0.0, 5.0)
        model.search(min_distance=0.0, max_distance=3.0)
        second = model.search(query, 0.0, 5.0)

        assert first.neighbors == second.neighbors
        assert first.distances == second.distances


class TestRangeSearchValidation:

    def test_unfitted(self):
        with pytest.raises(RuntimeError):
            RangeSearch().search()

    def test_bad_algorithm(self):
        with pytest.raises(InvalidArgumentError):
            RangeSearch(algorithm="cover_tree")

    def test_inverted_range(self):
        with pytest.raises(InvalidArgumentError):
            RangeSearch().fit(REFERENCE).search(min_distance=3.0, max_distance=1.0)

    def test_negative_range(self):
        with pytest.raises(InvalidArgumentError):
            RangeSearch().fit(REFERENCE).search(min_distance=-1.0, max_distance=1.0)

    def test_query_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            RangeSearch().fit(REFERENCE).search(np.zeros((2, 4)), 0.0, 1.0)

    def test_reference_must_be_2d(self):
        with pytest.raises(InvalidArgumentError):
            RangeSearch().fit(np.arange(5))

    def test_reference_must_not_be_empty(self):
        with pytest.raises(InvalidArgumentError):
            RangeSearch().fit(np.zeros((3, 0)))


class TestRangeBoundaries:
    """Closed bounds on lattice data, where many distances sit exactly on a bound."""

    @staticmethod
    def make_lattice(seed=3):
        rng = np.random.default_rng(seed)
        reference = rng.integers(0, 10, size=(3, 60)) * 0.1
        query = rng.integers(0, 10, size=(3, 40)) * 0.1
        return reference, query

    @pytest.mark.parametrize("algorithm", ["auto", "kd_tree", "ball_tree", "brute"])
    def test_closed_range_matches_pairwise(self, algorithm):
        reference, query = self.make_lattice()

        result = RangeSearch(algorithm=algorithm, leaf_size=4).fit(reference).search(query, 0.3, 0.5)

        pairwise = cdist(query.T, reference.T)
        for i, (neighbors, dists) in enumerate(zip(result.neighbors, result.distances)):
            expected = np.flatnonzero((pairwise[i] >= 0.3) & (pairwise[i] <= 0.5))
            assert neighbors == expected.tolist()
            np.testing.assert_array_equal(dists, pairwise[i, expected])

    def test_algorithms_agree_on_lattice(self):
        reference, query = self.make_lattice(seed=8)

        results = [
            RangeSearch(algorithm=algorithm, leaf_size=4).fit(reference).search(query, 0.3, 0.5)
            for algorithm in ("kd_tree", "ball_tree", "brute")
        ]

        for other in results[1:]:
            assert other.neighbors == results[0].neighbors
            assert other.distances == results[0].distances

    def test_monochromatic_lattice(self):
        reference, _ = self.make_lattice(seed=5)

        result = RangeSearch(algorithm="brute").fit(reference).search(min_distance=0.2, max_distance=0.3)

        pairwise = cdist(reference.T, reference.T)
        for i, neighbors in enumerate(result.neighbors):
            mask = (pairwise[i] >= 0.2) & (pairwise[i] <= 0.3)
            mask[i] = False
            assert neighbors == np.flatnonzero(mask).tolist()
