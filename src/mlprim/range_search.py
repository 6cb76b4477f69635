"""
Range search: all reference points within a distance interval of each query.

For every query point q the search returns the reference points r with
min_distance <= ||q - r|| <= max_distance (Euclidean). Points are stored one
per column, shape (n_dims, n_points), like the datasets in ``split_data``.

A fitted model keeps its spatial index, so it can be queried repeatedly with
different query sets and ranges.
"""

import logging
from typing import List, NamedTuple, Optional

import numpy as np
from scipy.spatial.distance import cdist
from sklearn.neighbors import NearestNeighbors

from .errors import DimensionMismatchError, InvalidArgumentError

logger = logging.getLogger(__name__)

ALGORITHMS = ("auto", "kd_tree", "ball_tree", "brute")


class RangeSearchResult(NamedTuple):
    """Neighbor indices and distances per query, sorted by neighbor index."""

    neighbors: List[List[int]]
    distances: List[List[float]]


class RangeSearch:
    """
    Range search over a fixed reference set.

    Parameters
    ----------
    algorithm : {'auto', 'kd_tree', 'ball_tree', 'brute'}, default='auto'
        Spatial index used for the search. All give identical results.
    leaf_size : int, default=20
        Leaf size of tree-based indices.
    """

    def __init__(self, algorithm: str = "auto", leaf_size: int = 20):
        if algorithm not in ALGORITHMS:
            raise InvalidArgumentError(
                f"algorithm must be one of {ALGORITHMS}, got {algorithm!r}"
            )
        if leaf_size < 1:
            raise InvalidArgumentError(f"leaf_size must be positive, got {leaf_size}")

        self.algorithm = algorithm
        self.leaf_size = leaf_size

        self.reference_: Optional[np.ndarray] = None
        self._index: Optional[NearestNeighbors] = None

    def fit(self, reference: np.ndarray) -> "RangeSearch":
        """
        Build the index over ``reference``.

        Args:
            reference: Reference points, shape (n_dims, n_points).

        Returns:
            self
        """
        reference = np.asarray(reference, dtype=float)
        if reference.ndim != 2:
            raise InvalidArgumentError(
                f"reference must be 2-D (n_dims, n_points), got {reference.ndim} dimensions"
            )
        if reference.shape[1] == 0:
            raise InvalidArgumentError("reference must contain at least one point")

        self.reference_ = reference
        self._index = NearestNeighbors(
            algorithm=self.algorithm, leaf_size=self.leaf_size, metric="euclidean"
        )
        # sklearn stores one point per row.
        self._index.fit(reference.T)

        logger.debug(
            f"Built {self.algorithm} index over {reference.shape[1]} points "
            f"in {reference.shape[0]} dimensions"
        )
        return self

    def search(
        self,
        query: Optional[np.ndarray] = None,
        min_distance: float = 0.0,
        max_distance: float = np.inf
    ) -> RangeSearchResult:
        """
        Find reference points whose distance lies in [min_distance, max_distance].

        Args:
            query: Query points, shape (n_dims, n_queries). When None, every
                reference point is queried against the others and never
                reported as its own neighbor.
            min_distance: Lower bound of the range (inclusive).
            max_distance: Upper bound of the range (inclusive).

        Returns:
            RangeSearchResult with one neighbor list and one distance list per
            query point.
        """
        if self._index is None:
            raise RuntimeError("Model must be fitted before search")
        if min_distance < 0 or max_distance < 0:
            raise InvalidArgumentError("range bounds must be non-negative")
        if min_distance > max_distance:
            raise InvalidArgumentError(
                f"min_distance ({min_distance}) exceeds max_distance ({max_distance})"
            )

        if query is not None:
            query = np.asarray(query, dtype=float)
            if query.ndim != 2:
                raise InvalidArgumentError(
                    f"query must be 2-D (n_dims, n_points), got {query.ndim} dimensions"
                )
            if query.shape[0] != self.reference_.shape[0]:
                raise DimensionMismatchError(
                    f"query has {query.shape[0]} dimensions but reference has "
                    f"{self.reference_.shape[0]}"
                )
            points = query.T
        else:
            points = None

        n_reference = self.reference_.shape[1]
        n_queries = n_reference if points is None else points.shape[0]
        if n_queries == 0 or (points is None and n_reference == 1):
            empty = [[] for _ in range(n_queries)]
            return RangeSearchResult(empty, [[] for _ in range(n_queries)])

        # radius_neighbors needs a finite radius.
        radius = max_distance
        if not np.isfinite(radius):
            radius = float(np.ptp(self.reference_, axis=1).sum() + 1.0)
            if points is not None:
                spread = np.vstack([self.reference_.T, points])
                radius = float(np.ptp(spread, axis=0).sum() + 1.0)

        # The index only proposes candidates. Its distances depend on the
        # backend (brute force uses the squared-norm expansion), so candidates
        # within a padded radius are re-measured and both bounds are applied
        # to the exact distances.
        query_points = self.reference_.T if points is None else points
        max_sq_norm = max(
            float(np.max(np.sum(self.reference_ ** 2, axis=0))),
            float(np.max(np.sum(query_points ** 2, axis=1))),
        )
        padded = np.sqrt(radius ** 2 + 1e-8 * (1.0 + max_sq_norm))
        _, index_lists = self._index.radius_neighbors(
            points, radius=padded, sort_results=False
        )

        neighbors = []
        distances = []
        for q, idx in zip(query_points, index_lists):
            idx = np.sort(idx)
            dist = cdist(q[np.newaxis, :], self.reference_[:, idx].T)[0]
            keep = (dist >= min_distance) & (dist <= max_distance)
            neighbors.append([int(i) for i in idx[keep]])
            distances.append([float(d) for d in dist[keep]])

        logger.debug(
            f"Range search [{min_distance}, {max_distance}] over {n_queries} queries "
            f"found {sum(len(n) for n in neighbors)} pairs"
        )
        return RangeSearchResult(neighbors, distances)
