"""
All-categories split for categorical features.

Splitting on a categorical feature with K categories creates K children,
one per category value. The split's gain is the share-weighted sum of each
child's fitness, where a child's share is its fraction of the total weight
(weighted training) or of the sample count (unweighted training).

A candidate only replaces the current best when

    gain > best_gain + minimum_gain_split + EPSILON

with EPSILON a fixed tolerance, so ties and rounding noise keep the split
that was found first. Infeasible or non-improving candidates return the
NO_IMPROVEMENT sentinel instead of raising: during a tree search that is an
expected outcome and the caller simply moves on to the next feature.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

import numpy as np

from .errors import DimensionMismatchError, InvalidArgumentError
from .fitness import FitnessFunction, GiniGain

logger = logging.getLogger(__name__)

EPSILON = 1e-7
NO_IMPROVEMENT = float(np.finfo(float).max)


class PayloadMode(Enum):
    """Which payload variant an accepted split records."""

    REGRESSION = "regression"
    CLASSIFICATION = "classification"


@dataclass(frozen=True)
class ScalarPayload:
    """Split descriptor stored as a single number (regression trees)."""

    value: float


@dataclass(frozen=True)
class VectorPayload:
    """Split descriptor stored as a vector (classification trees)."""

    values: np.ndarray


SplitPayload = Union[ScalarPayload, VectorPayload]


def make_payload(value: float, mode: PayloadMode) -> SplitPayload:
    """Wrap ``value`` in the payload variant selected by ``mode``."""
    if mode is PayloadMode.REGRESSION:
        return ScalarPayload(float(value))
    if mode is PayloadMode.CLASSIFICATION:
        return VectorPayload(np.array([value], dtype=float))
    raise InvalidArgumentError(f"unknown payload mode: {mode!r}")


def _payload_value(payload: SplitPayload) -> float:
    if isinstance(payload, ScalarPayload):
        return payload.value
    if isinstance(payload, VectorPayload):
        return float(payload.values[0])
    raise InvalidArgumentError(f"not a split payload: {payload!r}")


class AllCategoricalSplit:
    """
    Evaluate splitting a node into one child per category.

    Parameters
    ----------
    fitness_function : FitnessFunction, default=GiniGain()
        Metric used to score each child's labels.
    """

    def __init__(self, fitness_function: Optional[FitnessFunction] = None):
        self.fitness_function = fitness_function if fitness_function is not None else GiniGain()

    def _categories(self, data: np.ndarray, num_categories: int) -> np.ndarray:
        """Validate category values and cast them to child indices."""
        if num_categories < 1:
            raise InvalidArgumentError(
                f"num_categories must be at least 1, got {num_categories}"
            )
        if not np.all(np.isfinite(data)):
            raise InvalidArgumentError("category values must be finite")
        if data.size and (data.min() < 0 or data.max() >= num_categories):
            raise InvalidArgumentError(
                f"category values must lie in [0, {num_categories}), "
                f"got range [{data.min()}, {data.max()}]"
            )
        return data.astype(np.int64)

    def split_if_better(
        self,
        best_gain: float,
        data: np.ndarray,
        num_categories: int,
        labels: np.ndarray,
        num_classes: int,
        weights: Optional[np.ndarray] = None,
        minimum_leaf_size: int = 1,
        minimum_gain_split: float = 0.0,
        mode: PayloadMode = PayloadMode.CLASSIFICATION
    ) -> Tuple[float, Optional[SplitPayload]]:
        """
        Compute the gain of splitting on ``data`` and keep it if it beats ``best_gain``.

        Parameters
        ----------
        best_gain : float
            Best gain found so far for this node.
        data : np.ndarray, shape (n,)
            Categorical feature values, integers in [0, num_categories).
        num_categories : int
            Number of categories, hence number of children.
        labels : np.ndarray, shape (n,)
            Class labels (classification) or responses (regression).
        num_classes : int
            Number of classes passed through to the fitness function.
        weights : np.ndarray, shape (n,), optional
            Per-sample weights. Shares are weight fractions when given.
        minimum_leaf_size : int, default=1
            Every child needs at least this many samples.
        minimum_gain_split : float, default=0.0
            Required improvement over ``best_gain``.
        mode : PayloadMode, default=CLASSIFICATION
            Payload variant recorded for an accepted split.

        Returns
        -------
        gain : float
            The candidate's gain if accepted, NO_IMPROVEMENT otherwise.
        payload : SplitPayload or None
            Descriptor holding ``num_categories`` if accepted, else None.
        """
        data = np.asarray(data)
        labels = np.asarray(labels)
        if data.ndim != 1:
            raise InvalidArgumentError(
                f"data must be a 1-D feature column, got {data.ndim} dimensions"
            )
        n = data.shape[0]
        if labels.shape[0] != n:
            raise DimensionMismatchError(
                f"labels have {labels.shape[0]} entries but data has {n}"
            )
        if weights is not None:
            weights = np.asarray(weights, dtype=float)
            if weights.shape != (n,):
                raise DimensionMismatchError(
                    f"weights have shape {weights.shape} but data has {n} entries"
                )
            if not np.all(np.isfinite(weights)) or np.any(weights < 0):
                raise InvalidArgumentError("weights must be finite and non-negative")

        categories = self._categories(data, num_categories)

        counts = np.bincount(categories, minlength=num_categories)
        if counts.min() < minimum_leaf_size or n == 0:
            return NO_IMPROVEMENT, None

        if weights is not None:
            child_weight_sums = np.bincount(
                categories, weights=weights, minlength=num_categories
            )
            total_weight = weights.sum()
            if total_weight <= 0.0:
                return NO_IMPROVEMENT, None
            shares = child_weight_sums / total_weight
        else:
            shares = counts.astype(float) / float(n)

        # Stable sort keeps the original sample order inside each child.
        order = np.argsort(categories, kind="stable")
        boundaries = np.cumsum(counts)[:-1]
        child_labels = np.split(labels[order], boundaries)
        if weights is not None:
            child_weights = np.split(weights[order], boundaries)
        else:
            child_weights = [None] * num_categories

        overall_gain = 0.0
        for share, sub_labels, sub_weights in zip(shares, child_labels, child_weights):
            child_gain = self.fitness_function.evaluate(sub_labels, num_classes, sub_weights)
            overall_gain += share * child_gain

        if overall_gain > best_gain + minimum_gain_split + EPSILON:
            logger.debug(
                f"Accepted categorical split into {num_categories} children: "
                f"gain={overall_gain:.6f} (previous best {best_gain:.6f})"
            )
            return float(overall_gain), make_payload(num_categories, mode)

        return NO_IMPROVEMENT, None

    @staticmethod
    def num_children(payload: SplitPayload) -> int:
        """Number of children of an accepted split."""
        return int(_payload_value(payload))

    @staticmethod
    def calculate_direction(point: float, payload: Optional[SplitPayload] = None) -> int:
        """Child index for a point: its category value truncated to an integer."""
        return int(point)
