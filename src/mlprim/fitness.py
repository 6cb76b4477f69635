"""
Fitness functions for decision-tree split evaluation.

A fitness function scores the labels that would land in one child of a
split. Higher is better and a perfectly pure child scores 0, so every
function here returns the negative of an impurity measure.

References:
- Breiman, L., Friedman, J., Olshen, R., & Stone, C. (1984). Classification
  and Regression Trees. (Gini impurity)
- Quinlan, J. R. (1986). Induction of decision trees. (Information gain)
"""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
from scipy.stats import entropy


class FitnessFunction(ABC):
    """Pluggable child-quality metric used by split evaluators."""

    @abstractmethod
    def evaluate(
        self,
        labels: np.ndarray,
        num_classes: int,
        weights: Optional[np.ndarray] = None
    ) -> float:
        """
        Score the labels of a single child.

        Parameters
        ----------
        labels : np.ndarray, shape (n,)
            Labels assigned to the child.
        num_classes : int
            Number of classes (ignored by regression metrics).
        weights : np.ndarray, shape (n,), optional
            Per-sample weights; uniform when omitted.

        Returns
        -------
        score : float
            Fitness of the child, 0 for a pure child and negative otherwise.
        """

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


def _class_proportions(
    labels: np.ndarray, num_classes: int, weights: Optional[np.ndarray]
) -> Optional[np.ndarray]:
    """(Weighted) class frequencies, or None when there is no mass."""
    labels = np.asarray(labels).astype(np.int64)
    counts = np.bincount(labels, weights=weights, minlength=num_classes).astype(float)
    total = counts.sum()
    if total <= 0.0:
        return None
    return counts / total


class GiniGain(FitnessFunction):
    """
    Negative Gini impurity: -(1 - Σ_k p_k²).

    p_k is the (weighted) fraction of class k among the child's labels.
    """

    def evaluate(self, labels, num_classes, weights=None):
        if len(labels) == 0:
            return 0.0
        p = _class_proportions(labels, num_classes, weights)
        if p is None:
            return 0.0
        return -float(1.0 - np.sum(p ** 2))


class InformationGain(FitnessFunction):
    """Negative entropy in bits: Σ_k p_k log2 p_k."""

    def evaluate(self, labels, num_classes, weights=None):
        if len(labels) == 0:
            return 0.0
        p = _class_proportions(labels, num_classes, weights)
        if p is None:
            return 0.0
        return -float(entropy(p, base=2))


class MSEGain(FitnessFunction):
    """Negative (weighted) variance of continuous labels."""

    def evaluate(self, labels, num_classes=0, weights=None):
        if len(labels) == 0:
            return 0.0
        labels = np.asarray(labels, dtype=float)
        if weights is not None and np.sum(weights) <= 0.0:
            return 0.0
        mean = np.average(labels, weights=weights)
        variance = np.average((labels - mean) ** 2, weights=weights)
        return -float(variance)
