"""
Sum-of-squared-errors loss for gradient boosted trees.

L(y, f) = 1/2 * (y - f)^2

The boosting driver starts from ``initial_prediction`` and then, every round,
fits a tree to the pseudo-residuals (the negative gradient) using the
gradients and hessians below. All functions are pure and work elementwise on
arrays as well as on scalars.

References:
- Friedman, J. H. (2001). Greedy function approximation: A gradient boosting machine.
- Chen, T., & Guestrin, C. (2016). XGBoost: A scalable tree boosting system.
"""

from typing import Union

import numpy as np

from .errors import InvalidArgumentError

ArrayOrScalar = Union[np.ndarray, float]


class SSELoss:
    """Stateless SSE loss primitives consumed by a gradient boosting driver."""

    @staticmethod
    def initial_prediction(values: np.ndarray) -> float:
        """
        Initial constant prediction f_0 = argmin_γ Σ L(y_i, γ) = mean(y).

        Raises
        ------
        InvalidArgumentError
            If ``values`` is empty.
        """
        values = np.asarray(values, dtype=float)
        if values.size == 0:
            raise InvalidArgumentError("initial prediction needs at least one value")
        return float(np.mean(values))

    @staticmethod
    def gradients(observed: ArrayOrScalar, predicted: ArrayOrScalar) -> ArrayOrScalar:
        """First derivative ∂L/∂f = f - y."""
        return -(np.subtract(observed, predicted))

    @staticmethod
    def hessians(observed: ArrayOrScalar, predicted: ArrayOrScalar) -> ArrayOrScalar:
        """
        Second derivative ∂²L/∂f² = 1.

        Returns 1.0 for scalar input and an array of ones shaped like
        ``predicted`` for array input.
        """
        if np.ndim(predicted) == 0:
            return 1.0
        return np.ones_like(predicted, dtype=float)

    @staticmethod
    def residuals(observed: ArrayOrScalar, predicted: ArrayOrScalar) -> ArrayOrScalar:
        """Pseudo-residuals, the negative gradient: y - f."""
        return -SSELoss.gradients(observed, predicted)

    @staticmethod
    def loss(observed: ArrayOrScalar, predicted: ArrayOrScalar) -> float:
        """Total loss 1/2 * Σ (y - f)^2."""
        diff = np.subtract(observed, predicted)
        return float(0.5 * np.sum(diff ** 2))
