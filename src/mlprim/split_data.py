"""
Train/test splitting of column-oriented datasets.

Datasets are stored with one sample per column, shape (n_features, n_samples).
Labels and weights travel with their sample: whatever column index a sample
has in the dataset, it has the same position in the label and weight
containers, and the split moves them together.

Two policies are available:

- Plain split: the first ``n - floor(n * test_ratio)`` samples (in original
  or shuffled order) form the training set and the rest form the test set.
- Stratified split: each class ``c`` contributes exactly
  ``floor(count(c) * test_ratio)`` samples to the test set. Samples are
  visited in order (or in a random permutation) and greedily assigned to the
  test set while their class still has test budget left.

Randomness only comes from the ``random_state`` argument (an int seed, a
``numpy.random.Generator`` or ``None``); no global RNG state is touched.
"""

import logging
from enum import Enum
from typing import NamedTuple, Optional, Union

import numpy as np

from .errors import DimensionMismatchError, InvalidArgumentError

logger = logging.getLogger(__name__)

RandomState = Optional[Union[int, np.random.Generator]]


class LabelShape(Enum):
    """Shape family of a label container, decided once at the API boundary."""

    VECTOR = "vector"
    STRUCTURED = "structured"


class SplitResult(NamedTuple):
    """Output of :func:`split`. Label and weight members are None when not given."""

    train: np.ndarray
    test: np.ndarray
    train_labels: Optional[np.ndarray] = None
    test_labels: Optional[np.ndarray] = None
    train_weights: Optional[np.ndarray] = None
    test_weights: Optional[np.ndarray] = None


def classify_labels(labels: np.ndarray, n_samples: int) -> LabelShape:
    """
    Decide whether ``labels`` is a flat vector or a structured label set.

    A flat vector is 1-D, a single row ``(1, n)`` or a single column
    ``(n, 1)``. Any other 2-D array with ``n_samples`` columns is structured
    (one column per sample).

    Raises
    ------
    InvalidArgumentError
        If ``labels`` is not 1-D or 2-D.
    DimensionMismatchError
        If the number of samples in ``labels`` differs from ``n_samples``.
    """
    if labels.ndim == 1:
        if labels.shape[0] != n_samples:
            raise DimensionMismatchError(
                f"labels have {labels.shape[0]} samples but data has {n_samples}"
            )
        return LabelShape.VECTOR

    if labels.ndim != 2:
        raise InvalidArgumentError(
            f"labels must be 1-D or 2-D, got {labels.ndim} dimensions"
        )

    if labels.shape[1] == n_samples:
        return LabelShape.VECTOR if labels.shape[0] == 1 else LabelShape.STRUCTURED
    if labels.shape == (n_samples, 1):
        return LabelShape.VECTOR

    raise DimensionMismatchError(
        f"labels of shape {labels.shape} do not match {n_samples} samples"
    )


def _label_sample_axis(labels: np.ndarray, n_samples: int) -> int:
    """Axis of ``labels`` along which samples are laid out."""
    if labels.ndim == 1:
        return 0
    # Column vector (n, 1); a (1, 1) array is treated as a row.
    if labels.shape[1] == 1 and labels.shape[0] == n_samples and n_samples != 1:
        return 0
    return 1


def permutation(n: int, random_state: RandomState = None) -> np.ndarray:
    """Uniformly random permutation of ``[0, n)`` drawn from ``random_state``."""
    rng = np.random.default_rng(random_state)
    return rng.permutation(n)


def _as_class_indices(labels: np.ndarray) -> np.ndarray:
    """Flatten vector labels into non-negative integer class indices."""
    flat = labels.reshape(-1)
    if flat.size == 0:
        return flat.astype(np.int64)

    if not np.issubdtype(flat.dtype, np.integer):
        if not np.issubdtype(flat.dtype, np.floating) or not np.all(np.mod(flat, 1) == 0):
            raise InvalidArgumentError(
                "stratified split requires integer class labels"
            )
    if flat.min() < 0:
        raise InvalidArgumentError(
            "stratified split requires non-negative class labels"
        )
    return flat.astype(np.int64)


def stratified_test_counts(labels: np.ndarray, test_ratio: float) -> np.ndarray:
    """
    Per-class test budget ``floor(count(c) * test_ratio)``.

    Parameters
    ----------
    labels : np.ndarray
        Flat vector of non-negative integer class labels.
    test_ratio : float
        Fraction of each class held out for testing.

    Returns
    -------
    budgets : np.ndarray, shape (max_label + 1,)
        Number of test samples for each class index.
    """
    classes = _as_class_indices(np.asarray(labels))
    counts = np.bincount(classes)
    return np.floor(counts * test_ratio).astype(np.int64)


def _validate_ratio(test_ratio: float) -> None:
    if not 0.0 <= test_ratio <= 1.0:
        raise InvalidArgumentError(
            f"test_ratio must be in [0, 1], got {test_ratio}"
        )


def _validate_weights(weights: np.ndarray, n_samples: int) -> None:
    if weights.ndim != 1:
        raise InvalidArgumentError(
            f"weights must be 1-D, got {weights.ndim} dimensions"
        )
    if weights.shape[0] != n_samples:
        raise DimensionMismatchError(
            f"weights have {weights.shape[0]} samples but data has {n_samples}"
        )
    if np.any(weights < 0):
        raise InvalidArgumentError("weights must be non-negative")


def _plain_order(
    n_samples: int, test_ratio: float, shuffle: bool, random_state: RandomState
):
    """Train and test column indices for the non-stratified policy."""
    test_size = int(n_samples * test_ratio)
    train_size = n_samples - test_size

    if shuffle:
        order = permutation(n_samples, random_state)
    else:
        order = np.arange(n_samples)

    return order[:train_size], order[train_size:]


def _stratified_order(
    labels: np.ndarray, test_ratio: float, shuffle: bool, random_state: RandomState
):
    """Train and test column indices for the stratified policy."""
    classes = _as_class_indices(labels)
    n_samples = classes.shape[0]
    counts = np.bincount(classes)
    budgets = np.floor(counts * test_ratio).astype(np.int64)

    if test_ratio > 0.0:
        for label in np.flatnonzero((budgets == 0) & (counts > 0)):
            logger.warning(
                f"Class {label} has {counts[label]} samples; none will be held out "
                f"at test_ratio={test_ratio}"
            )

    if shuffle:
        order = permutation(n_samples, random_state)
    else:
        order = np.arange(n_samples)

    # Rank of each visited sample among the already-visited samples of its
    # class. A sample goes to test iff its rank is below its class budget,
    # which is the greedy per-class assignment done in visiting order.
    visited = classes[order]
    by_class = np.argsort(visited, kind="stable")
    sorted_classes = visited[by_class]
    class_start = np.searchsorted(sorted_classes, sorted_classes, side="left")
    ranks = np.empty(n_samples, dtype=np.int64)
    ranks[by_class] = np.arange(n_samples) - class_start

    is_test = ranks < budgets[visited]
    return order[~is_test], order[is_test]


def _log_sizes(n_samples, train_idx, test_idx, stratify, shuffle):
    logger.debug(
        f"Split {n_samples} samples into train={train_idx.shape[0]}, "
        f"test={test_idx.shape[0]} (stratify={stratify}, shuffle={shuffle})"
    )
    if n_samples > 0 and (train_idx.shape[0] == 0 or test_idx.shape[0] == 0):
        empty = "train" if train_idx.shape[0] == 0 else "test"
        logger.warning(f"Split of {n_samples} samples leaves the {empty} set empty")


def _as_items(items, n_samples: Optional[int], name: str) -> list:
    """Per-sample items of a sequence (first axis of an ndarray)."""
    if isinstance(items, np.ndarray) and items.ndim == 0:
        raise InvalidArgumentError(f"{name} must be a sequence of per-sample items")
    items = list(items)
    if n_samples is not None and len(items) != n_samples:
        raise DimensionMismatchError(
            f"{name} have {len(items)} samples but data has {n_samples}"
        )
    return items


def _take_items(items: list, indices: np.ndarray) -> list:
    return [items[i].copy() if isinstance(items[i], np.ndarray) else items[i]
            for i in indices]


def split_field(
    data,
    labels=None,
    weights: Optional[np.ndarray] = None,
    test_ratio: float = 0.25,
    shuffle: bool = True,
    random_state: RandomState = None,
) -> SplitResult:
    """
    Split a container of per-sample items, such as a list of matrices.

    Each element of ``data`` is one sample (of any shape), and the element of
    ``labels`` at the same position is its label (also of any shape, e.g. a
    target sequence). Items are distributed with the plain policy of
    :func:`split`; stratification is not available for item containers.

    Returns
    -------
    SplitResult
        ``train``, ``test`` and the label members are lists of items; array
        items are copied. Weight members are arrays as in :func:`split`.
    """
    _validate_ratio(test_ratio)
    data = _as_items(data, None, "data")
    n_samples = len(data)

    if labels is not None:
        labels = _as_items(labels, n_samples, "labels")
    if weights is not None:
        weights = np.asarray(weights, dtype=float)
        _validate_weights(weights, n_samples)

    train_idx, test_idx = _plain_order(n_samples, test_ratio, shuffle, random_state)
    _log_sizes(n_samples, train_idx, test_idx, False, shuffle)

    result = {
        "train": _take_items(data, train_idx),
        "test": _take_items(data, test_idx),
    }
    if labels is not None:
        result["train_labels"] = _take_items(labels, train_idx)
        result["test_labels"] = _take_items(labels, test_idx)
    if weights is not None:
        result["train_weights"] = weights[train_idx]
        result["test_weights"] = weights[test_idx]

    return SplitResult(**result)


def split(
    data: np.ndarray,
    labels: Optional[np.ndarray] = None,
    weights: Optional[np.ndarray] = None,
    test_ratio: float = 0.25,
    shuffle: bool = True,
    stratify: bool = False,
    random_state: RandomState = None,
) -> SplitResult:
    """
    Split a dataset (and optional labels/weights) into train and test sets.

    Parameters
    ----------
    data : np.ndarray, shape (n_features, n_samples)
        Dataset with one sample per column. Not modified. A 1-D object array
        of per-sample items is handed to :func:`split_field`.
    labels : np.ndarray, optional
        Labels with one entry (or column) per sample. Required for
        stratification, which also needs them to be a flat vector of
        non-negative integer classes.
    weights : np.ndarray, shape (n_samples,), optional
        Non-negative per-sample weights.
    test_ratio : float, default=0.25
        Fraction of samples held out for testing, in [0, 1].
    shuffle : bool, default=True
        Visit samples in a random permutation instead of original order.
    stratify : bool, default=False
        Keep each class's proportion in the test set.
    random_state : int, np.random.Generator or None
        Source of randomness for the permutation.

    Returns
    -------
    SplitResult
        Freshly allocated train/test arrays; labels keep the shape family
        they were given in.

    Raises
    ------
    InvalidArgumentError
        Bad ``test_ratio``, non-2-D data, negative or non-vector weights, or a
        stratified split without flat integer labels.
    DimensionMismatchError
        Labels or weights whose sample count differs from the dataset's.
    """
    if isinstance(data, np.ndarray) and data.dtype == object and data.ndim == 1:
        if stratify:
            raise InvalidArgumentError(
                "stratified split is not supported for per-sample item containers"
            )
        return split_field(data, labels, weights, test_ratio, shuffle, random_state)

    data = np.asarray(data)
    _validate_ratio(test_ratio)
    if data.ndim != 2:
        raise InvalidArgumentError(
            f"data must be 2-D (n_features, n_samples), got {data.ndim} dimensions"
        )
    n_samples = data.shape[1]

    label_shape = None
    if labels is not None:
        labels = np.asarray(labels)
        label_shape = classify_labels(labels, n_samples)
    if weights is not None:
        weights = np.asarray(weights, dtype=float)
        _validate_weights(weights, n_samples)

    if stratify:
        if labels is None:
            raise InvalidArgumentError("stratified split requires labels")
        if label_shape is not LabelShape.VECTOR:
            raise InvalidArgumentError(
                "stratified split requires labels to be a flat row or column vector"
            )
        train_idx, test_idx = _stratified_order(labels, test_ratio, shuffle, random_state)
    else:
        train_idx, test_idx = _plain_order(n_samples, test_ratio, shuffle, random_state)

    _log_sizes(n_samples, train_idx, test_idx, stratify, shuffle)

    result = {
        "train": np.take(data, train_idx, axis=1),
        "test": np.take(data, test_idx, axis=1),
    }
    if labels is not None:
        axis = _label_sample_axis(labels, n_samples)
        result["train_labels"] = np.take(labels, train_idx, axis=axis)
        result["test_labels"] = np.take(labels, test_idx, axis=axis)
    if weights is not None:
        result["train_weights"] = weights[train_idx]
        result["test_weights"] = weights[test_idx]

    return SplitResult(**result)
