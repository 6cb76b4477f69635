"""
Exception types raised at the mlprim API boundary.

Both subclass ValueError so callers catching ValueError keep working.
"""


class InvalidArgumentError(ValueError):
    """An argument is out of its valid range or has an unsupported shape."""


class DimensionMismatchError(ValueError):
    """Labels, weights or queries do not line up with the dataset."""
