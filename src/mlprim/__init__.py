"""
Machine-learning primitives.

Train/test splitting (plain and stratified), the all-categories decision-tree
split with pluggable fitness functions, the sum-of-squared-errors loss for
gradient boosted trees, and range search over a reference set.
"""

from .errors import InvalidArgumentError, DimensionMismatchError
from .split_data import split, split_field, SplitResult, LabelShape
from .fitness import FitnessFunction, GiniGain, InformationGain, MSEGain
from .categorical_split import (
    AllCategoricalSplit, PayloadMode, ScalarPayload, VectorPayload,
    EPSILON, NO_IMPROVEMENT
)
from .loss import SSELoss
from .range_search import RangeSearch, RangeSearchResult

__version__ = "0.1.0"
__all__ = [
    "split", "split_field", "SplitResult", "LabelShape",
    "FitnessFunction", "GiniGain", "InformationGain", "MSEGain",
    "AllCategoricalSplit", "PayloadMode", "ScalarPayload", "VectorPayload",
    "EPSILON", "NO_IMPROVEMENT",
    "SSELoss",
    "RangeSearch", "RangeSearchResult",
    "InvalidArgumentError", "DimensionMismatchError",
]
