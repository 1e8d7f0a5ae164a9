"""
Input Validation

Series arrive as lists, tuples, numpy arrays or pandas Series. Every
component converts through here so shape rules live in one place.
Returned arrays are fresh copies; callers' inputs are never mutated.
"""

from typing import Sequence, Union

import numpy as np
import pandas as pd

from .exceptions import EmptyInputError, InsufficientDataError, InvalidInputError

SeriesLike = Union[Sequence[float], np.ndarray, pd.Series]


def as_values(values: SeriesLike, name: str = "values") -> np.ndarray:
    """
    Convert a series to a 1-D float array.

    Raises:
        InvalidInputError: non-numeric, multi-dimensional or non-finite data
    """
    if isinstance(values, pd.Series):
        values = values.to_numpy()
    try:
        arr = np.array(values, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{name} must be numeric: {e}") from e

    if arr.ndim != 1:
        raise InvalidInputError(f"{name} must be one-dimensional, got shape {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise InvalidInputError(f"{name} contains NaN or infinite samples")
    return arr


def as_timestamps(timestamps: SeriesLike, expected_length: int) -> np.ndarray:
    """
    Convert epoch-millisecond timestamps to an int64 array.

    Ascending order is a caller precondition and is not checked.

    Raises:
        InvalidInputError: non-integral, multi-dimensional or mismatched timestamps
    """
    if isinstance(timestamps, pd.Series):
        timestamps = timestamps.to_numpy()
    try:
        raw = np.asarray(timestamps)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"timestamps must be integers: {e}") from e

    # The int64 cast would silently drop fractional milliseconds
    if raw.dtype.kind == 'f' and (not np.all(np.isfinite(raw)) or np.any(raw != np.floor(raw))):
        raise InvalidInputError("timestamps must be integral epoch milliseconds")

    try:
        arr = raw.astype(np.int64)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"timestamps must be integers: {e}") from e

    if arr.ndim != 1:
        raise InvalidInputError(f"timestamps must be one-dimensional, got shape {arr.shape}")
    if len(arr) != expected_length:
        raise InvalidInputError(
            f"values and timestamps differ in length: {expected_length} != {len(arr)}"
        )
    return arr


def require_non_empty(arr: np.ndarray, name: str = "values") -> None:
    if len(arr) == 0:
        raise EmptyInputError(f"Cannot analyze empty {name}")


def require_min_length(arr: np.ndarray, minimum: int, operation: str) -> None:
    if len(arr) < minimum:
        raise InsufficientDataError(
            f"Insufficient data for {operation}: {len(arr)} < {minimum}",
            required=minimum,
            actual=len(arr),
        )


def population_variance(arr: np.ndarray) -> float:
    """Variance dividing by n, shared by trend confidence, seasonality and breakpoints."""
    if len(arr) == 0:
        return 0.0
    return float(np.mean((arr - arr.mean()) ** 2))
