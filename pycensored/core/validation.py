"""
Input validation utilities for pycensored.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

import warnings

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from pycensored.core.exceptions import ValidationError, DimensionError


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to a floating point numpy array.

    Booleans are accepted and become 0.0/1.0. Strings, objects and
    datetimes are rejected.

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with floating dtype

    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    if result.dtype == np.bool_:
        return result.astype(np.float64)

    if not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    if not np.issubdtype(result.dtype, np.floating):
        result = result.astype(np.float64)

    return result


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_ndim(array: NDArray[np.floating[Any]], ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.

    Raises:
        DimensionError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_1d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 1-dimensional."""
    check_ndim(array, 1, name)


def check_2d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 2-dimensional."""
    check_ndim(array, 2, name)


def check_consistent_length(
    *arrays: NDArray[np.floating[Any]],
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).

    Args:
        *arrays: Arrays to check
        names: Parameter names for error messages (must match number of arrays)

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    if len(arrays) < 2:
        return

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_column_rank(X: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify matrix has full column rank.

    A rank-deficient covariate matrix makes the Cox information matrix
    singular and the AFT coefficients unidentifiable.

    Raises:
        ValidationError: If matrix is rank-deficient
    """
    n, p = X.shape
    if p == 0:
        return
    rank = np.linalg.matrix_rank(X)

    if rank < p:
        raise ValidationError(
            f"{name}: rank-deficient (rank={rank}, expected={min(n, p)}). "
            f"This indicates perfect multicollinearity."
        )


def check_eval_time(eval_time: ArrayLike | None, name: str = "eval_time") -> NDArray[np.float64]:
    """
    Validate evaluation times for survival and hazard predictions.

    Duplicates are removed, keeping the first occurrence, with a
    UserWarning. Order is otherwise preserved.

    Args:
        eval_time: Time points, scalar or 1D array-like
        name: Parameter name for error messages

    Returns:
        1D float64 array of unique, finite, non-negative times

    Raises:
        ValidationError: If eval_time is missing, empty, non-finite or negative
    """
    if eval_time is None:
        raise ValidationError(
            f"{name}: required for survival and hazard predictions"
        )

    arr = check_array(np.atleast_1d(eval_time), name).astype(np.float64)
    check_1d(arr, name)

    if arr.size == 0:
        raise ValidationError(f"{name}: must contain at least one time point")

    check_finite(arr, name)

    if np.any(arr < 0):
        raise ValidationError(
            f"{name}: must be non-negative, got minimum {float(np.min(arr))}"
        )

    _, first_idx = np.unique(arr, return_index=True)
    if len(first_idx) < len(arr):
        warnings.warn(
            f"{name}: {len(arr) - len(first_idx)} duplicate value(s) removed",
            UserWarning,
            stacklevel=2,
        )
        arr = arr[np.sort(first_idx)]

    return arr
