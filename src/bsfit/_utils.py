"""Utility functions shared by the basis, model and fitting modules."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

import numpy as np
from numpy import typing as npt

from .exceptions import ConfigurationSizeMismatch, InvalidConfiguration

T = TypeVar("T")


def _normalize_points_1D(pts: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Normalize points to a contiguous 1D float64 array.

    Zero-dimensional arrays (scalars) are converted to 1D arrays with a single
    element. Multi-dimensional arrays are flattened.

    Returns:
        npt.NDArray[np.float64]: A 1D contiguous float64 array.
    """
    arr = np.ascontiguousarray(pts, dtype=np.float64)
    if arr.ndim != 1:
        arr = arr.reshape(-1)
    return arr


def _normalize_points(pts: npt.ArrayLike, dim: int) -> tuple[npt.NDArray[np.float64], bool]:
    """Normalize evaluation points to a 2D array of shape (num_pts, dim).

    A scalar (only when `dim == 1`) or a 1D array of length `dim` is
    interpreted as a single point.

    Args:
        pts (npt.ArrayLike): Evaluation point(s).
        dim (int): Expected number of coordinates per point.

    Returns:
        tuple[npt.NDArray[np.float64], bool]: The normalized points and whether
        the input was a single point.

    Raises:
        ValueError: If the points do not have `dim` coordinates.
    """
    arr = np.asarray(pts, dtype=np.float64)
    single = arr.ndim <= 1

    if arr.ndim == 0:
        if dim != 1:
            raise ValueError(f"pts must have {dim} coordinates")
        arr = arr.reshape(1, 1)
    elif arr.ndim == 1:
        if arr.size != dim:
            raise ValueError(f"pts must have {dim} coordinates")
        arr = arr.reshape(1, dim)
    elif arr.ndim == 2:  # noqa: PLR2004
        if arr.shape[1] != dim:
            raise ValueError(f"pts must have {dim} columns")
    else:
        raise ValueError("pts must be a scalar, a 1D point or a 2D array of points")

    return np.ascontiguousarray(arr), single


def _broadcast_per_dim(value: T | Sequence[T], dim: int, option: str) -> tuple[T, ...]:
    """Broadcast a scalar option to every input dimension.

    Args:
        value (T | Sequence[T]): Either one value, replicated across all
            dimensions, or a sequence with one value per dimension.
        dim (int): Number of input dimensions.
        option (str): Option name used in error messages.

    Returns:
        tuple[T, ...]: One value per dimension.

    Raises:
        ConfigurationSizeMismatch: If a sequence of the wrong length is given.
    """
    if isinstance(value, (str, bytes)) or not isinstance(value, (Sequence, np.ndarray)):
        return (value,) * dim  # type: ignore[return-value]

    values = tuple(value)
    if len(values) != dim:
        raise ConfigurationSizeMismatch(option, dim, len(values))
    return values


def _as_non_negative_int(value: object, option: str, dimension: int) -> int:
    """Convert an integer-like option to int, rejecting negatives and non-integers.

    Raises:
        InvalidConfiguration: If the value is not a non-negative integer.
    """
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)):
        raise InvalidConfiguration(
            f"{option} must be a non-negative integer (dimension {dimension}), got {value!r}"
        )
    if value < 0:
        raise InvalidConfiguration(
            f"{option} must be non-negative (dimension {dimension}), got {value}"
        )
    return int(value)
