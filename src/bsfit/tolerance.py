"""Tolerance presets for knot, domain and linear-solve comparisons."""

from functools import cache
from typing import Any, NamedTuple, cast

import numpy as np
from numpy import typing as npt


@cache
def _ensure_float_dtype_by_name(name: str) -> np.dtype[np.floating[Any]]:
    """Cached validator returning a floating dtype from its canonical name.

    Args:
        name (str): Canonical NumPy dtype name (e.g., "float64").

    Returns:
        np.dtype[np.floating[Any]]: Validated floating-point dtype.

    Raises:
        ValueError: If dtype is not float32 or float64.
    """
    dtype_obj = np.dtype(name)
    if dtype_obj.type not in (np.float32, np.float64):
        raise ValueError(f"Unsupported dtype: {name}")
    return cast(np.dtype[np.floating[Any]], dtype_obj)


def _ensure_float_dtype(dtype: npt.DTypeLike) -> np.dtype[np.floating[Any]]:
    """Normalize and validate a dtype-like into a floating dtype."""
    return _ensure_float_dtype_by_name(np.dtype(dtype).name)


class _TolerancePreset(NamedTuple):
    """Tolerance values for the supported floating-point types."""

    float32: float
    float64: float


_TOLERANCE_PRESETS = {
    # Zero-width knot spans and knot coincidence.
    "knot": _TolerancePreset(1e-7, 1e-15),
    # Relative slack accepted around the clamped ends of a knot vector.
    "domain": _TolerancePreset(1e-6, 1e-12),
    # Smallest accepted ratio between the smallest and largest pivots of a
    # normal-equation matrix scaled to a unit diagonal.
    "pivot": _TolerancePreset(1e-6, 1e-13),
}


def _get_tolerance(dtype: npt.DTypeLike, preset: _TolerancePreset) -> float:
    dtype_obj = _ensure_float_dtype(dtype)
    if dtype_obj.type == np.float32:
        return preset.float32
    return preset.float64


def get_knot_tolerance(dtype: npt.DTypeLike = np.float64) -> float:
    """Get the tolerance under which two knots are considered coincident.

    Knot spans narrower than this value contribute nothing to the Cox-de Boor
    recursion (the 0/0 = 0 convention).

    Args:
        dtype (npt.DTypeLike): float32 or float64. Defaults to float64.

    Returns:
        float: Knot tolerance.

    Raises:
        ValueError: If dtype is not float32 or float64.

    Example:
        >>> get_knot_tolerance("float64")
        1e-15
    """
    return _get_tolerance(dtype, _TOLERANCE_PRESETS["knot"])


def get_domain_tolerance(dtype: npt.DTypeLike = np.float64) -> float:
    """Get the relative tolerance used to accept points on the domain boundary.

    Args:
        dtype (npt.DTypeLike): float32 or float64. Defaults to float64.

    Returns:
        float: Relative domain tolerance. It is scaled by the magnitude of the
            domain ends before use.

    Raises:
        ValueError: If dtype is not float32 or float64.
    """
    return _get_tolerance(dtype, _TOLERANCE_PRESETS["domain"])


def get_pivot_tolerance(dtype: npt.DTypeLike = np.float64) -> float:
    """Get the smallest accepted pivot ratio of a normal-equation factorization.

    Args:
        dtype (npt.DTypeLike): float32 or float64. Defaults to float64.

    Returns:
        float: Pivot tolerance.

    Raises:
        ValueError: If dtype is not float32 or float64.
    """
    return _get_tolerance(dtype, _TOLERANCE_PRESETS["pivot"])


def get_machine_epsilon(dtype: npt.DTypeLike = np.float64) -> float:
    """Get machine epsilon for a given floating-point dtype.

    Args:
        dtype (npt.DTypeLike): float32 or float64. Defaults to float64.

    Returns:
        float: Machine epsilon for the given dtype.

    Raises:
        ValueError: If dtype is not float32 or float64.
    """
    return float(np.finfo(_ensure_float_dtype(dtype)).eps)
