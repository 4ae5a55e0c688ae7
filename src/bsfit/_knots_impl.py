"""Knot vector kernels.

This module provides Numba-compiled functions for validating clamped knot
vectors, locating knot spans, checking domain membership and verifying the
Schoenberg-Whitney condition of a knot vector against sample abscissas.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import numba as nb
import numpy as np
import numpy.typing as npt

F = TypeVar("F", bound=Callable[..., Any])

if TYPE_CHECKING:
    # During type-checking, make the decorator a no-op that preserves types.
    def nb_jit(*args: object, **kwargs: object) -> Callable[[F], F]:
        def decorator(func: F) -> F:
            return func

        return decorator
else:
    # At runtime, use the real Numba decorator.
    nb_jit = nb.jit  # type: ignore[attr-defined]


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _is_non_decreasing_impl(knots: npt.NDArray[np.float64]) -> bool:
    """Check that a knot vector is non-decreasing.

    Args:
        knots (npt.NDArray[np.float64]): Knot vector.

    Returns:
        bool: True if every knot is greater than or equal to its predecessor.
    """
    for i in range(1, knots.size):
        if knots[i] < knots[i - 1]:
            return False
    return True


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _is_clamped_impl(knots: npt.NDArray[np.float64], degree: int, tol: float) -> bool:
    """Check that the first and last `degree+1` knots coincide (up to tolerance).

    Args:
        knots (npt.NDArray[np.float64]): Non-decreasing knot vector.
        degree (int): B-spline degree.
        tol (float): Tolerance for knot coincidence.

    Returns:
        bool: True if both ends are clamped.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    left = knots[degree] - knots[0] <= tol
    right = knots[-1] - knots[-degree - 1] <= tol
    return left and right


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _find_knot_spans_impl(
    knots: npt.NDArray[np.float64],
    degree: int,
    num_basis: int,
    pts: npt.NDArray[np.float64],
) -> npt.NDArray[np.int_]:
    """Find the knot span containing each point by binary search.

    The span `i` of a point `t` satisfies `knots[i] <= t < knots[i+1]`, except
    for the right end of the domain, which is assigned to the last non-empty
    span so that the end basis function evaluates to one.

    Args:
        knots (npt.NDArray[np.float64]): Clamped knot vector.
        degree (int): B-spline degree.
        num_basis (int): Number of basis functions.
        pts (npt.NDArray[np.float64]): Points inside the domain.

    Returns:
        npt.NDArray[np.int_]: Span index of every point, in `[degree, num_basis-1]`.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    spans = np.searchsorted(knots, pts, side="right") - 1
    return np.minimum(np.maximum(spans, degree), num_basis - 1)


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _is_in_domain_impl(
    knots: npt.NDArray[np.float64],
    degree: int,
    pts: npt.NDArray[np.float64],
    tol: float,
) -> npt.NDArray[np.bool_]:
    """Check if points are within the B-spline domain (up to tolerance).

    Args:
        knots (npt.NDArray[np.float64]): B-spline knot vector.
        degree (int): B-spline degree.
        pts (npt.NDArray[np.float64]): Points to check.
        tol (float): Absolute tolerance around the domain ends.

    Returns:
        npt.NDArray[np.bool_]: Boolean array where True indicates points
            are within the domain. It has the same length as the number of points.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    knot_begin, knot_end = knots[degree], knots[-degree - 1]
    return np.logical_and(pts >= knot_begin - tol, pts <= knot_end + tol)


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _find_uncovered_basis_impl(
    knots: npt.NDArray[np.float64],
    degree: int,
    num_basis: int,
    abscissas: npt.NDArray[np.float64],
) -> int:
    """Find the first basis function that breaks the Schoenberg-Whitney condition.

    Every basis function must be matched with its own distinct abscissa lying
    where the function is non-zero. Supports are open intervals
    `(knots[j], knots[j+degree+1])`, closed on the left for the first function
    (and for every function when `degree == 0`) and closed on the right for
    the last one. Since both support ends are non-decreasing in `j`, greedily
    matching each function with the smallest free abscissa is optimal.

    Args:
        knots (npt.NDArray[np.float64]): Clamped knot vector.
        degree (int): B-spline degree.
        num_basis (int): Number of basis functions.
        abscissas (npt.NDArray[np.float64]): Sorted, distinct sample abscissas.

    Returns:
        int: Index of the first uncovered basis function, or -1 if the
            condition holds.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    n_abscissas = abscissas.size
    i = 0
    for j in range(num_basis):
        lo = knots[j]
        hi = knots[j + degree + 1]
        left_closed = j == 0 or degree == 0
        right_closed = j == num_basis - 1

        while i < n_abscissas and (
            abscissas[i] < lo or (abscissas[i] == lo and not left_closed)
        ):
            i += 1

        if i == n_abscissas:
            return j

        x = abscissas[i]
        if x < hi or (x == hi and right_closed):
            i += 1
        else:
            return j

    return -1


def _warmup_numba_functions() -> None:
    """Precompile numba functions with float64 signatures for faster first call.

    This function triggers compilation of the numba-decorated functions
    with float64 arrays, ensuring they are cached and ready for use.
    """
    knots_dummy = np.array([0.0, 0.0, 0.0, 0.5, 1.0, 1.0, 1.0], dtype=np.float64)
    pts_dummy = np.array([0.25, 1.0], dtype=np.float64)
    degree_dummy = 2
    num_basis_dummy = 4
    tol_dummy = 1e-12

    _is_non_decreasing_impl(knots_dummy)
    _is_clamped_impl(knots_dummy, degree_dummy, tol_dummy)
    _find_knot_spans_impl(knots_dummy, degree_dummy, num_basis_dummy, pts_dummy)
    _is_in_domain_impl(knots_dummy, degree_dummy, pts_dummy, tol_dummy)
    _find_uncovered_basis_impl(
        knots_dummy,
        degree_dummy,
        num_basis_dummy,
        np.array([0.0, 0.3, 0.6, 1.0], dtype=np.float64),
    )


# Precompile numba functions on module import (skip during type checking)
if not TYPE_CHECKING:
    _warmup_numba_functions()


__all__ = [
    "_find_knot_spans_impl",
    "_find_uncovered_basis_impl",
    "_is_clamped_impl",
    "_is_in_domain_impl",
    "_is_non_decreasing_impl",
]
