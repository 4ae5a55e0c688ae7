"""Core B-spline basis function evaluation kernels.

This module provides Numba-compiled functions evaluating the non-zero
B-spline basis functions of a clamped knot vector, and their derivatives,
using the Cox-de Boor recursion filled bottom-up from degree 0.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

import numba as nb
import numpy as np
import numpy.typing as npt

from ._knots_impl import _find_knot_spans_impl

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
def _compute_basis_Cox_de_Boor_impl(  # noqa: PLR0913
    knots: npt.NDArray[np.float64],
    degree: int,
    num_basis: int,
    tol: float,
    pts: npt.NDArray[np.float64],
    out_basis: npt.NDArray[np.float64],
    out_first_basis: npt.NDArray[np.int_],
) -> None:
    """Evaluate B-spline basis functions using Cox-de Boor recursion.

    This function implements Algorithm 2.23 from "Spline Methods Draft" by Tom Lyche.
    Results are written directly to the output arrays (C-style).

    Args:
        knots (npt.NDArray[np.float64]): Clamped knot vector.
        degree (int): B-spline degree.
        num_basis (int): Number of basis functions.
        tol (float): Knot spans narrower than this contribute nothing (0/0 = 0).
        pts (npt.NDArray[np.float64]): Points (1D array) inside the domain.
        out_basis (npt.NDArray[np.float64]): Output array for basis values.
            Must have shape (n_pts, degree+1).
        out_first_basis (npt.NDArray[np.int_]): Output array for first basis indices.
            Must have shape (n_pts,) and dtype int.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    # See Spline Methods Draft, by Tom Lyche. Algorithm 2.23

    order = degree + 1
    n_pts = pts.size

    knot_ids = _find_knot_spans_impl(knots, degree, num_basis, pts)

    out_basis.fill(0.0)
    out_basis[:, -1] = 1.0

    for pt_id in range(n_pts):
        knot_id = knot_ids[pt_id]
        out_first_basis[pt_id] = knot_id - degree

        pt = pts[pt_id]
        basis_i = out_basis[pt_id, :]
        local_knots = knots[knot_id - degree + 1 : knot_id + order]

        for sub_degree in range(1, order):
            k0, k1 = local_knots[0], local_knots[sub_degree]
            diff = k1 - k0
            inv_diff = 0.0 if diff < tol else 1.0 / diff

            for bs_id in range(degree - sub_degree, degree):
                basis_i[bs_id] *= (pt - k0) * inv_diff

                k0, k1 = local_knots[bs_id], local_knots[bs_id + sub_degree]
                diff = k1 - k0
                inv_diff = 0.0 if diff < tol else 1.0 / diff

                basis_i[bs_id] += (k1 - pt) * inv_diff * basis_i[bs_id + 1]

            basis_i[-1] *= (pt - k0) * inv_diff


@nb_jit(
    nopython=True,
    cache=True,
    parallel=False,
)
def _compute_basis_derivatives_impl(  # noqa: PLR0913, PLR0912
    knots: npt.NDArray[np.float64],
    degree: int,
    num_basis: int,
    order: int,
    tol: float,
    pts: npt.NDArray[np.float64],
    out_ders: npt.NDArray[np.float64],
    out_first_basis: npt.NDArray[np.int_],
) -> None:
    """Evaluate B-spline basis functions and their derivatives up to `order`.

    The table `ndu` is filled bottom-up over degrees 0..degree: its upper
    triangle keeps the non-zero basis values of every intermediate degree and
    its lower triangle the knot differences. The k-th derivative is then a
    weighted difference of the degree-(degree-k) columns (Piegl & Tiller,
    "The NURBS Book", Algorithm A2.3). Derivatives of order above `degree`
    are left at zero.

    Args:
        knots (npt.NDArray[np.float64]): Clamped knot vector.
        degree (int): B-spline degree.
        num_basis (int): Number of basis functions.
        order (int): Highest derivative order requested.
        tol (float): Knot differences below this contribute nothing (0/0 = 0).
        pts (npt.NDArray[np.float64]): Points (1D array) inside the domain.
        out_ders (npt.NDArray[np.float64]): Output array of shape
            (n_pts, order+1, degree+1). Entry [i, k, j] is the k-th derivative
            of the j-th non-zero basis function at the i-th point.
        out_first_basis (npt.NDArray[np.int_]): Output array for first basis indices.
            Must have shape (n_pts,) and dtype int.

    Note:
        Inputs are assumed to be correct (no validation performed).
    """
    p = degree
    n_pts = pts.size
    top = min(order, p)

    ndu = np.empty((p + 1, p + 1), dtype=np.float64)
    left = np.empty(p + 1, dtype=np.float64)
    right = np.empty(p + 1, dtype=np.float64)
    a = np.empty((2, p + 1), dtype=np.float64)

    spans = _find_knot_spans_impl(knots, degree, num_basis, pts)
    out_ders.fill(0.0)

    for pt_id in range(n_pts):
        span = spans[pt_id]
        u = pts[pt_id]
        out_first_basis[pt_id] = span - p

        ndu[0, 0] = 1.0
        for j in range(1, p + 1):
            left[j] = u - knots[span + 1 - j]
            right[j] = knots[span + j] - u
            saved = 0.0
            for r in range(j):
                ndu[j, r] = right[r + 1] + left[j - r]
                temp = 0.0 if ndu[j, r] < tol else ndu[r, j - 1] / ndu[j, r]
                ndu[r, j] = saved + right[r + 1] * temp
                saved = left[j - r] * temp
            ndu[j, j] = saved

        for j in range(p + 1):
            out_ders[pt_id, 0, j] = ndu[j, p]

        for r in range(p + 1):
            s1 = 0
            s2 = 1
            a[0, 0] = 1.0
            for k in range(1, top + 1):
                d = 0.0
                rk = r - k
                pk = p - k
                if r >= k:
                    den = ndu[pk + 1, rk]
                    a[s2, 0] = 0.0 if den < tol else a[s1, 0] / den
                    d = a[s2, 0] * ndu[rk, pk]
                j1 = 1 if rk >= -1 else -rk
                j2 = k - 1 if r - 1 <= pk else p - r
                for j in range(j1, j2 + 1):
                    den = ndu[pk + 1, rk + j]
                    a[s2, j] = 0.0 if den < tol else (a[s1, j] - a[s1, j - 1]) / den
                    d += a[s2, j] * ndu[rk + j, pk]
                if r <= pk:
                    den = ndu[pk + 1, r]
                    a[s2, k] = 0.0 if den < tol else -a[s1, k - 1] / den
                    d += a[s2, k] * ndu[r, pk]
                out_ders[pt_id, k, r] = d
                s1, s2 = s2, s1

        factor = float(p)
        for k in range(1, top + 1):
            for j in range(p + 1):
                out_ders[pt_id, k, j] *= factor
            factor *= p - k


def _warmup_numba_functions() -> None:
    """Precompile numba functions with float64 signatures for faster first call.

    This function triggers compilation of the numba-decorated functions
    with float64 arrays, ensuring they are cached and ready for use.
    """
    knots_dummy = np.array([0.0, 0.0, 0.0, 1.0, 1.0, 1.0], dtype=np.float64)
    pts_dummy = np.array([0.5], dtype=np.float64)
    tol_dummy = 1e-15
    degree_dummy = 2
    num_basis_dummy = 3
    order_dummy = 2
    n_pts_dummy = pts_dummy.size
    basis_dummy = np.empty((n_pts_dummy, degree_dummy + 1), dtype=np.float64)
    ders_dummy = np.empty((n_pts_dummy, order_dummy + 1, degree_dummy + 1), dtype=np.float64)
    first_basis_dummy = np.empty(n_pts_dummy, dtype=np.int_)

    _compute_basis_Cox_de_Boor_impl(
        knots_dummy,
        degree_dummy,
        num_basis_dummy,
        tol_dummy,
        pts_dummy,
        basis_dummy,
        first_basis_dummy,
    )
    _compute_basis_derivatives_impl(
        knots_dummy,
        degree_dummy,
        num_basis_dummy,
        order_dummy,
        tol_dummy,
        pts_dummy,
        ders_dummy,
        first_basis_dummy,
    )


# Precompile numba functions on module import (skip during type checking)
if not TYPE_CHECKING:
    _warmup_numba_functions()


__all__ = [
    "_compute_basis_Cox_de_Boor_impl",
    "_compute_basis_derivatives_impl",
]
