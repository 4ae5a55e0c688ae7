"""BsplineBasis1D: univariate B-spline basis of a clamped knot vector."""

from __future__ import annotations

import functools

import numpy as np
from numpy import typing as npt

from ._basis_core import _compute_basis_Cox_de_Boor_impl, _compute_basis_derivatives_impl
from ._knots_impl import _is_clamped_impl, _is_in_domain_impl, _is_non_decreasing_impl
from ._utils import _as_non_negative_int, _normalize_points_1D
from .exceptions import InvalidConfiguration, OutOfDomain
from .tolerance import get_domain_tolerance, get_knot_tolerance


class BsplineBasis1D:
    """A univariate B-spline basis defined by a clamped knot vector and a degree.

    Instances are immutable: the knot vector is copied on construction and
    exposed as a read-only array, so a basis can be shared by any number of
    models and evaluated concurrently.

    Attributes:
        _knots (npt.NDArray[np.float64]): Read-only clamped knot vector.
        _degree (int): Polynomial degree of the basis.
        _dimension (int): Input dimension this basis belongs to (for error messages).
        _tol (float): Tolerance under which knot spans are considered empty.
    """

    _knots: npt.NDArray[np.float64]
    _degree: int
    _dimension: int
    _tol: float

    def __init__(self, knots: npt.ArrayLike, degree: int, dimension: int = 0) -> None:
        """Initialize a univariate B-spline basis.

        Args:
            knots (npt.ArrayLike): Clamped knot vector. Must be 1D, finite,
                non-decreasing, have both ends repeated degree+1 times and
                define at least degree+1 basis functions.
            degree (int): Polynomial degree. Must be non-negative.
            dimension (int): Input dimension index, reported in errors.
                Defaults to 0.

        Raises:
            InvalidConfiguration: If the knot vector or degree is invalid.
        """
        self._dimension = int(dimension)
        self._degree = _as_non_negative_int(degree, "degree", self._dimension)
        self._tol = get_knot_tolerance(np.float64)

        knots_arr = np.array(knots, dtype=np.float64)
        self._validate_knots(knots_arr)
        knots_arr.setflags(write=False)
        self._knots = knots_arr

    def _validate_knots(self, knots: npt.NDArray[np.float64]) -> None:
        """Validate the knot vector against the degree.

        Raises:
            InvalidConfiguration: If the knot vector is malformed.
        """
        prefix = f"knots of dimension {self._dimension}"
        if knots.ndim != 1:
            raise InvalidConfiguration(f"{prefix} must be a 1D array")
        if not np.all(np.isfinite(knots)):
            raise InvalidConfiguration(f"{prefix} must be finite")
        if knots.size < 2 * self._degree + 2:
            raise InvalidConfiguration(f"{prefix} must have at least 2*degree+2 elements")
        if not _is_non_decreasing_impl(knots):
            raise InvalidConfiguration(f"{prefix} must be non-decreasing")
        if not _is_clamped_impl(knots, self._degree, self._tol):
            raise InvalidConfiguration(
                f"{prefix} must be clamped (first and last knots repeated degree+1 times)"
            )
        if knots[-1] - knots[0] <= self._tol:
            raise InvalidConfiguration(f"{prefix} must span a positive range")
        # Every basis function needs a non-empty support.
        if not np.all(knots[self._degree + 1 :] - knots[: -self._degree - 1] > self._tol):
            raise InvalidConfiguration(f"{prefix} must not repeat a knot more than degree+1 times")

    @property
    def degree(self) -> int:
        """Get the polynomial degree of the basis.

        Returns:
            int: The degree.
        """
        return self._degree

    @property
    def knots(self) -> npt.NDArray[np.float64]:
        """Get the (read-only) knot vector.

        Returns:
            npt.NDArray[np.float64]: The knot vector.
        """
        return self._knots

    @property
    def dimension(self) -> int:
        """Input dimension index this basis belongs to."""
        return self._dimension

    @property
    def tolerance(self) -> float:
        """Get the tolerance under which knot spans are considered empty.

        Returns:
            float: The tolerance value.
        """
        return self._tol

    @functools.cached_property
    def num_basis(self) -> int:
        """Get the number of basis functions (number of knots - degree - 1).

        Returns:
            int: Number of basis functions.
        """
        return int(self._knots.size - self._degree - 1)

    @functools.cached_property
    def num_intervals(self) -> int:
        """Get the number of non-empty knot spans in the domain.

        Returns:
            int: Number of intervals.

        Example:
            >>> BsplineBasis1D([0, 0, 0, 1, 2, 2, 2], 2).num_intervals
            2
        """
        return int(np.count_nonzero(np.diff(self._knots) > self._tol))

    @functools.cached_property
    def domain(self) -> tuple[float, float]:
        """Get the domain of the basis, i.e. the clamped knot range.

        Returns:
            tuple[float, float]: Tuple of (start_value, end_value).

        Example:
            >>> BsplineBasis1D([0, 0, 0, 1, 2, 2, 2], 2).domain
            (0.0, 2.0)
        """
        return (float(self._knots[0]), float(self._knots[-1]))

    def _prepare_points(self, pts: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """Normalize points, check them against the domain and snap them onto it.

        Raises:
            OutOfDomain: If any point lies outside the domain beyond tolerance.
        """
        pts_arr = _normalize_points_1D(pts)
        start, end = self.domain
        tol = get_domain_tolerance(np.float64) * max(1.0, abs(start), abs(end))

        if not np.all(_is_in_domain_impl(self._knots, self._degree, pts_arr, tol)):
            raise OutOfDomain(self._dimension, self.domain)

        return np.clip(pts_arr, start, end)

    def tabulate_basis(
        self, pts: npt.ArrayLike
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.int_]]:
        """Evaluate the non-zero basis functions at the given points.

        Args:
            pts (npt.ArrayLike): Evaluation points (flattened to 1D).

        Returns:
            tuple[npt.NDArray[np.float64], npt.NDArray[np.int_]]: Tuple containing:
                - basis_values: Array of shape (num_pts, degree+1) with the values of
                  the degree+1 basis functions that may be non-zero at each point.
                - first_basis_indices: Array of shape (num_pts,) with the global
                  index of the first of those basis functions.

        Raises:
            OutOfDomain: If any evaluation point is outside the domain.

        Example:
            >>> basis = BsplineBasis1D([0, 0, 0, 0.25, 0.7, 0.7, 1, 1, 1], 2)
            >>> basis.tabulate_basis([0.0, 0.5, 0.75, 1.0])
            (array([[1.        , 0.        , 0.        ],
                    [0.12698413, 0.5643739 , 0.30864198],
                    [0.69444444, 0.27777778, 0.02777778],
                    [0.        , 0.        , 1.        ]]),
             array([0, 1, 3, 3]))
        """
        pts_arr = self._prepare_points(pts)
        out_basis = np.empty((pts_arr.size, self._degree + 1), dtype=np.float64)
        out_first_basis = np.empty(pts_arr.size, dtype=np.int_)
        _compute_basis_Cox_de_Boor_impl(
            self._knots,
            self._degree,
            self.num_basis,
            self._tol,
            pts_arr,
            out_basis,
            out_first_basis,
        )
        return out_basis, out_first_basis

    def tabulate_derivatives(
        self, pts: npt.ArrayLike, order: int
    ) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.int_]]:
        """Evaluate the non-zero basis functions and their derivatives up to `order`.

        Args:
            pts (npt.ArrayLike): Evaluation points (flattened to 1D).
            order (int): Highest derivative order. Must be non-negative.
                Derivatives of order higher than the degree are zero.

        Returns:
            tuple[npt.NDArray[np.float64], npt.NDArray[np.int_]]: Tuple containing:
                - derivatives: Array of shape (num_pts, order+1, degree+1) where
                  entry [i, k, j] is the k-th derivative of the j-th non-zero basis
                  function at the i-th point.
                - first_basis_indices: Array of shape (num_pts,).

        Raises:
            InvalidConfiguration: If order is negative.
            OutOfDomain: If any evaluation point is outside the domain.
        """
        order = _as_non_negative_int(order, "order", self._dimension)
        pts_arr = self._prepare_points(pts)
        out_ders = np.empty((pts_arr.size, order + 1, self._degree + 1), dtype=np.float64)
        out_first_basis = np.empty(pts_arr.size, dtype=np.int_)
        _compute_basis_derivatives_impl(
            self._knots,
            self._degree,
            self.num_basis,
            order,
            self._tol,
            pts_arr,
            out_ders,
            out_first_basis,
        )
        return out_ders, out_first_basis

    def __repr__(self) -> str:
        return (
            f"BsplineBasis1D(degree={self._degree}, num_basis={self.num_basis},"
            f" domain={self.domain})"
        )
