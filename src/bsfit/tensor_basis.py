"""TensorBasis class: multivariate tensor-product B-spline basis."""

from __future__ import annotations

import functools
from collections.abc import Iterable, Sequence

import numpy as np
import scipy.sparse as sps
from numpy import typing as npt

from ._tensor_basis_impl import _compute_linear_indices, _tensor_product_of_tables
from ._utils import _normalize_points
from .bspline_basis_1D import BsplineBasis1D
from .exceptions import InvalidConfiguration


class TensorBasis:
    """A multivariate B-spline basis built as the tensor product of univariate bases.

    Only prod(degree_i + 1) multivariate basis functions are non-zero at any
    point; every tabulation method returns those, together with their row-major
    linear coefficient indices.

    Attributes:
        _bases (tuple[BsplineBasis1D, ...]): Univariate bases, one per dimension.
    """

    _bases: tuple[BsplineBasis1D, ...]

    def __init__(self, bases: Iterable[BsplineBasis1D]) -> None:
        """Initialize a tensor-product basis.

        Args:
            bases (Iterable[BsplineBasis1D]): Univariate bases, one per dimension.

        Raises:
            InvalidConfiguration: If no basis is given.
        """
        self._bases = tuple(bases)
        if len(self._bases) == 0:
            raise InvalidConfiguration("A tensor basis needs at least one dimension")

    @classmethod
    def from_knots(
        cls, knot_vectors: Sequence[npt.ArrayLike], degrees: Sequence[int]
    ) -> TensorBasis:
        """Create a tensor basis from per-dimension knot vectors and degrees.

        Args:
            knot_vectors (Sequence[npt.ArrayLike]): Clamped knot vector per dimension.
            degrees (Sequence[int]): Degree per dimension.

        Returns:
            TensorBasis: The tensor-product basis.

        Raises:
            InvalidConfiguration: If the lengths differ or a knot vector is invalid.
        """
        if len(knot_vectors) != len(degrees):
            raise InvalidConfiguration(
                f"Got {len(knot_vectors)} knot vectors but {len(degrees)} degrees"
            )
        return cls(
            BsplineBasis1D(knots, degree, dimension=dim)
            for dim, (knots, degree) in enumerate(zip(knot_vectors, degrees, strict=True))
        )

    @property
    def dim(self) -> int:
        """Get the number of input dimensions.

        Returns:
            int: The dimension of the basis.
        """
        return len(self._bases)

    @property
    def bases(self) -> tuple[BsplineBasis1D, ...]:
        """Get the univariate bases.

        Returns:
            tuple[BsplineBasis1D, ...]: The univariate bases.
        """
        return self._bases

    @functools.cached_property
    def degrees(self) -> tuple[int, ...]:
        """Get the degree of every dimension."""
        return tuple(basis.degree for basis in self._bases)

    @functools.cached_property
    def knot_vectors(self) -> tuple[npt.NDArray[np.float64], ...]:
        """Get the (read-only) knot vector of every dimension."""
        return tuple(basis.knots for basis in self._bases)

    @functools.cached_property
    def num_basis(self) -> tuple[int, ...]:
        """Get the number of basis functions of every dimension."""
        return tuple(basis.num_basis for basis in self._bases)

    @functools.cached_property
    def num_total_basis(self) -> int:
        """Get the total number of multivariate basis functions."""
        return int(np.prod(self.num_basis))

    @functools.cached_property
    def orders(self) -> tuple[int, ...]:
        """Get degree+1 for every dimension."""
        return tuple(degree + 1 for degree in self.degrees)

    @functools.cached_property
    def num_local_basis(self) -> int:
        """Get the number of multivariate basis functions non-zero at a point."""
        return int(np.prod(self.orders))

    @functools.cached_property
    def domain(self) -> npt.NDArray[np.float64]:
        """Get the domain of the basis.

        Returns:
            npt.NDArray[np.float64]: Array of shape (dim, 2) with the start and end
            of every dimension.
        """
        domain = np.array([basis.domain for basis in self._bases], dtype=np.float64)
        domain.setflags(write=False)
        return domain

    def get_linear_index(self, multi_index: Sequence[int]) -> int:
        """Map a multi-index of per-dimension basis indices to a linear index.

        The mapping is row-major: the last dimension varies fastest.

        Args:
            multi_index (Sequence[int]): One basis index per dimension.

        Returns:
            int: Linear coefficient index.

        Raises:
            ValueError: If the multi-index has the wrong length or is out of range.

        Example:
            >>> basis = TensorBasis.from_knots(
            ...     [[0, 0, 0, 1, 1, 1], [0, 0, 0.3, 0.6, 1, 1]], [2, 1]
            ... )
            >>> basis.num_basis
            (3, 4)
            >>> basis.get_linear_index((1, 2))
            6
        """
        if len(multi_index) != self.dim:
            raise ValueError(f"multi_index must have {self.dim} entries")
        return int(np.ravel_multi_index(tuple(multi_index), self.num_basis))

    def get_multi_index(self, linear_index: int) -> tuple[int, ...]:
        """Map a linear coefficient index back to its multi-index.

        Args:
            linear_index (int): Linear coefficient index.

        Returns:
            tuple[int, ...]: One basis index per dimension.

        Raises:
            ValueError: If the index is out of range.
        """
        return tuple(int(i) for i in np.unravel_index(linear_index, self.num_basis))

    def _tabulate_derivative_tables(
        self, pts: npt.NDArray[np.float64], order: int
    ) -> tuple[list[npt.NDArray[np.float64]], npt.NDArray[np.int_]]:
        """Tabulate per-dimension derivative tables up to `order`.

        Returns:
            tuple[list[npt.NDArray[np.float64]], npt.NDArray[np.int_]]: One array of
            shape (num_pts, order+1, degree+1) per dimension, and the linear indices
            of shape (num_pts, num_local_basis).
        """
        tables = []
        first_basis = np.empty((pts.shape[0], self.dim), dtype=np.int_)
        for dir, basis in enumerate(self._bases):
            ders, first = basis.tabulate_derivatives(pts[:, dir], order)
            tables.append(ders)
            first_basis[:, dir] = first
        indices = _compute_linear_indices(first_basis, self.orders, self.num_basis)
        return tables, indices

    def _combine(
        self, tables: list[npt.NDArray[np.float64]], orders: Sequence[int]
    ) -> npt.NDArray[np.float64]:
        """Tensor product of the per-dimension derivative rows given by `orders`."""
        return _tensor_product_of_tables(
            [table[:, k, :] for table, k in zip(tables, orders, strict=True)]
        )

    def tabulate(
        self, pts: npt.ArrayLike
    ) -> tuple[npt.NDArray[np.int_], npt.NDArray[np.float64]]:
        """Tabulate the non-zero multivariate basis functions at the given points.

        Args:
            pts (npt.ArrayLike): Points of shape (num_pts, dim), a single point of
                shape (dim,), or a scalar when dim == 1.

        Returns:
            tuple[npt.NDArray[np.int_], npt.NDArray[np.float64]]: Linear indices and
            values, both of shape (num_pts, num_local_basis).

        Raises:
            ValueError: If the points have the wrong number of coordinates.
            OutOfDomain: If any point is outside the domain.
        """
        pts_arr, _ = _normalize_points(pts, self.dim)
        tables = []
        first_basis = np.empty((pts_arr.shape[0], self.dim), dtype=np.int_)
        for dir, basis in enumerate(self._bases):
            values, first = basis.tabulate_basis(pts_arr[:, dir])
            tables.append(values)
            first_basis[:, dir] = first
        indices = _compute_linear_indices(first_basis, self.orders, self.num_basis)
        return indices, _tensor_product_of_tables(tables)

    def tabulate_gradient(
        self, pts: npt.ArrayLike
    ) -> tuple[npt.NDArray[np.int_], npt.NDArray[np.float64]]:
        """Tabulate the gradients of the non-zero multivariate basis functions.

        Args:
            pts (npt.ArrayLike): Points, as in `tabulate`.

        Returns:
            tuple[npt.NDArray[np.int_], npt.NDArray[np.float64]]: Linear indices of
            shape (num_pts, num_local_basis) and values of shape
            (num_pts, dim, num_local_basis), where [i, d, j] is the partial
            derivative along dimension d.

        Raises:
            ValueError: If the points have the wrong number of coordinates.
            OutOfDomain: If any point is outside the domain.
        """
        pts_arr, _ = _normalize_points(pts, self.dim)
        tables, indices = self._tabulate_derivative_tables(pts_arr, 1)

        grad = np.empty((pts_arr.shape[0], self.dim, self.num_local_basis), dtype=np.float64)
        for d in range(self.dim):
            orders = [0] * self.dim
            orders[d] = 1
            grad[:, d, :] = self._combine(tables, orders)
        return indices, grad

    def tabulate_hessian(
        self, pts: npt.ArrayLike
    ) -> tuple[npt.NDArray[np.int_], npt.NDArray[np.float64]]:
        """Tabulate the Hessians of the non-zero multivariate basis functions.

        Args:
            pts (npt.ArrayLike): Points, as in `tabulate`.

        Returns:
            tuple[npt.NDArray[np.int_], npt.NDArray[np.float64]]: Linear indices of
            shape (num_pts, num_local_basis) and values of shape
            (num_pts, dim, dim, num_local_basis).

        Raises:
            ValueError: If the points have the wrong number of coordinates.
            OutOfDomain: If any point is outside the domain.
        """
        pts_arr, _ = _normalize_points(pts, self.dim)
        tables, indices = self._tabulate_derivative_tables(pts_arr, 2)

        hess = np.empty(
            (pts_arr.shape[0], self.dim, self.dim, self.num_local_basis), dtype=np.float64
        )
        for d1 in range(self.dim):
            for d2 in range(d1, self.dim):
                orders = [0] * self.dim
                orders[d1] += 1
                orders[d2] += 1
                hess[:, d1, d2, :] = self._combine(tables, orders)
                hess[:, d2, d1, :] = hess[:, d1, d2, :]
        return indices, hess

    def evaluate(
        self, point: npt.ArrayLike
    ) -> tuple[npt.NDArray[np.int_], npt.NDArray[np.float64]]:
        """Evaluate the basis at a single point as a sparse mapping.

        Args:
            point (npt.ArrayLike): A point of shape (dim,), or a scalar when dim == 1.

        Returns:
            tuple[npt.NDArray[np.int_], npt.NDArray[np.float64]]: Linear indices and
            values of the num_local_basis basis functions that may be non-zero.
        """
        indices, values = self.tabulate(point)
        return indices[0], values[0]

    def gradient(
        self, point: npt.ArrayLike
    ) -> tuple[npt.NDArray[np.int_], npt.NDArray[np.float64]]:
        """Evaluate the basis gradients at a single point.

        Returns:
            tuple[npt.NDArray[np.int_], npt.NDArray[np.float64]]: Linear indices of
            shape (num_local_basis,) and values of shape (dim, num_local_basis).
        """
        indices, values = self.tabulate_gradient(point)
        return indices[0], values[0]

    def hessian(
        self, point: npt.ArrayLike
    ) -> tuple[npt.NDArray[np.int_], npt.NDArray[np.float64]]:
        """Evaluate the basis Hessians at a single point.

        Returns:
            tuple[npt.NDArray[np.int_], npt.NDArray[np.float64]]: Linear indices of
            shape (num_local_basis,) and values of shape (dim, dim, num_local_basis).
        """
        indices, values = self.tabulate_hessian(point)
        return indices[0], values[0]

    def tabulate_sparse(self, pts: npt.ArrayLike) -> sps.csr_matrix:
        """Tabulate the basis at the given points as a sparse matrix.

        Row i, column c holds the value of multivariate basis function c at
        point i.

        Args:
            pts (npt.ArrayLike): Points, as in `tabulate`.

        Returns:
            sps.csr_matrix: Matrix of shape (num_pts, num_total_basis) with at most
            num_local_basis non-zeros per row.
        """
        indices, values = self.tabulate(pts)
        num_pts = indices.shape[0]
        rows = np.repeat(np.arange(num_pts), self.num_local_basis)
        return sps.csr_matrix(
            (values.ravel(), (rows, indices.ravel())),
            shape=(num_pts, self.num_total_basis),
        )

    def __repr__(self) -> str:
        return f"TensorBasis(degrees={self.degrees}, num_basis={self.num_basis})"
