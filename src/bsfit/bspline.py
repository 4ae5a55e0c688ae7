"""Bspline class: a fitted tensor-product B-spline model."""

from __future__ import annotations

import numpy as np
from numpy import typing as npt

from ._utils import _normalize_points
from .exceptions import InvalidConfiguration
from .tensor_basis import TensorBasis


class Bspline:
    """A tensor-product B-spline mapping R^dim to R^dim_y.

    The model is read-only: control points are copied on construction and
    stored as a read-only array of shape (num_total_basis, dim_y), in the
    row-major order of the basis' linear coefficient indices.
    """

    def __init__(self, basis: TensorBasis, control_points: npt.ArrayLike) -> None:
        """Initialize a B-spline.

        Args:
            basis (TensorBasis): The tensor-product basis.
            control_points (npt.ArrayLike): The control points. Its size must be a
                multiple of the number of basis functions; it is reshaped to
                (num_total_basis, dim_y).

        Raises:
            InvalidConfiguration: If the number of control points is not a positive
                multiple of the number of basis functions, or if they are not finite.
        """
        self._basis = basis

        control_points = np.array(control_points, dtype=np.float64)
        num_basis = basis.num_total_basis
        if control_points.size == 0 or control_points.size % num_basis != 0:
            raise InvalidConfiguration(
                "The number of control points must be a multiple of the number of basis "
                f"functions. Got {control_points.size} control points and {num_basis} "
                "basis functions."
            )
        if not np.all(np.isfinite(control_points)):
            raise InvalidConfiguration("The control points must be finite")

        control_points = control_points.reshape(num_basis, -1)
        control_points.setflags(write=False)
        self._control_points = control_points

    @classmethod
    def zeros(cls, basis: TensorBasis, dim_y: int = 1) -> Bspline:
        """Create a zero-valued B-spline on the given basis.

        Args:
            basis (TensorBasis): The tensor-product basis.
            dim_y (int): Output dimension. Defaults to 1.

        Returns:
            Bspline: A B-spline whose control points are all zero.

        Raises:
            InvalidConfiguration: If dim_y < 1.
        """
        if dim_y < 1:
            raise InvalidConfiguration(f"dim_y must be at least 1, got {dim_y}")
        return cls(basis, np.zeros((basis.num_total_basis, dim_y)))

    @property
    def basis(self) -> TensorBasis:
        """The tensor-product basis."""
        return self._basis

    @property
    def dim(self) -> int:
        """The input dimension of the B-spline."""
        return self._basis.dim

    @property
    def dim_y(self) -> int:
        """The output dimension of the B-spline."""
        return int(self._control_points.shape[1])

    @property
    def degrees(self) -> tuple[int, ...]:
        """The degrees of the B-spline."""
        return self._basis.degrees

    @property
    def knot_vectors(self) -> tuple[npt.NDArray[np.float64], ...]:
        """The knot vectors of the B-spline."""
        return self._basis.knot_vectors

    @property
    def num_basis(self) -> tuple[int, ...]:
        """The number of basis functions of every dimension."""
        return self._basis.num_basis

    @property
    def domain(self) -> npt.NDArray[np.float64]:
        """The domain of the B-spline, of shape (dim, 2)."""
        return self._basis.domain

    @property
    def control_points(self) -> npt.NDArray[np.float64]:
        """The control points, of shape (num_total_basis, dim_y)."""
        return self._control_points

    @property
    def control_points_grid(self) -> npt.NDArray[np.float64]:
        """The control points arranged on the basis lattice, of shape (*num_basis, dim_y)."""
        return self._control_points.reshape(*self.num_basis, self.dim_y)

    def evaluate(self, pts: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """Evaluate the B-spline.

        Args:
            pts (npt.ArrayLike): A single point of shape (dim,) (or a scalar when
                dim == 1), or points of shape (num_pts, dim).

        Returns:
            npt.NDArray[np.float64]: Values of shape (dim_y,) for a single point,
            or (num_pts, dim_y).

        Raises:
            ValueError: If the points have the wrong number of coordinates.
            OutOfDomain: If any point is outside the domain.
        """
        pts_arr, single = _normalize_points(pts, self.dim)
        indices, values = self._basis.tabulate(pts_arr)
        result = np.einsum("pm,pmk->pk", values, self._control_points[indices])
        return result[0] if single else result

    def __call__(self, pts: npt.ArrayLike) -> npt.NDArray[np.float64]:
        return self.evaluate(pts)

    def evaluate_jacobian(self, pts: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """Evaluate the Jacobian of the B-spline.

        Args:
            pts (npt.ArrayLike): Points, as in `evaluate`.

        Returns:
            npt.NDArray[np.float64]: Jacobian of shape (dim_y, dim) for a single
            point, or (num_pts, dim_y, dim).

        Raises:
            ValueError: If the points have the wrong number of coordinates.
            OutOfDomain: If any point is outside the domain.
        """
        pts_arr, single = _normalize_points(pts, self.dim)
        indices, grad = self._basis.tabulate_gradient(pts_arr)
        result = np.einsum("pdm,pmk->pkd", grad, self._control_points[indices])
        return result[0] if single else result

    def evaluate_hessian(self, pts: npt.ArrayLike) -> npt.NDArray[np.float64]:
        """Evaluate the Hessian of every output component of the B-spline.

        Args:
            pts (npt.ArrayLike): Points, as in `evaluate`.

        Returns:
            npt.NDArray[np.float64]: Hessians of shape (dim_y, dim, dim) for a
            single point, or (num_pts, dim_y, dim, dim).

        Raises:
            ValueError: If the points have the wrong number of coordinates.
            OutOfDomain: If any point is outside the domain.
        """
        pts_arr, single = _normalize_points(pts, self.dim)
        indices, hess = self._basis.tabulate_hessian(pts_arr)
        result = np.einsum("pabm,pmk->pkab", hess, self._control_points[indices])
        return result[0] if single else result

    def __repr__(self) -> str:
        return (
            f"Bspline(dim={self.dim}, dim_y={self.dim_y}, degrees={self.degrees},"
            f" num_basis={self.num_basis})"
        )
