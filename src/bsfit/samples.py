"""SampleTable: the (input, output) observations a B-spline is fitted to."""

from __future__ import annotations

import functools

import numpy as np
from numpy import typing as npt

from .exceptions import InvalidConfiguration


class SampleTable:
    """An ordered table of samples (x_i, y_i) with x_i in R^dim_x and y_i in R^dim_y.

    The arrays are copied on construction and exposed read-only.

    Attributes:
        _x (npt.NDArray[np.float64]): Inputs of shape (num_samples, dim_x).
        _y (npt.NDArray[np.float64]): Outputs of shape (num_samples, dim_y).
    """

    _x: npt.NDArray[np.float64]
    _y: npt.NDArray[np.float64]

    def __init__(self, x: npt.ArrayLike, y: npt.ArrayLike) -> None:
        """Initialize a sample table.

        Args:
            x (npt.ArrayLike): Inputs of shape (num_samples, dim_x). A 1D array is
                read as num_samples scalar inputs.
            y (npt.ArrayLike): Outputs of shape (num_samples, dim_y). A 1D array is
                read as num_samples scalar outputs.

        Raises:
            InvalidConfiguration: If the table is empty, the arrays have more than
                two dimensions or different numbers of rows, or contain non-finite
                values.
        """
        x_arr = np.array(x, dtype=np.float64)
        y_arr = np.array(y, dtype=np.float64)

        if x_arr.ndim == 1:
            x_arr = x_arr.reshape(-1, 1)
        if y_arr.ndim == 1:
            y_arr = y_arr.reshape(-1, 1)
        if x_arr.ndim != 2 or y_arr.ndim != 2:  # noqa: PLR2004
            raise InvalidConfiguration("x and y must be 1D or 2D arrays")
        if x_arr.shape[0] != y_arr.shape[0]:
            raise InvalidConfiguration(
                f"x and y must have the same number of samples, got {x_arr.shape[0]}"
                f" and {y_arr.shape[0]}"
            )
        if x_arr.shape[0] == 0 or x_arr.shape[1] == 0 or y_arr.shape[1] == 0:
            raise InvalidConfiguration("The sample table must not be empty")
        if not (np.all(np.isfinite(x_arr)) and np.all(np.isfinite(y_arr))):
            raise InvalidConfiguration("Samples must be finite")

        x_arr.setflags(write=False)
        y_arr.setflags(write=False)
        self._x = x_arr
        self._y = y_arr

    @property
    def x(self) -> npt.NDArray[np.float64]:
        """Inputs, of shape (num_samples, dim_x)."""
        return self._x

    @property
    def y(self) -> npt.NDArray[np.float64]:
        """Outputs, of shape (num_samples, dim_y)."""
        return self._y

    @property
    def num_samples(self) -> int:
        """Number of samples."""
        return int(self._x.shape[0])

    @property
    def dim_x(self) -> int:
        """Input dimension."""
        return int(self._x.shape[1])

    @property
    def dim_y(self) -> int:
        """Output dimension."""
        return int(self._y.shape[1])

    def get_abscissas(self, dim: int) -> npt.NDArray[np.float64]:
        """Get the sorted distinct input values along one dimension.

        Args:
            dim (int): Input dimension.

        Returns:
            npt.NDArray[np.float64]: Sorted distinct values of x[:, dim].

        Raises:
            IndexError: If dim is out of range.
        """
        if not 0 <= dim < self.dim_x:
            raise IndexError(f"dim must be in [0, {self.dim_x}), got {dim}")
        return self._distinct_abscissas[dim]

    @functools.cached_property
    def _distinct_abscissas(self) -> tuple[npt.NDArray[np.float64], ...]:
        return tuple(np.unique(self._x[:, d]) for d in range(self.dim_x))

    @property
    def num_distinct(self) -> tuple[int, ...]:
        """Number of distinct input values along every dimension."""
        return tuple(xs.size for xs in self._distinct_abscissas)

    @functools.cached_property
    def domain(self) -> npt.NDArray[np.float64]:
        """Bounding box of the inputs, of shape (dim_x, 2)."""
        return np.column_stack([self._x.min(axis=0), self._x.max(axis=0)])

    def is_grid_complete(self) -> bool:
        """Check whether the inputs fill a complete regular grid.

        The grid is the Cartesian product of the distinct values of every
        dimension; the table is complete if every grid node is sampled.

        Returns:
            bool: True if every grid node appears among the inputs.
        """
        num_nodes = int(np.prod(self.num_distinct))
        return int(np.unique(self._x, axis=0).shape[0]) == num_nodes

    def __len__(self) -> int:
        return self.num_samples

    def __repr__(self) -> str:
        return f"SampleTable(num_samples={self.num_samples}, dim_x={self.dim_x}, dim_y={self.dim_y})"
