"""Tensor-product combination of univariate B-spline bases.

This module provides the helpers that turn per-dimension tables of non-zero
basis values into tensor-product values, and per-dimension first basis
indices into row-major linear coefficient indices.
"""

from __future__ import annotations

import functools
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt


def _tensor_product_of_tables(
    tables: Sequence[npt.NDArray[np.float64]],
) -> npt.NDArray[np.float64]:
    """Combine per-dimension basis tables into tensor-product values.

    Args:
        tables (Sequence[npt.NDArray[np.float64]]): One array per dimension,
            each of shape (num_pts, order[d]).

    Returns:
        npt.NDArray[np.float64]: Array of shape (num_pts, prod(order)) holding,
            for every point, the products of one value per dimension in
            row-major order (last dimension varying fastest).
    """
    num_pts = tables[0].shape[0]

    # Start with the values of the first direction and, at each step, expand
    # the running product with a new trailing axis for the next direction.
    B_multi = tables[0]
    for dir in range(1, len(tables)):
        B_dir = tables[dir]
        expanded_dir_shape = (num_pts,) + ((1,) * dir) + (B_dir.shape[1],)
        B_multi = np.multiply(B_multi[..., np.newaxis], B_dir.reshape(expanded_dir_shape))

    return B_multi.reshape(num_pts, -1)


@functools.cache
def _get_local_offsets(orders: tuple[int, ...]) -> npt.NDArray[np.int_]:
    """Get the multi-index offsets of the non-zero basis functions of a point.

    Args:
        orders (tuple[int, ...]): degree+1 for every dimension.

    Returns:
        npt.NDArray[np.int_]: Read-only array of shape (prod(orders), dim)
            listing the local multi-indices in row-major order.
    """
    offsets = np.indices(orders).reshape(len(orders), -1).T.copy()
    offsets.setflags(write=False)
    return offsets


def _compute_linear_indices(
    first_basis: npt.NDArray[np.int_],
    orders: tuple[int, ...],
    num_basis: tuple[int, ...],
) -> npt.NDArray[np.int_]:
    """Compute the linear coefficient indices of the non-zero basis functions.

    Args:
        first_basis (npt.NDArray[np.int_]): Array of shape (num_pts, dim) with the
            first non-zero basis function of every point in every dimension.
        orders (tuple[int, ...]): degree+1 for every dimension.
        num_basis (tuple[int, ...]): Number of basis functions per dimension.

    Returns:
        npt.NDArray[np.int_]: Array of shape (num_pts, prod(orders)) of row-major
            linear indices, matching the layout of `_tensor_product_of_tables`.
    """
    offsets = _get_local_offsets(orders)
    multi = first_basis[:, np.newaxis, :] + offsets[np.newaxis, :, :]
    return np.ravel_multi_index(tuple(multi[..., d] for d in range(len(orders))), num_basis)


__all__ = [
    "_compute_linear_indices",
    "_get_local_offsets",
    "_tensor_product_of_tables",
]
