"""Linear algebra behind B-spline fitting.

This module assembles the sparse (weighted) design matrix of a tensor basis,
the P-spline roughness penalty built from second differences of the
coefficient lattice, and solves the resulting linear systems.
"""

from __future__ import annotations

import logging

import numpy as np
import numpy.typing as npt
import scipy.sparse as sps
import scipy.sparse.linalg

from .exceptions import SingularSystem
from .tensor_basis import TensorBasis
from .tolerance import get_pivot_tolerance

logger = logging.getLogger(__name__)


def _assemble_design_matrix(
    basis: TensorBasis,
    x: npt.NDArray[np.float64],
    y: npt.NDArray[np.float64],
    weights: npt.NDArray[np.float64] | None,
) -> tuple[sps.csr_matrix, npt.NDArray[np.float64]]:
    """Assemble the design matrix and right-hand side of a fit.

    Row i of the design matrix holds the values of every multivariate basis
    function at sample i. With weights, row i and target i are scaled by
    sqrt(w_i), so that least squares minimizes sum_i w_i |s(x_i) - y_i|^2.

    Args:
        basis (TensorBasis): The tensor basis.
        x (npt.NDArray[np.float64]): Sample inputs of shape (num_samples, dim).
        y (npt.NDArray[np.float64]): Sample outputs of shape (num_samples, dim_y).
        weights (npt.NDArray[np.float64] | None): Non-negative sample weights of
            shape (num_samples,), or None for unit weights.

    Returns:
        tuple[sps.csr_matrix, npt.NDArray[np.float64]]: Design matrix of shape
        (num_samples, num_total_basis) and targets of shape (num_samples, dim_y).
    """
    design = basis.tabulate_sparse(x)
    rhs = np.array(y, dtype=np.float64)
    if weights is not None:
        sqrt_w = np.sqrt(weights)
        design = sps.diags(sqrt_w) @ design
        rhs = rhs * sqrt_w[:, np.newaxis]

    logger.debug(
        f"Design matrix of shape {design.shape} with {design.nnz} non-zeros"
        f" ({basis.num_local_basis} per row)"
    )
    return sps.csr_matrix(design), rhs


def _second_difference_matrix(n: int) -> sps.csr_matrix:
    """Second-difference operator of shape (n-2, n): rows [1, -2, 1]."""
    return sps.diags([1.0, -2.0, 1.0], [0, 1, 2], shape=(n - 2, n), format="csr")


def _build_second_difference_penalty(num_basis: tuple[int, ...]) -> sps.csr_matrix:
    """Build the stacked second-difference penalty of a coefficient lattice.

    For every dimension d, the block I ⊗ ... ⊗ Δ²_d ⊗ ... ⊗ I takes second
    differences of the coefficients along d (row-major layout). Dimensions
    with fewer than three basis functions contribute no block.

    Args:
        num_basis (tuple[int, ...]): Number of basis functions per dimension.

    Returns:
        sps.csr_matrix: Penalty matrix with num_total_basis columns. It has no
        rows if no dimension can be differenced twice.
    """
    num_total = int(np.prod(num_basis))
    blocks = []
    for d, n in enumerate(num_basis):
        if n < 3:  # noqa: PLR2004
            continue
        block = sps.identity(1, format="csr")
        for d2, n2 in enumerate(num_basis):
            factor = _second_difference_matrix(n2) if d2 == d else sps.identity(n2, format="csr")
            block = sps.kron(block, factor, format="csr")
        blocks.append(block)

    if not blocks:
        logger.debug("No dimension has 3 basis functions, the roughness penalty is empty")
        return sps.csr_matrix((0, num_total))

    penalty = sps.vstack(blocks, format="csr")
    logger.debug(f"Second-difference penalty of shape {penalty.shape}")
    return penalty


def _solve_square(design: sps.csr_matrix, rhs: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Solve a square interpolation system with a sparse LU factorization.

    Raises:
        SingularSystem: If the matrix is singular.
    """
    try:
        lu = scipy.sparse.linalg.splu(design.tocsc())
    except RuntimeError as err:
        raise SingularSystem(f"The interpolation matrix is singular: {err}") from err
    return lu.solve(rhs)


def _solve_normal_equations(
    lhs: sps.spmatrix, rhs: npt.NDArray[np.float64]
) -> npt.NDArray[np.float64]:
    """Solve sparse symmetric positive definite normal equations.

    The matrix is first scaled symmetrically to a unit diagonal, so that
    coefficients with small column norms do not count as ill-conditioning.
    It is then factored by sparse LU in symmetric mode (diagonal pivots
    only), where the diagonal of U holds the pivots of an LDLᵀ factorization.
    Every pivot must be positive, and the ratio between the smallest and
    largest pivot must not fall below the pivot tolerance.

    Raises:
        SingularSystem: If the matrix is not (numerically) positive definite.
    """
    diag = lhs.diagonal()
    undetermined = np.flatnonzero(~(diag > 0.0))
    if undetermined.size > 0:
        raise SingularSystem(
            f"Coefficient {int(undetermined[0])} is not determined by any sample"
        )

    scale = 1.0 / np.sqrt(diag)
    scaling = sps.diags(scale)
    scaled = sps.csc_matrix(scaling @ lhs @ scaling)
    try:
        lu = scipy.sparse.linalg.splu(
            scaled,
            permc_spec="MMD_AT_PLUS_A",
            diag_pivot_thresh=0.0,
            options={"SymmetricMode": True},
        )
    except RuntimeError as err:
        raise SingularSystem(f"The normal equations are singular: {err}") from err

    pivots = lu.U.diagonal()
    if not np.all(pivots > 0.0):
        raise SingularSystem("The normal equations are not positive definite")
    ratio = float(pivots.min() / pivots.max())
    tol = get_pivot_tolerance(np.float64)
    logger.debug(f"Pivot ratio {ratio:.3e} (tolerance {tol:.1e})")
    if not np.isfinite(ratio) or ratio < tol:
        raise SingularSystem(
            f"The normal equations are numerically singular (pivot ratio {ratio:.3e}"
            f" below {tol:.1e})"
        )
    rhs = np.asarray(rhs, dtype=np.float64).reshape(scale.size, -1)
    return scale[:, np.newaxis] * lu.solve(scale[:, np.newaxis] * rhs)


def _solve_least_squares(
    design: sps.csr_matrix,
    rhs: npt.NDArray[np.float64],
    penalty: sps.csr_matrix | None,
    alpha: float,
) -> npt.NDArray[np.float64]:
    """Solve for the coefficients of a (regularized) least-squares fit.

    Without a penalty and with a square design matrix the system D c = y is
    solved directly. Otherwise the normal equations
    (DᵗD + alpha PᵗP) c = Dᵗy are solved, with P omitted when `penalty` is None.

    Args:
        design (sps.csr_matrix): Design matrix of shape (num_samples, num_total_basis).
        rhs (npt.NDArray[np.float64]): Targets of shape (num_samples, dim_y).
        penalty (sps.csr_matrix | None): Penalty matrix with num_total_basis
            columns, or None.
        alpha (float): Penalty weight.

    Returns:
        npt.NDArray[np.float64]: Coefficients of shape (num_total_basis, dim_y).

    Raises:
        SingularSystem: If the system is singular or the solution not finite.
    """
    num_rows, num_cols = design.shape
    if penalty is None and num_rows == num_cols:
        logger.debug(f"Solving square system of size {num_cols} by sparse LU")
        coefs = _solve_square(design, rhs)
    else:
        lhs = design.T @ design
        if penalty is not None and penalty.shape[0] > 0 and alpha > 0.0:
            lhs = lhs + alpha * (penalty.T @ penalty)
        logger.debug(f"Solving normal equations of size {num_cols} by sparse LU")
        coefs = _solve_normal_equations(lhs, design.T @ rhs)

    if not np.all(np.isfinite(coefs)):
        raise SingularSystem("The fitted coefficients are not finite")
    return np.asarray(coefs, dtype=np.float64).reshape(num_cols, -1)


__all__ = [
    "_assemble_design_matrix",
    "_build_second_difference_penalty",
    "_solve_least_squares",
]
