"""Fitting tensor-product B-splines to sample tables.

A fit builds one clamped knot vector per input dimension from the sample
abscissas, assembles the sparse design matrix of the resulting tensor basis
and solves for the control points, either interpolating the samples or
smoothing them by regularized least squares.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import Enum

import numpy as np
import numpy.typing as npt
import scipy.sparse as sps

from ._fitting_impl import (
    _assemble_design_matrix,
    _build_second_difference_penalty,
    _solve_least_squares,
)
from ._utils import _broadcast_per_dim
from .bspline import Bspline
from .exceptions import ConfigurationSizeMismatch, InvalidConfiguration
from .knots import KnotSpacing, build_knot_vector
from .samples import SampleTable
from .tensor_basis import TensorBasis

logger = logging.getLogger(__name__)


class Smoothing(Enum):
    """Regularization applied to a least-squares fit.

    Attributes:
        NONE: Plain least squares (interpolation when the system is square).
        IDENTITY: Ridge penalty alpha * |c|^2 on the control points.
        PSPLINE: Roughness penalty alpha * |P c|^2, with P the second
            differences of the control points along every dimension.
    """

    NONE = "none"
    IDENTITY = "identity"
    PSPLINE = "pspline"


IntOption = int | Sequence[int]
SpacingOption = KnotSpacing | Sequence[KnotSpacing]
InteriorKnotsOption = npt.ArrayLike | Sequence[npt.ArrayLike | None] | None


def _as_sample_table(samples: SampleTable | tuple[npt.ArrayLike, npt.ArrayLike]) -> SampleTable:
    if isinstance(samples, SampleTable):
        return samples
    if isinstance(samples, tuple) and len(samples) == 2:  # noqa: PLR2004
        return SampleTable(*samples)
    raise InvalidConfiguration("samples must be a SampleTable or an (x, y) tuple")


def _broadcast_interior_knots(
    interior_knots: InteriorKnotsOption, dim: int
) -> tuple[npt.NDArray[np.float64] | None, ...]:
    """Broadcast interior knots to every input dimension.

    A flat sequence of numbers is shared by every dimension; otherwise one
    entry (array or None) per dimension is expected.

    Raises:
        ConfigurationSizeMismatch: If the number of per-dimension entries is wrong.
    """
    if interior_knots is None:
        return (None,) * dim
    if isinstance(interior_knots, np.ndarray) and interior_knots.ndim <= 1:
        shared = np.asarray(interior_knots, dtype=np.float64).reshape(-1)
        return (shared,) * dim
    entries = list(interior_knots)  # type: ignore[arg-type]
    if all(np.ndim(entry) == 0 and entry is not None for entry in entries):
        shared = np.asarray(entries, dtype=np.float64).reshape(-1)
        return (shared,) * dim
    if len(entries) != dim:
        raise ConfigurationSizeMismatch("interior_knots", dim, len(entries))
    return tuple(
        None if entry is None else np.asarray(entry, dtype=np.float64).reshape(-1)
        for entry in entries
    )


def _validate_alpha(alpha: float) -> float:
    try:
        alpha = float(alpha)
    except (TypeError, ValueError) as err:
        raise InvalidConfiguration(f"alpha must be a real number, got {alpha!r}") from err
    if not np.isfinite(alpha) or alpha < 0.0:
        raise InvalidConfiguration(f"alpha must be finite and non-negative, got {alpha}")
    return alpha


def _validate_weights(
    weights: npt.ArrayLike | None, num_samples: int
) -> npt.NDArray[np.float64] | None:
    if weights is None:
        return None
    w = np.asarray(weights, dtype=np.float64).reshape(-1)
    if w.size != num_samples:
        raise ConfigurationSizeMismatch("weights", num_samples, w.size)
    if not np.all(np.isfinite(w)) or np.any(w < 0.0):
        raise InvalidConfiguration("weights must be finite and non-negative")
    return w


def _build_basis(
    samples: SampleTable,
    degrees: IntOption,
    knot_spacing: SpacingOption,
    num_basis: IntOption | None,
    interior_knots: InteriorKnotsOption,
) -> TensorBasis:
    """Build the tensor basis of a fit, one knot vector per input dimension."""
    dim = samples.dim_x
    degrees_ = _broadcast_per_dim(degrees, dim, "degrees")
    spacings = _broadcast_per_dim(knot_spacing, dim, "knot_spacing")
    if num_basis is None:
        num_basis_ = samples.num_distinct
    else:
        num_basis_ = _broadcast_per_dim(num_basis, dim, "num_basis")
    interior = _broadcast_interior_knots(interior_knots, dim)

    knot_vectors = [
        build_knot_vector(
            samples.x[:, d],
            degrees_[d],
            num_basis_[d],
            spacing=spacings[d],
            interior_knots=interior[d],
            dimension=d,
        )
        for d in range(dim)
    ]
    return TensorBasis.from_knots(knot_vectors, degrees_)


def create_unfitted_bspline(
    samples: SampleTable | tuple[npt.ArrayLike, npt.ArrayLike],
    degrees: IntOption = 3,
    knot_spacing: SpacingOption = KnotSpacing.AS_SAMPLED,
    num_basis: IntOption | None = None,
    interior_knots: InteriorKnotsOption = None,
) -> Bspline:
    """Create a B-spline with the knot vectors of a fit but zero control points.

    Args:
        samples (SampleTable | tuple[npt.ArrayLike, npt.ArrayLike]): Samples
            that determine the domain and the knot placement.
        degrees (IntOption): Degree, shared or per input dimension. Defaults to 3.
        knot_spacing (SpacingOption): Knot placement policy, shared or per input
            dimension. Defaults to KnotSpacing.AS_SAMPLED.
        num_basis (IntOption | None): Number of basis functions, shared or per
            input dimension. None means one per distinct abscissa.
        interior_knots (InteriorKnotsOption): Interior knots for
            KnotSpacing.CUSTOM dimensions.

    Returns:
        Bspline: A model with all-zero control points and dim_y outputs.

    Raises:
        InvalidConfiguration: If an option is malformed.
        IllConditionedKnots: If a knot vector fails the Schoenberg-Whitney check.
    """
    table = _as_sample_table(samples)
    basis = _build_basis(table, degrees, knot_spacing, num_basis, interior_knots)
    return Bspline.zeros(basis, table.dim_y)


def fit_bspline(  # noqa: PLR0913
    samples: SampleTable | tuple[npt.ArrayLike, npt.ArrayLike],
    degrees: IntOption = 3,
    num_basis: IntOption | None = None,
    knot_spacing: SpacingOption = KnotSpacing.AS_SAMPLED,
    smoothing: Smoothing = Smoothing.NONE,
    alpha: float = 0.1,
    weights: npt.ArrayLike | None = None,
    interior_knots: InteriorKnotsOption = None,
) -> Bspline:
    """Fit a tensor-product B-spline to samples.

    Control points minimize sum_i w_i |s(x_i) - y_i|^2 plus, depending on
    `smoothing`, alpha times a penalty on the control points. With
    Smoothing.NONE and one basis function per distinct abscissa on a complete
    grid, the fit interpolates the samples.

    Least-squares and smoothed fits solve the normal equations, whose
    condition number is the square of the design matrix's. After scaling the
    system to a unit diagonal, fits whose pivot ratio falls below
    get_pivot_tolerance() raise SingularSystem. With float64 this happens
    around a condition number of 3e6 for the column-normalized design.
    Smoothing, or fewer basis functions where samples are clustered, restores
    a well-posed system.

    Args:
        samples (SampleTable | tuple[npt.ArrayLike, npt.ArrayLike]): Samples to fit.
        degrees (IntOption): Degree, shared or per input dimension. Defaults to 3.
        num_basis (IntOption | None): Number of basis functions, shared or per
            input dimension. None means one per distinct abscissa.
        knot_spacing (SpacingOption): Knot placement policy, shared or per input
            dimension. Defaults to KnotSpacing.AS_SAMPLED.
        smoothing (Smoothing): Regularization. Defaults to Smoothing.NONE.
        alpha (float): Regularization weight, finite and non-negative. Ignored
            with Smoothing.NONE. Defaults to 0.1.
        weights (npt.ArrayLike | None): One finite, non-negative weight per
            sample, or None for unit weights.
        interior_knots (InteriorKnotsOption): Interior knots for
            KnotSpacing.CUSTOM dimensions.

    Returns:
        Bspline: The fitted B-spline.

    Raises:
        InvalidConfiguration: If an option is malformed.
        ConfigurationSizeMismatch: If a per-dimension option or the weights have
            the wrong number of entries.
        IllConditionedKnots: If a knot vector fails the Schoenberg-Whitney check.
        SingularSystem: If the fitting system cannot be solved reliably.

    Example:
        >>> spline = fit_bspline(([0.0, 1.0, 2.0, 3.0], [0.0, 1.0, 4.0, 9.0]))
        >>> spline.evaluate(2.0)
        array([4.])
    """
    table = _as_sample_table(samples)
    try:
        smoothing = Smoothing(smoothing)
    except ValueError as err:
        raise InvalidConfiguration(f"Unknown smoothing {smoothing!r}") from err
    alpha = _validate_alpha(alpha)
    w = _validate_weights(weights, table.num_samples)

    basis = _build_basis(table, degrees, knot_spacing, num_basis, interior_knots)
    design, rhs = _assemble_design_matrix(basis, table.x, table.y, w)

    penalty: sps.csr_matrix | None
    if smoothing is Smoothing.PSPLINE:
        penalty = _build_second_difference_penalty(basis.num_basis)
    elif smoothing is Smoothing.IDENTITY:
        penalty = sps.identity(basis.num_total_basis, format="csr")
    else:
        penalty = None

    coefs = _solve_least_squares(design, rhs, penalty, alpha)
    spline = Bspline(basis, coefs)

    logger.info(
        f"Fitted {spline.dim}D B-spline with {basis.num_total_basis} coefficients"
        f" (degrees={basis.degrees}, num_basis={basis.num_basis}) to"
        f" {table.num_samples} samples, smoothing={smoothing.name}, alpha={alpha}"
    )
    return spline


def bspline_interpolator(
    samples: SampleTable | tuple[npt.ArrayLike, npt.ArrayLike], degree: IntOption = 3
) -> Bspline:
    """Interpolate samples with one basis function per distinct abscissa.

    Args:
        samples (SampleTable | tuple[npt.ArrayLike, npt.ArrayLike]): Samples to
            interpolate, usually on a complete grid.
        degree (IntOption): Degree, shared or per input dimension. Defaults to 3.

    Returns:
        Bspline: The interpolating B-spline.
    """
    return fit_bspline(
        samples,
        degrees=degree,
        num_basis=None,
        knot_spacing=KnotSpacing.AS_SAMPLED,
        smoothing=Smoothing.NONE,
    )


def bspline_smoother(
    samples: SampleTable | tuple[npt.ArrayLike, npt.ArrayLike],
    degree: IntOption = 3,
    smoothing: Smoothing = Smoothing.PSPLINE,
    alpha: float = 0.1,
    weights: npt.ArrayLike | None = None,
) -> Bspline:
    """Smooth samples with one basis function per distinct abscissa.

    Args:
        samples (SampleTable | tuple[npt.ArrayLike, npt.ArrayLike]): Samples to smooth.
        degree (IntOption): Degree, shared or per input dimension. Defaults to 3.
        smoothing (Smoothing): Regularization. Defaults to Smoothing.PSPLINE.
        alpha (float): Regularization weight. Defaults to 0.1.
        weights (npt.ArrayLike | None): Per-sample weights, or None.

    Returns:
        Bspline: The smoothing B-spline.
    """
    return fit_bspline(
        samples,
        degrees=degree,
        num_basis=None,
        knot_spacing=KnotSpacing.AS_SAMPLED,
        smoothing=smoothing,
        alpha=alpha,
        weights=weights,
    )


class BsplineBuilder:
    """Fluent configuration of a B-spline fit.

    Every setter validates its option against the input dimension of the
    samples and returns the builder, so calls can be chained.

    Example:
        >>> spline = (
        ...     BsplineBuilder(samples)
        ...     .degree([3, 2])
        ...     .num_basis_functions([8, 5])
        ...     .knot_spacing(KnotSpacing.EQUIDISTANT)
        ...     .fit(smoothing=Smoothing.PSPLINE, alpha=1e-3)
        ... )
    """

    def __init__(self, samples: SampleTable | tuple[npt.ArrayLike, npt.ArrayLike]) -> None:
        self._samples = _as_sample_table(samples)
        dim = self._samples.dim_x
        self._degrees: tuple[int, ...] = (3,) * dim
        self._num_basis: tuple[int, ...] | None = None
        self._spacings: tuple[KnotSpacing, ...] = (KnotSpacing.AS_SAMPLED,) * dim
        self._interior_knots: tuple[npt.NDArray[np.float64] | None, ...] = (None,) * dim

    @property
    def samples(self) -> SampleTable:
        """The samples to fit."""
        return self._samples

    def degree(self, degrees: IntOption) -> BsplineBuilder:
        """Set the degree, shared or per input dimension."""
        self._degrees = _broadcast_per_dim(degrees, self._samples.dim_x, "degrees")
        return self

    def num_basis_functions(self, num_basis: IntOption | None) -> BsplineBuilder:
        """Set the number of basis functions, shared or per input dimension.

        None restores the default of one basis function per distinct abscissa.
        """
        if num_basis is None:
            self._num_basis = None
        else:
            self._num_basis = _broadcast_per_dim(num_basis, self._samples.dim_x, "num_basis")
        return self

    def knot_spacing(self, spacing: SpacingOption) -> BsplineBuilder:
        """Set the knot placement policy, shared or per input dimension."""
        self._spacings = _broadcast_per_dim(spacing, self._samples.dim_x, "knot_spacing")
        return self

    def interior_knots(self, interior_knots: InteriorKnotsOption) -> BsplineBuilder:
        """Set the interior knots of KnotSpacing.CUSTOM dimensions.

        Dimensions that get interior knots switch to KnotSpacing.CUSTOM.
        """
        self._interior_knots = _broadcast_interior_knots(interior_knots, self._samples.dim_x)
        self._spacings = tuple(
            KnotSpacing.CUSTOM if knots is not None else spacing
            for spacing, knots in zip(self._spacings, self._interior_knots, strict=True)
        )
        return self

    def fit(
        self,
        smoothing: Smoothing = Smoothing.NONE,
        alpha: float = 0.1,
        weights: npt.ArrayLike | None = None,
    ) -> Bspline:
        """Fit the configured B-spline.

        Args:
            smoothing (Smoothing): Regularization. Defaults to Smoothing.NONE.
            alpha (float): Regularization weight. Defaults to 0.1.
            weights (npt.ArrayLike | None): Per-sample weights, or None.

        Returns:
            Bspline: The fitted B-spline.
        """
        return fit_bspline(
            self._samples,
            degrees=self._degrees,
            num_basis=self._num_basis,
            knot_spacing=self._spacings,
            smoothing=smoothing,
            alpha=alpha,
            weights=weights,
            interior_knots=list(self._interior_knots),
        )

    def build_unfitted(self) -> Bspline:
        """Build the configured B-spline with zero control points."""
        return create_unfitted_bspline(
            self._samples,
            degrees=self._degrees,
            knot_spacing=self._spacings,
            num_basis=self._num_basis,
            interior_knots=list(self._interior_knots),
        )


__all__ = [
    "BsplineBuilder",
    "Smoothing",
    "bspline_interpolator",
    "bspline_smoother",
    "create_unfitted_bspline",
    "fit_bspline",
]
