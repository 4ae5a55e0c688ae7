"""Knot vector construction for B-spline fitting.

This module builds clamped (open) knot vectors for one input dimension from
the sample abscissas of that dimension, placing the interior knots according
to a spacing policy and verifying that the result satisfies the
Schoenberg-Whitney condition against the samples.
"""

from __future__ import annotations

import logging
from enum import Enum

import numpy as np
import numpy.typing as npt

from ._knots_impl import _find_uncovered_basis_impl
from ._utils import _as_non_negative_int, _normalize_points_1D
from .exceptions import IllConditionedKnots, InvalidConfiguration

logger = logging.getLogger(__name__)


class KnotSpacing(Enum):
    """Policies for placing the interior knots of a knot vector.

    Attributes:
        AS_SAMPLED: Data-driven placement. Interior knots follow the sample
            abscissas: moving averages of the distinct abscissas, thinned
            evenly by rank when fewer basis functions than abscissas are
            requested. Basis support shrinks where samples are dense.
        EQUIDISTANT: Interior knots equally spaced over the sample range.
        CUSTOM: Interior knots supplied by the caller.
    """

    AS_SAMPLED = "as_sampled"
    EQUIDISTANT = "equidistant"
    CUSTOM = "custom"


def _validate_domain(domain: tuple[float, float]) -> tuple[float, float]:
    start, end = float(domain[0]), float(domain[1])
    if not (np.isfinite(start) and np.isfinite(end)):
        raise InvalidConfiguration("domain ends must be finite")
    if start >= end:
        raise InvalidConfiguration("domain[0] must be less than domain[1]")
    return start, end


def create_clamped_knot_vector(
    interior_knots: npt.ArrayLike,
    degree: int,
    domain: tuple[float, float],
) -> npt.NDArray[np.float64]:
    """Create a clamped knot vector from its interior knots.

    The domain ends are repeated (degree+1) times, which makes the end basis
    functions interpolatory at the domain boundaries.

    Args:
        interior_knots (npt.ArrayLike): Non-decreasing interior knots, strictly
            inside the domain. May be empty.
        degree (int): B-spline degree. Must be non-negative.
        domain (tuple[float, float]): Domain boundaries as (start, end).

    Returns:
        npt.NDArray[np.float64]: Clamped knot vector of length
            `len(interior_knots) + 2 * (degree + 1)`.

    Raises:
        InvalidConfiguration: If the degree is negative, the domain is empty, or
            the interior knots are not finite, non-decreasing and strictly
            inside the domain.

    Example:
        >>> create_clamped_knot_vector([0.5], 2, (0.0, 1.0))
        array([0. , 0. , 0. , 0.5, 1. , 1. , 1. ])
    """
    degree = _as_non_negative_int(degree, "degree", 0)
    start, end = _validate_domain(domain)

    interior = np.asarray(interior_knots, dtype=np.float64).reshape(-1)
    if not np.all(np.isfinite(interior)):
        raise InvalidConfiguration("interior knots must be finite")
    if np.any(np.diff(interior) < 0.0):
        raise InvalidConfiguration("interior knots must be non-decreasing")
    if interior.size > 0 and (interior[0] <= start or interior[-1] >= end):
        raise InvalidConfiguration(
            f"interior knots must lie strictly inside the domain ({start}, {end})"
        )

    return np.concatenate(
        [np.full(degree + 1, start), interior, np.full(degree + 1, end)]
    ).astype(np.float64)


def create_uniform_clamped_knot_vector(
    num_intervals: int,
    degree: int,
    domain: tuple[float, float] = (0.0, 1.0),
) -> npt.NDArray[np.float64]:
    """Create a clamped knot vector with equally spaced interior knots.

    Args:
        num_intervals (int): Number of non-empty knot spans. Must be at least 1.
        degree (int): B-spline degree. Must be non-negative.
        domain (tuple[float, float]): Domain boundaries as (start, end).
            Defaults to (0.0, 1.0).

    Returns:
        npt.NDArray[np.float64]: Clamped knot vector with
            `num_intervals + degree` basis functions.

    Raises:
        InvalidConfiguration: If num_intervals < 1, the degree is negative or the
            domain is empty.

    Example:
        >>> create_uniform_clamped_knot_vector(2, 2, (0.0, 1.0))
        array([0. , 0. , 0. , 0.5, 1. , 1. , 1. ])
    """
    if num_intervals < 1:
        raise InvalidConfiguration("num_intervals must be at least 1")
    start, end = _validate_domain(domain)
    interior = np.linspace(start, end, num_intervals + 1)[1:-1]
    return create_clamped_knot_vector(interior, degree, (start, end))


def check_schoenberg_whitney(
    knots: npt.ArrayLike,
    degree: int,
    abscissas: npt.ArrayLike,
    dimension: int = 0,
) -> None:
    """Verify that every basis function has its own sample in its support.

    This is the condition under which the design matrix of a least-squares
    fit in this dimension has full column rank.

    Args:
        knots (npt.ArrayLike): Clamped knot vector.
        degree (int): B-spline degree.
        abscissas (npt.ArrayLike): Sample abscissas (any order, repeats allowed).
        dimension (int): Input dimension, used in error messages. Defaults to 0.

    Raises:
        IllConditionedKnots: If some basis function cannot be matched with a
            distinct sample abscissa.
    """
    knots_arr = _normalize_points_1D(knots)
    xs = np.unique(_normalize_points_1D(abscissas))
    num_basis = knots_arr.size - degree - 1

    uncovered = int(_find_uncovered_basis_impl(knots_arr, degree, num_basis, xs))
    if uncovered >= 0:
        support = (float(knots_arr[uncovered]), float(knots_arr[uncovered + degree + 1]))
        raise IllConditionedKnots(
            f"Knot vector of dimension {dimension} violates the Schoenberg-Whitney condition: "
            f"basis function {uncovered} (support [{support[0]}, {support[1]}]) has no "
            f"sample of its own among the {xs.size} distinct abscissas",
            dimension=dimension,
            basis_index=uncovered,
        )


def _interior_knots_as_sampled(
    xs: npt.NDArray[np.float64], degree: int, num_basis: int
) -> npt.NDArray[np.float64]:
    """Place interior knots following the distinct abscissas `xs`."""
    num_interior = num_basis - degree - 1
    if num_interior <= 0:
        return np.empty(0, dtype=np.float64)

    if num_basis < xs.size:
        # One abscissa per basis function, evenly spread by rank. Ends are kept.
        ranks = np.round(np.linspace(0.0, xs.size - 1, num_basis)).astype(np.int_)
        xs = xs[ranks]

    if degree == 0:
        return 0.5 * (xs[:-1] + xs[1:])
    # Moving average of `degree` consecutive abscissas (knot averaging).
    cumsum = np.concatenate([[0.0], np.cumsum(xs)])
    averages = (cumsum[degree:] - cumsum[:-degree]) / degree
    return averages[1 : num_interior + 1]


def build_knot_vector(
    abscissas: npt.ArrayLike,
    degree: int,
    num_basis: int,
    spacing: KnotSpacing = KnotSpacing.AS_SAMPLED,
    interior_knots: npt.ArrayLike | None = None,
    dimension: int = 0,
) -> npt.NDArray[np.float64]:
    """Build a clamped knot vector for one input dimension.

    Args:
        abscissas (npt.ArrayLike): Sample abscissas of this dimension (any
            order, repeats allowed).
        degree (int): B-spline degree. Must be non-negative.
        num_basis (int): Desired number of basis functions. Must be at least
            degree + 1.
        spacing (KnotSpacing): Interior knot placement policy. Defaults to
            KnotSpacing.AS_SAMPLED.
        interior_knots (npt.ArrayLike | None): Interior knots, required by (and
            only accepted with) KnotSpacing.CUSTOM. There must be
            `num_basis - degree - 1` of them.
        dimension (int): Input dimension, used in error messages. Defaults to 0.

    Returns:
        npt.NDArray[np.float64]: Clamped knot vector of length
            `num_basis + degree + 1` spanning [min(abscissas), max(abscissas)].

    Raises:
        InvalidConfiguration: If the degree or basis count is invalid, if the
            abscissas are empty, not finite or span no range, or if the interior
            knots do not match the policy.
        IllConditionedKnots: If the knot vector cannot satisfy the
            Schoenberg-Whitney condition against the abscissas.

    Example:
        >>> build_knot_vector([0.0, 1.0, 2.0, 3.0], 3, 4)
        array([0., 0., 0., 0., 3., 3., 3., 3.])
    """
    degree = _as_non_negative_int(degree, "degree", dimension)
    num_basis = _as_non_negative_int(num_basis, "num_basis", dimension)
    if num_basis < degree + 1:
        raise InvalidConfiguration(
            f"num_basis must be at least degree + 1 = {degree + 1} (dimension {dimension}),"
            f" got {num_basis}"
        )

    xs = _normalize_points_1D(abscissas)
    if xs.size == 0:
        raise InvalidConfiguration(f"abscissas of dimension {dimension} are empty")
    if not np.all(np.isfinite(xs)):
        raise InvalidConfiguration(f"abscissas of dimension {dimension} must be finite")
    xs = np.unique(xs)
    if xs.size < 2:  # noqa: PLR2004
        raise InvalidConfiguration(
            f"abscissas of dimension {dimension} must span a positive range"
        )

    if num_basis > xs.size:
        raise IllConditionedKnots(
            f"Dimension {dimension} requests {num_basis} basis functions but only has"
            f" {xs.size} distinct abscissas",
            dimension=dimension,
        )

    try:
        spacing = KnotSpacing(spacing)
    except ValueError as err:
        raise InvalidConfiguration(
            f"Unknown knot spacing {spacing!r} (dimension {dimension})"
        ) from err
    if spacing is not KnotSpacing.CUSTOM and interior_knots is not None:
        raise InvalidConfiguration(
            f"interior_knots are only accepted with KnotSpacing.CUSTOM (dimension {dimension})"
        )

    num_interior = num_basis - degree - 1
    domain = (float(xs[0]), float(xs[-1]))

    if spacing is KnotSpacing.EQUIDISTANT:
        interior = np.linspace(domain[0], domain[1], num_interior + 2)[1:-1]
    elif spacing is KnotSpacing.AS_SAMPLED:
        interior = _interior_knots_as_sampled(xs, degree, num_basis)
    else:
        if interior_knots is None:
            raise InvalidConfiguration(
                f"KnotSpacing.CUSTOM requires interior_knots (dimension {dimension})"
            )
        interior = np.asarray(interior_knots, dtype=np.float64).reshape(-1)
        if interior.size != num_interior:
            raise InvalidConfiguration(
                f"Dimension {dimension} needs {num_interior} interior knots for"
                f" {num_basis} basis functions of degree {degree}, got {interior.size}"
            )

    try:
        knots = create_clamped_knot_vector(interior, degree, domain)
    except InvalidConfiguration as err:
        raise InvalidConfiguration(f"Dimension {dimension}: {err}") from err

    check_schoenberg_whitney(knots, degree, xs, dimension)

    logger.debug(f"Dimension {dimension}: {spacing.name} knot vector {knots}")
    return knots


__all__ = [
    "KnotSpacing",
    "build_knot_vector",
    "check_schoenberg_whitney",
    "create_clamped_knot_vector",
    "create_uniform_clamped_knot_vector",
]
