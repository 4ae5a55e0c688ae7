"""Tests for knot vector construction."""

from __future__ import annotations

import numpy as np
import pytest

from bsfit.exceptions import IllConditionedKnots, InvalidConfiguration
from bsfit.knots import (
    KnotSpacing,
    build_knot_vector,
    check_schoenberg_whitney,
    create_clamped_knot_vector,
    create_uniform_clamped_knot_vector,
)


def _dense_then_sparse_abscissas() -> np.ndarray:
    """30 abscissas packed in [0, 0.29] plus two isolated ones at 5 and 10."""
    return np.concatenate([0.01 * np.arange(30), [5.0, 10.0]])


class TestCreateClampedKnotVector:
    """Test create_clamped_knot_vector and create_uniform_clamped_knot_vector."""

    def test_basic(self) -> None:
        """Test end knots are repeated degree+1 times."""
        knots = create_clamped_knot_vector([0.5], 2, (0.0, 1.0))
        np.testing.assert_array_equal(knots, [0.0, 0.0, 0.0, 0.5, 1.0, 1.0, 1.0])
        assert knots.dtype == np.float64

    def test_no_interior_knots(self) -> None:
        """Test a Bezier-like knot vector."""
        knots = create_clamped_knot_vector([], 1, (-1.0, 2.0))
        np.testing.assert_array_equal(knots, [-1.0, -1.0, 2.0, 2.0])

    def test_repeated_interior_knot(self) -> None:
        """Test interior knots may repeat."""
        knots = create_clamped_knot_vector([0.5, 0.5], 2, (0.0, 1.0))
        assert knots.size == 8  # noqa: PLR2004

    @pytest.mark.parametrize(
        ("interior", "domain"),
        [
            ([0.0], (0.0, 1.0)),
            ([1.0], (0.0, 1.0)),
            ([1.5], (0.0, 1.0)),
            ([0.6, 0.4], (0.0, 1.0)),
            ([np.nan], (0.0, 1.0)),
            ([0.5], (1.0, 0.0)),
            ([0.5], (0.0, np.inf)),
        ],
    )
    def test_invalid_input(self, interior: list[float], domain: tuple[float, float]) -> None:
        """Test invalid interior knots or domains are rejected."""
        with pytest.raises(InvalidConfiguration):
            create_clamped_knot_vector(interior, 2, domain)

    def test_negative_degree(self) -> None:
        """Test a negative degree is rejected."""
        with pytest.raises(InvalidConfiguration, match="degree"):
            create_clamped_knot_vector([0.5], -1, (0.0, 1.0))

    def test_uniform(self) -> None:
        """Test equally spaced interior knots."""
        knots = create_uniform_clamped_knot_vector(4, 1, (0.0, 2.0))
        np.testing.assert_allclose(knots, [0.0, 0.0, 0.5, 1.0, 1.5, 2.0, 2.0])

    def test_uniform_default_domain(self) -> None:
        """Test the default domain is [0, 1]."""
        knots = create_uniform_clamped_knot_vector(2, 2)
        np.testing.assert_allclose(knots, [0.0, 0.0, 0.0, 0.5, 1.0, 1.0, 1.0])

    def test_uniform_invalid_num_intervals(self) -> None:
        """Test at least one interval is required."""
        with pytest.raises(InvalidConfiguration, match="num_intervals"):
            create_uniform_clamped_knot_vector(0, 2)


class TestSchoenbergWhitney:
    """Test check_schoenberg_whitney."""

    def test_satisfied(self) -> None:
        """Test a knot vector with a sample in every support passes."""
        knots = [0.0, 0.0, 0.0, 0.5, 1.0, 1.0, 1.0]
        check_schoenberg_whitney(knots, 2, [0.0, 0.1, 0.2, 1.0])

    def test_violated(self) -> None:
        """Test the first uncovered basis function is reported."""
        knots = [0.0, 0.0, 0.0, 0.5, 1.0, 1.0, 1.0]
        with pytest.raises(IllConditionedKnots) as exc_info:
            check_schoenberg_whitney(knots, 2, [0.0, 0.1, 0.2, 0.3], dimension=2)
        assert exc_info.value.dimension == 2  # noqa: PLR2004
        assert exc_info.value.basis_index == 3  # noqa: PLR2004

    def test_repeated_abscissas_count_once(self) -> None:
        """Test repeated abscissas cannot serve two basis functions."""
        knots = [0.0, 0.0, 1.0, 1.0]
        with pytest.raises(IllConditionedKnots):
            check_schoenberg_whitney(knots, 1, [0.5, 0.5, 0.5])

    def test_degree_zero(self) -> None:
        """Test piecewise constant supports are half-open."""
        knots = [0.0, 0.5, 1.0]
        check_schoenberg_whitney(knots, 0, [0.0, 1.0])
        with pytest.raises(IllConditionedKnots) as exc_info:
            check_schoenberg_whitney(knots, 0, [0.5, 1.0])
        assert exc_info.value.basis_index == 0


class TestBuildKnotVector:
    """Test build_knot_vector."""

    def test_bezier_boundary(self) -> None:
        """Test num_basis == degree + 1 gives no interior knots."""
        knots = build_knot_vector([0.0, 1.0, 2.0, 3.0], 3, 4)
        np.testing.assert_array_equal(knots, [0.0] * 4 + [3.0] * 4)

    def test_as_sampled_averaging(self) -> None:
        """Test knot averaging when there is one basis function per abscissa."""
        knots = build_knot_vector(np.arange(6.0), 3, 6)
        np.testing.assert_allclose(knots, [0.0] * 4 + [2.0, 3.0] + [5.0] * 4)

    def test_as_sampled_averaging_degree_one(self) -> None:
        """Test linear interpolation knots are the interior abscissas."""
        knots = build_knot_vector([0.0, 1.0, 3.0, 6.0], 1, 4)
        np.testing.assert_allclose(knots, [0.0, 0.0, 1.0, 3.0, 6.0, 6.0])

    def test_as_sampled_averaging_degree_zero(self) -> None:
        """Test piecewise constant knots are midpoints between abscissas."""
        knots = build_knot_vector([0.0, 1.0, 3.0], 0, 3)
        np.testing.assert_allclose(knots, [0.0, 0.5, 2.0, 3.0])

    def test_as_sampled_thinned(self) -> None:
        """Test averaging over abscissas thinned by rank when fewer basis functions are asked."""
        # Abscissas 0, 2, 5, 8, 10 are kept; the only interior knot is (2 + 5 + 8) / 3.
        knots = build_knot_vector(np.arange(11.0), 3, 5)
        np.testing.assert_allclose(knots, [0.0] * 4 + [5.0] + [10.0] * 4)

    def test_as_sampled_thinned_degree_zero(self) -> None:
        """Test piecewise constant knots keep one abscissa per span on clustered samples."""
        xs = [0.00149, 0.00957, 0.00973, 0.00981, 5.0, 10.0]
        knots = build_knot_vector(xs, 0, 5)
        np.testing.assert_allclose(knots, [0.00149, 0.00553, 0.00965, 2.504865, 7.5, 10.0])
        check_schoenberg_whitney(knots, 0, xs)

    @pytest.mark.parametrize("degree", [0, 1, 2, 3])
    def test_as_sampled_always_satisfies_schoenberg_whitney(self, degree: int) -> None:
        """Test every admissible basis count yields a valid data-driven knot vector."""
        rng = np.random.default_rng(7)
        for _ in range(10):
            xs = np.unique(np.concatenate([rng.exponential(1e-3, 8), rng.uniform(1.0, 10.0, 4)]))
            for num_basis in range(degree + 1, xs.size + 1):
                knots = build_knot_vector(xs, degree, num_basis)
                assert knots.size == num_basis + degree + 1

    def test_unordered_and_repeated_abscissas(self) -> None:
        """Test abscissas are reduced to sorted distinct values."""
        xs = np.arange(6.0)
        shuffled = np.concatenate([xs[::-1], xs[:3]])
        np.testing.assert_array_equal(
            build_knot_vector(shuffled, 3, 6), build_knot_vector(xs, 3, 6)
        )

    def test_equidistant(self) -> None:
        """Test equally spaced interior knots over the sample range."""
        knots = build_knot_vector(np.arange(11.0), 2, 5, spacing=KnotSpacing.EQUIDISTANT)
        np.testing.assert_allclose(knots, [0.0] * 3 + [10.0 / 3.0, 20.0 / 3.0] + [10.0] * 3)

    def test_spacing_by_value(self) -> None:
        """Test the spacing may be given by its value."""
        knots = build_knot_vector(np.arange(11.0), 2, 5, spacing="equidistant")  # type: ignore[arg-type]
        assert knots.size == 8  # noqa: PLR2004

    def test_unknown_spacing(self) -> None:
        """Test an unknown spacing is rejected."""
        with pytest.raises(InvalidConfiguration, match="knot spacing"):
            build_knot_vector(np.arange(11.0), 2, 5, spacing="bogus")  # type: ignore[arg-type]

    def test_custom(self) -> None:
        """Test caller-supplied interior knots."""
        knots = build_knot_vector(
            np.arange(11.0), 3, 5, spacing=KnotSpacing.CUSTOM, interior_knots=[2.5]
        )
        np.testing.assert_allclose(knots, [0.0] * 4 + [2.5] + [10.0] * 4)

    def test_custom_wrong_count(self) -> None:
        """Test the number of custom interior knots is checked."""
        with pytest.raises(InvalidConfiguration, match="interior knots"):
            build_knot_vector(
                np.arange(11.0), 3, 5, spacing=KnotSpacing.CUSTOM, interior_knots=[2.5, 5.0]
            )

    def test_custom_requires_knots(self) -> None:
        """Test KnotSpacing.CUSTOM without interior knots is rejected."""
        with pytest.raises(InvalidConfiguration, match="requires interior_knots"):
            build_knot_vector(np.arange(11.0), 3, 5, spacing=KnotSpacing.CUSTOM)

    def test_custom_outside_range(self) -> None:
        """Test custom interior knots must lie inside the sample range."""
        with pytest.raises(InvalidConfiguration, match="Dimension 1"):
            build_knot_vector(
                np.arange(11.0),
                3,
                5,
                spacing=KnotSpacing.CUSTOM,
                interior_knots=[12.0],
                dimension=1,
            )

    def test_interior_knots_without_custom(self) -> None:
        """Test interior knots are only accepted with KnotSpacing.CUSTOM."""
        with pytest.raises(InvalidConfiguration, match="only accepted"):
            build_knot_vector(np.arange(11.0), 3, 5, interior_knots=[2.5])

    @pytest.mark.parametrize(("degree", "num_basis"), [(3, 3), (-1, 4), (2, -1), (True, 4)])
    def test_invalid_degree_or_num_basis(self, degree: int, num_basis: int) -> None:
        """Test invalid degrees and basis counts are rejected."""
        with pytest.raises(InvalidConfiguration):
            build_knot_vector(np.arange(11.0), degree, num_basis)

    @pytest.mark.parametrize("abscissas", [[], [1.0, 1.0, 1.0], [0.0, np.nan, 1.0]])
    def test_invalid_abscissas(self, abscissas: list[float]) -> None:
        """Test empty, degenerate and non-finite abscissas are rejected."""
        with pytest.raises(InvalidConfiguration):
            build_knot_vector(abscissas, 0, 1)

    def test_too_many_basis_functions(self) -> None:
        """Test more basis functions than distinct abscissas is ill-conditioned."""
        with pytest.raises(IllConditionedKnots) as exc_info:
            build_knot_vector([0.0, 1.0, 1.0, 2.0], 1, 4, dimension=1)
        assert exc_info.value.dimension == 1

    def test_non_uniform_density_as_sampled(self) -> None:
        """Test data-driven knots follow strongly non-uniform samples."""
        xs = _dense_then_sparse_abscissas()
        knots = build_knot_vector(xs, 3, 8)
        assert knots.size == 12  # noqa: PLR2004
        # All interior knots land in the densely sampled region.
        assert np.all(knots[4:8] < 0.3)  # noqa: PLR2004
        assert np.all(np.diff(knots) >= 0.0)

    def test_non_uniform_density_equidistant(self) -> None:
        """Test equidistant knots over sparse samples break Schoenberg-Whitney."""
        xs = _dense_then_sparse_abscissas()
        with pytest.raises(IllConditionedKnots) as exc_info:
            build_knot_vector(xs, 3, 8, spacing=KnotSpacing.EQUIDISTANT, dimension=1)
        assert exc_info.value.dimension == 1
        assert exc_info.value.basis_index == 5  # noqa: PLR2004
