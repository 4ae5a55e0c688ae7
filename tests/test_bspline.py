"""Tests for the Bspline model."""

from __future__ import annotations

import numpy as np
import numpy.typing as npt
import pytest

from bsfit.bspline import Bspline
from bsfit.exceptions import InvalidConfiguration, OutOfDomain
from bsfit.tensor_basis import TensorBasis

KNOTS_X = [0.0, 0.0, 0.0, 0.25, 0.6, 1.0, 1.0, 1.0]
KNOTS_Y = [-1.0, -1.0, -1.0, 0.5, 2.0, 2.0, 2.0]


def _greville(knots: list[float], degree: int) -> npt.NDArray[np.float64]:
    """Greville abscissas: control points reproducing the identity function."""
    k = np.asarray(knots)
    num_basis = k.size - degree - 1
    return np.array([k[j + 1 : j + degree + 1].mean() for j in range(num_basis)])


@pytest.fixture
def basis_2D() -> TensorBasis:
    """Biquadratic basis on [0, 1] x [-1, 2]."""
    return TensorBasis.from_knots([KNOTS_X, KNOTS_Y], [2, 2])


@pytest.fixture
def random_pts() -> npt.NDArray[np.float64]:
    """Random points inside [0, 1] x [-1, 2]."""
    rng = np.random.default_rng(0)
    return np.column_stack([rng.uniform(0.0, 1.0, 25), rng.uniform(-1.0, 2.0, 25)])


class TestBsplineInit:
    """Test Bspline construction and properties."""

    def test_properties(self, basis_2D: TensorBasis) -> None:
        """Test shapes and metadata."""
        spline = Bspline(basis_2D, np.arange(20.0))
        assert spline.dim == 2  # noqa: PLR2004
        assert spline.dim_y == 1
        assert spline.degrees == (2, 2)
        assert spline.num_basis == (5, 4)
        assert spline.basis is basis_2D
        assert spline.control_points.shape == (20, 1)
        assert spline.control_points_grid.shape == (5, 4, 1)
        assert spline.control_points_grid[1, 2, 0] == 6.0  # noqa: PLR2004
        np.testing.assert_array_equal(spline.domain, [[0.0, 1.0], [-1.0, 2.0]])
        np.testing.assert_array_equal(spline.knot_vectors[0], KNOTS_X)

    def test_vector_valued(self, basis_2D: TensorBasis) -> None:
        """Test control point arrays of several outputs."""
        spline = Bspline(basis_2D, np.zeros((20, 3)))
        assert spline.dim_y == 3  # noqa: PLR2004
        assert spline.control_points_grid.shape == (5, 4, 3)

    def test_control_points_are_copied_read_only(self, basis_2D: TensorBasis) -> None:
        """Test the model does not share or expose mutable control points."""
        cp = np.ones(20)
        spline = Bspline(basis_2D, cp)
        cp[:] = 2.0
        np.testing.assert_array_equal(spline.control_points, 1.0)
        with pytest.raises(ValueError, match="read-only"):
            spline.control_points[0, 0] = 3.0

    @pytest.mark.parametrize("cp", [np.zeros(19), np.zeros(0), np.full(20, np.nan)])
    def test_invalid_control_points(self, basis_2D: TensorBasis, cp: np.ndarray) -> None:
        """Test a wrong number of, or non-finite, control points is rejected."""
        with pytest.raises(InvalidConfiguration):
            Bspline(basis_2D, cp)

    def test_zeros(self, basis_2D: TensorBasis, random_pts: np.ndarray) -> None:
        """Test a zero spline evaluates to zero."""
        spline = Bspline.zeros(basis_2D, dim_y=2)
        np.testing.assert_array_equal(spline.evaluate(random_pts), 0.0)
        with pytest.raises(InvalidConfiguration):
            Bspline.zeros(basis_2D, dim_y=0)

    def test_repr(self, basis_2D: TensorBasis) -> None:
        """Test the string representation."""
        assert "num_basis=(5, 4)" in repr(Bspline.zeros(basis_2D))


class TestBsplineEvaluate:
    """Test evaluation of values and derivatives."""

    def test_linear_reproduction(self, basis_2D: TensorBasis, random_pts: np.ndarray) -> None:
        """Test control points at Greville abscissas reproduce linear functions."""
        gx = _greville(KNOTS_X, 2)
        gy = _greville(KNOTS_Y, 2)
        cp = 1.0 + 2.0 * gx[:, np.newaxis] - 3.0 * gy[np.newaxis, :]
        spline = Bspline(basis_2D, cp.ravel())

        expected = 1.0 + 2.0 * random_pts[:, 0] - 3.0 * random_pts[:, 1]
        values = spline.evaluate(random_pts)
        assert values.shape == (25, 1)
        np.testing.assert_allclose(values[:, 0], expected, atol=1e-13)

        jac = spline.evaluate_jacobian(random_pts)
        assert jac.shape == (25, 1, 2)
        np.testing.assert_allclose(jac[:, 0, 0], 2.0, atol=1e-12)
        np.testing.assert_allclose(jac[:, 0, 1], -3.0, atol=1e-12)

        hess = spline.evaluate_hessian(random_pts)
        assert hess.shape == (25, 1, 2, 2)
        np.testing.assert_allclose(hess, 0.0, atol=1e-10)

    def test_identity_map(self, basis_2D: TensorBasis, random_pts: np.ndarray) -> None:
        """Test a vector-valued spline reproducing (x, y)."""
        gx = _greville(KNOTS_X, 2)
        gy = _greville(KNOTS_Y, 2)
        cp = np.stack(np.meshgrid(gx, gy, indexing="ij"), axis=-1).reshape(-1, 2)
        spline = Bspline(basis_2D, cp)

        np.testing.assert_allclose(spline(random_pts), random_pts, atol=1e-13)
        jac = spline.evaluate_jacobian(random_pts[0])
        np.testing.assert_allclose(jac, np.eye(2), atol=1e-12)

    def test_bilinear_hessian(self, basis_2D: TensorBasis) -> None:
        """Test the mixed second derivative of x * y."""
        gx = _greville(KNOTS_X, 2)
        gy = _greville(KNOTS_Y, 2)
        spline = Bspline(basis_2D, np.outer(gx, gy).ravel())

        pt = np.array([0.4, 0.3])
        np.testing.assert_allclose(spline.evaluate(pt), [0.12], atol=1e-13)
        np.testing.assert_allclose(spline.evaluate_jacobian(pt), [[0.3, 0.4]], atol=1e-12)
        hess = spline.evaluate_hessian(pt)
        assert hess.shape == (1, 2, 2)
        np.testing.assert_allclose(hess[0], [[0.0, 1.0], [1.0, 0.0]], atol=1e-10)

    def test_quadratic_1D(self) -> None:
        """Test x**2 from its blossom control points t_{j+1} * t_{j+2}."""
        knots = [0.0, 0.0, 0.0, 0.5, 1.0, 1.0, 1.0]
        spline = Bspline(TensorBasis.from_knots([knots], [2]), [0.0, 0.0, 0.5, 1.0])

        x = np.linspace(0.0, 1.0, 11)
        np.testing.assert_allclose(spline.evaluate(x[:, np.newaxis])[:, 0], x**2, atol=1e-14)
        np.testing.assert_allclose(
            spline.evaluate_jacobian(x[:, np.newaxis])[:, 0, 0], 2 * x, atol=1e-12
        )
        np.testing.assert_allclose(
            spline.evaluate_hessian(x[:, np.newaxis])[:, 0, 0, 0], 2.0, atol=1e-10
        )

    def test_single_point_shapes(self, basis_2D: TensorBasis) -> None:
        """Test single points return unbatched arrays."""
        spline = Bspline(basis_2D, np.zeros((20, 3)))
        assert spline.evaluate([0.5, 0.5]).shape == (3,)
        assert spline.evaluate_jacobian([0.5, 0.5]).shape == (3, 2)
        assert spline.evaluate_hessian([0.5, 0.5]).shape == (3, 2, 2)

    def test_scalar_point_in_1D(self) -> None:
        """Test scalar inputs for univariate splines."""
        knots = [0.0, 0.0, 1.0, 1.0]
        spline = Bspline(TensorBasis.from_knots([knots], [1]), [1.0, 3.0])
        np.testing.assert_allclose(spline.evaluate(0.5), [2.0])
        np.testing.assert_allclose(spline.evaluate_jacobian(0.5), [[2.0]])

    def test_end_point_interpolates_control_point(self, basis_2D: TensorBasis) -> None:
        """Test clamped corners take the corner control point values."""
        cp = np.arange(20.0)
        spline = Bspline(basis_2D, cp)
        np.testing.assert_allclose(spline.evaluate([0.0, -1.0]), [0.0], atol=1e-14)
        np.testing.assert_allclose(spline.evaluate([1.0, 2.0]), [19.0], atol=1e-13)
        np.testing.assert_allclose(spline.evaluate([1.0, -1.0]), [16.0], atol=1e-13)

    def test_out_of_domain(self, basis_2D: TensorBasis) -> None:
        """Test evaluation outside the domain is rejected."""
        spline = Bspline.zeros(basis_2D)
        with pytest.raises(OutOfDomain) as exc_info:
            spline.evaluate([1.5, 0.0])
        assert exc_info.value.dimension == 0
        with pytest.raises(OutOfDomain):
            spline.evaluate_jacobian([[0.5, 3.0]])

    def test_wrong_number_of_coordinates(self, basis_2D: TensorBasis) -> None:
        """Test points with the wrong number of coordinates are rejected."""
        spline = Bspline.zeros(basis_2D)
        with pytest.raises(ValueError, match="coordinates"):
            spline.evaluate([0.5])
