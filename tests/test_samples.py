"""Tests for SampleTable."""

from __future__ import annotations

import numpy as np
import pytest

from bsfit.exceptions import InvalidConfiguration
from bsfit.samples import SampleTable


class TestSampleTable:
    """Test SampleTable construction and queries."""

    def test_1D_inputs(self) -> None:
        """Test 1D arrays are read as one input and one output dimension."""
        table = SampleTable([2.0, 0.0, 1.0, 1.0], [4.0, 0.0, 1.0, 1.5])
        assert table.num_samples == 4  # noqa: PLR2004
        assert len(table) == 4  # noqa: PLR2004
        assert table.dim_x == 1
        assert table.dim_y == 1
        assert table.x.shape == (4, 1)
        assert table.y.shape == (4, 1)
        np.testing.assert_array_equal(table.get_abscissas(0), [0.0, 1.0, 2.0])
        assert table.num_distinct == (3,)
        np.testing.assert_array_equal(table.domain, [[0.0, 2.0]])

    def test_2D_inputs(self) -> None:
        """Test multivariate inputs and vector outputs."""
        x = [[0.0, 5.0], [1.0, 5.0], [0.0, 7.0], [1.0, 7.0], [0.5, 6.0]]
        y = np.ones((5, 3))
        table = SampleTable(x, y)
        assert table.dim_x == 2  # noqa: PLR2004
        assert table.dim_y == 3  # noqa: PLR2004
        assert table.num_distinct == (3, 3)
        np.testing.assert_array_equal(table.get_abscissas(1), [5.0, 6.0, 7.0])
        np.testing.assert_array_equal(table.domain, [[0.0, 1.0], [5.0, 7.0]])

    def test_arrays_are_copied_read_only(self) -> None:
        """Test the table owns read-only copies of the samples."""
        x = np.array([0.0, 1.0])
        table = SampleTable(x, [1.0, 2.0])
        x[0] = 10.0
        assert table.x[0, 0] == 0.0
        with pytest.raises(ValueError, match="read-only"):
            table.y[0, 0] = 5.0

    def test_grid_complete(self) -> None:
        """Test detection of complete grids."""
        xs, ys = np.meshgrid([0.0, 1.0, 2.0], [5.0, 6.0], indexing="ij")
        grid = np.column_stack([xs.ravel(), ys.ravel()])
        assert SampleTable(grid, np.zeros(6)).is_grid_complete()
        # Repeated nodes keep the grid complete.
        assert SampleTable(np.vstack([grid, grid[:2]]), np.zeros(8)).is_grid_complete()
        assert not SampleTable(grid[:-1], np.zeros(5)).is_grid_complete()

    def test_invalid_abscissa_dimension(self) -> None:
        """Test out-of-range dimensions are rejected."""
        table = SampleTable([0.0, 1.0], [0.0, 1.0])
        with pytest.raises(IndexError):
            table.get_abscissas(1)

    @pytest.mark.parametrize(
        ("x", "y"),
        [
            ([0.0, 1.0], [0.0, 1.0, 2.0]),
            ([], []),
            ([0.0, np.nan], [0.0, 1.0]),
            ([0.0, 1.0], [0.0, np.inf]),
            (np.zeros((2, 2, 2)), np.zeros(2)),
        ],
    )
    def test_invalid(self, x: list[float], y: list[float]) -> None:
        """Test malformed tables are rejected."""
        with pytest.raises(InvalidConfiguration):
            SampleTable(x, y)

    def test_repr(self) -> None:
        """Test the string representation."""
        assert repr(SampleTable([0.0, 1.0], [0.0, 1.0])) == (
            "SampleTable(num_samples=2, dim_x=1, dim_y=1)"
        )
