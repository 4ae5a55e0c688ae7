"""Tests for tolerance utilities."""

from __future__ import annotations

import sys
from typing import Any

import numpy as np
import pytest

from bsfit.tolerance import (
    get_domain_tolerance,
    get_knot_tolerance,
    get_machine_epsilon,
    get_pivot_tolerance,
)

tol_mod = sys.modules["bsfit.tolerance"]


class TestTolerance:
    """Test suite for tolerance utilities."""

    @pytest.mark.parametrize(
        ("dtype", "expected"),
        [
            (np.float32, 1e-7),
            ("float64", 1e-15),
            (np.dtype(np.float64), 1e-15),
        ],
    )
    def test_get_knot_tolerance(
        self, dtype: np.dtype[np.floating[Any]] | type[np.floating[Any]], expected: float
    ) -> None:
        """Test get_knot_tolerance with various dtypes."""
        assert get_knot_tolerance(dtype) == expected

    @pytest.mark.parametrize(
        ("dtype", "expected"),
        [
            (np.float32, 1e-6),
            ("float64", 1e-12),
        ],
    )
    def test_get_domain_tolerance(
        self, dtype: np.dtype[np.floating[Any]] | type[np.floating[Any]], expected: float
    ) -> None:
        """Test get_domain_tolerance with various dtypes."""
        assert get_domain_tolerance(dtype) == expected

    @pytest.mark.parametrize(
        ("dtype", "expected"),
        [
            (np.float32, 1e-6),
            ("float64", 1e-13),
        ],
    )
    def test_get_pivot_tolerance(
        self, dtype: np.dtype[np.floating[Any]] | type[np.floating[Any]], expected: float
    ) -> None:
        """Test get_pivot_tolerance with various dtypes."""
        assert get_pivot_tolerance(dtype) == expected

    def test_defaults_are_float64(self) -> None:
        """Test that the default dtype is float64."""
        assert get_knot_tolerance() == get_knot_tolerance(np.float64)
        assert get_domain_tolerance() == get_domain_tolerance(np.float64)
        assert get_pivot_tolerance() == get_pivot_tolerance(np.float64)

    @pytest.mark.parametrize("dtype", [np.float32, "float64"])
    def test_get_machine_epsilon(
        self, dtype: np.dtype[np.floating[Any]] | type[np.floating[Any]]
    ) -> None:
        """Test get_machine_epsilon against np.finfo."""
        assert get_machine_epsilon(dtype) == np.finfo(dtype).eps

    def test_invalid_dtype_raises_error(self) -> None:
        """Test that an unsupported dtype raises a ValueError."""
        with pytest.raises(ValueError, match="Unsupported dtype"):
            get_knot_tolerance(np.int32)
        with pytest.raises(ValueError, match="Unsupported dtype"):
            get_domain_tolerance("int64")
        with pytest.raises(ValueError, match="Unsupported dtype"):
            get_pivot_tolerance(np.float16)
        with pytest.raises(ValueError, match="Unsupported dtype"):
            get_machine_epsilon(np.complex64)

    def test_presets_are_looser_in_single_precision(self) -> None:
        """Every float32 preset is at least as loose as its float64 counterpart."""
        for preset in tol_mod._TOLERANCE_PRESETS.values():
            assert preset.float32 >= preset.float64
