"""Exceptions raised while building, fitting and evaluating B-splines."""

from __future__ import annotations

__all__ = [
    "ConfigurationSizeMismatch",
    "IllConditionedKnots",
    "InvalidConfiguration",
    "OutOfDomain",
    "SingularSystem",
    "SplineError",
]


class SplineError(ValueError):
    """Base exception for bsfit errors."""


class InvalidConfiguration(SplineError):
    """Raised when degrees, basis counts, weights or samples are malformed.

    Detected before any numerical work is done.
    """


class ConfigurationSizeMismatch(InvalidConfiguration):
    """Raised when a per-dimension option has the wrong number of entries.

    Attributes:
        option (str): Name of the offending option.
        expected (int): Number of entries required (the input dimension).
        actual (int): Number of entries received.
    """

    def __init__(self, option: str, expected: int, actual: int) -> None:
        self.option = option
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{option} must have {expected} entries (one per input dimension), got {actual}"
        )


class IllConditionedKnots(SplineError):
    """Raised when a knot vector cannot satisfy the Schoenberg-Whitney condition.

    Attributes:
        dimension (int): Input dimension whose knot vector failed.
        basis_index (int | None): First basis function left without a sample in
            its support, if known.
    """

    def __init__(self, message: str, dimension: int, basis_index: int | None = None) -> None:
        self.dimension = dimension
        self.basis_index = basis_index
        super().__init__(message)


class OutOfDomain(SplineError):
    """Raised when an evaluation point lies outside the clamped knot range.

    Attributes:
        dimension (int): Input dimension of the offending coordinate.
        domain (tuple[float, float]): Valid (start, end) range of that dimension.
    """

    def __init__(self, dimension: int, domain: tuple[float, float]) -> None:
        self.dimension = dimension
        self.domain = domain
        super().__init__(
            f"One or more points are outside the domain [{domain[0]}, {domain[1]}]"
            f" of dimension {dimension}"
        )


class SingularSystem(SplineError):
    """Raised when the fitting system is not positive definite or not invertible."""
