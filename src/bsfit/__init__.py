"""Public API surface for bsfit.

Defines package metadata and exported interfaces.
"""

from typing import Final

# Private API imports (accessible but not in __all__)
# Users can access private functions via: bsfit._fitting_impl._function_name, etc.
from . import (
    _basis_core,  # noqa: F401
    _fitting_impl,  # noqa: F401
    _knots_impl,  # noqa: F401
)

# Public API imports
from .bspline import Bspline
from .bspline_basis_1D import BsplineBasis1D
from .exceptions import (
    ConfigurationSizeMismatch,
    IllConditionedKnots,
    InvalidConfiguration,
    OutOfDomain,
    SingularSystem,
    SplineError,
)
from .fitting import (
    BsplineBuilder,
    Smoothing,
    bspline_interpolator,
    bspline_smoother,
    create_unfitted_bspline,
    fit_bspline,
)
from .knots import (
    KnotSpacing,
    build_knot_vector,
    check_schoenberg_whitney,
    create_clamped_knot_vector,
    create_uniform_clamped_knot_vector,
)
from .samples import SampleTable
from .tensor_basis import TensorBasis
from .tolerance import (
    get_domain_tolerance,
    get_knot_tolerance,
    get_machine_epsilon,
    get_pivot_tolerance,
)

# Package metadata
__version__: Final[str] = "0.1.0"
__license__: Final[str] = "MIT"
__author__: Final[str] = "bsfit developers"

# Public interface: only functions/classes that don't start with _
__all__ = [
    "Bspline",
    "BsplineBasis1D",
    "BsplineBuilder",
    "ConfigurationSizeMismatch",
    "IllConditionedKnots",
    "InvalidConfiguration",
    "KnotSpacing",
    "OutOfDomain",
    "SampleTable",
    "SingularSystem",
    "Smoothing",
    "SplineError",
    "TensorBasis",
    "__author__",
    "__license__",
    "__version__",
    "bspline_interpolator",
    "bspline_smoother",
    "build_knot_vector",
    "check_schoenberg_whitney",
    "create_clamped_knot_vector",
    "create_unfitted_bspline",
    "create_uniform_clamped_knot_vector",
    "fit_bspline",
    "get_domain_tolerance",
    "get_knot_tolerance",
    "get_machine_epsilon",
    "get_pivot_tolerance",
]
