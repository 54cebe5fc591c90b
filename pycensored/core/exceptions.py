"""
Exception hierarchy for pycensored.

All exceptions inherit from PyCensoredError to allow catching any
library-specific error. Domain-specific exceptions should inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class PyCensoredError(Exception):
    """Base exception for all pycensored errors."""
    pass


class ValidationError(PyCensoredError, ValueError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks. Also a
    ValueError, so callers that only know the builtin still catch it.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class FormulaError(ValidationError):
    """
    A model formula could not be parsed or uses unsupported syntax.

    Attributes:
        formula: The offending formula string
    """

    def __init__(self, message: str, formula: str | None = None):
        super().__init__(message)
        self.formula = formula


class SpecificationError(PyCensoredError):
    """
    A model specification is not valid for the requested operation.

    Raised for unknown engines, unsupported modes, or prediction types
    an engine cannot produce.

    Attributes:
        model_type: Model type of the offending specification
        engine: Engine name, if one was set
        mode: Mode of the specification
    """

    def __init__(
        self,
        message: str,
        model_type: str | None = None,
        engine: str | None = None,
        mode: str | None = None,
    ):
        super().__init__(message)
        self.model_type = model_type
        self.engine = engine
        self.mode = mode


class NumericalError(PyCensoredError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class ConvergenceError(NumericalError):
    """
    Iterative algorithm failed to converge.

    Raised when an optimizer ends in a state that cannot be reported as
    a fit at all (non-finite likelihood, non-finite parameters).

    Attributes:
        iterations: Number of iterations completed
        final_change: Final parameter or objective change
        reason: Why convergence failed (e.g., 'max_iterations', 'non_finite')
        threshold: The convergence threshold that was not met
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        final_change: float | None = None,
        reason: str | None = None,
        threshold: float | None = None
    ):
        super().__init__(message)
        self.iterations = iterations
        self.final_change = final_change
        self.reason = reason
        self.threshold = threshold
