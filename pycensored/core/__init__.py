"""
Core infrastructure for pycensored.

This module provides shared abstractions and utilities used by the
survival engines and the modeling layer.

Key components:
    protocols: Engine protocol
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing
"""

from pycensored.core.protocols import Engine
from pycensored.core.result import Result
from pycensored.core.exceptions import (
    PyCensoredError,
    ValidationError,
    DimensionError,
    FormulaError,
    SpecificationError,
    NumericalError,
    ConvergenceError,
)

__all__ = [
    # Protocols
    "Engine",
    # Result
    "Result",
    # Exceptions
    "PyCensoredError",
    "ValidationError",
    "DimensionError",
    "FormulaError",
    "SpecificationError",
    "NumericalError",
    "ConvergenceError",
]
