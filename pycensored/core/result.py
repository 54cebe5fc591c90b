"""
Generic result container for all pycensored engine fits.

Every engine (Cox PH, parametric AFT) returns its parameters inside the
same envelope, so timing, warnings and backend identification look the
same regardless of the model that produced them.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (converged, iterations, strata)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) so a fitted model cannot drift after the fact
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for an engine fit.

    Type Parameters:
        P: The engine-specific parameter payload type

    Attributes:
        params: Engine-specific parameters (coefficients, baseline hazard, ...)
        info: Structured metadata (method, convergence, strata)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the engine that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=CoxParams(...),
        ...     info={'method': 'Cox PH', 'ties': 'efron', 'n_iter': 5},
        ...     timing={'total_seconds': 0.01},
        ...     backend_name='cpu_cox'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
