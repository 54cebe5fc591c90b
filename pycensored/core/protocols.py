"""
Core protocols for pycensored.

These define structural interfaces that engine implementations must
satisfy. We use Protocol (structural typing) rather than ABC (nominal
typing) so an engine only has to look right, not inherit from anything.

Design Principles:
    - Minimal contracts: prescribe only what the modeling layer calls
    - Capability-driven: engines declare pred_types and strata support
      instead of raising deep inside a fit
"""

from __future__ import annotations

from typing import Protocol, Any, runtime_checkable

from numpy.typing import NDArray


@runtime_checkable
class Engine(Protocol):
    """
    Protocol for a model-fitting engine.

    An engine fits one model type in one mode from a model frame and
    produces raw numeric predictions. Formatting those predictions into
    data frames, and orienting the linear predictor, is the modeling
    layer's job, not the engine's.
    """

    @property
    def name(self) -> str:
        """Engine identifier, e.g. 'survival'."""
        ...

    @property
    def model_type(self) -> str:
        """Model type this engine fits, e.g. 'proportional_hazards'."""
        ...

    @property
    def mode(self) -> str:
        """Mode this engine fits, e.g. 'censored regression'."""
        ...

    @property
    def pred_types(self) -> frozenset[str]:
        """Prediction types the engine can produce."""
        ...

    @property
    def supports_strata(self) -> bool:
        """Whether strata() terms are accepted."""
        ...

    @property
    def linear_pred_increases_with_time(self) -> bool:
        """
        Orientation of the engine's native linear predictor.

        True when a larger value means a longer time to event (AFT models),
        False when it means a higher risk (proportional hazards).
        """
        ...

    def translate(self, args: dict[str, Any], engine_args: dict[str, Any]) -> dict[str, Any]:
        """Map main model arguments to the engine's fit arguments."""
        ...

    def fit(self, frame: Any, args: dict[str, Any], engine_args: dict[str, Any]) -> Any:
        """
        Fit the model.

        Args:
            frame: ModelFrame with response, covariates and strata
            args: Main model arguments (engine-independent names)
            engine_args: Engine-specific arguments passed via set_engine()

        Returns:
            Engine solution object
        """
        ...

    def predict(
        self,
        solution: Any,
        X: NDArray,
        strata: NDArray | None,
        type: str,
        **kwargs: Any,
    ) -> NDArray:
        """
        Raw predictions for complete rows.

        Returns:
            (n,) array for 'time' and 'linear_pred', (n, m) array for
            'survival', 'hazard' and 'quantile'
        """
        ...
