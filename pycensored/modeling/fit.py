"""
Fitting a ModelSpec to data.

    fit(spec, formula, data) -> ModelFit

Resolves the spec's engine and mode, evaluates the formula into a
ModelFrame, checks that the engine accepts the frame (strata), and
hands the frame to the engine.
"""

from __future__ import annotations

from typing import Any

import pandas as pd

from pycensored.core.compute.timing import timed
from pycensored.core.exceptions import SpecificationError
from pycensored.core.protocols import Engine
from pycensored.formula import Blueprint, model_frame, parse_formula
from pycensored.modeling import registry
from pycensored.modeling._defaults import DEFAULT_PRED_TYPE, DEFAULT_QUANTILES
from pycensored.modeling.spec import ModelSpec


class ModelFit:
    """A fitted model: the spec, the formula blueprint and the engine fit."""

    __slots__ = ('spec', 'blueprint', 'fit', 'elapsed', '_engine')

    def __init__(
        self,
        spec: ModelSpec,
        blueprint: Blueprint,
        fit: Any,
        elapsed: dict[str, float],
        engine: Engine,
    ) -> None:
        self.spec = spec
        self.blueprint = blueprint
        self.fit = fit
        self.elapsed = elapsed
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def extract_fit_engine(self) -> Any:
        """The engine's own solution object (CoxSolution, SurvregSolution)."""
        return self.fit

    def predict(
        self,
        new_data,
        type: str | None = DEFAULT_PRED_TYPE,
        *,
        eval_time=None,
        increasing: bool = True,
        quantile=DEFAULT_QUANTILES,
    ) -> pd.DataFrame:
        """Predict for new data; see pycensored.modeling.predict.predict()."""
        from pycensored.modeling.predict import predict
        return predict(
            self, new_data, type,
            eval_time=eval_time,
            increasing=increasing,
            quantile=quantile,
        )

    def summary(self) -> str:
        header = [
            f"{self.spec.model_type} ({self.spec.mode}), engine: {self.spec.engine}",
            f"Formula: {self.blueprint.formula.text}",
            f"Fit time: {self.elapsed['total_seconds']:.3f}s",
            "",
        ]
        return "\n".join(header) + self.fit.summary()

    def __repr__(self) -> str:
        return (
            f"ModelFit(model_type={self.spec.model_type!r}, "
            f"engine={self.spec.engine!r}, mode={self.spec.mode!r}, "
            f"fit={self.fit!r})"
        )


def fit(spec: ModelSpec, formula: str, data) -> ModelFit:
    """Fit a model specification.

    Parameters
    ----------
    spec : ModelSpec
        From proportional_hazards() or survival_reg().
    formula : str
        'Surv(time, event) ~ predictors [+ strata(g)]'.
    data : DataFrame or mapping of columns
        Training data, including the response columns.

    Returns
    -------
    ModelFit

    Raises
    ------
    SpecificationError
        If the engine/mode cannot be resolved or does not accept strata.
    FormulaError, ValidationError
        For bad formulas or data.
    """
    return _fit(spec, formula, data, stacklevel=3)


def _fit(spec: ModelSpec, formula: str, data, stacklevel: int) -> ModelFit:
    # stacklevel counts from this function to the user's call site
    if not isinstance(spec, ModelSpec):
        raise SpecificationError(
            f"spec must be a ModelSpec, got {type(spec).__name__}"
        )

    spec = spec.resolved()
    engine = registry.get_engine(spec.model_type, spec.engine, spec.mode)
    parsed = parse_formula(formula)

    if parsed.strata and not engine.supports_strata:
        raise SpecificationError(
            f"engine '{engine.name}' for '{spec.model_type}' does not "
            f"support strata() terms",
            model_type=spec.model_type,
            engine=spec.engine,
            mode=spec.mode,
        )

    with timed() as timer:
        with timer.section('model_frame'):
            frame = model_frame(parsed, data, stacklevel=stacklevel + 1)
        with timer.section('engine_fit'):
            solution = engine.fit(frame, spec.args, spec.engine_args)

    return ModelFit(
        spec=spec,
        blueprint=frame.blueprint,
        fit=solution,
        elapsed=timer.result(),
        engine=engine,
    )
