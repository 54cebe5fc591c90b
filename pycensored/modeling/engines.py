"""
Built-in censored-regression engines.

Each engine adapts one array-level solver from pycensored.survival to the
Engine protocol: it maps main model arguments to solver arguments, fits
from a ModelFrame, and returns raw predictions for complete rows.

    model_type             engine      solver
    --------------------   ---------   ---------
    proportional_hazards   survival    coxph()
    survival_reg           survival    survreg()
"""

from __future__ import annotations

from typing import Any

from numpy.typing import NDArray

from pycensored.core.exceptions import SpecificationError
from pycensored.formula import ModelFrame
from pycensored.modeling._defaults import CENSORED_REGRESSION
from pycensored.survival.solution import CoxSolution, SurvregSolution
from pycensored.survival.solvers import coxph, survreg


def _check_engine_args(engine, engine_args: dict[str, Any]) -> None:
    unknown = sorted(set(engine_args) - set(engine.engine_arg_names))
    if unknown:
        raise SpecificationError(
            f"unknown argument(s) {unknown} for engine '{engine.name}'; "
            f"available: {sorted(engine.engine_arg_names)}",
            model_type=engine.model_type,
            engine=engine.name,
            mode=engine.mode,
        )


class CoxEngine:
    """proportional_hazards via Newton-Raphson Cox regression."""

    name = "survival"
    model_type = "proportional_hazards"
    mode = CENSORED_REGRESSION
    pred_types = frozenset({"time", "survival", "linear_pred"})
    supports_strata = True
    linear_pred_increases_with_time = False
    engine_arg_names = frozenset({"ties", "tol", "max_iter"})

    def translate(self, args: dict[str, Any], engine_args: dict[str, Any]) -> dict[str, Any]:
        _check_engine_args(self, engine_args)

        mixture = args.get("mixture")
        if mixture not in (None, 0, 0.0):
            raise SpecificationError(
                f"engine '{self.name}' only supports ridge penalties "
                f"(mixture = 0), got mixture = {mixture}",
                model_type=self.model_type,
                engine=self.name,
                mode=self.mode,
            )

        out: dict[str, Any] = {"ties": "efron"}
        if args.get("penalty") is not None:
            out["penalty"] = float(args["penalty"])
        out.update(engine_args)
        return out

    def fit(self, frame: ModelFrame, args: dict[str, Any], engine_args: dict[str, Any]) -> CoxSolution:
        return coxph(
            frame.response.time,
            frame.response.event,
            frame.X,
            strata=frame.strata,
            names=frame.blueprint.column_names,
            **self.translate(args, engine_args),
        )

    def predict(
        self,
        solution: CoxSolution,
        X: NDArray,
        strata: NDArray | None,
        type: str,
        **kwargs: Any,
    ) -> NDArray:
        if type == "linear_pred":
            return solution.predict_linear(X)
        if type == "time":
            return solution.predict_time(X, strata=strata)
        if type == "survival":
            return solution.predict_survival(X, kwargs["eval_time"], strata=strata)
        raise SpecificationError(
            f"type='{type}' is not available for engine '{self.name}'",
            model_type=self.model_type,
            engine=self.name,
            mode=self.mode,
        )


class SurvregEngine:
    """survival_reg via parametric AFT maximum likelihood."""

    name = "survival"
    model_type = "survival_reg"
    mode = CENSORED_REGRESSION
    pred_types = frozenset({"time", "quantile", "hazard", "survival", "linear_pred"})
    supports_strata = True
    linear_pred_increases_with_time = True
    engine_arg_names = frozenset({"tol", "max_iter"})

    def translate(self, args: dict[str, Any], engine_args: dict[str, Any]) -> dict[str, Any]:
        _check_engine_args(self, engine_args)
        out: dict[str, Any] = {"dist": args.get("dist") or "weibull"}
        out.update(engine_args)
        return out

    def fit(self, frame: ModelFrame, args: dict[str, Any], engine_args: dict[str, Any]) -> SurvregSolution:
        return survreg(
            frame.response.time,
            frame.response.event,
            frame.X,
            strata=frame.strata,
            intercept=frame.blueprint.intercept,
            names=frame.blueprint.column_names,
            **self.translate(args, engine_args),
        )

    def predict(
        self,
        solution: SurvregSolution,
        X: NDArray,
        strata: NDArray | None,
        type: str,
        **kwargs: Any,
    ) -> NDArray:
        if type == "linear_pred":
            return solution.predict_linear(X)
        if type == "time":
            return solution.predict_time(X)
        if type == "quantile":
            return solution.predict_quantile(X, kwargs["quantile"], strata=strata)
        if type == "survival":
            return solution.predict_survival(X, kwargs["eval_time"], strata=strata)
        if type == "hazard":
            return solution.predict_hazard(X, kwargs["eval_time"], strata=strata)
        raise SpecificationError(
            f"type='{type}' is not available for engine '{self.name}'",
            model_type=self.model_type,
            engine=self.name,
            mode=self.mode,
        )


BUILTIN_ENGINES = (CoxEngine(), SurvregEngine())
