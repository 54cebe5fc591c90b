"""
Model specification layer for censored regression.

Public API:
    proportional_hazards(...) -> ModelSpec
    survival_reg(...) -> ModelSpec
    set_engine(spec, engine, **engine_args) -> ModelSpec
    set_mode(spec, mode) -> ModelSpec
    fit(spec, formula, data) -> ModelFit
    predict(model, new_data, type=...) -> DataFrame
"""

from pycensored.modeling.spec import (
    ModelSpec,
    proportional_hazards,
    set_engine,
    set_mode,
    survival_reg,
)
from pycensored.modeling.fit import ModelFit, fit
from pycensored.modeling.predict import predict
from pycensored.modeling.registry import register_engine, show_engines
from pycensored.modeling._defaults import CENSORED_REGRESSION

__all__ = [
    "CENSORED_REGRESSION",
    "ModelSpec",
    "ModelFit",
    "proportional_hazards",
    "survival_reg",
    "set_engine",
    "set_mode",
    "fit",
    "predict",
    "register_engine",
    "show_engines",
]
