"""
pycensored: censored regression for Python.

Model specifications, engines and predictions for time-to-event data
where some event times are only known to exceed the follow-up time.

    from pycensored import proportional_hazards

    spec = proportional_hazards().set_engine("survival")
    model = spec.fit("Surv(time, status) ~ age + strata(sex)", data)
    model.predict(new_data, type="survival", eval_time=[100, 500])

Submodules:
    modeling: model specifications, fit and predict
    survival: array-level Cox PH and parametric AFT engines
    formula: Surv(...) ~ ... formulas with strata() terms
"""

__version__ = "0.1.0"

from pycensored.survival import Surv, coxph, survreg
from pycensored.modeling import (
    CENSORED_REGRESSION,
    ModelFit,
    ModelSpec,
    fit,
    predict,
    proportional_hazards,
    set_engine,
    set_mode,
    show_engines,
    survival_reg,
)

__all__ = [
    "__version__",
    "CENSORED_REGRESSION",
    "Surv",
    "coxph",
    "survreg",
    "ModelSpec",
    "ModelFit",
    "proportional_hazards",
    "survival_reg",
    "set_engine",
    "set_mode",
    "fit",
    "predict",
    "show_engines",
]
