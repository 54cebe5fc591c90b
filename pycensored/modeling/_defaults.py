"""
Defaults for model specifications and predictions.

This module is the SINGLE SOURCE OF TRUTH for mode names, default
engines and prediction-type names. Import from here, never use raw
strings.
"""

CENSORED_REGRESSION = "censored regression"

# Mode of a spec that has not been told its mode yet
UNKNOWN_MODE = "unknown"

# Modes each model type can be fitted in
MODEL_MODES: dict[str, tuple[str, ...]] = {
    "proportional_hazards": (CENSORED_REGRESSION,),
    "survival_reg": (CENSORED_REGRESSION,),
}

DEFAULT_ENGINES: dict[str, str] = {
    "proportional_hazards": "survival",
    "survival_reg": "survival",
}

# Prediction type -> output column for types with one value per row
SCALAR_PRED_COLUMNS: dict[str, str] = {
    "time": ".pred_time",
    "linear_pred": ".pred_linear_pred",
}

# Prediction type -> (index column, value column) of the nested frames
NESTED_PRED_COLUMNS: dict[str, tuple[str, str]] = {
    "survival": (".eval_time", ".pred_survival"),
    "hazard": (".eval_time", ".pred_hazard"),
    "quantile": (".quantile", ".pred_quantile"),
}

PRED_TYPES: tuple[str, ...] = ("time", "linear_pred", "survival", "hazard", "quantile")

DEFAULT_PRED_TYPE = "time"

DEFAULT_QUANTILES: tuple[float, ...] = (0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9)
