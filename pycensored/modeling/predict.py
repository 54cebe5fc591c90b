"""
Predictions from fitted censored-regression models.

    predict(model, new_data, type="time") -> DataFrame

One output row per row of new_data, always. Scalar types produce a
single column; survival, hazard and quantile produce a '.pred' column
holding one small DataFrame per row.

    type          column               nested columns
    -----------   ------------------   ---------------------------------
    time          .pred_time
    linear_pred   .pred_linear_pred
    survival      .pred                .eval_time, .pred_survival
    hazard        .pred                .eval_time, .pred_hazard
    quantile      .pred                .quantile, .pred_quantile

Sign convention for linear_pred: with increasing=True (the default) a
larger value means a longer expected time to event, whatever the model.
Proportional hazards engines compute a risk-scale predictor, so it is
negated; AFT engines already point the right way. increasing=False
gives the opposite orientation.
"""

from __future__ import annotations

import warnings

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pycensored.core.exceptions import SpecificationError, ValidationError
from pycensored.core.validation import check_1d, check_array, check_eval_time, check_finite
from pycensored.formula import model_matrix
from pycensored.modeling._defaults import (
    DEFAULT_PRED_TYPE,
    DEFAULT_QUANTILES,
    NESTED_PRED_COLUMNS,
    PRED_TYPES,
    SCALAR_PRED_COLUMNS,
)


def predict(
    model,
    new_data,
    type: str | None = DEFAULT_PRED_TYPE,
    *,
    eval_time=None,
    increasing: bool = True,
    quantile=DEFAULT_QUANTILES,
) -> pd.DataFrame:
    """Predict from a ModelFit.

    Parameters
    ----------
    model : ModelFit
        A fitted model.
    new_data : DataFrame or mapping of columns
        Predictor (and strata) columns. Response columns are not needed.
    type : str or None
        'time' (default), 'linear_pred', 'survival', 'hazard' or 'quantile'.
    eval_time : array-like or None
        Required for 'survival' and 'hazard'; non-negative times.
    increasing : bool
        Orientation of 'linear_pred' (see module docstring).
    quantile : array-like
        Probabilities in (0, 1) for 'quantile'.

    Returns
    -------
    DataFrame with len(new_data) rows.

    Raises
    ------
    SpecificationError
        If the type is unknown or the engine cannot produce it.
    ValidationError
        For invalid eval_time, quantile or new_data.
    """
    engine = model.engine
    spec = model.spec
    type = type or DEFAULT_PRED_TYPE

    if type not in PRED_TYPES:
        raise SpecificationError(
            f"unknown prediction type '{type}'; available: {list(PRED_TYPES)}",
            model_type=spec.model_type,
            engine=spec.engine,
            mode=spec.mode,
        )
    if type not in engine.pred_types:
        raise SpecificationError(
            f"type='{type}' is not available for '{spec.model_type}' with "
            f"engine '{spec.engine}'; available: {sorted(engine.pred_types)}",
            model_type=spec.model_type,
            engine=spec.engine,
            mode=spec.mode,
        )

    kwargs = {}
    if type in ("survival", "hazard"):
        kwargs["eval_time"] = check_eval_time(eval_time)
    elif eval_time is not None:
        warnings.warn(
            f"eval_time is only used for survival and hazard predictions; "
            f"ignored for type='{type}'",
            UserWarning,
            stacklevel=2,
        )

    if type == "quantile":
        kwargs["quantile"] = _check_quantile(quantile)

    X, strata, complete = model_matrix(model.blueprint, new_data)
    raw = engine.predict(model.fit, X, strata, type, **kwargs)

    if type == "linear_pred" and bool(increasing) != engine.linear_pred_increases_with_time:
        raw = -raw

    if type in SCALAR_PRED_COLUMNS:
        return _scalar_frame(SCALAR_PRED_COLUMNS[type], raw, complete)

    index_col, value_col = NESTED_PRED_COLUMNS[type]
    grid = kwargs["quantile"] if type == "quantile" else kwargs["eval_time"]
    return _nested_frame(index_col, value_col, grid, raw, complete)


def _check_quantile(quantile) -> NDArray:
    probs = check_array(np.atleast_1d(quantile), "quantile").astype(np.float64)
    check_1d(probs, "quantile")
    check_finite(probs, "quantile")
    if probs.size == 0 or np.any((probs <= 0) | (probs >= 1)):
        raise ValidationError(
            f"quantile: probabilities must be in (0, 1), got {probs.tolist()}"
        )
    return probs


def _scalar_frame(column: str, raw: NDArray, complete: NDArray) -> pd.DataFrame:
    values = np.full(len(complete), np.nan)
    values[complete] = raw
    return pd.DataFrame({column: values})


def _nested_frame(
    index_col: str,
    value_col: str,
    grid: NDArray,
    raw: NDArray,
    complete: NDArray,
) -> pd.DataFrame:
    """One DataFrame per row; incomplete rows get NaN values."""
    nested = np.empty(len(complete), dtype=object)
    rows = iter(raw)
    missing = np.full(len(grid), np.nan)
    for i, ok in enumerate(complete):
        nested[i] = pd.DataFrame({
            index_col: grid.copy(),
            value_col: next(rows) if ok else missing.copy(),
        })
    return pd.DataFrame({".pred": nested})
