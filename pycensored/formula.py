"""
Model formulas for censored regression.

    Surv(time, status) ~ age + sex + strata(site)

The left-hand side names the follow-up time and event columns. The
right-hand side is a '+'-separated list of predictors. Supported terms:

    name            a column (numeric, boolean or categorical)
    .               every column not used elsewhere in the formula
    strata(a, b)    stratification variables; not covariates
    1 / 0           keep / drop the intercept
    - term          remove a term ('- 1' drops the intercept)

Stratification is written on the right-hand side because the response
is only evaluated when fitting. Prediction builds its matrix from the
right-hand side alone, so new data never needs outcome columns.

Categorical columns are expanded to treatment-contrast dummies named
'<var><level>', with the first level as reference. The Blueprint built
at fit time stores those levels, so new data is encoded identically.
"""

from __future__ import annotations

import re
import warnings
from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from pycensored.core.exceptions import FormulaError, ValidationError
from pycensored.survival.surv import Surv

_NAME = re.compile(r"^[A-Za-z_.][A-Za-z0-9_.]*$")
_SURV = re.compile(r"^Surv\s*\((?P<args>.*)\)$", re.DOTALL)
_STRATA = re.compile(r"^strata\s*\((?P<args>.*)\)$", re.DOTALL)


@dataclass(frozen=True)
class Formula:
    """Parsed censored-regression formula."""

    text: str
    time: str
    event: str | None
    terms: tuple[str, ...]          # predictor names in order, '.' unexpanded
    removed: tuple[str, ...]        # names removed with '-'
    strata: tuple[str, ...]         # variables inside strata()
    intercept: bool

    @property
    def response_columns(self) -> tuple[str, ...]:
        return (self.time,) if self.event is None else (self.time, self.event)


@dataclass(frozen=True)
class Blueprint:
    """Everything needed to rebuild the model matrix for new data."""

    formula: Formula
    predictors: tuple[str, ...]
    factor_levels: tuple[tuple[str, tuple[str, ...]], ...]
    column_names: tuple[str, ...]
    strata: tuple[str, ...]
    strata_levels: tuple[str, ...]

    @property
    def intercept(self) -> bool:
        return self.formula.intercept

    @property
    def levels(self) -> dict[str, tuple[str, ...]]:
        return dict(self.factor_levels)


@dataclass(frozen=True)
class ModelFrame:
    """Response, covariates and strata for the complete rows of a data set."""

    response: Surv
    X: NDArray
    strata: NDArray | None
    blueprint: Blueprint
    n_dropped: int


# ── Parsing ───────────────────────────────────────────────────────────


def parse_formula(formula: str) -> Formula:
    """Parse 'Surv(time, event) ~ rhs'.

    Raises
    ------
    FormulaError
        For anything outside the supported syntax.
    """
    if not isinstance(formula, str):
        raise FormulaError(
            f"formula must be a string, got {type(formula).__name__}"
        )

    parts = formula.split("~")
    if len(parts) != 2:
        raise FormulaError(
            f"formula must contain exactly one '~': {formula!r}", formula
        )
    lhs, rhs = parts[0].strip(), parts[1].strip()

    time_col, event_col = _parse_response(lhs, formula)

    if not rhs:
        raise FormulaError(
            f"formula has an empty right-hand side: {formula!r}", formula
        )

    terms: list[str] = []
    removed: list[str] = []
    strata: list[str] = []
    intercept = True

    for sign, term in _split_terms(rhs, formula):
        m = _STRATA.match(term)
        if m:
            if sign == "-":
                raise FormulaError(
                    f"strata() terms cannot be removed: {formula!r}", formula
                )
            strata.extend(_split_names(m.group("args"), "strata()", formula))
        elif term in ("0", "1"):
            keep = (term == "1") == (sign == "+")
            intercept = keep
        elif term == ".":
            if sign == "-":
                raise FormulaError(f"'- .' is not supported: {formula!r}", formula)
            terms.append(".")
        elif _NAME.match(term):
            (terms if sign == "+" else removed).append(term)
        else:
            raise FormulaError(
                f"unsupported term {term!r} in formula {formula!r}; "
                f"use column names, '.', strata(), 1 or 0",
                formula,
            )

    overlap = set(strata) & (set(terms) - {"."})
    if overlap:
        raise FormulaError(
            f"variables {sorted(overlap)} appear both as predictors and in strata()",
            formula,
        )

    return Formula(
        text=formula,
        time=time_col,
        event=event_col,
        terms=tuple(terms),
        removed=tuple(removed),
        strata=tuple(dict.fromkeys(strata)),
        intercept=intercept,
    )


def _parse_response(lhs: str, formula: str) -> tuple[str, str | None]:
    m = _SURV.match(lhs)
    if not m:
        raise FormulaError(
            f"left-hand side must be Surv(time, event), got {lhs!r}", formula
        )
    names = _split_names(m.group("args"), "Surv()", formula)
    if len(names) not in (1, 2):
        raise FormulaError(
            f"Surv() takes one or two columns, got {len(names)}", formula
        )
    return names[0], (names[1] if len(names) == 2 else None)


def _split_names(args: str, where: str, formula: str) -> list[str]:
    names = [a.strip() for a in args.split(",")]
    for name in names:
        if not _NAME.match(name):
            raise FormulaError(
                f"{where} arguments must be column names, got {name!r}", formula
            )
    return names


def _split_terms(rhs: str, formula: str) -> list[tuple[str, str]]:
    """Split on top-level '+' and '-' into (sign, term) pairs."""
    out: list[tuple[str, str]] = []
    depth = 0
    sign = "+"
    current: list[str] = []

    for ch in rhs:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise FormulaError(f"unbalanced parentheses: {formula!r}", formula)
        if ch in "+-" and depth == 0:
            term = "".join(current).strip()
            if term:
                out.append((sign, term))
            elif out:
                raise FormulaError(f"empty term in formula {formula!r}", formula)
            sign = ch
            current = []
        else:
            current.append(ch)

    if depth != 0:
        raise FormulaError(f"unbalanced parentheses: {formula!r}", formula)

    term = "".join(current).strip()
    if not term:
        raise FormulaError(f"formula ends with an operator: {formula!r}", formula)
    out.append((sign, term))
    return out


# ── Model frames ──────────────────────────────────────────────────────


def as_dataframe(data) -> pd.DataFrame:
    """Accept a DataFrame or a mapping of equal-length columns."""
    if isinstance(data, pd.DataFrame):
        return data
    if isinstance(data, Mapping):
        try:
            return pd.DataFrame(dict(data))
        except ValueError as e:
            raise ValidationError(f"data: cannot build a data frame: {e}") from e
    raise ValidationError(
        f"data must be a pandas DataFrame or a mapping of columns, "
        f"got {type(data).__name__}"
    )


def model_frame(formula: str | Formula, data, stacklevel: int = 2) -> ModelFrame:
    """Evaluate a formula against training data.

    Rows with missing values in any used column are dropped with a
    UserWarning, attributed `stacklevel` frames up from this function.
    """
    f = formula if isinstance(formula, Formula) else parse_formula(formula)
    df = as_dataframe(data)

    predictors = _resolve_predictors(f, df)
    used = list(f.response_columns) + list(predictors) + list(f.strata)
    _require_columns(df, used, "data")

    complete = df[used].notna().all(axis=1).to_numpy()
    n_dropped = int(np.sum(~complete))
    if n_dropped:
        warnings.warn(
            f"{n_dropped} row(s) with missing values removed before fitting",
            UserWarning,
            stacklevel=stacklevel,
        )
        df = df.loc[complete]

    if len(df) == 0:
        raise ValidationError("data: no complete rows to fit")

    response = Surv(
        df[f.time].to_numpy(),
        None if f.event is None else df[f.event].to_numpy(),
    )

    factor_levels = []
    for var in predictors:
        if _is_factor(df[var]):
            factor_levels.append((var, _factor_levels(df[var])))

    strata_labels = _strata_labels(df, f.strata) if f.strata else None
    strata_levels = (
        tuple(sorted({str(lbl) for lbl in strata_labels}))
        if strata_labels is not None else ()
    )

    column_names: list[str] = []
    levels = dict(factor_levels)
    for var in predictors:
        if var in levels:
            column_names.extend(f"{var}{lvl}" for lvl in levels[var][1:])
        else:
            column_names.append(var)

    blueprint = Blueprint(
        formula=f,
        predictors=predictors,
        factor_levels=tuple(factor_levels),
        column_names=tuple(column_names),
        strata=f.strata,
        strata_levels=strata_levels,
    )

    return ModelFrame(
        response=response,
        X=_encode(df, blueprint),
        strata=strata_labels,
        blueprint=blueprint,
        n_dropped=n_dropped,
    )


def model_matrix(
    blueprint: Blueprint,
    new_data,
) -> tuple[NDArray, NDArray | None, NDArray]:
    """Rebuild covariates and strata for new data.

    Only predictor and strata columns are read; response columns may be
    absent. Rows with missing values are excluded from the returned
    matrix and flagged in the mask.

    Returns
    -------
    (X, strata, complete)
        X : (n_complete, p) covariates
        strata : (n_complete,) labels, or None when unstratified
        complete : (n,) bool mask of rows that X covers
    """
    df = as_dataframe(new_data)
    used = list(blueprint.predictors) + list(blueprint.strata)
    _require_columns(df, used, "new_data")

    if used:
        complete = df[used].notna().all(axis=1).to_numpy()
    else:
        complete = np.ones(len(df), dtype=bool)
    df = df.loc[complete]

    X = _encode(df, blueprint)
    strata = _strata_labels(df, blueprint.strata) if blueprint.strata else None

    if strata is not None:
        unknown = sorted(set(strata) - set(blueprint.strata_levels))
        if unknown:
            raise ValidationError(
                f"new_data: strata levels not seen when fitting: {unknown}"
            )

    return X, strata, complete


def _resolve_predictors(f: Formula, df: pd.DataFrame) -> tuple[str, ...]:
    taken = set(f.response_columns) | set(f.strata) | set(f.removed)
    explicit = {t for t in f.terms if t != "."}
    out: list[str] = []
    for term in f.terms:
        if term == ".":
            out.extend(
                str(c) for c in df.columns
                if c not in taken and c not in explicit
            )
        else:
            out.append(term)
    removed = set(f.removed)
    return tuple(dict.fromkeys(v for v in out if v not in removed))


def _require_columns(df: pd.DataFrame, columns, where: str) -> None:
    missing = [c for c in dict.fromkeys(columns) if c not in df.columns]
    if missing:
        raise ValidationError(f"{where}: missing columns {missing}")


def _is_factor(series: pd.Series) -> bool:
    return not (
        pd.api.types.is_bool_dtype(series) or pd.api.types.is_numeric_dtype(series)
    )


def _label(value) -> str:
    """Label one value; integral floats print without a trailing '.0'."""
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value)


def _labels(series: pd.Series) -> pd.Series:
    """String labels, each value labelled on its own."""
    return pd.Series(
        [_label(v) for v in series], index=series.index, dtype=object
    )


def _factor_levels(series: pd.Series) -> tuple[str, ...]:
    if isinstance(series.dtype, pd.CategoricalDtype):
        present = set(_labels(series))
        return tuple(
            _label(c) for c in series.cat.categories if _label(c) in present
        )
    return tuple(sorted(set(_labels(series))))


def _strata_labels(df: pd.DataFrame, variables: tuple[str, ...]) -> NDArray:
    """R-style strata labels: 'a=x' or 'a=x, b=y'."""
    parts = [var + "=" + _labels(df[var]) for var in variables]
    combined = parts[0]
    for part in parts[1:]:
        combined = combined + ", " + part
    return np.array([str(lbl) for lbl in combined], dtype=object)


def _encode(df: pd.DataFrame, blueprint: Blueprint) -> NDArray:
    levels = blueprint.levels
    columns: list[NDArray] = []

    for var in blueprint.predictors:
        series = df[var]
        if var in levels:
            labels = _labels(series).to_numpy()
            unknown = sorted(set(labels) - set(levels[var]))
            if unknown:
                raise ValidationError(
                    f"column '{var}' has levels not seen when fitting: {unknown}"
                )
            for lvl in levels[var][1:]:
                columns.append((labels == lvl).astype(np.float64))
        else:
            if _is_factor(series):
                raise ValidationError(
                    f"column '{var}' was numeric when fitting but is "
                    f"{series.dtype} in new data"
                )
            columns.append(series.to_numpy(dtype=np.float64))

    if not columns:
        return np.zeros((len(df), 0), dtype=np.float64)
    return np.column_stack(columns)
