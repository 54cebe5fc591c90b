"""
Solution wrappers for survival engine results.

Each Solution wraps a Result[Params], exposes user-friendly properties
with R-style summary() methods, and produces array-level predictions
for new covariate rows.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pycensored.core.exceptions import DimensionError, ValidationError
from pycensored.core.result import Result
from pycensored.survival import _cox, _survreg
from pycensored.survival._common import CoxParams, SurvregParams


def _as_matrix(X, p: int) -> NDArray:
    X = np.asarray(X, dtype=np.float64)
    if X.ndim == 1:
        X = X.reshape(-1, p) if p > 0 else X.reshape(-1, 0)
    if X.ndim != 2 or X.shape[1] != p:
        raise DimensionError(
            f"X must have {p} columns to match the fitted model, "
            f"got shape {X.shape}"
        )
    return X


def _strata_codes(levels: tuple[str, ...], strata, n: int) -> NDArray:
    """Map stratum labels to the codes used at fit time."""
    if not levels:
        if strata is not None:
            raise ValidationError(
                "strata were given but the model was fitted without strata"
            )
        return np.zeros(n, dtype=np.intp)

    if strata is None:
        raise ValidationError(
            f"the model is stratified; strata labels are required "
            f"(known strata: {list(levels)})"
        )

    labels = [str(lbl) for lbl in np.asarray(strata).ravel()]
    if len(labels) != n:
        raise DimensionError(
            f"strata must have {n} elements to match X, got {len(labels)}"
        )

    lookup = {lvl: i for i, lvl in enumerate(levels)}
    unknown = sorted(set(labels) - set(lookup))
    if unknown:
        raise ValidationError(
            f"strata contain levels not seen at fit time: {unknown}"
        )
    return np.array([lookup[lbl] for lbl in labels], dtype=np.intp)


def _coef_table(names, coef, se, z, p_values, ratios=None) -> list[str]:
    lines = []
    if ratios is not None:
        lines.append(
            f"  {'':>14s}  {'coef':>10s}  {'exp(coef)':>10s}  "
            f"{'se(coef)':>10s}  {'z':>10s}  {'Pr(>|z|)':>12s}"
        )
    else:
        lines.append(
            f"  {'':>14s}  {'Value':>10s}  {'Std. Error':>10s}  "
            f"{'z':>10s}  {'p':>12s}"
        )
    for i, name in enumerate(names):
        if ratios is not None:
            lines.append(
                f"  {name:>14s}  {coef[i]:10.6f}  {ratios[i]:10.6f}  "
                f"{se[i]:10.6f}  {z[i]:10.4f}  {p_values[i]:12.4g}"
            )
        else:
            lines.append(
                f"  {name:>14s}  {coef[i]:10.6f}  {se[i]:10.6f}  "
                f"{z[i]:10.4f}  {p_values[i]:12.4g}"
            )
    return lines


class CoxSolution:
    """Cox proportional hazards solution.

    Properties mirror R's coxph() output.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[CoxParams]) -> None:
        self._result = _result

    @property
    def params(self) -> CoxParams:
        return self._result.params

    @property
    def coefficients(self):
        return self._result.params.coefficients

    @property
    def names(self) -> tuple[str, ...]:
        return self._result.info["names"]

    @property
    def hazard_ratios(self):
        return self._result.params.hazard_ratios

    @property
    def standard_errors(self):
        return self._result.params.standard_errors

    @property
    def z_statistics(self):
        return self._result.params.z_statistics

    @property
    def p_values(self):
        return self._result.params.p_values

    @property
    def loglik(self):
        return self._result.params.loglik

    @property
    def concordance(self) -> float:
        return self._result.params.concordance

    @property
    def n_events(self) -> int:
        return self._result.params.n_events

    @property
    def n_observations(self) -> int:
        return self._result.params.n_observations

    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def ties(self) -> str:
        return self._result.params.ties

    @property
    def penalty(self) -> float:
        return self._result.params.penalty

    @property
    def strata_levels(self) -> tuple[str, ...]:
        return self._result.params.strata_levels

    @property
    def baseline(self):
        """Cumulative baseline hazard per stratum, at the covariate means."""
        return self._result.params.baseline

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # -- Prediction --

    def predict_linear(self, X) -> NDArray:
        """Linear predictor x @ β on the risk scale (uncentered)."""
        X = _as_matrix(X, len(self.coefficients))
        return X @ self.coefficients

    def predict_survival(self, X, times, strata=None) -> NDArray:
        """Survival probabilities, shape (n, len(times))."""
        X = _as_matrix(X, len(self.coefficients))
        codes = _strata_codes(self.strata_levels, strata, X.shape[0])
        times = np.atleast_1d(np.asarray(times, dtype=np.float64))
        return _cox.survival_probability(self.params, X, codes, times)

    def predict_time(self, X, strata=None) -> NDArray:
        """Restricted mean survival time up to the stratum's last observed time."""
        X = _as_matrix(X, len(self.coefficients))
        codes = _strata_codes(self.strata_levels, strata, X.shape[0])
        return _cox.restricted_mean_time(self.params, X, codes)

    def summary(self) -> str:
        """R-style summary of Cox PH fit."""
        lines = []
        lines.append("Call: coxph()")
        lines.append("")
        lines.append(
            f"  n= {self.n_observations}, "
            f"number of events= {self.n_events}"
        )
        if self.strata_levels:
            lines.append(f"  strata: {', '.join(self.strata_levels)}")
        lines.append("")

        p = len(self.coefficients)
        lines.extend(_coef_table(
            self.names, self.coefficients, self.standard_errors,
            self.z_statistics, self.p_values, ratios=self.hazard_ratios,
        ))

        lines.append("")
        if self.penalty > 0:
            lines.append(f"  Ridge penalty= {self.penalty:.4g}")
        lines.append(
            f"  Concordance= {self.concordance:.4f}"
        )
        lr_stat = 2 * (self.loglik[1] - self.loglik[0])
        lines.append(
            f"  Likelihood ratio test= {lr_stat:.4f} on {p} df"
        )

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"CoxSolution(n={self.n_observations}, "
            f"events={self.n_events}, "
            f"concordance={self.concordance:.4f})"
        )


class SurvregSolution:
    """Parametric AFT solution.

    Properties mirror R's survreg() output.
    """

    __slots__ = ('_result',)

    def __init__(self, _result: Result[SurvregParams]) -> None:
        self._result = _result

    @property
    def params(self) -> SurvregParams:
        return self._result.params

    @property
    def coefficients(self):
        return self._result.params.coefficients

    @property
    def names(self) -> tuple[str, ...]:
        return self._result.info["names"]

    @property
    def standard_errors(self):
        return self._result.params.standard_errors

    @property
    def z_statistics(self):
        return self._result.params.z_statistics

    @property
    def p_values(self):
        return self._result.params.p_values

    @property
    def scale(self):
        """σ per stratum."""
        return self._result.params.scale

    @property
    def dist(self) -> str:
        return self._result.params.dist

    @property
    def loglik(self) -> float:
        return self._result.params.loglik

    @property
    def n_events(self) -> int:
        return self._result.params.n_events

    @property
    def n_observations(self) -> int:
        return self._result.params.n_observations

    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def intercept(self) -> bool:
        return self._result.params.intercept

    @property
    def strata_levels(self) -> tuple[str, ...]:
        return self._result.params.strata_levels

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def timing(self):
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # -- Prediction --

    def _design(self, X) -> NDArray:
        """Covariates as passed by the caller, with the intercept prepended."""
        p_cov = len(self.coefficients) - int(self.intercept)
        X = _as_matrix(X, p_cov)
        if self.intercept:
            X = np.column_stack([np.ones(X.shape[0]), X])
        return X

    def predict_linear(self, X) -> NDArray:
        """η = x @ β on the log-time scale."""
        return _survreg.linear_predictor(self.params, self._design(X))

    def predict_time(self, X) -> NDArray:
        """exp(η), R's predict(type='response')."""
        return _survreg.response_time(self.params, self._design(X))

    def predict_quantile(self, X, probs, strata=None) -> NDArray:
        """Survival-time quantiles, shape (n, len(probs))."""
        probs = np.atleast_1d(np.asarray(probs, dtype=np.float64))
        if np.any((probs <= 0) | (probs >= 1)):
            raise ValidationError(
                f"quantile probabilities must be in (0, 1), got {probs.tolist()}"
            )
        X = self._design(X)
        codes = _strata_codes(self.strata_levels, strata, X.shape[0])
        return _survreg.time_quantiles(self.params, X, codes, probs)

    def predict_survival(self, X, times, strata=None) -> NDArray:
        """Survival probabilities, shape (n, len(times))."""
        X = self._design(X)
        codes = _strata_codes(self.strata_levels, strata, X.shape[0])
        times = np.atleast_1d(np.asarray(times, dtype=np.float64))
        return _survreg.survival_probability(self.params, X, codes, times)

    def predict_hazard(self, X, times, strata=None) -> NDArray:
        """Hazard rates, shape (n, len(times))."""
        X = self._design(X)
        codes = _strata_codes(self.strata_levels, strata, X.shape[0])
        times = np.atleast_1d(np.asarray(times, dtype=np.float64))
        return _survreg.hazard(self.params, X, codes, times)

    def summary(self) -> str:
        """R-style summary of survreg fit."""
        lines = []
        lines.append("Call: survreg()")
        lines.append("")
        lines.extend(_coef_table(
            self.names, self.coefficients, self.standard_errors,
            self.z_statistics, self.p_values,
        ))
        lines.append("")

        if self.strata_levels:
            for lvl, s in zip(self.strata_levels, self.scale):
                lines.append(f"  Scale {lvl}= {s:.4g}")
        elif self.dist == "exponential":
            lines.append("  Scale fixed at 1")
        else:
            lines.append(f"  Scale= {self.scale[0]:.4g}")

        lines.append("")
        lines.append(f"  {self.dist.capitalize()} distribution")
        lines.append(
            f"  Loglik(model)= {self.loglik:.2f}"
        )
        lines.append(
            f"  n= {self.n_observations}, events= {self.n_events}"
        )
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"SurvregSolution(dist={self.dist}, n={self.n_observations}, "
            f"events={self.n_events}, loglik={self.loglik:.4f})"
        )
