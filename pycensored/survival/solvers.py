"""
Public API for survival engines.

    coxph(time, event, X) → CoxSolution
    survreg(time, event, X, dist=...) → SurvregSolution

Each function validates inputs, creates a SurvivalDesign, runs the fit,
and wraps the Result in a Solution. These are the array-level engines;
the formula and model-specification layers sit on top of them.
"""

from __future__ import annotations

import warnings
from typing import Literal

import numpy as np

from pycensored.core.exceptions import ValidationError
from pycensored.core.result import Result
from pycensored.core.compute.timing import Timer
from pycensored.core.validation import check_column_rank
from pycensored.survival.design import SurvivalDesign
from pycensored.survival._cox import cox_fit
from pycensored.survival._distributions import DISTRIBUTIONS
from pycensored.survival._survreg import survreg_fit
from pycensored.survival.solution import CoxSolution, SurvregSolution


def _coef_names(names, p: int) -> tuple[str, ...]:
    if names is None:
        return tuple(f"x{i}" for i in range(p))
    names = tuple(str(nm) for nm in names)
    if len(names) != p:
        raise ValidationError(
            f"names must have {p} entries to match X, got {len(names)}"
        )
    return names


def coxph(
    time,
    event,
    X,
    *,
    strata=None,
    ties: Literal["efron", "breslow"] = "efron",
    penalty: float = 0.0,
    tol: float = 1e-9,
    max_iter: int = 20,
    names=None,
) -> CoxSolution:
    """Cox proportional hazards model.

    Matches R's survival::coxph(Surv(time, event) ~ X + strata(g)).

    Parameters
    ----------
    time : array-like
        Time to event or censoring.
    event : array-like
        Event indicator (1=event, 0=censored).
    X : array-like
        Covariate matrix (n, p). No intercept: Cox model has no intercept.
        A matrix with zero columns fits the null model.
    strata : array-like or None
        Strata labels. Each stratum gets its own baseline hazard.
    ties : str
        Method for handling tied event times: "efron" (default) or "breslow".
    penalty : float
        Ridge penalty on the coefficients (0 = none).
    tol : float
        Convergence tolerance for Newton-Raphson.
    max_iter : int
        Maximum Newton-Raphson iterations.
    names : sequence of str or None
        Coefficient names for summary(); defaults to x0, x1, ...

    Returns
    -------
    CoxSolution
    """
    if X is None:
        raise ValidationError("X (covariates) is required for coxph()")

    design = SurvivalDesign.for_survival(time, event, X, strata=strata)

    if ties not in ("efron", "breslow"):
        raise ValidationError(
            f"ties must be 'efron' or 'breslow', got '{ties}'"
        )

    if penalty < 0 or not np.isfinite(penalty):
        raise ValidationError(
            f"penalty must be a finite non-negative number, got {penalty}"
        )

    if penalty == 0:
        check_column_rank(design.X, "X")

    coef_names = _coef_names(names, design.p)

    timer = Timer()
    timer.start()

    with timer.section('newton_raphson'):
        params = cox_fit(
            design.time, design.event, design.X,
            strata=design.strata,
            strata_levels=design.strata_levels,
            ties=ties,
            tol=tol,
            max_iter=max_iter,
            penalty=float(penalty),
        )

    timer.stop()

    warnings_list = []
    if not params.converged:
        msg = f"Newton-Raphson did not converge in {max_iter} iterations"
        warnings.warn(msg, RuntimeWarning, stacklevel=2)
        warnings_list.append(msg)

    result = Result(
        params=params,
        info={
            "method": "Cox PH",
            "ties": ties,
            "n_iter": params.n_iter,
            "n_strata": design.n_strata,
            "names": coef_names,
        },
        timing=timer.result(),
        backend_name="cpu_cox",
        warnings=tuple(warnings_list),
    )

    return CoxSolution(_result=result)


def survreg(
    time,
    event,
    X=None,
    *,
    dist: Literal["weibull", "exponential", "lognormal", "loglogistic"] = "weibull",
    strata=None,
    intercept: bool = True,
    tol: float = 1e-9,
    max_iter: int = 200,
    names=None,
) -> SurvregSolution:
    """Parametric accelerated failure time regression.

    Matches R's survival::survreg(Surv(time, event) ~ X + strata(g), dist=).

    Parameters
    ----------
    time : array-like
        Time to event or censoring. Must be strictly positive.
    event : array-like
        Event indicator (1=event, 0=censored).
    X : array-like or None
        Covariate matrix (n, p), without intercept. None fits an
        intercept-only model.
    dist : str
        "weibull" (default), "exponential", "lognormal" or "loglogistic".
    strata : array-like or None
        Strata labels. Each stratum gets its own scale parameter.
    intercept : bool
        Prepend an intercept column (default True).
    tol : float
        Optimizer tolerance.
    max_iter : int
        Maximum optimizer iterations.
    names : sequence of str or None
        Covariate names for summary(), excluding the intercept.

    Returns
    -------
    SurvregSolution
    """
    design = SurvivalDesign.for_survival(time, event, X, strata=strata)

    if dist not in DISTRIBUTIONS:
        raise ValidationError(
            f"dist must be one of {sorted(DISTRIBUTIONS)}, got '{dist}'"
        )

    if np.any(design.time <= 0):
        raise ValidationError(
            f"time must be strictly positive for dist='{dist}'"
        )

    if design.strata is not None and DISTRIBUTIONS[dist][1] is not None:
        raise ValidationError(
            f"strata cannot be used with dist='{dist}': its scale is fixed"
        )

    X_cov = design.X if design.X is not None else np.zeros((design.n, 0))
    coef_names = _coef_names(names, X_cov.shape[1])
    if intercept:
        X_full = np.column_stack([np.ones(design.n), X_cov])
        coef_names = ("(Intercept)",) + coef_names
    else:
        X_full = X_cov

    check_column_rank(X_full, "X")

    timer = Timer()
    timer.start()

    with timer.section('optimizer'):
        params = survreg_fit(
            design.time, design.event, X_full,
            dist=dist,
            strata=design.strata,
            strata_levels=design.strata_levels,
            intercept=intercept,
            tol=tol,
            max_iter=max_iter,
        )

    timer.stop()

    warnings_list = []
    if not params.converged:
        msg = f"survreg optimizer did not converge after {params.n_iter} iterations"
        warnings.warn(msg, RuntimeWarning, stacklevel=2)
        warnings_list.append(msg)

    result = Result(
        params=params,
        info={
            "method": "Parametric AFT",
            "dist": dist,
            "n_iter": params.n_iter,
            "n_strata": design.n_strata,
            "names": coef_names,
        },
        timing=timer.result(),
        backend_name="cpu_survreg",
        warnings=tuple(warnings_list),
    )

    return SurvregSolution(_result=result)
