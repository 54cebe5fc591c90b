"""
Parameter payloads for survival engine results.

Each dataclass is a frozen payload carried inside a Result[P] envelope.
"""

from __future__ import annotations

from dataclasses import dataclass

from numpy.typing import NDArray


@dataclass(frozen=True)
class BaselineHazard:
    """Cumulative baseline hazard of one stratum.

    Evaluated at the covariate means, like R's survfit.coxph().
    """

    time: NDArray                # (m,) distinct event times in the stratum
    cumhaz: NDArray              # (m,) H0(t) just after each event time
    max_time: float              # last observed time (event or censored)


@dataclass(frozen=True)
class CoxParams:
    """Cox proportional hazards model parameters.

    Matches the output of R's survival::coxph().
    """

    coefficients: NDArray        # (p,) log hazard ratios
    hazard_ratios: NDArray       # (p,) exp(coef)
    standard_errors: NDArray     # (p,) from observed information matrix
    z_statistics: NDArray        # (p,) coef / se
    p_values: NDArray            # (p,) two-sided Wald test
    loglik: tuple[float, float]  # (null log-lik, model log-lik)
    concordance: float           # Harrell's C-statistic, within strata
    n_events: int
    n_observations: int
    n_iter: int                  # Newton-Raphson iterations
    converged: bool
    ties: str                    # "efron" or "breslow"
    penalty: float               # ridge penalty (0 = unpenalized)
    means: NDArray               # (p,) covariate means used for centering
    baseline: tuple[BaselineHazard, ...]  # one per stratum
    strata_levels: tuple[str, ...]        # empty when unstratified


@dataclass(frozen=True)
class SurvregParams:
    """Parametric accelerated failure time model parameters.

    Matches the output of R's survival::survreg().
    """

    coefficients: NDArray        # (p,) location coefficients (log-time scale)
    standard_errors: NDArray     # (p,)
    z_statistics: NDArray        # (p,)
    p_values: NDArray            # (p,)
    scale: NDArray               # (k,) sigma per stratum (1 for exponential)
    log_scale_se: NDArray        # (k,) SE of log(sigma), NaN when fixed
    dist: str                    # "weibull", "exponential", "lognormal", "loglogistic"
    loglik: float                # log-likelihood on the time scale
    n_events: int
    n_observations: int
    n_iter: int
    converged: bool
    intercept: bool              # first coefficient is an intercept
    strata_levels: tuple[str, ...]
