"""
Error distributions for accelerated failure time models.

An AFT model writes log T = η + σW, where W follows a standard
location-scale distribution. Each class here supplies W's log density,
log survival, score and hazard on the standardized scale
z = (log t - η) / σ, plus its quantile function.

    R dist        W                 fixed σ
    ----------    --------------    -------
    weibull       extreme value     no
    exponential   extreme value     1
    lognormal     normal            no
    loglogistic   logistic          no
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy import special
from scipy import stats


class ExtremeValue:
    """Minimum extreme value distribution: S(z) = exp(-e^z)."""

    name = "extreme"

    def logpdf(self, z: NDArray) -> NDArray:
        return z - np.exp(z)

    def logsf(self, z: NDArray) -> NDArray:
        return -np.exp(z)

    def dlogpdf(self, z: NDArray) -> NDArray:
        return 1.0 - np.exp(z)

    def hazard(self, z: NDArray) -> NDArray:
        return np.exp(z)

    def log_hazard(self, z: NDArray) -> NDArray:
        return z

    def quantile(self, p: NDArray) -> NDArray:
        return np.log(-np.log1p(-p))

    def hazard_at_zero(self, eta: NDArray, sigma: NDArray) -> NDArray:
        # h(t) = exp(-η/σ) t^(1/σ - 1) / σ as t -> 0
        return _power_law_limit(eta, sigma)


class Normal:
    """Standard normal distribution."""

    name = "gaussian"

    def logpdf(self, z: NDArray) -> NDArray:
        return stats.norm.logpdf(z)

    def logsf(self, z: NDArray) -> NDArray:
        return stats.norm.logsf(z)

    def dlogpdf(self, z: NDArray) -> NDArray:
        return -z

    def hazard(self, z: NDArray) -> NDArray:
        return np.exp(self.log_hazard(z))

    def log_hazard(self, z: NDArray) -> NDArray:
        return stats.norm.logpdf(z) - stats.norm.logsf(z)

    def quantile(self, p: NDArray) -> NDArray:
        return stats.norm.ppf(p)

    def hazard_at_zero(self, eta: NDArray, sigma: NDArray) -> NDArray:
        return np.zeros(np.broadcast(eta, sigma).shape, dtype=np.float64)


class Logistic:
    """Standard logistic distribution."""

    name = "logistic"

    def logpdf(self, z: NDArray) -> NDArray:
        return z - 2.0 * np.logaddexp(0.0, z)

    def logsf(self, z: NDArray) -> NDArray:
        return -np.logaddexp(0.0, z)

    def dlogpdf(self, z: NDArray) -> NDArray:
        return 1.0 - 2.0 * special.expit(z)

    def hazard(self, z: NDArray) -> NDArray:
        return special.expit(z)

    def log_hazard(self, z: NDArray) -> NDArray:
        return -np.logaddexp(0.0, -z)

    def quantile(self, p: NDArray) -> NDArray:
        return special.logit(p)

    def hazard_at_zero(self, eta: NDArray, sigma: NDArray) -> NDArray:
        # expit(z) ~ e^z as z -> -inf, same limit as the extreme value case
        return _power_law_limit(eta, sigma)


def _power_law_limit(eta: NDArray, sigma: NDArray) -> NDArray:
    """Limit of exp(-η/σ) t^(1/σ - 1) / σ as t -> 0."""
    eta, sigma = np.broadcast_arrays(
        np.asarray(eta, dtype=np.float64), np.asarray(sigma, dtype=np.float64)
    )
    out = np.where(sigma < 1.0, 0.0, np.inf)
    unit = np.isclose(sigma, 1.0, rtol=0.0, atol=1e-12)
    return np.where(unit, np.exp(-eta / sigma) / sigma, out)


# dist name -> (standard distribution, fixed scale or None)
DISTRIBUTIONS: dict[str, tuple[object, float | None]] = {
    "weibull": (ExtremeValue(), None),
    "exponential": (ExtremeValue(), 1.0),
    "lognormal": (Normal(), None),
    "loglogistic": (Logistic(), None),
}
