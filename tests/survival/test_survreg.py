"""
Tests for survreg() matching R survival::survreg().

Closed-form maximum likelihood solutions are used where they exist:

    exponential, intercept only:  exp(b0) = sum(t) / d
                                  loglik  = d * log(d / sum(t)) - d
    lognormal, no censoring:      b0 = mean(log t), scale = MLE SD of log t

R reference code:
    library(survival)
    survreg(Surv(time, event) ~ x, dist="exponential")
    survreg(Surv(time, event) ~ x + strata(g), dist="lognormal")
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pycensored.core.exceptions import ValidationError
from pycensored.survival import survreg, SurvregSolution


TIME = np.array([2.0, 3.5, 1.2, 8.0, 5.5, 4.1, 9.3, 0.7, 6.6, 3.3])
EVENT = np.array([1, 1, 0, 1, 0, 1, 1, 1, 0, 1], dtype=np.float64)
GROUP = np.array([0, 0, 0, 0, 0, 1, 1, 1, 1, 1], dtype=np.float64)


def _weibull_sample(rng, n=1000, beta=(1.0, 0.5), sigma=0.5):
    x = rng.standard_normal(n)
    w = np.log(rng.exponential(1.0, n))  # standard minimum extreme value
    t_event = np.exp(beta[0] + beta[1] * x + sigma * w)
    t_cens = rng.uniform(1.0, 20.0, n)
    time = np.minimum(t_event, t_cens)
    event = (t_event <= t_cens).astype(np.float64)
    return time, event, x.reshape(-1, 1)


class TestExponential:

    def test_intercept_only_closed_form(self):
        result = survreg(TIME, EVENT, dist="exponential")
        d = EVENT.sum()
        assert isinstance(result, SurvregSolution)
        assert result.names == ("(Intercept)",)
        assert_allclose(result.coefficients, [np.log(TIME.sum() / d)], rtol=1e-6)
        assert_allclose(result.loglik, d * np.log(d / TIME.sum()) - d, rtol=1e-6)
        assert_allclose(result.scale, [1.0])

    def test_binary_group_closed_form(self):
        result = survreg(TIME, EVENT, GROUP, dist="exponential")
        rate0 = TIME[GROUP == 0].sum() / EVENT[GROUP == 0].sum()
        rate1 = TIME[GROUP == 1].sum() / EVENT[GROUP == 1].sum()
        assert_allclose(
            result.coefficients,
            [np.log(rate0), np.log(rate1) - np.log(rate0)],
            rtol=1e-5,
        )

    def test_constant_hazard(self):
        result = survreg(TIME, EVENT, dist="exponential")
        eta = result.coefficients[0]
        hz = result.predict_hazard(np.zeros((1, 0)), [0.0, 1.0, 5.0])
        assert_allclose(hz, np.full((1, 3), np.exp(-eta)), rtol=1e-8)

    def test_strata_rejected(self):
        with pytest.raises(ValidationError, match="scale is fixed"):
            survreg(TIME, EVENT, dist="exponential", strata=GROUP)


class TestLognormal:

    def test_uncensored_closed_form(self):
        y = np.log(TIME)
        result = survreg(TIME, np.ones(10), dist="lognormal")
        assert_allclose(result.coefficients, [y.mean()], rtol=1e-5)
        assert_allclose(result.scale, [y.std()], rtol=1e-5)

    def test_stratified_scales(self):
        """Group-specific location and scale: each σ is its group's MLE SD."""
        y = np.log(TIME)
        result = survreg(TIME, np.ones(10), GROUP, dist="lognormal",
                         strata=GROUP)
        assert result.strata_levels == ("0.0", "1.0")
        assert_allclose(
            result.scale,
            [y[GROUP == 0].std(), y[GROUP == 1].std()],
            rtol=1e-4,
        )
        assert_allclose(
            result.coefficients,
            [y[GROUP == 0].mean(), y[GROUP == 1].mean() - y[GROUP == 0].mean()],
            rtol=1e-4, atol=1e-6,
        )

    def test_hazard_zero_at_origin(self):
        result = survreg(TIME, EVENT, dist="lognormal")
        hz = result.predict_hazard(np.zeros((2, 0)), [0.0, 2.0])
        assert_allclose(hz[:, 0], 0.0)
        assert np.all(hz[:, 1] > 0)


class TestWeibull:

    def test_recovers_parameters(self, rng):
        time, event, x = _weibull_sample(rng)
        result = survreg(time, event, x)
        assert result.dist == "weibull"
        assert result.converged
        assert_allclose(result.coefficients, [1.0, 0.5], atol=0.1)
        assert_allclose(result.scale, [0.5], atol=0.05)

    def test_standard_errors_positive(self, rng):
        time, event, x = _weibull_sample(rng, n=300)
        result = survreg(time, event, x)
        assert np.all(result.standard_errors > 0)
        assert_allclose(result.z_statistics,
                        result.coefficients / result.standard_errors,
                        rtol=1e-10)

    def test_no_intercept(self, rng):
        time, event, x = _weibull_sample(rng, n=200)
        result = survreg(time, event, x, intercept=False, names=["x"])
        assert result.names == ("x",)
        assert len(result.coefficients) == 1
        assert not result.intercept


class TestPrediction:

    @pytest.mark.parametrize("dist", ["weibull", "lognormal", "loglogistic"])
    def test_survival_at_quantiles(self, dist):
        result = survreg(TIME, EVENT, GROUP, dist=dist)
        X = np.array([[0.0], [1.0]])
        probs = np.array([0.1, 0.5, 0.9])
        q = result.predict_quantile(X, probs)
        assert q.shape == (2, 3)
        assert np.all(np.diff(q, axis=1) > 0)
        for i in range(2):
            surv = result.predict_survival(X[i:i + 1], q[i])
            assert_allclose(surv[0], 1.0 - probs, rtol=1e-8)

    def test_survival_one_at_zero(self):
        result = survreg(TIME, EVENT, GROUP)
        surv = result.predict_survival([[0.0], [1.0]], [0.0, 1.0, 10.0])
        assert_allclose(surv[:, 0], 1.0)
        assert np.all(np.diff(surv, axis=1) <= 0)

    def test_time_is_exp_linear_predictor(self):
        result = survreg(TIME, EVENT, GROUP)
        X = np.array([[0.0], [1.0]])
        assert_allclose(result.predict_time(X), np.exp(result.predict_linear(X)))

    def test_invalid_quantile(self):
        result = survreg(TIME, EVENT, GROUP)
        with pytest.raises(ValidationError, match=r"\(0, 1\)"):
            result.predict_quantile([[0.0]], [0.5, 1.0])

    def test_stratified_quantiles_need_strata(self):
        result = survreg(TIME, np.ones(10), GROUP, dist="lognormal",
                         strata=GROUP)
        with pytest.raises(ValidationError, match="strata labels are required"):
            result.predict_quantile([[0.0]], [0.5])
        q = result.predict_quantile([[0.0]], [0.5], strata=["0.0"])
        assert_allclose(q, [[np.exp(result.coefficients[0])]], rtol=1e-8)


class TestSurvregSolution:

    def test_summary(self):
        s = survreg(TIME, EVENT, GROUP).summary()
        assert "survreg()" in s
        assert "(Intercept)" in s
        assert "Weibull distribution" in s
        assert "Scale=" in s

    def test_summary_exponential(self):
        assert "Scale fixed at 1" in survreg(TIME, EVENT, dist="exponential").summary()

    def test_repr_and_backend(self):
        result = survreg(TIME, EVENT)
        assert "SurvregSolution" in repr(result)
        assert result.backend_name == "cpu_survreg"
        assert "optimizer" in result.timing


class TestSurvregValidation:

    def test_unknown_dist(self):
        with pytest.raises(ValidationError, match="dist"):
            survreg(TIME, EVENT, dist="gamma")

    def test_zero_time(self):
        with pytest.raises(ValidationError, match="strictly positive"):
            survreg([0.0, 1.0, 2.0], [1, 1, 1])

    def test_rank_deficient(self):
        X = np.column_stack([GROUP, GROUP])
        with pytest.raises(ValidationError, match="rank-deficient"):
            survreg(TIME, EVENT, X)
