"""
Cox Proportional Hazards model via Newton-Raphson.

Implements Efron's and Breslow's methods for tied event times,
stratified risk sets, an optional ridge penalty, and the baseline
cumulative hazard needed for survival-curve prediction, matching
R's survival::coxph() and survfit.coxph().

Algorithm:
    Center X at its column means (β is unchanged by centering)
    Initialize β = 0
    For iteration 1..max_iter:
        Compute: penalized log-likelihood L(β) - λ/2 ||β||²,
                 score U(β) - λβ, information I(β) + λI
        β_new = β + I^{-1} @ U
        Check convergence: max|β_new - β| < tol

Stratification:
    Each stratum contributes its own partial likelihood, formed from
    risk sets restricted to the stratum. Strata share β but each has
    its own baseline hazard.

Efron's partial likelihood (R default):
    L(β) = Σ_{j: event times} [ Σ_{i ∈ D_j} x_i @ β
            - Σ_{s=0}^{d_j-1} log(Σ_{l ∈ R_j} exp(x_l @ β)
                - (s/d_j) * Σ_{i ∈ D_j} exp(x_i @ β)) ]

    where D_j = set of events at time t_j, d_j = |D_j|,
          R_j = risk set at time t_j (alive just before t_j).

Baseline cumulative hazard (at the covariate means):
    Breslow: ΔH0(t_j) = d_j / Σ_{l ∈ R_j} exp(x_l @ β)
    Efron:   ΔH0(t_j) = Σ_{s=0}^{d_j-1} 1 / (Σ_{R_j} exp(x_l @ β)
                                             - (s/d_j) Σ_{D_j} exp(x_i @ β))

References:
    Cox, D. R. (1972). Regression models and life-tables. JRSS-B, 34(2), 187-220.
    Efron, B. (1977). The efficiency of Cox's likelihood function for
        censored data. JASA, 72(359), 557-565.
    R Core Team. survival::coxph, survival::survfit.coxph
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from pycensored.survival._common import BaselineHazard, CoxParams


def cox_fit(
    time: NDArray,
    event: NDArray,
    X: NDArray,
    strata: NDArray | None = None,
    strata_levels: tuple[str, ...] = (),
    ties: str = "efron",
    tol: float = 1e-9,
    max_iter: int = 20,
    penalty: float = 0.0,
) -> CoxParams:
    """Fit Cox proportional hazards model.

    Parameters
    ----------
    time : NDArray
        (n,) time to event or censoring.
    event : NDArray
        (n,) event indicator (1=event, 0=censored).
    X : NDArray
        (n, p) covariate matrix (NO intercept). p may be 0.
    strata : NDArray or None
        (n,) integer stratum codes indexing strata_levels.
    strata_levels : tuple of str
        Stratum labels.
    ties : str
        Method for handling tied event times: "efron" (default) or "breslow".
    tol : float
        Convergence tolerance (max absolute change in β).
    max_iter : int
        Maximum Newton-Raphson iterations.
    penalty : float
        Ridge penalty λ >= 0.

    Returns
    -------
    CoxParams
    """
    n, p = X.shape
    codes = strata if strata is not None else np.zeros(n, dtype=np.intp)
    n_strata = max(len(strata_levels), 1)

    means = X.mean(axis=0) if n > 0 else np.zeros(p, dtype=np.float64)
    Xc = X - means

    groups = _strata_groups(time, event, Xc, codes, n_strata)
    max_times = [
        float(np.max(time[codes == s])) if np.any(codes == s) else 0.0
        for s in range(n_strata)
    ]

    n_events_total = int(np.sum(event))

    if n_events_total == 0:
        # No events: cannot fit Cox model
        return CoxParams(
            coefficients=np.zeros(p, dtype=np.float64),
            hazard_ratios=np.ones(p, dtype=np.float64),
            standard_errors=np.full(p, np.inf),
            z_statistics=np.zeros(p, dtype=np.float64),
            p_values=np.ones(p, dtype=np.float64),
            loglik=(0.0, 0.0),
            concordance=0.5,
            n_events=0,
            n_observations=n,
            n_iter=0,
            converged=True,
            ties=ties,
            penalty=penalty,
            means=means,
            baseline=tuple(
                BaselineHazard(
                    time=np.array([], dtype=np.float64),
                    cumhaz=np.array([], dtype=np.float64),
                    max_time=max_times[s],
                )
                for s in range(n_strata)
            ),
            strata_levels=strata_levels,
        )

    # --- Newton-Raphson ---
    beta = np.zeros(p, dtype=np.float64)

    null_loglik = _stratified_loglik(beta, groups, ties)

    converged = p == 0
    n_iter = 0
    objective_old = null_loglik

    for iteration in range(1, max_iter + 1):
        if converged:
            break

        _, score, info_matrix = _penalized_score_and_information(
            beta, groups, ties, penalty
        )

        try:
            step = np.linalg.solve(info_matrix, score)
        except np.linalg.LinAlgError:
            # Singular information matrix
            break

        # Limit step size so exp(X @ beta) doesn't overflow
        max_step = np.max(np.abs(step))
        if max_step > 5.0:
            step = step * (5.0 / max_step)

        beta_new = beta + step

        objective_new = (
            _stratified_loglik(beta_new, groups, ties)
            - 0.5 * penalty * float(beta_new @ beta_new)
        )

        # R-style convergence: max|β_new - β| < tol
        if np.max(np.abs(beta_new - beta)) < tol:
            beta = beta_new
            converged = True
            n_iter = iteration
            break

        # Also accept convergence on relative objective change
        if iteration > 1 and abs(objective_new - objective_old) / (abs(objective_old) + 0.1) < tol:
            beta = beta_new
            converged = True
            n_iter = iteration
            break

        beta = beta_new
        objective_old = objective_new
        n_iter = iteration

    model_loglik = _stratified_loglik(beta, groups, ties)

    _, _, info_final = _penalized_score_and_information(
        beta, groups, ties, penalty
    )

    if p == 0:
        se = np.zeros(0, dtype=np.float64)
    else:
        try:
            var_matrix = np.linalg.inv(info_final)
            se = np.sqrt(np.maximum(np.diag(var_matrix), 0.0))
        except np.linalg.LinAlgError:
            se = np.full(p, np.inf)

    # Wald z-statistics and p-values
    with np.errstate(divide='ignore', invalid='ignore'):
        z = np.where(se > 0, beta / se, 0.0)
    p_values = 2.0 * stats.norm.sf(np.abs(z))

    concordance = _concordance(Xc @ beta, time, event, codes)

    baseline = tuple(
        _baseline_hazard(beta, groups[s], ties, max_times[s])
        for s in range(n_strata)
    )

    return CoxParams(
        coefficients=beta,
        hazard_ratios=np.exp(beta),
        standard_errors=se,
        z_statistics=z,
        p_values=p_values,
        loglik=(null_loglik, model_loglik),
        concordance=concordance,
        n_events=n_events_total,
        n_observations=n,
        n_iter=n_iter,
        converged=converged,
        ties=ties,
        penalty=penalty,
        means=means,
        baseline=baseline,
        strata_levels=strata_levels,
    )


def _strata_groups(
    time: NDArray,
    event: NDArray,
    X: NDArray,
    codes: NDArray,
    n_strata: int,
) -> list[tuple[NDArray, NDArray, NDArray, NDArray]]:
    """Split the data by stratum.

    Returns one (time, event, X, unique_event_times) tuple per stratum,
    each sorted by ascending time with censored before events at ties.
    """
    groups = []
    for s in range(n_strata):
        idx = np.flatnonzero(codes == s)
        order = idx[np.lexsort((event[idx], time[idx]))]
        t_s = time[order]
        e_s = event[order]
        groups.append((t_s, e_s, X[order], np.unique(t_s[e_s == 1])))
    return groups


def _stratified_loglik(beta: NDArray, groups, ties: str) -> float:
    """Partial log-likelihood summed over strata."""
    return float(sum(
        _partial_loglik(beta, t_s, e_s, X_s, uet, ties)
        for t_s, e_s, X_s, uet in groups
    ))


def _penalized_score_and_information(
    beta: NDArray,
    groups,
    ties: str,
    penalty: float,
) -> tuple[float, NDArray, NDArray]:
    """Penalized log-likelihood, score and information summed over strata."""
    p = len(beta)
    loglik = 0.0
    score = np.zeros(p, dtype=np.float64)
    info_matrix = np.zeros((p, p), dtype=np.float64)

    for t_s, e_s, X_s, uet in groups:
        ll, sc, info = _score_and_information(beta, t_s, e_s, X_s, uet, ties)
        loglik += ll
        score += sc
        info_matrix += info

    if penalty > 0:
        loglik -= 0.5 * penalty * float(beta @ beta)
        score -= penalty * beta
        info_matrix += penalty * np.eye(p)

    return loglik, score, info_matrix


def _partial_loglik(
    beta: NDArray,
    time: NDArray,
    event: NDArray,
    X: NDArray,
    unique_event_times: NDArray,
    ties: str,
) -> float:
    """Compute partial log-likelihood of one stratum.

    Parameters
    ----------
    beta : (p,)
    time : (n,) sorted ascending
    event : (n,) sorted
    X : (n, p) sorted
    unique_event_times : distinct event times
    ties : "efron" or "breslow"
    """
    eta = X @ beta  # (n,) linear predictor

    # Center eta for numerical stability (cancels in partial likelihood)
    eta_max = np.max(eta) if len(eta) > 0 else 0.0
    eta_c = eta - eta_max
    exp_eta = np.exp(eta_c)

    loglik = 0.0

    for t_j in unique_event_times:
        # Risk set: all subjects with time >= t_j
        risk_mask = time >= t_j
        risk_exp_sum = np.sum(exp_eta[risk_mask])

        # Events at this time
        event_at_tj = (time == t_j) & (event == 1)
        d_j = int(np.sum(event_at_tj))

        if d_j == 0:
            continue

        event_eta_sum = np.sum(eta_c[event_at_tj])

        if ties == "breslow" or d_j == 1:
            if risk_exp_sum > 0:
                loglik += event_eta_sum - d_j * np.log(risk_exp_sum)

        elif ties == "efron":
            death_exp_sum = np.sum(exp_eta[event_at_tj])

            for s in range(d_j):
                denom = risk_exp_sum - (s / d_j) * death_exp_sum
                if denom > 0:
                    loglik -= np.log(denom)

            loglik += event_eta_sum

    return loglik


def _score_and_information(
    beta: NDArray,
    time: NDArray,
    event: NDArray,
    X: NDArray,
    unique_event_times: NDArray,
    ties: str,
) -> tuple[float, NDArray, NDArray]:
    """Compute log-likelihood, score vector, and observed information matrix.

    Returns
    -------
    (loglik, score, info_matrix)
        loglik : float
        score : (p,): gradient of log-likelihood
        info_matrix : (p, p): negative Hessian (observed information)
    """
    n, p = X.shape
    eta = X @ beta

    eta_max = np.max(eta) if n > 0 else 0.0
    eta_c = eta - eta_max
    exp_eta = np.exp(eta_c)

    loglik = 0.0
    score = np.zeros(p, dtype=np.float64)
    info_matrix = np.zeros((p, p), dtype=np.float64)

    for t_j in unique_event_times:
        risk_mask = time >= t_j
        risk_exp = exp_eta[risk_mask]
        risk_X = X[risk_mask]

        # Weighted sums over risk set
        S0 = np.sum(risk_exp)                          # scalar
        S1 = risk_X.T @ risk_exp                       # (p,)
        S2 = (risk_X * risk_exp[:, np.newaxis]).T @ risk_X  # (p, p)

        event_at_tj = (time == t_j) & (event == 1)
        d_j = int(np.sum(event_at_tj))

        if d_j == 0:
            continue

        event_X = X[event_at_tj]
        event_eta_c = eta_c[event_at_tj]
        event_exp = exp_eta[event_at_tj]

        event_X_sum = np.sum(event_X, axis=0)  # (p,)
        event_eta_c_sum = np.sum(event_eta_c)

        if ties == "breslow" or d_j == 1:
            # Breslow (a single event gives the same result)
            if S0 > 0:
                loglik += event_eta_c_sum - d_j * np.log(S0)
                score += event_X_sum - d_j * S1 / S0
                info_matrix += d_j * (S2 / S0 - np.outer(S1, S1) / S0**2)

        elif ties == "efron":
            death_S0 = np.sum(event_exp)
            death_S1 = event_X.T @ event_exp
            death_S2 = (event_X * event_exp[:, np.newaxis]).T @ event_X

            loglik += event_eta_c_sum

            for s in range(d_j):
                frac = s / d_j
                denom = S0 - frac * death_S0
                if denom <= 0:
                    continue

                s1_adj = S1 - frac * death_S1
                s2_adj = S2 - frac * death_S2

                mean = s1_adj / denom

                loglik -= np.log(denom)
                score -= mean
                info_matrix += s2_adj / denom - np.outer(mean, mean)

            score += event_X_sum

    return loglik, score, info_matrix


def _baseline_hazard(
    beta: NDArray,
    group: tuple[NDArray, NDArray, NDArray, NDArray],
    ties: str,
    max_time: float,
) -> BaselineHazard:
    """Cumulative baseline hazard of one stratum at the covariate means.

    X in `group` is already centered, so exp(X @ β) is the relative
    risk against a subject at the means.
    """
    time, event, X, unique_event_times = group
    risk = np.exp(X @ beta)

    increments = np.zeros(len(unique_event_times), dtype=np.float64)
    for j, t_j in enumerate(unique_event_times):
        S0 = np.sum(risk[time >= t_j])
        event_at_tj = (time == t_j) & (event == 1)
        d_j = int(np.sum(event_at_tj))

        if ties == "breslow" or d_j == 1:
            increments[j] = d_j / S0
        else:
            death_S0 = np.sum(risk[event_at_tj])
            increments[j] = sum(
                1.0 / (S0 - (s / d_j) * death_S0) for s in range(d_j)
            )

    return BaselineHazard(
        time=unique_event_times,
        cumhaz=np.cumsum(increments),
        max_time=max_time,
    )


def _concordance(
    eta: NDArray,
    time: NDArray,
    event: NDArray,
    strata: NDArray,
) -> float:
    """Harrell's concordance statistic (C-statistic).

    C = P(risk_i > risk_j | T_i < T_j, event_i = 1, same stratum)
    """
    concordant = 0
    discordant = 0
    tied_risk = 0

    for i in np.flatnonzero(event == 1):
        # Comparable: later time, same stratum
        comparable = (time > time[i]) & (strata == strata[i])
        others = eta[comparable]

        concordant += int(np.sum(eta[i] > others))
        discordant += int(np.sum(eta[i] < others))
        tied_risk += int(np.sum(eta[i] == others))

    total = concordant + discordant + tied_risk
    if total == 0:
        return 0.5

    return (concordant + 0.5 * tied_risk) / total


# ── Prediction ────────────────────────────────────────────────────────


def relative_risk(params: CoxParams, X: NDArray) -> NDArray:
    """exp((x - mean) @ β) per row."""
    return np.exp((X - params.means) @ params.coefficients)


def cumulative_hazard(
    params: CoxParams,
    X: NDArray,
    strata: NDArray,
    times: NDArray,
) -> NDArray:
    """Cumulative hazard H(t | x, s) as an (n, m) matrix.

    Right-continuous step function: the jump at an event time is
    included at that time.
    """
    rr = relative_risk(params, X)
    out = np.zeros((len(rr), len(times)), dtype=np.float64)

    for s, base in enumerate(params.baseline):
        rows = strata == s
        if not np.any(rows) or len(base.time) == 0:
            continue
        idx = np.searchsorted(base.time, times, side="right") - 1
        H0 = np.where(idx >= 0, base.cumhaz[np.maximum(idx, 0)], 0.0)
        out[rows] = np.outer(rr[rows], H0)

    return out


def survival_probability(
    params: CoxParams,
    X: NDArray,
    strata: NDArray,
    times: NDArray,
) -> NDArray:
    """S(t | x, s) = exp(-H0_s(t) exp((x - mean) @ β)), shape (n, m)."""
    return np.exp(-cumulative_hazard(params, X, strata, times))


def restricted_mean_time(
    params: CoxParams,
    X: NDArray,
    strata: NDArray,
) -> NDArray:
    """Restricted mean survival time per row.

    Area under the predicted survival step function from 0 up to the
    last observed time in the row's stratum.
    """
    rr = relative_risk(params, X)
    out = np.empty(len(rr), dtype=np.float64)

    for s, base in enumerate(params.baseline):
        rows = strata == s
        if not np.any(rows):
            continue
        knots = np.concatenate([[0.0], base.time])
        widths = np.diff(np.concatenate([knots, [base.max_time]]))
        H = np.concatenate([[0.0], base.cumhaz])
        surv = np.exp(-np.outer(rr[rows], H))
        out[rows] = surv @ np.maximum(widths, 0.0)

    return out
