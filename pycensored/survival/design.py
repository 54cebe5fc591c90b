"""
SurvivalDesign: immutable container for time-to-event data.

Wraps time, event indicator, optional covariates, and optional strata.
Validates inputs at construction time: all downstream code trusts clean data.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from pycensored.core.exceptions import DimensionError
from pycensored.core.validation import check_array, check_finite
from pycensored.survival.surv import Surv


@dataclass(frozen=True)
class SurvivalDesign:
    """Immutable survival data container.

    Parameters
    ----------
    time : NDArray
        Time to event or censoring. Non-negative.
    event : NDArray
        Event indicator: 1 = event observed, 0 = censored.
    X : NDArray or None
        Covariate matrix (n, p).
    strata : NDArray or None
        Integer stratum code per observation, indexing strata_levels.
    strata_levels : tuple of str
        Stratum labels. Empty when unstratified.
    """

    time: NDArray
    event: NDArray
    X: NDArray | None
    strata: NDArray | None
    strata_levels: tuple[str, ...] = ()

    @classmethod
    def for_survival(
        cls,
        time,
        event=None,
        X=None,
        *,
        strata=None,
    ) -> SurvivalDesign:
        """Create and validate survival data.

        Parameters
        ----------
        time : array-like or Surv
            Time to event or censoring, or a Surv response (then event
            must be None).
        event : array-like or None
            Event indicator (0/1). None means all events.
        X : array-like or None
            Optional covariate matrix.
        strata : array-like or None
            Optional strata labels. Labels are compared as strings.

        Returns
        -------
        SurvivalDesign

        Raises
        ------
        ValidationError
            If inputs are invalid.
        """
        response = time if isinstance(time, Surv) else Surv(time, event)
        n = len(response)

        X_arr = None
        if X is not None:
            X_arr = check_array(X, "X").astype(np.float64)
            if X_arr.ndim == 1:
                X_arr = X_arr.reshape(-1, 1)
            if X_arr.ndim != 2:
                raise DimensionError(
                    f"X must be 1D or 2D, got {X_arr.ndim}D"
                )
            if X_arr.shape[0] != n:
                raise DimensionError(
                    f"X must have {n} rows to match time, "
                    f"got {X_arr.shape[0]}"
                )
            check_finite(X_arr, "X")

        strata_codes = None
        levels: tuple[str, ...] = ()
        if strata is not None:
            labels = np.asarray(strata).ravel().astype(str)
            if len(labels) != n:
                raise DimensionError(
                    f"strata must have {n} elements to match time, "
                    f"got {len(labels)}"
                )
            uniq, strata_codes = np.unique(labels, return_inverse=True)
            levels = tuple(str(u) for u in uniq)

        return cls(
            time=response.time,
            event=response.event,
            X=X_arr,
            strata=strata_codes,
            strata_levels=levels,
        )

    @property
    def n(self) -> int:
        """Number of observations."""
        return len(self.time)

    @property
    def p(self) -> int | None:
        """Number of covariates (None if no covariates)."""
        return self.X.shape[1] if self.X is not None else None

    @property
    def n_events(self) -> int:
        """Number of observed events."""
        return int(np.sum(self.event))

    @property
    def n_strata(self) -> int:
        """Number of strata (1 when unstratified)."""
        return max(len(self.strata_levels), 1)

    def strata_codes(self) -> NDArray:
        """Stratum code per observation, all zeros when unstratified."""
        if self.strata is None:
            return np.zeros(self.n, dtype=np.intp)
        return self.strata
