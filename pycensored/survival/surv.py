"""
Surv: right-censored survival response.

The left-hand side of every censored-regression formula. Pairs each
observed time with an event indicator (1 = event observed, 0 = censored,
meaning only a lower bound on the event time is known).
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pycensored.core.exceptions import ValidationError
from pycensored.core.validation import (
    check_1d,
    check_array,
    check_consistent_length,
    check_finite,
)


class Surv:
    """Right-censored survival response.

    Parameters
    ----------
    time : array-like
        Follow-up time. Must be finite and non-negative.
    event : array-like or None
        Event indicator, 0/1 or boolean. None means every time is an
        observed event.

    Examples
    --------
    >>> Surv([5, 8, 12], [1, 0, 1])
    Surv([5, 8+, 12])
    """

    __slots__ = ('_time', '_event')

    def __init__(self, time, event=None) -> None:
        t = check_array(time, "time").astype(np.float64).ravel()
        check_1d(t, "time")
        if t.size == 0:
            raise ValidationError("time must have at least one observation")
        check_finite(t, "time")
        if np.any(t < 0):
            raise ValidationError("time must be non-negative")

        if event is None:
            e = np.ones_like(t)
        else:
            e = check_array(event, "event").astype(np.float64).ravel()
            check_consistent_length(t, e, names=("time", "event"))
            unique_events = np.unique(e[~np.isnan(e)])
            if np.any(np.isnan(e)) or not np.all(np.isin(unique_events, [0.0, 1.0])):
                raise ValidationError(
                    f"event must contain only 0 and 1, "
                    f"got unique values: {np.unique(e)}"
                )

        self._time = t
        self._event = e

    @property
    def time(self) -> NDArray:
        return self._time

    @property
    def event(self) -> NDArray:
        return self._event

    @property
    def n_events(self) -> int:
        """Number of observed events."""
        return int(np.sum(self._event))

    @property
    def n_censored(self) -> int:
        return len(self) - self.n_events

    def __len__(self) -> int:
        return len(self._time)

    def __getitem__(self, idx) -> Surv:
        return Surv(np.atleast_1d(self._time[idx]), np.atleast_1d(self._event[idx]))

    def __repr__(self) -> str:
        shown = [
            f"{t:g}" + ("" if e == 1 else "+")
            for t, e in zip(self._time[:10], self._event[:10])
        ]
        if len(self) > 10:
            shown.append(f"... ({len(self) - 10} more)")
        return f"Surv([{', '.join(shown)}])"
