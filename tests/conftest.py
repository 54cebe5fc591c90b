"""
pytest configuration and shared fixtures.
"""

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def lung_like(rng):
    """Simulated right-censored data with a numeric, a categorical and a strata column.

    Hazard = 0.1 * exp(1.0 * age_z + 0.8 * (sex == 'M')), site A/B with
    different baseline rates, uniform censoring.
    """
    n = 200
    age = rng.normal(60.0, 10.0, n)
    age_z = (age - 60.0) / 10.0
    sex = rng.choice(["F", "M"], n)
    site = rng.choice(["A", "B"], n)

    base_rate = np.where(site == "A", 0.1, 0.3)
    rate = base_rate * np.exp(1.0 * age_z + 0.8 * (sex == "M"))
    event_time = rng.exponential(1.0 / rate)
    censor_time = rng.uniform(0.5, 30.0, n)

    time = np.minimum(event_time, censor_time)
    status = (event_time <= censor_time).astype(int)

    return pd.DataFrame({
        "time": time,
        "status": status,
        "age": age,
        "sex": sex,
        "site": site,
    })
