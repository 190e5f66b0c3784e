"""
Pytest configuration and shared fixtures for tsfable tests.
"""

import numpy as np
import pandas as pd
import pytest

from tsfable import SeriesCollection


@pytest.fixture
def quarterly_index():
    """80 quarters starting in 1998Q1."""
    return pd.period_range("1998Q1", periods=80, freq="Q")


@pytest.fixture
def simple_series():
    """Non-seasonal level series with noise on an integer index."""
    np.random.seed(42)
    n = 60
    y = 50 + np.cumsum(np.random.randn(n) * 0.5) + np.random.randn(n)
    return pd.Series(y, index=pd.RangeIndex(n), name="value")


@pytest.fixture
def seasonal_series(quarterly_index):
    """Quarterly series with trend and additive seasonality."""
    np.random.seed(42)
    n = len(quarterly_index)
    t = np.arange(n)
    seasonal = np.tile([12.0, -4.0, -10.0, 2.0], n // 4)
    y = 200 + 0.8 * t + seasonal + np.random.randn(n) * 3
    return pd.Series(y, index=quarterly_index, name="value")


@pytest.fixture
def multiplicative_series(quarterly_index):
    """Quarterly series with multiplicative seasonality."""
    np.random.seed(42)
    n = len(quarterly_index)
    t = np.arange(n)
    seasonal = np.tile([1.25, 0.9, 0.75, 1.1], n // 4)
    noise = 1 + np.random.randn(n) * 0.03
    y = (100 + 1.5 * t) * seasonal * noise
    return pd.Series(y, index=quarterly_index, name="value")


@pytest.fixture
def random_walk():
    """Pure Gaussian random walk."""
    np.random.seed(42)
    y = 100 + np.cumsum(np.random.randn(200))
    return pd.Series(y, index=pd.RangeIndex(200), name="value")


@pytest.fixture
def white_noise():
    """Stationary noise around a constant mean."""
    np.random.seed(42)
    y = 10 + np.random.randn(120)
    return pd.Series(y, index=pd.RangeIndex(120), name="value")


@pytest.fixture
def tourism(quarterly_index):
    """Four quarterly trip series by travel purpose, 80 observations each."""
    np.random.seed(42)
    n = len(quarterly_index)
    t = np.arange(n)
    shapes = {
        "Business": (150, 0.3, [5.0, 10.0, 8.0, -23.0], 6),
        "Holiday": (400, 0.6, [80.0, -30.0, -40.0, -10.0], 15),
        "Other": (60, 0.1, [2.0, -1.0, 1.0, -2.0], 4),
        "Visiting": (250, 0.4, [30.0, -15.0, -5.0, -10.0], 10),
    }
    series = {}
    for purpose, (level, slope, pattern, noise) in shapes.items():
        y = level + slope * t + np.tile(pattern, n // 4) + np.random.randn(n) * noise
        series[(purpose,)] = pd.Series(y, index=quarterly_index)
    return SeriesCollection(series, key_names=["Purpose"], index_name="Quarter",
                            value_name="Trips")
