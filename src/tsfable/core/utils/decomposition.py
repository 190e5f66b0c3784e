import numpy as np
import pandas as pd
from statsmodels.nonparametric.smoothers_lowess import lowess as sm_lowess


def _fill_missing(y):
    """Linear interpolation of NaN values, constant extrapolation at the ends."""
    if not np.any(np.isnan(y)):
        return y
    if np.all(np.isnan(y)):
        raise ValueError("Cannot decompose a series without observations.")
    return pd.Series(y).interpolate(limit_direction="both").to_numpy()


def _smoothing_function_ma(y, order):
    """Centred moving average; 2 x m filter for even orders."""
    if order % 2 != 0:
        k = order
        weights = np.ones(k) / order
    else:
        k = order + 1
        weights = np.array([0.5] + [1] * (order - 1) + [0.5]) / order
    half_k = (k - 1) // 2
    trend = np.full_like(y, np.nan)
    for i in range(half_k, len(y) - half_k):
        trend[i] = np.sum(y[i - half_k : i + half_k + 1] * weights)
    return trend


def _smoothing_function_lowess(y, order):
    """LOWESS smoother with a span that follows the seasonal period"""
    n = len(y)
    x = np.arange(1, n + 1)
    if order == 1 or order >= n:
        span = 2 / 3
    else:
        span = 1 / order
    span = max(min(span, 1.0), 3 / n)
    smoothed = sm_lowess(y, x, frac=span, return_sorted=True, it=3)
    return smoothed[:, 1]


def msdecompose(y, lag=1, type="additive", smoother="ma"):
    """
    Classical seasonal decomposition with a single seasonal period.

    The series is split into trend, seasonal and remainder components:

    - additive: ``y = trend + seasonal + remainder``
    - multiplicative: ``y = trend * seasonal * remainder`` (computed on logs)

    Parameters
    ----------
    y : array-like
        Observations. NaN values are interpolated before smoothing.
    lag : int, default=1
        Seasonal period. With ``lag=1`` (or fewer than two full cycles) no
        seasonal component is extracted.
    type : {"additive", "multiplicative"}, default="additive"
        Decomposition type. Multiplicative needs strictly positive data.
    smoother : {"ma", "lowess"}, default="ma"
        Trend smoother. ``"ma"`` is a centred moving average of order
        ``lag`` and leaves ``lag // 2`` missing values at each end;
        ``"lowess"`` uses statsmodels' LOWESS and covers the full sample.

    Returns
    -------
    dict
        ``trend``, ``seasonal``, ``remainder`` (arrays of length T),
        ``pattern`` (the ``lag`` seasonal indices starting at the first
        observation), ``initial`` (dict with ``level`` and ``trend`` taken
        from the smoothed trend) and ``type``.

    Examples
    --------
    >>> y = np.array([112, 118, 132, 129, 121, 135, 148, 148, 136, 119, 104, 118,
    ...               115, 126, 141, 135, 125, 149, 170, 170, 158, 133, 114, 140])
    >>> result = msdecompose(y, lag=12)
    >>> result["pattern"].shape
    (12,)
    """
    if type not in ["additive", "multiplicative"]:
        raise ValueError("type must be 'additive' or 'multiplicative'")
    if smoother not in ["ma", "lowess"]:
        raise ValueError("smoother must be 'ma' or 'lowess'")

    y = _fill_missing(np.asarray(y, dtype=float))
    if type == "multiplicative":
        if np.any(y <= 0):
            raise ValueError("Multiplicative decomposition needs strictly positive data.")
        y = np.log(y)

    obs_in_sample = len(y)
    seasonal = lag > 1 and obs_in_sample >= 2 * lag

    if smoother == "ma" and obs_in_sample > lag:
        trend = _smoothing_function_ma(y, lag)
    else:
        trend = _smoothing_function_lowess(y, lag)

    if seasonal:
        detrended = y - trend
        positions = np.arange(obs_in_sample) % lag
        pattern = np.array(
            [np.nanmean(detrended[positions == i]) for i in range(lag)], dtype=float
        )
        pattern = pattern - np.mean(pattern)
        seasonal_component = pattern[positions]
    else:
        pattern = np.zeros(max(lag, 1))
        seasonal_component = np.zeros(obs_in_sample)

    remainder = y - trend - seasonal_component

    valid_trend = trend[~np.isnan(trend)]
    first_valid = int(np.argmax(~np.isnan(trend)))
    slope = float(np.mean(np.diff(valid_trend))) if valid_trend.size > 1 else 0.0
    level = float(valid_trend[0] - slope * first_valid) if valid_trend.size else float(y[0])

    if type == "multiplicative":
        return {
            "trend": np.exp(trend),
            "seasonal": np.exp(seasonal_component),
            "remainder": np.exp(remainder),
            "pattern": np.exp(pattern),
            "initial": {"level": np.exp(level), "trend": np.exp(slope)},
            "type": type,
        }
    return {
        "trend": trend,
        "seasonal": seasonal_component,
        "remainder": remainder,
        "pattern": pattern,
        "initial": {"level": level, "trend": slope},
        "type": type,
    }


def seasonal_strength(y, lag):
    """
    Strength of seasonality F_s = max(0, 1 - Var(R) / Var(S + R)).

    Parameters
    ----------
    y : array-like
        Observations.
    lag : int
        Seasonal period.

    Returns
    -------
    float
        Value in [0, 1]; 0 when the period is 1 or the sample holds fewer
        than two full seasonal cycles.
    """
    y = np.asarray(y, dtype=float)
    if lag <= 1 or np.sum(~np.isnan(y)) < 2 * lag:
        return 0.0
    decomposition = msdecompose(y, lag=lag, type="additive", smoother="ma")
    remainder = decomposition["remainder"]
    detrended = decomposition["seasonal"] + remainder
    mask = ~np.isnan(remainder)
    denominator = np.var(detrended[mask])
    if denominator <= 0:
        return 0.0
    return float(max(0.0, 1 - np.var(remainder[mask]) / denominator))
