"""
Forecast accuracy measures.

Point measures compare actual values with point forecasts (or fitted
values); MASE and RMSSE scale the errors by the in-sample seasonal naive
errors of the training data. Distributional measures (CRPS, Winkler score)
need the forecast distributions themselves.
"""

import warnings

import numpy as np
from statsmodels.tsa.stattools import acf

POINT_MEASURES = ("ME", "RMSE", "MAE", "MPE", "MAPE", "MASE", "RMSSE", "ACF1")
DISTRIBUTION_MEASURES = ("CRPS", "winkler")


def _paired(actual, forecast):
    actual = np.asarray(actual, dtype=float)
    forecast = np.asarray(forecast, dtype=float)
    mask = np.isfinite(actual) & np.isfinite(forecast)
    return actual[mask], forecast[mask]


def _naive_errors(train, period):
    train = np.asarray(train, dtype=float)
    lag = period if period > 1 and train.size > period else 1
    diff = train[lag:] - train[:-lag]
    return diff[np.isfinite(diff)]


def ME(actual, forecast):  # noqa: N802
    actual, forecast = _paired(actual, forecast)
    return float(np.mean(actual - forecast)) if actual.size else np.nan


def RMSE(actual, forecast):  # noqa: N802
    actual, forecast = _paired(actual, forecast)
    return float(np.sqrt(np.mean((actual - forecast) ** 2))) if actual.size else np.nan


def MAE(actual, forecast):  # noqa: N802
    actual, forecast = _paired(actual, forecast)
    return float(np.mean(np.abs(actual - forecast))) if actual.size else np.nan


def MPE(actual, forecast):  # noqa: N802
    actual, forecast = _paired(actual, forecast)
    if not actual.size:
        return np.nan
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.mean(100 * (actual - forecast) / actual))


def MAPE(actual, forecast):  # noqa: N802
    actual, forecast = _paired(actual, forecast)
    if not actual.size:
        return np.nan
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.mean(np.abs(100 * (actual - forecast) / actual)))


def MASE(actual, forecast, train, period=1):  # noqa: N802
    """Mean absolute error over the mean absolute seasonal naive error of ``train``."""
    scale = _naive_errors(train, period)
    if scale.size == 0:
        return np.nan
    denominator = float(np.mean(np.abs(scale)))
    if denominator == 0:
        return np.inf
    return MAE(actual, forecast) / denominator


def RMSSE(actual, forecast, train, period=1):  # noqa: N802
    scale = _naive_errors(train, period)
    if scale.size == 0:
        return np.nan
    denominator = float(np.mean(scale ** 2))
    if denominator == 0:
        return np.inf
    actual, forecast = _paired(actual, forecast)
    if not actual.size:
        return np.nan
    return float(np.sqrt(np.mean((actual - forecast) ** 2) / denominator))


def ACF1(actual, forecast):  # noqa: N802
    """First order autocorrelation of the errors."""
    actual, forecast = _paired(actual, forecast)
    errors = actual - forecast
    if errors.size < 2 or np.allclose(errors, errors[0]):
        return np.nan
    return float(acf(errors, nlags=1, fft=False)[1])


def CRPS(actual, distributions):  # noqa: N802
    """Average continuous ranked probability score."""
    scores = [
        dist.crps(y) for y, dist in zip(np.asarray(actual, dtype=float), distributions)
        if np.isfinite(y)
    ]
    return float(np.mean(scores)) if scores else np.nan


def winkler(actual, distributions, level=95):
    """
    Average Winkler interval score at ``level`` percent.

    The interval width, plus ``2 / alpha`` times the distance to the
    interval for observations that fall outside it.
    """
    alpha = 1 - level / 100
    scores = []
    for y, dist in zip(np.asarray(actual, dtype=float), distributions):
        if not np.isfinite(y):
            continue
        lower, upper, _ = dist.hilo(level)
        score = upper - lower
        if y < lower:
            score += 2 / alpha * (lower - y)
        elif y > upper:
            score += 2 / alpha * (y - upper)
        scores.append(score)
    return float(np.mean(scores)) if scores else np.nan


def point_accuracy(actual, forecast, train=None, period=1, measures=POINT_MEASURES):
    """
    Compute point accuracy measures.

    Parameters
    ----------
    actual, forecast : array-like
        Aligned actual values and point forecasts.
    train : array-like, optional
        Training data used to scale MASE and RMSSE. When omitted the scale is
        taken from ``actual``.
    period : int, default=1
        Seasonal period of the naive scaling errors.
    measures : sequence of str
        Names from :data:`POINT_MEASURES`.

    Returns
    -------
    dict
        Measure name to value.
    """
    train = actual if train is None else train
    out = {}
    for name in measures:
        if name in ("MASE", "RMSSE"):
            out[name] = _MEASURES[name](actual, forecast, train, period)
        elif name in _MEASURES:
            out[name] = _MEASURES[name](actual, forecast)
        else:
            raise ValueError(
                f"Unknown accuracy measure {name!r}. "
                f"Must be one of {list(POINT_MEASURES)}."
            )
    return out


def distribution_accuracy(actual, distributions, measures=DISTRIBUTION_MEASURES, level=95):
    out = {}
    for name in measures:
        if name == "CRPS":
            out[name] = CRPS(actual, distributions)
        elif name == "winkler":
            out[name] = winkler(actual, distributions, level)
        else:
            raise ValueError(
                f"Unknown distribution measure {name!r}. "
                f"Must be one of {list(DISTRIBUTION_MEASURES)}."
            )
    return out


def split_measures(measures):
    """Split a list of measure names into point and distributional ones."""
    point = [m for m in measures if m in POINT_MEASURES]
    distributional = [m for m in measures if m in DISTRIBUTION_MEASURES]
    unknown = set(measures) - set(point) - set(distributional)
    if unknown:
        warnings.warn(f"Ignoring unknown accuracy measures {sorted(unknown)}.")
    return point, distributional


_MEASURES = {
    "ME": ME,
    "RMSE": RMSE,
    "MAE": MAE,
    "MPE": MPE,
    "MAPE": MAPE,
    "MASE": MASE,
    "RMSSE": RMSSE,
    "ACF1": ACF1,
}
