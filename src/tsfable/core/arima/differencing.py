"""Choice of the differencing orders d and D."""

import logging
import warnings

import numpy as np
from statsmodels.tools.sm_exceptions import InterpolationWarning
from statsmodels.tsa.stattools import kpss

from tsfable.core.utils.decomposition import seasonal_strength
from tsfable.core.utils.polynomials import difference
from tsfable.spec.auto import is_auto

logger = logging.getLogger(__name__)

MIN_KPSS_OBS = 5


def kpss_pvalue(x):
    """
    KPSS level-stationarity p-value with short lag truncation.

    The statsmodels p-value is interpolated from a table and clipped to
    [0.01, 0.1]; the interpolation notice is silenced since the clipped value
    is all that is needed for the decision.
    """
    x = np.asarray(x, dtype=float)
    x = x[~np.isnan(x)]
    nlags = max(int(4 * (x.size / 100) ** 0.25), 1)
    nlags = min(nlags, x.size - 1)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", InterpolationWarning)
        _, p_value, _, _ = kpss(x, regression="c", nlags=nlags)
    return float(p_value)


def _is_constant(x):
    observed = x[~np.isnan(x)]
    return observed.size == 0 or np.ptp(observed) == 0


def ndiffs(x, alpha=0.05, max_d=2):
    """
    Number of first differences needed for level stationarity.

    KPSS is applied repeatedly: while stationarity is rejected at level
    ``alpha`` the series is differenced once more, up to ``max_d``.

    Parameters
    ----------
    x : array-like
        Series, NaN allowed.
    alpha : float, default=0.05
        Test size.
    max_d : int, default=2
        Maximum number of differences.

    Returns
    -------
    int
    """
    x = np.asarray(x, dtype=float)
    d = 0
    while d < max_d:
        if np.sum(~np.isnan(x)) < MIN_KPSS_OBS or _is_constant(x):
            break
        p_value = kpss_pvalue(x)
        logger.debug("KPSS p-value %.3f at d=%d", p_value, d)
        if p_value >= alpha:
            break
        x = np.diff(x)
        d += 1
    return d


def nsdiffs(x, period, threshold=0.64, max_D=1):  # noqa: N803
    """
    Number of seasonal differences, from the seasonal strength heuristic.

    The series is seasonally differenced while the strength of seasonality
    of a classical decomposition exceeds ``threshold``.

    Returns
    -------
    int
    """
    x = np.asarray(x, dtype=float)
    D = 0  # noqa: N806
    if period <= 1:
        return 0
    while D < max_D:
        strength = seasonal_strength(x, period)
        logger.debug("Seasonal strength %.3f at D=%d", strength, D)
        if strength <= threshold:
            break
        x = difference(x, 0, 1, period)
        D += 1  # noqa: N806
    return D


def choose_differencing(y, period, options):
    """
    Resolve ``d`` and ``D`` for one series.

    Seasonal differencing is decided first; ``d`` is then tested on the
    seasonally differenced series. Fixed orders are respected.

    Returns
    -------
    tuple
        ``(d, D)``
    """
    D = options["D"]  # noqa: N806
    if is_auto(D):
        D = nsdiffs(  # noqa: N806
            y, period, threshold=options["seasonal_threshold"], max_D=options["max_D"]
        )
    d = options["d"]
    if is_auto(d):
        x = difference(y, 0, D, period)
        d = ndiffs(x, alpha=options["unitroot_alpha"], max_d=options["max_d"])
    return d, D
