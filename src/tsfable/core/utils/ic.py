import numpy as np


def AIC(loglik, nobs=None, df=None):  # noqa: N802
    """
    Akaike information criterion, ``-2 loglik + 2 df``.

    ``nobs`` is accepted so that all criteria share one signature.
    """
    return -2 * loglik + 2 * df


def AICc(loglik, nobs, df):  # noqa: N802
    """
    Small-sample corrected AIC.

    Returns ``inf`` when ``nobs - df - 1 <= 0``, so that a candidate with
    too few observations always loses a selection.
    """
    denominator = nobs - df - 1
    if denominator <= 0:
        return float("inf")
    return AIC(loglik, nobs, df) + (2 * df * (df + 1)) / denominator


def BIC(loglik, nobs, df):  # noqa: N802
    return -2 * loglik + np.log(nobs) * df


def information_criteria(loglik, nobs, df):
    """
    AIC, AICc and BIC of one fitted candidate.

    Parameters
    ----------
    loglik : float
        Maximised log-likelihood. A non-finite value gives NaN criteria.
    nobs : int
        Number of observations entering the likelihood.
    df : int
        Estimated parameters, the innovation variance included.

    Returns
    -------
    dict
        ``{"aic": ..., "aicc": ..., "bic": ...}``
    """
    if not np.isfinite(loglik):
        return {"aic": np.nan, "aicc": np.nan, "bic": np.nan}
    return {
        "aic": float(AIC(loglik, nobs, df)),
        "aicc": float(AICc(loglik, nobs, df)),
        "bic": float(BIC(loglik, nobs, df)),
    }


def calculate_ic_weights(ic_values, threshold=1e-5):
    """
    Akaike weights of a set of candidates.

    ``w_i = exp(-delta_i / 2) / sum_j exp(-delta_j / 2)`` with ``delta_i``
    the distance to the smallest criterion. Candidates with a non-finite
    criterion get zero weight.

    Parameters
    ----------
    ic_values : dict
        Candidate name to criterion value.
    threshold : float, default=1e-5
        Smaller weights are set to zero and the rest rescaled to sum to one.

    Returns
    -------
    dict
        Candidate name to weight.

    Examples
    --------
    >>> weights = calculate_ic_weights({"ANN": 100.5, "AAN": 98.2, "AAA": 99.1})
    >>> round(sum(weights.values()), 6)
    1.0
    """
    if not ic_values:
        return {}

    names = list(ic_values)
    values = np.array(list(ic_values.values()), dtype=float)
    finite = np.isfinite(values)
    weights = np.zeros_like(values)
    if not finite.any():
        return dict(zip(names, weights))

    delta = values[finite] - values[finite].min()
    raw = np.exp(-0.5 * delta)
    weights[finite] = raw / raw.sum()

    weights[weights < threshold] = 0
    total = weights.sum()
    if total > 0:
        weights = weights / total
    return dict(zip(names, weights))
