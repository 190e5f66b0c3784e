"""
Innovations state space recursions for the ETS taxonomy.

The one-step prediction is built from the previous level ``l``, slope ``b``
and the seasonal index ``s`` due at this time (``lb = l + phi * b``):

=========  ==========  =============
season     prediction  notes
=========  ==========  =============
N          lb
A          lb + s
M          lb * s
=========  ==========  =============

The innovation is ``e = y - mu`` for additive errors and ``e = (y - mu) / mu``
for multiplicative errors. A missing observation gives ``e = 0``, so the
states are propagated deterministically through gaps.
"""

import numpy as np


def _predict(l, b, s, trend, season, phi):
    lb = l + phi * b if trend != "N" else l
    if season == "A":
        return lb, lb + s
    if season == "M":
        return lb, lb * s
    return lb, lb


def _transition(l, b, s, lb, mu, e, model, alpha, beta, gamma, phi):
    """
    State update for one time step.

    Works element-wise, so ``l, b, s, e`` may be floats (filtering) or numpy
    arrays of simulated paths.
    """
    error, trend, season = model
    if error == "A":
        if season == "M":
            l_new = lb + alpha * e / s
            b_new = phi * b + beta * e / s
            s_new = s + gamma * e / lb
        else:
            l_new = lb + alpha * e
            b_new = phi * b + beta * e
            s_new = s + gamma * e
    else:
        if season == "A":
            l_new = lb + alpha * mu * e
            b_new = phi * b + beta * mu * e
            s_new = s + gamma * mu * e
        else:
            l_new = lb * (1 + alpha * e)
            b_new = phi * b + beta * lb * e
            s_new = s * (1 + gamma * e)
    if trend == "N":
        b_new = 0 * b_new
    return l_new, b_new, s_new


def ets_filter(y, model, persistence, phi, initial, period):
    """
    Run the ETS recursions over ``y``.

    Parameters
    ----------
    y : numpy.ndarray
        Observations, NaN for missing values.
    model : tuple
        ``(error, trend, season)``.
    persistence : dict
        ``alpha``, ``beta`` and ``gamma`` (unused entries may be 0).
    phi : float
        Damping parameter (1 for an undamped trend).
    initial : dict
        ``level``, ``trend`` and ``season`` (seasonal indices for the first
        ``period`` time points).
    period : int
        Seasonal period.

    Returns
    -------
    dict
        ``fitted`` (one-step predictions), ``errors`` (innovations),
        ``level`` and ``trend`` (length T + 1, initial state first),
        ``season`` (length T + period: index ``t`` holds the seasonal index
        due at time ``t``, the first ``period`` are initial) and
        ``admissible`` (False when a multiplicative component left the
        positive domain or a value became non-finite).
    """
    error, trend, season = model
    alpha = persistence["alpha"]
    beta = persistence.get("beta", 0.0)
    gamma = persistence.get("gamma", 0.0)
    seasonal = season != "N"
    multiplicative = error == "M" or season == "M"

    obs_in_sample = len(y)
    y_list = y.tolist()
    l = float(initial["level"])
    b = float(initial["trend"]) if trend != "N" else 0.0
    seasons = [float(v) for v in initial["season"]] if seasonal else [0.0] * period

    levels = [l]
    trends = [b]
    fitted = [0.0] * obs_in_sample
    errors = [0.0] * obs_in_sample
    admissible = True

    for t in range(obs_in_sample):
        s = seasons[t]
        lb, mu = _predict(l, b, s, trend, season, phi)
        if multiplicative and (mu <= 0 or (season == "M" and (s <= 0 or lb <= 0))):
            admissible = False
            break
        y_t = y_list[t]
        if y_t != y_t:
            e = 0.0
        elif error == "A":
            e = y_t - mu
        else:
            e = (y_t - mu) / mu
        fitted[t] = mu
        errors[t] = e
        l, b, s_new = _transition(l, b, s, lb, mu, e, model, alpha, beta, gamma, phi)
        levels.append(l)
        trends.append(b)
        seasons.append(s_new if seasonal else 0.0)

    fitted = np.array(fitted)
    errors = np.array(errors)
    if admissible and not (np.all(np.isfinite(fitted)) and np.isfinite(l) and np.isfinite(b)):
        admissible = False

    return {
        "fitted": fitted,
        "errors": errors,
        "level": np.array(levels),
        "trend": np.array(trends),
        "season": np.array(seasons),
        "admissible": admissible,
    }


def log_likelihood(y, fitted, errors, error_type):
    """
    Gaussian log-likelihood with the innovation variance concentrated out.

    ``-n/2 * (log(2 pi sigma2) + 1)`` with ``sigma2 = sum(e^2) / n``; the
    multiplicative error version subtracts ``sum(log|mu|)`` (Jacobian of the
    relative error).

    Returns ``nan`` when the residual sum of squares is zero.
    """
    mask = ~np.isnan(y)
    obs_in_sample = int(np.sum(mask))
    sse = float(np.sum(errors[mask] ** 2))
    if obs_in_sample == 0 or sse <= 0:
        return np.nan
    loglik = -0.5 * obs_in_sample * (np.log(2 * np.pi * sse / obs_in_sample) + 1)
    if error_type == "M":
        loglik -= float(np.sum(np.log(np.abs(fitted[mask]))))
    return float(loglik)


def last_state(filtered, period):
    """Final level, slope and the next ``period`` seasonal indices."""
    return {
        "level": float(filtered["level"][-1]),
        "trend": float(filtered["trend"][-1]),
        "season": np.array(filtered["season"][-period:], dtype=float),
    }
