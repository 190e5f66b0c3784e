"""
ETS forecast distributions.

Three cases, following the classes of Hyndman et al. (2008):

- Class 1, additive error with no or additive season: Normal with variance
  ``sigma2 * (1 + sum_{j<h} c_j^2)``.
- Class 2, multiplicative error with no or additive season: Normal
  approximation with variance ``(1 + sigma2) * theta_h - mu_h^2``.
- Class 3, multiplicative season: no closed form, the distribution is the
  empirical distribution of simulated paths.
"""

import numpy as np

from tsfable.core.ets.filter import _predict, _transition


def _damped_sum(phi, h, trend):
    """phi + phi^2 + ... + phi^h (h for an undamped trend, 0 without trend)."""
    if trend == "N":
        return 0.0
    if trend == "A":
        return float(h)
    return float(np.sum(phi ** np.arange(1, h + 1)))


def point_forecast(state, model, phi, period, h):
    """
    Deterministic ``h``-step forecast from the final state.

    Parameters
    ----------
    state : dict
        ``level``, ``trend`` and ``season`` (the next ``period`` seasonal
        indices).
    model : tuple
        ``(error, trend, season)``.
    phi : float
        Damping parameter.
    period : int
        Seasonal period.
    h : int
        Forecast horizon.

    Returns
    -------
    numpy.ndarray
        Conditional means for steps ``1..h`` (exact for classes 1 and 2).
    """
    _, trend, season = model
    steps = np.arange(1, h + 1)
    trend_part = np.array([_damped_sum(phi, j, trend) for j in steps]) * state["trend"]
    lb = state["level"] + trend_part
    if season == "N":
        return lb
    seasonal = np.asarray(state["season"])[(steps - 1) % period]
    if season == "A":
        return lb + seasonal
    return lb * seasonal


def _c_coefficients(model, persistence, phi, period, h):
    _, trend, season = model
    j = np.arange(1, h)
    c = np.full(j.size, persistence["alpha"], dtype=float)
    if trend == "A":
        c += persistence["beta"] * j
    elif trend == "Ad":
        c += persistence["beta"] * np.array([_damped_sum(phi, k, trend) for k in j])
    if season != "N":
        c += persistence["gamma"] * (j % period == 0)
    return c


def class1_variance(model, persistence, phi, period, sigma2, h):
    """Forecast variance of linear homoscedastic ETS models."""
    c = _c_coefficients(model, persistence, phi, period, h)
    cumulative = np.concatenate([[0.0], np.cumsum(c ** 2)])
    return sigma2 * (1 + cumulative)


def class2_variance(model, persistence, phi, period, sigma2, mu):
    """Forecast variance of multiplicative-error models without multiplicative season."""
    h = mu.size
    c = _c_coefficients(model, persistence, phi, period, h)
    theta = np.zeros(h)
    theta[0] = mu[0] ** 2
    for i in range(1, h):
        theta[i] = mu[i] ** 2 + sigma2 * np.sum(c[:i][::-1] ** 2 * theta[:i])
    return (1 + sigma2) * theta - mu ** 2


def distribution_class(model):
    error, _, season = model
    if season == "M":
        return 3
    return 1 if error == "A" else 2


def simulate(state, model, persistence, phi, period, h, innovations):
    """
    Simulate sample paths from the final state.

    Parameters
    ----------
    state : dict
        Final state (see :func:`point_forecast`).
    model : tuple
        ``(error, trend, season)``.
    persistence : dict
        Smoothing parameters.
    phi : float
        Damping parameter.
    period : int
        Seasonal period.
    h : int
        Path length.
    innovations : numpy.ndarray
        Innovations with shape ``(times, h)``; relative errors for
        multiplicative-error models.

    Returns
    -------
    numpy.ndarray
        Paths with shape ``(times, h)``. Paths that leave the admissible
        region of a multiplicative model are NaN from that step on.
    """
    error, trend, season = model
    times = innovations.shape[0]
    level = np.full(times, state["level"], dtype=float)
    slope = np.full(times, state["trend"] if trend != "N" else 0.0, dtype=float)
    seasons = np.tile(np.asarray(state["season"], dtype=float), (times, 1))
    alpha = persistence["alpha"]
    beta = persistence.get("beta", 0.0)
    gamma = persistence.get("gamma", 0.0)

    paths = np.empty((times, h))
    with np.errstate(all="ignore"):
        for i in range(h):
            column = i % period
            s = seasons[:, column]
            lb, mu = _predict(level, slope, s, trend, season, phi)
            e = innovations[:, i]
            if error == "A":
                paths[:, i] = mu + e
            else:
                paths[:, i] = mu * (1 + e)
            level, slope, s_new = _transition(
                level, slope, s, lb, mu, e, model, alpha, beta, gamma, phi
            )
            if season != "N":
                seasons[:, column] = s_new
    if error == "M" or season == "M":
        invalid = np.cumsum(~np.isfinite(paths), axis=1) > 0
        paths[invalid] = np.nan
    return paths
