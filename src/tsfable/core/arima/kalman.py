"""
Exact Gaussian likelihood of a stationary ARMA process via the Kalman filter.

The ARMA(p, q) process ``w_t`` (mean removed) is written in Harvey's state
space form with state dimension ``r = max(p, q + 1)``::

    alpha_{t+1} = T alpha_t + R e_{t+1}
    w_t         = alpha_t[0]

where the first column of ``T`` holds the AR coefficients, its
superdiagonal is the identity and ``R = (1, theta_1, ..., theta_{r-1})``.
The filter runs with unit innovation variance; the variance is
concentrated out of the likelihood afterwards.
"""

import numpy as np
from scipy.linalg import solve_discrete_lyapunov

STEADY_TOL = 1e-9


def state_space(ar, ma):
    """
    Transition matrix ``T`` and ``R R'`` for lag-form ARMA coefficients.

    Returns
    -------
    tuple
        ``(T, RRt)``
    """
    ar = np.asarray(ar, dtype=float)
    ma = np.asarray(ma, dtype=float)
    r = max(ar.size, ma.size + 1, 1)
    transition = np.zeros((r, r))
    transition[: ar.size, 0] = ar
    if r > 1:
        transition[:-1, 1:] = np.eye(r - 1)
    selection = np.zeros(r)
    selection[0] = 1.0
    selection[1 : ma.size + 1] = ma
    return transition, np.outer(selection, selection)


def initial_state(transition, rrt):
    """Stationary mean (zero) and covariance of the state vector."""
    covariance = solve_discrete_lyapunov(transition, rrt)
    return np.zeros(transition.shape[0]), covariance


def kalman_filter(w, transition, rrt, a=None, P=None, steady=False):  # noqa: N803
    """
    Run the filter over ``w``.

    Parameters
    ----------
    w : numpy.ndarray
        Mean-corrected differenced series, NaN for missing values.
    transition, rrt : numpy.ndarray
        System matrices from :func:`state_space`.
    a, P : numpy.ndarray, optional
        Predicted state and covariance for the first element of ``w``.
        Defaults to the stationary distribution.
    steady : bool, default=False
        Whether ``P`` has already converged.

    Returns
    -------
    dict
        ``predictions`` (one-step predictions of ``w``), ``innovations``,
        ``variances`` (``F_t``, prediction variance over sigma2), ``sumsq``
        (sum of ``v_t^2 / F_t``), ``sumlog`` (sum of ``log F_t``), ``nobs``,
        and the state after the last element: ``a``, ``P`` and ``steady``.
    """
    if a is None or P is None:
        a, P = initial_state(transition, rrt)
    a = np.array(a, dtype=float)
    P = np.array(P, dtype=float)  # noqa: N806

    n = len(w)
    predictions = np.empty(n)
    innovations = np.full(n, np.nan)
    variances = np.empty(n)
    sumsq = 0.0
    sumlog = 0.0
    nobs = 0
    gain = None

    for t in range(n):
        predictions[t] = a[0]
        F = P[0, 0]  # noqa: N806
        variances[t] = F
        w_t = w[t]
        if w_t != w_t:
            steady = False
            a = transition @ a
            P = transition @ P @ transition.T + rrt  # noqa: N806
            continue
        v = w_t - a[0]
        innovations[t] = v
        sumsq += v * v / F
        sumlog += np.log(F)
        nobs += 1
        if steady and gain is not None:
            a = transition @ (a + gain * v)
            continue
        gain = P[:, 0] / F
        a = transition @ (a + gain * v)
        P_new = transition @ (P - np.outer(gain, P[0, :])) @ transition.T + rrt  # noqa: N806
        if np.max(np.abs(P_new - P)) < STEADY_TOL:
            steady = True
        P = P_new  # noqa: N806

    return {
        "predictions": predictions,
        "innovations": innovations,
        "variances": variances,
        "sumsq": sumsq,
        "sumlog": sumlog,
        "nobs": nobs,
        "a": a,
        "P": P,
        "steady": steady,
    }


def concentrated_loglik(sumsq, sumlog, nobs):
    """
    Log-likelihood with sigma2 concentrated out.

    ``-0.5 * (n log(2 pi sigma2) + sum log F_t + n)`` with
    ``sigma2 = sumsq / n``.
    """
    if nobs == 0 or sumsq <= 0:
        return np.nan
    sigma2 = sumsq / nobs
    return float(-0.5 * (nobs * np.log(2 * np.pi * sigma2) + sumlog + nobs))


def forecast_states(a, transition, h):
    """Predicted ``w`` for steps 1..h from the predicted state ``a``."""
    out = np.empty(h)
    state = np.array(a, dtype=float)
    for i in range(h):
        out[i] = state[0]
        state = transition @ state
    return out
