import numpy as np
from scipy.linalg import toeplitz

from tsfable.core.arima.kalman import forecast_states, state_space
from tsfable.core.utils.polynomials import integrate_ar, psi_weights


def integrate_path(history, w_path, delta):
    """
    Turn a path of the differenced series back into levels.

    Parameters
    ----------
    history : numpy.ndarray
        Observed (gap-filled) series up to the forecast origin.
    w_path : numpy.ndarray
        Future values of the differenced series, shape ``(h,)`` or
        ``(times, h)``.
    delta : numpy.ndarray
        Lag-form coefficients of the differencing operator.

    Returns
    -------
    numpy.ndarray
        Same shape as ``w_path``.
    """
    k = delta.size
    if k == 0:
        return np.array(w_path, dtype=float)
    one_dimensional = np.ndim(w_path) == 1
    w_path = np.atleast_2d(w_path)
    times, h = w_path.shape
    buffer = np.empty((times, k + h))
    buffer[:, :k] = history[-k:]
    reversed_delta = delta[::-1]
    for i in range(h):
        buffer[:, k + i] = w_path[:, i] + buffer[:, i : i + k] @ reversed_delta
    out = buffer[:, k:]
    return out[0] if one_dimensional else out


def forecaster(estimate, period, h):
    """
    Conditional mean and variance of the ``h`` step forecasts.

    The mean comes from propagating the final Kalman state and undoing the
    differencing; the variance is ``sigma2 * sum_{j<h} psi_j^2`` with psi
    weights of the full (differencing included) ARIMA polynomial.

    Returns
    -------
    dict
        ``mean`` and ``variance`` arrays of length ``h``, plus ``psi``.
    """
    order = estimate["order"]
    _, d, _, _, D, _ = order  # noqa: N806
    transition, _ = state_space(estimate["ar_lag"], estimate["ma_lag"])
    w_hat = forecast_states(estimate["filtered"]["a"], transition, h) + estimate["parts"]["mean"]
    mean = integrate_path(estimate["y_filled"], w_hat, estimate["delta"])
    mean = np.asarray(mean, dtype=float).reshape(-1)
    psi = psi_weights(integrate_ar(estimate["ar_lag"], d, D, period), estimate["ma_lag"], h)
    variance = estimate["sigma2"] * np.cumsum(psi ** 2)
    return {"mean": mean, "variance": variance, "psi": psi}


def simulate(estimate, period, h, innovations):
    """
    Sample paths ``mean + sum_j psi_j e_{h-j}`` for given innovations.

    Parameters
    ----------
    innovations : numpy.ndarray
        Shape ``(times, h)``.

    Returns
    -------
    numpy.ndarray
        Paths with shape ``(times, h)``.
    """
    result = forecaster(estimate, period, h)
    psi = result["psi"]
    # path_i = sum_{j<=i} psi_{i-j} e_j, so weights[j, i] = psi[i - j]
    first_column = np.zeros(h)
    first_column[0] = psi[0]
    weights = toeplitz(first_column, psi)
    return result["mean"][np.newaxis, :] + innovations @ weights
