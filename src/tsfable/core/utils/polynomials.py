"""
Lag polynomial utilities for ARIMA models.

Coefficients are stored in "lag form": an AR part ``a`` means
``y_t = a_1 y_{t-1} + ... + a_p y_{t-p} + ...`` so its characteristic
polynomial is ``1 - a_1 z - ... - a_p z^p``; an MA part ``b`` means
``e_t + b_1 e_{t-1} + ...`` with polynomial ``1 + b_1 z + ...``.
"""

import numpy as np

ROOT_THRESHOLD = 1.01


def expand_seasonal(coefs, period):
    """
    Place seasonal coefficients at lags ``period, 2*period, ...``.

    Parameters
    ----------
    coefs : array-like
        Seasonal coefficients ``(c_1, ..., c_P)``.
    period : int
        Seasonal period.

    Returns
    -------
    numpy.ndarray
        Lag-form vector of length ``P * period``.
    """
    coefs = np.asarray(coefs, dtype=float)
    out = np.zeros(coefs.size * period)
    if coefs.size:
        out[period - 1 :: period] = coefs
    return out


def _ar_polynomial(lag_coefs):
    return np.concatenate([[1.0], -np.asarray(lag_coefs, dtype=float)])


def _ma_polynomial(lag_coefs):
    return np.concatenate([[1.0], np.asarray(lag_coefs, dtype=float)])


def combine_ar(ar, sar, period):
    """Lag-form coefficients of phi(B) * Phi(B^period)."""
    polynomial = np.convolve(_ar_polynomial(ar), _ar_polynomial(expand_seasonal(sar, period)))
    return -polynomial[1:]


def combine_ma(ma, sma, period):
    """Lag-form coefficients of theta(B) * Theta(B^period)."""
    polynomial = np.convolve(_ma_polynomial(ma), _ma_polynomial(expand_seasonal(sma, period)))
    return polynomial[1:]


def differencing_polynomial(d, D, period):
    """
    Coefficients of (1 - B)^d (1 - B^period)^D, constant term first.

    Examples
    --------
    >>> differencing_polynomial(1, 0, 1)
    array([ 1., -1.])
    """
    polynomial = np.array([1.0])
    for _ in range(d):
        polynomial = np.convolve(polynomial, [1.0, -1.0])
    seasonal = np.zeros(period + 1)
    seasonal[0], seasonal[-1] = 1.0, -1.0
    for _ in range(D):
        polynomial = np.convolve(polynomial, seasonal)
    return polynomial


def integrate_ar(ar_lag, d, D, period):
    """Lag-form coefficients of the AR polynomial times the differencing operator."""
    polynomial = np.convolve(_ar_polynomial(ar_lag), differencing_polynomial(d, D, period))
    return -polynomial[1:]


def difference(y, d, D, period):
    """
    Apply (1 - B)^d (1 - B^period)^D to ``y``.

    The first ``d + D * period`` values are dropped.
    """
    w = np.asarray(y, dtype=float)
    for _ in range(D):
        w = w[period:] - w[:-period]
    for _ in range(d):
        w = np.diff(w)
    return w


def min_root_modulus(polynomial):
    """
    Smallest modulus among the roots of ``c_0 + c_1 z + ... + c_k z^k``.

    Returns ``inf`` for a constant polynomial.
    """
    polynomial = np.trim_zeros(np.asarray(polynomial, dtype=float), "b")
    if polynomial.size <= 1:
        return np.inf
    roots = np.roots(polynomial[::-1])
    return float(np.min(np.abs(roots)))


def is_stationary(ar_lag, threshold=ROOT_THRESHOLD):
    """True when every AR characteristic root lies outside ``threshold``."""
    return min_root_modulus(_ar_polynomial(ar_lag)) >= threshold


def is_invertible(ma_lag, threshold=ROOT_THRESHOLD):
    """True when every MA characteristic root lies outside ``threshold``."""
    return min_root_modulus(_ma_polynomial(ma_lag)) >= threshold


def psi_weights(ar_lag, ma_lag, h):
    """
    First ``h`` weights of the MA(infinity) representation, psi_0 = 1.

    Parameters
    ----------
    ar_lag : array-like
        Full lag-form AR coefficients, differencing included.
    ma_lag : array-like
        Full lag-form MA coefficients.
    h : int
        Number of weights.

    Returns
    -------
    numpy.ndarray
        ``(psi_0, ..., psi_{h-1})``.
    """
    ar_lag = np.asarray(ar_lag, dtype=float)
    ma_lag = np.asarray(ma_lag, dtype=float)
    psi = np.zeros(h)
    psi[0] = 1.0
    for j in range(1, h):
        value = ma_lag[j - 1] if j <= ma_lag.size else 0.0
        for i in range(1, min(j, ar_lag.size) + 1):
            value += ar_lag[i - 1] * psi[j - i]
        psi[j] = value
    return psi
