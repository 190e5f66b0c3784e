import logging

import numpy as np
from scipy.signal import lfilter

from tsfable.core.arima.kalman import concentrated_loglik, kalman_filter, state_space
from tsfable.core.utils.ic import information_criteria
from tsfable.core.utils.optimization import PENALTY, minimise
from tsfable.core.utils.polynomials import (
    combine_ar,
    combine_ma,
    difference,
    differencing_polynomial,
    is_invertible,
    is_stationary,
)

logger = logging.getLogger(__name__)


def order_name(order, period, constant):
    """``ARIMA(p,d,q)(P,D,Q)[m] w/ mean``-style label."""
    p, d, q, P, D, Q = order  # noqa: N806
    name = f"ARIMA({p},{d},{q})"
    if P or D or Q:
        name += f"({P},{D},{Q})[{period}]"
    if constant:
        name += " w/ mean" if d + D == 0 else " w/ drift"
    return name


def parameter_names(order, constant):
    p, _, q, P, _, Q = order  # noqa: N806
    names = [f"ar{i + 1}" for i in range(p)]
    names += [f"ma{i + 1}" for i in range(q)]
    names += [f"sar{i + 1}" for i in range(P)]
    names += [f"sma{i + 1}" for i in range(Q)]
    if constant:
        names.append("constant")
    return names


def filler(B, order, constant):
    """Split the parameter vector into AR, MA, seasonal AR, seasonal MA and mean."""
    p, _, q, P, _, Q = order  # noqa: N806
    B = np.asarray(B, dtype=float)
    position = 0
    parts = {}
    for name, size in (("ar", p), ("ma", q), ("sar", P), ("sma", Q)):
        parts[name] = B[position : position + size]
        position += size
    parts["mean"] = float(B[position]) if constant else 0.0
    return parts


def polynomials(parts, period):
    """Lag-form combined AR and MA coefficients."""
    ar_lag = combine_ar(parts["ar"], parts["sar"], period)
    ma_lag = combine_ma(parts["ma"], parts["sma"], period)
    return ar_lag, ma_lag


def CF(B, w, order, period, constant):  # noqa: N802
    """Negative concentrated exact log-likelihood of the differenced series."""
    parts = filler(B, order, constant)
    ar_lag, ma_lag = polynomials(parts, period)
    if not (is_stationary(ar_lag, threshold=1.0) and is_invertible(ma_lag, threshold=1.0)):
        return PENALTY
    transition, rrt = state_space(ar_lag, ma_lag)
    filtered = kalman_filter(w - parts["mean"], transition, rrt)
    loglik = concentrated_loglik(filtered["sumsq"], filtered["sumlog"], filtered["nobs"])
    if not np.isfinite(loglik):
        return PENALTY
    return -loglik


def css_residuals(w, ar_lag, ma_lag, mean=0.0):
    """
    Conditional residuals of the differenced series.

    ``e_t = x_t - sum_i ar_i x_{t-i} - sum_j ma_j e_{t-j}`` with
    ``x = w - mean``, conditioning on the first ``len(ar_lag)`` values and
    zero pre-sample residuals. Missing values enter as zero.

    Returns
    -------
    tuple
        ``(residuals, used)`` where ``used`` marks the residuals that enter
        the sum of squares.
    """
    x = np.asarray(w, dtype=float) - mean
    missing = np.isnan(x)
    ncond = ar_lag.size
    u = lfilter(np.concatenate([[1.0], -ar_lag]), [1.0], np.where(missing, 0.0, x))
    u[:ncond] = 0.0
    u[missing] = 0.0
    residuals = lfilter([1.0], np.concatenate([[1.0], ma_lag]), u)
    used = ~missing
    used[:ncond] = False
    return residuals, used


def CF_CSS(B, w, order, period, constant):  # noqa: N802
    """Conditional sum of squares cost, ``0.5 * log(SSE / n)``."""
    parts = filler(B, order, constant)
    ar_lag, ma_lag = polynomials(parts, period)
    if not (is_stationary(ar_lag, threshold=1.0) and is_invertible(ma_lag, threshold=1.0)):
        return PENALTY
    residuals, used = css_residuals(w, ar_lag, ma_lag, parts["mean"])
    nu = int(np.sum(used))
    if nu == 0:
        return PENALTY
    ssq = float(np.sum(residuals[used] ** 2))
    if not np.isfinite(ssq) or ssq <= 0:
        return PENALTY
    return 0.5 * np.log(ssq / nu)


def css_start(w, order, period, constant, B, lb, ub, settings, step=None):
    """
    Starting values for maximum likelihood from a CSS fit.

    Falls back to ``B`` when the CSS optimiser does not converge or lands
    on a non-stationary or non-invertible model.
    """
    if B.size == 0:
        return B

    def cost(B):
        return CF_CSS(B, w, order, period, constant)

    result = minimise(cost, B, lb, ub, settings, step=step)
    if not result["converged"]:
        logger.debug("CSS did not converge for %s", order_name(order, period, constant))
        return B
    parts = filler(result["x"], order, constant)
    ar_lag, ma_lag = polynomials(parts, period)
    if not (is_stationary(ar_lag) and is_invertible(ma_lag)):
        logger.debug("CSS start of %s is not admissible", order_name(order, period, constant))
        return B
    return np.asarray(result["x"], dtype=float)


def integrate_fitted(y, w_hat, delta, filled=None):
    """
    Undo the differencing of one-step predictions.

    ``yhat_t = what_{t-k} + sum_i delta_i * y_{t-i}`` where missing past
    values are replaced by their own predictions as the recursion proceeds.

    Parameters
    ----------
    y : numpy.ndarray
        Observations (NaN for missing).
    w_hat : numpy.ndarray
        One-step predictions of the differenced series, mean included;
        element ``j`` belongs to ``y[j + k]``.
    delta : numpy.ndarray
        Lag-form coefficients of the differencing operator (length ``k``).
    filled : numpy.ndarray, optional
        Already reconstructed prefix of ``y`` (when extending a fit).

    Returns
    -------
    tuple
        ``(fitted, y_filled)``; the first ``k`` fitted values are NaN.
    """
    k = delta.size
    n = len(y)
    fitted = np.full(n, np.nan)
    y_filled = np.array(y, dtype=float)
    start = k
    if filled is not None:
        y_filled[: filled.size] = filled
        start = max(k, filled.size)
    reversed_delta = delta[::-1]
    for t in range(start, n):
        fitted[t] = w_hat[t - k] + float(np.dot(reversed_delta, y_filled[t - k : t]))
        if np.isnan(y_filled[t]):
            y_filled[t] = fitted[t]
    return fitted, y_filled


def _summarise(y, order, period, constant, B, filtered, evaluations=0, y_filled=None,
               fitted=None):
    p, d, q, P, D, Q = order  # noqa: N806
    parts = filler(B, order, constant)
    ar_lag, ma_lag = polynomials(parts, period)
    delta = -differencing_polynomial(d, D, period)[1:]
    k = delta.size

    if fitted is None:
        fitted, y_filled = integrate_fitted(y, filtered["predictions"] + parts["mean"], delta)
    residuals = np.full(len(y), np.nan)
    residuals[k:] = filtered["innovations"]

    nobs = filtered["nobs"]
    n_param = p + q + P + Q + int(bool(constant))
    df = n_param + 1
    loglik = concentrated_loglik(filtered["sumsq"], filtered["sumlog"], nobs)
    return {
        "order": tuple(order),
        "constant": bool(constant),
        "names": parameter_names(order, constant),
        "B": np.asarray(B, dtype=float),
        "parts": parts,
        "ar_lag": ar_lag,
        "ma_lag": ma_lag,
        "delta": delta,
        "filtered": filtered,
        "fitted": fitted,
        "residuals": residuals,
        "y_filled": y_filled,
        "loglik": loglik,
        "nobs": nobs,
        "n_param": n_param,
        "df": df,
        "ic": information_criteria(loglik, nobs, df),
        "sigma2": filtered["sumsq"] / nobs if nobs else np.nan,
        "evaluations": evaluations,
    }


def estimator(y, order, period, constant, settings):
    """
    Maximum likelihood estimation of one seasonal ARIMA order.

    Conditional sum of squares estimates are used as starting values for
    the exact likelihood.

    Parameters
    ----------
    y : numpy.ndarray
        Observations, NaN for missing values.
    order : tuple
        ``(p, d, q, P, D, Q)``.
    period : int
        Seasonal period.
    constant : bool
        Include a mean of the differenced series.
    settings : dict
        Merged optimiser settings.

    Returns
    -------
    dict
        Coefficients, filter output, fitted values, ``loglik``, ``df``,
        ``ic`` and ``sigma2``.

    Raises
    ------
    RuntimeError
        If the optimiser fails or the estimated model has characteristic
        roots inside the 1.01 circle.
    """
    p, d, q, P, D, Q = order  # noqa: N806
    w = difference(y, d, D, period)
    observed = w[~np.isnan(w)]
    n_coef = p + q + P + Q + int(bool(constant))
    if observed.size <= n_coef + 2:
        raise RuntimeError("not enough observations after differencing")

    B = np.zeros(n_coef)
    step = np.full(n_coef, 0.1)
    if constant:
        B[-1] = float(np.mean(observed))
        scale = float(np.std(observed))
        step[-1] = max(0.1 * scale, 1e-4 * max(abs(B[-1]), 1.0))
    lb = np.full(n_coef, -np.inf)
    ub = np.full(n_coef, np.inf)
    B = css_start(w, order, period, constant, B, lb, ub, settings, step=step)

    def cost(B):
        return CF(B, w, order, period, constant)

    result = minimise(cost, B, lb, ub, settings, step=step)
    if not result["converged"]:
        raise RuntimeError("optimiser did not reach a stationary, invertible model")

    parts = filler(result["x"], order, constant)
    ar_lag, ma_lag = polynomials(parts, period)
    if not is_stationary(ar_lag):
        raise RuntimeError("AR characteristic roots too close to the unit circle")
    if not is_invertible(ma_lag):
        raise RuntimeError("MA characteristic roots too close to the unit circle")

    transition, rrt = state_space(ar_lag, ma_lag)
    filtered = kalman_filter(w - parts["mean"], transition, rrt)
    logger.debug(
        "%s: loglik=%.4f after %d evaluations",
        order_name(order, period, constant), -result["value"], result["evaluations"],
    )
    return _summarise(y, order, period, constant, result["x"], filtered, result["evaluations"])


def apply_parameters(y, estimate, period):
    """Filter ``y`` with the coefficients of ``estimate`` (no re-estimation)."""
    order = estimate["order"]
    p, d, q, P, D, Q = order  # noqa: N806
    w = difference(y, d, D, period)
    transition, rrt = state_space(estimate["ar_lag"], estimate["ma_lag"])
    filtered = kalman_filter(w - estimate["parts"]["mean"], transition, rrt)
    if filtered["nobs"] == 0:
        raise RuntimeError("no usable observations after differencing")
    return _summarise(y, order, period, estimate["constant"], estimate["B"], filtered)


def extend(estimate, y, y_new, period):
    """
    Continue the filter of a fitted model over new observations.

    The Kalman state, the likelihood sums and the reconstructed series carry
    on from where the previous fit ended; coefficients are kept.
    """
    order = estimate["order"]
    _, d, _, _, D, _ = order  # noqa: N806
    y_full = np.concatenate([y, y_new])
    w_full = difference(y_full, d, D, period)
    previous = estimate["filtered"]
    w_new = w_full[previous["predictions"].size :]

    transition, rrt = state_space(estimate["ar_lag"], estimate["ma_lag"])
    mean = estimate["parts"]["mean"]
    step = kalman_filter(
        w_new - mean, transition, rrt, a=previous["a"], P=previous["P"],
        steady=previous["steady"],
    )
    filtered = {
        "predictions": np.concatenate([previous["predictions"], step["predictions"]]),
        "innovations": np.concatenate([previous["innovations"], step["innovations"]]),
        "variances": np.concatenate([previous["variances"], step["variances"]]),
        "sumsq": previous["sumsq"] + step["sumsq"],
        "sumlog": previous["sumlog"] + step["sumlog"],
        "nobs": previous["nobs"] + step["nobs"],
        "a": step["a"],
        "P": step["P"],
        "steady": step["steady"],
    }
    fitted_new, y_filled = integrate_fitted(
        y_full, filtered["predictions"] + mean, estimate["delta"], filled=estimate["y_filled"]
    )
    fitted = np.concatenate([estimate["fitted"], fitted_new[len(y):]])
    return _summarise(
        y_full, order, period, estimate["constant"], estimate["B"], filtered,
        estimate["evaluations"], y_filled=y_filled, fitted=fitted,
    )
