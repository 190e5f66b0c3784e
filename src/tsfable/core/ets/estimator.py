import logging

import numpy as np

from tsfable.core.ets.checker import count_parameters, model_name
from tsfable.core.ets.creator import (
    SMOOTHING_LOWER,
    filler,
    initialiser,
    parameters_admissible,
)
from tsfable.core.ets.filter import ets_filter, last_state, log_likelihood
from tsfable.core.utils.ic import information_criteria
from tsfable.core.utils.optimization import PENALTY, minimise

logger = logging.getLogger(__name__)


def CF(B, y, model, period, fixed, names):  # noqa: N802
    """Negative concentrated log-likelihood, PENALTY outside the admissible region."""
    unpacked = filler(B, names, model, period, fixed)
    if not parameters_admissible(
        unpacked["persistence"], unpacked["phi"], unpacked["initial"], model
    ):
        return PENALTY
    filtered = ets_filter(
        y, model, unpacked["persistence"], unpacked["phi"], unpacked["initial"], period
    )
    if not filtered["admissible"]:
        return PENALTY
    loglik = log_likelihood(y, filtered["fitted"], filtered["errors"], model[0])
    if not np.isfinite(loglik):
        return PENALTY
    return -loglik


def _summarise(y, model, period, fixed, names, B, unpacked, filtered, evaluations=0):
    mask = ~np.isnan(y)
    obs_in_sample = int(np.sum(mask))
    n_param = count_parameters(model, period, fixed)
    df = n_param + 1
    loglik = log_likelihood(y, filtered["fitted"], filtered["errors"], model[0])
    sse = float(np.sum(filtered["errors"][mask] ** 2))
    denominator = max(obs_in_sample - df, 1)
    return {
        "model": model,
        "names": list(names),
        "B": np.asarray(B, dtype=float),
        "persistence": unpacked["persistence"],
        "phi": unpacked["phi"],
        "initial": unpacked["initial"],
        "filtered": filtered,
        "loglik": loglik,
        "nobs": obs_in_sample,
        "n_param": n_param,
        "df": df,
        "ic": information_criteria(loglik, obs_in_sample, df),
        "sigma2": sse / denominator,
        "evaluations": evaluations,
    }


def estimator(y, model, period, fixed, settings):
    """
    Estimate smoothing parameters and initial states of one ETS model.

    Parameters
    ----------
    y : numpy.ndarray
        Observations, NaN for missing values.
    model : tuple
        ``(error, trend, season)``.
    period : int
        Seasonal period.
    fixed : dict
        Fixed smoothing parameters.
    settings : dict
        Merged optimiser settings.

    Returns
    -------
    dict
        Parameter estimates, filtered states, ``loglik``, ``df``, ``ic`` and
        ``sigma2`` (innovation variance with a degrees of freedom correction).

    Raises
    ------
    RuntimeError
        If the optimiser never reaches an admissible parameter vector.
    """
    init = initialiser(y, model, period, fixed)
    names = init["names"]

    def cost(B):
        return CF(B, y, model, period, fixed, names)

    result = minimise(cost, init["B"], init["lb"], init["ub"], settings, step=init["step"])
    evaluations = result["evaluations"]

    if not result["converged"]:
        # retry from the lower bound of the smoothing parameters
        B = init["B"].copy()
        for i, name in enumerate(names):
            if name in ("alpha", "beta", "gamma"):
                B[i] = 2 * SMOOTHING_LOWER
        result = minimise(cost, B, init["lb"], init["ub"], settings, step=init["step"])
        evaluations += result["evaluations"]

    if not result["converged"]:
        raise RuntimeError("optimiser did not reach an admissible parameter vector")

    B = result["x"]
    unpacked = filler(B, names, model, period, fixed)
    filtered = ets_filter(
        y, model, unpacked["persistence"], unpacked["phi"], unpacked["initial"], period
    )
    logger.debug(
        "%s: loglik=%.4f after %d evaluations",
        model_name(model), -result["value"], evaluations,
    )
    return _summarise(y, model, period, fixed, names, B, unpacked, filtered, evaluations)


def apply_parameters(y, estimate, period, fixed):
    """
    Filter ``y`` with the parameters and initial states of ``estimate``.

    Used when the coefficients are kept (refit without re-estimation).

    Raises
    ------
    RuntimeError
        If the states leave the admissible region on the new data.
    """
    model = estimate["model"]
    unpacked = {
        "persistence": estimate["persistence"],
        "phi": estimate["phi"],
        "initial": estimate["initial"],
    }
    filtered = ets_filter(
        y, model, unpacked["persistence"], unpacked["phi"], unpacked["initial"], period
    )
    if not filtered["admissible"]:
        raise RuntimeError("states left the admissible region on the new data")
    return _summarise(
        y, model, period, fixed, estimate["names"], estimate["B"], unpacked, filtered
    )


def extend(estimate, y, y_new, period, fixed):
    """
    Continue the recursions of a fitted model over new observations.

    Parameters are kept; the states carry on from the end of ``y``.

    Returns
    -------
    dict
        Same layout as :func:`estimator` for the concatenated sample.

    Raises
    ------
    RuntimeError
        If the states leave the admissible region on the new data.
    """
    model = estimate["model"]
    previous = estimate["filtered"]
    state = last_state(previous, period)
    filtered_new = ets_filter(
        y_new, model, estimate["persistence"], estimate["phi"], state, period
    )
    if not filtered_new["admissible"]:
        raise RuntimeError("states left the admissible region on the new data")
    filtered = {
        "fitted": np.concatenate([previous["fitted"], filtered_new["fitted"]]),
        "errors": np.concatenate([previous["errors"], filtered_new["errors"]]),
        "level": np.concatenate([previous["level"], filtered_new["level"][1:]]),
        "trend": np.concatenate([previous["trend"], filtered_new["trend"][1:]]),
        "season": np.concatenate([previous["season"], filtered_new["season"][period:]]),
        "admissible": True,
    }
    unpacked = {
        "persistence": estimate["persistence"],
        "phi": estimate["phi"],
        "initial": estimate["initial"],
    }
    return _summarise(
        np.concatenate([y, y_new]), model, period, fixed, estimate["names"],
        estimate["B"], unpacked, filtered, estimate["evaluations"],
    )
