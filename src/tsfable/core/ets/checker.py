import logging

import numpy as np

from tsfable.spec.auto import is_auto

logger = logging.getLogger(__name__)

ERROR_TYPES = ["A", "M"]
TREND_TYPES = ["N", "A", "Ad"]
SEASON_TYPES = ["N", "A", "M"]


def model_name(model):
    """``("M", "Ad", "N") -> "ETS(M,Ad,N)"``"""
    return "ETS({},{},{})".format(*model)


def _expand_component(value, choices):
    if is_auto(value):
        return list(choices)
    return [value]


def count_parameters(model, period, fixed):
    """
    Number of estimated parameters of an ETS model.

    Parameters
    ----------
    model : tuple
        ``(error, trend, season)``.
    period : int
        Seasonal period.
    fixed : dict
        Fixed smoothing parameters; keys among ``alpha, beta, gamma, phi``.

    Returns
    -------
    int
        Smoothing parameters plus initial states. The innovation variance is
        not included.
    """
    _, trend, season = model
    n_param = 0 if "alpha" in fixed else 1
    n_param += 1  # initial level
    if trend != "N":
        n_param += 0 if "beta" in fixed else 1
        n_param += 1  # initial slope
    if trend == "Ad":
        n_param += 0 if "phi" in fixed else 1
    if season != "N":
        n_param += 0 if "gamma" in fixed else 1
        n_param += period - 1
    return n_param


def fixed_parameters(options):
    """Smoothing parameters the caller fixed, as a plain dict."""
    return {
        name: options[name]
        for name in ("alpha", "beta", "gamma", "phi")
        if not is_auto(options[name])
    }


def _check_ets_model(options, y, period):
    """
    Build the pool of admissible ETS candidates for one series.

    Candidates are enumerated in the canonical order error x trend x season,
    restricted to the components the caller fixed. Combinations that cannot
    be fitted on this series are excluded up front (never fitted and
    discarded):

    - multiplicative error or season on data with non-positive values
    - seasonal models when the period is 1 or the sample holds fewer than
      two full seasonal cycles
    - additive error with multiplicative season when ``restrict`` is set
    - models with more parameters than the sample can support

    Parameters
    ----------
    options : mapping
        ETS specification options (see :data:`tsfable.spec.options.ETS_OPTIONS`).
    y : numpy.ndarray
        Observations; NaN marks missing values.
    period : int
        Resolved seasonal period.

    Returns
    -------
    dict
        ``pool`` (list of ``(error, trend, season)`` tuples in canonical
        order), ``excluded`` (list of ``(name, reason)``) and ``fixed``.
    """
    observed = y[~np.isnan(y)]
    obs_in_sample = observed.size
    positive = obs_in_sample > 0 and bool(np.all(observed > 0))
    fixed = fixed_parameters(options)

    pool = []
    excluded = []
    for error in _expand_component(options["error"], ERROR_TYPES):
        for trend in _expand_component(options["trend"], TREND_TYPES):
            for season in _expand_component(options["season"], SEASON_TYPES):
                model = (error, trend, season)
                reason = None
                if not positive and (error == "M" or season == "M"):
                    reason = "multiplicative components need strictly positive data"
                elif season != "N" and period <= 1:
                    reason = "seasonal model needs a seasonal period greater than 1"
                elif season != "N" and obs_in_sample < 2 * period:
                    reason = "seasonal model needs at least two full seasonal cycles"
                elif options["restrict"] and error == "A" and season == "M":
                    reason = "additive error with multiplicative season is restricted"
                elif count_parameters(model, period, fixed) + 2 >= obs_in_sample:
                    reason = "not enough observations for the number of parameters"
                if reason is None:
                    pool.append(model)
                else:
                    excluded.append((model_name(model), reason))

    logger.debug(
        "ETS pool: %d candidates, %d excluded", len(pool), len(excluded)
    )
    return {"pool": pool, "excluded": excluded, "fixed": fixed}
