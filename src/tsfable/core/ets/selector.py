import logging

import numpy as np

from tsfable.core.ets.checker import _check_ets_model, model_name
from tsfable.core.ets.estimator import estimator
from tsfable.core.utils.ic import calculate_ic_weights
from tsfable.core.utils.optimization import NUMERICAL_ERRORS
from tsfable.errors import FitFailure

logger = logging.getLogger(__name__)


def _pick_best(fitted, ic):
    """
    Minimum information criterion with a deterministic tie-break.

    Candidates within floating tolerance of the minimum are ranked by the
    number of estimated parameters, then by their position in the canonical
    candidate order.
    """
    values = np.array([result["ic"][ic] for _, _, result in fitted])
    best_value = np.min(values)
    tied = [
        (result["n_param"], order, model, result)
        for (order, model, result), value in zip(fitted, values)
        if np.isclose(value, best_value)
    ]
    tied.sort(key=lambda item: (item[0], item[1]))
    return tied[0][2], tied[0][3]


def selector(y, options, period, settings):
    """
    Fit every admissible ETS candidate and keep the best one.

    Parameters
    ----------
    y : numpy.ndarray
        Observations, NaN for missing values.
    options : mapping
        ETS specification options.
    period : int
        Resolved seasonal period.
    settings : dict
        Merged optimiser settings.

    Returns
    -------
    dict
        ``model`` (selected ``(error, trend, season)``), ``estimate`` (its
        estimator output) and ``selection`` (one record per candidate, fitted
        or excluded, with its information criteria and Akaike weight).

    Raises
    ------
    FitFailure
        If no candidate is admissible or none of them could be estimated.
    """
    ic = options["ic"]
    checked = _check_ets_model(options, y, period)
    failures = list(checked["excluded"])
    if not checked["pool"]:
        raise FitFailure("No admissible ETS model for this series", candidates=failures)

    fitted = []
    for order, model in enumerate(checked["pool"]):
        name = model_name(model)
        try:
            result = estimator(y, model, period, checked["fixed"], settings)
        except (RuntimeError, *NUMERICAL_ERRORS) as error:
            logger.debug("%s failed: %s", name, error)
            failures.append((name, str(error)))
            continue
        if not np.isfinite(result["ic"][ic]):
            failures.append((name, f"non-finite {ic}"))
            continue
        fitted.append((order, model, result))

    if not fitted:
        raise FitFailure("No ETS candidate could be estimated", candidates=failures)

    best_model, best = _pick_best(fitted, ic)
    weights = calculate_ic_weights(
        {model_name(model): result["ic"][ic] for _, model, result in fitted}
    )

    selection = []
    for _, model, result in fitted:
        name = model_name(model)
        selection.append({
            "candidate": name,
            "n_param": result["n_param"],
            "loglik": result["loglik"],
            **result["ic"],
            "weight": weights[name],
            "status": "fitted",
            "selected": model == best_model,
        })
    for name, reason in failures:
        selection.append({
            "candidate": name,
            "n_param": np.nan,
            "loglik": np.nan,
            "aic": np.nan,
            "aicc": np.nan,
            "bic": np.nan,
            "weight": 0.0,
            "status": reason,
            "selected": False,
        })

    logger.debug("Selected %s by %s among %d candidates", model_name(best_model), ic, len(fitted))
    return {"model": best_model, "estimate": best, "selection": selection}
