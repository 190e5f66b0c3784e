"""
Thin nlopt driver shared by the ETS and ARIMA estimators.

Both estimators minimise a negative log-likelihood over a bounded box. The
cost functions return :data:`PENALTY` for inadmissible parameter vectors, so
the optimiser only ever sees finite values.
"""

import logging

import nlopt
import numpy as np

logger = logging.getLogger(__name__)

PENALTY = 1e10

# numerical problems inside a cost function that mean "bad candidate point"
NUMERICAL_ERRORS = (ArithmeticError, ValueError, np.linalg.LinAlgError)


def _configure_optimizer(opt, lb, ub, maxeval_used, settings):
    """
    Configure NLopt optimizer with appropriate settings.

    Parameters
    ----------
    opt : nlopt.opt
        NLopt optimizer object
    lb, ub : array-like
        Lower and upper bounds
    maxeval_used : int
        Maximum number of evaluations
    settings : dict
        Merged optimiser settings (see :data:`tsfable.config.OPTIMIZER_DEFAULTS`)

    Returns
    -------
    nlopt.opt
        Configured optimizer
    """
    opt.set_lower_bounds(lb)
    opt.set_upper_bounds(ub)

    opt.set_xtol_rel(settings["xtol_rel"])
    opt.set_ftol_rel(settings["ftol_rel"])
    opt.set_ftol_abs(settings["ftol_abs"])
    opt.set_xtol_abs(settings["xtol_abs"])

    opt.set_maxeval(maxeval_used)
    if settings["maxtime"] is not None:
        opt.set_maxtime(settings["maxtime"])
    return opt


def _create_objective_function(cost, tracker):
    """
    Wrap ``cost`` for nlopt: cap non-finite values and remember the best point.
    """

    def objective_wrapper(x, grad):
        try:
            cf_value = float(cost(x))
        except NUMERICAL_ERRORS:
            cf_value = PENALTY

        tracker["evaluations"] += 1
        if not np.isfinite(cf_value) or cf_value > PENALTY:
            cf_value = PENALTY
        if cf_value < tracker["value"]:
            tracker["value"] = cf_value
            tracker["x"] = np.array(x, dtype=float)
        return cf_value

    return objective_wrapper


def minimise(cost, B, lb, ub, settings, step=None):
    """
    Minimise ``cost`` over the box ``[lb, ub]`` starting from ``B``.

    Parameters
    ----------
    cost : callable
        Function of the parameter vector returning a scalar to minimise.
    B : array-like
        Starting values. Clipped into the bounds.
    lb, ub : array-like
        Bounds, same length as ``B``.
    settings : dict
        Merged optimiser settings. The evaluation cap is
        ``maxeval_per_param * len(B)``.
    step : array-like, optional
        Initial simplex step for each parameter.

    Returns
    -------
    dict
        ``x`` (best parameter vector), ``value`` (cost at ``x``),
        ``evaluations`` and ``converged`` (False when the cost never left the
        penalty region).
    """
    B = np.asarray(B, dtype=float).copy()
    lb = np.asarray(lb, dtype=float)
    ub = np.asarray(ub, dtype=float)
    tracker = {"x": B.copy(), "value": np.inf, "evaluations": 0}
    objective_wrapper = _create_objective_function(cost, tracker)

    if B.size == 0:
        objective_wrapper(B, None)
        return {
            "x": B,
            "value": tracker["value"],
            "evaluations": tracker["evaluations"],
            "converged": tracker["value"] < PENALTY,
        }

    B = np.clip(B, lb, ub)
    algorithm = settings["algorithm"]
    nlopt_algorithm = getattr(nlopt, algorithm.replace("NLOPT_", ""), nlopt.LN_NELDERMEAD)
    opt = nlopt.opt(nlopt_algorithm, len(B))
    opt = _configure_optimizer(opt, lb, ub, settings["maxeval_per_param"] * len(B), settings)
    if step is not None:
        opt.set_initial_step(np.asarray(step, dtype=float))
    opt.set_min_objective(objective_wrapper)

    try:
        opt.optimize(B)
    except nlopt.RoundoffLimited:
        # the best point seen so far is still usable
        logger.debug("nlopt stopped on roundoff after %d evaluations", tracker["evaluations"])

    return {
        "x": tracker["x"],
        "value": tracker["value"],
        "evaluations": tracker["evaluations"],
        "converged": tracker["value"] < PENALTY,
    }
