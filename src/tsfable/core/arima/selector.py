"""
ARIMA order search.

Differencing orders are fixed first, so every candidate in one search is
fitted to the same differenced series and the information criteria are
comparable. The (p, q, P, Q, constant) space is then explored either
exhaustively or with the stepwise procedure of Hyndman and Khandakar
(2008):

1. Fit the seed models (2,2)(1,1), (0,0)(0,0), (1,0)(1,0) and (0,1)(0,1)
   (seasonal parts only when the period is above 1) and keep the best.
2. Visit the neighbours of the current best in a fixed order: seasonal
   orders P and Q by +-1 (alone and jointly), then p and q by +-1 (alone and
   jointly), then toggling the constant. The first neighbour that strictly
   improves the criterion becomes the new best and the scan restarts.
3. Stop when no neighbour improves or ``max_search_steps`` models have been
   fitted.
"""

import logging

import numpy as np

from tsfable.core.arima.differencing import choose_differencing
from tsfable.core.arima.estimator import estimator, order_name
from tsfable.core.utils.ic import calculate_ic_weights
from tsfable.core.utils.optimization import NUMERICAL_ERRORS
from tsfable.errors import FitFailure
from tsfable.spec.auto import is_auto

logger = logging.getLogger(__name__)

_MOVES = [(-1, 0), (1, 0), (0, -1), (0, 1), (-1, -1), (1, 1), (-1, 1), (1, -1)]


def _ranges(options, period):
    """Admissible values of p, q, P and Q."""
    seasonal = period > 1

    def values(name, maximum, allowed=True):
        if not is_auto(options[name]):
            return [options[name]]
        if not allowed:
            return [0]
        return list(range(options[maximum] + 1))

    return {
        "p": values("p", "max_p"),
        "q": values("q", "max_q"),
        "P": values("P", "max_P", seasonal),
        "Q": values("Q", "max_Q", seasonal),
    }


def _constant_choices(options, d, D):  # noqa: N803
    allowed = d + D <= 1
    constant = options["constant"]
    if is_auto(constant):
        return [True, False] if allowed else [False]
    if constant and not allowed:
        return []
    return [bool(constant)]


class _Search:
    """Book-keeping of fitted candidates during one order search."""

    def __init__(self, y, d, D, period, options, settings, ranges):  # noqa: N803
        self.y = y
        self.d = d
        self.D = D
        self.period = period
        self.ic = options["ic"]
        self.max_order = options["max_order"]
        self.settings = settings
        self.ranges = ranges
        self.results = {}
        self.failures = []
        self.visited = set()

    def admissible(self, p, q, P, Q):  # noqa: N803
        return (
            p in self.ranges["p"]
            and q in self.ranges["q"]
            and P in self.ranges["P"]
            and Q in self.ranges["Q"]
            and p + q + P + Q <= self.max_order
        )

    def fit(self, p, q, P, Q, constant):  # noqa: N803
        """Fit one candidate once; return its criterion (inf on failure)."""
        key = (p, q, P, Q, constant)
        if key in self.visited:
            result = self.results.get(key)
            return result["ic"][self.ic] if result is not None else np.inf
        self.visited.add(key)
        order = (p, self.d, q, P, self.D, Q)
        name = order_name(order, self.period, constant)
        try:
            result = estimator(self.y, order, self.period, constant, self.settings)
        except (RuntimeError, *NUMERICAL_ERRORS) as error:
            logger.debug("%s failed: %s", name, error)
            self.failures.append((name, str(error)))
            return np.inf
        value = result["ic"][self.ic]
        if not np.isfinite(value):
            self.failures.append((name, f"non-finite {self.ic}"))
            return np.inf
        self.results[key] = result
        logger.debug("%s: %s=%.4f", name, self.ic, value)
        return value


def _closest(values, target):
    return min(values, key=lambda v: (abs(v - target), v))


def _stepwise(search, constants, max_steps):
    ranges = search.ranges
    seeds = [(2, 2, 1, 1), (0, 0, 0, 0), (1, 0, 1, 0), (0, 1, 0, 1)]
    best_key, best_value = None, np.inf
    for p, q, P, Q in seeds:  # noqa: N806
        p, q = _closest(ranges["p"], p), _closest(ranges["q"], q)
        P, Q = _closest(ranges["P"], P), _closest(ranges["Q"], Q)  # noqa: N806
        if p + q + P + Q > search.max_order:
            continue
        for constant in constants:
            if len(search.visited) >= max_steps:
                break
            value = search.fit(p, q, P, Q, constant)
            if value < best_value:
                best_key, best_value = (p, q, P, Q, constant), value

    if best_key is None:
        return

    improved = True
    while improved and len(search.visited) < max_steps:
        improved = False
        p, q, P, Q, constant = best_key  # noqa: N806
        neighbours = [(p, q, P + dP, Q + dQ, constant) for dP, dQ in _MOVES]
        neighbours += [(p + dp, q + dq, P, Q, constant) for dp, dq in _MOVES]
        neighbours += [(p, q, P, Q, c) for c in constants if c != constant]
        for key in neighbours:
            if len(search.visited) >= max_steps:
                break
            if key in search.visited or not search.admissible(*key[:4]):
                continue
            value = search.fit(*key)
            if value < best_value:
                best_key, best_value = key, value
                improved = True
                break


def _exhaustive(search, constants):
    ranges = search.ranges
    for p in ranges["p"]:
        for q in ranges["q"]:
            for P in ranges["P"]:  # noqa: N806
                for Q in ranges["Q"]:  # noqa: N806
                    if not search.admissible(p, q, P, Q):
                        continue
                    for constant in constants:
                        search.fit(p, q, P, Q, constant)


def _pick_best(results, ic):
    keys = list(results)
    values = np.array([results[k]["ic"][ic] for k in keys])
    best_value = np.min(values)
    tied = [
        (results[k]["n_param"], i, k)
        for i, (k, value) in enumerate(zip(keys, values))
        if np.isclose(value, best_value)
    ]
    tied.sort()
    return tied[0][2]


def selector(y, options, period, settings):
    """
    Automatic seasonal ARIMA for one series.

    Parameters
    ----------
    y : numpy.ndarray
        Observations, NaN for missing values.
    options : mapping
        ARIMA specification options.
    period : int
        Resolved seasonal period.
    settings : dict
        Merged optimiser settings.

    Returns
    -------
    dict
        ``estimate`` of the selected order, the differencing ``d`` and ``D``
        and ``selection`` (one record per fitted or failed candidate).

    Raises
    ------
    FitFailure
        If no candidate can be estimated.
    """
    d, D = choose_differencing(y, period, options)  # noqa: N806
    constants = _constant_choices(options, d, D)
    if not constants:
        raise FitFailure(
            "A constant is not allowed with the chosen differencing",
            candidates=[(f"d={d}, D={D}", "constant requires d + D <= 1")],
        )

    ranges = _ranges(options, period)
    search = _Search(y, d, D, period, options, settings, ranges)
    if options["stepwise"]:
        _stepwise(search, constants, options["max_search_steps"])
    else:
        _exhaustive(search, constants)

    if not search.results:
        raise FitFailure("No ARIMA candidate could be estimated", candidates=search.failures)

    ic = options["ic"]
    best_key = _pick_best(search.results, ic)
    best = search.results[best_key]
    names = {
        key: order_name(result["order"], period, result["constant"])
        for key, result in search.results.items()
    }
    weights = calculate_ic_weights({names[k]: r["ic"][ic] for k, r in search.results.items()})

    selection = []
    for key, result in search.results.items():
        selection.append({
            "candidate": names[key],
            "n_param": result["n_param"],
            "loglik": result["loglik"],
            **result["ic"],
            "weight": weights[names[key]],
            "status": "fitted",
            "selected": key == best_key,
        })
    for name, reason in search.failures:
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

    logger.debug(
        "Selected %s by %s after %d models",
        names[best_key], ic, len(search.visited),
    )
    return {"estimate": best, "d": d, "D": D, "selection": selection}
