"""
Specification factories.

These are the user-facing constructors: ``ETS(trend="A")`` builds a
:class:`ModelSpec` for the ETS family. Anything left at ``AUTO`` is chosen
by the fitter for each series separately.
"""

from typing import Any, Dict, Optional

from tsfable.spec.auto import AUTO
from tsfable.spec.specification import ModelFamily, ModelSpec


def ETS(  # noqa: N802
    error=AUTO,
    trend=AUTO,
    season=AUTO,
    period=AUTO,
    alpha=AUTO,
    beta=AUTO,
    gamma=AUTO,
    phi=AUTO,
    ic: str = "aicc",
    restrict: bool = True,
    optimizer: Optional[Dict[str, Any]] = None,
) -> ModelSpec:
    """
    Exponential smoothing state space model specification.

    Parameters
    ----------
    error : {"A", "M"} or AUTO
        Additive or multiplicative error.
    trend : {"N", "A", "Ad"} or AUTO
        No trend, additive trend or additive damped trend.
    season : {"N", "A", "M"} or AUTO
        No seasonality, additive or multiplicative seasonality.
    period : int or AUTO
        Seasonal period. ``AUTO`` derives it from the series frequency
        (4 for quarterly, 12 for monthly, ...).
    alpha, beta, gamma : float or AUTO
        Fixed smoothing parameters in (0, 1). ``AUTO`` estimates them.
    phi : float or AUTO
        Fixed damping parameter in [0.8, 0.98].
    ic : {"aic", "aicc", "bic"}, default="aicc"
        Information criterion used to select among candidates.
    restrict : bool, default=True
        Exclude additive error with multiplicative seasonality.
    optimizer : dict, optional
        Overrides for :data:`tsfable.config.OPTIMIZER_DEFAULTS`.

    Returns
    -------
    ModelSpec

    Examples
    --------
    >>> ETS()                       # fully automatic
    >>> ETS(error="A", trend="Ad")  # search over seasonal types only
    """
    return ModelSpec(
        ModelFamily.ETS,
        dict(
            error=error, trend=trend, season=season, period=period, alpha=alpha,
            beta=beta, gamma=gamma, phi=phi, ic=ic, restrict=restrict,
            optimizer=optimizer,
        ),
    )


def ARIMA(  # noqa: N802
    p=AUTO,
    d=AUTO,
    q=AUTO,
    P=AUTO,  # noqa: N803
    D=AUTO,  # noqa: N803
    Q=AUTO,  # noqa: N803
    period=AUTO,
    constant=AUTO,
    ic: str = "aicc",
    stepwise: bool = True,
    **limits,
) -> ModelSpec:
    """
    Seasonal ARIMA(p,d,q)(P,D,Q)[period] specification.

    Parameters
    ----------
    p, d, q : int or AUTO
        Non-seasonal AR order, differencing order and MA order.
    P, D, Q : int or AUTO
        Seasonal AR order, seasonal differencing order and seasonal MA order.
    period : int or AUTO
        Seasonal period; ``AUTO`` derives it from the series frequency.
    constant : bool or AUTO
        Include a mean (d + D = 0) or drift (d + D = 1) term.
    ic : {"aic", "aicc", "bic"}, default="aicc"
        Selection criterion.
    stepwise : bool, default=True
        Stepwise hill-climb when True, exhaustive enumeration otherwise.
    **limits
        Search limits: ``max_p``, ``max_q``, ``max_P``, ``max_Q``, ``max_d``,
        ``max_D``, ``max_order``, ``max_search_steps``, ``unitroot_alpha``,
        ``seasonal_threshold`` and ``optimizer``.

    Returns
    -------
    ModelSpec
    """
    options = dict(
        p=p, d=d, q=q, P=P, D=D, Q=Q, period=period, constant=constant, ic=ic,
        stepwise=stepwise,
    )
    options.update(limits)
    return ModelSpec(ModelFamily.ARIMA, options)


def MEAN() -> ModelSpec:  # noqa: N802
    """Forecast every future value with the historical mean."""
    return ModelSpec(ModelFamily.MEAN)


def NAIVE() -> ModelSpec:  # noqa: N802
    """Forecast every future value with the last observation."""
    return ModelSpec(ModelFamily.NAIVE)


def SNAIVE(period=AUTO) -> ModelSpec:  # noqa: N802
    """Forecast with the observation from the same season of the last cycle."""
    return ModelSpec(ModelFamily.SNAIVE, {"period": period})


def RW(drift: bool = False) -> ModelSpec:  # noqa: N802
    """Random walk, optionally with drift."""
    return ModelSpec(ModelFamily.RW, {"drift": drift})
