"""Exponential smoothing state space models."""

import logging

import numpy as np
import pandas as pd

from tsfable.config import get_option, optimizer_settings
from tsfable.core.ets.checker import _check_ets_model, fixed_parameters, model_name
from tsfable.core.ets.estimator import apply_parameters, estimator, extend
from tsfable.core.ets.filter import last_state
from tsfable.core.ets.forecaster import (
    class1_variance,
    class2_variance,
    distribution_class,
    point_forecast,
    simulate,
)
from tsfable.core.ets.selector import selector
from tsfable.core.utils.optimization import NUMERICAL_ERRORS
from tsfable.distributions import Normal, Sample
from tsfable.errors import RefitError, StreamError
from tsfable.models.base import FittedModel, resolve_period
from tsfable.spec.specification import ModelFamily

logger = logging.getLogger(__name__)


class ETSModel(FittedModel):
    """
    Fitted ETS(error, trend, season) model.

    Parameters
    ----------
    spec : ModelSpec
        Specification the model was fitted from.
    series : pandas.Series
        Training data.
    period : int
        Seasonal period.
    estimate : dict
        Output of :func:`tsfable.core.ets.estimator.estimator`.
    selection : list of dict, optional
        Candidate records of the automatic search.

    Examples
    --------
    >>> fit = ETSModel.fit(ETS(error="A", trend="N", season="N"), y)
    >>> fit.model_name
    'ETS(A,N,N)'
    >>> fit.forecast(4)  # doctest: +SKIP
    """

    family = ModelFamily.ETS

    def __init__(self, spec, series, period, estimate, selection=None):
        super().__init__(spec, series, period)
        self._estimate = estimate
        self._selection = selection

    @classmethod
    def fit(cls, spec, series):
        period = resolve_period(spec, series)
        settings = optimizer_settings(spec["optimizer"])
        y = series.to_numpy(dtype=float)
        result = selector(y, spec.options, period, settings)
        logger.debug("%s: selected %s", series.name, model_name(result["model"]))
        return cls(spec, series, period, result["estimate"], result["selection"])

    @property
    def model(self):
        """Selected ``(error, trend, season)`` triple."""
        return self._estimate["model"]

    @property
    def model_name(self):
        return model_name(self.model)

    @property
    def persistence(self):
        return dict(self._estimate["persistence"])

    @property
    def phi(self):
        return self._estimate["phi"]

    @property
    def fitted(self):
        return pd.Series(self._estimate["filtered"]["fitted"], index=self.series.index,
                         name=".fitted")

    @property
    def residuals(self):
        """
        Innovation residuals.

        Additive error models return ``y - fitted``; multiplicative error
        models return the relative errors ``(y - fitted) / fitted``. Missing
        observations have missing residuals.
        """
        errors = np.array(self._estimate["filtered"]["errors"], dtype=float)
        errors[self.series.isna().to_numpy()] = np.nan
        return pd.Series(errors, index=self.series.index, name=".resid")

    @property
    def sigma2(self):
        return self._estimate["sigma2"]

    @property
    def loglik(self):
        return self._estimate["loglik"]

    @property
    def information_criteria(self):
        return dict(self._estimate["ic"])

    @property
    def nparam(self):
        """Number of estimated parameters (variance excluded)."""
        return self._estimate["n_param"]

    @property
    def selection(self):
        if self._selection is None:
            return None
        return pd.DataFrame(self._selection)

    def _state(self):
        return last_state(self._estimate["filtered"], self.period)

    def _forecast(self, h, times=None, seed=None, **kwargs):
        model = self.model
        state = self._state()
        persistence = self._estimate["persistence"]
        kind = distribution_class(model)
        if kind == 3:
            times = get_option("simulation.times") if times is None else int(times)
            paths = self._simulate(h, self.innovations(h, times, seed))
            return [Sample(paths[:, i]) for i in range(h)]

        mean = point_forecast(state, model, self.phi, self.period, h)
        if kind == 1:
            variance = class1_variance(model, persistence, self.phi, self.period,
                                       self.sigma2, h)
        else:
            variance = class2_variance(model, persistence, self.phi, self.period,
                                       self.sigma2, mean)
        sigma = np.sqrt(np.maximum(variance, 0.0))
        return [Normal(m, s) for m, s in zip(mean, sigma)]

    def _simulate(self, h, innovations):
        return simulate(self._state(), self.model, self._estimate["persistence"], self.phi,
                        self.period, h, innovations)

    def _check_structure(self, series):
        options = dict(self.spec.options)
        options["error"], options["trend"], options["season"] = self.model
        options["restrict"] = False
        checked = _check_ets_model(options, series.to_numpy(dtype=float), self.period)
        if not checked["pool"]:
            _, reason = checked["excluded"][0]
            raise RefitError(f"Cannot refit {self.model_name}: {reason}.")
        return checked["fixed"]

    def _refit(self, series, reestimate):
        fixed = self._check_structure(series)
        y = series.to_numpy(dtype=float)
        try:
            if reestimate:
                settings = optimizer_settings(self.spec["optimizer"])
                estimate = estimator(y, self.model, self.period, fixed, settings)
            else:
                estimate = apply_parameters(y, self._estimate, self.period, fixed)
        except (RuntimeError, *NUMERICAL_ERRORS) as error:
            raise RefitError(f"Cannot refit {self.model_name}: {error}") from error
        return type(self)(self.spec, series, self.period, estimate)

    def _stream(self, series):
        if len(series) == 0:
            return type(self)(self.spec, self.series.copy(), self.period, self._estimate,
                              self._selection)
        try:
            estimate = extend(
                self._estimate,
                self.series.to_numpy(dtype=float),
                series.to_numpy(dtype=float),
                self.period,
                fixed_parameters(self.spec.options),
            )
        except (RuntimeError, *NUMERICAL_ERRORS) as error:
            raise StreamError(f"Cannot stream into {self.model_name}: {error}") from error
        return type(self)(self.spec, self._extended_series(series), self.period, estimate,
                          self._selection)

    def interpolate(self):
        return self.series.fillna(self.fitted).rename(self.series.name)

    def components(self):
        """
        Level, slope and seasonal states with the remainder.

        Row ``t`` holds the states after observing ``y_t``; the season column
        is the seasonal index updated at ``t``.
        """
        filtered = self._estimate["filtered"]
        _, trend, season = self.model
        n = len(self.series)
        out = {self.series.name or "value": self.series.to_numpy(),
               "level": filtered["level"][1:n + 1]}
        if trend != "N":
            out["slope"] = filtered["trend"][1:n + 1]
        if season != "N":
            out["season"] = filtered["season"][self.period:self.period + n]
        out["remainder"] = self.residuals.to_numpy()
        return pd.DataFrame(out, index=self.series.index)

    def tidy(self):
        _, trend, season = self.model
        persistence = self._estimate["persistence"]
        initial = self._estimate["initial"]
        terms = [("alpha", persistence["alpha"])]
        if trend != "N":
            terms.append(("beta", persistence["beta"]))
        if season != "N":
            terms.append(("gamma", persistence["gamma"]))
        if trend == "Ad":
            terms.append(("phi", self.phi))
        terms.append(("l[0]", initial["level"]))
        if trend != "N":
            terms.append(("b[0]", initial["trend"]))
        if season != "N":
            m = self.period
            for j in reversed(range(m)):
                terms.append((f"s[{j + 1 - m}]", initial["season"][j]))
        return pd.DataFrame(terms, columns=["term", "estimate"])

    def glance(self):
        out = super().glance()
        errors = self.residuals.dropna().to_numpy()
        out["MSE"] = float(np.mean(errors ** 2)) if errors.size else np.nan
        out["MAE"] = float(np.mean(np.abs(errors))) if errors.size else np.nan
        return out
