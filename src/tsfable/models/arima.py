"""Seasonal ARIMA models."""

import logging

import numpy as np
import pandas as pd

from tsfable.config import optimizer_settings
from tsfable.core.arima.estimator import apply_parameters, estimator, extend, order_name
from tsfable.core.arima.forecaster import forecaster, simulate
from tsfable.core.arima.selector import selector
from tsfable.core.utils.optimization import NUMERICAL_ERRORS
from tsfable.distributions import Normal
from tsfable.errors import RefitError, StreamError
from tsfable.models.base import FittedModel, resolve_period
from tsfable.spec.specification import ModelFamily

logger = logging.getLogger(__name__)


class ARIMAModel(FittedModel):
    """
    Fitted ARIMA(p,d,q)(P,D,Q)[m] model.

    Coefficients are maximum likelihood estimates from the exact Gaussian
    likelihood of the differenced series. The innovation variance is the
    maximum likelihood estimate ``sum(v^2 / F) / n``.

    Parameters
    ----------
    spec : ModelSpec
        Specification the model was fitted from.
    series : pandas.Series
        Training data.
    period : int
        Seasonal period.
    estimate : dict
        Output of :func:`tsfable.core.arima.estimator.estimator`.
    selection : list of dict, optional
        Candidate records of the order search.
    """

    family = ModelFamily.ARIMA

    def __init__(self, spec, series, period, estimate, selection=None):
        super().__init__(spec, series, period)
        self._estimate = estimate
        self._selection = selection

    @classmethod
    def fit(cls, spec, series):
        period = resolve_period(spec, series)
        settings = optimizer_settings(spec["optimizer"])
        result = selector(series.to_numpy(dtype=float), spec.options, period, settings)
        estimate = result["estimate"]
        logger.debug(
            "%s: selected %s",
            series.name, order_name(estimate["order"], period, estimate["constant"]),
        )
        return cls(spec, series, period, estimate, result["selection"])

    @property
    def order(self):
        """``(p, d, q, P, D, Q)``."""
        return self._estimate["order"]

    @property
    def constant(self):
        return self._estimate["constant"]

    @property
    def model_name(self):
        return order_name(self.order, self.period, self.constant)

    @property
    def coef(self):
        """Estimated coefficients keyed by term name."""
        return dict(zip(self._estimate["names"], self._estimate["B"].tolist()))

    @property
    def fitted(self):
        return pd.Series(self._estimate["fitted"], index=self.series.index, name=".fitted")

    @property
    def residuals(self):
        """Innovations of the differenced series; the first ``d + D*m`` are missing."""
        return pd.Series(self._estimate["residuals"], index=self.series.index, name=".resid")

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
        return self._estimate["n_param"]

    @property
    def selection(self):
        if self._selection is None:
            return None
        return pd.DataFrame(self._selection)

    def _forecast(self, h, **kwargs):
        result = forecaster(self._estimate, self.period, h)
        sigma = np.sqrt(np.maximum(result["variance"], 0.0))
        return [Normal(m, s) for m, s in zip(result["mean"], sigma)]

    def _simulate(self, h, innovations):
        return simulate(self._estimate, self.period, h, innovations)

    def _refit(self, series, reestimate):
        y = series.to_numpy(dtype=float)
        try:
            if reestimate:
                settings = optimizer_settings(self.spec["optimizer"])
                estimate = estimator(y, self.order, self.period, self.constant, settings)
            else:
                estimate = apply_parameters(y, self._estimate, self.period)
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
            )
        except (RuntimeError, *NUMERICAL_ERRORS) as error:
            raise StreamError(f"Cannot stream into {self.model_name}: {error}") from error
        return type(self)(self.spec, self._extended_series(series), self.period, estimate,
                          self._selection)

    def interpolate(self):
        return pd.Series(self._estimate["y_filled"], index=self.series.index,
                         name=self.series.name)

    def components(self):
        """ARIMA has no structural states: fitted values and remainder only."""
        return pd.DataFrame({
            self.series.name or "value": self.series.to_numpy(),
            "fitted": self.fitted.to_numpy(),
            "remainder": self.residuals.to_numpy(),
        }, index=self.series.index)

    def tidy(self):
        return pd.DataFrame({"term": self._estimate["names"], "estimate": self._estimate["B"]})

    def glance(self):
        out = super().glance()
        p, d, q, P, D, Q = self.order  # noqa: N806
        out.update({"p": p, "d": d, "q": q, "P": P, "D": D, "Q": Q})
        return out
