"""
Benchmark forecasting methods.

``MEAN``, ``NAIVE``/``RW`` (optionally with drift) and ``SNAIVE`` have closed
form forecasts and no likelihood, so their log-likelihood and information
criteria are reported as missing. The innovation variance is the mean
squared one-step residual.
"""

import numpy as np
import pandas as pd

from tsfable.distributions import Normal
from tsfable.errors import FitFailure, RefitError
from tsfable.models.base import FittedModel, resolve_period
from tsfable.spec.specification import ModelFamily


class _Benchmark(FittedModel):
    """
    Shared machinery of the benchmark methods.

    Subclasses implement :meth:`_coefficients` (estimated from data),
    :meth:`_fill` (gap filling and one-step predictions), :meth:`_mean`,
    :meth:`_variance` and :meth:`_paths`.
    """

    min_obs = 1

    def __init__(self, spec, series, period, params=None):
        super().__init__(spec, series, period)
        y = series.to_numpy(dtype=float)
        observed = int(np.sum(~np.isnan(y)))
        if observed < self.min_obs:
            name = spec.family.value
            raise FitFailure(
                f"{name} needs at least {self.min_obs} observations",
                candidates=[(name, f"{observed} observations available")],
            )
        self.params = self._coefficients(y) if params is None else dict(params)
        self._y_filled, self._fitted = self._fill(y)
        residuals = y - self._fitted
        finite = residuals[np.isfinite(residuals)]
        if finite.size == 0:
            name = spec.family.value
            raise FitFailure(
                f"{name} has no one-step residuals to estimate the variance",
                candidates=[(name, f"{observed} observations available")],
            )
        self._residuals = residuals
        self._sigma2 = float(np.mean(finite ** 2))

    @classmethod
    def fit(cls, spec, series):
        return cls(spec, series, resolve_period(spec, series))

    @property
    def fitted(self):
        return pd.Series(self._fitted, index=self.series.index, name=".fitted")

    @property
    def residuals(self):
        return pd.Series(self._residuals, index=self.series.index, name=".resid")

    @property
    def sigma2(self):
        return self._sigma2

    def _coefficients(self, y):
        return {}

    def _forecast(self, h, **kwargs):
        mean = self._mean(h)
        sigma = np.sqrt(self.sigma2 * self._variance(h))
        return [Normal(m, s) for m, s in zip(mean, sigma)]

    def _refit(self, series, reestimate):
        try:
            return type(self)(self.spec, series, self.period,
                              None if reestimate else self.params)
        except FitFailure as error:
            raise RefitError(str(error)) from error

    def _stream(self, series):
        return type(self)(self.spec, self._extended_series(series), self.period, self.params)

    def interpolate(self):
        return pd.Series(self._y_filled, index=self.series.index, name=self.series.name)

    def components(self):
        return pd.DataFrame({
            self.series.name or "value": self.series.to_numpy(),
            "fitted": self._fitted,
            "remainder": self._residuals,
        }, index=self.series.index)

    def tidy(self):
        return pd.DataFrame(list(self.params.items()), columns=["term", "estimate"])


class MeanModel(_Benchmark):
    """Forecasts every future value with the sample mean."""

    family = ModelFamily.MEAN

    @property
    def model_name(self):
        return "MEAN"

    def _coefficients(self, y):
        return {"mean": float(np.nanmean(y))}

    def _fill(self, y):
        fitted = np.full(y.size, self.params["mean"])
        return np.where(np.isnan(y), fitted, y), fitted

    def _mean(self, h):
        return np.full(h, self.params["mean"])

    def _variance(self, h):
        return np.full(h, 1 + 1 / self.nobs)

    def _simulate(self, h, innovations):
        return self.params["mean"] + innovations


class NaiveModel(_Benchmark):
    """
    Random walk: every forecast equals the last observation.

    With ``drift`` the forecasts follow the average change between the first
    and the last observation.
    """

    family = ModelFamily.NAIVE
    min_obs = 2

    @property
    def drift(self):
        return "drift" in self.params

    @property
    def model_name(self):
        return "RW w/ drift" if self.drift else "NAIVE"

    def _coefficients(self, y):
        if not self.spec.get("drift", False):
            return {}
        positions = np.flatnonzero(~np.isnan(y))
        first, last = positions[0], positions[-1]
        return {"drift": float((y[last] - y[first]) / (last - first))}

    def _fill(self, y):
        drift = self.params.get("drift", 0.0)
        filled = y.copy()
        fitted = np.full(y.size, np.nan)
        for t in range(1, y.size):
            if np.isnan(filled[t - 1]):
                continue
            fitted[t] = filled[t - 1] + drift
            if np.isnan(filled[t]):
                filled[t] = fitted[t]
        return filled, fitted

    def _last(self):
        return float(self._y_filled[-1])

    def _mean(self, h):
        steps = np.arange(1, h + 1)
        return self._last() + self.params.get("drift", 0.0) * steps

    def _variance(self, h):
        steps = np.arange(1, h + 1, dtype=float)
        if self.drift:
            return steps * (1 + steps / (self.nobs - 1))
        return steps

    def _simulate(self, h, innovations):
        return self._mean(h)[np.newaxis, :] + np.cumsum(innovations, axis=1)


class RWModel(NaiveModel):
    """``RW()`` specifications; a naive model with optional drift."""

    family = ModelFamily.RW


class SNaiveModel(_Benchmark):
    """Every forecast equals the observation one seasonal period earlier."""

    family = ModelFamily.SNAIVE

    def __init__(self, spec, series, period, params=None):
        if period < 2:
            raise FitFailure(
                "SNAIVE needs a seasonal period greater than 1",
                candidates=[("SNAIVE", f"seasonal period is {period}")],
            )
        self.min_obs = period
        super().__init__(spec, series, period, params)

    @property
    def model_name(self):
        return f"SNAIVE[{self.period}]"

    def _fill(self, y):
        m = self.period
        filled = y.copy()
        fitted = np.full(y.size, np.nan)
        for t in range(m, y.size):
            fitted[t] = filled[t - m]
            if np.isnan(filled[t]):
                filled[t] = fitted[t]
        return filled, fitted

    def _mean(self, h):
        m = self.period
        last_cycle = self._y_filled[-m:]
        return last_cycle[np.arange(h) % m]

    def _variance(self, h):
        k = np.arange(h) // self.period
        return (k + 1).astype(float)

    def _simulate(self, h, innovations):
        m = self.period
        times = innovations.shape[0]
        buffer = np.empty((times, m + h))
        buffer[:, :m] = self._y_filled[-m:]
        for i in range(h):
            buffer[:, m + i] = buffer[:, i] + innovations[:, i]
        return buffer[:, m:]
