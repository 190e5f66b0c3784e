"""
Fitted model interface.

Every model family returns an instance of a :class:`FittedModel` subclass.
The operations are the same for all families, so the table layer never has
to know which family produced a cell. A cell whose fit failed holds a
:class:`FailedModel` instead.
"""

import abc
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from tsfable.config import get_option
from tsfable.distributions import Distribution
from tsfable.errors import RefitError, StreamError
from tsfable.series.index import (
    continues,
    future_index,
    resolve_horizon,
    same_frequency,
    seasonal_period,
    validate_series,
)
from tsfable.spec.auto import AUTO, is_auto
from tsfable.spec.specification import ModelSpec


def _get_rng(seed):
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def resolve_period(spec: ModelSpec, series: pd.Series) -> int:
    """Seasonal period from the specification, or from the index when automatic."""
    period = spec.get("period", AUTO)
    if is_auto(period):
        return seasonal_period(series.index)
    return int(period)


class FittedModel(abc.ABC):
    """
    A model fitted to one series.

    Fitted models are values: every operation that involves new data
    (:meth:`refit`, :meth:`stream`) returns a new object and leaves this one
    untouched.

    Parameters
    ----------
    spec : ModelSpec
        Specification the model was fitted from.
    series : pandas.Series
        Training data with a regular time index.
    period : int
        Seasonal period used for fitting.
    """

    family = None

    def __init__(self, spec: ModelSpec, series: pd.Series, period: int):
        self.spec = spec
        self.series = series
        self.period = period

    # ------------------------------------------------------------------
    # Family specific pieces
    # ------------------------------------------------------------------

    @classmethod
    @abc.abstractmethod
    def fit(cls, spec: ModelSpec, series: pd.Series) -> "FittedModel":
        """Estimate the model described by ``spec`` on ``series``."""

    @property
    @abc.abstractmethod
    def model_name(self) -> str:
        """Short description of the fitted structure, e.g. ``ETS(A,N,N)``."""

    @property
    @abc.abstractmethod
    def fitted(self) -> pd.Series:
        """One-step in-sample predictions."""

    @property
    @abc.abstractmethod
    def residuals(self) -> pd.Series:
        """Innovation residuals."""

    @property
    @abc.abstractmethod
    def sigma2(self) -> float:
        """Innovation variance."""

    @abc.abstractmethod
    def _forecast(self, h: int, **kwargs) -> List[Distribution]:
        """Distributions of the next ``h`` values."""

    @abc.abstractmethod
    def _simulate(self, h: int, innovations: np.ndarray) -> np.ndarray:
        """Future paths, shape ``(times, h)``, driven by ``innovations``."""

    @abc.abstractmethod
    def _refit(self, series: pd.Series, reestimate: bool) -> "FittedModel":
        pass

    @abc.abstractmethod
    def _stream(self, series: pd.Series) -> "FittedModel":
        pass

    @abc.abstractmethod
    def interpolate(self) -> pd.Series:
        """Training data with missing values replaced by model predictions."""

    @abc.abstractmethod
    def components(self) -> pd.DataFrame:
        """Decomposition of the training data into model components."""

    @abc.abstractmethod
    def tidy(self) -> pd.DataFrame:
        """Estimated coefficients as a ``term`` / ``estimate`` table."""

    # ------------------------------------------------------------------
    # Shared behaviour
    # ------------------------------------------------------------------

    @property
    def loglik(self) -> float:
        return np.nan

    @property
    def information_criteria(self) -> Dict[str, float]:
        return {"aic": np.nan, "aicc": np.nan, "bic": np.nan}

    @property
    def aic(self) -> float:
        return self.information_criteria["aic"]

    @property
    def aicc(self) -> float:
        return self.information_criteria["aicc"]

    @property
    def bic(self) -> float:
        return self.information_criteria["bic"]

    @property
    def nobs(self) -> int:
        return int(self.series.notna().sum())

    @property
    def response_residuals(self) -> pd.Series:
        """Observed minus fitted values."""
        return (self.series - self.fitted).rename("residual")

    @property
    def selection(self) -> Optional[pd.DataFrame]:
        """Candidates considered by an automatic search (None when there was none)."""
        return None

    def glance(self) -> Dict[str, float]:
        """One-row summary: variance, likelihood and information criteria."""
        return {
            "sigma2": self.sigma2,
            "log_lik": self.loglik,
            "AIC": self.aic,
            "AICc": self.aicc,
            "BIC": self.bic,
        }

    def forecast(self, h=None, **kwargs) -> pd.Series:
        """
        Forecast distributions for the next ``h`` time points.

        Parameters
        ----------
        h : int, str or DateOffset, optional
            Number of steps or a calendar duration such as ``"2 years"``.
            Defaults to two seasonal cycles (10 steps without seasonality).
        **kwargs
            Family specific options (``times`` and ``seed`` for
            simulation-based distributions).

        Returns
        -------
        pandas.Series
            Distribution objects indexed by the future time points, in
            increasing time order.
        """
        if h is None:
            h = 2 * self.period if self.period > 1 else 10
        steps = resolve_horizon(h, self.series.index)
        index = future_index(self.series.index, steps)
        distributions = self._forecast(steps, **kwargs)
        return pd.Series(distributions, index=index, name=self.series.name, dtype=object)

    def generate(self, h=None, times=None, seed=None, bootstrap=False) -> pd.DataFrame:
        """
        Simulate future sample paths.

        Parameters
        ----------
        h : int, str or DateOffset, optional
            Path length, as for :meth:`forecast`.
        times : int, optional
            Number of paths. Defaults to the ``simulation.times`` option.
        seed : int or numpy.random.Generator, optional
            Random state.
        bootstrap : bool, default=False
            Draw innovations from the model residuals instead of a normal
            distribution.

        Returns
        -------
        pandas.DataFrame
            Long table with columns ``.rep``, the time index and ``.sim``.
        """
        if h is None:
            h = 2 * self.period if self.period > 1 else 10
        steps = resolve_horizon(h, self.series.index)
        times = get_option("simulation.times") if times is None else int(times)
        paths = self._simulate(steps, self.innovations(steps, times, seed, bootstrap))
        index = future_index(self.series.index, steps)
        return pd.DataFrame({
            ".rep": np.repeat(np.arange(1, times + 1), steps),
            "index": np.tile(np.asarray(index), times),
            ".sim": paths.reshape(-1),
        })

    def innovations(self, h, times, seed=None, bootstrap=False) -> np.ndarray:
        """Innovation draws with shape ``(times, h)``."""
        rng = _get_rng(seed)
        if bootstrap:
            pool = self.residuals.to_numpy(dtype=float)
            pool = pool[np.isfinite(pool)]
            if pool.size == 0:
                raise ValueError("No residuals available to bootstrap from.")
            return rng.choice(pool, size=(times, h), replace=True)
        return rng.normal(0.0, np.sqrt(self.sigma2), size=(times, h))

    def refit(self, new_data, reestimate: bool = True) -> "FittedModel":
        """
        Fit the same structure to new data.

        The structural choices (ETS components, ARIMA orders, ...) are kept;
        no automatic search is run.

        Parameters
        ----------
        new_data : pandas.Series
            Series at the same frequency as the training data.
        reestimate : bool, default=True
            Re-estimate coefficients; when False the existing coefficients are
            applied to the new data.

        Raises
        ------
        RefitError
            If the new series is incompatible with the fitted structure.
        """
        series = validate_series(new_data, name=self.series.name)
        if not same_frequency(series.index, self.series.index):
            raise RefitError(
                f"New data has a different frequency than the data {self.model_name} "
                "was fitted to."
            )
        return self._refit(series, reestimate)

    def stream(self, new_data) -> "FittedModel":
        """
        Extend the model with observations that follow the training data.

        Coefficients are kept and the states are carried forward, so the
        returned model can forecast from the new end of the series. The
        original model is not modified; streaming an empty series returns an
        equivalent model.

        Raises
        ------
        StreamError
            If the new observations do not start right after the training
            data or have another frequency.
        """
        if len(new_data) == 0:
            series = self.series.iloc[:0]
        else:
            series = validate_series(new_data, name=self.series.name)
            if not same_frequency(series.index, self.series.index):
                raise StreamError("New observations have a different frequency.")
            if not continues(self.series.index, series.index):
                raise StreamError(
                    "New observations must start one step after the last "
                    f"training observation ({self.series.index[-1]})."
                )
        return self._stream(series)

    def _extended_series(self, series: pd.Series) -> pd.Series:
        if len(series) == 0:
            return self.series.copy()
        combined = pd.concat([self.series, series.rename(self.series.name)])
        return validate_series(combined, name=self.series.name)

    def __repr__(self) -> str:
        return f"<{self.model_name}>"


class FailedModel:
    """
    Marker stored in a model table cell whose fit failed.

    Parameters
    ----------
    spec : ModelSpec
        Specification that was being fitted.
    error : Exception
        The failure, usually a :class:`~tsfable.errors.FitFailure` or an
        :class:`~tsfable.errors.IrregularSeriesError`.
    """

    failed = True
    model_name = "NULL model"

    def __init__(self, spec: ModelSpec, error: Exception):
        self.spec = spec
        self.error = error

    @property
    def message(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"

    def __repr__(self) -> str:
        return "<NULL model>"


def is_failed(cell) -> bool:
    return isinstance(cell, FailedModel)
