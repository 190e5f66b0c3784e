"""
Unit tests for the benchmark methods.

Tests cover:
- MEAN, NAIVE, RW with drift and SNAIVE forecasts and variances
- Missing likelihood statistics
- Interpolation, refit and stream
"""

import numpy as np
import pandas as pd
import pytest

from tsfable import MEAN, NAIVE, RW, SNAIVE, FitFailure
from tsfable.models import MeanModel, NaiveModel, RWModel, SNaiveModel, fit_model


class TestMean:
    """Tests for the MEAN method."""

    def test_forecast(self, white_noise):
        """Test mean forecasts and their variance."""
        fit = fit_model(MEAN(), white_noise)
        assert isinstance(fit, MeanModel)
        fc = fit.forecast(3)
        n = len(white_noise)
        assert fc.iloc[0].mean() == pytest.approx(white_noise.mean())
        assert fc.iloc[2].variance() == pytest.approx(fit.sigma2 * (1 + 1 / n))

    def test_no_likelihood(self, white_noise):
        """Test that information criteria are missing."""
        fit = fit_model(MEAN(), white_noise)
        assert np.isnan(fit.loglik)
        assert np.isnan(fit.aicc)
        assert list(fit.tidy()["term"]) == ["mean"]

    def test_interpolate_with_mean(self, white_noise):
        """Test that gaps are filled with the mean."""
        y = white_noise.copy()
        y.iloc[3] = np.nan
        fit = fit_model(MEAN(), y)
        assert fit.interpolate().iloc[3] == pytest.approx(y.mean())


class TestNaive:
    """Tests for NAIVE and RW."""

    def test_forecast(self, random_walk):
        """Test last-value forecasts with variance sigma2 * h."""
        fit = fit_model(NAIVE(), random_walk)
        assert isinstance(fit, NaiveModel)
        fc = fit.forecast(4)
        np.testing.assert_allclose([d.mean() for d in fc], random_walk.iloc[-1])
        np.testing.assert_allclose([d.variance() for d in fc], fit.sigma2 * np.arange(1, 5))

    def test_sigma2_is_mean_squared_difference(self, random_walk):
        """Test the innovation variance."""
        fit = fit_model(NAIVE(), random_walk)
        assert fit.sigma2 == pytest.approx(np.mean(np.diff(random_walk.to_numpy()) ** 2))

    def test_drift(self, random_walk):
        """Test drift forecasts and variance."""
        fit = fit_model(RW(drift=True), random_walk)
        assert isinstance(fit, RWModel)
        y = random_walk.to_numpy()
        n = len(y)
        drift = (y[-1] - y[0]) / (n - 1)
        fc = fit.forecast(3)
        np.testing.assert_allclose([d.mean() for d in fc], y[-1] + drift * np.arange(1, 4))
        h = np.arange(1, 4)
        np.testing.assert_allclose([d.variance() for d in fc],
                                   fit.sigma2 * h * (1 + h / (n - 1)))
        assert fit.model_name == "RW w/ drift"
        assert list(fit.tidy()["term"]) == ["drift"]

    def test_interpolate_forward_fills(self, random_walk):
        """Test that NAIVE carries the last observation forward."""
        y = random_walk.copy()
        y.iloc[[10, 11]] = np.nan
        filled = fit_model(NAIVE(), y).interpolate()
        assert filled.iloc[10] == y.iloc[9]
        assert filled.iloc[11] == y.iloc[9]

    def test_single_observation_fails(self, random_walk):
        """Test that one observation gives no variance estimate and fails at fit time."""
        with pytest.raises(FitFailure, match="at least 2"):
            fit_model(NAIVE(), random_walk.iloc[:1])
        with pytest.raises(FitFailure):
            fit_model(RW(), random_walk.iloc[:1])

    def test_two_observations_forecast(self, random_walk):
        """Test that the shortest usable series gives a finite variance."""
        fit = fit_model(NAIVE(), random_walk.iloc[:2])
        assert np.isfinite(fit.sigma2)
        assert fit.forecast(2).iloc[1].variance() == pytest.approx(2 * fit.sigma2)

    def test_stream_keeps_drift(self, random_walk):
        """Test that streaming keeps the estimated drift."""
        fit = fit_model(RW(drift=True), random_walk.iloc[:150])
        streamed = fit.stream(random_walk.iloc[150:])
        assert streamed.params == fit.params
        assert streamed.forecast(1).iloc[0].mean() == \
            pytest.approx(random_walk.iloc[-1] + fit.params["drift"])


class TestSNaive:
    """Tests for the seasonal naive method."""

    def test_forecast_repeats_last_cycle(self, seasonal_series):
        """Test that forecasts repeat the last observed year."""
        fit = fit_model(SNAIVE(), seasonal_series)
        assert isinstance(fit, SNaiveModel)
        assert fit.period == 4
        means = [d.mean() for d in fit.forecast(8)]
        last = seasonal_series.iloc[-4:].to_numpy()
        np.testing.assert_allclose(means, np.tile(last, 2))

    def test_variance_steps_by_cycle(self, seasonal_series):
        """Test that the variance grows once per seasonal cycle."""
        fit = fit_model(SNAIVE(), seasonal_series)
        variances = np.array([d.variance() for d in fit.forecast(9)]) / fit.sigma2
        np.testing.assert_allclose(variances, [1, 1, 1, 1, 2, 2, 2, 2, 3])

    def test_non_seasonal_data_fails(self, simple_series):
        """Test that SNAIVE needs a seasonal period."""
        with pytest.raises(FitFailure):
            fit_model(SNAIVE(), simple_series)

    def test_single_cycle_fails(self, seasonal_series):
        """Test that one seasonal cycle leaves no residuals to estimate the variance."""
        with pytest.raises(FitFailure, match="no one-step residuals"):
            fit_model(SNAIVE(), seasonal_series.iloc[:4])

    def test_explicit_period(self, simple_series):
        """Test an explicit period on an integer index."""
        fit = fit_model(SNAIVE(period=5), simple_series)
        assert fit.forecast(1).iloc[0].mean() == simple_series.iloc[-5]

    def test_generate_shape(self, seasonal_series):
        """Test simulated paths of a seasonal naive model."""
        fit = fit_model(SNAIVE(), seasonal_series)
        paths = fit.generate(h=6, times=10, seed=3)
        assert len(paths) == 60
        assert isinstance(paths["index"].iloc[0], pd.Period)
