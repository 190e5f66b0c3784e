"""
Unit tests for the model table.

Tests cover:
- Fitting every specification to every series
- Isolation of failed cells
- Table verbs and extraction of coefficients, summaries and residuals
- Forecasting, refit and stream over the whole table
"""

import numpy as np
import pandas as pd
import pytest

from tsfable import ETS, MEAN, NAIVE, FitFailure, Fable, Mable, SeriesCollection, model
from tsfable.models import FailedModel, is_failed


@pytest.fixture
def fast_specs():
    """A fixed-structure ETS model and a benchmark."""
    return {"ets": ETS(error="A", trend="N", season="A"), "naive": NAIVE()}


@pytest.fixture
def with_negative(tourism):
    """Tourism data where one series is negative."""
    series = {key: tourism[key] for key in tourism}
    series[("Other",)] = -tourism["Other"]
    return tourism.replace(series)


class TestModel:
    """Tests for fitting a table of models."""

    def test_shape(self, tourism, fast_specs):
        """Test one row per series and one column per specification."""
        fit = model(tourism, **fast_specs)
        assert isinstance(fit, Mable)
        assert fit.shape == (4, 2)
        assert fit.model_names == ["ets", "naive"]
        assert fit.keys == [("Business",), ("Holiday",), ("Other",), ("Visiting",)]
        assert fit.cell("Holiday", "ets").model_name == "ETS(A,N,A)"

    def test_no_specifications(self, tourism):
        """Test that at least one specification is required."""
        with pytest.raises(ValueError):
            model(tourism)

    def test_non_spec_rejected(self, tourism):
        """Test that model columns must be specifications."""
        with pytest.raises(TypeError):
            model(tourism, ets="ETS")

    def test_single_series(self, simple_series):
        """Test fitting a plain series."""
        fit = model(simple_series, mean=MEAN())
        assert fit.shape == (1, 1)
        assert fit.key_names == []

    def test_failure_isolated(self, with_negative):
        """Test that a failing cell does not stop the others."""
        fit = model(with_negative, ets=ETS(error="M"), naive=NAIVE())
        failed = list(fit.failed_cells())
        assert [(key, name) for key, name, _ in failed] == [(("Other",), "ets")]
        cell = fit.cell("Other", "ets")
        assert isinstance(cell, FailedModel)
        assert isinstance(cell.error, FitFailure)
        assert not is_failed(fit.cell("Other", "naive"))
        assert not is_failed(fit.cell("Holiday", "ets"))

    def test_failures_table(self, with_negative):
        """Test the table of failed cells."""
        fit = model(with_negative, ets=ETS(error="M"), naive=NAIVE())
        failures = fit.failures()
        assert list(failures.columns) == ["Purpose", ".model", "error", "message"]
        assert failures.iloc[0]["Purpose"] == "Other"
        assert failures.iloc[0]["error"] == "FitFailure"

    def test_parallel_matches_serial(self, tourism, fast_specs):
        """Test that parallel fitting gives the same models."""
        serial = model(tourism, **fast_specs)
        parallel = model(tourism, n_jobs=2, **fast_specs)
        for (_, _, a), (_, _, b) in zip(serial.cells(), parallel.cells()):
            assert a.model_name == b.model_name
            assert a.sigma2 == pytest.approx(b.sigma2)

    def test_to_frame(self, tourism, fast_specs):
        """Test the wide layout."""
        frame = model(tourism, **fast_specs).to_frame()
        assert list(frame.columns) == ["Purpose", "ets", "naive"]
        assert len(frame) == 4


class TestVerbs:
    """Tests for select and filter."""

    def test_select_keeps_cells(self, tourism, fast_specs):
        """Test that select keeps the same fitted models."""
        fit = model(tourism, **fast_specs)
        selected = fit.select("naive")
        assert selected.model_names == ["naive"]
        assert selected.cell("Business", "naive") is fit.cell("Business", "naive")

    def test_select_unknown(self, tourism, fast_specs):
        """Test that unknown columns are rejected."""
        with pytest.raises(KeyError):
            model(tourism, **fast_specs).select("arima")

    def test_filter_callable(self, tourism, fast_specs):
        """Test filtering rows on the key."""
        fit = model(tourism, **fast_specs)
        kept = fit.filter(lambda key: key["Purpose"] in ("Holiday", "Other"))
        assert kept.keys == [("Holiday",), ("Other",)]
        assert kept.cell("Other", "ets") is fit.cell("Other", "ets")
        assert len(kept.data) == 2

    def test_filter_mask(self, tourism, fast_specs):
        """Test filtering rows with a boolean mask."""
        fit = model(tourism, **fast_specs)
        assert fit.filter([True, False, False, True]).shape == (2, 2)
        with pytest.raises(ValueError):
            fit.filter([True])


class TestExtraction:
    """Tests for coefficients, summaries, accuracy and residuals."""

    def test_coefficients(self, tourism, fast_specs):
        """Test the long coefficient table."""
        coefs = model(tourism, **fast_specs).select("ets").coefficients()
        assert list(coefs.columns[:4]) == ["Purpose", ".model", "term", "estimate"]
        holiday = coefs[coefs["Purpose"] == "Holiday"]
        assert "alpha" in set(holiday["term"])
        assert (coefs["status"] == "ok").all()
        assert coefs.attrs["failed_cells"] == []

    def test_coefficients_with_failure(self, with_negative):
        """Test that failed cells are marked in extracted tables."""
        fit = model(with_negative, ets=ETS(error="M"))
        coefs = fit.coefficients()
        failed = coefs[coefs["status"] == "failed"]
        assert list(failed["Purpose"]) == ["Other"]
        assert failed.iloc[0]["message"].startswith("FitFailure")
        assert coefs.attrs["failed_cells"] == [(("Other",), "ets")]

    def test_glance(self, tourism, fast_specs):
        """Test one summary row per cell."""
        glance = model(tourism, **fast_specs).glance()
        assert len(glance) == 8
        ets = glance[glance[".model"] == "ets"]
        assert np.isfinite(ets["AICc"]).all()
        naive = glance[glance[".model"] == "naive"]
        assert naive["AICc"].isna().all()
        assert (naive["model_name"] == "NAIVE").all()

    def test_training_accuracy(self, tourism, fast_specs):
        """Test in-sample accuracy."""
        accuracy = model(tourism, **fast_specs).accuracy()
        assert (accuracy[".type"] == "Training").all()
        assert {"ME", "RMSE", "MASE"} <= set(accuracy.columns)
        assert (accuracy["RMSE"] > 0).all()

    def test_fitted_and_residuals(self, tourism, fast_specs):
        """Test that fitted values and residuals are stacked per cell."""
        fit = model(tourism, **fast_specs)
        fitted = fit.fitted()
        residuals = fit.residuals()
        assert len(fitted) == 8 * 80
        assert list(fitted.columns[:4]) == ["Purpose", ".model", "Quarter", ".fitted"]
        assert list(residuals.columns[:4]) == ["Purpose", ".model", "Quarter", ".resid"]

    def test_response_residuals(self, tourism):
        """Test that response residuals are actual minus fitted."""
        fit = model(tourism, naive=NAIVE())
        residuals = fit.residuals(type="response")
        holiday = residuals[residuals["Purpose"] == "Holiday"][".resid"].to_numpy()
        expected = np.diff(tourism["Holiday"].to_numpy())
        np.testing.assert_allclose(holiday[1:], expected)

    def test_unknown_residual_type(self, tourism):
        """Test that residual types are validated."""
        with pytest.raises(ValueError):
            model(tourism, naive=NAIVE()).residuals(type="raw")

    def test_components(self, tourism, fast_specs):
        """Test stacked components."""
        components = model(tourism, **fast_specs).select("ets").components()
        assert {"level", "season", "remainder"} <= set(components.columns)

    def test_interpolate(self, tourism):
        """Test filling gaps through a single model column."""
        series = {key: tourism[key].copy() for key in tourism}
        series[("Holiday",)].iloc[5] = np.nan
        data = tourism.replace(series)
        fit = model(data, mean=MEAN(), naive=NAIVE())
        with pytest.raises(ValueError):
            fit.interpolate()
        filled = fit.select("naive").interpolate()
        assert isinstance(filled, SeriesCollection)
        assert filled["Holiday"].iloc[5] == data["Holiday"].iloc[4]


class TestTableForecast:
    """Tests for forecasting and updating the whole table."""

    def test_forecast(self, tourism, fast_specs):
        """Test the forecast table layout."""
        fc = model(tourism, **fast_specs).forecast(h="2 years")
        assert isinstance(fc, Fable)
        assert len(fc) == 4 * 2 * 8
        frame = fc.to_frame()
        assert list(frame.columns) == ["Purpose", ".model", "Quarter", "Trips", ".mean"]
        assert len(fc.diagnostics) == 0

    def test_failed_cells_in_diagnostics(self, with_negative):
        """Test that failed cells are reported instead of dropped silently."""
        fc = model(with_negative, ets=ETS(error="M"), naive=NAIVE()).forecast(h=4)
        assert len(fc) == 7 * 4
        diagnostics = fc.diagnostics
        assert len(diagnostics) == 1
        assert diagnostics.iloc[0]["stage"] == "fit"
        assert diagnostics.iloc[0]["Purpose"] == "Other"

    def test_generate(self, tourism):
        """Test that simulated paths are reproducible."""
        fit = model(tourism, naive=NAIVE())
        a = fit.generate(h=4, times=5, seed=11)
        b = fit.generate(h=4, times=5, seed=11)
        assert len(a) == 4 * 4 * 5
        np.testing.assert_allclose(a[".sim"], b[".sim"])

    def test_refit(self, tourism, fast_specs):
        """Test refitting on the full data after fitting a training window."""
        train = tourism.replace({key: tourism[key].iloc[:72] for key in tourism})
        fit = model(train, **fast_specs)
        refitted = fit.refit(tourism)
        assert refitted.shape == fit.shape
        assert len(refitted.cell("Holiday", "ets").series) == 80
        assert refitted.cell("Holiday", "ets").model == fit.cell("Holiday", "ets").model

    def test_refit_missing_key(self, tourism, fast_specs):
        """Test that refit needs data for every key."""
        fit = model(tourism, **fast_specs)
        partial = tourism.replace({("Holiday",): tourism["Holiday"]})
        with pytest.raises(KeyError):
            fit.refit(partial)

    def test_stream(self, tourism, fast_specs):
        """Test streaming the held-out observations into every cell."""
        train = tourism.replace({key: tourism[key].iloc[:72] for key in tourism})
        test = tourism.replace({key: tourism[key].iloc[72:] for key in tourism})
        fit = model(train, **fast_specs)
        streamed = fit.stream(test)
        assert len(streamed.data["Business"]) == 80
        fc = streamed.forecast(h=1).to_frame()
        assert (fc["Quarter"] == pd.Period("2018Q1", freq="Q")).all()
        assert len(fit.data["Business"]) == 72

    def test_stream_gap_fails_cell(self, tourism, fast_specs):
        """Test that a gap turns the streamed cells into failures."""
        train = tourism.replace({key: tourism[key].iloc[:72] for key in tourism})
        test = {key: tourism[key].iloc[72:] for key in tourism}
        test[("Other",)] = tourism["Other"].iloc[74:]
        streamed = model(train, **fast_specs).stream(tourism.replace(test))
        assert is_failed(streamed.cell("Other", "ets"))
        assert not is_failed(streamed.cell("Holiday", "ets"))
