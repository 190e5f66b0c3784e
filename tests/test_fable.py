"""
Unit tests for the forecast table.

Tests cover:
- Prediction intervals and quantiles
- Row filtering
- Accuracy against held-out observations
"""

import numpy as np
import pytest

from tsfable import ETS, NAIVE, SNAIVE, Hilo, model, set_option, reset_option


@pytest.fixture
def split(tourism):
    """Training (72 quarters) and test (8 quarters) collections."""
    train = tourism.replace({key: tourism[key].iloc[:72] for key in tourism})
    test = tourism.replace({key: tourism[key].iloc[72:] for key in tourism})
    return train, test


@pytest.fixture
def fable(split):
    train, _ = split
    fit = model(train, ets=ETS(error="A", trend="A", season="A"), snaive=SNAIVE())
    return fit.forecast(h=8)


class TestIntervals:
    """Tests for hilo and quantile."""

    def test_hilo_objects(self, fable):
        """Test one column of intervals per level."""
        out = fable.hilo([80, 95])
        assert "80%" in out.columns and "95%" in out.columns
        for inner, outer in zip(out["80%"], out["95%"]):
            assert isinstance(inner, Hilo)
            assert outer.lower < inner.lower < inner.upper < outer.upper

    def test_hilo_flat(self, fable):
        """Test numeric bound columns."""
        out = fable.hilo(80, flat=True)
        assert (out["80%_lower"] < out[".mean"]).all()
        assert (out[".mean"] < out["80%_upper"]).all()

    def test_hilo_default_levels(self, fable):
        """Test that the default levels come from the options."""
        try:
            set_option("fable.levels", (50,))
            assert "50%" in fable.hilo().columns
        finally:
            reset_option("fable.levels")
        assert {"80%", "95%"} <= set(fable.hilo().columns)

    def test_quantile(self, fable):
        """Test quantile columns are ordered."""
        out = fable.quantile([0.1, 0.5, 0.9])
        assert (out["q0.1"] < out["q0.5"]).all()
        assert (out["q0.5"] < out["q0.9"]).all()
        np.testing.assert_allclose(out["q0.5"], out[".mean"])


class TestFableTable:
    """Tests for the table operations."""

    def test_layout(self, fable):
        """Test the number of rows and models."""
        assert len(fable) == 4 * 2 * 8
        assert fable.model_names == ["ets", "snaive"]
        assert len(fable.distributions) == len(fable)

    def test_filter_callable(self, fable):
        """Test filtering on the table."""
        kept = fable.filter(lambda frame: frame[".model"] == "snaive")
        assert kept.model_names == ["snaive"]
        assert len(kept) == 32

    def test_filter_bad_mask(self, fable):
        """Test that a mask of the wrong length is rejected."""
        with pytest.raises(ValueError):
            fable.filter([True, False])

    def test_to_frame_is_copy(self, fable):
        """Test that the exported frame does not alias the table."""
        frame = fable.to_frame()
        frame[".mean"] = 0.0
        assert (fable.to_frame()[".mean"] != 0.0).any()


class TestFableAccuracy:
    """Tests for test-set accuracy."""

    def test_accuracy_layout(self, fable, split):
        """Test one row per series and model."""
        _, test = split
        accuracy = fable.accuracy(test)
        assert len(accuracy) == 8
        assert (accuracy[".type"] == "Test").all()
        assert {"RMSE", "MASE", "CRPS", "winkler"} <= set(accuracy.columns)
        assert (accuracy["RMSE"] > 0).all()
        assert (accuracy["CRPS"] > 0).all()

    def test_selected_measures(self, fable, split):
        """Test computing a subset of measures."""
        _, test = split
        accuracy = fable.accuracy(test, measures=["MAE", "CRPS"])
        assert list(accuracy.columns) == ["Purpose", ".model", ".type", "MAE", "CRPS"]

    def test_unknown_measure_warns(self, fable, split):
        """Test that unknown measure names are reported."""
        _, test = split
        with pytest.warns(UserWarning):
            fable.accuracy(test, measures=["MAE", "SMAPE"])

    def test_snaive_mase_matches_definition(self, fable, split, tourism):
        """Test MASE scaling with the seasonal naive errors of the training data."""
        train, test = split
        accuracy = fable.accuracy(test, measures=["MAE", "MASE"])
        row = accuracy[(accuracy["Purpose"] == "Holiday") & (accuracy[".model"] == "snaive")]
        y = train["Holiday"].to_numpy()
        scale = np.mean(np.abs(y[4:] - y[:-4]))
        assert row["MASE"].iloc[0] == pytest.approx(row["MAE"].iloc[0] / scale)

    def test_partial_actuals(self, fable, tourism):
        """Test that forecast steps without observations are ignored."""
        short = tourism.replace({key: tourism[key].iloc[72:74] for key in tourism})
        accuracy = fable.accuracy(short, measures=["MAE"])
        assert accuracy["MAE"].notna().all()

    def test_naive_forecast_accuracy(self, split):
        """Test exact errors of a naive forecast."""
        train, test = split
        fc = model(train, naive=NAIVE()).forecast(h=8)
        accuracy = fc.accuracy(test, measures=["ME"])
        row = accuracy[accuracy["Purpose"] == "Other"]
        expected = np.mean(test["Other"].to_numpy() - train["Other"].iloc[-1])
        assert row["ME"].iloc[0] == pytest.approx(expected)
