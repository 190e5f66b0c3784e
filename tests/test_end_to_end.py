"""
End-to-end workflow: automatic models on grouped quarterly data.
"""

import numpy as np
import pandas as pd

from tsfable import ARIMA, ETS, SNAIVE, SeriesCollection, model


def test_automatic_models_on_grouped_data(tourism):
    """Test automatic ETS and ARIMA on every series, forecast and intervals."""
    fit = model(tourism, ets=ETS(), arima=ARIMA())
    assert fit.shape == (4, 2)
    assert list(fit.failed_cells()) == []

    fc = fit.forecast(h=20)
    assert len(fc) == 4 * 2 * 20
    assert len(fc.diagnostics) == 0

    intervals = fc.hilo(80, flat=True)
    assert (intervals["80%_lower"] < intervals["80%_upper"]).all()

    per_cell = fit.forecast(h="2 years").to_frame().groupby(["Purpose", ".model"]).size()
    assert (per_cell == 8).all()


def test_train_test_workflow(tourism):
    """Test fitting on a training window and scoring the held-out quarters."""
    train = tourism.replace({key: tourism[key].iloc[:72] for key in tourism})
    test = tourism.replace({key: tourism[key].iloc[72:] for key in tourism})
    fit = model(train, ets=ETS(), snaive=SNAIVE())
    accuracy = fit.forecast(h=8).accuracy(test)
    assert len(accuracy) == 8
    assert np.isfinite(accuracy[["RMSE", "MASE", "CRPS"]].to_numpy(dtype=float)).all()


def test_long_frame_input(tourism):
    """Test fitting from a long DataFrame."""
    frame = tourism.to_frame()
    assert isinstance(frame["Quarter"].iloc[0], pd.Period)
    data = SeriesCollection.from_frame(frame, index="Quarter", value="Trips", key="Purpose")
    fit = model(data, snaive=SNAIVE())
    fc = fit.forecast().to_frame()
    assert len(fc) == 4 * 8
