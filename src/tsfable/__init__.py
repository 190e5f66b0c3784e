"""
tsfable: tidy forecasting of many time series.

Specifications (``ETS()``, ``ARIMA()``, ...) are fitted to every series of a
collection with :func:`model`, giving a model table (:class:`Mable`);
forecasting it gives a forecast table (:class:`Fable`) of distributions.
"""

from .config import get_option, reset_option, set_option
from .distributions import Hilo, Normal, Sample
from .errors import (
    FitFailure,
    InvalidSpecError,
    IrregularSeriesError,
    RefitError,
    StreamError,
    TsFableError,
)
from .series import SeriesCollection, as_collection
from .spec import ARIMA, AUTO, ETS, MEAN, NAIVE, RW, SNAIVE, ModelFamily, ModelSpec
from .tables import Fable, Mable, model
from .utils import show_versions

__version__ = "0.1.0"

__all__ = [
    "ARIMA",
    "AUTO",
    "ETS",
    "MEAN",
    "NAIVE",
    "RW",
    "SNAIVE",
    "Fable",
    "FitFailure",
    "Hilo",
    "InvalidSpecError",
    "IrregularSeriesError",
    "Mable",
    "ModelFamily",
    "ModelSpec",
    "Normal",
    "RefitError",
    "Sample",
    "SeriesCollection",
    "StreamError",
    "TsFableError",
    "as_collection",
    "get_option",
    "model",
    "reset_option",
    "set_option",
    "show_versions",
]
