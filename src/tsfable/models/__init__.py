"""
Fitted models.

Every model family maps to one :class:`~tsfable.models.base.FittedModel`
subclass through :data:`REGISTRY`; :func:`fit_model` is the single entry
point used by the table layer.
"""

from tsfable.models.arima import ARIMAModel
from tsfable.models.base import FailedModel, FittedModel, is_failed
from tsfable.models.benchmarks import MeanModel, NaiveModel, RWModel, SNaiveModel
from tsfable.models.ets import ETSModel
from tsfable.series.index import validate_series
from tsfable.spec.specification import ModelFamily, ModelSpec

REGISTRY = {
    ModelFamily.ETS: ETSModel,
    ModelFamily.ARIMA: ARIMAModel,
    ModelFamily.MEAN: MeanModel,
    ModelFamily.NAIVE: NaiveModel,
    ModelFamily.SNAIVE: SNaiveModel,
    ModelFamily.RW: RWModel,
}


def fit_model(spec: ModelSpec, series, name=None) -> FittedModel:
    """
    Fit ``spec`` to one series.

    Parameters
    ----------
    spec : ModelSpec
        Model specification.
    series : pandas.Series or array-like
        Observations with a regular time index.
    name : str, optional
        Series name used when ``series`` has none.

    Raises
    ------
    IrregularSeriesError
        If the index is irregular.
    FitFailure
        If no candidate model could be estimated.
    """
    series = validate_series(series, name=name)
    return REGISTRY[spec.family].fit(spec, series)


__all__ = [
    "ARIMAModel",
    "ETSModel",
    "FailedModel",
    "FittedModel",
    "MeanModel",
    "NaiveModel",
    "RWModel",
    "REGISTRY",
    "SNaiveModel",
    "fit_model",
    "is_failed",
]
