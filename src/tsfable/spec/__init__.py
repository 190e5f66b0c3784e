from .auto import AUTO, Automatic, is_auto
from .factories import ARIMA, ETS, MEAN, NAIVE, RW, SNAIVE
from .specification import ModelFamily, ModelSpec

__all__ = [
    "AUTO",
    "Automatic",
    "is_auto",
    "ModelFamily",
    "ModelSpec",
    "ETS",
    "ARIMA",
    "MEAN",
    "NAIVE",
    "SNAIVE",
    "RW",
]
