from .accuracy import DISTRIBUTION_MEASURES, POINT_MEASURES
from .fable import Fable
from .mable import Mable, model

__all__ = ["DISTRIBUTION_MEASURES", "Fable", "Mable", "POINT_MEASURES", "model"]
