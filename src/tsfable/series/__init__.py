from .collection import SeriesCollection, as_collection
from .index import (
    continues,
    future_index,
    index_info,
    resolve_horizon,
    same_frequency,
    seasonal_period,
    validate_series,
)

__all__ = [
    "SeriesCollection",
    "as_collection",
    "continues",
    "future_index",
    "index_info",
    "resolve_horizon",
    "same_frequency",
    "seasonal_period",
    "validate_series",
]
