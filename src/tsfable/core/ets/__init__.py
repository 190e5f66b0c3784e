"""Exponential smoothing: candidate pool, estimation, selection and forecasting."""

from .selector import selector

__all__ = ["selector"]
