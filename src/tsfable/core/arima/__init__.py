"""Seasonal ARIMA: differencing, Kalman likelihood, order search and forecasting."""

from .selector import selector

__all__ = ["selector"]
