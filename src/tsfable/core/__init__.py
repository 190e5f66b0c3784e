"""Automatic ETS and ARIMA fitting engines."""
