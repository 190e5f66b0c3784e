"""Numerical helpers shared by the ETS and ARIMA fitters."""

# Import directly from submodules:
#   from tsfable.core.utils.ic import AIC, AICc, BIC, information_criteria
#   from tsfable.core.utils.optimization import minimise
#   from tsfable.core.utils.decomposition import msdecompose, seasonal_strength
