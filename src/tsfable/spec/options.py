"""Option tables for every supported model family."""

from tsfable.config import OPTIMIZER_DEFAULTS
from tsfable.spec.domains import Boolean, Choice, Integer, Real, Settings

IC_CHOICE = dict(choices=["aic", "aicc", "bic"], aliases={"AIC": "aic", "AICc": "aicc",
                                                          "BIC": "bic"})

ETS_OPTIONS = {
    "error": Choice(["A", "M"], aliases={"additive": "A", "multiplicative": "M"},
                    doc="Error type"),
    "trend": Choice(
        ["N", "A", "Ad"],
        aliases={"none": "N", "additive": "A", "damped": "Ad", "additive-damped": "Ad"},
        doc="Trend type",
    ),
    "season": Choice(["N", "A", "M"],
                     aliases={"none": "N", "additive": "A", "multiplicative": "M"},
                     doc="Seasonal type"),
    "period": Integer(minimum=1, doc="Seasonal period"),
    "alpha": Real(0.0, 1.0, doc="Level smoothing parameter"),
    "beta": Real(0.0, 1.0, doc="Trend smoothing parameter"),
    "gamma": Real(0.0, 1.0, doc="Seasonal smoothing parameter"),
    "phi": Real(0.8, 0.98, closed=True, doc="Damping parameter"),
    "ic": Choice(default="aicc", allow_auto=False, **IC_CHOICE),
    "restrict": Boolean(default=True, allow_auto=False,
                        doc="Drop additive error with multiplicative season"),
    "optimizer": Settings(OPTIMIZER_DEFAULTS),
}

ARIMA_OPTIONS = {
    "p": Integer(minimum=0),
    "d": Integer(minimum=0),
    "q": Integer(minimum=0),
    "P": Integer(minimum=0),
    "D": Integer(minimum=0),
    "Q": Integer(minimum=0),
    "period": Integer(minimum=1),
    "constant": Boolean(),
    "ic": Choice(default="aicc", allow_auto=False, **IC_CHOICE),
    "stepwise": Boolean(default=True, allow_auto=False),
    "max_p": Integer(minimum=0, default=5, allow_auto=False),
    "max_q": Integer(minimum=0, default=5, allow_auto=False),
    "max_P": Integer(minimum=0, default=2, allow_auto=False),
    "max_Q": Integer(minimum=0, default=2, allow_auto=False),
    "max_d": Integer(minimum=0, default=2, allow_auto=False),
    "max_D": Integer(minimum=0, default=1, allow_auto=False),
    "max_order": Integer(minimum=0, default=6, allow_auto=False),
    "max_search_steps": Integer(minimum=1, default=94, allow_auto=False),
    "unitroot_alpha": Real(0.0, 1.0, default=0.05, allow_auto=False),
    "seasonal_threshold": Real(0.0, 1.0, default=0.64, allow_auto=False),
    "optimizer": Settings(OPTIMIZER_DEFAULTS),
}

MEAN_OPTIONS = {}

NAIVE_OPTIONS = {}

SNAIVE_OPTIONS = {
    "period": Integer(minimum=2),
}

RW_OPTIONS = {
    "drift": Boolean(default=False, allow_auto=False),
}
