"""
Time index handling.

Series are ``pandas.Series`` objects indexed by a ``PeriodIndex``, a
``DatetimeIndex`` with a (possibly inferred) fixed frequency, or an integer
index with a constant positive step. Anything else is irregular.
"""

import datetime
import numbers
import re

import numpy as np
import pandas as pd
from pandas.tseries import offsets
from pandas.tseries.frequencies import to_offset

from tsfable.errors import IrregularSeriesError

_SEASONAL_PERIODS = [
    ((offsets.QuarterEnd, offsets.QuarterBegin, offsets.BQuarterEnd,
      offsets.BQuarterBegin), 4),
    ((offsets.MonthEnd, offsets.MonthBegin, offsets.BusinessMonthEnd,
      offsets.BusinessMonthBegin), 12),
    ((offsets.YearEnd, offsets.YearBegin, offsets.BYearEnd, offsets.BYearBegin), 1),
    ((offsets.Week,), 52),
    ((offsets.BusinessDay,), 5),
    ((offsets.Day,), 7),
    ((offsets.Hour, offsets.BusinessHour), 24),
    ((offsets.Minute,), 60),
    ((offsets.Second,), 60),
]

_DURATION_PATTERN = re.compile(
    r"^\s*(\d+)\s*(year|yr|quarter|qtr|month|week|day|hour|minute|min|second|sec)s?\s*$",
    re.IGNORECASE,
)

_DURATION_UNITS = {
    "year": ("years", 1),
    "yr": ("years", 1),
    "quarter": ("months", 3),
    "qtr": ("months", 3),
    "month": ("months", 1),
    "week": ("weeks", 1),
    "day": ("days", 1),
    "hour": ("hours", 1),
    "minute": ("minutes", 1),
    "min": ("minutes", 1),
    "second": ("seconds", 1),
    "sec": ("seconds", 1),
}


def index_info(index):
    """
    Describe a regular time index.

    Parameters
    ----------
    index : pandas.Index
        Index of a single series.

    Returns
    -------
    dict
        ``kind`` ("period", "datetime" or "integer"), ``freq`` (pandas offset
        or None), ``step`` (integer step for integer indexes) and ``period``
        (seasonal period implied by the frequency).

    Raises
    ------
    IrregularSeriesError
        If the index is empty, not strictly increasing, has gaps or an
        unsupported type.
    """
    n = len(index)
    if n == 0:
        raise IrregularSeriesError("Series has no observations.")
    if index.has_duplicates:
        raise IrregularSeriesError("Time index contains duplicated time points.")
    if not index.is_monotonic_increasing:
        raise IrregularSeriesError("Time index is not strictly increasing.")

    if isinstance(index, pd.PeriodIndex):
        freq = index.freq
        expected = pd.period_range(start=index[0], periods=n, freq=freq)
        if not index.equals(expected):
            raise IrregularSeriesError(
                f"Time index has gaps at frequency {freq.freqstr}."
            )
        return {"kind": "period", "freq": freq, "step": 1, "period": _period_from_offset(freq)}

    if isinstance(index, pd.DatetimeIndex):
        freq = index.freq
        if freq is None and n >= 3:
            inferred = pd.infer_freq(index)
            freq = to_offset(inferred) if inferred is not None else None
        if freq is None:
            raise IrregularSeriesError(
                "Could not determine a regular frequency for the datetime index."
            )
        expected = pd.date_range(start=index[0], periods=n, freq=freq)
        if not index.equals(expected):
            raise IrregularSeriesError(
                f"Time index has gaps at frequency {freq.freqstr}."
            )
        return {"kind": "datetime", "freq": freq, "step": 1,
                "period": _period_from_offset(freq)}

    if pd.api.types.is_integer_dtype(index.dtype):
        values = np.asarray(index, dtype=np.int64)
        if n == 1:
            step = 1
        else:
            steps = np.diff(values)
            step = int(steps[0])
            if step <= 0 or np.any(steps != step):
                raise IrregularSeriesError("Integer time index does not have a constant step.")
        return {"kind": "integer", "freq": None, "step": step, "period": 1}

    raise IrregularSeriesError(f"Unsupported time index type: {type(index).__name__}.")


def _period_from_offset(freq):
    """Seasonal period implied by a pandas offset (1 when unknown)."""
    for classes, period in _SEASONAL_PERIODS:
        if isinstance(freq, classes):
            multiple = abs(int(getattr(freq, "n", 1))) or 1
            if period % multiple == 0:
                return max(period // multiple, 1)
            return 1
    return 1


def seasonal_period(index) -> int:
    """Return the seasonal period implied by ``index``."""
    return index_info(index)["period"]


def validate_series(series, name=None) -> pd.Series:
    """
    Coerce input into a float ``pandas.Series`` with a regular index.

    Parameters
    ----------
    series : pandas.Series or array-like
        Observations. Arrays get a ``RangeIndex``. Missing observations are
        allowed as NaN; missing *time points* are not.
    name : str, optional
        Name to give the returned series when it has none.

    Returns
    -------
    pandas.Series
        Copy of the data, float dtype, frequency attached to datetime indexes.

    Raises
    ------
    IrregularSeriesError
        If the index is irregular.
    """
    if not isinstance(series, pd.Series):
        series = pd.Series(np.asarray(series, dtype=float))
    info = index_info(series.index)
    values = pd.to_numeric(series, errors="raise").astype(float)
    index = series.index
    if info["kind"] == "datetime" and index.freq is None:
        index = pd.DatetimeIndex(index, freq=info["freq"])
    out = pd.Series(values.to_numpy(copy=True), index=index, name=series.name or name)
    return out


def future_index(index, h: int):
    """Return the ``h`` time points that follow the last point of ``index``."""
    info = index_info(index)
    if info["kind"] == "period":
        return pd.period_range(start=index[-1] + 1, periods=h, freq=info["freq"])
    if info["kind"] == "datetime":
        return pd.date_range(start=index[-1], periods=h + 1, freq=info["freq"])[1:]
    step = info["step"]
    last = int(index[-1])
    return pd.Index(np.arange(1, h + 1, dtype=np.int64) * step + last)


def _parse_duration(h):
    if isinstance(h, str):
        match = _DURATION_PATTERN.match(h)
        if match is None:
            raise ValueError(
                f"Could not parse forecast horizon {h!r}. Use e.g. '2 years' or '6 months'."
            )
        count = int(match.group(1))
        unit, multiple = _DURATION_UNITS[match.group(2).lower()]
        return pd.DateOffset(**{unit: count * multiple})
    if isinstance(h, (pd.DateOffset, pd.Timedelta, datetime.timedelta)):
        return h
    raise TypeError(f"Unsupported forecast horizon type: {type(h).__name__}.")


def resolve_horizon(h, index) -> int:
    """
    Convert a horizon given as a count or a calendar duration into steps.

    Parameters
    ----------
    h : int, str, pandas.DateOffset or timedelta
        Number of steps, or a duration such as ``"2 years"``.
    index : pandas.Index
        Index of the fitted series; the duration is counted from its last
        time point.

    Returns
    -------
    int
        Number of forecast steps (at least 1).
    """
    if isinstance(h, numbers.Integral) and not isinstance(h, bool):
        if h < 1:
            raise ValueError(f"Forecast horizon must be at least 1, got {h}.")
        return int(h)

    duration = _parse_duration(h)
    info = index_info(index)
    if info["kind"] == "integer":
        raise ValueError(
            "A calendar duration horizon needs a period or datetime index; "
            "give the horizon as a number of steps instead."
        )
    if info["kind"] == "period":
        end = index[-1].start_time + duration
        first = index[-1] + 1
        if end < first.start_time:
            steps = 0
        else:
            last = pd.Period(end, freq=info["freq"])
            steps = len(pd.period_range(start=first, end=last, freq=info["freq"]))
    else:
        end = index[-1] + duration
        steps = len(pd.date_range(start=index[-1], end=end, freq=info["freq"])) - 1
    if steps < 1:
        raise ValueError(f"Forecast horizon {h!r} is shorter than one time step.")
    return steps


def same_frequency(index_a, index_b) -> bool:
    """True when two regular indexes share kind, frequency and step."""
    a = index_info(index_a)
    b = index_info(index_b)
    if a["kind"] != b["kind"] or a["step"] != b["step"]:
        return False
    if a["kind"] == "integer":
        return True
    return a["freq"] == b["freq"]


def continues(index, new_index) -> bool:
    """True when ``new_index`` starts exactly one step after ``index`` ends."""
    if len(new_index) == 0:
        return True
    expected = future_index(index, 1)[0]
    return new_index[0] == expected
