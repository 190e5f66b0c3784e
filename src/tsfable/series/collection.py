"""
Grouped series container.

The grouped time-series table itself is an external concern; this module
only holds the minimal contract the orchestration layer consumes: an ordered
mapping from series key (a tuple of grouping values) to a time-indexed
``pandas.Series``. Regularity is *not* checked here: each fitter validates
its own series so that one irregular series does not sink the whole table.
"""

from collections.abc import Mapping
from typing import Dict, Hashable, Iterable, Optional, Sequence, Tuple, Union

import pandas as pd

Key = Tuple[Hashable, ...]


def _as_key(key) -> Key:
    if isinstance(key, tuple):
        return key
    return (key,)


class SeriesCollection(Mapping):
    """
    Ordered mapping of series key to observations.

    Parameters
    ----------
    series : mapping
        Series key (tuple, or scalar for a single grouping variable) to
        ``pandas.Series``.
    key_names : sequence of str, optional
        Names of the grouping variables. Defaults to ``key_1, key_2, ...``.
    index_name : str, default="index"
        Name of the time index column in tabular output.
    value_name : str, default="value"
        Name of the measured variable.

    Examples
    --------
    >>> idx = pd.period_range("2000Q1", periods=8, freq="Q")
    >>> data = SeriesCollection(
    ...     {("Holiday",): pd.Series(range(8), index=idx, dtype=float)},
    ...     key_names=["Purpose"], value_name="Trips",
    ... )
    >>> list(data)
    [('Holiday',)]
    """

    def __init__(
        self,
        series: Mapping,
        key_names: Optional[Sequence[str]] = None,
        index_name: str = "index",
        value_name: str = "value",
    ):
        items: Dict[Key, pd.Series] = {}
        for key, values in series.items():
            key = _as_key(key)
            if key in items:
                raise ValueError(f"Duplicated series key: {key}")
            if not isinstance(values, pd.Series):
                values = pd.Series(values)
            items[key] = values.rename(value_name)

        widths = {len(key) for key in items}
        if len(widths) > 1:
            raise ValueError("All series keys must have the same number of elements.")
        width = widths.pop() if widths else len(key_names or [])
        if key_names is None:
            key_names = [f"key_{i + 1}" for i in range(width)]
        key_names = list(key_names)
        if len(key_names) != width:
            raise ValueError(
                f"Got {len(key_names)} key names for keys with {width} elements."
            )

        self._series = items
        self.key_names = key_names
        self.index_name = index_name
        self.value_name = value_name

    def __getitem__(self, key) -> pd.Series:
        return self._series[_as_key(key)]

    def __iter__(self):
        return iter(self._series)

    def __len__(self) -> int:
        return len(self._series)

    def __repr__(self) -> str:
        keys = ", ".join(self.key_names) or "<no key>"
        return (
            f"<SeriesCollection: {len(self)} series keyed by [{keys}], "
            f"measuring '{self.value_name}'>"
        )

    def replace(self, series: Mapping) -> "SeriesCollection":
        """Return a collection with the same names but different data."""
        return SeriesCollection(
            series, key_names=self.key_names, index_name=self.index_name,
            value_name=self.value_name,
        )

    def to_frame(self) -> pd.DataFrame:
        """Long-format DataFrame with key columns, index column and values."""
        frames = []
        for key, values in self._series.items():
            frame = pd.DataFrame({self.index_name: values.index,
                                  self.value_name: values.to_numpy()})
            for name, value in zip(self.key_names, key):
                frame[name] = value
            frames.append(frame)
        columns = self.key_names + [self.index_name, self.value_name]
        if not frames:
            return pd.DataFrame(columns=columns)
        return pd.concat(frames, ignore_index=True)[columns]

    @classmethod
    def from_frame(
        cls,
        data: pd.DataFrame,
        index: str,
        value: str,
        key: Union[str, Iterable[str], None] = None,
        freq: Optional[str] = None,
    ) -> "SeriesCollection":
        """
        Split a long-format DataFrame into one series per key.

        Parameters
        ----------
        data : pandas.DataFrame
            One row per (key, time point).
        index : str
            Column holding the time index (periods, timestamps or integers).
        value : str
            Column holding the observations.
        key : str or list of str, optional
            Grouping columns. ``None`` means the frame is a single series.
        freq : str, optional
            Frequency to attach to timestamp indexes, e.g. ``"QS"``. When
            omitted it is inferred per series during fitting.

        Returns
        -------
        SeriesCollection
        """
        if isinstance(key, str):
            key_names = [key]
        else:
            key_names = list(key or [])

        missing = [c for c in key_names + [index, value] if c not in data.columns]
        if missing:
            raise KeyError(f"Columns not found in data: {missing}")

        def build(frame):
            frame = frame.sort_values(index, kind="mergesort")
            idx = frame[index]
            if freq is not None and pd.api.types.is_datetime64_any_dtype(idx):
                idx_obj = pd.DatetimeIndex(idx, freq=None)
                idx_obj = pd.DatetimeIndex(idx_obj, freq=freq) if len(idx_obj) > 0 else idx_obj
            else:
                idx_obj = pd.Index(idx)
            return pd.Series(frame[value].to_numpy(dtype=float), index=idx_obj, name=value)

        series = {}
        if key_names:
            for group_key, frame in data.groupby(key_names, sort=True):
                series[_as_key(group_key)] = build(frame)
        else:
            series[()] = build(data)
        return cls(series, key_names=key_names, index_name=index, value_name=value)


def as_collection(data, index=None, value=None, key=None, freq=None) -> SeriesCollection:
    """
    Accept the supported input shapes and return a :class:`SeriesCollection`.

    ``data`` may already be a collection, a mapping of key to series, a single
    ``pandas.Series``, or a long DataFrame (then ``index`` and ``value`` are
    required).
    """
    if isinstance(data, SeriesCollection):
        return data
    if isinstance(data, pd.DataFrame):
        if index is None or value is None:
            raise ValueError("'index' and 'value' column names are required for a DataFrame.")
        return SeriesCollection.from_frame(data, index=index, value=value, key=key, freq=freq)
    if isinstance(data, pd.Series):
        name = data.name if data.name is not None else (value or "value")
        return SeriesCollection({(): data}, key_names=[], value_name=name)
    if isinstance(data, Mapping):
        key_names = [key] if isinstance(key, str) else key
        return SeriesCollection(data, key_names=key_names, value_name=value or "value")
    raise TypeError(f"Unsupported data type: {type(data).__name__}")
