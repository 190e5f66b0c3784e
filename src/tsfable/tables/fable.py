"""
Forecast table.

A :class:`Fable` holds one row per series key, model and forecast step. The
value column holds the forecast distribution and ``.mean`` its mean. Series
and model combinations that could not be forecast are listed in
:attr:`Fable.diagnostics`, never silently dropped.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from tsfable.config import get_option
from tsfable.series.collection import SeriesCollection, as_collection
from tsfable.tables.accuracy import (
    DISTRIBUTION_MEASURES,
    POINT_MEASURES,
    distribution_accuracy,
    point_accuracy,
    split_measures,
)

logger = logging.getLogger(__name__)

DIAGNOSTIC_COLUMNS = [".model", "stage", "error", "message"]


def _format_level(level) -> str:
    return f"{level:g}%"


class Fable:
    """
    Forecast distributions for many series and models.

    Parameters
    ----------
    frame : pandas.DataFrame
        Key columns, ``.model``, the time index column, the distribution
        column (named after the measured variable) and ``.mean``.
    key_names : list of str
        Names of the key columns.
    index_name : str
        Name of the time index column.
    value_name : str
        Name of the distribution column.
    diagnostics : pandas.DataFrame, optional
        Excluded series/model combinations and why.
    training : dict, optional
        ``(key, model name)`` to ``(training series, seasonal period)``,
        used to scale accuracy measures.
    """

    def __init__(
        self,
        frame: pd.DataFrame,
        key_names: List[str],
        index_name: str,
        value_name: str,
        diagnostics: Optional[pd.DataFrame] = None,
        training: Optional[Dict[Tuple, Tuple[pd.Series, int]]] = None,
    ):
        self._frame = frame.reset_index(drop=True)
        self.key_names = list(key_names)
        self.index_name = index_name
        self.value_name = value_name
        if diagnostics is None:
            diagnostics = pd.DataFrame(columns=self.key_names + DIAGNOSTIC_COLUMNS)
        self._diagnostics = diagnostics.reset_index(drop=True)
        self._training = dict(training or {})

    def _derive(self, frame: pd.DataFrame) -> "Fable":
        return Fable(frame, self.key_names, self.index_name, self.value_name,
                     self._diagnostics, self._training)

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        n_series = len(self._frame.groupby(self.key_names + [".model"], sort=False)) \
            if len(self._frame) else 0
        return (
            f"<Fable: {len(self)} rows, {n_series} series/model combinations, "
            f"{len(self._diagnostics)} excluded>"
        )

    @property
    def diagnostics(self) -> pd.DataFrame:
        """Series/model combinations excluded from the table with their errors."""
        return self._diagnostics.copy()

    @property
    def distributions(self) -> pd.Series:
        return self._frame[self.value_name]

    @property
    def model_names(self) -> List[str]:
        return list(pd.unique(self._frame[".model"]))

    def to_frame(self) -> pd.DataFrame:
        """Copy of the underlying long table."""
        return self._frame.copy()

    def filter(self, mask) -> "Fable":
        """
        Keep the rows selected by ``mask``.

        Parameters
        ----------
        mask : array-like of bool or callable
            Boolean row mask, or a function taking the table
            (see :meth:`to_frame`) and returning one.
        """
        if callable(mask):
            mask = mask(self._frame)
        mask = np.asarray(mask, dtype=bool)
        if mask.shape != (len(self._frame),):
            raise ValueError(
                f"Row mask has shape {mask.shape}, expected ({len(self._frame)},)."
            )
        return self._derive(self._frame.loc[mask])

    def hilo(self, level=None, flat: bool = False) -> pd.DataFrame:
        """
        Add prediction intervals.

        Parameters
        ----------
        level : float or sequence of float, optional
            Confidence levels in (0, 100). Defaults to the ``fable.levels``
            option.
        flat : bool, default=False
            Return ``<level>%_lower`` and ``<level>%_upper`` numeric columns
            instead of one column of :class:`~tsfable.distributions.Hilo`
            objects per level.

        Returns
        -------
        pandas.DataFrame
            The table with one or two columns per level, in the order given.
        """
        if level is None:
            level = get_option("fable.levels")
        levels = list(level) if isinstance(level, (list, tuple, np.ndarray)) else [level]
        out = self._frame.copy()
        intervals = [dist.hilo(levels) for dist in out[self.value_name]]
        for position, lv in enumerate(levels):
            column = _format_level(lv)
            values = [row[position] for row in intervals]
            if flat:
                out[f"{column}_lower"] = [h.lower for h in values]
                out[f"{column}_upper"] = [h.upper for h in values]
            else:
                out[column] = values
        return out

    def quantile(self, p) -> pd.DataFrame:
        """Add one column of quantiles per probability in ``p``."""
        probabilities = list(p) if isinstance(p, (list, tuple, np.ndarray)) else [p]
        out = self._frame.copy()
        for prob in probabilities:
            out[f"q{prob:g}"] = [float(dist.quantile(prob)) for dist in out[self.value_name]]
        return out

    def accuracy(
        self,
        actuals,
        measures: Sequence[str] = POINT_MEASURES + DISTRIBUTION_MEASURES,
        level: float = 95,
    ) -> pd.DataFrame:
        """
        Accuracy of the forecasts against observed future values.

        Parameters
        ----------
        actuals : SeriesCollection, mapping or pandas.Series
            Observed values keyed like the training data. Forecast steps
            without an observation are ignored.
        measures : sequence of str
            Point measures (see :data:`~tsfable.tables.accuracy.POINT_MEASURES`)
            and distributional measures (``CRPS``, ``winkler``).
        level : float, default=95
            Level of the Winkler score.

        Returns
        -------
        pandas.DataFrame
            One row per key and model with ``.type`` set to ``"Test"``.
        """
        if not isinstance(actuals, SeriesCollection):
            actuals = as_collection(actuals, value=self.value_name)
        point, distributional = split_measures(list(measures))

        rows = []
        for group, frame in self._frame.groupby(self.key_names + [".model"], sort=False):
            group = group if isinstance(group, tuple) else (group,)
            key, name = tuple(group[:-1]), group[-1]
            row = dict(zip(self.key_names, key))
            row.update({".model": name, ".type": "Test"})
            observed = actuals.get(key)
            if observed is None:
                logger.warning("No actual values for %s; skipping accuracy", key)
                continue
            index = pd.Index(frame[self.index_name])
            actual = observed.reindex(index).to_numpy(dtype=float)
            train, period = self._training.get((key, name), (None, 1))
            train_values = None if train is None else train.to_numpy(dtype=float)
            row.update(point_accuracy(actual, frame[".mean"].to_numpy(dtype=float),
                                      train_values, period, point))
            row.update(distribution_accuracy(actual, list(frame[self.value_name]),
                                             distributional, level))
            rows.append(row)
        columns = self.key_names + [".model", ".type"] + point + distributional
        return pd.DataFrame(rows, columns=columns)
