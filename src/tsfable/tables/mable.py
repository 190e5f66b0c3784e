"""
Model table.

:func:`model` fits every specification to every series of a collection and
returns a :class:`Mable`: one row per series key, one column per named
specification. Cells are fitted in isolation, optionally in parallel with
``joblib``; a cell whose fit fails holds a
:class:`~tsfable.models.base.FailedModel` and never stops its siblings.
"""

import logging
from typing import Dict, List, Mapping, Optional

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from tsfable.config import get_option
from tsfable.core.utils.optimization import NUMERICAL_ERRORS
from tsfable.errors import TsFableError
from tsfable.models import FailedModel, fit_model, is_failed
from tsfable.series.collection import SeriesCollection, as_collection
from tsfable.spec.specification import ModelSpec
from tsfable.tables.accuracy import POINT_MEASURES, point_accuracy
from tsfable.tables.fable import DIAGNOSTIC_COLUMNS, Fable

logger = logging.getLogger(__name__)

CELL_ERRORS = (TsFableError, *NUMERICAL_ERRORS)


def _fit_cell(spec, series):
    try:
        return fit_model(spec, series)
    except CELL_ERRORS as error:
        return FailedModel(spec, error)


def _forecast_cell(cell, h, kwargs):
    try:
        return cell.forecast(h, **kwargs)
    except CELL_ERRORS as error:
        return error


def _update_cell(cell, data, method, kwargs):
    if is_failed(cell):
        return cell
    try:
        return getattr(cell, method)(data, **kwargs)
    except CELL_ERRORS as error:
        return FailedModel(cell.spec, error)


def _run(function, tasks, n_jobs):
    if n_jobs is None:
        n_jobs = get_option("mable.n_jobs")
    return Parallel(n_jobs=n_jobs)(delayed(function)(*task) for task in tasks)


def model(data, *, n_jobs: Optional[int] = None, **specs: ModelSpec) -> "Mable":
    """
    Fit model specifications to every series of a collection.

    Parameters
    ----------
    data : SeriesCollection, mapping or pandas.Series
        Series to fit, keyed by series key.
    n_jobs : int, optional
        Number of ``joblib`` workers. Defaults to the ``mable.n_jobs``
        option; 1 fits in the calling process.
    **specs : ModelSpec
        Named specifications; the names become the model columns.

    Returns
    -------
    Mable
        One cell per series key and specification.

    Examples
    --------
    >>> fit = model(tourism, ets=ETS(), arima=ARIMA())
    >>> fit.shape
    (4, 2)
    >>> fit.forecast(h="2 years").hilo(80)  # doctest: +SKIP
    """
    if not specs:
        raise ValueError("At least one model specification is required.")
    for name, spec in specs.items():
        if not isinstance(spec, ModelSpec):
            raise TypeError(
                f"Model {name!r} must be a ModelSpec, got {type(spec).__name__}."
            )
    data = as_collection(data)
    tasks = [(spec, data[key]) for key in data for spec in specs.values()]
    results = iter(_run(_fit_cell, tasks, n_jobs))
    cells = {key: {name: next(results) for name in specs} for key in data}
    mable = Mable(data, cells, specs)
    for key, name, cell in mable.failed_cells():
        logger.warning("Fitting %s for %s failed: %s", name, key, cell.message)
    return mable


class Mable:
    """
    Table of fitted models: series keys by model specifications.

    Mables are values. Every verb returns a new table; the cells kept by
    :meth:`select` and :meth:`filter` are the very same fitted models.

    Parameters
    ----------
    data : SeriesCollection
        Training data.
    cells : dict
        Series key to ``{model name: fitted or failed model}``.
    specs : dict
        Model name to specification, in column order.
    """

    def __init__(self, data: SeriesCollection, cells: Dict, specs: Mapping[str, ModelSpec]):
        self.data = data
        self.specs = dict(specs)
        self._cells = {key: dict(cells[key]) for key in cells}

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    @property
    def keys(self) -> List:
        return list(self._cells)

    @property
    def key_names(self) -> List[str]:
        return self.data.key_names

    @property
    def model_names(self) -> List[str]:
        return list(self.specs)

    @property
    def shape(self):
        return (len(self._cells), len(self.specs))

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:
        failed = len(list(self.failed_cells()))
        return (
            f"<Mable: {len(self)} series x {len(self.specs)} models "
            f"[{', '.join(self.specs)}], {failed} failed>"
        )

    def cell(self, key, name: str):
        """Fitted (or failed) model of series ``key`` and model ``name``."""
        key = key if isinstance(key, tuple) else (key,)
        return self._cells[key][name]

    def cells(self):
        """Iterate over ``(key, model name, cell)`` in table order."""
        for key, row in self._cells.items():
            for name in self.specs:
                yield key, name, row[name]

    def failed_cells(self):
        for key, name, cell in self.cells():
            if is_failed(cell):
                yield key, name, cell

    def to_frame(self) -> pd.DataFrame:
        """Wide table: key columns followed by one column of models per specification."""
        rows = []
        for key, row in self._cells.items():
            record = dict(zip(self.key_names, key))
            record.update({name: row[name] for name in self.specs})
            rows.append(record)
        return pd.DataFrame(rows, columns=self.key_names + self.model_names)

    def _key_record(self, key, name) -> Dict:
        record = dict(zip(self.key_names, key))
        record[".model"] = name
        return record

    def _derive(self, cells, specs=None, data=None) -> "Mable":
        return Mable(self.data if data is None else data, cells,
                     self.specs if specs is None else specs)

    # ------------------------------------------------------------------
    # Table verbs
    # ------------------------------------------------------------------

    def select(self, *names: str) -> "Mable":
        """Keep the named model columns, in the order given."""
        unknown = [n for n in names if n not in self.specs]
        if unknown:
            raise KeyError(f"Unknown model column(s) {unknown}. Available: {self.model_names}")
        specs = {name: self.specs[name] for name in names}
        cells = {key: {name: row[name] for name in names} for key, row in self._cells.items()}
        return self._derive(cells, specs)

    def filter(self, mask) -> "Mable":
        """
        Keep the rows selected by ``mask``.

        Parameters
        ----------
        mask : array-like of bool or callable
            One flag per row, or a function of the series key (a dict of key
            column to value) returning a flag.
        """
        keys = self.keys
        if callable(mask):
            flags = [bool(mask(dict(zip(self.key_names, key)))) for key in keys]
        else:
            flags = [bool(flag) for flag in mask]
            if len(flags) != len(keys):
                raise ValueError(f"Row mask has {len(flags)} entries, expected {len(keys)}.")
        kept = [key for key, flag in zip(keys, flags) if flag]
        data = self.data.replace({key: self.data[key] for key in kept})
        return self._derive({key: self._cells[key] for key in kept}, data=data)

    def failures(self) -> pd.DataFrame:
        """One row per failed cell with the error type and message."""
        rows = []
        for key, name, cell in self.failed_cells():
            record = self._key_record(key, name)
            record.update({"error": type(cell.error).__name__, "message": str(cell.error)})
            rows.append(record)
        return pd.DataFrame(rows, columns=self.key_names + [".model", "error", "message"])

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def _extract(self, function, columns) -> pd.DataFrame:
        """
        Apply ``function(cell)`` to every cell.

        ``function`` returns a DataFrame (several rows per cell) or a dict
        (one row). Failed cells produce one row with status ``"failed"`` and
        the error message; they are also listed in ``attrs["failed_cells"]``.
        """
        frames = []
        failed = []
        for key, name, cell in self.cells():
            record = self._key_record(key, name)
            if is_failed(cell):
                failed.append((key, name))
                record.update({"status": "failed", "message": cell.message})
                frames.append(pd.DataFrame([record]))
                continue
            result = function(cell)
            if isinstance(result, pd.DataFrame):
                frame = result.reset_index(drop=True)
                for column, value in reversed(list(record.items())):
                    frame.insert(0, column, [value] * len(frame))
            else:
                frame = pd.DataFrame([{**record, **result}])
            frame["status"] = "ok"
            frame["message"] = None
            frames.append(frame)

        base = self.key_names + [".model"]
        if frames:
            out = pd.concat(frames, ignore_index=True, sort=False)
        else:
            out = pd.DataFrame(columns=base + list(columns) + ["status", "message"])
        ordered = base + [c for c in out.columns if c not in base + ["status", "message"]]
        out = out[ordered + ["status", "message"]]
        out.attrs["failed_cells"] = failed
        return out

    def coefficients(self) -> pd.DataFrame:
        """Estimated coefficients: one row per cell and term."""
        return self._extract(lambda cell: cell.tidy(), ["term", "estimate"])

    tidy = coefficients

    def glance(self) -> pd.DataFrame:
        """One-row summary statistics per cell."""
        def summarise(cell):
            return {"model_name": cell.model_name, **cell.glance()}
        return self._extract(summarise, ["model_name", "sigma2", "log_lik", "AIC", "AICc", "BIC"])

    def accuracy(self, measures=POINT_MEASURES) -> pd.DataFrame:
        """In-sample accuracy of the one-step fitted values (``.type`` is ``"Training"``)."""
        def training(cell):
            actual = cell.series.to_numpy(dtype=float)
            result = point_accuracy(actual, cell.fitted.to_numpy(dtype=float), actual,
                                    cell.period, measures)
            return {".type": "Training", **result}
        return self._extract(training, [".type", *measures])

    def _series_frame(self, cell, values: pd.Series, column: str) -> pd.DataFrame:
        return pd.DataFrame({self.data.index_name: values.index, column: values.to_numpy()})

    def fitted(self) -> pd.DataFrame:
        return self._extract(
            lambda cell: self._series_frame(cell, cell.fitted, ".fitted"),
            [self.data.index_name, ".fitted"],
        )

    def residuals(self, type: str = "innovation") -> pd.DataFrame:  # noqa: A002
        """
        Residuals of every cell.

        Parameters
        ----------
        type : {"innovation", "response"}, default="innovation"
            Innovation residuals of the model, or observed minus fitted.
        """
        if type not in ("innovation", "response"):
            raise ValueError(f"Residual type must be 'innovation' or 'response', got {type!r}.")

        def extract(cell):
            values = cell.residuals if type == "innovation" else cell.response_residuals
            return self._series_frame(cell, values, ".resid")
        return self._extract(extract, [self.data.index_name, ".resid"])

    def components(self) -> pd.DataFrame:
        """Model components of every cell, stacked with the key and model columns."""
        def extract(cell):
            frame = cell.components()
            frame.insert(0, self.data.index_name, frame.index)
            return frame
        return self._extract(extract, [self.data.index_name])

    def interpolate(self) -> SeriesCollection:
        """
        Fill missing observations with model predictions.

        Only defined for a table with a single model column (use
        :meth:`select` first).
        """
        if len(self.specs) != 1:
            raise ValueError("interpolate() needs a single model column; use select() first.")
        (name,) = self.specs
        series = {}
        for key, row in self._cells.items():
            cell = row[name]
            series[key] = self.data[key].copy() if is_failed(cell) else cell.interpolate()
        return self.data.replace(series)

    # ------------------------------------------------------------------
    # Forecasting and updating
    # ------------------------------------------------------------------

    def forecast(self, h=None, n_jobs: Optional[int] = None, **kwargs) -> Fable:
        """
        Forecast every fitted cell.

        Parameters
        ----------
        h : int, str or DateOffset, optional
            Horizon as a number of steps or a calendar duration.
        n_jobs : int, optional
            Number of ``joblib`` workers.
        **kwargs
            Passed to each model's ``forecast`` (``times``, ``seed``).

        Returns
        -------
        Fable
            Failed cells, and cells whose forecast raised, are listed in
            :attr:`Fable.diagnostics` and logged at WARNING level.
        """
        fitted = [(key, name, cell) for key, name, cell in self.cells() if not is_failed(cell)]
        results = _run(_forecast_cell, [(cell, h, kwargs) for _, _, cell in fitted], n_jobs)

        diagnostics = []
        for key, name, cell in self.failed_cells():
            logger.warning("Excluding %s for %s from the forecasts: fit failed", name, key)
            record = self._key_record(key, name)
            record.update({"stage": "fit", "error": type(cell.error).__name__,
                           "message": str(cell.error)})
            diagnostics.append(record)

        index_name = self.data.index_name
        value_name = self.data.value_name
        frames = []
        training = {}
        for (key, name, cell), result in zip(fitted, results):
            if isinstance(result, Exception):
                logger.warning("Excluding %s for %s from the forecasts: %s", name, key, result)
                record = self._key_record(key, name)
                record.update({"stage": "forecast", "error": type(result).__name__,
                               "message": str(result)})
                diagnostics.append(record)
                continue
            frame = pd.DataFrame({
                index_name: result.index,
                value_name: list(result.to_numpy()),
                ".mean": [dist.mean() for dist in result],
            })
            for column, value in reversed(list(self._key_record(key, name).items())):
                frame.insert(0, column, [value] * len(frame))
            frames.append(frame)
            training[(key, name)] = (cell.series, cell.period)

        columns = self.key_names + [".model", index_name, value_name, ".mean"]
        frame = pd.concat(frames, ignore_index=True) if frames else pd.DataFrame(columns=columns)
        diagnostics = pd.DataFrame(diagnostics, columns=self.key_names + DIAGNOSTIC_COLUMNS)
        return Fable(frame[columns], self.key_names, index_name, value_name, diagnostics,
                     training)

    def generate(self, h=None, times: Optional[int] = None, seed=None,
                 bootstrap: bool = False) -> pd.DataFrame:
        """
        Simulated future paths of every fitted cell.

        A single ``seed`` gives each cell its own reproducible stream.
        """
        seeds = np.random.SeedSequence(seed).spawn(len(self._cells) * len(self.specs))
        streams = iter(seeds)

        def simulate(cell):
            rng = np.random.default_rng(next(streams))
            return cell.generate(h, times=times, seed=rng, bootstrap=bootstrap).rename(
                columns={"index": self.data.index_name}
            )
        return self._extract(simulate, [".rep", self.data.index_name, ".sim"])

    def _update(self, new_data, method, kwargs, n_jobs=None):
        if not isinstance(new_data, SeriesCollection):
            new_data = as_collection(new_data, value=self.data.value_name)
        missing = [key for key in self._cells if key not in new_data]
        if missing:
            raise KeyError(f"New data has no series for key(s) {missing}.")
        tasks = [(cell, new_data[key], method, kwargs) for key, _, cell in self.cells()]
        results = iter(_run(_update_cell, tasks, n_jobs))
        cells = {key: {name: next(results) for name in self.specs} for key in self._cells}
        for key in cells:
            for name in self.specs:
                cell = cells[key][name]
                if is_failed(cell) and not is_failed(self._cells[key][name]):
                    logger.warning("%s of %s for %s failed: %s", method, name, key,
                                   cell.message)
        return cells, new_data

    def refit(self, new_data, reestimate: bool = True, n_jobs: Optional[int] = None) -> "Mable":
        """Re-estimate every fitted structure on new data (no model search)."""
        cells, new_data = self._update(new_data, "refit", {"reestimate": reestimate}, n_jobs)
        data = self.data.replace({key: new_data[key] for key in self._cells})
        return self._derive(cells, data=data)

    def stream(self, new_data, n_jobs: Optional[int] = None) -> "Mable":
        """Extend every fitted model with observations following its training data."""
        cells, _ = self._update(new_data, "stream", {}, n_jobs)
        series = {}
        for key, row in cells.items():
            live = [cell for cell in row.values() if not is_failed(cell)]
            series[key] = live[0].series if live else self.data[key]
        return self._derive(cells, data=self.data.replace(series))
