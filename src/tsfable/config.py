"""
Package-wide defaults.

Optimiser settings are kept as a plain dictionary, merged with whatever a
specification passes through its ``optimizer`` option. Table-level defaults
are available through :func:`get_option` / :func:`set_option`.
"""

import copy
from typing import Any, Dict, Optional

OPTIMIZER_DEFAULTS: Dict[str, Any] = {
    "algorithm": "NLOPT_LN_NELDERMEAD",
    "xtol_rel": 1e-6,
    "xtol_abs": 1e-8,
    "ftol_rel": 1e-8,
    "ftol_abs": 0,
    "maxeval_per_param": 100,
    "maxtime": None,
}

_DEFAULT_OPTIONS: Dict[str, Any] = {
    "simulation.times": 5000,
    "mable.n_jobs": 1,
    "fable.levels": (80, 95),
}

_options: Dict[str, Any] = copy.deepcopy(_DEFAULT_OPTIONS)


def optimizer_settings(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Merge optimiser overrides over :data:`OPTIMIZER_DEFAULTS`.

    Parameters
    ----------
    overrides : dict, optional
        Keys to replace. Unknown keys raise ``KeyError`` so that typos do not
        silently fall back to defaults.

    Returns
    -------
    dict
        A fresh settings dictionary.
    """
    settings = dict(OPTIMIZER_DEFAULTS)
    for key, value in (overrides or {}).items():
        if key not in OPTIMIZER_DEFAULTS:
            raise KeyError(f"Unknown optimizer setting: {key}")
        settings[key] = value
    return settings


def get_option(name: str) -> Any:
    """Return the current value of a package option."""
    if name not in _options:
        raise KeyError(f"Unknown option: {name}. Available: {sorted(_options)}")
    return _options[name]


def set_option(name: str, value: Any) -> None:
    """Set a package option for the rest of the session."""
    if name not in _options:
        raise KeyError(f"Unknown option: {name}. Available: {sorted(_options)}")
    _options[name] = value


def reset_option(name: Optional[str] = None) -> None:
    """Restore one option (or all of them) to the package default."""
    if name is None:
        _options.clear()
        _options.update(copy.deepcopy(_DEFAULT_OPTIONS))
        return
    if name not in _DEFAULT_OPTIONS:
        raise KeyError(f"Unknown option: {name}")
    _options[name] = copy.deepcopy(_DEFAULT_OPTIONS[name])
