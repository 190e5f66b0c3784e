"""Utility functions for the tsfable package."""

import importlib.metadata
import platform
import sys
from typing import Dict

DEPENDENCIES = ["numpy", "pandas", "scipy", "statsmodels", "nlopt", "joblib"]


def _get_version(package_name):
    """Get installed version of a package, or 'not installed'."""
    try:
        return importlib.metadata.version(package_name)
    except importlib.metadata.PackageNotFoundError:
        return "not installed"


def collect_versions() -> Dict[str, Dict[str, str]]:
    """Return system details and dependency versions as nested dictionaries."""
    return {
        "system": {
            "python": sys.version,
            "executable": sys.executable,
            "machine": platform.platform(),
        },
        "tsfable": {"tsfable": _get_version("tsfable")},
        "dependencies": {pkg: _get_version(pkg) for pkg in DEPENDENCIES},
    }


def show_versions(as_dict: bool = False):
    """
    Print system info and installed dependency versions for debugging.

    Parameters
    ----------
    as_dict : bool, default=False
        Return the information instead of printing it.
    """
    info = collect_versions()
    if as_dict:
        return info
    for section, values in info.items():
        print(f"\n{section.capitalize()}:")
        for name, version in values.items():
            print(f"  {name}: {version}")
    return None
