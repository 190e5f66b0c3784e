"""Exception types raised by tsfable."""

from typing import List, Optional, Tuple


class TsFableError(Exception):
    """Base class for all tsfable errors."""


class InvalidSpecError(TsFableError, ValueError):
    """A model specification names an unknown option or an illegal value."""


class IrregularSeriesError(TsFableError, ValueError):
    """A series index is not strictly increasing at a uniform period."""


class FitFailure(TsFableError, RuntimeError):
    """
    No admissible, converged candidate was found for a series.

    Parameters
    ----------
    message : str
        Human readable description of the failure.
    candidates : list of tuple, optional
        ``(candidate_name, reason)`` pairs for every candidate that was
        considered, in the order they were attempted.
    """

    def __init__(self, message: str, candidates: Optional[List[Tuple[str, str]]] = None):
        super().__init__(message)
        self.candidates = list(candidates or [])

    def __str__(self) -> str:
        base = super().__str__()
        if not self.candidates:
            return base
        details = "; ".join(f"{name}: {reason}" for name, reason in self.candidates)
        return f"{base} ({details})"

    def __reduce__(self):
        return (self.__class__, (self.args[0], self.candidates))


class RefitError(TsFableError, ValueError):
    """New data is incompatible with the structure of a fitted model."""


class StreamError(TsFableError, ValueError):
    """New observations cannot be appended to a fitted model."""
