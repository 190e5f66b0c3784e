"""
Forecast distributions.

Every forecast step is represented by a distribution object rather than a
point value. Two families are provided:

- :class:`Normal`, parameterised by mean and standard deviation, used by the
  additive models and by the benchmark methods. Quantiles are closed form.
- :class:`Sample`, a bag of simulated values, used when the predictive
  distribution has no closed form (multiplicative seasonal ETS, bootstrap).

Both are immutable values. Intervals are returned as :class:`Hilo` tuples.
"""

import numbers
from typing import List, NamedTuple, Sequence, Union

import numpy as np
from scipy import stats

Level = Union[float, Sequence[float]]


class Hilo(NamedTuple):
    """Two-sided interval at a confidence ``level`` (in percent)."""

    lower: float
    upper: float
    level: float

    @property
    def width(self) -> float:
        return self.upper - self.lower

    def __contains__(self, value) -> bool:
        return self.lower <= value <= self.upper

    def __repr__(self) -> str:
        return f"[{self.lower:.6g}, {self.upper:.6g}]{self.level:g}"


def _check_level(level) -> float:
    if isinstance(level, bool) or not isinstance(level, numbers.Real):
        raise TypeError(f"Interval level must be a number, got {type(level).__name__}.")
    level = float(level)
    if not 0 < level < 100:
        raise ValueError(f"Interval level must be in (0, 100), got {level}.")
    return level


def _check_probability(p) -> np.ndarray:
    p = np.asarray(p, dtype=float)
    if np.any((p < 0) | (p > 1)) or np.any(np.isnan(p)):
        raise ValueError("Probabilities must be in [0, 1].")
    return p


def _get_rng(random_state):
    if isinstance(random_state, np.random.Generator):
        return random_state
    return np.random.default_rng(random_state)


class Distribution:
    """
    Base class for forecast distributions.

    Subclasses implement :meth:`mean`, :meth:`variance`, :meth:`quantile`,
    :meth:`sample` and :meth:`crps`; intervals are derived from quantiles.
    """

    family = None

    __slots__ = ()

    def mean(self) -> float:
        raise NotImplementedError

    def variance(self) -> float:
        raise NotImplementedError

    def std(self) -> float:
        return float(np.sqrt(self.variance()))

    def quantile(self, p):
        raise NotImplementedError

    def sample(self, size: int, random_state=None) -> np.ndarray:
        raise NotImplementedError

    def crps(self, y: float) -> float:
        raise NotImplementedError

    def hilo(self, level: Level = 95) -> Union[Hilo, List[Hilo]]:
        """
        Central interval(s) containing ``level`` percent of the mass.

        Parameters
        ----------
        level : float or sequence of float, default=95
            Confidence level(s) in (0, 100).

        Returns
        -------
        Hilo or list of Hilo
            A single :class:`Hilo` for a scalar level, otherwise one per
            requested level in the order given.
        """
        if isinstance(level, (list, tuple, np.ndarray)):
            return [self._hilo(_check_level(lv)) for lv in level]
        return self._hilo(_check_level(level))

    def interval(self, level: Level = 95):
        """Like :meth:`hilo` but returns plain ``(lower, upper)`` tuples."""
        result = self.hilo(level)
        if isinstance(result, list):
            return [(h.lower, h.upper) for h in result]
        return (result.lower, result.upper)

    def _hilo(self, level: float) -> Hilo:
        tail = (100 - level) / 200
        lower, upper = self.quantile([tail, 1 - tail])
        return Hilo(float(lower), float(upper), level)


class Normal(Distribution):
    """
    Normal distribution N(mu, sigma^2).

    Parameters
    ----------
    mu : float
        Mean.
    sigma : float
        Standard deviation (non-negative). ``sigma=0`` is a point mass.

    Examples
    --------
    >>> d = Normal(10, 2)
    >>> d.hilo(95)
    [6.08007, 13.9199]95
    >>> (d + Normal(1, 1)).variance()
    5.0
    """

    family = "normal"

    __slots__ = ("_mu", "_sigma")

    def __init__(self, mu: float, sigma: float):
        mu = float(mu)
        sigma = float(sigma)
        if not sigma >= 0:
            raise ValueError(f"Standard deviation must be non-negative, got {sigma}.")
        object.__setattr__(self, "_mu", mu)
        object.__setattr__(self, "_sigma", sigma)

    def __setattr__(self, name, value):
        raise AttributeError("Distributions are immutable.")

    def __reduce__(self):
        return (Normal, (self._mu, self._sigma))

    @property
    def mu(self) -> float:
        return self._mu

    @property
    def sigma(self) -> float:
        return self._sigma

    def mean(self) -> float:
        return self._mu

    def variance(self) -> float:
        return self._sigma ** 2

    def quantile(self, p):
        p = _check_probability(p)
        if self._sigma == 0:
            return np.full(p.shape, self._mu) if p.ndim else self._mu
        q = stats.norm.ppf(p, loc=self._mu, scale=self._sigma)
        return q if p.ndim else float(q)

    def cdf(self, x):
        if self._sigma == 0:
            return np.where(np.asarray(x) >= self._mu, 1.0, 0.0)
        return stats.norm.cdf(x, loc=self._mu, scale=self._sigma)

    def sample(self, size: int, random_state=None) -> np.ndarray:
        rng = _get_rng(random_state)
        return rng.normal(self._mu, self._sigma, size)

    def crps(self, y: float) -> float:
        """Closed-form continuous ranked probability score at ``y``."""
        if self._sigma == 0:
            return abs(y - self._mu)
        z = (y - self._mu) / self._sigma
        return float(
            self._sigma
            * (z * (2 * stats.norm.cdf(z) - 1) + 2 * stats.norm.pdf(z) - 1 / np.sqrt(np.pi))
        )

    def __add__(self, other):
        if isinstance(other, Normal):
            # independent summands
            return Normal(self._mu + other._mu, np.hypot(self._sigma, other._sigma))
        if isinstance(other, numbers.Real):
            return Normal(self._mu + other, self._sigma)
        return NotImplemented

    __radd__ = __add__

    def __sub__(self, other):
        if isinstance(other, numbers.Real):
            return Normal(self._mu - other, self._sigma)
        return NotImplemented

    def __mul__(self, other):
        if isinstance(other, numbers.Real):
            return Normal(self._mu * other, self._sigma * abs(other))
        return NotImplemented

    __rmul__ = __mul__

    def __eq__(self, other):
        if not isinstance(other, Normal):
            return NotImplemented
        return self._mu == other._mu and self._sigma == other._sigma

    def __hash__(self):
        return hash(("normal", self._mu, self._sigma))

    def __repr__(self) -> str:
        return f"N({self._mu:.4g}, {self._sigma ** 2:.4g})"


class Sample(Distribution):
    """
    Empirical distribution of simulated values.

    Parameters
    ----------
    samples : array-like
        Simulated draws. Non-finite draws are dropped.
    """

    family = "sample"

    __slots__ = ("_samples",)

    def __init__(self, samples):
        values = np.asarray(samples, dtype=float).ravel()
        values = values[np.isfinite(values)]
        if values.size == 0:
            raise ValueError("A sample distribution needs at least one finite draw.")
        values.setflags(write=False)
        object.__setattr__(self, "_samples", values)

    def __setattr__(self, name, value):
        raise AttributeError("Distributions are immutable.")

    def __reduce__(self):
        return (Sample, (np.array(self._samples),))

    @property
    def samples(self) -> np.ndarray:
        return self._samples

    def __len__(self) -> int:
        return self._samples.size

    def mean(self) -> float:
        return float(np.mean(self._samples))

    def variance(self) -> float:
        if self._samples.size < 2:
            return 0.0
        return float(np.var(self._samples, ddof=1))

    def quantile(self, p):
        p = _check_probability(p)
        q = np.quantile(self._samples, p)
        return q if p.ndim else float(q)

    def _hilo(self, level: float) -> Hilo:
        """
        Equal-tail empirical interval, stretched to reach the sample mean.

        A skewed sample can have its mean outside a narrow central interval;
        the nearer bound is moved onto the mean in that case. Bounds stay
        monotone in ``level`` so intervals remain nested.
        """
        interval = super()._hilo(level)
        mean = self.mean()
        return Hilo(min(interval.lower, mean), max(interval.upper, mean), level)

    def cdf(self, x):
        ordered = np.sort(self._samples)
        return np.searchsorted(ordered, x, side="right") / ordered.size

    def sample(self, size: int, random_state=None) -> np.ndarray:
        rng = _get_rng(random_state)
        return rng.choice(self._samples, size=size, replace=True)

    def crps(self, y: float) -> float:
        """Sample CRPS estimator E|X - y| - E|X - X'| / 2."""
        x = np.sort(self._samples)
        n = x.size
        term1 = np.mean(np.abs(x - y))
        weights = 2 * np.arange(1, n + 1) - n - 1
        term2 = np.sum(weights * x) / n ** 2
        return float(term1 - term2)

    def __add__(self, other):
        if isinstance(other, numbers.Real):
            return Sample(self._samples + other)
        return NotImplemented

    __radd__ = __add__

    def __mul__(self, other):
        if isinstance(other, numbers.Real):
            return Sample(self._samples * other)
        return NotImplemented

    __rmul__ = __mul__

    def __repr__(self) -> str:
        return f"sample[{self._samples.size}]"


FAMILIES = {
    Normal.family: Normal,
    Sample.family: Sample,
}


def distribution(family: str, *args, **kwargs) -> Distribution:
    """
    Build a distribution from its family tag and parameters.

    Examples
    --------
    >>> distribution("normal", mu=5, sigma=1)
    N(5, 1)
    """
    if family not in FAMILIES:
        raise ValueError(
            f"Unknown distribution family {family!r}. Must be one of {list(FAMILIES)}."
        )
    return FAMILIES[family](*args, **kwargs)
