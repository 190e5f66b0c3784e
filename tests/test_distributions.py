"""
Unit tests for forecast distributions.

Tests cover:
- Normal moments, quantiles and intervals
- Sample distributions built from simulated draws
- Interval nesting and level validation
- CRPS
"""

import numpy as np
import pytest

from tsfable import Hilo, Normal, Sample


class TestNormal:
    """Tests for the Normal distribution."""

    def test_moments(self):
        """Test mean and variance."""
        d = Normal(10, 2)
        assert d.mean() == 10
        assert d.variance() == 4
        assert d.std() == 2

    def test_hilo_95(self):
        """Test the closed-form 95% interval."""
        lower, upper, level = Normal(0, 1).hilo(95)
        assert lower == pytest.approx(-1.959964, abs=1e-5)
        assert upper == pytest.approx(1.959964, abs=1e-5)
        assert level == 95

    def test_hilo_multiple_levels_preserve_order(self):
        """Test that several levels return one interval each, in input order."""
        result = Normal(5, 1).hilo([95, 80, 50])
        assert [h.level for h in result] == [95, 80, 50]
        assert all(isinstance(h, Hilo) for h in result)

    def test_intervals_are_nested(self):
        """Test that a lower level gives a narrower interval."""
        d = Normal(3, 2)
        narrow, wide = d.hilo([50, 99])
        assert wide.lower <= narrow.lower <= d.mean() <= narrow.upper <= wide.upper

    def test_interval_tuples(self):
        """Test that interval returns plain tuples."""
        assert Normal(0, 1).interval([80, 95])[0] == Normal(0, 1).hilo(80)[:2]

    def test_invalid_level(self):
        """Test that levels outside (0, 100) are rejected."""
        with pytest.raises(ValueError):
            Normal(0, 1).hilo(100)
        with pytest.raises(ValueError):
            Normal(0, 1).hilo(0)

    def test_negative_sigma(self):
        """Test that a negative standard deviation is rejected."""
        with pytest.raises(ValueError):
            Normal(0, -1)

    def test_point_mass(self):
        """Test that sigma=0 gives a degenerate interval."""
        lower, upper, _ = Normal(4, 0).hilo(95)
        assert lower == upper == 4

    def test_immutable(self):
        """Test that distributions cannot be modified."""
        d = Normal(0, 1)
        with pytest.raises(AttributeError):
            d.mu = 3

    def test_sum_of_independent_normals(self):
        """Test that variances add."""
        d = Normal(1, 3) + Normal(2, 4)
        assert d.mean() == 3
        assert d.variance() == pytest.approx(25)

    def test_crps_at_mean(self):
        """Test the closed-form CRPS of a standard normal at its mean."""
        expected = 2 / np.sqrt(2 * np.pi) - 1 / np.sqrt(np.pi)
        assert Normal(0, 1).crps(0) == pytest.approx(expected)


class TestSample:
    """Tests for the sample distribution."""

    def test_drops_non_finite(self):
        """Test that NaN and inf draws are dropped."""
        d = Sample([1.0, np.nan, 2.0, np.inf, 3.0])
        assert len(d) == 3
        assert d.mean() == 2.0

    def test_empty_rejected(self):
        """Test that a sample with no finite draw is rejected."""
        with pytest.raises(ValueError):
            Sample([np.nan, np.nan])

    def test_quantiles_close_to_normal(self):
        """Test that a large normal sample has normal-like intervals."""
        rng = np.random.default_rng(42)
        d = Sample(rng.normal(0, 1, 20000))
        lower, upper, _ = d.hilo(95)
        assert lower == pytest.approx(-1.96, abs=0.06)
        assert upper == pytest.approx(1.96, abs=0.06)

    def test_lower_mean_upper(self):
        """Test that the interval contains the mean."""
        rng = np.random.default_rng(1)
        d = Sample(rng.normal(10, 2, 5000))
        for level in (10, 50, 80, 95, 99):
            h = d.hilo(level)
            assert h.lower <= d.mean() <= h.upper

    def test_skewed_intervals_contain_mean(self):
        """Test that narrow intervals of a skewed sample still contain the mean."""
        rng = np.random.default_rng(3)
        d = Sample(rng.lognormal(0.0, 1.0, 5000))
        assert d.quantile(0.5) < d.mean()
        previous = None
        for level in (0.5, 1, 5, 20, 50, 80, 95):
            h = d.hilo(level)
            assert h.lower <= d.mean() <= h.upper
            if previous is not None:
                assert h.lower <= previous.lower and previous.upper <= h.upper
            previous = h

    def test_skewed_interval_keeps_far_tail(self):
        """Test that only the bound nearer the mean moves."""
        rng = np.random.default_rng(3)
        d = Sample(rng.lognormal(0.0, 1.0, 5000))
        h = d.hilo(1)
        assert h.lower == pytest.approx(d.quantile(0.495))
        assert h.upper == pytest.approx(d.mean())

    def test_crps_matches_normal(self):
        """Test that the sample CRPS estimator approaches the closed form."""
        rng = np.random.default_rng(42)
        d = Sample(rng.normal(0, 1, 20000))
        assert d.crps(0.5) == pytest.approx(Normal(0, 1).crps(0.5), abs=0.02)


class TestHilo:
    """Tests for interval values."""

    def test_width_and_contains(self):
        """Test width and membership."""
        h = Hilo(1.0, 3.0, 80)
        assert h.width == 2.0
        assert 2.0 in h
        assert 4.0 not in h


class TestFamilies:
    """Tests for construction from a family tag."""

    def test_normal_from_tag(self):
        """Test building a normal distribution by name."""
        from tsfable.distributions import distribution

        assert distribution("normal", 5, 2) == Normal(5, 2)

    def test_sample_from_tag(self):
        """Test building a sample distribution by name."""
        from tsfable.distributions import distribution

        d = distribution("sample", [1.0, 2.0, 3.0])
        assert isinstance(d, Sample)
        assert d.mean() == pytest.approx(2.0)

    def test_unknown_family(self):
        """Test that unknown tags are rejected."""
        from tsfable.distributions import distribution

        with pytest.raises(ValueError):
            distribution("gamma", 1.0)
