"""
Tests for block statistics and the rolling window.
"""

import pytest
import numpy as np

from gatescope.core.rolling_statistics import (
    BlockStatistics,
    RollingStatistics,
    RollingWindow,
    compute_mean_abs,
    compute_rms,
    reduce_block,
    window_points,
    DEFAULT_WINDOW_CAPACITY,
)


class TestBlockStatistics:
    """Tests for mean absolute value and RMS."""

    def test_known_values(self):
        """Statistics of a small block."""
        data = np.array([3.0, -4.0, 0.0, 1.0])

        stats = reduce_block(data)

        assert stats.mean_abs == pytest.approx(2.0)
        assert stats.rms == pytest.approx(np.sqrt(26 / 4))

    def test_sine_rms(self):
        """RMS of a full-period sine is amplitude / sqrt(2)."""
        t = np.arange(1000) / 1000
        sine = 2.0 * np.sin(2 * np.pi * 5 * t)

        assert compute_rms(sine) == pytest.approx(2.0 / np.sqrt(2), rel=1e-6)
        assert compute_mean_abs(sine) == pytest.approx(4.0 / np.pi, rel=1e-3)

    def test_non_negative(self):
        """Both statistics are non-negative for any input."""
        rng = np.random.default_rng(0)

        for _ in range(20):
            stats = reduce_block(rng.standard_normal(50) - 3.0)
            assert stats.mean_abs >= 0
            assert stats.rms >= 0

    def test_rms_zero_only_for_silence(self):
        """RMS is zero exactly when all samples are zero."""
        assert reduce_block(np.zeros(16)).rms == 0.0
        assert reduce_block(np.r_[np.zeros(15), 1e-6]).rms > 0.0

    def test_empty_block(self):
        """Empty blocks are rejected."""
        with pytest.raises(ValueError):
            reduce_block(np.array([]))

    def test_rms_db(self):
        """dB conversion of the RMS."""
        assert BlockStatistics(mean_abs=0.0, rms=0.0).rms_db() == -np.inf
        assert BlockStatistics(mean_abs=0.1, rms=0.1).rms_db() == pytest.approx(-20.0)


class TestRollingWindow:
    """Tests for the bounded FIFO history."""

    def test_default_capacity(self):
        """Default capacity is 200."""
        assert RollingWindow().capacity == DEFAULT_WINDOW_CAPACITY == 200

    def test_never_exceeds_capacity(self):
        """Window length is bounded by its capacity."""
        window = RollingWindow()

        for i in range(500):
            window.append(float(i))
            assert len(window) <= 200

        assert window.is_full

    def test_oldest_evicted(self):
        """After 201 appends the window holds v1..v200."""
        window = RollingWindow(200)
        values = [float(v) for v in range(201)]

        for v in values:
            window.append(v)

        assert list(window) == values[1:]

    def test_append_returns_window(self):
        """append() returns the updated window."""
        window = RollingWindow(3)

        assert window.append(1.0) is window

    def test_invalid_capacity(self):
        """Capacity must be positive."""
        with pytest.raises(ValueError):
            RollingWindow(0)

    def test_clear(self):
        """clear() empties the window."""
        window = RollingWindow(5)
        window.append(1.0).append(2.0)

        window.clear()

        assert len(window) == 0


class TestWindowPoints:
    """Tests for plot point derivation."""

    def test_point_formula(self):
        """Point i of m has x = ((i + 1) / m) / 2."""
        points = list(window_points([10.0, 20.0, 30.0, 40.0]))

        assert [x for x, _ in points] == pytest.approx([0.125, 0.25, 0.375, 0.5])
        assert [y for _, y in points] == [10.0, 20.0, 30.0, 40.0]

    def test_last_point_at_half(self):
        """The newest value is always drawn at x = 0.5."""
        window = RollingWindow(10)

        for v in range(7):
            window.append(v)
            assert list(window.points())[-1][0] == pytest.approx(0.5)

    def test_points_restartable(self):
        """Every read reflects the contents at the time of the call."""
        window = RollingWindow(5)
        window.append(1.0)
        first = list(window.points())

        window.append(2.0)
        second = list(window.points())

        assert first == [(0.5, 1.0)]
        assert second == [(0.25, 1.0), (0.5, 2.0)]

    def test_points_snapshot(self):
        """Points taken before an append are not affected by it."""
        window = RollingWindow(5)
        window.append(1.0)
        points = window.points()

        window.append(2.0)

        assert list(points) == [(0.5, 1.0)]

    def test_empty_window(self):
        """An empty window has no points."""
        assert list(RollingWindow().points()) == []


class TestRollingStatistics:
    """Tests for the combined reducer."""

    def test_reduce_and_append(self):
        """reduce() does not touch the window, append() does."""
        stats = RollingStatistics(capacity=3)

        result = stats.reduce(np.ones(4))
        assert len(stats.window) == 0

        stats.append(result.rms)
        assert list(stats.window) == [1.0]

    def test_reset(self):
        """reset() clears the history."""
        stats = RollingStatistics(capacity=3)
        stats.append(1.0)

        stats.reset()

        assert len(stats.window) == 0
