"""
Tests for the per-block pipeline.
"""

import pytest
import numpy as np

from gatescope.core.block_processor import BlockProcessor, ProcessedBlock
from gatescope.core.errors import InvalidBlockSize


def _tone_block(n=1000, sr=10000.0, freq=500.0, amplitude=1.0, offset=0.0):
    t = np.arange(n) / sr
    return offset + amplitude * np.sin(2 * np.pi * freq * t)


class TestProcess:
    """Tests for BlockProcessor.process()."""

    def test_outputs(self):
        """A block yields spectrum points, rolling points and a scalar."""
        processor = BlockProcessor(1000)

        result = processor.process(_tone_block(), 0.0, 10000.0)

        assert isinstance(result, ProcessedBlock)
        assert len(list(result.spectrum_points())) == 999
        assert list(result.rolling_points()) == [(0.5, pytest.approx(1 / np.sqrt(2)))]
        assert result.scalar_to_persist == pytest.approx(2 / np.pi, rel=1e-2)

    def test_statistics_taken_on_gated_block(self):
        """Statistics describe the gated output, not the raw input."""
        processor = BlockProcessor(1000)
        block = _tone_block(offset=0.25)

        result = processor.process(block, 10.0, 10000.0)

        # Everything but DC is removed
        assert result.statistics.rms == pytest.approx(0.25, abs=1e-9)
        assert result.statistics.mean_abs == pytest.approx(0.25, abs=1e-9)
        assert result.scalar_to_persist == result.statistics.mean_abs

    def test_rolling_history_grows(self):
        """Each block appends its RMS to the history."""
        processor = BlockProcessor(100, window_capacity=3)

        for amplitude in (1.0, 2.0, 3.0, 4.0):
            result = processor.process(
                _tone_block(n=100, sr=1000.0, freq=50.0, amplitude=amplitude),
                0.0, 1000.0,
            )

        expected = np.array([2.0, 3.0, 4.0]) / np.sqrt(2)
        np.testing.assert_allclose(result.rolling_values, expected, rtol=1e-9)
        xs = [x for x, _ in result.rolling_points()]
        assert xs == pytest.approx([1 / 6, 1 / 3, 0.5])

    def test_result_snapshot_independent(self):
        """Later blocks do not change an earlier result."""
        processor = BlockProcessor(100)
        first = processor.process(np.ones(100), 0.0, 1000.0)

        processor.process(np.ones(100) * 2, 0.0, 1000.0)

        assert len(first.rolling_values) == 1

    def test_input_not_modified(self):
        """The input block is not changed."""
        processor = BlockProcessor(64)
        block = np.random.default_rng(0).standard_normal(64)
        original = block.copy()

        processor.process(block, 0.05, 640.0)

        np.testing.assert_array_equal(block, original)

    def test_threshold_recorded(self):
        """The applied threshold is kept with the result."""
        result = BlockProcessor(16).process(np.ones(16), 0.123, 16.0)

        assert result.gate.threshold == 0.123


class TestFailure:
    """Tests for atomic failure handling."""

    def test_invalid_block_propagates(self):
        """Gate errors propagate unchanged."""
        processor = BlockProcessor(8)

        with pytest.raises(InvalidBlockSize):
            processor.process(np.zeros(9), 0.0, 8.0)

    def test_failed_block_leaves_history_untouched(self):
        """A failed block does not add to the rolling history."""
        processor = BlockProcessor(8)
        processor.process(np.ones(8), 0.0, 8.0)

        with pytest.raises(InvalidBlockSize):
            processor.process(np.array([]), 0.0, 8.0)

        assert len(processor.statistics.window) == 1
