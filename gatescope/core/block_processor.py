"""
Block Processor

Runs the per-block pipeline: spectral gate, level statistics of the
gated block, rolling RMS history update.

A block either produces all outputs or none: the rolling history is
only touched after gating and reduction have succeeded.
"""

from dataclasses import dataclass
from typing import Iterator, Optional
import logging
import numpy as np

from .rolling_statistics import (
    BlockStatistics,
    RollingStatistics,
    DEFAULT_WINDOW_CAPACITY,
    window_points,
)
from .spectral_gate import GateResult, SpectralGate

log = logging.getLogger("BlockProcessor")


@dataclass
class ProcessedBlock:
    """
    Outputs of one processed block.

    Attributes:
        gate: Spectral gate result (gated signal + spectrum)
        statistics: Level statistics of the gated signal
        rolling_values: Snapshot of the rolling RMS history after this block
    """
    gate: GateResult
    statistics: BlockStatistics
    rolling_values: np.ndarray

    @property
    def scalar_to_persist(self) -> float:
        """Mean absolute value of the gated block."""
        return self.statistics.mean_abs

    def spectrum_points(self) -> Iterator[tuple[float, float]]:
        return self.gate.spectrum_points()

    def rolling_points(self) -> Iterator[tuple[float, float]]:
        return window_points(self.rolling_values.tolist())


class BlockProcessor:
    """
    Per-run processing state.

    Owns the rolling RMS history; one instance serves exactly one run.
    """

    def __init__(
        self,
        block_size: Optional[int] = None,
        window_capacity: int = DEFAULT_WINDOW_CAPACITY,
    ):
        self.gate = SpectralGate(block_size)
        self.statistics = RollingStatistics(window_capacity)

    @property
    def block_size(self) -> Optional[int]:
        return self.gate.block_size

    def process(
        self,
        block: np.ndarray,
        threshold: float,
        sample_rate: float,
    ) -> ProcessedBlock:
        """
        Process one block.

        Args:
            block: Real samples of length N (not modified)
            threshold: Gate threshold, read once for the whole block
            sample_rate: Sample rate in Hz for the spectrum axis

        Returns:
            ProcessedBlock with spectrum, rolling history and scalar

        Raises:
            InvalidBlockSize: Propagated from the spectral gate
        """
        gated = self.gate.gate(block, threshold, sample_rate)
        stats = self.statistics.reduce(gated.signal)
        window = self.statistics.append(stats.rms)

        log.debug(
            "Block processed: threshold=%.4f mean_abs=%.6f rms=%.6f",
            threshold, stats.mean_abs, stats.rms,
        )

        return ProcessedBlock(
            gate=gated,
            statistics=stats,
            rolling_values=window.values(),
        )
