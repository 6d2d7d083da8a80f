"""
Spectral Gate Module

Frequency-domain noise gate for one block of real samples:
forward DFT, per-bin magnitude threshold, inverse DFT.

Technical assumptions:
- Transforms use scipy.fft, which handles any block length (no
  power-of-two requirement)
- Symmetric ("ortho") scaling on both transforms, so a block passes
  through forward + inverse unchanged
- Bin magnitude is (2/N) * |X_i| on the ortho-scaled spectrum
- The DC bin (index 0) is never gated or scaled
- Kept bins are doubled to compensate for the discarded negative
  frequencies; bins above N/2 are cleared afterwards
"""

from dataclasses import dataclass
from typing import Iterator, Optional
import numpy as np
from scipy import fft

from .errors import InvalidBlockSize, TransformFailure


@dataclass
class GateResult:
    """
    Result of gating one block.

    Attributes:
        signal: Gated time-domain block (real part of inverse transform)
        frequencies: Frequency of bins 1..N-1 in Hz
        magnitudes: Magnitude of bins 1..N-1 before gating
        threshold: Threshold that was applied
    """
    signal: np.ndarray
    frequencies: np.ndarray
    magnitudes: np.ndarray
    threshold: float

    @property
    def num_kept(self) -> int:
        """Number of bins 1..N/2 that passed the gate."""
        upper = len(self.signal) // 2
        return int(np.count_nonzero(~(self.magnitudes[:upper] < self.threshold)))

    def spectrum_points(self) -> Iterator[tuple[float, float]]:
        """Yield (frequency, magnitude) pairs for display."""
        for f, m in zip(self.frequencies, self.magnitudes):
            yield float(f), float(m)


def bin_frequencies(block_size: int, sample_rate: float) -> np.ndarray:
    """Frequencies i * sample_rate / N for bins 1..N-1."""
    return np.arange(1, block_size) * (sample_rate / block_size)


def gate_spectrum(spectrum: np.ndarray, threshold: float) -> tuple[np.ndarray, np.ndarray]:
    """
    Apply the magnitude gate to a full complex spectrum.

    For every bin i in 1..N-1:
    - magnitude below threshold: bin is zeroed
    - otherwise: bin is scaled by 2
    - i > N/2: bin is zeroed (applied after the step above)

    Args:
        spectrum: Complex spectrum of length N (not modified)
        threshold: Gate threshold in magnitude units

    Returns:
        Tuple of (gated spectrum, magnitudes of bins 1..N-1)
    """
    n = len(spectrum)
    gated = np.array(spectrum, dtype=np.complex128)

    bins = gated[1:]
    magnitudes = (2.0 / n) * np.abs(bins)

    # NaN magnitudes are kept, matching a plain "mag < threshold" test
    kept = ~(magnitudes < threshold)
    gated[1:] = np.where(kept, bins * 2.0, 0.0)

    # Upper half is always cleared, so the scaling above has no effect there
    gated[n // 2 + 1:] = 0.0

    return gated, magnitudes


class SpectralGate:
    """
    Threshold gate in the frequency domain.

    The gate is stateless apart from the expected block size. When a
    block size is given, every block must have exactly that length.
    """

    def __init__(self, block_size: Optional[int] = None):
        self.block_size = block_size

    def _check_block(self, block: np.ndarray) -> None:
        if block.ndim != 1:
            raise TransformFailure(
                f"Block must be one-dimensional, got shape {block.shape}"
            )
        if block.size == 0:
            raise InvalidBlockSize(0, self.block_size)
        if self.block_size is not None and block.size != self.block_size:
            raise InvalidBlockSize(block.size, self.block_size)

    def gate(
        self,
        block: np.ndarray,
        threshold: float,
        sample_rate: float = 1.0,
    ) -> GateResult:
        """
        Gate one block of samples.

        Args:
            block: Real samples, length N
            threshold: Gate threshold in magnitude units
            sample_rate: Sample rate in Hz, only used for the frequency axis
                (default 1.0 gives cycles per sample)

        Returns:
            GateResult with the gated block and the spectrum before gating

        Raises:
            InvalidBlockSize: Empty block or length differs from block_size
        """
        samples = np.asarray(block, dtype=np.float64)
        self._check_block(samples)

        spectrum = fft.fft(samples, norm="ortho")
        gated, magnitudes = gate_spectrum(spectrum, threshold)
        restored = fft.ifft(gated, norm="ortho")

        return GateResult(
            signal=restored.real.copy(),
            frequencies=bin_frequencies(samples.size, sample_rate),
            magnitudes=magnitudes,
            threshold=threshold,
        )
