"""
Core acquisition module - fully testable without GUI dependencies.

This module contains the complete per-block pipeline:
- Spectral noise gate (FFT, magnitude threshold, inverse FFT)
- Block level statistics and rolling RMS history
- Block processor and stream controller (lifecycle, threshold)
- Acquisition sources, scalar persistence, configuration
"""

from .errors import (
    GateScopeError,
    ConfigurationError,
    StreamStateError,
    AcquisitionFailure,
    TransformFailure,
    InvalidBlockSize,
    PersistenceFailure,
)
from .config import AcquisitionConfig, threshold_from_raw, load_config, save_config
from .spectral_gate import SpectralGate, GateResult, gate_spectrum
from .rolling_statistics import RollingStatistics, RollingWindow, BlockStatistics
from .block_processor import BlockProcessor, ProcessedBlock
from .acquisition import SimulatedSource, create_source
from .persistence import ScalarFileWriter
from .stream_controller import (
    StreamController,
    RunState,
    SPECTRUM_SERIES,
    ROLLING_SERIES,
)

__all__ = [
    "GateScopeError",
    "ConfigurationError",
    "StreamStateError",
    "AcquisitionFailure",
    "TransformFailure",
    "InvalidBlockSize",
    "PersistenceFailure",
    "AcquisitionConfig",
    "threshold_from_raw",
    "load_config",
    "save_config",
    "SpectralGate",
    "GateResult",
    "gate_spectrum",
    "RollingStatistics",
    "RollingWindow",
    "BlockStatistics",
    "BlockProcessor",
    "ProcessedBlock",
    "SimulatedSource",
    "create_source",
    "ScalarFileWriter",
    "StreamController",
    "RunState",
    "SPECTRUM_SERIES",
    "ROLLING_SERIES",
]
