"""
Stream Controller

Owns the run lifecycle and the threshold, and connects the acquisition
source to the block processor and the output collaborators.

State machine:
    IDLE --start()--> RUNNING --stop() / fatal error--> STOPPED
    STOPPED --reset()--> IDLE        (start() from STOPPED resets implicitly)

Concurrency:
- Blocks are processed one at a time. A block delivered while another
  one is still in the pipeline is dropped with a warning.
- set_threshold() is a plain attribute update, read once at the top of
  each block.
- stop() waits for an in-flight block; after it returns no further
  output is delivered.
"""

from enum import Enum
from typing import Callable, Optional
import logging
import math
import threading
import numpy as np

from .acquisition import AcquisitionSource, Renderer, ScalarSink
from .block_processor import BlockProcessor, ProcessedBlock
from .config import AcquisitionConfig, threshold_from_raw
from .errors import (
    AcquisitionFailure,
    ConfigurationError,
    PersistenceFailure,
    StreamStateError,
)

log = logging.getLogger("StreamController")

SPECTRUM_SERIES = "spectrum"
ROLLING_SERIES = "rolling_rms"


class RunState(Enum):
    """Lifecycle state of a stream controller."""
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class StreamController:
    """
    Drives one acquisition run at a time.

    Args:
        config: Run parameters, validated on start()
        source: Acquisition collaborator delivering sample blocks
        renderer: Optional drawing surface for spectrum and rolling RMS
        sink: Optional store for the latest mean absolute value
        on_error: Called with every failure that reaches the controller
    """

    def __init__(
        self,
        config: AcquisitionConfig,
        source: AcquisitionSource,
        renderer: Optional[Renderer] = None,
        sink: Optional[ScalarSink] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self.config = config
        self.source = source
        self.renderer = renderer
        self.sink = sink
        self.on_error = on_error

        self._state = RunState.IDLE
        self._threshold: Optional[float] = None
        self._processor: Optional[BlockProcessor] = None
        self._last_result: Optional[ProcessedBlock] = None
        self._blocks_processed = 0
        self._blocks_dropped = 0

        self._state_lock = threading.Lock()
        self._block_lock = threading.Lock()
        self._delivery_thread: Optional[int] = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def threshold(self) -> float:
        if self._threshold is None:
            return self.config.initial_threshold
        return self._threshold

    @property
    def blocks_processed(self) -> int:
        return self._blocks_processed

    @property
    def blocks_dropped(self) -> int:
        return self._blocks_dropped

    @property
    def last_result(self) -> Optional[ProcessedBlock]:
        return self._last_result

    @property
    def is_running(self) -> bool:
        return self._state is RunState.RUNNING

    # ------------------------------------------------------------------
    # Control operations
    # ------------------------------------------------------------------

    def set_threshold(self, value: float) -> None:
        """
        Set the gate threshold for subsequent blocks.

        Allowed in any state. Blocks already processed are not affected.

        Raises:
            ConfigurationError: Negative or non-finite value
        """
        value = float(value)
        if not math.isfinite(value) or value < 0:
            raise ConfigurationError(f"Threshold must be non-negative, got {value!r}")
        self._threshold = value
        log.debug("Threshold set to %.4f", value)

    def set_threshold_raw(self, raw: float) -> None:
        """Set the threshold from a raw control position (0..200)."""
        self.set_threshold(threshold_from_raw(raw))

    def start(self) -> None:
        """
        Validate the configuration and begin receiving blocks.

        Raises:
            StreamStateError: Already running
            ConfigurationError: Invalid configuration (state unchanged)
            AcquisitionFailure: Source could not be registered (run stopped)
        """
        with self._state_lock:
            if self._state is RunState.RUNNING:
                raise StreamStateError("Stream is already running")

            try:
                self.config.validate()
            except ConfigurationError as exc:
                log.error("Configuration rejected: %s", exc)
                raise

            if self._state is RunState.STOPPED:
                self._reset_locked()
            if self._threshold is None:
                self._threshold = float(self.config.initial_threshold)

            self._processor = BlockProcessor(
                self.config.block_size,
                self.config.window_capacity,
            )
            self._state = RunState.RUNNING

        log.info(
            "Run started: channel=%s rate=%.1f Hz block=%d threshold=%.4f",
            self.config.physical_channel,
            self.config.sample_rate,
            self.config.block_size,
            self._threshold,
        )

        try:
            self.source.register(self.config, self.on_block, self.report_acquisition_failure)
        except AcquisitionFailure as exc:
            self._fail(exc)
            raise

        # stop() may have run between the state change and registration
        with self._state_lock:
            stopped = self._state is not RunState.RUNNING
        if stopped:
            log.info("Run stopped during start, releasing source")
            self.source.unregister()

    def stop(self) -> None:
        """
        Stop receiving blocks.

        Only acts while running; otherwise a logged no-op. Waits for a
        block that is currently being processed, unless called from
        inside the delivery itself.
        """
        with self._state_lock:
            if self._state is not RunState.RUNNING:
                log.debug("stop() ignored in state %s", self._state.value)
                return
            self._state = RunState.STOPPED

        self.source.unregister()

        if self._delivery_thread != threading.get_ident():
            with self._block_lock:
                pass

        log.info(
            "Run stopped after %d blocks (%d dropped)",
            self._blocks_processed, self._blocks_dropped,
        )

    def reset(self) -> None:
        """
        Return to IDLE with a fresh rolling history.

        Raises:
            StreamStateError: Stream is running
        """
        with self._state_lock:
            if self._state is RunState.RUNNING:
                raise StreamStateError("Cannot reset a running stream")
            self._reset_locked()

    def _reset_locked(self) -> None:
        self._processor = None
        self._last_result = None
        self._blocks_processed = 0
        self._blocks_dropped = 0
        self._state = RunState.IDLE
        log.debug("Controller reset")

    # ------------------------------------------------------------------
    # Acquisition callbacks
    # ------------------------------------------------------------------

    def on_block(self, block: np.ndarray) -> None:
        """
        Entry point for the acquisition source, once per block.

        Runs the full pipeline (gate, statistics, output delivery)
        before the next block is accepted.
        """
        if not self._block_lock.acquire(blocking=False):
            with self._state_lock:
                self._blocks_dropped += 1
                dropped = self._blocks_dropped
            log.warning(
                "Block dropped: previous block still processing (%d dropped)",
                dropped,
            )
            return

        self._delivery_thread = threading.get_ident()
        try:
            if self._state is not RunState.RUNNING:
                return
            processor = self._processor
            threshold = self._threshold

            try:
                result = processor.process(block, threshold, self.config.sample_rate)
                if self.renderer is not None:
                    self.renderer.replace_series(SPECTRUM_SERIES, result.spectrum_points())
                    self.renderer.replace_series(ROLLING_SERIES, result.rolling_points())
            except Exception as exc:
                self._fail(exc)
                return

            self._last_result = result
            self._blocks_processed += 1
            self._persist(result.scalar_to_persist)
        finally:
            self._delivery_thread = None
            self._block_lock.release()

    def report_acquisition_failure(self, exc: Exception) -> None:
        """Entry point for faults reported by the acquisition source."""
        if not isinstance(exc, AcquisitionFailure):
            failure = AcquisitionFailure(str(exc))
            failure.__cause__ = exc
            exc = failure
        self._fail(exc)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _persist(self, value: float) -> None:
        if self.sink is None:
            return
        try:
            self.sink.write(value)
        except PersistenceFailure as exc:
            log.warning("Persistence failed, continuing: %s", exc)
            self._report(exc)

    def _fail(self, exc: Exception) -> None:
        with self._state_lock:
            was_running = self._state is RunState.RUNNING
            if was_running:
                self._state = RunState.STOPPED

        log.error("Run failed: %s: %s", type(exc).__name__, exc)
        if was_running:
            self.source.unregister()
        self._report(exc)

    def _report(self, exc: Exception) -> None:
        if self.on_error is not None:
            self.on_error(exc)
