"""
Acquisition Sources

Collaborator interfaces between the stream controller and the outside
world, plus a simulated voltage source that needs no hardware.

Delivery model:
- register() starts pushing fixed-size blocks to a single callback
- faults are pushed to an error callback instead of being raised
- unregister() stops delivery and may be called from the delivery
  thread itself
"""

from typing import Callable, Iterable, Optional, Protocol
import logging
import threading
import time
import numpy as np

from .config import AcquisitionConfig
from .errors import AcquisitionFailure

log = logging.getLogger("Acquisition")

SIMULATED_CHANNEL = "simulated"

BlockCallback = Callable[[np.ndarray], None]
ErrorCallback = Callable[[Exception], None]


class AcquisitionSource(Protocol):
    """Pushes sample blocks to a registered callback."""

    def register(
        self,
        config: AcquisitionConfig,
        on_block: BlockCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:  # pragma: no cover - protocol
        ...

    def unregister(self) -> None:  # pragma: no cover - protocol
        ...


class Renderer(Protocol):
    """Drawing surface for named point series."""

    def replace_series(
        self, name: str, points: Iterable[tuple[float, float]]
    ) -> None:  # pragma: no cover - protocol
        ...


class ScalarSink(Protocol):
    """Single-value store, overwritten on every write."""

    def write(self, value: float) -> None:  # pragma: no cover - protocol
        ...


class SimulatedSource:
    """
    Software voltage source: sine tone plus white noise.

    Blocks are produced on a background thread, paced at the real
    block period unless realtime is False. Samples are clipped to the
    configured voltage range like an input stage would.
    """

    def __init__(
        self,
        tone_frequency: float = 50.0,
        tone_amplitude: float = 1.0,
        noise_amplitude: float = 0.1,
        seed: Optional[int] = None,
        realtime: bool = True,
        max_blocks: Optional[int] = None,
    ):
        self.tone_frequency = tone_frequency
        self.tone_amplitude = tone_amplitude
        self.noise_amplitude = noise_amplitude
        self.realtime = realtime
        self.max_blocks = max_blocks
        self.blocks_delivered = 0
        self._rng = np.random.default_rng(seed)
        self._lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_registered(self) -> bool:
        return self._thread is not None

    def generate_block(self, config: AcquisitionConfig, index: int) -> np.ndarray:
        """Samples of block number `index` (continuous phase across blocks)."""
        n = config.block_size
        t = (index * n + np.arange(n)) / config.sample_rate
        tone = self.tone_amplitude * np.sin(2 * np.pi * self.tone_frequency * t)
        noise = self.noise_amplitude * self._rng.standard_normal(n)
        return np.clip(tone + noise, config.min_voltage, config.max_voltage)

    def register(
        self,
        config: AcquisitionConfig,
        on_block: BlockCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                raise AcquisitionFailure("Simulated source is already running")

            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(config, on_block, on_error, stop_event),
                daemon=True,
                name="simulated-acquisition",
            )
            self._stop_event = stop_event
            self._thread = thread
            self.blocks_delivered = 0
            thread.start()

        log.info(
            "Simulated source started: %.1f Hz tone, %d samples @ %.0f Hz",
            self.tone_frequency, config.block_size, config.sample_rate,
        )

    def unregister(self) -> None:
        with self._lock:
            stop_event = self._stop_event
            thread = self._thread
            self._stop_event = None
            self._thread = None

        if stop_event is not None:
            stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1.0)

    def wait(self, timeout: Optional[float] = None) -> None:
        """Block until the delivery thread has finished (max_blocks reached)."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def _run(
        self,
        config: AcquisitionConfig,
        on_block: BlockCallback,
        on_error: Optional[ErrorCallback],
        stop_event: threading.Event,
    ) -> None:
        period = config.block_duration if self.realtime else 0.0
        deadline = time.monotonic()
        index = 0

        while not stop_event.is_set():
            if self.max_blocks is not None and index >= self.max_blocks:
                break
            try:
                block = self.generate_block(config, index)
            except Exception as exc:
                failure = AcquisitionFailure(f"Simulated source failed: {exc}")
                if on_error is not None:
                    on_error(failure)
                else:
                    log.error("%s", failure)
                break

            on_block(block)
            index += 1
            self.blocks_delivered = index

            if period:
                deadline += period
                if stop_event.wait(max(0.0, deadline - time.monotonic())):
                    break


def create_source(config: AcquisitionConfig) -> AcquisitionSource:
    """
    Pick the acquisition source for a physical channel.

    "simulated" selects SimulatedSource, anything else is treated as a
    sound card input device name ("default" for the system default).
    """
    if config.physical_channel == SIMULATED_CHANNEL:
        return SimulatedSource()

    # Late import: needs the PortAudio library at runtime
    from .soundcard import SoundCardSource
    return SoundCardSource()
