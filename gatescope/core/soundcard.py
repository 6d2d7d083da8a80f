"""
Sound card acquisition via PortAudio (sounddevice).

A line or microphone input is used as a single analog voltage channel.
Samples arrive normalized to [-1, 1] and are passed on unchanged.
"""

from typing import Optional
import logging
import threading
import numpy as np
import sounddevice as sd

from .config import AcquisitionConfig
from .errors import AcquisitionFailure
from .acquisition import BlockCallback, ErrorCallback

log = logging.getLogger("SoundCardSource")

DEFAULT_DEVICE = "default"


def list_input_devices() -> list[str]:
    """Names of all devices with at least one input channel."""
    try:
        devices = sd.query_devices()
    except sd.PortAudioError as exc:
        log.warning("Could not query audio devices: %s", exc)
        return []
    return [d["name"] for d in devices if d["max_input_channels"] > 0]


class SoundCardSource:
    """
    Block source backed by a sounddevice.InputStream.

    The stream delivers exactly config.block_size frames per callback.
    An input overflow is reported as AcquisitionFailure.
    """

    def __init__(self):
        self._stream: Optional[sd.InputStream] = None
        self._active = False
        self._callback_thread: Optional[int] = None
        self._closer: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def register(
        self,
        config: AcquisitionConfig,
        on_block: BlockCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        device = None if config.physical_channel == DEFAULT_DEVICE else config.physical_channel

        def callback(indata, frames, time_info, status):
            self._callback_thread = threading.get_ident()
            try:
                if not self._active:
                    raise sd.CallbackAbort
                if status.input_overflow:
                    failure = AcquisitionFailure(
                        f"Input overflow on {config.physical_channel}: "
                        "reduce the rate or increase samples per block"
                    )
                    if on_error is not None:
                        on_error(failure)
                    raise sd.CallbackAbort
                on_block(indata[:, 0].astype(np.float64))
                if not self._active:
                    raise sd.CallbackAbort
            finally:
                self._callback_thread = None

        with self._lock:
            self._close_stream()
            try:
                stream = sd.InputStream(
                    device=device,
                    channels=1,
                    samplerate=config.sample_rate,
                    blocksize=config.block_size,
                    dtype="float32",
                    latency=config.buffer_latency,
                    callback=callback,
                )
                self._stream = stream
                self._active = True
                stream.start()
            except (sd.PortAudioError, ValueError) as exc:
                self._active = False
                self._close_stream()
                raise AcquisitionFailure(
                    f"Could not open input '{config.physical_channel}': {exc}"
                ) from exc

        log.info(
            "Sound card input started: %s, %d samples @ %.0f Hz, buffer %.2f s",
            config.physical_channel, config.block_size, config.sample_rate,
            config.buffer_latency,
        )

    def unregister(self) -> None:
        self._active = False
        # PortAudio cannot close a stream from its own callback
        if threading.get_ident() == self._callback_thread:
            self._closer = threading.Thread(
                target=self._close_if_current,
                args=(self._stream,),
                daemon=True,
                name="soundcard-close",
            )
            self._closer.start()
            return
        with self._lock:
            self._close_stream()

    def _close_if_current(self, stream) -> None:
        with self._lock:
            if self._stream is stream:
                self._close_stream()

    def _close_stream(self) -> None:
        stream = self._stream
        self._stream = None
        if stream is None:
            return
        try:
            stream.abort()
            stream.close()
        except sd.PortAudioError as exc:
            log.warning("Error while closing input stream: %s", exc)
