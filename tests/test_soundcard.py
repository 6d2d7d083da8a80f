"""
Tests for the sound card source, with the PortAudio stream replaced.
"""

from types import SimpleNamespace
import threading

import pytest
import numpy as np

try:
    from gatescope.core import soundcard
except (ImportError, OSError) as exc:  # PortAudio library missing
    pytest.skip(f"sounddevice unavailable: {exc}", allow_module_level=True)

from gatescope.core.config import AcquisitionConfig
from gatescope.core.errors import AcquisitionFailure


class FakeStream:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.started = False
        self.aborted = False
        self.closed = False

    def start(self):
        self.started = True

    def abort(self):
        self.aborted = True

    def close(self):
        self.closed = True


@pytest.fixture
def streams(monkeypatch):
    opened = []

    def open_stream(**kwargs):
        stream = FakeStream(**kwargs)
        opened.append(stream)
        return stream

    monkeypatch.setattr(soundcard.sd, "InputStream", open_stream)
    return opened


OK = SimpleNamespace(input_overflow=False)
OVERFLOW = SimpleNamespace(input_overflow=True)


class TestRegister:
    """Tests for opening the input stream."""

    def test_stream_settings(self, streams):
        """Block size, rate and buffer latency come from the config."""
        config = AcquisitionConfig(
            physical_channel="default", sample_rate=10000.0,
            block_size=1000, buffer_blocks=10,
        )

        soundcard.SoundCardSource().register(config, lambda block: None)

        kwargs = streams[0].kwargs
        assert kwargs["device"] is None
        assert kwargs["channels"] == 1
        assert kwargs["samplerate"] == 10000.0
        assert kwargs["blocksize"] == 1000
        assert kwargs["latency"] == pytest.approx(1.0)
        assert streams[0].started

    def test_named_device(self, streams):
        """Any other channel name is passed as the device."""
        config = AcquisitionConfig(physical_channel="USB Audio")

        soundcard.SoundCardSource().register(config, lambda block: None)

        assert streams[0].kwargs["device"] == "USB Audio"

    def test_open_failure(self, monkeypatch):
        """PortAudio errors are raised as AcquisitionFailure."""
        def broken(**kwargs):
            raise soundcard.sd.PortAudioError("no such device")

        monkeypatch.setattr(soundcard.sd, "InputStream", broken)

        with pytest.raises(AcquisitionFailure):
            soundcard.SoundCardSource().register(AcquisitionConfig(), lambda block: None)


class TestCallback:
    """Tests for block delivery and stream shutdown."""

    def test_delivers_mono_block(self, streams):
        """The first input channel is delivered as float64."""
        received = []
        soundcard.SoundCardSource().register(AcquisitionConfig(block_size=4), received.append)

        indata = np.arange(4, dtype=np.float32).reshape(4, 1)
        streams[0].kwargs["callback"](indata, 4, None, OK)

        assert received[0].dtype == np.float64
        np.testing.assert_array_equal(received[0], [0.0, 1.0, 2.0, 3.0])

    def test_unregister_closes_stream(self, streams):
        """unregister() outside the callback closes the stream at once."""
        source = soundcard.SoundCardSource()
        source.register(AcquisitionConfig(), lambda block: None)

        source.unregister()

        assert streams[0].aborted
        assert streams[0].closed

    def test_overflow_closes_stream(self, streams):
        """An overflow stopped from inside the callback still closes the stream."""
        source = soundcard.SoundCardSource()
        errors = []

        def on_error(exc):
            errors.append(exc)
            source.unregister()

        source.register(AcquisitionConfig(block_size=4), lambda block: None, on_error)

        with pytest.raises(soundcard.sd.CallbackAbort):
            streams[0].kwargs["callback"](np.zeros((4, 1), np.float32), 4, None, OVERFLOW)

        source._closer.join(timeout=5.0)
        assert isinstance(errors[0], AcquisitionFailure)
        assert streams[0].closed

    def test_closing_skips_newer_stream(self, streams):
        """A late close from an old callback leaves a new stream open."""
        source = soundcard.SoundCardSource()
        source.register(AcquisitionConfig(), lambda block: None)
        old = streams[0]
        source.register(AcquisitionConfig(), lambda block: None)

        closer = threading.Thread(target=source._close_if_current, args=(old,))
        closer.start()
        closer.join(timeout=5.0)

        assert old.closed
        assert not streams[1].closed
