"""Unit tests for SoundDeviceSource with PortAudio replaced by a fake stream.

The real ``sounddevice`` needs a PortAudio library and an input device, so
the module is swapped in ``sys.modules`` for the duration of each test.
"""

import importlib
import sys
import types

import numpy as np
import pytest

from src.core.exceptions import DeviceAccessError


class FakePortAudioError(Exception):
    pass


class FakeInputStream:
    instances: list["FakeInputStream"] = []
    fail_with: Exception | None = None

    def __init__(self, **kwargs):
        if FakeInputStream.fail_with is not None:
            raise FakeInputStream.fail_with
        self.kwargs = kwargs
        self.started = False
        self.closed = False
        FakeInputStream.instances.append(self)

    def start(self):
        self.started = True

    def stop(self):
        self.started = False

    def close(self):
        self.closed = True

    def feed(self, samples):
        """Deliver one block the way PortAudio's callback thread would."""
        indata = np.asarray(samples, dtype=np.int16).reshape(-1, 1)
        self.kwargs["callback"](indata, len(indata), None, None)


@pytest.fixture
def capture(monkeypatch):
    FakeInputStream.instances = []
    FakeInputStream.fail_with = None
    fake_sd = types.ModuleType("sounddevice")
    fake_sd.InputStream = FakeInputStream
    fake_sd.PortAudioError = FakePortAudioError
    monkeypatch.setitem(sys.modules, "sounddevice", fake_sd)
    monkeypatch.delitem(sys.modules, "src.services.audio.capture", raising=False)
    module = importlib.import_module("src.services.audio.capture")
    yield module
    sys.modules.pop("src.services.audio.capture", None)


async def test_blocks_flow_until_close(capture):
    source = capture.SoundDeviceSource(sample_rate=16000, channels=1)
    await source.open()

    stream = FakeInputStream.instances[0]
    assert stream.started is True
    assert stream.kwargs["dtype"] == "int16"
    assert stream.kwargs["samplerate"] == 16000

    stream.feed([1, 2, 3])
    stream.feed([4])
    await source.close()

    assert await source.read() == np.array([1, 2, 3], dtype=np.int16).tobytes()
    assert await source.read() == np.array([4], dtype=np.int16).tobytes()
    assert await source.read() is None
    assert await source.read() is None
    assert stream.closed is True


async def test_open_failure_raises_device_error(capture):
    FakeInputStream.fail_with = FakePortAudioError("Device unavailable")
    source = capture.SoundDeviceSource()

    with pytest.raises(DeviceAccessError, match="Device unavailable"):
        await source.open()

    assert await source.read() is None
    await source.close()


async def test_close_is_idempotent(capture):
    source = capture.SoundDeviceSource()
    await source.open()

    await source.close()
    await source.close()

    assert FakeInputStream.instances[0].closed is True


def test_numeric_device_name_is_index(capture):
    source = capture.SoundDeviceSource(device="2")
    assert source._device == 2


def test_default_device_from_settings(capture):
    source = capture.SoundDeviceSource()
    assert source._device is None


def test_create_audio_source(capture):
    from src.services.audio import create_audio_source

    assert isinstance(create_audio_source("sounddevice"), capture.SoundDeviceSource)
    with pytest.raises(ValueError, match="Unknown audio provider"):
        create_audio_source("pyaudio")
