"""Tests for the audio module."""

from __future__ import annotations

from typing import Any

import numpy as np
import pytest
from scipy.io.wavfile import read as wav_read

try:
    import sounddevice as sd  # noqa: F401

    SOUNDDEVICE_AVAILABLE = True
except Exception:  # pragma: no cover - environment without PortAudio
    SOUNDDEVICE_AVAILABLE = False

pytestmark = pytest.mark.skipif(
    not SOUNDDEVICE_AVAILABLE, reason="PortAudio not available in test environment"
)

from voicewriter.config import AudioConfig  # noqa: E402
from voicewriter.errors import CaptureError, DeviceError  # noqa: E402


class FakeStream:
    """Stands in for sounddevice.InputStream."""

    instances: list["FakeStream"] = []

    def __init__(self, samplerate: int, channels: int, dtype: str, device: Any, callback: Any) -> None:
        self.samplerate = samplerate
        self.channels = channels
        self.dtype = dtype
        self.device = device
        self.callback = callback
        self.active = False
        self.closed = False
        FakeStream.instances.append(self)

    def start(self) -> None:
        self.active = True

    def stop(self) -> None:
        self.active = False

    def close(self) -> None:
        self.closed = True

    def feed(self, block: np.ndarray) -> None:
        self.callback(block, len(block), None, 0)


@pytest.fixture
def fake_device(monkeypatch: pytest.MonkeyPatch) -> dict:
    from voicewriter import audio

    FakeStream.instances = []
    info = {"name": "Fake Mic", "max_input_channels": 2, "default_samplerate": 48000.0}

    def query_devices(device: Any = None, kind: Any = None) -> dict:
        return info

    monkeypatch.setattr(audio.sd, "query_devices", query_devices)
    monkeypatch.setattr(audio.sd, "InputStream", FakeStream)
    return info


@pytest.fixture
def recorder(fake_device: dict):
    from voicewriter.audio import AudioRecorder

    return AudioRecorder(AudioConfig(stop_grace_s=0.0))


class TestAudioRecorder:
    """Tests for AudioRecorder class."""

    def test_start_uses_native_device_format(self, recorder) -> None:
        """Test the stream opens at the device's native rate and channel count."""
        recorder.start()
        stream = FakeStream.instances[-1]

        assert recorder.is_recording
        assert stream.samplerate == 48000
        assert stream.channels == 2
        assert stream.dtype == "float32"
        assert recorder.native_sample_rate == 48000

    def test_start_twice_opens_one_stream(self, recorder) -> None:
        """Test a second start while recording is a no-op."""
        recorder.start()
        recorder.start()
        assert len(FakeStream.instances) == 1

    def test_stop_writes_resampled_mono_artifact(self, recorder) -> None:
        """Test stereo capture at 48kHz becomes mono 16-bit PCM at 16kHz."""
        recorder.start()
        stream = FakeStream.instances[-1]
        block = np.zeros((4800, 2), dtype=np.float32)
        block[:, 0] = 0.5
        block[:, 1] = 0.1
        for _ in range(10):
            stream.feed(block)

        artifact = recorder.stop()
        try:
            assert stream.closed
            assert not recorder.is_recording
            assert artifact.sample_rate == 16000
            assert artifact.num_samples == 16000
            assert artifact.duration_s == pytest.approx(1.0)

            rate, data = wav_read(artifact.path)
            assert rate == 16000
            assert data.dtype == np.int16
            assert data.ndim == 1
            assert len(data) == 16000
            # (0.5 + 0.1) / 2 = 0.3
            assert int(data[100]) == int(0.3 * 32767)
        finally:
            artifact.path.unlink()

    def test_int16_capture_is_normalized(self, fake_device: dict) -> None:
        """Test int16 device data is scaled before it is buffered."""
        from voicewriter.audio import AudioRecorder

        fake_device["max_input_channels"] = 1
        fake_device["default_samplerate"] = 16000.0
        recorder = AudioRecorder(AudioConfig(dtype="int16", stop_grace_s=0.0))
        recorder.start()
        FakeStream.instances[-1].feed(np.full((160, 1), 16384, dtype=np.int16))

        artifact = recorder.stop()
        try:
            _rate, data = wav_read(artifact.path)
            assert len(data) == 160
            assert abs(int(data[0]) - 16384) <= 1
        finally:
            artifact.path.unlink()

    def test_stop_without_audio_gives_empty_artifact(self, recorder) -> None:
        """Test a recording with no callbacks still produces a valid file."""
        recorder.start()
        artifact = recorder.stop()
        try:
            rate, data = wav_read(artifact.path)
            assert rate == 16000
            assert len(data) == 0
            assert artifact.num_samples == 0
        finally:
            artifact.path.unlink()

    def test_callback_after_stop_is_ignored(self, recorder) -> None:
        """Test a late callback does not leak into the next recording."""
        recorder.start()
        first = FakeStream.instances[-1]
        recorder.stop().path.unlink()

        first.feed(np.ones((480, 2), dtype=np.float32))

        recorder.start()
        artifact = recorder.stop()
        try:
            assert artifact.num_samples == 0
        finally:
            artifact.path.unlink()

    def test_stop_when_not_running(self, recorder) -> None:
        """Test stop without start raises CaptureError."""
        with pytest.raises(CaptureError):
            recorder.stop()

    def test_stream_failure_raises_capture_error(self, recorder) -> None:
        """Test a stream the driver stopped mid-recording aborts the session."""
        recorder.start()
        FakeStream.instances[-1].active = False
        with pytest.raises(CaptureError):
            recorder.stop()
        assert not recorder.is_recording

    def test_artifact_write_failure_raises_capture_error(
        self, recorder, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test a full or unwritable temp dir surfaces as a capture failure."""
        from voicewriter import audio

        def fail_write(samples: Any, sample_rate: int) -> None:
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(audio, "write_artifact", fail_write)
        recorder.start()
        FakeStream.instances[-1].feed(np.ones((480, 2), dtype=np.float32))

        with pytest.raises(CaptureError, match="No space left"):
            recorder.stop()
        assert not recorder.is_recording

    def test_abort_discards_audio(self, recorder) -> None:
        """Test abort closes the stream without producing an artifact."""
        recorder.start()
        stream = FakeStream.instances[-1]
        stream.feed(np.ones((480, 2), dtype=np.float32))
        recorder.abort()
        assert stream.closed
        assert not recorder.is_recording

    def test_unsupported_dtype(self, fake_device: dict) -> None:
        """Test an unsupported sample format raises DeviceError."""
        from voicewriter.audio import AudioRecorder

        recorder = AudioRecorder(AudioConfig(dtype="int8"))
        with pytest.raises(DeviceError):
            recorder.start()
        assert FakeStream.instances == []

    def test_no_input_device(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a missing input device raises DeviceError."""
        from voicewriter import audio

        def query_devices(device: Any = None, kind: Any = None) -> dict:
            raise audio.sd.PortAudioError("Error querying device -1")

        monkeypatch.setattr(audio.sd, "query_devices", query_devices)
        recorder = audio.AudioRecorder(AudioConfig())
        with pytest.raises(DeviceError):
            recorder.start()
        assert not recorder.is_recording

    def test_device_without_inputs(self, fake_device: dict) -> None:
        """Test an output-only device raises DeviceError."""
        from voicewriter.audio import AudioRecorder

        fake_device["max_input_channels"] = 0
        with pytest.raises(DeviceError):
            AudioRecorder(AudioConfig()).start()
