from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import sounddevice as sd

from voicewriter.buffer import AudioBuffer
from voicewriter.dsp import (
    SUPPORTED_SAMPLE_FORMATS,
    downmix,
    normalize,
    resample,
    write_artifact,
)
from voicewriter.errors import CaptureError, DeviceError
from voicewriter.types import AudioArtifact

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from voicewriter.config import AudioConfig

logger = logging.getLogger(__name__)

FIRST_CHANNEL_INDEX = 0


@dataclass
class AudioDevice:
    index: int
    name: str
    is_default: bool = False

    def __str__(self) -> str:
        marker = " (DEFAULT)" if self.is_default else ""
        return f"[{self.index}] {self.name}{marker}"


def list_input_devices() -> list[AudioDevice]:
    devices = sd.query_devices()
    default_input = sd.default.device[FIRST_CHANNEL_INDEX]

    input_devices = []
    for i, dev in enumerate(devices):
        if dev["max_input_channels"] > 0:  # type: ignore[index]
            input_devices.append(
                AudioDevice(
                    index=i,
                    name=dev["name"],  # type: ignore[index]
                    is_default=(i == default_input),
                )
            )
    return input_devices


def get_device_name(device_id: int | None) -> str:
    info = query_input_device(device_id)
    return info["name"]  # type: ignore[index,return-value]


def query_input_device(device_id: int | None) -> dict:
    try:
        if device_id is not None:
            info = sd.query_devices(device_id)
        else:
            info = sd.query_devices(kind="input")
    except (sd.PortAudioError, ValueError) as e:
        raise DeviceError(f"No input device available: {e}") from e
    if int(info["max_input_channels"]) < 1:  # type: ignore[index]
        raise DeviceError(f"Device {info['name']!r} has no input channels")  # type: ignore[index]
    return info  # type: ignore[return-value]


class AudioRecorder:
    """Captures the input device into a mono buffer and writes WAV artifacts."""

    def __init__(self, config: "AudioConfig") -> None:
        self._config = config
        self._buffer = AudioBuffer()
        self._stream: sd.InputStream | None = None
        self._sample_rate = config.target_sample_rate
        self._channels = 1
        self._lock = threading.Lock()

    @property
    def is_recording(self) -> bool:
        with self._lock:
            return self._stream is not None

    @property
    def native_sample_rate(self) -> int:
        return self._sample_rate

    @property
    def channels(self) -> int:
        return self._channels

    def start(self) -> None:
        with self._lock:
            if self._stream is not None:
                return

            if self._config.dtype not in SUPPORTED_SAMPLE_FORMATS:
                raise DeviceError(f"Unsupported sample format: {self._config.dtype}")

            info = query_input_device(self._config.device_id)
            self._sample_rate = int(info["default_samplerate"])
            self._channels = self._config.channels or int(info["max_input_channels"])
            logger.debug(
                "Using input device %r: %d Hz, %d channels, format %s",
                info["name"],
                self._sample_rate,
                self._channels,
                self._config.dtype,
            )

            self._buffer.open()
            try:
                stream = sd.InputStream(
                    samplerate=self._sample_rate,
                    channels=self._channels,
                    dtype=self._config.dtype,
                    device=self._config.device_id,
                    callback=self._audio_callback,
                )
                stream.start()
            except sd.PortAudioError as e:
                self._buffer.seal_and_drain()
                raise DeviceError(f"Failed to open input stream: {e}") from e

            self._stream = stream

    def stop(self) -> AudioArtifact:
        """Stop capture and return the resampled artifact.

        The caller owns the returned file.
        """
        with self._lock:
            stream, self._stream = self._stream, None
        if stream is None:
            raise CaptureError("Recorder is not running")

        failed = not stream.active
        self._close_stream(stream)

        # Bounded wait for a callback that was already running when the stream stopped
        if self._config.stop_grace_s > 0:
            time.sleep(self._config.stop_grace_s)

        samples = self._buffer.seal_and_drain()
        if failed:
            raise CaptureError("Audio stream stopped unexpectedly")

        target_rate = self._config.target_sample_rate
        resampled = resample(samples, self._sample_rate, target_rate)
        try:
            path = write_artifact(resampled, target_rate)
        except OSError as e:
            raise CaptureError(f"Failed to write audio artifact: {e}") from e

        logger.debug(
            "Recorded %d samples @ %dHz -> %d samples @ %dHz (%.2fs)",
            len(samples),
            self._sample_rate,
            len(resampled),
            target_rate,
            len(resampled) / target_rate,
        )
        return AudioArtifact(path=path, sample_rate=target_rate, num_samples=len(resampled))

    def abort(self) -> None:
        """Stop capture and discard whatever was recorded."""
        with self._lock:
            stream, self._stream = self._stream, None
        if stream is not None:
            self._close_stream(stream)
        self._buffer.seal_and_drain()

    def _close_stream(self, stream: sd.InputStream) -> None:
        try:
            stream.stop()
            stream.close()
        except sd.PortAudioError as e:
            logger.warning("Error stopping audio stream: %s", e)

    def _audio_callback(
        self,
        indata: "NDArray",
        frames: int,
        time_info: object,
        status: sd.CallbackFlags,
    ) -> None:
        if status:
            logger.warning("Audio callback status: %s", status)

        self._buffer.append(downmix(normalize(indata), self._channels))
