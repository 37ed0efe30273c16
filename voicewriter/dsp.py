"""Sample conversion, downmixing and resampling for captured audio."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
from scipy.io.wavfile import write as wav_write

from voicewriter.errors import DeviceError

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)

INT16_MAX = 32767.0
INT16_MIN = -32768.0
INT32_MAX = 2147483647.0
ARTIFACT_PREFIX = "voicewriter_"
ARTIFACT_SUFFIX = ".wav"

SUPPORTED_SAMPLE_FORMATS = ("float32", "int16", "int32")


def normalize(data: "ArrayLike") -> "NDArray[np.float32]":
    """Convert device samples to float32 in [-1, 1].

    Always returns a copy; sounddevice reuses its callback buffers.
    """
    array = np.asarray(data)
    if array.dtype == np.float32:
        return array.astype(np.float32, copy=True)
    if array.dtype == np.int16:
        return array.astype(np.float32) / INT16_MAX
    if array.dtype == np.int32:
        return (array.astype(np.float64) / INT32_MAX).astype(np.float32)
    raise DeviceError(f"Unsupported sample format: {array.dtype}")


def downmix(data: "ArrayLike", channels: int) -> "NDArray[np.float32]":
    """Average interleaved frames down to a single channel.

    Accepts either a flat interleaved buffer or a (frames, channels) array.
    """
    array = np.asarray(data, dtype=np.float32)
    if channels <= 1:
        return array.reshape(-1)
    return array.reshape(-1, channels).mean(axis=1, dtype=np.float32)


def interpolate(samples: "NDArray[np.float32]", positions: "NDArray[np.float64]") -> "NDArray[np.float32]":
    """Linearly interpolate ``samples`` at fractional ``positions``.

    A position whose right neighbour is past the end takes the sample at its
    integer index; a position fully past the end is silence.
    """
    samples = np.asarray(samples, dtype=np.float32)
    positions = np.asarray(positions, dtype=np.float64)
    n = len(samples)
    out = np.zeros(len(positions), dtype=np.float32)
    if n == 0 or len(positions) == 0:
        return out

    idx = np.floor(positions).astype(np.int64)
    frac = (positions - idx).astype(np.float32)

    both = idx + 1 < n
    left = idx[both]
    out[both] = samples[left] * (1.0 - frac[both]) + samples[left + 1] * frac[both]

    last = (idx + 1 >= n) & (idx < n)
    out[last] = samples[idx[last]]
    return out


def resample(samples: "NDArray[np.float32]", rate_in: int, rate_out: int) -> "NDArray[np.float32]":
    """Resample mono audio from ``rate_in`` to ``rate_out`` by linear interpolation."""
    if rate_in == rate_out:
        return samples
    if rate_in <= 0 or rate_out <= 0:
        raise ValueError(f"Invalid sample rates: {rate_in} -> {rate_out}")

    n_out = len(samples) * rate_out // rate_in
    positions = np.arange(n_out, dtype=np.float64) * rate_in / rate_out
    return interpolate(samples, positions)


def to_pcm16(samples: "NDArray[np.float32]") -> "NDArray[np.int16]":
    scaled = np.asarray(samples, dtype=np.float32) * INT16_MAX
    return np.clip(scaled, INT16_MIN, INT16_MAX).astype(np.int16)


def write_artifact(
    samples: "NDArray[np.float32]",
    sample_rate: int,
    directory: str | os.PathLike | None = None,
) -> Path:
    """Write mono float samples to a 16-bit PCM WAV temp file and return its path."""
    fd, path = tempfile.mkstemp(suffix=ARTIFACT_SUFFIX, prefix=ARTIFACT_PREFIX, dir=directory)
    os.close(fd)
    try:
        wav_write(path, sample_rate, to_pcm16(samples))
    except Exception:
        remove_artifact(path)
        raise
    return Path(path)


def remove_artifact(path: str | os.PathLike) -> None:
    """Remove an artifact file, tolerating one that is already gone."""
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Failed to remove temp file %s: %s", path, e)
