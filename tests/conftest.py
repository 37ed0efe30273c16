"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Generator

import numpy as np
import pytest

from voicewriter.types import AudioArtifact

if TYPE_CHECKING:
    from numpy.typing import NDArray


ENV_VARS = [
    "VOICEWRITER_HOTKEY",
    "VOICEWRITER_OUTPUT_MODE",
    "VOICEWRITER_AUDIO_DEVICE",
    "VOICEWRITER_ENGINE",
    "VOICEWRITER_MODEL",
    "VOICEWRITER_LANGUAGE",
    "VOICEWRITER_CLEANUP",
    "VOICEWRITER_CLEANUP_HOST",
    "VOICEWRITER_CLEANUP_PORT",
    "VOICEWRITER_CLEANUP_MODEL",
    "VOICEWRITER_CLEANUP_PROMPT",
    "VOICEWRITER_NOTIFY",
    "VOICEWRITER_VERBOSE",
]


@pytest.fixture
def sample_audio_48k() -> NDArray[np.float32]:
    """Generate 1 second of a 440Hz sine wave at 48kHz."""
    sample_rate = 48000
    t = np.arange(sample_rate, dtype=np.float32) / sample_rate
    return (np.sin(2 * np.pi * 440 * t) * 0.5).astype(np.float32)


@pytest.fixture
def make_artifact(tmp_path: Path):
    """Factory for small on-disk artifacts the dispatcher can consume."""
    def _make(num_samples: int = 1600, sample_rate: int = 16000) -> AudioArtifact:
        from voicewriter.dsp import write_artifact

        samples = np.zeros(num_samples, dtype=np.float32)
        path = write_artifact(samples, sample_rate, directory=tmp_path)
        return AudioArtifact(path=path, sample_rate=sample_rate, num_samples=num_samples)

    return _make


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Fixture to clean environment variables before/after tests."""
    # Store original values
    original_values = {var: os.environ.get(var) for var in ENV_VARS}

    # Clear all
    for var in ENV_VARS:
        os.environ.pop(var, None)

    yield

    # Restore original values
    for var, value in original_values.items():
        if value is not None:
            os.environ[var] = value
        else:
            os.environ.pop(var, None)
