"""Configuration for the voicewriter application."""

from __future__ import annotations

import os
import platform
import sys
from dataclasses import dataclass, field
from enum import Enum


class OutputMode(str, Enum):
    TYPING = "typing"
    CLIPBOARD = "clipboard"
    BOTH = "both"


class EngineBackend(str, Enum):
    MLX = "mlx"
    FASTER_WHISPER = "faster-whisper"


def _default_backend() -> EngineBackend:
    if sys.platform == "darwin" and platform.machine() == "arm64":
        return EngineBackend.MLX
    return EngineBackend.FASTER_WHISPER


def _env_flag(value: str) -> bool:
    return value.lower() in ("1", "true", "yes")


@dataclass
class AudioConfig:
    target_sample_rate: int = 16_000
    device_id: int | None = None
    channels: int | None = None
    dtype: str = "float32"
    stop_grace_s: float = 0.1


@dataclass
class EngineConfig:
    backend: EngineBackend = field(default_factory=_default_backend)
    model_name: str | None = None
    language: str | None = None
    device: str = "cpu"
    compute_type: str = "int8"
    max_workers: int = 2

    @property
    def model(self) -> str:
        if self.model_name:
            return self.model_name
        if self.backend == EngineBackend.MLX:
            return "mlx-community/whisper-large-v3-turbo"
        else:  # FASTER_WHISPER
            return "small"


DEFAULT_CLEANUP_PROMPT = (
    "You clean up voice transcripts that will be pasted as text. "
    "Remove filler words (um, uh, like, you know) and false starts. "
    "Fix grammar and punctuation. When the speaker corrects themselves, keep only the correction. "
    "Keep technical terms and abbreviations exactly as spoken. "
    "Keep the speaker's wording and only restructure a sentence that is genuinely unclear. "
    "Output ONLY the cleaned text. Do NOT answer questions or add commentary."
)


@dataclass
class CleanupConfig:
    enabled: bool = False
    host: str = "localhost"
    port: int = 11434
    model: str = "llama3.2"
    prompt: str | None = None
    attempts: int = 3
    backoff_s: float = 1.0
    connect_timeout_s: float = 5.0
    request_timeout_s: float = 120.0

    @property
    def system_prompt(self) -> str:
        return self.prompt or DEFAULT_CLEANUP_PROMPT

    @property
    def base_url(self) -> str:
        host = self.host if "://" in self.host else f"http://{self.host}"
        return f"{host.rstrip('/')}:{self.port}"


@dataclass
class SessionConfig:
    hotkey: str = "F9"
    drain_delay_s: float = 0.25
    poll_interval_s: float = 0.1


@dataclass
class Config:
    audio: AudioConfig = field(default_factory=AudioConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    cleanup: CleanupConfig = field(default_factory=CleanupConfig)
    session: SessionConfig = field(default_factory=SessionConfig)
    output_mode: OutputMode = OutputMode.BOTH
    notifications: bool = True
    verbose: bool = False

    @classmethod
    def from_env(cls) -> "Config":
        config = cls()

        if hotkey := os.environ.get("VOICEWRITER_HOTKEY"):
            config.session.hotkey = hotkey

        if mode := os.environ.get("VOICEWRITER_OUTPUT_MODE"):
            config.output_mode = OutputMode(mode.lower())

        if device := os.environ.get("VOICEWRITER_AUDIO_DEVICE"):
            config.audio.device_id = int(device)

        if backend := os.environ.get("VOICEWRITER_ENGINE"):
            try:
                config.engine.backend = EngineBackend(backend.lower())
            except ValueError:
                pass  # Keep default if invalid value

        if model := os.environ.get("VOICEWRITER_MODEL"):
            config.engine.model_name = model

        if lang := os.environ.get("VOICEWRITER_LANGUAGE"):
            config.engine.language = None if lang.lower() == "auto" else lang

        # Post-processing through a local chat model
        if cleanup := os.environ.get("VOICEWRITER_CLEANUP"):
            config.cleanup.enabled = _env_flag(cleanup)

        if host := os.environ.get("VOICEWRITER_CLEANUP_HOST"):
            config.cleanup.host = host

        if port := os.environ.get("VOICEWRITER_CLEANUP_PORT"):
            config.cleanup.port = int(port)

        if cleanup_model := os.environ.get("VOICEWRITER_CLEANUP_MODEL"):
            config.cleanup.model = cleanup_model

        if prompt := os.environ.get("VOICEWRITER_CLEANUP_PROMPT"):
            config.cleanup.prompt = prompt

        if notify := os.environ.get("VOICEWRITER_NOTIFY"):
            config.notifications = _env_flag(notify)

        if verbose := os.environ.get("VOICEWRITER_VERBOSE"):
            config.verbose = _env_flag(verbose)
        return config
