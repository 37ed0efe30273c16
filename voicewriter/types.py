"""Type definitions for the voicewriter application."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class HotkeyEventKind(str, Enum):
    PRESSED = "pressed"
    RELEASED = "released"


@dataclass(frozen=True)
class HotkeyEvent:
    """A single press or release of a watched hotkey."""

    kind: HotkeyEventKind
    key_id: int = 0

    @classmethod
    def pressed(cls, key_id: int = 0) -> "HotkeyEvent":
        return cls(HotkeyEventKind.PRESSED, key_id)

    @classmethod
    def released(cls, key_id: int = 0) -> "HotkeyEvent":
        return cls(HotkeyEventKind.RELEASED, key_id)


class SessionState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    DRAINING = "draining"
    PROCESSING = "processing"


_STATE_ORDER = {
    SessionState.IDLE: 0,
    SessionState.RECORDING: 1,
    SessionState.DRAINING: 2,
    SessionState.PROCESSING: 3,
}


@dataclass(frozen=True)
class AudioArtifact:
    """A finished mono 16-bit PCM WAV file waiting to be transcribed."""

    path: Path
    sample_rate: int
    num_samples: int

    @property
    def duration_s(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.num_samples / self.sample_rate


@dataclass
class Session:
    """One press-to-release recording and delivery cycle."""

    id: int
    started_at: float = field(default_factory=time.time)
    state: SessionState = SessionState.RECORDING
    artifact: Optional[AudioArtifact] = None

    def advance(self, state: SessionState) -> None:
        """Move to a later state. Sessions never move backward."""
        if _STATE_ORDER[state] <= _STATE_ORDER[self.state]:
            raise ValueError(
                f"Session {self.id} cannot move from {self.state.value} to {state.value}"
            )
        self.state = state


@dataclass(frozen=True)
class TranscriptionResult:
    """Text produced by the engine for one artifact."""

    text: str
    audio_duration_s: float = 0.0
    elapsed_s: float = 0.0


@dataclass(frozen=True)
class NoSpeechDetected:
    """The engine ran but produced no words."""

    audio_duration_s: float = 0.0
    elapsed_s: float = 0.0


@dataclass(frozen=True)
class TranscriptionFailed:
    """The engine raised while transcribing."""

    error: Exception


TranscriptionOutcome = Union[TranscriptionResult, NoSpeechDetected, TranscriptionFailed]


class SessionOutcome(str, Enum):
    DELIVERED = "delivered"
    NO_SPEECH = "no_speech"
    TRANSCRIPTION_FAILED = "transcription_failed"
    OUTPUT_FAILED = "output_failed"
    ERROR = "error"


@dataclass(frozen=True)
class SessionReport:
    """What a finished session produced."""

    session_id: int
    outcome: SessionOutcome
    text: Optional[str] = None
    error: Optional[Exception] = None
