"""Protocol interfaces used by SessionController."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol

from voicewriter.types import AudioArtifact, HotkeyEvent


class HotkeySource(Protocol):
    def receive(self, timeout: float) -> Optional[HotkeyEvent]: ...


class Recorder(Protocol):
    def start(self) -> None: ...

    def stop(self) -> AudioArtifact: ...

    def abort(self) -> None: ...


class TranscriptionEngine(Protocol):
    def load(self) -> None: ...

    def transcribe(self, path: Path) -> str: ...

    def unload(self) -> None: ...


class CleanupService(Protocol):
    def complete(self, text: str) -> str: ...


class Notifier(Protocol):
    def notify(self, summary: str, body: str = "") -> None: ...
