"""Exception types raised by voicewriter components."""

from __future__ import annotations


class VoiceWriterError(Exception):
    """Base class for all voicewriter errors."""


class DeviceError(VoiceWriterError):
    """No usable input device, or an unsupported sample format."""


class CaptureError(VoiceWriterError):
    """The audio stream failed while a recording was in progress."""


class EngineError(VoiceWriterError):
    """The speech-to-text engine failed to transcribe an artifact."""


class CleanupError(VoiceWriterError):
    """The text cleanup service could not produce a result."""


class CleanupNetworkError(CleanupError):
    """The cleanup endpoint could not be reached or timed out."""


class CleanupServiceError(CleanupError):
    """The cleanup endpoint answered with an error or an unusable body."""


class OutputError(VoiceWriterError):
    """An output sink failed to deliver text."""


class ListenerDisconnected(VoiceWriterError):
    """The hotkey listener stopped; the controller cannot continue."""
