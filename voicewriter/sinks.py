"""Keyboard and clipboard output sinks."""

from __future__ import annotations

import logging
import time

import pyperclip
from pynput.keyboard import Controller as KeyboardController

from voicewriter.errors import OutputError
from voicewriter.output import OutputSink

logger = logging.getLogger(__name__)

TYPE_SETTLE_SECONDS = 0.05


class ClipboardOutput(OutputSink):
    """Copies text to the system clipboard."""

    name = "clipboard"

    def output(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as e:
            raise OutputError(f"Failed to copy to clipboard: {e}") from e
        print(f"📋 Copied to clipboard: {text}")


class TyperOutput(OutputSink):
    """Types text directly into the focused window."""

    name = "typing"

    def __init__(self) -> None:
        self._controller = KeyboardController()

    def output(self, text: str) -> None:
        try:
            # Small delay to ensure the window is ready
            time.sleep(TYPE_SETTLE_SECONDS)
            self._controller.type(text)
        except Exception as e:
            raise OutputError(f"Failed to type text: {e}") from e
