"""Main voicewriter application."""

from __future__ import annotations

import logging
import signal
import threading

from voicewriter.audio import AudioRecorder, get_device_name, list_input_devices
from voicewriter.cleanup import PostProcessRetry
from voicewriter.config import Config, OutputMode
from voicewriter.controller import SessionController
from voicewriter.hotkey import PynputHotkeySource, parse_hotkey
from voicewriter.notify import DesktopNotifier
from voicewriter.output import OutputFanout
from voicewriter.sinks import ClipboardOutput, TyperOutput
from voicewriter.transcribe import TranscriptionDispatcher, create_engine

logger = logging.getLogger(__name__)

_OUTPUT_DESCRIPTIONS = {
    OutputMode.TYPING: "TYPED into the focused window",
    OutputMode.CLIPBOARD: "copied to the CLIPBOARD",
    OutputMode.BOTH: "TYPED into the focused window and copied to the CLIPBOARD",
}


class VoiceWriterApp:
    """
    Push-to-talk transcription application.

    Captures audio while a key is held, transcribes it, optionally cleans it
    up with a local chat model, and outputs it to the focused window and/or
    the clipboard.
    """

    def __init__(self, config: Config | None = None) -> None:
        self._config = config or Config()
        self._shutdown = threading.Event()

        # Components (initialized in setup)
        self._source: PynputHotkeySource | None = None
        self._controller: SessionController | None = None

    def setup(self) -> None:
        """Initialize all components."""
        self._print_banner()
        self._print_devices()

        key = parse_hotkey(self._config.session.hotkey)

        # Load the speech model before listening so the first dictation is fast
        print(f"\n📦 Loading {self._config.engine.backend.value} model: {self._config.engine.model}")
        dispatcher = TranscriptionDispatcher(
            create_engine(self._config.engine),
            max_workers=self._config.engine.max_workers,
        )
        dispatcher.load()

        cleanup = None
        if self._config.cleanup.enabled:
            cleanup = PostProcessRetry.from_config(self._config.cleanup)

        self._source = PynputHotkeySource(key)
        self._controller = SessionController(
            source=self._source,
            recorder=AudioRecorder(self._config.audio),
            dispatcher=dispatcher,
            output=OutputFanout(self._config.output_mode, TyperOutput(), ClipboardOutput()),
            cleanup=cleanup,
            notifier=DesktopNotifier(enabled=self._config.notifications),
            shutdown=self._shutdown,
            poll_interval_s=self._config.session.poll_interval_s,
            drain_delay_s=self._config.session.drain_delay_s,
        )
        self._source.start()

        self._print_instructions()

    def _print_banner(self) -> None:
        """Print application banner."""
        print("=" * 60)
        print("🎙️ VOICEWRITER - Push-to-Talk Transcription")
        print("=" * 60)

    def _print_devices(self) -> None:
        """Print available audio devices."""
        print("\n🎤 Available audio input devices:")
        print("-" * 50)
        for device in list_input_devices():
            print(f"  {device}")
        print("-" * 50)

        device_name = get_device_name(self._config.audio.device_id)
        if self._config.audio.device_id is not None:
            print(f"\n✅ Using input device [{self._config.audio.device_id}]: {device_name}")
        else:
            print(f"\n✅ Using DEFAULT input device: {device_name}")

        print(f"\n🔊 Output mode: {self._config.output_mode.value}")
        if self._config.cleanup.enabled:
            print(
                f"✨ Post-processing: {self._config.cleanup.model} "
                f"@ {self._config.cleanup.base_url}"
            )

    def _print_instructions(self) -> None:
        """Print usage instructions."""
        hotkey = self._config.session.hotkey
        print("\n" + "=" * 60)
        print("📌 INSTRUCTIONS:")
        print(f"   • Hold {hotkey} to talk. Release to transcribe.")
        print("   • Press Ctrl+C to quit.")
        print(f"   • Text will be {_OUTPUT_DESCRIPTIONS[self._config.output_mode]}.")
        print("=" * 60)
        print(f"\n🟢 Ready! Hold {hotkey} to start dictating...\n")

    def _handle_sigint(self, sig: int, frame: object) -> None:
        print("\n👋 Quitting...")
        self._shutdown.set()

    def run(self) -> None:
        """Run the application until Ctrl+C or the listener stops."""
        self.setup()
        assert self._controller is not None

        signal.signal(signal.SIGINT, self._handle_sigint)
        self._controller.run()

    def shutdown(self) -> None:
        """Shutdown the application gracefully."""
        logger.info("Shutting down...")
        self._shutdown.set()

        if self._source is not None:
            self._source.stop()

        # Waits for in-flight sessions, then unloads the engine
        if self._controller is not None:
            self._controller.release()
