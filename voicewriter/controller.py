"""Push-to-talk session state machine."""

from __future__ import annotations

import concurrent.futures
import logging
import threading
import time
from functools import partial
from typing import TYPE_CHECKING, Callable, Optional

from voicewriter.dsp import remove_artifact
from voicewriter.errors import CaptureError, CleanupError, DeviceError, OutputError
from voicewriter.types import (
    HotkeyEvent,
    HotkeyEventKind,
    NoSpeechDetected,
    Session,
    SessionOutcome,
    SessionReport,
    SessionState,
    TranscriptionFailed,
    TranscriptionOutcome,
)

if TYPE_CHECKING:
    from concurrent.futures import Future

    from voicewriter.cleanup import PostProcessRetry
    from voicewriter.interfaces import HotkeySource, Notifier, Recorder
    from voicewriter.output import OutputFanout
    from voicewriter.transcribe import TranscriptionDispatcher

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 0.1
DEFAULT_DRAIN_DELAY_SECONDS = 0.25
PREVIEW_LENGTH = 80


def _preview(text: str) -> str:
    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH] + "..."
    return text


class SessionController:
    """
    Drives recording sessions from hotkey events.

    The controller runs a single-threaded poll loop over the hotkey source.
    Recording starts on press and keeps going for a short drain delay after
    release; the finished artifact is then handed to the transcription
    dispatcher and the controller is immediately ready for the next press.
    Transcription, cleanup and output complete on worker threads.
    """

    def __init__(
        self,
        source: "HotkeySource",
        recorder: "Recorder",
        dispatcher: "TranscriptionDispatcher",
        output: "OutputFanout",
        cleanup: Optional["PostProcessRetry"] = None,
        notifier: Optional["Notifier"] = None,
        shutdown: Optional[threading.Event] = None,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_SECONDS,
        drain_delay_s: float = DEFAULT_DRAIN_DELAY_SECONDS,
        hotkey_id: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._recorder = recorder
        self._dispatcher = dispatcher
        self._output = output
        self._cleanup = cleanup
        self._notifier = notifier
        self._shutdown = shutdown or threading.Event()
        self._poll_interval_s = poll_interval_s
        self._drain_delay_s = drain_delay_s
        self._hotkey_id = hotkey_id
        self._clock = clock

        self._state = SessionState.IDLE
        self._session: Session | None = None
        self._session_counter = 0
        self._drain_deadline = 0.0

        self._inflight: set["Future[SessionReport]"] = set()
        self._inflight_lock = threading.Lock()
        self._released = False

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def shutdown_event(self) -> threading.Event:
        return self._shutdown

    def request_shutdown(self) -> None:
        self._shutdown.set()

    def run(self) -> None:
        """Poll for hotkey events until shutdown is requested.

        Raises:
            ListenerDisconnected: If the hotkey source goes away.
        """
        try:
            while not self._shutdown.is_set():
                self.poll_once()
        finally:
            self.release()

    def poll_once(self) -> None:
        event = self._source.receive(self._next_timeout())
        if event is not None:
            self.handle_event(event)
        self.tick()

    def _next_timeout(self) -> float:
        if self._state == SessionState.DRAINING:
            remaining = self._drain_deadline - self._clock()
            return max(0.0, min(self._poll_interval_s, remaining))
        return self._poll_interval_s

    def handle_event(self, event: HotkeyEvent) -> None:
        if event.key_id != self._hotkey_id:
            return

        if event.kind == HotkeyEventKind.PRESSED:
            if self._state != SessionState.IDLE:
                logger.debug("Ignoring press while %s", self._state.value)
                return
            self._start_session()
        elif event.kind == HotkeyEventKind.RELEASED:
            if self._state != SessionState.RECORDING or self._session is None:
                logger.debug("Ignoring release while %s", self._state.value)
                return
            self._session.advance(SessionState.DRAINING)
            self._state = SessionState.DRAINING
            self._drain_deadline = self._clock() + self._drain_delay_s

    def tick(self) -> Optional["Future[SessionReport]"]:
        """Finish draining once the trailing-audio delay has elapsed."""
        if self._state != SessionState.DRAINING:
            return None
        if self._clock() < self._drain_deadline:
            return None
        return self._begin_processing()

    def _start_session(self) -> None:
        try:
            self._recorder.start()
        except (DeviceError, CaptureError) as e:
            logger.error("Failed to start recording: %s", e)
            print(f"❌ Failed to start recording: {e}")
            self._notify("Error", "Failed to start recording")
            return

        self._session_counter += 1
        self._session = Session(id=self._session_counter)
        self._state = SessionState.RECORDING
        print("🎙️ Recording...")
        self._notify("Recording", "Listening...")

    def _begin_processing(self) -> Optional["Future[SessionReport]"]:
        session = self._session
        self._session = None
        if session is None:
            self._state = SessionState.IDLE
            return None

        try:
            artifact = self._recorder.stop()
        except (CaptureError, DeviceError) as e:
            logger.error("Failed to stop recording: %s", e)
            self._recording_failed(e)
            return None
        except Exception as e:
            logger.exception("Unexpected error stopping recording")
            self._recording_failed(e)
            return None

        session.advance(SessionState.PROCESSING)
        session.artifact = artifact
        self._state = SessionState.IDLE
        print("⏳ Transcribing...")

        try:
            future = self._dispatcher.submit(artifact, partial(self._complete_session, session))
        except RuntimeError as e:
            logger.error("Could not queue session %d: %s", session.id, e)
            remove_artifact(artifact.path)
            return None

        with self._inflight_lock:
            self._inflight.add(future)
        future.add_done_callback(self._forget)
        return future

    def _recording_failed(self, error: Exception) -> None:
        self._state = SessionState.IDLE
        print(f"❌ Recording failed: {error}")
        self._notify("Error", "Recording failed")

    def _forget(self, future: "Future[SessionReport]") -> None:
        with self._inflight_lock:
            self._inflight.discard(future)

    def _complete_session(self, session: Session, outcome: TranscriptionOutcome) -> SessionReport:
        """Runs on a dispatcher worker after transcription."""
        try:
            return self._deliver(session, outcome)
        except Exception as e:
            logger.exception("Session %d failed", session.id)
            self._notify("Error", "Processing failed")
            return SessionReport(session.id, SessionOutcome.ERROR, error=e)

    def _deliver(self, session: Session, outcome: TranscriptionOutcome) -> SessionReport:
        if isinstance(outcome, NoSpeechDetected):
            print("(no speech detected)")
            self._notify("No speech detected")
            return SessionReport(session.id, SessionOutcome.NO_SPEECH)

        if isinstance(outcome, TranscriptionFailed):
            print(f"❌ Transcription failed: {outcome.error}")
            self._notify("Error", "Transcription failed")
            return SessionReport(
                session.id, SessionOutcome.TRANSCRIPTION_FAILED, error=outcome.error
            )

        text = outcome.text
        if self._cleanup is not None:
            print("✨ Post-processing...")
            try:
                text = self._cleanup.run(text)
            except CleanupError as e:
                logger.error("Post-processing failed, using raw transcript: %s", e)
            except Exception:
                logger.exception("Unexpected post-processing error, using raw transcript")

        try:
            self._output.deliver(text)
        except OutputError as e:
            logger.error("Failed to output text: %s", e)
            print(f"   ⚠️ Output error: {e}")
            self._notify("Error", "Failed to output text")
            return SessionReport(session.id, SessionOutcome.OUTPUT_FAILED, text=text, error=e)

        print(f"✅ Output: \"{text}\"")
        self._notify("Transcribed", _preview(text))
        return SessionReport(session.id, SessionOutcome.DELIVERED, text=text)

    def wait_for_pipeline(self, timeout: float | None = None) -> list[SessionReport]:
        """Wait for in-flight sessions and return the reports of those that finished."""
        with self._inflight_lock:
            pending = list(self._inflight)
        done, _ = concurrent.futures.wait(pending, timeout=timeout)
        reports = [f.result() for f in done if f.exception() is None]
        return sorted(reports, key=lambda r: r.session_id)

    def release(self) -> None:
        """Discard an unfinished recording, let in-flight sessions finish, free the engine."""
        if self._released:
            return
        self._released = True

        if self._state in (SessionState.RECORDING, SessionState.DRAINING):
            logger.info("Discarding recording in progress")
            self._recorder.abort()
            self._session = None
            self._state = SessionState.IDLE

        self.wait_for_pipeline()
        self._dispatcher.close()

    def _notify(self, summary: str, body: str = "") -> None:
        if self._notifier is not None:
            self._notifier.notify(summary, body)
