"""Speech-to-text engines and the dispatcher that serializes access to them."""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar

from voicewriter.config import EngineBackend
from voicewriter.dsp import remove_artifact
from voicewriter.errors import EngineError
from voicewriter.types import (
    AudioArtifact,
    NoSpeechDetected,
    TranscriptionFailed,
    TranscriptionOutcome,
    TranscriptionResult,
)

if TYPE_CHECKING:
    from voicewriter.config import EngineConfig
    from voicewriter.interfaces import TranscriptionEngine

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MLXWhisperEngine:
    """Transcribes audio files with mlx-whisper on Apple Silicon."""

    def __init__(self, config: "EngineConfig") -> None:
        self._config = config
        self._model_loaded = False

    def load(self) -> None:
        # mlx-whisper loads and caches the model on its first transcribe call
        logger.info("Whisper model will load on first use: %s", self._config.model)

    def transcribe(self, path: Path) -> str:
        import mlx_whisper

        if not self._model_loaded:
            logger.info("Loading Whisper model: %s", self._config.model)
            self._model_loaded = True

        try:
            result = mlx_whisper.transcribe(
                str(path),
                path_or_hf_repo=self._config.model,
                language=self._config.language,
            )
        except Exception as e:
            raise EngineError(f"mlx-whisper failed: {e}") from e

        text = result.get("text", "")
        return text if isinstance(text, str) else ""

    def unload(self) -> None:
        self._model_loaded = False


class FasterWhisperEngine:
    """Transcribes audio files with faster-whisper (CTranslate2)."""

    def __init__(self, config: "EngineConfig") -> None:
        self._config = config
        self._model: Any = None

    def load(self) -> None:
        if self._model is not None:
            return

        from faster_whisper import WhisperModel

        logger.info("Loading faster-whisper model: %s", self._config.model)
        t0 = time.time()
        try:
            self._model = WhisperModel(
                self._config.model,
                device=self._config.device,
                compute_type=self._config.compute_type,
            )
        except Exception as e:
            raise EngineError(f"Failed to load model {self._config.model}: {e}") from e
        logger.info("Model loaded in %.2fs", time.time() - t0)

    def transcribe(self, path: Path) -> str:
        if self._model is None:
            self.load()

        try:
            segments, _info = self._model.transcribe(
                str(path),
                language=self._config.language,
                beam_size=5,
            )
            # Segments are produced lazily; decoding happens while iterating
            return "".join(segment.text for segment in segments)
        except Exception as e:
            raise EngineError(f"faster-whisper failed: {e}") from e

    def unload(self) -> None:
        self._model = None


def create_engine(config: "EngineConfig") -> "TranscriptionEngine":
    if config.backend == EngineBackend.MLX:
        return MLXWhisperEngine(config)
    return FasterWhisperEngine(config)


class TranscriptionDispatcher:
    """Runs transcriptions on worker threads, one engine call at a time.

    The engine is not reentrant, so every call into it happens under a single
    lock. Work submitted by overlapping sessions may queue on that lock while
    other stages of earlier sessions continue on another worker.
    """

    def __init__(self, engine: "TranscriptionEngine", max_workers: int = 2) -> None:
        self._engine = engine
        self._engine_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="transcribe",
        )
        self._closed = False

    def load(self) -> None:
        """Pre-load the engine for a faster first transcription."""
        with self._engine_lock:
            self._engine.load()

    def submit(
        self,
        artifact: AudioArtifact,
        then: Optional[Callable[[TranscriptionOutcome], T]] = None,
    ) -> "Future[Any]":
        """
        Transcribe ``artifact`` on a worker thread.

        Args:
            artifact: Audio file to transcribe. The dispatcher takes ownership
                and deletes it once transcription finishes.
            then: Optional continuation, called on the same worker with the
                transcription outcome.

        Returns:
            A future resolving to the continuation's result, or to the
            outcome itself when no continuation is given.
        """
        if self._closed:
            remove_artifact(artifact.path)
            raise RuntimeError("Dispatcher is closed")
        return self._executor.submit(self._run, artifact, then)

    def _run(
        self,
        artifact: AudioArtifact,
        then: Optional[Callable[[TranscriptionOutcome], T]],
    ) -> Any:
        outcome = self.transcribe(artifact)
        if then is None:
            return outcome
        return then(outcome)

    def transcribe(self, artifact: AudioArtifact) -> TranscriptionOutcome:
        """Transcribe synchronously on the calling thread and delete the artifact."""
        logger.info("Transcribing audio (%.2fs)", artifact.duration_s)
        t0 = time.time()
        try:
            with self._engine_lock:
                raw_text = self._engine.transcribe(artifact.path)
        except EngineError as e:
            logger.error("Transcription failed: %s", e)
            return TranscriptionFailed(e)
        except Exception as e:
            logger.exception("Transcription engine raised unexpectedly")
            return TranscriptionFailed(EngineError(str(e)))
        finally:
            remove_artifact(artifact.path)
        elapsed = time.time() - t0

        text = (raw_text or "").strip()
        if not text:
            logger.info("No speech detected (%.2fs)", elapsed)
            return NoSpeechDetected(audio_duration_s=artifact.duration_s, elapsed_s=elapsed)

        logger.info("Transcribed in %.2fs: \"%s\"", elapsed, text)
        return TranscriptionResult(
            text=text,
            audio_duration_s=artifact.duration_s,
            elapsed_s=elapsed,
        )

    def close(self, wait: bool = True) -> None:
        """Let in-flight work finish, then release the engine."""
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=wait)
        with self._engine_lock:
            self._engine.unload()
