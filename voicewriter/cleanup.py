"""Transcript cleanup through a local chat model, with bounded retries."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

import httpx

from voicewriter.errors import CleanupError, CleanupNetworkError, CleanupServiceError

if TYPE_CHECKING:
    from voicewriter.config import CleanupConfig
    from voicewriter.interfaces import CleanupService

logger = logging.getLogger(__name__)

DEFAULT_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 1.0
ERROR_BODY_LIMIT = 200


class OllamaCleanupClient:
    """Sends a transcript to an Ollama-compatible ``/api/chat`` endpoint."""

    def __init__(
        self,
        config: "CleanupConfig",
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport

    @property
    def url(self) -> str:
        return f"{self._config.base_url}/api/chat"

    def _new_client(self) -> httpx.Client:
        # A fresh client per request; pooled connections can go stale between dictations
        timeout = httpx.Timeout(
            self._config.request_timeout_s,
            connect=self._config.connect_timeout_s,
        )
        return httpx.Client(timeout=timeout, transport=self._transport)

    def complete(self, text: str) -> str:
        payload = {
            "model": self._config.model,
            "stream": False,
            "messages": [
                {"role": "system", "content": self._config.system_prompt},
                {"role": "user", "content": text},
            ],
        }

        try:
            with self._new_client() as client:
                response = client.post(self.url, json=payload)
        except httpx.TimeoutException as e:
            raise CleanupNetworkError(f"Cleanup request timed out: {e}") from e
        except httpx.RequestError as e:
            raise CleanupNetworkError(f"Cleanup request failed: {e}") from e
        except (httpx.InvalidURL, httpx.HTTPError) as e:
            raise CleanupNetworkError(f"Cleanup request could not be sent to {self.url}: {e}") from e

        if response.status_code != 200:
            raise CleanupServiceError(
                f"Cleanup service error ({response.status_code}): "
                f"{response.text[:ERROR_BODY_LIMIT]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise CleanupServiceError(f"Failed to parse cleanup response: {e}") from e

        message = data.get("message") if isinstance(data, dict) else None
        content = message.get("content", "") if isinstance(message, dict) else ""
        if not isinstance(content, str) or not content.strip():
            raise CleanupServiceError("Cleanup service returned an empty response")
        return content.strip()


@dataclass
class RetryState:
    attempts: int = 0
    last_error: Optional[CleanupError] = None

    def record(self, error: CleanupError) -> None:
        self.attempts += 1
        self.last_error = error


class PostProcessRetry:
    """Calls a cleanup service up to ``attempts`` times with a fixed backoff."""

    def __init__(
        self,
        service: "CleanupService",
        attempts: int = DEFAULT_ATTEMPTS,
        backoff_s: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self._service = service
        self._attempts = attempts
        self._backoff_s = backoff_s
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: "CleanupConfig") -> "PostProcessRetry":
        return cls(
            OllamaCleanupClient(config),
            attempts=config.attempts,
            backoff_s=config.backoff_s,
        )

    def run(self, text: str) -> str:
        """
        Clean up ``text``.

        Returns:
            The trimmed cleaned text.

        Raises:
            CleanupError: The error from the last attempt, once all attempts failed.
        """
        state = RetryState()
        for attempt in range(1, self._attempts + 1):
            if attempt > 1:
                self._sleep(self._backoff_s)
            try:
                t0 = time.time()
                cleaned = self._service.complete(text).strip()
                logger.info("Cleanup done in %.2fs", time.time() - t0)
                return cleaned
            except CleanupError as e:
                state.record(e)
                logger.warning(
                    "Cleanup attempt %d/%d failed: %s", attempt, self._attempts, e
                )

        assert state.last_error is not None
        raise state.last_error
