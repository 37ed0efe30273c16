"""Thread-safe sample buffer filled by the capture callback."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray


class AudioBuffer:
    """Mono sample chunks appended by the capture callback.

    Appends are rejected once the buffer is sealed, so a late callback can
    never write into audio that has already been handed off.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._chunks: list["NDArray[np.float32]"] = []
        self._frames = 0
        self._sealed = True

    def __len__(self) -> int:
        with self._lock:
            return self._frames

    @property
    def sealed(self) -> bool:
        with self._lock:
            return self._sealed

    def open(self) -> None:
        with self._lock:
            self._chunks = []
            self._frames = 0
            self._sealed = False

    def append(self, chunk: "NDArray[np.float32]") -> bool:
        with self._lock:
            if self._sealed:
                return False
            self._chunks.append(chunk)
            self._frames += len(chunk)
            return True

    def seal_and_drain(self) -> "NDArray[np.float32]":
        with self._lock:
            self._sealed = True
            chunks, self._chunks = self._chunks, []
            self._frames = 0
        if not chunks:
            return np.zeros((0,), dtype=np.float32)
        return np.concatenate(chunks).astype(np.float32, copy=False)
