"""Delivery of final text to output sinks."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from voicewriter.config import OutputMode
from voicewriter.errors import OutputError

if TYPE_CHECKING:
    from concurrent.futures import Future

logger = logging.getLogger(__name__)


class OutputSink(ABC):
    """Abstract base class for output sinks."""

    name = "output"

    @abstractmethod
    def output(self, text: str) -> None:
        """Deliver the text. Raises OutputError on failure."""
        ...


class OutputFanout:
    """Dispatches text to the sinks selected by the output mode.

    In BOTH mode the two sinks run concurrently and both are always
    attempted; the first failure in sink order is raised afterwards.
    """

    def __init__(self, mode: OutputMode, typer: OutputSink, clipboard: OutputSink) -> None:
        self._mode = mode
        self._typer = typer
        self._clipboard = clipboard

    @property
    def sinks(self) -> tuple[OutputSink, ...]:
        if self._mode == OutputMode.TYPING:
            return (self._typer,)
        if self._mode == OutputMode.CLIPBOARD:
            return (self._clipboard,)
        return (self._typer, self._clipboard)

    def deliver(self, text: str) -> None:
        sinks = self.sinks
        if len(sinks) == 1:
            _call_sink(sinks[0], text)
            return

        futures: list["Future[None]"] = []
        with ThreadPoolExecutor(max_workers=len(sinks), thread_name_prefix="output") as pool:
            for sink in sinks:
                futures.append(pool.submit(_call_sink, sink, text))

        errors = [f.exception() for f in futures if f.exception() is not None]
        if errors:
            raise errors[0]  # type: ignore[misc]


def _call_sink(sink: OutputSink, text: str) -> None:
    try:
        sink.output(text)
    except OutputError as e:
        logger.error("Output sink %s failed: %s", sink.name, e)
        raise
    except Exception as e:
        logger.error("Output sink %s failed: %s", sink.name, e)
        raise OutputError(f"{sink.name} failed: {e}") from e
