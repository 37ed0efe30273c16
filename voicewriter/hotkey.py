"""Global push-to-talk hotkey listener backed by pynput."""

from __future__ import annotations

import logging
import queue
from typing import Optional, Union

from pynput import keyboard

from voicewriter.errors import ListenerDisconnected
from voicewriter.types import HotkeyEvent

logger = logging.getLogger(__name__)

HotkeyKey = Union[keyboard.Key, keyboard.KeyCode]

_ALIASES = {
    "scrolllock": "scroll_lock",
    "capslock": "caps_lock",
    "numlock": "num_lock",
    "printscreen": "print_screen",
    "pageup": "page_up",
    "pagedown": "page_down",
    "option": "alt",
    "option_l": "alt_l",
    "option_r": "alt_r",
}


def parse_hotkey(name: str) -> HotkeyKey:
    """
    Resolve a hotkey name to a pynput key.

    Accepts function keys (``F9``), named keys (``ScrollLock``, ``Pause``,
    ``alt_l``) and single characters.

    Raises:
        ValueError: If the name does not match a key on this platform.
    """
    raw = name.strip()
    if len(raw) == 1:
        return keyboard.KeyCode.from_char(raw.lower())

    key_name = raw.lower().replace("-", "_")
    key_name = _ALIASES.get(key_name, key_name)
    key = keyboard.Key.__members__.get(key_name)
    if key is None:
        raise ValueError(f"Unknown hotkey: {name}")
    return key


class PynputHotkeySource:
    """Turns pynput key callbacks into a queue of press/release events."""

    def __init__(self, key: HotkeyKey, key_id: int = 0) -> None:
        self._key = key
        self._key_id = key_id
        self._queue: "queue.Queue[Optional[HotkeyEvent]]" = queue.Queue()
        self._listener: keyboard.Listener | None = None
        self._held = False

    @property
    def running(self) -> bool:
        return self._listener is not None and self._listener.is_alive()

    def start(self) -> None:
        if self._listener is not None:
            return
        self._listener = keyboard.Listener(
            on_press=self._on_press,
            on_release=self._on_release,
        )
        self._listener.start()
        self._listener.wait()

    def stop(self) -> None:
        if self._listener is not None:
            self._listener.stop()
        self._queue.put(None)

    def receive(self, timeout: float) -> Optional[HotkeyEvent]:
        try:
            event = self._queue.get(timeout=timeout)
        except queue.Empty:
            if self._listener is not None and not self._listener.is_alive():
                raise ListenerDisconnected("Keyboard listener stopped")
            return None
        if event is None:
            raise ListenerDisconnected("Keyboard listener stopped")
        return event

    def _matches(self, key: Optional[HotkeyKey]) -> bool:
        if key is None:
            return False
        if isinstance(self._key, keyboard.KeyCode) and isinstance(key, keyboard.KeyCode):
            return key.char is not None and key.char.lower() == self._key.char
        return key == self._key

    def _on_press(self, key: Optional[HotkeyKey]) -> None:
        if not self._matches(key):
            return
        # Held keys auto-repeat; only the first press counts
        if self._held:
            return
        self._held = True
        self._queue.put(HotkeyEvent.pressed(self._key_id))

    def _on_release(self, key: Optional[HotkeyKey]) -> None:
        if not self._matches(key):
            return
        self._held = False
        self._queue.put(HotkeyEvent.released(self._key_id))
