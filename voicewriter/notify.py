"""Desktop notifications."""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)

APP_NAME = "voicewriter"
NOTIFY_TIMEOUT_SECONDS = 5


class DesktopNotifier:
    """Sends desktop notifications through ``notify-send``.

    Notification failures are logged and otherwise ignored.
    """

    def __init__(self, enabled: bool = True, app_name: str = APP_NAME) -> None:
        self._enabled = enabled
        self._app_name = app_name

    @property
    def enabled(self) -> bool:
        return self._enabled

    def notify(self, summary: str, body: str = "") -> None:
        if not self._enabled:
            return

        cmd = ["notify-send", "-a", self._app_name, summary]
        if body:
            cmd.append(body)
        try:
            subprocess.run(
                cmd,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=NOTIFY_TIMEOUT_SECONDS,
                check=False,
            )
        except FileNotFoundError:
            logger.debug("notify-send not available, disabling notifications")
            self._enabled = False
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("Notification failed: %s", e)
