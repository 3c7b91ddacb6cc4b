"""Desktop notifications for break reminders and reports."""

from __future__ import annotations

import logging
from typing import Optional

from plyer import notification as plyer_notification  # type: ignore[import-not-found]

from .errors import NotifyFailed

logger = logging.getLogger(__name__)


class Notifier:
    """Thin wrapper over plyer; ``timeout=0`` keeps the message until dismissed.

    Any backend error (a missing implementation, a dbus failure) is reported
    as ``NotifyFailed``.
    """

    def __init__(self, app_name: str = "timefor", timeout: int = 5) -> None:
        self.app_name = app_name
        self.timeout = timeout

    def send(
        self,
        title: str,
        body: str,
        urgent: bool = False,
        timeout: Optional[int] = None,
    ) -> None:
        if urgent:
            timeout = 0
        elif timeout is None:
            timeout = self.timeout
        logger.debug("Notify %r (urgent=%s, timeout=%s)", title, urgent, timeout)
        try:
            plyer_notification.notify(
                title=title,
                message=body,
                app_name=self.app_name,
                timeout=timeout,
            )
        except Exception as exc:
            raise NotifyFailed(f"cannot send notification: {exc}") from exc
