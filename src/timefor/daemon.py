"""Background loop that keeps the current activity fresh and reminds about breaks."""

from __future__ import annotations

import logging
import subprocess
import threading
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

from .config import DaemonSettings
from .db import open_database
from .errors import HookFailed, NotifyFailed, TemplateError
from .models import Activity, timestamp
from .notifier import Notifier
from .presenter import display_fields, format_duration, render
from .reporting import active_duration
from .tracker import latest, update_if_exists

logger = logging.getLogger(__name__)

# Reminders become urgent once the run is this much longer than the break interval.
URGENT_FACTOR = 1.2


@dataclass(slots=True)
class DaemonState:
    notified_at: Optional[int] = None
    last_hook: Optional[str] = None


class Daemon:
    """Polls the log store at a fixed interval.

    Nothing but the log store is persisted: the time of the last reminder is
    kept in memory and resets when the process restarts.
    """

    def __init__(
        self,
        db_path: Path,
        settings: DaemonSettings,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.db_path = Path(db_path)
        self.settings = settings
        self.notifier = notifier or Notifier()
        self._conn = open_database(self.db_path)
        self._state = DaemonState()

    @property
    def state(self) -> DaemonState:
        return self._state

    def run_forever(self) -> None:
        stop_event = threading.Event()
        try:
            self._run_loop(stop_event)
        except KeyboardInterrupt:
            logger.info("Daemon interrupted.")
        finally:
            self._shutdown()

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        """Run the daemon until the provided event is set."""
        try:
            self._run_loop(stop_event)
        finally:
            self._shutdown()

    def tick(self, now: Optional[float] = None) -> None:
        now_ts = timestamp(now)
        activity = latest(self._conn)
        if self.settings.hook:
            self._run_hook(self.settings.hook, activity, now_ts)

        if not activity.active(now_ts):
            return
        since_update = now_ts - activity.updated_at(now_ts)
        if since_update <= self.settings.update_interval.total_seconds():
            return

        logger.info("Updating time for %s", activity.name)
        update_if_exists(self._conn, now=now_ts)
        duration = active_duration(self._conn, now_ts)
        self._remind_if_needed(duration, now_ts)

    def _remind_if_needed(self, duration: timedelta, now: int) -> None:
        if duration <= self.settings.break_interval:
            return
        notified_at = self._state.notified_at
        if notified_at is not None and now - notified_at <= self.settings.repeat_interval.total_seconds():
            return

        urgent = duration.total_seconds() > self.settings.break_interval.total_seconds() * URGENT_FACTOR
        logger.info("Break reminder after %s (urgent=%s)", format_duration(duration), urgent)
        try:
            self.notifier.send(
                "Take a break!",
                f"Active for {format_duration(duration)} already",
                urgent=urgent,
            )
        except NotifyFailed:
            logger.warning("Break reminder was not delivered.", exc_info=True)
        self._state.notified_at = now

    def _run_hook(self, hook: str, activity: Activity, now: int) -> None:
        try:
            command = render(display_fields(activity, now=now), hook)
        except TemplateError as exc:
            raise HookFailed(f"cannot render hook command: {exc}") from exc
        if command == self._state.last_hook:
            return

        self._state.last_hook = command
        logger.info("Running hook command: %s", command)
        result = subprocess.run(command, shell=True, check=False)
        if result.returncode != 0:
            raise HookFailed(
                f"hook command exited with status {result.returncode}: {command}"
            )

    def _run_loop(self, stop_event: threading.Event) -> None:
        logger.info("Starting daemon; watching %s", self.db_path)
        interval = self.settings.tick_interval.total_seconds()
        while not stop_event.is_set():
            self.tick()
            # Sleep in an interruptible manner.
            stop_event.wait(interval)

    def _shutdown(self) -> None:
        self._conn.close()
        logger.info("Daemon stopped.")
