from __future__ import annotations

import logging
import queue
import threading
from typing import Optional, Protocol

from .events import SummaryEvent

logger = logging.getLogger(__name__)


class EventPublisher(Protocol):
    def publish(self, event: SummaryEvent) -> None:
        """Must never raise; the core does not wait on delivery."""

        raise NotImplementedError


class Notifier(Protocol):
    def notify(self, event: SummaryEvent) -> None:
        raise NotImplementedError


class LoggingNotifier:
    """Default notifier: writes the event to the log (email lives elsewhere)."""

    def notify(self, event: SummaryEvent) -> None:
        logger.info(
            "Notification %s summary=%s employee=%s period=%04d-%02d actor=%s",
            event.event_type.value,
            event.summary_id,
            event.employee_id,
            event.year,
            event.month,
            event.actor_id,
        )


class QueueEventPublisher(EventPublisher):
    def __init__(self, maxsize: int = 1000):
        self.queue: "queue.Queue[SummaryEvent]" = queue.Queue(maxsize=maxsize)

    def publish(self, event: SummaryEvent) -> None:
        try:
            self.queue.put_nowait(event)
        except queue.Full:
            logger.warning("Notification queue full, dropping %s for summary %s", event.event_type.value, event.summary_id)


class NotificationDispatcher:
    """Drains a QueueEventPublisher into a Notifier on a daemon thread.

    Notifier failures are logged and swallowed: a failed email must not undo
    an approval that already committed.
    """

    def __init__(self, publisher: QueueEventPublisher, notifier: Optional[Notifier] = None):
        self._queue = publisher.queue
        self._notifier = notifier or LoggingNotifier()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _deliver(self, event: SummaryEvent) -> None:
        try:
            self._notifier.notify(event)
        except Exception:
            logger.exception("Failed to deliver %s for summary %s", event.event_type.value, event.summary_id)

    def drain(self) -> int:
        """Deliver everything queued right now, synchronously."""
        delivered = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return delivered
            self._deliver(event)
            self._queue.task_done()
            delivered += 1

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                event = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue
            self._deliver(event)
            self._queue.task_done()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="summary-notifier", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None
