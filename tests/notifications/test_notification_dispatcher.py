from __future__ import annotations

import threading
from datetime import datetime

from src.workforce_payroll.workforce_payroll.employees.model import Employee
from src.workforce_payroll.workforce_payroll.invoices.service import InvoiceNumberingService
from src.workforce_payroll.workforce_payroll.notifications.events import SummaryEvent, SummaryEventType
from src.workforce_payroll.workforce_payroll.notifications.publisher import (
    NotificationDispatcher,
    QueueEventPublisher,
)
from src.workforce_payroll.workforce_payroll.payroll.service import PayrollService
from src.workforce_payroll.workforce_payroll.summaries.service import SummaryService


def _event(summary_id=1, event_type=SummaryEventType.APPROVED):
    return SummaryEvent(
        event_type=event_type,
        summary_id=summary_id,
        employee_id=7,
        month=3,
        year=2024,
        actor_id=1,
        occurred_at=datetime(2024, 4, 2, 9, 0),
    )


class RecordingNotifier:
    def __init__(self, fail_on=None):
        self.seen = []
        self.fail_on = fail_on
        self.done = threading.Event()

    def notify(self, event):
        if event.summary_id == self.fail_on:
            raise RuntimeError("smtp down")
        self.seen.append(event.summary_id)
        self.done.set()


def test_drain_delivers_in_order():
    pub = QueueEventPublisher()
    notifier = RecordingNotifier()
    pub.publish(_event(1))
    pub.publish(_event(2))

    assert NotificationDispatcher(pub, notifier).drain() == 2
    assert notifier.seen == [1, 2]


def test_notifier_failure_does_not_stop_delivery():
    pub = QueueEventPublisher()
    notifier = RecordingNotifier(fail_on=1)
    pub.publish(_event(1))
    pub.publish(_event(2))

    NotificationDispatcher(pub, notifier).drain()
    assert notifier.seen == [2]


def test_full_queue_drops_without_raising():
    pub = QueueEventPublisher(maxsize=1)
    pub.publish(_event(1))
    pub.publish(_event(2))

    assert pub.queue.qsize() == 1


def test_background_thread_delivers():
    pub = QueueEventPublisher()
    notifier = RecordingNotifier()
    dispatcher = NotificationDispatcher(pub, notifier)
    dispatcher.start()
    try:
        pub.publish(_event(5))
        assert notifier.done.wait(timeout=5)
    finally:
        dispatcher.stop()
    assert notifier.seen == [5]


class BrokenPublisher:
    def publish(self, event):
        raise RuntimeError("queue gone")


def test_service_survives_a_broken_publisher(summaries_repo, employees, aggregator, invoice_sequences):
    service = SummaryService(
        summaries_repo,
        employees,
        aggregator,
        PayrollService(),
        InvoiceNumberingService(invoice_sequences),
        publisher=BrokenPublisher(),
    )
    employees.add(Employee(employee_id=8, name="Nam", email="nam@example.com", user_id=80))

    summary = service.generate(employee_id=8, month=3, year=2024)
    assert summaries_repo.get_by_id(summary.summary_id) is not None
