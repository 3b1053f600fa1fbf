from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .core.enums import TimesheetApprovalStatus
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .invoices.mysql_invoice_repository import MySQLInvoiceSequenceRepository
from .invoices.service import InvoiceNumberingService
from .leaves.mysql_leave_repository import MySQLLeaveRepository
from .notifications.publisher import NotificationDispatcher, Notifier, QueueEventPublisher
from .payroll.service import PayrollService
from .summaries.aggregator import DEFAULT_COUNTABLE_STATUSES, SummaryAggregator
from .summaries.mysql_summary_repository import MySQLSummaryRepository
from .summaries.service import SummaryService
from .timesheets.mysql_timesheet_repository import MySQLTimesheetRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    employees_repo: MySQLEmployeeRepository
    attendance_repo: MySQLAttendanceRepository
    timesheets_repo: MySQLTimesheetRepository
    leaves_repo: MySQLLeaveRepository
    summaries_repo: MySQLSummaryRepository
    invoice_sequences_repo: MySQLInvoiceSequenceRepository

    aggregator: SummaryAggregator
    payroll_service: PayrollService
    invoice_service: InvoiceNumberingService
    summary_service: SummaryService

    publisher: QueueEventPublisher
    dispatcher: NotificationDispatcher


def parse_timesheet_statuses(value: str | Iterable[str] | None) -> frozenset[TimesheetApprovalStatus]:
    """``"Approved,Submitted"`` -> {APPROVED, SUBMITTED}; empty means the default."""

    if value is None:
        return DEFAULT_COUNTABLE_STATUSES
    items = value.split(",") if isinstance(value, str) else list(value)
    lookup = {s.value.lower(): s for s in TimesheetApprovalStatus}
    statuses = set()
    for item in items:
        key = str(item).strip().lower()
        if not key:
            continue
        if key not in lookup:
            raise ValueError(f"Unknown timesheet status: {item}")
        statuses.add(lookup[key])
    return frozenset(statuses) or DEFAULT_COUNTABLE_STATUSES


def build_container(
    *,
    db_config: dict,
    default_tax_percentage=0,
    countable_timesheet_statuses: str | Iterable[str] | None = None,
    ot_requires_approval: bool = True,
    notifier: Optional[Notifier] = None,
) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    employees_repo = MySQLEmployeeRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    timesheets_repo = MySQLTimesheetRepository(conn)
    leaves_repo = MySQLLeaveRepository(conn)
    summaries_repo = MySQLSummaryRepository(conn)
    invoice_sequences_repo = MySQLInvoiceSequenceRepository(conn)

    aggregator = SummaryAggregator(
        attendance_repo,
        timesheets_repo,
        leaves_repo,
        countable_statuses=parse_timesheet_statuses(countable_timesheet_statuses),
        ot_requires_approval=ot_requires_approval,
    )
    payroll_service = PayrollService(default_tax_percentage=default_tax_percentage)
    invoice_service = InvoiceNumberingService(invoice_sequences_repo)

    publisher = QueueEventPublisher()
    dispatcher = NotificationDispatcher(publisher, notifier)

    summary_service = SummaryService(
        summaries_repo,
        employees_repo,
        aggregator,
        payroll_service,
        invoice_service,
        publisher=publisher,
    )

    return Container(
        conn=conn,
        employees_repo=employees_repo,
        attendance_repo=attendance_repo,
        timesheets_repo=timesheets_repo,
        leaves_repo=leaves_repo,
        summaries_repo=summaries_repo,
        invoice_sequences_repo=invoice_sequences_repo,
        aggregator=aggregator,
        payroll_service=payroll_service,
        invoice_service=invoice_service,
        summary_service=summary_service,
        publisher=publisher,
        dispatcher=dispatcher,
    )
