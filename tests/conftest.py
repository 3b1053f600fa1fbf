from __future__ import annotations

import threading
import time
from dataclasses import replace
from datetime import date, datetime

import pytest

from src.workforce_payroll.workforce_payroll.core.enums import LeaveStatus, SummaryStatus
from src.workforce_payroll.workforce_payroll.core.exceptions import ConflictError, InvalidTransitionError
from src.workforce_payroll.workforce_payroll.invoices.service import InvoiceNumberingService
from src.workforce_payroll.workforce_payroll.notifications.publisher import QueueEventPublisher
from src.workforce_payroll.workforce_payroll.payroll.service import PayrollService
from src.workforce_payroll.workforce_payroll.summaries.aggregator import SummaryAggregator
from src.workforce_payroll.workforce_payroll.summaries.model import MonthlySummary
from src.workforce_payroll.workforce_payroll.summaries.service import SummaryService

FIXED_NOW = datetime(2024, 4, 2, 9, 0, 0)


class FakeEmployeesRepo:
    def __init__(self):
        self.items = {}

    def add(self, employee):
        self.items[employee.employee_id] = employee
        return employee

    def get_by_id(self, employee_id):
        return self.items.get(int(employee_id))

    def get_by_user_id(self, user_id):
        for e in self.items.values():
            if e.user_id == int(user_id):
                return e
        return None

    def list_all(self):
        return [e for e in sorted(self.items.values(), key=lambda e: e.name) if e.email]


class FakeAttendanceRepo:
    def __init__(self):
        self.dates: dict[int, set[date]] = {}

    def add(self, user_id, *days):
        self.dates.setdefault(int(user_id), set()).update(days)

    def find_attendance_dates(self, *, user_id, start_date, end_date):
        return {d for d in self.dates.get(int(user_id), set()) if start_date <= d <= end_date}


class FakeTimesheetRepo:
    def __init__(self):
        self.entries = []

    def add(self, entry):
        self.entries.append(entry)

    def find_countable_timesheets(self, *, employee_id, start_date, end_date, statuses):
        return [
            e
            for e in self.entries
            if e.staff_id == int(employee_id) and start_date <= e.work_date <= end_date and e.approval_status in statuses
        ]


class FakeLeaveRepo:
    def __init__(self):
        self.leaves = []

    def add(self, leave):
        self.leaves.append(leave)

    def find_approved_leaves(self, *, employee_id, start_date, end_date):
        return [
            lv
            for lv in self.leaves
            if lv.employee_id == int(employee_id)
            and lv.status == LeaveStatus.APPROVED
            and lv.start_date <= end_date
            and lv.end_date >= start_date
        ]


class FakeInvoiceSequenceRepo:
    """Deliberately non-atomic read/sleep/write so missing locking shows up."""

    def __init__(self, delay: float = 0.0):
        self.last: dict[tuple[int, int], int] = {}
        self.delay = delay

    def issue_next_sequence(self, *, month, year):
        current = self.last.get((year, month), 0)
        if self.delay:
            time.sleep(self.delay)
        self.last[(year, month)] = current + 1
        return current + 1


class FakeSummaryRepo:
    def __init__(self, employees: FakeEmployeesRepo | None = None):
        self.items: dict[int, MonthlySummary] = {}
        self._next_id = 1
        self._lock = threading.Lock()
        self._employees = employees

    def _with_names(self, s: MonthlySummary) -> MonthlySummary:
        emp = self._employees.get_by_id(s.employee_id) if self._employees else None
        if not emp:
            return s
        return replace(s, employee_name=emp.name, employee_email=emp.email)

    def get_by_id(self, summary_id):
        s = self.items.get(int(summary_id))
        return self._with_names(s) if s else None

    def get_many(self, summary_ids):
        return [self._with_names(self.items[int(i)]) for i in summary_ids if int(i) in self.items]

    def find_for_period(self, *, employee_id, month, year):
        for s in self.items.values():
            if (s.employee_id, s.month, s.year) == (int(employee_id), int(month), int(year)):
                return self._with_names(s)
        return None

    def upsert(self, draft, *, now):
        t, p = draft.totals, draft.payroll
        figures = dict(
            total_working_days=t.total_working_days,
            total_worked_hours=t.total_worked_hours,
            total_ot_hours=t.total_ot_hours,
            approved_leaves=t.approved_leaves,
            absent_days=t.absent_days,
            project_breakdown=tuple(t.project_breakdown),
            payment_type=p.payment_type,
            subtotal=p.subtotal,
            tax_percentage=p.tax_percentage,
            tax_amount=p.tax_amount,
            total_amount=p.total_amount,
        )
        with self._lock:
            existing = self.find_for_period(employee_id=draft.employee_id, month=draft.month, year=draft.year)
            if existing is None:
                sid = self._next_id
                self._next_id += 1
                self.items[sid] = MonthlySummary(
                    summary_id=sid,
                    employee_id=draft.employee_id,
                    month=draft.month,
                    year=draft.year,
                    invoice_number=draft.invoice_number,
                    created_by=draft.created_by,
                    created_at=now,
                    updated_at=now,
                    **figures,
                )
                return self.get_by_id(sid)

            if existing.status == SummaryStatus.APPROVED:
                raise ConflictError("Monthly summary already approved. Cannot regenerate.")

            self.items[existing.summary_id] = replace(
                self.items[existing.summary_id],
                invoice_number=draft.invoice_number or existing.invoice_number,
                status=SummaryStatus.DRAFT,
                staff_signature=None,
                staff_signed_at=None,
                staff_signed_by=None,
                admin_signature=None,
                admin_approved_at=None,
                admin_approved_by=None,
                admin_remarks=None,
                created_by=draft.created_by or existing.created_by,
                updated_at=now,
                **figures,
            )
            return self.get_by_id(existing.summary_id)

    def list(self, *, employee_id=None, month=None, year=None, status=None, limit=500):
        rows = [
            s
            for s in self.items.values()
            if (employee_id is None or s.employee_id == employee_id)
            and (month is None or s.month == month)
            and (year is None or s.year == year)
            and (status is None or s.status == status)
        ]
        rows.sort(key=lambda s: (-s.year, -s.month, s.summary_id))
        return [self._with_names(s) for s in rows[:limit]]

    def sign_by_staff(self, *, summary_id, expected_status, signature, signed_by, signed_at):
        with self._lock:
            s = self.items.get(int(summary_id))
            if not s or s.status != expected_status:
                return False
            self.items[s.summary_id] = replace(
                s,
                staff_signature=signature,
                staff_signed_at=signed_at,
                staff_signed_by=signed_by,
                admin_signature=None,
                admin_approved_at=None,
                admin_approved_by=None,
                status=SummaryStatus.SIGNED_BY_STAFF,
                updated_at=signed_at,
            )
            return True

    def decide(self, *, summary_id, status, admin_signature, decided_by, decided_at, remarks):
        with self._lock:
            s = self.items.get(int(summary_id))
            if not s or s.status != SummaryStatus.SIGNED_BY_STAFF:
                return False
            self.items[s.summary_id] = replace(
                s,
                admin_signature=admin_signature,
                admin_approved_at=decided_at,
                admin_approved_by=decided_by,
                admin_remarks=remarks,
                status=status,
                updated_at=decided_at,
            )
            return True

    def bulk_approve(self, *, summary_ids, admin_signature, approved_by, approved_at, remarks):
        with self._lock:
            ids = sorted({int(i) for i in summary_ids})
            bad = [i for i in ids if i not in self.items or self.items[i].status != SummaryStatus.SIGNED_BY_STAFF]
            if bad:
                raise InvalidTransitionError(f"Cannot approve {len(bad)} summary/summaries that are not signed by staff")
            for i in ids:
                self.items[i] = replace(
                    self.items[i],
                    admin_signature=admin_signature,
                    admin_approved_at=approved_at,
                    admin_approved_by=approved_by,
                    admin_remarks=remarks,
                    status=SummaryStatus.APPROVED,
                    updated_at=approved_at,
                )
            return [self.get_by_id(i) for i in ids]


@pytest.fixture
def employees():
    return FakeEmployeesRepo()


@pytest.fixture
def attendance():
    return FakeAttendanceRepo()


@pytest.fixture
def timesheets():
    return FakeTimesheetRepo()


@pytest.fixture
def leaves():
    return FakeLeaveRepo()


@pytest.fixture
def invoice_sequences():
    return FakeInvoiceSequenceRepo()


@pytest.fixture
def slow_invoice_sequences():
    return FakeInvoiceSequenceRepo(delay=0.001)


@pytest.fixture
def summaries_repo(employees):
    return FakeSummaryRepo(employees)


@pytest.fixture
def publisher():
    return QueueEventPublisher()


@pytest.fixture
def aggregator(attendance, timesheets, leaves):
    return SummaryAggregator(attendance, timesheets, leaves)


@pytest.fixture
def service(summaries_repo, employees, aggregator, invoice_sequences, publisher):
    return SummaryService(
        summaries_repo,
        employees,
        aggregator,
        PayrollService(),
        InvoiceNumberingService(invoice_sequences),
        publisher=publisher,
        clock=lambda: FIXED_NOW,
    )
