from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import AbstractSet, Iterable, Optional

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_bounds, ranges_overlap, weekday_count
from ..core.constants import UNASSIGNED_PROJECT_NAME
from ..core.enums import OvertimeApprovalStatus, TimesheetApprovalStatus
from ..core.exceptions import NotFoundError
from ..employees.model import Employee
from ..leaves.repository import LeaveRepository
from ..timesheets.model import TimesheetEntry
from ..timesheets.repository import TimesheetRepository
from .model import AggregateTotals, ProjectBreakdownItem

DEFAULT_COUNTABLE_STATUSES = frozenset({TimesheetApprovalStatus.APPROVED})


@dataclass
class _ProjectBucket:
    project_id: Optional[int]
    project_name: str
    dates: set[date] = field(default_factory=set)
    total_hours: Decimal = Decimal("0")
    ot_hours: Decimal = Decimal("0")


class SummaryAggregator:
    """Reads attendance, timesheets and leave for one employee-month.

    ``countable_statuses`` decides which timesheet approval states feed the
    totals. With ``ot_requires_approval`` overtime only counts once its own
    OT approval is ``Approved``.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        timesheets: TimesheetRepository,
        leaves: LeaveRepository,
        *,
        countable_statuses: AbstractSet[TimesheetApprovalStatus] = DEFAULT_COUNTABLE_STATUSES,
        ot_requires_approval: bool = True,
    ):
        self._attendance = attendance
        self._timesheets = timesheets
        self._leaves = leaves
        self._countable = frozenset(countable_statuses)
        self._ot_requires_approval = bool(ot_requires_approval)

    @property
    def countable_statuses(self) -> frozenset[TimesheetApprovalStatus]:
        return self._countable

    def aggregate(self, employee: Employee, month: int, year: int) -> AggregateTotals:
        if employee.user_id is None:
            raise NotFoundError(f"Employee {employee.employee_id} has no linked login")

        start, end = month_bounds(month, year)

        work_dates = self._attendance.find_attendance_dates(user_id=employee.user_id, start_date=start, end_date=end)
        total_working_days = len({d for d in work_dates if start <= d <= end})

        entries = [
            e
            for e in self._timesheets.find_countable_timesheets(
                employee_id=employee.employee_id,
                start_date=start,
                end_date=end,
                statuses=self._countable,
            )
            if e.approval_status in self._countable and start <= e.work_date <= end
        ]
        total_worked_hours = sum((e.total_hours for e in entries), Decimal("0"))
        total_ot_hours = sum((self._ot_hours(e) for e in entries), Decimal("0"))

        approved_leaves = sum(
            (
                lv.number_of_days
                for lv in self._leaves.find_approved_leaves(
                    employee_id=employee.employee_id, start_date=start, end_date=end
                )
                if ranges_overlap(lv.start_date, lv.end_date, start, end)
            ),
            Decimal("0"),
        )

        working_days_in_month = weekday_count(month, year)
        absent_days = max(0, working_days_in_month - total_working_days - math.floor(approved_leaves))

        return AggregateTotals(
            total_working_days=total_working_days,
            total_worked_hours=total_worked_hours,
            total_ot_hours=total_ot_hours,
            approved_leaves=approved_leaves,
            absent_days=int(absent_days),
            working_days_in_month=working_days_in_month,
            project_breakdown=self._breakdown(entries),
        )

    def _ot_hours(self, entry: TimesheetEntry) -> Decimal:
        if self._ot_requires_approval and entry.ot_approval_status != OvertimeApprovalStatus.APPROVED:
            return Decimal("0")
        return entry.overtime_hours

    def _breakdown(self, entries: Iterable[TimesheetEntry]) -> tuple[ProjectBreakdownItem, ...]:
        buckets: dict[Optional[int], _ProjectBucket] = {}
        for e in entries:
            bucket = buckets.get(e.project_id)
            if not bucket:
                name = (e.project_name or UNASSIGNED_PROJECT_NAME) if e.project_id is not None else UNASSIGNED_PROJECT_NAME
                bucket = _ProjectBucket(project_id=e.project_id, project_name=name)
                buckets[e.project_id] = bucket
            bucket.dates.add(e.work_date)
            bucket.total_hours += e.total_hours
            bucket.ot_hours += self._ot_hours(e)

        items = [
            ProjectBreakdownItem(
                project_id=b.project_id,
                project_name=b.project_name,
                days_worked=len(b.dates),
                total_hours=b.total_hours,
                ot_hours=b.ot_hours,
            )
            for b in buckets.values()
        ]
        items.sort(key=lambda x: (-x.total_hours, x.project_name))
        return tuple(items)
