from __future__ import annotations

from datetime import date
from typing import AbstractSet, Sequence

from ..common.decimal_utils import to_decimal
from ..core.enums import OvertimeApprovalStatus, TimesheetApprovalStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, in_placeholders
from .model import TimesheetEntry
from .repository import TimesheetRepository


class MySQLTimesheetRepository(TimesheetRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_countable_timesheets(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        statuses: AbstractSet[TimesheetApprovalStatus],
    ) -> Sequence[TimesheetEntry]:
        if not statuses:
            return []

        status_values = sorted(s.value for s in statuses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT t.timesheet_id, t.staff_id, t.work_date,
                       t.total_hours, t.overtime_hours,
                       t.approval_status, t.ot_approval_status,
                       t.project_id, p.name AS project_name
                FROM timesheets t
                LEFT JOIN projects p ON p.project_id = t.project_id
                WHERE t.staff_id=%s
                  AND t.work_date BETWEEN %s AND %s
                  AND t.approval_status IN ({in_placeholders(status_values)})
                ORDER BY t.work_date ASC
                """,
                tuple([int(employee_id), start_date, end_date] + status_values),
            )
            return [
                TimesheetEntry(
                    timesheet_id=int(r["timesheet_id"]),
                    staff_id=int(r["staff_id"]),
                    work_date=r["work_date"],
                    total_hours=to_decimal(r.get("total_hours")),
                    overtime_hours=to_decimal(r.get("overtime_hours")),
                    approval_status=TimesheetApprovalStatus(r["approval_status"]),
                    ot_approval_status=(
                        OvertimeApprovalStatus(r["ot_approval_status"]) if r.get("ot_approval_status") else None
                    ),
                    project_id=int(r["project_id"]) if r.get("project_id") is not None else None,
                    project_name=r.get("project_name"),
                )
                for r in fetchall(cur)
            ]
