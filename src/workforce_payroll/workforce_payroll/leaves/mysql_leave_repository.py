from __future__ import annotations

from datetime import date
from typing import Sequence

from ..common.decimal_utils import to_decimal
from ..core.enums import LeaveStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import LeaveRequest
from .repository import LeaveRepository


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_approved_leaves(self, *, employee_id: int, start_date: date, end_date: date) -> Sequence[LeaveRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT leave_id, employee_id, start_date, end_date, number_of_days, status
                FROM leave_requests
                WHERE employee_id=%s
                  AND status=%s
                  AND start_date <= %s
                  AND end_date >= %s
                ORDER BY start_date ASC
                """,
                (int(employee_id), LeaveStatus.APPROVED.value, end_date, start_date),
            )
            return [
                LeaveRequest(
                    leave_id=int(r["leave_id"]),
                    employee_id=int(r["employee_id"]),
                    start_date=r["start_date"],
                    end_date=r["end_date"],
                    number_of_days=to_decimal(r.get("number_of_days")),
                    status=LeaveStatus(r["status"]),
                )
                for r in fetchall(cur)
            ]
