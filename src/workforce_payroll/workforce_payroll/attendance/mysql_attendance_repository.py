from __future__ import annotations

from datetime import date, datetime
from typing import Set

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_attendance_dates(self, *, user_id: int, start_date: date, end_date: date) -> Set[date]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT DISTINCT DATE(check_in_time) AS work_date
                FROM attendance_logs
                WHERE user_id=%s
                  AND DATE(check_in_time) BETWEEN %s AND %s
                """,
                (int(user_id), start_date, end_date),
            )
            out: Set[date] = set()
            for r in fetchall(cur):
                value = r["work_date"]
                if isinstance(value, datetime):
                    value = value.date()
                out.add(value)
            return out
