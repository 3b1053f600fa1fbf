from __future__ import annotations

from datetime import date
from typing import Protocol, Set


class AttendanceRepository(Protocol):
    def find_attendance_dates(self, *, user_id: int, start_date: date, end_date: date) -> Set[date]:
        """Distinct calendar dates with a check-in in [start_date, end_date]."""

        raise NotImplementedError
