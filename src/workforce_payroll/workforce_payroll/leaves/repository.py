from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import LeaveRequest


class LeaveRepository(Protocol):
    def find_approved_leaves(self, *, employee_id: int, start_date: date, end_date: date) -> Sequence[LeaveRequest]:
        """Approved requests whose [start, end] interval intersects [start_date, end_date]."""

        raise NotImplementedError
