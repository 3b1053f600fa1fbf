from __future__ import annotations

from datetime import date
from typing import AbstractSet, Protocol, Sequence

from ..core.enums import TimesheetApprovalStatus
from .model import TimesheetEntry


class TimesheetRepository(Protocol):
    def find_countable_timesheets(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        statuses: AbstractSet[TimesheetApprovalStatus],
    ) -> Sequence[TimesheetEntry]:
        """Entries in [start_date, end_date] whose approval status is in ``statuses``."""

        raise NotImplementedError
