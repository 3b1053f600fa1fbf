from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from ..core.enums import LeaveStatus


@dataclass(frozen=True)
class LeaveRequest:
    leave_id: int
    employee_id: int
    start_date: date
    end_date: date
    number_of_days: Decimal
    status: LeaveStatus
