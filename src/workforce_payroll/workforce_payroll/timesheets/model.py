from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.enums import OvertimeApprovalStatus, TimesheetApprovalStatus


@dataclass(frozen=True)
class TimesheetEntry:
    """Domain entity: one timesheet line per employee per work date."""

    timesheet_id: int
    staff_id: int
    work_date: date
    total_hours: Decimal
    overtime_hours: Decimal
    approval_status: TimesheetApprovalStatus
    ot_approval_status: Optional[OvertimeApprovalStatus] = None
    project_id: Optional[int] = None
    project_name: Optional[str] = None
