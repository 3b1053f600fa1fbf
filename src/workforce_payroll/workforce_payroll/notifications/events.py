from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class SummaryEventType(str, Enum):
    GENERATED = "summary.generated"
    SIGNED = "summary.signed"
    APPROVED = "summary.approved"
    REJECTED = "summary.rejected"


@dataclass(frozen=True)
class SummaryEvent:
    """Emitted after a successful state change; consumed by the notifier."""

    event_type: SummaryEventType
    summary_id: int
    employee_id: int
    month: int
    year: int
    actor_id: Optional[int]
    occurred_at: datetime
    remarks: Optional[str] = None
