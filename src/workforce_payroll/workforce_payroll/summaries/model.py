from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from ..common.decimal_utils import to_decimal, to_number
from ..core.enums import PaymentType, SummaryStatus


@dataclass(frozen=True)
class ProjectBreakdownItem:
    project_id: Optional[int]
    project_name: str
    days_worked: int
    total_hours: Decimal
    ot_hours: Decimal

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "project_name": self.project_name,
            "days_worked": self.days_worked,
            "total_hours": to_number(self.total_hours),
            "ot_hours": to_number(self.ot_hours),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ProjectBreakdownItem":
        return cls(
            project_id=int(data["project_id"]) if data.get("project_id") is not None else None,
            project_name=str(data.get("project_name") or ""),
            days_worked=int(data.get("days_worked") or 0),
            total_hours=to_decimal(data.get("total_hours")),
            ot_hours=to_decimal(data.get("ot_hours")),
        )


@dataclass(frozen=True)
class AggregateTotals:
    """Raw monthly totals produced by the aggregator (no money yet)."""

    total_working_days: int
    total_worked_hours: Decimal
    total_ot_hours: Decimal
    approved_leaves: Decimal
    absent_days: int
    working_days_in_month: int
    project_breakdown: tuple[ProjectBreakdownItem, ...] = ()


@dataclass(frozen=True)
class PayrollFigures:
    payment_type: PaymentType
    subtotal: Decimal
    tax_percentage: Decimal
    tax_amount: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class MonthlySummary:
    """Domain entity: one employee's monthly summary.

    Money stays ``Decimal`` here; ``to_dict`` is the only place it becomes a
    JSON number.
    """

    summary_id: int
    employee_id: int
    month: int
    year: int

    total_working_days: int = 0
    total_worked_hours: Decimal = Decimal("0")
    total_ot_hours: Decimal = Decimal("0")
    approved_leaves: Decimal = Decimal("0")
    absent_days: int = 0
    project_breakdown: tuple[ProjectBreakdownItem, ...] = ()

    payment_type: Optional[PaymentType] = None
    subtotal: Decimal = Decimal("0")
    tax_percentage: Decimal = Decimal("0")
    tax_amount: Decimal = Decimal("0")
    total_amount: Decimal = Decimal("0")
    invoice_number: Optional[str] = None

    status: SummaryStatus = SummaryStatus.DRAFT
    staff_signature: Optional[str] = None
    staff_signed_at: Optional[datetime] = None
    staff_signed_by: Optional[int] = None
    admin_signature: Optional[str] = None
    admin_approved_at: Optional[datetime] = None
    admin_approved_by: Optional[int] = None
    admin_remarks: Optional[str] = None

    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Read-model extras filled by joins (not persisted on the summary row).
    employee_name: Optional[str] = field(default=None, compare=False)
    employee_email: Optional[str] = field(default=None, compare=False)

    def to_dict(self) -> dict[str, Any]:
        def _ts(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "id": self.summary_id,
            "employee_id": self.employee_id,
            "employee_name": self.employee_name,
            "employee_email": self.employee_email,
            "month": self.month,
            "year": self.year,
            "total_working_days": self.total_working_days,
            "total_worked_hours": to_number(self.total_worked_hours),
            "total_ot_hours": to_number(self.total_ot_hours),
            "approved_leaves": to_number(self.approved_leaves),
            "absent_days": self.absent_days,
            "project_breakdown": [item.to_dict() for item in self.project_breakdown],
            "payment_type": self.payment_type.value if self.payment_type else None,
            "subtotal": to_number(self.subtotal),
            "tax_percentage": to_number(self.tax_percentage),
            "tax_amount": to_number(self.tax_amount),
            "total_amount": to_number(self.total_amount),
            "invoice_number": self.invoice_number,
            "status": self.status.value,
            "staff_signature": self.staff_signature,
            "staff_signed_at": _ts(self.staff_signed_at),
            "staff_signed_by": self.staff_signed_by,
            "admin_signature": self.admin_signature,
            "admin_approved_at": _ts(self.admin_approved_at),
            "admin_approved_by": self.admin_approved_by,
            "admin_remarks": self.admin_remarks,
            "created_by": self.created_by,
            "created_at": _ts(self.created_at),
            "updated_at": _ts(self.updated_at),
        }


@dataclass(frozen=True)
class SummaryDraft:
    """Fully computed figures handed to the repository upsert."""

    employee_id: int
    month: int
    year: int
    totals: AggregateTotals
    payroll: PayrollFigures
    invoice_number: Optional[str]
    created_by: Optional[int] = None


@dataclass
class GenerationResults:
    """Outcome of a generate-all batch; one entry per employee."""

    total: int = 0
    success: list[dict] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"total": self.total, "success": list(self.success), "failed": list(self.failed)}
