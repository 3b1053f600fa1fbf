from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from ..core.enums import PaymentType


@dataclass(frozen=True)
class Employee:
    """Domain entity: Employee (read-only to payroll).

    Note: ``user_id`` is the linked login; attendance logs and summary
    sign-off are keyed by it, timesheets and leaves by ``employee_id``.
    """

    employee_id: int
    name: str
    email: Optional[str]
    user_id: Optional[int]
    payment_type: PaymentType = PaymentType.NONE
    hourly_rate: Optional[Decimal] = None
    daily_rate: Optional[Decimal] = None
    monthly_rate: Optional[Decimal] = None
    contract_rate: Optional[Decimal] = None
    role: Optional[str] = None

    @property
    def rate(self) -> Optional[Decimal]:
        """Rate matching the payment model, None when not configured."""
        return {
            PaymentType.HOURLY: self.hourly_rate,
            PaymentType.DAILY: self.daily_rate,
            PaymentType.MONTHLY: self.monthly_rate,
            PaymentType.CONTRACT: self.contract_rate,
        }.get(self.payment_type)
