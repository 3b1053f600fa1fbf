from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ..core.enums import PaymentType
from .calculator.base import PayrollCalculator
from .calculator.contract_calculator import ContractPayrollCalculator
from .calculator.daily_calculator import DailyPayrollCalculator
from .calculator.hourly_calculator import HourlyPayrollCalculator
from .calculator.monthly_calculator import MonthlyPayrollCalculator
from .calculator.unpaid_calculator import UnpaidPayrollCalculator


def _default_calculators() -> dict[PaymentType, PayrollCalculator]:
    return {
        PaymentType.HOURLY: HourlyPayrollCalculator(),
        PaymentType.DAILY: DailyPayrollCalculator(),
        PaymentType.MONTHLY: MonthlyPayrollCalculator(),
        PaymentType.CONTRACT: ContractPayrollCalculator(),
    }


@dataclass
class PayrollCalculatorFactory:
    """Factory Pattern: choose the payroll strategy for a payment model."""

    calculators: dict[PaymentType, PayrollCalculator] = field(default_factory=_default_calculators)

    def for_payment_type(self, payment_type: Optional[PaymentType]) -> PayrollCalculator:
        if payment_type is None:
            return UnpaidPayrollCalculator()
        return self.calculators.get(payment_type) or UnpaidPayrollCalculator()
