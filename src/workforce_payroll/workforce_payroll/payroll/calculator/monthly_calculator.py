from __future__ import annotations

from decimal import Decimal

from ...summaries.model import AggregateTotals
from .base import PayrollCalculator


class MonthlyPayrollCalculator(PayrollCalculator):
    """Pro-rated: rate * (days present / weekdays in the month)."""

    def subtotal(self, *, rate: Decimal, totals: AggregateTotals) -> Decimal:
        if totals.working_days_in_month <= 0:
            return Decimal("0")
        return rate * Decimal(totals.total_working_days) / Decimal(totals.working_days_in_month)
