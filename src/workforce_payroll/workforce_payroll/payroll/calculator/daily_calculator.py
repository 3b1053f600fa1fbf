from __future__ import annotations

from decimal import Decimal

from ...summaries.model import AggregateTotals
from .base import PayrollCalculator


class DailyPayrollCalculator(PayrollCalculator):
    def subtotal(self, *, rate: Decimal, totals: AggregateTotals) -> Decimal:
        return Decimal(totals.total_working_days) * rate
