from __future__ import annotations

from decimal import Decimal

from ...summaries.model import AggregateTotals
from .base import PayrollCalculator


class UnpaidPayrollCalculator(PayrollCalculator):
    """No payment model configured: payroll section stays at zero."""

    def subtotal(self, *, rate: Decimal, totals: AggregateTotals) -> Decimal:
        return Decimal("0")
