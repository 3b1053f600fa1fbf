from __future__ import annotations

from decimal import Decimal

from ...summaries.model import AggregateTotals
from .base import PayrollCalculator


class ContractPayrollCalculator(PayrollCalculator):
    """Flat contract amount, independent of hours."""

    def subtotal(self, *, rate: Decimal, totals: AggregateTotals) -> Decimal:
        return rate
