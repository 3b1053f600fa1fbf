from __future__ import annotations

from decimal import Decimal

from ...core.constants import OT_MULTIPLIER
from ...summaries.model import AggregateTotals
from .base import PayrollCalculator


class HourlyPayrollCalculator(PayrollCalculator):
    """worked_hours * rate + ot_hours * rate * 1.5"""

    def subtotal(self, *, rate: Decimal, totals: AggregateTotals) -> Decimal:
        return totals.total_worked_hours * rate + totals.total_ot_hours * rate * OT_MULTIPLIER
