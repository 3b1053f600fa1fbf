from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from ...summaries.model import AggregateTotals


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def subtotal(self, *, rate: Decimal, totals: AggregateTotals) -> Decimal:
        raise NotImplementedError
