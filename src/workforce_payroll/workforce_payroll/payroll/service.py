from __future__ import annotations

from decimal import Decimal
from typing import Optional

from ..common.decimal_utils import round2, to_decimal
from ..common.validators import validate_tax_percentage
from ..core.enums import PaymentType
from ..employees.model import Employee
from ..summaries.model import AggregateTotals, PayrollFigures
from .factory import PayrollCalculatorFactory


class PayrollService:
    """Turns aggregate totals into money figures for one employee-month.

    Intermediate values keep full Decimal precision; only ``total_amount`` is
    rounded (half-up, 2 places).
    """

    def __init__(
        self,
        *,
        factory: Optional[PayrollCalculatorFactory] = None,
        default_tax_percentage: Decimal | str | int = 0,
    ):
        self._factory = factory or PayrollCalculatorFactory()
        default = validate_tax_percentage(default_tax_percentage)
        self._default_tax = default if default is not None else Decimal("0")

    @property
    def default_tax_percentage(self) -> Decimal:
        return self._default_tax

    def compute(
        self,
        employee: Employee,
        totals: AggregateTotals,
        *,
        tax_percentage: Optional[Decimal] = None,
    ) -> PayrollFigures:
        payment_type = employee.payment_type or PaymentType.NONE
        rate = employee.rate

        if rate is None:
            subtotal = Decimal("0")
        else:
            calculator = self._factory.for_payment_type(payment_type)
            subtotal = calculator.subtotal(rate=to_decimal(rate), totals=totals)

        pct = tax_percentage if tax_percentage is not None else self._default_tax
        tax_amount = subtotal * pct / Decimal(100) if subtotal > 0 else Decimal("0")

        return PayrollFigures(
            payment_type=payment_type,
            subtotal=subtotal,
            tax_percentage=pct,
            tax_amount=tax_amount,
            total_amount=round2(subtotal + tax_amount),
        )
