from __future__ import annotations

from typing import Optional, Sequence

from ..common.decimal_utils import to_decimal
from ..core.enums import PaymentType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Employee
from .repository import EmployeeRepository

_COLUMNS = """
    employee_id, name, email, role, user_id, payment_type,
    hourly_rate, daily_rate, monthly_rate, contract_rate
"""


def _row_to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        name=r["name"],
        email=r.get("email"),
        user_id=int(r["user_id"]) if r.get("user_id") is not None else None,
        payment_type=PaymentType(r.get("payment_type") or PaymentType.NONE.value),
        hourly_rate=to_decimal(r.get("hourly_rate"), default=None),
        daily_rate=to_decimal(r.get("daily_rate"), default=None),
        monthly_rate=to_decimal(r.get("monthly_rate"), default=None),
        contract_rate=to_decimal(r.get("contract_rate"), default=None),
        role=r.get("role"),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (int(employee_id),))
            r = fetchone(cur)
            return _row_to_employee(r) if r else None

    def get_by_user_id(self, user_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return _row_to_employee(r) if r else None

    def list_all(self) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employees
                WHERE email IS NOT NULL
                ORDER BY name ASC, employee_id ASC
                """
            )
            return [_row_to_employee(r) for r in fetchall(cur)]
