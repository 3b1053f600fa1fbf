from __future__ import annotations

import json
import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from ..common.decimal_utils import to_decimal
from ..core.enums import PaymentType, SummaryStatus
from ..core.exceptions import ConflictError, InvalidTransitionError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_placeholders, is_duplicate_key, load_json_list
from .model import MonthlySummary, ProjectBreakdownItem, SummaryDraft
from .repository import SummaryRepository

logger = logging.getLogger(__name__)

_AT_REST = Decimal("0.000001")

_SELECT = """
    SELECT ms.*, e.name AS employee_name, e.email AS employee_email
    FROM monthly_summaries ms
    LEFT JOIN employees e ON e.employee_id = ms.employee_id
"""


def _at_rest(value: Decimal) -> Decimal:
    return value.quantize(_AT_REST, rounding=ROUND_HALF_UP)


def _row_to_summary(r: dict) -> MonthlySummary:
    def _opt_int(key: str) -> Optional[int]:
        return int(r[key]) if r.get(key) is not None else None

    return MonthlySummary(
        summary_id=int(r["summary_id"]),
        employee_id=int(r["employee_id"]),
        month=int(r["month"]),
        year=int(r["year"]),
        total_working_days=int(r.get("total_working_days") or 0),
        total_worked_hours=to_decimal(r.get("total_worked_hours")),
        total_ot_hours=to_decimal(r.get("total_ot_hours")),
        approved_leaves=to_decimal(r.get("approved_leaves")),
        absent_days=int(r.get("absent_days") or 0),
        project_breakdown=tuple(ProjectBreakdownItem.from_dict(x) for x in load_json_list(r.get("project_breakdown"))),
        payment_type=PaymentType(r["payment_type"]) if r.get("payment_type") else None,
        subtotal=to_decimal(r.get("subtotal")),
        tax_percentage=to_decimal(r.get("tax_percentage")),
        tax_amount=to_decimal(r.get("tax_amount")),
        total_amount=to_decimal(r.get("total_amount")),
        invoice_number=r.get("invoice_number"),
        status=SummaryStatus(r["status"]),
        staff_signature=r.get("staff_signature"),
        staff_signed_at=r.get("staff_signed_at"),
        staff_signed_by=_opt_int("staff_signed_by"),
        admin_signature=r.get("admin_signature"),
        admin_approved_at=r.get("admin_approved_at"),
        admin_approved_by=_opt_int("admin_approved_by"),
        admin_remarks=r.get("admin_remarks"),
        created_by=_opt_int("created_by"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        employee_name=r.get("employee_name"),
        employee_email=r.get("employee_email"),
    )


class MySQLSummaryRepository(SummaryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, summary_id: int) -> Optional[MonthlySummary]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE ms.summary_id=%s", (int(summary_id),))
            r = fetchone(cur)
            return _row_to_summary(r) if r else None

    def get_many(self, summary_ids: Sequence[int]) -> Sequence[MonthlySummary]:
        ids = [int(i) for i in summary_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE ms.summary_id IN ({in_placeholders(ids)})", tuple(ids))
            return [_row_to_summary(r) for r in fetchall(cur)]

    def find_for_period(self, *, employee_id: int, month: int, year: int) -> Optional[MonthlySummary]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT} WHERE ms.employee_id=%s AND ms.month=%s AND ms.year=%s",
                (int(employee_id), int(month), int(year)),
            )
            r = fetchone(cur)
            return _row_to_summary(r) if r else None

    def upsert(self, draft: SummaryDraft, *, now: datetime) -> MonthlySummary:
        try:
            summary_id = self._upsert_once(draft, now=now)
        except Exception as exc:
            # Lost an insert race for the same (employee, month, year): the row
            # exists now, so the second attempt takes the locked update path.
            if not is_duplicate_key(exc):
                raise
            logger.warning(
                "Concurrent insert for employee %s %04d-%02d, retrying as update",
                draft.employee_id, draft.year, draft.month,
            )
            summary_id = self._upsert_once(draft, now=now)

        saved = self.get_by_id(summary_id)
        if saved is None:
            raise RuntimeError(f"Monthly summary {summary_id} vanished after upsert")
        return saved

    def _upsert_once(self, draft: SummaryDraft, *, now: datetime) -> int:
        t, p = draft.totals, draft.payroll
        figures = (
            t.total_working_days,
            t.total_worked_hours,
            t.total_ot_hours,
            t.approved_leaves,
            t.absent_days,
            json.dumps([item.to_dict() for item in t.project_breakdown]),
            p.payment_type.value,
            _at_rest(p.subtotal),
            p.tax_percentage,
            _at_rest(p.tax_amount),
            p.total_amount,
        )

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT summary_id, status
                FROM monthly_summaries
                WHERE employee_id=%s AND month=%s AND year=%s
                FOR UPDATE
                """,
                (int(draft.employee_id), int(draft.month), int(draft.year)),
            )
            existing = fetchone(cur)

            if existing is None:
                cur.execute(
                    """
                    INSERT INTO monthly_summaries(
                        employee_id, month, year,
                        total_working_days, total_worked_hours, total_ot_hours,
                        approved_leaves, absent_days, project_breakdown,
                        payment_type, subtotal, tax_percentage, tax_amount, total_amount,
                        invoice_number, status, created_by, created_at, updated_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (int(draft.employee_id), int(draft.month), int(draft.year))
                    + figures
                    + (draft.invoice_number, SummaryStatus.DRAFT.value, draft.created_by, now, now),
                )
                return int(cur.lastrowid)

            if existing["status"] == SummaryStatus.APPROVED.value:
                raise ConflictError("Monthly summary already approved. Cannot regenerate.")

            cur.execute(
                """
                UPDATE monthly_summaries
                SET total_working_days=%s, total_worked_hours=%s, total_ot_hours=%s,
                    approved_leaves=%s, absent_days=%s, project_breakdown=%s,
                    payment_type=%s, subtotal=%s, tax_percentage=%s, tax_amount=%s, total_amount=%s,
                    invoice_number=COALESCE(%s, invoice_number),
                    status=%s,
                    staff_signature=NULL, staff_signed_at=NULL, staff_signed_by=NULL,
                    admin_signature=NULL, admin_approved_at=NULL, admin_approved_by=NULL, admin_remarks=NULL,
                    created_by=COALESCE(%s, created_by),
                    updated_at=%s
                WHERE summary_id=%s AND status<>%s
                """,
                figures
                + (
                    draft.invoice_number,
                    SummaryStatus.DRAFT.value,
                    draft.created_by,
                    now,
                    int(existing["summary_id"]),
                    SummaryStatus.APPROVED.value,
                ),
            )
            # No rowcount check: the row is locked and MySQL reports 0 changed
            # rows when a regeneration produces identical figures.
            return int(existing["summary_id"])

    def list(
        self,
        *,
        employee_id: Optional[int] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
        status: Optional[SummaryStatus] = None,
        limit: int = 500,
    ) -> Sequence[MonthlySummary]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("ms.status=%s")
            params.append(status.value)
        if employee_id is not None:
            clauses.append("ms.employee_id=%s")
            params.append(int(employee_id))
        if month is not None:
            clauses.append("ms.month=%s")
            params.append(int(month))
        if year is not None:
            clauses.append("ms.year=%s")
            params.append(int(year))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                {_SELECT}
                WHERE {where}
                ORDER BY ms.year DESC, ms.month DESC, e.name ASC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_summary(r) for r in fetchall(cur)]

    def sign_by_staff(
        self,
        *,
        summary_id: int,
        expected_status: SummaryStatus,
        signature: str,
        signed_by: int,
        signed_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE monthly_summaries
                SET staff_signature=%s, staff_signed_at=%s, staff_signed_by=%s,
                    admin_signature=NULL, admin_approved_at=NULL, admin_approved_by=NULL,
                    status=%s, updated_at=%s
                WHERE summary_id=%s AND status=%s
                """,
                (
                    signature,
                    signed_at,
                    int(signed_by),
                    SummaryStatus.SIGNED_BY_STAFF.value,
                    signed_at,
                    int(summary_id),
                    expected_status.value,
                ),
            )
            return cur.rowcount > 0

    def decide(
        self,
        *,
        summary_id: int,
        status: SummaryStatus,
        admin_signature: Optional[str],
        decided_by: int,
        decided_at: datetime,
        remarks: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE monthly_summaries
                SET admin_signature=%s, admin_approved_at=%s, admin_approved_by=%s,
                    admin_remarks=%s, status=%s, updated_at=%s
                WHERE summary_id=%s AND status=%s
                """,
                (
                    admin_signature,
                    decided_at,
                    int(decided_by),
                    remarks,
                    status.value,
                    decided_at,
                    int(summary_id),
                    SummaryStatus.SIGNED_BY_STAFF.value,
                ),
            )
            return cur.rowcount > 0

    def bulk_approve(
        self,
        *,
        summary_ids: Sequence[int],
        admin_signature: str,
        approved_by: int,
        approved_at: datetime,
        remarks: Optional[str],
    ) -> Sequence[MonthlySummary]:
        ids = sorted({int(i) for i in summary_ids})
        marks = in_placeholders(ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE monthly_summaries
                SET admin_signature=%s, admin_approved_at=%s, admin_approved_by=%s,
                    admin_remarks=%s, status=%s, updated_at=%s
                WHERE summary_id IN ({marks}) AND status=%s
                """,
                (
                    admin_signature,
                    approved_at,
                    int(approved_by),
                    remarks,
                    SummaryStatus.APPROVED.value,
                    approved_at,
                )
                + tuple(ids)
                + (SummaryStatus.SIGNED_BY_STAFF.value,),
            )
            if cur.rowcount != len(ids):
                # Raising inside db_cursor rolls the whole batch back.
                raise InvalidTransitionError(
                    f"Cannot approve {len(ids) - max(cur.rowcount, 0)} summary/summaries that are not signed by staff"
                )

            cur.execute(f"{_SELECT} WHERE ms.summary_id IN ({marks})", tuple(ids))
            return [_row_to_summary(r) for r in fetchall(cur)]
