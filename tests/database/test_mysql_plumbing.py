from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from pathlib import Path

import pytest
from mysql.connector.errors import IntegrityError

from src.workforce_payroll.workforce_payroll.core.enums import PaymentType, SummaryStatus
from src.workforce_payroll.workforce_payroll.core.exceptions import ConflictError, InvalidTransitionError
from src.workforce_payroll.workforce_payroll.database.bootstrap import (
    _strip_create_db_and_use,
    _strip_line_comments,
    iter_sql_statements,
)
from src.workforce_payroll.workforce_payroll.database.connection import DatabaseConnection, DBConfig
from src.workforce_payroll.workforce_payroll.database.mysql_base import in_placeholders, is_duplicate_key, load_json_list
from src.workforce_payroll.workforce_payroll.invoices.mysql_invoice_repository import MySQLInvoiceSequenceRepository
from src.workforce_payroll.workforce_payroll.summaries.model import (
    AggregateTotals,
    PayrollFigures,
    ProjectBreakdownItem,
    SummaryDraft,
)
from src.workforce_payroll.workforce_payroll.summaries.mysql_summary_repository import (
    MySQLSummaryRepository,
    _row_to_summary,
)

SCHEMA = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


class FakeCursor:
    """Records statements. Each fetch pops the next scripted result, falling back to ``rows``.

    ``fail_once`` maps a statement prefix to the error raised the first time it runs.
    """

    def __init__(self, rowcount=0, rows=None, results=(), fail_once=None, lastrowid=None):
        self.rowcount = rowcount
        self.rows = rows or []
        self.results = list(results)
        self.fail_once = dict(fail_once or {})
        self.lastrowid = lastrowid
        self.executed = []

    def execute(self, sql, params=None):
        flat = " ".join(sql.split())
        self.executed.append((flat, params))
        for prefix in list(self.fail_once):
            if flat.startswith(prefix):
                raise self.fail_once.pop(prefix)

    def fetchone(self):
        if self.results:
            return self.results.pop(0)
        return self.rows[0] if self.rows else None

    def fetchall(self):
        if self.results:
            return self.results.pop(0)
        return self.rows

    def statements(self, prefix):
        return [(sql, params) for sql, params in self.executed if sql.startswith(prefix)]

    def close(self):
        pass


class FakeConnection:
    def __init__(self, cursor):
        self._cursor = cursor
        self.commits = 0
        self.rollbacks = 0

    @property
    def committed(self):
        return self.commits > 0

    @property
    def rolled_back(self):
        return self.rollbacks > 0

    def cursor(self, dictionary=True):
        return self._cursor

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1

    def close(self):
        pass


class FakeConnFactory:
    def __init__(self, conn):
        self.conn = conn

    def connect(self):
        return self.conn


def test_schema_splits_into_create_statements():
    sql = _strip_line_comments(_strip_create_db_and_use(SCHEMA.read_text(encoding="utf-8")))
    statements = list(iter_sql_statements(sql))

    assert all(s.upper().startswith("CREATE TABLE") for s in statements)
    names = " ".join(statements)
    assert "monthly_summaries" in names
    assert "invoice_sequences" in names


def test_iter_sql_statements_respects_quotes():
    assert list(iter_sql_statements("INSERT INTO t VALUES ('a;b'); SELECT 1")) == [
        "INSERT INTO t VALUES ('a;b')",
        "SELECT 1",
    ]


def test_helpers():
    assert in_placeholders([1, 2, 3]) == "%s,%s,%s"
    with pytest.raises(ValueError):
        in_placeholders([])
    assert load_json_list(None) == []
    assert load_json_list(b'[{"a": 1}]') == [{"a": 1}]
    assert load_json_list("{not json") == []
    assert is_duplicate_key(IntegrityError(msg="dup", errno=1062))
    assert not is_duplicate_key(IntegrityError(msg="fk", errno=1452))
    assert not is_duplicate_key(ValueError("x"))


def _row(**kw):
    row = {
        "summary_id": 3,
        "employee_id": 7,
        "month": 3,
        "year": 2024,
        "total_working_days": 3,
        "total_worked_hours": Decimal("16.00"),
        "total_ot_hours": Decimal("2.00"),
        "approved_leaves": Decimal("1.00"),
        "absent_days": 17,
        "project_breakdown": json.dumps(
            [{"project_id": 1, "project_name": "Tower A", "days_worked": 2, "total_hours": 16, "ot_hours": 2}]
        ),
        "payment_type": "hourly",
        "subtotal": Decimal("380.000000"),
        "tax_percentage": Decimal("8.00"),
        "tax_amount": Decimal("30.400000"),
        "total_amount": Decimal("410.40"),
        "invoice_number": "INV-2024-03-0001",
        "status": "SIGNED_BY_STAFF",
        "staff_signature": "sig",
        "staff_signed_at": datetime(2024, 4, 2, 9, 0),
        "staff_signed_by": 70,
        "employee_name": "Mai",
        "employee_email": "mai@example.com",
    }
    row.update(kw)
    return row


def test_row_to_summary_maps_types():
    s = _row_to_summary(_row())

    assert s.payment_type == PaymentType.HOURLY
    assert s.status == SummaryStatus.SIGNED_BY_STAFF
    assert s.subtotal == Decimal("380")
    assert s.project_breakdown[0].project_name == "Tower A"
    assert s.project_breakdown[0].total_hours == Decimal("16")
    assert s.admin_approved_by is None
    assert s.to_dict()["staff_signed_at"] == "2024-04-02T09:00:00"


def test_bulk_approve_rolls_back_when_a_row_is_not_signed():
    cur = FakeCursor(rowcount=2)
    conn = FakeConnection(cur)
    repo = MySQLSummaryRepository(FakeConnFactory(conn))

    with pytest.raises(InvalidTransitionError):
        repo.bulk_approve(
            summary_ids=[1, 2, 3],
            admin_signature="boss",
            approved_by=1,
            approved_at=datetime(2024, 4, 2),
            remarks=None,
        )
    assert conn.rolled_back
    assert not conn.committed


def test_decide_reports_no_matching_row():
    cur = FakeCursor(rowcount=0)
    conn = FakeConnection(cur)
    repo = MySQLSummaryRepository(FakeConnFactory(conn))

    ok = repo.decide(
        summary_id=1,
        status=SummaryStatus.APPROVED,
        admin_signature="boss",
        decided_by=1,
        decided_at=datetime(2024, 4, 2),
        remarks=None,
    )
    assert ok is False
    sql, params = cur.executed[0]
    assert "WHERE summary_id=%s AND status=%s" in sql
    assert params[-1] == "SIGNED_BY_STAFF"


def _dup():
    return IntegrityError(msg="Duplicate entry", errno=1062)


def _sequences(cur):
    conn = FakeConnection(cur)
    return MySQLInvoiceSequenceRepository(FakeConnFactory(conn)), conn


def test_first_invoice_of_a_period_seeds_from_the_highest_stored_number():
    cur = FakeCursor(
        results=[
            None,
            [
                {"invoice_number": "INV-2024-03-0007"},
                {"invoice_number": "INV-2024-03-0002"},
                {"invoice_number": "legacy-99"},
            ],
        ]
    )
    repo, conn = _sequences(cur)

    assert repo.issue_next_sequence(month=3, year=2024) == 8
    assert "FOR UPDATE" in cur.executed[0][0]
    ((_, params),) = cur.statements("INSERT INTO invoice_sequences")
    assert params == (2024, 3, 8)
    assert conn.commits == 1


def test_existing_counter_row_is_incremented():
    cur = FakeCursor(results=[{"last_sequence": 4}])
    repo, conn = _sequences(cur)

    assert repo.issue_next_sequence(month=3, year=2024) == 5
    ((_, params),) = cur.statements("UPDATE invoice_sequences")
    assert params == (5, 2024, 3)
    assert cur.statements("INSERT") == []
    assert conn.commits == 1


def test_seed_race_is_retried_against_the_winner_row():
    cur = FakeCursor(
        results=[None, [], {"last_sequence": 1}],
        fail_once={"INSERT INTO invoice_sequences": _dup()},
    )
    repo, conn = _sequences(cur)

    assert repo.issue_next_sequence(month=3, year=2024) == 2
    assert conn.rollbacks == 1
    assert conn.commits == 1


def test_other_integrity_errors_are_not_retried():
    cur = FakeCursor(
        results=[None, []],
        fail_once={"INSERT INTO invoice_sequences": IntegrityError(msg="fk", errno=1452)},
    )
    repo, conn = _sequences(cur)

    with pytest.raises(IntegrityError):
        repo.issue_next_sequence(month=3, year=2024)
    assert len(cur.statements("SELECT last_sequence")) == 1
    assert conn.rolled_back


NOW = datetime(2024, 4, 2, 9, 0)


def _draft(invoice_number="INV-2024-03-0001"):
    totals = AggregateTotals(
        total_working_days=3,
        total_worked_hours=Decimal("16"),
        total_ot_hours=Decimal("2"),
        approved_leaves=Decimal("1"),
        absent_days=17,
        working_days_in_month=21,
        project_breakdown=(ProjectBreakdownItem(1, "Tower A", 2, Decimal("16"), Decimal("2")),),
    )
    payroll = PayrollFigures(
        payment_type=PaymentType.HOURLY,
        subtotal=Decimal("380"),
        tax_percentage=Decimal("8.00"),
        tax_amount=Decimal("30.4"),
        total_amount=Decimal("410.40"),
    )
    return SummaryDraft(
        employee_id=7, month=3, year=2024, totals=totals, payroll=payroll,
        invoice_number=invoice_number, created_by=1,
    )


def _draft_row(**kw):
    data = dict(status="DRAFT", staff_signature=None, staff_signed_at=None, staff_signed_by=None)
    data.update(kw)
    return _row(**data)


def test_upsert_inserts_a_draft_for_a_new_period():
    cur = FakeCursor(results=[None, _draft_row(summary_id=11)], lastrowid=11)
    conn = FakeConnection(cur)

    saved = MySQLSummaryRepository(FakeConnFactory(conn)).upsert(_draft(), now=NOW)

    assert saved.summary_id == 11
    assert saved.status == SummaryStatus.DRAFT
    assert "FOR UPDATE" in cur.executed[0][0]
    ((_, params),) = cur.statements("INSERT INTO monthly_summaries")
    assert params[:3] == (7, 3, 2024)
    assert json.loads(params[8])[0]["project_name"] == "Tower A"
    assert params[10] == Decimal("380.000000")
    assert params[11] == Decimal("8.00")
    assert params[14:17] == ("INV-2024-03-0001", "DRAFT", 1)
    assert cur.statements("UPDATE") == []


def test_upsert_refuses_an_approved_row_and_rolls_back():
    cur = FakeCursor(results=[{"summary_id": 3, "status": "APPROVED"}])
    conn = FakeConnection(cur)

    with pytest.raises(ConflictError):
        MySQLSummaryRepository(FakeConnFactory(conn)).upsert(_draft(), now=NOW)

    assert cur.statements("UPDATE") == []
    assert conn.rolled_back
    assert not conn.committed


def test_regeneration_keeps_the_stored_invoice_and_clears_signatures():
    cur = FakeCursor(results=[{"summary_id": 3, "status": "SIGNED_BY_STAFF"}, _draft_row()])
    conn = FakeConnection(cur)

    saved = MySQLSummaryRepository(FakeConnFactory(conn)).upsert(_draft(invoice_number=None), now=NOW)

    ((sql, params),) = cur.statements("UPDATE monthly_summaries")
    assert "invoice_number=COALESCE(%s, invoice_number)" in sql
    assert "staff_signature=NULL" in sql
    assert "admin_signature=NULL" in sql
    assert "admin_remarks=NULL" in sql
    assert "WHERE summary_id=%s AND status<>%s" in sql
    assert params[11] is None
    assert params[12] == "DRAFT"
    assert params[-2:] == (3, "APPROVED")
    assert saved.invoice_number == "INV-2024-03-0001"
    assert saved.staff_signature is None
    assert conn.commits == 2


def test_insert_race_for_the_same_period_retries_as_an_update():
    cur = FakeCursor(
        results=[None, {"summary_id": 3, "status": "DRAFT"}, _draft_row()],
        fail_once={"INSERT INTO monthly_summaries": _dup()},
    )
    conn = FakeConnection(cur)

    saved = MySQLSummaryRepository(FakeConnFactory(conn)).upsert(_draft(), now=NOW)

    assert saved.summary_id == 3
    assert conn.rollbacks == 1
    assert len(cur.statements("UPDATE monthly_summaries")) == 1


def test_db_config_connect_kwargs(monkeypatch):
    config = DBConfig.from_dict({"host": "db", "port": "3307", "user": "svc", "password": "pw"})
    assert config.describe() == "svc@db:3307/workforce_payroll"

    kwargs = config.connect_kwargs()
    assert kwargs["autocommit"] is False
    assert kwargs["charset"] == "utf8mb4"
    assert kwargs["database"] == "workforce_payroll"
    assert "database" not in config.connect_kwargs(with_database=False)

    seen = {}
    monkeypatch.setattr("mysql.connector.connect", lambda **kw: seen.update(kw) or "conn")
    assert DatabaseConnection(config).connect() == "conn"
    assert seen == kwargs
