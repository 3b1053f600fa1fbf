from __future__ import annotations

import logging

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, is_duplicate_key
from .repository import InvoiceSequenceRepository
from .service import parse_invoice_sequence

logger = logging.getLogger(__name__)

MAX_SEED_RETRIES = 3


class MySQLInvoiceSequenceRepository(InvoiceSequenceRepository):
    """Counter row per period in ``invoice_sequences``.

    The row is locked with ``SELECT ... FOR UPDATE`` so concurrent issuers
    queue behind each other. The first issuer of a period seeds the row from
    the highest invoice already stored on ``monthly_summaries``; two first
    issuers racing on that insert hit the primary key and the loser retries.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def issue_next_sequence(self, *, month: int, year: int) -> int:
        for attempt in range(1, MAX_SEED_RETRIES + 1):
            try:
                return self._issue_once(month=int(month), year=int(year))
            except Exception as exc:
                if not is_duplicate_key(exc) or attempt == MAX_SEED_RETRIES:
                    raise
                logger.warning("Invoice sequence seed race for %04d-%02d, retrying (%d)", year, month, attempt)
        raise RuntimeError("unreachable")

    def _issue_once(self, *, month: int, year: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT last_sequence
                FROM invoice_sequences
                WHERE year=%s AND month=%s
                FOR UPDATE
                """,
                (year, month),
            )
            row = fetchone(cur)
            if row:
                next_seq = int(row["last_sequence"]) + 1
                cur.execute(
                    "UPDATE invoice_sequences SET last_sequence=%s WHERE year=%s AND month=%s",
                    (next_seq, year, month),
                )
                return next_seq

            cur.execute(
                """
                SELECT invoice_number
                FROM monthly_summaries
                WHERE month=%s AND year=%s AND invoice_number IS NOT NULL
                """,
                (month, year),
            )
            issued = [parse_invoice_sequence(r["invoice_number"]) for r in fetchall(cur)]
            next_seq = max([s for s in issued if s is not None], default=0) + 1
            cur.execute(
                "INSERT INTO invoice_sequences(year, month, last_sequence) VALUES(%s,%s,%s)",
                (year, month, next_seq),
            )
            return next_seq
