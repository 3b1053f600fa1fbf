from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import SummaryStatus
from .model import MonthlySummary, SummaryDraft


class SummaryRepository(Protocol):
    """Persistence for MonthlySummary, one row per (employee, month, year).

    State-changing methods are conditional writes: they only touch rows still
    in the expected status and report whether they did.
    """

    def get_by_id(self, summary_id: int) -> Optional[MonthlySummary]:
        raise NotImplementedError

    def get_many(self, summary_ids: Sequence[int]) -> Sequence[MonthlySummary]:
        raise NotImplementedError

    def find_for_period(self, *, employee_id: int, month: int, year: int) -> Optional[MonthlySummary]:
        raise NotImplementedError

    def upsert(self, draft: SummaryDraft, *, now: datetime) -> MonthlySummary:
        """Insert as DRAFT, or overwrite figures and reset to DRAFT.

        Raises ConflictError when the existing row is APPROVED.
        """

        raise NotImplementedError

    def list(
        self,
        *,
        employee_id: Optional[int] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
        status: Optional[SummaryStatus] = None,
        limit: int = 500,
    ) -> Sequence[MonthlySummary]:
        raise NotImplementedError

    def sign_by_staff(
        self,
        *,
        summary_id: int,
        expected_status: SummaryStatus,
        signature: str,
        signed_by: int,
        signed_at: datetime,
    ) -> bool:
        raise NotImplementedError

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
        """Approve or reject; only rows still SIGNED_BY_STAFF are touched."""

        raise NotImplementedError

    def bulk_approve(
        self,
        *,
        summary_ids: Sequence[int],
        admin_signature: str,
        approved_by: int,
        approved_at: datetime,
        remarks: Optional[str],
    ) -> Sequence[MonthlySummary]:
        """Approve every id in one transaction.

        Raises InvalidTransitionError (and writes nothing) unless every id is
        still SIGNED_BY_STAFF at write time.
        """

        raise NotImplementedError
