from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_int, require_non_empty, validate_period, validate_tax_percentage
from ..core.constants import DEFAULT_LIST_LIMIT, MAX_YEAR, MIN_YEAR
from ..core.enums import Role, SummaryStatus, WorkflowAction
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..invoices.service import InvoiceNumberingService
from ..notifications.events import SummaryEvent, SummaryEventType
from ..notifications.publisher import EventPublisher
from ..payroll.service import PayrollService
from .aggregator import SummaryAggregator
from .model import GenerationResults, MonthlySummary, SummaryDraft
from .redactor import redact, redact_many
from .repository import SummaryRepository
from .workflow import next_status, parse_admin_action

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BulkApprovalResult:
    approved_count: int
    summaries: Sequence[MonthlySummary]

    def to_dict(self, role: Role | str | None = Role.ADMIN) -> dict:
        return {
            "approvedCount": self.approved_count,
            "summaries": redact_many((s.to_dict() for s in self.summaries), role),
        }


class SummaryService:
    """Use cases: generate monthly summaries and drive their approval workflow.

    Every collaborator is injected; see ``container.build_container``.
    """

    def __init__(
        self,
        summaries: SummaryRepository,
        employees: EmployeeRepository,
        aggregator: SummaryAggregator,
        payroll: PayrollService,
        invoices: InvoiceNumberingService,
        *,
        publisher: Optional[EventPublisher] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._summaries = summaries
        self._employees = employees
        self._aggregator = aggregator
        self._payroll = payroll
        self._invoices = invoices
        self._publisher = publisher
        self._clock = clock

    # -------- Generation --------
    def generate(
        self,
        *,
        employee_id: Any,
        month: Any,
        year: Any,
        tax_percentage: Any = None,
        created_by: Optional[int] = None,
    ) -> MonthlySummary:
        employee_id = require_int(employee_id, "employeeId")
        month, year = validate_period(month, year)
        pct = validate_tax_percentage(tax_percentage)

        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")

        return self._generate_for(employee, month, year, pct, created_by)

    def generate_all(
        self,
        *,
        month: Any,
        year: Any,
        tax_percentage: Any = None,
        created_by: Optional[int] = None,
    ) -> GenerationResults:
        month, year = validate_period(month, year)
        pct = validate_tax_percentage(tax_percentage)

        employees = list(self._employees.list_all())
        if not employees:
            raise NotFoundError("No employees found")

        results = GenerationResults(total=len(employees))
        for employee in employees:
            entry = {
                "employee_id": employee.employee_id,
                "employee_name": employee.name,
                "employee_email": employee.email,
            }
            try:
                summary = self._generate_for(employee, month, year, pct, created_by)
            except DomainError as e:
                results.failed.append({**entry, "reason": str(e)})
                continue
            except Exception:
                # One broken employee must not abort the batch.
                logger.exception("Error generating summary for employee %s", employee.employee_id)
                results.failed.append({**entry, "reason": "Failed to generate summary"})
                continue
            results.success.append({**entry, "summary_id": summary.summary_id})

        logger.info(
            "Generated monthly summaries for %d out of %d employees (%04d-%02d)",
            len(results.success), results.total, year, month,
        )
        return results

    def _generate_for(
        self,
        employee: Employee,
        month: int,
        year: int,
        tax_percentage,
        created_by: Optional[int],
    ) -> MonthlySummary:
        existing = self._summaries.find_for_period(employee_id=employee.employee_id, month=month, year=year)
        if existing and existing.status == SummaryStatus.APPROVED:
            raise ConflictError("Monthly summary already approved. Cannot regenerate.")

        totals = self._aggregator.aggregate(employee, month, year)
        payroll = self._payroll.compute(employee, totals, tax_percentage=tax_percentage)

        # Keep an already issued number so regeneration never burns a sequence.
        invoice_number = existing.invoice_number if existing else None
        if invoice_number is None and payroll.subtotal > 0:
            invoice_number = self._invoices.next_invoice_number(month, year)

        summary = self._summaries.upsert(
            SummaryDraft(
                employee_id=employee.employee_id,
                month=month,
                year=year,
                totals=totals,
                payroll=payroll,
                invoice_number=invoice_number,
                created_by=created_by,
            ),
            now=self._clock(),
        )
        logger.info(
            "Generated summary %s for employee %s (%04d-%02d) subtotal=%s invoice=%s",
            summary.summary_id, employee.employee_id, year, month, payroll.subtotal, invoice_number,
        )
        self._publish(SummaryEventType.GENERATED, summary, actor_id=created_by)
        return summary

    # -------- Reads --------
    def list(
        self,
        *,
        role: Role | str | None,
        employee_id: Any = None,
        month: Any = None,
        year: Any = None,
        status: Any = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[dict]:
        filters = self._parse_filters(employee_id=employee_id, month=month, year=year, status=status)
        rows = self._summaries.list(**filters, limit=int(limit))
        return redact_many((s.to_dict() for s in rows), role)

    def get(self, summary_id: Any, *, role: Role | str | None, actor_user_id: Optional[int] = None) -> dict:
        summary = self._require_summary(summary_id)
        if role == Role.STAFF and actor_user_id is not None:
            self._require_owner(summary, actor_user_id, "You can only view your own summary.")
        return redact(summary.to_dict(), role)

    def list_for_staff(self, *, user_id: int, month: Any = None, year: Any = None) -> list[dict]:
        employee = self._employees.get_by_user_id(int(user_id))
        if not employee:
            raise NotFoundError("Employee not found")
        filters = self._parse_filters(employee_id=employee.employee_id, month=month, year=year, status=None)
        rows = self._summaries.list(**filters, limit=DEFAULT_LIST_LIMIT)
        return redact_many((s.to_dict() for s in rows), Role.STAFF)

    # -------- Workflow --------
    def staff_sign(self, *, summary_id: Any, user_id: int, signature: Optional[str]) -> MonthlySummary:
        signature = require_non_empty(signature, "Signature")
        summary = self._require_summary(summary_id)
        self._require_owner(summary, user_id, "Unauthorized. You can only sign your own summary.")

        target = next_status(summary.status, WorkflowAction.SIGN)
        ok = self._summaries.sign_by_staff(
            summary_id=summary.summary_id,
            expected_status=summary.status,
            signature=signature,
            signed_by=int(user_id),
            signed_at=self._clock(),
        )
        if not ok:
            raise ConflictError("Monthly summary changed while signing. Reload and try again.")

        updated = self._require_summary(summary.summary_id)
        logger.info("Summary %s signed by user %s -> %s", summary.summary_id, user_id, target.value)
        self._publish(SummaryEventType.SIGNED, updated, actor_id=int(user_id))
        return updated

    def admin_decide(
        self,
        *,
        summary_id: Any,
        admin_id: int,
        action: Optional[str],
        signature: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> MonthlySummary:
        act = parse_admin_action(action)
        signature = (signature or "").strip() or None
        remarks = (remarks or "").strip() or None

        if act == WorkflowAction.APPROVE and not signature:
            raise ValidationError("Admin signature is required for approval")
        if act == WorkflowAction.REJECT and not remarks:
            raise ValidationError("Rejection reason is required")

        summary = self._require_summary(summary_id)
        target = next_status(summary.status, act)

        ok = self._summaries.decide(
            summary_id=summary.summary_id,
            status=target,
            admin_signature=signature if act == WorkflowAction.APPROVE else None,
            decided_by=int(admin_id),
            decided_at=self._clock(),
            remarks=remarks,
        )
        if not ok:
            current = self._summaries.get_by_id(summary.summary_id)
            current_status = current.status.value if current else "missing"
            raise InvalidTransitionError(f"Cannot {act.value} summary. Current status: {current_status}")

        updated = self._require_summary(summary.summary_id)
        logger.info("Summary %s %sd by admin %s", summary.summary_id, act.value, admin_id)
        event_type = SummaryEventType.APPROVED if target == SummaryStatus.APPROVED else SummaryEventType.REJECTED
        self._publish(event_type, updated, actor_id=int(admin_id), remarks=remarks)
        return updated

    def bulk_admin_approve(
        self,
        *,
        summary_ids: Any,
        admin_id: int,
        signature: Optional[str],
        remarks: Optional[str] = None,
    ) -> BulkApprovalResult:
        if not isinstance(summary_ids, (list, tuple)) or not summary_ids:
            raise ValidationError("Summary IDs array is required")
        ids = list(dict.fromkeys(require_int(i, "summary id") for i in summary_ids))
        signature = (signature or "").strip()
        if not signature:
            raise ValidationError("Admin signature is required for bulk approval")
        remarks = (remarks or "").strip() or None

        found = {s.summary_id: s for s in self._summaries.get_many(ids)}
        missing = [i for i in ids if i not in found]
        if missing:
            raise NotFoundError(f"{len(missing)} monthly summary/summaries not found")

        not_signed = [s for s in found.values() if s.status != SummaryStatus.SIGNED_BY_STAFF]
        if not_signed:
            raise InvalidTransitionError(
                f"Cannot approve {len(not_signed)} summary/summaries that are not signed by staff"
            )

        approved = list(
            self._summaries.bulk_approve(
                summary_ids=ids,
                admin_signature=signature,
                approved_by=int(admin_id),
                approved_at=self._clock(),
                remarks=remarks,
            )
        )
        logger.info("Bulk approved %d summaries by admin %s", len(approved), admin_id)
        for s in approved:
            self._publish(SummaryEventType.APPROVED, s, actor_id=int(admin_id), remarks=remarks)
        return BulkApprovalResult(approved_count=len(approved), summaries=approved)

    # -------- Helpers --------
    def _require_summary(self, summary_id: Any) -> MonthlySummary:
        summary = self._summaries.get_by_id(require_int(summary_id, "summary id"))
        if not summary:
            raise NotFoundError("Monthly summary not found")
        return summary

    def _require_owner(self, summary: MonthlySummary, user_id: Optional[int], message: str) -> None:
        employee = self._employees.get_by_id(summary.employee_id)
        if user_id is None or not employee or employee.user_id is None or employee.user_id != int(user_id):
            raise AuthorizationError(message)

    @staticmethod
    def _parse_filters(*, employee_id: Any, month: Any, year: Any, status: Any) -> dict:
        filters: dict[str, Any] = {"employee_id": None, "month": None, "year": None, "status": None}
        if employee_id not in (None, ""):
            filters["employee_id"] = require_int(employee_id, "employeeId")
        if month not in (None, ""):
            m = require_int(month, "month")
            if m < 1 or m > 12:
                raise ValidationError("Invalid month. Must be 1-12")
            filters["month"] = m
        if year not in (None, ""):
            y = require_int(year, "year")
            if y < MIN_YEAR or y > MAX_YEAR:
                raise ValidationError(f"Invalid year. Must be {MIN_YEAR}-{MAX_YEAR}")
            filters["year"] = y
        if status not in (None, ""):
            try:
                filters["status"] = SummaryStatus(str(status).upper())
            except ValueError:
                raise ValidationError(f"Invalid status: {status}")
        return filters

    def _publish(
        self,
        event_type: SummaryEventType,
        summary: MonthlySummary,
        *,
        actor_id: Optional[int],
        remarks: Optional[str] = None,
    ) -> None:
        if self._publisher is None:
            return
        event = SummaryEvent(
            event_type=event_type,
            summary_id=summary.summary_id,
            employee_id=summary.employee_id,
            month=summary.month,
            year=summary.year,
            actor_id=actor_id,
            occurred_at=self._clock(),
            remarks=remarks,
        )
        try:
            self._publisher.publish(event)
        except Exception:
            logger.exception("Failed to publish %s for summary %s", event_type.value, summary.summary_id)
