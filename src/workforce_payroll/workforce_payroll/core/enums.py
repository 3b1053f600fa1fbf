from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Actor roles used for authorization and redaction."""

    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    STAFF = "staff"


class PaymentType(str, Enum):
    """Compensation basis of an employee."""

    NONE = "none"
    HOURLY = "hourly"
    DAILY = "daily"
    MONTHLY = "monthly"
    CONTRACT = "contract"


class SummaryStatus(str, Enum):
    """Approval workflow states of a monthly summary."""

    DRAFT = "DRAFT"
    SIGNED_BY_STAFF = "SIGNED_BY_STAFF"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class TimesheetApprovalStatus(str, Enum):
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class OvertimeApprovalStatus(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class WorkflowAction(str, Enum):
    SIGN = "sign"
    APPROVE = "approve"
    REJECT = "reject"
