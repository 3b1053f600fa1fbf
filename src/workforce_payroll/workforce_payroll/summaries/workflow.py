from __future__ import annotations

from typing import Optional

from ..core.enums import SummaryStatus, WorkflowAction
from ..core.exceptions import ConflictError, InvalidTransitionError, ValidationError

# Legal moves of one workflow cycle:
# DRAFT -sign-> SIGNED_BY_STAFF -approve-> APPROVED
#                               -reject--> REJECTED -sign-> SIGNED_BY_STAFF
TRANSITIONS: dict[tuple[SummaryStatus, WorkflowAction], SummaryStatus] = {
    (SummaryStatus.DRAFT, WorkflowAction.SIGN): SummaryStatus.SIGNED_BY_STAFF,
    (SummaryStatus.REJECTED, WorkflowAction.SIGN): SummaryStatus.SIGNED_BY_STAFF,
    (SummaryStatus.SIGNED_BY_STAFF, WorkflowAction.APPROVE): SummaryStatus.APPROVED,
    (SummaryStatus.SIGNED_BY_STAFF, WorkflowAction.REJECT): SummaryStatus.REJECTED,
}


def can_transition(current: SummaryStatus, action: WorkflowAction) -> bool:
    return (current, action) in TRANSITIONS


def next_status(current: SummaryStatus, action: WorkflowAction) -> SummaryStatus:
    """Target status for ``action`` or the error the caller should surface.

    Signing an already signed/approved summary is a Conflict; every other
    illegal move is an InvalidTransition.
    """

    target = TRANSITIONS.get((current, action))
    if target is not None:
        return target

    if action == WorkflowAction.SIGN:
        raise ConflictError(
            f"Cannot sign summary. Current status: {current.value}. "
            "Only DRAFT or REJECTED summaries can be signed."
        )
    raise InvalidTransitionError(f"Cannot {action.value} summary. Current status: {current.value}")


def parse_admin_action(value: Optional[str]) -> WorkflowAction:
    v = (value or "").strip().lower()
    if v == WorkflowAction.APPROVE.value:
        return WorkflowAction.APPROVE
    if v == WorkflowAction.REJECT.value:
        return WorkflowAction.REJECT
    raise ValidationError('Action must be "approve" or "reject"')
