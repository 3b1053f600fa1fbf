from __future__ import annotations

from typing import Iterable, Optional, Union

from ..core.constants import FINANCIAL_FIELDS
from ..core.enums import Role


def redact(summary: Optional[dict], role: Union[Role, str, None]) -> Optional[dict]:
    """Drop financial fields unless the actor is an admin.

    Unknown or missing roles are treated like staff. Returns a new dict; the
    input is never mutated.
    """

    if summary is None:
        return None
    role_value = role.value if isinstance(role, Role) else (role or "")
    if role_value == Role.ADMIN.value:
        return dict(summary)
    return {k: v for k, v in summary.items() if k not in FINANCIAL_FIELDS}


def redact_many(summaries: Iterable[dict], role: Union[Role, str, None]) -> list[dict]:
    return [redact(s, role) for s in summaries]
