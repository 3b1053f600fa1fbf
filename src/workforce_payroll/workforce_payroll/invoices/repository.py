from __future__ import annotations

from typing import Protocol


class InvoiceSequenceRepository(Protocol):
    """Authoritative per-period invoice counter.

    ``issue_next_sequence`` must read the highest issued sequence and store the
    incremented one in a single atomic step.
    """

    def issue_next_sequence(self, *, month: int, year: int) -> int:
        raise NotImplementedError
