from __future__ import annotations

import logging
import re
import threading
from typing import Optional

from ..common.validators import validate_period
from ..core.constants import INVOICE_PREFIX, INVOICE_SEQUENCE_WIDTH
from .repository import InvoiceSequenceRepository

logger = logging.getLogger(__name__)

_INVOICE_RE = re.compile(rf"^{INVOICE_PREFIX}-(\d{{4}})-(\d{{2}})-(\d+)$")


def format_invoice_number(month: int, year: int, sequence: int) -> str:
    return f"{INVOICE_PREFIX}-{year}-{month:02d}-{sequence:0{INVOICE_SEQUENCE_WIDTH}d}"


def parse_invoice_sequence(invoice_number: Optional[str]) -> Optional[int]:
    """``INV-2024-01-0007`` -> 7; None for anything not in that format."""
    if not invoice_number:
        return None
    m = _INVOICE_RE.match(invoice_number.strip())
    return int(m.group(3)) if m else None


class InvoiceNumberingService:
    """Issues ``INV-{year}-{MM}-{NNNN}`` numbers, sequential per (month, year).

    Two serialization points: a per-period lock for callers in this process
    and the repository's atomic read-increment-write for other processes.
    """

    def __init__(self, sequences: InvoiceSequenceRepository):
        self._sequences = sequences
        self._locks: dict[tuple[int, int], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, month: int, year: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get((year, month))
            if lock is None:
                lock = threading.Lock()
                self._locks[(year, month)] = lock
            return lock

    def next_invoice_number(self, month: int, year: int) -> str:
        month, year = validate_period(month, year)
        with self._lock_for(month, year):
            sequence = self._sequences.issue_next_sequence(month=month, year=year)
        invoice_number = format_invoice_number(month, year, sequence)
        logger.info("Issued invoice number %s", invoice_number)
        return invoice_number
