"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

MIN_YEAR = 2020
MAX_YEAR = 2100

OT_MULTIPLIER = Decimal("1.5")

INVOICE_PREFIX = "INV"
INVOICE_SEQUENCE_WIDTH = 4

UNASSIGNED_PROJECT_NAME = "Unassigned"

# Fields an actor without the admin role must never see.
FINANCIAL_FIELDS = (
    "subtotal",
    "payment_type",
    "tax_percentage",
    "tax_amount",
    "total_amount",
    "invoice_number",
)

DEFAULT_LIST_LIMIT = 500
