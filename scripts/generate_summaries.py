"""Generate monthly summaries for every employee from the command line.

Uses the service layer directly (no Flask), e.g.::

    python scripts/generate_summaries.py --month 10 --year 2026 --tax 5
"""

from __future__ import annotations

import argparse
import importlib
import json
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.workforce_payroll.workforce_payroll.container import build_container
from src.workforce_payroll.workforce_payroll.core.exceptions import DomainError
from src.workforce_payroll.workforce_payroll.main import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate monthly summaries for all employees.")
    parser.add_argument("--month", type=int, required=True, help="1-12")
    parser.add_argument("--year", type=int, required=True)
    parser.add_argument("--tax", dest="tax_percentage", default=None, help="tax percentage 0-100")
    parser.add_argument("--created-by", type=int, default=None, help="user id recorded as creator")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(str(getattr(settings, "LOG_LEVEL", "INFO")).upper())

    container = build_container(
        db_config=dict(settings.DB_CONFIG),
        default_tax_percentage=getattr(settings, "DEFAULT_TAX_PERCENTAGE", 0),
        countable_timesheet_statuses=getattr(settings, "COUNTABLE_TIMESHEET_STATUSES", None),
        ot_requires_approval=bool(getattr(settings, "OT_REQUIRES_APPROVAL", True)),
    )
    try:
        results = container.summary_service.generate_all(
            month=args.month,
            year=args.year,
            tax_percentage=args.tax_percentage,
            created_by=args.created_by,
        )
    except DomainError as e:
        print(f"ERROR [{e.kind}]: {e}", file=sys.stderr)
        return 1
    finally:
        container.dispatcher.drain()

    print(json.dumps(results.to_dict(), indent=2, default=str))
    return 0 if not results.failed else 2


if __name__ == "__main__":
    raise SystemExit(main())
