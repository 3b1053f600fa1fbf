"""Create the payroll schema and report any table the service still lacks.

    python scripts/init_db.py
    python scripts/init_db.py --check    # only verify, never writes
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.workforce_payroll.workforce_payroll.database.bootstrap import apply_schema, list_tables
from src.workforce_payroll.workforce_payroll.database.connection import DBConfig
from src.workforce_payroll.workforce_payroll.main import configure_logging

# Tables read or written while generating and approving monthly summaries.
REQUIRED_TABLES = (
    "employees",
    "attendance_logs",
    "timesheets",
    "leave_requests",
    "monthly_summaries",
    "invoice_sequences",
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Apply database/schema.sql for the payroll service.")
    parser.add_argument("--schema", type=Path, default=REPO_ROOT / "database" / "schema.sql")
    parser.add_argument("--check", action="store_true", help="list missing tables without applying the schema")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(str(getattr(settings, "LOG_LEVEL", "INFO")).upper())
    db_config = dict(settings.DB_CONFIG)
    target = DBConfig.from_dict(db_config).describe()

    if not args.check:
        applied = apply_schema(db_config, schema_path=args.schema)
        print(f"Applied {applied} statements from {args.schema.name} -> {target}")

    missing = sorted(set(REQUIRED_TABLES) - set(list_tables(db_config)))
    if missing:
        print(f"MISSING on {target}: {', '.join(missing)}", file=sys.stderr)
        return 1
    print(f"OK: {target} has all {len(REQUIRED_TABLES)} payroll tables")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
