import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "workforce_payroll"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

# Payroll
DEFAULT_TAX_PERCENTAGE = os.getenv("DEFAULT_TAX_PERCENTAGE", "0")
# Comma separated timesheet approval states that feed the monthly totals
COUNTABLE_TIMESHEET_STATUSES = os.getenv("COUNTABLE_TIMESHEET_STATUSES", "Approved")
OT_REQUIRES_APPROVAL = bool(int(os.getenv("OT_REQUIRES_APPROVAL", "1")))
