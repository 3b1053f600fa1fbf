import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "workforce_payroll"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

DEFAULT_TAX_PERCENTAGE = os.getenv("DEFAULT_TAX_PERCENTAGE", "0")
COUNTABLE_TIMESHEET_STATUSES = os.getenv("COUNTABLE_TIMESHEET_STATUSES", "Approved")
OT_REQUIRES_APPROVAL = bool(int(os.getenv("OT_REQUIRES_APPROVAL", "1")))
