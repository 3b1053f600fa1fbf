from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .database.bootstrap import apply_schema, list_tables

from .container import build_container
from .summaries.controller import register as register_summaries

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def configure_logging(level: str | int = "INFO") -> None:
    root = logging.getLogger()
    if any(getattr(h, "_workforce_payroll", False) for h in root.handlers):
        root.setLevel(level)
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[workforce-payroll] %(asctime)s %(levelname)s %(name)s: %(message)s"))
    handler._workforce_payroll = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)


def create_app(*, container=None, start_dispatcher: bool = True) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    configure_logging(str(getattr(settings, "LOG_LEVEL", "INFO")).upper())
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"), db_config.get("host"), db_config.get("port", 3306), db_config.get("database"),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            default_tax_percentage=getattr(settings, "DEFAULT_TAX_PERCENTAGE", 0),
            countable_timesheet_statuses=getattr(settings, "COUNTABLE_TIMESHEET_STATUSES", None),
            ot_requires_approval=bool(getattr(settings, "OT_REQUIRES_APPROVAL", True)),
        )

    if start_dispatcher:
        container.dispatcher.start()
    app.extensions["workforce_payroll"] = container

    register_summaries(app, container)

    return app
