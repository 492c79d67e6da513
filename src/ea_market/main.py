from __future__ import annotations

import importlib
import logging
from decimal import Decimal
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, render_template

from config import get_settings_module

from .affiliates.controller import register as register_affiliates
from .accounts.controller import register as register_accounts
from .brokers.controller import register as register_brokers
from .catalog.controller import register as register_catalog
from .catalog.model import category_label
from .common.datetime_utils import format_date
from .common.logging_setup import setup_logging
from .common.web import current_user
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_accounts, list_tables
from .database.connection import DBConfig
from .ib.controller import register as register_ib
from .licenses.controller import register as register_licenses
from .orders.controller import register as register_orders
from .payments.controller import register as register_payments
from .reports.controller import register as register_reports

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[2]


def _money(value) -> str:
    if value is None:
        return "-"
    return f"{Decimal(value):,.2f}"


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__, template_folder=str(REPO_ROOT / "templates"))

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["SITE_URL"] = getattr(settings, "SITE_URL", "")

    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"), getattr(settings, "LOG_FILE", None))
    logger.info("settings=%s db=%s", settings_module, DBConfig.from_dict(db_config).describe())

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
            ensure_demo_accounts(db_config)
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            license_api_key=getattr(settings, "LICENSE_API_KEY", ""),
            root_admin_emails=getattr(settings, "ROOT_ADMIN_EMAILS", ()),
            site_url=getattr(settings, "SITE_URL", ""),
        )

    app.jinja_env.filters["money"] = _money
    app.jinja_env.filters["date"] = format_date
    app.jinja_env.globals["category_label"] = category_label

    @app.context_processor
    def inject_user():
        return {"current_user": current_user()}

    @app.errorhandler(404)
    def not_found(_e):
        return render_template("404.html"), 404

    register_accounts(app, container)
    register_catalog(app, container)
    register_orders(app, container)
    register_licenses(app, container)
    register_brokers(app, container)
    register_ib(app, container)
    register_affiliates(app, container)
    register_payments(app, container)
    register_reports(app, container)

    return app
