"""ERP attendance & payroll reconciliation service.

This package is organized by feature modules (attendance, corrections,
processing, payroll, ...) with a thin Flask controller layer over
service/repository layers.
"""
from __future__ import annotations

import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .common.http import register_error_handlers
from .common.logging_utils import configure_logging
from .config import get_settings_module, load_settings
from .container import Container, build_container
from .database.connection import DBConfig

logger = logging.getLogger(__name__)


def create_app(settings_module: Optional[str] = None, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    settings_module = settings_module or get_settings_module()
    settings = load_settings(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.json.sort_keys = False

    if container is None:
        from .database.bootstrap import apply_schema, ensure_demo_data, list_tables

        db_config = dict(getattr(settings, "DB_CONFIG"))
        logger.info("settings=%s db=%s", settings_module, DBConfig.from_dict(db_config).describe())
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_data(db_config)
        container = build_container(db_config=db_config, settings=settings)

    from .attendance.controller import register as register_attendance
    from .corrections.controller import register as register_corrections
    from .notifications.controller import register as register_notifications
    from .payroll.controller import register as register_payroll
    from .users.controller import register as register_users

    register_error_handlers(app)
    register_users(app, container)
    register_corrections(app, container)
    register_attendance(app, container)
    register_payroll(app, container)
    register_notifications(app, container)

    app.extensions["erp_attendance.container"] = container
    return app
