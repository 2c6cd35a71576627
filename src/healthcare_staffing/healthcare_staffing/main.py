from __future__ import annotations

import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module, load_settings

from .attendance.controller import register as register_attendance
from .common.http import register_error_handlers
from .container import Container, build_container
from .database.bootstrap import apply_schema, ensure_admin_user
from .leaves.controller import register as register_leaves
from .shifts.controller import register as register_shifts
from .staff.controller import register as register_staff
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    """Application factory.

    A prebuilt ``container`` skips all database setup; tests use this to run
    the HTTP layer over in-memory repositories.
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = load_settings(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["SESSION_DAYS"] = int(getattr(settings, "SESSION_DAYS", 7))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            admin_email = getattr(settings, "ADMIN_EMAIL", None)
            admin_password = getattr(settings, "ADMIN_PASSWORD", None)
            if admin_email and admin_password:
                ensure_admin_user(db_config, email=admin_email, password=admin_password)

        container = build_container(
            db_config=db_config,
            validate_replacements=bool(getattr(settings, "VALIDATE_REPLACEMENTS", True)),
            default_page_size=int(getattr(settings, "DEFAULT_PAGE_SIZE", 10)),
        )

    register_error_handlers(app)
    register_users(app, container)
    register_staff(app, container)
    register_shifts(app, container)
    register_attendance(app, container)
    register_leaves(app, container)

    return app
