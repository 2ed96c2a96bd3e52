"""Clinic dashboard package exposing the Flask application factory."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Mapping

from flask import Flask, jsonify, request
from flask_wtf.csrf import CSRFError

from .blueprints import register_blueprints
from .extensions import init_extensions
from .services.fixtures import DEFAULT_TIMEOUT
from .services.security import init_security
from .services.ui import register_ui, render_page, wants_json


def _configure_logging(app: Flask) -> None:
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    app.logger.setLevel(level)
    logging.getLogger("clinic_dashboard").setLevel(level)


def create_app(overrides: Mapping[str, Any] | None = None) -> Flask:
    base_dir = Path(__file__).resolve().parent.parent
    template_folder = base_dir / "templates"
    static_folder = base_dir / "static"

    app = Flask(
        __name__,
        template_folder=str(template_folder),
        static_folder=str(static_folder),
    )

    secret_key = os.getenv("CLINIC_SECRET_KEY")
    if not secret_key:
        secret_key = os.urandom(32)

    fixture_path = os.getenv("CLINIC_FIXTURE_PATH") or str(static_folder / "appointments.json")

    app.config.update(
        SECRET_KEY=secret_key,
        SESSION_COOKIE_NAME="clinic_session",
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SAMESITE="Lax",
        RATELIMIT_STORAGE_URI=os.getenv("RATELIMIT_STORAGE_URI", "memory://"),
        FIXTURE_URL=os.getenv("CLINIC_FIXTURE_URL") or None,
        FIXTURE_PATH=fixture_path,
        FIXTURE_TIMEOUT=float(os.getenv("CLINIC_FIXTURE_TIMEOUT", str(DEFAULT_TIMEOUT))),
        # DD.MM.YYYY; pins "today" for demos against an old fixture.
        TODAY=os.getenv("CLINIC_TODAY") or None,
        CURRENCY_LOCALE=os.getenv("CLINIC_LOCALE", "ru_RU"),
        LOG_LEVEL=os.getenv("CLINIC_LOG_LEVEL", "INFO"),
        LAYOUT_COOKIE_MAX_AGE=60 * 60 * 24 * 365,
    )
    if overrides:
        app.config.update(overrides)

    _configure_logging(app)
    register_ui(app)
    init_extensions(app)
    register_blueprints(app)
    init_security(app)

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning("CSRF validation failed on %s: %s", request.path, e.description)
        return jsonify({"success": False, "errors": [f"CSRF validation failed: {e.description}"]}), 400

    @app.errorhandler(404)
    def handle_not_found(e):
        if wants_json():
            return jsonify({"success": False, "errors": ["Not found"]}), 404
        return render_page("not_found.html", title="Страница не найдена"), 404

    return app


__all__ = ["create_app"]
