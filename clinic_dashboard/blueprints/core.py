from __future__ import annotations

from pathlib import Path

from flask import Blueprint, abort, current_app, jsonify, redirect, request, send_file, url_for

from clinic_dashboard.blueprints.helpers import (
    currency_locale,
    load_records,
    preferred_day,
    row_payload,
)
from clinic_dashboard.forms import FilterForm
from clinic_dashboard.services.appointments import (
    build_row,
    filter_options,
    filter_records,
    resolve_date,
    sort_chronologically,
)
from clinic_dashboard.services.errors import record_exception
from clinic_dashboard.services.security import no_store
from clinic_dashboard.services.ui import (
    SIDER_COOKIE,
    THEME_COOKIE,
    LayoutContext,
    render_page,
    wants_json,
)

bp = Blueprint("core", __name__)


def _appointments_title(filter_date: str | None, effective: str, today: str) -> str:
    if filter_date:
        return f"Приемы на {filter_date}"
    if effective == today:
        return f"Приемы сегодня ({today})"
    return f"Приемы на {effective}"


@bp.route("/", methods=["GET"], endpoint="index")
@bp.route("/home", methods=["GET"], endpoint="home")
@no_store
def home():
    """Home overview: appointments for the effective day, with filters."""
    try:
        records = load_records()
        today = preferred_day()
        effective = resolve_date(records, today)

        form = FilterForm(formdata=request.args)
        options = filter_options(records)
        form.populate_choices(options)
        filters = form.to_state()

        visible = sort_chronologically(filter_records(records, filters, effective_date=effective))
        locale = currency_locale()
        rows = [build_row(record, locale=locale) for record in visible]
        title = _appointments_title(filters.date, effective, today)
        current_app.logger.debug(
            "Home: %d of %d records for %s (filters=%s)", len(rows), len(records), effective, filters.as_dict()
        )

        if wants_json():
            return jsonify(
                {
                    "date": effective,
                    "title": title,
                    "filters": filters.as_dict(),
                    "appointments": [row_payload(row) for row in rows],
                }
            )

        return render_page(
            "home.html",
            title="Главная",
            appointments_title=title,
            rows=rows,
            form=form,
            filters=filters,
            years=options.years,
        )
    except Exception as exc:
        record_exception("core.home", exc)
        raise


@bp.route("/appointments.json", methods=["GET"], endpoint="fixture")
def appointments_fixture():
    """Serve the bundled appointments fixture."""
    path = Path(current_app.config["FIXTURE_PATH"])
    if not path.is_file():
        current_app.logger.warning("Fixture file %s is missing", path)
        abort(404)
    return send_file(path, mimetype="application/json")


def _back_target() -> str:
    target = request.form.get("next") or ""
    # Only same-site relative paths.
    if not target.startswith("/") or target.startswith("//"):
        return url_for("core.index")
    return target


@bp.route("/ui/sider", methods=["POST"], endpoint="toggle_sider")
def toggle_sider():
    layout = LayoutContext.from_request()
    response = redirect(_back_target())
    response.set_cookie(
        SIDER_COOKIE,
        "0" if layout.sider_collapsed else "1",
        max_age=current_app.config["LAYOUT_COOKIE_MAX_AGE"],
        samesite="Lax",
        httponly=True,
    )
    return response


@bp.route("/ui/theme", methods=["POST"], endpoint="toggle_theme")
def toggle_theme():
    layout = LayoutContext.from_request()
    response = redirect(_back_target())
    response.set_cookie(
        THEME_COOKIE,
        layout.toggled_theme(),
        max_age=current_app.config["LAYOUT_COOKIE_MAX_AGE"],
        samesite="Lax",
        httponly=True,
    )
    return response

