from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from clinic_dashboard.blueprints.helpers import (
    appointment_payload,
    currency_locale,
    load_records,
    patient_payload,
)
from clinic_dashboard.forms import SearchForm
from clinic_dashboard.services.appointments import (
    Patient,
    build_patients,
    build_row,
    find_appointment,
    patient_history,
    search_patients,
)
from clinic_dashboard.services.errors import record_exception
from clinic_dashboard.services.security import no_store
from clinic_dashboard.services.ui import render_page, wants_json

bp = Blueprint("patients", __name__)


def _selected_patient(candidates: list[Patient], everyone: list[Patient], patient_id: str | None) -> Patient | None:
    if patient_id:
        for patient in everyone:
            if patient.id == patient_id:
                return patient
    return candidates[0] if candidates else None


@bp.route("/search", methods=["GET"], endpoint="search")
@no_store
def patients_search():
    """Patient directory with text search and visit history."""
    try:
        form = SearchForm(formdata=request.args)
        # An over-long query stays as typed so it simply matches nobody.
        form.validate()
        query = form.query

        records = load_records()
        patients = build_patients(records)
        matches = search_patients(patients, query)
        selected = _selected_patient(matches, patients, request.args.get("patient"))
        history = patient_history(records, selected.id if selected else None)
        selected_appointment = find_appointment(history, request.args.get("appointment"))
        current_app.logger.debug(
            "Search %r: %d of %d patients, %d history rows", query, len(matches), len(patients), len(history)
        )

        if wants_json():
            return jsonify(
                {
                    "query": query,
                    "patients": [patient_payload(patient) for patient in matches],
                    "selected_patient": patient_payload(selected) if selected else None,
                    "history": [appointment_payload(record) for record in history],
                    "selected_appointment": (
                        appointment_payload(selected_appointment) if selected_appointment else None
                    ),
                }
            )

        locale = currency_locale()
        return render_page(
            "patients_search.html",
            title="Поиск пациента",
            form=form,
            query=query,
            patients=matches,
            selected_patient=selected,
            history=[build_row(record, locale=locale) for record in history],
            selected_appointment=selected_appointment,
        )
    except Exception as exc:
        record_exception("patients.search", exc)
        raise
