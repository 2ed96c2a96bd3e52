from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from clinic_dashboard.blueprints.helpers import (
    appointment_payload,
    currency_locale,
    load_records,
    preferred_day,
    row_payload,
)
from clinic_dashboard.services.appointments import (
    DoctorGroup,
    NormalizedAppointment,
    filter_records,
    group_by_doctor,
    resolve_date,
)
from clinic_dashboard.services.errors import record_exception
from clinic_dashboard.services.pseudonyms import doctor_name, patient_name
from clinic_dashboard.services.security import no_store
from clinic_dashboard.services.ui import render_page, wants_json

bp = Blueprint("visits", __name__)


def _selected_appointment(groups: list[DoctorGroup], appointment_id: str | None) -> NormalizedAppointment | None:
    """Requested appointment, or the first row of the first group."""
    for group in groups:
        for row in group.items:
            if appointment_id and row.id == appointment_id:
                return row.appointment
    if groups and groups[0].items:
        return groups[0].items[0].appointment
    return None


@bp.route("/visits", methods=["GET"], endpoint="index")
@no_store
def visits_index():
    """Appointments for the effective day, grouped by doctor."""
    try:
        records = load_records()
        day = resolve_date(records, preferred_day())
        todays = filter_records(records, effective_date=day)
        groups = group_by_doctor(todays, locale=currency_locale())
        selected = _selected_appointment(groups, request.args.get("appointment"))
        current_app.logger.debug("Visits: %d doctors, %d appointments on %s", len(groups), len(todays), day)

        if wants_json():
            return jsonify(
                {
                    "date": day,
                    "groups": [
                        {
                            "doctor_id": group.doctor_id,
                            "doctor_name": group.doctor_name,
                            "items": [row_payload(row) for row in group.items],
                        }
                        for group in groups
                    ],
                    "selected": appointment_payload(selected) if selected else None,
                }
            )

        return render_page(
            "visits.html",
            title="Приемы для врачей",
            day=day,
            groups=groups,
            selected=selected,
            selected_id=selected.id if selected else None,
            selected_doctor=doctor_name(selected.doctor_id) if selected else None,
            selected_patient=patient_name(selected.patient_id) if selected else None,
        )
    except Exception as exc:
        record_exception("visits.index", exc)
        raise
