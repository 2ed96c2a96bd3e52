"""Request-scoped helpers shared by the page blueprints."""

from __future__ import annotations

from typing import Any

from flask import current_app

from clinic_dashboard.services.appointments import (
    NormalizedAppointment,
    Patient,
    VisitRow,
    normalize_records,
)
from clinic_dashboard.services.fixtures import load_configured_appointments
from clinic_dashboard.services.formatting import format_currency, today_label


def load_records() -> list[NormalizedAppointment]:
    """Fetch and normalize this request's copy of the fixture."""
    return normalize_records(load_configured_appointments())


def preferred_day() -> str:
    return current_app.config.get("TODAY") or today_label()


def currency_locale() -> str:
    return current_app.config.get("CURRENCY_LOCALE", "ru_RU")


def appointment_payload(record: NormalizedAppointment) -> dict[str, Any]:
    locale = currency_locale()
    return {
        "id": record.id,
        "doctor_id": record.doctor_id,
        "patient_id": record.patient_id,
        "service_id": record.service_id,
        "conclusion_id": record.conclusion_id,
        "timestamp": record.timestamp,
        "date": record.date_label,
        "time": record.time,
        "status": record.status.value,
        "status_label": record.status_label,
        "paid": record.is_paid,
        "price": record.price,
        "price_display": format_currency(record.price, locale),
        "cash": record.cash,
        "cashless": record.cashless,
        "note": record.note,
        "complaint": record.complaint,
        "admin_comment": record.admin_comment,
    }


def row_payload(row: VisitRow) -> dict[str, Any]:
    return {
        "id": row.id,
        "time": row.time,
        "patient_id": row.appointment.patient_id,
        "patient_name": row.patient_name,
        "price": row.price,
        "price_display": row.price_display,
        "done": row.done,
        "note": row.note,
    }


def patient_payload(patient: Patient) -> dict[str, Any]:
    return {
        "id": patient.id,
        "name": patient.name,
        "phone": patient.phone,
        "last_visit": patient.last_visit,
        "visit_count": patient.visit_count,
    }
