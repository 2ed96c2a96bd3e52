"""Appointment derivations shared by the home, visits and search pages.

Every function here is pure: it takes already-loaded fixture records and
returns new values. Pages call them on each request instead of keeping
their own copies of the date/filter/grouping rules.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Sequence

from clinic_dashboard.services.formatting import (
    DEFAULT_LOCALE,
    format_currency,
    format_time,
    is_paid,
    parse_date_label,
    year_of,
)
from clinic_dashboard.services.pseudonyms import doctor_name, patient_name, patient_phone

RawAppointment = Mapping[str, Any]

# Canonical field -> candidate fixture keys, in priority order.
FIELD_KEYS: dict[str, tuple[str, ...]] = {
    "id": ("ID",),
    "doctor_id": ("Доктор ID",),
    "patient_id": ("Пациент ID",),
    "service_id": ("Услуга ID",),
    "conclusion_id": ("Заключение ID",),
    "timestamp": ("Дата и время",),
    "date_label": ("Дата n8н", "Дата n8n"),
    "status": ("Статус",),
    "price": ("Стоимость", "Итого, сом"),
    "cash": ("Наличные",),
    "cashless": ("Безналичные",),
    "note": ("Комментарий администратора", "Жалобы при обращении"),
    "complaint": ("Жалобы при обращении",),
    "admin_comment": ("Комментарий администратора",),
}

NUMERIC_FIELDS = frozenset({"price", "cash", "cashless"})


class AppointmentStatus(str, enum.Enum):
    PAID = "paid"
    PENDING = "pending"

    @classmethod
    def from_label(cls, label: str | None) -> "AppointmentStatus":
        return cls.PAID if is_paid(label) else cls.PENDING


@dataclass(frozen=True)
class NormalizedAppointment:
    id: str
    doctor_id: str
    patient_id: str
    service_id: str
    timestamp: str
    date_label: str
    status: AppointmentStatus
    status_label: str
    price: float | int
    note: str
    conclusion_id: str = ""
    cash: float | int = 0
    cashless: float | int = 0
    complaint: str = ""
    admin_comment: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def is_paid(self) -> bool:
        return self.status is AppointmentStatus.PAID

    @property
    def year(self) -> int:
        return year_of(self.date_label)

    @property
    def time(self) -> str:
        return format_time(self.timestamp)


@dataclass
class FilterState:
    """Optional equality constraints; ``None`` means unconstrained."""

    doctor: str | None = None
    patient: str | None = None
    service: str | None = None
    year: int | None = None
    date: str | None = None

    def is_empty(self) -> bool:
        return not any((self.doctor, self.patient, self.service, self.year, self.date))

    def as_dict(self) -> dict[str, Any]:
        return {
            "doctor": self.doctor,
            "patient": self.patient,
            "service": self.service,
            "year": self.year,
            "date": self.date,
        }


@dataclass
class Patient:
    id: str
    name: str
    phone: str
    last_visit: str = ""
    visit_count: int = 0


@dataclass(frozen=True)
class VisitRow:
    id: str
    time: str
    patient_name: str
    price: float | int
    price_display: str
    done: bool
    note: str
    appointment: NormalizedAppointment


@dataclass
class DoctorGroup:
    doctor_id: str
    doctor_name: str
    items: list[VisitRow] = field(default_factory=list)


@dataclass(frozen=True)
class FilterOptions:
    doctors: list[str]
    patients: list[str]
    services: list[str]
    years: list[int]


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _populated(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def first_value(raw: RawAppointment, keys: Iterable[str]) -> Any:
    """Return the first populated value among ``keys`` or ``None``."""
    for key in keys:
        value = raw.get(key)
        if _populated(value):
            return value
    return None


def _coerce_number(value: Any) -> float | int:
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        text = value
    else:
        text = str(value).strip().replace("\u00a0", "").replace(" ", "").replace(",", ".")
    try:
        number = float(text)
    except (ValueError, OverflowError):
        return 0
    if number != number or number in (float("inf"), float("-inf")):
        return 0
    return int(number) if number.is_integer() else number


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def normalize_record(raw: RawAppointment) -> NormalizedAppointment:
    """Map one fixture entry onto the canonical appointment shape. Never raises."""
    values: dict[str, Any] = {}
    for name, keys in FIELD_KEYS.items():
        value = first_value(raw, keys)
        values[name] = _coerce_number(value) if name in NUMERIC_FIELDS else _coerce_text(value)

    status_label = values.pop("status")
    return NormalizedAppointment(
        status=AppointmentStatus.from_label(status_label),
        status_label=status_label,
        raw=raw,
        **values,
    )


def normalize_records(raws: Iterable[Any]) -> list[NormalizedAppointment]:
    return [normalize_record(raw) for raw in raws if isinstance(raw, Mapping)]


# ---------------------------------------------------------------------------
# Date resolution / filtering / grouping
# ---------------------------------------------------------------------------


def _date_label_of(record: NormalizedAppointment) -> str:
    return record.date_label


def _timestamp_of(record: NormalizedAppointment) -> str:
    return record.timestamp


def resolve_date(
    records: Sequence[Any],
    preferred: str,
    date_of: Callable[[Any], str] = _date_label_of,
) -> str:
    """Pick the date label to display.

    The preferred label wins whenever any record carries it; otherwise the
    most recent label present is used. With no records, or no usable labels,
    the preferred label is returned unchanged.
    """
    if not records:
        return preferred

    labels = [(date_of(record) or "").strip() for record in records]
    if preferred in labels:
        return preferred

    distinct = {label for label in labels if label}
    if not distinct:
        return preferred
    return max(distinct, key=parse_date_label)


def filter_records(
    records: Sequence[NormalizedAppointment],
    filters: FilterState | None = None,
    effective_date: str | None = None,
) -> list[NormalizedAppointment]:
    """Keep records matching every present constraint, preserving order."""
    filters = filters or FilterState()
    date_label = filters.date or effective_date

    def _matches(record: NormalizedAppointment) -> bool:
        if date_label and record.date_label != date_label:
            return False
        if filters.year and record.year != filters.year:
            return False
        if filters.doctor and record.doctor_id != filters.doctor:
            return False
        if filters.patient and record.patient_id != filters.patient:
            return False
        if filters.service and record.service_id != filters.service:
            return False
        return True

    return [record for record in records if _matches(record)]


def sort_chronologically(
    records: Iterable[Any],
    timestamp_of: Callable[[Any], str] = _timestamp_of,
) -> list[Any]:
    # Fixed-width labels within a day sort correctly as text.
    return sorted(records, key=lambda record: timestamp_of(record) or "")


def group_by_doctor(
    records: Iterable[NormalizedAppointment],
    locale: str = DEFAULT_LOCALE,
) -> list[DoctorGroup]:
    """Sort, then partition by doctor in first-seen order."""
    groups: dict[str, DoctorGroup] = {}
    for record in sort_chronologically(records):
        group = groups.get(record.doctor_id)
        if group is None:
            group = DoctorGroup(doctor_id=record.doctor_id, doctor_name=doctor_name(record.doctor_id))
            groups[record.doctor_id] = group
        group.items.append(build_row(record, locale=locale))
    return list(groups.values())


def build_row(record: NormalizedAppointment, locale: str = DEFAULT_LOCALE) -> VisitRow:
    price_display = format_currency(record.price, locale)
    return VisitRow(
        id=record.id,
        time=record.time,
        patient_name=patient_name(record.patient_id),
        price=record.price,
        price_display=price_display,
        done=record.is_paid,
        note=record.note,
        appointment=record,
    )


def find_appointment(records: Iterable[NormalizedAppointment], appointment_id: str | None) -> NormalizedAppointment | None:
    if not appointment_id:
        return None
    for record in records:
        if record.id == appointment_id:
            return record
    return None


# ---------------------------------------------------------------------------
# Patients and filter options
# ---------------------------------------------------------------------------


def build_patients(records: Iterable[NormalizedAppointment]) -> list[Patient]:
    """Fold appointments into one entry per patient id, latest visit first."""
    patients: dict[str, Patient] = {}
    for record in records:
        pid = record.patient_id
        if not pid:
            continue
        existing = patients.get(pid)
        if existing is None:
            patients[pid] = Patient(
                id=pid,
                name=patient_name(pid),
                phone=patient_phone(pid),
                last_visit=record.timestamp,
                visit_count=1,
            )
            continue
        existing.visit_count += 1
        if existing.last_visit < record.timestamp:
            existing.last_visit = record.timestamp
    return sorted(patients.values(), key=lambda patient: patient.last_visit, reverse=True)


def search_patients(patients: Sequence[Patient], query: str | None) -> list[Patient]:
    """Match name case-insensitively, phone and id by substring."""
    query = (query or "").strip()
    if not query:
        return list(patients)
    folded = query.lower()
    return [
        patient
        for patient in patients
        if folded in patient.name.lower() or query in patient.phone or query in patient.id
    ]


def patient_history(records: Iterable[NormalizedAppointment], patient_id: str | None) -> list[NormalizedAppointment]:
    if not patient_id:
        return []
    return sort_chronologically(record for record in records if record.patient_id == patient_id)


def filter_options(records: Iterable[NormalizedAppointment]) -> FilterOptions:
    doctors: dict[str, None] = {}
    patients: dict[str, None] = {}
    services: dict[str, None] = {}
    years: set[int] = set()
    for record in records:
        if record.doctor_id:
            doctors.setdefault(record.doctor_id)
        if record.patient_id:
            patients.setdefault(record.patient_id)
        if record.service_id:
            services.setdefault(record.service_id)
        if record.year:
            years.add(record.year)
    return FilterOptions(
        doctors=list(doctors),
        patients=list(patients),
        services=list(services),
        years=sorted(years, reverse=True),
    )


__all__ = [
    "AppointmentStatus",
    "DoctorGroup",
    "FIELD_KEYS",
    "FilterOptions",
    "FilterState",
    "NormalizedAppointment",
    "Patient",
    "VisitRow",
    "build_patients",
    "build_row",
    "filter_options",
    "filter_records",
    "find_appointment",
    "first_value",
    "group_by_doctor",
    "normalize_record",
    "normalize_records",
    "patient_history",
    "resolve_date",
    "search_patients",
    "sort_chronologically",
]
