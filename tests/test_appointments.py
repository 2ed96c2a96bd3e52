import pytest

from conftest import make_raw

from clinic_dashboard.services.appointments import (
    AppointmentStatus,
    FilterState,
    build_patients,
    filter_options,
    filter_records,
    find_appointment,
    group_by_doctor,
    normalize_record,
    normalize_records,
    patient_history,
    resolve_date,
    search_patients,
    sort_chronologically,
)
from clinic_dashboard.services.pseudonyms import doctor_name, patient_name


@pytest.fixture()
def records(sample_raws):
    return normalize_records(sample_raws)


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------


def test_normalize_prefers_first_populated_key():
    raw = {
        "ID": "x1",
        "Стоимость": 700,
        "Итого, сом": 900,
        "Дата n8н": "16.11.2025",
        "Дата n8n": "15.11.2025",
        "Комментарий администратора": "  позвонить  ",
        "Жалобы при обращении": "кашель",
    }
    record = normalize_record(raw)
    assert record.price == 700
    assert record.date_label == "16.11.2025"
    assert record.note == "позвонить"
    assert record.complaint == "кашель"
    assert record.admin_comment == "позвонить"


def test_normalize_falls_back_to_second_key():
    raw = {
        "Стоимость": None,
        "Итого, сом": "1 250",
        "Дата n8н": "  ",
        "Дата n8n": "15.11.2025",
        "Комментарий администратора": "",
        "Жалобы при обращении": "боль",
    }
    record = normalize_record(raw)
    assert record.price == 1250
    assert record.date_label == "15.11.2025"
    assert record.note == "боль"


def test_normalize_missing_fields_coerce_to_defaults():
    record = normalize_record({})
    assert record.id == ""
    assert record.doctor_id == ""
    assert record.timestamp == ""
    assert record.price == 0
    assert record.cash == 0
    assert record.note == ""
    assert record.status is AppointmentStatus.PENDING


@pytest.mark.parametrize("price", ["abc", "", True, float("nan"), [1]])
def test_normalize_unparseable_price_is_zero(price):
    assert normalize_record({"Стоимость": price}).price == 0


def test_normalize_keeps_fractional_prices():
    assert normalize_record({"Стоимость": "99,5"}).price == 99.5


def test_normalize_status_is_case_insensitive():
    assert normalize_record({"Статус": "ОПЛАЧЕНО"}).is_paid
    record = normalize_record({"Статус": "Ожидание"})
    assert not record.is_paid
    assert record.status_label == "Ожидание"


def test_normalize_numeric_ids_become_text():
    record = normalize_record({"ID": 17, "Доктор ID": 3.0})
    assert record.id == "17"
    assert record.doctor_id == "3"


def test_normalize_records_skips_non_mappings(sample_raws):
    records = normalize_records(sample_raws + ["junk", None, 5])
    assert len(records) == len(sample_raws)


def test_normalize_record_keeps_raw():
    raw = make_raw("a1", **{"Заключение ID": "c-1"})
    record = normalize_record(raw)
    assert record.raw is raw
    assert record.conclusion_id == "c-1"


# ---------------------------------------------------------------------------
# Date resolver
# ---------------------------------------------------------------------------


def _with_labels(*labels):
    return normalize_records(
        make_raw(f"id{i}", when=f"{label} 10:00:00") for i, label in enumerate(labels)
    )


def test_resolve_prefers_present_label():
    records = _with_labels("15.11.2025", "16.11.2025")
    assert resolve_date(records, "16.11.2025") == "16.11.2025"
    assert resolve_date(records, "15.11.2025") == "15.11.2025"


def test_resolve_falls_back_to_most_recent():
    records = _with_labels("31.12.2023", "01.01.2024")
    assert resolve_date(records, "20.11.2025") == "01.01.2024"


def test_resolve_result_is_present_in_set(records):
    labels = {record.date_label for record in records}
    for preferred in ("01.01.1999", "16.11.2025", "15.11.2025", "bogus"):
        assert resolve_date(records, preferred) in labels


def test_resolve_empty_returns_preferred():
    assert resolve_date([], "20.11.2025") == "20.11.2025"


def test_resolve_without_any_labels_returns_preferred():
    records = normalize_records([{"ID": "a"}, {"ID": "b"}])
    assert resolve_date(records, "20.11.2025") == "20.11.2025"


def test_resolve_accepts_extraction_strategy(sample_raws):
    def raw_date(raw):
        return raw.get("Дата n8н") or raw.get("Дата n8n") or ""

    assert resolve_date(sample_raws, "20.11.2025", date_of=raw_date) == "16.11.2025"


# ---------------------------------------------------------------------------
# Filter engine
# ---------------------------------------------------------------------------


def test_empty_filter_is_identity(records):
    assert filter_records(records, FilterState()) == records
    assert filter_records(records) == records


def test_filter_is_subset_preserving_order(records):
    result = filter_records(records, FilterState(doctor="d-1"))
    assert [r.id for r in result] == ["a2", "a4"]
    positions = [records.index(r) for r in result]
    assert positions == sorted(positions)


def test_effective_date_is_default_constraint(records):
    result = filter_records(records, FilterState(), effective_date="16.11.2025")
    assert {r.id for r in result} == {"a2", "a3", "a4"}


def test_explicit_date_overrides_effective_date(records):
    result = filter_records(records, FilterState(date="15.11.2025"), effective_date="16.11.2025")
    assert [r.id for r in result] == ["a1"]


def test_year_uses_date_label(records):
    result = filter_records(records, FilterState(year=2024))
    assert [r.id for r in result] == ["a5"]


def test_service_and_patient_filters(records):
    assert [r.id for r in filter_records(records, FilterState(service="s-9"))] == ["a5"]
    assert [r.id for r in filter_records(records, FilterState(patient="p-1"))] == ["a1", "a3"]


@pytest.mark.parametrize(
    "left, right",
    [
        (FilterState(doctor="d-1"), FilterState(patient="p-2")),
        (FilterState(doctor="d-2"), FilterState(year=2025)),
        (FilterState(service="s-1"), FilterState(date="16.11.2025")),
    ],
)
def test_combined_filters_equal_intersection(records, left, right):
    merged = FilterState(
        **{key: left.as_dict()[key] or right.as_dict()[key] for key in left.as_dict()}
    )
    both = filter_records(records, merged)
    intersection = [r for r in filter_records(records, left) if r in filter_records(records, right)]
    assert both == intersection


def test_filter_state_is_empty():
    assert FilterState().is_empty()
    assert not FilterState(year=2025).is_empty()


# ---------------------------------------------------------------------------
# Grouping / sorting
# ---------------------------------------------------------------------------


def test_sort_chronologically_uses_timestamp_text(records):
    ordered = sort_chronologically(filter_records(records, effective_date="16.11.2025"))
    assert [r.id for r in ordered] == ["a3", "a2", "a4"]


def test_group_by_doctor_first_seen_order(records):
    todays = filter_records(records, effective_date="16.11.2025")
    groups = group_by_doctor(todays)
    assert [g.doctor_id for g in groups] == ["d-2", "d-1"]
    assert [row.id for row in groups[1].items] == ["a2", "a4"]
    assert groups[0].doctor_name == doctor_name("d-2")


def test_group_by_doctor_partition_law(records):
    flat = sort_chronologically(records)
    groups = group_by_doctor(records)
    grouped_ids = [row.id for group in groups for row in group.items]
    assert sorted(grouped_ids) == sorted(r.id for r in flat)
    assert len(grouped_ids) == len(flat)
    assert len({group.doctor_id for group in groups}) == len(groups)


def test_group_rows_carry_display_fields(records):
    groups = group_by_doctor(filter_records(records, effective_date="16.11.2025"))
    row = groups[0].items[0]
    assert row.time == "10:15"
    assert row.patient_name == patient_name("p-1")
    assert row.price == 1500
    assert row.done is True


def test_group_by_doctor_empty():
    assert group_by_doctor([]) == []


def test_find_appointment(records):
    assert find_appointment(records, "a3").id == "a3"
    assert find_appointment(records, "missing") is None
    assert find_appointment(records, None) is None


# ---------------------------------------------------------------------------
# Patients and options
# ---------------------------------------------------------------------------


def test_build_patients_folds_visits(records):
    patients = build_patients(records)
    assert [p.id for p in patients] == ["p-3", "p-2", "p-1"]
    by_id = {p.id: p for p in patients}
    assert by_id["p-1"].visit_count == 2
    assert by_id["p-1"].last_visit == "16.11.2025 10:15:00"
    assert by_id["p-2"].last_visit == "16.11.2025 11:00:00"
    assert by_id["p-2"].name == patient_name("p-2")


def test_build_patients_skips_blank_ids():
    records = normalize_records([make_raw("a", patient=""), make_raw("b", patient="p-9")])
    assert [p.id for p in build_patients(records)] == ["p-9"]


def test_search_patients(records):
    patients = build_patients(records)
    target = patients[0]
    assert search_patients(patients, "") == patients
    assert search_patients(patients, None) == patients
    assert target in search_patients(patients, target.name.upper())
    assert target in search_patients(patients, target.phone[3:8])
    assert [p.id for p in search_patients(patients, "p-2")] == ["p-2"]
    assert search_patients(patients, "zzz-no-match") == []


def test_patient_history_is_chronological(records):
    history = patient_history(records, "p-2")
    assert [r.id for r in history] == ["a5", "a2"]
    assert patient_history(records, None) == []


def test_filter_options(records):
    options = filter_options(records)
    assert options.doctors == ["d-2", "d-1", "d-3"]
    assert options.patients == ["p-1", "p-2", "p-3"]
    assert options.services == ["s-1", "s-9"]
    assert options.years == [2025, 2024]


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


def test_two_records_same_day_scenario():
    raws = [
        make_raw("late", when="16.11.2025 11:30:00", status="Ожидание", price=300),
        make_raw("early", when="16.11.2025 10:00:00", status="Оплачено", price=500),
    ]
    records = normalize_records(raws)
    day = resolve_date(records, "20.11.2025")
    assert day == "16.11.2025"

    groups = group_by_doctor(filter_records(records, effective_date=day))
    assert len(groups) == 1
    rows = groups[0].items
    assert [row.id for row in rows] == ["early", "late"]
    assert [row.price_display for row in rows] == ["500", "300"]
    assert [row.done for row in rows] == [True, False]


def test_normalize_oversized_price_is_zero():
    assert normalize_record({"Стоимость": 10**400}).price == 0
    assert normalize_record({"Итого, сом": "1" + "0" * 400}).price == 0
