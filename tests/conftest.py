import json

import pytest

from clinic_dashboard import create_app


def make_raw(
    appt_id,
    *,
    doctor="d-1",
    patient="p-1",
    service="s-1",
    when="16.11.2025 10:00:00",
    status="Ожидание",
    price=0,
    date_key="Дата n8н",
    price_key="Стоимость",
    **extra,
):
    raw = {
        "ID": appt_id,
        "Доктор ID": doctor,
        "Пациент ID": patient,
        "Услуга ID": service,
        "Дата и время": when,
        "Статус": status,
        price_key: price,
        date_key: when.split(" ")[0],
    }
    raw.update(extra)
    return raw


@pytest.fixture()
def sample_raws():
    return [
        make_raw("a1", doctor="d-2", patient="p-1", when="15.11.2025 9:30:00", status="Оплачено", price=1200),
        make_raw("a2", doctor="d-1", patient="p-2", when="16.11.2025 11:00:00", price=800, date_key="Дата n8n"),
        make_raw("a3", doctor="d-2", patient="p-1", when="16.11.2025 10:15:00", status="оплачено", price="1500"),
        make_raw("a4", doctor="d-1", patient="p-3", when="16.11.2025 12:40:00", price_key="Итого, сом", price=950),
        make_raw("a5", doctor="d-3", patient="p-2", when="01.01.2024 10:00:00", service="s-9", price=300),
    ]


@pytest.fixture()
def write_fixture(tmp_path):
    def _write(payload, name="appointments.json"):
        path = tmp_path / name
        path.write_text(json.dumps(payload, ensure_ascii=False), encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def make_app(write_fixture):
    def _make(payload=None, **overrides):
        config = {
            "TESTING": True,
            "WTF_CSRF_ENABLED": False,
            "RATELIMIT_ENABLED": False,
            "SECRET_KEY": "test-secret",
            "FIXTURE_URL": None,
            "TODAY": "20.11.2025",
        }
        if payload is not None:
            config["FIXTURE_PATH"] = str(write_fixture(payload))
        config.update(overrides)
        return create_app(config)

    return _make


@pytest.fixture()
def app(make_app, sample_raws):
    return make_app(sample_raws)


@pytest.fixture()
def client(app):
    return app.test_client()
