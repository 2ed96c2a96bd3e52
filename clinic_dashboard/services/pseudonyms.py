"""Deterministic placeholder identities for fixture ids.

The appointment fixture carries opaque doctor and patient ids only, so the
pages derive stable display names and phone numbers from the id itself.
Collisions are expected with tables this small.
"""

from __future__ import annotations

from typing import Sequence, TypeVar

T = TypeVar("T")

_MASK_32 = 0xFFFFFFFF
PHONE_PREFIX = "996"

DOCTOR_SPECIALTIES = ("Педиатр", "Невролог", "Уролог", "ЛОР", "Хирург", "Окулист")
DOCTOR_NAMES = (
    "Кулушова Аднай Канаат",
    "Аббасова Айгерим Аббасовна",
    "Сатытабекова Айдана Са",
    "Князев Игорь Алексеевич",
    "Бурдайбекова Мэрзим Улановна",
    "Абдразаков Рамизан",
)
PATIENT_SURNAMES = (
    "Акбаров",
    "Мамарасулов",
    "Кенжебеков",
    "Таалайбеков",
    "Сеиталиева",
    "Муразов",
    "Ниязбеков",
    "Канатбеков",
    "Рамизов",
    "Аскаров",
)
PATIENT_GIVEN_NAMES = (
    "Айбек",
    "Айым",
    "Адилет",
    "Айдос",
    "Айдана",
    "Нурсултан",
    "Ариана",
    "Марсель",
    "Нурислам",
    "Сумая",
)


def seeded_number(value: str) -> int:
    """32-bit unsigned polynomial rolling hash over character codes."""
    h = 0
    for char in value or "":
        h = (h * 31 + ord(char)) & _MASK_32
    return h


def _pick(items: Sequence[T], index: int) -> T:
    return items[index % len(items)]


def doctor_name(doctor_id: str) -> str:
    h = seeded_number(doctor_id)
    return f"{_pick(DOCTOR_SPECIALTIES, h)} - {_pick(DOCTOR_NAMES, h >> 3)}"


def patient_name(patient_id: str) -> str:
    h = seeded_number(patient_id)
    return f"{_pick(PATIENT_SURNAMES, h)} {_pick(PATIENT_GIVEN_NAMES, h >> 3)}"


def patient_phone(patient_id: str) -> str:
    digits = str(seeded_number(patient_id))[:9]
    return f"{PHONE_PREFIX}{digits.ljust(9, '0')}"
