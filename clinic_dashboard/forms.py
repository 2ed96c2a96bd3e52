"""Query-string forms for the dashboard pages.

These are GET forms, so CSRF is off and the forms bind ``request.args``.
"""

from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import IntegerField, SelectField, StringField
from wtforms.validators import Length, Optional, Regexp

from clinic_dashboard.services.appointments import FilterOptions, FilterState

DATE_LABEL_PATTERN = r"^\d{2}\.\d{2}\.\d{4}$"


class _QueryForm(FlaskForm):
    class Meta:
        csrf = False


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
    return value or None


class FilterForm(_QueryForm):
    doctor = SelectField("Доктор ID", choices=[], validate_choice=False, filters=[_blank_to_none])
    patient = SelectField("Пациент ID", choices=[], validate_choice=False, filters=[_blank_to_none])
    service = SelectField("Услуга ID", choices=[], validate_choice=False, filters=[_blank_to_none])
    year = IntegerField("Год", validators=[Optional()])
    date = StringField(
        "Дата",
        validators=[Optional(), Regexp(DATE_LABEL_PATTERN, message="Use DD.MM.YYYY")],
        filters=[_blank_to_none],
    )

    def populate_choices(self, options: FilterOptions) -> None:
        blank = [("", "—")]
        self.doctor.choices = blank + [(value, value) for value in options.doctors]
        self.patient.choices = blank + [(value, value) for value in options.patients]
        self.service.choices = blank + [(value, value) for value in options.services]

    def to_state(self) -> FilterState:
        """Build a FilterState, dropping fields that failed validation."""
        self.validate()
        date = self.date.data if not self.date.errors else None
        year = self.year.data if not self.year.errors else None
        return FilterState(
            doctor=self.doctor.data,
            patient=self.patient.data,
            service=self.service.data,
            year=year or None,
            date=date,
        )


class SearchForm(_QueryForm):
    q = StringField("Поиск пациента", validators=[Optional(), Length(max=120)], filters=[_blank_to_none])

    @property
    def query(self) -> str:
        return self.q.data or ""
