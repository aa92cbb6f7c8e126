import re
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from django.core.exceptions import ValidationError
from django.utils import timezone

from apps.eom.models import PERIOD_RE, YEAR_RE, EomSettings, ParticipatingUnit

NO_SETTINGS = "no_settings"
NOT_STARTED = "not_started"
ACTIVE = "active"
COMPLETED = "completed"

MONTHS_ID = [
    "Januari", "Februari", "Maret", "April", "Mei", "Juni",
    "Juli", "Agustus", "September", "Oktober", "November", "Desember",
]


@dataclass(frozen=True)
class PeriodStatus:
    phase: str
    can_rate: bool
    can_evaluate: bool
    can_verify: bool
    settings: Optional[EomSettings]
    message: str

    @property
    def active_period(self) -> Optional[str]:
        return self.settings.period if self.settings else None


def validate_period(value: str) -> str:
    value = (value or "").strip()
    if not re.match(PERIOD_RE, value):
        raise ValidationError("Periode harus berformat YYYY-MM.", code="invalid_period")
    return value


def validate_year(value) -> str:
    value = str(value or "").strip()
    if not re.match(YEAR_RE, value):
        raise ValidationError("Tahun harus berformat YYYY.", code="invalid_year")
    return value


def period_of(day: date) -> str:
    return f"{day.year}-{day.month:02d}"


def format_period(period: str) -> str:
    year, month = period.split("-")
    return f"{MONTHS_ID[int(month) - 1]} {year}"


def format_date(day: date) -> str:
    return f"{day.day} {MONTHS_ID[day.month - 1]} {day.year}"


def validate_period_dates(
    rating_start_date: date,
    rating_end_date: date,
    evaluation_start_date: date,
    evaluation_end_date: date,
    verification_start_date: date,
    verification_end_date: date,
) -> None:
    errors = []
    if rating_start_date > rating_end_date:
        errors.append("Tanggal akhir penilaian harus setelah tanggal mulai.")
    if evaluation_start_date > evaluation_end_date:
        errors.append("Tanggal akhir evaluasi harus setelah tanggal mulai.")
    if verification_start_date > verification_end_date:
        errors.append("Tanggal akhir verifikasi harus setelah tanggal mulai.")
    if rating_end_date > evaluation_start_date:
        errors.append("Periode evaluasi harus dimulai setelah periode penilaian berakhir.")
    if evaluation_end_date > verification_start_date:
        errors.append("Periode verifikasi harus dimulai setelah periode evaluasi berakhir.")
    if errors:
        raise ValidationError(errors, code="invalid_dates")


def resolve_active_settings(all_settings: Iterable[EomSettings], today: date) -> Optional[EomSettings]:
    """The period whose rating window contains today, else the next upcoming one."""
    all_settings = sorted(all_settings, key=lambda s: s.rating_start_date, reverse=True)
    for s in all_settings:
        if s.rating_start_date <= today <= s.rating_end_date:
            return s
    upcoming = [s for s in all_settings if today < s.rating_start_date]
    return min(upcoming, key=lambda s: s.rating_start_date) if upcoming else None


def period_status(settings: Optional[EomSettings], today: date) -> PeriodStatus:
    if settings is None:
        return PeriodStatus(NO_SETTINGS, False, False, False, None,
                            "Tidak ada periode penilaian yang aktif saat ini.")

    if today < settings.rating_start_date:
        return PeriodStatus(
            NOT_STARTED, False, False, False, settings,
            f"Periode penilaian {settings.period} akan dimulai pada {format_date(settings.rating_start_date)}",
        )
    if today <= settings.rating_end_date:
        # Rating, evaluation and verification run concurrently inside the window.
        return PeriodStatus(
            ACTIVE, True, True, True, settings,
            f"Periode penilaian {settings.period} aktif sampai {format_date(settings.rating_end_date)}",
        )
    return PeriodStatus(COMPLETED, False, False, False, settings, f"Periode {settings.period} sudah selesai.")


def current_status(period: Optional[str] = None, today: Optional[date] = None) -> PeriodStatus:
    today = today or timezone.localdate()
    if period:
        settings = EomSettings.objects.filter(period=period).first()
    else:
        settings = resolve_active_settings(EomSettings.objects.all(), today)
    return period_status(settings, today)


def is_unit_participating(work_unit_id) -> bool:
    # With no participation rows configured every unit takes part.
    if not ParticipatingUnit.objects.exists():
        return True
    row = ParticipatingUnit.objects.filter(work_unit_id=work_unit_id).first()
    return bool(row and row.is_active)
