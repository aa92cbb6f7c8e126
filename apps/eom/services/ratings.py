import logging
from datetime import date
from typing import Optional

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from apps.core.permissions import USER_PIMPINAN, USER_UNIT
from apps.eom.criteria import criteria_for
from apps.eom.models import EmployeeRating
from apps.eom.services.periods import current_status, is_unit_participating
from apps.eom.services.scoring import compute_rating_totals
from apps.org.models import Profile

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Anda sudah memberikan penilaian pada periode ini."


def has_rated(rater: Profile, period: str) -> bool:
    return EmployeeRating.objects.filter(rater=rater, rating_period=period).exists()


def submit_rating(
    rater: Profile,
    rated_employee: Profile,
    detailed_ratings: dict,
    reason: str,
    today: Optional[date] = None,
) -> EmployeeRating:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("Mohon isi alasan memilih pegawai ini.", code="reason_required")
    if rater.role not in (USER_UNIT, USER_PIMPINAN):
        raise ValidationError("Peran Anda tidak dapat memberikan penilaian.", code="role")
    if rater.pk == rated_employee.pk:
        raise ValidationError("Anda tidak dapat menilai diri sendiri.", code="self_rating")
    if rated_employee.role != USER_UNIT:
        raise ValidationError("Pegawai ini bukan kandidat Employee of the Month.", code="not_candidate")

    status = current_status(today=today)
    if not status.can_rate:
        raise ValidationError(status.message, code="period_closed")
    if not is_unit_participating(rater.work_unit_id):
        raise ValidationError("Unit kerja Anda tidak mengikuti Employee of the Month.", code="unit_inactive")

    period = status.active_period
    # Advisory check for a friendly message; the unique constraint is the real guard.
    if has_rated(rater, period):
        logger.warning("Duplicate rating rejected: rater=%s period=%s", rater.pk, period)
        raise ValidationError(DUPLICATE_MESSAGE, code="duplicate")

    totals = compute_rating_totals(detailed_ratings, criteria_for(rated_employee.category))

    try:
        with transaction.atomic():
            rating = EmployeeRating.objects.create(
                rater=rater,
                rated_employee=rated_employee,
                rating_period=period,
                reason=reason,
                detailed_ratings=totals.detailed_ratings,
                criteria_totals=totals.criteria_totals,
                total_points=totals.total_points,
                max_possible_points=totals.max_possible_points,
                is_pimpinan_rating=rater.role == USER_PIMPINAN,
            )
    except IntegrityError:
        logger.warning("Concurrent duplicate rating rejected: rater=%s period=%s", rater.pk, period)
        raise ValidationError(DUPLICATE_MESSAGE, code="duplicate")

    logger.info(
        "Rating saved: rater=%s rated=%s period=%s points=%s/%s",
        rater.pk, rated_employee.pk, period, rating.total_points, rating.max_possible_points,
    )
    return rating
