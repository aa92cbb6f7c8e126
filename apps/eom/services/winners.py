import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import IntegrityError, transaction

from apps.core.models import AuditLog
from apps.core.permissions import is_admin_pusat
from apps.eom.models import DesignatedWinner
from apps.eom.selectors import EomDataSource
from apps.eom.services.periods import validate_period
from apps.eom.services.ranking import effective_score
from apps.org.constants import CATEGORIES
from apps.org.models import Profile

logger = logging.getLogger(__name__)

ENTITY = "DesignatedWinner"


def winner_period(winner_type: str, rating_period: str) -> str:
    if winner_type == DesignatedWinner.WinnerType.YEARLY:
        return rating_period[:4]
    return rating_period


def find_row(employee: Profile, rating_period: str, source: EomDataSource = None):
    source = source or EomDataSource()
    for row in source.aggregated_rows(period=rating_period):
        if row.employee_id == employee.pk:
            return row
    return None


def current_winner(winner_type: str, period: str, category: str):
    return DesignatedWinner.objects.filter(
        winner_type=winner_type, period=period, employee_category=category
    ).first()


def designate_winner(
    user,
    employee: Profile,
    rating_period: str,
    winner_type: str,
    employee_category: str,
    notes: str = "",
    replace: bool = False,
) -> DesignatedWinner:
    if not is_admin_pusat(user):
        raise PermissionDenied

    rating_period = validate_period(rating_period)
    if winner_type not in DesignatedWinner.WinnerType.values:
        raise ValidationError("Jenis pemenang tidak dikenal.", code="winner_type")
    if employee_category not in CATEGORIES:
        raise ValidationError("Kategori pegawai tidak dikenal.", code="category")

    row = find_row(employee, rating_period)
    if row is None:
        raise ValidationError("Pegawai belum memiliki penilaian pada periode ini.", code="no_ratings")
    if row.employee_category != employee_category:
        logger.warning(
            "Winner category mismatch: employee=%s is %s, requested %s",
            employee.pk, row.employee_category, employee_category,
        )
        raise ValidationError(
            "Kategori %(requested)s tidak sesuai dengan kategori pegawai (%(actual)s).",
            code="category_mismatch",
            params={"requested": employee_category, "actual": row.employee_category},
        )

    period = winner_period(winner_type, rating_period)
    existing = current_winner(winner_type, period, employee_category)
    if existing and not replace:
        raise ValidationError(
            "Sudah ada pemenang %(category)s untuk periode %(period)s.",
            code="already_designated",
            params={"category": employee_category, "period": period},
        )

    points = effective_score(row)
    try:
        with transaction.atomic():
            if existing:
                _delete(user, existing, reason="replaced")
            winner = DesignatedWinner.objects.create(
                employee=employee,
                winner_type=winner_type,
                employee_category=employee_category,
                period=period,
                final_points=points,
                notes=(notes or "").strip(),
                designated_by=user,
            )
            AuditLog.record(
                user=user,
                entity=ENTITY,
                entity_id=winner.pk,
                action=AuditLog.Action.DESIGNATE,
                new_value=f"{winner_type} {period} {employee_category} employee={employee.pk} points={points}",
            )
    except IntegrityError:
        raise ValidationError(
            "Sudah ada pemenang %(category)s untuk periode %(period)s.",
            code="already_designated",
            params={"category": employee_category, "period": period},
        )

    logger.info(
        "Winner designated: %s %s %s employee=%s points=%s",
        winner_type, period, employee_category, employee.pk, points,
    )
    return winner


def _delete(user, winner: DesignatedWinner, reason: str = "") -> None:
    AuditLog.record(
        user=user,
        entity=ENTITY,
        entity_id=winner.pk,
        action=AuditLog.Action.REMOVE,
        old_value=f"{winner.winner_type} {winner.period} {winner.employee_category} employee={winner.employee_id}",
        reason=reason,
    )
    winner.delete()


def remove_winner(user, winner: DesignatedWinner) -> None:
    if not is_admin_pusat(user):
        raise PermissionDenied
    with transaction.atomic():
        _delete(user, winner)
    logger.info("Winner removed: %s %s %s", winner.winner_type, winner.period, winner.employee_category)
