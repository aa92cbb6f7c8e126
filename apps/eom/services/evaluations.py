import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from apps.core.permissions import is_admin_pusat, is_admin_unit, profile_of
from apps.eom.models import AdminPusatEvaluation, AdminUnitEvaluation, EmployeeRating
from apps.eom.services.periods import current_status
from apps.eom.services.scoring import compute_adjustments
from apps.org.models import Profile

logger = logging.getLogger(__name__)

FLAG_FIELDS = (
    "has_disciplinary_action",
    "has_poor_attendance",
    "has_poor_performance",
    "has_contribution",
)
TEXT_FIELDS = (
    "disciplinary_action_note",
    "disciplinary_evidence_link",
    "attendance_note",
    "attendance_evidence_link",
    "performance_note",
    "performance_evidence_link",
    "contribution_description",
    "contribution_evidence_link",
)
VERIFIED_FIELDS = (
    "disciplinary_verified",
    "attendance_verified",
    "performance_verified",
    "contribution_verified",
)


def peer_total_points(employee: Profile, period: str) -> int:
    qs = EmployeeRating.objects.filter(rated_employee=employee, rating_period=period)
    if not qs.exists():
        raise ValidationError("Pegawai belum memiliki penilaian pada periode ini.", code="no_ratings")
    return qs.aggregate(total=Sum("total_points"))["total"] or 0


def _validate_flags(data: dict) -> None:
    errors = []
    if data.get("has_disciplinary_action") and not (data.get("disciplinary_action_note") or "").strip():
        errors.append("Mohon berikan catatan untuk hukuman disiplin.")
    if data.get("has_contribution") and not (data.get("contribution_description") or "").strip():
        errors.append("Mohon jelaskan kontribusi pegawai.")
    if data.get("additional_adjustment") and not (data.get("additional_adjustment_note") or "").strip():
        errors.append("Mohon berikan catatan untuk penyesuaian tambahan.")
    if errors:
        raise ValidationError(errors, code="incomplete")


def _common_values(data: dict) -> dict:
    values = {f: bool(data.get(f)) for f in FLAG_FIELDS}
    values.update({f: (data.get(f) or "").strip() for f in TEXT_FIELDS})
    return values


def _require_window(period: str, attr: str) -> None:
    status = current_status(period=period)
    if not getattr(status, attr):
        raise ValidationError(status.message, code="period_closed")


def save_unit_evaluation(user, employee: Profile, period: str, data: dict) -> AdminUnitEvaluation:
    if not (is_admin_unit(user) or is_admin_pusat(user)):
        raise PermissionDenied
    if is_admin_unit(user):
        unit_id = profile_of(user).work_unit_id
        if unit_id is None or unit_id != employee.work_unit_id:
            raise PermissionDenied

    if employee.work_unit_id is None:
        raise ValidationError("Pegawai belum terdaftar pada unit kerja.", code="no_unit")

    _require_window(period, "can_evaluate")
    _validate_flags(data)
    original = peer_total_points(employee, period)

    values = _common_values(data)
    adj = compute_adjustments(original, **{f: values[f] for f in FLAG_FIELDS})
    values.update(
        evaluator=user,
        work_unit_id=employee.work_unit_id,
        original_total_points=original,
        disciplinary_penalty=adj.disciplinary_penalty,
        attendance_penalty=adj.attendance_penalty,
        performance_penalty=adj.performance_penalty,
        contribution_bonus=adj.contribution_bonus,
        final_total_points=adj.final_total_points,
    )

    evaluation, created = AdminUnitEvaluation.objects.update_or_create(
        rated_employee=employee, rating_period=period, defaults=values
    )
    logger.info(
        "Unit evaluation %s: employee=%s period=%s points=%s->%s",
        "created" if created else "updated", employee.pk, period, original, evaluation.final_total_points,
    )
    return evaluation


def final_evaluation_initial(employee: Profile, period: str) -> dict:
    """Form values for a final evaluation: the saved one, else pre-filled from the unit evaluation."""
    existing = AdminPusatEvaluation.objects.filter(rated_employee=employee, rating_period=period).first()
    source = existing or AdminUnitEvaluation.objects.filter(rated_employee=employee, rating_period=period).first()
    initial = {f: False for f in FLAG_FIELDS + VERIFIED_FIELDS}
    initial.update({f: "" for f in TEXT_FIELDS})
    initial.update(additional_adjustment=0, additional_adjustment_note="")
    if source is not None:
        initial.update({f: getattr(source, f) for f in FLAG_FIELDS + TEXT_FIELDS})
    if existing is not None:
        initial.update({f: getattr(existing, f) for f in VERIFIED_FIELDS})
        initial.update(
            additional_adjustment=existing.additional_adjustment,
            additional_adjustment_note=existing.additional_adjustment_note,
        )
    return initial


def save_final_evaluation(user, employee: Profile, period: str, data: dict) -> AdminPusatEvaluation:
    if not is_admin_pusat(user):
        raise PermissionDenied

    _require_window(period, "can_verify")
    _validate_flags(data)
    peer_points = peer_total_points(employee, period)
    unit_evaluation = AdminUnitEvaluation.objects.filter(rated_employee=employee, rating_period=period).first()
    values = _common_values(data)
    additional = int(data.get("additional_adjustment") or 0)
    adj = compute_adjustments(
        peer_points, additional_adjustment=additional, **{f: values[f] for f in FLAG_FIELDS}
    )

    now = timezone.now()
    for field in VERIFIED_FIELDS:
        verified = bool(data.get(field))
        values[field] = verified
        values[f"{field}_at"] = now if verified else None

    values.update(
        evaluator=user,
        admin_unit_evaluation=unit_evaluation,
        peer_total_points=peer_points,
        admin_unit_final_points=unit_evaluation.final_total_points if unit_evaluation else None,
        disciplinary_penalty=adj.disciplinary_penalty,
        attendance_penalty=adj.attendance_penalty,
        performance_penalty=adj.performance_penalty,
        contribution_bonus=adj.contribution_bonus,
        additional_adjustment=additional,
        additional_adjustment_note=(data.get("additional_adjustment_note") or "").strip(),
        final_total_points=adj.final_total_points,
    )

    with transaction.atomic():
        evaluation, created = AdminPusatEvaluation.objects.update_or_create(
            rated_employee=employee, rating_period=period, defaults=values
        )
    logger.info(
        "Final evaluation %s: employee=%s period=%s points=%s->%s",
        "created" if created else "updated", employee.pk, period, peer_points, evaluation.final_total_points,
    )
    return evaluation
