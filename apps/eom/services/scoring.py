from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR

from django.core.exceptions import ValidationError

from apps.eom.criteria import MAX_SCORE, MIN_SCORE, max_possible_points

DISCIPLINARY_RATE = Decimal("0.15")
ATTENDANCE_RATE = Decimal("0.05")
PERFORMANCE_RATE = Decimal("0.05")
CONTRIBUTION_RATE = Decimal("0.10")


def round_half_up(value) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2)."""
    d = value if isinstance(value, Decimal) else Decimal(str(value))
    return int((d + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))


@dataclass(frozen=True)
class RatingTotals:
    detailed_ratings: dict
    criteria_totals: dict
    total_points: int
    max_possible_points: int


def _coerce_score(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def compute_rating_totals(detailed_ratings, criteria) -> RatingTotals:
    if not isinstance(detailed_ratings, dict):
        raise ValidationError("Format penilaian tidak valid.", code="invalid")

    normalized = {}
    totals = {}
    missing = []
    for criterion in criteria:
        given = detailed_ratings.get(criterion.id) or {}
        if not isinstance(given, dict):
            given = {}
        scores = {}
        for index, item in enumerate(criterion.items):
            raw = given.get(str(index), given.get(index))
            score = _coerce_score(raw)
            if score is None or not MIN_SCORE <= score <= MAX_SCORE:
                missing.append(f"{criterion.title} - {item}")
                continue
            scores[str(index)] = score
        normalized[criterion.id] = scores
        totals[criterion.id] = sum(scores.values())

    if missing:
        raise ValidationError(
            "Mohon berikan penilaian untuk semua indikator. Masih ada %(count)d indikator yang belum dinilai.",
            code="incomplete",
            params={"count": len(missing)},
        )

    return RatingTotals(
        detailed_ratings=normalized,
        criteria_totals=totals,
        total_points=sum(totals.values()),
        max_possible_points=max_possible_points(criteria),
    )


@dataclass(frozen=True)
class Adjustments:
    base_points: int
    disciplinary_penalty: int
    attendance_penalty: int
    performance_penalty: int
    contribution_bonus: int
    additional_adjustment: int = 0

    @property
    def total_penalty(self) -> int:
        return self.disciplinary_penalty + self.attendance_penalty + self.performance_penalty

    @property
    def final_total_points(self) -> int:
        return self.base_points - self.total_penalty + self.contribution_bonus + self.additional_adjustment


def compute_adjustments(
    base_points: int,
    *,
    has_disciplinary_action: bool = False,
    has_poor_attendance: bool = False,
    has_poor_performance: bool = False,
    has_contribution: bool = False,
    additional_adjustment: int = 0,
) -> Adjustments:
    base = Decimal(base_points)
    return Adjustments(
        base_points=base_points,
        disciplinary_penalty=round_half_up(base * DISCIPLINARY_RATE) if has_disciplinary_action else 0,
        attendance_penalty=round_half_up(base * ATTENDANCE_RATE) if has_poor_attendance else 0,
        performance_penalty=round_half_up(base * PERFORMANCE_RATE) if has_poor_performance else 0,
        contribution_bonus=round_half_up(base * CONTRIBUTION_RATE) if has_contribution else 0,
        additional_adjustment=additional_adjustment,
    )
