from typing import Optional

from apps.core.permissions import is_admin_pusat, is_admin_unit, profile_of
from apps.eom.models import (
    AdminPusatEvaluation,
    AdminUnitEvaluation,
    DesignatedWinner,
    EmployeeRating,
    ParticipatingUnit,
)
from apps.eom.services import ranking
from apps.org.models import Profile, WorkUnit


def _scope(qs, period: Optional[str], year: Optional[str], field: str = "rating_period"):
    if period:
        qs = qs.filter(**{field: period})
    if year:
        qs = qs.filter(**{f"{field}__startswith": f"{year}-"})
    return qs


class EomDataSource:
    """Loads engine inputs from the ORM. Querysets are injected so callers can narrow the scope."""

    def __init__(
        self,
        ratings=None,
        profiles=None,
        unit_evaluations=None,
        final_evaluations=None,
        winners=None,
    ):
        self.ratings = ratings if ratings is not None else EmployeeRating.objects.all()
        self.profiles = profiles if profiles is not None else Profile.objects.all()
        self.unit_evaluations = (
            unit_evaluations if unit_evaluations is not None else AdminUnitEvaluation.objects.all()
        )
        self.final_evaluations = (
            final_evaluations if final_evaluations is not None else AdminPusatEvaluation.objects.all()
        )
        self.winners = winners if winners is not None else DesignatedWinner.objects.all()

    @classmethod
    def for_user(cls, user) -> "EomDataSource":
        if is_admin_pusat(user):
            return cls()
        profile = profile_of(user)
        if is_admin_unit(user) and profile.work_unit_id:
            unit_id = profile.work_unit_id
            return cls(
                ratings=EmployeeRating.objects.filter(rated_employee__work_unit_id=unit_id),
                profiles=Profile.objects.filter(work_unit_id=unit_id),
                unit_evaluations=AdminUnitEvaluation.objects.filter(work_unit_id=unit_id),
                final_evaluations=AdminPusatEvaluation.objects.none(),
                winners=DesignatedWinner.objects.filter(employee__work_unit_id=unit_id),
            )
        return cls(
            ratings=EmployeeRating.objects.none(),
            profiles=Profile.objects.none(),
            unit_evaluations=AdminUnitEvaluation.objects.none(),
            final_evaluations=AdminPusatEvaluation.objects.none(),
            winners=DesignatedWinner.objects.none(),
        )

    def fetch_ratings(self, period: Optional[str] = None, year: Optional[str] = None) -> list:
        qs = _scope(self.ratings, period, year).order_by("created_at", "id")
        return [
            ranking.Rating(
                id=r.id,
                rater_id=r.rater_id,
                rated_employee_id=r.rated_employee_id,
                rating_period=r.rating_period,
                total_points=r.total_points,
                criteria_totals=r.criteria_totals or {},
                reason=r.reason,
                is_pimpinan_rating=r.is_pimpinan_rating,
            )
            for r in qs
        ]

    def fetch_employees(self) -> list:
        return [
            ranking.Employee(
                id=p.id,
                name=p.name,
                work_unit_id=p.work_unit_id,
                work_unit_name=p.work_unit.name if p.work_unit_id else None,
                category=p.category,
                role=p.role,
                nip=p.nip,
            )
            for p in self.profiles.select_related("work_unit")
        ]

    def fetch_unit_overrides(self, period: Optional[str] = None, year: Optional[str] = None) -> dict:
        qs = _scope(self.unit_evaluations, period, year)
        return {(e.rated_employee_id, e.rating_period): e for e in qs}

    def fetch_final_overrides(self, period: Optional[str] = None, year: Optional[str] = None) -> dict:
        qs = _scope(self.final_evaluations, period, year)
        return {(e.rated_employee_id, e.rating_period): e for e in qs}

    def fetch_winners(self, year: Optional[str] = None) -> list:
        qs = self.winners
        if year:
            qs = qs.filter(period__startswith=str(year))
        return [
            ranking.Winner(
                id=w.id,
                employee_id=w.employee_id,
                winner_type=w.winner_type,
                employee_category=w.employee_category,
                period=w.period,
                final_points=w.final_points,
            )
            for w in qs.order_by("-period", "id")
        ]

    def fetch_participating_unit_ids(self) -> list:
        unit_ids = set(self.profiles.values_list("work_unit_id", flat=True))
        return [unit_id for unit_id in participating_unit_ids() if unit_id in unit_ids]

    def aggregated_rows(self, period: Optional[str] = None, year: Optional[str] = None) -> list:
        return ranking.aggregate(
            self.fetch_ratings(period, year),
            self.fetch_employees(),
            self.fetch_unit_overrides(period, year),
            self.fetch_final_overrides(period, year),
        )


def participating_unit_ids() -> list:
    if not ParticipatingUnit.objects.exists():
        return list(WorkUnit.objects.order_by("name").values_list("id", flat=True))
    return list(
        ParticipatingUnit.objects.filter(is_active=True)
        .order_by("work_unit__name")
        .values_list("work_unit_id", flat=True)
    )


def unit_names() -> dict:
    return dict(WorkUnit.objects.values_list("id", "name"))
