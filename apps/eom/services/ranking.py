"""
Rating aggregation and ranking for Employee of the Month.

Everything here works on plain in-memory values that the selectors have
already loaded; no function touches the database or mutates its inputs.

Score tiers, highest priority first:

* final (central admin) evaluation ``final_total_points``;
* unit admin evaluation ``final_total_points``;
* raw sum of peer ratings.

Equal scores keep their input order (Python's sort is stable), so callers
control tie-breaks through the order in which they pass rows in.
"""
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Optional

from apps.core.permissions import USER_PIMPINAN, USER_UNIT
from apps.eom.criteria import criteria_for
from apps.eom.services.scoring import round_half_up
from apps.org.constants import ASN, CATEGORIES, NON_ASN

UNKNOWN_EMPLOYEE = "Unknown"
UNKNOWN_UNIT = "Unit tidak diketahui"
MONTHLY = "monthly"
YEARLY = "yearly"


@dataclass(frozen=True)
class Rating:
    id: object
    rater_id: object
    rated_employee_id: object
    rating_period: str
    total_points: int
    criteria_totals: dict = field(default_factory=dict)
    reason: str = ""
    is_pimpinan_rating: bool = False


@dataclass(frozen=True)
class Employee:
    id: object
    name: str
    work_unit_id: object = None
    work_unit_name: Optional[str] = None
    category: str = ASN
    role: str = USER_UNIT
    nip: str = ""


@dataclass(frozen=True)
class Winner:
    id: object
    employee_id: object
    winner_type: str
    employee_category: str
    period: str
    final_points: int


@dataclass(frozen=True)
class AggregatedRating:
    employee_id: object
    employee_name: str
    employee_work_unit_id: object
    employee_work_unit: Optional[str]
    employee_category: str
    rating_period: str
    total_points: int
    rating_count: int
    unit_evaluation: object = None
    final_evaluation: object = None

    @property
    def has_unit_evaluation(self) -> bool:
        return self.unit_evaluation is not None

    @property
    def has_final_evaluation(self) -> bool:
        return self.final_evaluation is not None


@dataclass(frozen=True)
class RankedRow:
    rank: int
    score: int
    row: AggregatedRating


@dataclass(frozen=True)
class YearlyCandidate:
    employee_id: object
    employee_name: str
    employee_category: str
    monthly_win_count: int
    total_points: int
    avg_points: int
    months: tuple


@dataclass(frozen=True)
class EmployeeRatingStatus:
    id: object
    name: str
    nip: str
    category: str
    has_rated: bool
    rated_asn: bool
    rated_non_asn: bool
    unit_name: str = ""


@dataclass(frozen=True)
class UnitParticipation:
    unit_id: object
    unit_name: str
    total_employees: int
    rated_employees: tuple
    not_rated_employees: tuple
    rated_percentage: float

    @property
    def employees_rated(self) -> int:
        return len(self.rated_employees)

    @property
    def employees_not_rated(self) -> int:
        return len(self.not_rated_employees)


@dataclass(frozen=True)
class CriterionBreakdown:
    criterion_id: str
    title: str
    average_points: float
    max_points: int
    average_percentage: int


def aggregate(
    ratings: Iterable[Rating],
    employees: Iterable[Employee],
    unit_overrides: Optional[Mapping] = None,
    final_overrides: Optional[Mapping] = None,
) -> list:
    """
    Group ratings by ``(rated_employee_id, rating_period)`` in first-seen order.

    Override mappings are keyed by ``(employee_id, period)``. A ratee missing
    from ``employees`` is reported as "Unknown" in the ASN category.
    """
    unit_overrides = unit_overrides or {}
    final_overrides = final_overrides or {}
    by_id = {e.id: e for e in employees}

    groups = OrderedDict()
    for rating in ratings:
        key = (rating.rated_employee_id, rating.rating_period)
        points, count = groups.get(key, (0, 0))
        groups[key] = (points + (rating.total_points or 0), count + 1)

    rows = []
    for (employee_id, period), (points, count) in groups.items():
        employee = by_id.get(employee_id)
        rows.append(
            AggregatedRating(
                employee_id=employee_id,
                employee_name=employee.name if employee else UNKNOWN_EMPLOYEE,
                employee_work_unit_id=employee.work_unit_id if employee else None,
                employee_work_unit=employee.work_unit_name if employee else None,
                employee_category=employee.category if employee else ASN,
                rating_period=period,
                total_points=points,
                rating_count=count,
                unit_evaluation=unit_overrides.get((employee_id, period)),
                final_evaluation=final_overrides.get((employee_id, period)),
            )
        )
    return rows


def effective_score(row: AggregatedRating) -> int:
    if row.has_final_evaluation:
        return row.final_evaluation.final_total_points
    if row.has_unit_evaluation:
        return row.unit_evaluation.final_total_points
    return row.total_points


def unit_score(row: AggregatedRating) -> int:
    """Score as seen by a unit admin: the central tier is ignored."""
    if row.has_unit_evaluation:
        return row.unit_evaluation.final_total_points
    return row.total_points


def rank_within_scope(rows: Iterable[AggregatedRating], score: Callable = effective_score) -> list:
    ordered = sorted(rows, key=score, reverse=True)
    return [RankedRow(rank=i, score=score(row), row=row) for i, row in enumerate(ordered, start=1)]


def paginate_ranked(ranked: list, page: int, page_size: int) -> list:
    # Ranks come from the full scope; a page only slices it.
    page = max(page, 1)
    start = (page - 1) * page_size
    return ranked[start:start + page_size]


def partition_by_category(rows: Iterable[AggregatedRating]) -> dict:
    partitions = {category: [] for category in CATEGORIES}
    for row in rows:
        category = NON_ASN if row.employee_category == NON_ASN else ASN
        partitions[category].append(row)
    return partitions


def _top_per_category(rows: Iterable[AggregatedRating]) -> dict:
    top = {}
    for category, scoped in partition_by_category(rows).items():
        ranked = rank_within_scope(scoped)
        if ranked:
            top[category] = ranked[0]
    return top


def top_by_category_for_period(rows: Iterable[AggregatedRating], period: str) -> dict:
    return _top_per_category(r for r in rows if r.rating_period == period)


def top_by_category_for_year(rows: Iterable[AggregatedRating], year) -> dict:
    """Strongest single month of the year per category; months are not summed."""
    prefix = f"{year}-"
    return _top_per_category(r for r in rows if r.rating_period.startswith(prefix))


def yearly_candidates(winners: Iterable, year, employees: Iterable[Employee] = ()) -> list:
    """
    Employee of the Year candidates built from designated monthly winners.

    Ranked by number of monthly wins, then by the sum of their final points.
    """
    prefix = f"{year}-"
    names = {e.id: e.name for e in employees}
    monthly = sorted(
        (w for w in winners if w.winner_type == MONTHLY and w.period.startswith(prefix)),
        key=lambda w: w.period,
        reverse=True,
    )

    grouped = OrderedDict()
    for w in monthly:
        key = (w.employee_id, w.employee_category)
        entry = grouped.setdefault(key, {"count": 0, "points": 0, "months": []})
        entry["count"] += 1
        entry["points"] += w.final_points
        entry["months"].append(w.period)

    candidates = [
        YearlyCandidate(
            employee_id=employee_id,
            employee_name=names.get(employee_id, UNKNOWN_EMPLOYEE),
            employee_category=category,
            monthly_win_count=entry["count"],
            total_points=entry["points"],
            avg_points=round_half_up(entry["points"] / entry["count"]),
            months=tuple(entry["months"]),
        )
        for (employee_id, category), entry in grouped.items()
    ]
    candidates.sort(key=lambda c: (c.monthly_win_count, c.total_points), reverse=True)
    return candidates


def _rater_map(ratings: Iterable[Rating], by_id: Mapping, period: str, pimpinan_only: bool = False) -> dict:
    raters = {}
    for rating in ratings:
        if rating.rating_period != period:
            continue
        if pimpinan_only and not rating.is_pimpinan_rating:
            continue
        flags = raters.setdefault(rating.rater_id, {"asn": False, "non_asn": False})
        rated = by_id.get(rating.rated_employee_id)
        if rated is None:
            continue
        if rated.category == NON_ASN:
            flags["non_asn"] = True
        else:
            flags["asn"] = True
    return raters


def _status(employee: Employee, raters: Mapping, unit_name: str = "") -> EmployeeRatingStatus:
    flags = raters.get(employee.id)
    return EmployeeRatingStatus(
        id=employee.id,
        name=employee.name,
        nip=employee.nip,
        category=employee.category,
        has_rated=flags is not None,
        rated_asn=bool(flags and flags["asn"]),
        rated_non_asn=bool(flags and flags["non_asn"]),
        unit_name=unit_name,
    )


def participation_stats(
    ratings: Iterable[Rating],
    employees: Iterable[Employee],
    period: str,
    participating_unit_ids: Iterable,
    unit_names: Optional[Mapping] = None,
) -> list:
    unit_names = unit_names or {}
    employees = list(employees)
    raters = _rater_map(ratings, {e.id: e for e in employees}, period)

    stats = []
    for unit_id in participating_unit_ids:
        name = unit_names.get(unit_id, f"Unit {unit_id}")
        statuses = [
            _status(e, raters, name)
            for e in employees
            if e.role == USER_UNIT and e.work_unit_id == unit_id
        ]
        rated = tuple(s for s in statuses if s.has_rated)
        not_rated = tuple(s for s in statuses if not s.has_rated)
        stats.append(
            UnitParticipation(
                unit_id=unit_id,
                unit_name=name,
                total_employees=len(statuses),
                rated_employees=rated,
                not_rated_employees=not_rated,
                rated_percentage=(len(rated) / len(statuses) * 100) if statuses else 0,
            )
        )
    stats.sort(key=lambda u: u.rated_percentage, reverse=True)
    return stats


def participation_summary(stats: Iterable[UnitParticipation]) -> dict:
    stats = list(stats)
    total = sum(u.total_employees for u in stats)
    rated = sum(u.employees_rated for u in stats)
    return {
        "total_units": len(stats),
        "total_employees": total,
        "total_rated": rated,
        "total_not_rated": total - rated,
        "overall_percentage": (rated / total * 100) if total else 0,
    }


def pimpinan_status(
    ratings: Iterable[Rating],
    employees: Iterable[Employee],
    period: str,
    unit_names: Optional[Mapping] = None,
) -> list:
    unit_names = unit_names or {}
    employees = list(employees)
    raters = _rater_map(ratings, {e.id: e for e in employees}, period, pimpinan_only=True)
    statuses = [
        _status(e, raters, unit_names.get(e.work_unit_id, UNKNOWN_UNIT))
        for e in employees
        if e.role == USER_PIMPINAN
    ]
    statuses.sort(key=lambda s: (s.has_rated, s.name.casefold()))
    return statuses


def criteria_breakdown(ratings: Iterable[Rating], category: str) -> list:
    ratings = list(ratings)
    if not ratings:
        return []

    sums = {}
    for rating in ratings:
        for criterion_id, points in (rating.criteria_totals or {}).items():
            total, count = sums.get(criterion_id, (0, 0))
            sums[criterion_id] = (total + points, count + 1)

    breakdown = []
    for criterion in criteria_for(category):
        total, count = sums.get(criterion.id, (0, 0))
        average = total / count if count else 0
        breakdown.append(
            CriterionBreakdown(
                criterion_id=criterion.id,
                title=criterion.title,
                average_points=round_half_up(average * 10) / 10,
                max_points=criterion.max_points,
                average_percentage=round_half_up(average / criterion.max_points * 100),
            )
        )
    return breakdown
